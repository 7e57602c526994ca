"""
ETL validation module.

Structured diagnostics live here; the validators are in
validate.player, validate.consistency, validate.match and validate.kpi.
"""

from .results import Category, Diagnostic, Severity, ValidationOutcome

__all__ = ['Category', 'Diagnostic', 'Severity', 'ValidationOutcome']
