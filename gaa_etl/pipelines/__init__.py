"""
ETL orchestration.

Runs Classify → Extract → Validate → Enrich → Resolve → Load over a workbook.
"""

from .orchestrator import EtlOrchestrator
from .results import EtlRunResult, SheetReport, SheetStatus

__all__ = ['EtlOrchestrator', 'EtlRunResult', 'SheetReport', 'SheetStatus']
