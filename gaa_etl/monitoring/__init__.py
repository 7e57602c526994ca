"""
ETL monitoring module.

Provides run metrics collection and structured logging.
"""

from .logging import get_pipeline_logger, log_pipeline_event, set_correlation_id
from .metrics import MetricsCollector, RunMetrics

__all__ = [
    'RunMetrics',
    'MetricsCollector',
    'get_pipeline_logger',
    'log_pipeline_event',
    'set_correlation_id',
]
