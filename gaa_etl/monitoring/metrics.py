"""
Run metrics collection.

Tracks per-run ETL figures:
- Sheet counts by outcome
- Records created and skipped
- Stage durations (read, process)
- Diagnostic totals and a simple quality score

Each run is written to {metrics_dir}/{YYYY-MM-DD}/gaa_etl_{run_id}.json.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from gaa_etl.pipelines.results import EtlRunResult

logger = logging.getLogger(__name__)


@dataclass
class RunMetrics:
    """Metrics for a single run."""

    run_id: str
    source: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "running"  # running, success, failed, cancelled

    sheets_processed: int = 0
    sheets_loaded: int = 0
    sheets_by_status: Dict[str, int] = field(default_factory=dict)

    records_extracted: int = 0
    statistics_created: int = 0
    records_skipped: int = 0
    matches_created: int = 0

    read_duration: float = 0.0
    process_duration: float = 0.0

    validation_errors: int = 0
    validation_warnings: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_result(cls, result: "EtlRunResult", read_duration: float = 0.0) -> "RunMetrics":
        if result.success:
            status = "success"
        elif result.cancelled:
            status = "cancelled"
        else:
            status = "failed"

        return cls(
            run_id=result.run_id,
            source=result.file_path.name,
            start_time=result.start_time,
            end_time=result.end_time,
            status=status,
            sheets_processed=result.sheets_processed,
            sheets_loaded=result.sheets_loaded,
            sheets_by_status=result.sheets_by_status,
            records_extracted=sum(s.records_extracted for s in result.sheets),
            statistics_created=result.player_statistics_created,
            records_skipped=result.players_skipped,
            matches_created=result.matches_created,
            read_duration=read_duration,
            process_duration=max(result.duration_seconds - read_duration, 0.0),
            validation_errors=result.validation_errors,
            validation_warnings=result.validation_warnings,
            error_message=result.run_error,
        )

    @property
    def total_duration(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    @property
    def data_quality_score(self) -> float:
        """Share of processed sheets that reached the loader."""
        if self.sheets_processed == 0:
            return 1.0
        return self.sheets_loaded / self.sheets_processed

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["start_time"] = self.start_time.isoformat()
        data["end_time"] = self.end_time.isoformat() if self.end_time else None
        data["total_duration"] = round(self.total_duration, 3)
        data["data_quality_score"] = round(self.data_quality_score, 4)
        return data

    def summary(self) -> str:
        emoji = {"success": "✅", "failed": "❌", "cancelled": "⚠️", "running": "🔄"}.get(self.status, "")
        return (
            f"{emoji} gaa_etl ({self.run_id}): {self.status.upper()} - "
            f"{self.statistics_created}/{self.records_extracted} records in {self.total_duration:.1f}s "
            f"(quality: {self.data_quality_score:.1%})"
        )


class MetricsCollector:
    """
    Writes each run's metrics to a dated JSON file.

    Example:
        >>> collector = MetricsCollector(Path("logs/etl/metrics"))
        >>> orchestrator = EtlOrchestrator(store, collector=collector)
    """

    def __init__(self, metrics_dir: Optional[Path] = None):
        self.metrics_dir = Path(metrics_dir) if metrics_dir is not None else Path("logs/etl/metrics")

    def record(self, metrics: RunMetrics) -> Optional[Path]:
        """Persist one run; returns the file written, if any."""
        path = self._save_to_json(metrics)
        logger.info(metrics.summary())
        return path

    def _save_to_json(self, metrics: RunMetrics) -> Optional[Path]:
        date_dir = self.metrics_dir / metrics.start_time.strftime("%Y-%m-%d")
        path = date_dir / f"gaa_etl_{metrics.run_id}.json"
        try:
            date_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(metrics.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save metrics to {path}: {e}")
            return None
        return path
