"""
Run reporting.

- SheetReport: what happened to one worksheet (status, diagnostics, load counts)
- EtlRunResult: the aggregate returned by EtlOrchestrator.process()
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from gaa_etl.load.loaders import LoadResult
from gaa_etl.models import SheetDescriptor, SheetKind
from gaa_etl.validate.results import Diagnostic, Severity, ValidationOutcome


class SheetStatus(Enum):
    LOADED = "loaded"
    REJECTED = "rejected"  # structural error
    BLOCKED = "blocked"  # critical validation error
    UNRESOLVED = "unresolved"  # no persisted match
    FAILED = "failed"  # transaction rolled back


@dataclass
class SheetReport:
    """Outcome of processing one worksheet."""

    sheet_name: str
    kind: SheetKind
    status: SheetStatus
    outcome: ValidationOutcome
    descriptor: Optional[SheetDescriptor] = None
    load: Optional[LoadResult] = None
    fields_mapped: int = 0
    records_extracted: int = 0
    match_strategy: Optional[str] = None
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def reached_loader(self) -> bool:
        return self.status is SheetStatus.LOADED

    @property
    def records_skipped(self) -> int:
        """Player records of this sheet that were not inserted, whatever the reason."""
        if self.kind is not SheetKind.PLAYER_STATS:
            return 0
        if self.load is not None:
            return self.load.players_skipped
        return self.records_extracted

    def summary(self) -> str:
        emoji = {
            SheetStatus.LOADED: "✅",
            SheetStatus.REJECTED: "❌",
            SheetStatus.BLOCKED: "❌",
            SheetStatus.UNRESOLVED: "⚠️",
            SheetStatus.FAILED: "❌",
        }[self.status]
        detail = self.load.describe() if self.load else (self.error or self.status.value)
        return (
            f"{emoji} [{self.status.value}] {detail} "
            f"({self.outcome.error_count} errors, {self.outcome.warning_count} warnings)"
        )


@dataclass(frozen=True)
class EtlRunResult:
    """
    Aggregate report for one pipeline invocation.

    Built once when the run ends and frozen from then on: sheets and run
    diagnostics are tuples, sheets_found is a read-only mapping. Counters are
    derived from the per-sheet reports, so they always agree with the
    diagnostics list.
    """

    file_path: Path
    run_id: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    sheets: Tuple[SheetReport, ...] = ()
    run_diagnostics: Tuple[Diagnostic, ...] = ()
    sheets_found: Mapping[str, int] = field(default_factory=dict)
    positions_mapped: int = 0
    cancelled: bool = False
    run_error: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "sheets", tuple(self.sheets))
        object.__setattr__(self, "run_diagnostics", tuple(self.run_diagnostics))
        object.__setattr__(self, "sheets_found", MappingProxyType(dict(self.sheets_found)))

    @property
    def success(self) -> bool:
        """No run error, not cancelled, something loaded and nothing failed in persistence."""
        return (
            self.run_error is None
            and not self.cancelled
            and any(s.reached_loader for s in self.sheets)
            and not any(s.status is SheetStatus.FAILED for s in self.sheets)
        )

    def _loads(self) -> List[LoadResult]:
        return [s.load for s in self.sheets if s.load is not None]

    @property
    def sheets_processed(self) -> int:
        return len(self.sheets)

    @property
    def sheets_loaded(self) -> int:
        return sum(1 for s in self.sheets if s.reached_loader)

    @property
    def sheets_by_status(self) -> Dict[str, int]:
        return dict(Counter(s.status.value for s in self.sheets))

    @property
    def player_statistics_created(self) -> int:
        return sum(r.statistics_created for r in self._loads())

    @property
    def players_skipped(self) -> int:
        """Player records not inserted, including every record of a sheet that never loaded."""
        return sum(s.records_skipped for s in self.sheets)

    @property
    def players_created(self) -> int:
        return sum(r.players_created for r in self._loads())

    @property
    def players_updated(self) -> int:
        return sum(r.players_updated for r in self._loads())

    @property
    def matches_created(self) -> int:
        return sum(r.matches_created for r in self._loads())

    @property
    def matches_skipped(self) -> int:
        return sum(r.matches_skipped for r in self._loads())

    @property
    def team_statistics_created(self) -> int:
        return sum(r.team_statistics_created for r in self._loads())

    @property
    def kpi_definitions_created(self) -> int:
        return sum(r.definitions_created for r in self._loads())

    @property
    def kpi_definitions_updated(self) -> int:
        return sum(r.definitions_updated for r in self._loads())

    @property
    def kpi_definitions_unchanged(self) -> int:
        return sum(r.definitions_unchanged for r in self._loads())

    @property
    def fields_processed(self) -> int:
        return sum(s.fields_mapped * s.records_extracted for s in self.sheets if s.reached_loader)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Run-level diagnostics followed by every sheet's, in processing order."""
        collected = list(self.run_diagnostics)
        for sheet in self.sheets:
            collected.extend(sheet.outcome.diagnostics)
        return collected

    @property
    def validation_errors(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.ERROR)

    @property
    def validation_warnings(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.WARNING)

    def errors_by_category(self) -> Dict[str, int]:
        return dict(Counter(d.category.value for d in self.diagnostics if d.severity is Severity.ERROR))

    def warnings_by_category(self) -> Dict[str, int]:
        return dict(Counter(d.category.value for d in self.diagnostics if d.severity is Severity.WARNING))

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    @property
    def average_sheet_seconds(self) -> float:
        if not self.sheets:
            return 0.0
        return sum(s.duration_seconds for s in self.sheets) / len(self.sheets)

    def summary(self) -> str:
        """Human-readable summary."""
        if self.success:
            status = "✅ SUCCESS"
        elif self.cancelled:
            status = "⚠️ CANCELLED"
        else:
            status = "❌ FAILED"
        return (
            f"{status} - {self.file_path.name} ({self.run_id}): "
            f"{self.sheets_loaded}/{self.sheets_processed} sheets loaded, "
            f"{self.player_statistics_created} player statistics created, "
            f"{self.players_skipped} skipped, {self.matches_created} matches created, "
            f"{self.validation_errors} errors, {self.validation_warnings} warnings "
            f"in {self.duration_seconds:.1f}s"
        )

    def details(self) -> str:
        """Detailed run report: one line per sheet, then run-level diagnostics."""
        lines = [self.summary(), ""]

        if self.sheets:
            lines.append("Sheets:")
            for sheet in self.sheets:
                lines.append(f"  {sheet.sheet_name}: {sheet.summary()}")
            lines.append("")

        if self.run_diagnostics:
            lines.append("Run:")
            for diagnostic in self.run_diagnostics:
                lines.append(f"  {diagnostic}")
            lines.append("")

        errors = self.errors_by_category()
        if errors:
            lines.append("Errors by category: " + ", ".join(f"{k}={v}" for k, v in sorted(errors.items())))
        warnings = self.warnings_by_category()
        if warnings:
            lines.append("Warnings by category: " + ", ".join(f"{k}={v}" for k, v in sorted(warnings.items())))

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable report."""
        return {
            "file": str(self.file_path),
            "run_id": self.run_id,
            "success": self.success,
            "cancelled": self.cancelled,
            "run_error": self.run_error,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": round(self.duration_seconds, 3),
            "average_sheet_seconds": round(self.average_sheet_seconds, 3),
            "sheets_found": dict(self.sheets_found),
            "sheets_processed": self.sheets_processed,
            "sheets_by_status": self.sheets_by_status,
            "positions_mapped": self.positions_mapped,
            "player_statistics_created": self.player_statistics_created,
            "players_skipped": self.players_skipped,
            "players_created": self.players_created,
            "players_updated": self.players_updated,
            "matches_created": self.matches_created,
            "matches_skipped": self.matches_skipped,
            "team_statistics_created": self.team_statistics_created,
            "kpi_definitions_created": self.kpi_definitions_created,
            "kpi_definitions_updated": self.kpi_definitions_updated,
            "kpi_definitions_unchanged": self.kpi_definitions_unchanged,
            "fields_processed": self.fields_processed,
            "validation_errors": self.validation_errors,
            "validation_warnings": self.validation_warnings,
            "errors_by_category": self.errors_by_category(),
            "warnings_by_category": self.warnings_by_category(),
            "sheets": [
                {
                    "sheet_name": s.sheet_name,
                    "kind": s.kind.value,
                    "status": s.status.value,
                    "match_strategy": s.match_strategy,
                    "records_extracted": s.records_extracted,
                    "statistics_created": s.load.statistics_created if s.load else 0,
                    "skipped": s.records_skipped,
                    "errors": s.outcome.error_count,
                    "warnings": s.outcome.warning_count,
                    "error": s.error,
                }
                for s in self.sheets
            ],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def diagnostics_frame(self) -> pd.DataFrame:
        """All diagnostics as a DataFrame, one row each."""
        columns = ["sheet_name", "category", "severity", "critical", "row", "field_name", "value", "message"]
        return pd.DataFrame([d.to_dict() for d in self.diagnostics], columns=columns)
