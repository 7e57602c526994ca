"""
Structured diagnostics.

Every problem found while reading, validating or loading a sheet becomes a
Diagnostic with a category, a severity and sheet/row context. Critical errors
exclude the sheet from loading; everything else is advisory.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(Enum):
    STRUCTURE = "structure"
    JERSEY = "jersey"
    IDENTIFICATION = "identification"
    FIELD_MAPPING = "field_mapping"
    DATA_TYPE = "data_type"
    FORMAT = "format"
    RANGE = "range"
    CROSS_FIELD = "cross_field"
    POSITION = "position"
    BOOKING = "booking"
    BUSINESS_RULE = "business_rule"
    RESOLUTION = "resolution"
    PERSISTENCE = "persistence"
    RUN = "run"


@dataclass(frozen=True)
class Diagnostic:
    """Single categorised finding."""

    category: Category
    severity: Severity
    message: str
    sheet_name: Optional[str] = None
    row: Optional[int] = None
    field_name: Optional[str] = None
    value: Any = None
    critical: bool = False

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        where = f" (row {self.row})" if self.row is not None else ""
        flag = " CRITICAL" if self.critical else ""
        return f"[{self.severity.value.upper()}{flag}] {self.category.value}{where}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["severity"] = self.severity.value
        if self.value is not None:
            data["value"] = str(self.value)
        return data


@dataclass
class ValidationOutcome:
    """Ordered diagnostics for one sheet."""

    sheet_name: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    validation_time: datetime = field(default_factory=datetime.now)

    def add_error(
        self,
        category: Category,
        message: str,
        row: Optional[int] = None,
        field_name: Optional[str] = None,
        value: Any = None,
        critical: bool = False,
    ) -> Diagnostic:
        """Add an error; critical errors block loading of the sheet."""
        diagnostic = Diagnostic(category, Severity.ERROR, message, self.sheet_name,
                                row, field_name, value, critical)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def add_warning(
        self,
        category: Category,
        message: str,
        row: Optional[int] = None,
        field_name: Optional[str] = None,
        value: Any = None,
    ) -> Diagnostic:
        """Add an advisory warning."""
        diagnostic = Diagnostic(category, Severity.WARNING, message, self.sheet_name,
                                row, field_name, value)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def extend(self, other: "ValidationOutcome") -> None:
        self.diagnostics.extend(other.diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    @property
    def has_critical_errors(self) -> bool:
        return any(d.critical for d in self.diagnostics)

    def errors_by_category(self) -> Dict[str, int]:
        return dict(Counter(d.category.value for d in self.errors))

    def warnings_by_category(self) -> Dict[str, int]:
        return dict(Counter(d.category.value for d in self.warnings))

    def counts_by_category(self) -> Dict[str, Dict[str, int]]:
        """Error and warning counts keyed by category."""
        return {"errors": self.errors_by_category(), "warnings": self.warnings_by_category()}

    def summary(self) -> str:
        """Human-readable summary."""
        if self.has_critical_errors:
            status = "❌ BLOCKED"
        elif self.is_valid:
            status = "✅ VALID"
        else:
            status = "⚠️ ERRORS"
        return (
            f"{status} - {self.sheet_name}: "
            f"{self.error_count} errors, {self.warning_count} warnings"
        )

    def details(self) -> str:
        """Detailed validation report."""
        lines = [self.summary(), ""]

        if self.errors:
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  {error}")
            lines.append("")

        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  {warning}")
            lines.append("")

        return "\n".join(lines)
