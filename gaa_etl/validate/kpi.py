"""
KPI definitions validation.

Every rule except an empty definition text is critical: the sheet is loaded
as a whole or not at all.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from gaa_etl.models import KpiDefinition
from gaa_etl.settings import section
from gaa_etl.transform.cleaners import TEAM_ASSIGNMENTS
from gaa_etl.validate.results import Category, ValidationOutcome

logger = logging.getLogger(__name__)


class KpiDefinitionValidator:
    """
    Validates the rows read from the KPI definitions sheet.

    Example:
        >>> outcome = KpiDefinitionValidator().validate(definitions)
        >>> outcome.has_critical_errors
        False
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        rules = section("kpi_rules", config)
        self.min_psr: float = rules.get("min_psr", -10.0)
        self.max_psr: float = rules.get("max_psr", 10.0)
        self.max_label_length: int = rules.get("max_label_length", 100)
        self.max_definition_length: int = rules.get("max_definition_length", 1000)

    def validate(
        self,
        definitions: List[KpiDefinition],
        outcome: Optional[ValidationOutcome] = None,
    ) -> ValidationOutcome:
        outcome = outcome if outcome is not None else ValidationOutcome("KPI Definitions")

        if not definitions:
            outcome.add_error(Category.STRUCTURE, "No KPI definitions found", critical=True)
            return outcome

        for definition in definitions:
            self._validate_definition(definition, outcome)
        self._validate_duplicates(definitions, outcome)

        logger.info(outcome.summary())
        return outcome

    def _validate_definition(self, definition: KpiDefinition, outcome: ValidationOutcome) -> None:
        row = definition.source_row

        if definition.event_number <= 0:
            outcome.add_error(Category.IDENTIFICATION, f"Invalid event number: {definition.event_number}",
                              row=row, field_name="event_number", value=definition.event_number, critical=True)

        for field_name, label in (("event_name", definition.event_name), ("outcome", definition.outcome)):
            if not label:
                outcome.add_error(Category.IDENTIFICATION, f"{field_name} is empty",
                                  row=row, field_name=field_name, critical=True)
            elif len(label) > self.max_label_length:
                outcome.add_error(Category.FORMAT,
                                  f"{field_name} too long: {len(label)} chars (max {self.max_label_length})",
                                  row=row, field_name=field_name, value=len(label), critical=True)

        if definition.team_assignment not in TEAM_ASSIGNMENTS:
            outcome.add_error(
                Category.FORMAT,
                f"Invalid team assignment '{definition.team_assignment}'. "
                f"Must be one of: {', '.join(TEAM_ASSIGNMENTS)}",
                row=row, field_name="team_assignment", value=definition.team_assignment, critical=True,
            )

        if not self.min_psr <= definition.psr_value <= self.max_psr:
            outcome.add_error(Category.RANGE,
                              f"PSR value {definition.psr_value} outside {self.min_psr} to {self.max_psr}",
                              row=row, field_name="psr_value", value=definition.psr_value, critical=True)

        if not definition.definition:
            outcome.add_warning(Category.FORMAT, f"{definition.describe()}: definition is empty",
                                row=row, field_name="definition")
        elif len(definition.definition) > self.max_definition_length:
            outcome.add_error(
                Category.FORMAT,
                f"Definition too long: {len(definition.definition)} chars (max {self.max_definition_length})",
                row=row, field_name="definition", value=len(definition.definition), critical=True,
            )

    def _validate_duplicates(self, definitions: List[KpiDefinition], outcome: ValidationOutcome) -> None:
        seen: Dict[Tuple[int, str, str, str], int] = {}
        for definition in definitions:
            first_row = seen.setdefault(definition.natural_key, definition.source_row)
            if first_row != definition.source_row:
                outcome.add_error(Category.IDENTIFICATION,
                                  f"Duplicate KPI definition {definition.describe()} (first at row {first_row})",
                                  row=definition.source_row, value=definition.describe(), critical=True)
