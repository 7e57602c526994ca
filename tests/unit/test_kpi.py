"""
Unit tests for the KPI definitions ETL: gaa_etl/extract/kpi.py,
gaa_etl/validate/kpi.py and KpiDefinitionLoader.
"""

import asyncio
from typing import Any, List, Optional, Sequence

import pandas as pd
import pytest

from gaa_etl.errors import PersistenceError
from gaa_etl.extract.kpi import KPI_HEADERS, KpiSheetReader
from gaa_etl.extract.workbook import SheetGrid
from gaa_etl.load.loaders import KpiDefinitionLoader
from gaa_etl.load.memory import InMemoryStore
from gaa_etl.models import KpiDefinition
from gaa_etl.validate.kpi import KpiDefinitionValidator
from gaa_etl.validate.results import Category, ValidationOutcome
from tests.fixtures import workbooks


def kpi_grid(rows: Sequence[Optional[Sequence[Any]]] = workbooks.SAMPLE_KPIS,
             headers: Sequence[str] = KPI_HEADERS) -> SheetGrid:
    data: List[List[Any]] = [["KPI Definitions"] + [None] * 5, list(headers), [None] * 6]
    for values in rows:
        data.append(list(values) if values else [None] * 6)
    return SheetGrid(workbooks.KPI_SHEET, pd.DataFrame(data, dtype=object))


def definition(**overrides) -> KpiDefinition:
    values = dict(event_number=1, event_name="Kickout", outcome="Won clean", team_assignment="Home",
                  psr_value=1.0, definition="Own kickout won without contest", source_row=4)
    values.update(overrides)
    return KpiDefinition(**values)


def load(store, definitions):
    return asyncio.run(KpiDefinitionLoader(store).load(workbooks.KPI_SHEET, definitions))


class TestKpiSheetReader:
    """Test reading the KPI definitions sheet."""

    def test_reads_and_forward_fills_events(self):
        outcome = ValidationOutcome(workbooks.KPI_SHEET)
        definitions = KpiSheetReader().read(kpi_grid(), outcome)

        assert [d.describe() for d in definitions] == [
            "Event 1 - Kickout - Won clean (Home)",
            "Event 1 - Kickout - Lost clean (Opposition)",
            "Event 2 - Shot from play - Point (Home)",
            "Event 2 - Shot from play - Wide (Home)",
            "Event 2 - Shot from play - Goal (Both)",
        ]
        assert [d.source_row for d in definitions] == [4, 5, 7, 8, 9]
        assert definitions[3].psr_value == -0.5
        assert definitions[3].definition == ""
        assert outcome.errors == []

    def test_stops_after_consecutive_blank_rows(self):
        rows = list(workbooks.SAMPLE_KPIS) + [None] * 5 + [(9, "Notes", "Ignore", "Home", 0, "Below the table")]
        definitions = KpiSheetReader().read(kpi_grid(rows))

        assert len(definitions) == 5
        assert all(d.event_name != "Notes" for d in definitions)

    def test_missing_psr_defaults_to_zero(self):
        definitions = KpiSheetReader().read(kpi_grid([(3, "Turnover", "Won", "Home", None, "Ball won")]))
        assert definitions[0].psr_value == 0.0

    def test_header_mismatch_is_warning(self):
        headers = list(KPI_HEADERS)
        headers[3] = "Team"
        outcome = ValidationOutcome(workbooks.KPI_SHEET)
        KpiSheetReader().read(kpi_grid(headers=headers), outcome)

        assert not outcome.has_critical_errors
        assert [w.category for w in outcome.warnings] == [Category.FIELD_MAPPING]
        assert "Assign to which team" in outcome.warnings[0].message

    @pytest.mark.parametrize("row, field_name", [
        (("one", "Kickout", "Won clean", "Home", 1, "x"), "event_number"),
        ((1, "Kickout", "Won clean", "Home", "high", "x"), "psr_value"),
    ])
    def test_unreadable_number_is_critical(self, row, field_name):
        outcome = ValidationOutcome(workbooks.KPI_SHEET)
        definitions = KpiSheetReader().read(kpi_grid([row]), outcome)

        assert definitions == []
        assert outcome.has_critical_errors
        assert outcome.errors[0].category is Category.DATA_TYPE
        assert outcome.errors[0].field_name == field_name

    def test_configured_layout(self):
        config = {"kpi_sheet": {"header_row": 2, "data_start_row": 4, "max_blank_rows": 1}}
        definitions = KpiSheetReader(config).read(kpi_grid())

        # The single blank row after event 1 ends the table
        assert len(definitions) == 2


class TestKpiDefinitionValidator:
    """Test KPI definition rules."""

    def test_valid_definitions(self):
        outcome = KpiDefinitionValidator().validate([definition(), definition(outcome="Lost clean", source_row=5)])
        assert outcome.errors == []

    def test_empty_sheet_is_critical(self):
        outcome = KpiDefinitionValidator().validate([])

        assert outcome.has_critical_errors
        assert outcome.errors[0].category is Category.STRUCTURE

    @pytest.mark.parametrize("overrides, category, field_name", [
        ({"event_number": 0}, Category.IDENTIFICATION, "event_number"),
        ({"event_name": ""}, Category.IDENTIFICATION, "event_name"),
        ({"outcome": ""}, Category.IDENTIFICATION, "outcome"),
        ({"outcome": "x" * 101}, Category.FORMAT, "outcome"),
        ({"team_assignment": "Neutral"}, Category.FORMAT, "team_assignment"),
        ({"psr_value": 10.5}, Category.RANGE, "psr_value"),
        ({"psr_value": -11}, Category.RANGE, "psr_value"),
        ({"definition": "x" * 1001}, Category.FORMAT, "definition"),
    ])
    def test_critical_rules(self, overrides, category, field_name):
        outcome = KpiDefinitionValidator().validate([definition(**overrides)])

        assert outcome.has_critical_errors
        assert outcome.errors[0].category is category
        assert outcome.errors[0].field_name == field_name

    def test_empty_definition_is_warning(self):
        outcome = KpiDefinitionValidator().validate([definition(definition="")])

        assert not outcome.has_critical_errors
        assert outcome.warnings[0].field_name == "definition"

    def test_duplicate_natural_key(self):
        outcome = KpiDefinitionValidator().validate([
            definition(),
            definition(event_name="KICKOUT", psr_value=2.0, source_row=9),
        ])

        assert outcome.has_critical_errors
        assert outcome.errors[0].row == 9
        assert "first at row 4" in outcome.errors[0].message

    def test_configured_psr_range(self):
        validator = KpiDefinitionValidator({"kpi_rules": {"min_psr": -2, "max_psr": 2}})
        assert validator.validate([definition(psr_value=3)]).has_critical_errors


class FailingKpiStore(InMemoryStore):
    """Fails on the second KPI insert."""

    def __init__(self):
        super().__init__()
        self.inserts = 0

    async def insert_kpi_definition(self, definition):
        self.inserts += 1
        if self.inserts == 2:
            raise RuntimeError("constraint violation")
        return await super().insert_kpi_definition(definition)


class TestKpiDefinitionLoader:
    """Test the KPI definitions upsert."""

    def test_inserts_new_definitions(self):
        store = InMemoryStore()
        result = load(store, [definition(), definition(outcome="Lost clean", team_assignment="Opposition")])

        assert result.table_name == "kpi_definitions"
        assert result.definitions_created == 2
        assert len(store.kpi_definitions) == 2
        assert store.commits == 1
        assert result.describe() == "2 KPI definitions created, 0 updated, 0 unchanged"

    def test_matching_is_case_insensitive(self):
        store = InMemoryStore()
        load(store, [definition()])
        result = load(store, [definition(event_name="KICKOUT", outcome="won clean", team_assignment="home")])

        assert result.definitions_unchanged == 1
        assert len(store.kpi_definitions) == 1

    def test_updates_changed_psr_and_definition(self):
        store = InMemoryStore()
        load(store, [definition(), definition(outcome="Lost clean", source_row=5)])
        result = load(store, [
            definition(psr_value=1.25),
            definition(outcome="Lost clean", definition="Reworded", source_row=5),
        ])

        assert result.definitions_updated == 2
        records = {r.outcome: r for r in store.kpi_definitions}
        assert records["Won clean"].psr_value == 1.25
        assert records["Lost clean"].definition == "Reworded"

    def test_psr_compared_at_stored_precision(self):
        store = InMemoryStore()
        load(store, [definition(psr_value=0.333)])
        result = load(store, [definition(psr_value=0.3331)])

        assert result.definitions_unchanged == 1

    def test_failure_rolls_back_whole_sheet(self):
        store = FailingKpiStore()

        with pytest.raises(PersistenceError) as exc_info:
            load(store, [definition(), definition(outcome="Lost clean", source_row=5)])

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert store.rollbacks == 1
        assert store.kpi_definitions == []
