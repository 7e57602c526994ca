"""
Workbook ETL orchestrator.

Sequences one run over a workbook:
1. Classify worksheets (Player stats / Match stats / KPI Definitions / Other)
2. Read the position roster sheets once, shared read-only by every player sheet
3. For each relevant sheet, in workbook order:
   extract -> validate -> enrich (player sheets) -> resolve match -> load

Failures are contained at the smallest unit: a structural, validation,
resolution or persistence problem ends that sheet only. Anything unexpected
aborts the remaining run; the partial result is still returned.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from gaa_etl.errors import PersistenceError, ResolutionError, StructuralError
from gaa_etl.extract.classifier import SheetClassification, classify_sheet
from gaa_etl.extract.headers import HeaderMapper
from gaa_etl.extract.kpi import KpiSheetReader
from gaa_etl.extract.match_sheet import MatchSheetReader
from gaa_etl.extract.metadata import MetadataResolver
from gaa_etl.extract.positions import POSITIONS_SHEET_CONTEXT, PositionSheetReader
from gaa_etl.extract.rows import RowExtractor
from gaa_etl.extract.workbook import SheetGrid, Workbook, read_workbook_async
from gaa_etl.load.loaders import KpiDefinitionLoader, MatchLoader, PlayerStatisticsLoader
from gaa_etl.load.resolver import MatchResolver
from gaa_etl.load.store import StatisticsStore
from gaa_etl.models import SheetKind
from gaa_etl.monitoring.logging import sheet_context, set_correlation_id
from gaa_etl.monitoring.metrics import MetricsCollector, RunMetrics
from gaa_etl.pipelines.results import EtlRunResult, SheetReport, SheetStatus
from gaa_etl.settings import default_config
from gaa_etl.transform.positions import PositionEnricher
from gaa_etl.validate.kpi import KpiDefinitionValidator
from gaa_etl.validate.match import MatchSheetValidator
from gaa_etl.validate.player import PlayerSheetValidator
from gaa_etl.validate.results import Category, Diagnostic, Severity, ValidationOutcome

logger = logging.getLogger(__name__)


class EtlOrchestrator:
    """
    Runs the full ETL over one workbook.

    Example:
        >>> async with await PostgresStore.connect() as store:
        >>>     result = await EtlOrchestrator(store).process("Drum Analysis 2025.xlsx")
        >>> print(result.summary())
    """

    def __init__(
        self,
        store: StatisticsStore,
        config: Optional[Dict[str, Any]] = None,
        collector: Optional[MetricsCollector] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Storage collaborator (PostgresStore, or InMemoryStore for dry runs)
            config: ETL configuration; the packaged etl.yaml when None
            collector: Receives one RunMetrics per run when set
        """
        self.store = store
        self.config = config if config is not None else default_config()
        self.collector = collector

        self.player_metadata = MetadataResolver.for_player_sheets()
        self.header_mapper = HeaderMapper(self.config)
        self.row_extractor = RowExtractor(config=self.config)
        self.player_validator = PlayerSheetValidator(self.config)
        self.position_reader = PositionSheetReader(self.config)
        self.match_reader = MatchSheetReader()
        self.match_validator = MatchSheetValidator(self.config)
        self.kpi_reader = KpiSheetReader(self.config)
        self.kpi_validator = KpiDefinitionValidator(self.config)
        self.resolver = MatchResolver(store)
        self.player_loader = PlayerStatisticsLoader(store, config=self.config)
        self.match_loader = MatchLoader(store)
        self.kpi_loader = KpiDefinitionLoader(store)

    async def process(
        self,
        file_path: Union[str, Path],
        cancellation: Optional[asyncio.Event] = None,
    ) -> EtlRunResult:
        """
        Process one workbook.

        Args:
            file_path: Workbook path (.xlsx/.xlsm)
            cancellation: Checked between sheets; when set the run stops and
                returns what it has so far

        Returns:
            EtlRunResult (never raises for data or storage problems)
        """
        file_path = Path(file_path)
        run_id = set_correlation_id()
        start_time = datetime.now()
        read_duration = 0.0

        sheets: List[SheetReport] = []
        run_diagnostics: List[Diagnostic] = []
        sheets_found: Dict[str, int] = {}
        positions_mapped = 0
        cancelled = False
        run_error: Optional[str] = None

        logger.info(f"ETL run {run_id} starting for {file_path.name}")

        try:
            read_start = datetime.now()
            workbook = await read_workbook_async(file_path)
            read_duration = (datetime.now() - read_start).total_seconds()

            logger.info("Stage 1/3: Classifying worksheets...")
            relevant, sheets_found = self._classify(workbook)

            logger.info("Stage 2/3: Reading position sheets...")
            enricher = self._read_positions(workbook, run_diagnostics)
            positions_mapped = len(enricher.mapping)

            logger.info(f"Stage 3/3: Processing {len(relevant)} sheets...")
            for classification in relevant:
                if cancellation is not None and cancellation.is_set():
                    run_diagnostics.append(self._cancel(len(sheets), len(relevant)))
                    cancelled = True
                    break

                grid = workbook[classification.sheet_name]
                with sheet_context(grid.name):
                    report = await self._process_sheet(grid, classification, enricher)
                sheets.append(report)
                logger.info(f"Sheet '{grid.name}': {report.summary()}")

        except Exception as e:
            logger.error(f"ETL run {run_id} aborted: {e}", exc_info=True)
            run_error = f"{type(e).__name__}: {e}"
            run_diagnostics.append(
                Diagnostic(Category.RUN, Severity.ERROR, f"Run aborted: {run_error}", critical=True)
            )

        result = EtlRunResult(
            file_path=file_path,
            run_id=run_id,
            start_time=start_time,
            end_time=datetime.now(),
            sheets=sheets,
            run_diagnostics=run_diagnostics,
            sheets_found=sheets_found,
            positions_mapped=positions_mapped,
            cancelled=cancelled,
            run_error=run_error,
        )
        logger.info(result.summary())

        if self.collector is not None:
            self.collector.record(RunMetrics.from_result(result, read_duration))

        return result

    def _classify(self, workbook: Workbook) -> Tuple[List[SheetClassification], Dict[str, int]]:
        classifications = [classify_sheet(name) for name in workbook.sheet_names]
        sheets_found = {
            kind.value: sum(1 for c in classifications if c.kind is kind) for kind in SheetKind
        }

        relevant = [c for c in classifications if c.is_relevant]
        for classification in relevant:
            truncated = " (truncated)" if classification.truncated else ""
            logger.debug(f"Sheet '{classification.sheet_name}': {classification.kind.value}{truncated}")

        logger.info(
            f"Found {len(workbook)} worksheets: "
            + ", ".join(f"{count} {kind}" for kind, count in sheets_found.items())
        )
        return relevant, sheets_found

    def _read_positions(self, workbook: Workbook, run_diagnostics: List[Diagnostic]) -> PositionEnricher:
        outcome = ValidationOutcome(POSITIONS_SHEET_CONTEXT)
        roster = self.position_reader.read(workbook, outcome)
        run_diagnostics.extend(outcome.diagnostics)
        return PositionEnricher(roster.mapping)

    def _cancel(self, processed: int, relevant_count: int) -> Diagnostic:
        message = f"Run cancelled after {processed} of {relevant_count} sheets"
        logger.warning(message)
        return Diagnostic(Category.RUN, Severity.WARNING, message)

    async def _process_sheet(
        self,
        grid: SheetGrid,
        classification: SheetClassification,
        enricher: PositionEnricher,
    ) -> SheetReport:
        """Process one sheet; sheet-scoped errors end up in the report, not raised."""
        start_time = datetime.now()
        report = SheetReport(
            sheet_name=grid.name,
            kind=classification.kind,
            status=SheetStatus.LOADED,
            outcome=ValidationOutcome(grid.name),
        )

        try:
            if classification.kind is SheetKind.PLAYER_STATS:
                await self._process_player_sheet(grid, enricher, report)
            elif classification.kind is SheetKind.KPI_DEFINITIONS:
                await self._process_kpi_sheet(grid, report)
            else:
                await self._process_match_sheet(grid, report)

        except StructuralError as e:
            logger.error(f"Sheet rejected: {e.message}")
            report.status = SheetStatus.REJECTED
            report.error = e.message
            report.outcome.add_error(Category.STRUCTURE, e.message, critical=True)

        except ResolutionError as e:
            report.status = SheetStatus.UNRESOLVED
            report.error = e.message
            report.outcome.add_error(Category.RESOLUTION, e.message)

        except PersistenceError as e:
            report.status = SheetStatus.FAILED
            report.error = e.message
            report.outcome.add_error(Category.PERSISTENCE, e.message,
                                     value=type(e.cause).__name__ if e.cause else None)

        report.duration_seconds = (datetime.now() - start_time).total_seconds()
        return report

    async def _process_player_sheet(self, grid: SheetGrid, enricher: PositionEnricher, report: SheetReport) -> None:
        outcome = report.outcome

        descriptor = self.player_metadata.resolve(grid.name, grid)
        report.descriptor = descriptor

        field_map = self.header_mapper.map(grid, outcome)
        descriptor = replace(descriptor, field_map=field_map)
        report.descriptor = descriptor
        report.fields_mapped = len(field_map)

        records = self.row_extractor.extract(grid, field_map, outcome)
        report.records_extracted = len(records)
        logger.info(f"Extracted {len(records)} player records for {descriptor.describe()}")

        self.player_validator.validate(descriptor, field_map, records, outcome)
        if outcome.has_critical_errors:
            report.status = SheetStatus.BLOCKED
            report.error = f"{len(outcome.errors)} validation errors, loading blocked"
            return

        enricher.enrich(records, outcome)
        self.player_validator.validate_positions(records, outcome)

        resolution = await self.resolver.resolve(descriptor)
        if not resolution.found:
            raise ResolutionError(grid.name, f"No persisted match found for {descriptor.describe()}")
        report.match_strategy = resolution.strategy_name

        report.load = await self.player_loader.load(descriptor, resolution.value, records)
        report.status = SheetStatus.LOADED

    async def _process_match_sheet(self, grid: SheetGrid, report: SheetReport) -> None:
        outcome = report.outcome

        descriptor = self.match_reader.describe(grid)
        report.descriptor = descriptor

        match = self.match_reader.read(grid, descriptor, outcome)
        report.records_extracted = len(match.team_statistics)

        self.match_validator.validate(match, outcome)
        if outcome.has_critical_errors:
            report.status = SheetStatus.BLOCKED
            report.error = f"{len(outcome.errors)} validation errors, loading blocked"
            return

        report.load = await self.match_loader.load(match)
        report.status = SheetStatus.LOADED

    async def _process_kpi_sheet(self, grid: SheetGrid, report: SheetReport) -> None:
        outcome = report.outcome

        definitions = self.kpi_reader.read(grid, outcome)
        report.records_extracted = len(definitions)

        self.kpi_validator.validate(definitions, outcome)
        if outcome.has_critical_errors:
            report.status = SheetStatus.BLOCKED
            report.error = f"{len(outcome.errors)} validation errors, loading blocked"
            return

        report.load = await self.kpi_loader.load(grid.name, definitions)
        report.status = SheetStatus.LOADED
