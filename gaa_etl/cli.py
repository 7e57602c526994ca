"""
Command-line entry point.

Usage:
    gaa-etl "Drum Analysis 2025.xlsx"
    gaa-etl "Drum Analysis 2025.xlsx" --dry-run --report diagnostics.csv
    gaa-etl "Drum Analysis 2025.xlsx" --init-schema --json

Database settings are read from the environment (DATABASE_URL or POSTGRES_*),
with a .env file in the working directory loaded first.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

import psycopg
from dotenv import load_dotenv

from gaa_etl.load.memory import InMemoryStore
from gaa_etl.load.postgres import PostgresStore
from gaa_etl.monitoring.logging import get_pipeline_logger
from gaa_etl.monitoring.metrics import MetricsCollector
from gaa_etl.pipelines.orchestrator import EtlOrchestrator
from gaa_etl.pipelines.results import EtlRunResult
from gaa_etl.settings import load_config

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gaa-etl",
        description="Load Gaelic football match and player statistics from an Excel workbook",
    )
    parser.add_argument("file", type=Path, help="Workbook to process (.xlsx/.xlsm)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against an in-memory store; nothing is written to the database",
    )
    parser.add_argument("--report", type=Path, help="Write all diagnostics to this CSV file")
    parser.add_argument("--json", action="store_true", help="Print the run report as JSON")
    parser.add_argument("--config", type=Path, help="Alternative etl.yaml")
    parser.add_argument("--init-schema", action="store_true", help="Create missing tables before loading")
    parser.add_argument("--metrics-dir", type=Path, help="Write one JSON metrics file per run here")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-format", default="human", choices=["human", "json"])
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> EtlRunResult:
    """Run the orchestrator once; Ctrl-C stops after the current sheet."""
    cancellation = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancellation.set)
    except NotImplementedError:
        logger.debug("Signal handlers unavailable on this platform; Ctrl-C aborts immediately")

    config = load_config(args.config) if args.config else None
    collector = MetricsCollector(args.metrics_dir) if args.metrics_dir else None

    if args.dry_run:
        logger.info("Dry run: loading into an in-memory store")
        store = InMemoryStore()
        return await EtlOrchestrator(store, config, collector).process(args.file, cancellation)

    async with await PostgresStore.connect() as store:
        if args.init_schema:
            await store.ensure_schema()
        return await EtlOrchestrator(store, config, collector).process(args.file, cancellation)


def main(argv=None) -> None:
    load_dotenv()
    args = parse_args(argv)
    get_pipeline_logger("gaa_etl", log_level=args.log_level, format_type=args.log_format)

    try:
        result = asyncio.run(run(args))
    except psycopg.OperationalError as e:
        logger.error(f"Cannot connect to database: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print(result.details())

    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        result.diagnostics_frame().to_csv(args.report, index=False)
        logger.info(f"Diagnostics written to {args.report}")

    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
