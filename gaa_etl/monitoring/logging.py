"""
Structured logging for ETL runs.

Every record emitted under the gaa_etl logger tree carries the current run id
and, while a sheet is being processed, the sheet name. Both live in context
variables so they follow the orchestrator coroutine.
"""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
sheet_var: ContextVar[str] = ContextVar("sheet", default="")


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"timestamp": "2025-09-26T20:14:03", "level": "INFO", "logger": "gaa_etl.load.loaders",
     "message": "...", "run_id": "3f9c1a2b", "sheet": "09. Player stats vs Slaughtmanus 26.09.25"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = correlation_id_var.get()
        if run_id:
            log_data["run_id"] = run_id
        sheet = sheet_var.get()
        if sheet:
            log_data["sheet"] = sheet

        if hasattr(record, "context"):
            log_data["context"] = record.context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console format:
    2025-09-26 20:14:03 | INFO     | gaa_etl.load.loaders           | [3f9c1a2b] ...
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(self, use_color: Optional[bool] = None):
        super().__init__()
        self.use_color = sys.stdout.isatty() if use_color is None else use_color

    def format(self, record: logging.LogRecord) -> str:
        run_id = correlation_id_var.get()
        prefix = f"[{run_id}] " if run_id else ""

        level_name = record.levelname
        if self.use_color:
            level_name = f"{self.COLORS.get(level_name, '')}{level_name}{self.COLORS['RESET']}"

        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        message = f"{timestamp} | {level_name:8} | {record.name:30} | {prefix}{record.getMessage()}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def get_pipeline_logger(
    name: str = "gaa_etl",
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    format_type: str = "human",
) -> logging.Logger:
    """
    Configure and return a logger (by default the package root logger).

    Args:
        name: Logger name; configuring "gaa_etl" covers every module
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: Also write JSON lines to {log_dir}/{name}.log when set
        format_type: "human" or "json" for the console handler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter() if format_type == "json" else HumanReadableFormatter())
    logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"{name.replace('.', '_')}.log")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set the run id for the current context; generates an 8-character id when None."""
    if correlation_id is None:
        correlation_id = uuid.uuid4().hex[:8]
    correlation_id_var.set(correlation_id)
    return correlation_id


def get_correlation_id() -> str:
    return correlation_id_var.get()


@contextmanager
def sheet_context(sheet_name: str) -> Iterator[None]:
    """Tag log records with the sheet being processed."""
    token = sheet_var.set(sheet_name)
    try:
        yield
    finally:
        sheet_var.reset(token)


def log_pipeline_event(
    logger: logging.Logger,
    level: str,
    message: str,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a message with a structured context dict (rendered by StructuredFormatter)."""
    extra = {"context": context} if context else {}
    logger.log(getattr(logging, level.upper()), message, extra=extra)
