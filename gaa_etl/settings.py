"""
Configuration loading.

- Layout constants and validation thresholds live in gaa_etl/config/etl.yaml
- Database connection settings come from the environment (.env supported by the CLI)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from psycopg.conninfo import make_conninfo

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "etl.yaml"
SCHEMA_PATH = CONFIG_DIR / "schema.sql"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load ETL configuration from YAML.

    Args:
        config_path: Path to a YAML file. If None, uses the packaged etl.yaml.

    Returns:
        Nested configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    logger.debug(f"Loaded ETL configuration from {config_path}")
    return config


@lru_cache(maxsize=1)
def default_config() -> Dict[str, Any]:
    """Packaged configuration, loaded once per process. Treat as read-only."""
    return load_config()


def section(name: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return one top-level section of the configuration."""
    config = config if config is not None else default_config()
    return config.get(name, {})


def database_dsn() -> str:
    """
    Build the PostgreSQL connection string from the environment.

    DATABASE_URL wins when set; otherwise the POSTGRES_* variables are used.
    """
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    return make_conninfo(
        host=os.environ.get("POSTGRES_HOST", "localhost"),
        port=os.environ.get("POSTGRES_PORT", "5432"),
        dbname=os.environ.get("POSTGRES_DB", "gaastat"),
        user=os.environ.get("POSTGRES_USER", "postgres"),
        password=os.environ.get("POSTGRES_PASSWORD", ""),
    )
