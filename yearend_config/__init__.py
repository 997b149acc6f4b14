"""
yearend_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``yearend_kernel`` and below
    ``yearend_services`` / ``yearend_batch``.  The kernel MUST NEVER import
    from ``yearend_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Environment overrides: ``YEAREND_CONFIG`` selects the YAML file and
      ``YEAREND_DATABASE_URL`` replaces ``database.url``.
    - Deterministic checksum: the same YAML and overrides always yield the
      same ``YearEndConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- wrong value types or failed validation.
"""

from __future__ import annotations

import os
from pathlib import Path

from yearend_config.loader import compute_checksum, load_yaml_file, parse_config
from yearend_config.schema import YearEndConfig
from yearend_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "YEAREND_CONFIG"
DATABASE_URL_ENV = "YEAREND_DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> YearEndConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: explicit ``config_path``, then
    ``$YEAREND_CONFIG``, then the packaged ``sets/default.yaml``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ValueError: If configuration validation fails.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    data = load_yaml_file(path)

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        data = {**data, "database": {**(data.get("database") or {}), "url": database_url}}

    config = parse_config(data)

    _logger.info(
        "YEAREND_CONFIG_TRACE",
        extra={
            "trace_type": "YEAREND_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": config.checksum,
            "max_workers": config.max_workers,
        },
    )
    return config


__all__ = [
    "YearEndConfig",
    "compute_checksum",
    "get_active_config",
]
