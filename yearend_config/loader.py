"""
Configuration Loader (``yearend_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a ``YearEndConfig``.
This is internal tooling; the single public entry point for runtime config
is ``yearend_config.get_active_config()``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` with descriptive messages.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  mapping for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong value types or failed validation  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml

from yearend_config.schema import YearEndConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 hex digest of *data*."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _as_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return value


def _as_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    return value


def _as_decimal(data: dict[str, Any], key: str, default: str) -> Decimal:
    value = data.get(key, default)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{key} must be a decimal, got {value!r}") from None


def _as_uuid(data: dict[str, Any], key: str, default: str) -> UUID:
    value = data.get(key, default)
    try:
        return UUID(str(value))
    except ValueError:
        raise ValueError(f"{key} must be a UUID, got {value!r}") from None


def parse_config(data: dict[str, Any]) -> YearEndConfig:
    """
    Parse a ``YearEndConfig`` from a dict.

    Raises:
        ValueError: on a wrong type or any validation problem.
    """
    database = data.get("database") or {}
    batch = data.get("batch") or {}
    logging_ = data.get("logging") or {}
    results = data.get("results") or {}
    mortgage = data.get("mortgage") or {}

    config = YearEndConfig(
        database_url=str(database.get("url", "")),
        echo_sql=_as_bool(database, "echo", False),
        max_workers=_as_int(batch, "max_workers", 4),
        log_level=str(logging_.get("level", "INFO")).upper(),
        default_page_size=_as_int(results, "default_page_size", 50),
        max_page_size=_as_int(results, "max_page_size", 500),
        default_mortgage_rate=_as_decimal(mortgage, "default_rate", "0.01"),
        default_mortgage_cap=_as_int(mortgage, "default_cap", 400_000),
        actor_id=_as_uuid(batch, "actor_id", "00000000-0000-0000-0000-000000000001"),
        checksum=compute_checksum(data),
    )

    errors = config.validate()
    if errors:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
    return config
