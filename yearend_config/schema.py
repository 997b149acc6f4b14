"""
Configuration schema (``yearend_config.schema``).

Responsibility
--------------
Frozen dataclass describing the runtime configuration of the year-end
engine: database connection, batch concurrency, logging level, result
paging bounds, mortgage credit defaults and the system actor.

Invariants enforced
-------------------
* ``YearEndConfig`` is frozen; ``validate()`` returns every problem found
  rather than stopping at the first one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class YearEndConfig:
    """Runtime configuration for the year-end reconciliation engine."""

    database_url: str
    echo_sql: bool = False
    max_workers: int = 4
    log_level: str = "INFO"
    default_page_size: int = 50
    max_page_size: int = 500
    default_mortgage_rate: Decimal = Decimal("0.01")
    default_mortgage_cap: int = 400_000
    # System actor recorded in created_by_id for engine-written rows
    actor_id: UUID = UUID("00000000-0000-0000-0000-000000000001")
    checksum: str = ""

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.database_url:
            errors.append("database_url must be set")
        if self.max_workers < 1:
            errors.append(f"max_workers must be >= 1, got {self.max_workers}")
        if self.log_level not in _LOG_LEVELS:
            errors.append(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        if self.default_page_size < 1:
            errors.append("default_page_size must be >= 1")
        if self.max_page_size < self.default_page_size:
            errors.append("max_page_size must be >= default_page_size")
        if self.default_mortgage_rate < 0 or self.default_mortgage_rate > 1:
            errors.append("default_mortgage_rate must be between 0 and 1")
        if self.default_mortgage_cap < 0:
            errors.append("default_mortgage_cap must be >= 0")
        return errors
