"""
yearend_batch.domain.types -- Pure frozen dataclasses for the batch system.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - All DTOs are frozen dataclasses.
    - BatchJob carries an idempotency_key for uniqueness.
    - A run summary always satisfies total == success + error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from yearend_kernel.domain.dtos import WithholdingSlip, YearEndResult


# =============================================================================
# Status enums
# =============================================================================


class BatchJobStatus(str, Enum):
    """Job-level lifecycle status."""

    PENDING = "pending"  # Created, not yet started
    RUNNING = "running"  # Execution in progress
    COMPLETED = "completed"  # All items processed successfully
    FAILED = "failed"  # Job-level failure (no items succeeded)
    CANCELLED = "cancelled"  # Cancelled before execution
    PARTIALLY_COMPLETED = "partially_completed"  # Some items failed


class BatchItemStatus(str, Enum):
    """Per-item outcome within a batch job."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


# =============================================================================
# Job DTOs
# =============================================================================


@dataclass(frozen=True)
class BatchJob:
    """Immutable snapshot of a batch job.

    ``idempotency_key`` is UNIQUE -- re-submitting the same key is rejected.
    """

    job_id: UUID
    job_name: str  # e.g. "Year-end reconciliation tenant-1 2024"
    task_type: str  # Registered task key, e.g. "yearend.reconciliation"
    status: BatchJobStatus
    idempotency_key: str
    parameters: dict[str, Any] = field(default_factory=dict)
    total_items: int = 0
    succeeded_items: int = 0
    failed_items: int = 0
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_by: UUID | None = None
    correlation_id: str | None = None
    error_summary: str | None = None


@dataclass(frozen=True)
class BatchItemResult:
    """Immutable result of processing a single batch item.

    ``value`` carries the in-memory outcome (e.g. the persisted
    ``YearEndResult``) back to the caller; it is not persisted.
    """

    item_index: int  # 0-indexed position in the batch
    item_key: str  # user_id
    status: BatchItemStatus
    error_code: str | None = None
    error_message: str | None = None
    result_data: dict[str, Any] | None = None
    duration_ms: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    value: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BatchRunResult:
    """Immutable result of executing a complete batch job."""

    job_id: UUID
    status: BatchJobStatus
    total_items: int
    succeeded: int
    failed: int
    item_results: tuple[BatchItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    correlation_id: str | None = None


# =============================================================================
# Year-end run summaries
# =============================================================================


@dataclass(frozen=True)
class EmployeeOutcome:
    """One employee's entry in a run summary."""

    user_id: str
    success: bool
    result: YearEndResult | WithholdingSlip | None = None
    error: str | None = None
    error_code: str | None = None

    def as_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"user_id": self.user_id, "success": self.success}
        if self.success:
            entry["result"] = self.result
        else:
            entry["error"] = self.error
        return entry


@dataclass(frozen=True)
class RunSummary:
    total: int
    success: int
    error: int
    fiscal_year: int


@dataclass(frozen=True)
class ReconciliationRunSummary:
    """Returned by run_reconciliation / issue_withholding_slips."""

    results: tuple[EmployeeOutcome, ...]
    summary: RunSummary
    job_id: UUID | None = None

    @classmethod
    def from_outcomes(
        cls,
        outcomes: tuple[EmployeeOutcome, ...],
        fiscal_year: int,
        job_id: UUID | None = None,
    ) -> ReconciliationRunSummary:
        succeeded = sum(1 for o in outcomes if o.success)
        return cls(
            results=outcomes,
            summary=RunSummary(
                total=len(outcomes),
                success=succeeded,
                error=len(outcomes) - succeeded,
                fiscal_year=fiscal_year,
            ),
            job_id=job_id,
        )

    @property
    def failures(self) -> tuple[EmployeeOutcome, ...]:
        return tuple(o for o in self.results if not o.success)

    def as_dict(self) -> dict[str, Any]:
        return {
            "results": [o.as_dict() for o in self.results],
            "summary": {
                "total": self.summary.total,
                "success": self.summary.success,
                "error": self.summary.error,
                "fiscal_year": self.summary.fiscal_year,
            },
        }
