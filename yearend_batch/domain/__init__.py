"""
yearend_batch.domain -- Pure types and value objects for batch processing.

ZERO I/O.  All types are frozen dataclasses.
"""

from yearend_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchJob,
    BatchJobStatus,
    BatchRunResult,
    EmployeeOutcome,
    ReconciliationRunSummary,
    RunSummary,
)

__all__ = [
    "BatchItemResult",
    "BatchItemStatus",
    "BatchJob",
    "BatchJobStatus",
    "BatchRunResult",
    "EmployeeOutcome",
    "ReconciliationRunSummary",
    "RunSummary",
]
