"""
yearend_batch.tasks -- Task protocol, registry, and year-end task implementations.
"""

from yearend_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
)
from yearend_batch.tasks.reconciliation_tasks import ReconciliationTask
from yearend_batch.tasks.withholding_tasks import WithholdingSlipTask

__all__ = [
    "BatchItemInput",
    "BatchTask",
    "BatchTaskResult",
    "ReconciliationTask",
    "TaskRegistry",
    "WithholdingSlipTask",
]
