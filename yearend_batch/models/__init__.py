"""
yearend_batch.models -- ORM models for batch processing persistence.

Architecture: yearend_batch/models. Imports from yearend_kernel.db.base only.
"""

from yearend_batch.models.batch import BatchItemModel, BatchJobModel

__all__ = [
    "BatchItemModel",
    "BatchJobModel",
]
