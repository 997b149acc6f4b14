"""yearend_batch.services -- batch executor."""

from yearend_batch.services.executor import BatchExecutor

__all__ = ["BatchExecutor"]
