"""
The two-phase task interface the BatchExecutor drives, and its registry.

A year-end task handles one employee per item:

    prepare_items  -- list the employees of the run (caller's session)
    compute_item   -- read payroll, declarations and compute figures; may run
                      on a worker thread against that worker's own session
    apply_item     -- write the computed figures; runs on the caller's
                      session inside a SAVEPOINT, one employee at a time

Tasks neither commit nor retry.  Any exception is that employee's failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from yearend_batch.domain.types import BatchItemStatus


@dataclass(frozen=True)
class BatchItemInput:
    """One employee queued by ``prepare_items``; ``item_key`` is the user_id."""

    item_index: int
    item_key: str


@dataclass(frozen=True)
class BatchTaskResult:
    """What ``apply_item`` reports back.  ``value`` is returned in memory only."""

    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None
    value: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def succeeded(cls, value: Any, result_data: dict[str, Any] | None = None) -> BatchTaskResult:
        return cls(status=BatchItemStatus.SUCCEEDED, result_data=result_data, value=value)


@runtime_checkable
class BatchTask(Protocol):
    @property
    def task_type(self) -> str: ...

    @property
    def description(self) -> str: ...

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]: ...

    def compute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> Any: ...

    def apply_item(
        self,
        item: BatchItemInput,
        computed: Any,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult: ...


def employee_items(user_ids: list[str]) -> tuple[BatchItemInput, ...]:
    """Queue employees in the order given."""
    return tuple(
        BatchItemInput(item_index=index, item_key=user_id)
        for index, user_id in enumerate(user_ids)
    )


class TaskRegistry:
    """task_type -> BatchTask.  Registering the same task_type twice is an error."""

    def __init__(self, tasks: list[BatchTask] | None = None) -> None:
        self._tasks: dict[str, BatchTask] = {}
        for task in tasks or ():
            self.register(task)

    def register(self, task: BatchTask) -> None:
        """Raises ValueError if task.task_type is already registered."""
        if task.task_type in self._tasks:
            raise ValueError(f"Task type '{task.task_type}' is already registered")
        self._tasks[task.task_type] = task

    def get(self, task_type: str) -> BatchTask:
        """Raises KeyError naming the registered task types."""
        task = self._tasks.get(task_type)
        if task is None:
            raise KeyError(
                f"No task registered for type '{task_type}'. "
                f"Available: {list(self.list_tasks())}"
            )
        return task

    def list_tasks(self) -> tuple[str, ...]:
        return tuple(sorted(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_type: str) -> bool:
        return task_type in self._tasks
