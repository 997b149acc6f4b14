"""
BatchExecutor -- runs one year-end job across many employees.

Contract:
    ``submit_job`` records a PENDING job under a unique idempotency key.
    ``execute_job`` prepares the employee list, computes every employee
    (fan-out), then writes every outcome in input order (fan-in).
    ``cancel_job`` retires a job that never started.

Architecture: yearend_batch/services.  Imports from yearend_batch.domain,
    yearend_batch.models, yearend_batch.tasks and the kernel.

Invariants enforced:
    - Fan-out: ``compute_item`` runs on a bounded ThreadPoolExecutor, each
      worker in its own Session from ``session_factory``.  Workers only read.
      Without a session_factory, with max_workers <= 1 or with fewer than two
      employees, compute runs in the caller's session, one by one.
    - Fan-in: ``apply_item`` runs for each employee inside its own SAVEPOINT
      on the caller's session.  A failure rolls back that employee only.
    - An employee's failure never changes another employee's outcome.
    - Every exception is terminal for its employee; nothing is retried.
    - Only a PENDING job can be executed or cancelled.
    - Timestamps come from the injected Clock.

Non-goals:
    - Never commits.  The caller owns the transaction.
"""

from __future__ import annotations

import contextvars
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from yearend_kernel.domain.clock import Clock, SystemClock
from yearend_kernel.exceptions import (
    BatchAlreadyRunningError,
    BatchIdempotencyError,
    BatchJobNotFoundError,
    TaskNotRegisteredError,
)
from yearend_kernel.logging_config import LogContext, get_logger

from yearend_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchJob,
    BatchJobStatus,
    BatchRunResult,
)
from yearend_batch.models.batch import BatchItemModel, BatchJobModel
from yearend_batch.tasks.base import BatchItemInput, BatchTask, TaskRegistry

logger = get_logger("batch.executor")

WORKER_THREAD_PREFIX = "yearend-worker"


@dataclass(frozen=True)
class _Computed:
    """What one employee's compute phase produced (a value or an error)."""

    item: BatchItemInput
    value: Any = None
    error: Exception | None = None
    started_at: datetime | None = None
    t0: float = 0.0


def _error_code(exc: Exception) -> str:
    return getattr(exc, "code", None) or "UNHANDLED_EXCEPTION"


def _elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)


def _job_status(succeeded: int, failed: int) -> BatchJobStatus:
    if failed == 0:
        return BatchJobStatus.COMPLETED
    if succeeded == 0:
        return BatchJobStatus.FAILED
    return BatchJobStatus.PARTIALLY_COMPLETED


class BatchExecutor:
    """Parallel compute, ordered SAVEPOINT-per-employee apply."""

    def __init__(
        self,
        session: Session,
        task_registry: TaskRegistry,
        clock: Clock | None = None,
        session_factory: Callable[[], Session] | None = None,
        max_workers: int = 1,
    ):
        self._session = session
        self._task_registry = task_registry
        self._clock = clock or SystemClock()
        self._session_factory = session_factory
        self._max_workers = max(1, max_workers)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def submit_job(
        self,
        job_name: str,
        task_type: str,
        idempotency_key: str,
        actor_id: UUID,
        parameters: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> BatchJob:
        """Record a PENDING job.

        Raises:
            TaskNotRegisteredError: unknown task_type.
            BatchIdempotencyError: idempotency_key already used.
        """
        if task_type not in self._task_registry:
            raise TaskNotRegisteredError(task_type, self._task_registry.list_tasks())

        prior_id = self._session.execute(
            select(BatchJobModel.id).where(
                BatchJobModel.idempotency_key == idempotency_key,
            )
        ).scalar_one_or_none()
        if prior_id is not None:
            raise BatchIdempotencyError(idempotency_key, str(prior_id))

        now = self._clock.now()
        job = BatchJob(
            job_id=uuid4(),
            job_name=job_name,
            task_type=task_type,
            status=BatchJobStatus.PENDING,
            idempotency_key=idempotency_key,
            parameters=parameters or {},
            created_at=now,
            created_by=actor_id,
            correlation_id=correlation_id,
        )
        row = BatchJobModel.from_dto(job, created_by_id=actor_id)
        row.created_at = now
        self._session.add(row)
        self._session.flush()

        logger.info(
            "batch_job_submitted",
            extra={
                "job_id": str(job.job_id),
                "task_type": task_type,
                "idempotency_key": idempotency_key,
            },
        )
        return job

    def execute_job(self, job_id: UUID, actor_id: UUID) -> BatchRunResult:
        """Run a PENDING job to completion.

        Raises:
            BatchJobNotFoundError: unknown job_id.
            BatchAlreadyRunningError: the job is not PENDING.
        """
        t0 = time.monotonic()
        job_row = self._lock_pending(job_id)
        if job_row.status != BatchJobStatus.PENDING.value:
            raise BatchAlreadyRunningError(job_row.job_name, str(job_id))

        task = self._task_registry.get(job_row.task_type)
        params = job_row.parameters or {}
        as_of = self._clock.now()
        job_row.status = BatchJobStatus.RUNNING.value
        job_row.started_at = as_of
        self._session.flush()

        with LogContext.bind(job_id=str(job_id), correlation_id=job_row.correlation_id):
            logger.info("batch_job_started", extra={"task_type": job_row.task_type})

            try:
                items = task.prepare_items(parameters=params, session=self._session, as_of=as_of)
            except Exception as exc:
                logger.error("batch_prepare_failed", exc_info=True)
                return self._abort(job_row, f"prepare_items failed: {exc}", t0)

            job_row.total_items = len(items)
            self._session.flush()

            results = [
                self._apply(task, computed, params, as_of)
                for computed in self._compute(task, items, params, as_of)
            ]
            for result in results:
                self._record(result, job_id, actor_id)

            succeeded = sum(1 for r in results if r.status == BatchItemStatus.SUCCEEDED)
            failed = len(results) - succeeded
            status = _job_status(succeeded, failed)

            job_row.succeeded_items = succeeded
            job_row.failed_items = failed
            job_row.status = status.value
            job_row.completed_at = self._clock.now()
            if failed:
                job_row.error_summary = f"{failed} item(s) failed"
            self._session.flush()

            duration = _elapsed_ms(t0)
            logger.info(
                "batch_job_completed",
                extra={
                    "status": status.value,
                    "total_items": len(items),
                    "succeeded": succeeded,
                    "failed": failed,
                    "duration_ms": duration,
                },
            )

        return BatchRunResult(
            job_id=job_id,
            status=status,
            total_items=len(items),
            succeeded=succeeded,
            failed=failed,
            item_results=tuple(results),
            started_at=job_row.started_at,
            completed_at=job_row.completed_at,
            duration_ms=duration,
            correlation_id=job_row.correlation_id,
        )

    def cancel_job(self, job_id: UUID, reason: str, actor_id: UUID) -> BatchJob:
        """Cancel a job that has not started.

        Raises:
            BatchJobNotFoundError: unknown job_id.
            ValueError: the job is not PENDING.
        """
        job_row = self._lock_pending(job_id)
        if job_row.status != BatchJobStatus.PENDING.value:
            raise ValueError(f"Cannot cancel job in status {job_row.status}")

        job_row.status = BatchJobStatus.CANCELLED.value
        job_row.completed_at = self._clock.now()
        job_row.error_summary = f"Cancelled: {reason}"
        job_row.updated_by_id = actor_id
        self._session.flush()

        logger.info("batch_job_cancelled", extra={"job_id": str(job_id), "reason": reason})
        return job_row.to_dto()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_job(self, job_id: UUID) -> BatchJob:
        """Raises BatchJobNotFoundError for an unknown job_id."""
        row = self._session.get(BatchJobModel, job_id)
        if row is None:
            raise BatchJobNotFoundError(str(job_id))
        return row.to_dto()

    def get_job_items(self, job_id: UUID) -> tuple[BatchItemResult, ...]:
        rows = self._session.execute(
            select(BatchItemModel)
            .where(BatchItemModel.job_id == job_id)
            .order_by(BatchItemModel.item_index)
        ).scalars()
        return tuple(row.to_dto() for row in rows)

    # -------------------------------------------------------------------------
    # Fan-out
    # -------------------------------------------------------------------------

    def _runs_parallel(self, item_count: int) -> bool:
        return self._session_factory is not None and self._max_workers > 1 and item_count > 1

    def _compute(
        self,
        task: BatchTask,
        items: Sequence[BatchItemInput],
        params: dict[str, Any],
        as_of: datetime,
    ) -> list[_Computed]:
        """One _Computed per item, in input order."""
        if not self._runs_parallel(len(items)):
            return [self._compute_item(task, item, params, as_of, self._session) for item in items]

        workers = min(self._max_workers, len(items))
        logger.debug("batch_fan_out", extra={"workers": workers, "items": len(items)})
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=WORKER_THREAD_PREFIX) as pool:
            # copy_context per submit so LogContext reaches the worker thread
            futures = [
                pool.submit(
                    contextvars.copy_context().run,
                    self._compute_item, task, item, params, as_of, None,
                )
                for item in items
            ]
            return [future.result() for future in futures]

    def _compute_item(
        self,
        task: BatchTask,
        item: BatchItemInput,
        params: dict[str, Any],
        as_of: datetime,
        session: Session | None,
    ) -> _Computed:
        started_at = self._clock.now()
        t0 = time.monotonic()
        try:
            if session is None:
                with self._session_factory() as worker_session:
                    value = task.compute_item(item, params, worker_session, as_of)
            else:
                value = task.compute_item(item, params, session, as_of)
        except Exception as exc:
            return _Computed(item=item, error=exc, started_at=started_at, t0=t0)
        return _Computed(item=item, value=value, started_at=started_at, t0=t0)

    # -------------------------------------------------------------------------
    # Fan-in
    # -------------------------------------------------------------------------

    def _apply(
        self,
        task: BatchTask,
        computed: _Computed,
        params: dict[str, Any],
        as_of: datetime,
    ) -> BatchItemResult:
        item = computed.item
        error = computed.error
        applied: BatchItemResult | None = None

        if error is None:
            savepoint = self._session.begin_nested()
            try:
                applied = task.apply_item(item, computed.value, params, self._session, as_of)
            except Exception as exc:
                savepoint.rollback()
                error = exc
            else:
                if applied.status == BatchItemStatus.SUCCEEDED:
                    savepoint.commit()
                else:
                    savepoint.rollback()

        timing = {
            "item_index": item.item_index,
            "item_key": item.item_key,
            "duration_ms": _elapsed_ms(computed.t0),
            "started_at": computed.started_at,
            "completed_at": self._clock.now(),
        }
        if error is not None:
            logger.warning(
                "batch_item_failed",
                extra={
                    "item_key": item.item_key,
                    "error_code": _error_code(error),
                    "error_message": str(error),
                },
            )
            return BatchItemResult(
                status=BatchItemStatus.FAILED,
                error_code=_error_code(error),
                error_message=str(error),
                **timing,
            )
        if applied.status != BatchItemStatus.SUCCEEDED:
            logger.warning(
                "batch_item_failed",
                extra={"item_key": item.item_key, "error_code": applied.error_code},
            )
        return BatchItemResult(
            status=applied.status,
            error_code=applied.error_code,
            error_message=applied.error_message,
            result_data=applied.result_data,
            value=applied.value,
            **timing,
        )

    def _record(self, result: BatchItemResult, job_id: UUID, actor_id: UUID) -> None:
        row = BatchItemModel.from_dto(result, job_id=job_id, created_by_id=actor_id)
        row.created_at = self._clock.now()
        self._session.add(row)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _lock_pending(self, job_id: UUID) -> BatchJobModel:
        """Load the job row FOR UPDATE (a no-op on SQLite)."""
        row = self._session.execute(
            select(BatchJobModel).where(BatchJobModel.id == job_id).with_for_update()
        ).scalar_one_or_none()
        if row is None:
            raise BatchJobNotFoundError(str(job_id))
        return row

    def _abort(self, job_row: BatchJobModel, error_summary: str, t0: float) -> BatchRunResult:
        job_row.status = BatchJobStatus.FAILED.value
        job_row.completed_at = self._clock.now()
        job_row.error_summary = error_summary
        self._session.flush()

        return BatchRunResult(
            job_id=job_row.id,
            status=BatchJobStatus.FAILED,
            total_items=0,
            succeeded=0,
            failed=0,
            started_at=job_row.started_at,
            completed_at=job_row.completed_at,
            duration_ms=_elapsed_ms(t0),
            correlation_id=job_row.correlation_id,
        )
