"""
Tests for yearend_batch.services.executor.

Validates BatchExecutor: submit_job, execute_job (parallel compute,
SAVEPOINT-per-item apply), cancel_job, get_job, get_job_items, idempotency,
concurrency guard.
"""

import threading
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from yearend_batch.domain.types import BatchItemStatus, BatchJobStatus
from yearend_batch.services.executor import BatchExecutor
from yearend_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
)
from yearend_kernel.exceptions import (
    BatchAlreadyRunningError,
    BatchIdempotencyError,
    BatchJobNotFoundError,
    NoEarningsDataError,
    TaskNotRegisteredError,
)
from yearend_kernel.logging_config import LogContext
from yearend_kernel.models.employee import Employee

ACTOR = UUID("00000000-0000-0000-0000-0000000000aa")


# =============================================================================
# Test tasks
# =============================================================================


class _Task:
    """Base: N items keyed item-000..; compute echoes, apply succeeds."""

    task_type = "test.base"
    description = "test task"

    def prepare_items(
        self, parameters: dict[str, Any], session: Session, as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        count = parameters.get("item_count", 3)
        return tuple(
            BatchItemInput(item_index=i, item_key=f"item-{i:03d}")
            for i in range(count)
        )

    def compute_item(self, item, parameters, session, as_of):
        return item.item_key.upper()

    def apply_item(self, item, computed, parameters, session, as_of):
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={"computed": computed},
            value=computed,
        )


class SuccessTask(_Task):
    task_type = "test.success"


class ComputeFailTask(_Task):
    """Even-indexed items raise during compute."""

    task_type = "test.compute_fail"

    def compute_item(self, item, parameters, session, as_of):
        if item.item_index % 2 == 0:
            raise NoEarningsDataError("tenant-001", item.item_key, 2024)
        return item.item_key


class AllFailTask(_Task):
    task_type = "test.all_fail"

    def compute_item(self, item, parameters, session, as_of):
        raise RuntimeError(f"boom {item.item_key}")


class WritingTask(_Task):
    """Apply writes an employee row; item-001 raises after writing."""

    task_type = "test.writing"

    def apply_item(self, item, computed, parameters, session, as_of):
        session.add(
            Employee(tenant_id="tenant-001", user_id=item.item_key, name=computed)
        )
        session.flush()
        if item.item_key == "item-001":
            raise RuntimeError("apply exploded after writing")
        return super().apply_item(item, computed, parameters, session, as_of)


class PrepareFailTask(_Task):
    task_type = "test.prepare_fail"

    def prepare_items(self, parameters, session, as_of):
        raise RuntimeError("cannot resolve targets")


class WorkerProbeTask(_Task):
    """Compute reads the DB and reports its thread and log context."""

    task_type = "test.worker_probe"

    def compute_item(self, item, parameters, session, as_of):
        employees = session.execute(select(func.count(Employee.id))).scalar_one()
        return {
            "thread": threading.current_thread().name,
            "employees": employees,
            "context": LogContext.get_all(),
        }


@pytest.fixture
def registry():
    reg = TaskRegistry()
    for task in (
        SuccessTask(), ComputeFailTask(), AllFailTask(), WritingTask(),
        PrepareFailTask(), WorkerProbeTask(),
    ):
        reg.register(task)
    return reg


@pytest.fixture
def executor(session, registry, clock):
    return BatchExecutor(session=session, task_registry=registry, clock=clock)


def _run(executor, task_type, **parameters):
    job = executor.submit_job(
        job_name=f"job {task_type}",
        task_type=task_type,
        idempotency_key=str(uuid4()),
        actor_id=ACTOR,
        parameters=parameters,
    )
    return job, executor.execute_job(job.job_id, actor_id=ACTOR)


# =============================================================================
# Registry
# =============================================================================


class TestTaskRegistry:
    def test_tasks_satisfy_protocol(self):
        assert isinstance(SuccessTask(), BatchTask)

    def test_duplicate_registration(self, registry):
        with pytest.raises(ValueError):
            registry.register(SuccessTask())

    def test_unknown_task(self, registry):
        with pytest.raises(KeyError):
            registry.get("test.unknown")

    def test_list_tasks_sorted(self, registry):
        assert list(registry.list_tasks()) == sorted(registry.list_tasks())
        assert len(registry) == 6


# =============================================================================
# Submit
# =============================================================================


class TestSubmitJob:
    def test_creates_pending_job(self, executor):
        job = executor.submit_job("j", "test.success", "key-1", ACTOR, {"item_count": 2})

        stored = executor.get_job(job.job_id)
        assert stored.status == BatchJobStatus.PENDING
        assert stored.parameters == {"item_count": 2}

    def test_duplicate_idempotency_key(self, executor):
        executor.submit_job("j", "test.success", "key-1", ACTOR)

        with pytest.raises(BatchIdempotencyError):
            executor.submit_job("j", "test.success", "key-1", ACTOR)

    def test_unregistered_task(self, executor):
        with pytest.raises(TaskNotRegisteredError):
            executor.submit_job("j", "test.nope", "key-1", ACTOR)


# =============================================================================
# Execute
# =============================================================================


class TestExecuteJob:
    def test_all_succeed(self, executor):
        _, run = _run(executor, "test.success", item_count=3)

        assert run.status == BatchJobStatus.COMPLETED
        assert (run.total_items, run.succeeded, run.failed) == (3, 3, 0)
        assert [r.value for r in run.item_results] == ["ITEM-000", "ITEM-001", "ITEM-002"]

    def test_compute_failures_are_isolated(self, executor):
        _, run = _run(executor, "test.compute_fail", item_count=4)

        assert run.status == BatchJobStatus.PARTIALLY_COMPLETED
        assert (run.succeeded, run.failed) == (2, 2)
        failed = [r for r in run.item_results if r.status == BatchItemStatus.FAILED]
        assert [r.item_key for r in failed] == ["item-000", "item-002"]
        assert {r.error_code for r in failed} == {"NO_EARNINGS_DATA"}
        assert {r.error_message for r in failed} == {"no earnings data"}

    def test_all_fail(self, executor):
        _, run = _run(executor, "test.all_fail", item_count=2)

        assert run.status == BatchJobStatus.FAILED
        assert run.failed == 2
        assert run.item_results[0].error_code == "UNHANDLED_EXCEPTION"
        assert run.item_results[0].error_message == "boom item-000"

    def test_apply_failure_rolls_back_only_that_item(self, executor, session):
        _, run = _run(executor, "test.writing", item_count=3)

        assert run.status == BatchJobStatus.PARTIALLY_COMPLETED
        written = session.execute(
            select(Employee.user_id).order_by(Employee.user_id)
        ).scalars().all()
        assert written == ["item-000", "item-002"]

    def test_prepare_failure_fails_job(self, executor):
        job, run = _run(executor, "test.prepare_fail")

        assert run.status == BatchJobStatus.FAILED
        assert run.total_items == 0
        stored = executor.get_job(job.job_id)
        assert "cannot resolve targets" in stored.error_summary

    def test_empty_batch_completes(self, executor):
        _, run = _run(executor, "test.success", item_count=0)

        assert run.status == BatchJobStatus.COMPLETED
        assert run.total_items == 0

    def test_cannot_execute_twice(self, executor):
        job, _ = _run(executor, "test.success")

        with pytest.raises(BatchAlreadyRunningError):
            executor.execute_job(job.job_id, ACTOR)

    def test_unknown_job(self, executor):
        with pytest.raises(BatchJobNotFoundError):
            executor.execute_job(uuid4(), ACTOR)

    def test_items_and_timestamps_persisted(self, executor, clock):
        job, _ = _run(executor, "test.compute_fail", item_count=3)

        items = executor.get_job_items(job.job_id)
        stored = executor.get_job(job.job_id)

        assert [i.item_index for i in items] == [0, 1, 2]
        assert [i.status for i in items] == [
            BatchItemStatus.FAILED, BatchItemStatus.SUCCEEDED, BatchItemStatus.FAILED,
        ]
        assert (stored.succeeded_items, stored.failed_items) == (1, 2)
        assert stored.error_summary == "2 item(s) failed"
        assert stored.completed_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)

    def test_logs_lifecycle(self, executor, captured_logs):
        job, _ = _run(executor, "test.compute_fail", item_count=2)

        logs = captured_logs()
        messages = [r["message"] for r in logs]
        assert "batch_job_started" in messages
        assert "batch_item_failed" in messages
        completed = next(r for r in logs if r["message"] == "batch_job_completed")
        assert completed["job_id"] == str(job.job_id)
        assert completed["failed"] == 1


class TestParallelCompute:
    def test_workers_use_own_sessions_and_keep_order(
        self, session, session_factory, registry, clock, seed,
    ):
        for i in range(3):
            seed.employee(f"u-{i}")
        executor = BatchExecutor(
            session=session,
            task_registry=registry,
            clock=clock,
            session_factory=session_factory,
            max_workers=4,
        )

        with LogContext.bind(tenant_id="tenant-001"):
            job, run = _run(executor, "test.worker_probe", item_count=8)

        assert run.status == BatchJobStatus.COMPLETED
        assert [r.item_key for r in run.item_results] == [f"item-{i:03d}" for i in range(8)]
        probes = [r.value for r in run.item_results]
        assert all(p["employees"] == 3 for p in probes)
        assert all(p["thread"].startswith("yearend-worker") for p in probes)
        assert all(p["context"]["job_id"] == str(job.job_id) for p in probes)
        assert all(p["context"]["tenant_id"] == "tenant-001" for p in probes)

    def test_single_worker_runs_in_caller_thread(self, session, session_factory, registry, clock):
        executor = BatchExecutor(
            session=session,
            task_registry=registry,
            clock=clock,
            session_factory=session_factory,
            max_workers=1,
        )

        _, run = _run(executor, "test.worker_probe", item_count=2)

        assert {r.value["thread"] for r in run.item_results} == {threading.current_thread().name}


# =============================================================================
# Cancel
# =============================================================================


class TestCancelJob:
    def test_cancel_pending(self, executor):
        job = executor.submit_job("j", "test.success", "key-1", ACTOR)

        cancelled = executor.cancel_job(job.job_id, "operator request", ACTOR)

        assert cancelled.status == BatchJobStatus.CANCELLED
        assert cancelled.error_summary == "Cancelled: operator request"

    def test_cancelled_job_cannot_run(self, executor):
        job = executor.submit_job("j", "test.success", "key-1", ACTOR)
        executor.cancel_job(job.job_id, "stop", ACTOR)

        with pytest.raises(BatchAlreadyRunningError):
            executor.execute_job(job.job_id, ACTOR)

    def test_cannot_cancel_finished_job(self, executor):
        job, _ = _run(executor, "test.success")

        with pytest.raises(ValueError):
            executor.cancel_job(job.job_id, "too late", ACTOR)

    def test_cancel_unknown(self, executor):
        with pytest.raises(BatchJobNotFoundError):
            executor.cancel_job(uuid4(), "x", ACTOR)
