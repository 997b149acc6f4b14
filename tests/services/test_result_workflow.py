"""
Tests for the result status workflow: calculated -> confirmed -> paid.
"""

from uuid import UUID, uuid4

import pytest

from yearend_kernel.domain.dtos import ResultAction, ResultStatus
from yearend_kernel.exceptions import InvalidStatusTransitionError, ResultNotFoundError
from yearend_services.reconciliation_service import ReconciliationService
from yearend_services.result_workflow_service import ResultWorkflowService
from yearend_services.sources import SqlReconciliationSources, SqlResultRepository

ACTOR = UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture
def repository(session, clock):
    return SqlResultRepository(session, clock=clock, actor_id=ACTOR)


@pytest.fixture
def workflow(repository):
    return ResultWorkflowService(repository)


@pytest.fixture
def calculated(session, seed, repository):
    seed.scenario_a("u-a")
    sources = SqlReconciliationSources(session)
    return ReconciliationService(sources, sources, repository).reconcile_employee(
        "tenant-001", "u-a", 2024,
    )


def _naive(value):
    return value.replace(tzinfo=None)


class TestForwardTransitions:
    def test_confirm_stamps_confirmer_and_time(self, workflow, calculated, clock):
        clock.advance(3600)
        confirmed = workflow.confirm(calculated.result_id, "payroll-admin")

        assert confirmed.status == ResultStatus.CONFIRMED
        assert confirmed.confirmed_by == "payroll-admin"
        assert _naive(confirmed.confirmed_at) == _naive(clock.now())
        assert confirmed.paid_at is None

    def test_pay_after_confirm(self, workflow, calculated, clock):
        workflow.confirm(calculated.result_id, "payroll-admin")
        clock.advance(86400)
        paid = workflow.pay(calculated.result_id, "treasury")

        assert paid.status == ResultStatus.PAID
        assert _naive(paid.paid_at) == _naive(clock.now())
        assert paid.confirmed_by == "payroll-admin"

    def test_accepts_action_strings(self, workflow, calculated):
        result = workflow.advance_result_status(calculated.result_id, "confirm", "admin")
        assert result.status == ResultStatus.CONFIRMED


class TestRejectedTransitions:
    def test_cannot_skip_confirmation(self, workflow, calculated):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            workflow.pay(calculated.result_id, "treasury")

        assert exc_info.value.current_status == "calculated"

    def test_cannot_confirm_twice(self, workflow, calculated):
        workflow.confirm(calculated.result_id, "admin")

        with pytest.raises(InvalidStatusTransitionError):
            workflow.confirm(calculated.result_id, "admin")

    def test_paid_is_terminal(self, workflow, calculated):
        workflow.confirm(calculated.result_id, "admin")
        workflow.pay(calculated.result_id, "admin")

        for action in ResultAction:
            with pytest.raises(InvalidStatusTransitionError):
                workflow.advance_result_status(calculated.result_id, action, "admin")

    def test_unknown_action(self, workflow, calculated):
        with pytest.raises(InvalidStatusTransitionError):
            workflow.advance_result_status(calculated.result_id, "reopen", "admin")

    def test_unknown_result(self, workflow):
        with pytest.raises(ResultNotFoundError):
            workflow.confirm(uuid4(), "admin")

    def test_rejection_is_logged(self, workflow, calculated, captured_logs):
        with pytest.raises(InvalidStatusTransitionError):
            workflow.pay(calculated.result_id, "treasury")

        rejected = [
            r for r in captured_logs() if r["message"] == "result_status_advance_rejected"
        ]
        assert rejected
        assert rejected[0]["exc_code"] == "INVALID_STATUS_TRANSITION"
        assert rejected[0]["actor_id"] == "treasury"
