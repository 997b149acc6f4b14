"""
Tests for yearend_services.withholding_slip_service.
"""

from datetime import date
from uuid import UUID

import pytest
from sqlalchemy import func, select

from yearend_kernel.exceptions import EmployeeNotFoundError, NoFinalizedResultError
from yearend_kernel.models.withholding_slip import WithholdingSlipModel
from yearend_services.reconciliation_service import ReconciliationService
from yearend_services.result_workflow_service import ResultWorkflowService
from yearend_services.sources import SqlReconciliationSources, SqlResultRepository
from yearend_services.withholding_slip_service import WithholdingSlipService

ACTOR = UUID("00000000-0000-0000-0000-0000000000aa")
ISSUE_DATE = date(2025, 1, 31)


@pytest.fixture
def slips(session):
    sources = SqlReconciliationSources(session)
    return WithholdingSlipService(session, declarations=sources, directory=sources)


def _reconcile(session, clock, user_id="u-a"):
    sources = SqlReconciliationSources(session)
    repository = SqlResultRepository(session, clock=clock, actor_id=ACTOR)
    return ReconciliationService(sources, sources, repository).reconcile_employee(
        "tenant-001", user_id, 2024,
    )


def _confirm(session, clock, result_id):
    ResultWorkflowService(SqlResultRepository(session, clock=clock)).confirm(result_id, "admin")


class TestPrepare:
    def test_requires_a_result(self, slips, seed):
        seed.employee("u-a")

        with pytest.raises(NoFinalizedResultError):
            slips.prepare("tenant-001", "u-a", 2024, ISSUE_DATE)

    def test_calculated_result_is_not_enough(self, session, slips, seed, clock):
        seed.scenario_a("u-a")
        _reconcile(session, clock)

        with pytest.raises(NoFinalizedResultError) as exc_info:
            slips.prepare("tenant-001", "u-a", 2024, ISSUE_DATE)

        assert str(exc_info.value) == "no finalized result"

    def test_unknown_employee(self, session, slips, seed, clock):
        seed.salary("u-ghost", 4_000_000, 300_000)
        result = _reconcile(session, clock, "u-ghost")
        _confirm(session, clock, result.result_id)

        with pytest.raises(EmployeeNotFoundError):
            slips.prepare("tenant-001", "u-ghost", 2024, ISSUE_DATE)

    def test_confirmed_result(self, session, slips, seed, clock):
        seed.scenario_a("u-a")
        result = _reconcile(session, clock)
        _confirm(session, clock, result.result_id)

        slip = slips.prepare("tenant-001", "u-a", 2024, ISSUE_DATE)

        assert slip.employee_name == "Employee u-a"
        assert slip.payment_amount == 4_000_000
        assert slip.withheld_tax == result.final_tax
        assert slip.issue_date == ISSUE_DATE
        assert slip.slip_id is None


class TestIssue:
    def _count(self, session):
        return session.execute(select(func.count(WithholdingSlipModel.id))).scalar_one()

    def test_persists_slip(self, session, slips, seed, clock, captured_logs):
        seed.scenario_a("u-a")
        _confirm(session, clock, _reconcile(session, clock).result_id)

        slip = slips.issue("tenant-001", "u-a", 2024, ISSUE_DATE, ACTOR)

        assert slip.slip_id is not None
        assert self._count(session) == 1
        assert any(r["message"] == "withholding_slip_issued" for r in captured_logs())

    def test_reissue_overwrites_in_place(self, session, slips, seed, clock):
        seed.scenario_a("u-a")
        _confirm(session, clock, _reconcile(session, clock).result_id)

        first = slips.issue("tenant-001", "u-a", 2024, ISSUE_DATE, ACTOR)
        second = slips.issue("tenant-001", "u-a", 2024, date(2025, 2, 15), ACTOR)

        assert self._count(session) == 1
        assert second.slip_id == first.slip_id
        assert second.issue_date == date(2025, 2, 15)
        model = session.get(WithholdingSlipModel, first.slip_id)
        assert model.updated_by_id == ACTOR

    def test_issue_logs_whether_the_slip_was_new(self, session, slips, seed, clock, captured_logs):
        seed.scenario_a("u-a")
        _confirm(session, clock, _reconcile(session, clock).result_id)

        slips.issue("tenant-001", "u-a", 2024, ISSUE_DATE, ACTOR)
        slips.issue("tenant-001", "u-a", 2024, ISSUE_DATE, ACTOR)

        issued = [r for r in captured_logs() if r["message"] == "withholding_slip_issued"]
        assert [r["was_created"] for r in issued] == [True, False]
