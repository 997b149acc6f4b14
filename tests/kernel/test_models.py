"""
Tests for the kernel ORM models: result lifecycle, declaration coalescing,
and the database uniqueness guarantees.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy.exc import IntegrityError

from yearend_engines.reconciliation import reconcile
from yearend_kernel.domain.dtos import AnnualEarnings, Declaration, ResultAction, ResultStatus
from yearend_kernel.models.declaration import YearEndDeclaration
from yearend_kernel.models.result import FIGURE_COLUMNS, YearEndResultModel

ACTOR = UUID("00000000-0000-0000-0000-0000000000aa")
NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def _figures():
    return reconcile(
        AnnualEarnings(total_salary=4_000_000, withheld_tax=300_000), Declaration.empty(),
    ).as_record()


def _model():
    model = YearEndResultModel(tenant_id="tenant-001", user_id="u-1", fiscal_year=2024)
    model.apply_figures(_figures(), calculated_at=NOW, actor_id=ACTOR)
    return model


class TestResultLifecycle:
    def test_apply_figures_sets_every_column(self):
        model = _model()

        assert model.status == ResultStatus.CALCULATED.value
        assert model.created_by_id == ACTOR
        assert all(getattr(model, c) is not None for c in FIGURE_COLUMNS)

    def test_transitions(self):
        model = _model()

        assert model.next_status(ResultAction.CONFIRM) == ResultStatus.CONFIRMED
        assert model.next_status(ResultAction.PAY) is None

        model.confirm("admin", NOW)
        assert model.next_status(ResultAction.PAY) == ResultStatus.PAID
        assert model.next_status(ResultAction.CONFIRM) is None
        assert not model.is_recomputable

        model.mark_paid(NOW)
        assert model.result_status == ResultStatus.PAID
        assert all(model.next_status(a) is None for a in ResultAction)

    def test_finalized_result_rejects_figures(self):
        model = _model()
        model.confirm("admin", NOW)

        with pytest.raises(ValueError):
            model.apply_figures(_figures(), calculated_at=NOW, actor_id=ACTOR)

    def test_pay_requires_confirmation(self):
        with pytest.raises(ValueError):
            _model().mark_paid(NOW)


class TestUniqueness:
    def test_one_result_per_employee_year(self, session):
        session.add(_model())
        session.flush()
        session.add(_model())

        with pytest.raises(IntegrityError):
            session.flush()


class TestTimestamps:
    def test_stamps_read_back_as_utc(self, session, session_factory):
        model = _model()
        session.add(model)
        session.commit()

        with session_factory() as other:
            stored = other.get(YearEndResultModel, model.id)

            assert stored.calculated_at == NOW
            assert stored.calculated_at.tzinfo == timezone.utc
            assert stored.to_dto().calculated_at == NOW

    def test_offset_stamps_are_stored_in_utc(self, session, session_factory):
        model = _model()
        model.calculated_at = datetime(2025, 1, 10, 18, 0, tzinfo=timezone(timedelta(hours=9)))
        session.add(model)
        session.commit()

        with session_factory() as other:
            assert other.get(YearEndResultModel, model.id).calculated_at == NOW


class TestDeclarationCoalescing:
    def test_nulls_become_zero(self):
        dto = YearEndDeclaration(
            tenant_id="tenant-001",
            user_id="u-1",
            fiscal_year=2024,
            status="approved",
            has_spouse=True,
            spouse_income=None,
            dependent_count=None,
            has_mortgage=None,
        ).to_dto()

        assert dto.has_spouse is True
        assert dto.spouse_income == 0
        assert dto.dependent_count == 0
        assert dto.has_mortgage is False
        assert dto.mortgage_rate is None
        assert dto.mortgage_cap is None
        assert dto.validate() == []
