"""
Module: yearend_services.sources
Responsibility: Collaborator protocols consumed by the reconciliation
    services, and their SQLAlchemy implementations.
Architecture position: Services.  Imports kernel models, selectors and DTOs.

Contract:
    DeclarationSource, PayrollLedgerSource and EmployeeDirectory are read-only.
    ResultRepository is the single write path for year-end results.

Invariants enforced:
    - Only 'approved' declarations are returned.
    - upsert_result() never overwrites a result whose status is not
      'calculated'; it raises ResultAlreadyFinalizedError and leaves the row
      untouched.
    - advance_result_status() allows only calculated -> confirmed -> paid.
    - Repositories flush but never commit; the caller owns the transaction.

Failure modes:
    - Any SQLAlchemy error propagates to the caller, which the batch runner
      records as a per-employee failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from yearend_kernel.domain.clock import Clock, SystemClock
from yearend_kernel.domain.dtos import (
    QUALIFYING_BONUS_STATUSES,
    QUALIFYING_SALARY_STATUSES,
    Declaration,
    DeclarationStatus,
    EmployeeStatus,
    Pagination,
    ResultAction,
    ResultFilters,
    ResultPage,
    Slip,
    YearEndResult,
)
from yearend_kernel.exceptions import (
    InvalidStatusTransitionError,
    ResultAlreadyFinalizedError,
    ResultNotFoundError,
)
from yearend_kernel.logging_config import get_logger
from yearend_kernel.models.declaration import YearEndDeclaration
from yearend_kernel.models.employee import Employee
from yearend_kernel.models.payroll import BonusSlip, SalarySlip
from yearend_kernel.models.result import YearEndResultModel
from yearend_kernel.selectors.result_selector import ResultSelector

logger = get_logger("services.sources")


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class DeclarationSource(Protocol):
    def get_approved_declaration(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> Declaration | None: ...


@runtime_checkable
class PayrollLedgerSource(Protocol):
    def get_confirmed_salary_slips(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> list[Slip]: ...

    def get_approved_bonus_slips(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> list[Slip]: ...


@runtime_checkable
class EmployeeDirectory(Protocol):
    def list_active_employees(self, tenant_id: str) -> list[str]: ...

    def get_employee_name(self, tenant_id: str, user_id: str) -> str | None: ...


@runtime_checkable
class ResultRepository(Protocol):
    def upsert_result(
        self,
        tenant_id: str,
        user_id: str,
        fiscal_year: int,
        data: Mapping[str, int | bool],
        actor_id: UUID | None = None,
    ) -> YearEndResult: ...

    def advance_result_status(
        self, result_id: UUID, action: ResultAction, actor: str,
    ) -> YearEndResult: ...


# =============================================================================
# SQL implementations
# =============================================================================


class SqlReconciliationSources:
    """Declarations, payroll ledgers and employee directory read from SQL.

    One instance per session; each batch worker thread builds its own.
    """

    def __init__(self, session: Session):
        self._session = session

    def get_approved_declaration(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> Declaration | None:
        model = self._session.execute(
            select(YearEndDeclaration).where(
                YearEndDeclaration.tenant_id == tenant_id,
                YearEndDeclaration.user_id == user_id,
                YearEndDeclaration.fiscal_year == fiscal_year,
                YearEndDeclaration.status == DeclarationStatus.APPROVED.value,
            )
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def get_confirmed_salary_slips(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> list[Slip]:
        rows = self._session.execute(
            select(SalarySlip)
            .where(
                SalarySlip.tenant_id == tenant_id,
                SalarySlip.user_id == user_id,
                SalarySlip.pay_period.startswith(str(fiscal_year)),
                SalarySlip.status.in_(sorted(QUALIFYING_SALARY_STATUSES)),
            )
            .order_by(SalarySlip.pay_period)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def get_approved_bonus_slips(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> list[Slip]:
        rows = self._session.execute(
            select(BonusSlip)
            .where(
                BonusSlip.tenant_id == tenant_id,
                BonusSlip.user_id == user_id,
                BonusSlip.pay_period.startswith(str(fiscal_year)),
                BonusSlip.status.in_(sorted(QUALIFYING_BONUS_STATUSES)),
            )
            .order_by(BonusSlip.pay_period)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def list_active_employees(self, tenant_id: str) -> list[str]:
        return list(
            self._session.execute(
                select(Employee.user_id)
                .where(
                    Employee.tenant_id == tenant_id,
                    Employee.status == EmployeeStatus.ACTIVE.value,
                )
                .order_by(Employee.user_id)
            ).scalars()
        )

    def get_employee_name(self, tenant_id: str, user_id: str) -> str | None:
        return self._session.execute(
            select(Employee.name).where(
                Employee.tenant_id == tenant_id,
                Employee.user_id == user_id,
            )
        ).scalar_one_or_none()


class SqlResultRepository:
    """Write path for year-end results.

    Contract:
        Flushes, never commits.  Timestamps come from the injected clock.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        actor_id: UUID | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._actor_id = actor_id
        self._selector = ResultSelector(session)

    def _find_model(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> YearEndResultModel | None:
        return self._session.execute(
            select(YearEndResultModel).where(
                YearEndResultModel.tenant_id == tenant_id,
                YearEndResultModel.user_id == user_id,
                YearEndResultModel.fiscal_year == fiscal_year,
            )
        ).scalar_one_or_none()

    def upsert_result(
        self,
        tenant_id: str,
        user_id: str,
        fiscal_year: int,
        data: Mapping[str, int | bool],
        actor_id: UUID | None = None,
    ) -> YearEndResult:
        """
        Create or overwrite the result for (tenant, user, fiscal_year).

        Raises:
            ResultAlreadyFinalizedError: existing result is confirmed or paid.
            ValueError: no actor was supplied here or at construction.
        """
        actor = actor_id or self._actor_id
        if actor is None:
            raise ValueError("upsert_result requires an actor_id")

        model = self._find_model(tenant_id, user_id, fiscal_year)
        created = model is None
        if model is None:
            model = YearEndResultModel(
                tenant_id=tenant_id, user_id=user_id, fiscal_year=fiscal_year,
            )
            self._session.add(model)
        elif not model.is_recomputable:
            logger.warning(
                "result_recompute_refused",
                extra={
                    "tenant_id": tenant_id,
                    "user_id": user_id,
                    "fiscal_year": fiscal_year,
                    "status": model.status,
                },
            )
            raise ResultAlreadyFinalizedError(
                tenant_id, user_id, fiscal_year, model.status,
            )

        model.apply_figures(data, calculated_at=self._clock.now(), actor_id=actor)
        self._session.flush()

        logger.info(
            "result_upserted",
            extra={
                "result_id": str(model.id),
                "user_id": user_id,
                "fiscal_year": fiscal_year,
                "was_created": created,
                "adjustment_amount": model.adjustment_amount,
            },
        )
        return model.to_dto()

    def advance_result_status(
        self, result_id: UUID, action: ResultAction, actor: str,
    ) -> YearEndResult:
        """
        Apply a workflow action to a result.

        Raises:
            ResultNotFoundError: unknown result_id.
            InvalidStatusTransitionError: action not allowed from current status.
        """
        model = self._session.get(YearEndResultModel, result_id)
        if model is None:
            raise ResultNotFoundError(str(result_id))

        try:
            action = ResultAction(action)
        except ValueError:
            raise InvalidStatusTransitionError(
                str(result_id), model.status, str(action),
            ) from None
        if model.next_status(action) is None:
            raise InvalidStatusTransitionError(str(result_id), model.status, action.value)

        from_status = model.status
        now = self._clock.now()
        if action == ResultAction.CONFIRM:
            model.confirm(confirmed_by=actor, confirmed_at=now)
        else:
            model.mark_paid(paid_at=now)
        self._session.flush()

        logger.info(
            "result_status_advanced",
            extra={
                "result_id": str(result_id),
                "from_status": from_status,
                "to_status": model.status,
                "action": action.value,
                "actor": actor,
            },
        )
        return model.to_dto()

    def find_result(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> YearEndResult | None:
        return self._selector.find_result(tenant_id, user_id, fiscal_year)

    def list_results(
        self,
        tenant_id: str,
        filters: ResultFilters | None = None,
        pagination: Pagination | None = None,
    ) -> ResultPage:
        return self._selector.list_results(tenant_id, filters, pagination)
