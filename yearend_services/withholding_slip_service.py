"""
WithholdingSlipService -- issue annual withholding statements.

Responsibility:
    Build the statement for one employee from the finalized year-end result
    and the approved declaration, then upsert it.

Architecture position:
    Services.  Same compute / persist split as ReconciliationService so the
    batch runner can fan the build step out across worker sessions.

Invariants enforced:
    - A statement is only issued from a result in status confirmed or paid
      (NoFinalizedResultError otherwise).
    - The employee must exist in the directory (EmployeeNotFoundError).
    - Re-issuing overwrites the existing non-reissue statement in place.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from yearend_engines.withholding import build_withholding_slip
from yearend_kernel.domain.dtos import FINALIZED_RESULT_STATUSES, WithholdingSlip
from yearend_kernel.exceptions import EmployeeNotFoundError, NoFinalizedResultError
from yearend_kernel.logging_config import get_logger
from yearend_kernel.models.withholding_slip import WithholdingSlipModel
from yearend_kernel.selectors.result_selector import ResultSelector
from yearend_services.sources import DeclarationSource, EmployeeDirectory

logger = get_logger("services.withholding_slip")


class WithholdingSlipService:
    def __init__(
        self,
        session: Session,
        declarations: DeclarationSource,
        directory: EmployeeDirectory,
    ):
        self._session = session
        self._declarations = declarations
        self._directory = directory
        self._results = ResultSelector(session)

    def prepare(
        self,
        tenant_id: str,
        user_id: str,
        fiscal_year: int,
        issue_date: date,
    ) -> WithholdingSlip:
        """
        Build the statement without writing.

        Raises:
            NoFinalizedResultError: no confirmed or paid result.
            EmployeeNotFoundError: user is unknown to the directory.
        """
        result = self._results.find_result(tenant_id, user_id, fiscal_year)
        if result is None or result.status not in FINALIZED_RESULT_STATUSES:
            raise NoFinalizedResultError(tenant_id, user_id, fiscal_year)

        name = self._directory.get_employee_name(tenant_id, user_id)
        if name is None:
            raise EmployeeNotFoundError(tenant_id, user_id)

        declaration = self._declarations.get_approved_declaration(
            tenant_id, user_id, fiscal_year,
        )
        return build_withholding_slip(result, declaration, name, issue_date)

    def persist(self, slip: WithholdingSlip, actor_id: UUID) -> WithholdingSlip:
        model = self._session.execute(
            select(WithholdingSlipModel).where(
                WithholdingSlipModel.tenant_id == slip.tenant_id,
                WithholdingSlipModel.user_id == slip.user_id,
                WithholdingSlipModel.fiscal_year == slip.fiscal_year,
                WithholdingSlipModel.is_reissue.is_(False),
            )
        ).scalar_one_or_none()
        created = model is None
        if model is None:
            model = WithholdingSlipModel(
                tenant_id=slip.tenant_id,
                user_id=slip.user_id,
                fiscal_year=slip.fiscal_year,
                is_reissue=False,
            )
            self._session.add(model)

        model.overwrite_from(slip, actor_id)
        self._session.flush()

        logger.info(
            "withholding_slip_issued",
            extra={
                "slip_id": str(model.id),
                "user_id": slip.user_id,
                "fiscal_year": slip.fiscal_year,
                "was_created": created,
            },
        )
        return model.to_dto()

    def issue(
        self,
        tenant_id: str,
        user_id: str,
        fiscal_year: int,
        issue_date: date,
        actor_id: UUID,
    ) -> WithholdingSlip:
        return self.persist(
            self.prepare(tenant_id, user_id, fiscal_year, issue_date), actor_id,
        )
