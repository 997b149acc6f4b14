"""
Batch task: annual withholding statements, one item per employee.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from yearend_batch.tasks.base import BatchItemInput, BatchTaskResult, employee_items
from yearend_batch.tasks.reconciliation_tasks import resolve_user_ids
from yearend_kernel.domain.dtos import WithholdingSlip
from yearend_services.withholding_slip_service import WithholdingSlipService


class WithholdingSlipTask:
    """Issue the withholding statement of each target employee."""

    def __init__(
        self,
        service_factory: Callable[[Session], WithholdingSlipService],
        actor_id: UUID,
    ):
        self._service_factory = service_factory
        self._actor_id = actor_id

    @property
    def task_type(self) -> str:
        return "yearend.withholding_slips"

    @property
    def description(self) -> str:
        return "Issue annual withholding statements from finalized results"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        return employee_items(resolve_user_ids(parameters, session))

    def compute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> WithholdingSlip:
        issue_date = (
            date.fromisoformat(parameters["issue_date"])
            if parameters.get("issue_date")
            else as_of.date()
        )
        return self._service_factory(session).prepare(
            parameters["tenant_id"], item.item_key, parameters["fiscal_year"], issue_date,
        )

    def apply_item(
        self,
        item: BatchItemInput,
        computed: WithholdingSlip,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        slip = self._service_factory(session).persist(computed, self._actor_id)
        return BatchTaskResult.succeeded(
            slip,
            result_data={
                "slip_id": str(slip.slip_id),
                "payment_amount": slip.payment_amount,
                "withheld_tax": slip.withheld_tax,
            },
        )
