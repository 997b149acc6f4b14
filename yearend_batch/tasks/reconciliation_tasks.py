"""
Batch task: year-end reconciliation, one item per employee.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from yearend_batch.tasks.base import BatchItemInput, BatchTaskResult, employee_items
from yearend_services.reconciliation_service import (
    EmployeeComputation,
    ReconciliationService,
)
from yearend_services.sources import SqlReconciliationSources


def resolve_user_ids(parameters: dict[str, Any], session: Session) -> list[str]:
    """Explicit ``user_ids`` if given, else every active employee of the tenant."""
    user_ids = parameters.get("user_ids") or []
    if user_ids:
        return list(user_ids)
    return SqlReconciliationSources(session).list_active_employees(
        parameters["tenant_id"],
    )


class ReconciliationTask:
    """Compute and upsert the year-end result of each target employee."""

    def __init__(
        self,
        service_factory: Callable[[Session], ReconciliationService],
        actor_id: UUID,
    ):
        self._service_factory = service_factory
        self._actor_id = actor_id

    @property
    def task_type(self) -> str:
        return "yearend.reconciliation"

    @property
    def description(self) -> str:
        return "Year-end income-tax reconciliation per employee"

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
    ) -> EmployeeComputation:
        return self._service_factory(session).compute(
            parameters["tenant_id"], item.item_key, parameters["fiscal_year"],
        )

    def apply_item(
        self,
        item: BatchItemInput,
        computed: EmployeeComputation,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        result = self._service_factory(session).persist(computed, self._actor_id)
        return BatchTaskResult.succeeded(
            result,
            result_data={
                "result_id": str(result.result_id),
                "final_tax": result.final_tax,
                "adjustment_amount": result.adjustment_amount,
                "is_refund": result.is_refund,
            },
        )
