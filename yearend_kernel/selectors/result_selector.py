"""
Module: yearend_kernel.selectors.result_selector
Responsibility: Read-only, paginated query access to year-end results.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - Results are ordered fiscal_year DESC, user_id ASC, then id for a total
      deterministic order across pages.
    - Always scoped to one tenant.

Failure modes:
    - Returns an empty page (never raises) when nothing matches.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.sql import Select

from yearend_kernel.domain.dtos import (
    Pagination,
    ResultFilters,
    ResultPage,
    YearEndResult,
)
from yearend_kernel.models.result import YearEndResultModel
from yearend_kernel.selectors.base import BaseSelector


class ResultSelector(BaseSelector[YearEndResultModel]):
    """Selector for year-end result queries."""

    def _filtered(self, query: Select, tenant_id: str, filters: ResultFilters) -> Select:
        query = query.where(YearEndResultModel.tenant_id == tenant_id)
        if filters.user_id is not None:
            query = query.where(YearEndResultModel.user_id == filters.user_id)
        if filters.fiscal_year is not None:
            query = query.where(YearEndResultModel.fiscal_year == filters.fiscal_year)
        if filters.status is not None:
            query = query.where(YearEndResultModel.status == filters.status.value)
        return query

    def list_results(
        self,
        tenant_id: str,
        filters: ResultFilters | None = None,
        pagination: Pagination | None = None,
    ) -> ResultPage:
        """
        One page of results matching *filters*.

        Args:
            tenant_id: Tenant scope.
            filters: Optional user / fiscal year / status filters.
            pagination: Page (1-based) and page size.
        """
        filters = filters or ResultFilters()
        pagination = pagination or Pagination()

        total = self.session.execute(
            self._filtered(
                select(func.count(YearEndResultModel.id)), tenant_id, filters,
            )
        ).scalar_one()

        query = (
            self._filtered(select(YearEndResultModel), tenant_id, filters)
            .order_by(
                YearEndResultModel.fiscal_year.desc(),
                YearEndResultModel.user_id.asc(),
                YearEndResultModel.id.asc(),
            )
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        rows = self.session.execute(query).scalars().all()

        return ResultPage(
            results=tuple(row.to_dto() for row in rows),
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    def get_result(self, result_id: UUID) -> YearEndResult | None:
        model = self.session.get(YearEndResultModel, result_id)
        return model.to_dto() if model is not None else None

    def find_result(
        self, tenant_id: str, user_id: str, fiscal_year: int,
    ) -> YearEndResult | None:
        model = self.session.execute(
            select(YearEndResultModel).where(
                YearEndResultModel.tenant_id == tenant_id,
                YearEndResultModel.user_id == user_id,
                YearEndResultModel.fiscal_year == fiscal_year,
            )
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def count_results(self, tenant_id: str, fiscal_year: int | None = None) -> int:
        return self.session.execute(
            self._filtered(
                select(func.count(YearEndResultModel.id)),
                tenant_id,
                ResultFilters(fiscal_year=fiscal_year),
            )
        ).scalar_one()
