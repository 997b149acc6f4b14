"""
ReconciliationService -- per-employee year-end reconciliation.

Responsibility:
    For one employee and fiscal year: fetch payroll slips and fold them into
    annual earnings, fetch the approved declaration, run the pure
    reconciliation engine, and upsert the result.

Architecture position:
    Services.  Composes yearend_engines (pure) with collaborator protocols
    from ``yearend_services.sources``.

Contract:
    ``compute()`` is read-only and safe to run on a worker thread with its
    own session.  ``persist()`` writes through the ResultRepository and is
    called only at the fan-in point, in the caller's session.

Invariants enforced:
    - No qualifying slips -> NoEarningsDataError, nothing persisted.
    - A missing declaration means "no optional deductions", never an error.
    - A present but inconsistent declaration -> InvalidDeclarationError.
    - A confirmed or paid result is never overwritten
      (ResultAlreadyFinalizedError from the repository).

Failure modes:
    - Collaborator exceptions propagate unchanged; nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from yearend_engines import rules
from yearend_engines.aggregation import aggregate_annual_earnings
from yearend_engines.reconciliation import ReconciliationFigures, reconcile
from yearend_kernel.domain.dtos import AnnualEarnings, Declaration, YearEndResult
from yearend_kernel.exceptions import InvalidDeclarationError, NoEarningsDataError
from yearend_kernel.logging_config import get_logger
from yearend_services.sources import (
    DeclarationSource,
    PayrollLedgerSource,
    ResultRepository,
)

logger = get_logger("services.reconciliation")


@dataclass(frozen=True)
class EmployeeComputation:
    """Output of the compute phase for one employee; input to persist."""

    tenant_id: str
    user_id: str
    fiscal_year: int
    earnings: AnnualEarnings
    declaration: Declaration
    has_declaration: bool
    figures: ReconciliationFigures


class ReconciliationService:
    """Per-employee compute and persist."""

    def __init__(
        self,
        declarations: DeclarationSource,
        ledger: PayrollLedgerSource,
        results: ResultRepository | None = None,
        default_mortgage_rate: Decimal = rules.DEFAULT_MORTGAGE_RATE,
        default_mortgage_cap: int = rules.DEFAULT_MORTGAGE_CAP,
    ):
        self._declarations = declarations
        self._ledger = ledger
        self._results = results
        self._default_mortgage_rate = default_mortgage_rate
        self._default_mortgage_cap = default_mortgage_cap

    def compute(self, tenant_id: str, user_id: str, fiscal_year: int) -> EmployeeComputation:
        """
        Compute the year-end figures for one employee without writing.

        Raises:
            NoEarningsDataError: no qualifying salary or bonus slip.
            InvalidDeclarationError: approved declaration is inconsistent.
        """
        earnings = aggregate_annual_earnings(
            self._ledger.get_confirmed_salary_slips(tenant_id, user_id, fiscal_year),
            self._ledger.get_approved_bonus_slips(tenant_id, user_id, fiscal_year),
            fiscal_year,
        )
        if earnings is None:
            raise NoEarningsDataError(tenant_id, user_id, fiscal_year)

        declaration = self._declarations.get_approved_declaration(
            tenant_id, user_id, fiscal_year,
        )
        has_declaration = declaration is not None
        if declaration is None:
            declaration = Declaration.empty(user_id, fiscal_year)
        else:
            problems = declaration.validate()
            if problems:
                raise InvalidDeclarationError(user_id, fiscal_year, problems)

        figures = reconcile(
            earnings,
            declaration,
            default_mortgage_rate=self._default_mortgage_rate,
            default_mortgage_cap=self._default_mortgage_cap,
        )

        logger.debug(
            "reconciliation_computed",
            extra={
                "user_id": user_id,
                "fiscal_year": fiscal_year,
                "has_declaration": has_declaration,
                "taxable_income": figures.taxable_income,
                "final_tax": figures.tax.final_tax,
                "adjustment_amount": figures.adjustment_amount,
            },
        )
        return EmployeeComputation(
            tenant_id=tenant_id,
            user_id=user_id,
            fiscal_year=fiscal_year,
            earnings=earnings,
            declaration=declaration,
            has_declaration=has_declaration,
            figures=figures,
        )

    def persist(
        self, computation: EmployeeComputation, actor_id: UUID | None = None,
    ) -> YearEndResult:
        """
        Upsert the computed result.

        Raises:
            ResultAlreadyFinalizedError: stored result is confirmed or paid.
            RuntimeError: the service was built without a ResultRepository.
        """
        if self._results is None:
            raise RuntimeError("ReconciliationService has no result repository")
        return self._results.upsert_result(
            computation.tenant_id,
            computation.user_id,
            computation.fiscal_year,
            computation.figures.as_record(),
            actor_id=actor_id,
        )

    def reconcile_employee(
        self,
        tenant_id: str,
        user_id: str,
        fiscal_year: int,
        actor_id: UUID | None = None,
    ) -> YearEndResult:
        """compute() then persist() in the current session."""
        return self.persist(self.compute(tenant_id, user_id, fiscal_year), actor_id)
