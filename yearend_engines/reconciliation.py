"""
Reconciliation -- pure composition of deductions and tax into final figures.

Responsibility:
    Given one employee's ``AnnualEarnings`` and ``Declaration``, run the
    deduction calculator then the tax evaluator, and compute the signed
    adjustment between tax withheld during the year and final liability.

Architecture position:
    Engines -- pure, zero I/O.  Called from worker threads concurrently; holds
    no state of its own.

Invariants enforced:
    - adjustment_amount = withheld_tax_total - final_tax
    - is_refund = adjustment_amount > 0
    - Identical inputs produce equal ``ReconciliationFigures``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from yearend_engines import rules
from yearend_engines.deductions import (
    DeductionBreakdown,
    compute_deductions,
    employment_income_deduction,
    taxable_income,
)
from yearend_engines.tax import TaxAssessment, evaluate_tax, mortgage_deduction
from yearend_engines.tracer import traced_engine
from yearend_kernel.domain.dtos import AnnualEarnings, Declaration


@dataclass(frozen=True)
class ReconciliationFigures:
    """Every computed figure of one year-end result."""

    total_salary: int
    total_bonus: int
    total_income: int
    employment_income_deduction: int
    employment_income: int
    deductions: DeductionBreakdown
    total_deductions: int
    taxable_income: int
    tax: TaxAssessment
    withheld_tax_total: int
    adjustment_amount: int
    is_refund: bool

    def as_record(self) -> dict[str, int | bool]:
        """Flat mapping of result column name to value."""
        record: dict[str, int | bool] = {
            "total_salary": self.total_salary,
            "total_bonus": self.total_bonus,
            "total_income": self.total_income,
            "employment_income_deduction": self.employment_income_deduction,
            "employment_income": self.employment_income,
        }
        record.update(self.deductions.as_dict())
        record.update(
            total_deductions=self.total_deductions,
            taxable_income=self.taxable_income,
            calculated_tax=self.tax.calculated_tax,
            special_reconstruction_tax=self.tax.special_reconstruction_tax,
            total_tax=self.tax.total_tax,
            mortgage_deduction=self.tax.mortgage_deduction,
            final_tax=self.tax.final_tax,
            withheld_tax_total=self.withheld_tax_total,
            adjustment_amount=self.adjustment_amount,
            is_refund=self.is_refund,
        )
        return record


@traced_engine("reconciliation", "1.0", fingerprint_fields=("earnings", "declaration"))
def reconcile(
    earnings: AnnualEarnings,
    declaration: Declaration,
    default_mortgage_rate: Decimal = rules.DEFAULT_MORTGAGE_RATE,
    default_mortgage_cap: int = rules.DEFAULT_MORTGAGE_CAP,
) -> ReconciliationFigures:
    """
    Compute the year-end figures for one employee.

    The declaration's own mortgage rate and cap win over the defaults.
    """
    total_income = earnings.total_income
    eid = employment_income_deduction(total_income)
    employment_income = max(0, total_income - eid)

    deductions = compute_deductions(
        declaration, employment_income, earnings.social_insurance_paid,
    )
    total_deductions = deductions.total
    taxable = taxable_income(employment_income, total_deductions)

    mortgage = mortgage_deduction(
        declaration.has_mortgage,
        declaration.mortgage_balance,
        rate=(
            declaration.mortgage_rate
            if declaration.mortgage_rate is not None
            else default_mortgage_rate
        ),
        cap=(
            declaration.mortgage_cap
            if declaration.mortgage_cap is not None
            else default_mortgage_cap
        ),
    )
    tax = evaluate_tax(taxable, mortgage)

    adjustment = earnings.withheld_tax - tax.final_tax
    return ReconciliationFigures(
        total_salary=earnings.total_salary,
        total_bonus=earnings.total_bonus,
        total_income=total_income,
        employment_income_deduction=eid,
        employment_income=employment_income,
        deductions=deductions,
        total_deductions=total_deductions,
        taxable_income=taxable,
        tax=tax,
        withheld_tax_total=earnings.withheld_tax,
        adjustment_amount=adjustment,
        is_refund=adjustment > 0,
    )
