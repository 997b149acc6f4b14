"""
Salary/bonus aggregator -- folds payroll slips into ``AnnualEarnings``.

Responsibility:
    Filter an employee's salary and bonus slips to the fiscal year and to
    qualifying statuses, then sum gross pay, withheld income tax and
    social-insurance contributions into a single immutable value.

Architecture position:
    Engines -- pure, zero I/O.  Slips are fetched by the caller.

Invariants enforced:
    - A slip participates only when its ``pay_period`` starts with the
      fiscal year and its status is in the qualifying set for its kind.
    - No qualifying slip at all yields ``None`` (no data), never a zero-valued
      ``AnnualEarnings``.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce

from yearend_kernel.domain.dtos import (
    QUALIFYING_BONUS_STATUSES,
    QUALIFYING_SALARY_STATUSES,
    AnnualEarnings,
    Slip,
    SlipKind,
)

_QUALIFYING_STATUSES = {
    SlipKind.SALARY: QUALIFYING_SALARY_STATUSES,
    SlipKind.BONUS: QUALIFYING_BONUS_STATUSES,
}


def slip_qualifies(slip: Slip, fiscal_year: int) -> bool:
    """True when *slip* belongs to *fiscal_year* and is in a qualifying status."""
    return (
        slip.pay_period.startswith(str(fiscal_year))
        and slip.status in _QUALIFYING_STATUSES[slip.kind]
    )


def _fold(earnings: AnnualEarnings, slip: Slip) -> AnnualEarnings:
    is_salary = slip.kind == SlipKind.SALARY
    return AnnualEarnings(
        total_salary=earnings.total_salary + (slip.gross_pay if is_salary else 0),
        total_bonus=earnings.total_bonus + (0 if is_salary else slip.gross_pay),
        withheld_tax=earnings.withheld_tax + slip.income_tax,
        social_insurance_paid=earnings.social_insurance_paid + slip.social_insurance,
    )


def aggregate_annual_earnings(
    salary_slips: Iterable[Slip],
    bonus_slips: Iterable[Slip],
    fiscal_year: int,
) -> AnnualEarnings | None:
    """
    Fold qualifying slips into annual totals.

    Returns:
        ``AnnualEarnings`` or ``None`` when no slip qualifies.
    """
    qualifying = [
        slip
        for slip in (*salary_slips, *bonus_slips)
        if slip_qualifies(slip, fiscal_year)
    ]
    if not qualifying:
        return None
    return reduce(_fold, qualifying, AnnualEarnings())
