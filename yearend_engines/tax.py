"""
Tax evaluator -- progressive income tax, reconstruction surtax, mortgage credit.

Responsibility:
    Apply the quick-calculation bracket table and the fixed 2.1% special
    reconstruction surtax to taxable income, then subtract the mortgage
    credit to reach final tax.

Architecture position:
    Engines -- pure, zero I/O.

Invariants enforced:
    - The applicable bracket is the first whose ceiling >= taxable income.
    - Every product is floored exactly; ``final_tax`` is never negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from yearend_engines import rules
from yearend_engines.rules import TaxBracket, floor_yen


def bracket_for(taxable_income: int) -> TaxBracket:
    for bracket in rules.TAX_BRACKETS:
        if bracket.applies_to(taxable_income):
            return bracket
    raise AssertionError("tax brackets must end with an open bracket")


def calculated_income_tax(taxable_income: int) -> int:
    """``floor(taxable * rate - subtraction)``, clamped at zero."""
    bracket = bracket_for(taxable_income)
    return max(
        0,
        floor_yen(Decimal(taxable_income) * bracket.rate - bracket.subtraction),
    )


def special_reconstruction_tax(calculated_tax: int) -> int:
    return floor_yen(Decimal(calculated_tax) * rules.SPECIAL_RECONSTRUCTION_TAX_RATE)


def mortgage_deduction(
    has_mortgage: bool,
    loan_balance: int,
    rate: Decimal = rules.DEFAULT_MORTGAGE_RATE,
    cap: int = rules.DEFAULT_MORTGAGE_CAP,
) -> int:
    """Mortgage credit: ``min(floor(balance * rate), cap)`` when a mortgage is declared."""
    if not has_mortgage:
        return 0
    return max(0, min(floor_yen(Decimal(loan_balance) * rate), cap))


@dataclass(frozen=True)
class TaxAssessment:
    calculated_tax: int
    special_reconstruction_tax: int
    total_tax: int
    mortgage_deduction: int
    final_tax: int


def evaluate_tax(taxable_income: int, mortgage_credit: int = 0) -> TaxAssessment:
    """Income tax plus surtax, less the mortgage credit."""
    calculated = calculated_income_tax(taxable_income)
    surtax = special_reconstruction_tax(calculated)
    total = calculated + surtax
    return TaxAssessment(
        calculated_tax=calculated,
        special_reconstruction_tax=surtax,
        total_tax=total,
        mortgage_deduction=mortgage_credit,
        final_tax=max(0, total - mortgage_credit),
    )
