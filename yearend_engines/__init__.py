"""
Module: yearend_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines of the
    year-end reconciliation: rule tables, aggregation, deductions, tax and
    reconciliation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import yearend_kernel.domain (and sibling engine modules).
    MUST NOT import yearend_services or yearend_batch.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Exact arithmetic: rates are ``Decimal`` and products are floored with
      ROUND_FLOOR; floats are never used.
    - Determinism: identical inputs always produce identical outputs.
"""

from yearend_engines.aggregation import aggregate_annual_earnings, slip_qualifies
from yearend_engines.deductions import (
    DEDUCTION_TABLE,
    DeductionBreakdown,
    basic_deduction,
    compute_deductions,
    dependent_deduction,
    disability_deduction,
    earthquake_insurance_deduction,
    employment_income_deduction,
    life_insurance_deduction,
    single_parent_deduction,
    small_business_mutual_aid_deduction,
    social_insurance_deduction,
    spouse_deduction,
    spouse_special_deduction,
    taxable_income,
    widow_deduction,
    working_student_deduction,
)
from yearend_engines.reconciliation import ReconciliationFigures, reconcile
from yearend_engines.tax import (
    TaxAssessment,
    calculated_income_tax,
    evaluate_tax,
    mortgage_deduction,
    special_reconstruction_tax,
)
from yearend_engines.withholding import build_withholding_slip

__all__ = [
    "DEDUCTION_TABLE",
    "DeductionBreakdown",
    "ReconciliationFigures",
    "TaxAssessment",
    "aggregate_annual_earnings",
    "basic_deduction",
    "build_withholding_slip",
    "calculated_income_tax",
    "compute_deductions",
    "dependent_deduction",
    "disability_deduction",
    "earthquake_insurance_deduction",
    "employment_income_deduction",
    "evaluate_tax",
    "life_insurance_deduction",
    "mortgage_deduction",
    "reconcile",
    "single_parent_deduction",
    "slip_qualifies",
    "small_business_mutual_aid_deduction",
    "social_insurance_deduction",
    "special_reconstruction_tax",
    "spouse_deduction",
    "spouse_special_deduction",
    "taxable_income",
    "widow_deduction",
    "working_student_deduction",
]
