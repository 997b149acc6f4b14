"""
Deduction calculator -- statutory income deductions as small pure functions.

Responsibility:
    One function per deduction category, each taking primitives and returning
    a non-negative integer yen amount, plus ``taxable_income``.  The
    ``DEDUCTION_TABLE`` composes them: each entry pairs a result column name
    with an extractor over ``(Declaration, employment_income,
    social_insurance_paid)``, and ``compute_deductions`` folds the table into a
    frozen ``DeductionBreakdown``.

Architecture position:
    Engines -- pure, zero I/O.  Reads only the immutable tables in
    ``yearend_engines.rules``.

Invariants enforced:
    - Every deduction is >= 0 for non-negative inputs.
    - Products are floored exactly (Decimal, ROUND_FLOOR) before any addend.
    - An empty declaration produces zero for every declaration-driven
      deduction; no deduction special-cases "no declaration".
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields
from decimal import Decimal

from yearend_engines import rules
from yearend_engines.rules import floor_yen
from yearend_kernel.domain.dtos import Declaration, DisabilityType


# =============================================================================
# Income-driven deductions
# =============================================================================


def employment_income_deduction(total_income: int) -> int:
    """Employment-income deduction for gross annual salary plus bonus."""
    for band in rules.EMPLOYMENT_DEDUCTION_BANDS:
        if band.applies_to(total_income):
            return band.deduction(total_income)
    raise AssertionError("employment deduction bands must end with an open band")


def basic_deduction(employment_income: int) -> int:
    """Basic deduction; a non-increasing step function of employment income."""
    for tier in rules.BASIC_DEDUCTION_TIERS:
        if tier.ceiling is None or employment_income <= tier.ceiling:
            return tier.amount
    raise AssertionError("basic deduction tiers must end with an open tier")


# =============================================================================
# Family and status deductions
# =============================================================================


def spouse_deduction(has_spouse: bool, spouse_income: int) -> int:
    if has_spouse and spouse_income <= rules.SPOUSE_DEDUCTION_INCOME_LIMIT:
        return rules.SPOUSE_DEDUCTION
    return 0


def spouse_special_deduction(has_spouse: bool, spouse_income: int) -> int:
    """Tapered deduction for spouse income between 480,001 and 1,330,000."""
    if not has_spouse:
        return 0
    if not (
        rules.SPOUSE_DEDUCTION_INCOME_LIMIT
        < spouse_income
        <= rules.SPOUSE_SPECIAL_INCOME_LIMIT
    ):
        return 0
    steps = (rules.SPOUSE_SPECIAL_INCOME_LIMIT - spouse_income) // rules.SPOUSE_SPECIAL_STEP
    return steps * rules.SPOUSE_SPECIAL_STEP_AMOUNT


def dependent_deduction(
    dependent_count: int,
    specific_count: int,
    elderly_count: int,
) -> int:
    """General dependents exclude the specific and elderly sub-counts."""
    general = max(0, dependent_count - specific_count - elderly_count)
    return (
        general * rules.GENERAL_DEPENDENT_DEDUCTION
        + specific_count * rules.SPECIFIC_DEPENDENT_DEDUCTION
        + elderly_count * rules.ELDERLY_DEPENDENT_DEDUCTION
    )


_DISABILITY_AMOUNTS = {
    DisabilityType.GENERAL.value: rules.GENERAL_DISABILITY_DEDUCTION,
    DisabilityType.SPECIAL.value: rules.SPECIAL_DISABILITY_DEDUCTION,
    DisabilityType.SPECIAL_LIVING.value: rules.SPECIAL_LIVING_DISABILITY_DEDUCTION,
}


def disability_deduction(is_disabled: bool, disability_type: str | None) -> int:
    """Exactly one category applies; an unset type counts as general."""
    if not is_disabled:
        return 0
    return _DISABILITY_AMOUNTS.get(
        disability_type or DisabilityType.GENERAL.value,
        rules.GENERAL_DISABILITY_DEDUCTION,
    )


def widow_deduction(is_widow: bool) -> int:
    return rules.WIDOW_DEDUCTION if is_widow else 0


def single_parent_deduction(is_single_parent: bool) -> int:
    return rules.SINGLE_PARENT_DEDUCTION if is_single_parent else 0


def working_student_deduction(is_working_student: bool) -> int:
    return rules.WORKING_STUDENT_DEDUCTION if is_working_student else 0


# =============================================================================
# Premium and contribution deductions
# =============================================================================


def life_insurance_deduction(
    new_life: int,
    old_life: int,
    medical: int,
    new_pension: int,
    old_pension: int,
) -> int:
    """Each premium capped individually, then the sum capped at 120,000."""
    capped = (
        min(new_life, rules.LIFE_INSURANCE_NEW_CAP)
        + min(old_life, rules.LIFE_INSURANCE_OLD_CAP)
        + min(medical, rules.MEDICAL_INSURANCE_CAP)
        + min(new_pension, rules.PENSION_INSURANCE_NEW_CAP)
        + min(old_pension, rules.PENSION_INSURANCE_OLD_CAP)
    )
    return min(capped, rules.LIFE_INSURANCE_TOTAL_CAP)


def earthquake_insurance_deduction(premium: int) -> int:
    return min(premium, rules.EARTHQUAKE_INSURANCE_CAP)


def small_business_mutual_aid_deduction(ideco: int, mutual_aid: int) -> int:
    return ideco + mutual_aid


def social_insurance_deduction(
    social_insurance_paid: int,
    national_pension: int,
    national_health: int,
    other: int,
) -> int:
    return social_insurance_paid + national_pension + national_health + other


def taxable_income(employment_income: int, total_deductions: int) -> int:
    """Employment income less deductions, floored to 1000 yen, never negative."""
    unit = rules.TAXABLE_INCOME_UNIT
    return max(0, floor_yen(Decimal(employment_income - total_deductions) / unit) * unit)


# =============================================================================
# Table-driven composition
# =============================================================================

Extractor = Callable[[Declaration, int, int], int]

DEDUCTION_TABLE: tuple[tuple[str, Extractor], ...] = (
    ("basic_deduction", lambda d, income, si: basic_deduction(income)),
    ("spouse_deduction", lambda d, income, si: spouse_deduction(d.has_spouse, d.spouse_income)),
    (
        "spouse_special_deduction",
        lambda d, income, si: spouse_special_deduction(d.has_spouse, d.spouse_income),
    ),
    (
        "dependent_deduction",
        lambda d, income, si: dependent_deduction(
            d.dependent_count, d.specific_dependent_count, d.elderly_dependent_count,
        ),
    ),
    (
        "disability_deduction",
        lambda d, income, si: disability_deduction(d.is_disabled, d.disability_type),
    ),
    ("widow_deduction", lambda d, income, si: widow_deduction(d.is_widow)),
    ("single_parent_deduction", lambda d, income, si: single_parent_deduction(d.is_single_parent)),
    (
        "working_student_deduction",
        lambda d, income, si: working_student_deduction(d.is_working_student),
    ),
    (
        "social_insurance_deduction",
        lambda d, income, si: social_insurance_deduction(
            si, d.national_pension, d.national_health_insurance, d.other_social_insurance,
        ),
    ),
    (
        "life_insurance_deduction",
        lambda d, income, si: life_insurance_deduction(
            d.life_insurance_new,
            d.life_insurance_old,
            d.medical_insurance,
            d.pension_insurance_new,
            d.pension_insurance_old,
        ),
    ),
    (
        "earthquake_insurance_deduction",
        lambda d, income, si: earthquake_insurance_deduction(d.earthquake_insurance),
    ),
    (
        "small_business_mutual_aid_deduction",
        lambda d, income, si: small_business_mutual_aid_deduction(
            d.ideco_amount, d.small_business_mutual_aid,
        ),
    ),
)


@dataclass(frozen=True)
class DeductionBreakdown:
    """Every deduction amount for one employee; field names match result columns."""

    basic_deduction: int = 0
    spouse_deduction: int = 0
    spouse_special_deduction: int = 0
    dependent_deduction: int = 0
    disability_deduction: int = 0
    widow_deduction: int = 0
    single_parent_deduction: int = 0
    working_student_deduction: int = 0
    social_insurance_deduction: int = 0
    life_insurance_deduction: int = 0
    earthquake_insurance_deduction: int = 0
    small_business_mutual_aid_deduction: int = 0

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def compute_deductions(
    declaration: Declaration,
    employment_income: int,
    social_insurance_paid: int,
) -> DeductionBreakdown:
    """Evaluate every ``DEDUCTION_TABLE`` entry for one employee."""
    return DeductionBreakdown(
        **{
            name: extractor(declaration, employment_income, social_insurance_paid)
            for name, extractor in DEDUCTION_TABLE
        }
    )
