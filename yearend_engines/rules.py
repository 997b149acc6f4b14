"""
Tax rule tables -- statutory constants for the year-end reconciliation.

Responsibility:
    Module-level, immutable rule data: employment-income deduction bands,
    basic-deduction tiers, the progressive income-tax bracket table and the
    fixed deduction amounts and caps.

Architecture position:
    Engines -- pure data, zero I/O.  Shared read-only across worker threads.

Invariants enforced:
    - Every rate is a ``Decimal``; nothing here is a float.
    - Band and tier tables are ordered by ascending ceiling; the last entry
      has ``ceiling=None`` and catches everything above.
    - ``floor_yen`` is the only rounding primitive: exact floor toward
      negative infinity, then ``int``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal


def floor_yen(amount: Decimal | int) -> int:
    """Floor an exact Decimal amount to whole yen."""
    return int(Decimal(amount).to_integral_value(rounding=ROUND_FLOOR))


# =============================================================================
# Employment-income deduction
# =============================================================================


@dataclass(frozen=True)
class EmploymentDeductionBand:
    """``floor(income * rate) + addend``, or ``flat`` when set."""

    ceiling: int | None
    rate: Decimal = Decimal("0")
    addend: int = 0
    flat: int | None = None

    def applies_to(self, total_income: int) -> bool:
        return self.ceiling is None or total_income <= self.ceiling

    def deduction(self, total_income: int) -> int:
        if self.flat is not None:
            return self.flat
        return floor_yen(Decimal(total_income) * self.rate) + self.addend


EMPLOYMENT_DEDUCTION_BANDS: tuple[EmploymentDeductionBand, ...] = (
    EmploymentDeductionBand(ceiling=1_625_000, flat=550_000),
    EmploymentDeductionBand(ceiling=1_800_000, rate=Decimal("0.4"), addend=-100_000),
    EmploymentDeductionBand(ceiling=3_600_000, rate=Decimal("0.3"), addend=80_000),
    EmploymentDeductionBand(ceiling=6_600_000, rate=Decimal("0.2"), addend=440_000),
    EmploymentDeductionBand(ceiling=8_500_000, rate=Decimal("0.1"), addend=1_100_000),
    EmploymentDeductionBand(ceiling=None, flat=1_950_000),
)


# =============================================================================
# Basic deduction
# =============================================================================


@dataclass(frozen=True)
class Tier:
    ceiling: int | None
    amount: int


BASIC_DEDUCTION_TIERS: tuple[Tier, ...] = (
    Tier(ceiling=24_000_000, amount=480_000),
    Tier(ceiling=24_500_000, amount=320_000),
    Tier(ceiling=25_000_000, amount=160_000),
    Tier(ceiling=None, amount=0),
)


# =============================================================================
# Progressive income tax
# =============================================================================


@dataclass(frozen=True)
class TaxBracket:
    """One row of the quick-calculation table: ``taxable * rate - subtraction``."""

    ceiling: int | None
    rate: Decimal
    subtraction: int

    def applies_to(self, taxable_income: int) -> bool:
        return self.ceiling is None or taxable_income <= self.ceiling


TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(ceiling=1_950_000, rate=Decimal("0.05"), subtraction=0),
    TaxBracket(ceiling=3_300_000, rate=Decimal("0.10"), subtraction=97_500),
    TaxBracket(ceiling=6_950_000, rate=Decimal("0.20"), subtraction=427_500),
    TaxBracket(ceiling=9_000_000, rate=Decimal("0.23"), subtraction=636_000),
    TaxBracket(ceiling=18_000_000, rate=Decimal("0.33"), subtraction=1_536_000),
    TaxBracket(ceiling=40_000_000, rate=Decimal("0.40"), subtraction=2_796_000),
    TaxBracket(ceiling=None, rate=Decimal("0.45"), subtraction=4_796_000),
)

SPECIAL_RECONSTRUCTION_TAX_RATE = Decimal("0.021")


# =============================================================================
# Fixed deduction amounts
# =============================================================================

# Spouse
SPOUSE_DEDUCTION = 380_000
SPOUSE_DEDUCTION_INCOME_LIMIT = 480_000
SPOUSE_SPECIAL_INCOME_LIMIT = 1_330_000
SPOUSE_SPECIAL_STEP = 50_000
SPOUSE_SPECIAL_STEP_AMOUNT = 10_000

# Dependents
GENERAL_DEPENDENT_DEDUCTION = 380_000
SPECIFIC_DEPENDENT_DEDUCTION = 630_000  # aged 19-22
ELDERLY_DEPENDENT_DEDUCTION = 480_000  # aged 70+

# Disability, by category
GENERAL_DISABILITY_DEDUCTION = 270_000
SPECIAL_DISABILITY_DEDUCTION = 400_000
SPECIAL_LIVING_DISABILITY_DEDUCTION = 750_000

WIDOW_DEDUCTION = 270_000
SINGLE_PARENT_DEDUCTION = 350_000
WORKING_STUDENT_DEDUCTION = 270_000

# Life insurance: per-category caps, then a cap on the sum
LIFE_INSURANCE_NEW_CAP = 40_000
LIFE_INSURANCE_OLD_CAP = 50_000
MEDICAL_INSURANCE_CAP = 40_000
PENSION_INSURANCE_NEW_CAP = 40_000
PENSION_INSURANCE_OLD_CAP = 50_000
LIFE_INSURANCE_TOTAL_CAP = 120_000

EARTHQUAKE_INSURANCE_CAP = 50_000

# Mortgage credit defaults when the declaration carries none
DEFAULT_MORTGAGE_RATE = Decimal("0.01")
DEFAULT_MORTGAGE_CAP = 400_000

TAXABLE_INCOME_UNIT = 1_000
