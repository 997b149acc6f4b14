"""
Domain DTOs -- frozen value objects shared by engines, services and batch.

Responsibility:
    Immutable representations of the financial facts the engine consumes
    (``Declaration``, ``Slip``, ``AnnualEarnings``) and the record it
    produces (``YearEndResult``, ``WithholdingSlip``).  ORM models convert
    to these via ``to_dto()``; nothing above the kernel handles raw ORM rows.

Architecture position:
    Kernel > Domain.  ZERO I/O.  MUST NOT import from models/, db/ or outer
    layers.

Invariants enforced:
    - All DTOs are frozen dataclasses.
    - All amounts are integer yen.
    - ``Declaration.empty()`` is the "no declaration" default: every amount 0,
      every flag False.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =============================================================================
# Status enums
# =============================================================================


class DeclarationStatus(str, Enum):
    """Lifecycle of an employee-submitted declaration."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"  # Only approved declarations participate
    REJECTED = "rejected"


class SlipKind(str, Enum):
    SALARY = "salary"
    BONUS = "bonus"


class ResultStatus(str, Enum):
    """Forward-only result lifecycle: calculated -> confirmed -> paid."""

    CALCULATED = "calculated"
    CONFIRMED = "confirmed"
    PAID = "paid"


class ResultAction(str, Enum):
    """External workflow actions that advance a result."""

    CONFIRM = "confirm"
    PAY = "pay"


class DisabilityType(str, Enum):
    GENERAL = "general"
    SPECIAL = "special"
    SPECIAL_LIVING = "special_living"  # Special disability, living together


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Slip statuses that count toward annual earnings
QUALIFYING_SALARY_STATUSES: frozenset[str] = frozenset({"confirmed", "paid"})
QUALIFYING_BONUS_STATUSES: frozenset[str] = frozenset({"approved", "paid"})

# Results a withholding slip may be issued from
FINALIZED_RESULT_STATUSES: frozenset[ResultStatus] = frozenset(
    {ResultStatus.CONFIRMED, ResultStatus.PAID}
)


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class Declaration:
    """Approved year-end declaration inputs for one employee and fiscal year.

    Null fields of a stored declaration are coalesced to zero / False before
    a Declaration is built.
    """

    user_id: str = ""
    fiscal_year: int = 0

    # Spouse
    has_spouse: bool = False
    spouse_income: int = 0
    spouse_age: int = 0

    # Dependents (dependent_count is the total, including sub-counts)
    dependent_count: int = 0
    specific_dependent_count: int = 0  # aged 19-22
    elderly_dependent_count: int = 0  # aged 70+

    # Disability
    is_disabled: bool = False
    disability_type: str | None = None

    # Flat-flag deductions
    is_widow: bool = False
    is_single_parent: bool = False
    is_working_student: bool = False

    # Insurance premiums
    life_insurance_new: int = 0
    life_insurance_old: int = 0
    medical_insurance: int = 0
    pension_insurance_new: int = 0
    pension_insurance_old: int = 0
    earthquake_insurance: int = 0

    # Declared social insurance paid outside payroll
    national_pension: int = 0
    national_health_insurance: int = 0
    other_social_insurance: int = 0

    # Small-business mutual aid / iDeCo
    ideco_amount: int = 0
    small_business_mutual_aid: int = 0

    # Mortgage (rate / cap fall back to configured defaults when None)
    has_mortgage: bool = False
    mortgage_balance: int = 0
    mortgage_rate: Decimal | None = None
    mortgage_cap: int | None = None

    @classmethod
    def empty(cls, user_id: str = "", fiscal_year: int = 0) -> Declaration:
        """Declaration used when the employee has no approved declaration."""
        return cls(user_id=user_id, fiscal_year=fiscal_year)

    def validate(self) -> list[str]:
        """Return a list of consistency problems (empty when consistent)."""
        problems: list[str] = []
        for name in _NON_NEGATIVE_FIELDS:
            if getattr(self, name) < 0:
                problems.append(f"{name} is negative")
        if self.mortgage_cap is not None and self.mortgage_cap < 0:
            problems.append("mortgage_cap is negative")
        if self.mortgage_rate is not None and self.mortgage_rate < 0:
            problems.append("mortgage_rate is negative")
        sub_counts = self.specific_dependent_count + self.elderly_dependent_count
        if sub_counts > self.dependent_count:
            problems.append(
                "specific and elderly dependents exceed dependent_count"
            )
        if self.is_disabled and self.disability_type not in _DISABILITY_VALUES:
            problems.append(f"unknown disability_type {self.disability_type!r}")
        return problems


_NON_NEGATIVE_FIELDS: tuple[str, ...] = (
    "spouse_income",
    "spouse_age",
    "dependent_count",
    "specific_dependent_count",
    "elderly_dependent_count",
    "life_insurance_new",
    "life_insurance_old",
    "medical_insurance",
    "pension_insurance_new",
    "pension_insurance_old",
    "earthquake_insurance",
    "national_pension",
    "national_health_insurance",
    "other_social_insurance",
    "ideco_amount",
    "small_business_mutual_aid",
    "mortgage_balance",
)

_DISABILITY_VALUES = frozenset(t.value for t in DisabilityType)


@dataclass(frozen=True)
class Slip:
    """One salary or bonus slip from the payroll ledgers."""

    kind: SlipKind
    pay_period: str  # "YYYY-MM"
    status: str
    gross_pay: int = 0
    income_tax: int = 0
    health_insurance: int = 0
    pension_insurance: int = 0
    employment_insurance: int = 0

    @property
    def social_insurance(self) -> int:
        return self.health_insurance + self.pension_insurance + self.employment_insurance


@dataclass(frozen=True)
class AnnualEarnings:
    """Annual totals for one employee, folded from qualifying slips."""

    total_salary: int = 0
    total_bonus: int = 0
    withheld_tax: int = 0
    social_insurance_paid: int = 0

    @property
    def total_income(self) -> int:
        return self.total_salary + self.total_bonus


# =============================================================================
# Outputs
# =============================================================================


@dataclass(frozen=True)
class YearEndResult:
    """Immutable snapshot of a persisted year-end result."""

    result_id: UUID
    tenant_id: str
    user_id: str
    fiscal_year: int
    status: ResultStatus

    total_salary: int
    total_bonus: int
    total_income: int
    employment_income_deduction: int
    employment_income: int

    basic_deduction: int
    spouse_deduction: int
    spouse_special_deduction: int
    dependent_deduction: int
    disability_deduction: int
    widow_deduction: int
    single_parent_deduction: int
    working_student_deduction: int
    social_insurance_deduction: int
    life_insurance_deduction: int
    earthquake_insurance_deduction: int
    small_business_mutual_aid_deduction: int
    total_deductions: int

    taxable_income: int
    calculated_tax: int
    special_reconstruction_tax: int
    total_tax: int
    mortgage_deduction: int
    final_tax: int
    withheld_tax_total: int
    adjustment_amount: int
    is_refund: bool

    calculated_at: datetime | None = None
    confirmed_at: datetime | None = None
    confirmed_by: str | None = None
    paid_at: datetime | None = None


@dataclass(frozen=True)
class WithholdingSlip:
    """Annual withholding statement derived from a finalized result."""

    tenant_id: str
    user_id: str
    fiscal_year: int
    employee_name: str
    payment_amount: int
    employment_income: int
    deduction_total: int
    withheld_tax: int
    social_insurance_amount: int
    life_insurance_deduction: int
    earthquake_insurance_deduction: int
    mortgage_deduction: int
    issue_date: date
    has_spouse: bool = False
    spouse_income: int | None = None
    dependent_count: int = 0
    mortgage_balance: int | None = None
    status: str = "draft"
    slip_id: UUID | None = None


@dataclass(frozen=True)
class ResultFilters:
    """Optional filters for result queries."""

    user_id: str | None = None
    fiscal_year: int | None = None
    status: ResultStatus | None = None


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 50

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ResultPage:
    """One page of results plus paging metadata."""

    results: tuple[YearEndResult, ...] = field(default_factory=tuple)
    total: int = 0
    page: int = 1
    limit: int = 50

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
