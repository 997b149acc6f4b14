"""
Module: yearend_kernel.models.result
Responsibility: ORM persistence for year-end reconciliation results -- the
    one record the engine writes per (tenant, user, fiscal year).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - UNIQUE (tenant_id, user_id, fiscal_year): recompute upserts, never
      duplicates.
    - adjustment_amount = withheld_tax_total - final_tax and
      is_refund = adjustment_amount > 0 (computed upstream, stored verbatim).
    - Status lifecycle calculated -> confirmed -> paid, forward only.
      apply_figures() is only legal while status is 'calculated'.

Failure modes:
    - ValueError from apply_figures()/confirm()/mark_paid() when the current
      status forbids the mutation.  Repositories check first and raise the
      typed workflow exceptions; the ValueError is a last line.
"""

from collections.abc import Mapping
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yearend_kernel.db.base import TrackedBase
from yearend_kernel.domain.dtos import ResultAction, ResultStatus, YearEndResult

# Every computed column, in persisted order.  A recompute replaces all of them.
FIGURE_COLUMNS: tuple[str, ...] = (
    "total_salary",
    "total_bonus",
    "total_income",
    "employment_income_deduction",
    "employment_income",
    "basic_deduction",
    "spouse_deduction",
    "spouse_special_deduction",
    "dependent_deduction",
    "disability_deduction",
    "widow_deduction",
    "single_parent_deduction",
    "working_student_deduction",
    "social_insurance_deduction",
    "life_insurance_deduction",
    "earthquake_insurance_deduction",
    "small_business_mutual_aid_deduction",
    "total_deductions",
    "taxable_income",
    "calculated_tax",
    "special_reconstruction_tax",
    "total_tax",
    "mortgage_deduction",
    "final_tax",
    "withheld_tax_total",
    "adjustment_amount",
    "is_refund",
)

# Allowed (from_status, action) -> to_status
_TRANSITIONS: dict[tuple[ResultStatus, ResultAction], ResultStatus] = {
    (ResultStatus.CALCULATED, ResultAction.CONFIRM): ResultStatus.CONFIRMED,
    (ResultStatus.CONFIRMED, ResultAction.PAY): ResultStatus.PAID,
}


class YearEndResultModel(TrackedBase):
    """Persisted reconciliation result for one employee and fiscal year."""

    __tablename__ = "year_end_results"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "user_id", "fiscal_year",
            name="uq_result_tenant_user_year",
        ),
        Index("idx_result_tenant_year", "tenant_id", "fiscal_year"),
        Index("idx_result_status", "tenant_id", "status"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Earnings
    total_salary: Mapped[int] = mapped_column(default=0, nullable=False)
    total_bonus: Mapped[int] = mapped_column(default=0, nullable=False)
    total_income: Mapped[int] = mapped_column(default=0, nullable=False)
    employment_income_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    employment_income: Mapped[int] = mapped_column(default=0, nullable=False)

    # Deductions
    basic_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    spouse_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    spouse_special_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    dependent_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    disability_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    widow_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    single_parent_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    working_student_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    social_insurance_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    life_insurance_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    earthquake_insurance_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    small_business_mutual_aid_deduction: Mapped[int] = mapped_column(
        default=0, nullable=False,
    )
    total_deductions: Mapped[int] = mapped_column(default=0, nullable=False)

    # Tax
    taxable_income: Mapped[int] = mapped_column(default=0, nullable=False)
    calculated_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    special_reconstruction_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    total_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    mortgage_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    final_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    withheld_tax_total: Mapped[int] = mapped_column(default=0, nullable=False)

    # Signed: positive is a refund owed to the employee
    adjustment_amount: Mapped[int] = mapped_column(default=0, nullable=False)
    is_refund: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=ResultStatus.CALCULATED.value, nullable=False,
    )

    calculated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    # Workflow actor, free-form user id from the calling system
    confirmed_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<YearEndResult {self.tenant_id}/{self.user_id}/{self.fiscal_year}: "
            f"{self.status} adj={self.adjustment_amount}>"
        )

    @property
    def result_status(self) -> ResultStatus:
        return ResultStatus(self.status)

    @property
    def is_recomputable(self) -> bool:
        return self.result_status == ResultStatus.CALCULATED

    def next_status(self, action: ResultAction) -> ResultStatus | None:
        """Target status for *action*, or None when the step is not allowed."""
        return _TRANSITIONS.get((self.result_status, action))

    def apply_figures(
        self,
        figures: Mapping[str, int | bool],
        calculated_at: datetime,
        actor_id: UUID,
    ) -> None:
        """Replace every computed column and reset status to 'calculated'.

        Raises: ValueError if the result has advanced past 'calculated'.
        """
        if self.status is not None and not self.is_recomputable:
            raise ValueError(
                f"Result {self.user_id}/{self.fiscal_year} is {self.status}"
            )
        for column in FIGURE_COLUMNS:
            setattr(self, column, figures[column])
        self.status = ResultStatus.CALCULATED.value
        self.calculated_at = calculated_at
        if self.created_by_id is None:
            self.created_by_id = actor_id
        else:
            self.updated_by_id = actor_id

    def confirm(self, confirmed_by: str, confirmed_at: datetime) -> None:
        """calculated -> confirmed.  Stamps confirmer and timestamp."""
        if self.next_status(ResultAction.CONFIRM) is None:
            raise ValueError(f"Result {self.id} cannot be confirmed from {self.status}")
        self.status = ResultStatus.CONFIRMED.value
        self.confirmed_by = confirmed_by
        self.confirmed_at = confirmed_at

    def mark_paid(self, paid_at: datetime) -> None:
        """confirmed -> paid.  Stamps payment timestamp."""
        if self.next_status(ResultAction.PAY) is None:
            raise ValueError(f"Result {self.id} cannot be paid from {self.status}")
        self.status = ResultStatus.PAID.value
        self.paid_at = paid_at

    def to_dto(self) -> YearEndResult:
        return YearEndResult(
            result_id=self.id,
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            fiscal_year=self.fiscal_year,
            status=ResultStatus(self.status),
            calculated_at=self.calculated_at,
            confirmed_at=self.confirmed_at,
            confirmed_by=self.confirmed_by,
            paid_at=self.paid_at,
            **{column: getattr(self, column) for column in FIGURE_COLUMNS},
        )
