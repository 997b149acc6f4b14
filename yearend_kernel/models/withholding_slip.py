"""
Module: yearend_kernel.models.withholding_slip
Responsibility: ORM persistence for annual withholding statements issued
    from finalized year-end results.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - One non-reissue slip per (tenant_id, user_id, fiscal_year); issuing
      again overwrites it in place.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yearend_kernel.db.base import TrackedBase
from yearend_kernel.domain.dtos import WithholdingSlip

SLIP_COLUMNS: tuple[str, ...] = (
    "employee_name",
    "payment_amount",
    "employment_income",
    "deduction_total",
    "withheld_tax",
    "has_spouse",
    "spouse_income",
    "dependent_count",
    "social_insurance_amount",
    "life_insurance_deduction",
    "earthquake_insurance_deduction",
    "mortgage_deduction",
    "mortgage_balance",
    "issue_date",
    "status",
)


class WithholdingSlipModel(TrackedBase):
    """Annual withholding statement (gensen choushuu-hyou)."""

    __tablename__ = "withholding_slips"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "user_id", "fiscal_year", "is_reissue",
            name="uq_withholding_slip_key",
        ),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)

    payment_amount: Mapped[int] = mapped_column(nullable=False)
    employment_income: Mapped[int] = mapped_column(nullable=False)
    deduction_total: Mapped[int] = mapped_column(nullable=False)
    withheld_tax: Mapped[int] = mapped_column(nullable=False)

    has_spouse: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    spouse_income: Mapped[int | None] = mapped_column(nullable=True)
    dependent_count: Mapped[int] = mapped_column(default=0, nullable=False)

    social_insurance_amount: Mapped[int] = mapped_column(default=0, nullable=False)
    life_insurance_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    earthquake_insurance_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    mortgage_deduction: Mapped[int] = mapped_column(default=0, nullable=False)
    mortgage_balance: Mapped[int | None] = mapped_column(nullable=True)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    is_reissue: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<WithholdingSlip {self.tenant_id}/{self.user_id}/{self.fiscal_year} "
            f"issued {self.issue_date}>"
        )

    def overwrite_from(self, slip: WithholdingSlip, actor_id: UUID) -> None:
        for column in SLIP_COLUMNS:
            setattr(self, column, getattr(slip, column))
        if self.created_by_id is None:
            self.created_by_id = actor_id
        else:
            self.updated_by_id = actor_id

    def to_dto(self) -> WithholdingSlip:
        return WithholdingSlip(
            slip_id=self.id,
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            fiscal_year=self.fiscal_year,
            **{column: getattr(self, column) for column in SLIP_COLUMNS},
        )
