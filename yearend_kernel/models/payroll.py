"""
Module: yearend_kernel.models.payroll
Responsibility: Read models of the salary and bonus slip ledgers.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Non-goals:
    Slips are produced and confirmed by the external payroll system.  The
    engine only reads them, filtered by tenant, user, pay period prefix
    (the fiscal year) and status.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from yearend_kernel.db.base import Base
from yearend_kernel.domain.dtos import Slip, SlipKind


class SalarySlip(Base):
    """Monthly salary slip."""

    __tablename__ = "pay_slips"

    __table_args__ = (
        Index("idx_pay_slip_user_period", "tenant_id", "user_id", "pay_period"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)  # "YYYY-MM"
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    gross_pay: Mapped[int] = mapped_column(default=0, nullable=False)
    income_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    health_insurance: Mapped[int] = mapped_column(default=0, nullable=False)
    pension_insurance: Mapped[int] = mapped_column(default=0, nullable=False)
    employment_insurance: Mapped[int] = mapped_column(default=0, nullable=False)

    def to_dto(self) -> Slip:
        return Slip(
            kind=SlipKind.SALARY,
            pay_period=self.pay_period,
            status=self.status,
            gross_pay=self.gross_pay,
            income_tax=self.income_tax,
            health_insurance=self.health_insurance,
            pension_insurance=self.pension_insurance,
            employment_insurance=self.employment_insurance,
        )


class BonusSlip(Base):
    """Bonus payment slip."""

    __tablename__ = "bonus_slips"

    __table_args__ = (
        Index("idx_bonus_slip_user_period", "tenant_id", "user_id", "pay_period"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    gross_bonus: Mapped[int] = mapped_column(default=0, nullable=False)
    income_tax: Mapped[int] = mapped_column(default=0, nullable=False)
    health_insurance: Mapped[int] = mapped_column(default=0, nullable=False)
    pension_insurance: Mapped[int] = mapped_column(default=0, nullable=False)
    employment_insurance: Mapped[int] = mapped_column(default=0, nullable=False)

    def to_dto(self) -> Slip:
        return Slip(
            kind=SlipKind.BONUS,
            pay_period=self.pay_period,
            status=self.status,
            gross_pay=self.gross_bonus,
            income_tax=self.income_tax,
            health_insurance=self.health_insurance,
            pension_insurance=self.pension_insurance,
            employment_insurance=self.employment_insurance,
        )
