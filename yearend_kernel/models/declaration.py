"""
Module: yearend_kernel.models.declaration
Responsibility: Read model of employee year-end declarations (spouse,
    dependents, insurance, mortgage inputs).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - One declaration per (tenant_id, user_id, fiscal_year).
    - to_dto() coalesces every null numeric column to 0 and every null flag
      to False; null mortgage rate/cap stay None so configured defaults apply.

Non-goals:
    The capture/submit/approve flow is owned by an external system.  Only rows
    with status 'approved' are ever read by the engine.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yearend_kernel.db.base import Base
from yearend_kernel.domain.dtos import Declaration, DeclarationStatus


class YearEndDeclaration(Base):
    """Employee-submitted year-end declaration."""

    __tablename__ = "year_end_declarations"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "user_id", "fiscal_year",
            name="uq_declaration_tenant_user_year",
        ),
        Index("idx_declaration_status", "tenant_id", "fiscal_year", "status"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DeclarationStatus.DRAFT.value, nullable=False,
    )

    # Spouse
    has_spouse: Mapped[bool | None] = mapped_column(Boolean, default=False)
    spouse_income: Mapped[int | None] = mapped_column(nullable=True)
    spouse_age: Mapped[int | None] = mapped_column(nullable=True)

    # Dependents
    dependent_count: Mapped[int | None] = mapped_column(default=0)
    specific_dependent_count: Mapped[int | None] = mapped_column(default=0)
    elderly_dependent_count: Mapped[int | None] = mapped_column(default=0)

    # Disability and flags
    is_disabled: Mapped[bool | None] = mapped_column(Boolean, default=False)
    disability_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_widow: Mapped[bool | None] = mapped_column(Boolean, default=False)
    is_single_parent: Mapped[bool | None] = mapped_column(Boolean, default=False)
    is_working_student: Mapped[bool | None] = mapped_column(Boolean, default=False)

    # Insurance premiums
    life_insurance_new: Mapped[int | None] = mapped_column(default=0)
    life_insurance_old: Mapped[int | None] = mapped_column(default=0)
    medical_insurance: Mapped[int | None] = mapped_column(default=0)
    pension_insurance_new: Mapped[int | None] = mapped_column(default=0)
    pension_insurance_old: Mapped[int | None] = mapped_column(default=0)
    earthquake_insurance: Mapped[int | None] = mapped_column(default=0)

    # Declared social insurance
    national_pension: Mapped[int | None] = mapped_column(default=0)
    national_health_insurance: Mapped[int | None] = mapped_column(default=0)
    other_social_insurance: Mapped[int | None] = mapped_column(default=0)

    # Mutual aid / iDeCo
    ideco_amount: Mapped[int | None] = mapped_column(default=0)
    small_business_mutual_aid: Mapped[int | None] = mapped_column(default=0)

    # Mortgage
    has_mortgage: Mapped[bool | None] = mapped_column(Boolean, default=False)
    mortgage_balance: Mapped[int | None] = mapped_column(nullable=True)
    mortgage_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    mortgage_cap: Mapped[int | None] = mapped_column(nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<YearEndDeclaration {self.tenant_id}/{self.user_id}/"
            f"{self.fiscal_year}: {self.status}>"
        )

    def to_dto(self) -> Declaration:
        return Declaration(
            user_id=self.user_id,
            fiscal_year=self.fiscal_year,
            has_spouse=bool(self.has_spouse),
            spouse_income=self.spouse_income or 0,
            spouse_age=self.spouse_age or 0,
            dependent_count=self.dependent_count or 0,
            specific_dependent_count=self.specific_dependent_count or 0,
            elderly_dependent_count=self.elderly_dependent_count or 0,
            is_disabled=bool(self.is_disabled),
            disability_type=self.disability_type,
            is_widow=bool(self.is_widow),
            is_single_parent=bool(self.is_single_parent),
            is_working_student=bool(self.is_working_student),
            life_insurance_new=self.life_insurance_new or 0,
            life_insurance_old=self.life_insurance_old or 0,
            medical_insurance=self.medical_insurance or 0,
            pension_insurance_new=self.pension_insurance_new or 0,
            pension_insurance_old=self.pension_insurance_old or 0,
            earthquake_insurance=self.earthquake_insurance or 0,
            national_pension=self.national_pension or 0,
            national_health_insurance=self.national_health_insurance or 0,
            other_social_insurance=self.other_social_insurance or 0,
            ideco_amount=self.ideco_amount or 0,
            small_business_mutual_aid=self.small_business_mutual_aid or 0,
            has_mortgage=bool(self.has_mortgage),
            mortgage_balance=self.mortgage_balance or 0,
            mortgage_rate=self.mortgage_rate,
            mortgage_cap=self.mortgage_cap,
        )
