"""
Module: yearend_kernel.models.employee
Responsibility: Read model of the tenant employee directory consumed by the
    batch runner to resolve "all active employees".
Architecture position: Kernel > Models.  May import from db/base.py only.

Non-goals:
    Employee master data is owned by an external system; this engine never
    writes to the table outside of tests and seeding scripts.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yearend_kernel.db.base import Base
from yearend_kernel.domain.dtos import EmployeeStatus


class Employee(Base):
    """Employee directory entry, unique per (tenant_id, user_id)."""

    __tablename__ = "employees"

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_employee_tenant_user"),
        Index("idx_employee_tenant_status", "tenant_id", "status"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=EmployeeStatus.ACTIVE.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Employee {self.tenant_id}/{self.user_id}: {self.status}>"

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value
