"""
Persistence for year-end batch runs.

A ``batch_jobs`` row records one reconciliation or slip-issuance run for a
tenant and fiscal year; ``batch_items`` holds one row per employee touched
by that run.  Together they are the run history an operator reads back via
``get_job`` / ``get_job_items``.

Invariants enforced:
    - ``idempotency_key`` is UNIQUE, so a run is submitted at most once.
    - (job_id, item_index) is UNIQUE; item order is the order employees
      were prepared in.
    - tenant_id and fiscal_year are copied out of the job parameters so
      run history can be filtered without parsing JSON.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from yearend_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from yearend_batch.domain.types import BatchItemResult, BatchJob

# Columns copied one-to-one between BatchJob and BatchJobModel.
_JOB_FIELDS = (
    "job_name",
    "task_type",
    "idempotency_key",
    "total_items",
    "succeeded_items",
    "failed_items",
    "started_at",
    "completed_at",
    "correlation_id",
    "error_summary",
)

# Columns copied one-to-one between BatchItemResult and BatchItemModel.
_ITEM_FIELDS = (
    "item_index",
    "item_key",
    "error_code",
    "error_message",
    "result_data",
    "duration_ms",
    "started_at",
    "completed_at",
)


class BatchJobModel(TrackedBase):
    """One year-end run (reconciliation or withholding slips)."""

    __tablename__ = "batch_jobs"

    __table_args__ = (
        Index("idx_batch_job_tenant_year", "tenant_id", "fiscal_year"),
        Index("idx_batch_job_status", "status"),
    )

    job_name: Mapped[str] = mapped_column(String(200), nullable=False)
    task_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fiscal_year: Mapped[int | None] = mapped_column(nullable=True)
    parameters: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Employee counters, filled in when the run finishes
    total_items: Mapped[int] = mapped_column(default=0, nullable=False)
    succeeded_items: Mapped[int] = mapped_column(default=0, nullable=False)
    failed_items: Mapped[int] = mapped_column(default=0, nullable=False)

    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    correlation_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list[BatchItemModel]] = relationship(
        back_populates="job",
        order_by="BatchItemModel.item_index",
    )

    def __repr__(self) -> str:
        return (
            f"<BatchJob {self.task_type} {self.tenant_id}/{self.fiscal_year}: "
            f"{self.status} {self.succeeded_items}/{self.total_items}>"
        )

    def to_dto(self) -> BatchJob:
        from yearend_batch.domain.types import BatchJob, BatchJobStatus

        return BatchJob(
            job_id=self.id,
            status=BatchJobStatus(self.status),
            parameters=dict(self.parameters or {}),
            created_at=self.created_at,
            created_by=self.created_by_id,
            **{name: getattr(self, name) for name in _JOB_FIELDS},
        )

    @classmethod
    def from_dto(cls, dto: BatchJob, created_by_id: UUID) -> BatchJobModel:
        params: dict[str, Any] = dict(dto.parameters or {})
        fiscal_year = params.get("fiscal_year")
        return cls(
            id=dto.job_id,
            status=dto.status.value,
            tenant_id=params.get("tenant_id"),
            fiscal_year=fiscal_year if isinstance(fiscal_year, int) else None,
            parameters=params or None,
            created_by_id=created_by_id,
            **{name: getattr(dto, name) for name in _JOB_FIELDS},
        )


class BatchItemModel(TrackedBase):
    """Outcome for one employee within a run."""

    __tablename__ = "batch_items"

    __table_args__ = (
        UniqueConstraint("job_id", "item_index", name="uq_batch_item_position"),
        Index("idx_batch_item_job_status", "job_id", "status"),
        Index("idx_batch_item_key", "item_key"),
    )

    job_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("batch_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_index: Mapped[int] = mapped_column(nullable=False)
    item_key: Mapped[str] = mapped_column(String(64), nullable=False)  # user_id
    status: Mapped[str] = mapped_column(String(30), nullable=False)

    error_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    duration_ms: Mapped[int] = mapped_column(default=0, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    job: Mapped[BatchJobModel] = relationship(back_populates="items")

    def to_dto(self) -> BatchItemResult:
        from yearend_batch.domain.types import BatchItemResult, BatchItemStatus

        return BatchItemResult(
            status=BatchItemStatus(self.status),
            **{name: getattr(self, name) for name in _ITEM_FIELDS},
        )

    @classmethod
    def from_dto(
        cls, dto: BatchItemResult, job_id: UUID, created_by_id: UUID,
    ) -> BatchItemModel:
        return cls(
            job_id=job_id,
            status=dto.status.value,
            created_by_id=created_by_id,
            **{name: getattr(dto, name) for name in _ITEM_FIELDS},
        )
