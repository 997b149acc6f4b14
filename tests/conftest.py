"""
Pytest fixtures for the year-end reconciliation test suite.

Provides:
- File-backed SQLite database per test (worker threads need a shared file,
  not an in-memory connection)
- Deterministic clock
- Structured log capture
- Seed helpers for employees, declarations and payroll slips.  Seed helpers
  commit, so the data is visible to batch worker sessions.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import UUID

import pytest
from sqlalchemy.orm import Session, sessionmaker

import yearend_batch.models  # noqa: F401
import yearend_kernel.models  # noqa: F401
from yearend_config.schema import YearEndConfig
from yearend_kernel.db.base import Base
from yearend_kernel.db.engine import build_engine
from yearend_kernel.domain.clock import DeterministicClock
from yearend_kernel.domain.dtos import DeclarationStatus, EmployeeStatus
from yearend_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from yearend_kernel.models.declaration import YearEndDeclaration
from yearend_kernel.models.employee import Employee
from yearend_kernel.models.payroll import BonusSlip, SalarySlip

TEST_ACTOR_ID = UUID("00000000-0000-0000-0000-0000000000aa")
TENANT = "tenant-001"
FISCAL_YEAR = 2024


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture yearend logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "result_upserted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("yearend")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'yearend.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    s = session_factory()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


@pytest.fixture
def clock():
    return DeterministicClock(
        fixed_time=datetime(2025, 1, 10, 9, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def config(tmp_path):
    return YearEndConfig(
        database_url=f"sqlite:///{tmp_path / 'yearend.db'}",
        max_workers=4,
        default_page_size=2,
        max_page_size=3,
        actor_id=TEST_ACTOR_ID,
    )


# =============================================================================
# Seed helpers
# =============================================================================


class Seeder:
    """Writes read-model rows and commits so batch worker sessions see them."""

    def __init__(self, session: Session):
        self.session = session

    def employee(
        self,
        user_id: str,
        name: str | None = None,
        tenant_id: str = TENANT,
        status: str = EmployeeStatus.ACTIVE.value,
    ) -> Employee:
        employee = Employee(
            tenant_id=tenant_id,
            user_id=user_id,
            name=name or f"Employee {user_id}",
            status=status,
        )
        self.session.add(employee)
        self.session.commit()
        return employee

    def salary(
        self,
        user_id: str,
        annual_gross: int,
        annual_tax: int = 0,
        annual_social_insurance: int = 0,
        fiscal_year: int = FISCAL_YEAR,
        months: int = 12,
        status: str = "confirmed",
        tenant_id: str = TENANT,
    ) -> None:
        """Spread annual amounts over *months* slips; the last slip takes the remainder."""

        def share(total: int, month: int) -> int:
            base = total // months
            return total - base * (months - 1) if month == months else base

        for month in range(1, months + 1):
            self.session.add(
                SalarySlip(
                    tenant_id=tenant_id,
                    user_id=user_id,
                    pay_period=f"{fiscal_year}-{month:02d}",
                    status=status,
                    gross_pay=share(annual_gross, month),
                    income_tax=share(annual_tax, month),
                    health_insurance=share(annual_social_insurance, month),
                    pension_insurance=0,
                    employment_insurance=0,
                )
            )
        self.session.commit()

    def bonus(
        self,
        user_id: str,
        gross_bonus: int,
        income_tax: int = 0,
        pay_period: str = f"{FISCAL_YEAR}-06",
        status: str = "approved",
        tenant_id: str = TENANT,
    ) -> None:
        self.session.add(
            BonusSlip(
                tenant_id=tenant_id,
                user_id=user_id,
                pay_period=pay_period,
                status=status,
                gross_bonus=gross_bonus,
                income_tax=income_tax,
            )
        )
        self.session.commit()

    def declaration(
        self,
        user_id: str,
        fiscal_year: int = FISCAL_YEAR,
        tenant_id: str = TENANT,
        status: str = DeclarationStatus.APPROVED.value,
        **fields,
    ) -> YearEndDeclaration:
        declaration = YearEndDeclaration(
            tenant_id=tenant_id,
            user_id=user_id,
            fiscal_year=fiscal_year,
            status=status,
            **fields,
        )
        self.session.add(declaration)
        self.session.commit()
        return declaration

    def scenario_a(self, user_id: str = "u-a") -> None:
        """Salary 4,000,000, no bonus, no declaration, 300,000 withheld."""
        self.employee(user_id)
        self.salary(user_id, annual_gross=4_000_000, annual_tax=300_000)


@pytest.fixture
def seed(session) -> Seeder:
    return Seeder(session)
