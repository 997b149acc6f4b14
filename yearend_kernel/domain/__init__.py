"""
Pure domain layer.

Immutable DTOs and the injectable clock, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O
"""

from yearend_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from yearend_kernel.domain.dtos import (
    FINALIZED_RESULT_STATUSES,
    QUALIFYING_BONUS_STATUSES,
    QUALIFYING_SALARY_STATUSES,
    AnnualEarnings,
    Declaration,
    DeclarationStatus,
    DisabilityType,
    EmployeeStatus,
    Pagination,
    ResultAction,
    ResultFilters,
    ResultPage,
    ResultStatus,
    Slip,
    SlipKind,
    WithholdingSlip,
    YearEndResult,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "FINALIZED_RESULT_STATUSES",
    "QUALIFYING_BONUS_STATUSES",
    "QUALIFYING_SALARY_STATUSES",
    "AnnualEarnings",
    "Declaration",
    "DeclarationStatus",
    "DisabilityType",
    "EmployeeStatus",
    "Pagination",
    "ResultAction",
    "ResultFilters",
    "ResultPage",
    "ResultStatus",
    "Slip",
    "SlipKind",
    "WithholdingSlip",
    "YearEndResult",
]
