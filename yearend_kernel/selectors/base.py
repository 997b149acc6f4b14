"""
Read-side base for query objects over one ORM model.

A selector borrows the caller's Session, runs SELECTs only and hands back
frozen DTOs from yearend_kernel.domain.dtos, never ORM rows.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from yearend_kernel.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseSelector(Generic[ModelT]):
    """Holds the borrowed session.  Subclasses never add, flush or commit."""

    def __init__(self, session: Session):
        self.session = session
