"""
Tests for yearend_kernel.db.engine -- module-level engine and session scope.
"""

import pytest
from sqlalchemy import func, select

from yearend_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from yearend_kernel.models.employee import Employee


@pytest.fixture
def module_engine(tmp_path):
    init_engine_from_url(f"sqlite:///{tmp_path / 'scope.db'}")
    create_tables()
    yield
    drop_tables()
    reset_engine()


class TestUninitialized:
    def test_get_session_requires_init(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()


class TestSessionScope:
    def _count(self):
        with get_session_factory()() as s:
            return s.execute(select(func.count(Employee.id))).scalar_one()

    def test_commits_on_success(self, module_engine):
        with session_scope() as session:
            session.add(Employee(tenant_id="t", user_id="u-1", name="A"))

        assert self._count() == 1

    def test_rolls_back_on_error(self, module_engine):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Employee(tenant_id="t", user_id="u-1", name="A"))
                session.flush()
                raise RuntimeError("abort")

        assert self._count() == 0

    def test_savepoint_rollback_keeps_outer_work(self, module_engine):
        with session_scope() as session:
            session.add(Employee(tenant_id="t", user_id="u-1", name="A"))
            savepoint = session.begin_nested()
            session.add(Employee(tenant_id="t", user_id="u-2", name="B"))
            session.flush()
            savepoint.rollback()

        assert self._count() == 1
