"""
Tests for the unit of work and driver error translation
"""
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.database import database_errors, unit_of_work
from app.core.errors import (ConflictError, IntegrityViolation,
                             TransportFailure)
from app.models.component import Component
from app.utils.datetime_utils import utc_now


def _component(name="Transient"):
    now = utc_now()
    return Component(
        owner_id="user-alice", kind="role", name=name, content="x",
        tags=[], usage_count=0, created_at=now, updated_at=now,
    )


def test_unit_of_work_commits(db, session_factory):
    with unit_of_work(db):
        db.add(_component("Committed"))

    other = session_factory()
    try:
        assert other.query(Component).filter(Component.name == "Committed").count() == 1
    finally:
        other.close()


def test_domain_error_rolls_back(db):
    with pytest.raises(ConflictError):
        with unit_of_work(db):
            db.add(_component())
            db.flush()
            raise ConflictError("stop")

    assert db.query(Component).count() == 0


def test_unexpected_error_rolls_back(db):
    with pytest.raises(RuntimeError):
        with unit_of_work(db):
            db.add(_component())
            db.flush()
            raise RuntimeError("boom")

    assert db.query(Component).count() == 0


def test_constraint_violation_becomes_integrity_violation(db):
    broken = _component()
    broken.usage_count = -1

    with pytest.raises(IntegrityViolation) as exc_info:
        with unit_of_work(db):
            db.add(broken)

    assert exc_info.value.retryable
    assert db.query(Component).count() == 0


def test_database_errors_translation():
    with pytest.raises(IntegrityViolation):
        with database_errors():
            raise IntegrityError("INSERT", {}, Exception("duplicate"))

    with pytest.raises(TransportFailure) as exc_info:
        with database_errors():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))
    assert exc_info.value.status_code == 503
