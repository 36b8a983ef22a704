from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("LOG_LEVEL", "warning")

from equipdb.database import Base  # noqa: E402
from equipdb.apps.accounts import models as account_models  # noqa: E402
from equipdb.apps.clients import models as client_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.User.__table__,
            client_models.Client.__table__,
            client_models.Equipment.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


_counter = {"n": 0}


def _make_user(db, role):
    _counter["n"] += 1
    n = _counter["n"]
    user = account_models.User(
        name=f"{role.value.title()} {n}",
        email=f"{role.value}{n}@example.com",
        hashed_password="hashed",
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def admin(db_session):
    return _make_user(db_session, account_models.UserRole.ADMIN)


@pytest.fixture()
def supervisor(db_session):
    return _make_user(db_session, account_models.UserRole.SUPERVISOR)


@pytest.fixture()
def manager(db_session):
    return _make_user(db_session, account_models.UserRole.MANAGER)


@pytest.fixture()
def other_manager(db_session):
    return _make_user(db_session, account_models.UserRole.MANAGER)
