import os
import tempfile

_LOG_DIR = tempfile.mkdtemp(prefix="family-money-logs-")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-0123456789")
os.environ.setdefault("LOG_FILE_PATH", os.path.join(_LOG_DIR, "family-money.log"))
os.environ.setdefault("FRONTEND_LOG_FILE_PATH", os.path.join(_LOG_DIR, "family-money-frontend.log"))
os.environ.setdefault("AUTH_PASSWORD_MIN_LENGTH", "8")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base, GetDb
from app.modules.auth import models as auth_models  # noqa: F401
from app.modules.notifications import models as notifications_models  # noqa: F401
from app.modules.notifications import services as notifications_services
from app.modules.transactions import models as transactions_models  # noqa: F401


@pytest.fixture(autouse=True)
def _clean_policy_env(monkeypatch):
    for name in ("TRANSACTIONS_LOCK_DECISIONS", "VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY", "VAPID_MAILTO"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    from app.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[GetDb] = _get_db
    monkeypatch.setattr(notifications_services, "OpenSession", session_factory)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
