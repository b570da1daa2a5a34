from __future__ import annotations
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ebes.db.database import Base, get_db
from ebes.main import app
from ebes.models import User
from ebes.services.admin import create_user
from ebes.services.seed import seed_defaults
from ebes.utils.auth import create_access_token


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db = TestingSession()
    seed_defaults(db)
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    def _make(role: str, email: str | None = None, name: str | None = None):
        email = email or f"{role}-{db_session.query(User).count() + 1}@example.com"
        return create_user(db_session, name or role.replace("_", " ").title(), email, "secret", role)

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}

    return _headers
