# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from devlink.db.session import Base, build_engine
from devlink.db.session import get_db as app_get_session
from devlink.main import app as fastapi_app
from devlink.models import Account, BlogPost, LinkedIdentity, Project
from devlink.models.account import ROLE_CLIENT, ROLE_DEVELOPER
from devlink.services.identity import issue_token

TEST_DB_URL = "sqlite://"

_EMAIL_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Plain session on the shared in-memory database.

    Endpoints commit, so each test ends by deleting every row instead of
    rolling back an outer transaction.
    """
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_account(db_session: Session) -> Callable[..., Account]:
    """Return a factory that persists accounts with sensible defaults."""

    def _make(**overrides: Any) -> Account:
        n = next(_EMAIL_COUNTER)
        values: dict[str, Any] = {
            "email": f"user{n}@example.com",
            "role": ROLE_DEVELOPER,
            "approved": True,
            "skills": [],
        }
        values.update(overrides)
        account = Account(**values)
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture()
def developer(make_account: Callable[..., Account]) -> Account:
    """Approved developer with a handle and declared skills."""
    return make_account(
        username="alex",
        name="Alex Dev",
        skills=["Python", "React"],
    )


@pytest.fixture()
def client_account(make_account: Callable[..., Account]) -> Account:
    """Approved client account."""
    return make_account(username="casey", name="Casey Client", role=ROLE_CLIENT)


@pytest.fixture()
def admin_account(make_account: Callable[..., Account]) -> Account:
    return make_account(username="root", name="Admin", is_admin=True)


@pytest.fixture()
def make_headers() -> Callable[[Account], dict[str, str]]:
    """Return a helper building Bearer headers for an account."""

    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(account)}"}

    return _headers


@pytest.fixture()
def developer_headers(developer: Account, make_headers) -> dict[str, str]:
    return make_headers(developer)


@pytest.fixture()
def client_headers(client_account: Account, make_headers) -> dict[str, str]:
    return make_headers(client_account)


@pytest.fixture()
def admin_headers(admin_account: Account, make_headers) -> dict[str, str]:
    return make_headers(admin_account)


@pytest.fixture()
def project(db_session: Session, developer: Account) -> Project:
    """Project owned by the developer fixture."""
    project = Project(owner_id=developer.id, title="Realtime Dashboard")
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture()
def blog_post(db_session: Session, developer: Account) -> BlogPost:
    post = BlogPost(owner_id=developer.id, title="Shipping Fast", slug="shipping-fast")
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture()
def github_identity(db_session: Session, developer: Account) -> LinkedIdentity:
    """GitHub identity with a stored access token for the developer fixture."""
    identity = LinkedIdentity(
        provider="github",
        provider_account_id="1001",
        account_id=developer.id,
        access_token="gho_test_token",
    )
    db_session.add(identity)
    db_session.commit()
    return identity
