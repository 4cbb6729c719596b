# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_PASSWORD", "letmein")
os.environ.setdefault("UPLOAD_BATCH_DELAY_SECONDS", "0")

from resto_pulse.core.security import create_admin_token, login_throttle
from resto_pulse.core.settings import Settings
from resto_pulse.db.session import Base
from resto_pulse.db.session import get_db as app_get_session
from resto_pulse.main import app as fastapi_app
from resto_pulse.models import Restaurant, Suggestion
from resto_pulse.services.aggregates import refresh_restaurant_stats

TEST_DB_URL = "sqlite://"

_TEST_SETTINGS_INSTANCE = Settings()


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; emit it ourselves so SAVEPOINTs nest correctly.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits release a savepoint; the outer transaction is rolled back below.
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
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


@pytest.fixture(autouse=True)
def reset_login_throttle() -> Iterator[None]:
    login_throttle.reset()
    yield
    login_throttle.reset()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def make_restaurant(db_session: Session) -> Callable[..., Restaurant]:
    """Return a factory that persists restaurants with an empty rollup."""

    def _make(**fields: Any) -> Restaurant:
        values = {"name": "Papa G'z", "description": "Pakistani, Desi", "is_active": True}
        values.update(fields)
        restaurant = Restaurant(**values)
        db_session.add(restaurant)
        db_session.flush()
        refresh_restaurant_stats(db_session, restaurant.id)
        db_session.commit()
        return restaurant

    return _make


@pytest.fixture()
def restaurant(make_restaurant: Callable[..., Restaurant]) -> Restaurant:
    """Create the default active restaurant with id 42."""
    return make_restaurant(id=42)


@pytest.fixture()
def make_suggestion(db_session: Session) -> Callable[..., Suggestion]:
    """Return a factory that persists suggestions authored by ``author``."""

    def _make(suggestion_id: str = "p1", author: str = "device_author", **fields: Any) -> Suggestion:
        values = {
            "id": suggestion_id,
            "title": "More vegetarian options",
            "content": "Please add a paneer dish to the menu.",
            "type": "suggestion",
            "identity_token": author,
        }
        values.update(fields)
        suggestion = Suggestion(**values)
        db_session.add(suggestion)
        db_session.commit()
        return suggestion

    return _make


@pytest.fixture()
def suggestion(make_suggestion: Callable[..., Suggestion]) -> Suggestion:
    return make_suggestion()


@pytest.fixture()
def device_headers() -> Callable[[str], dict[str, str]]:
    """Return a helper building the identity header for a device id."""

    def _headers(identity: str) -> dict[str, str]:
        return {"X-Device-Id": identity}

    return _headers


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Return authorization headers carrying a valid admin token."""
    return {"Authorization": f"Bearer {create_admin_token()}"}


class FrozenClock:
    """Callable clock whose time tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def frozen_clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 14, 12, 0, tzinfo=UTC))
