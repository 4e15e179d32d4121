import os

# Settings are read on first use; these must be in place before app imports
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only-min-32-chars")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GATEWAY_BACKEND", "local")

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import Settings
from app.core.password import get_password_hash
from app.exceptions import (
    InvalidCredentialsError,
    MutationError,
    QueryError,
    SubscriptionError,
)
from app.gateway.base import (
    AuthCallback,
    ChangeCallback,
    ChangeEvent,
    DataGateway,
    QueryOptions,
    Record,
    SubscriptionHandle,
)
from app.gateway.changes import ChangeFeed
from app.gateway.sql import SqlGateway
from app.main import app
from app.models.admin import Admin
from app.models.enums import AuthEvent, ChangeType
from app.models.session import AuthSession

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpassword123"


class FakeGateway(DataGateway):
    """In-memory gateway whose reads can be held open or made to fail.

    Query results are captured when the query is issued, so a held query
    returns the data as it was at that moment.
    """

    def __init__(self):
        self.tables: dict[str, list[Record]] = defaultdict(list)
        self.changes = ChangeFeed("fake")
        self.auth_events = ChangeFeed("fake-auth")
        self.fail_queries: set[str] = set()
        self.fail_counts: set[str] = set()
        self.fail_mutations = False
        self.fail_subscribe = False
        self.hold = False
        self.held: list[asyncio.Future] = []
        self.query_calls = 0
        self.count_calls = 0
        self.mutations: list[tuple[str, Any, dict]] = []
        self.sessions: dict[str, AuthSession] = {}

    # -- helpers used by tests ---------------------------------------------

    def seed(self, collection: str, *records: Record) -> None:
        self.tables[collection].extend(dict(record) for record in records)

    def notify(self, collection: str, change: ChangeType = ChangeType.UPDATE) -> None:
        self.changes.publish(collection, ChangeEvent(collection, change))

    def release(self, index: int) -> None:
        self.held[index].set_result(None)

    async def wait_for(self, predicate: Callable[[], bool], attempts: int = 200) -> None:
        for _ in range(attempts):
            if predicate():
                return
            await asyncio.sleep(0)
        raise AssertionError("condition not reached")

    async def _maybe_hold(self) -> None:
        if self.hold:
            future = asyncio.get_running_loop().create_future()
            self.held.append(future)
            await future

    @staticmethod
    def _matches(record: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
        return all(record.get(name) == value for name, value in filters.items())

    # -- DataGateway ---------------------------------------------------------

    async def query(self, collection: str, options: QueryOptions) -> list[Record]:
        self.query_calls += 1
        failing = collection in self.fail_queries
        rows = [
            dict(row)
            for row in self.tables[collection]
            if self._matches(row, options.filters)
        ]
        await self._maybe_hold()
        if failing:
            raise QueryError(collection, "backend unavailable")
        return rows

    async def count(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> int:
        self.count_calls += 1
        failing = collection in self.fail_counts
        total = sum(
            1 for row in self.tables[collection] if self._matches(row, filters or {})
        )
        await self._maybe_hold()
        if failing:
            raise QueryError(collection, "backend unavailable")
        return total

    async def mutate(
        self, collection: str, key: Any, fields: Mapping[str, Any]
    ) -> Record:
        self.mutations.append((collection, key, dict(fields)))
        if self.fail_mutations:
            raise MutationError(collection, "permission denied")
        for row in self.tables[collection]:
            if str(row.get("id")) == str(key):
                row.update(fields)
                self.notify(collection)
                return dict(row)
        raise MutationError(collection, f"no row with key '{key}'")

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        if self.fail_mutations:
            raise MutationError(collection, "permission denied")
        row = {"id": len(self.tables[collection]) + 1, **record}
        self.tables[collection].append(row)
        self.notify(collection, ChangeType.INSERT)
        return dict(row)

    async def delete(self, collection: str, key: Any) -> None:
        rows = self.tables[collection]
        self.tables[collection] = [r for r in rows if str(r.get("id")) != str(key)]
        self.notify(collection, ChangeType.DELETE)

    async def subscribe(
        self, collection: str, on_change: ChangeCallback
    ) -> SubscriptionHandle:
        if self.fail_subscribe:
            raise SubscriptionError(collection, "realtime disabled")
        return self.changes.subscribe(collection, on_change)

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        handle.channel.unsubscribe(handle)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if password != ADMIN_PASSWORD:
            raise InvalidCredentialsError()
        token = uuid.uuid4().hex
        auth_session = AuthSession(
            session_id=uuid.uuid4().hex,
            user_id="1",
            email=email,
            access_token=token,
            expires_at=datetime.now() + timedelta(hours=1),
        )
        self.sessions[token] = auth_session
        self.auth_events.publish("auth", AuthEvent.SIGNED_IN, auth_session)
        return auth_session

    async def get_session(self, access_token: str) -> AuthSession | None:
        return self.sessions.get(access_token)

    def on_auth_change(self, callback: AuthCallback) -> SubscriptionHandle:
        return self.auth_events.subscribe("auth", callback)

    async def sign_out(self, access_token: str) -> None:
        auth_session = self.sessions.pop(access_token, None)
        if auth_session is not None:
            self.auth_events.publish("auth", AuthEvent.SIGNED_OUT, auth_session)


@pytest.fixture(scope="function")
def test_settings():
    """Provide test settings with mock values."""
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret-key-for-testing-only-min-32-chars",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=30,
        BACKEND_CORS_ORIGINS="",
    )


@pytest.fixture(scope="function")
def test_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def session(test_engine):
    """Provide a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def sql_gateway(test_engine):
    return SqlGateway(test_engine)


@pytest.fixture(scope="function")
def fake_gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def test_admin(session):
    """Create a dashboard operator in the database."""
    admin = Admin(
        email=ADMIN_EMAIL,
        username="testadmin",
        display_name="Test Admin",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@pytest.fixture(scope="function")
def client(sql_gateway):
    """Application client whose lifespan opens the test gateway."""
    with patch("app.main.create_gateway", AsyncMock(return_value=sql_gateway)):
        with TestClient(app) as test_client:
            yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_token(client, test_admin):
    response = client.post(
        "/auth/login", data={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture(scope="function")
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
