"""Tests for the SQLModel-backed gateway."""

from datetime import datetime, timedelta

import pytest

from app.exceptions import (
    InvalidCredentialsError,
    MutationError,
    QueryError,
    UnknownCollectionError,
)
from app.gateway.base import Join, QueryOptions
from app.models.enums import AuthEvent, ChangeType, RequestStatus
from app.models.request import JoinRequest
from app.models.user import User

ALERTS = QueryOptions(
    order_by="created_at",
    joins=(Join("users", ("name", "email"), foreign_key="user_id"),),
)


@pytest.fixture
def requests_data(session):
    now = datetime.now()
    alice = User(id="u-alice", name="Alice", email="alice@example.com", created_at=now)
    bob = User(id="u-bob", name=None, email="bob@example.com", created_at=now)
    session.add_all([alice, bob])
    session.add_all(
        [
            JoinRequest(
                id="r1",
                user_id="u-alice",
                description="oldest",
                created_at=now - timedelta(hours=3),
            ),
            JoinRequest(
                id="r2",
                user_id="u-bob",
                description="middle",
                status=RequestStatus.REJECTED,
                created_at=now - timedelta(hours=2),
            ),
            JoinRequest(
                id="r3",
                user_id="u-alice",
                description="newest",
                status=RequestStatus.APPROVED,
                created_at=now - timedelta(hours=1),
            ),
        ]
    )
    session.commit()


class TestQuery:
    @pytest.mark.asyncio
    async def test_orders_descending_and_embeds_join(self, sql_gateway, requests_data):
        rows = await sql_gateway.query("requests", ALERTS)

        assert [r["id"] for r in rows] == ["r3", "r2", "r1"]
        assert rows[0]["users"] == {"name": "Alice", "email": "alice@example.com"}
        assert rows[1]["users"] == {"name": None, "email": "bob@example.com"}
        assert rows[1]["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_ascending(self, sql_gateway, requests_data):
        rows = await sql_gateway.query(
            "requests", QueryOptions(order_by="created_at", descending=False)
        )
        assert [r["id"] for r in rows] == ["r1", "r2", "r3"]

    @pytest.mark.asyncio
    async def test_filters_on_wire_values(self, sql_gateway, requests_data):
        rows = await sql_gateway.query(
            "requests",
            QueryOptions(order_by="created_at", filters={"status": "approved"}),
        )
        assert [r["id"] for r in rows] == ["r3"]

    @pytest.mark.asyncio
    async def test_empty_collection(self, sql_gateway):
        assert await sql_gateway.query("community", QueryOptions(order_by="id")) == []

    @pytest.mark.asyncio
    async def test_unknown_collection(self, sql_gateway):
        with pytest.raises(UnknownCollectionError):
            await sql_gateway.query("secrets", QueryOptions(order_by="id"))

    @pytest.mark.asyncio
    async def test_unknown_order_field(self, sql_gateway):
        with pytest.raises(QueryError):
            await sql_gateway.query("users", QueryOptions(order_by="nope"))


class TestCount:
    @pytest.mark.asyncio
    async def test_counts(self, sql_gateway, requests_data):
        assert await sql_gateway.count("users") == 2
        assert await sql_gateway.count("requests") == 3
        assert await sql_gateway.count("requests", {"status": "rejected"}) == 1

    @pytest.mark.asyncio
    async def test_filter_value_outside_column_type(self, sql_gateway, requests_data):
        assert await sql_gateway.count("requests", {"status": "archived"}) == 0
        assert await sql_gateway.count("community", {"id": "abc"}) == 0
        rows = await sql_gateway.query(
            "community", QueryOptions(order_by="id", filters={"id": "abc"})
        )
        assert rows == []


class TestWrites:
    @pytest.mark.asyncio
    async def test_mutate_updates_and_notifies(self, sql_gateway, requests_data):
        events = []
        await sql_gateway.subscribe("requests", events.append)

        record = await sql_gateway.mutate("requests", "r1", {"status": "approved"})

        assert record["status"] == "approved"
        assert await sql_gateway.count("requests", {"status": "approved"}) == 2
        assert [(e.collection, e.type, e.key) for e in events] == [
            ("requests", ChangeType.UPDATE, "r1")
        ]

    @pytest.mark.asyncio
    async def test_mutate_missing_row(self, sql_gateway, requests_data):
        with pytest.raises(MutationError):
            await sql_gateway.mutate("requests", "missing", {"status": "approved"})

    @pytest.mark.asyncio
    async def test_mutate_unknown_field(self, sql_gateway, requests_data):
        with pytest.raises(MutationError):
            await sql_gateway.mutate("requests", "r1", {"owner": "me"})

    @pytest.mark.asyncio
    async def test_insert_and_delete_notify(self, sql_gateway):
        events = []
        await sql_gateway.subscribe("admin_urls", events.append)

        record = await sql_gateway.insert("admin_urls", {"url": "https://example.com/"})
        await sql_gateway.delete("admin_urls", record["id"])

        assert [e.type for e in events] == [ChangeType.INSERT, ChangeType.DELETE]
        assert await sql_gateway.count("admin_urls") == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, sql_gateway):
        events = []
        handle = await sql_gateway.subscribe("admin_urls", events.append)
        await sql_gateway.unsubscribe(handle)

        await sql_gateway.insert("admin_urls", {"url": "https://example.com/"})

        assert events == []


class TestAuth:
    @pytest.mark.asyncio
    async def test_sign_in_by_email_or_username(self, sql_gateway, test_admin):
        by_email = await sql_gateway.sign_in("admin@example.com", "adminpassword123")
        by_username = await sql_gateway.sign_in("testadmin", "adminpassword123")

        assert by_email.email == "admin@example.com"
        assert by_email.session_id != by_username.session_id

    @pytest.mark.asyncio
    async def test_wrong_password(self, sql_gateway, test_admin):
        with pytest.raises(InvalidCredentialsError):
            await sql_gateway.sign_in("admin@example.com", "wrong")

    @pytest.mark.asyncio
    async def test_unknown_operator(self, sql_gateway):
        with pytest.raises(InvalidCredentialsError):
            await sql_gateway.sign_in("ghost@example.com", "whatever")

    @pytest.mark.asyncio
    async def test_get_session_round_trip(self, sql_gateway, test_admin):
        opened = await sql_gateway.sign_in("admin@example.com", "adminpassword123")

        resolved = await sql_gateway.get_session(opened.access_token)

        assert resolved is not None
        assert resolved.session_id == opened.session_id
        assert await sql_gateway.get_session("garbage") is None

    @pytest.mark.asyncio
    async def test_sign_out_revokes_and_notifies(self, sql_gateway, test_admin):
        events = []
        sql_gateway.on_auth_change(lambda event, s: events.append((event, s.session_id)))
        opened = await sql_gateway.sign_in("admin@example.com", "adminpassword123")

        await sql_gateway.sign_out(opened.access_token)

        assert await sql_gateway.get_session(opened.access_token) is None
        assert events == [
            (AuthEvent.SIGNED_IN, opened.session_id),
            (AuthEvent.SIGNED_OUT, opened.session_id),
        ]

    @pytest.mark.asyncio
    async def test_sign_out_unknown_token_is_noop(self, sql_gateway):
        events = []
        sql_gateway.on_auth_change(lambda *args: events.append(args))
        await sql_gateway.sign_out("garbage")
        assert events == []
