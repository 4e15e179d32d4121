"""Tests for the Supabase gateway against a mocked client."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from supabase import AuthError

from app.core.config import Settings
from app.exceptions import (
    AppException,
    InvalidCredentialsError,
    MutationError,
    QueryError,
    SubscriptionError,
)
from app.gateway.base import Join, QueryOptions
from app.gateway.supabase_gateway import SupabaseGateway, change_event, select_clause
from app.models.enums import AuthEvent, ChangeType


def make_builder(data=None, count=None, error=None):
    """PostgREST request builder whose chained calls all return itself."""
    builder = MagicMock()
    for name in ("select", "eq", "order", "update", "insert", "delete"):
        getattr(builder, name).return_value = builder
    builder.execute = AsyncMock(
        return_value=SimpleNamespace(data=data, count=count), side_effect=error
    )
    return builder


def make_gateway(builder=None):
    client = MagicMock()
    client.table.return_value = builder or make_builder()
    client.remove_channel = AsyncMock()
    client.remove_all_channels = AsyncMock()
    auth_client = MagicMock()
    return SupabaseGateway(client, auth_client), client, auth_client


def make_token(session_id="s-1", sub="user-1"):
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    return jwt.encode(
        {"sub": sub, "email": "admin@example.com", "session_id": session_id, "exp": exp},
        "supabase-jwt-secret-used-only-in-tests",
        algorithm="HS256",
    )


class TestHelpers:
    def test_select_clause_without_joins(self):
        assert select_clause(QueryOptions(order_by="id")) == "*"

    def test_select_clause_embeds_relations(self):
        options = QueryOptions(
            order_by="created_at",
            joins=(Join("users", ("name", "email"), foreign_key="user_id"),),
        )
        assert select_clause(options) == "*, users(name, email)"

    def test_change_event_from_realtime_payload(self):
        payload = {
            "data": {
                "type": "INSERT",
                "table": "requests",
                "record": {"id": "r1", "status": "pending"},
            }
        }
        event = change_event("requests", payload)
        assert event.type is ChangeType.INSERT
        assert event.key == "r1"

    def test_change_event_delete_uses_old_record(self):
        event = change_event(
            "requests", {"data": {"type": "DELETE", "old_record": {"id": "r9"}}}
        )
        assert event.type is ChangeType.DELETE
        assert event.key == "r9"

    def test_change_event_unknown_type_is_update(self):
        assert change_event("users", {"eventType": "?"}).type is ChangeType.UPDATE


class TestTables:
    @pytest.mark.asyncio
    async def test_query_builds_request(self):
        builder = make_builder(data=[{"id": "r1"}])
        gateway, client, _ = make_gateway(builder)
        options = QueryOptions(order_by="created_at", filters={"status": "pending"})

        rows = await gateway.query("requests", options)

        assert rows == [{"id": "r1"}]
        client.table.assert_called_with("requests")
        builder.select.assert_called_with("*")
        builder.eq.assert_called_with("status", "pending")
        builder.order.assert_called_with("created_at", desc=True)

    @pytest.mark.asyncio
    async def test_query_without_data_is_empty(self):
        gateway, _, _ = make_gateway(make_builder(data=None))
        assert await gateway.query("users", QueryOptions(order_by="id")) == []

    @pytest.mark.asyncio
    async def test_query_failure_is_wrapped(self):
        gateway, _, _ = make_gateway(make_builder(error=RuntimeError("timeout")))
        with pytest.raises(QueryError) as exc_info:
            await gateway.query("users", QueryOptions(order_by="id"))
        assert exc_info.value.collection == "users"

    @pytest.mark.asyncio
    async def test_count_uses_exact_head_request(self):
        builder = make_builder(count=7)
        gateway, _, _ = make_gateway(builder)

        assert await gateway.count("requests", {"status": "rejected"}) == 7
        _, kwargs = builder.select.call_args
        assert kwargs["head"] is True
        builder.eq.assert_called_with("status", "rejected")

    @pytest.mark.asyncio
    async def test_count_missing_is_an_error(self):
        gateway, _, _ = make_gateway(make_builder(count=None))
        with pytest.raises(QueryError):
            await gateway.count("users")

    @pytest.mark.asyncio
    async def test_mutate_scoped_by_key(self):
        builder = make_builder(data=[{"id": "r1", "status": "approved"}])
        gateway, _, _ = make_gateway(builder)

        record = await gateway.mutate("requests", "r1", {"status": "approved"})

        assert record["status"] == "approved"
        builder.update.assert_called_with({"status": "approved"})
        builder.eq.assert_called_with("id", "r1")

    @pytest.mark.asyncio
    async def test_mutate_no_row_matched(self):
        gateway, _, _ = make_gateway(make_builder(data=[]))
        with pytest.raises(MutationError):
            await gateway.mutate("requests", "missing", {"status": "approved"})

    @pytest.mark.asyncio
    async def test_insert_rejected(self):
        gateway, _, _ = make_gateway(make_builder(error=RuntimeError("denied")))
        with pytest.raises(MutationError):
            await gateway.insert("admin_urls", {"url": "https://example.com/"})


class TestRealtime:
    @pytest.mark.asyncio
    async def test_subscribe_opens_channel_and_delivers(self):
        gateway, client, _ = make_gateway()
        channel = MagicMock()
        channel.subscribe = AsyncMock()
        client.channel.return_value = channel
        events = []

        handle = await gateway.subscribe("requests", events.append)

        _, kwargs = channel.on_postgres_changes.call_args
        assert kwargs["table"] == "requests"
        assert kwargs["schema"] == "public"
        kwargs["callback"]({"data": {"type": "UPDATE", "record": {"id": "r1"}}})
        assert [(e.collection, e.type, e.key) for e in events] == [
            ("requests", ChangeType.UPDATE, "r1")
        ]

        await gateway.unsubscribe(handle)
        client.remove_channel.assert_awaited_once_with(channel)
        await gateway.unsubscribe(handle)
        client.remove_channel.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_subscribe_failure_is_wrapped(self):
        gateway, client, _ = make_gateway()
        channel = MagicMock()
        channel.subscribe = AsyncMock(side_effect=RuntimeError("socket closed"))
        client.channel.return_value = channel

        with pytest.raises(SubscriptionError):
            await gateway.subscribe("requests", lambda event: None)


class TestAuth:
    @pytest.mark.asyncio
    async def test_sign_in_returns_session_and_notifies(self):
        gateway, _, auth_client = make_gateway()
        token = make_token()
        auth_client.auth.sign_in_with_password = AsyncMock(
            return_value=SimpleNamespace(session=SimpleNamespace(access_token=token))
        )
        events = []
        gateway.on_auth_change(lambda event, s: events.append(event))

        auth_session = await gateway.sign_in("admin@example.com", "secret")

        assert auth_session.session_id == "s-1"
        assert auth_session.user_id == "user-1"
        assert auth_session.access_token == token
        assert events == [AuthEvent.SIGNED_IN]

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self):
        gateway, _, auth_client = make_gateway()
        auth_client.auth.sign_in_with_password = AsyncMock(
            side_effect=AuthError("Invalid login credentials", None)
        )
        with pytest.raises(InvalidCredentialsError):
            await gateway.sign_in("admin@example.com", "wrong")

    @pytest.mark.asyncio
    async def test_get_session_unknown_token(self):
        gateway, _, auth_client = make_gateway()
        auth_client.auth.get_user = AsyncMock(side_effect=AuthError("bad jwt", None))
        assert await gateway.get_session("garbage") is None

    @pytest.mark.asyncio
    async def test_sign_out_notifies_same_session(self):
        gateway, client, auth_client = make_gateway()
        token = make_token(session_id="s-9")
        auth_client.auth.get_user = AsyncMock(
            return_value=SimpleNamespace(user=SimpleNamespace(id="user-1"))
        )
        client.auth.admin.sign_out = AsyncMock()
        events = []
        gateway.on_auth_change(lambda event, s: events.append((event, s.session_id)))

        await gateway.sign_out(token)

        client.auth.admin.sign_out.assert_awaited_once_with(token)
        assert events == [(AuthEvent.SIGNED_OUT, "s-9")]


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_requires_project_settings(self, test_settings):
        with pytest.raises(AppException):
            await SupabaseGateway.connect(test_settings)

    @pytest.mark.asyncio
    async def test_close_removes_channels(self):
        gateway, client, _ = make_gateway()
        await gateway.close()
        client.remove_all_channels.assert_awaited_once()


def test_settings_select_supabase_backend():
    settings = Settings(
        SECRET_KEY="test-secret-key-for-testing-only-min-32-chars",
        GATEWAY_BACKEND="supabase",
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role",
    )
    assert settings.GATEWAY_BACKEND == "supabase"
    assert settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value() == "service-role"
