"""Gateway for a hosted Supabase project.

Tables are read and written through PostgREST, change notifications come
from Realtime `postgres_changes` channels, and sessions from Supabase Auth.
The table client uses the service-role key, as dashboard moderation must see
every row; a separate client signs operators in so their sessions never
replace the service credentials.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

import jwt
from loguru import logger
from postgrest.types import CountMethod
from supabase import AsyncClient, AuthError, acreate_client

from app.core.config import Settings
from app.core.telemetry import gateway_calls
from app.exceptions import (
    AppException,
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
from app.models.enums import AuthEvent, ChangeType
from app.models.session import AuthSession

AUTH_TOPIC = "auth"


def select_clause(options: QueryOptions) -> str:
    """Build the PostgREST select list, embedding joined relations.

    A join on `users` with fields ("name", "email") yields `*, users(name, email)`;
    PostgREST resolves the foreign key itself.
    """
    embedded = [f"{join.relation}({', '.join(join.fields)})" for join in options.joins]
    return ", ".join(["*", *embedded])


def change_event(collection: str, payload: Mapping[str, Any]) -> ChangeEvent:
    """Translate a Realtime `postgres_changes` payload into a ChangeEvent."""
    data = payload.get("data", payload)
    raw_type = data.get("type") or data.get("eventType") or ""
    try:
        change = ChangeType(str(raw_type).upper())
    except ValueError:
        change = ChangeType.UPDATE
    row = data.get("record") or data.get("old_record") or data.get("new") or {}
    return ChangeEvent(collection, change, row.get("id"))


class SupabaseGateway(DataGateway):
    """DataGateway over supabase-py's async clients."""

    def __init__(
        self,
        client: AsyncClient,
        auth_client: AsyncClient | None = None,
        schema: str = "public",
        key_column: str = "id",
    ):
        self.client = client
        self.auth_client = auth_client or client
        self.schema = schema
        self.key_column = key_column
        self.auth_events = ChangeFeed("auth")

    @classmethod
    async def connect(cls, settings: Settings) -> "SupabaseGateway":
        """
        Create the table and auth clients from the application settings.

        Raises:
            AppException: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing.
        """
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise AppException(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the supabase backend"
            )
        service_key = settings.SUPABASE_SERVICE_ROLE_KEY.get_secret_value()
        client = await acreate_client(settings.SUPABASE_URL, service_key)
        auth_key = (
            settings.SUPABASE_ANON_KEY.get_secret_value()
            if settings.SUPABASE_ANON_KEY
            else service_key
        )
        auth_client = await acreate_client(settings.SUPABASE_URL, auth_key)
        logger.info(f"Connected to Supabase project at {settings.SUPABASE_URL}")
        return cls(client, auth_client)

    # -- tables ----------------------------------------------------------

    async def query(self, collection: str, options: QueryOptions) -> list[Record]:
        gateway_calls.add(1, {"operation": "query", "collection": collection})
        builder = self.client.table(collection).select(select_clause(options))
        for name, value in options.filters.items():
            builder = builder.eq(name, value)
        builder = builder.order(options.order_by, desc=options.descending)
        try:
            response = await builder.execute()
        except Exception as e:
            raise QueryError(collection, str(e)) from e
        return list(response.data or [])

    async def count(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> int:
        gateway_calls.add(1, {"operation": "count", "collection": collection})
        builder = self.client.table(collection).select(
            "*", count=CountMethod.exact, head=True
        )
        for name, value in (filters or {}).items():
            builder = builder.eq(name, value)
        try:
            response = await builder.execute()
        except Exception as e:
            raise QueryError(collection, str(e)) from e
        if response.count is None:
            raise QueryError(collection, "backend returned no count")
        return response.count

    async def mutate(
        self, collection: str, key: Any, fields: Mapping[str, Any]
    ) -> Record:
        gateway_calls.add(1, {"operation": "mutate", "collection": collection})
        try:
            response = await (
                self.client.table(collection)
                .update(dict(fields))
                .eq(self.key_column, key)
                .execute()
            )
        except Exception as e:
            raise MutationError(collection, str(e)) from e
        if not response.data:
            raise MutationError(collection, f"no row with key '{key}'")
        return response.data[0]

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        gateway_calls.add(1, {"operation": "insert", "collection": collection})
        try:
            response = await self.client.table(collection).insert(dict(record)).execute()
        except Exception as e:
            raise MutationError(collection, str(e)) from e
        if not response.data:
            raise MutationError(collection, "insert returned no row")
        return response.data[0]

    async def delete(self, collection: str, key: Any) -> None:
        gateway_calls.add(1, {"operation": "delete", "collection": collection})
        try:
            response = await (
                self.client.table(collection)
                .delete()
                .eq(self.key_column, key)
                .execute()
            )
        except Exception as e:
            raise MutationError(collection, str(e)) from e
        if not response.data:
            raise MutationError(collection, f"no row with key '{key}'")

    # -- change notifications ----------------------------------------------

    async def subscribe(
        self, collection: str, on_change: ChangeCallback
    ) -> SubscriptionHandle:
        channel = self.client.channel(f"{collection}-changes-{uuid.uuid4().hex[:8]}")

        def deliver(payload: Mapping[str, Any]) -> None:
            on_change(change_event(collection, payload))

        try:
            channel.on_postgres_changes(
                "*", schema=self.schema, table=collection, callback=deliver
            )
            await channel.subscribe()
        except Exception as e:
            raise SubscriptionError(collection, str(e)) from e
        logger.debug(f"Realtime channel opened for '{collection}'")
        return SubscriptionHandle(topic=collection, channel=channel)

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        if not handle.active:
            return
        handle.active = False
        if isinstance(handle.channel, ChangeFeed):
            handle.channel.unsubscribe(handle)
            return
        try:
            await self.client.remove_channel(handle.channel)
        except Exception as e:
            raise SubscriptionError(handle.topic, str(e)) from e

    # -- auth --------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = await self.auth_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise InvalidCredentialsError() from e
        if response.session is None:
            raise InvalidCredentialsError()
        auth_session = self._to_session(response.session.access_token)
        self.auth_events.publish(AUTH_TOPIC, AuthEvent.SIGNED_IN, auth_session)
        return auth_session

    async def get_session(self, access_token: str) -> AuthSession | None:
        try:
            response = await self.auth_client.auth.get_user(access_token)
        except AuthError:
            return None
        if response is None or response.user is None:
            return None
        return self._to_session(access_token)

    def on_auth_change(self, callback: AuthCallback) -> SubscriptionHandle:
        return self.auth_events.subscribe(AUTH_TOPIC, callback)

    async def sign_out(self, access_token: str) -> None:
        auth_session = await self.get_session(access_token)
        if auth_session is None:
            return
        try:
            await self.client.auth.admin.sign_out(access_token)
        except AuthError as e:
            logger.warning(f"Supabase sign-out failed: {e}")
        self.auth_events.publish(AUTH_TOPIC, AuthEvent.SIGNED_OUT, auth_session)

    @staticmethod
    def _to_session(access_token: str) -> AuthSession:
        # The token was just verified by Supabase Auth; only its claims are read here
        claims = jwt.decode(access_token, options={"verify_signature": False})
        expires_at = (
            datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
            if "exp" in claims
            else None
        )
        return AuthSession(
            session_id=claims.get("session_id") or claims["sub"],
            user_id=claims["sub"],
            email=claims.get("email", ""),
            access_token=access_token,
            expires_at=expires_at,
        )

    async def close(self) -> None:
        await self.client.remove_all_channels()
