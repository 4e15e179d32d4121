"""Gateway backed by SQLModel tables and an in-process change feed.

Serves development, tests and single-node deployments with the same contract
as the hosted backend. Blocking database work runs in worker threads; change
and auth events are published on the event loop once the write committed.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, TypeVar

from anyio import CapacityLimiter, to_thread
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, col, func, select

from app.core.config import get_settings
from app.core.password import DUMMY_HASH, get_token_hash, verify_password, verify_token
from app.core.security import create_access_token, decode_access_token
from app.core.telemetry import gateway_calls, tracer
from app.exceptions import (
    GatewayError,
    InvalidCredentialsError,
    InvalidTokenError,
    MutationError,
    QueryError,
    UnknownCollectionError,
)
from app.gateway.base import (
    AuthCallback,
    ChangeCallback,
    ChangeEvent,
    DataGateway,
    Join,
    QueryOptions,
    Record,
    SubscriptionHandle,
)
from app.gateway.changes import ChangeFeed
from app.models.admin import Admin, AuthSessionRecord
from app.models.admin_url import AdminUrl
from app.models.community import Community
from app.models.enums import AuthEvent, ChangeType
from app.models.request import JoinRequest
from app.models.session import AuthSession
from app.models.user import Profile, User

T = TypeVar("T")

DEFAULT_TABLES: dict[str, type[SQLModel]] = {
    "users": User,
    "requests": JoinRequest,
    "profile": Profile,
    "community": Community,
    "admin_urls": AdminUrl,
}

AUTH_TOPIC = "auth"


class SqlGateway(DataGateway):
    """DataGateway over a SQLAlchemy engine.

    Attributes:
        engine: Engine every operation opens its own Session on.
        tables: Collection name -> SQLModel table class.
        changes: Feed of committed row changes, one topic per collection.
        auth_events: Feed of sign-in and sign-out events.
    """

    def __init__(
        self,
        engine: Engine,
        tables: Mapping[str, type[SQLModel]] | None = None,
        max_threads: int | None = None,
    ):
        self.engine = engine
        self.tables = dict(tables or DEFAULT_TABLES)
        self.changes = ChangeFeed("changes")
        self.auth_events = ChangeFeed("auth")
        # SQLite connections do not tolerate concurrent use
        if max_threads is None:
            max_threads = 1 if engine.dialect.name == "sqlite" else 10
        self._max_threads = max_threads
        self._limiter: CapacityLimiter | None = None

    # -- helpers ---------------------------------------------------------

    def _model(self, collection: str) -> type[SQLModel]:
        model = self.tables.get(collection)
        if model is None:
            raise UnknownCollectionError(collection)
        return model

    @staticmethod
    def _column(model: type[SQLModel], collection: str, name: str):
        if name not in model.model_fields:
            raise QueryError(collection, f"unknown field '{name}'")
        return getattr(model, name)

    @staticmethod
    def _coerce(model: type[SQLModel], name: str, value: Any) -> Any:
        """Convert a wire value (e.g. "rejected", "42") to the field's Python type."""
        annotation = model.model_fields[name].annotation
        return TypeAdapter(annotation).validate_python(value)

    def _where(
        self, model: type[SQLModel], collection: str, statement, filters: Mapping[str, Any]
    ):
        """Add equality filters; None when a value cannot be stored in its column."""
        for name, value in filters.items():
            column = self._column(model, collection, name)
            try:
                value = self._coerce(model, name, value)
            except PydanticValidationError:
                return None
            statement = statement.where(column == value)
        return statement

    @staticmethod
    def _key_name(model: type[SQLModel]) -> str:
        return next(iter(model.__table__.primary_key.columns)).name  # type: ignore[attr-defined]

    async def _run(
        self,
        operation: str,
        collection: str,
        fn: Callable[[], T],
        error_cls: type[GatewayError],
    ) -> T:
        """Run blocking database work in a worker thread.

        Driver and validation failures are wrapped in `error_cls`; gateway and
        auth errors raised by `fn` pass through unchanged.
        """
        if self._limiter is None:
            self._limiter = CapacityLimiter(self._max_threads)
        gateway_calls.add(1, {"operation": operation, "collection": collection})
        with tracer.start_as_current_span(f"gateway.{operation}") as span:
            span.set_attribute("gateway.collection", collection)
            try:
                return await to_thread.run_sync(fn, limiter=self._limiter)
            except (SQLAlchemyError, PydanticValidationError, ValueError) as e:
                raise error_cls(collection, str(e)) from e

    def _embed(self, session: Session, rows: list[Record], join: Join) -> None:
        related = self._model(join.relation)
        target = self._column(related, join.relation, join.target_key)
        for name in join.fields:
            self._column(related, join.relation, name)

        keys = {row.get(join.foreign_key) for row in rows} - {None}
        lookup: dict[Any, Record] = {}
        if keys:
            statement = select(related).where(col(target).in_(keys))
            for item in session.exec(statement).all():
                dumped = item.model_dump(mode="json")
                lookup[dumped[join.target_key]] = {f: dumped[f] for f in join.fields}
        for row in rows:
            row[join.relation] = lookup.get(row.get(join.foreign_key))

    def _publish(self, collection: str, change: ChangeType, key: Any) -> None:
        self.changes.publish(collection, ChangeEvent(collection, change, key))

    # -- tables ----------------------------------------------------------

    async def query(self, collection: str, options: QueryOptions) -> list[Record]:
        model = self._model(collection)

        def run() -> list[Record]:
            with Session(self.engine) as session:
                order = self._column(model, collection, options.order_by)
                statement = self._where(
                    model, collection, select(model), options.filters
                )
                if statement is None:
                    return []
                statement = statement.order_by(
                    order.desc() if options.descending else order.asc()
                )
                rows = [row.model_dump(mode="json") for row in session.exec(statement).all()]
                for join in options.joins:
                    self._embed(session, rows, join)
                return rows

        return await self._run("query", collection, run, QueryError)

    async def count(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> int:
        model = self._model(collection)

        def run() -> int:
            with Session(self.engine) as session:
                statement = self._where(
                    model,
                    collection,
                    select(func.count()).select_from(model),
                    filters or {},
                )
                if statement is None:
                    return 0
                return session.exec(statement).one()

        return await self._run("count", collection, run, QueryError)

    async def mutate(
        self, collection: str, key: Any, fields: Mapping[str, Any]
    ) -> Record:
        model = self._model(collection)
        key_name = self._key_name(model)

        def run() -> Record:
            with Session(self.engine) as session:
                row = session.get(model, self._coerce(model, key_name, key))
                if row is None:
                    raise MutationError(collection, f"no row with key '{key}'")
                unknown = set(fields) - set(model.model_fields)
                if unknown:
                    raise MutationError(
                        collection, f"unknown fields {sorted(unknown)}"
                    )
                for name, value in fields.items():
                    setattr(row, name, self._coerce(model, name, value))
                session.add(row)
                session.commit()
                session.refresh(row)
                return row.model_dump(mode="json")

        record = await self._run("mutate", collection, run, MutationError)
        self._publish(collection, ChangeType.UPDATE, record[key_name])
        return record

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        key_name = self._key_name(model)

        def run() -> Record:
            row = model.model_validate(dict(record))
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return row.model_dump(mode="json")

        stored = await self._run("insert", collection, run, MutationError)
        self._publish(collection, ChangeType.INSERT, stored[key_name])
        return stored

    async def delete(self, collection: str, key: Any) -> None:
        model = self._model(collection)
        key_name = self._key_name(model)

        def run() -> None:
            with Session(self.engine) as session:
                row = session.get(model, self._coerce(model, key_name, key))
                if row is None:
                    raise MutationError(collection, f"no row with key '{key}'")
                session.delete(row)
                session.commit()

        await self._run("delete", collection, run, MutationError)
        self._publish(collection, ChangeType.DELETE, key)

    # -- change notifications ----------------------------------------------

    async def subscribe(
        self, collection: str, on_change: ChangeCallback
    ) -> SubscriptionHandle:
        self._model(collection)
        return self.changes.subscribe(collection, on_change)

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        if isinstance(handle.channel, ChangeFeed):
            handle.channel.unsubscribe(handle)
        handle.active = False

    # -- auth --------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthSession:
        settings = get_settings()

        def run() -> AuthSession:
            with Session(self.engine) as session:
                admin = session.exec(
                    select(Admin).where(
                        (Admin.email == email) | (Admin.username == email)
                    )
                ).first()
                hash_to_verify = admin.hashed_password if admin else DUMMY_HASH
                if not verify_password(password, hash_to_verify) or admin is None:
                    raise InvalidCredentialsError()

                session_id = uuid.uuid4().hex
                expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
                token = create_access_token(
                    data={"sub": admin.email, "sid": session_id, "mode": "admin"},
                    expires_delta=expires_delta,
                )
                record = AuthSessionRecord(
                    id=session_id,
                    id_admin=admin.id_admin,  # type: ignore[arg-type]
                    token_hash=get_token_hash(token),
                    expires_at=datetime.now() + expires_delta,
                )
                session.add(record)
                session.commit()
                return AuthSession(
                    session_id=session_id,
                    user_id=str(admin.id_admin),
                    email=admin.email,
                    access_token=token,
                    expires_at=record.expires_at,
                )

        auth_session = await self._run("sign_in", "auth_session", run, QueryError)
        logger.info(f"Session {auth_session.session_id} opened")
        self.auth_events.publish(AUTH_TOPIC, AuthEvent.SIGNED_IN, auth_session)
        return auth_session

    async def get_session(self, access_token: str) -> AuthSession | None:
        try:
            payload = decode_access_token(access_token)
        except InvalidTokenError:
            return None
        session_id = payload.get("sid")
        if not session_id:
            return None

        def run() -> AuthSession | None:
            with Session(self.engine) as session:
                record = session.get(AuthSessionRecord, session_id)
                if (
                    record is None
                    or record.revoked_at is not None
                    or not verify_token(access_token, record.token_hash)
                ):
                    return None
                return AuthSession(
                    session_id=record.id,
                    user_id=str(record.id_admin),
                    email=payload["sub"],
                    access_token=access_token,
                    expires_at=record.expires_at,
                )

        return await self._run("get_session", "auth_session", run, QueryError)

    def on_auth_change(self, callback: AuthCallback) -> SubscriptionHandle:
        return self.auth_events.subscribe(AUTH_TOPIC, callback)

    async def sign_out(self, access_token: str) -> None:
        auth_session = await self.get_session(access_token)
        if auth_session is None:
            return

        def run() -> None:
            with Session(self.engine) as session:
                record = session.get(AuthSessionRecord, auth_session.session_id)
                if record is not None:
                    record.revoked_at = datetime.now()
                    session.add(record)
                    session.commit()

        await self._run("sign_out", "auth_session", run, MutationError)
        logger.info(f"Session {auth_session.session_id} closed")
        self.auth_events.publish(AUTH_TOPIC, AuthEvent.SIGNED_OUT, auth_session)

    async def close(self) -> None:
        self.engine.dispose()
