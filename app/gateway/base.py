"""Contract every backend gateway implements.

A gateway is the only way the dashboard talks to its backend service. It
exposes table-style reads and writes, change notifications per collection,
and the backend's auth module. Records cross the boundary as plain mappings,
exactly as a backend-as-a-service returns rows; joined relations are embedded
under the relation name.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from app.models.enums import AuthEvent, ChangeType
from app.models.session import AuthSession

Record = dict[str, Any]


@dataclass(frozen=True)
class Join:
    """Embed selected fields of a related collection into each row.

    `foreign_key` is the column of the queried collection that references
    `target_key` on `relation`.
    """

    relation: str
    fields: tuple[str, ...]
    foreign_key: str
    target_key: str = "id"


@dataclass(frozen=True)
class QueryOptions:
    order_by: str
    descending: bool = True
    filters: Mapping[str, Any] = field(default_factory=dict)
    joins: tuple[Join, ...] = ()


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    type: ChangeType
    key: Any = None


ChangeCallback = Callable[[ChangeEvent], None]
AuthCallback = Callable[[AuthEvent, AuthSession | None], None]


@dataclass(eq=False)
class SubscriptionHandle:
    """Opaque handle returned by `subscribe` and `on_auth_change`.

    `channel` holds whatever the implementation needs to close the
    subscription later.
    """

    topic: str
    channel: Any = None
    active: bool = True


class DataGateway(ABC):
    """Query, mutation, subscription and auth operations against a backend."""

    @abstractmethod
    async def query(self, collection: str, options: QueryOptions) -> list[Record]:
        """
        Read every row of `collection` matching `options`.

        Raises:
            QueryError: If the backend rejects or fails the read.
        """

    @abstractmethod
    async def count(
        self, collection: str, filters: Mapping[str, Any] | None = None
    ) -> int:
        """
        Count rows of `collection`, optionally restricted by equality filters.

        Raises:
            QueryError: If the backend rejects or fails the count.
        """

    @abstractmethod
    async def mutate(
        self, collection: str, key: Any, fields: Mapping[str, Any]
    ) -> Record:
        """
        Apply a partial update to the row identified by `key`.

        Raises:
            MutationError: If the row does not exist or the update is rejected.
        """

    @abstractmethod
    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        """
        Insert a new row and return it as stored.

        Raises:
            MutationError: If the backend rejects the row.
        """

    @abstractmethod
    async def delete(self, collection: str, key: Any) -> None:
        """
        Delete the row identified by `key`.

        Raises:
            MutationError: If the row does not exist or the delete is rejected.
        """

    @abstractmethod
    async def subscribe(
        self, collection: str, on_change: ChangeCallback
    ) -> SubscriptionHandle:
        """
        Call `on_change` for every insert, update or delete on `collection`.

        Raises:
            SubscriptionError: If the notification channel cannot be opened.
        """

    @abstractmethod
    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Close a subscription; closing an inactive handle is a no-op."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Open a session for a dashboard operator.

        Raises:
            InvalidCredentialsError: If the email or password is wrong.
        """

    @abstractmethod
    async def get_session(self, access_token: str) -> AuthSession | None:
        """Resolve an access token to its live session, or None."""

    @abstractmethod
    def on_auth_change(self, callback: AuthCallback) -> SubscriptionHandle:
        """Call `callback` whenever a session is opened or closed."""

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """End the session behind `access_token`."""

    async def close(self) -> None:
        """Release connections held by the gateway."""
