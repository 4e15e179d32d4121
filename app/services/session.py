"""Session of the operator behind one mounted dashboard."""

from typing import Callable

from loguru import logger

from app.gateway.base import DataGateway, SubscriptionHandle
from app.models.enums import AuthEvent
from app.models.session import AuthSession

SessionListener = Callable[[AuthSession | None], None]


class SessionContext:
    """Resolves an access token once and follows its sign-out.

    Owned by the root view; `start()` and `stop()` bracket its lifetime.
    """

    def __init__(self, gateway: DataGateway, access_token: str):
        self.gateway = gateway
        self.access_token = access_token
        self.session: AuthSession | None = None
        self._handle: SubscriptionHandle | None = None
        self._listeners: list[SessionListener] = []

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> AuthSession | None:
        self.session = await self.gateway.get_session(self.access_token)
        if self.session is not None and self._handle is None:
            self._handle = self.gateway.on_auth_change(self._on_auth_change)
        return self.session

    def _on_auth_change(self, event: AuthEvent, session: AuthSession | None) -> None:
        if event is not AuthEvent.SIGNED_OUT or self.session is None:
            return
        if not self.session.is_same(session):
            return
        logger.info(f"Session {self.session.session_id} signed out")
        self.session = None
        for listener in list(self._listeners):
            listener(None)

    async def sign_out(self) -> None:
        await self.gateway.sign_out(self.access_token)

    async def stop(self) -> None:
        if self._handle is not None:
            await self.gateway.unsubscribe(self._handle)
            self._handle = None
        self._listeners.clear()
