"""Live dashboard views over WebSockets.

A connection is one mounted view: the server runs the view's live resource
for it and pushes a snapshot after every re-fetch. Closing the socket
unmounts the view. Clients authenticate with `?token=`; the connection is
closed with 1008 when the token is missing or invalid and with 4401 when the
session is signed out while the view is mounted. A view that fails while
serving client messages is closed with 1011.
"""

import asyncio
import json
from typing import Annotated, Any, Coroutine

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from app.core.config import Settings, get_settings
from app.core.dependencies import get_variant, get_ws_gateway
from app.exceptions import AppException, NotFoundError, ValidationError
from app.gateway.base import DataGateway
from app.models.enums import Decision
from app.models.views import Notice
from app.services.admin_url import AdminUrlForm, NoticeBoard
from app.services.live import LiveResource
from app.services.session import SessionContext
from app.services.variants import DashboardVariant, ListPage

router = APIRouter(prefix="/live", tags=["live"])

POLICY_VIOLATION = 1008
SIGNED_OUT = 4401
UNKNOWN_VIEW = 4404
INTERNAL_ERROR = 1011


class LiveConnection:
    """Base of a mounted live view bound to one WebSocket."""

    resource: LiveResource

    def __init__(self, websocket: WebSocket, context: SessionContext):
        self.websocket = websocket
        self.context = context
        self._send_lock = asyncio.Lock()
        self._signed_out = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()
        context.add_listener(lambda _: self._signed_out.set())

    def snapshot(self) -> dict[str, Any]:
        raise NotImplementedError

    async def handle(self, message: dict[str, Any]) -> None:
        raise ValidationError(
            f"Unknown message type '{message.get('type')}'", field="type"
        )

    async def send(self, message: dict[str, Any]) -> None:
        async with self._send_lock:
            try:
                await self.websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"[WS] dropping message for closed connection: {e}")

    async def push_snapshot(self, _resource: Any = None) -> None:
        await self.send(self.snapshot())

    def spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _receive(self) -> None:
        while True:
            frame = await self.websocket.receive()
            if frame["type"] == "websocket.disconnect":
                return
            text = frame.get("text")
            if text is None:
                await self.send({"type": "error", "detail": "Messages must be JSON text frames"})
                continue
            try:
                message = json.loads(text)
            except ValueError:
                message = None
            if not isinstance(message, dict):
                await self.send({"type": "error", "detail": "Messages must be JSON objects"})
                continue
            try:
                await self.handle(message)
            except AppException as e:
                await self.send({"type": "error", "detail": e.message})

    async def run(self) -> None:
        """Mount the view, serve client messages, and unmount on disconnect or sign-out."""
        receiver = asyncio.create_task(self._receive())
        signed_out = asyncio.create_task(self._signed_out.wait())
        try:
            await self.push_snapshot()
            await self.resource.start()
            done, _ = await asyncio.wait(
                {receiver, signed_out}, return_when=asyncio.FIRST_COMPLETED
            )
            if signed_out in done:
                await self.websocket.close(code=SIGNED_OUT, reason="Signed out")
            elif receiver.exception() is not None:
                logger.opt(exception=receiver.exception()).error(
                    f"[WS] live view '{self.resource.name}' failed"
                )
                try:
                    await self.websocket.close(code=INTERNAL_ERROR, reason="Internal error")
                except RuntimeError as e:
                    logger.debug(f"[WS] connection already closed: {e}")
        finally:
            receiver.cancel()
            signed_out.cancel()
            await self.close()

    async def close(self) -> None:
        await self.resource.stop()
        await self.context.stop()
        for task in list(self._tasks):
            task.cancel()


class PageConnection(LiveConnection):
    """Live, filterable list page; moderated pages also accept transitions."""

    def __init__(
        self,
        websocket: WebSocket,
        context: SessionContext,
        gateway: DataGateway,
        page: ListPage,
    ):
        super().__init__(websocket, context)
        self.page = page
        self.query = ""
        self.resource = self.controller = page.controller(
            gateway, on_update=self.push_snapshot
        )
        self.action = (
            page.transition_action(gateway, self.controller) if page.moderated else None
        )

    def snapshot(self) -> dict[str, Any]:
        view = self.controller.view(self.query)
        message: dict[str, Any] = {
            "type": "snapshot",
            "view": view.model_dump(mode="json"),
        }
        if self.action is not None:
            message["actions"] = {
                str(record.get(self.controller.key_field)): [
                    decision.value for decision in self.action.available_actions(record)
                ]
                for record in view.records
            }
        return message

    async def handle(self, message: dict[str, Any]) -> None:
        kind = message.get("type")
        if kind == "filter":
            self.query = str(message.get("query") or "")
            await self.push_snapshot()
        elif kind == "transition":
            await self._transition(message)
        else:
            await super().handle(message)

    async def _transition(self, message: dict[str, Any]) -> None:
        if self.action is None:
            raise NotFoundError("Moderated page", self.page.name)
        try:
            decision = Decision(message.get("decision"))
        except ValueError as e:
            raise ValidationError("Decision must be 'approve' or 'reject'", field="decision") from e
        key = message.get("key")
        if self.controller.find(key) is None:
            raise NotFoundError(self.page.collection, str(key))
        outcome = await self.action.apply(key, decision)
        await self.send({"type": "transition", "outcome": outcome.model_dump(mode="json")})


class StatsConnection(LiveConnection):
    """Live aggregate counters; the community variant also takes admin URLs."""

    def __init__(
        self,
        websocket: WebSocket,
        context: SessionContext,
        gateway: DataGateway,
        variant: DashboardVariant,
        notice_ttl: float,
    ):
        super().__init__(websocket, context)
        self.variant = variant
        self.resource = self.counter = variant.counter(
            gateway, on_update=self.push_snapshot
        )
        self.notices = NoticeBoard(notice_ttl, on_change=self._on_notice)
        self.form = (
            AdminUrlForm(gateway, self.notices) if variant.accepts_admin_urls else None
        )

    def snapshot(self) -> dict[str, Any]:
        return {
            "type": "snapshot",
            "state": self.counter.state.value,
            "stats": self.variant.stats(self.counter.snapshot).model_dump(),
        }

    def _on_notice(self, notice: Notice | None) -> None:
        if notice is None:
            self.spawn(self.send({"type": "notice_cleared"}))
        else:
            self.spawn(
                self.send({"type": "notice", "notice": notice.model_dump(mode="json")})
            )

    async def handle(self, message: dict[str, Any]) -> None:
        if message.get("type") == "admin_url":
            if self.form is None:
                raise NotFoundError("Dashboard feature", "admin-urls")
            await self.form.submit(str(message.get("url") or ""))
        else:
            await super().handle(message)

    async def close(self) -> None:
        self.notices.close()
        await super().close()


async def authorize(
    websocket: WebSocket, gateway: DataGateway, token: str | None
) -> SessionContext | None:
    """Resolve `token` to a session, closing the socket when it does not resolve."""
    if not token:
        await websocket.close(code=POLICY_VIOLATION, reason="Authentication required")
        return None
    context = SessionContext(gateway, token)
    if await context.start() is None:
        await context.stop()
        await websocket.close(code=POLICY_VIOLATION, reason="Invalid token")
        return None
    return context


@router.websocket("/pages/{page_name}")
async def live_page(
    websocket: WebSocket,
    page_name: str,
    gateway: Annotated[DataGateway, Depends(get_ws_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
    token: str | None = None,
):
    """Mount a list page. Accepts `filter` and, on moderated pages, `transition` messages."""
    context = await authorize(websocket, gateway, token)
    if context is None:
        return
    try:
        page = variant.page(page_name)
    except NotFoundError:
        await context.stop()
        await websocket.close(code=UNKNOWN_VIEW, reason="Unknown page")
        return

    await websocket.accept()
    logger.info(f"[WS] {context.session.email} mounted page '{page_name}'")  # type: ignore[union-attr]
    connection = PageConnection(websocket, context, gateway, page)
    await connection.run()
    logger.info(f"[WS] page '{page_name}' unmounted")


@router.websocket("/stats")
async def live_stats(
    websocket: WebSocket,
    gateway: Annotated[DataGateway, Depends(get_ws_gateway)],
    variant: Annotated[DashboardVariant, Depends(get_variant)],
    settings: Annotated[Settings, Depends(get_settings)],
    token: str | None = None,
):
    """Mount the stats view. Accepts `admin_url` messages on the community variant."""
    context = await authorize(websocket, gateway, token)
    if context is None:
        return

    await websocket.accept()
    logger.info(f"[WS] {context.session.email} mounted stats")  # type: ignore[union-attr]
    connection = StatsConnection(
        websocket, context, gateway, variant, settings.NOTICE_TTL_SECONDS
    )
    await connection.run()
    logger.info("[WS] stats unmounted")
