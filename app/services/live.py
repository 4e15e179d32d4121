"""Shared lifecycle of views that stay in sync with backend collections.

A live resource fetches once when started and subscribes to change
notifications of the collections it reads. Every notification re-runs the
same fetch in its own task and the result replaces the previous state
wholesale. Refreshes are neither serialized nor cancelled: whichever finishes
last wins, even if it was issued first. After `stop()` no notification starts
a refresh and results of refreshes still in flight are discarded.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

from loguru import logger

from app.exceptions import GatewayError
from app.gateway.base import ChangeEvent, DataGateway, SubscriptionHandle
from app.models.enums import ViewState

T = TypeVar("T")

UpdateCallback = Callable[[Any], Awaitable[None] | None]


class LiveResource(ABC, Generic[T]):
    """Fetch-on-start, refetch-on-change state holder for one mounted view.

    Attributes:
        loading: True until the first fetch resolved, successfully or not.
        closed: True once `stop()` was called.
        refreshes: Number of fetch results applied so far.
    """

    def __init__(
        self,
        gateway: DataGateway,
        collections: Sequence[str],
        *,
        name: str,
        on_update: UpdateCallback | None = None,
    ):
        self.gateway = gateway
        self.collections = tuple(dict.fromkeys(collections))
        self.name = name
        self.on_update = on_update
        self.loading = True
        self.closed = False
        self.started = False
        self.refreshes = 0
        self._handles: list[SubscriptionHandle] = []
        self._pending: set[asyncio.Task] = set()

    @abstractmethod
    async def fetch(self) -> T:
        """Run the backend read(s) backing this view."""

    @abstractmethod
    def apply(self, result: T) -> None:
        """Replace the held state with a fetch result."""

    @property
    def state(self) -> ViewState:
        return ViewState.LOADING if self.loading else ViewState.READY

    @property
    def subscribed(self) -> bool:
        return bool(self._handles)

    async def start(self) -> None:
        """
        Issue the initial fetch and open one subscription per collection.

        Both run concurrently; a subscription that cannot be opened is logged
        and the view keeps working without live updates.

        Raises:
            RuntimeError: If the resource was already started.
        """
        if self.started:
            raise RuntimeError(f"{self.name} already started")
        self.started = True
        await asyncio.gather(self._open_subscriptions(), self.refresh())

    async def _open_subscriptions(self) -> None:
        for collection in self.collections:
            try:
                handle = await self.gateway.subscribe(collection, self._on_change)
            except GatewayError as e:
                logger.error(f"[{self.name}] live updates unavailable for {e}")
                continue
            if self.closed:
                await self.gateway.unsubscribe(handle)
                continue
            self._handles.append(handle)

    async def refresh(self) -> None:
        """Re-run the fetch; on failure log it and keep the previous state."""
        applied = False
        try:
            result = await self.fetch()
        except GatewayError as e:
            logger.error(f"[{self.name}] fetch failed, keeping previous state: {e}")
        else:
            if self.closed:
                logger.debug(f"[{self.name}] discarding result fetched after teardown")
                return
            self.apply(result)
            self.refreshes += 1
            applied = True

        if self.closed:
            return
        was_loading = self.loading
        self.loading = False
        if applied or was_loading:
            await self.publish()

    def _on_change(self, event: ChangeEvent) -> None:
        if self.closed:
            return
        logger.debug(f"[{self.name}] {event.type.value} on '{event.collection}', refreshing")
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def publish(self) -> None:
        """Hand the current state to the `on_update` listener, if any."""
        if self.on_update is None or self.closed:
            return
        try:
            result = self.on_update(self)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"[{self.name}] update listener failed")

    async def settle(self) -> None:
        """Wait until every notification-triggered refresh has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stop(self) -> None:
        """Close every subscription. Refreshes in flight finish but are discarded."""
        if self.closed:
            return
        self.closed = True
        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                await self.gateway.unsubscribe(handle)
            except GatewayError as e:
                logger.warning(f"[{self.name}] could not close subscription: {e}")
        logger.debug(f"[{self.name}] stopped")
