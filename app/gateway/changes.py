"""In-process change feed used by the local gateway.

Plays the part of a backend's real-time channel: every committed insert,
update or delete is published to the callbacks subscribed to that
collection. Callbacks run synchronously on the publishing task, so they must
only schedule work, never block.
"""

from collections import defaultdict
from typing import Callable

from loguru import logger

from app.gateway.base import SubscriptionHandle


class ChangeFeed:
    """Fan out events to per-topic subscribers."""

    def __init__(self, name: str):
        self.name = name
        # topic -> handle -> callback
        self.subscribers: dict[str, dict[SubscriptionHandle, Callable[..., None]]] = (
            defaultdict(dict)
        )

    def subscribe(self, topic: str, callback: Callable[..., None]) -> SubscriptionHandle:
        """Register `callback` for `topic` and return its handle."""
        handle = SubscriptionHandle(topic=topic, channel=self)
        self.subscribers[topic][handle] = callback
        logger.debug(
            f"[{self.name}] subscribed to '{topic}'. "
            f"Total: {len(self.subscribers[topic])}"
        )
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Remove a subscription. Unknown or already closed handles are ignored."""
        handle.active = False
        callbacks = self.subscribers.get(handle.topic)
        if callbacks is None or handle not in callbacks:
            return
        del callbacks[handle]
        if not callbacks:
            del self.subscribers[handle.topic]
        logger.debug(f"[{self.name}] unsubscribed from '{handle.topic}'.")

    def subscriber_count(self, topic: str) -> int:
        return len(self.subscribers.get(topic, {}))

    def publish(self, topic: str, *args) -> None:
        """Deliver an event to every current subscriber of `topic`.

        A failing callback is logged and does not stop delivery to the others.
        """
        for handle, callback in list(self.subscribers.get(topic, {}).items()):
            if not handle.active:
                continue
            try:
                callback(*args)
            except Exception:
                logger.exception(f"[{self.name}] subscriber of '{topic}' failed")
