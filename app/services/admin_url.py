"""Admin URL submission and the transient notices it produces."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable

from loguru import logger
from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import GatewayError, ValidationError
from app.gateway.base import DataGateway, Record
from app.models.enums import NoticeLevel
from app.models.views import Notice

ADMIN_URLS = "admin_urls"

_url_adapter = TypeAdapter(HttpUrl)


def validate_admin_url(url: str) -> str:
    """
    Normalize an operator-typed URL.

    Raises:
        ValidationError: If `url` is not an absolute http(s) URL.
    """
    try:
        return str(_url_adapter.validate_python(url.strip()))
    except PydanticValidationError as e:
        raise ValidationError("Please enter a valid URL", field="url") from e


async def submit_admin_url(gateway: DataGateway, url: str) -> Record:
    """Validate `url` and insert it into the admin_urls collection."""
    clean = validate_admin_url(url)
    record = await gateway.insert(ADMIN_URLS, {"url": clean})
    logger.info(f"Admin URL saved: {clean}")
    return record


class NoticeBoard:
    """Holds at most one notice, each clearing itself after `ttl` seconds.

    Posting replaces the current notice and restarts the timer.
    """

    def __init__(
        self, ttl: float, on_change: Callable[[Notice | None], None] | None = None
    ):
        self.ttl = ttl
        self.on_change = on_change
        self.current: Notice | None = None
        self._timer: asyncio.TimerHandle | None = None

    def post(self, level: NoticeLevel, message: str) -> Notice:
        self._cancel()
        notice = Notice(
            level=level,
            message=message,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.ttl),
        )
        self.current = notice
        self._timer = asyncio.get_running_loop().call_later(self.ttl, self.clear)
        self._notify()
        return notice

    def clear(self) -> None:
        self._timer = None
        if self.current is None:
            return
        self.current = None
        self._notify()

    def close(self) -> None:
        self._cancel()
        self.on_change = None

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.current)


class AdminUrlForm:
    """Submits admin URLs and reports the outcome on a NoticeBoard."""

    def __init__(self, gateway: DataGateway, notices: NoticeBoard):
        self.gateway = gateway
        self.notices = notices

    async def submit(self, url: str) -> Record | None:
        try:
            record = await submit_admin_url(self.gateway, url)
        except ValidationError as e:
            self.notices.post(NoticeLevel.ERROR, e.message)
            return None
        except GatewayError as e:
            logger.error(f"Could not save admin URL: {e}")
            self.notices.post(NoticeLevel.ERROR, "Could not save the URL, try again")
            return None
        self.notices.post(NoticeLevel.SUCCESS, "URL saved")
        return record
