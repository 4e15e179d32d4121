"""Response models for dashboard views."""

from datetime import datetime
from typing import Any
from pydantic import BaseModel

from app.models.enums import (
    Decision,
    NoticeLevel,
    RequestStatus,
    ViewContent,
    ViewState,
)


class ListView(BaseModel):
    page: str
    state: ViewState
    content: ViewContent | None = None
    query: str = ""
    total: int = 0
    records: list[dict[str, Any]] = []


class TransitionOutcome(BaseModel):
    key: str
    decision: Decision
    applied: bool
    status: RequestStatus | None = None


class Notice(BaseModel):
    level: NoticeLevel
    message: str
    expires_at: datetime


class PageDescription(BaseModel):
    name: str
    title: str
    collection: str
    columns: list[str]
    filter_fields: list[str]
    moderated: bool


class VariantDescription(BaseModel):
    name: str
    pages: list[PageDescription]
    stats: list[str]
    accepts_admin_urls: bool
