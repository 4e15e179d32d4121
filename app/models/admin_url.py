from datetime import datetime
from sqlmodel import SQLModel, Field


class AdminUrl(SQLModel, table=True):
    __tablename__ = "admin_urls"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    url: str = Field(max_length=2048)
    created_at: datetime = Field(default_factory=datetime.now)


class AdminUrlPublic(SQLModel):
    id: int
    url: str
    created_at: datetime
