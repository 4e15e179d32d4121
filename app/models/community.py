from datetime import datetime
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from app.models.enums import RequestStatus
from app.models.user import GeoPoint


class CommunityBase(SQLModel):
    com_id: str = Field(unique=True, index=True)
    title: str = Field(max_length=120)
    desc: str
    logo_link: str | None = None
    # Comma separated, as entered by the community creator
    tags: str = ""


class Community(CommunityBase, table=True):
    id: int | None = Field(default=None, primary_key=True)
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)
    location: dict | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.now)


class CommunityCreate(CommunityBase):
    location: GeoPoint | None = None


class CommunityPublic(CommunityBase):
    id: int
    status: RequestStatus
    location: GeoPoint | None = None
    created_at: datetime
