import uuid
from datetime import date, datetime
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class GeoPoint(SQLModel):
    """Last known position of a profile or the meeting place of a community."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    name: str | None = None


class User(UserBase, table=True):
    """Account row of the requests variant."""

    __tablename__ = "users"  # type: ignore[assignment]

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.now)


class UserPublic(UserBase):
    id: str
    created_at: datetime


class ProfileBase(SQLModel):
    user_id: str = Field(index=True)
    email: str = Field(index=True)
    name: str | None = None
    fcm_token: str | None = None
    gender: str | None = None
    dob: date | None = None
    range: int | None = Field(default=None, ge=0)
    com_id: str | None = None
    image_link: str | None = None


class Profile(ProfileBase, table=True):
    """Account row of the community variant."""

    id: int | None = Field(default=None, primary_key=True)
    tag: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    # Stored as a GeoPoint-shaped mapping: {"latitude": float, "longitude": float}
    last_loc: dict | None = Field(default=None, sa_column=Column(JSON))
    # com_id values of communities this profile asked to join
    requests: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.now)


class ProfileCreate(ProfileBase):
    tag: list[str] = []
    last_loc: GeoPoint | None = None
    requests: list[str] = []


class ProfilePublic(ProfileBase):
    id: int
    tag: list[str] = []
    last_loc: GeoPoint | None = None
    requests: list[str] = []
    created_at: datetime
