from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship


class AdminBase(SQLModel):
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True)
    display_name: str | None = Field(default=None, max_length=100)


class Admin(AdminBase, table=True):
    """Dashboard operator known to the local gateway's auth module."""

    id_admin: int | None = Field(default=None, primary_key=True)
    hashed_password: str
    sessions: list["AuthSessionRecord"] = Relationship(back_populates="admin")


class AuthSessionRecord(SQLModel, table=True):
    """A session issued by the local gateway; revoked on sign-out."""

    __tablename__ = "auth_session"  # type: ignore[assignment]

    id: str = Field(primary_key=True)
    id_admin: int = Field(foreign_key="admin.id_admin", index=True)
    token_hash: str
    created_at: datetime = Field(default_factory=datetime.now)
    expires_at: datetime
    revoked_at: datetime | None = None
    admin: Admin = Relationship(back_populates="sessions")
