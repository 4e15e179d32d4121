import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field
from app.models.enums import RequestStatus


class JoinRequestBase(SQLModel):
    user_id: str = Field(foreign_key="users.id", index=True)
    description: str


class JoinRequest(JoinRequestBase, table=True):
    __tablename__ = "requests"  # type: ignore[assignment]

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)
    created_at: datetime = Field(default_factory=datetime.now)


class RequesterSummary(SQLModel):
    name: str | None = None
    email: str


class JoinRequestPublic(JoinRequestBase):
    id: str
    status: RequestStatus
    created_at: datetime
    users: RequesterSummary | None = None
