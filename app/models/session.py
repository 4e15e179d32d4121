from datetime import datetime
from pydantic import BaseModel


class AuthSession(BaseModel):
    """Authenticated dashboard session as reported by the backend's auth module."""

    session_id: str
    user_id: str
    email: str
    access_token: str
    expires_at: datetime | None = None

    def is_same(self, other: "AuthSession | None") -> bool:
        return other is not None and other.session_id == self.session_id


class SessionPublic(BaseModel):
    session_id: str
    user_id: str
    email: str
    expires_at: datetime | None = None
