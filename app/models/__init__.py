"""Table models are imported here so SQLModel.metadata knows every table."""

from app.models.admin import Admin, AuthSessionRecord
from app.models.admin_url import AdminUrl
from app.models.community import Community
from app.models.request import JoinRequest
from app.models.user import Profile, User

__all__ = [
    "Admin",
    "AuthSessionRecord",
    "AdminUrl",
    "Community",
    "JoinRequest",
    "Profile",
    "User",
]
