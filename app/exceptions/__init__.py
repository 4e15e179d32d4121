"""
Application exceptions module.

This module provides a clean separation of concerns for error handling:
- Base exceptions define the hierarchy
- CRUD exceptions handle validation and lookups
- Auth exceptions handle authentication/authorization
- Gateway exceptions handle failures reported by the backend service
- HTTP mapping is handled separately in app/core/error_handlers.py
"""

from app.exceptions.base import AppException
from app.exceptions.crud import (
    NotFoundError,
    AlreadyExistsError,
    ValidationError,
)
from app.exceptions.auth import (
    AuthenticationError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
)
from app.exceptions.gateway import (
    GatewayError,
    QueryError,
    MutationError,
    SubscriptionError,
    UnknownCollectionError,
    InvalidTransitionError,
)

__all__ = [
    # Base
    "AppException",
    # CRUD
    "NotFoundError",
    "AlreadyExistsError",
    "ValidationError",
    # Auth
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    # Gateway
    "GatewayError",
    "QueryError",
    "MutationError",
    "SubscriptionError",
    "UnknownCollectionError",
    "InvalidTransitionError",
]
