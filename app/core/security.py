"""JWT helpers for sessions issued by the local gateway."""

from datetime import datetime, timedelta, timezone

import jwt
from jwt.exceptions import ExpiredSignatureError, PyJWTError

from app.core.config import get_settings
from app.exceptions import AppException, InvalidTokenError, TokenExpiredError


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token containing the provided payload.

    Parameters:
        data (dict): Claims to include in the token payload.
        expires_delta (timedelta | None): Optional time until expiration. If `None`, ACCESS_TOKEN_EXPIRE_MINUTES from the settings is used.

    Returns:
        str: Encoded JWT access token string.

    Raises:
        AppException: If the token cannot be generated.
    """
    settings = get_settings()
    expires_delta = (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = data.copy()
    to_encode.update(
        {"exp": datetime.now(timezone.utc) + expires_delta, "type": "access"}
    )
    try:
        return jwt.encode(
            to_encode,
            settings.SECRET_KEY.get_secret_value(),
            algorithm=settings.ALGORITHM,
        )
    except PyJWTError as e:
        raise AppException("Could not generate authentication token.") from e


def decode_access_token(token: str) -> dict:
    """
    Decode and validate an access token issued by `create_access_token`.

    Returns:
        dict: The token claims.

    Raises:
        TokenExpiredError: If the token's `exp` claim is in the past.
        InvalidTokenError: If the signature is invalid, the token is malformed, or it is not an access token.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY.get_secret_value(),
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError:
        raise TokenExpiredError("access")
    except PyJWTError:
        raise InvalidTokenError()

    if payload.get("type") != "access" or payload.get("mode") != "admin":
        raise InvalidTokenError()
    return payload
