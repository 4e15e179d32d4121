"""Authentication exceptions."""

from app.exceptions.base import AppException


class AuthenticationError(AppException):
    """Base class for authentication-related errors."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Email or password is incorrect."""

    def __init__(self, message: str = "Incorrect email or password"):
        """
        Initialize the InvalidCredentialsError with a human-readable message.

        Parameters:
            message: Custom error message describing the authentication failure; defaults to "Incorrect email or password".
        """
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Token is invalid, revoked, or malformed."""

    def __init__(self, message: str = "Invalid or expired token"):
        """
        Initialize the InvalidTokenError with a descriptive message.

        Parameters:
            message (str): Error message describing the token problem. Defaults to "Invalid or expired token".
        """
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    """Token has expired (more specific than InvalidTokenError)."""

    def __init__(self, token_type: str = "access"):
        """
        Initialize a TokenExpiredError for a specific token type.

        Parameters:
            token_type (str): Type of the expired token. Stored on the instance as `token_type` and included in the message as "<TokenType> token has expired".
        """
        super().__init__(f"{token_type.capitalize()} token has expired")
        self.token_type = token_type
