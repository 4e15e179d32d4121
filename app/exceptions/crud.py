"""Lookup and validation exceptions shared by services and routers."""

from app.exceptions.base import AppException


class NotFoundError(AppException):
    """A record, page, or other named resource does not exist."""

    def __init__(self, resource: str, identifier: int | str):
        """
        Initialize a NotFoundError for a missing resource.

        Parameters:
            resource (str): The kind of resource that was looked up (for example "Page" or "requests").
            identifier (int | str): The key or name that was not found.
        """
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class AlreadyExistsError(AppException):
    """A unique field value is already taken."""

    def __init__(self, resource: str, field: str, value: int | str):
        """
        Parameters:
            resource (str): Name of the resource type (for example "Admin").
            field (str): The field that must be unique.
            value (int | str): The conflicting value.
        """
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}='{value}' already exists")


class ValidationError(AppException):
    """Input was rejected before reaching the backend."""

    def __init__(self, message: str, field: str | None = None):
        """
        Parameters:
            message (str): Human-readable error message describing the validation failure.
            field (str | None): Optional name of the offending field.
        """
        self.field = field
        super().__init__(message)
