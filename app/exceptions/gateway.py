"""Exceptions raised by the remote data gateway."""

from app.exceptions.base import AppException
from app.exceptions.crud import ValidationError


class GatewayError(AppException):
    """Base class for failures reported by the backend service."""

    def __init__(self, collection: str, message: str):
        """
        Initialize a GatewayError for an operation against a collection.

        Parameters:
            collection (str): Name of the remote collection the operation targeted.
            message (str): Description of the failure.
        """
        self.collection = collection
        super().__init__(f"{collection}: {message}")


class QueryError(GatewayError):
    """A read or count query failed."""

    pass


class MutationError(GatewayError):
    """An update, insert or delete was rejected by the backend."""

    pass


class SubscriptionError(GatewayError):
    """Opening or closing a change-notification channel failed."""

    pass


class UnknownCollectionError(GatewayError):
    """The collection is not exposed by this gateway."""

    def __init__(self, collection: str):
        super().__init__(collection, "unknown collection")


class InvalidTransitionError(ValidationError):
    """A status change was requested for a record that is no longer pending."""

    def __init__(self, key: int | str, status: str):
        """
        Parameters:
            key (int | str): Key of the record the decision was applied to.
            status (str): The record's current, terminal status.
        """
        self.key = key
        self.status = status
        super().__init__(f"Record '{key}' is already {status}", field="status")
