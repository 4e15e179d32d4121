from enum import Enum


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def status(self) -> RequestStatus:
        """Status a pending record moves to when this decision is applied."""
        if self is Decision.APPROVE:
            return RequestStatus.APPROVED
        return RequestStatus.REJECTED


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ViewState(str, Enum):
    LOADING = "loading"
    READY = "ready"


class ViewContent(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
