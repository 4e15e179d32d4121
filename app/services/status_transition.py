"""Approve or reject pending records."""

from typing import Any

from loguru import logger

from app.exceptions import GatewayError, InvalidTransitionError
from app.gateway.base import DataGateway, Record
from app.models.enums import Decision, RequestStatus
from app.models.views import TransitionOutcome
from app.services.live_list import LiveListController


def current_status(record: Record, status_field: str = "status") -> RequestStatus | None:
    value = record.get(status_field)
    try:
        return RequestStatus(value)
    except ValueError:
        return None


class StatusTransitionAction:
    """Moves a record from pending to approved or rejected.

    The update is a single mutation scoped by the record key. When a list
    controller is attached, the new status is written into its held list as
    soon as the mutation succeeded; the re-fetch triggered by the resulting
    change notification reconciles afterwards.
    """

    def __init__(
        self,
        gateway: DataGateway,
        collection: str,
        *,
        status_field: str = "status",
        controller: LiveListController | None = None,
    ):
        self.gateway = gateway
        self.collection = collection
        self.status_field = status_field
        self.controller = controller

    def available_actions(self, record: Record) -> tuple[Decision, ...]:
        if current_status(record, self.status_field) is RequestStatus.PENDING:
            return (Decision.APPROVE, Decision.REJECT)
        return ()

    async def apply(
        self, key: Any, decision: Decision, current: Record | None = None
    ) -> TransitionOutcome:
        """
        Apply `decision` to the record identified by `key`.

        Parameters:
            key: Key of the record.
            decision: Approve or reject.
            current: The record as last seen; looked up in the attached
                controller when omitted.

        Returns:
            TransitionOutcome: `applied` is False when the backend rejected the
            update, in which case nothing local was changed.

        Raises:
            InvalidTransitionError: If the record is known to be terminal already.
        """
        if current is None and self.controller is not None:
            current = self.controller.find(key)
        previous = current_status(current, self.status_field) if current else None
        if previous is not None and previous.is_terminal:
            raise InvalidTransitionError(key, previous.value)

        target = decision.status
        try:
            await self.gateway.mutate(
                self.collection, key, {self.status_field: target.value}
            )
        except GatewayError as e:
            logger.error(f"Could not {decision.value} {self.collection} '{key}': {e}")
            return TransitionOutcome(
                key=str(key), decision=decision, applied=False, status=previous
            )

        logger.info(f"{self.collection} '{key}' {target.value}")
        if self.controller is not None and self.controller.patch(
            key, {self.status_field: target.value}
        ):
            await self.controller.publish()
        return TransitionOutcome(
            key=str(key), decision=decision, applied=True, status=target
        )
