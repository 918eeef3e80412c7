from typing import Protocol

from ecura.domain.models import Appointment, Clinic


class IdGenerator(Protocol):
    """Source of identifiers for new entities."""

    def new_id(self, prefix: str) -> str:
        """Return an identifier that has never been returned before.

        Args:
            prefix: Entity kind, e.g. ``"apt"`` or ``"visit"``.
        """
        ...


class NotifierProtocol(Protocol):
    """Outbound notification channel for newly admitted appointments."""

    async def send_new_appointment(self, appointment: Appointment, clinic: Clinic) -> None:
        """Deliver the new-appointment event.

        Raises:
            NotificationDeliveryError: If the event could not be delivered.
        """
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
