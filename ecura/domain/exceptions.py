import datetime as dt


class BookingError(Exception):
    """Base exception for all booking-core errors."""


class ValidationError(BookingError):
    """Raised when booking, slot or visit input is malformed or incomplete."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class SlotUnavailableError(ValidationError):
    """Raised when an externally sourced booking falls outside the doctor's availability."""

    def __init__(
        self,
        reason: str,
        doctor_id: str,
        suggestion: tuple[dt.date, str] | None = None,
    ) -> None:
        self.doctor_id = doctor_id
        self.suggestion = suggestion
        super().__init__("time", reason)


class InvalidStateError(BookingError):
    """Raised when an appointment is in the wrong or a terminal state for an operation."""

    def __init__(self, reason: str, appointment_id: str | None = None) -> None:
        self.reason = reason
        self.appointment_id = appointment_id
        super().__init__(reason)


class NotFoundError(BookingError):
    """Raised when a referenced clinic, doctor, staff member or appointment does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id!r}")


class ExternalServiceError(BookingError):
    """Raised when an external collaborator (chat model, webhook) fails."""


class ChatServiceError(ExternalServiceError):
    """Raised when the chat negotiation call fails. Eligible for a user-driven retry."""


class NotificationDeliveryError(ExternalServiceError):
    """Raised when the outbound appointment webhook cannot be delivered."""

    def __init__(self, reason: str, appointment_id: str | None = None) -> None:
        self.reason = reason
        self.appointment_id = appointment_id
        super().__init__(f"Failed to deliver appointment notification: {reason}")
