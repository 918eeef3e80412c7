import datetime as dt
from collections.abc import Callable
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ecura.agent.ports import ChatClientProtocol, ChatMessage
from ecura.agent.prompts import build_clinic_context, build_system_prompt
from ecura.booking.lifecycle import local_now
from ecura.booking.service import BookingOutcome, ClinicService
from ecura.domain.exceptions import (
    ChatServiceError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)

WELCOME_TEXT = (
    "Hi! Welcome to *{clinic}*. I'm your AI health assistant. "
    "How can I help you book your appointment today?"
)
RETRY_TEXT = "Connection issue. Please try again."


class ChatOutcome(BaseModel):
    """Result of one patient message."""

    model_config = ConfigDict(frozen=True)

    reply: str
    booking: BookingOutcome | None = None
    retryable: bool = False


def confirmation_text(outcome: BookingOutcome) -> str:
    appointment = outcome.appointment
    notice = (
        "_WhatsApp notification sent._"
        if outcome.notified
        else "_Local booking saved. Manual follow-up may be required._"
    )
    return (
        "✅ *Appointment Registered!*\n"
        f"Patient: {appointment.patient_name}\n"
        f"Date: {appointment.date.isoformat()} at {appointment.time}\n"
        f"{notice}\n"
        "Our team will review your request and confirm shortly."
    )


class ChatSession:
    """One patient's booking conversation with a clinic.

    Booking intents from the model are admitted through the service like any
    other external request.  Nothing is persisted until a booking is
    admitted; ``abandon`` throws the conversation away.
    """

    def __init__(
        self,
        service: ClinicService,
        client: ChatClientProtocol,
        clinic_id: str,
        *,
        clock: Callable[[], dt.datetime] = local_now,
    ) -> None:
        self._service = service
        self._client = client
        self._clinic_id = clinic_id
        self._clock = clock
        self._welcome = ChatMessage(
            sender="bot",
            text=WELCOME_TEXT.format(clinic=service.store.get_clinic(clinic_id).name),
        )
        self._history: list[ChatMessage] = [self._welcome]

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    async def send(self, text: str) -> ChatOutcome:
        """Send a patient message and return the assistant's reply.

        When the chat model fails, the message is not kept and the outcome is
        flagged ``retryable`` so the patient can send it again.
        """
        if not text.strip():
            raise ValidationError("message", "is required")

        clinic = self._service.store.get_clinic(self._clinic_id)
        message = ChatMessage(sender="user", text=text.strip())
        prompt = build_system_prompt(build_clinic_context(clinic), self._clock())

        try:
            reply = await self._client.complete([*self._history, message], prompt)
        except ChatServiceError as exc:
            logger.warning("Chat negotiation failed for clinic {}: {}", self._clinic_id, exc)
            return ChatOutcome(reply=RETRY_TEXT, retryable=True)

        self._history.append(message)
        if reply.booking_intent is None:
            return self._respond(reply.text)
        return await self._book(reply.booking_intent)

    def abandon(self) -> None:
        """Discard the conversation; no partial booking survives."""
        logger.info("Chat session for clinic {} abandoned", self._clinic_id)
        self._history = [self._welcome]

    async def _book(self, intent: dict[str, Any]) -> ChatOutcome:
        try:
            outcome = await self._service.book_from_chat(intent, clinic_id=self._clinic_id)
        except SlotUnavailableError as exc:
            text = f"I'm sorry, that time isn't available: {exc.reason}."
            if exc.suggestion:
                date, time = exc.suggestion
                text += f" The next available slot is *{date:%A} {date.isoformat()}* at *{time}*."
            return self._respond(text)
        except ValidationError as exc:
            return self._respond(
                f"I couldn't register the booking because the {exc.field.replace('_', ' ')} "
                f"{exc.reason}. Could you check the details?"
            )
        except NotFoundError:
            return self._respond(
                "I couldn't find that doctor at this clinic. "
                "Could you choose one of our listed doctors?"
            )

        return self._respond(confirmation_text(outcome), booking=outcome)

    def _respond(self, text: str, booking: BookingOutcome | None = None) -> ChatOutcome:
        self._history.append(ChatMessage(sender="bot", text=text))
        return ChatOutcome(reply=text, booking=booking)
