from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict


class ChatMessage(BaseModel):
    """One turn of a patient conversation."""

    model_config = ConfigDict(frozen=True)

    sender: Literal["user", "bot"]
    text: str


class ChatReply(BaseModel):
    """What the chat collaborator answered: free text, or a booking intent.

    ``booking_intent`` carries the raw ``bookAppointment`` arguments.  They
    are untrusted and go through the same admission checks as any other
    booking request.
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    booking_intent: dict[str, Any] | None = None


class ChatClientProtocol(Protocol):
    """Low-level interface to the chat-completion collaborator."""

    async def complete(self, history: list[ChatMessage], system_prompt: str) -> ChatReply:
        """Ask for the next reply given the full conversation.

        Raises:
            ChatServiceError: If the collaborator failed or answered malformed data.
        """
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
