from ecura.agent.ports import ChatMessage, ChatReply


class FakeChatClient:
    """In-memory test double for the ChatClientProtocol protocol.

    Queue ``replies`` in the order they should be returned.  Set
    ``complete_error`` to make the next call raise.  After calls, inspect
    ``calls`` to see each ``(history, system_prompt)`` that was sent.
    """

    def __init__(self) -> None:
        self.replies: list[ChatReply] = []
        self.calls: list[tuple[list[ChatMessage], str]] = []
        self.closed: bool = False

        self.complete_error: Exception | None = None

    async def complete(self, history: list[ChatMessage], system_prompt: str) -> ChatReply:
        self.calls.append((list(history), system_prompt))
        if self.complete_error:
            raise self.complete_error
        return self.replies.pop(0) if self.replies else ChatReply(text="How can I help?")

    async def close(self) -> None:
        self.closed = True
