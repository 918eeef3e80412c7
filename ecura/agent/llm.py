import json
from typing import Any

import httpx
from loguru import logger

from ecura.agent.ports import ChatMessage, ChatReply
from ecura.agent.tools import BOOK_APPOINTMENT_SCHEMA, ToolCall
from ecura.domain.exceptions import ChatServiceError

FALLBACK_TEXT = "I'm checking the schedules..."


class ChatCompletionClient:
    """Chat collaborator over an OpenAI-compatible ``/chat/completions`` endpoint.

    Only the ``bookAppointment`` tool is offered.  Failures surface as
    ``ChatServiceError`` and are never retried here; the patient retries.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o",
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._model = model
        self._client = httpx.AsyncClient(timeout=timeout)

    async def complete(self, history: list[ChatMessage], system_prompt: str) -> ChatReply:
        if not self._api_key:
            raise ChatServiceError("No API key configured for the chat model")

        body: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                *(
                    {"role": "assistant" if m.sender == "bot" else "user", "content": m.text}
                    for m in history
                ),
            ],
            "tools": [{"type": "function", "function": BOOK_APPOINTMENT_SCHEMA.to_default_dict()}],
        }

        try:
            resp = await self._client.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
            resp.raise_for_status()
            data: Any = resp.json()
        except Exception as exc:
            raise ChatServiceError(f"Chat completion request failed: {exc}") from exc

        return self._parse_reply(data)

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Chat completion client closed")

    def _parse_reply(self, data: Any) -> ChatReply:
        if not isinstance(data, dict):
            raise ChatServiceError("Chat completion response is not a JSON object")
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not choices:
            raise ChatServiceError("Chat completion returned no choices")
        if not isinstance(choices[0], dict):
            raise ChatServiceError("Chat completion choice is not a JSON object")

        message = choices[0].get("message") or {}
        if not isinstance(message, dict):
            raise ChatServiceError("Chat completion message is not a JSON object")
        content = message.get("content") or ""
        text = content if isinstance(content, str) else ""

        tool_calls = message.get("tool_calls") or []
        if not isinstance(tool_calls, list):
            raise ChatServiceError("Chat completion tool_calls is not a list")

        for call in tool_calls:
            function = call.get("function") if isinstance(call, dict) else None
            if not isinstance(function, dict):
                raise ChatServiceError("Chat completion tool call is malformed")
            if function.get("name") != ToolCall.BOOK_APPOINTMENT.value:
                logger.warning("Ignoring unknown tool call: {}", function.get("name"))
                continue
            raw_args = function.get("arguments") or "{}"
            try:
                args = json.loads(raw_args) if isinstance(raw_args, str) else raw_args
            except json.JSONDecodeError as exc:
                raise ChatServiceError(f"Malformed bookAppointment arguments: {exc}") from exc
            if not isinstance(args, dict):
                raise ChatServiceError("bookAppointment arguments must be a JSON object")
            logger.info("Chat model requested a booking")
            return ChatReply(text=text, booking_intent=args)

        return ChatReply(text=text or FALLBACK_TEXT)
