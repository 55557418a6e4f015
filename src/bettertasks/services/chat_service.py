"""Chat with the task assistant.

The client never talks to the LLM directly: it posts the message with the
session token to the assistant endpoint, which re-verifies the caller.
"""

from __future__ import annotations

import logging

import httpx

from bettertasks.errors import (
    AppError,
    InternalError,
    NotAuthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from bettertasks.models import ChatMessage, Session

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to get response from AI"


class AssistantClient:
    """HTTP client for ``POST /api/ai``."""

    def __init__(
        self,
        endpoint: str,
        session: Session | None,
        *,
        timeout: float = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.session = session
        self.timeout = timeout
        self._transport = transport

    async def ask(self, message: str) -> str:
        """Send one message and return the assistant's reply.

        Raises:
            ValidationError: Empty message, or rejected by the server
            NotAuthenticatedError: No session, or the server rejected it
            UnauthorizedError: The server refused the caller
            InternalError: Any other failure
        """
        text = message.strip()
        if not text:
            raise ValidationError("Message is required")
        if self.session is None:
            raise NotAuthenticatedError("Please log in to use the assistant.")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.session.access_token}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint, json={"message": text}, headers=headers
                )
        except httpx.RequestError as e:
            logger.error("Assistant request failed: %s", e)
            raise InternalError(GENERIC_FAILURE) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_success:
            reply = data.get("reply")
            if not isinstance(reply, str) or not reply:
                raise InternalError(GENERIC_FAILURE, status_code=response.status_code)
            return reply

        error = data.get("error") or GENERIC_FAILURE
        status = response.status_code
        logger.warning("Assistant returned %s: %s", status, error)
        if status == 400:
            raise ValidationError(error, status_code=status)
        if status == 401:
            raise NotAuthenticatedError(error, status_code=status)
        if status == 403:
            raise UnauthorizedError(error, status_code=status)
        raise InternalError(error, status_code=status)


class ChatSession:
    """In-memory conversation. Lost when the process exits."""

    def __init__(self, client: AssistantClient):
        self.client = client
        self.messages: list[ChatMessage] = []

    async def send(self, message: str) -> ChatMessage | None:
        """Send a message and record both sides of the exchange.

        Blank input is ignored. A failed request becomes an assistant message
        reading ``Error: ...``.
        """
        text = message.strip()
        if not text:
            return None

        self.messages.append(ChatMessage(role="user", content=text))
        try:
            reply = await self.client.ask(text)
        except AppError as e:
            reply = f"Error: {e.message}"

        answer = ChatMessage(role="assistant", content=reply)
        self.messages.append(answer)
        return answer
