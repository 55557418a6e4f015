"""Tests for the assistant client and chat session."""

import json

import httpx
import pytest

from bettertasks.errors import (
    InternalError,
    NotAuthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from bettertasks.models import Session, User
from bettertasks.services.chat_service import AssistantClient, ChatSession

ENDPOINT = "http://assistant.example/api/ai"


@pytest.fixture()
def session():
    return Session(access_token="token-1", user=User(id="user-1"))


def client_for(handler, session):
    return AssistantClient(ENDPOINT, session, transport=httpx.MockTransport(handler))


class TestAssistantClient:
    @pytest.mark.asyncio
    async def test_posts_trimmed_message_with_bearer_token(self, session):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"reply": "You have 3 tasks."})

        reply = await client_for(handler, session).ask("  what's due?  ")

        assert reply == "You have 3 tasks."
        assert seen == {"auth": "Bearer token-1", "body": {"message": "what's due?"}}

    @pytest.mark.asyncio
    async def test_blank_message_is_rejected_locally(self, session):
        def handler(request):
            raise AssertionError("should not be called")

        with pytest.raises(ValidationError):
            await client_for(handler, session).ask("   ")

    @pytest.mark.asyncio
    async def test_requires_a_session(self):
        client = AssistantClient(ENDPOINT, None)
        with pytest.raises(NotAuthenticatedError):
            await client.ask("hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_type"),
        [
            (400, ValidationError),
            (401, NotAuthenticatedError),
            (403, UnauthorizedError),
            (500, InternalError),
            (502, InternalError),
        ],
    )
    async def test_error_statuses(self, session, status, error_type):
        def handler(request):
            return httpx.Response(status, json={"error": "nope"})

        with pytest.raises(error_type) as exc_info:
            await client_for(handler, session).ask("hello")

        assert exc_info.value.message == "nope"
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_error_without_body_uses_generic_message(self, session):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(InternalError, match="Failed to get response from AI"):
            await client_for(handler, session).ask("hello")

    @pytest.mark.asyncio
    async def test_success_without_reply_is_an_error(self, session):
        def handler(request):
            return httpx.Response(200, json={"reply": ""})

        with pytest.raises(InternalError):
            await client_for(handler, session).ask("hello")

    @pytest.mark.asyncio
    async def test_network_failure(self, session):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(InternalError, match="Failed to get response from AI"):
            await client_for(handler, session).ask("hello")


class TestChatSession:
    @pytest.mark.asyncio
    async def test_records_both_sides(self, session):
        def handler(request):
            return httpx.Response(200, json={"reply": "Hi!"})

        chat = ChatSession(client_for(handler, session))
        answer = await chat.send("hello")

        assert answer.content == "Hi!"
        assert [(m.role, m.content) for m in chat.messages] == [
            ("user", "hello"),
            ("assistant", "Hi!"),
        ]

    @pytest.mark.asyncio
    async def test_failure_becomes_error_message(self, session):
        def handler(request):
            return httpx.Response(401, json={"error": "Unauthorized"})

        chat = ChatSession(client_for(handler, session))
        answer = await chat.send("hello")

        assert answer.role == "assistant"
        assert answer.content == "Error: Unauthorized"
        assert len(chat.messages) == 2

    @pytest.mark.asyncio
    async def test_blank_input_is_ignored(self, session):
        chat = ChatSession(AssistantClient(ENDPOINT, session))
        assert await chat.send("  ") is None
        assert chat.messages == []
