"""Assistant request handling.

Each request is verified against the auth provider with the caller's own
token, the caller's recent tasks are summarised into the system prompt, and
exactly one chat completion is made. Upstream error details are logged,
never returned.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from openai import AsyncOpenAI

from bettertasks.errors import AppError
from bettertasks.models import Task, User
from bettertasks.services.api.client import BackendClient
from bettertasks.services.api.tasks import TasksAPI
from bettertasks.services.config_service import ConfigService
from bettertasks.services.session_service import SessionService

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized. Please log in."
NOT_CONFIGURED = "Server configuration error. Please contact support."
MESSAGE_REQUIRED = "Message is required and must be a non-empty string"
EMPTY_REPLY = "Failed to get response from AI"
GENERIC_FAILURE = "An error occurred while processing your request. Please try again."
METHOD_NOT_ALLOWED = "Method not allowed. Use POST to send a message."

NO_TASKS = "No tasks found."

SYSTEM_PROMPT = """You are a helpful AI assistant integrated into a task management application. 
The user has the following tasks:

{tasks}

Help the user with questions about their tasks, provide suggestions for task management, 
prioritization advice, or answer general questions. Be concise, friendly, and actionable.
If the user asks about specific tasks, refer to them by their number or title."""


def render_task_summary(tasks: list[Task]) -> str:
    """Numbered, one-entry-per-task summary used as the assistant's context."""
    if not tasks:
        return NO_TASKS

    lines = []
    for n, task in enumerate(tasks, start=1):
        status = "✅ Completed" if task.completed else "⏳ Pending"
        line = f"{n}. {task.title} ({status})"
        if task.priority:
            line += f" - Priority: {task.priority.value}"
        due = task.date or task.due_date
        if due:
            line += f" - Due: {due.isoformat()}"
        if task.description:
            line += f"\n  Description: {task.description}"
        lines.append(line)
    return "\n".join(lines)


def build_system_prompt(tasks: list[Task]) -> str:
    return SYSTEM_PROMPT.format(tasks=render_task_summary(tasks))


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer ...`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@dataclass
class AssistantResult:
    status_code: int
    body: dict[str, Any]


def _error(status_code: int, message: str) -> AssistantResult:
    return AssistantResult(status_code, {"error": message})


class AssistantService:
    """Answers one chat message on behalf of a verified caller."""

    def __init__(
        self,
        config_service: ConfigService,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        llm_factory: Callable[[str], AsyncOpenAI] | None = None,
    ):
        self.config_service = config_service
        self.settings = config_service.config.assistant
        self._transport = transport
        self._llm_factory = llm_factory or self._default_llm

    def _default_llm(self, api_key: str) -> AsyncOpenAI:
        # One request per message: no SDK retries
        return AsyncOpenAI(
            api_key=api_key, timeout=self.settings.timeout, max_retries=0
        )

    def _backend(self, token: str) -> BackendClient:
        return BackendClient.from_config(
            self.config_service, access_token=token, transport=self._transport
        )

    async def verify_user(self, client: BackendClient) -> User | None:
        return await SessionService(client, self.config_service).get_user()

    async def load_tasks(self, client: BackendClient, user: User) -> list[Task]:
        """The caller's most recent tasks. Failures leave the context empty."""
        try:
            rows = await TasksAPI(client).list_tasks(
                filters={"user_id": f"eq.{user.id}"},
                order="created_at.desc",
                limit=self.settings.context_limit,
            )
        except AppError as e:
            logger.error("Error fetching tasks for assistant context: %s", e.message)
            return []
        return [Task(**row) for row in rows]

    async def complete(self, api_key: str, system_prompt: str, message: str) -> str | None:
        llm = self._llm_factory(api_key)
        completion = await llm.chat.completions.create(
            model=self.settings.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content

    async def respond(self, token: str | None, raw_body: bytes) -> AssistantResult:
        """Run the full request: verify, check config, validate, load, complete."""
        try:
            if not token:
                return _error(401, UNAUTHORIZED)

            async with self._backend(token) as client:
                user = await self.verify_user(client)
                if user is None:
                    return _error(401, UNAUTHORIZED)

                api_key = self.config_service.llm_api_key
                if not api_key:
                    logger.error("OPENAI_API_KEY is not set in environment variables")
                    return _error(500, NOT_CONFIGURED)

                body = json.loads(raw_body or b"null")
                message = body.get("message") if isinstance(body, dict) else None
                if not isinstance(message, str) or not message.strip():
                    return _error(400, MESSAGE_REQUIRED)

                tasks = await self.load_tasks(client, user)

            reply = await self.complete(
                api_key, build_system_prompt(tasks), message.strip()
            )
            if not reply:
                return _error(500, EMPTY_REPLY)
            return AssistantResult(200, {"reply": reply})
        except Exception:
            logger.exception("Error in /api/ai")
            return _error(500, GENERIC_FAILURE)
