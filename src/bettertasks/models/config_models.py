"""Configuration models.

The backend URL and public key may be overridden from the environment; the
LLM key is never part of this model (see ``ConfigService.llm_api_key``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class BackendConfig(BaseModel):
    """Backend-as-a-service connection."""

    url: str = Field(default="", description="Project URL, e.g. https://xyz.supabase.co")
    anon_key: str = Field(default="", description="Public (anon) API key")
    timeout: int = Field(default=30)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class AssistantConfig(BaseModel):
    """AI assistant settings, shared by the CLI client and the server."""

    endpoint: str = Field(default="http://127.0.0.1:8000/api/ai")
    model: str = Field(default="gpt-4o")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, ge=1)
    context_limit: int = Field(default=50, ge=1)
    timeout: int = Field(default=60)


class ViewConfig(BaseModel):
    """Task list view timings, in seconds."""

    animation_delay: float = Field(default=1.0, ge=0.0)
    load_timeout: float = Field(default=10.0, gt=0.0)


class RealtimeConfig(BaseModel):
    """Realtime channel settings."""

    channel: str = Field(default="tasks-changes")
    heartbeat_interval: float = Field(default=30.0, gt=0.0)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: str = Field(default="table", description="table, json or yaml")


class AppConfig(BaseModel):
    """Main BetterTasks configuration"""

    backend: BackendConfig = Field(default_factory=BackendConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
