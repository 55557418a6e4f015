"""Configuration service for managing BetterTasks configuration.

This module provides the ConfigService class, the single source of truth for
configuration and the locally stored session. It handles:

- Loading and saving config.json
- Dot-separated get/set/reset of individual keys
- Environment overrides for the backend endpoint, public key and LLM key
- Session file storage (0600)
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir
from pydantic import BaseModel

from bettertasks.models import AppConfig, Session

logger = logging.getLogger(__name__)

_APP_NAME = "bettertasks"

ENV_BACKEND_URL = ("BETTERTASKS_SUPABASE_URL", "SUPABASE_URL")
ENV_ANON_KEY = ("BETTERTASKS_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY")
ENV_ASSISTANT_URL = ("BETTERTASKS_ASSISTANT_URL",)
ENV_LLM_API_KEY = ("OPENAI_API_KEY",)


def _first_env(names: tuple[str, ...]) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip():
            return value.strip()
    return None


class ConfigService:
    """Service for managing application configuration and the stored session."""

    def __init__(self):
        """Initialize the config service."""
        self.config_dir = Path(user_config_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.session_path = self.config_dir / "session.json"

        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        return self._get_from(self.config, key)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        Raises:
            KeyError: If the key does not name an existing setting
        """
        keys = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                raise KeyError(key)
            current = current[k]
        if keys[-1] not in current:
            raise KeyError(key)

        current[keys[-1]] = value
        self._config = AppConfig(**config_dict)
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset configuration (or a single key) to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return
        default_value = self._get_from(AppConfig(), key)
        if default_value is None:
            raise KeyError(key)
        if isinstance(default_value, BaseModel):
            default_value = default_value.model_dump()
        self.set(key, default_value)

    @staticmethod
    def _get_from(config: AppConfig, key: str) -> Any:
        value: Any = config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, k, None)
            else:
                return None
        return value

    # -- effective settings (environment wins over config.json) -------------

    @property
    def backend_url(self) -> str:
        return (_first_env(ENV_BACKEND_URL) or self.config.backend.url).rstrip("/")

    @property
    def anon_key(self) -> str:
        return _first_env(ENV_ANON_KEY) or self.config.backend.anon_key

    @property
    def assistant_endpoint(self) -> str:
        return _first_env(ENV_ASSISTANT_URL) or self.config.assistant.endpoint

    @property
    def llm_api_key(self) -> str | None:
        """LLM key for the assistant server. Read from the environment only."""
        return _first_env(ENV_LLM_API_KEY)

    # -- session storage -----------------------------------------------------

    def load_session(self) -> Session | None:
        """Load the stored session, or None if absent or unreadable."""
        if not self.session_path.exists():
            return None

        try:
            with open(self.session_path, encoding="utf-8") as f:
                return Session.model_validate(json.load(f))
        except (JSONDecodeError, ValueError) as e:
            logger.warning("Ignoring unreadable session file: %s", e)
            return None

    def save_session(self, session: Session) -> None:
        """Persist the session with owner-only permissions."""
        self.session_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.session_path, "w", encoding="utf-8") as f:
            f.write(session.model_dump_json(indent=2))
        self.session_path.chmod(0o600)

    def clear_session(self) -> None:
        """Remove the stored session."""
        if self.session_path.exists():
            self.session_path.unlink()


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
