"""Decorators for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from bettertasks.errors import AppError, NotAuthenticatedError
from bettertasks.services.config_service import get_config_service
from bettertasks.utils.exit_codes import get_exit_code_name
from bettertasks.utils.logger import get_logger
from bettertasks.utils.ui.formatters import format_error


def _require_auth() -> None:
    """Require a stored session. The backend still verifies it on every call."""
    if get_config_service().load_session() is None:
        raise NotAuthenticatedError(
            "Not logged in. Use 'bettertasks auth login --token <token>' to authenticate."
        )


def command_wrapper(_func: Callable | None = None, *, auth_required: bool = True):
    """Decorator to wrap command functions with common functionality."""

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                # 1. Handle Auth
                if auth_required:
                    _require_auth()

                # 2. Run Sync or Async
                if inspect.iscoroutinefunction(func):
                    result = asyncio.run(func(*args, **kwargs))
                else:
                    result = func(*args, **kwargs)

                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except AppError as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) [%s] - %s",
                    cmd,
                    elapsed,
                    get_exit_code_name(e.exit_code),
                    e.message,
                )
                format_error(e.message)
                raise typer.Exit(code=e.exit_code) from e

            except typer.Exit:
                # Re-raise Typer's own exits (like --help or explicit Exit(0))
                raise

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                # Generic fallback for unexpected crashes
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=1) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)
