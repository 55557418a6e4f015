"""Error taxonomy shared by the stores, the view controller and the CLI.

Every failure a user action can hit is one of these. Commands turn them into
an ``Error: ...`` line and the matching exit code; the task list controller
catches them at the boundary of each action and records them instead.
"""

from __future__ import annotations

from bettertasks.utils.exit_codes import (
    ERROR_AUTH_FAILURE,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    ERROR_PERMISSION_DENIED,
)


class AppError(Exception):
    """Base application error with exit code."""

    exit_code: int = ERROR_GENERAL

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.status_code = status_code
        self.code = code


class NotAuthenticatedError(AppError):
    """No session, or the session was rejected by the backend."""

    exit_code = ERROR_AUTH_FAILURE


class UnauthorizedError(AppError):
    """Valid session, forbidden resource."""

    exit_code = ERROR_PERMISSION_DENIED


class NotFoundError(AppError):
    """Row absent, or owned by someone else (the backend does not say which)."""

    exit_code = ERROR_NOT_FOUND


class ValidationError(AppError):
    """Input rejected locally or by the backend."""

    exit_code = ERROR_INVALID_ARGS


class StoreUnavailableError(AppError):
    """Transport failure or backend-side error."""

    exit_code = ERROR_NETWORK


class InternalError(AppError):
    """Assistant upstream failure. The message is always generic."""

    exit_code = ERROR_GENERAL
