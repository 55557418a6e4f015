"""HTTP client for the BetterTasks backend (Supabase-compatible REST)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from bettertasks.errors import (
    AppError,
    NotAuthenticatedError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from bettertasks.services.config_service import ConfigService

logger = logging.getLogger(__name__)

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class BackendClient:
    """HTTP client for the auth and REST endpoints of the backend.

    One instance is built per command (or per assistant request) and handed
    to every store that needs it. The bearer token is either the stored
    session's or, on the server, the caller's own.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        access_token: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise AppError(
                "Backend URL is not configured. Set SUPABASE_URL or "
                "'bettertasks config set backend.url <url>'."
            )
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config_service: ConfigService,
        *,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> BackendClient:
        """Build a client from configuration, using the stored session token by default."""
        if access_token is None:
            session = config_service.load_session()
            access_token = session.access_token if session else None
        return cls(
            config_service.backend_url,
            config_service.anon_key,
            access_token=access_token,
            timeout=config_service.config.backend.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> BackendClient:
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager and ensure the client is closed."""
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers with the public key and, when present, the bearer token."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "apikey": self.anon_key,
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                **kwargs,
            )
        # Token may change between calls (login, logout)
        self._client.headers.update(self._get_headers())
        if not self.access_token:
            self._client.headers.pop("Authorization", None)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make one HTTP request. Failures are not retried."""
        client = await self._get_client()
        url = path if path.startswith("/") else f"/{path}"

        try:
            response = await client.request(
                method=method,
                url=url,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise StoreUnavailableError(f"Could not reach the backend: {e}") from e

        if response.is_error:
            raise _error_from_response(response)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a POST request."""
        return await self.request(
            "POST", path, json=json, params=params, headers=headers
        )

    async def patch(
        self,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request(
            "PATCH", path, json=json, params=params, headers=headers
        )

    async def delete(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, params=params, headers=headers)

    @staticmethod
    def json_body(response: httpx.Response) -> Any:
        """Decode a successful response body.

        Raises:
            StoreUnavailableError: If the body is not JSON (e.g. a gateway error page)
        """
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "%s %s returned a non-JSON body (%s)",
                response.request.method,
                response.request.url.path,
                response.headers.get("content-type", "no content type"),
            )
            raise StoreUnavailableError(
                "The backend returned an unreadable response",
                status_code=response.status_code,
            ) from e


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_from_response(response: httpx.Response) -> AppError:
    """Map a failed backend response onto the error taxonomy."""
    body = _error_body(response)
    status = response.status_code
    code = body.get("code")
    code = str(code) if code is not None else None
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or body.get("error")
        or response.reason_phrase
        or f"HTTP {status}"
    )

    logger.error(
        "%s %s -> %s (code=%s): %s",
        response.request.method,
        response.request.url.path,
        status,
        code,
        message,
    )

    kwargs = {"status_code": status, "code": code}
    if status == 401:
        return NotAuthenticatedError(message, **kwargs)
    if status == 403:
        return UnauthorizedError(message, **kwargs)
    if status in (404, 406):
        return NotFoundError(message, **kwargs)
    if status in (400, 409, 422):
        return ValidationError(message, **kwargs)
    return StoreUnavailableError(message, **kwargs)
