"""Realtime bridge - change notifications for the tasks table.

Speaks the Phoenix channel protocol used by the backend's realtime service:
join one channel with a ``postgres_changes`` filter on ``public.tasks``, keep
it alive with heartbeats, and invoke a callback (without payload) for every
insert, update or delete the backend reports.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "1.0.0"


def realtime_url(backend_url: str, anon_key: str) -> str:
    """Websocket URL of the realtime service for a backend base URL."""
    base = backend_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    query = urlencode({"apikey": anon_key, "vsn": PROTOCOL_VERSION})
    return f"{base}/realtime/v1/websocket?{query}"


class RealtimeBridge:
    """One subscription to task changes, open between start() and stop()."""

    def __init__(
        self,
        backend_url: str,
        anon_key: str,
        access_token: str | None,
        on_change: Callable[[], None],
        *,
        channel: str = "tasks-changes",
        heartbeat_interval: float = 30.0,
        connect: Callable[[str], Any] = ws_connect,
    ):
        self.url = realtime_url(backend_url, anon_key)
        self.access_token = access_token
        self.on_change = on_change
        self.topic = f"realtime:{channel}"
        self.heartbeat_interval = heartbeat_interval
        self._connect = connect
        self._refs = itertools.count(1)
        self._join_ref: str | None = None
        self._ws: Any = None
        self._tasks: list[asyncio.Task] = []

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def _message(
        self, topic: str, event: str, payload: dict[str, Any], *, join_ref: str | None
    ) -> str:
        return json.dumps(
            {
                "topic": topic,
                "event": event,
                "payload": payload,
                "ref": str(next(self._refs)),
                "join_ref": join_ref,
            }
        )

    def join_payload(self) -> dict[str, Any]:
        return {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": [
                    {"event": "*", "schema": "public", "table": "tasks"}
                ],
            },
            "access_token": self.access_token,
        }

    async def start(self) -> None:
        """Open the websocket, join the channel and start listening."""
        if self._ws is not None:
            return
        self._ws = await self._connect(self.url)
        self._join_ref = str(next(self._refs))
        await self._ws.send(
            json.dumps(
                {
                    "topic": self.topic,
                    "event": "phx_join",
                    "payload": self.join_payload(),
                    "ref": self._join_ref,
                    "join_ref": self._join_ref,
                }
            )
        )
        logger.info("Subscribed to %s", self.topic)
        self._tasks = [
            asyncio.create_task(self._listen()),
            asyncio.create_task(self._heartbeat()),
        ]

    async def stop(self) -> None:
        """Leave the channel and close the websocket."""
        if self._ws is None:
            return
        ws, self._ws = self._ws, None

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        try:
            await ws.send(
                self._message(self.topic, "phx_leave", {}, join_ref=self._join_ref)
            )
        except ConnectionClosed:
            logger.debug("Socket already closed before leaving %s", self.topic)
        await ws.close()
        logger.info("Unsubscribed from %s", self.topic)

    def handle_message(self, raw: str | bytes) -> bool:
        """Dispatch one frame. Returns True when it triggered the callback."""
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed realtime frame")
            return False
        if not isinstance(message, dict):
            return False

        topic = message.get("topic")
        event = message.get("event")
        if topic != self.topic:
            return False

        if event == "postgres_changes":
            logger.debug("Task change on %s", topic)
            self.on_change()
            return True
        if event == "phx_reply":
            payload = message.get("payload") or {}
            if payload.get("status") == "error":
                logger.error("Realtime join rejected: %s", payload.get("response"))
        elif event in ("phx_error", "phx_close"):
            logger.warning("Realtime channel %s: %s", topic, event)
        return False

    async def _listen(self) -> None:
        ws = self._ws
        try:
            async for raw in ws:
                self.handle_message(raw)
        except ConnectionClosed as e:
            logger.warning("Realtime connection closed: %s", e)

    async def _heartbeat(self) -> None:
        ws = self._ws
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await ws.send(self._message("phoenix", "heartbeat", {}, join_ref=None))
            except ConnectionClosed:
                logger.warning("Realtime heartbeat failed; connection closed")
                return
