"""A small asyncio client for the room server.

It mirrors what the browser client does: connect, send ``join`` for its
room on every (re)connect, and after losing the connection wait a fixed
delay before trying again. Unlike the browser it gives up after
``max_retries`` consecutive failed attempts, and :meth:`RoomClient.stop`
cancels a pending reconnect.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)

MessageHandler = Callable[[dict], Union[None, Awaitable[None]]]


class RoomClient:
    def __init__(
        self,
        url: str,
        room_id: str,
        on_message: Optional[MessageHandler] = None,
        retry_delay: float = 1.0,
        max_retries: int = 10,
        connect: Callable[..., Any] = websockets.connect,
    ):
        self.url = url
        self.room_id = room_id
        self.on_message = on_message
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self._connect = connect
        self._ws: Any = None
        self._stopped = asyncio.Event()
        self.attempts = 0
        self.player_id: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def run(self) -> None:
        """Stay connected until :meth:`stop` or until retries run out."""
        failures = 0
        while not self._stopped.is_set():
            self.attempts += 1
            try:
                async with self._connect(self.url) as ws:
                    self._ws = ws
                    failures = 0
                    await self.send({"type": "join", "roomId": self.room_id})
                    await self._pump(ws)
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                failures += 1
                logger.info("Connection to %s lost (%s), attempt %d", self.url, exc, self.attempts)
            finally:
                self._ws = None

            if self._stopped.is_set():
                break
            if failures >= self.max_retries:
                logger.warning("Giving up on %s after %d failed attempts", self.url, failures)
                break
            # Fixed-delay reconnect timer; stop() wakes it early.
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.retry_delay)
            except asyncio.TimeoutError:
                pass

    async def _pump(self, ws: Any) -> None:
        async for raw in ws:
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring non-JSON frame from server")
                continue
            if message.get("type") == "join" and message.get("roomExists"):
                self.player_id = message.get("playerId")
            if self.on_message is not None:
                result = self.on_message(message)
                if asyncio.iscoroutine(result):
                    await result

    async def send(self, frame: dict) -> None:
        if self._ws is None:
            raise ConnectionError("Not connected")
        await self._ws.send(json.dumps(frame))

    async def move(self, x: float, y: float) -> None:
        await self.send({"type": "move", "position": {"x": x, "y": y}})

    async def stop(self) -> None:
        """Cancel any pending reconnect and close the live connection."""
        self._stopped.set()
        if self._ws is not None:
            await self._ws.close()


__all__ = ["RoomClient"]
