"""
client/transport.py
-------------------
Socket transports for the real-time client.

A transport moves envelope dicts ({"event": ..., "data": ...}) over one
physical connection. It is opened once and closed once; reconnecting means
building a new transport.
"""

import asyncio
import json
from typing import Optional, Protocol
from urllib.parse import urlencode

import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

logger = structlog.get_logger(__name__)


class TransportClosed(Exception):
    """The underlying connection is gone. Raised by receive() and send()."""


class Transport(Protocol):

    async def open(self) -> None:
        ...

    async def send(self, message: dict) -> None:
        ...

    async def receive(self) -> dict:
        ...

    async def close(self) -> None:
        ...


class WebSocketTransport:
    """
    JSON-envelope transport over the `websockets` client.

    url is the socket endpoint, e.g. ws://localhost:8000/ws. A dashboard
    passes its access token, which is appended as ?token=.
    """

    def __init__(self, url: str, token: Optional[str] = None, open_timeout: float = 10.0) -> None:
        self._url = f"{url}?{urlencode({'token': token})}" if token else url
        self._open_timeout = open_timeout
        self._ws: Optional[ClientConnection] = None

    async def open(self) -> None:
        try:
            self._ws = await connect(self._url, open_timeout=self._open_timeout)
        except (OSError, asyncio.TimeoutError, InvalidHandshake) as exc:
            raise TransportClosed(str(exc)) from exc

    async def send(self, message: dict) -> None:
        if self._ws is None:
            raise TransportClosed("transport is not open")
        try:
            await self._ws.send(json.dumps(message))
        except ConnectionClosed as exc:
            raise TransportClosed(str(exc)) from exc

    async def receive(self) -> dict:
        if self._ws is None:
            raise TransportClosed("transport is not open")
        while True:
            try:
                raw = await self._ws.recv()
            except ConnectionClosed as exc:
                raise TransportClosed(str(exc)) from exc
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Non-JSON frame from server ignored")
                continue
            if isinstance(message, dict) and isinstance(message.get("event"), str):
                return message
            logger.warning("Frame without event name ignored")

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
