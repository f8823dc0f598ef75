"""WebSocket transport used by the streaming session."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import WebSocketError

_CONNECT_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError, TimeoutError)


class Transport(ABC):
    """A text-message connection the streaming session runs over."""

    @classmethod
    @abstractmethod
    async def connect(cls, url: str) -> Transport:
        """Open a new connection to ``url``."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """Send one text message."""

    @abstractmethod
    async def receive(self) -> str | None:
        """Return the next text message, or ``None`` once the connection has closed."""

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""


class WebSocketTransport(Transport):
    """Transport over a real WebSocket connection."""

    def __init__(self, connection: ClientConnection) -> None:
        self._connection = connection

    @classmethod
    async def connect(cls, url: str) -> WebSocketTransport:
        try:
            connection = await connect(url)
        except _CONNECT_ERRORS as error:
            raise WebSocketError(str(error) or type(error).__name__) from error
        return cls(connection)

    async def send(self, message: str) -> None:
        try:
            await self._connection.send(message)
        except (WebSocketException, OSError) as error:
            raise WebSocketError(str(error) or type(error).__name__) from error

    async def receive(self) -> str | None:
        """Return the next text frame; binary frames are skipped."""
        while True:
            try:
                frame = await self._connection.recv()
            except ConnectionClosed as error:
                if error.rcvd is not None:
                    return None
                raise WebSocketError(str(error)) from error
            except (WebSocketException, OSError) as error:
                raise WebSocketError(str(error) or type(error).__name__) from error
            if isinstance(frame, str):
                return frame

    async def close(self) -> None:
        try:
            await self._connection.close()
        except (WebSocketException, OSError) as error:
            raise WebSocketError(str(error) or type(error).__name__) from error

    async def __aenter__(self) -> WebSocketTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()