"""Events broadcast by a streaming session, and the credentials it logs in with."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class SessionCredentials:
    """Connection details needed for the streaming LOGIN command.

    The bearer token is kept out of ``repr`` so it never reaches logs.
    """

    customer_id: str
    correl_id: str
    channel: str
    function_id: str
    bearer_token: str
    socket_url: str

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"customer_id={self.customer_id!r}, "
            f"correl_id={self.correl_id!r}, "
            f"channel={self.channel!r}, "
            f"function_id={self.function_id!r}, "
            f"bearer_token='<redacted>', "
            f"socket_url={self.socket_url!r})"
        )


@dataclass(frozen=True)
class HeartbeatEvent:
    """Server heartbeat with its Unix timestamp."""

    timestamp: int


@dataclass(frozen=True)
class ResponseEvent:
    """Acknowledgement of a command, with the server's result code and message."""

    service: str | None = None
    command: str | None = None
    request_id: str | None = None
    code: int | None = None
    message: str | None = None


@dataclass(frozen=True)
class DataEvent:
    """Data pushed for one service; each item is one keyed content record."""

    service: str
    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class DisconnectedEvent:
    """The connection was lost or closed; ``error`` says why, when known."""

    error: str | None = None


@dataclass(frozen=True)
class ReconnectingEvent:
    """A reconnect attempt is starting; attempts are numbered from 1."""

    attempt: int


@dataclass(frozen=True)
class ReconnectedEvent:
    """The session reconnected, logged in and replayed its subscriptions."""


StreamEvent = Union[
    HeartbeatEvent,
    ResponseEvent,
    DataEvent,
    DisconnectedEvent,
    ReconnectingEvent,
    ReconnectedEvent,
]