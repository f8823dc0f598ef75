"""Turning server frames into session events and deciding what the session does next."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..errors import StreamProtocolError
from .events import DataEvent, HeartbeatEvent, ResponseEvent, StreamEvent
from .protocol import (
    HeartbeatMessage,
    StreamDataMessage,
    StreamResponseMessage,
    parse_message,
)

logger = logging.getLogger(__name__)

LOGIN_DENIED_CODE = 3
CLOSE_CONNECTION_CODE = 12
STOP_STREAMING_CODE = 30

ACCOUNT_ACTIVITY_SERVICE = "ACCT_ACTIVITY"

# Account activity is documented under two names; both are accepted and
# reported under the name used in subscription requests.
_SERVICE_ALIASES = {
    "ACCT_ACTIVITY": ACCOUNT_ACTIVITY_SERVICE,
    "ACCOUNT_ACTIVITY": ACCOUNT_ACTIVITY_SERVICE,
    "LEVELONE_EQUITIES": "LEVELONE_EQUITIES",
    "LEVELONE_OPTIONS": "LEVELONE_OPTIONS",
    "LEVELONE_FUTURES": "LEVELONE_FUTURES",
    "LEVELONE_FUTURES_OPTIONS": "LEVELONE_FUTURES_OPTIONS",
    "LEVELONE_FOREX": "LEVELONE_FOREX",
    "CHART_EQUITY": "CHART_EQUITY",
    "CHART_FUTURES": "CHART_FUTURES",
    "SCREENER_EQUITY": "SCREENER_EQUITY",
    "SCREENER_OPTION": "SCREENER_OPTION",
}


class Action(Enum):
    """What the session loop should do after handling a frame."""

    CONTINUE = "continue"
    RECONNECT = "reconnect"
    STOP = "stop"


@dataclass(frozen=True)
class DispatchResult:
    """Events produced by one frame, and the action the session should take.

    ``error`` explains a ``RECONNECT`` or ``STOP`` action and is ``None`` otherwise.
    """

    events: list[StreamEvent] = field(default_factory=list)
    action: Action = Action.CONTINUE
    error: str | None = None


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a LOGIN response.

    ``code`` is ``None`` when the frame held no usable result code.
    """

    code: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.code == 0

    @property
    def denied(self) -> bool:
        return self.code is not None and self.code != 0


def parse_data_message(message: StreamDataMessage) -> DataEvent | None:
    """Return a data event for a known service, or ``None`` if there is nothing to report."""
    service = message.service or ""
    if message.content is None:
        return None
    name = _SERVICE_ALIASES.get(service)
    if name is None:
        logger.warning("unknown streaming service: %s", service)
        return None
    return DataEvent(service=name, items=[dict(item) for item in message.content])


def _response_event(response: StreamResponseMessage) -> ResponseEvent:
    return ResponseEvent(
        service=response.service,
        command=response.command,
        request_id=response.requestid,
        code=response.code,
        message=response.message,
    )


def dispatch_message(text: str) -> DispatchResult:
    """Parse one frame into events and decide whether to continue, reconnect or stop.

    A login denial stops the session and takes precedence; a close-connection or
    stop-streaming response asks for a reconnect. Unparseable frames are logged
    and ignored.
    """
    try:
        messages = parse_message(text)
    except StreamProtocolError as error:
        logger.warning("failed to parse streaming message: %s", error)
        return DispatchResult()

    events: list[StreamEvent] = []
    action = Action.CONTINUE
    reason: str | None = None

    for message in messages:
        if isinstance(message, HeartbeatMessage):
            events.append(HeartbeatEvent(message.timestamp))
        elif isinstance(message, StreamResponseMessage):
            events.append(_response_event(message))
            code = message.code
            if code == LOGIN_DENIED_CODE:
                action, reason = Action.STOP, "LOGIN_DENIED (code=3)"
            elif code == CLOSE_CONNECTION_CODE and action is Action.CONTINUE:
                action, reason = Action.RECONNECT, "CLOSE_CONNECTION (code=12)"
            elif code == STOP_STREAMING_CODE and action is Action.CONTINUE:
                action, reason = Action.RECONNECT, "STOP_STREAMING (code=30)"
        elif isinstance(message, StreamDataMessage):
            data = parse_data_message(message)
            if data is not None:
                events.append(data)

    return DispatchResult(events=events, action=action, error=reason)


def check_login_response(text: str) -> LoginResult:
    """Read the result of a LOGIN command from the server's first response."""
    try:
        messages = parse_message(text)
    except StreamProtocolError:
        return LoginResult()

    for message in messages:
        if isinstance(message, StreamResponseMessage) and message.has_content:
            if message.code is None:
                return LoginResult()
            return LoginResult(code=message.code, message=message.message or "")
    return LoginResult()