"""Exception hierarchy for the Schwab client."""

from __future__ import annotations


class SchwabError(Exception):
    """Base class for every error raised by this package."""


class MissingRequiredParameterError(SchwabError, ValueError):
    """A required request parameter was missing or blank."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"missing required parameter: {parameter}")
        self.parameter = parameter


class EmptySymbolsError(SchwabError, ValueError):
    """No usable symbol was supplied to a request that needs at least one."""

    def __init__(self) -> None:
        super().__init__("at least one non-empty symbol is required")


class StreamProtocolError(SchwabError):
    """The streaming service sent, or was about to be sent, something unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(f"streaming protocol error: {message}")
        self.message = message


class StreamLoginError(SchwabError):
    """The streaming service rejected the LOGIN command."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"streaming login failed (code={code}): {message}")
        self.code = code
        self.message = message


class WebSocketError(SchwabError):
    """The WebSocket connection failed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"websocket error: {message}")
        self.message = message


class EncodeError(SchwabError):
    """A request payload could not be encoded."""

    def __init__(self, message: str) -> None:
        super().__init__(f"failed to encode request: {message}")
        self.message = message