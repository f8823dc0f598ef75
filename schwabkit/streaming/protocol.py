"""Wire format of the streaming service: parsing server frames and building commands."""

from __future__ import annotations

import json
import logging
import operator
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from ..errors import EncodeError, StreamProtocolError

logger = logging.getLogger(__name__)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_U32_MAX = 2**32 - 1
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class StreamResponseMessage:
    """Acknowledgement of a command sent to the server.

    ``has_content`` tells whether the server sent a ``content`` object at all;
    ``code`` and ``message`` come from inside it.
    """

    service: str | None = None
    command: str | None = None
    requestid: str | None = None
    correl_id: str | None = None
    timestamp: int | None = None
    has_content: bool = False
    code: int | None = None
    message: str | None = None


@dataclass(frozen=True)
class HeartbeatMessage:
    """Server heartbeat carrying a Unix timestamp."""

    timestamp: int


@dataclass(frozen=True)
class StreamDataMessage:
    """Market or account data pushed by the server."""

    service: str | None = None
    timestamp: int | None = None
    command: str | None = None
    content: list[dict[str, Any]] | None = None


ParsedMessage = Union[StreamResponseMessage, HeartbeatMessage, StreamDataMessage]


def _invalid(what: str, value: Any) -> StreamProtocolError:
    return StreamProtocolError(f"invalid type for {what}: {value!r}")


def _opt_str(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _invalid(key, value)
    return value


def _opt_int(obj: dict[str, Any], key: str, low: int, high: int) -> int | None:
    value = obj.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise _invalid(key, value)
    return value


def _opt_list(obj: dict[str, Any], key: str) -> list[Any] | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise _invalid(key, value)
    return value


def _as_object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise _invalid(what, value)
    return value


def _request_id(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _parse_response(raw: Any) -> StreamResponseMessage:
    obj = _as_object(raw, "response")
    content_raw = obj.get("content")
    content = None if content_raw is None else _as_object(content_raw, "content")
    return StreamResponseMessage(
        service=_opt_str(obj, "service"),
        command=_opt_str(obj, "command"),
        requestid=_request_id(obj.get("requestid")),
        correl_id=_opt_str(obj, "SchwabClientCorrelId"),
        timestamp=_opt_int(obj, "timestamp", _I64_MIN, _I64_MAX),
        has_content=content is not None,
        code=None if content is None else _opt_int(content, "code", 0, _U32_MAX),
        message=None if content is None else _opt_str(content, "msg"),
    )


def _parse_heartbeat(raw: Any) -> HeartbeatMessage | None:
    heartbeat = _opt_str(_as_object(raw, "notify"), "heartbeat")
    if heartbeat is not None and _INTEGER_TEXT.fullmatch(heartbeat):
        timestamp = int(heartbeat)
        if _I64_MIN <= timestamp <= _I64_MAX:
            return HeartbeatMessage(timestamp)
    logger.warning("skipping malformed heartbeat: %r", heartbeat)
    return None


def _parse_data(raw: Any) -> StreamDataMessage:
    obj = _as_object(raw, "data")
    content = _opt_list(obj, "content")
    return StreamDataMessage(
        service=_opt_str(obj, "service"),
        timestamp=_opt_int(obj, "timestamp", _I64_MIN, _I64_MAX),
        command=_opt_str(obj, "command"),
        content=None
        if content is None
        else [_as_object(item, "content item") for item in content],
    )


def parse_message(text: str) -> list[ParsedMessage]:
    """Split one text frame into its responses, heartbeats and data messages.

    Responses come first, then heartbeats, then data. Malformed heartbeats are
    skipped; any other malformed input raises :class:`StreamProtocolError`.
    """
    try:
        document = json.loads(text)
    except (ValueError, TypeError) as error:
        raise StreamProtocolError(str(error)) from error
    top = _as_object(document, "message")

    result: list[ParsedMessage] = [
        _parse_response(item) for item in _opt_list(top, "response") or []
    ]
    for item in _opt_list(top, "notify") or []:
        heartbeat = _parse_heartbeat(item)
        if heartbeat is not None:
            result.append(heartbeat)
    result.extend(_parse_data(item) for item in _opt_list(top, "data") or [])
    return result


def _join_indices(field_indices: Iterable[int]) -> str:
    parts = []
    for index in field_indices:
        try:
            number = operator.index(index)
        except TypeError as error:
            raise EncodeError(f"field index is not an integer: {index!r}") from error
        if not 0 <= number <= _U32_MAX:
            raise EncodeError(f"field index out of range: {number}")
        parts.append(str(number))
    return ",".join(parts)


def _encode(
    request_id: str,
    service: str,
    command: str,
    customer_id: str,
    correl_id: str,
    parameters: dict[str, str],
) -> str:
    item = {
        "requestid": request_id,
        "service": service,
        "command": command,
        "SchwabClientCustomerId": customer_id,
        "SchwabClientCorrelId": correl_id,
        "parameters": parameters,
    }
    try:
        return json.dumps(
            {"requests": [item]}, separators=(",", ":"), ensure_ascii=False
        )
    except (TypeError, ValueError) as error:
        raise EncodeError(str(error)) from error


def build_login(
    customer_id: str,
    correl_id: str,
    channel: str,
    function_id: str,
    access_token: str,
) -> str:
    """Build the ADMIN LOGIN command carrying the bearer token."""
    return _encode(
        "0",
        "ADMIN",
        "LOGIN",
        customer_id,
        correl_id,
        {
            "Authorization": access_token,
            "SchwabClientChannel": channel,
            "SchwabClientFunctionId": function_id,
        },
    )


def build_logout(customer_id: str, correl_id: str) -> str:
    """Build the ADMIN LOGOUT command."""
    return _encode("1", "ADMIN", "LOGOUT", customer_id, correl_id, {})


def _build_keyed(
    command: str,
    request_id: str,
    service_name: str,
    customer_id: str,
    correl_id: str,
    symbols: Iterable[str],
    field_indices: Iterable[int] | None,
) -> str:
    parameters = {"keys": ",".join(symbols)}
    if field_indices is not None:
        parameters["fields"] = _join_indices(field_indices)
    return _encode(
        request_id, service_name, command, customer_id, correl_id, parameters
    )


def build_subs(
    request_id: str,
    service_name: str,
    customer_id: str,
    correl_id: str,
    symbols: Iterable[str],
    field_indices: Iterable[int],
) -> str:
    """Build a SUBS command, replacing any subscription to the service."""
    return _build_keyed(
        "SUBS", request_id, service_name, customer_id, correl_id, symbols, field_indices
    )


def build_add(
    request_id: str,
    service_name: str,
    customer_id: str,
    correl_id: str,
    symbols: Iterable[str],
    field_indices: Iterable[int],
) -> str:
    """Build an ADD command, adding symbols to an existing subscription."""
    return _build_keyed(
        "ADD", request_id, service_name, customer_id, correl_id, symbols, field_indices
    )


def build_unsubs(
    request_id: str,
    service_name: str,
    customer_id: str,
    correl_id: str,
    symbols: Iterable[str],
) -> str:
    """Build an UNSUBS command for the given symbols."""
    return _build_keyed(
        "UNSUBS", request_id, service_name, customer_id, correl_id, symbols, None
    )


def build_view(
    request_id: str,
    service_name: str,
    customer_id: str,
    correl_id: str,
    field_indices: Iterable[int],
) -> str:
    """Build a VIEW command, changing the subscribed fields only."""
    return _encode(
        request_id,
        service_name,
        "VIEW",
        customer_id,
        correl_id,
        {"fields": _join_indices(field_indices)},
    )