"""Helpers for building request query parameters."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import EmptySymbolsError, MissingRequiredParameterError

QueryPair = tuple[str, str]


def required_text(parameter: str, value: str) -> str:
    """Return ``value`` stripped, or raise if nothing is left."""
    text = value.strip()
    if not text:
        raise MissingRequiredParameterError(parameter)
    return text


def _nonempty(values: Iterable[str]) -> list[str]:
    return [text for text in (value.strip() for value in values) if text]


def comma_separated_symbols(symbols: Iterable[str]) -> str:
    """Join the non-blank symbols with commas; raise if there are none."""
    cleaned = _nonempty(symbols)
    if not cleaned:
        raise EmptySymbolsError()
    return ",".join(cleaned)


def comma_separated_required(parameter: str, values: Iterable[str]) -> str:
    """Join the non-blank values with commas; raise naming ``parameter`` if none."""
    cleaned = _nonempty(values)
    if not cleaned:
        raise MissingRequiredParameterError(parameter)
    return ",".join(cleaned)


def optional_param(key: str, value: str | None) -> list[QueryPair]:
    """Return a one-pair list for a non-blank value, otherwise an empty list."""
    if value is None:
        return []
    text = value.strip()
    return [(key, text)] if text else []