"""Builders for optional and required request query parameters."""

from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field
from decimal import Decimal

from .query import QueryPair, optional_param, required_text


def _format_float(value: float) -> str:
    """Format a float the shortest way, without exponent or a trailing ``.0``."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class QuoteOptions:
    """Optional query parameters for quote requests."""

    _fields: str | None = field(default=None, init=False)
    _indicative: bool = field(default=False, init=False)

    def fields(self, fields: str) -> QuoteOptions:
        """Request a comma-separated subset of quote root nodes."""
        self._fields = fields
        return self

    def indicative(self, indicative: bool) -> QuoteOptions:
        """Include indicative ETF quotes where supported."""
        self._indicative = indicative
        return self

    def to_query(self) -> list[QueryPair]:
        query = optional_param("fields", self._fields)
        if self._indicative:
            query.append(("indicative", _format_bool(True)))
        return query


@dataclass
class OptionChainOptions:
    """Query parameters for option-chain requests."""

    symbol: str
    _query: list[QueryPair] = field(default_factory=list, init=False)

    def parameter(self, name: str, value: str) -> OptionChainOptions:
        """Add a string parameter unless the value is blank."""
        if value.strip():
            self._query.append((name, value))
        return self

    def integer_parameter(self, name: str, value: int) -> OptionChainOptions:
        self._query.append((name, str(operator.index(value))))
        return self

    def number_parameter(self, name: str, value: float) -> OptionChainOptions:
        self._query.append((name, _format_float(value)))
        return self

    def include_underlying_quote(self, include: bool) -> OptionChainOptions:
        """Include the underlying quote in the response."""
        if include:
            self._query.append(("includeUnderlyingQuote", _format_bool(True)))
        return self

    def to_query(self) -> list[QueryPair]:
        return [("symbol", self.symbol), *self._query]


@dataclass
class MoverOptions:
    """Optional query parameters for movers requests."""

    _sort: str | None = field(default=None, init=False)
    _frequency: int | None = field(default=None, init=False)

    def sort(self, sort: str) -> MoverOptions:
        self._sort = sort
        return self

    def frequency(self, frequency: int) -> MoverOptions:
        self._frequency = operator.index(frequency)
        return self

    def to_query(self) -> list[QueryPair]:
        query = optional_param("sort", self._sort)
        if self._frequency is not None:
            query.append(("frequency", str(self._frequency)))
        return query


@dataclass
class PriceHistoryOptions:
    """Optional query parameters for price-history requests."""

    _query: list[QueryPair] = field(default_factory=list, init=False)

    def parameter(self, name: str, value: str) -> PriceHistoryOptions:
        """Add a string parameter unless the value is blank."""
        if value.strip():
            self._query.append((name, value))
        return self

    def integer_parameter(self, name: str, value: int) -> PriceHistoryOptions:
        self._query.append((name, str(operator.index(value))))
        return self

    def bool_parameter(self, name: str, value: bool) -> PriceHistoryOptions:
        self._query.append((name, _format_bool(value)))
        return self

    def to_query(self) -> list[QueryPair]:
        return list(self._query)


@dataclass
class OrderListOptions:
    """Query parameters for order-list requests."""

    from_entered_time: str
    to_entered_time: str
    _max_results: int | None = field(default=None, init=False)
    _status: str | None = field(default=None, init=False)

    def max_results(self, max_results: int) -> OrderListOptions:
        self._max_results = operator.index(max_results)
        return self

    def status(self, status: str) -> OrderListOptions:
        self._status = status
        return self

    def to_query(self) -> list[QueryPair]:
        """Return the query pairs; raise if a required time is blank."""
        query = [
            ("fromEnteredTime", required_text("fromEnteredTime", self.from_entered_time)),
            ("toEnteredTime", required_text("toEnteredTime", self.to_entered_time)),
        ]
        if self._max_results is not None:
            query.append(("maxResults", str(self._max_results)))
        query.extend(optional_param("status", self._status))
        return query


@dataclass
class TransactionListOptions:
    """Query parameters for transaction-list requests."""

    start_date: str
    end_date: str
    types: str
    _symbol: str | None = field(default=None, init=False)

    def symbol(self, symbol: str) -> TransactionListOptions:
        self._symbol = symbol
        return self

    def to_query(self) -> list[QueryPair]:
        """Return the query pairs; raise if a required value is blank."""
        query = [
            ("startDate", required_text("startDate", self.start_date)),
            ("endDate", required_text("endDate", self.end_date)),
            ("types", required_text("types", self.types)),
        ]
        query.extend(optional_param("symbol", self._symbol))
        return query