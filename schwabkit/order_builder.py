"""Builder for single-leg equity order payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

Number = Union[int, float, Decimal]


class Instruction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    BUY_TO_COVER = "BUY_TO_COVER"
    SELL_SHORT = "SELL_SHORT"
    BUY_TO_OPEN = "BUY_TO_OPEN"
    BUY_TO_CLOSE = "BUY_TO_CLOSE"
    SELL_TO_OPEN = "SELL_TO_OPEN"
    SELL_TO_CLOSE = "SELL_TO_CLOSE"
    EXCHANGE = "EXCHANGE"
    SELL_SHORT_EXEMPT = "SELL_SHORT_EXEMPT"


class Session(str, Enum):
    NORMAL = "NORMAL"
    AM = "AM"
    PM = "PM"
    SEAMLESS = "SEAMLESS"


class Duration(str, Enum):
    DAY = "DAY"
    GOOD_TILL_CANCEL = "GOOD_TILL_CANCEL"
    FILL_OR_KILL = "FILL_OR_KILL"
    IMMEDIATE_OR_CANCEL = "IMMEDIATE_OR_CANCEL"
    END_OF_WEEK = "END_OF_WEEK"
    END_OF_MONTH = "END_OF_MONTH"
    NEXT_END_OF_MONTH = "NEXT_END_OF_MONTH"
    UNKNOWN = "UNKNOWN"


class OrderStrategyType(str, Enum):
    SINGLE = "SINGLE"
    CANCEL = "CANCEL"
    RECALL = "RECALL"
    PAIR = "PAIR"
    FLATTEN = "FLATTEN"
    TWO_DAY_SWAP = "TWO_DAY_SWAP"
    BLAST_ALL = "BLAST_ALL"
    OCO = "OCO"
    TRIGGER = "TRIGGER"


class OrderTypeRequest(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"
    STOP_LIMIT = "STOP_LIMIT"
    TRAILING_STOP = "TRAILING_STOP"
    CABINET = "CABINET"
    NON_MARKETABLE = "NON_MARKETABLE"
    MARKET_ON_CLOSE = "MARKET_ON_CLOSE"
    EXERCISE = "EXERCISE"
    TRAILING_STOP_LIMIT = "TRAILING_STOP_LIMIT"
    NET_DEBIT = "NET_DEBIT"
    NET_CREDIT = "NET_CREDIT"
    NET_ZERO = "NET_ZERO"
    LIMIT_ON_CLOSE = "LIMIT_ON_CLOSE"


class InstrumentAssetType(str, Enum):
    EQUITY = "EQUITY"
    OPTION = "OPTION"
    INDEX = "INDEX"
    MUTUAL_FUND = "MUTUAL_FUND"
    CASH_EQUIVALENT = "CASH_EQUIVALENT"
    FIXED_INCOME = "FIXED_INCOME"
    CURRENCY = "CURRENCY"
    COLLECTIVE_INVESTMENT = "COLLECTIVE_INVESTMENT"


def _encode_decimal(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"cannot encode {type(value).__name__}")


@dataclass
class OrderBuilder:
    """Order payload for a single equity leg.

    Defaults are a ``NORMAL`` session, ``DAY`` duration and ``SINGLE``
    strategy; the fluent setters override them.
    """

    _order_type: OrderTypeRequest
    _symbol: str
    _instruction: Instruction
    _quantity: Number
    _price: Number | None = None
    _stop_price: Number | None = None
    _session: Session = Session.NORMAL
    _duration: Duration = Duration.DAY
    _order_strategy_type: OrderStrategyType = OrderStrategyType.SINGLE

    @classmethod
    def _single_leg(
        cls,
        order_type: OrderTypeRequest,
        symbol: str,
        instruction: Instruction | str,
        quantity: Number,
        price: Number | None = None,
        stop_price: Number | None = None,
    ) -> OrderBuilder:
        return cls(
            order_type, symbol, Instruction(instruction), quantity, price, stop_price
        )

    @classmethod
    def equity_market(cls, symbol, instruction, quantity) -> OrderBuilder:
        """A ``MARKET`` order."""
        return cls._single_leg(OrderTypeRequest.MARKET, symbol, instruction, quantity)

    @classmethod
    def equity_limit(cls, symbol, instruction, quantity, price) -> OrderBuilder:
        """A ``LIMIT`` order."""
        return cls._single_leg(
            OrderTypeRequest.LIMIT, symbol, instruction, quantity, price=price
        )

    @classmethod
    def equity_stop(cls, symbol, instruction, quantity, stop_price) -> OrderBuilder:
        """A ``STOP`` order."""
        return cls._single_leg(
            OrderTypeRequest.STOP, symbol, instruction, quantity, stop_price=stop_price
        )

    @classmethod
    def equity_stop_limit(
        cls, symbol, instruction, quantity, price, stop_price
    ) -> OrderBuilder:
        """A ``STOP_LIMIT`` order."""
        return cls._single_leg(
            OrderTypeRequest.STOP_LIMIT,
            symbol,
            instruction,
            quantity,
            price=price,
            stop_price=stop_price,
        )

    def session(self, session: Session | str) -> OrderBuilder:
        self._session = Session(session)
        return self

    def duration(self, duration: Duration | str) -> OrderBuilder:
        self._duration = Duration(duration)
        return self

    def order_strategy_type(self, strategy: OrderStrategyType | str) -> OrderBuilder:
        self._order_strategy_type = OrderStrategyType(strategy)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Return the order as the API's camelCase JSON object."""
        payload: dict[str, Any] = {
            "orderType": self._order_type.value,
            "session": self._session.value,
            "duration": self._duration.value,
            "orderStrategyType": self._order_strategy_type.value,
        }
        if self._price is not None:
            payload["price"] = self._price
        if self._stop_price is not None:
            payload["stopPrice"] = self._stop_price
        payload["orderLegCollection"] = [
            {
                "instruction": self._instruction.value,
                "quantity": self._quantity,
                "instrument": {
                    "symbol": self._symbol,
                    "assetType": InstrumentAssetType.EQUITY.value,
                },
            }
        ]
        return payload

    def to_json(self) -> str:
        """Return the order as JSON text; decimal amounts are written as strings."""
        return json.dumps(self.to_dict(), default=_encode_decimal)