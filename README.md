# schwabkit

Building blocks for talking to the Schwab trader and market-data APIs from
Python:

- query-parameter builders for quotes, option chains, movers, price history,
  order lists and transaction lists (`schwabkit.options`, with helpers in
  `schwabkit.query`);
- a payload builder for single-leg equity orders (`schwabkit.order_builder`);
- an asyncio streaming session over WebSocket that logs in, subscribes to
  streaming services, broadcasts parsed events and replays its subscriptions
  after reconnecting (`schwabkit.streaming`).

## Installation

```
pip install schwabkit
```

To run the test suite:

```
pip install "schwabkit[test]"
pytest
```

## Query options

Each options class is a small fluent builder. `to_query()` returns the list of
`(name, value)` pairs to send, in order. Blank optional values are dropped;
blank required values raise `MissingRequiredParameterError`.

```python
from schwabkit.options import OptionChainOptions, OrderListOptions

chain = (
    OptionChainOptions("AAPL")
    .parameter("contractType", "CALL")
    .integer_parameter("strikeCount", 5)
    .include_underlying_quote(True)
)
chain.to_query()
# [("symbol", "AAPL"), ("contractType", "CALL"),
#  ("strikeCount", "5"), ("includeUnderlyingQuote", "true")]

orders = OrderListOptions("2024-01-01T00:00:00Z", "2024-01-31T00:00:00Z").max_results(10)
orders.to_query()
# [("fromEnteredTime", "2024-01-01T00:00:00Z"),
#  ("toEnteredTime", "2024-01-31T00:00:00Z"), ("maxResults", "10")]
```

The classes are `QuoteOptions`, `OptionChainOptions`, `MoverOptions`,
`PriceHistoryOptions`, `OrderListOptions` and `TransactionListOptions`.
`schwabkit.query` has the helpers they use: `required_text`,
`comma_separated_symbols`, `comma_separated_required` and `optional_param`.

## Orders

```python
from decimal import Decimal
from schwabkit.order_builder import Duration, Instruction, OrderBuilder

order = OrderBuilder.equity_limit(
    "MSFT", Instruction.BUY, Decimal("5"), Decimal("400")
).duration(Duration.GOOD_TILL_CANCEL)

order.to_dict()   # camelCase payload
order.to_json()   # JSON text; Decimal amounts are written as strings
```

`equity_market`, `equity_limit`, `equity_stop` and `equity_stop_limit` build
orders with one `EQUITY` leg. They default to the `NORMAL` session, `DAY`
duration and `SINGLE` strategy; `session()`, `duration()` and
`order_strategy_type()` override them. `price` and `stopPrice` appear only for
the order types that use them.

## Streaming

A `StreamingSession` is started from an already-connected transport and the
streamer credentials:

```python
import asyncio

from schwabkit.streaming.events import DataEvent, SessionCredentials
from schwabkit.streaming.session import StreamingSession
from schwabkit.streaming.transport import WebSocketTransport


async def main():
    credentials = SessionCredentials(
        customer_id="customer",
        correl_id="correlation",
        channel="channel",
        function_id="function",
        bearer_token="token",
        socket_url="wss://streamer.example.com/ws",
    )
    transport = await WebSocketTransport.connect(credentials.socket_url)
    session = await StreamingSession.start(transport, credentials)
    events = session.subscribe()
    await session.subscribe_equities(["AAPL", "MSFT"], [0, 1, 2, 3])
    while True:
        event = await events.get()
        if isinstance(event, DataEvent):
            print(event.service, event.items)


asyncio.run(main())
```

- `subscribe()` returns a new `asyncio.Queue` that receives every event from
  then on. It holds up to 1024 events; when a reader falls behind, the oldest
  are dropped.
- The subscription methods are `subscribe_account_activity`,
  `subscribe_equities`, `subscribe_options`, `subscribe_futures`,
  `subscribe_futures_options`, `subscribe_forex`, `subscribe_chart_equity`,
  `subscribe_chart_futures`, `subscribe_screener_equity` and
  `subscribe_screener_option`. Fields are given as integer field indices. A
  new subscription to a service replaces the previous one. Blank keys raise
  `EmptySymbolsError`; no fields raise `StreamProtocolError`.
- Events (in `schwabkit.streaming.events`) are `HeartbeatEvent`,
  `ResponseEvent`, `DataEvent`, `DisconnectedEvent`, `ReconnectingEvent` and
  `ReconnectedEvent`. A `DataEvent` carries the service name and its content
  records as plain dicts keyed as the server sends them.
- On a lost connection, or a `CLOSE_CONNECTION` (12) or `STOP_STREAMING` (30)
  response, the session reconnects with exponential back-off from 1 to 30
  seconds plus jitter, for up to ten attempts, logs in again and replays its
  subscriptions. A `LOGIN_DENIED` (3) response stops it.
- `disconnect()` sends LOGOUT, closes the connection and stops the session.
- `start()` takes an optional `connect` callable used to open replacement
  transports; by default it is the transport class's own `connect`. Any
  subclass of `schwabkit.streaming.transport.Transport` can be used.

`schwabkit.streaming.protocol` builds the LOGIN, LOGOUT, SUBS, ADD, UNSUBS and
VIEW commands and parses server frames (`parse_message`);
`schwabkit.streaming.dispatch` turns frames into events (`dispatch_message`,
`parse_data_message`, `check_login_response`).

## What it does not do

There is no HTTP client for the REST endpoints and no OAuth handling: the
query builders and order payloads have to be sent with an HTTP library of your
choice, and the bearer token and streamer credentials (taken from the user
preferences endpoint) have to be obtained by you. Streaming data is not turned
into typed records; each item is the raw content dict, and field indices are
plain integers rather than named fields.

## Errors

All errors derive from `schwabkit.errors.SchwabError`:
`MissingRequiredParameterError`, `EmptySymbolsError`, `StreamProtocolError`,
`StreamLoginError`, `WebSocketError` and `EncodeError`.