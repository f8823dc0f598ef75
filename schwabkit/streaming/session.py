"""Streaming session: login, subscriptions, event broadcast and automatic reconnects."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import operator
import random
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ..errors import (
    EmptySymbolsError,
    SchwabError,
    StreamLoginError,
    StreamProtocolError,
)
from .dispatch import LOGIN_DENIED_CODE, Action, check_login_response, dispatch_message
from .events import (
    DisconnectedEvent,
    ReconnectedEvent,
    ReconnectingEvent,
    SessionCredentials,
    StreamEvent,
)
from .protocol import build_login, build_logout, build_subs
from .transport import Transport

logger = logging.getLogger(__name__)

EVENT_BUFFER_SIZE = 1024
MAX_RECONNECT_ATTEMPTS = 10
INITIAL_RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 30.0
RECONNECT_JITTER_MS = 500

Connector = Callable[[str], Awaitable[Transport]]


@dataclass(frozen=True)
class _Subscription:
    service: str
    symbols: tuple[str, ...]
    field_indices: tuple[int, ...]


def _resolve(future: asyncio.Future[None], error: BaseException | None) -> None:
    if future.done():
        return
    if error is None:
        future.set_result(None)
    else:
        future.set_exception(error)


async def _close_quietly(transport: Transport) -> None:
    with contextlib.suppress(Exception):
        await transport.close()


async def _login(transport: Transport, credentials: SessionCredentials) -> None:
    await transport.send(
        build_login(
            credentials.customer_id,
            credentials.correl_id,
            credentials.channel,
            credentials.function_id,
            credentials.bearer_token,
        )
    )
    text = await transport.receive()
    if text is None:
        raise StreamProtocolError("connection closed before login response")
    result = check_login_response(text)
    if result.ok:
        return
    if result.denied:
        raise StreamLoginError(result.code, result.message)
    raise StreamProtocolError("streaming login response did not contain a success code")


class StreamingSession:
    """A logged-in streaming connection that broadcasts events to its subscribers.

    Create one with :meth:`start`. A background task reads the connection,
    turns frames into events, and on a lost connection reconnects with
    exponential backoff, logs in again and replays the active subscriptions.
    """

    def __init__(
        self,
        transport: Transport,
        credentials: SessionCredentials,
        connect: Connector,
    ) -> None:
        self._transport = transport
        self._credentials = credentials
        self._connect = connect
        self._subscribers: list[asyncio.Queue[StreamEvent]] = []
        self._subs: list[_Subscription] = []
        self._commands: deque[tuple[str, asyncio.Future[None]]] = deque()
        self._inbox: deque[tuple[int, str | None, BaseException | None]] = deque()
        self._logouts: deque[asyncio.Future[None]] = deque()
        self._wake = asyncio.Event()
        self._logout_requested = asyncio.Event()
        self._generation = 0
        self._reader: asyncio.Task[None] | None = None
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @classmethod
    async def start(
        cls,
        transport: Transport,
        credentials: SessionCredentials,
        connect: Connector | None = None,
    ) -> StreamingSession:
        """Log in over an open transport and start the session.

        ``connect`` opens a replacement transport for reconnects; it defaults
        to the transport class's own ``connect``.
        """
        await _login(transport, credentials)
        return cls(transport, credentials, connect or type(transport).connect)

    def subscribe(self) -> asyncio.Queue[StreamEvent]:
        """Return a new queue that receives every event from now on.

        The queue holds up to 1024 events; when a reader falls behind the
        oldest events are dropped.
        """
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=EVENT_BUFFER_SIZE)
        self._subscribers.append(queue)
        return queue

    async def subscribe_account_activity(self, keys: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to account activity; only the first key is used by the server."""
        await self._subscribe_service("11", "ACCT_ACTIVITY", keys, fields)

    async def subscribe_equities(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to level-one equity quotes."""
        await self._subscribe_service("2", "LEVELONE_EQUITIES", symbols, fields)

    async def subscribe_options(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to level-one option quotes."""
        await self._subscribe_service("3", "LEVELONE_OPTIONS", symbols, fields)

    async def subscribe_futures(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to level-one futures quotes."""
        await self._subscribe_service("4", "LEVELONE_FUTURES", symbols, fields)

    async def subscribe_futures_options(
        self, symbols: Iterable[str], fields: Iterable[Any]
    ) -> None:
        """Subscribe to level-one futures option quotes."""
        await self._subscribe_service("5", "LEVELONE_FUTURES_OPTIONS", symbols, fields)

    async def subscribe_forex(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to level-one forex quotes."""
        await self._subscribe_service("6", "LEVELONE_FOREX", symbols, fields)

    async def subscribe_chart_equity(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to equity chart bars."""
        await self._subscribe_service("7", "CHART_EQUITY", symbols, fields)

    async def subscribe_chart_futures(self, symbols: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to futures chart bars."""
        await self._subscribe_service("8", "CHART_FUTURES", symbols, fields)

    async def subscribe_screener_equity(self, keys: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to equity screeners keyed ``PREFIX_SORTFIELD_FREQUENCY``."""
        await self._subscribe_service("9", "SCREENER_EQUITY", keys, fields)

    async def subscribe_screener_option(self, keys: Iterable[str], fields: Iterable[Any]) -> None:
        """Subscribe to option screeners keyed ``PREFIX_SORTFIELD_FREQUENCY``."""
        await self._subscribe_service("10", "SCREENER_OPTION", keys, fields)

    async def disconnect(self) -> None:
        """Send LOGOUT, close the connection and stop the session."""
        if self._stopped:
            raise StreamProtocolError("streaming session has stopped")
        ack: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._logouts.append(ack)
        self._logout_requested.set()
        self._wake.set()
        await ack

    async def _subscribe_service(
        self,
        request_id: str,
        service: str,
        symbols: Iterable[str],
        fields: Iterable[Any],
    ) -> None:
        if isinstance(symbols, str):
            symbols = [symbols]
        keys = [text for text in (symbol.strip() for symbol in symbols) if text]
        if not keys:
            raise EmptySymbolsError()
        field_list = list(fields)
        if not field_list:
            raise StreamProtocolError("at least one streaming field is required")

        message = build_subs(
            request_id,
            service,
            self._credentials.customer_id,
            self._credentials.correl_id,
            keys,
            field_list,
        )
        indices = tuple(operator.index(field) for field in field_list)
        if self._stopped:
            raise StreamProtocolError("streaming session has stopped")

        # Stored before sending so a reconnect racing the ack still replays it.
        self._subs = [sub for sub in self._subs if sub.service != service]
        self._subs.append(_Subscription(service, tuple(keys), indices))

        ack: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._commands.append((message, ack))
        self._wake.set()
        try:
            await ack
        except Exception:
            self._subs = [sub for sub in self._subs if sub.service != service]
            raise

    def _broadcast(self, event: StreamEvent) -> None:
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(event)

    def _start_reader(self) -> None:
        self._stop_reader()
        self._generation += 1
        self._reader = asyncio.get_running_loop().create_task(
            self._read(self._transport, self._generation)
        )

    def _stop_reader(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            self._reader = None

    async def _read(self, transport: Transport, generation: int) -> None:
        while True:
            try:
                text = await transport.receive()
            except Exception as error:
                self._inbox.append((generation, None, error))
                self._wake.set()
                return
            self._inbox.append((generation, text, None))
            self._wake.set()
            if text is None:
                return

    async def _run(self) -> None:
        try:
            self._start_reader()
            while await self._step():
                pass
        finally:
            self._shutdown()

    async def _step(self) -> bool:
        if self._commands:
            text, ack = self._commands.popleft()
            return await self._send_command(text, ack)
        if self._inbox:
            return await self._handle_received(*self._inbox.popleft())
        if self._logouts:
            ack = self._logouts.popleft()
            try:
                await self._send_logout()
            except SchwabError as error:
                _resolve(ack, error)
            else:
                _resolve(ack, None)
            return False
        self._wake.clear()
        await self._wake.wait()
        return True

    async def _send_command(self, text: str, ack: asyncio.Future[None]) -> bool:
        try:
            await self._transport.send(text)
        except SchwabError as error:
            logger.warning("failed to send streaming command: %s", error)
            _resolve(ack, error)
            return await self._lose_connection(str(error))
        _resolve(ack, None)
        return True

    async def _handle_received(
        self, generation: int, text: str | None, error: BaseException | None
    ) -> bool:
        if generation != self._generation:
            return True
        if error is not None:
            reason: str | None = str(error)
        elif text is None:
            reason = None
        else:
            result = dispatch_message(text)
            for event in result.events:
                self._broadcast(event)
            if result.action is Action.CONTINUE:
                return True
            if result.action is Action.STOP:
                self._broadcast(DisconnectedEvent(result.error))
                self._stop_reader()
                await _close_quietly(self._transport)
                return False
            reason = result.error
        return await self._lose_connection(reason)

    async def _lose_connection(self, reason: str | None) -> bool:
        self._broadcast(DisconnectedEvent(reason))
        self._stop_reader()
        await _close_quietly(self._transport)
        transport = await self._wait_for_reconnect()
        if transport is None:
            return False
        self._transport = transport
        self._start_reader()
        return True

    async def _send_logout(self) -> None:
        message = build_logout(self._credentials.customer_id, self._credentials.correl_id)
        try:
            await self._transport.send(message)
        except SchwabError:
            await _close_quietly(self._transport)
            raise
        await self._transport.close()

    async def _wait_for_reconnect(self) -> Transport | None:
        loop = asyncio.get_running_loop()
        reconnect = loop.create_task(self._reconnect())
        while True:
            if self._logouts:
                reconnect.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reconnect
                _resolve(
                    self._logouts.popleft(),
                    StreamProtocolError("cannot send LOGOUT while reconnecting"),
                )
                return None
            self._logout_requested.clear()
            waiter = loop.create_task(self._logout_requested.wait())
            done, _ = await asyncio.wait(
                {reconnect, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
            if reconnect in done:
                waiter.cancel()
                return reconnect.result()

    async def _reconnect(self) -> Transport | None:
        delay = INITIAL_RECONNECT_DELAY
        for attempt in range(1, MAX_RECONNECT_ATTEMPTS + 1):
            self._broadcast(ReconnectingEvent(attempt))
            await asyncio.sleep(delay + random.randrange(RECONNECT_JITTER_MS) / 1000)
            try:
                transport = await self._connect(self._credentials.socket_url)
            except SchwabError as error:
                logger.warning("reconnect attempt %d failed during connect: %s", attempt, error)
                delay = min(delay * 2, MAX_RECONNECT_DELAY)
                continue
            try:
                await _login(transport, self._credentials)
                await self._replay(transport)
            except StreamLoginError as error:
                await _close_quietly(transport)
                if error.code == LOGIN_DENIED_CODE:
                    self._broadcast(
                        DisconnectedEvent(f"LOGIN_DENIED (code=3): {error.message}")
                    )
                    return None
                logger.warning("reconnect attempt %d failed during login: %s", attempt, error)
            except SchwabError as error:
                await _close_quietly(transport)
                logger.warning("reconnect attempt %d failed: %s", attempt, error)
            except BaseException:
                await _close_quietly(transport)
                raise
            else:
                self._broadcast(ReconnectedEvent())
                return transport
            delay = min(delay * 2, MAX_RECONNECT_DELAY)

        self._broadcast(DisconnectedEvent("max reconnect attempts exceeded"))
        return None

    async def _replay(self, transport: Transport) -> None:
        for sub in list(self._subs):
            await transport.send(
                build_subs(
                    "1",
                    sub.service,
                    self._credentials.customer_id,
                    self._credentials.correl_id,
                    sub.symbols,
                    sub.field_indices,
                )
            )

    def _shutdown(self) -> None:
        self._stopped = True
        self._stop_reader()
        for _, ack in self._commands:
            _resolve(ack, StreamProtocolError("streaming session has stopped"))
        for ack in self._logouts:
            _resolve(ack, StreamProtocolError("streaming session has stopped"))
        self._commands.clear()
        self._logouts.clear()
        self._inbox.clear()