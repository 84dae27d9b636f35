"""Latest-snapshot cache with timer-driven refresh and subscriber fan-out."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from ..errors import MarketDataError, ParseError
from ..models import Candle, MarketSnapshot, now_ms

logger = logging.getLogger(__name__)

Listener = Callable[[MarketSnapshot], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class TickerSource(Protocol):
    async def get_ticker(self, symbol: str) -> Any: ...

    async def get_klines(self, symbol: str, interval: str, limit: int = 100) -> Any: ...


class MarketDataCache:
    """Holds one snapshot per symbol and keeps subscribed symbols fresh.

    Snapshots survive failed refreshes. At most one fetch per symbol is in
    flight; concurrent callers share its result. Subscribing and the
    refresh timers need a running event loop.
    """

    def __init__(
        self,
        client: TickerSource,
        refresh_interval: float = 30.0,
        *,
        evict_on_unsubscribe: bool = False,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if refresh_interval <= 0:
            raise ValueError('refresh_interval must be positive')
        self._client = client
        self._refresh_interval = refresh_interval
        self._evict_on_unsubscribe = evict_on_unsubscribe
        self._clock = clock
        self._snapshots: Dict[str, MarketSnapshot] = {}
        # per symbol: subscription token -> listener
        self._listeners: Dict[str, Dict[object, Listener]] = defaultdict(dict)
        self._refresh_tasks: Dict[str, asyncio.Task[None]] = {}
        self._inflight: Dict[str, asyncio.Task[MarketSnapshot]] = {}

    async def fetch(self, symbol: str) -> MarketSnapshot:
        """Fetch, store and broadcast a fresh snapshot for ``symbol``."""
        task = self._inflight.get(symbol)
        if task is None or task.done():
            task = asyncio.create_task(self._fetch_and_store(symbol))
            self._inflight[symbol] = task
            task.add_done_callback(lambda done, key=symbol: self._clear_inflight(key, done))
        return await asyncio.shield(task)

    def get_cached(self, symbol: str) -> Optional[MarketSnapshot]:
        return self._snapshots.get(symbol)

    def subscribe(self, symbol: str, listener: Listener) -> Unsubscribe:
        """Register ``listener``; the first listener starts the refresh timer."""
        if not symbol:
            raise ValueError('symbol must be non-empty')
        token = object()
        self._listeners[symbol][token] = listener
        if symbol not in self._refresh_tasks:
            self._refresh_tasks[symbol] = asyncio.create_task(self._refresh_loop(symbol))
            logger.debug('Started %ss refresh for %s', self._refresh_interval, symbol)

        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            self._remove_listener(symbol, token)

        return unsubscribe

    def subscribed_symbols(self) -> List[str]:
        return sorted(self._refresh_tasks)

    async def get_klines(self, symbol: str, interval: str, limit: int = 100) -> List[Candle]:
        """One-shot candle history, oldest first. Not cached."""
        payload = await self._client.get_klines(symbol, interval, limit)
        if not isinstance(payload, list):
            raise ParseError(f'Kline payload for {symbol} must be an array')
        return [Candle.from_kline(row) for row in payload]

    async def close(self) -> None:
        """Stop every refresh timer. In-flight fetches are left to finish."""
        tasks = list(self._refresh_tasks.values())
        self._refresh_tasks.clear()
        self._listeners.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _remove_listener(self, symbol: str, token: object) -> None:
        listeners = self._listeners.get(symbol)
        if listeners is None:
            return
        listeners.pop(token, None)
        if listeners:
            return
        self._listeners.pop(symbol, None)
        task = self._refresh_tasks.pop(symbol, None)
        if task is not None:
            task.cancel()
            logger.debug('Stopped refresh for %s', symbol)
        if self._evict_on_unsubscribe:
            self._snapshots.pop(symbol, None)

    async def _refresh_loop(self, symbol: str) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            await self._refresh(symbol)

    async def _refresh(self, symbol: str) -> None:
        inflight = self._inflight.get(symbol)
        if inflight is not None and not inflight.done():
            logger.debug('Skipping refresh for %s; previous fetch still running', symbol)
            return
        try:
            await self.fetch(symbol)
        except MarketDataError as error:
            logger.warning('Refresh for %s failed, keeping last snapshot: %s', symbol, error)
        except Exception:
            logger.exception('Unexpected error refreshing %s', symbol)

    async def _fetch_and_store(self, symbol: str) -> MarketSnapshot:
        payload = await self._client.get_ticker(symbol)
        snapshot = MarketSnapshot.from_ticker(payload, self._next_timestamp(symbol))
        self._snapshots[symbol] = snapshot
        await self._publish(symbol, snapshot)
        return snapshot

    def _next_timestamp(self, symbol: str) -> int:
        timestamp = self._clock()
        previous = self._snapshots.get(symbol)
        if previous is not None and timestamp <= previous.timestamp:
            timestamp = previous.timestamp + 1
        return timestamp

    async def _publish(self, symbol: str, snapshot: MarketSnapshot) -> None:
        # a callable subscribed more than once is still notified once
        for listener in dict.fromkeys(self._listeners.get(symbol, {}).values()):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception('Market data listener for %s raised', symbol)

    def _clear_inflight(self, symbol: str, task: asyncio.Task[MarketSnapshot]) -> None:
        if self._inflight.get(symbol) is task:
            del self._inflight[symbol]
        if not task.cancelled():
            # mark the outcome as retrieved when every awaiting caller went away
            task.exception()


__all__ = ['Listener', 'MarketDataCache', 'TickerSource', 'Unsubscribe']
