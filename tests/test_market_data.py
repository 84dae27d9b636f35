"""Tests for :mod:`crypto_autotrader.data.market_data`."""

from __future__ import annotations

import asyncio
import itertools
from typing import List, Optional

import pytest

from crypto_autotrader.data import MarketDataCache
from crypto_autotrader.errors import NetworkError, ParseError
from crypto_autotrader.models import MarketSnapshot


def _ticker(symbol: str, price: float) -> dict:
    return {
        'symbol': symbol,
        'lastPrice': str(price),
        'priceChange': '1.0',
        'priceChangePercent': '0.5',
        'volume': '10.0',
        'highPrice': str(price + 5),
        'lowPrice': str(price - 5),
        'bidPrice': str(price - 0.1),
        'askPrice': str(price + 0.1),
    }


class StubTickerClient:
    def __init__(self) -> None:
        self.calls: List[str] = []
        self.prices = itertools.count(100)
        self.error: Optional[Exception] = None
        self.payload: Optional[object] = None
        self.gate: Optional[asyncio.Event] = None
        self.klines: object = []

    async def get_ticker(self, symbol: str) -> object:
        self.calls.append(symbol)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.payload is not None:
            return self.payload
        return _ticker(symbol, float(next(self.prices)))

    async def get_klines(self, symbol: str, interval: str, limit: int = 100) -> object:
        return self.klines


def test_fetch_stores_snapshot_and_notifies_subscribers() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        cache = MarketDataCache(client, refresh_interval=60)
        received: List[MarketSnapshot] = []
        unsubscribe = cache.subscribe('BTCUSDT', received.append)

        snapshot = await cache.fetch('BTCUSDT')

        assert cache.get_cached('BTCUSDT') is snapshot
        assert received == [snapshot]
        assert snapshot.price == pytest.approx(100.0)
        unsubscribe()
        await cache.close()

    asyncio.run(scenario())


def test_get_cached_is_none_before_first_fetch() -> None:
    cache = MarketDataCache(StubTickerClient())

    assert cache.get_cached('ETHUSDT') is None


def test_failed_fetch_keeps_previous_snapshot() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        cache = MarketDataCache(client)
        first = await cache.fetch('BTCUSDT')

        client.payload = {'symbol': 'BTCUSDT', 'lastPrice': 'oops'}
        with pytest.raises(ParseError):
            await cache.fetch('BTCUSDT')
        client.payload = None
        client.error = NetworkError('down')
        with pytest.raises(NetworkError):
            await cache.fetch('BTCUSDT')

        assert cache.get_cached('BTCUSDT') is first

    asyncio.run(scenario())


def test_concurrent_fetches_share_one_request() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        client.gate = asyncio.Event()
        cache = MarketDataCache(client)

        first = asyncio.create_task(cache.fetch('BTCUSDT'))
        second = asyncio.create_task(cache.fetch('BTCUSDT'))
        await asyncio.sleep(0)
        client.gate.set()
        results = await asyncio.gather(first, second)

        assert results[0] is results[1]
        assert client.calls == ['BTCUSDT']

    asyncio.run(scenario())


def test_timestamps_strictly_increase_per_symbol() -> None:
    async def scenario() -> None:
        cache = MarketDataCache(StubTickerClient(), clock=lambda: 1_000)

        first = await cache.fetch('BTCUSDT')
        second = await cache.fetch('BTCUSDT')
        other = await cache.fetch('ETHUSDT')

        assert (first.timestamp, second.timestamp) == (1_000, 1_001)
        assert other.timestamp == 1_000

    asyncio.run(scenario())


def test_subscription_refreshes_until_last_unsubscribe() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        cache = MarketDataCache(client, refresh_interval=0.01)
        first: List[MarketSnapshot] = []
        second: List[MarketSnapshot] = []

        stop_first = cache.subscribe('BTCUSDT', first.append)
        stop_second = cache.subscribe('BTCUSDT', second.append)
        assert cache.subscribed_symbols() == ['BTCUSDT']
        await asyncio.sleep(0.05)
        assert first and second

        stop_first()
        assert cache.subscribed_symbols() == ['BTCUSDT']
        stop_second()
        assert cache.subscribed_symbols() == []

        calls_at_stop = len(client.calls)
        await asyncio.sleep(0.05)
        # a fetch already in flight at unsubscribe time may still land
        assert len(client.calls) <= calls_at_stop + 1
        assert cache.get_cached('BTCUSDT') is not None

    asyncio.run(scenario())


def test_refresh_errors_are_absorbed() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        cache = MarketDataCache(client, refresh_interval=0.01)
        good = await cache.fetch('BTCUSDT')
        client.error = NetworkError('timeout')
        updates: List[MarketSnapshot] = []

        unsubscribe = cache.subscribe('BTCUSDT', updates.append)
        await asyncio.sleep(0.05)
        unsubscribe()

        assert len(client.calls) > 1
        assert updates == []
        assert cache.get_cached('BTCUSDT') is good
        await cache.close()

    asyncio.run(scenario())


def test_refresh_tick_is_skipped_while_fetch_is_outstanding() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        client.gate = asyncio.Event()
        cache = MarketDataCache(client, refresh_interval=0.01)

        pending = asyncio.create_task(cache.fetch('BTCUSDT'))
        unsubscribe = cache.subscribe('BTCUSDT', lambda snapshot: None)
        await asyncio.sleep(0.05)
        assert client.calls == ['BTCUSDT']

        unsubscribe()
        client.gate.set()
        await pending

    asyncio.run(scenario())


def test_raising_listener_does_not_block_others() -> None:
    async def scenario() -> None:
        cache = MarketDataCache(StubTickerClient(), refresh_interval=60)
        received: List[MarketSnapshot] = []

        def broken(snapshot: MarketSnapshot) -> None:
            raise RuntimeError('listener bug')

        async def async_listener(snapshot: MarketSnapshot) -> None:
            received.append(snapshot)

        cache.subscribe('BTCUSDT', broken)
        cache.subscribe('BTCUSDT', async_listener)
        snapshot = await cache.fetch('BTCUSDT')

        assert received == [snapshot]
        await cache.close()

    asyncio.run(scenario())


def test_unsubscribe_can_evict_snapshot() -> None:
    async def scenario() -> None:
        cache = MarketDataCache(StubTickerClient(), refresh_interval=60, evict_on_unsubscribe=True)
        unsubscribe = cache.subscribe('BTCUSDT', lambda snapshot: None)
        await cache.fetch('BTCUSDT')

        unsubscribe()
        unsubscribe()

        assert cache.get_cached('BTCUSDT') is None

    asyncio.run(scenario())


def test_get_klines_parses_rows_oldest_first() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        client.klines = [
            [1, '1', '2', '0.5', '1.5', '10', 2, '15', 3, '5', '7.5'],
            [3, '1.5', '2.5', '1', '2', '11', 4, '22', 4, '6', '12'],
        ]
        cache = MarketDataCache(client)

        candles = await cache.get_klines('BTCUSDT', '1h', 2)

        assert [candle.close for candle in candles] == [1.5, 2.0]
        assert cache.get_cached('BTCUSDT') is None

        client.klines = {'code': -1121, 'msg': 'Invalid symbol.'}
        with pytest.raises(ParseError):
            await cache.get_klines('NOPE', '1h', 2)

    asyncio.run(scenario())


def test_shared_listener_keeps_refresh_until_every_handle_is_released() -> None:
    async def scenario() -> None:
        client = StubTickerClient()
        cache = MarketDataCache(client, refresh_interval=0.01)
        received: List[MarketSnapshot] = []

        def listener(snapshot: MarketSnapshot) -> None:
            received.append(snapshot)

        first = cache.subscribe('BTCUSDT', listener)
        second = cache.subscribe('BTCUSDT', listener)
        snapshot = await cache.fetch('BTCUSDT')
        assert received == [snapshot]

        first()
        first()
        assert cache.subscribed_symbols() == ['BTCUSDT']
        received.clear()
        await asyncio.sleep(0.05)
        assert received

        second()
        assert cache.subscribed_symbols() == []
        await cache.close()

    asyncio.run(scenario())
