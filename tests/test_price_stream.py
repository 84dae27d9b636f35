"""Tests for :mod:`crypto_autotrader.data.price_stream`."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from crypto_autotrader.data import PriceStream


class StubSocket:
    def __init__(self, messages: List[Dict[str, Any]]) -> None:
        self.queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()
        for message in messages:
            self.queue.put_nowait(message)
        self.closed = False

    async def __aenter__(self) -> 'StubSocket':
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def recv(self) -> Dict[str, Any]:
        return await self.queue.get()


class StubSocketManager:
    def __init__(self, socket: StubSocket) -> None:
        self.socket = socket
        self.symbols: List[str] = []

    def symbol_ticker_socket(self, symbol: str) -> StubSocket:
        self.symbols.append(symbol)
        return self.socket


class StubService:
    def __init__(self, manager: StubSocketManager) -> None:
        self.manager = manager

    async def socket_manager(self) -> StubSocketManager:
        return self.manager


def test_stream_delivers_prices_until_unsubscribed() -> None:
    async def scenario() -> None:
        socket = StubSocket([
            {'e': '24hrTicker', 's': 'BTCUSDT', 'c': '30100.50'},
            {'e': 'error', 'm': 'Max reconnections reached'},
            {'e': '24hrTicker', 's': 'BTCUSDT', 'c': 'n/a'},
            {'e': '24hrTicker', 's': 'BTCUSDT', 'c': '30101.00'},
        ])
        manager = StubSocketManager(socket)
        stream = PriceStream(StubService(manager))
        prices: List[float] = []

        unsubscribe = stream.subscribe('BTCUSDT', prices.append)

        async def wait_for_prices() -> None:
            while len(prices) < 2:
                await asyncio.sleep(0)

        await asyncio.wait_for(wait_for_prices(), timeout=1)
        assert prices == [30100.50, 30101.00]
        assert manager.symbols == ['BTCUSDT']
        assert stream.active == 1

        unsubscribe()
        for _ in range(5):
            await asyncio.sleep(0)
        assert socket.closed
        assert stream.active == 0

    asyncio.run(scenario())


def test_raising_callback_keeps_stream_alive() -> None:
    async def scenario() -> None:
        socket = StubSocket([{'c': '1'}, {'c': '2'}])
        stream = PriceStream(StubService(StubSocketManager(socket)))
        seen: List[float] = []

        def callback(price: float) -> None:
            seen.append(price)
            if price == 1.0:
                raise RuntimeError('consumer bug')

        stream.subscribe('ETHUSDT', callback)
        while len(seen) < 2:
            await asyncio.sleep(0)
        await stream.close()

        assert seen == [1.0, 2.0]
        assert socket.closed

    asyncio.run(scenario())
