"""Per-symbol live price feed from Binance ticker streams."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Set

from ..exchanges import BinanceService

logger = logging.getLogger(__name__)

PriceCallback = Callable[[float], None]


class PriceStream:
    """Push ``currentPrice`` updates to a callback until unsubscribed."""

    def __init__(self, service: BinanceService) -> None:
        self._service = service
        self._tasks: Set[asyncio.Task[None]] = set()

    def subscribe(self, symbol: str, callback: PriceCallback) -> Callable[[], None]:
        task = asyncio.create_task(self._run(symbol, callback), name=f'price-stream-{symbol}')
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def unsubscribe() -> None:
            # leaving the socket context closes the websocket
            task.cancel()

        return unsubscribe

    @property
    def active(self) -> int:
        return len(self._tasks)

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, symbol: str, callback: PriceCallback) -> None:
        manager = await self._service.socket_manager()
        async with manager.symbol_ticker_socket(symbol) as stream:
            while True:
                message: Dict = await stream.recv()
                if message.get('e') == 'error':
                    logger.warning('Ticker stream for %s reported: %s', symbol, message.get('m'))
                    continue
                try:
                    price = float(message['c'])
                except (KeyError, TypeError, ValueError):
                    logger.warning('Dropping malformed ticker message for %s: %r', symbol, message)
                    continue
                try:
                    callback(price)
                except Exception:
                    logger.exception('Price callback for %s raised', symbol)


__all__ = ['PriceCallback', 'PriceStream']
