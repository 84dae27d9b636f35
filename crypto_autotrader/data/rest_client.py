"""Public Binance REST endpoints used for market data."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..errors import NetworkError, ParseError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.binance.com/api/v3'


class BinanceRestClient:
    """Thin aiohttp wrapper returning decoded JSON payloads.

    Transport failures and non-200 responses raise :class:`NetworkError`;
    bodies that are not JSON raise :class:`ParseError`. Payload schemas are
    checked by the caller.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._base_url = base_url.rstrip('/')
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def session(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(timeout=self._timeout)
                self._owns_session = True
            return self._session

    async def get_ticker(self, symbol: str) -> Any:
        """24h rolling ticker statistics for ``symbol``."""
        return await self._get('/ticker/24hr', {'symbol': symbol})

    async def get_klines(self, symbol: str, interval: str, limit: int = 100) -> Any:
        return await self._get('/klines', {'symbol': symbol, 'interval': interval, 'limit': limit})

    async def get_price(self, symbol: str) -> float:
        payload = await self._get('/ticker/price', {'symbol': symbol})
        try:
            return float(payload['price'])
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError(f'Malformed price payload for {symbol}: {payload!r}') from exc

    async def close(self) -> None:
        async with self._lock:
            if self._session is not None and self._owns_session:
                await self._session.close()
            self._session = None

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        session = await self.session()
        url = f'{self._base_url}{path}'
        try:
            async with session.get(url, params=params) as response:
                body = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(f'GET {path} failed: {exc}') from exc

        if status != 200:
            raise NetworkError(f'GET {path} returned HTTP {status}: {body[:200]}')
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ParseError(f'GET {path} returned a non-JSON body') from exc


__all__ = ['BinanceRestClient', 'DEFAULT_BASE_URL']
