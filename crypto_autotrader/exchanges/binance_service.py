"""Shared Binance client management."""

from __future__ import annotations

import asyncio
from typing import Optional

from binance import AsyncClient, BinanceSocketManager
from binance.exceptions import BinanceAPIException, BinanceRequestException

from ..config import ExchangeCredentials


class BinanceService:
    """Lazily instantiates Binance AsyncClient and socket manager."""

    def __init__(self, credentials: ExchangeCredentials, request_timeout: float = 10.0) -> None:
        self._credentials = credentials
        self._request_timeout = request_timeout
        self._client: Optional[AsyncClient] = None
        self._socket_manager: Optional[BinanceSocketManager] = None
        self._lock = asyncio.Lock()

    @property
    def credentials(self) -> ExchangeCredentials:
        return self._credentials

    async def client(self) -> AsyncClient:
        async with self._lock:
            return await self._ensure_client()

    async def socket_manager(self) -> BinanceSocketManager:
        async with self._lock:
            if self._socket_manager is None:
                client = await self._ensure_client()
                self._socket_manager = BinanceSocketManager(client)
            return self._socket_manager

    async def close(self) -> None:
        async with self._lock:
            self._socket_manager = None
            if self._client is not None:
                await self._client.close_connection()
                self._client = None

    async def _ensure_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await AsyncClient.create(
                api_key=self._credentials.api_key or None,
                api_secret=self._credentials.api_secret or None,
                testnet=self._credentials.testnet,
                requests_params={'timeout': self._request_timeout},
            )
        return self._client


__all__ = ['BinanceService', 'BinanceAPIException', 'BinanceRequestException']
