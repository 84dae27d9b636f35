"""Bybit and OKX market orders through ccxt's asyncio client."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Optional

import ccxt.async_support as ccxt

from ..config import ExchangeCredentials
from ..errors import AuthenticationError, ExchangeError, OrderRejectedError
from ..models import Exchange, OrderResult, OrderSide, OrderStatus, TradingSignal, new_order_id
from .base import Balance, ExchangeGateway

logger = logging.getLogger(__name__)

# longest first so USDT wins over USD
QUOTE_ASSETS = ('FDUSD', 'USDT', 'USDC', 'BUSD', 'USD', 'EUR', 'DAI', 'BTC', 'ETH', 'BNB')


def to_unified_symbol(symbol: str) -> str:
    """Translate an exchange ticker such as ``BTCUSDT`` into ``BTC/USDT``."""
    if '/' in symbol:
        return symbol
    cleaned = symbol.replace('-', '').upper()
    for quote in QUOTE_ASSETS:
        if cleaned.endswith(quote) and len(cleaned) > len(quote):
            return f'{cleaned[:-len(quote)]}/{quote}'
    raise OrderRejectedError(f'Cannot determine quote asset of {symbol}')


class CcxtGateway(ExchangeGateway):
    """Shared order flow for venues reached through ccxt."""

    ccxt_id: ClassVar[str]

    def __init__(
        self,
        credentials: ExchangeCredentials,
        order_timeout: float = 10.0,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__(credentials, order_timeout)
        self._client = client if client is not None else self._create_client()

    def _create_client(self) -> Any:
        options: Dict[str, Any] = {
            'apiKey': self.credentials.api_key,
            'secret': self.credentials.api_secret,
            'enableRateLimit': True,
            'timeout': int(self.order_timeout * 1000),
        }
        if self.credentials.passphrase:
            options['password'] = self.credentials.passphrase
        client = getattr(ccxt, self.ccxt_id)(options)
        if self.credentials.testnet:
            client.set_sandbox_mode(True)
        return client

    async def _submit(self, signal: TradingSignal) -> OrderResult:
        symbol = to_unified_symbol(signal.symbol)
        side = signal.action.value
        logger.debug('Submitting %s market %s %s x %s', self.ccxt_id, side, symbol, signal.quantity)
        try:
            # price lets ccxt derive the quote cost venues expect for market buys
            order = await self._client.create_order(symbol, 'market', side, signal.quantity, signal.price)
            if not order.get('status') and order.get('id'):
                order = await self._client.fetch_order(order['id'], symbol)
        except ccxt.AuthenticationError as exc:
            raise AuthenticationError(f'{self.ccxt_id}: {exc}') from exc
        except ccxt.NetworkError as exc:
            raise ExchangeError(f'{self.ccxt_id} request failed: {exc}') from exc
        except ccxt.BaseError as exc:
            raise OrderRejectedError(f'{self.ccxt_id} rejected order: {exc}') from exc
        return self._to_result(signal, order)

    async def _fetch_balance(self) -> Balance:
        try:
            balance = await self._client.fetch_balance()
        except ccxt.AuthenticationError as exc:
            raise AuthenticationError(f'{self.ccxt_id}: {exc}') from exc
        except ccxt.BaseError as exc:
            raise ExchangeError(f'{self.ccxt_id} balance request failed: {exc}') from exc
        free = balance.get('free') or {}
        return {asset: float(amount) for asset, amount in free.items() if amount}

    async def close(self) -> None:
        await self._client.close()

    def _to_result(self, signal: TradingSignal, order: Dict[str, Any]) -> OrderResult:
        status = order.get('status')
        filled = float(order.get('filled') or 0.0)
        result = OrderResult(
            order_id=new_order_id(self.order_prefix),
            symbol=signal.symbol,
            side=OrderSide(signal.action.value),
            quantity=signal.quantity,
            price=signal.price,
            status=OrderStatus.FAILED,
            exchange=self.exchange,
            exchange_order_id=order.get('id'),
        )
        if status != 'closed' and filled <= 0:
            result.reason = f'{self.ccxt_id} order ended with status {status}'
            return result

        result.status = OrderStatus.FILLED
        result.executed_qty = filled or signal.quantity
        result.executed_price = float(order.get('average') or order.get('price') or signal.price)
        result.fees = _fee_cost(order)
        return result


def _fee_cost(order: Dict[str, Any]) -> float:
    fees = order.get('fees') or []
    if not fees and order.get('fee'):
        fees = [order['fee']]
    return sum(float(fee.get('cost') or 0.0) for fee in fees)


class BybitGateway(CcxtGateway):
    exchange = Exchange.BYBIT
    ccxt_id = 'bybit'


class OkxGateway(CcxtGateway):
    exchange = Exchange.OKX
    ccxt_id = 'okx'


__all__ = ['BybitGateway', 'CcxtGateway', 'OkxGateway', 'to_unified_symbol']
