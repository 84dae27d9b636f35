"""Market orders against Binance spot via python-binance."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp

from ..config import ExchangeCredentials
from ..errors import AuthenticationError, ExchangeError, OrderRejectedError
from ..models import Exchange, OrderResult, OrderSide, OrderStatus, TradingSignal, new_order_id
from .base import Balance, ExchangeGateway
from .binance_service import BinanceAPIException, BinanceRequestException, BinanceService

logger = logging.getLogger(__name__)

# invalid key, bad signature, key lacks permission, unknown account
AUTH_ERROR_CODES = frozenset({-1022, -2008, -2014, -2015})
FILLED_STATUSES = frozenset({'FILLED', 'PARTIALLY_FILLED'})


def format_quantity(quantity: float) -> str:
    """Render a quantity as a plain decimal string; Binance rejects exponent notation."""
    return format(Decimal(str(quantity)).normalize(), 'f')


class BinanceGateway(ExchangeGateway):
    exchange = Exchange.BINANCE

    def __init__(
        self,
        credentials: ExchangeCredentials,
        order_timeout: float = 10.0,
        service: Optional[BinanceService] = None,
    ) -> None:
        super().__init__(credentials, order_timeout)
        self._service = service or BinanceService(credentials, request_timeout=order_timeout)

    async def _submit(self, signal: TradingSignal) -> OrderResult:
        params = {
            'symbol': signal.symbol.upper(),
            'side': signal.action.value.upper(),
            'type': 'MARKET',
            'quantity': format_quantity(signal.quantity),
            'recvWindow': self.credentials.recv_window,
        }
        logger.debug('Submitting Binance order %s (testnet=%s)', params, self.credentials.testnet)
        response = await self._call('create_order', **params)
        return self._to_result(signal, response)

    async def _fetch_balance(self) -> Balance:
        account = await self._call('get_account')
        balances: Balance = {}
        for entry in account.get('balances', []):
            free = float(entry.get('free', 0.0))
            if free > 0:
                balances[entry['asset']] = free
        return balances

    async def close(self) -> None:
        await self._service.close()

    async def _call(self, method: str, **params: Any) -> Dict[str, Any]:
        try:
            client = await self._service.client()
            return await getattr(client, method)(**params)
        except BinanceAPIException as exc:
            if exc.code in AUTH_ERROR_CODES:
                raise AuthenticationError(f'Binance error {exc.code}: {exc.message}') from exc
            raise OrderRejectedError(f'Binance error {exc.code}: {exc.message}') from exc
        except (BinanceRequestException, aiohttp.ClientError) as exc:
            raise ExchangeError(f'Binance request failed: {exc}') from exc

    def _to_result(self, signal: TradingSignal, response: Dict[str, Any]) -> OrderResult:
        status = str(response.get('status', 'UNKNOWN'))
        executed_qty = float(response.get('executedQty', 0.0))
        quote_qty = float(response.get('cummulativeQuoteQty', 0.0))
        order = OrderResult(
            order_id=new_order_id(self.order_prefix),
            symbol=signal.symbol,
            side=OrderSide(signal.action.value),
            quantity=signal.quantity,
            price=signal.price,
            status=OrderStatus.FAILED,
            exchange=self.exchange,
            exchange_order_id=str(response.get('orderId', '')) or None,
        )
        if status not in FILLED_STATUSES or executed_qty <= 0:
            order.reason = f'Binance order ended with status {status}'
            return order

        order.status = OrderStatus.FILLED
        order.executed_qty = executed_qty
        order.executed_price = quote_qty / executed_qty if quote_qty else signal.price
        # commission is charged in the asset Binance picks (often BNB)
        order.fees = sum(float(fill.get('commission', 0.0)) for fill in response.get('fills', []))
        return order


__all__ = ['BinanceGateway', 'format_quantity']
