"""Self-contained simulated exchange."""

from __future__ import annotations

import asyncio
import random
from typing import Optional

from ..config import ExchangeCredentials
from ..models import Exchange, OrderResult, OrderSide, OrderStatus, TradingSignal, new_order_id
from .base import Balance, ExchangeGateway

FEE_RATE = 0.001
FAILURE_RATE = 0.1
MAX_SLIPPAGE = 0.0005
DEMO_BALANCE: Balance = {'USDT': 1000.0, 'BTC': 0.1, 'ETH': 2.5}


class DemoGateway(ExchangeGateway):
    """Fills 90% of orders after a short delay with +/-0.05% slippage."""

    exchange = Exchange.DEMO

    def __init__(
        self,
        credentials: Optional[ExchangeCredentials] = None,
        order_timeout: float = 10.0,
        *,
        latency: float = 0.1,
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(credentials or ExchangeCredentials(Exchange.DEMO), order_timeout)
        self._latency = latency
        self._rng = rng or random.Random()

    async def _submit(self, signal: TradingSignal) -> OrderResult:
        await asyncio.sleep(self._latency)
        order = OrderResult(
            order_id=new_order_id(self.order_prefix),
            symbol=signal.symbol,
            side=OrderSide(signal.action.value),
            quantity=signal.quantity,
            price=signal.price,
            status=OrderStatus.FAILED,
            exchange=self.exchange,
        )
        if self._rng.random() < FAILURE_RATE:
            order.reason = 'simulated rejection'
            return order

        slippage = signal.price * self._rng.uniform(-MAX_SLIPPAGE, MAX_SLIPPAGE)
        order.status = OrderStatus.FILLED
        order.fees = signal.price * signal.quantity * FEE_RATE
        order.executed_qty = signal.quantity
        order.executed_price = signal.price + slippage
        return order

    async def _fetch_balance(self) -> Balance:
        return dict(DEMO_BALANCE)


__all__ = ['DemoGateway', 'DEMO_BALANCE', 'FEE_RATE']
