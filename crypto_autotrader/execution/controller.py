"""Routes trading signals through the risk gate, gateway and ledger."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..database import DatabaseManager
from ..errors import ExchangeError, NotEnabledError
from ..exchanges import Balance, ExchangeGateway
from ..models import (
    OrderResult,
    OrderSide,
    OrderStatus,
    SignalAction,
    TradingSignal,
    new_order_id,
)
from ..risk import RiskManager
from .order_ledger import OrderLedger

logger = logging.getLogger(__name__)


class AutoTradingController:
    """Owns the enabled flag and the order ledger.

    Signals are sent straight to the gateway unless a ``risk_manager`` is
    supplied, in which case :meth:`RiskManager.validate_signal` runs first
    against the gateway's ``quote_asset`` balance and rejected signals are
    recorded as failed orders without reaching the exchange.
    """

    def __init__(
        self,
        gateway: ExchangeGateway,
        *,
        risk_manager: Optional[RiskManager] = None,
        quote_asset: str = 'USDT',
        database: Optional[DatabaseManager] = None,
    ) -> None:
        self._gateway = gateway
        self._risk = risk_manager
        self._quote_asset = quote_asset
        self._database = database
        self._ledger = OrderLedger(database)
        self._enabled = False

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True
        logger.info('Auto trading enabled on %s', self._gateway.exchange.value)

    def disable(self) -> None:
        self._enabled = False
        logger.info('Auto trading disabled')

    async def execute_signal(self, signal: TradingSignal) -> OrderResult:
        if not self._enabled:
            raise NotEnabledError('Auto trading is not enabled')

        if signal.action is SignalAction.HOLD:
            order = self._hold_order(signal)
        else:
            rejection = await self._risk_rejection(signal)
            if rejection is not None:
                logger.warning('Signal for %s rejected: %s', signal.symbol, rejection)
                order = OrderResult.failed('risk', signal, rejection, self._gateway.exchange)
            else:
                order = await self._gateway.execute_order(signal)

        await self._ledger.append(order)
        return order

    def get_orders(self) -> List[OrderResult]:
        return self._ledger.orders()

    def get_order_by_id(self, order_id: str) -> Optional[OrderResult]:
        return self._ledger.find_by_id(order_id)

    async def cancel_order(self, order_id: str) -> bool:
        return await self._ledger.cancel(order_id)

    async def get_account_balance(self) -> Balance:
        return await self._gateway.get_account_balance()

    async def close(self) -> None:
        await self._gateway.close()
        if self._database is not None:
            self._database.close()

    async def _risk_rejection(self, signal: TradingSignal) -> Optional[str]:
        if self._risk is None:
            return None
        try:
            balances = await self._gateway.get_account_balance()
        except ExchangeError as error:
            return f'Risk check could not read balance: {error}'
        balance = balances.get(self._quote_asset, 0.0)
        allowed, reason = self._risk.validate_signal(signal, balance)
        return None if allowed else reason

    @staticmethod
    def _hold_order(signal: TradingSignal) -> OrderResult:
        return OrderResult(
            order_id=new_order_id('hold'),
            symbol=signal.symbol,
            side=OrderSide.BUY,
            quantity=0.0,
            price=signal.price,
            status=OrderStatus.CANCELLED,
        )


__all__ = ['AutoTradingController']
