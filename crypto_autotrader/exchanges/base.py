"""Execution interface shared by every exchange back-end."""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import ClassVar, Dict

from ..config import ExchangeCredentials
from ..errors import AuthenticationError, ExchangeError, InvalidSignalError
from ..models import Exchange, OrderResult, SignalAction, TradingSignal

logger = logging.getLogger(__name__)

Balance = Dict[str, float]


class ExchangeGateway(abc.ABC):
    """Executes one signal at a time and reports the outcome as a value.

    Subclasses implement :meth:`_submit` and :meth:`_fetch_balance` and
    translate their library's exceptions into :class:`ExchangeError`
    subclasses. Every call runs under ``order_timeout`` seconds; a timeout
    cancels the call and counts as a failed order. Nothing is retried.
    """

    exchange: ClassVar[Exchange]

    def __init__(self, credentials: ExchangeCredentials, order_timeout: float = 10.0) -> None:
        if order_timeout <= 0:
            raise ValueError('order_timeout must be positive')
        self.credentials = credentials
        self.order_timeout = order_timeout

    @property
    def order_prefix(self) -> str:
        return self.exchange.value

    async def execute_order(self, signal: TradingSignal) -> OrderResult:
        if signal.action is SignalAction.HOLD:
            raise InvalidSignalError('hold signals are not sent to an exchange')
        try:
            result = await asyncio.wait_for(self._submit(signal), timeout=self.order_timeout)
        except asyncio.TimeoutError:
            logger.warning('%s order for %s timed out after %ss', self.exchange.value, signal.symbol, self.order_timeout)
            return self._failed(signal, f'timed out after {self.order_timeout}s')
        except AuthenticationError as error:
            logger.error('%s rejected credentials: %s', self.exchange.value, error)
            return self._failed(signal, f'authentication failed: {error}')
        except ExchangeError as error:
            logger.warning('%s order for %s failed: %s', self.exchange.value, signal.symbol, error)
            return self._failed(signal, str(error))
        logger.info('%s %s %s x %s -> %s', self.exchange.value, result.side.value, result.symbol, result.quantity, result.status.value)
        return result

    async def get_account_balance(self) -> Balance:
        """Available quantity per asset. Errors propagate as :class:`ExchangeError`."""
        try:
            return await asyncio.wait_for(self._fetch_balance(), timeout=self.order_timeout)
        except asyncio.TimeoutError as exc:
            raise ExchangeError(f'{self.exchange.value} balance request timed out') from exc

    async def close(self) -> None:
        """Release network resources held by the gateway."""

    @abc.abstractmethod
    async def _submit(self, signal: TradingSignal) -> OrderResult:
        """Place a market order for ``signal`` and describe the outcome."""

    @abc.abstractmethod
    async def _fetch_balance(self) -> Balance:
        """Return free balances keyed by asset."""

    def _failed(self, signal: TradingSignal, reason: str) -> OrderResult:
        return OrderResult.failed(f'{self.order_prefix}_failed', signal, reason, self.exchange)


__all__ = ['Balance', 'ExchangeGateway']
