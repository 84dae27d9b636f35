"""Maps each configured exchange to its gateway implementation."""

from __future__ import annotations

from typing import Dict, Type

from ..config import ExchangeCredentials
from ..errors import UnsupportedExchangeError
from ..models import Exchange
from .base import ExchangeGateway
from .binance_gateway import BinanceGateway
from .ccxt_gateway import BybitGateway, OkxGateway
from .demo import DemoGateway

GATEWAYS: Dict[Exchange, Type[ExchangeGateway]] = {
    Exchange.DEMO: DemoGateway,
    Exchange.BINANCE: BinanceGateway,
    Exchange.BYBIT: BybitGateway,
    Exchange.OKX: OkxGateway,
}

_unmapped = set(Exchange) - set(GATEWAYS)
if _unmapped:  # pragma: no cover
    raise ImportError(f'No gateway registered for {sorted(e.value for e in _unmapped)}')


def create_gateway(credentials: ExchangeCredentials, order_timeout: float = 10.0) -> ExchangeGateway:
    """Validate ``credentials`` and build the matching gateway."""
    exchange = Exchange.parse(credentials.exchange)
    gateway_class = GATEWAYS.get(exchange)
    if gateway_class is None:  # pragma: no cover
        raise UnsupportedExchangeError(f'Unsupported exchange: {exchange.value}')
    return gateway_class(credentials.validate(), order_timeout=order_timeout)


__all__ = ['GATEWAYS', 'create_gateway']
