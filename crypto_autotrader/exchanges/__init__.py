"""Exchange integrations exposed to the rest of the system."""

from .base import Balance, ExchangeGateway
from .binance_gateway import BinanceGateway
from .binance_service import BinanceAPIException, BinanceRequestException, BinanceService
from .ccxt_gateway import BybitGateway, CcxtGateway, OkxGateway, to_unified_symbol
from .demo import DemoGateway
from .factory import GATEWAYS, create_gateway

__all__ = [
    'Balance',
    'BinanceAPIException',
    'BinanceGateway',
    'BinanceRequestException',
    'BinanceService',
    'BybitGateway',
    'CcxtGateway',
    'DemoGateway',
    'ExchangeGateway',
    'GATEWAYS',
    'OkxGateway',
    'create_gateway',
    'to_unified_symbol',
]
