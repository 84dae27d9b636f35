"""Market data layer."""

from .market_data import Listener, MarketDataCache, TickerSource, Unsubscribe
from .price_stream import PriceCallback, PriceStream
from .rest_client import DEFAULT_BASE_URL, BinanceRestClient

__all__ = [
    'BinanceRestClient',
    'DEFAULT_BASE_URL',
    'Listener',
    'MarketDataCache',
    'PriceCallback',
    'PriceStream',
    'TickerSource',
    'Unsubscribe',
]
