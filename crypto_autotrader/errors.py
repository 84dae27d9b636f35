"""Exception hierarchy for the auto-trading core.

Every error raised by this package derives from :class:`AutoTraderError`
so callers can tell our failures apart from library ones.
"""

from __future__ import annotations


class AutoTraderError(Exception):
    """Base exception for the package."""


# -- Configuration -----------------------------------------------------------


class ConfigurationError(AutoTraderError):
    """Missing or inconsistent configuration."""


class UnsupportedExchangeError(ConfigurationError):
    """The requested exchange back-end does not exist."""


# -- Market data ---------------------------------------------------------------


class MarketDataError(AutoTraderError):
    """Base class for market data fetch failures."""


class NetworkError(MarketDataError):
    """Transport failure or non-success HTTP status."""


class ParseError(MarketDataError):
    """Payload did not match the expected schema."""


# -- Execution ----------------------------------------------------------------


class ExchangeError(AutoTraderError):
    """Exchange call failed (network, rejection, unexpected response)."""


class AuthenticationError(ExchangeError):
    """Exchange refused the credentials or the request signature."""


class OrderRejectedError(ExchangeError):
    """Exchange accepted the request but refused the order."""


class NotEnabledError(AutoTraderError):
    """Signal submitted while auto trading is disabled."""


class DuplicateOrderError(AutoTraderError):
    """An order id is already present in the ledger."""


# -- Validation ---------------------------------------------------------------


class InvalidRiskParametersError(AutoTraderError, ValueError):
    """Risk inputs are degenerate, e.g. entry equals stop loss."""


class InvalidSignalError(AutoTraderError, ValueError):
    """Trading signal fields violate their constraints."""


__all__ = [
    'AutoTraderError',
    'ConfigurationError',
    'UnsupportedExchangeError',
    'MarketDataError',
    'NetworkError',
    'ParseError',
    'ExchangeError',
    'AuthenticationError',
    'OrderRejectedError',
    'NotEnabledError',
    'DuplicateOrderError',
    'InvalidRiskParametersError',
    'InvalidSignalError',
]
