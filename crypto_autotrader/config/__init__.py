"""Configuration utilities for the trading core."""

from .config import Settings, load_settings
from .credentials import ExchangeCredentials

__all__ = ['Settings', 'ExchangeCredentials', 'load_settings']
