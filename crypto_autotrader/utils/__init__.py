"""Utility helpers."""

from .indicators import BollingerBands, MACD, bollinger_bands, ema, macd, rsi, sma

__all__ = ['BollingerBands', 'MACD', 'bollinger_bands', 'ema', 'macd', 'rsi', 'sma']
