"""Indicator helpers.

All functions are pure and return the latest value of the indicator for a
price sequence ordered oldest first. Short inputs fall back to documented
neutral values instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class MACD:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


def _as_list(prices: Sequence[float]) -> List[float]:
    values = [float(price) for price in prices]
    if not values:
        raise ValueError('prices must not be empty')
    return values


def _check_period(period: int) -> None:
    if period <= 0:
        raise ValueError('period must be positive')


def rsi(prices: Sequence[float], period: int = 14) -> float:
    """Relative Strength Index over the last ``period`` price deltas.

    Returns 50 when fewer than ``period + 1`` prices are available and 100
    when there were no losing deltas in the window.
    """
    _check_period(period)
    values = [float(price) for price in prices]
    if len(values) < period + 1:
        return 50.0

    deltas = [current - previous for previous, current in zip(values, values[1:])]
    window = deltas[-period:]
    avg_gain = sum(delta for delta in window if delta > 0) / period
    avg_loss = sum(-delta for delta in window if delta < 0) / period
    if avg_loss == 0:
        return 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the last ``period`` prices, or the last price if too short."""
    _check_period(period)
    values = _as_list(prices)
    if len(values) < period:
        return values[-1]
    return sum(values[-period:]) / period


def ema(prices: Sequence[float], period: int) -> float:
    """EMA seeded with the first price and run over the whole sequence."""
    _check_period(period)
    values = _as_list(prices)
    if len(values) < period:
        return values[-1]
    multiplier = 2 / (period + 1)
    current = values[0]
    for price in values[1:]:
        current = price * multiplier + current * (1 - multiplier)
    return current


def macd(
    prices: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACD:
    """Simplified MACD.

    The signal line is a fixed 10% of the instantaneous MACD value rather
    than an EMA of the MACD series; ``signal_period`` is accepted for API
    compatibility and not used.
    """
    line = ema(prices, fast_period) - ema(prices, slow_period)
    signal = line * 0.1
    return MACD(macd=line, signal=signal, histogram=line - signal)


def bollinger_bands(
    prices: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands:
    """SMA envelope of +/- ``multiplier`` population standard deviations."""
    middle = sma(prices, period)
    recent = _as_list(prices)[-period:]
    variance = sum((price - middle) ** 2 for price in recent) / period
    std_dev = math.sqrt(variance)
    return BollingerBands(
        upper=middle + std_dev * multiplier,
        middle=middle,
        lower=middle - std_dev * multiplier,
    )


__all__ = ['BollingerBands', 'MACD', 'bollinger_bands', 'ema', 'macd', 'rsi', 'sma']
