"""Tests for :mod:`crypto_autotrader.utils.indicators`."""

import pytest

from crypto_autotrader.utils import bollinger_bands, ema, macd, rsi, sma


def test_rsi_is_100_for_rising_prices() -> None:
    prices = [float(value) for value in range(1, 31)]

    assert rsi(prices) == pytest.approx(100.0)


def test_rsi_is_0_for_falling_prices() -> None:
    prices = [float(value) for value in range(30, 0, -1)]

    assert rsi(prices) == pytest.approx(0.0)


def test_rsi_returns_neutral_value_when_history_is_short() -> None:
    assert rsi([100.0] * 14, period=14) == 50.0


def test_rsi_balances_equal_gains_and_losses() -> None:
    assert rsi([10.0, 11.0, 10.0], period=2) == pytest.approx(50.0)


def test_rsi_only_uses_last_period_deltas() -> None:
    # early crash is outside the two-delta window
    prices = [100.0, 50.0, 51.0, 52.0]

    assert rsi(prices, period=2) == pytest.approx(100.0)


def test_sma_of_full_window_is_exact_mean() -> None:
    prices = [1.5, 2.5, 3.0, 7.25, 11.0]

    assert sma(prices, len(prices)) == sum(prices) / len(prices)


def test_sma_uses_trailing_window() -> None:
    assert sma([1.0, 2.0, 3.0, 4.0], 2) == pytest.approx(3.5)


def test_sma_falls_back_to_last_price() -> None:
    assert sma([5.0, 6.0], 20) == 6.0


def test_sma_rejects_empty_input() -> None:
    with pytest.raises(ValueError):
        sma([], 5)


def test_ema_runs_over_whole_sequence_from_first_price() -> None:
    # multiplier 2/3: 1 -> 5/3 -> 23/9
    assert ema([1.0, 2.0, 3.0], 2) == pytest.approx(23 / 9)


def test_ema_falls_back_to_last_price() -> None:
    assert ema([4.0, 8.0], 10) == 8.0


def test_macd_signal_is_tenth_of_macd_line() -> None:
    prices = [100.0 + index * 1.5 for index in range(60)]

    result = macd(prices)

    assert result.macd > 0
    assert result.signal == pytest.approx(result.macd * 0.1)
    assert result.histogram == pytest.approx(result.macd * 0.9)


def test_macd_is_flat_for_constant_prices() -> None:
    result = macd([42.0] * 40)

    assert result.macd == pytest.approx(0.0)
    assert result.histogram == pytest.approx(0.0)


def test_bollinger_bands_use_population_standard_deviation() -> None:
    prices = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]

    bands = bollinger_bands(prices, period=8, multiplier=2)

    assert bands.middle == pytest.approx(5.0)
    assert bands.upper == pytest.approx(9.0)
    assert bands.lower == pytest.approx(1.0)


def test_bollinger_bands_collapse_on_constant_prices() -> None:
    bands = bollinger_bands([10.0] * 25)

    assert bands.upper == bands.middle == bands.lower == pytest.approx(10.0)
