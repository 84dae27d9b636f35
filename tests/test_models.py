"""Tests for :mod:`crypto_autotrader.models`."""

import dataclasses

import pytest

from crypto_autotrader.errors import InvalidSignalError, ParseError, UnsupportedExchangeError
from crypto_autotrader.models import (
    Candle,
    Exchange,
    MarketSnapshot,
    OrderResult,
    OrderSide,
    OrderStatus,
    SignalAction,
    TradingSignal,
)

TICKER = {
    'symbol': 'BTCUSDT',
    'lastPrice': '30000.50',
    'priceChange': '-150.25',
    'priceChangePercent': '-0.498',
    'volume': '1234.5',
    'highPrice': '30500.00',
    'lowPrice': '29500.00',
    'bidPrice': '30000.40',
    'askPrice': '30000.60',
}

KLINE = [
    1700000000000, '100.0', '110.0', '95.0', '105.0', '12.5',
    1700003599999, '1300.0', 42, '6.0', '630.0', '0',
]


def _signal(**overrides) -> TradingSignal:
    fields = dict(
        symbol='ETHUSDT',
        action='buy',
        price=2_000.0,
        quantity=0.5,
        stop_loss=1_900.0,
        take_profit=2_200.0,
        confidence=80.0,
    )
    fields.update(overrides)
    return TradingSignal(**fields)


def test_signal_coerces_action_and_is_immutable() -> None:
    signal = _signal(action='sell')

    assert signal.action is SignalAction.SELL
    assert signal.timestamp > 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        signal.price = 1.0  # type: ignore[misc]


@pytest.mark.parametrize('overrides', [
    {'symbol': ''},
    {'action': 'short'},
    {'confidence': 101.0},
    {'confidence': -1.0},
    {'quantity': -0.1},
    {'quantity': 0.0},
])
def test_signal_rejects_invalid_fields(overrides) -> None:
    with pytest.raises(InvalidSignalError):
        _signal(**overrides)


def test_hold_signal_may_have_zero_quantity() -> None:
    assert _signal(action='hold', quantity=0.0).quantity == 0.0


def test_order_result_failed_has_no_fill_fields() -> None:
    order = OrderResult.failed('binance_failed', _signal(), 'boom', Exchange.BINANCE)

    assert order.order_id.startswith('binance_failed_')
    assert order.status is OrderStatus.FAILED
    assert order.side is OrderSide.BUY
    assert order.fees is None and order.executed_qty is None and order.executed_price is None
    assert order.to_dict()['exchange'] == 'binance'


def test_snapshot_parses_string_numbers() -> None:
    snapshot = MarketSnapshot.from_ticker(TICKER, timestamp=123)

    assert snapshot.symbol == 'BTCUSDT'
    assert snapshot.price == pytest.approx(30000.50)
    assert snapshot.change == pytest.approx(-150.25)
    assert snapshot.change_percent == pytest.approx(-0.498)
    assert snapshot.bid_price == pytest.approx(30000.40)
    assert snapshot.timestamp == 123


@pytest.mark.parametrize('payload', [
    None,
    ['not', 'an', 'object'],
    {key: value for key, value in TICKER.items() if key != 'lastPrice'},
    dict(TICKER, volume='lots'),
    dict(TICKER, symbol=''),
])
def test_snapshot_rejects_malformed_payloads(payload) -> None:
    with pytest.raises(ParseError):
        MarketSnapshot.from_ticker(payload, timestamp=1)


def test_candle_parses_fixed_position_row() -> None:
    candle = Candle.from_kline(KLINE)

    assert candle.open_time == 1700000000000
    assert candle.close == pytest.approx(105.0)
    assert candle.trade_count == 42
    assert candle.taker_buy_quote == pytest.approx(630.0)


@pytest.mark.parametrize('row', [KLINE[:5], 'abc', [None] * 11])
def test_candle_rejects_malformed_rows(row) -> None:
    with pytest.raises(ParseError):
        Candle.from_kline(row)


def test_exchange_parse_is_case_insensitive() -> None:
    assert Exchange.parse('OKX') is Exchange.OKX
    with pytest.raises(UnsupportedExchangeError):
        Exchange.parse('kraken')
