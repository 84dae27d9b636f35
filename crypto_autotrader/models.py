"""Typed records shared across market data, risk and execution."""

from __future__ import annotations

import enum
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from .errors import InvalidSignalError, ParseError, UnsupportedExchangeError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_order_id(prefix: str) -> str:
    return f'{prefix}_{uuid.uuid4().hex}'


class SignalAction(str, enum.Enum):
    BUY = 'buy'
    SELL = 'sell'
    HOLD = 'hold'


class OrderSide(str, enum.Enum):
    BUY = 'buy'
    SELL = 'sell'


class OrderStatus(str, enum.Enum):
    PENDING = 'pending'
    FILLED = 'filled'
    CANCELLED = 'cancelled'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class Exchange(str, enum.Enum):
    DEMO = 'demo'
    BINANCE = 'binance'
    BYBIT = 'bybit'
    OKX = 'okx'

    @classmethod
    def parse(cls, value: 'Exchange | str') -> 'Exchange':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise UnsupportedExchangeError(f'Unsupported exchange: {value}') from exc


@dataclass(frozen=True)
class TradingSignal:
    """An already-produced trade instruction. Immutable once created."""

    symbol: str
    action: SignalAction
    price: float
    quantity: float
    stop_loss: float
    take_profit: float
    confidence: float
    timestamp: int = field(default_factory=now_ms)

    def __post_init__(self) -> None:
        if not self.symbol:
            raise InvalidSignalError('symbol must be non-empty')
        try:
            action = SignalAction(self.action)
        except ValueError as exc:
            raise InvalidSignalError(f'Unknown signal action: {self.action}') from exc
        # frozen dataclass: bypass __setattr__ to store the coerced enum
        object.__setattr__(self, 'action', action)
        if not 0 <= self.confidence <= 100:
            raise InvalidSignalError(f'confidence must be within [0, 100], got {self.confidence}')
        if self.quantity < 0:
            raise InvalidSignalError(f'quantity must be non-negative, got {self.quantity}')
        if self.quantity == 0 and action is not SignalAction.HOLD:
            raise InvalidSignalError('quantity 0 is only allowed for hold signals')

    @property
    def notional(self) -> float:
        return self.price * self.quantity


@dataclass
class OrderResult:
    """Outcome of one execution attempt as recorded in the ledger."""

    order_id: str
    symbol: str
    side: OrderSide
    quantity: float
    price: float
    status: OrderStatus
    timestamp: int = field(default_factory=now_ms)
    fees: Optional[float] = None
    executed_qty: Optional[float] = None
    executed_price: Optional[float] = None
    exchange: Optional[Exchange] = None
    exchange_order_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def failed(
        cls,
        prefix: str,
        signal: TradingSignal,
        reason: str,
        exchange: Optional[Exchange] = None,
    ) -> 'OrderResult':
        """Terminal failure carrying no fill information."""
        return cls(
            order_id=new_order_id(prefix),
            symbol=signal.symbol,
            side=OrderSide(signal.action.value),
            quantity=signal.quantity,
            price=signal.price,
            status=OrderStatus.FAILED,
            exchange=exchange,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload['side'] = self.side.value
        payload['status'] = self.status.value
        payload['exchange'] = self.exchange.value if self.exchange else None
        return payload


@dataclass(frozen=True)
class MarketSnapshot:
    symbol: str
    price: float
    change: float
    change_percent: float
    volume: float
    high: float
    low: float
    timestamp: int
    bid_price: Optional[float] = None
    ask_price: Optional[float] = None

    @classmethod
    def from_ticker(cls, payload: Any, timestamp: int) -> 'MarketSnapshot':
        """Build a snapshot from a 24h ticker payload, numbers sent as strings."""
        if not isinstance(payload, Mapping):
            raise ParseError(f'Ticker payload must be an object, got {type(payload).__name__}')
        symbol = payload.get('symbol')
        if not isinstance(symbol, str) or not symbol:
            raise ParseError('Ticker payload is missing a symbol')
        return cls(
            symbol=symbol,
            price=_require_float(payload, 'lastPrice'),
            change=_require_float(payload, 'priceChange'),
            change_percent=_require_float(payload, 'priceChangePercent'),
            volume=_require_float(payload, 'volume'),
            high=_require_float(payload, 'highPrice'),
            low=_require_float(payload, 'lowPrice'),
            timestamp=timestamp,
            bid_price=_optional_float(payload, 'bidPrice'),
            ask_price=_optional_float(payload, 'askPrice'),
        )


@dataclass(frozen=True)
class Candle:
    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int
    quote_volume: float
    trade_count: int
    taker_buy_base: float
    taker_buy_quote: float

    @classmethod
    def from_kline(cls, row: Any) -> 'Candle':
        """Parse one fixed-position kline array."""
        if not isinstance(row, Sequence) or isinstance(row, (str, bytes)) or len(row) < 11:
            raise ParseError(f'Malformed kline row: {row!r}')
        try:
            return cls(
                open_time=int(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
                close_time=int(row[6]),
                quote_volume=float(row[7]),
                trade_count=int(row[8]),
                taker_buy_base=float(row[9]),
                taker_buy_quote=float(row[10]),
            )
        except (TypeError, ValueError) as exc:
            raise ParseError(f'Malformed kline row: {row!r}') from exc


def _require_float(payload: Mapping[str, Any], key: str) -> float:
    if key not in payload:
        raise ParseError(f'Ticker payload is missing {key}')
    try:
        return float(payload[key])
    except (TypeError, ValueError) as exc:
        raise ParseError(f'Ticker field {key} is not numeric: {payload[key]!r}') from exc


def _optional_float(payload: Mapping[str, Any], key: str) -> Optional[float]:
    if payload.get(key) is None:
        return None
    return _require_float(payload, key)


__all__ = [
    'Candle',
    'Exchange',
    'MarketSnapshot',
    'OrderResult',
    'OrderSide',
    'OrderStatus',
    'SignalAction',
    'TradingSignal',
    'new_order_id',
    'now_ms',
]
