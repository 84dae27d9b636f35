"""Risk guardrails for trade signals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..errors import InvalidRiskParametersError
from ..models import SignalAction, TradingSignal


def _stop_distance(entry: float, stop_loss: float) -> float:
    distance = abs(entry - stop_loss)
    if distance == 0:
        raise InvalidRiskParametersError('entry price must differ from stop loss')
    return distance


def position_size(balance: float, risk_pct: float, entry: float, stop_loss: float) -> float:
    """Quantity whose stop-out loses ``risk_pct`` percent of ``balance``."""
    return balance * (risk_pct / 100) / _stop_distance(entry, stop_loss)


def risk_reward(entry: float, stop_loss: float, take_profit: float) -> float:
    return abs(take_profit - entry) / _stop_distance(entry, stop_loss)


def is_valid_trade(signal: TradingSignal, balance: float, max_risk_pct: float = 2.0) -> bool:
    """True when the stop-out loss and the notional both fit the balance."""
    max_loss = abs(signal.price - signal.stop_loss) * signal.quantity
    risk_budget = balance * (max_risk_pct / 100)
    return max_loss <= risk_budget and signal.notional <= balance


@dataclass
class RiskLimits:
    max_risk_pct: float = 2.0


class RiskManager:
    """Applies :func:`is_valid_trade` as a pre-dispatch gate."""

    def __init__(self, limits: RiskLimits | None = None) -> None:
        self.limits = limits or RiskLimits()

    def validate_signal(self, signal: TradingSignal, balance: float) -> Tuple[bool, str]:
        if signal.action is SignalAction.HOLD:
            return True, 'OK'
        if not is_valid_trade(signal, balance, self.limits.max_risk_pct):
            return False, (
                f'Risk check rejected: loss at stop or notional exceeds '
                f'{self.limits.max_risk_pct}% risk budget of balance {balance}'
            )
        return True, 'OK'


__all__ = ['RiskLimits', 'RiskManager', 'is_valid_trade', 'position_size', 'risk_reward']
