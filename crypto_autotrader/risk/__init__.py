"""Risk management tools."""

from .risk_manager import RiskLimits, RiskManager, is_valid_trade, position_size, risk_reward

__all__ = ['RiskLimits', 'RiskManager', 'is_valid_trade', 'position_size', 'risk_reward']
