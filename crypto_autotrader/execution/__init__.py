"""Order execution layer."""

from .controller import AutoTradingController
from .order_ledger import OrderLedger

__all__ = ['AutoTradingController', 'OrderLedger']
