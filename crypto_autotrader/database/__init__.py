"""Persistence layer exports."""

from .db_manager import DatabaseManager
from .models import Base, Order

__all__ = ['DatabaseManager', 'Base', 'Order']
