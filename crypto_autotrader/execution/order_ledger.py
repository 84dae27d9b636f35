"""Append-only record of executed orders."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from ..database import DatabaseManager
from ..errors import DuplicateOrderError
from ..models import OrderResult, OrderStatus

logger = logging.getLogger(__name__)


class OrderLedger:
    """Insertion-ordered orders with optional write-through persistence.

    Appends are serialized so concurrent executions cannot interleave a
    duplicate-id check with an insert.
    """

    def __init__(self, database: Optional[DatabaseManager] = None) -> None:
        self._orders: List[OrderResult] = []
        self._index: Dict[str, OrderResult] = {}
        self._database = database
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._orders)

    async def append(self, order: OrderResult) -> None:
        async with self._lock:
            if order.order_id in self._index:
                raise DuplicateOrderError(f'Order {order.order_id} already recorded')
            self._orders.append(order)
            self._index[order.order_id] = order
            if self._database is not None:
                await self._persist(order.order_id, self._database.record_order, order)

    def find_by_id(self, order_id: str) -> Optional[OrderResult]:
        return self._index.get(order_id)

    def orders(self) -> List[OrderResult]:
        return list(self._orders)

    async def cancel(self, order_id: str) -> bool:
        """Mark an order cancelled.

        Terminal orders are overwritten as well, matching the behaviour
        callers already depend on; the overwrite is logged.
        """
        async with self._lock:
            order = self._index.get(order_id)
            if order is None:
                return False
            if order.status.is_terminal:
                logger.warning(
                    'Cancelling order %s which is already %s',
                    order_id,
                    order.status.value,
                )
            order.status = OrderStatus.CANCELLED
            if self._database is not None:
                await self._persist(order_id, self._database.update_order_status, order_id, order.status)
            return True

    async def _persist(self, order_id: str, write: Callable[..., object], *args: object) -> None:
        try:
            await asyncio.to_thread(write, *args)
        except Exception:
            # the in-memory ledger is the source of truth
            logger.exception('Failed to persist order %s', order_id)


__all__ = ['OrderLedger']
