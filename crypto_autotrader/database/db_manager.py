"""SQLAlchemy-backed persistence manager."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List

from sqlalchemy import Select, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..models import Exchange, OrderResult, OrderSide, OrderStatus
from .models import Base, Order


def _as_utc(value: datetime) -> datetime:
    """Ensure datetimes are timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _to_millis(value: datetime) -> int:
    return int(_as_utc(value).timestamp() * 1000)


class DatabaseManager:
    """High level helper around a SQLAlchemy engine and session factory."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._database_url = database_url
        connect_args: dict[str, object] = {}
        if database_url.startswith('sqlite:///'):
            db_path = Path(database_url.replace('sqlite:///', '', 1))
            if str(db_path) != ':memory:':
                db_path.parent.mkdir(parents=True, exist_ok=True)
            connect_args['check_same_thread'] = False
        self._engine: Engine = create_engine(
            database_url,
            echo=echo,
            future=True,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(
            self._engine,
            expire_on_commit=False,
            future=True,
        )
        self.create_schema()

    def create_schema(self) -> None:
        """Create database tables if they do not already exist."""

        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager returning a database session with automatic commit."""

        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # pragma: no cover - re-raise after rollback
            session.rollback()
            raise
        finally:
            session.close()

    def record_order(self, order: OrderResult) -> None:
        """Insert or replace an order row."""

        with self.session() as session:
            session.merge(
                Order(
                    order_id=order.order_id,
                    symbol=order.symbol,
                    side=order.side.value,
                    status=order.status.value,
                    quantity=order.quantity,
                    price=order.price,
                    fees=order.fees,
                    executed_qty=order.executed_qty,
                    executed_price=order.executed_price,
                    exchange=order.exchange.value if order.exchange else None,
                    exchange_order_id=order.exchange_order_id,
                    reason=order.reason,
                    created_at=_from_millis(order.timestamp),
                )
            )

    def update_order_status(self, order_id: str, status: OrderStatus) -> bool:
        """Set the status of a stored order; False when it is unknown."""

        with self.session() as session:
            row = session.get(Order, order_id)
            if row is None:
                return False
            row.status = status.value
            return True

    def load_orders(self, limit: int = 100) -> List[OrderResult]:
        """Return the most recent orders ordered from oldest to newest."""

        if limit <= 0:
            return []
        stmt: Select[tuple[Order]] = (
            select(Order)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        with self.session() as session:
            rows = session.execute(stmt).scalars().all()
        return [
            OrderResult(
                order_id=row.order_id,
                symbol=row.symbol,
                side=OrderSide(row.side),
                quantity=row.quantity,
                price=row.price,
                status=OrderStatus(row.status),
                timestamp=_to_millis(row.created_at),
                fees=row.fees,
                executed_qty=row.executed_qty,
                executed_price=row.executed_price,
                exchange=Exchange(row.exchange) if row.exchange else None,
                exchange_order_id=row.exchange_order_id,
                reason=row.reason,
            )
            for row in reversed(rows)
        ]

    def close(self) -> None:
        """Dispose of the underlying engine and connection pool."""

        self._engine.dispose()


__all__ = ['DatabaseManager']
