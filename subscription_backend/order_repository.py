"""
Order persistence

Stores subscription orders and their generated delivery schedules with
SQLAlchemy Core. The scheduling modules never touch this; the HTTP layer
computes schedules and hands finished records to a repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from subscription_backend.delivery_schedule import DeliveryScheduleEntry, last_delivery_date
from subscription_backend.payment_attempts import PaymentAttempt, generate_payment_attempts

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "ACTIVE"

metadata = MetaData()

orders = Table(
    "orders",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("product_id", String(64)),
    Column("first_delivery_date", Date, nullable=False),
    Column("weeks", Integer, nullable=False),
    Column("frequency", String(20), nullable=False),
    Column("status", String(20), nullable=False, server_default=ACTIVE_STATUS),
    Column("delivery_count", Integer, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

order_deliveries = Table(
    "order_deliveries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", String(64), ForeignKey("orders.id"), nullable=False),
    Column("sequence", Integer, nullable=False),
    Column("delivery_date", Date, nullable=False),
    Column("production_date", Date, nullable=False),
    UniqueConstraint("order_id", "sequence", name="uq_order_deliveries_order_sequence"),
)


class DuplicateOrderError(ValueError):
    """Raised when an order id is already stored."""


@dataclass(frozen=True)
class OrderRecord:
    id: str
    first_delivery_date: date
    weeks: int
    frequency: str
    deliveries: tuple[DeliveryScheduleEntry, ...]
    product_id: Optional[str] = None
    status: str = ACTIVE_STATUS
    created_at: Optional[datetime] = None

    @property
    def delivery_count(self) -> int:
        return len(self.deliveries)

    @property
    def payment_attempts(self) -> List[PaymentAttempt]:
        last_date = last_delivery_date(self.deliveries)
        if last_date is None:
            return []
        return generate_payment_attempts(last_date)


class OrderRepository(Protocol):
    def create_order(self, order: OrderRecord) -> OrderRecord: ...

    def list_orders(self) -> List[OrderRecord]: ...

    def get_order(self, order_id: str) -> Optional[OrderRecord]: ...


class SqlOrderRepository:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_all(self) -> None:
        metadata.create_all(self.engine)

    def create_order(self, order: OrderRecord) -> OrderRecord:
        values = {
            "id": order.id,
            "product_id": order.product_id,
            "first_delivery_date": order.first_delivery_date,
            "weeks": order.weeks,
            "frequency": order.frequency,
            "status": order.status,
            "delivery_count": order.delivery_count,
        }
        if order.created_at is not None:
            values["created_at"] = order.created_at
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(orders).values(**values))
                if order.deliveries:
                    conn.execute(
                        insert(order_deliveries),
                        [
                            {
                                "order_id": order.id,
                                "sequence": entry.sequence,
                                "delivery_date": entry.delivery_date,
                                "production_date": entry.production_date,
                            }
                            for entry in order.deliveries
                        ],
                    )
        except IntegrityError as exc:
            raise DuplicateOrderError(f"Order already exists: {order.id}") from exc

        logger.info("Stored order %s with %d deliveries.", order.id, order.delivery_count)
        stored = self.get_order(order.id)
        if stored is None:
            raise RuntimeError(f"Order {order.id} missing after insert.")
        return stored

    def list_orders(self) -> List[OrderRecord]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(orders).order_by(orders.c.created_at.desc(), orders.c.id)
            ).mappings().all()
            return [self._build_record(conn, row) for row in rows]

    def get_order(self, order_id: str) -> Optional[OrderRecord]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(orders).where(orders.c.id == order_id)
            ).mappings().first()
            if row is None:
                return None
            return self._build_record(conn, row)

    def _build_record(self, conn: Connection, row) -> OrderRecord:
        return OrderRecord(
            id=row["id"],
            product_id=row["product_id"],
            first_delivery_date=row["first_delivery_date"],
            weeks=row["weeks"],
            frequency=row["frequency"],
            status=row["status"],
            created_at=row["created_at"],
            deliveries=_load_deliveries(conn, row["id"]),
        )


def _load_deliveries(conn: Connection, order_id: str) -> tuple[DeliveryScheduleEntry, ...]:
    rows: Sequence = conn.execute(
        select(order_deliveries)
        .where(order_deliveries.c.order_id == order_id)
        .order_by(order_deliveries.c.sequence)
    ).mappings().all()
    return tuple(
        DeliveryScheduleEntry(
            sequence=row["sequence"],
            delivery_date=row["delivery_date"],
            production_date=row["production_date"],
        )
        for row in rows
    )
