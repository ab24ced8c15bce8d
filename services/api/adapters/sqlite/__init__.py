# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    or_,
    select,
    update,
    event,
)
from sqlalchemy.engine import Connection, Engine

from core.product_mapping import calculate_total_cups, get_real_description
from models import ArtStatus, Order, utcnow

logger = logging.getLogger(__name__)

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    connect_args = {}
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)
        # pooled connections move between the event loop and the threadpool
        connect_args["check_same_thread"] = False

    engine = create_engine(db_url, future=True, pool_pre_ping=True, connect_args=connect_args)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA temp_store=MEMORY;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

orders = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("marketplace_order_id", String, nullable=False, unique=True),
    Column("customer_user", String, nullable=False),
    Column("customer_name", String, nullable=False, default=""),
    Column("product_name", Text, nullable=False, default=""),
    Column("variation", Text, nullable=True),
    Column("quantity", Integer, nullable=False, default=1),
    Column("total_value", Numeric(12, 2), nullable=False, default=0),
    Column("customer_note", Text, nullable=True),
    Column("shipping_date", DateTime, nullable=False),
    Column("order_date", DateTime, nullable=False),
    # workflow
    Column("art_status", String, nullable=False, default=ArtStatus.PENDING.value),
    Column("art_name", String, nullable=True),
    Column("art_group_id", Integer, nullable=False, default=0),
    # fulfillment metadata
    Column("cup_quantity", Integer, nullable=True),
    Column("real_description", Text, nullable=True),
    Column("internal_note", Text, nullable=True),
    Column("is_urgent", Boolean, nullable=False, default=False),
    Column("urgent_from_date", Date, nullable=True),
    Column("in_daily_queue", Boolean, nullable=False, default=False),
    # assets
    Column("art_png_url", Text, nullable=True),
    Column("art_cdr_url", Text, nullable=True),
    # timestamps (naive UTC)
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Column("sent_to_production_at", DateTime, nullable=True),
    Column("shipped_at", DateTime, nullable=True),
)

Index("idx_orders_status", orders.c.art_status)
Index("idx_orders_customer", orders.c.customer_user, orders.c.art_group_id)
Index("idx_orders_shipping", orders.c.shipping_date)
Index("idx_orders_queue", orders.c.in_daily_queue)

# Columns the marketplace export owns; refreshed on every import
IMPORT_FIELDS = (
    "customer_user",
    "customer_name",
    "product_name",
    "variation",
    "quantity",
    "total_value",
    "customer_note",
    "shipping_date",
    "order_date",
)

# Columns the dashboard may edit
PATCHABLE_FIELDS = {
    "art_status",
    "art_name",
    "art_group_id",
    "cup_quantity",
    "real_description",
    "internal_note",
    "is_urgent",
    "urgent_from_date",
    "in_daily_queue",
    "art_png_url",
    "art_cdr_url",
}

ASSET_URL_FIELDS = ("art_png_url", "art_cdr_url")


def _status_values(art_status: Any, now) -> Dict[str, Any]:
    status = ArtStatus(art_status)
    values: Dict[str, Any] = {"art_status": status.value}
    if status == ArtStatus.PRODUCTION:
        # production day is what the date filter buckets on
        values["sent_to_production_at"] = now
    elif status == ArtStatus.SHIPPED:
        # same side effects as the import's shipped detection
        values["shipped_at"] = now
        values["in_daily_queue"] = False
    return values

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/orders.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(select(1))

    # Reads
    def list_orders(
        self,
        status: Optional[ArtStatus] = None,
        search: Optional[str] = None,
        statuses: Optional[Sequence[ArtStatus]] = None,
        in_daily_queue: Optional[bool] = None,
    ) -> List[Order]:
        q = select(orders)
        if status is not None:
            q = q.where(orders.c.art_status == ArtStatus(status).value)
        if statuses:
            q = q.where(orders.c.art_status.in_([ArtStatus(s).value for s in statuses]))
        if in_daily_queue is not None:
            q = q.where(orders.c.in_daily_queue == in_daily_queue)
        if search and search.strip():
            term = search.strip()
            q = q.where(
                or_(
                    orders.c.customer_user.icontains(term, autoescape=True),
                    orders.c.customer_name.icontains(term, autoescape=True),
                    orders.c.marketplace_order_id.icontains(term, autoescape=True),
                    orders.c.product_name.icontains(term, autoescape=True),
                    orders.c.art_name.icontains(term, autoescape=True),
                )
            )
        q = q.order_by(orders.c.shipping_date.asc(), orders.c.created_at.asc())

        with self.engine.begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [Order.from_storage(r) for r in rows]

    def get_order(self, order_id: str) -> Optional[Order]:
        with self.engine.begin() as conn:
            return self._get(conn, order_id)

    def get_orders(self, order_ids: Sequence[str]) -> List[Order]:
        if not order_ids:
            return []
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(orders).where(orders.c.id.in_(list(order_ids)))
            ).mappings().all()
        by_id = {r["id"]: Order.from_storage(r) for r in rows}
        # keep caller's order
        return [by_id[i] for i in order_ids if i in by_id]

    def list_orders_missing_cup_info(self) -> List[Order]:
        q = select(orders).where(
            or_(orders.c.cup_quantity.is_(None), orders.c.real_description.is_(None))
        )
        with self.engine.begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [Order.from_storage(r) for r in rows]

    def list_orders_by_asset(
        self,
        field: str,
        has_asset: bool,
        statuses: Optional[Sequence[ArtStatus]] = None,
    ) -> List[Order]:
        if field not in ASSET_URL_FIELDS:
            raise ValueError(f"Unknown asset field: {field}")
        column = orders.c[field]
        q = select(orders).where(orders.c.art_name.is_not(None), orders.c.art_name != "")
        q = q.where(column.is_not(None) if has_asset else column.is_(None))
        if statuses:
            q = q.where(orders.c.art_status.in_([ArtStatus(s).value for s in statuses]))
        q = q.order_by(orders.c.shipping_date.asc(), orders.c.created_at.asc())
        with self.engine.begin() as conn:
            rows = conn.execute(q).mappings().all()
        return [Order.from_storage(r) for r in rows]

    # Writes
    def update_order(self, order_id: str, updates: Dict[str, Any]) -> Order:
        values = {k: v for k, v in updates.items() if k in PATCHABLE_FIELDS}
        now = utcnow()
        if "art_status" in values:
            values.update(_status_values(values["art_status"], now))
        values["updated_at"] = now

        with self.engine.begin() as conn:
            res = conn.execute(
                update(orders).where(orders.c.id == order_id).values(**values)
            )
            if res.rowcount == 0:
                raise ValueError("ORDER_NOT_FOUND")
            return self._get(conn, order_id)

    def update_status_batch(self, order_ids: Sequence[str], art_status: ArtStatus) -> List[Order]:
        now = utcnow()
        values = _status_values(art_status, now)
        values["updated_at"] = now

        # engine.begin() rolls the whole batch back if any id is missing
        with self.engine.begin() as conn:
            for oid in order_ids:
                res = conn.execute(update(orders).where(orders.c.id == oid).values(**values))
                if res.rowcount == 0:
                    raise ValueError(f"ORDER_NOT_FOUND: {oid}")
            return [self._get(conn, oid) for oid in order_ids]

    def delete_order(self, order_id: str) -> None:
        with self.engine.begin() as conn:
            res = conn.execute(delete(orders).where(orders.c.id == order_id))
            if res.rowcount == 0:
                raise ValueError("ORDER_NOT_FOUND")

    # Import
    def upsert_orders(self, rows: List[Dict[str, Any]]) -> Tuple[int, int]:
        if not rows:
            return 0, 0

        created = 0
        updated = 0
        now = utcnow()
        with self.engine.begin() as conn:
            ids = [str(r["marketplace_order_id"]) for r in rows]
            existing = {
                r.marketplace_order_id: r
                for r in conn.execute(
                    select(
                        orders.c.id,
                        orders.c.marketplace_order_id,
                        orders.c.cup_quantity,
                        orders.c.real_description,
                    ).where(orders.c.marketplace_order_id.in_(ids))
                ).all()
            }

            for row in rows:
                mid = str(row["marketplace_order_id"])
                data = {k: row.get(k) for k in IMPORT_FIELDS}
                data["customer_name"] = data.get("customer_name") or ""
                data["product_name"] = data.get("product_name") or ""
                quantity = int(data.get("quantity") or 1)

                current = existing.get(mid)
                if current is not None:
                    # backfill only what is still empty
                    if current.cup_quantity is None:
                        data["cup_quantity"] = calculate_total_cups(data["product_name"], quantity)
                    if current.real_description is None:
                        data["real_description"] = get_real_description(data["product_name"])
                    data["updated_at"] = now
                    conn.execute(
                        update(orders).where(orders.c.marketplace_order_id == mid).values(**data)
                    )
                    updated += 1
                    continue

                new_id = str(uuid4())
                conn.execute(
                    insert(orders).values(
                        id=new_id,
                        marketplace_order_id=mid,
                        art_status=ArtStatus.PENDING.value,
                        art_group_id=0,
                        cup_quantity=row.get("cup_quantity") or calculate_total_cups(data["product_name"], quantity),
                        real_description=row.get("real_description") or get_real_description(data["product_name"]),
                        is_urgent=False,
                        in_daily_queue=False,
                        created_at=now,
                        updated_at=now,
                        **data,
                    )
                )
                # a repeated id later in the same batch becomes an update
                existing[mid] = _Existing(new_id, mid, 0, "")
                created += 1

        return created, updated

    def mark_missing_as_shipped(self, imported_marketplace_ids: Sequence[str]) -> int:
        now = utcnow()
        with self.engine.begin() as conn:
            res = conn.execute(
                update(orders)
                .where(orders.c.art_status == ArtStatus.PRODUCTION.value)
                .where(orders.c.marketplace_order_id.notin_(list(imported_marketplace_ids)))
                .values(
                    art_status=ArtStatus.SHIPPED.value,
                    shipped_at=now,
                    in_daily_queue=False,
                    updated_at=now,
                )
            )
            return res.rowcount or 0

    # Daily queue
    def replace_daily_queue(self, order_ids: Sequence[str]) -> int:
        now = utcnow()
        with self.engine.begin() as conn:
            conn.execute(
                update(orders)
                .where(orders.c.in_daily_queue.is_(True))
                .values(in_daily_queue=False, updated_at=now)
            )
            if not order_ids:
                return 0
            res = conn.execute(
                update(orders)
                .where(orders.c.id.in_(list(order_ids)))
                .values(in_daily_queue=True, updated_at=now)
            )
            return res.rowcount or 0

    def clear_daily_queue(self) -> int:
        with self.engine.begin() as conn:
            res = conn.execute(
                update(orders)
                .where(orders.c.in_daily_queue.is_(True))
                .values(in_daily_queue=False, updated_at=utcnow())
            )
            return res.rowcount or 0

    # Helpers
    @staticmethod
    def _get(conn: Connection, order_id: str) -> Optional[Order]:
        row = conn.execute(select(orders).where(orders.c.id == order_id)).mappings().first()
        return Order.from_storage(row) if row else None


@dataclass(frozen=True)
class _Existing:
    id: str
    marketplace_order_id: str
    cup_quantity: Optional[int]
    real_description: Optional[str]
