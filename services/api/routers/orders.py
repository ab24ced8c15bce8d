# services/api/routers/orders.py
from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from adapters.base import StorageAdapter
from core.priority import prioritized_groups
from core.production_days import filter_by_production_day, production_day_buckets
from core.validation import (
    coerce_status,
    coerce_status_filter,
    ensure_transition_allowed,
    validate_id_list,
)
from deps import get_storage_adapter
from models import utcnow
from schemas import BatchStatusUpdate, OrderUpdate
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]

NON_NULLABLE_FIELDS = ("art_status", "art_group_id", "is_urgent", "in_daily_queue")


def _not_found(order_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Order not found: {order_id}")


@router.get("")
async def list_orders(
    storage: Storage,
    status_filter: Optional[str] = Query(None, alias="status", description="Art status or ALL"),
    search: Optional[str] = Query(None, description="Customer, order id, product or art name"),
    production_date: Optional[str] = Query(None, description="YYYY-MM-DD production day"),
):
    """Orders by shipping date (earliest first)."""
    art_status = coerce_status_filter(status_filter)
    orders = storage.list_orders(status=art_status, search=search)
    if production_date:
        orders = filter_by_production_day(orders, production_date, get_settings().tzinfo())
    return [o.to_api() for o in orders]


@router.get("/groups")
async def list_order_groups(
    storage: Storage,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
):
    """Orders grouped per customer art group, in production priority order."""
    orders = storage.list_orders(status=coerce_status_filter(status_filter), search=search)
    return [g.to_api() for g in prioritized_groups(orders, utcnow())]


@router.get("/production-dates")
async def list_production_dates(storage: Storage):
    """Days orders were sent to production, with the distinct art count per day."""
    orders = [o for o in storage.list_orders() if o.sent_to_production_at is not None]
    return production_day_buckets(orders, get_settings().tzinfo())


# Must stay above "/{order_id}"
@router.patch("/batch")
async def update_orders_batch(body: BatchStatusUpdate, storage: Storage):
    """
    Set one status on many orders. Either every order changes or none does.
    """
    ids = validate_id_list(body.ids)
    target = coerce_status(body.art_status)

    existing = storage.get_orders(ids)
    if len(existing) != len(ids):
        missing = sorted(set(ids) - {o.id for o in existing})
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Orders not found", "details": missing},
        )

    strict = get_settings().strict_status_transitions
    for order in existing:
        ensure_transition_allowed(order.art_status, target, strict)

    try:
        updated = storage.update_status_batch(ids, target)
    except ValueError as e:
        if str(e).startswith("ORDER_NOT_FOUND"):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        raise

    logger.info(f"Batch status update: {len(updated)} order(s) -> {target.value}")
    return {"success": True, "count": len(updated)}


@router.patch("/{order_id}")
async def update_order(order_id: str, body: OrderUpdate, storage: Storage):
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    for key in NON_NULLABLE_FIELDS:
        if key in updates and updates[key] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{key} cannot be null")

    current = storage.get_order(order_id)
    if current is None:
        raise _not_found(order_id)

    if "art_status" in updates:
        target = coerce_status(updates["art_status"])
        ensure_transition_allowed(current.art_status, target, get_settings().strict_status_transitions)
        updates["art_status"] = target

    try:
        order = storage.update_order(order_id, updates)
    except ValueError as e:
        if str(e) == "ORDER_NOT_FOUND":
            raise _not_found(order_id)
        raise
    return order.to_api()


@router.delete("/{order_id}")
async def delete_order(order_id: str, storage: Storage):
    try:
        storage.delete_order(order_id)
    except ValueError as e:
        if str(e) == "ORDER_NOT_FOUND":
            raise _not_found(order_id)
        raise
    logger.info(f"Deleted order {order_id}")
    return {"success": True}
