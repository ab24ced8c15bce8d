# services/api/routers/daily_queue.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from adapters.base import StorageAdapter
from core.priority import DAILY_QUEUE_ELIGIBLE, prioritized_orders, select_for_daily_queue
from deps import get_storage_adapter
from models import utcnow
from schemas import DailyQueueGenerate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/daily-queue", tags=["daily-queue"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]


@router.get("")
async def get_daily_queue(storage: Storage):
    """Current queue in production priority order."""
    orders = storage.list_orders(in_daily_queue=True)
    return [o.to_api() for o in prioritized_orders(orders, utcnow())]


@router.post("")
async def generate_daily_queue(body: DailyQueueGenerate, storage: Storage):
    """
    Replace today's queue with the `count` highest-priority orders that are
    not shipped yet.
    """
    eligible = storage.list_orders(statuses=DAILY_QUEUE_ELIGIBLE)
    selected = select_for_daily_queue(eligible, body.count, utcnow())
    storage.replace_daily_queue([o.id for o in selected])

    logger.info(f"Daily queue generated: {len(selected)} of {len(eligible)} eligible order(s)")
    return {
        "success": True,
        "count": len(selected),
        "order_ids": [o.id for o in selected],
    }


@router.delete("")
async def clear_daily_queue(storage: Storage):
    cleared = storage.clear_daily_queue()
    logger.info(f"Daily queue cleared ({cleared} order(s))")
    return {"success": True, "cleared": cleared}
