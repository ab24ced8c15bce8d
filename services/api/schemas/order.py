"""
Pydantic schemas for order requests.
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderUpdate(BaseModel):
    """Partial update; only the keys sent are written."""
    art_status: Optional[str] = Field(None, description="PENDING, APPROVED, PRODUCTION or SHIPPED")
    art_name: Optional[str] = None
    art_group_id: Optional[int] = Field(None, ge=0, description="0 = customer's default group")
    cup_quantity: Optional[int] = Field(None, ge=0)
    real_description: Optional[str] = None
    internal_note: Optional[str] = None
    is_urgent: Optional[bool] = None
    urgent_from_date: Optional[date] = Field(
        None, description="Urgency only counts from this day on"
    )
    in_daily_queue: Optional[bool] = None


class BatchStatusUpdate(BaseModel):
    """Same status for many orders, all-or-nothing."""
    ids: List[str] = Field(..., description="Order IDs")
    art_status: str


class OrderIdsBody(BaseModel):
    order_ids: List[str] = Field(..., min_length=1)


class DailyQueueGenerate(BaseModel):
    count: int = Field(..., ge=1, description="How many orders go into today's queue")
