"""
Pydantic schemas for the WhatsApp endpoints.
"""
from typing import List

from pydantic import BaseModel, Field


class SendTextBody(BaseModel):
    group_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class SendOrdersBody(BaseModel):
    """Painting request(s) for the given orders."""
    order_ids: List[str] = Field(..., min_length=1)
    group_id: str = Field(..., min_length=1)


class SendDailyQueueBody(BaseModel):
    group_id: str = Field(..., min_length=1)
