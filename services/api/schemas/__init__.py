"""
Pydantic schemas for API request validation.
"""
from .order import BatchStatusUpdate, DailyQueueGenerate, OrderIdsBody, OrderUpdate
from .whatsapp import SendDailyQueueBody, SendOrdersBody, SendTextBody

__all__ = [
    "BatchStatusUpdate",
    "DailyQueueGenerate",
    "OrderIdsBody",
    "OrderUpdate",
    "SendDailyQueueBody",
    "SendOrdersBody",
    "SendTextBody",
]
