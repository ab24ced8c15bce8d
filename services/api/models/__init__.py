from __future__ import annotations

from .order import (
    ALLOWED_TRANSITIONS,
    ArtStatus,
    Order,
    TransitionRejected,
    check_transition,
    shop_date,
    utcnow,
)
from .group import OrderGroup, group_key

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ArtStatus",
    "Order",
    "OrderGroup",
    "TransitionRejected",
    "check_transition",
    "group_key",
    "shop_date",
    "utcnow",
]
