# services/api/models/group.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.painting import needs_painting
from .order import Order


def group_key(customer_user: str, art_group_id: Optional[int]) -> str:
  return f"{customer_user}_{art_group_id or 0}"


@dataclass
class OrderGroup:
  """
  Derived unit of printing / notification: the orders of one customer that
  share one art group. Recomputed from the order list on every read.
  """

  customer_user: str
  customer_name: str
  art_group_id: int
  orders: List[Order] = field(default_factory=list)

  total_items: int = 0
  earliest_shipping: Optional[datetime] = None
  is_urgent: bool = False
  display_name: str = ""

  # Aggregates over every group of the same customer
  customer_is_urgent: bool = False
  customer_earliest_shipping: Optional[datetime] = None

  @property
  def key(self) -> str:
    return group_key(self.customer_user, self.art_group_id)

  @property
  def member_count(self) -> int:
    return len(self.orders)

  @property
  def needs_painting(self) -> bool:
    return any(needs_painting(o.real_description, o.product_name) for o in self.orders)

  @property
  def art_png_url(self) -> Optional[str]:
    """Raster of the first member that has one (members share the artwork)."""
    return next((o.art_png_url for o in self.orders if o.art_png_url), None)

  # ------------ API layer ------------

  def to_api(self) -> Dict[str, Any]:
    return {
      "key": self.key,
      "customer_user": self.customer_user,
      "customer_name": self.customer_name,
      "art_group_id": self.art_group_id,
      "display_name": self.display_name,
      "total_items": self.total_items,
      "member_count": self.member_count,
      "earliest_shipping": self.earliest_shipping.isoformat() if self.earliest_shipping else None,
      "is_urgent": self.is_urgent,
      "customer_is_urgent": self.customer_is_urgent,
      "needs_painting": self.needs_painting,
      "orders": [o.to_api() for o in self.orders],
    }
