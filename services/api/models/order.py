# services/api/models/order.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from settings import get_settings


class ArtStatus(str, Enum):
  PENDING = "PENDING"
  APPROVED = "APPROVED"
  PRODUCTION = "PRODUCTION"
  SHIPPED = "SHIPPED"


# Forward path plus the manual corrections (PRODUCTION -> APPROVED -> PENDING).
# SHIPPED is only reached by the import's shipped detection.
ALLOWED_TRANSITIONS: Dict[ArtStatus, frozenset] = {
  ArtStatus.PENDING: frozenset({ArtStatus.APPROVED}),
  ArtStatus.APPROVED: frozenset({ArtStatus.PRODUCTION, ArtStatus.PENDING}),
  ArtStatus.PRODUCTION: frozenset({ArtStatus.APPROVED, ArtStatus.SHIPPED}),
  ArtStatus.SHIPPED: frozenset(),
}


@dataclass(frozen=True)
class TransitionRejected:
  current: ArtStatus
  target: ArtStatus
  reason: str

  def to_api(self) -> Dict[str, Any]:
    return {
      "current": self.current.value,
      "target": self.target.value,
      "reason": self.reason,
    }


def check_transition(current: ArtStatus, target: ArtStatus) -> Optional[TransitionRejected]:
  """
  Return None when `current -> target` is in ALLOWED_TRANSITIONS
  (writing the same status again is always fine), else the rejection.
  """
  if current == target:
    return None
  if target in ALLOWED_TRANSITIONS.get(current, frozenset()):
    return None
  if target == ArtStatus.SHIPPED:
    reason = "SHIPPED is set automatically when an order leaves the marketplace export"
  else:
    reason = f"{current.value} cannot move to {target.value}"
  return TransitionRejected(current=current, target=target, reason=reason)


def utcnow() -> datetime:
  """Naive UTC timestamp, the convention used for every stored datetime."""
  return datetime.now(timezone.utc).replace(tzinfo=None)


def shop_date(now: datetime, tz: Optional[tzinfo] = None) -> date:
  """Calendar day of a naive-UTC timestamp in the shop timezone (TIMEZONE)."""
  if tz is None:
    tz = get_settings().tzinfo()
  return now.replace(tzinfo=timezone.utc).astimezone(tz).date()


# ---------- coercion helpers (storage rows may come back as strings) ----------

def _to_datetime(val: Any) -> Optional[datetime]:
  if val is None or val == "":
    return None
  if isinstance(val, datetime):
    return val
  if isinstance(val, date):
    return datetime(val.year, val.month, val.day)
  return datetime.fromisoformat(str(val))


def _to_date(val: Any) -> Optional[date]:
  if val is None or val == "":
    return None
  if isinstance(val, datetime):
    return val.date()
  if isinstance(val, date):
    return val
  return date.fromisoformat(str(val)[:10])


def _to_decimal(val: Any) -> Decimal:
  try:
    return Decimal(str(val)) if val is not None else Decimal("0")
  except InvalidOperation:
    return Decimal("0")


def _iso(val: Optional[date]) -> Optional[str]:
  return val.isoformat() if val is not None else None


@dataclass
class Order:
  """
  Domain model for one marketplace purchase.

  `art_group_id == 0` is the customer's default art group; a positive value
  means the order was split out into its own group for that customer.
  """

  id: str
  marketplace_order_id: str
  customer_user: str
  customer_name: str = ""

  product_name: str = ""
  variation: Optional[str] = None
  quantity: int = 1
  total_value: Decimal = field(default_factory=lambda: Decimal("0"))
  customer_note: Optional[str] = None

  shipping_date: datetime = field(default_factory=utcnow)
  order_date: datetime = field(default_factory=utcnow)

  art_status: ArtStatus = ArtStatus.PENDING
  art_name: Optional[str] = None
  art_group_id: int = 0

  cup_quantity: Optional[int] = None
  real_description: Optional[str] = None
  internal_note: Optional[str] = None

  is_urgent: bool = False
  urgent_from_date: Optional[date] = None
  in_daily_queue: bool = False

  art_png_url: Optional[str] = None
  art_cdr_url: Optional[str] = None

  created_at: datetime = field(default_factory=utcnow)
  updated_at: datetime = field(default_factory=utcnow)
  sent_to_production_at: Optional[datetime] = None
  shipped_at: Optional[datetime] = None

  # --------------------
  # Rules
  # --------------------
  def is_effectively_urgent(self, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> bool:
    """
    Urgency only counts once `urgent_from_date` (if any) has arrived, on the
    shop's local calendar. `now` is naive UTC.
    """
    if not self.is_urgent:
      return False
    if self.urgent_from_date is None:
      return True
    return self.urgent_from_date <= shop_date(now or utcnow(), tz)

  @property
  def description(self) -> str:
    """Human description used for painting detection and chat messages."""
    return self.real_description or self.product_name

  # ------------ storage layer ------------

  @classmethod
  def from_storage(cls, row: Mapping[str, Any]) -> "Order":
    return cls(
      id=str(row["id"]),
      marketplace_order_id=str(row["marketplace_order_id"]),
      customer_user=row.get("customer_user") or "",
      customer_name=row.get("customer_name") or "",
      product_name=row.get("product_name") or "",
      variation=row.get("variation") or None,
      quantity=int(row.get("quantity") or 1),
      total_value=_to_decimal(row.get("total_value")),
      customer_note=row.get("customer_note") or None,
      shipping_date=_to_datetime(row.get("shipping_date")) or utcnow(),
      order_date=_to_datetime(row.get("order_date")) or utcnow(),
      art_status=ArtStatus(row.get("art_status") or ArtStatus.PENDING.value),
      art_name=row.get("art_name") or None,
      art_group_id=int(row.get("art_group_id") or 0),
      cup_quantity=int(row["cup_quantity"]) if row.get("cup_quantity") is not None else None,
      real_description=row.get("real_description") or None,
      internal_note=row.get("internal_note") or None,
      is_urgent=bool(row.get("is_urgent")),
      urgent_from_date=_to_date(row.get("urgent_from_date")),
      in_daily_queue=bool(row.get("in_daily_queue")),
      art_png_url=row.get("art_png_url") or None,
      art_cdr_url=row.get("art_cdr_url") or None,
      created_at=_to_datetime(row.get("created_at")) or utcnow(),
      updated_at=_to_datetime(row.get("updated_at")) or utcnow(),
      sent_to_production_at=_to_datetime(row.get("sent_to_production_at")),
      shipped_at=_to_datetime(row.get("shipped_at")),
    )

  # ------------ API layer ------------

  def to_api(self) -> Dict[str, Any]:
    return {
      "id": self.id,
      "marketplace_order_id": self.marketplace_order_id,
      "customer_user": self.customer_user,
      "customer_name": self.customer_name,
      "product_name": self.product_name,
      "variation": self.variation,
      "quantity": self.quantity,
      "total_value": str(self.total_value),
      "customer_note": self.customer_note,
      "shipping_date": _iso(self.shipping_date),
      "order_date": _iso(self.order_date),
      "art_status": self.art_status.value,
      "art_name": self.art_name,
      "art_group_id": self.art_group_id,
      "cup_quantity": self.cup_quantity,
      "real_description": self.real_description,
      "internal_note": self.internal_note,
      "is_urgent": self.is_urgent,
      "urgent_from_date": _iso(self.urgent_from_date),
      "is_effectively_urgent": self.is_effectively_urgent(),
      "in_daily_queue": self.in_daily_queue,
      "art_png_url": self.art_png_url,
      "art_cdr_url": self.art_cdr_url,
      "created_at": _iso(self.created_at),
      "updated_at": _iso(self.updated_at),
      "sent_to_production_at": _iso(self.sent_to_production_at),
      "shipped_at": _iso(self.shipped_at),
    }
