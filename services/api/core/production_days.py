# services/api/core/production_days.py
from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from models import Order

_WEEKDAYS_PT = (
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo",
)


def _local(dt: datetime, tz: tzinfo) -> datetime:
    # stored timestamps are naive UTC
    return dt.replace(tzinfo=timezone.utc).astimezone(tz)


def production_day_key(order: Order, tz: tzinfo) -> Optional[str]:
    """YYYY-MM-DD of the local day the order was sent to production."""
    if order.sent_to_production_at is None:
        return None
    return _local(order.sent_to_production_at, tz).strftime("%Y-%m-%d")


def _art_group_key(order: Order) -> str:
    # billing counts one art per group, not per order
    return f"{order.customer_user}_group_{order.art_group_id}"


def production_day_buckets(orders: Iterable[Order], tz: tzinfo) -> List[Dict[str, object]]:
    """
    Days on which orders were sent to production, oldest first, with the
    number of distinct art groups sent that day.
    """
    days: Dict[str, Dict[str, object]] = {}
    for order in orders:
        key = production_day_key(order, tz)
        if key is None:
            continue
        bucket = days.setdefault(
            key,
            {"date": _local(order.sent_to_production_at, tz), "art_groups": set()},
        )
        bucket["art_groups"].add(_art_group_key(order))

    result = []
    for key in sorted(days):
        local_dt = days[key]["date"]
        result.append(
            {
                "key": key,
                "label": f"{local_dt.strftime('%d/%m/%Y')} ({_WEEKDAYS_PT[local_dt.weekday()]})",
                "count": len(days[key]["art_groups"]),
            }
        )
    return result


def filter_by_production_day(orders: Iterable[Order], day_key: str, tz: tzinfo) -> List[Order]:
    return [o for o in orders if production_day_key(o, tz) == day_key]


def local_today(tz: tzinfo) -> date:
    return datetime.now(tz).date()
