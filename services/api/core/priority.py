# services/api/core/priority.py
"""
Grouping and priority ordering of orders.

One ordering is shared by the production PDF, the painting notifications,
the daily queue (selection and message), the copy-arts action and the
grouped order listing, so all of them show customers in the same sequence.
"""
from __future__ import annotations

from datetime import datetime
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from models import ArtStatus, Order, OrderGroup, group_key, utcnow

# Statuses that can still be picked for the daily queue
DAILY_QUEUE_ELIGIBLE = (ArtStatus.PENDING, ArtStatus.APPROVED, ArtStatus.PRODUCTION)


def group_for_priority(orders: Iterable[Order], now: Optional[datetime] = None) -> List[OrderGroup]:
    """
    Partition orders by (customer_user, art_group_id) and compute the group
    and customer aggregates the comparator needs.

    Groups come back in first-seen order; use `sort_groups` to prioritize.
    """
    now = now or utcnow()
    groups: Dict[str, OrderGroup] = {}

    for order in orders:
        art_group_id = order.art_group_id or 0
        key = group_key(order.customer_user, art_group_id)
        group = groups.get(key)
        if group is None:
            group = OrderGroup(
                customer_user=order.customer_user,
                customer_name=order.customer_name,
                art_group_id=art_group_id,
                earliest_shipping=order.shipping_date,
            )
            groups[key] = group

        group.orders.append(order)
        group.total_items += order.quantity
        if order.shipping_date < group.earliest_shipping:
            group.earliest_shipping = order.shipping_date
        if order.is_effectively_urgent(now):
            group.is_urgent = True

    # Customer-wide aggregates across all of a customer's groups
    customer_urgent: Dict[str, bool] = {}
    customer_earliest: Dict[str, datetime] = {}
    for group in groups.values():
        cu = group.customer_user
        customer_urgent[cu] = customer_urgent.get(cu, False) or group.is_urgent
        if cu not in customer_earliest or group.earliest_shipping < customer_earliest[cu]:
            customer_earliest[cu] = group.earliest_shipping

    for group in groups.values():
        first_art_name = group.orders[0].art_name
        group.display_name = first_art_name or f"@{group.customer_user}"
        group.customer_is_urgent = customer_urgent[group.customer_user]
        group.customer_earliest_shipping = customer_earliest[group.customer_user]

    return list(groups.values())


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def compare_groups(a: OrderGroup, b: OrderGroup) -> int:
    """
    Total order over groups, first non-zero rule wins:

    1. customer has any effectively urgent order (urgent first)
    2. customer's earliest shipping date across all their groups (earlier first)
    3. the group itself is urgent (urgent first)
    4. the group's own earliest shipping date (earlier first)

    Rules 1-2 keep a customer's groups adjacent; 3-4 order them inside the block.
    """
    if a.customer_is_urgent != b.customer_is_urgent:
        return -1 if a.customer_is_urgent else 1

    result = _cmp(a.customer_earliest_shipping, b.customer_earliest_shipping)
    if result:
        return result

    if a.is_urgent != b.is_urgent:
        return -1 if a.is_urgent else 1

    return _cmp(a.earliest_shipping, b.earliest_shipping)


def sort_groups(groups: Iterable[OrderGroup]) -> List[OrderGroup]:
    return sorted(groups, key=cmp_to_key(compare_groups))


def prioritized_groups(orders: Iterable[Order], now: Optional[datetime] = None) -> List[OrderGroup]:
    return sort_groups(group_for_priority(orders, now))


def prioritized_orders(orders: Iterable[Order], now: Optional[datetime] = None) -> List[Order]:
    """
    Flatten the prioritized groups. Inside a group, effectively urgent
    orders come first, then by shipping date.
    """
    now = now or utcnow()
    result: List[Order] = []
    for group in prioritized_groups(orders, now):
        result.extend(
            sorted(
                group.orders,
                key=lambda o: (not o.is_effectively_urgent(now), o.shipping_date),
            )
        )
    return result


def select_for_daily_queue(
    orders: Iterable[Order],
    count: int,
    now: Optional[datetime] = None,
) -> List[Order]:
    """Pick the first `count` eligible (not shipped) orders by priority."""
    if count < 1:
        return []
    eligible = [o for o in orders if o.art_status in DAILY_QUEUE_ELIGIBLE]
    return prioritized_orders(eligible, now)[:count]


def ordered_art_names(orders: Iterable[Order], now: Optional[datetime] = None) -> List[str]:
    """Distinct art names in priority order (orders without one are skipped)."""
    seen = set()
    names: List[str] = []
    for order in prioritized_orders(orders, now):
        name = (order.art_name or "").strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names
