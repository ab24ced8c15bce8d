# services/api/core/messages.py
"""
Chat message formatting for the painting team and the daily batch.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from core.painting import needs_painting
from core.priority import prioritized_groups
from models import Order, OrderGroup, utcnow

# " em preto", "\nem branco": the print colour is not relevant to the painter
_COLOUR_SUFFIX_RE = re.compile(r"\sem\s")


@dataclass(frozen=True)
class OutgoingMessage:
    text: str
    image_url: Optional[str] = None


def _strip_colour(description: str) -> str:
    m = _COLOUR_SUFFIX_RE.search(description)
    if m and m.start() > 0:
        return description[: m.start()]
    return description


def format_painting_message(orders: Iterable[Order], now: Optional[datetime] = None) -> str:
    """
    Build the "Pintar ..." request for the orders that need painting.

    Example:
        "Pintar 1000 Copos 500ml Degradê sortidos - shopee 1234 *URGENTE*"

    Returns "" when none of the orders needs painting.
    """
    now = now or utcnow()
    painting_orders = [o for o in orders if needs_painting(o.real_description, o.product_name)]
    if not painting_orders:
        return ""

    items = []
    for order in painting_orders:
        qty = order.cup_quantity if order.cup_quantity is not None else order.quantity
        items.append(f"{qty} {_strip_colour(order.description)}")

    unique_ids = list(dict.fromkeys(o.marketplace_order_id for o in painting_orders))
    last_digits = " / ".join(i[-4:] for i in unique_ids)

    content = " e ".join(items)
    urgent_suffix = " *URGENTE*" if any(o.is_effectively_urgent(now) for o in painting_orders) else ""

    # Descriptions written as a "-" list get the marketplace line on its own
    if "\n-" in content:
        return f"Pintar {content}\nshopee {last_digits}{urgent_suffix}"
    return f"Pintar {content} - shopee {last_digits}{urgent_suffix}"


def build_painting_notifications(
    orders: Iterable[Order],
    now: Optional[datetime] = None,
) -> List[OutgoingMessage]:
    """One painting request per art group, in priority order, with the group's raster attached."""
    now = now or utcnow()
    messages: List[OutgoingMessage] = []
    for group in prioritized_groups(orders, now):
        text = format_painting_message(group.orders, now)
        if text:
            messages.append(OutgoingMessage(text=text, image_url=group.art_png_url))
    return messages


def format_daily_queue_summary(groups: Iterable[OrderGroup], day: Optional[date] = None) -> str:
    """
    Numbered overview of the daily queue, groups already prioritized.

    Example:
        Fila do dia 19/10/2026 - 2 artes
        1. Festa da Ana - 1000 copos *URGENTE*
        2. @joao - 100 copos
    """
    groups = list(groups)
    day = day or utcnow().date()
    lines = [f"Fila do dia {day.strftime('%d/%m/%Y')} - {len(groups)} arte{'s' if len(groups) != 1 else ''}"]
    for pos, group in enumerate(groups, start=1):
        cups = sum(o.cup_quantity if o.cup_quantity is not None else o.quantity for o in group.orders)
        line = f"{pos}. {group.display_name} - {cups} copos"
        if group.is_urgent:
            line += " *URGENTE*"
        lines.append(line)
    return "\n".join(lines)
