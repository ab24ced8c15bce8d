"""
Tests for grouping and priority ordering.

Run with: pytest tests/test_priority.py -v
"""
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import NOW, make_order
from core.painting import needs_painting
from core.priority import (
    compare_groups,
    group_for_priority,
    ordered_art_names,
    prioritized_groups,
    prioritized_orders,
    select_for_daily_queue,
    sort_groups,
)
from models import ArtStatus, shop_date


class TestEffectiveUrgency:
    """Urgency only counts once urgent_from_date has arrived."""

    def test_not_urgent(self):
        assert not make_order(is_urgent=False).is_effectively_urgent(NOW)

    def test_urgent_without_date(self):
        assert make_order(is_urgent=True).is_effectively_urgent(NOW)

    def test_urgent_from_today(self):
        order = make_order(is_urgent=True, urgent_from_date=NOW.date())
        assert order.is_effectively_urgent(NOW)

    def test_urgent_from_future_date(self):
        order = make_order(is_urgent=True, urgent_from_date=NOW.date() + timedelta(days=1))
        assert not order.is_effectively_urgent(NOW)

    def test_date_without_flag(self):
        order = make_order(is_urgent=False, urgent_from_date=date(2020, 1, 1))
        assert not order.is_effectively_urgent(NOW)

    def test_uses_shop_local_day(self):
        # 01:30 UTC on the 20th is still 22:30 on the 19th in Sao Paulo
        order = make_order(is_urgent=True, urgent_from_date=date(2026, 10, 20))
        assert not order.is_effectively_urgent(datetime(2026, 10, 20, 1, 30))
        assert order.is_effectively_urgent(datetime(2026, 10, 20, 3, 0))

    def test_explicit_timezone(self):
        order = make_order(is_urgent=True, urgent_from_date=date(2026, 10, 20))
        assert order.is_effectively_urgent(datetime(2026, 10, 20, 1, 30), ZoneInfo("UTC"))

    def test_shop_date(self):
        sp = ZoneInfo("America/Sao_Paulo")
        assert shop_date(datetime(2026, 10, 20, 2, 59), sp) == date(2026, 10, 19)
        assert shop_date(datetime(2026, 10, 20, 3, 0), sp) == date(2026, 10, 20)


class TestNeedsPainting:
    """Painting keyword detection."""

    def test_case_insensitive(self):
        assert needs_painting("DEGRADÊ X", "") == needs_painting("degradê x", "") is True

    def test_keywords(self):
        assert needs_painting("Copão 770ml Bicolor Rosa", "")
        assert needs_painting("Copos 500ml com Borda sortidas", "")
        assert needs_painting("copos degrade", "")

    def test_plain_cups(self):
        assert not needs_painting("Copos 500ml em preto", "")

    def test_falls_back_to_product_name(self):
        assert needs_painting(None, "Kit 50 Copos Degradê")
        assert not needs_painting(None, "Kit 50 Copos")


class TestGrouping:
    """Tests for group_for_priority."""

    def test_empty(self):
        assert group_for_priority([], NOW) == []

    def test_partition(self):
        orders = [
            make_order(customer_user="ana"),
            make_order(customer_user="ana", art_group_id=5),
            make_order(customer_user="ana"),
            make_order(customer_user="bia"),
        ]
        groups = group_for_priority(orders, NOW)

        assert sum(g.member_count for g in groups) == len(orders)
        seen = [o.id for g in groups for o in g.orders]
        assert sorted(seen) == sorted(o.id for o in orders)
        assert {g.key for g in groups} == {"ana_0", "ana_5", "bia_0"}

    def test_aggregates(self):
        early = NOW + timedelta(days=1)
        orders = [
            make_order(customer_user="ana", quantity=2, shipping_date=NOW + timedelta(days=4)),
            make_order(customer_user="ana", quantity=3, shipping_date=early, is_urgent=True),
        ]
        (group,) = group_for_priority(orders, NOW)

        assert group.total_items == 5
        assert group.earliest_shipping == early
        assert group.is_urgent
        assert group.customer_is_urgent

    def test_customer_aggregates_span_groups(self):
        orders = [
            make_order(customer_user="ana", art_group_id=0, shipping_date=NOW + timedelta(days=9)),
            make_order(customer_user="ana", art_group_id=2, shipping_date=NOW + timedelta(days=1), is_urgent=True),
        ]
        groups = {g.art_group_id: g for g in group_for_priority(orders, NOW)}

        assert not groups[0].is_urgent
        assert groups[0].customer_is_urgent
        assert groups[0].customer_earliest_shipping == NOW + timedelta(days=1)

    def test_display_name(self):
        groups = group_for_priority(
            [make_order(customer_user="ana", art_name="Festa da Ana"), make_order(customer_user="bia")],
            NOW,
        )
        names = {g.customer_user: g.display_name for g in groups}
        assert names == {"ana": "Festa da Ana", "bia": "@bia"}


class TestComparator:
    """Tests for the four-rule group ordering."""

    def test_customer_urgency_beats_earlier_date(self):
        in_3_days = NOW + timedelta(days=3)
        orders = [
            make_order(customer_user="carla", shipping_date=NOW + timedelta(days=1)),
            make_order(customer_user="ana", art_group_id=0, is_urgent=True, shipping_date=in_3_days),
            make_order(customer_user="ana", art_group_id=5, is_urgent=False, shipping_date=in_3_days),
        ]
        groups = prioritized_groups(orders, NOW)

        assert [g.key for g in groups] == ["ana_0", "ana_5", "carla_0"]

    def test_customer_earliest_shipping_keeps_groups_adjacent(self):
        orders = [
            make_order(customer_user="bia", shipping_date=NOW + timedelta(days=2)),
            make_order(customer_user="ana", art_group_id=1, shipping_date=NOW + timedelta(days=1)),
            make_order(customer_user="ana", art_group_id=2, shipping_date=NOW + timedelta(days=7)),
        ]
        groups = prioritized_groups(orders, NOW)

        assert [g.key for g in groups] == ["ana_1", "ana_2", "bia_0"]

    def test_group_urgency_inside_customer(self):
        orders = [
            make_order(customer_user="ana", art_group_id=1, shipping_date=NOW + timedelta(days=1)),
            make_order(customer_user="ana", art_group_id=2, shipping_date=NOW + timedelta(days=5), is_urgent=True),
        ]
        groups = prioritized_groups(orders, NOW)

        assert [g.key for g in groups] == ["ana_2", "ana_1"]

    def test_tie_is_zero_and_antisymmetric(self):
        same_day = NOW + timedelta(days=2)
        a, b = group_for_priority(
            [make_order(customer_user="ana", shipping_date=same_day), make_order(customer_user="bia", shipping_date=same_day)],
            NOW,
        )
        assert compare_groups(a, b) == 0
        assert compare_groups(b, a) == 0

    def test_sort_is_idempotent(self):
        orders = [
            make_order(customer_user=c, shipping_date=NOW + timedelta(days=d), is_urgent=u)
            for c, d, u in [("ana", 5, False), ("bia", 1, False), ("caio", 9, True), ("duda", 3, False)]
        ]
        once = sort_groups(group_for_priority(orders, NOW))
        twice = sort_groups(once)
        assert [g.key for g in once] == [g.key for g in twice]
        assert [g.customer_user for g in once] == ["caio", "bia", "duda", "ana"]


class TestPrioritizedOrders:
    """Flattening and daily queue selection."""

    def test_urgent_members_first_inside_group(self):
        plain = make_order(customer_user="ana", shipping_date=NOW + timedelta(days=1))
        urgent = make_order(customer_user="ana", shipping_date=NOW + timedelta(days=6), is_urgent=True)

        assert [o.id for o in prioritized_orders([plain, urgent], NOW)] == [urgent.id, plain.id]

    def test_daily_queue_urgent_first(self):
        urgent_late = make_order(customer_user="ana", is_urgent=True, shipping_date=NOW + timedelta(days=10))
        plain_soon = make_order(customer_user="bia", shipping_date=NOW + timedelta(days=1))

        selected = select_for_daily_queue([plain_soon, urgent_late], 2, NOW)

        assert [o.id for o in selected] == [urgent_late.id, plain_soon.id]

    def test_daily_queue_skips_shipped_and_respects_count(self):
        shipped = make_order(customer_user="ana", art_status=ArtStatus.SHIPPED, shipping_date=NOW)
        a = make_order(customer_user="bia", shipping_date=NOW + timedelta(days=1))
        b = make_order(customer_user="caio", shipping_date=NOW + timedelta(days=2))

        selected = select_for_daily_queue([shipped, a, b], 1, NOW)

        assert [o.id for o in selected] == [a.id]

    def test_daily_queue_zero_count(self):
        assert select_for_daily_queue([make_order()], 0, NOW) == []

    def test_ordered_art_names_distinct(self):
        orders = [
            make_order(customer_user="bia", art_name="Bia 15 anos", shipping_date=NOW + timedelta(days=2)),
            make_order(customer_user="ana", art_name="Festa da Ana", shipping_date=NOW + timedelta(days=1)),
            make_order(customer_user="ana", art_name="festa da ana", shipping_date=NOW + timedelta(days=1)),
            make_order(customer_user="caio", art_name=None),
        ]
        assert ordered_art_names(orders, NOW) == ["Festa da Ana", "Bia 15 anos"]
