"""
Tests for chat message formatting.

Run with: pytest tests/test_messages.py -v
"""
from datetime import date, timedelta

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import NOW, make_order
from core.messages import (
    build_painting_notifications,
    format_daily_queue_summary,
    format_painting_message,
)
from core.priority import prioritized_groups


class TestPaintingMessage:
    """Tests for format_painting_message."""

    def test_single_order(self):
        order = make_order(
            marketplace_order_id="251019ABCD1234",
            cup_quantity=1000,
            real_description="Copos 500ml Degradê sortidos em preto",
        )
        assert format_painting_message([order], NOW) == (
            "Pintar 1000 Copos 500ml Degradê sortidos - shopee 1234"
        )

    def test_urgent_suffix(self):
        order = make_order(
            marketplace_order_id="X9999",
            cup_quantity=50,
            real_description="Copos 300ml Degradê sortidos em preto",
            is_urgent=True,
        )
        assert format_painting_message([order], NOW).endswith("shopee 9999 *URGENTE*")

    def test_future_urgency_not_flagged(self):
        order = make_order(
            cup_quantity=50,
            real_description="Copos 300ml Degradê",
            is_urgent=True,
            urgent_from_date=NOW.date() + timedelta(days=2),
        )
        assert "*URGENTE*" not in format_painting_message([order], NOW)

    def test_items_joined_and_ids_unique(self):
        a = make_order(marketplace_order_id="AAA1111", cup_quantity=100, real_description="Copão 770ml Bicolor em preto")
        b = make_order(marketplace_order_id="AAA1111", cup_quantity=200, real_description="Copos 500ml com Borda em preto")
        c = make_order(marketplace_order_id="BBB2222", cup_quantity=None, quantity=3, real_description="Copos 1L Degradê")

        text = format_painting_message([a, b, c], NOW)

        assert text == (
            "Pintar 100 Copão 770ml Bicolor e 200 Copos 500ml com Borda e 3 Copos 1L Degradê"
            " - shopee 1111 / 2222"
        )

    def test_orders_without_painting_skipped(self):
        paint = make_order(marketplace_order_id="P0001", cup_quantity=10, real_description="Copos Degradê")
        plain = make_order(marketplace_order_id="Q0002", cup_quantity=10, real_description="Copos 500ml em preto")

        text = format_painting_message([paint, plain], NOW)

        assert "0002" not in text
        assert "0001" in text

    def test_nothing_to_paint(self):
        plain = make_order(real_description="Copos 500ml em preto")
        assert format_painting_message([plain], NOW) == ""

    def test_list_description_puts_marketplace_on_new_line(self):
        order = make_order(
            marketplace_order_id="L5555",
            cup_quantity=100,
            real_description="Copos Degradê:\n- 50 rosa\n- 50 azul",
        )
        text = format_painting_message([order], NOW)
        assert text.endswith("\nshopee 5555")
        assert " - shopee" not in text


class TestPaintingNotifications:
    """One message per art group, in priority order."""

    def test_one_message_per_group_with_image(self):
        ana = make_order(
            customer_user="ana",
            cup_quantity=100,
            real_description="Copos Degradê",
            art_png_url="https://images.example.com/ana.png",
            shipping_date=NOW + timedelta(days=1),
        )
        bia = make_order(
            customer_user="bia",
            cup_quantity=50,
            real_description="Copos Bicolor",
            shipping_date=NOW + timedelta(days=5),
        )
        plain = make_order(customer_user="caio", real_description="Copos 500ml")

        messages = build_painting_notifications([bia, plain, ana], NOW)

        assert len(messages) == 2
        assert messages[0].image_url == "https://images.example.com/ana.png"
        assert messages[0].text.startswith("Pintar 100 Copos Degradê")
        assert messages[1].image_url is None


class TestDailyQueueSummary:
    """Tests for format_daily_queue_summary."""

    def test_summary(self):
        orders = [
            make_order(customer_user="ana", art_name="Festa da Ana", cup_quantity=1000, is_urgent=True),
            make_order(customer_user="joao", cup_quantity=None, quantity=100, shipping_date=NOW + timedelta(days=1)),
        ]
        text = format_daily_queue_summary(prioritized_groups(orders, NOW), date(2026, 10, 19))

        assert text.splitlines() == [
            "Fila do dia 19/10/2026 - 2 artes",
            "1. Festa da Ana - 1000 copos *URGENTE*",
            "2. @joao - 100 copos",
        ]

    def test_single_art_is_singular(self):
        text = format_daily_queue_summary(prioritized_groups([make_order(cup_quantity=10)], NOW), date(2026, 1, 2))
        assert text.splitlines()[0] == "Fila do dia 02/01/2026 - 1 arte"
