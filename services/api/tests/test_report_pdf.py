"""
Tests for the production order notes PDF.

Run with: pytest tests/test_report_pdf.py -v
"""
from datetime import date

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import make_order
from core.report_pdf import generate_orders_pdf, note_description


class TestNoteDescription:

    def test_internal_note_wins(self):
        order = make_order(internal_note="100 rosa\n100 azul", product_name="Kit", variation="Rosa")
        assert note_description(order) == ["100 rosa", "100 azul"]

    def test_product_and_variation(self):
        order = make_order(product_name="Kit 100 Copos", variation="Azul")
        assert note_description(order) == ["Kit 100 Copos - Azul"]

    def test_product_without_variation(self):
        assert note_description(make_order(product_name="Kit 100 Copos", variation=None)) == ["Kit 100 Copos"]

    def test_capped_at_twelve_lines(self):
        order = make_order(internal_note="\n".join(str(i) for i in range(20)))
        assert len(note_description(order)) == 12


class TestGenerateOrdersPdf:

    def test_returns_pdf_bytes(self):
        orders = [
            make_order(art_name="Festa da Ana", customer_user="ana"),
            make_order(art_name="Casamento Júlia & João", customer_user="julia", internal_note="Obs 🎉"),
            make_order(art_name=None),
        ]
        data = generate_orders_pdf(orders, title="COPOS PERSONALIZADOS", email="loja@example.com", today=date(2026, 10, 19))

        assert isinstance(data, bytes)
        assert data.startswith(b"%PDF")
        # three notes -> two pages
        assert b"/Count 2" in data

    def test_empty_selection_still_valid(self):
        assert generate_orders_pdf([]).startswith(b"%PDF")
