# services/api/core/report_pdf.py

from __future__ import annotations
from datetime import date
from typing import List, Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from models import Order


# ---------- Public API -------------------------------------------------------

def generate_orders_pdf(
    orders: Sequence[Order],
    *,
    title: str = "COPOS PERSONALIZADOS",
    email: str = "",
    seller_name: str = "Vendedor",
    today: Optional[date] = None,
) -> bytes:
    """
    Printable order notes for the production floor: A4 landscape, two notes
    side by side per page, in the order given (callers pass priority order).

    Each note carries the art name, the marketplace id, a QUANT./DESCRIÇÃO
    table (internal note, else "product - variation", at most 12 lines),
    the print date, the internal note as Obs. and two signature slots.

    Returns:
        PDF bytes (ready to stream / download).
    """
    report = _NotesBuilder(title=title, email=email, seller_name=seller_name, today=today or date.today())
    for i in range(0, len(orders), 2):
        report.add_page(list(orders[i:i + 2]))
    return report.build()


def note_description(order: Order) -> List[str]:
    """Lines printed in the DESCRIÇÃO column."""
    if order.internal_note:
        text = order.internal_note
    else:
        text = order.product_name + (f" - {order.variation}" if order.variation else "")
    return text.split("\n")[:MAX_DESCRIPTION_LINES]


# ---------- Internals --------------------------------------------------------

MAX_DESCRIPTION_LINES = 12

# mm
NOTE_W = 140.0
NOTE_H = 196.0
NOTE_GAP = 6.0
PAD = 3.0
HEADER_H = 20.0
QUANT_W = 18.0
TABLE_ROW_H = 7.0
TABLE_ROWS = 14


def _latin1(text: str) -> str:
    # core fonts only cover latin-1; anything else prints as "?"
    return (text or "").encode("latin-1", "replace").decode("latin-1")


class _NotesBuilder:
    """
    Fixed layout, one note per half page:
      - header: business title + e-mail on the left, "PEDIDO" on the right
      - Cliente / comprador rows
      - ruled QUANT./DESCRIÇÃO table
      - Data, Obs. and the signature lines
    """

    def __init__(self, *, title: str, email: str, seller_name: str, today: date):
        self._pdf = FPDF(orientation="L", unit="mm", format="A4")
        self._pdf.set_auto_page_break(auto=False)
        self._pdf.set_title("Notas de Pedido")
        self._pdf.set_author(_latin1(seller_name))

        self.title = _latin1(title)
        self.email = _latin1(email)
        self.seller_name = _latin1(seller_name)
        self.today = today

        self.page_w = self._pdf.w
        self.page_h = self._pdf.h
        self.left = (self.page_w - (2 * NOTE_W + NOTE_GAP)) / 2
        self.top = (self.page_h - NOTE_H) / 2

    def add_page(self, orders: List[Order]):
        self._pdf.add_page()
        for idx, order in enumerate(orders):
            x = self.left + idx * (NOTE_W + NOTE_GAP)
            self._draw_note(order, x, self.top)

    # --- drawing helpers ---

    def _fit(self, text: str, width: float) -> str:
        """Cut `text` until it fits `width` at the current font."""
        text = _latin1(text)
        while text and self._pdf.get_string_width(text) > width:
            text = text[:-1]
        return text

    def _text(self, x: float, y: float, w: float, h: float, text: str, align: str = "L"):
        self._pdf.set_xy(x, y)
        self._pdf.cell(w, h, text=self._fit(text, w), align=align, new_x=XPos.RIGHT, new_y=YPos.TOP)

    def _labelled_row(self, x: float, y: float, label: str, value: str) -> float:
        pdf = self._pdf
        pdf.set_font("Helvetica", "", 11)
        label_w = pdf.get_string_width(label) + 2
        self._text(x, y, label_w, 8, label)

        pdf.set_font("Helvetica", "B", 16)
        value_x = x + label_w
        value_w = NOTE_W - 2 * PAD - label_w
        self._text(value_x, y, value_w, 8, value)
        pdf.line(value_x, y + 8, value_x + value_w, y + 8)
        return y + 9

    def _draw_note(self, order: Order, x0: float, y0: float):
        pdf = self._pdf
        pdf.set_draw_color(0, 0, 0)
        pdf.set_text_color(0, 0, 0)
        pdf.set_line_width(0.5)
        pdf.rect(x0, y0, NOTE_W, NOTE_H)

        # Header
        pdf.set_font("Helvetica", "B", 12)
        self._text(x0 + PAD, y0 + 4, 90, 6, self.title)
        pdf.set_font("Helvetica", "", 9)
        self._text(x0 + PAD, y0 + 11, 90, 5, self.email)
        pdf.set_font("Helvetica", "B", 22)
        self._text(x0 + NOTE_W - 50, y0 + 5, 50 - PAD - 2, 10, "PEDIDO", align="R")
        pdf.line(x0, y0 + HEADER_H, x0 + NOTE_W, y0 + HEADER_H)

        pdf.set_line_width(0.2)
        inner_x = x0 + PAD
        inner_w = NOTE_W - 2 * PAD
        y = y0 + HEADER_H + PAD

        # Cliente / comprador
        y = self._labelled_row(inner_x, y, "Cliente", order.art_name or "")
        y = self._labelled_row(inner_x, y, "comprador", order.marketplace_order_id)
        y += 1

        # Table header
        pdf.set_fill_color(0, 0, 0)
        pdf.rect(inner_x, y, inner_w, 8, style="F")
        pdf.set_text_color(255, 255, 255)
        pdf.set_font("Helvetica", "B", 10)
        self._text(inner_x, y + 1, QUANT_W, 6, "QUANT.", align="C")
        self._text(inner_x + QUANT_W, y + 1, inner_w - QUANT_W, 6, _latin1("DESCRIÇÃO"), align="C")
        pdf.set_text_color(0, 0, 0)
        y += 8

        # Ruled body
        body_h = TABLE_ROW_H * TABLE_ROWS
        pdf.rect(inner_x, y, inner_w, body_h)
        for i in range(1, TABLE_ROWS):
            pdf.line(inner_x, y + i * TABLE_ROW_H, inner_x + inner_w, y + i * TABLE_ROW_H)
        pdf.line(inner_x + QUANT_W, y, inner_x + QUANT_W, y + body_h)

        pdf.set_font("Helvetica", "B", 18)
        self._text(inner_x, y, QUANT_W, TABLE_ROW_H, str(order.quantity), align="C")
        pdf.set_font("Helvetica", "B", 14)
        for i, line in enumerate(note_description(order)):
            self._text(inner_x + QUANT_W + 2, y + i * TABLE_ROW_H, inner_w - QUANT_W - 4, TABLE_ROW_H, line)
        y += body_h + 3

        # Data
        pdf.set_font("Helvetica", "", 11)
        self._text(inner_x, y, 12, 7, "Data")
        pdf.set_font("Helvetica", "BU", 14)
        self._text(inner_x + 12, y, 40, 7, self.today.strftime("%d / %m / %y"))
        y += 9

        # Obs.
        pdf.set_font("Helvetica", "", 11)
        self._text(inner_x, y, 12, 7, "Obs.:")
        pdf.set_font("Helvetica", "B", 11)
        self._text(inner_x + 12, y, inner_w - 12, 7, (order.internal_note or "").replace("\n", " "))
        pdf.line(inner_x, y + 12, inner_x + inner_w, y + 12)

        # Signatures
        sig_w = 45.0
        sig_y = y0 + NOTE_H - 12
        left_x = inner_x + 5
        right_x = inner_x + inner_w - 5 - sig_w
        pdf.set_font("Times", "B", 15)
        self._text(left_x, sig_y - 8, sig_w, 7, f"@{order.customer_user}", align="C")
        self._text(right_x, sig_y - 8, sig_w, 7, self.seller_name, align="C")
        pdf.line(left_x, sig_y, left_x + sig_w, sig_y)
        pdf.line(right_x, sig_y, right_x + sig_w, sig_y)
        pdf.set_font("Helvetica", "", 10)
        self._text(left_x, sig_y + 1, sig_w, 5, "Cliente", align="C")
        self._text(right_x, sig_y + 1, sig_w, 5, "Vendedor", align="C")

    def build(self) -> bytes:
        if self._pdf.page == 0:
            # keep the file valid even with nothing to print
            self._pdf.add_page()
        return bytes(self._pdf.output())
