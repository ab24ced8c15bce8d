# services/api/core/xlsx_parser.py
from __future__ import annotations

import io
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook

logger = logging.getLogger(__name__)

# Marketplace export header -> our field name
COLUMN_MAP = {
    "ID do pedido": "marketplace_order_id",
    "Nome de usuário (comprador)": "customer_user",
    "Nome do destinatário": "customer_name",
    "Nome do Produto": "product_name",
    "Nome da variação": "variation",
    "Quantidade": "quantity",
    "Preço total do produto": "total_value",
    "Observação do comprador": "customer_note",
    "Data prevista de envio": "shipping_date",
    "Data de criação do pedido": "order_date",
}

_DMY_RE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?\s*$")


def parse_date(value: Any) -> datetime:
    """
    Accepts datetime/date cells, "DD/MM/YYYY[ HH:MM[:SS]]" or ISO strings.
    Missing or unreadable values fall back to now (same as the export tool did).
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value is None or not str(value).strip():
        return datetime.now()

    text = str(value).strip()
    m = _DMY_RE.match(text)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        hour = int(m.group(4) or 0)
        minute = int(m.group(5) or 0)
        second = int(m.group(6) or 0)
        return datetime(year, month, day, hour, minute, second)

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Unreadable date {text!r}, using now")
        return datetime.now()


def parse_value(value: Any) -> Decimal:
    """Money cell: number or "R$ 1.234,56" style string. Bad input -> 0."""
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))

    cleaned = re.sub(r"[R$\s]", "", str(value))
    if "," in cleaned:
        # Brazilian format: dot thousands, comma decimals
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def _parse_quantity(value: Any) -> int:
    try:
        qty = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return 1
    return qty if qty > 0 else 1


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # long numeric ids read back as floats
        return str(int(value))
    return str(value).strip()


def parse_marketplace_xlsx(data: bytes) -> List[Dict[str, Any]]:
    """
    Parse the first sheet of a marketplace order export into plain dicts
    ready for `StorageAdapter.upsert_orders`. Rows without an order id are
    skipped.
    """
    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)

        header = next(rows, None)
        if not header:
            return []
        index: Dict[str, int] = {}
        for i, name in enumerate(header):
            field = COLUMN_MAP.get(_text(name))
            if field:
                index[field] = i

        def cell(row, field: str) -> Optional[Any]:
            i = index.get(field)
            if i is None or i >= len(row):
                return None
            return row[i]

        orders: List[Dict[str, Any]] = []
        for row in rows:
            order_id = _text(cell(row, "marketplace_order_id"))
            if not order_id:
                continue

            orders.append(
                {
                    "marketplace_order_id": order_id,
                    "customer_user": _text(cell(row, "customer_user")),
                    "customer_name": _text(cell(row, "customer_name")),
                    "product_name": _text(cell(row, "product_name")),
                    "variation": _text(cell(row, "variation")) or None,
                    "quantity": _parse_quantity(cell(row, "quantity")),
                    "total_value": parse_value(cell(row, "total_value")),
                    "customer_note": _text(cell(row, "customer_note")) or None,
                    "shipping_date": parse_date(cell(row, "shipping_date")),
                    "order_date": parse_date(cell(row, "order_date")),
                }
            )
        return orders
    finally:
        wb.close()
