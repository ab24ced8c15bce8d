# services/api/core/product_mapping.py
"""
Static reference table: marketplace product name -> cups per kit and the
"real" description the workshop uses.

Used to fill `cup_quantity` / `real_description` on imported orders that do
not have them yet (see `adapters.sqlite.SqliteAdapter.upsert_orders` and
`backfill_cup_info.py`).
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class ProductMapping(NamedTuple):
    cup_quantity: int
    real_description: str


PRODUCT_MAPPINGS = {
    "Kit 1000 Copos 500ml Personalizado Descartável com Borda Pintada": ProductMapping(1000, "Copos 500ml com Borda sortidas em preto"),
    "Kit 200 Copos 770ml Personalizado Descartável Bicolor para Festas Adegas Casamentos": ProductMapping(200, "Copão 770ml Bicolor Rosa e Laranja em preto"),
    "Kit 600 Copos 500ml Personalizado Descartável com Borda Pintada Compre 600 e Pague 500": ProductMapping(600, "Copos 500ml com Borda sortidas em preto"),
    "Kit 100 Baldão Personalizado Descartável com tampa  1.8L": ProductMapping(100, "Baldão 1.8L em preto"),
    "Kit 1000 Copos 500ml Personalizados Descartável Degradê Para Festas Adegas Casamentos": ProductMapping(1000, "Copos 500ml Degradê sortidos em preto"),
    "Kit 100 Copos 770ml Personalizado Neon Festas Adegas Casamentos": ProductMapping(100, "Copão 770ml Balada Neon em preto"),
    "Kit 1000 Copão 770ml Bicolor Para Festas Adegas Casamentos": ProductMapping(1000, "Copão 770ml Bicolor Rosa e Laranja em preto"),
    "kit 500 copão descartável de770 ml degrade com borda pintada personizado": ProductMapping(500, "Copão 770ml com Borda sortidas em preto"),
    "kit 1000 copão descartável 770 ml degrade com borda pintada personalizado": ProductMapping(1000, "Copão 770ml Degradê e Borda sortidas em preto"),
    "Kit 100 Copos 500ml Personalizados Descartável Para Festas Adegas Casamentos": ProductMapping(100, "Copos 500ml em preto"),
    "Kit 30 Copos 620ml Twister com Tampa e Canudo Cor Preta para Festas Adegas Casamentos": ProductMapping(30, "Copos Twister 620ml Preto com tampa preta em BRANCO"),
    "Kit 500 Copos 770ml Personalizado Balada Neon Para Festas Adegas Casamentos": ProductMapping(500, "Copão 770ml Balada Neon em preto"),
    "Kit 150 Copos 770ml Personalizado Descartável Bicolor para Festas Adegas Casamentos": ProductMapping(150, "Copão 770ml Bicolor Rosa e Laranja em preto"),
    "Kit 300 Copos 1L Personalizados Descartável Degradê Para Festas Adegas Casamentos": ProductMapping(300, "Copos 1L Degradê sortidos em preto"),
    "Kit 500 Copos 770ml Descartável Degradê para Festas Adegas Casamentos": ProductMapping(500, "Copão 770ml Degradê sortidos em preto"),
    "Kit 500 Copos 770ml Personalizado  Descartáveis Para Festas Adegas Casamentos": ProductMapping(500, "500 Copão 770ml em preto"),
    "Kit 100 Copos 770ml Personalizado Descartável Degradê": ProductMapping(100, "Copão 770ml Degradê sortidos em preto"),
    "Kit 300 Copos 1L Personalizados Descartável Bicolor Para Festas Adegas Casamentos": ProductMapping(300, "Copos 1L Bicolor Rosa e Laranja em preto"),
    "Kit 50 Copos 770ml Personalizado Descartável Degradê Para Festas Adegas Casamentos": ProductMapping(50, "Copão 770ml Degradê sortidos em preto"),
    "Kit 100 Copos 300ml Descartável Personalizado Degradê": ProductMapping(100, "Copos 300ml Degradê sortidos em preto"),
    "Kit 100 Copos 300ml Personalizado Degradê": ProductMapping(100, "Copos 300ml Degradê sortidos em preto"),
    "Kit 100 Copos 770ml  Personalizado Descartável Transparente Para Festas Adegas Casamentos": ProductMapping(100, "Copão 770ml em preto"),
    "Kit 1000 Copos 500ml Personalizado Descartável": ProductMapping(1000, "Copos 500ml em preto"),
    "Kit 30 Copos 620ml Personalizado Twister com Impressão Label 360° para Festas Adegas Casamentos": ProductMapping(30, "Copos Label com tampa Preta"),
    "Kit 300 Copos 500ml Personalizado Descartável Transparente": ProductMapping(300, "Copos 500ml em preto"),
    "Kit 500 Copos 500ml Personalizado Descartável Degradê Para Festas Adegas Casamentos": ProductMapping(500, "Copos 500ml Degradê sortidos em preto"),
    "Kit 150 Copos 500ml Personalizado Descartável Degradê Para Festas Adegas Casamentos": ProductMapping(150, "Copos 500ml Degradê sortidos em preto"),
    "kit 1000 copão descartável 770 ml degrade personalizado": ProductMapping(1000, "Copão 770ml Degradê sortidos em preto"),
    "Kit 1000 Copos 300ml Personalizado Descartável  Para Festas Adegas Casamentos": ProductMapping(1000, "Copos 300ml em preto"),
    "Kit 100 Copos 300ml Personalizado Descartável Para Festas Adegas Casamentos": ProductMapping(100, "Copos 300ml em preto"),
    "Kit 100 Copos 770ml Personalizados Descartável Bicolor Para Festas Baladas Adegas": ProductMapping(100, "Copão 770ml Bicolor Rosa e Laranja em preto"),
    "Kit 1000 Copos 770ml Personalizado Descartável para Festas Adegas Casamentos": ProductMapping(1000, "Copão 770ml em preto"),
    "Kit 100  Copos 300ml Bicolor Para Festas Adegas Casamentos": ProductMapping(100, "Copos 300ml Bicolor Rosa e Laranja em preto"),
    "Kit 100 Copos 770ml Personalizado Descartável Degradê para Festas Adegas Casamentos": ProductMapping(100, "Copão 770ml Degradê sortidos em preto"),
    "Kit 200 Copos 770ml Degradê Personalizados  Festas Casamentos Aniversários e Eventos": ProductMapping(200, "Copão 770ml Degradê sortidos em preto"),
    "Kit 200 Copos 770ml Descartável Degradê Personalizado Para Festas Adegas Casamentos": ProductMapping(200, "Copão 770ml Degradê sortidos em preto"),
    "Kit 1000 Copos 500ml Personalizados Descartáveis Para Festas Adegas Casamentos": ProductMapping(1000, "Copos 500ml em preto"),
    "Kit 500 Copos 500ml Personalizados Descartáveis Incolor Para Festas Adegas Casamentos": ProductMapping(500, "Copos 500ml em preto"),
    "Kit 50 Copos 300ml Personalizados Descartáveis Degradê Para Festas Adegas Casamentos": ProductMapping(50, "Copos 300ml Degradê sortidos em preto"),
    "Kit 50 Copos 500ml Personalizados Descartáveis Degradê Para Festas Adegas Casamentos": ProductMapping(50, "Copos 500ml Degradê sortidos em preto"),
    "Kit 100 Copos 500ml Personalizado Descartáveis Degradê Para Festas Adegas Casamentos": ProductMapping(100, "Copos 500ml Degradê sortidos em preto"),
    "Kit 500 Copos 300ml Descartáveis Para Festas Adegas Casamentos": ProductMapping(500, "Copos 300ml em preto"),
}

_LOWER_MAPPINGS = {name.lower(): mapping for name, mapping in PRODUCT_MAPPINGS.items()}


def get_product_mapping(product_name: str) -> Optional[ProductMapping]:
    """Exact match first, then case-insensitive."""
    if not product_name:
        return None
    mapping = PRODUCT_MAPPINGS.get(product_name)
    if mapping is not None:
        return mapping
    return _LOWER_MAPPINGS.get(product_name.lower())


def calculate_total_cups(product_name: str, kit_quantity: int) -> Optional[int]:
    """Cups per kit times the number of kits bought, or None if unmapped."""
    mapping = get_product_mapping(product_name)
    if mapping is None:
        return None
    return mapping.cup_quantity * kit_quantity


def get_real_description(product_name: str) -> Optional[str]:
    mapping = get_product_mapping(product_name)
    return mapping.real_description if mapping else None


def backfill_orders(storage) -> Tuple[int, int]:
    """
    Fill missing cup_quantity / real_description on stored orders.
    Values already present are never overwritten.

    Returns (updated, not_mapped).
    """
    updated = 0
    not_mapped = 0
    for order in storage.list_orders_missing_cup_info():
        cups = calculate_total_cups(order.product_name, order.quantity)
        desc = get_real_description(order.product_name)
        if cups is None and desc is None:
            not_mapped += 1
            logger.info(f"✗ {order.marketplace_order_id}: product not mapped - {order.product_name!r}")
            continue

        storage.update_order(
            order.id,
            {
                "cup_quantity": order.cup_quantity if order.cup_quantity is not None else cups,
                "real_description": order.real_description or desc,
            },
        )
        updated += 1
        logger.info(f"✓ {order.marketplace_order_id}: {cups} cups - {desc}")

    return updated, not_mapped
