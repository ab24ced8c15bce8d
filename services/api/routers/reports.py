# services/api/routers/reports.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from adapters.base import StorageAdapter
from core.priority import prioritized_orders
from core.production_days import local_today
from core.report_pdf import generate_orders_pdf
from core.validation import validate_id_list
from deps import get_storage_adapter
from models import utcnow
from schemas import OrderIdsBody
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]


@router.post("/production-pdf")
async def production_pdf(body: OrderIdsBody, storage: Storage):
    """
    Printable order notes (two per A4 landscape page) for the selected
    orders, in production priority order.
    """
    ids = validate_id_list(body.order_ids)
    orders = storage.get_orders(ids)
    if not orders:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No orders found")

    settings = get_settings()
    now = utcnow()
    try:
        pdf_bytes = generate_orders_pdf(
            prioritized_orders(orders, now),
            title=settings.business_title,
            email=settings.business_email,
            seller_name=settings.seller_name,
            today=local_today(settings.tzinfo()),
        )
    except Exception as e:
        logger.exception("Failed to build production PDF")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to generate PDF", "details": str(e)},
        )

    logger.info(f"Production PDF: {len(orders)} order note(s), {len(pdf_bytes)} bytes")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="pedidos.pdf"'},
    )
