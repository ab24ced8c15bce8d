# services/api/routers/whatsapp.py
"""
WhatsApp endpoints. ChatNotConnectedError and ChatGatewayError raised by the
chat service are turned into 400 / 500 bodies by the handlers in main.py.
"""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from adapters.base import StorageAdapter
from core.chat_client import ChatNotConnectedError, ChatService, ChatState
from core.messages import OutgoingMessage, build_painting_notifications, format_daily_queue_summary
from core.priority import prioritized_groups
from core.production_days import local_today
from core.validation import validate_id_list
from deps import get_chat_service, get_storage_adapter
from models import utcnow
from schemas import SendDailyQueueBody, SendOrdersBody, SendTextBody
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]
Chat = Annotated[ChatService, Depends(get_chat_service)]


def _with_qr(chat: ChatService, payload: dict) -> dict:
    return {**payload, "qr_code": chat.qr_code}


@router.get("/init")
async def init_whatsapp(chat: Chat):
    """Start the session if needed; the QR code is present while pairing."""
    return _with_qr(chat, await chat.connect())


@router.get("/status")
async def whatsapp_status(chat: Chat):
    if chat.state == ChatState.DISCONNECTED:
        return _with_qr(chat, chat.status())
    return _with_qr(chat, await chat.refresh_status())


@router.get("/groups")
async def whatsapp_groups(chat: Chat):
    return {"groups": await chat.list_groups()}


@router.post("/send-text")
async def send_text(body: SendTextBody, chat: Chat):
    await chat.send_message(body.group_id, body.message)
    return {"success": True}


@router.post("/send")
async def send_painting_request(body: SendOrdersBody, storage: Storage, chat: Chat):
    """
    Send one painting request per art group among the selected orders, each
    with the group's preview image, in production priority order.
    """
    if chat.state != ChatState.READY:
        raise ChatNotConnectedError()

    ids = validate_id_list(body.order_ids)
    orders = storage.get_orders(ids)
    if not orders:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No orders found")

    messages = build_painting_notifications(orders, utcnow())
    if not messages:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="None of the selected orders needs painting",
        )
    if any(not m.image_url for m in messages):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order has no art image (upload the png first)",
        )

    sent = await chat.send_sequence(body.group_id, messages)
    logger.info(f"Painting request(s) sent to {body.group_id}: {sent}")
    return {"success": True, "sent": sent, "messages": [m.text for m in messages]}


@router.post("/send-daily-queue")
async def send_daily_queue(body: SendDailyQueueBody, storage: Storage, chat: Chat):
    """
    Post the queue overview, then the painting requests of the queued art
    groups (with preview when one was uploaded).
    """
    if chat.state != ChatState.READY:
        raise ChatNotConnectedError()

    orders = storage.list_orders(in_daily_queue=True)
    if not orders:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Daily queue is empty")

    now = utcnow()
    summary = format_daily_queue_summary(
        prioritized_groups(orders, now),
        local_today(get_settings().tzinfo()),
    )
    messages = [OutgoingMessage(text=summary)] + build_painting_notifications(orders, now)

    sent = await chat.send_sequence(body.group_id, messages)
    logger.info(f"Daily queue sent to {body.group_id}: {sent} message(s)")
    return {"success": True, "sent": sent, "summary": summary}
