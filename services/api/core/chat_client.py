# services/api/core/chat_client.py
"""
WhatsApp access through an HTTP gateway that owns the web session
(WAHA-style REST API). One ChatService per process, built in deps.py.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import httpx
from cachetools import TTLCache

from core.messages import OutgoingMessage

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    PAIRING = "PAIRING"
    READY = "READY"


# gateway session status -> our state
_GATEWAY_STATES = {
    "WORKING": ChatState.READY,
    "SCAN_QR_CODE": ChatState.PAIRING,
    "STARTING": ChatState.CONNECTING,
    "FAILED": ChatState.DISCONNECTED,
    "STOPPED": ChatState.DISCONNECTED,
}


class ChatServiceError(Exception):
    pass


class ChatNotConnectedError(ChatServiceError):
    def __init__(self, message: str = "WhatsApp is not connected"):
        super().__init__(message)


class ChatGatewayError(ChatServiceError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


def _group_id(raw: Any) -> str:
    if isinstance(raw, dict):
        return raw.get("_serialized") or f"{raw.get('user', '')}@{raw.get('server', 'g.us')}"
    return str(raw or "")


class ChatService:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        session: str = "default",
        send_delay: float = 5.0,
        groups_cache_ttl: int = 60,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.send_delay = send_delay
        self.state = ChatState.DISCONNECTED
        self.qr_code: Optional[str] = None

        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-Api-Key"] = api_key
        self._transport = transport
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._groups: TTLCache = TTLCache(maxsize=1, ttl=groups_cache_ttl)
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "ChatService":
        return cls(
            base_url=settings.chat_gateway_url,
            api_key=settings.chat_gateway_api_key,
            session=settings.chat_session,
            send_delay=settings.chat_send_delay_seconds,
            groups_cache_ttl=settings.chat_groups_cache_ttl,
        )

    # ---------- gateway plumbing ----------

    async def _request(self, method: str, path: str, ok_statuses=(), **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Chat gateway unreachable: %s %s -> %s", method, path, e)
            raise ChatGatewayError("Chat gateway unreachable", details=str(e)) from e

        if resp.status_code >= 400 and resp.status_code not in ok_statuses:
            logger.error("Chat gateway error: %s %s -> %s %s", method, path, resp.status_code, resp.text[:300])
            raise ChatGatewayError(
                f"Chat gateway returned {resp.status_code}",
                details=resp.text[:500],
            )
        return resp

    def _require_ready(self):
        if self.state != ChatState.READY:
            raise ChatNotConnectedError()

    # ---------- lifecycle ----------

    async def connect(self) -> Dict[str, Any]:
        """
        Start (or resume) the gateway session. Idempotent: a READY or
        pairing session is only refreshed.
        """
        async with self._lock:
            if self.state in (ChatState.DISCONNECTED,):
                self.state = ChatState.CONNECTING
                logger.info("Starting chat session %r", self.session)
                try:
                    # 422/409: session already exists on the gateway
                    await self._request(
                        "POST", "/api/sessions/start",
                        json={"name": self.session},
                        ok_statuses=(409, 422),
                    )
                except ChatGatewayError:
                    self.state = ChatState.DISCONNECTED
                    raise
        return await self.refresh_status()

    async def refresh_status(self) -> Dict[str, Any]:
        resp = await self._request("GET", f"/api/sessions/{self.session}", ok_statuses=(404,))
        if resp.status_code == 404:
            gateway_status = "STOPPED"
        else:
            gateway_status = str(resp.json().get("status", "")).upper()

        previous = self.state
        self.state = _GATEWAY_STATES.get(gateway_status, ChatState.CONNECTING)

        if self.state == ChatState.PAIRING:
            self.qr_code = await self._fetch_qr()
        else:
            self.qr_code = None

        if previous != self.state:
            logger.info("Chat session %r: %s -> %s", self.session, previous.value, self.state.value)
            self._groups.clear()
        return self.status()

    async def _fetch_qr(self) -> Optional[str]:
        resp = await self._request("GET", f"/api/{self.session}/auth/qr", ok_statuses=(404,))
        if resp.status_code == 404:
            return None
        payload = resp.json()
        data = payload.get("data")
        if not data:
            return None
        return f"data:{payload.get('mimetype') or 'image/png'};base64,{data}"

    async def disconnect(self):
        if self.state != ChatState.DISCONNECTED:
            try:
                await self._request("POST", "/api/sessions/stop", json={"name": self.session}, ok_statuses=(404,))
            except ChatGatewayError as e:
                logger.warning("Could not stop chat session %r: %s", self.session, e)
        self.state = ChatState.DISCONNECTED
        self.qr_code = None
        self._groups.clear()

    async def aclose(self):
        await self._client.aclose()

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.state == ChatState.READY,
            "has_qr": self.qr_code is not None,
            "state": self.state.value,
        }

    # ---------- groups ----------

    async def list_groups(self) -> List[Dict[str, Any]]:
        """Groups the account belongs to, sorted by name."""
        self._require_ready()
        cached = self._groups.get(self.session)
        if cached is not None:
            return cached

        resp = await self._request("GET", f"/api/{self.session}/groups")
        payload = resp.json()
        items = payload.values() if isinstance(payload, dict) else payload

        groups = []
        for g in items:
            gid = _group_id(g.get("id"))
            if not gid:
                continue
            participants = g.get("participants") or []
            groups.append({
                "id": gid,
                "name": g.get("name") or g.get("subject") or gid,
                "participants": len(participants),
            })
        groups.sort(key=lambda g: g["name"].lower())
        self._groups[self.session] = groups
        return groups

    # ---------- sending ----------

    async def _download_image(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, transport=self._transport
            ) as client:
                r = await client.get(url)
                r.raise_for_status()
                return r.content
        except httpx.HTTPError as e:
            raise ChatGatewayError("Failed to download image", details=f"{url}: {e}") from e

    async def send_message(self, chat_id: str, text: str, image_url: Optional[str] = None) -> None:
        self._require_ready()
        if image_url:
            data = await self._download_image(image_url)
            await self._request(
                "POST",
                "/api/sendImage",
                json={
                    "session": self.session,
                    "chatId": chat_id,
                    "file": {
                        "mimetype": "image/png",
                        "filename": "arte.png",
                        "data": base64.b64encode(data).decode("ascii"),
                    },
                    "caption": text or "",
                },
            )
        else:
            await self._request(
                "POST",
                "/api/sendText",
                json={"session": self.session, "chatId": chat_id, "text": text},
            )
        logger.info("Sent chat message to %s (image=%s)", chat_id, bool(image_url))

    async def send_sequence(self, chat_id: str, messages: Iterable[OutgoingMessage]) -> int:
        """Send in order, pausing `send_delay` seconds between messages."""
        sent = 0
        for msg in messages:
            if sent and self.send_delay > 0:
                await asyncio.sleep(self.send_delay)
            await self.send_message(chat_id, msg.text, msg.image_url)
            sent += 1
        return sent
