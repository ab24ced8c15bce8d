"""
Shared fixtures: a throwaway SQLite store, an order factory and a TestClient
with the Drive store and chat gateway swapped for in-memory fakes.
"""
import dataclasses
import itertools
import json
import sys
import os
from datetime import datetime, timedelta

import httpx
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import insert

from adapters.sqlite import SqliteAdapter, orders
from core.chat_client import ChatService
from models import ArtStatus, Order

NOW = datetime(2026, 10, 19, 12, 0, 0)

_ids = itertools.count(1)


def make_order(**overrides) -> Order:
    """Order with sensible defaults; every call gets a fresh id."""
    n = next(_ids)
    data = dict(
        id=f"order-{n}",
        marketplace_order_id=f"2510190000{n:04d}",
        customer_user="ana",
        customer_name="Ana Souza",
        product_name="Kit 100 Copos 500ml Personalizados Descartável Para Festas Adegas Casamentos",
        quantity=1,
        shipping_date=NOW + timedelta(days=3),
        order_date=NOW - timedelta(days=1),
        art_status=ArtStatus.PENDING,
    )
    data.update(overrides)
    return Order(**data)


def seed_order(storage, **overrides) -> Order:
    """Insert an order straight into the table, workflow fields included."""
    order = make_order(**overrides)
    values = dataclasses.asdict(order)
    values["art_status"] = order.art_status.value
    with storage.engine.begin() as conn:
        conn.execute(insert(orders).values(**values))
    return storage.get_order(order.id)


def import_row(marketplace_order_id: str, **overrides) -> dict:
    """A row shaped like parse_marketplace_xlsx output."""
    row = {
        "marketplace_order_id": marketplace_order_id,
        "customer_user": "ana",
        "customer_name": "Ana Souza",
        "product_name": "Kit 100 Copos 500ml Personalizados Descartável Para Festas Adegas Casamentos",
        "variation": None,
        "quantity": 1,
        "total_value": "89.90",
        "customer_note": None,
        "shipping_date": NOW + timedelta(days=3),
        "order_date": NOW - timedelta(days=1),
    }
    row.update(overrides)
    return row


@pytest.fixture
def storage(tmp_path):
    adapter = SqliteAdapter.from_url(f"sqlite:///{tmp_path / 'orders.db'}")
    yield adapter
    adapter.engine.dispose()


class FakeAssetStore:
    """Keeps uploads in a dict keyed by a fake Drive id."""

    def __init__(self):
        self.files = {}
        self._seq = itertools.count(1)

    def upload(self, order_id, file_name, data, content_type):
        for file_id, stored in self.files.items():
            if stored["order_id"] == order_id and stored["name"] == file_name:
                stored["data"] = data
                return f"https://drive.google.com/uc?export=download&id={file_id}"
        file_id = f"file{next(self._seq)}"
        self.files[file_id] = {"order_id": order_id, "name": file_name, "data": data, "content_type": content_type}
        return f"https://drive.google.com/uc?export=download&id={file_id}"

    def delete(self, url):
        file_id = url.rsplit("id=", 1)[-1]
        return self.files.pop(file_id, None) is not None

    def file_name(self, url):
        stored = self.files.get(url.rsplit("id=", 1)[-1])
        return stored["name"] if stored else None

    def rename(self, url, new_name):
        stored = self.files.get(url.rsplit("id=", 1)[-1])
        if stored is None:
            return False
        stored["name"] = new_name
        return True


class FakeGateway:
    """
    Minimal WhatsApp gateway behind httpx.MockTransport. `status` is the
    session status the gateway reports.
    """

    def __init__(self, status="WORKING"):
        self.status = status
        self.sent = []
        self.groups = [
            {"id": "120363000000000001@g.us", "name": "Pintura", "participants": [{}, {}]},
            {"id": {"_serialized": "120363000000000002@g.us"}, "subject": "Expedição"},
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "images.example.com":
            return httpx.Response(200, content=b"\x89PNG fake")
        if path == "/api/sessions/start":
            return httpx.Response(201, json={"name": "default"})
        if path == "/api/sessions/stop":
            return httpx.Response(201, json={})
        if path == "/api/sessions/default":
            return httpx.Response(200, json={"name": "default", "status": self.status})
        if path == "/api/default/auth/qr":
            return httpx.Response(200, json={"mimetype": "image/png", "data": "UVI="})
        if path == "/api/default/groups":
            return httpx.Response(200, json=self.groups)
        if path in ("/api/sendText", "/api/sendImage"):
            self.sent.append((path, json.loads(request.content)))
            return httpx.Response(201, json={"id": "msg"})
        return httpx.Response(404, json={"error": "not found"})

    def service(self, send_delay=0.0) -> ChatService:
        return ChatService(
            base_url="http://gateway.local",
            api_key="secret",
            send_delay=send_delay,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def asset_store():
    return FakeAssetStore()


@pytest.fixture
def client(storage, asset_store, gateway):
    from fastapi.testclient import TestClient

    import deps
    from main import app

    chat = gateway.service()
    app.dependency_overrides[deps.get_storage_adapter] = lambda: storage
    app.dependency_overrides[deps.get_asset_store] = lambda: asset_store
    app.dependency_overrides[deps.get_chat_service] = lambda: chat
    with TestClient(app) as c:
        c.chat = chat
        yield c
    app.dependency_overrides.clear()
