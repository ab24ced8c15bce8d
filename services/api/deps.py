# services/api/deps.py
"""
Process-wide collaborators, built lazily and handed to routers with Depends.
Tests swap them through app.dependency_overrides.
"""
import logging
from typing import Optional

from adapters.sqlite import SqliteAdapter
from core.chat_client import ChatService
from core.drive_client import DriveAssetStore
from settings import get_settings

logger = logging.getLogger(__name__)

_storage_adapter: Optional[SqliteAdapter] = None
_chat_service: Optional[ChatService] = None
_asset_store: Optional[DriveAssetStore] = None


def get_storage_adapter() -> SqliteAdapter:
    global _storage_adapter
    if _storage_adapter is None:
        db_url = get_settings().db_url
        logger.info("Initializing storage adapter at %s", db_url)
        _storage_adapter = SqliteAdapter.from_url(db_url)
    return _storage_adapter


def get_chat_service() -> ChatService:
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService.from_settings(get_settings())
    return _chat_service


def peek_chat_service() -> Optional[ChatService]:
    """The chat service if one was built, without creating it."""
    return _chat_service


def get_asset_store() -> DriveAssetStore:
    global _asset_store
    if _asset_store is None:
        _asset_store = DriveAssetStore()
    return _asset_store
