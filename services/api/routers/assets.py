# services/api/routers/assets.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from adapters.base import StorageAdapter
from core.assets import CONTENT_TYPES, asset_field, build_asset_file_name, validate_raster
from core.drive_client import DriveAssetStore
from deps import get_asset_store, get_storage_adapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["assets"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]
AssetStore = Annotated[DriveAssetStore, Depends(get_asset_store)]


def _get_order_or_404(storage: StorageAdapter, order_id: str):
    order = storage.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Order not found: {order_id}")
    return order


@router.post("/{order_id}/assets")
async def upload_asset(
    order_id: str,
    storage: Storage,
    store: AssetStore,
    asset_type: str = Query(..., alias="type", description="png (preview) or cdr (source file)"),
    file: UploadFile = File(...),
):
    """
    Upload the art preview (png) or the vector source (cdr) of an order and
    record its URL on the order. Re-uploading replaces the stored file.
    """
    field = asset_field(asset_type)
    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if asset_type == "png":
        validate_raster(data)

    order = _get_order_or_404(storage, order_id)
    file_name = build_asset_file_name(order, asset_type, file.filename)

    try:
        url = store.upload(order.id, file_name, data, CONTENT_TYPES[asset_type])
    except Exception as e:
        logger.exception(f"Asset upload failed for order {order_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to upload file", "details": str(e)},
        )

    updated = storage.update_order(order.id, {field: url})
    logger.info(f"Stored {asset_type} for order {order_id} as {file_name!r}")
    return {"success": True, "url": url, "file_name": file_name, "order": updated.to_api()}


@router.delete("/{order_id}/assets")
async def delete_asset(
    order_id: str,
    storage: Storage,
    store: AssetStore,
    asset_type: str = Query(..., alias="type"),
):
    """
    Delete the stored file and clear the URL on the order. Deleting when no
    file is stored is a no-op that returns the order as is.
    """
    field = asset_field(asset_type)
    order = _get_order_or_404(storage, order_id)

    url = getattr(order, field)
    if not url:
        return {"success": True, "order": order.to_api()}

    try:
        removed = store.delete(url)
    except Exception as e:
        logger.exception(f"Asset delete failed for order {order_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete file", "details": str(e)},
        )
    if not removed:
        logger.warning(f"Stored URL for order {order_id} had no file id; clearing it anyway")

    updated = storage.update_order(order.id, {field: None})
    return {"success": True, "order": updated.to_api()}
