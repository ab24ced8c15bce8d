# services/api/routers/copy_arts.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from adapters.base import StorageAdapter
from core.copy_arts import clear_temp_folder, copy_art_files
from core.priority import ordered_art_names
from core.validation import validate_id_list
from deps import get_storage_adapter
from models import utcnow
from schemas import OrderIdsBody
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/copy-arts", tags=["copy-arts"])

Storage = Annotated[StorageAdapter, Depends(get_storage_adapter)]


@router.post("")
async def copy_arts(body: OrderIdsBody, storage: Storage):
    """
    Copy the source files of the selected orders' arts into the temp folder,
    numbered in production priority order (same order as the PDF).
    """
    ids = validate_id_list(body.order_ids)
    art_names = ordered_art_names(storage.get_orders(ids), utcnow())
    if not art_names:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected orders have no art name")

    settings = get_settings()
    temp_folder = settings.resolved_arts_temp_folder()
    try:
        result = copy_art_files(art_names, Path(settings.arts_folder), Path(temp_folder))
    except FileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info(f"Copy arts: {len(result.copied)} file(s) copied, {len(result.not_found)} art(s) not found")
    return {
        "success": True,
        "copied": result.copied,
        "not_found": result.not_found,
        "temp_folder": temp_folder,
    }


@router.delete("")
async def clear_copied_arts():
    removed = clear_temp_folder(Path(get_settings().resolved_arts_temp_folder()))
    return {"success": True, "removed": removed}
