# services/api/core/assets.py
from __future__ import annotations

import io
import re
import unicodedata
from pathlib import PurePath

from fastapi import HTTPException
from PIL import Image, UnidentifiedImageError

from models import Order

# type query param -> (order field, file extension)
ASSET_TYPES = {
    "png": ("art_png_url", "png"),
    "cdr": ("art_cdr_url", "cdr"),
}

CONTENT_TYPES = {
    "png": "image/png",
    "cdr": "application/octet-stream",
}


def sanitize_file_name(file_name: str) -> str:
    """
    Strip accents and anything outside [A-Za-z0-9.-_ ] so storage keys stay
    readable: "Festa Júlia #1 - shopee.png" -> "Festa Julia 1 - shopee.png".
    """
    decomposed = unicodedata.normalize("NFD", file_name)
    no_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = re.sub(r"[^a-zA-Z0-9.\-_ ]", "", no_marks)
    return re.sub(r"\s+", " ", cleaned).strip()


def asset_field(asset_type: str) -> str:
    """Order attribute holding the URL for this asset type (400 if unknown)."""
    if asset_type not in ASSET_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid file type: {asset_type!r} (use png or cdr)")
    return ASSET_TYPES[asset_type][0]


def build_asset_file_name(order: Order, asset_type: str, original_name: str | None) -> str:
    """
    "<art name> - shopee.<ext>" when the order has an art name (the copy-arts
    action searches for that pattern), else the uploaded file's own stem.
    """
    ext = ASSET_TYPES[asset_type][1]
    if order.art_name:
        return sanitize_file_name(f"{order.art_name} - shopee.{ext}")

    stem = PurePath(original_name or "").stem or order.marketplace_order_id
    return sanitize_file_name(f"{stem}.{ext}")


def validate_raster(data: bytes) -> None:
    """Raise 400 unless `data` is a readable image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise HTTPException(status_code=400, detail=f"File is not a valid image: {e}")
