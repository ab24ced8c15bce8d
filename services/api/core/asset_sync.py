# services/api/core/asset_sync.py
"""
Bulk maintenance of art files kept on the asset store.

- upload_missing_assets: orders in APPROVED/PRODUCTION that have an art name
  but no png/cdr URL get the matching local "<art name> - shopee.<ext>" file
  uploaded and linked.
- rename_stored_assets: stored files are renamed to the sanitized
  "<art name> - shopee.<ext>" name the copy-arts action looks for.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from core.assets import ASSET_TYPES, CONTENT_TYPES, asset_field, build_asset_file_name
from models import ArtStatus

logger = logging.getLogger(__name__)

UPLOAD_STATUSES = (ArtStatus.APPROVED, ArtStatus.PRODUCTION)


@dataclass
class UploadResult:
    pending: int = 0
    uploaded: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class RenameResult:
    renamed: List[str] = field(default_factory=list)
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


def local_asset_index(folder: Path, asset_type: str) -> Dict[str, Path]:
    """Lower-cased art name -> file, for files named "<art name> - shopee.<ext>"."""
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Folder not found: {folder}")

    ext = ASSET_TYPES[asset_type][1]
    suffix = re.compile(rf" - shopee\.{ext}$", re.IGNORECASE)
    index: Dict[str, Path] = {}
    for path in sorted(folder.iterdir()):
        if not path.is_file() or not suffix.search(path.name):
            continue
        index[suffix.sub("", path.name).strip().lower()] = path
    return index


def upload_missing_assets(storage, store, asset_type: str, folder: Path) -> UploadResult:
    """
    Upload local art files for orders still missing them. One failed upload
    is logged and counted; the rest of the batch continues.

    Raises:
        FileNotFoundError: folder does not exist
    """
    url_field = asset_field(asset_type)
    index = local_asset_index(folder, asset_type)
    orders = storage.list_orders_by_asset(url_field, has_asset=False, statuses=UPLOAD_STATUSES)

    result = UploadResult(pending=len(orders))
    logger.info(f"{len(orders)} order(s) without {asset_type}, {len(index)} local file(s)")

    for order in orders:
        path = index.get(order.art_name.strip().lower())
        if path is None:
            result.not_found.append(order.art_name)
            continue

        file_name = build_asset_file_name(order, asset_type, path.name)
        try:
            url = store.upload(order.id, file_name, path.read_bytes(), CONTENT_TYPES[asset_type])
            storage.update_order(order.id, {url_field: url})
        except Exception as e:
            logger.exception(f"Upload of {path.name!r} for order {order.id} failed")
            result.errors.append(f"{order.art_name}: {e}")
            continue

        logger.info(f"Uploaded {path.name!r} -> order {order.id}")
        result.uploaded.append(order.art_name)

    return result


def rename_stored_assets(storage, store, asset_type: str = "png") -> RenameResult:
    """Give stored files their sanitized "<art name> - shopee.<ext>" name."""
    url_field = asset_field(asset_type)
    result = RenameResult()

    for order in storage.list_orders_by_asset(url_field, has_asset=True):
        url = getattr(order, url_field)
        expected = build_asset_file_name(order, asset_type, None)
        try:
            if store.file_name(url) == expected:
                result.skipped += 1
                continue
            if not store.rename(url, expected):
                result.errors.append(f"{order.art_name}: no file id in {url}")
                continue
        except Exception as e:
            logger.exception(f"Rename for order {order.id} failed")
            result.errors.append(f"{order.art_name}: {e}")
            continue
        result.renamed.append(expected)

    return result
