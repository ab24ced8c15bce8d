# services/api/core/copy_arts.py
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    copied: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)


def clear_temp_folder(temp_dir: Path) -> int:
    """Delete the files inside temp_dir. Returns how many were removed."""
    temp_dir = Path(temp_dir)
    if not temp_dir.is_dir():
        return 0
    removed = 0
    for entry in temp_dir.iterdir():
        if entry.is_file():
            entry.unlink()
            removed += 1
    return removed


def copy_art_files(art_names: Iterable[str], source_dir: Path, temp_dir: Path) -> CopyResult:
    """
    Copy the source files of each art into temp_dir, numbered in the given
    order ("1 - Festa Ana - shopee.cdr", "2 - ...") so the folder follows the
    production PDF.

    A file belongs to an art when its name contains "<art name> - shopee"
    (case-insensitive). Files are copied, never moved.

    Raises:
        FileNotFoundError: source_dir does not exist
    """
    source_dir = Path(source_dir)
    temp_dir = Path(temp_dir)
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Folder not found: {source_dir}")

    if temp_dir.is_dir():
        clear_temp_folder(temp_dir)
    else:
        temp_dir.mkdir(parents=True, exist_ok=True)

    all_files = sorted(p for p in source_dir.iterdir() if p.is_file())
    result = CopyResult()
    order_number = 1

    for art_name in art_names:
        clean_name = (art_name or "").strip()
        if not clean_name:
            continue
        pattern = f"{clean_name} - shopee".lower()
        matches = [p for p in all_files if pattern in p.name.lower()]
        logger.info(f"Copy arts: {clean_name!r} -> {len(matches)} file(s)")

        if not matches:
            result.not_found.append(clean_name)
            continue

        for src in matches:
            numbered = f"{order_number} - {src.name}"
            shutil.copy2(src, temp_dir / numbered)
            result.copied.append(numbered)
        order_number += 1

    return result
