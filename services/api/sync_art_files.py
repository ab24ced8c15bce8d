# Maintenance script for art files on Drive.
#
#   python sync_art_files.py upload --type png   # link local previews to orders missing one
#   python sync_art_files.py upload --type cdr   # same for Corel sources (ARTS_FOLDER)
#   python sync_art_files.py rename              # rename stored pngs to "<art> - shopee.png"
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from adapters.sqlite import SqliteAdapter
from core.asset_sync import rename_stored_assets, upload_missing_assets
from core.drive_client import DriveAssetStore
from settings import get_settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def default_folder(asset_type: str) -> Path:
    settings = get_settings()
    return Path(settings.arts_png_folder if asset_type == "png" else settings.arts_folder)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Upload or rename order art files on Drive")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="upload local files for orders without one")
    upload.add_argument("--type", dest="asset_type", choices=("png", "cdr"), default="png")
    upload.add_argument("--folder", type=Path, default=None)

    rename = sub.add_parser("rename", help="rename stored files to the art name pattern")
    rename.add_argument("--type", dest="asset_type", choices=("png", "cdr"), default="png")

    args = parser.parse_args(argv)
    storage = SqliteAdapter.from_url(get_settings().db_url)
    store = DriveAssetStore()

    if args.command == "upload":
        folder = args.folder or default_folder(args.asset_type)
        result = upload_missing_assets(storage, store, args.asset_type, folder)
        logger.info(
            f"Upload done: {len(result.uploaded)}/{result.pending} uploaded, "
            f"{len(result.not_found)} without a local file, {len(result.errors)} error(s)"
        )
        for name in result.not_found:
            logger.info(f"  no file for: {name}")
    else:
        result = rename_stored_assets(storage, store, args.asset_type)
        logger.info(
            f"Rename done: {len(result.renamed)} renamed, {result.skipped} already named, "
            f"{len(result.errors)} error(s)"
        )

    for err in result.errors:
        logger.warning(f"  {err}")


if __name__ == "__main__":
    main()
