# services/api/core/drive_client.py
from __future__ import annotations
import logging
import os
import json
import re
from io import BytesIO
from typing import Optional
from pathlib import Path

from google.oauth2.credentials import Credentials as UserCredentials
from google.auth.transport.requests import Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload


from settings import get_settings

logger = logging.getLogger(__name__)

_drive_service = None

# "drive.file" is enough: upload and manage files created by this app
SCOPES = ["https://www.googleapis.com/auth/drive.file"]

# Paths relative to services/api/
BASE_DIR = Path(__file__).resolve().parent.parent
CREDS_DIR = BASE_DIR / "creds"
TOKEN_FILE = CREDS_DIR / "drive_token.json"

DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"
_FILE_ID_RE = re.compile(r"id=([\w-]+)")


def _get_drive_credentials() -> UserCredentials:
    """
    Load user OAuth credentials.

    Priority:
    1) If DRIVE_TOKEN_JSON env var is set (prod), use that.
    2) Else, fall back to local creds/drive_token.json (dev).
    """
    token_env = os.getenv("DRIVE_TOKEN_JSON")

    if token_env:
        try:
            info = json.loads(token_env)
            creds = UserCredentials.from_authorized_user_info(info, SCOPES)
        except Exception as e:
            logger.exception("Failed to load DRIVE_TOKEN_JSON from env: %s", e)
            raise
    else:
        if not TOKEN_FILE.exists():
            msg = (
                f"Drive token not found in env or at {TOKEN_FILE}. "
                "Either set DRIVE_TOKEN_JSON or run drive_oauth_init.py once."
            )
            logger.error(msg)
            raise RuntimeError(msg)

        creds = UserCredentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    # Refresh if expired and we have a refresh token
    if creds.expired and creds.refresh_token:
        try:
            logger.info("Refreshing Google Drive OAuth token...")
            creds.refresh(Request())

            # file-based creds (dev): persist refreshed token
            if not token_env:
                CREDS_DIR.mkdir(parents=True, exist_ok=True)
                TOKEN_FILE.write_text(creds.to_json())
                logger.info("Google Drive OAuth token refreshed and saved.")
            else:
                logger.info("Drive OAuth token refreshed (env-based creds, not writing to disk).")
        except Exception as e:
            logger.exception("Failed to refresh Drive OAuth token: %s", e)
            raise

    return creds


def get_drive_service():
    """
    Lazily construct and cache a Google Drive v3 service client
    using the OAuth user credentials.
    """
    global _drive_service
    if _drive_service is None:
        creds = _get_drive_credentials()
        _drive_service = build(
            "drive",
            "v3",
            credentials=creds,
            cache_discovery=False,
        )
        logger.info("Initialized Google Drive client using OAuth user credentials.")
    return _drive_service


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _ensure_folder(service, name: str, parent_id: Optional[str] = None) -> str:
    """
    Find (or create) a folder with given name under parent_id (or My Drive root).
    Returns the folder ID.
    """
    folder_name = name.strip() or "UNTITLED"

    q = (
        "mimeType = 'application/vnd.google-apps.folder' "
        f"and name = '{_escape(folder_name)}' "
        "and trashed = false"
    )
    if parent_id:
        q += f" and '{parent_id}' in parents"

    result = service.files().list(
        q=q,
        spaces="drive",
        fields="files(id, name)",
        pageSize=1,
    ).execute()

    files = result.get("files", [])
    if files:
        return files[0]["id"]

    metadata = {
        "name": folder_name,
        "mimeType": "application/vnd.google-apps.folder",
    }
    if parent_id:
        metadata["parents"] = [parent_id]

    created = service.files().create(
        body=metadata,
        fields="id",
    ).execute()
    return created["id"]


def file_id_from_url(url: str) -> Optional[str]:
    """Pull the Drive file id out of a download URL ("...&id=<id>")."""
    m = _FILE_ID_RE.search(url or "")
    return m.group(1) if m else None


class DriveAssetStore:
    """
    Art files on Google Drive:

    <root folder>/
        <order id>/
            <file name>

    Uploading a name that already exists in the order folder replaces the
    file's content, so re-uploads keep the same URL.
    """

    def __init__(self, service=None, root_folder_id: str = "", root_folder_name: str = ""):
        self._service = service
        settings = get_settings()
        self.root_folder_id = (root_folder_id or settings.gdrive_root_folder_id or "").strip()
        self.root_folder_name = root_folder_name or settings.gdrive_root_folder_name

    @property
    def service(self):
        if self._service is None:
            self._service = get_drive_service()
        return self._service

    def _root(self) -> str:
        if not self.root_folder_id:
            self.root_folder_id = _ensure_folder(self.service, self.root_folder_name, parent_id=None)
        return self.root_folder_id

    def _find_file(self, name: str, parent_id: str) -> Optional[str]:
        q = f"name = '{_escape(name)}' and '{parent_id}' in parents and trashed = false"
        result = self.service.files().list(
            q=q,
            spaces="drive",
            fields="files(id, name)",
            pageSize=1,
        ).execute()
        files = result.get("files", [])
        return files[0]["id"] if files else None

    def upload(self, order_id: str, file_name: str, data: bytes, content_type: str) -> str:
        """
        Store `data` and return a public download URL.

        Raises whatever the Drive client raises; callers turn it into a 500.
        """
        service = self.service
        folder_id = _ensure_folder(service, order_id, parent_id=self._root())

        media = MediaIoBaseUpload(
            BytesIO(data),
            mimetype=content_type or "application/octet-stream",
            resumable=False,
        )

        existing_id = self._find_file(file_name, folder_id)
        if existing_id:
            service.files().update(
                fileId=existing_id,
                media_body=media,
                fields="id",
            ).execute()
            file_id = existing_id
            logger.info("Replaced Drive file %s for order %s", file_id, order_id)
        else:
            created = service.files().create(
                body={"name": file_name, "parents": [folder_id]},
                media_body=media,
                fields="id",
            ).execute()
            file_id = created["id"]
            logger.info("Uploaded Drive file %s for order %s", file_id, order_id)

        # Make it downloadable by link (anyone with the link can read)
        try:
            service.permissions().create(
                fileId=file_id,
                body={"role": "reader", "type": "anyone"},
                fields="id",
            ).execute()
        except HttpError as e:
            logger.warning("Failed to set public permission for file %s: %s", file_id, e)

        return DOWNLOAD_URL.format(file_id=file_id)

    def delete(self, url: str) -> bool:
        """Delete the file behind `url`. False when the URL holds no file id."""
        file_id = file_id_from_url(url)
        if not file_id:
            logger.warning("Could not extract Drive file id from %s", url)
            return False
        try:
            self.service.files().delete(fileId=file_id).execute()
        except HttpError as e:
            if getattr(e, "resp", None) is not None and e.resp.status == 404:
                logger.info("Drive file %s already gone", file_id)
                return True
            raise
        logger.info("Deleted Drive file %s", file_id)
        return True

    def file_name(self, url: str) -> Optional[str]:
        """Current name of the file behind `url`, None when it has no file id."""
        file_id = file_id_from_url(url)
        if not file_id:
            return None
        meta = self.service.files().get(fileId=file_id, fields="name").execute()
        return meta.get("name")

    def rename(self, url: str, new_name: str) -> bool:
        """Rename in place; the download URL stays the same."""
        file_id = file_id_from_url(url)
        if not file_id:
            return False
        self.service.files().update(fileId=file_id, body={"name": new_name}, fields="id").execute()
        logger.info("Renamed Drive file %s to %r", file_id, new_name)
        return True
