#One-time OAuth flow for the Drive account that stores order art (png previews + cdr sources).
from __future__ import annotations

import logging

from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from core.drive_client import CREDS_DIR, SCOPES, TOKEN_FILE, DriveAssetStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("drive_oauth_init")

CLIENT_SECRET_FILE = CREDS_DIR / "drive_oauth_client.json"


def obtain_token() -> Credentials:
    """Reuse/refresh creds/drive_token.json, or run the browser consent flow."""
    if not CLIENT_SECRET_FILE.exists():
        raise SystemExit(
            f"Missing {CLIENT_SECRET_FILE}. "
            "Download the OAuth desktop client JSON and save it there."
        )

    creds = None
    if TOKEN_FILE.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        flow = InstalledAppFlow.from_client_secrets_file(str(CLIENT_SECRET_FILE), SCOPES)
        creds = flow.run_local_server(port=0)

    TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
    TOKEN_FILE.write_text(creds.to_json())
    logger.info(f"Drive OAuth token saved to {TOKEN_FILE}")
    return creds


def main():
    obtain_token()
    # Creates the arts root folder on first run so GDRIVE_ROOT_FOLDER_ID can be pinned
    store = DriveAssetStore()
    folder_id = store._root()
    logger.info(f"Arts root folder {store.root_folder_name!r}: {folder_id}")


if __name__ == "__main__":
    main()
