# services/api/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List
from pathlib import Path
from zoneinfo import ZoneInfo

class Settings(BaseSettings):
    # Storage settings
    # Any SQLAlchemy URL works; sqlite is the default for a single-machine setup
    db_url: str = "sqlite:///data/orders.db"

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:3001,http://localhost:8000"

    # Google Drive settings (art assets)
    gdrive_root_folder_name: str = "Cup_Orders_Arts"
    # Optional: if you create the root folder manually & share it, put its ID here
    gdrive_root_folder_id: str = ""

    # ---- WhatsApp gateway settings ----
    # Base URL of the HTTP gateway that owns the WhatsApp web session
    chat_gateway_url: str = "http://localhost:3001"
    chat_gateway_api_key: str = ""
    chat_session: str = "default"

    # Pause between consecutive messages of one sequence (seconds)
    chat_send_delay_seconds: float = 5.0
    chat_groups_cache_ttl: int = 60

    # Local folders used by the "copy arts" action
    # Example: ARTS_FOLDER=/mnt/c/Users/me/Desktop/Artes/Corel
    arts_folder: str = "data/arts"
    arts_temp_folder: str = ""
    # PNG previews, used by sync_art_files.py (cdr sources come from arts_folder)
    arts_png_folder: str = "data/arts/png"

    # Import
    import_batch_size: int = Field(default=20, ge=1)

    # Used to bucket orders by production day
    timezone: str = "America/Sao_Paulo"

    # If TRUE, status changes must follow ALLOWED_TRANSITIONS (409 otherwise).
    # Default keeps the manual-correction workflow where any status is writable.
    strict_status_transitions: bool = False

    # ---- Production notes (PDF) ----
    business_title: str = "COPOS PERSONALIZADOS"
    business_email: str = ""
    seller_name: str = "Vendedor"

    model_config = SettingsConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def resolved_arts_temp_folder(self) -> str:
        """Temp folder defaults to <arts_folder>/temp."""
        if self.arts_temp_folder:
            return self.arts_temp_folder
        return str(Path(self.arts_folder) / "temp")

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
