# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
import base64
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    # Backend selection
    # "google" talks to Drive + Sheets; "memory" is the in-process test double
    assessment_backend: str = "google"

    google_sa_json: str = ""
    google_sa_json_base64: str = ""
    sheets_spreadsheet_id: str = ""

    # CORS settings
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    # Google Drive settings
    # Final paths:
    #   Turnovers_Sketches/<work order>/FloorPlan_<work order>.png
    #   Turnovers_Photos/<work order>/<work order>_01_<name>.jpg
    gdrive_sketch_folder_name: str = "Turnovers_Sketches"
    gdrive_photo_folder_name: str = "Turnovers_Photos"

    # Per-request and per-asset upload timeout, pause between sequential uploads (seconds)
    upload_timeout_s: float = Field(default=30.0, gt=0)
    upload_delay_s: float = Field(default=0.5, ge=0)

    # ---- Worksheet layout ----

    # Printable height of one PDF page in sheet pixels.
    # Letter (11in) minus 0.75in top/bottom margins at 96 dpi.
    page_usable_height_px: int = Field(default=912, gt=0)
    spacer_buffer_px: int = Field(default=20, ge=0)
    spacer_min_px: int = Field(default=50, ge=0)

    # Lease held around delete+create of a worksheet tab
    document_lease_ttl_s: float = Field(default=120.0, gt=0)

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def resolved_google_sa_json(self) -> str:
        """
        Return the service account JSON (path or inline JSON).
        If GOOGLE_SA_JSON_BASE64 is set, decode it to a temp file.
        Otherwise return GOOGLE_SA_JSON as-is.
        """
        if self.google_sa_json_base64:
            import tempfile

            decoded = base64.b64decode(self.google_sa_json_base64)
            temp_file = tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json')
            temp_file.write(decoded.decode('utf-8'))
            temp_file.close()
            return temp_file.name

        return self.google_sa_json

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
