"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache
from typing import Optional


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "Gestion Proyectos"
    debug: bool = False

    # Storage: SQLite file and uploads live under DATA_DIR unless overridden
    data_dir: str = "data"
    database_url: str = ""
    uploads_dir: str = ""

    # Security
    secret_key: str = ""
    access_token_expire_hours: int = 24

    # Upload limits (megabytes)
    max_upload_mb: int = 10
    max_import_mb: int = 50
    max_norma_mb: int = 50

    # Reports
    company_logo: Optional[str] = None

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        self.data_dir = os.path.abspath(os.getenv("DATA_DIR", self.data_dir))
        default_url = "sqlite:///" + os.path.join(self.data_dir, "gestion_proyectos.db")
        self.database_url = os.getenv("DATABASE_URL") or default_url
        self.uploads_dir = os.path.abspath(
            os.getenv("UPLOADS_DIR") or os.path.join(self.data_dir, "uploads")
        )

        self.secret_key = os.getenv("SECRET_KEY", "")
        self.access_token_expire_hours = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", str(self.access_token_expire_hours))
        )

        self.max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", str(self.max_upload_mb)))
        self.max_import_mb = int(os.getenv("MAX_IMPORT_MB", str(self.max_import_mb)))
        self.max_norma_mb = int(os.getenv("MAX_NORMA_MB", str(self.max_norma_mb)))

        self.company_logo = os.getenv("COMPANY_LOGO") or None

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def max_import_bytes(self) -> int:
        return self.max_import_mb * 1024 * 1024

    @property
    def max_norma_bytes(self) -> int:
        return self.max_norma_mb * 1024 * 1024
