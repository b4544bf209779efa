"""
config.py — Environment configuration for the export service.

Settings are read from environment variables, with an optional ``.env``
file at the project root filling in anything not already set.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

# Load .env file if it exists
def _load_dotenv():
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()
                    if key and value and key not in os.environ:
                        os.environ[key] = value

_load_dotenv()


def _optional(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Application
        self.app_name: str = os.environ.get("APP_NAME", "deckexport")
        self.app_version: str = os.environ.get("APP_VERSION", "0.1.0")
        self.debug: bool = os.environ.get("DEBUG", "false").lower() == "true"
        self.api_prefix: str = os.environ.get("API_PREFIX", "/api/v1")

        # Server settings
        self.host: str = os.environ.get("HOST", "0.0.0.0")
        self.port: int = int(os.environ.get("PORT", "8000"))

        # CORS settings
        self.cors_origins: list = os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")

        # Rasterization
        self.supersample: float = float(os.environ.get("DECKEXPORT_SUPERSAMPLE", "2"))
        self.asset_timeout: float = float(os.environ.get("DECKEXPORT_ASSET_TIMEOUT", "10.0"))
        self.asset_base_url: Optional[str] = _optional("DECKEXPORT_ASSET_BASE_URL")
        self.font_dir: Optional[str] = _optional("DECKEXPORT_FONT_DIR")
        # Reading image sources from the server disk; off for the HTTP service
        self.allow_local_files: bool = os.environ.get("DECKEXPORT_ALLOW_LOCAL_FILES", "false").lower() == "true"

        # Output
        self.output_dir: str = os.environ.get("OUTPUT_DIR", "./output")
        self.max_slides: int = int(os.environ.get("MAX_SLIDES", "200"))

    @property
    def has_asset_base_url(self) -> bool:
        """Check if relative image sources can be resolved."""
        return bool(self.asset_base_url)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
