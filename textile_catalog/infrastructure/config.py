"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from enum import Enum
from pathlib import Path

from pydantic_settings import BaseSettings


class StoreBackend(str, Enum):
    """Product store implementations."""

    SQL = "sql"
    MEMORY = "memory"


class ImageMode(str, Enum):
    """How product images are stored. One mode per deployment."""

    INLINE_REQUIRED = "inline_required"
    INLINE_OPTIONAL = "inline_optional"
    FILESYSTEM = "filesystem"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Product store
    store_backend: StoreBackend = StoreBackend.SQL
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"
    create_tables: bool = False

    # Images
    image_mode: ImageMode = ImageMode.INLINE_REQUIRED
    max_image_bytes: int = 5 * 1024 * 1024
    upload_dir: Path = Path("uploads")
    upload_url_prefix: str = "/uploads"
    placeholder_image_url: str = "/static/placeholder-fabric.png"

    # Listing
    page_size: int = 24
    fixed_page_size: bool = True
    max_page_size: int = 100

    # Client caching (seconds)
    list_cache_max_age: int = 120
    detail_cache_max_age: int = 300

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
