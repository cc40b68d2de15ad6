"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # HTTP (seconds)
    request_timeout: float = 10.0
    upload_timeout: float = 30.0

    # Feed / search windows
    feed_limit: int = 50
    search_limit: int = 20  # Page size for searches
    profile_search_min_chars: int = 2

    # Search origin when the device location is unknown (Recife)
    default_latitude: float = -8.0476
    default_longitude: float = -34.8770

    # Recommendations
    recommendation_pool_limit: int = 1000
    recommendation_section_size: int = 10

    # Lists
    default_list_name: str = "Quero ir"

    # Storage buckets
    review_photos_bucket: str = "review-photos"
    profile_photos_bucket: str = "profile-photos"
    list_covers_bucket: str = "list-covers"

    # Auth
    session_file: Optional[str] = None  # Persist session between runs
    password_reset_redirect_url: Optional[str] = None

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
