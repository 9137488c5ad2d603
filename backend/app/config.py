"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - resolve_mongodb_uri() raises ConfigurationError when MONGODB_URI is unset in production

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Local MongoDB default outside production: works out-of-the-box for development
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/devevent"
PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore",
    )

    app_env: str = "development"

    # Database
    mongodb_uri: str | None = None
    mongodb_database: str | None = None
    mongodb_connect_timeout_ms: int = 10_000
    mongodb_socket_timeout_ms: int = 45_000

    # Media host (Cloudinary)
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    cloudinary_folder: str = "events"
    media_upload_max_retries: int = 2
    media_upload_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == PRODUCTION

    def resolve_mongodb_uri(self) -> str:
        """Connection string to use; the local default is refused in production."""
        if self.mongodb_uri:
            return self.mongodb_uri
        if self.is_production:
            raise ConfigurationError("MONGODB_URI")
        return DEFAULT_MONGODB_URI


@lru_cache
def get_settings() -> Settings:
    return Settings()
