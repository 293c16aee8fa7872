"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Biolink"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Storage (one JSON document per resource)
    data_dir: str = "data"

    # Security
    secret_key: str = "change-me-in-production"
    admin_user: str = "admin"
    admin_pass: str = "admin123"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Analytics
    hash_salt: str = ""
    record_clicks_in_background: bool = True

    # GeoIP
    geoip_database_path: str = ""
    geoip_api_enabled: bool = True

    # Rate limiting
    rate_limit_enabled: bool = True

    # Observability
    sentry_dsn: str = ""
    otlp_endpoint: str = ""

    @property
    def fingerprint_salt(self) -> str:
        """Salt for visitor fingerprints, falling back to the secret key."""
        return self.hash_salt or self.secret_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
