"""Configuration management for Holidarr."""

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import PositiveFloat, PositiveInt, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./holidarr.db"

    # Azure OpenAI (AI fallback classifier)
    azure_openai_key: SecretStr | None = None
    azure_openai_endpoint: str | None = None
    azure_openai_model: str = "gpt-4o"
    azure_openai_api_version: str = "2025-01-01-preview"
    ai_timeout: PositiveInt = 60  # Seconds per backend request
    ai_requests_per_minute: PositiveInt = 30
    ai_max_retries: int = 5  # Retries on HTTP 429 before giving up
    ai_base_delay: PositiveFloat = 2.0  # First backoff delay, doubled per retry
    ai_batch_delay: float = 1.0  # Pause between backend-bound batch items

    # Pattern matching
    match_threshold: PositiveInt = 8

    # Title corpus
    title_cache_ttl: PositiveInt = 7 * 24 * 60 * 60  # 7 days in seconds
    scrape_delay: float = 0.4  # Be gentle with the wiki
    scrape_timeout: PositiveInt = 20

    # Collections
    collection_prefix: str = ""

    # Network settings
    # Proxy configuration in the format http://host:port or socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if v is None:
            return v

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https", "socks4", "socks5", "socks5h"):
            raise ValueError(
                "Proxy must be a valid URL with scheme http/https/socks4/socks5/socks5h"
            )
        if not parsed.netloc:
            raise ValueError("Proxy must have a host and port")
        return v

    @field_validator("ai_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ai_max_retries must not be negative")
        return v

    # App settings
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def ai_configured(self) -> bool:
        """True when both Azure OpenAI credentials are present."""
        return bool(self.azure_openai_key and self.azure_openai_endpoint)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
