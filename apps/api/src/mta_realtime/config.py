"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MTA Realtime Feed API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # MTA GTFS-RT endpoints
    mta_feed_base_url: str = Field(
        default="https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds",
        validation_alias=AliasChoices("MTA_FEED_BASE_URL", "FEED_BASE_URL"),
    )
    mta_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MTA_API_KEY"),
    )

    # Fetch / polling
    feed_fetch_timeout_sec: float = Field(default=10.0, gt=0)
    feed_poll_interval_sec: float = Field(default=30.0, gt=0)
    stale_feed_threshold_sec: int = 120

    # Static stop reference table (local path or http(s) URL)
    stops_source: str = Field(
        default="stops.txt",
        validation_alias=AliasChoices("STOPS_SOURCE", "STOPS_PATH", "STOPS_URL"),
    )
    stops_autoload: bool = True

    @property
    def feed_request_headers(self) -> dict[str, str]:
        """Headers sent with every upstream feed request."""
        if not self.mta_api_key:
            return {}
        return {"x-api-key": self.mta_api_key}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
