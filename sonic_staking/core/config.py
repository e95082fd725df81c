"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=True)

    # GraphQL upstream
    graphql_endpoint: str = Field(
        default="https://xapi.sonic.soniclabs.com/graphqlapi",
        description="GraphQL query endpoint (or a local proxy relaying to it)"
    )
    graphql_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per query, including the first one"
    )
    graphql_backoff_base_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Backoff after attempt n is base ** n seconds"
    )
    graphql_connect_timeout_seconds: float = Field(default=10.0, gt=0)
    graphql_read_timeout_seconds: float = Field(default=30.0, gt=0)

    # Polling
    poll_interval_seconds: int = Field(
        default=15,
        gt=0,
        description="Seconds between dashboard refreshes"
    )

    # Observability
    enable_api_metrics: bool = Field(default=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
