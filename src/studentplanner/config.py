"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./studentplanner.db"

    # Routing / weather provider (empty base URL = static model only)
    routing_base_url: str = ""
    routing_api_key: str = ""
    external_timeout: float = 5.0  # seconds per external call
    external_max_retries: int = 2

    # Travel estimate cache
    cache_ttl_seconds: float = 3600.0
    cache_max_entries: int = 1024

    # Shopping optimization
    max_candidate_stores: int = 3
    store_dwell_minutes: int = 15
    travel_time_value: float = 0.10  # GBP per minute of travel
    default_travel_mode: str = "walk"
    home_name: str = "five-ways"
    home_latitude: float = 52.4751
    home_longitude: float = -1.9180

    # Recipe queries
    recipe_query_limit: int = 50
    recipe_result_limit: int = 10

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def has_routing_provider(self) -> bool:
        """Check if an external routing provider is configured."""
        return bool(self.routing_base_url)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
