"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://pim:pim_dev_password@db:5432/pim"
    create_schema_on_startup: bool = False

    # Composition limits
    max_variant_combinations: int = 10_000
    max_bundle_depth: int = 32

    # Converting a product to its current type raises instead of succeeding
    strict_type_conversion: bool = False

    # HTTP
    request_id_header: str = "X-Request-ID"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
