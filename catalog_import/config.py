"""Application configuration using Pydantic Settings.

Reads configuration from environment variables (or `.env`) with sensible
defaults. The importer takes no command-line flags, so the source files,
images root and import policies are all set here.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (echo SQL)",
    )

    # =========================================================================
    # Database
    # =========================================================================
    db_user: str = Field(
        default="catalog",
        description="Database user",
    )
    db_password: str = Field(
        default="",
        description="Database password",
    )
    db_name: str = Field(
        default="catalog",
        description="Database name",
    )
    db_host: str = Field(
        default="localhost",
        description="Database host",
    )
    db_port: int = Field(
        default=5432,
        description="Database port",
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size",
    )
    db_pool_max_overflow: int = Field(
        default=10,
        description="Max overflow connections beyond pool size",
    )
    database_url_override: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL, takes precedence over db_* values",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Build the async database URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================================================================
    # Object Storage
    # =========================================================================
    gcs_bucket: str = Field(
        default="catalog-assets-dev",
        description="Cloud Storage bucket for product images",
    )
    use_local_storage: bool = Field(
        default=False,
        description="Use local filesystem instead of GCS (for development)",
    )
    local_storage_root: str = Field(
        default="./local_storage",
        description="Root directory for local storage when use_local_storage=True",
    )

    # =========================================================================
    # Catalog Import
    # =========================================================================
    images_root: str = Field(
        default="./seed-images",
        description="Directory that relative image paths in product JSON resolve against",
    )
    source_files: list[str] = Field(
        default=["./data/products.json"],
        description="Product JSON files imported by one batch",
    )
    uploader_email: str = Field(
        default="seedadmin@example.com",
        description="Email of the admin recorded as uploader of imported files",
    )
    image_policy: Literal["skip-if-present", "replace"] = Field(
        default="skip-if-present",
        description="What to do with products that already have linked images",
    )
    unique_slugs: bool = Field(
        default=False,
        description="Suffix new product slugs with a counter when already taken",
    )
    available_stock: int = Field(
        default=10,
        ge=0,
        description="Placeholder stock for variants that are available and online",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for convenience
settings = get_settings()
