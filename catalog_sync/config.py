"""Service settings, read from the environment (or a local .env file).

Source credentials are never configured here; they arrive per request.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Catalog sync settings. Field names map to upper-case env vars."""

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
        description="Deployment environment",
    )
    debug: bool = Field(
        default=False,
        description="Echo SQL and enable verbose behaviour",
    )

    # =========================================================================
    # Database
    # =========================================================================
    store_backend: Literal["memory", "postgres"] = Field(
        default="memory",
        description="Catalog store implementation used by the API",
    )
    db_user: str = Field(
        default="catalog_app",
        description="Catalog database role",
    )
    db_password: str = Field(
        default="",
        description="Database password",
    )
    db_name: str = Field(
        default="catalog",
        description="Catalog database name",
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
        description="Pooled connections kept open",
    )
    db_pool_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed under load",
    )
    db_create_schema: bool = Field(
        default=False,
        description="Create missing catalog tables at startup (local development)",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the catalog database."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================================================================
    # Synchronization policy
    # =========================================================================
    sync_page_size: int = Field(
        default=50,
        ge=1,
        le=250,
        description="Records requested per source page",
    )
    sync_max_pages: int = Field(
        default=100,
        ge=1,
        description="Upper bound on pages fetched by a single sweep",
    )
    cost_estimate_ratio: Decimal = Field(
        default=Decimal("0.70"),
        ge=0,
        le=1,
        description="Fraction of price used as cost when a source omits cost",
    )

    # =========================================================================
    # Source transport
    # =========================================================================
    source_timeout: float = Field(
        default=30.0,
        description="Source API request timeout in seconds",
    )
    shopify_api_version: str = Field(
        default="2024-01",
        description="Shopify Admin REST API version",
    )
    trendyol_base_url: str = Field(
        default="https://api.trendyol.com/sapigw",
        description="Trendyol supplier API base URL",
    )
    amazon_base_url: str = Field(
        default="https://sellingpartnerapi-eu.amazon.com",
        description="Amazon Selling Partner API regional endpoint",
    )
    amazon_marketplace_id: str = Field(
        default="A33AVAJ2PDY3EV",
        description="Amazon marketplace identifier (Turkey)",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Minimum level emitted",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
