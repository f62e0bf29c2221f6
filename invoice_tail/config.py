"""Application configuration via pydantic-settings.

All secrets are loaded from environment variables (.env file).
Settings are organized into logical groups and composed into a single Settings object.
The pure eligibility/snapshot core never reads these settings.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShopifySettings(BaseSettings):
    """Shopify Admin GraphQL API access."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    shopify_shop_domain: str = Field(
        default="",
        description="Shop domain, e.g. my-store.myshopify.com",
    )
    shopify_admin_access_token: str = Field(
        default="",
        description="Admin API access token (X-Shopify-Access-Token)",
    )
    shopify_api_version: str = Field(default="2025-01", description="Admin API version")
    shopify_timeout: float = Field(default=10.0, description="Admin API timeout in seconds")
    shopify_app_url: str = Field(
        default="",
        description="Public base URL of this app, used for webhook callbacks",
    )

    @property
    def graphql_url(self) -> str:
        """Admin GraphQL endpoint for the configured shop."""
        domain = self.shopify_shop_domain.removeprefix("https://").rstrip("/")
        return f"https://{domain}/admin/api/{self.shopify_api_version}/graphql.json"


class Settings(BaseSettings):
    """Root settings composing all sub-settings.

    Usage:
        settings = Settings()
        settings.shopify.graphql_url
        settings.cors_origins
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    environment: str = Field(default="development")
    log_level: str = Field(default="DEBUG")
    cors_allow_origins: str = Field(
        default="*",
        description="Comma-separated origins allowed to call the storefront API",
    )

    # Composed settings (loaded from same .env)
    shopify: ShopifySettings = Field(default_factory=ShopifySettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            msg = f"Invalid log level: {v}. Must be one of {valid}"
            raise ValueError(msg)
        return upper

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


# Module-level singleton: import this wherever settings are needed.
settings = Settings()
