"""Service configuration.

Loads from environment variables and .env file.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from .models import YesNo


class Settings(BaseSettings):
    """Configuration for the default reset quantity service."""

    # ----- Application -----
    app_name: str = "Default Reset Quantity"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0", description="Bind host.")
    port: int = Field(default=8000, description="Bind port.")

    # ----- Storage -----
    flag_store_path: str | None = Field(
        default=None,
        description="JSON file holding the flags. In-memory store when unset.",
    )
    catalog_path: str | None = Field(
        default=None,
        description="CSV export used to seed the catalog. Empty catalog when unset.",
    )

    # ----- Reset behaviour -----
    auto_reset_default: YesNo = Field(
        default=YesNo.YES,
        description="Value of auto_reset_quantities before it is first saved.",
    )
    store_status_integration: bool = Field(
        default=True,
        description="Whether a store-status publisher is installed. "
        "Automatic resets are skipped when false.",
    )
    debug_set_quantity: int = Field(
        default=100,
        ge=0,
        description="Quantity used by the hidden debug 'set' action.",
    )

    # ----- Settings page -----
    nonce_ttl_seconds: int = Field(
        default=86400,
        gt=0,
        description="Lifetime of a settings form token.",
    )
    nonce_max_tokens: int = Field(
        default=1000,
        gt=0,
        description="Outstanding settings form tokens kept; the oldest is evicted past this.",
    )
    admin_token: str | None = Field(
        default=None,
        description="When set, /settings requires a matching X-Admin-Token header.",
    )

    # ----- Rate limiting -----
    settings_rate_limit: str = Field(default="30/minute")
    health_rate_limit: str = Field(default="100/minute")
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for shared rate limit storage. In-memory when unset.",
    )

    @property
    def has_redis(self) -> bool:
        return bool(self.redis_url)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
