"""
core/config.py
----------------

Application configuration module.

Defines strongly-typed settings loaded from the environment using
``pydantic-settings``.  They cover the hosted store connection, HTTP
timeouts and retries, pagination guards, the date-range configuration
record and the Wallet pass signing material.  Every value can be
overridden via ``APP_``-prefixed environment variables, e.g.
``APP_STORE_URL=https://xyz.supabase.co``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    See :class:`pydantic_settings.BaseSettings` for details on how
    environment variables are mapped onto fields.
    """

    # Hosted store (PostgREST API, e.g. Supabase)
    store_url: str = Field("http://localhost:54321", description="Base URL of the hosted store.")
    store_key: str = Field("", description="API key sent as ``apikey`` and bearer token.")
    store_schema: str = Field("public", description="Database schema exposed by the REST API.")

    # HTTP client settings
    http_timeout: float = Field(10.0, description="Hard timeout for HTTP requests in seconds.")
    http_max_retries: int = Field(3, ge=0, description="Maximum number of retries for idempotent operations (GET).")
    http_backoff_factor: float = Field(0.5, description="Backoff factor for exponential retry delays.")

    # Pagination guards
    page_size: int = Field(1000, ge=1, description="Rows per report page.")
    store_max_rows: int = Field(1000, ge=1, description="Rows the store returns per request at most.")
    max_pages: int = Field(200, ge=1, description="Maximum number of store pages fetched for a full range.")
    max_items: int = Field(200_000, ge=1, description="Maximum number of rows fetched for a full range.")

    # Fan-out
    fanout_max_workers: int = Field(7, ge=1, description="Concurrent branch queries for the General view.")

    # Date window configuration record
    date_range_table: str = Field("date_range", description="Table holding the single date window record.")
    date_range_start_column: str = Field("start_date")
    date_range_end_column: str = Field("end_date")

    # Wallet passes
    passkit_dir: Path = Field(Path("passkit"), description="Directory holding model.pass/ and certs/.")
    passkit_key_password: Optional[str] = Field(None, description="Password of the signer key, if encrypted.")
    pass_holders_table: Optional[str] = Field(None, description="Store table with card holders, keyed by id.")
    pass_demo_name: str = Field("CLIENTE DEMO")
    pass_demo_level: str = Field("Estudiante")
    pass_demo_points: int = Field(120)

    model_config = SettingsConfigDict(env_prefix="APP_", env_file=None, case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""
    return Settings()
