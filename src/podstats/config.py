"""Configuration and environment for podstats."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Exporter settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="PODSTATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Kubernetes
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig; uses KUBECONFIG env or default location if unset",
    )
    context: str | None = Field(default=None, description="Kubernetes context to use")
    namespace: str = Field(default="default", description="Namespace to observe")

    # Ingestion
    poll_interval: float = Field(default=10.0, gt=0, description="Seconds between List calls")
    reconnect_delay: float = Field(
        default=2.0,
        ge=0,
        description="Fixed delay before reconnecting a failed watch stream",
    )
    watch_timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Server-side timeout of a single watch request",
    )
    spec_source: Literal["list", "watch"] = Field(
        default="list",
        description="Observe pod specs by periodic listing or by a resumable watch",
    )
    queue_size: int = Field(default=1024, ge=1, description="Capacity of each pipeline queue")
    stale_series_ttl: float | None = Field(
        default=None,
        gt=0,
        description="Evict series not updated for this many seconds; unset keeps them forever",
    )

    # HTTP
    host: str = Field(default="0.0.0.0", description="Address the scrape endpoint binds to")
    port: int = Field(default=8080, ge=1, le=65535, description="Port of the scrape endpoint")
    cache_ttl: float = Field(default=10.0, gt=0, description="Seconds a rendered response is reused")
    cache_capacity: int = Field(default=100, ge=1, description="Maximum cached responses (LRU)")
    refresh_key: str = Field(
        default="opn",
        description="Query-string key that forces a fresh render",
    )


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()
