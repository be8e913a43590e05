"""Configuration management for the CLOB proxy."""

from typing import Literal

import httpx
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CLOB_TARGET = "https://clob.polymarket.com"


class Settings(BaseSettings):
    """Application settings.

    Read once at startup and frozen afterwards, so a single instance can be
    shared by every concurrent request handler.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Upstream Configuration
    clob_target: str = Field(
        DEFAULT_CLOB_TARGET, description="Upstream base URL requests are relayed to"
    )
    upstream_timeout: float = Field(
        15.0, gt=0, description="Upstream timeout in seconds"
    )

    # Security
    api_key: str = Field(
        "", description="Shared secret required on write requests (empty disables)"
    )

    # Listener Configuration
    listen_host: str = Field("0.0.0.0", description="Address to bind to")
    port: int = Field(3000, ge=0, le=65535, description="Port to listen on")

    # Body handling
    body_limit: int = Field(
        10 * 1024 * 1024, gt=0, description="Maximum accepted request body (bytes)"
    )
    normalize_json_bodies: bool = Field(
        False, description="Decode and canonically re-encode JSON request bodies"
    )
    decode_responses: bool = Field(
        False, description="Decompress upstream bodies instead of passing them through"
    )

    # Application Configuration
    region: str = Field("eu", description="Region tag reported by /health")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )
    debug: bool = Field(False, description="Enable debug mode")

    @field_validator("clob_target")
    @classmethod
    def _validate_target(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid upstream URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("Upstream URL must be an absolute http(s) URL")
        return value.rstrip("/")

    @property
    def upstream_authority(self) -> str:
        """Host (and non-default port) of the upstream, used as the outbound Host."""
        return httpx.URL(self.clob_target).netloc.decode("ascii")

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_key)


# Global settings instance
settings = Settings()
