"""Configuration management for gridstore using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridstore.domain.services import CodecOptions
from gridstore.domain.value_objects import DEFAULT_BUCKET_NAME, DEFAULT_CHUNK_SIZE


class BucketConfig(BaseModel):
    """Bucket defaults."""

    bucket_name: str = Field(
        default=DEFAULT_BUCKET_NAME, min_length=1, description="Collection name prefix"
    )
    chunk_size_bytes: int = Field(
        default=DEFAULT_CHUNK_SIZE, ge=1, description="Bytes per chunk (default 255KB)"
    )
    max_time_ms: int | None = Field(
        default=None, ge=0, description="Per-operation server time limit"
    )


class CodecConfig(BaseModel):
    """Document codec behavior flags."""

    tz_aware: bool = Field(default=True, description="Decode datetimes as aware UTC")
    compute_md5: bool = Field(default=False, description="Store an MD5 of uploads")

    def to_options(self) -> CodecOptions:
        """Convert to the codec's options value."""
        return CodecOptions(tz_aware=self.tz_aware, compute_md5=self.compute_md5)


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="gridstore", description="Service name for tracing")
    environment: str = Field(default="development", description="Deployment environment")


class Config(BaseSettings):
    """Root configuration for gridstore."""

    model_config = SettingsConfigDict(
        env_prefix="GRIDSTORE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    bucket: BucketConfig = Field(default_factory=BucketConfig)
    codec: CodecConfig = Field(default_factory=CodecConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
