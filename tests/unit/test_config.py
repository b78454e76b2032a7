"""Unit tests for configuration module."""

from __future__ import annotations

import pytest

from gridstore.domain.services import CodecOptions
from gridstore.infrastructure.config import (
    BucketConfig,
    CodecConfig,
    Config,
    ObservabilityConfig,
    get_config,
)


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.bucket.bucket_name == "fs"
        assert config.bucket.chunk_size_bytes == 261120
        assert config.bucket.max_time_ms is None
        assert config.codec.tz_aware is True
        assert config.codec.compute_md5 is False
        assert config.observability.log_format == "json"

    def test_invalid_chunk_size(self) -> None:
        """Test that a non-positive chunk size raises validation error."""
        with pytest.raises(ValueError):
            BucketConfig(chunk_size_bytes=0)

    def test_empty_bucket_name(self) -> None:
        with pytest.raises(ValueError):
            BucketConfig(bucket_name="")

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError):
            ObservabilityConfig(log_level="LOUD")  # type: ignore[arg-type]

    def test_codec_config_to_options(self) -> None:
        """Test conversion to the codec's options value."""
        options = CodecConfig(tz_aware=False, compute_md5=True).to_options()

        assert options == CodecOptions(tz_aware=False, compute_md5=True)

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested settings from environment variables."""
        monkeypatch.setenv("GRIDSTORE_BUCKET__BUCKET_NAME", "images")
        monkeypatch.setenv("GRIDSTORE_BUCKET__CHUNK_SIZE_BYTES", "1024")
        monkeypatch.setenv("GRIDSTORE_CODEC__COMPUTE_MD5", "true")

        config = Config()

        assert config.bucket.bucket_name == "images"
        assert config.bucket.chunk_size_bytes == 1024
        assert config.codec.compute_md5 is True


@pytest.mark.unit
class TestConfigSingleton:
    """Tests for get_config singleton."""

    def test_get_config_returns_same_instance(self) -> None:
        """Test that get_config returns the same instance."""
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2
