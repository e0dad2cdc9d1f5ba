"""
Unit tests for application settings.
"""

import pytest
from pydantic import ValidationError

from dexarb.config.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values without any environment."""
        monkeypatch.delenv("COINMARKETCAP_API_KEY", raising=False)

        settings = Settings(_env_file=None)

        assert settings.coingecko_base_url == "https://api.coingecko.com/api/v3"
        assert settings.cache_ttl_seconds == 60.0
        assert settings.max_retries == 3
        assert settings.retry_base_delay == 1.0
        assert settings.chunk_size == 3
        assert settings.chunk_delay == 0.5
        assert settings.default_investment == 1000.0
        assert settings.fee_rate == 0.0
        assert not settings.has_coinmarketcap_key

    def test_blank_key_is_missing(self) -> None:
        """Test that a whitespace key disables the source."""
        settings = Settings(_env_file=None, coinmarketcap_api_key="   ")

        assert settings.coinmarketcap_api_key is None
        assert not settings.has_coinmarketcap_key

    def test_key_is_secret(self) -> None:
        """Test that the key is kept out of reprs."""
        settings = Settings(_env_file=None, coinmarketcap_api_key="abc123")

        assert settings.has_coinmarketcap_key
        assert "abc123" not in repr(settings)
        assert settings.coinmarketcap_api_key is not None
        assert settings.coinmarketcap_api_key.get_secret_value() == "abc123"

    def test_trailing_slash_stripped(self) -> None:
        """Test base URL normalization."""
        settings = Settings(_env_file=None, binance_base_url="https://example.test/api/")

        assert settings.binance_base_url == "https://example.test/api"

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("chunk_size", 0),
            ("max_retries", 0),
            ("default_investment", 0.0),
            ("fee_rate", 0.5),
            ("cache_ttl_seconds", -1.0),
        ],
    )
    def test_bounds(self, field: str, value: float) -> None:
        """Test that out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading values from environment variables."""
        monkeypatch.setenv("CHUNK_SIZE", "5")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.chunk_size == 5
        assert settings.log_level == "DEBUG"
