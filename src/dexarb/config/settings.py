"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexarb.config.constants import (
    BINANCE_API_URL,
    CHUNK_DELAY,
    CHUNK_SIZE,
    COINBASE_API_URL,
    COINGECKO_API_URL,
    COINMARKETCAP_API_URL,
    COINPAPRIKA_API_URL,
    DEFAULT_INVESTMENT_AMOUNT,
    DEFAULT_TOKEN_LIMIT,
    LISTING_TIMEOUT,
    PRICE_CACHE_TTL,
    PRICE_TIMEOUT,
    PRIMARY_MAX_ATTEMPTS,
    REFRESH_INTERVAL,
    RETRY_BASE_DELAY,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    The only credential is optional: without a CoinMarketCap key that
    source is skipped.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Upstream APIs
    # =========================================================================

    coingecko_base_url: str = Field(
        default=COINGECKO_API_URL,
        description="Primary price aggregator base URL",
    )
    coinmarketcap_base_url: str = Field(
        default=COINMARKETCAP_API_URL,
        description="CoinMarketCap Pro API base URL",
    )
    coinpaprika_base_url: str = Field(
        default=COINPAPRIKA_API_URL,
        description="CoinPaprika API base URL",
    )
    binance_base_url: str = Field(
        default=BINANCE_API_URL,
        description="Binance spot API base URL",
    )
    coinbase_base_url: str = Field(
        default=COINBASE_API_URL,
        description="Coinbase API base URL",
    )

    coinmarketcap_api_key: SecretStr | None = Field(
        default=None,
        description="Optional CoinMarketCap API key; the source is skipped without it",
    )

    # =========================================================================
    # Network Configuration
    # =========================================================================

    listing_timeout: float = Field(
        default=LISTING_TIMEOUT,
        gt=0.0,
        le=60.0,
        description="Timeout for token listing and history requests in seconds",
    )

    price_timeout: float = Field(
        default=PRICE_TIMEOUT,
        gt=0.0,
        le=60.0,
        description="Timeout for single-token price requests in seconds",
    )

    # =========================================================================
    # Caching & Retry
    # =========================================================================

    cache_ttl_seconds: float = Field(
        default=PRICE_CACHE_TTL,
        ge=0.0,
        le=3600.0,
        description="Maximum age of the cached token snapshot",
    )

    max_retries: int = Field(
        default=PRIMARY_MAX_ATTEMPTS,
        ge=1,
        le=10,
        description="Attempts against the primary source before falling back",
    )

    retry_base_delay: float = Field(
        default=RETRY_BASE_DELAY,
        ge=0.0,
        le=30.0,
        description="Linear backoff unit: attempt N waits N * delay seconds",
    )

    # =========================================================================
    # Opportunity Scanning
    # =========================================================================

    chunk_size: int = Field(
        default=CHUNK_SIZE,
        ge=1,
        le=20,
        description="Tokens resolved concurrently per batch",
    )

    chunk_delay: float = Field(
        default=CHUNK_DELAY,
        ge=0.0,
        le=10.0,
        description="Pause between batches in seconds",
    )

    default_investment: float = Field(
        default=DEFAULT_INVESTMENT_AMOUNT,
        gt=0.0,
        description="Notional USD amount used for profit estimates",
    )

    fee_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=0.05,
        description="Swap fee per leg (e.g., 0.003 = 0.3%)",
    )

    min_profit_pct: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Minimum profit percentage to report an opportunity",
    )

    default_token_limit: int = Field(
        default=DEFAULT_TOKEN_LIMIT,
        ge=1,
        le=250,
        description="Number of top tokens scanned by default",
    )

    refresh_interval: float = Field(
        default=REFRESH_INTERVAL,
        ge=1.0,
        le=3600.0,
        description="Seconds between background opportunity refreshes",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional file receiving DEBUG-level logs",
    )

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
    )

    dashboard_host: str = Field(
        default="0.0.0.0",
        description="Dashboard API bind address",
    )

    dashboard_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Dashboard API port",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("coinmarketcap_api_key", mode="after")
    @classmethod
    def blank_key_is_missing(cls, v: SecretStr | None) -> SecretStr | None:
        """Treat an empty key the same as an absent one."""
        if v is not None and not v.get_secret_value().strip():
            return None
        return v

    @field_validator(
        "coingecko_base_url",
        "coinmarketcap_base_url",
        "coinpaprika_base_url",
        "binance_base_url",
        "coinbase_base_url",
        mode="after",
    )
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are appended with a leading slash."""
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def has_coinmarketcap_key(self) -> bool:
        """Check whether the CoinMarketCap source is usable."""
        return self.coinmarketcap_api_key is not None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
