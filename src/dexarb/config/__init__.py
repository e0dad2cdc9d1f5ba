"""Configuration module for the price monitor."""

from dexarb.config.constants import (
    CHUNK_DELAY,
    CHUNK_SIZE,
    COINGECKO_API_URL,
    DEFAULT_FALLBACK_PRICE,
    PRICE_CACHE_TTL,
)
from dexarb.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "CHUNK_DELAY",
    "CHUNK_SIZE",
    "COINGECKO_API_URL",
    "DEFAULT_FALLBACK_PRICE",
    "PRICE_CACHE_TTL",
]
