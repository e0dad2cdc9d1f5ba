"""
Price feed constants and configuration values.

This module contains all hardcoded values used throughout the monitor.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Upstream API Endpoints
# =============================================================================

COINGECKO_API_URL: Final[str] = "https://api.coingecko.com/api/v3"
COINMARKETCAP_API_URL: Final[str] = "https://pro-api.coinmarketcap.com/v1"
COINPAPRIKA_API_URL: Final[str] = "https://api.coinpaprika.com/v1"
BINANCE_API_URL: Final[str] = "https://api.binance.com/api/v3"
COINBASE_API_URL: Final[str] = "https://api.coinbase.com/v2"

# CoinGecko
ENDPOINT_COINS_MARKETS: Final[str] = "/coins/markets"
ENDPOINT_SIMPLE_PRICE: Final[str] = "/simple/price"
ENDPOINT_MARKET_CHART: Final[str] = "/coins/{coin_id}/market_chart"

# CoinMarketCap
ENDPOINT_CMC_LISTINGS: Final[str] = "/cryptocurrency/listings/latest"
ENDPOINT_CMC_QUOTES: Final[str] = "/cryptocurrency/quotes/latest"
CMC_API_KEY_HEADER: Final[str] = "X-CMC_PRO_API_KEY"
CMC_IMAGE_URL: Final[str] = "https://s2.coinmarketcap.com/static/img/coins/64x64/{cmc_id}.png"

# CoinPaprika
ENDPOINT_PAPRIKA_TICKERS: Final[str] = "/tickers"
ENDPOINT_PAPRIKA_COINS: Final[str] = "/coins"
ENDPOINT_PAPRIKA_COIN: Final[str] = "/coins/{coin_id}"
ENDPOINT_PAPRIKA_TICKER: Final[str] = "/tickers/{coin_id}"

# Spot venues
ENDPOINT_BINANCE_TICKER_PRICE: Final[str] = "/ticker/price"
ENDPOINT_COINBASE_SPOT: Final[str] = "/prices/{symbol}-USD/spot"

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "User-Agent": "DexArbitrageMonitor/1.0.0",
}


# =============================================================================
# Timeouts
# =============================================================================

# Token listings and price history (seconds)
LISTING_TIMEOUT: Final[float] = 10.0

# Single-token spot prices (seconds)
PRICE_TIMEOUT: Final[float] = 5.0


# =============================================================================
# Caching & Retry
# =============================================================================

PRICE_CACHE_TTL: Final[float] = 60.0  # seconds

PRIMARY_MAX_ATTEMPTS: Final[int] = 3
RETRY_BASE_DELAY: Final[float] = 1.0  # seconds, multiplied by attempt index


# =============================================================================
# Opportunity Scanning
# =============================================================================

CHUNK_SIZE: Final[int] = 3
CHUNK_DELAY: Final[float] = 0.5  # seconds between chunks

DEFAULT_INVESTMENT_AMOUNT: Final[float] = 1000.0
DEFAULT_TOKEN_LIMIT: Final[int] = 10

# Dashboard refresh cadence (seconds)
REFRESH_INTERVAL: Final[float] = 60.0


# =============================================================================
# Fallback Data
# =============================================================================

# Price returned for token ids missing from the fallback table
DEFAULT_FALLBACK_PRICE: Final[float] = 10.0

# Reference price for synthetic history of unknown tokens
DEFAULT_HISTORY_PRICE: Final[float] = 100.0

# Synthetic history wanders within +/- this fraction of the reference price
HISTORY_VARIANCE: Final[float] = 0.10

# Placeholder tokens beyond the fallback table: price = base / rank
PLACEHOLDER_PRICE_BASE: Final[float] = 10.0
PLACEHOLDER_MARKET_CAP_BASE: Final[float] = 1_000_000_000.0
PLACEHOLDER_IMAGE: Final[str] = "https://placeholder.com/32x32"


# =============================================================================
# Token Symbols
# =============================================================================

# CoinGecko id -> exchange ticker symbol
TOKEN_SYMBOLS: Final[dict[str, str]] = {
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "binancecoin": "BNB",
    "ripple": "XRP",
    "cardano": "ADA",
    "solana": "SOL",
    "polkadot": "DOT",
    "dogecoin": "DOGE",
    "avalanche-2": "AVAX",
    "chainlink": "LINK",
    "polygon": "MATIC",
    "matic-network": "MATIC",
    "litecoin": "LTC",
    "bitcoin-cash": "BCH",
    "uniswap": "UNI",
    "stellar": "XLM",
}

# Tokens quoted against USDT on Binance
BINANCE_TOKEN_IDS: Final[frozenset[str]] = frozenset(
    {"bitcoin", "ethereum", "binancecoin", "ripple", "cardano", "solana"}
)

# Tokens with a USD spot price on Coinbase
COINBASE_TOKEN_IDS: Final[frozenset[str]] = frozenset(
    {"bitcoin", "ethereum", "litecoin", "bitcoin-cash"}
)


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Third-party loggers capped at WARNING
QUIET_LOGGERS: Final[tuple[str, ...]] = ("aiohttp", "asyncio", "uvicorn.access")

# Latency samples kept per upstream source
LATENCY_WINDOW_SIZE: Final[int] = 500


def token_symbol(token_id: str) -> str:
    """Map a CoinGecko token id to its exchange ticker symbol."""
    return TOKEN_SYMBOLS.get(token_id, token_id.upper())
