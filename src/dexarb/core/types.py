"""
Type definitions for the price monitor.

This module contains all dataclasses, enums and Protocol definitions
used throughout the application. Entities are frozen: a refresh produces
new objects instead of mutating old ones.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


# =============================================================================
# Enums
# =============================================================================


class PriceSource(str, Enum):
    """Where a price came from."""

    COINGECKO = "coingecko"
    COINMARKETCAP = "coinmarketcap"
    COINPAPRIKA = "coinpaprika"
    BINANCE = "binance"
    COINBASE = "coinbase"
    FALLBACK = "fallback"


class Venue(str, Enum):
    """Decentralized exchanges quoted by the simulator."""

    UNISWAP = "Uniswap"
    SUSHISWAP = "SushiSwap"
    PANCAKESWAP = "PancakeSwap"
    CURVE = "Curve"
    BALANCER = "Balancer"


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class TokenQuote:
    """
    Market snapshot of a single token.

    Symbols are stored lower case, the way the primary aggregator
    reports them; use `display_symbol` for output.
    """

    id: str
    symbol: str
    name: str
    image: str
    current_price: float
    market_cap: float
    price_change_24h: float
    market_cap_rank: int | None = None
    total_volume: float = 0.0
    source: PriceSource = PriceSource.COINGECKO

    @property
    def display_symbol(self) -> str:
        """Upper-case ticker symbol."""
        return self.symbol.upper()

    @property
    def is_synthetic(self) -> bool:
        """Check if the quote came from fallback data."""
        return self.source is PriceSource.FALLBACK

    def matches(self, token_id: str) -> bool:
        """Check if the token is addressed by an id or a symbol."""
        return self.id == token_id or self.symbol == token_id.lower()


@dataclass(slots=True, frozen=True)
class VenueQuote:
    """Price and volume observation for one venue."""

    venue: Venue
    price: float
    volume_24h: float
    liquidity: float | None = None
    synthetic: bool = False


@dataclass(slots=True, frozen=True)
class BasePrice:
    """Reference USD price with its provenance."""

    token_id: str
    price: float
    source: PriceSource

    @property
    def is_synthetic(self) -> bool:
        """Check if the price came from fallback data."""
        return self.source is PriceSource.FALLBACK


@dataclass(slots=True, frozen=True)
class PricePoint:
    """Single point of a price history."""

    timestamp_ms: int
    price: float


@dataclass(slots=True, frozen=True)
class TokenVenueQuotes:
    """A token together with its venue quotes for one fetch cycle."""

    token: TokenQuote
    quotes: tuple[VenueQuote, ...]

    @property
    def synthetic(self) -> bool:
        """Check if any part of the record came from fallback data."""
        return self.token.is_synthetic or any(q.synthetic for q in self.quotes)


@dataclass(slots=True, frozen=True)
class PriceCacheEntry:
    """Snapshot of the last full token-list fetch."""

    snapshot: tuple[TokenQuote, ...]
    fetched_at: float  # monotonic seconds

    def age(self, now: float) -> float:
        """Seconds elapsed since the snapshot was taken."""
        return now - self.fetched_at


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class ArbitrageOpportunity:
    """
    Buy-low/sell-high opportunity between two venues.

    Only constructed when the profit for `investment_amount` is positive,
    so `source_venue.price < target_venue.price` always holds.
    """

    token: TokenQuote | None
    source_venue: VenueQuote
    target_venue: VenueQuote
    investment_amount: float
    profit_absolute: float
    profit_percentage: float

    @property
    def synthetic(self) -> bool:
        """Check if the opportunity was derived from fallback data."""
        if self.token is not None and self.token.is_synthetic:
            return True
        return self.source_venue.synthetic or self.target_venue.synthetic

    @property
    def spread_pct(self) -> float:
        """Raw price spread between the two venues, in percent."""
        low = self.source_venue.price
        return (self.target_venue.price - low) / low * 100.0


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class TopTokensSource(Protocol):
    """Protocol for token listing sources."""

    name: str

    async def fetch_top_tokens(self, count: int) -> list[TokenQuote]:
        """Fetch the top `count` tokens by market cap."""
        ...


class HistorySource(Protocol):
    """Protocol for price history sources."""

    name: str

    async def fetch_history(self, token_id: str, days: int) -> list[PricePoint]:
        """Fetch daily USD prices for the last `days` days."""
        ...


class BasePriceSource(Protocol):
    """Protocol for single-token price sources."""

    name: str
    source: PriceSource

    def supports(self, token_id: str) -> bool:
        """Check whether the source can price this token."""
        ...

    async def fetch_price(self, token_id: str) -> float:
        """Fetch the USD price of a token."""
        ...


class VenueQuoteSource(Protocol):
    """Protocol for per-venue quote providers, simulated or on-chain."""

    async def get_venue_quotes(self, token_id: str) -> list[VenueQuote]:
        """Get quotes for a token across venues."""
        ...


class MetricsSink(Protocol):
    """Protocol for metrics collection."""

    def record_latency(self, name: str, latency_ms: float) -> None:
        """Record a latency measurement."""
        ...

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        ...

    def record_source_failure(self, source: str) -> None:
        """Count one failed request against an upstream source."""
        ...


QuoteList = Sequence[VenueQuote]
