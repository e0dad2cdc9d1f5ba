"""Core types and the monitor engine."""

from dexarb.core.types import (
    ArbitrageOpportunity,
    BasePrice,
    PricePoint,
    PriceSource,
    TokenQuote,
    TokenVenueQuotes,
    Venue,
    VenueQuote,
)


__all__ = [
    "ArbitrageOpportunity",
    "BasePrice",
    "PricePoint",
    "PriceSource",
    "TokenQuote",
    "TokenVenueQuotes",
    "Venue",
    "VenueQuote",
]
