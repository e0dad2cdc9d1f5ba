"""Upstream price API clients and sources."""

from dexarb.exchange.client import PriceApiClient, PriceApiError, PriceApiStatusError
from dexarb.exchange.sources import (
    BinanceTickerSource,
    CoinbaseSpotSource,
    CoinGeckoHistorySource,
    CoinGeckoMarketsSource,
    CoinGeckoSimplePriceSource,
    CoinMarketCapListingsSource,
    CoinMarketCapQuoteSource,
    CoinPaprikaPriceSource,
    CoinPaprikaSource,
    PriceSourceError,
    SourceUnavailableError,
)


__all__ = [
    "BinanceTickerSource",
    "CoinGeckoHistorySource",
    "CoinGeckoMarketsSource",
    "CoinGeckoSimplePriceSource",
    "CoinMarketCapListingsSource",
    "CoinMarketCapQuoteSource",
    "CoinPaprikaPriceSource",
    "CoinPaprikaSource",
    "CoinbaseSpotSource",
    "PriceApiClient",
    "PriceApiError",
    "PriceApiStatusError",
    "PriceSourceError",
    "SourceUnavailableError",
]
