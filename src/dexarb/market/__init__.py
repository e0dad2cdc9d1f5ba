"""Price caching, fallback data and tiered price resolution."""

from dexarb.market.cache import PriceCache
from dexarb.market.fallback import FALLBACK_TOKENS, FallbackDataProvider
from dexarb.market.resolver import PriceResolver, RetryPolicy


__all__ = [
    "FALLBACK_TOKENS",
    "FallbackDataProvider",
    "PriceCache",
    "PriceResolver",
    "RetryPolicy",
]
