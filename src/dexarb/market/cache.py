"""
Single-slot cache for the last full token-list fetch.

The cache holds at most one snapshot. Every write replaces it wholesale,
so readers never observe a partially updated list.
"""

import time
from collections.abc import Callable, Sequence

from dexarb.config.constants import PRICE_CACHE_TTL
from dexarb.core.types import PriceCacheEntry, TokenQuote


class PriceCache:
    """
    Time-boxed token snapshot.

    Example:
        >>> cache = PriceCache(ttl_seconds=60)
        >>> cache.set(tokens)
        >>> cache.get()  # snapshot while younger than 60 s, else None
    """

    def __init__(
        self,
        ttl_seconds: float = PRICE_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            ttl_seconds: Maximum snapshot age at which it is still served.
            clock: Monotonic time source in seconds.
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: PriceCacheEntry | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def is_fresh(self) -> bool:
        """Check whether a snapshot exists and is younger than the TTL."""
        return self._entry is not None and self._entry.age(self._clock()) < self._ttl

    def get(self) -> tuple[TokenQuote, ...] | None:
        """Return the snapshot if it is fresh, else None."""
        if self.is_fresh:
            assert self._entry is not None
            return self._entry.snapshot
        return None

    def peek(self) -> PriceCacheEntry | None:
        """Return the stored entry regardless of age."""
        return self._entry

    def set(self, snapshot: Sequence[TokenQuote]) -> None:
        """Replace the snapshot and restart its TTL."""
        self._entry = PriceCacheEntry(snapshot=tuple(snapshot), fetched_at=self._clock())

    def invalidate(self) -> None:
        """Drop the snapshot."""
        self._entry = None

    def age_seconds(self) -> float | None:
        """Age of the stored snapshot, or None when empty."""
        if self._entry is None:
            return None
        return self._entry.age(self._clock())

    def find(self, token_id: str) -> TokenQuote | None:
        """Look up a token by id or symbol in the fresh snapshot."""
        snapshot = self.get()
        if snapshot is None:
            return None
        for token in snapshot:
            if token.matches(token_id):
                return token
        return None
