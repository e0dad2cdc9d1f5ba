"""
Price resolution with tiered fallback.

Token lists are resolved in tiers, stopping at the first that yields
data:

1. fresh cache snapshot
2. primary source, retried with linear backoff
3. alternative sources, each tried once in priority order
4. static fallback table

Single-token prices walk a similar chain of spot sources. Public methods
never raise for upstream failures; they degrade to fallback data and
tag the result with its provenance.
"""

import asyncio
import logging
import math
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from dexarb.config.constants import PRIMARY_MAX_ATTEMPTS, RETRY_BASE_DELAY
from dexarb.core.types import (
    BasePrice,
    BasePriceSource,
    HistorySource,
    MetricsSink,
    PricePoint,
    PriceSource,
    TokenQuote,
    TopTokensSource,
)
from dexarb.exchange.sources import SourceUnavailableError
from dexarb.market.cache import PriceCache
from dexarb.market.fallback import FallbackDataProvider, placeholder_token
from dexarb.telemetry.metrics import CACHE_HITS, FALLBACK_USED
from dexarb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Linear backoff for the primary listing source."""

    max_attempts: int = PRIMARY_MAX_ATTEMPTS
    base_delay: float = RETRY_BASE_DELAY

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before 0-based `attempt`."""
        return attempt * self.base_delay


class PriceResolver:
    """
    Resolves top-token lists, base prices and price history.

    Attributes:
        cache: Snapshot of the last token-list resolution.
        fallback: Static data used when every live source fails.
    """

    def __init__(
        self,
        primary: TopTokensSource,
        alternatives: Sequence[TopTokensSource],
        price_sources: Sequence[BasePriceSource],
        cache: PriceCache,
        fallback: FallbackDataProvider,
        history_source: HistorySource | None = None,
        retry: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
        metrics: MetricsSink | None = None,
        clock_ms: Callable[[], int] = get_timestamp_ms,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            primary: Listing source retried with backoff.
            alternatives: Listing sources tried once each, in order.
            price_sources: Spot price sources tried in order.
            cache: Token snapshot cache.
            fallback: Static fallback data.
            history_source: Optional price history source.
            retry: Backoff policy for the primary source.
            sleep: Coroutine used for backoff waits.
            metrics: Optional metrics sink.
            clock_ms: Wall clock for synthetic history timestamps.
            rng: Random generator for synthetic history.
        """
        self._primary = primary
        self._alternatives = tuple(alternatives)
        self._price_sources = tuple(price_sources)
        self._history_source = history_source
        self._retry = retry or RetryPolicy()
        self._sleep = sleep
        self._metrics = metrics
        self._clock_ms = clock_ms
        self._rng = rng or random.Random()
        self.cache = cache
        self.fallback = fallback

    # =========================================================================
    # Top Tokens
    # =========================================================================

    async def resolve_top_tokens(
        self,
        count: int,
        force_refresh: bool = False,
    ) -> list[TokenQuote]:
        """
        Resolve the top `count` tokens by market cap.

        Args:
            count: Number of tokens wanted.
            force_refresh: Bypass a fresh cache snapshot.

        Returns:
            Exactly `count` tokens. Live results are padded with fallback
            entries when a source returned fewer.

        Raises:
            ValueError: If `count` is less than 1.
        """
        if count < 1:
            raise ValueError(f"Token count must be positive, got {count}")

        if not force_refresh:
            snapshot = self.cache.get()
            if snapshot is not None:
                self._count(CACHE_HITS)
                logger.debug("Serving %d cached tokens", len(snapshot))
                return self._pad(snapshot, count)

        tokens = await self._fetch_primary(count)
        if tokens is None:
            tokens = await self._fetch_alternatives(count)
        if tokens is None:
            logger.warning("All price sources failed, using fallback data")
            self._count(FALLBACK_USED)
            tokens = self.fallback.get_fallback_tokens(count)

        self.cache.set(tokens)
        return self._pad(tokens, count)

    async def refresh(self, count: int) -> list[TokenQuote]:
        """Resolve the token list, ignoring any cached snapshot."""
        return await self.resolve_top_tokens(count, force_refresh=True)

    async def _fetch_primary(self, count: int) -> list[TokenQuote] | None:
        source = self._primary
        attempts = self._retry.max_attempts

        for attempt in range(attempts):
            delay = self._retry.delay_for(attempt)
            if delay > 0:
                await self._sleep(delay)
            try:
                tokens = await source.fetch_top_tokens(count)
            except Exception as e:
                self._source_failed(source.name)
                logger.warning(
                    "%s attempt %d/%d failed: %s", source.name, attempt + 1, attempts, e
                )
                continue

            if tokens:
                logger.info("Fetched %d tokens from %s", len(tokens), source.name)
                return tokens

            self._source_failed(source.name)
            logger.warning(
                "%s attempt %d/%d returned no tokens", source.name, attempt + 1, attempts
            )

        logger.warning("%s exhausted after %d attempts", source.name, attempts)
        return None

    async def _fetch_alternatives(self, count: int) -> list[TokenQuote] | None:
        for source in self._alternatives:
            try:
                tokens = await source.fetch_top_tokens(count)
            except SourceUnavailableError as e:
                logger.info("Skipping %s: %s", source.name, e)
                continue
            except Exception as e:
                self._source_failed(source.name)
                logger.warning("Alternative source %s failed: %s", source.name, e)
                continue

            if tokens:
                logger.info("Fetched %d tokens from alternative source %s", len(tokens), source.name)
                return tokens

            self._source_failed(source.name)
            logger.warning("Alternative source %s returned no tokens", source.name)
        return None

    def _pad(self, tokens: Sequence[TokenQuote], count: int) -> list[TokenQuote]:
        """Truncate or pad to exactly `count` tokens."""
        result = list(tokens[:count])
        if len(result) == count:
            return result

        seen = {t.id for t in result}
        for token in self.fallback.tokens:
            if len(result) == count:
                break
            if token.id not in seen:
                result.append(token)
                seen.add(token.id)

        while len(result) < count:
            result.append(placeholder_token(len(result) + 1))
        return result

    # =========================================================================
    # Base Prices
    # =========================================================================

    async def resolve_base_quote(self, token_id: str) -> BasePrice:
        """
        Resolve a token's reference USD price with its provenance.

        Tries a fresh cache hit by id or symbol, then each price source
        that supports the token, then the fallback table.
        """
        cached = self.cache.find(token_id)
        if cached is not None:
            self._count(CACHE_HITS)
            return BasePrice(token_id=token_id, price=cached.current_price, source=cached.source)

        for source in self._price_sources:
            if not source.supports(token_id):
                continue
            try:
                price = await source.fetch_price(token_id)
            except Exception as e:
                self._source_failed(source.name)
                logger.warning("Price source %s failed for %s: %s", source.name, token_id, e)
                continue

            if price > 0 and math.isfinite(price):
                return BasePrice(token_id=token_id, price=price, source=source.source)

            self._source_failed(source.name)
            logger.warning("Price source %s returned %r for %s", source.name, price, token_id)

        self._count(FALLBACK_USED)
        price = self.fallback.get_fallback_price(token_id)
        logger.warning("No live price for %s, using fallback %s", token_id, price)
        return BasePrice(token_id=token_id, price=price, source=PriceSource.FALLBACK)

    async def resolve_base_price(self, token_id: str) -> float:
        """Resolve a token's reference USD price."""
        quote = await self.resolve_base_quote(token_id)
        return quote.price

    # =========================================================================
    # History
    # =========================================================================

    async def resolve_history(self, token_id: str, days: int = 7) -> list[PricePoint]:
        """
        Resolve daily USD price history.

        Falls back to a synthetic series of `days + 1` points around the
        fallback price when the history source fails.

        Raises:
            ValueError: If `days` is less than 1.
        """
        if days < 1:
            raise ValueError(f"History length must be at least one day, got {days}")

        if self._history_source is not None:
            try:
                return await self._history_source.fetch_history(token_id, days)
            except Exception as e:
                self._source_failed(self._history_source.name)
                logger.warning(
                    "History source %s failed for %s: %s",
                    self._history_source.name,
                    token_id,
                    e,
                )

        self._count(FALLBACK_USED)
        return self.fallback.get_fallback_history(
            token_id, days, now_ms=self._clock_ms(), rng=self._rng
        )

    # =========================================================================
    # Metrics
    # =========================================================================

    def _count(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment_counter(name)

    def _source_failed(self, source: str) -> None:
        if self._metrics:
            self._metrics.record_source_failure(source)
