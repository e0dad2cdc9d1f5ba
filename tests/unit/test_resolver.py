"""
Unit tests for PriceResolver.

Tests the tiered token-list resolution, base price chain and history
fallback against scripted fake sources.
"""

import math
from collections.abc import Callable

import pytest

from dexarb.core.types import PricePoint, PriceSource, TokenQuote
from dexarb.exchange.sources import SourceUnavailableError
from dexarb.market.cache import PriceCache
from dexarb.market.resolver import PriceResolver, RetryPolicy
from dexarb.telemetry.metrics import CACHE_HITS, FALLBACK_USED, MetricsCollector
from tests.mocks.sources import (
    FakeClock,
    FakeHistorySource,
    FakePriceSource,
    FakeTopTokensSource,
    RecordingSleep,
)


ResolverFactory = Callable[..., PriceResolver]


class TestRetryPolicy:
    """Tests for the linear backoff policy."""

    def test_delays(self) -> None:
        """Test that attempt N waits N times the base delay."""
        policy = RetryPolicy(max_attempts=3, base_delay=1.5)

        assert [policy.delay_for(i) for i in range(3)] == [0.0, 1.5, 3.0]


class TestTopTokensCache:
    """Tests for cache behaviour of resolve_top_tokens."""

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_sources(
        self,
        make_resolver: ResolverFactory,
        live_tokens: list[TokenQuote],
        fake_clock: FakeClock,
        metrics: MetricsCollector,
    ) -> None:
        """Test that a second call within the TTL does no I/O."""
        primary = FakeTopTokensSource("coingecko", [live_tokens])
        resolver = make_resolver(primary=primary)

        first = await resolver.resolve_top_tokens(10)
        fake_clock.advance(10.0)
        second = await resolver.resolve_top_tokens(10)

        assert first == second
        assert primary.calls == 1
        assert metrics.get_counter(CACHE_HITS) == 1

    @pytest.mark.asyncio
    async def test_stale_cache_refetches(
        self,
        make_resolver: ResolverFactory,
        live_tokens: list[TokenQuote],
        fake_clock: FakeClock,
    ) -> None:
        """Test that an expired snapshot triggers a new fetch."""
        primary = FakeTopTokensSource("coingecko", [live_tokens])
        resolver = make_resolver(primary=primary)

        await resolver.resolve_top_tokens(10)
        fake_clock.advance(70.0)
        await resolver.resolve_top_tokens(10)

        assert primary.calls == 2

    @pytest.mark.asyncio
    async def test_smaller_request_served_from_cache(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that a cached list serves a shorter prefix."""
        primary = FakeTopTokensSource("coingecko", [live_tokens])
        resolver = make_resolver(primary=primary)

        await resolver.resolve_top_tokens(10)
        tokens = await resolver.resolve_top_tokens(3)

        assert [t.id for t in tokens] == ["bitcoin", "ethereum", "tether"]
        assert primary.calls == 1

    @pytest.mark.asyncio
    async def test_short_snapshot_served_padded(
        self,
        make_resolver: ResolverFactory,
        live_tokens: list[TokenQuote],
        fake_clock: FakeClock,
        metrics: MetricsCollector,
    ) -> None:
        """Test that a fresh snapshot shorter than the request is padded, not refetched."""
        primary = FakeTopTokensSource("coingecko", [live_tokens[:9]])
        resolver = make_resolver(primary=primary)

        first = await resolver.resolve_top_tokens(10)
        fake_clock.advance(10.0)
        second = await resolver.resolve_top_tokens(10)

        assert primary.calls == 1
        assert first == second
        assert len(second) == 10
        assert not any(t.is_synthetic for t in second[:9])
        assert second[9].id == "chainlink"
        assert second[9].is_synthetic
        assert metrics.get_counter(CACHE_HITS) == 1

    @pytest.mark.asyncio
    async def test_larger_request_padded_from_cache(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that a larger request within the TTL pads the cached list."""
        primary = FakeTopTokensSource("coingecko", [live_tokens[:5], live_tokens])
        resolver = make_resolver(primary=primary)

        await resolver.resolve_top_tokens(5)
        tokens = await resolver.resolve_top_tokens(8)

        assert primary.calls == 1
        assert [t.id for t in tokens[:5]] == [t.id for t in live_tokens[:5]]
        assert all(t.is_synthetic for t in tokens[5:])
        assert len(tokens) == 8

    @pytest.mark.asyncio
    async def test_force_refresh(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that force_refresh bypasses a fresh snapshot."""
        primary = FakeTopTokensSource("coingecko", [live_tokens])
        resolver = make_resolver(primary=primary)

        await resolver.resolve_top_tokens(10)
        await resolver.refresh(10)

        assert primary.calls == 2


class TestTopTokensTiers:
    """Tests for the primary, alternative and fallback tiers."""

    @pytest.mark.asyncio
    async def test_primary_retried_with_linear_backoff(
        self,
        make_resolver: ResolverFactory,
        recording_sleep: RecordingSleep,
        live_tokens: list[TokenQuote],
    ) -> None:
        """Test three primary attempts with 1s and 2s pauses."""
        primary = FakeTopTokensSource("coingecko", [RuntimeError("503")])
        alternative = FakeTopTokensSource("coinpaprika", [live_tokens])
        resolver = make_resolver(primary=primary, alternatives=[alternative])

        tokens = await resolver.resolve_top_tokens(10)

        assert primary.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]
        assert alternative.calls == 1
        assert tokens == live_tokens

    @pytest.mark.asyncio
    async def test_primary_recovers(
        self,
        make_resolver: ResolverFactory,
        recording_sleep: RecordingSleep,
        live_tokens: list[TokenQuote],
    ) -> None:
        """Test success on the second attempt."""
        primary = FakeTopTokensSource("coingecko", [RuntimeError("timeout"), live_tokens])
        alternative = FakeTopTokensSource("coinpaprika", [live_tokens])
        resolver = make_resolver(primary=primary, alternatives=[alternative])

        tokens = await resolver.resolve_top_tokens(10)

        assert tokens == live_tokens
        assert primary.calls == 2
        assert recording_sleep.delays == [1.0]
        assert alternative.calls == 0

    @pytest.mark.asyncio
    async def test_empty_result_is_a_failure(
        self,
        make_resolver: ResolverFactory,
        live_tokens: list[TokenQuote],
        metrics: MetricsCollector,
    ) -> None:
        """Test that an empty list does not count as success."""
        primary = FakeTopTokensSource("coingecko", [[]])
        alternative = FakeTopTokensSource("coinpaprika", [live_tokens])
        resolver = make_resolver(primary=primary, alternatives=[alternative])

        tokens = await resolver.resolve_top_tokens(10)

        assert tokens == live_tokens
        assert metrics.source_failures() == {"coingecko": 3}

    @pytest.mark.asyncio
    async def test_alternatives_in_order(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that alternatives are tried once each, in order."""
        log: list[str] = []
        unconfigured = FakeTopTokensSource(
            "coinmarketcap", [SourceUnavailableError("no key", "coinmarketcap")], log
        )
        failing = FakeTopTokensSource("coinpaprika", [RuntimeError("boom")], log)
        working = FakeTopTokensSource("backup", [live_tokens], log)
        never = FakeTopTokensSource("unused", [live_tokens], log)
        resolver = make_resolver(alternatives=[unconfigured, failing, working, never])

        await resolver.resolve_top_tokens(10)

        assert log == ["coinmarketcap", "coinpaprika", "backup"]

    @pytest.mark.asyncio
    async def test_unconfigured_source_not_counted(
        self, make_resolver: ResolverFactory, metrics: MetricsCollector
    ) -> None:
        """Test that skipping an unconfigured source is not a failure."""
        unconfigured = FakeTopTokensSource(
            "coinmarketcap", [SourceUnavailableError("no key", "coinmarketcap")]
        )
        resolver = make_resolver(alternatives=[unconfigured])

        await resolver.resolve_top_tokens(5)

        assert "coinmarketcap" not in metrics.source_failures()
        assert metrics.source_failures()["coingecko"] == 3

    @pytest.mark.asyncio
    async def test_fallback_when_everything_fails(
        self,
        make_resolver: ResolverFactory,
        price_cache: PriceCache,
        metrics: MetricsCollector,
    ) -> None:
        """Test that total failure still yields exactly `count` tokens."""
        alternative = FakeTopTokensSource("coinpaprika", [RuntimeError("down")])
        resolver = make_resolver(alternatives=[alternative])

        tokens = await resolver.resolve_top_tokens(50)

        assert len(tokens) == 50
        assert all(t.source is PriceSource.FALLBACK for t in tokens)
        assert tokens[0].id == "bitcoin"
        assert tokens[20].id == "token-21"
        assert price_cache.get() is not None
        assert metrics.get_counter(FALLBACK_USED) == 1

    @pytest.mark.asyncio
    async def test_pads_short_live_result(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that a short live list is topped up without duplicates."""
        primary = FakeTopTokensSource("coingecko", [live_tokens[:2]])
        resolver = make_resolver(primary=primary)

        tokens = await resolver.resolve_top_tokens(5)

        assert [t.id for t in tokens] == [
            "bitcoin",
            "ethereum",
            "tether",
            "binancecoin",
            "solana",
        ]
        assert not tokens[0].is_synthetic
        assert tokens[2].is_synthetic

    @pytest.mark.asyncio
    async def test_truncates_long_live_result(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that a source over-delivering is cut to `count`."""
        primary = FakeTopTokensSource("coingecko", [live_tokens])
        resolver = make_resolver(primary=primary)

        tokens = await resolver.resolve_top_tokens(4)

        assert len(tokens) == 4

    @pytest.mark.asyncio
    async def test_invalid_count(self, make_resolver: ResolverFactory) -> None:
        """Test that a non-positive count raises before any fetch."""
        primary = FakeTopTokensSource("coingecko", [[]])
        resolver = make_resolver(primary=primary)

        with pytest.raises(ValueError):
            await resolver.resolve_top_tokens(0)
        assert primary.calls == 0


class TestBasePrice:
    """Tests for resolve_base_quote and resolve_base_price."""

    @pytest.mark.asyncio
    async def test_cache_hit_by_symbol(
        self, make_resolver: ResolverFactory, live_tokens: list[TokenQuote]
    ) -> None:
        """Test that a fresh snapshot answers without a price source."""
        spot = FakePriceSource("coingecko", PriceSource.COINGECKO, {"eth": 1.0})
        resolver = make_resolver(
            primary=FakeTopTokensSource("coingecko", [live_tokens]),
            price_sources=[spot],
        )
        await resolver.resolve_top_tokens(10)

        quote = await resolver.resolve_base_quote("eth")

        assert quote.price == 3510.0
        assert quote.source is PriceSource.COINGECKO
        assert spot.calls == []

    @pytest.mark.asyncio
    async def test_source_chain(self, make_resolver: ResolverFactory) -> None:
        """Test that failing sources are skipped in order."""
        first = FakePriceSource(
            "coingecko", PriceSource.COINGECKO, {"bitcoin": RuntimeError("429")}
        )
        second = FakePriceSource("binance", PriceSource.BINANCE, {"bitcoin": 65010.0})
        third = FakePriceSource("coinbase", PriceSource.COINBASE, {"bitcoin": 65020.0})
        resolver = make_resolver(price_sources=[first, second, third])

        quote = await resolver.resolve_base_quote("bitcoin")

        assert quote.price == 65010.0
        assert quote.source is PriceSource.BINANCE
        assert third.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_sources_not_called(
        self, make_resolver: ResolverFactory
    ) -> None:
        """Test that gated sources are never queried for other tokens."""
        gated = FakePriceSource(
            "binance", PriceSource.BINANCE, {"solana": 1.0}, supported={"bitcoin"}
        )
        open_source = FakePriceSource("coinpaprika", PriceSource.COINPAPRIKA, {"solana": 146.0})
        resolver = make_resolver(price_sources=[gated, open_source])

        assert await resolver.resolve_base_price("solana") == 146.0
        assert gated.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_price", [0.0, -3.0, math.nan, math.inf])
    async def test_unusable_price_falls_through(
        self, make_resolver: ResolverFactory, bad_price: float
    ) -> None:
        """Test that non-positive or non-finite prices are ignored."""
        bad = FakePriceSource("coingecko", PriceSource.COINGECKO, {"bitcoin": bad_price})
        good = FakePriceSource("coinbase", PriceSource.COINBASE, {"bitcoin": 65000.5})
        resolver = make_resolver(price_sources=[bad, good])

        assert await resolver.resolve_base_price("bitcoin") == 65000.5

    @pytest.mark.asyncio
    async def test_fallback_price(
        self, make_resolver: ResolverFactory, metrics: MetricsCollector
    ) -> None:
        """Test table and default prices when every source fails."""
        down = FakePriceSource("coingecko", PriceSource.COINGECKO)
        resolver = make_resolver(price_sources=[down])

        known = await resolver.resolve_base_quote("ethereum")
        unknown = await resolver.resolve_base_quote("no-such-token")

        assert known.price == 3500.0
        assert known.source is PriceSource.FALLBACK
        assert unknown.price == 10.0
        assert unknown.is_synthetic
        assert metrics.get_counter(FALLBACK_USED) == 2
        assert metrics.source_failures() == {"coingecko": 2}


class TestHistory:
    """Tests for resolve_history."""

    @pytest.mark.asyncio
    async def test_live_history(self, make_resolver: ResolverFactory) -> None:
        """Test that live points are returned unchanged."""
        points = [PricePoint(1, 10.0), PricePoint(2, 11.0)]
        resolver = make_resolver(history_source=FakeHistorySource(points))

        assert await resolver.resolve_history("bitcoin", 1) == points

    @pytest.mark.asyncio
    async def test_synthetic_history(
        self, make_resolver: ResolverFactory, metrics: MetricsCollector
    ) -> None:
        """Test the synthetic series when the source fails."""
        history = FakeHistorySource(RuntimeError("down"))
        resolver = make_resolver(history_source=history, clock_ms=lambda: 1_700_000_000_000)

        points = await resolver.resolve_history("bitcoin", 7)

        assert history.calls == 1
        assert len(points) == 8
        assert points[-1].timestamp_ms == 1_700_000_000_000
        assert all(58500.0 <= p.price <= 71500.0 for p in points)
        assert metrics.source_failures() == {"fake-history": 1}

    @pytest.mark.asyncio
    async def test_no_history_source(self, make_resolver: ResolverFactory) -> None:
        """Test that a resolver without a history source still answers."""
        points = await make_resolver().resolve_history("mystery", 3)

        assert len(points) == 4

    @pytest.mark.asyncio
    async def test_invalid_days(self, make_resolver: ResolverFactory) -> None:
        """Test that fewer than one day is rejected."""
        with pytest.raises(ValueError):
            await make_resolver().resolve_history("bitcoin", 0)
