"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import random
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from dexarb.core.types import TokenQuote, Venue, VenueQuote
from dexarb.market.cache import PriceCache
from dexarb.market.fallback import FallbackDataProvider
from dexarb.market.resolver import PriceResolver, RetryPolicy
from dexarb.strategy.calculator import ArbitrageCalculator
from dexarb.telemetry.metrics import MetricsCollector
from tests.mocks.factories import make_quote, make_token
from tests.mocks.sources import (
    FakeClock,
    FakePriceSource,
    FakeTopTokensSource,
    RecordingSleep,
)


# =============================================================================
# Time & Randomness
# =============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Monotonic clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep that records delays without waiting."""
    return RecordingSleep()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator."""
    return random.Random(42)


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def live_tokens() -> list[TokenQuote]:
    """Ten live tokens ranked by market cap."""
    return [
        make_token("bitcoin", 65100.0, "btc", 1),
        make_token("ethereum", 3510.0, "eth", 2),
        make_token("tether", 1.0, "usdt", 3),
        make_token("binancecoin", 572.0, "bnb", 4),
        make_token("solana", 146.0, "sol", 5),
        make_token("ripple", 0.53, "xrp", 6),
        make_token("cardano", 0.46, "ada", 7),
        make_token("dogecoin", 0.13, "doge", 8),
        make_token("polkadot", 6.9, "dot", 9),
        make_token("chainlink", 14.6, "link", 10),
    ]


@pytest.fixture
def quotes_100_105() -> list[VenueQuote]:
    """Two quotes with a 5% spread."""
    return [
        make_quote(Venue.SUSHISWAP, 105.0),
        make_quote(Venue.UNISWAP, 100.0),
    ]


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector."""
    return MetricsCollector()


@pytest.fixture
def price_cache(fake_clock: FakeClock) -> PriceCache:
    """Cache with a 60s TTL on the fake clock."""
    return PriceCache(ttl_seconds=60.0, clock=fake_clock)


@pytest.fixture
def fallback() -> FallbackDataProvider:
    """Default fallback data provider."""
    return FallbackDataProvider()


@pytest.fixture
def calculator() -> ArbitrageCalculator:
    """Fee-free calculator."""
    return ArbitrageCalculator()


@pytest.fixture
def make_resolver(
    price_cache: PriceCache,
    fallback: FallbackDataProvider,
    recording_sleep: RecordingSleep,
    metrics: MetricsCollector,
) -> Callable[..., PriceResolver]:
    """
    Factory for resolvers over fake sources.

    Defaults: a primary that always fails, no alternatives and no price
    sources, sharing the fixture cache, sleep and metrics.
    """

    def factory(
        primary: FakeTopTokensSource | None = None,
        alternatives: Sequence[FakeTopTokensSource] = (),
        price_sources: Sequence[FakePriceSource] = (),
        **kwargs: Any,
    ) -> PriceResolver:
        return PriceResolver(
            primary=primary or FakeTopTokensSource("coingecko", [RuntimeError("down")]),
            alternatives=alternatives,
            price_sources=price_sources,
            cache=kwargs.pop("cache", price_cache),
            fallback=kwargs.pop("fallback", fallback),
            retry=kwargs.pop("retry", RetryPolicy(max_attempts=3, base_delay=1.0)),
            sleep=kwargs.pop("sleep", recording_sleep),
            metrics=kwargs.pop("metrics", metrics),
            rng=kwargs.pop("rng", random.Random(7)),
            **kwargs,
        )

    return factory
