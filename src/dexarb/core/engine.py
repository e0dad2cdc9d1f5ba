"""
Monitor engine.

Wires the price sources, resolver, simulator and aggregator together
from settings and keeps the latest opportunity list fresh.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any

from dexarb.config.settings import Settings
from dexarb.core.types import ArbitrageOpportunity
from dexarb.exchange.client import PriceApiClient
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
)
from dexarb.market.cache import PriceCache
from dexarb.market.fallback import FallbackDataProvider
from dexarb.market.resolver import PriceResolver, RetryPolicy
from dexarb.simulation.venues import SimulatedVenueQuoteSource, VenueQuoteSimulator
from dexarb.strategy.calculator import ArbitrageCalculator
from dexarb.strategy.opportunity import OpportunityAggregator
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

OpportunityCallback = Callable[[list[ArbitrageOpportunity]], Coroutine[Any, Any, None]]


class EngineNotReadyError(RuntimeError):
    """Engine used before `setup()`."""


class MonitorEngine:
    """
    Orchestrates price resolution and opportunity scanning.

    Manages the lifecycle of:
    - The shared HTTP client
    - Source tiers, cache and resolver
    - Venue simulation and opportunity aggregation
    - Periodic refresh and subscriber callbacks
    """

    def __init__(
        self,
        settings: Settings,
        metrics: MetricsCollector | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            metrics: Metrics collector (a new one by default).
            rng: Random generator shared by the simulator and history fallback.
        """
        self._settings = settings
        self._metrics = metrics or MetricsCollector()
        self._rng = rng or random.Random()
        self._running = False
        self._stop_event = asyncio.Event()
        self._callbacks: list[OpportunityCallback] = []

        # Components (initialized in setup)
        self._client: PriceApiClient | None = None
        self._resolver: PriceResolver | None = None
        self._simulator: VenueQuoteSimulator | None = None
        self._aggregator: OpportunityAggregator | None = None

        # State
        self._latest: list[ArbitrageOpportunity] = []
        self._last_refresh_ms: int | None = None

    def setup(self) -> None:
        """Build all components. No network traffic happens here."""
        s = self._settings
        api_key = (
            s.coinmarketcap_api_key.get_secret_value() if s.coinmarketcap_api_key else None
        )

        self._client = PriceApiClient(metrics=self._metrics)
        client = self._client

        primary = CoinGeckoMarketsSource(client, s.coingecko_base_url, s.listing_timeout)
        alternatives = [
            CoinMarketCapListingsSource(
                client, s.coinmarketcap_base_url, api_key, s.listing_timeout
            ),
            CoinPaprikaSource(client, s.coinpaprika_base_url, s.listing_timeout),
        ]
        price_sources = [
            CoinGeckoSimplePriceSource(client, s.coingecko_base_url, s.price_timeout),
            BinanceTickerSource(client, s.binance_base_url, s.price_timeout),
            CoinbaseSpotSource(client, s.coinbase_base_url, s.price_timeout),
            CoinMarketCapQuoteSource(
                client, s.coinmarketcap_base_url, api_key, s.price_timeout
            ),
            CoinPaprikaPriceSource(client, s.coinpaprika_base_url, s.listing_timeout),
        ]

        fallback = FallbackDataProvider()
        self._resolver = PriceResolver(
            primary=primary,
            alternatives=alternatives,
            price_sources=price_sources,
            cache=PriceCache(ttl_seconds=s.cache_ttl_seconds),
            fallback=fallback,
            history_source=CoinGeckoHistorySource(
                client, s.coingecko_base_url, s.listing_timeout
            ),
            retry=RetryPolicy(max_attempts=s.max_retries, base_delay=s.retry_base_delay),
            metrics=self._metrics,
            rng=self._rng,
        )

        self._simulator = VenueQuoteSimulator(rng=self._rng)
        self._aggregator = OpportunityAggregator(
            resolver=self._resolver,
            quote_source=SimulatedVenueQuoteSource(self._resolver, self._simulator),
            calculator=ArbitrageCalculator(
                fee_rate=s.fee_rate,
                min_profit_pct=s.min_profit_pct,
            ),
            fallback=fallback,
            simulator=self._simulator,
            chunk_size=s.chunk_size,
            chunk_delay=s.chunk_delay,
            metrics=self._metrics,
        )

        logger.info(
            "Engine ready: %d listing sources, %d price sources, CoinMarketCap %s",
            1 + len(alternatives),
            len(price_sources),
            "enabled" if api_key else "disabled",
        )

    # =========================================================================
    # Callbacks
    # =========================================================================

    def add_callback(self, callback: OpportunityCallback) -> None:
        """Register a coroutine called with every refreshed opportunity list."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: OpportunityCallback) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _notify(self, opportunities: list[ArbitrageOpportunity]) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(opportunities)
            except Exception as e:
                logger.error("Opportunity callback failed: %s", e)

    # =========================================================================
    # Refresh Loop
    # =========================================================================

    async def refresh(
        self,
        limit: int | None = None,
        investment_amount: float | None = None,
    ) -> list[ArbitrageOpportunity]:
        """
        Scan for opportunities and store the result as the latest list.

        Args:
            limit: Tokens to scan (default from settings).
            investment_amount: Notional USD amount (default from settings).

        Returns:
            Ranked opportunities.
        """
        if limit is None:
            limit = self._settings.default_token_limit
        if investment_amount is None:
            investment_amount = self._settings.default_investment

        opportunities = await self.aggregator.get_arbitrage_opportunities(
            limit, investment_amount
        )
        self._latest = opportunities
        self._last_refresh_ms = get_timestamp_ms()
        await self._notify(opportunities)
        return opportunities

    async def run(self) -> None:
        """Refresh every `refresh_interval` seconds until `stop()` is called."""
        self._running = True
        self._stop_event.clear()
        interval = self._settings.refresh_interval
        logger.info("Starting refresh loop every %.0fs", interval)

        try:
            while self._running:
                try:
                    await self.refresh()
                except Exception as e:
                    logger.error("Refresh failed: %s", e)

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False

    def stop(self) -> None:
        """Ask the refresh loop to exit."""
        self._running = False
        self._stop_event.set()

    async def shutdown(self) -> None:
        """Stop the loop and release the HTTP session."""
        self.stop()
        if self._client:
            await self._client.close()
        logger.info("Engine shutdown complete")

    # =========================================================================
    # Accessors
    # =========================================================================

    def _require(self, component: Any, name: str) -> Any:
        if component is None:
            raise EngineNotReadyError(f"{name} is not available before setup()")
        return component

    @property
    def resolver(self) -> PriceResolver:
        return self._require(self._resolver, "resolver")  # type: ignore[no-any-return]

    @property
    def simulator(self) -> VenueQuoteSimulator:
        return self._require(self._simulator, "simulator")  # type: ignore[no-any-return]

    @property
    def aggregator(self) -> OpportunityAggregator:
        return self._require(self._aggregator, "aggregator")  # type: ignore[no-any-return]

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def latest_opportunities(self) -> list[ArbitrageOpportunity]:
        return list(self._latest)

    @property
    def last_refresh_ms(self) -> int | None:
        return self._last_refresh_ms

    @property
    def is_running(self) -> bool:
        return self._running


@asynccontextmanager
async def create_engine(settings: Settings) -> AsyncIterator[MonitorEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.refresh()
    """
    engine = MonitorEngine(settings)
    try:
        engine.setup()
        yield engine
    finally:
        await engine.shutdown()
