"""
Opportunity aggregation across many tokens.

Tokens are processed in fixed-size chunks: quotes for every token of a
chunk are resolved concurrently, and the next chunk starts only after the
whole chunk has settled and a pause has elapsed. This keeps the burst of
upstream requests per interval bounded.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from dexarb.config.constants import CHUNK_DELAY, CHUNK_SIZE, DEFAULT_INVESTMENT_AMOUNT
from dexarb.core.types import (
    ArbitrageOpportunity,
    MetricsSink,
    TokenQuote,
    TokenVenueQuotes,
    VenueQuoteSource,
)
from dexarb.market.fallback import FallbackDataProvider
from dexarb.market.resolver import PriceResolver
from dexarb.simulation.venues import VenueQuoteSimulator
from dexarb.strategy.calculator import ArbitrageCalculator, validate_investment
from dexarb.telemetry.metrics import (
    FALLBACK_USED,
    OPPORTUNITIES_FOUND,
    OPPORTUNITY_SCANS,
)
from dexarb.utils.batching import chunked


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

# Tokens need quotes from at least this many venues to be compared
MIN_VENUES = 2


class OpportunityAggregator:
    """
    Scans the top tokens for cross-venue opportunities.

    Per-token failures drop that token. A failure of the pipeline as a
    whole degrades to synthetic data built from the fallback table, so
    the public methods do not raise for upstream problems.
    """

    def __init__(
        self,
        resolver: PriceResolver,
        quote_source: VenueQuoteSource,
        calculator: ArbitrageCalculator,
        fallback: FallbackDataProvider,
        simulator: VenueQuoteSimulator | None = None,
        chunk_size: int = CHUNK_SIZE,
        chunk_delay: float = CHUNK_DELAY,
        sleep: SleepFunc = asyncio.sleep,
        metrics: MetricsSink | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            resolver: Resolves the token list.
            quote_source: Produces venue quotes per token.
            calculator: Profit calculator and threshold.
            fallback: Static data for the degraded path.
            simulator: Builds venue quotes for the degraded path.
            chunk_size: Tokens resolved concurrently.
            chunk_delay: Seconds to pause between chunks.
            sleep: Coroutine used for the pause.
            metrics: Optional metrics sink.
        """
        if chunk_size < 1:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self._resolver = resolver
        self._quote_source = quote_source
        self._calculator = calculator
        self._fallback = fallback
        self._simulator = simulator or VenueQuoteSimulator()
        self._chunk_size = chunk_size
        self._chunk_delay = chunk_delay
        self._sleep = sleep
        self._metrics = metrics

    @property
    def calculator(self) -> ArbitrageCalculator:
        return self._calculator

    async def get_token_venue_quotes(self, limit: int) -> list[TokenVenueQuotes]:
        """
        Resolve venue quotes for the top `limit` tokens.

        Returns:
            One record per token that produced at least two venue quotes,
            in token-list order.

        Raises:
            ValueError: If `limit` is less than 1.
        """
        if limit < 1:
            raise ValueError(f"Limit must be positive, got {limit}")
        try:
            return await self._collect(limit)
        except Exception as e:
            logger.error("Opportunity pipeline failed, using fallback data: %s", e)
            return self._fallback_records(limit)

    async def get_arbitrage_opportunities(
        self,
        limit: int,
        investment_amount: float = DEFAULT_INVESTMENT_AMOUNT,
    ) -> list[ArbitrageOpportunity]:
        """
        Find opportunities among the top `limit` tokens.

        Args:
            limit: Number of top tokens to scan.
            investment_amount: Notional USD amount per opportunity.

        Returns:
            Opportunities meeting the calculator threshold, highest
            profit percentage first.

        Raises:
            InvalidInvestmentError: If the investment amount is invalid.
            ValueError: If `limit` is less than 1.
        """
        investment = validate_investment(investment_amount)
        records = await self.get_token_venue_quotes(limit)
        if self._metrics:
            self._metrics.increment_counter(OPPORTUNITY_SCANS)

        opportunities = []
        for record in records:
            opp = self._calculator.calculate(record.quotes, investment, record.token)
            if opp is not None and self._calculator.meets_threshold(opp):
                opportunities.append(opp)

        opportunities.sort(key=lambda o: o.profit_percentage, reverse=True)
        if self._metrics:
            self._metrics.increment_counter(OPPORTUNITIES_FOUND, len(opportunities))
        logger.info(
            "Found %d opportunities across %d tokens", len(opportunities), len(records)
        )
        return opportunities

    async def _collect(self, limit: int) -> list[TokenVenueQuotes]:
        tokens = await self._resolver.resolve_top_tokens(limit)
        chunks = list(chunked(tokens, self._chunk_size))

        records: list[TokenVenueQuotes] = []
        for index, chunk in enumerate(chunks):
            results = await asyncio.gather(
                *(self._quote_token(token) for token in chunk),
                return_exceptions=True,
            )
            for token, result in zip(chunk, results):
                if isinstance(result, BaseException):
                    logger.warning("Dropping %s: %s", token.id, result)
                elif result is not None:
                    records.append(result)

            if index < len(chunks) - 1:
                await self._sleep(self._chunk_delay)
        return records

    async def _quote_token(self, token: TokenQuote) -> TokenVenueQuotes | None:
        quotes = await self._quote_source.get_venue_quotes(token.id)
        if len(quotes) < MIN_VENUES:
            logger.debug("Skipping %s: only %d venue quotes", token.id, len(quotes))
            return None
        return TokenVenueQuotes(token=token, quotes=tuple(quotes))

    def _fallback_records(self, limit: int) -> list[TokenVenueQuotes]:
        if self._metrics:
            self._metrics.increment_counter(FALLBACK_USED)
        return [
            TokenVenueQuotes(
                token=token,
                quotes=tuple(self._simulator.simulate(token.current_price, synthetic=True)),
            )
            for token in self._fallback.get_fallback_tokens(limit)
        ]
