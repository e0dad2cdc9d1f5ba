"""
Per-venue quote simulator.

Generates DEX quotes scattered around a resolved base price so the
detector has something to compare until real on-chain quotes are wired
in. Every venue has a fixed variance band, so simulated prices never
stray further from the base price than that venue's half-width.
"""

import logging
import math
import random
from dataclasses import dataclass

from dexarb.core.types import PriceSource, Venue, VenueQuote
from dexarb.market.resolver import PriceResolver


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class VenueProfile:
    """Simulation parameters for one venue."""

    venue: Venue
    half_width: float  # price variance, fraction of base price
    volume_min: float
    volume_span: float
    liquidity_min: float
    liquidity_span: float

    @property
    def volume_range(self) -> tuple[float, float]:
        return self.volume_min, self.volume_min + self.volume_span

    @property
    def liquidity_range(self) -> tuple[float, float]:
        return self.liquidity_min, self.liquidity_min + self.liquidity_span


VENUE_PROFILES: tuple[VenueProfile, ...] = (
    VenueProfile(Venue.UNISWAP, 0.003, 5e6, 10e6, 10e6, 50e6),
    VenueProfile(Venue.SUSHISWAP, 0.005, 3e6, 8e6, 8e6, 40e6),
    VenueProfile(Venue.PANCAKESWAP, 0.006, 4e6, 9e6, 9e6, 45e6),
    VenueProfile(Venue.CURVE, 0.004, 3.5e6, 7e6, 7e6, 35e6),
    VenueProfile(Venue.BALANCER, 0.007, 2e6, 6e6, 6e6, 30e6),
)

# Exchange name -> half-width for the price comparison view
EXCHANGE_PROFILES: dict[str, float] = {
    "Binance": 0.01,
    "Coinbase": 0.01,
    "Kraken": 0.01,
    "Huobi": 0.01,
    "KuCoin": 0.01,
    "Uniswap": 0.015,
    "SushiSwap": 0.015,
}


def _require_base_price(base_price: float) -> None:
    if not (base_price > 0 and math.isfinite(base_price)):
        raise ValueError(f"Base price must be positive, got {base_price}")


class VenueQuoteSimulator:
    """
    Simulates venue quotes with bounded uniform variance.

    Example:
        >>> sim = VenueQuoteSimulator(rng=random.Random(42))
        >>> quotes = sim.simulate(1000.0)
        >>> [q.venue.value for q in quotes]
        ['Uniswap', 'SushiSwap', 'PancakeSwap', 'Curve', 'Balancer']
    """

    def __init__(
        self,
        profiles: tuple[VenueProfile, ...] = VENUE_PROFILES,
        exchange_profiles: dict[str, float] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the simulator.

        Args:
            profiles: Venue profiles, in output order.
            exchange_profiles: Exchange half-widths for the comparison view.
            rng: Random generator; seed it for reproducible quotes.
        """
        self._profiles = profiles
        self._exchange_profiles = exchange_profiles or EXCHANGE_PROFILES
        self._rng = rng or random.Random()

    @property
    def venues(self) -> list[Venue]:
        return [p.venue for p in self._profiles]

    def _vary(self, base_price: float, half_width: float) -> float:
        return base_price * (1.0 + self._rng.uniform(-half_width, half_width))

    def simulate(self, base_price: float, synthetic: bool = False) -> list[VenueQuote]:
        """
        Simulate one quote per venue.

        Args:
            base_price: Reference USD price.
            synthetic: Mark quotes as derived from fallback data.

        Returns:
            One VenueQuote per profile, in profile order.

        Raises:
            ValueError: If `base_price` is not a positive finite number.
        """
        _require_base_price(base_price)

        quotes = []
        for profile in self._profiles:
            quotes.append(
                VenueQuote(
                    venue=profile.venue,
                    price=self._vary(base_price, profile.half_width),
                    volume_24h=self._rng.uniform(*profile.volume_range),
                    liquidity=self._rng.uniform(*profile.liquidity_range),
                    synthetic=synthetic,
                )
            )
        return quotes

    def simulate_exchange_prices(self, base_price: float) -> dict[str, float]:
        """
        Simulate the cross-exchange price comparison view.

        Returns:
            Exchange name -> simulated USD price.

        Raises:
            ValueError: If `base_price` is not a positive finite number.
        """
        _require_base_price(base_price)
        return {
            name: self._vary(base_price, half_width)
            for name, half_width in self._exchange_profiles.items()
        }


class SimulatedVenueQuoteSource:
    """
    Venue quote source backed by the simulator.

    Resolves the token's base price first; quotes derived from a
    fallback price are flagged synthetic.
    """

    def __init__(self, resolver: PriceResolver, simulator: VenueQuoteSimulator) -> None:
        self._resolver = resolver
        self._simulator = simulator

    async def get_venue_quotes(self, token_id: str) -> list[VenueQuote]:
        base = await self._resolver.resolve_base_quote(token_id)
        synthetic = base.source is PriceSource.FALLBACK
        logger.debug(
            "Simulating venue quotes for %s around %s (%s)",
            token_id,
            base.price,
            base.source.value,
        )
        return self._simulator.simulate(base.price, synthetic=synthetic)
