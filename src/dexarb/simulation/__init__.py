"""Simulated venue quotes."""

from dexarb.simulation.venues import (
    EXCHANGE_PROFILES,
    VENUE_PROFILES,
    SimulatedVenueQuoteSource,
    VenueProfile,
    VenueQuoteSimulator,
)


__all__ = [
    "EXCHANGE_PROFILES",
    "VENUE_PROFILES",
    "SimulatedVenueQuoteSource",
    "VenueProfile",
    "VenueQuoteSimulator",
]
