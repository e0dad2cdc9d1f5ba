"""Arbitrage detection and opportunity aggregation."""

from dexarb.strategy.calculator import (
    ArbitrageCalculator,
    InvalidInvestmentError,
    detect_opportunity,
    validate_investment,
)
from dexarb.strategy.opportunity import OpportunityAggregator


__all__ = [
    "ArbitrageCalculator",
    "InvalidInvestmentError",
    "OpportunityAggregator",
    "detect_opportunity",
    "validate_investment",
]
