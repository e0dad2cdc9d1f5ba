"""
Cross-venue arbitrage profit calculation.

Buys a notional amount on the cheapest venue and sells the tokens on the
dearest one. Pure arithmetic over a quote set: no I/O and no state.
"""

import math

from dexarb.config.constants import DEFAULT_INVESTMENT_AMOUNT
from dexarb.core.types import ArbitrageOpportunity, QuoteList, TokenQuote


class InvalidInvestmentError(ValueError):
    """Investment amount is not a positive finite number."""


def validate_investment(investment_amount: float) -> float:
    """
    Check an investment amount.

    Raises:
        InvalidInvestmentError: If the amount is non-positive or not finite.
    """
    if not isinstance(investment_amount, (int, float)) or isinstance(investment_amount, bool):
        raise InvalidInvestmentError(f"Investment amount must be a number, got {investment_amount!r}")
    if not math.isfinite(investment_amount) or investment_amount <= 0:
        raise InvalidInvestmentError(
            f"Investment amount must be positive and finite, got {investment_amount}"
        )
    return float(investment_amount)


class ArbitrageCalculator:
    """
    Computes buy-low/sell-high profit across venue quotes.

    With the default zero fee the result is exactly:
        tokens = investment / low_price
        profit = tokens * high_price - investment
    """

    __slots__ = ("_fee_rate", "_fee_multiplier", "_min_profit_pct")

    def __init__(
        self,
        fee_rate: float = 0.0,
        min_profit_pct: float = 0.0,
    ) -> None:
        """
        Initialize calculator.

        Args:
            fee_rate: Swap fee per leg (e.g., 0.003 = 0.3%), charged on
                both the buy and the sell.
            min_profit_pct: Threshold used by `meets_threshold`.
        """
        if not 0.0 <= fee_rate < 1.0:
            raise ValueError(f"Fee rate must be in [0, 1), got {fee_rate}")
        self._fee_rate = fee_rate
        self._fee_multiplier = 1.0 - fee_rate
        self._min_profit_pct = min_profit_pct

    @property
    def fee_rate(self) -> float:
        return self._fee_rate

    @property
    def min_profit_pct(self) -> float:
        return self._min_profit_pct

    def calculate(
        self,
        quotes: QuoteList,
        investment_amount: float = DEFAULT_INVESTMENT_AMOUNT,
        token: TokenQuote | None = None,
    ) -> ArbitrageOpportunity | None:
        """
        Find the most profitable venue pair for an investment.

        Args:
            quotes: Venue quotes for one token.
            investment_amount: Notional USD amount to trade.
            token: Token the quotes belong to, attached to the result.

        Returns:
            Opportunity when buying on the cheapest venue and selling on
            the dearest is profitable, None otherwise (fewer than two
            quotes, a non-positive buy price, or no positive profit).

        Raises:
            InvalidInvestmentError: If the investment amount is invalid.
        """
        investment = validate_investment(investment_amount)
        if len(quotes) < 2:
            return None

        ordered = sorted(quotes, key=lambda q: q.price)
        low, high = ordered[0], ordered[-1]
        if low.price <= 0:
            return None

        tokens_bought = investment * self._fee_multiplier / low.price
        sell_value = tokens_bought * high.price * self._fee_multiplier
        profit = sell_value - investment
        if profit <= 0:
            return None

        return ArbitrageOpportunity(
            token=token,
            source_venue=low,
            target_venue=high,
            investment_amount=investment,
            profit_absolute=profit,
            profit_percentage=profit / investment * 100.0,
        )

    def meets_threshold(self, opportunity: ArbitrageOpportunity) -> bool:
        """Check an opportunity against the minimum profit percentage."""
        return opportunity.profit_percentage >= self._min_profit_pct


_DEFAULT_CALCULATOR = ArbitrageCalculator()


def detect_opportunity(
    quotes: QuoteList,
    investment_amount: float = DEFAULT_INVESTMENT_AMOUNT,
    token: TokenQuote | None = None,
) -> ArbitrageOpportunity | None:
    """
    Fee-free opportunity detection.

    Example:
        >>> opp = detect_opportunity([quote_at(100.0), quote_at(105.0)], 1000.0)
        >>> opp.profit_absolute, opp.profit_percentage
        (50.0, 5.0)
    """
    return _DEFAULT_CALCULATOR.calculate(quotes, investment_amount, token)
