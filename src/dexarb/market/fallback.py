"""
Static fallback market data.

Used when every live source has failed. Everything here is deterministic
except the synthetic price history, whose random generator is injectable.
"""

import random
from collections.abc import Iterable

from dexarb.config.constants import (
    DEFAULT_FALLBACK_PRICE,
    DEFAULT_HISTORY_PRICE,
    HISTORY_VARIANCE,
    PLACEHOLDER_IMAGE,
    PLACEHOLDER_MARKET_CAP_BASE,
    PLACEHOLDER_PRICE_BASE,
)
from dexarb.core.types import PricePoint, PriceSource, TokenQuote


_IMG = "https://assets.coingecko.com/coins/images/{}/large/{}"

# (id, symbol, name, image, price, 24h change %, market cap, 24h volume)
_FALLBACK_ROWS: tuple[tuple[str, str, str, str, float, float, float, float], ...] = (
    ("bitcoin", "btc", "Bitcoin", _IMG.format(1, "bitcoin.png"),
     65000.0, 1.5, 1.27e12, 25e9),
    ("ethereum", "eth", "Ethereum", _IMG.format(279, "ethereum.png"),
     3500.0, 2.1, 420e9, 15e9),
    ("tether", "usdt", "Tether", _IMG.format(325, "Tether.png"),
     1.0, 0.01, 95e9, 50e9),
    ("binancecoin", "bnb", "BNB", _IMG.format(825, "bnb-icon2_2x.png"),
     570.0, 0.8, 87e9, 1.2e9),
    ("solana", "sol", "Solana", _IMG.format(4128, "solana.png"),
     145.0, 3.2, 65e9, 2.5e9),
    ("ripple", "xrp", "XRP", _IMG.format(44, "xrp-symbol-white-128.png"),
     0.52, -0.8, 28e9, 1e9),
    ("cardano", "ada", "Cardano", _IMG.format(975, "cardano.png"),
     0.45, 1.2, 16e9, 400e6),
    ("dogecoin", "doge", "Dogecoin", _IMG.format(5, "dogecoin.png"),
     0.12, -1.5, 17e9, 500e6),
    ("polkadot", "dot", "Polkadot", _IMG.format(12171, "polkadot.png"),
     6.8, 2.3, 9.8e9, 300e6),
    ("chainlink", "link", "Chainlink", _IMG.format(877, "chainlink-new-logo.png"),
     14.5, 4.1, 8.5e9, 450e6),
    ("polygon", "matic", "Polygon", _IMG.format(4713, "matic-token-icon.png"),
     0.58, 1.8, 6e9, 350e6),
    ("avalanche-2", "avax", "Avalanche", _IMG.format(12559, "Avalanche_Circle_RedWhite_Trans.png"),
     35.0, 3.5, 13e9, 400e6),
    ("uniswap", "uni", "Uniswap", _IMG.format(12504, "uniswap-uni.png"),
     7.2, 2.7, 4.5e9, 200e6),
    ("dai", "dai", "Dai", _IMG.format(9956, "4943.png"),
     1.0, 0.02, 5.2e9, 300e6),
    ("shiba-inu", "shib", "Shiba Inu", _IMG.format(11939, "shiba.png"),
     0.000018, -2.1, 10.5e9, 250e6),
    ("litecoin", "ltc", "Litecoin", _IMG.format(2, "litecoin.png"),
     78.0, 1.3, 5.8e9, 350e6),
    ("cosmos", "atom", "Cosmos", _IMG.format(1481, "cosmos_hub.png"),
     8.5, 2.9, 3.2e9, 180e6),
    ("stellar", "xlm", "Stellar", _IMG.format(100, "Stellar_symbol_black_RGB.png"),
     0.11, 0.5, 3.1e9, 120e6),
    ("monero", "xmr", "Monero", _IMG.format(69, "monero_logo.png"),
     175.0, 1.7, 3.2e9, 110e6),
    ("aave", "aave", "Aave", _IMG.format(12645, "AAVE.png"),
     98.0, 3.8, 1.5e9, 95e6),
)

FALLBACK_TOKENS: tuple[TokenQuote, ...] = tuple(
    TokenQuote(
        id=token_id,
        symbol=symbol,
        name=name,
        image=image,
        current_price=price,
        market_cap=market_cap,
        price_change_24h=change,
        market_cap_rank=rank,
        total_volume=volume,
        source=PriceSource.FALLBACK,
    )
    for rank, (token_id, symbol, name, image, price, change, market_cap, volume)
    in enumerate(_FALLBACK_ROWS, start=1)
)

# Ids that other listings use for tokens in the table
FALLBACK_PRICE_ALIASES: dict[str, float] = {
    "usd-coin": 1.0,
    "matic-network": 0.58,
}


def placeholder_token(rank: int) -> TokenQuote:
    """Synthetic token filling a list beyond the fallback table."""
    return TokenQuote(
        id=f"token-{rank}",
        symbol=f"tok{rank}",
        name=f"Token {rank}",
        image=PLACEHOLDER_IMAGE,
        current_price=PLACEHOLDER_PRICE_BASE / rank,
        market_cap=PLACEHOLDER_MARKET_CAP_BASE / rank,
        price_change_24h=0.0,
        market_cap_rank=rank,
        source=PriceSource.FALLBACK,
    )


class FallbackDataProvider:
    """Serves the static table; never fails and never performs I/O."""

    def __init__(
        self,
        tokens: Iterable[TokenQuote] = FALLBACK_TOKENS,
        default_price: float = DEFAULT_FALLBACK_PRICE,
    ) -> None:
        self._tokens = tuple(tokens)
        self._default_price = default_price

    @property
    def tokens(self) -> tuple[TokenQuote, ...]:
        return self._tokens

    def get_fallback_tokens(self, count: int) -> list[TokenQuote]:
        """
        Get the first `count` fallback tokens.

        Beyond the table, placeholder tokens are generated with
        rank-derived prices and market caps.

        Args:
            count: Number of tokens requested.

        Returns:
            Exactly `count` tokens (empty for `count <= 0`).
        """
        if count <= 0:
            return []
        tokens = list(self._tokens[:count])
        for rank in range(len(tokens) + 1, count + 1):
            tokens.append(placeholder_token(rank))
        return tokens

    def find(self, token_id: str) -> TokenQuote | None:
        """Look up a table token by id or symbol."""
        for token in self._tokens:
            if token.matches(token_id):
                return token
        return None

    def get_fallback_price(self, token_id: str) -> float:
        """Table price for a token id or symbol, else the default price."""
        token = self.find(token_id)
        if token is not None:
            return token.current_price
        return FALLBACK_PRICE_ALIASES.get(token_id, self._default_price)

    def get_fallback_history(
        self,
        token_id: str,
        days: int,
        now_ms: int,
        rng: random.Random | None = None,
    ) -> list[PricePoint]:
        """
        Build a synthetic daily price history.

        Args:
            token_id: Token id or symbol.
            days: Number of days back from `now_ms`.
            now_ms: Timestamp of the last point in milliseconds.
            rng: Random generator; seed it for reproducible series.

        Returns:
            `days + 1` points, oldest first, each within
            +/- HISTORY_VARIANCE of the reference price.
        """
        rng = rng or random.Random()
        token = self.find(token_id)
        if token is not None:
            reference = token.current_price
        else:
            reference = FALLBACK_PRICE_ALIASES.get(token_id, DEFAULT_HISTORY_PRICE)

        day_ms = 24 * 60 * 60 * 1000
        points = []
        for i in range(max(days, 0) + 1):
            factor = 1.0 + rng.uniform(-HISTORY_VARIANCE, HISTORY_VARIANCE)
            points.append(
                PricePoint(
                    timestamp_ms=now_ms - (days - i) * day_ms,
                    price=reference * factor,
                )
            )
        return points
