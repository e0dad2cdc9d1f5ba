"""
Upstream price sources.

Each source wraps one endpoint of one price API and converts its payload
into the monitor's types. Sources raise on any failure; deciding what to
do next is the resolver's job.

Listing sources implement `TopTokensSource`, spot sources implement
`BasePriceSource`.
"""

import asyncio
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from dexarb.config.constants import (
    BINANCE_TOKEN_IDS,
    CMC_API_KEY_HEADER,
    CMC_IMAGE_URL,
    COINBASE_TOKEN_IDS,
    ENDPOINT_BINANCE_TICKER_PRICE,
    ENDPOINT_CMC_LISTINGS,
    ENDPOINT_CMC_QUOTES,
    ENDPOINT_COINBASE_SPOT,
    ENDPOINT_COINS_MARKETS,
    ENDPOINT_MARKET_CHART,
    ENDPOINT_PAPRIKA_COIN,
    ENDPOINT_PAPRIKA_COINS,
    ENDPOINT_PAPRIKA_TICKER,
    ENDPOINT_PAPRIKA_TICKERS,
    ENDPOINT_SIMPLE_PRICE,
    LISTING_TIMEOUT,
    PRICE_TIMEOUT,
    token_symbol,
)
from dexarb.core.types import PricePoint, PriceSource, TokenQuote
from dexarb.exchange.client import PriceApiClient
from dexarb.exchange.models import (
    BinanceTickerPrice,
    CmcListingsResponse,
    CmcQuotesResponse,
    CoinbaseSpot,
    CoinGeckoMarket,
    MarketChart,
    PaprikaCoin,
    PaprikaTicker,
    SimplePrice,
)


logger = logging.getLogger(__name__)


class PriceSourceError(Exception):
    """Source answered, but the payload is unusable for the request."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class SourceUnavailableError(PriceSourceError):
    """Source is not configured (e.g., missing API key)."""


_MARKETS = TypeAdapter(list[CoinGeckoMarket])
_TICKERS = TypeAdapter(list[PaprikaTicker])
_COINS = TypeAdapter(list[PaprikaCoin])
_SIMPLE_PRICES = TypeAdapter(dict[str, SimplePrice])


def _require_list(data: Any, source: str) -> list[Any]:
    """Reject payloads that are not JSON arrays."""
    if not isinstance(data, list):
        raise PriceSourceError(
            f"{source}: expected an array, got {type(data).__name__}", source
        )
    return data


def _validate(adapter_or_model: Any, data: Any, source: str) -> Any:
    """Validate a payload, converting pydantic errors to PriceSourceError."""
    try:
        if isinstance(adapter_or_model, TypeAdapter):
            return adapter_or_model.validate_python(data)
        return adapter_or_model.model_validate(data)
    except ValidationError as e:
        raise PriceSourceError(
            f"{source}: malformed payload ({e.error_count()} errors)", source
        ) from e


def _positive_price(price: float | None, source: str, token_id: str) -> float:
    if price is None or price <= 0:
        raise PriceSourceError(f"{source}: no usable price for {token_id}", source)
    return float(price)


# =============================================================================
# Top Token Listings
# =============================================================================


class CoinGeckoMarketsSource:
    """Primary listing source: CoinGecko `/coins/markets` by market cap."""

    name = PriceSource.COINGECKO.value

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = LISTING_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout

    async def fetch_top_tokens(self, count: int) -> list[TokenQuote]:
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_COINS_MARKETS}",
            params={
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "per_page": count,
                "page": 1,
                "sparkline": "false",
                "price_change_percentage": "24h",
            },
            timeout=self._timeout,
            source=self.name,
        )
        markets: list[CoinGeckoMarket] = _validate(
            _MARKETS, _require_list(data, self.name), self.name
        )

        tokens = []
        for m in markets:
            if m.current_price is None or m.current_price <= 0:
                logger.debug("%s: skipping %s without a price", self.name, m.id)
                continue
            tokens.append(
                TokenQuote(
                    id=m.id,
                    symbol=m.symbol.lower(),
                    name=m.name,
                    image=m.image,
                    current_price=m.current_price,
                    market_cap=m.market_cap or 0.0,
                    price_change_24h=m.price_change_percentage_24h or 0.0,
                    market_cap_rank=m.market_cap_rank,
                    total_volume=m.total_volume or 0.0,
                    source=PriceSource.COINGECKO,
                )
            )
        return tokens[:count]


class CoinMarketCapListingsSource:
    """Alternative listing source; requires a CoinMarketCap API key."""

    name = PriceSource.COINMARKETCAP.value

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        api_key: str | None,
        timeout: float = LISTING_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout

    async def fetch_top_tokens(self, count: int) -> list[TokenQuote]:
        if not self._api_key:
            raise SourceUnavailableError(f"{self.name}: no API key configured", self.name)

        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_CMC_LISTINGS}",
            params={"start": 1, "limit": count, "convert": "USD"},
            headers={CMC_API_KEY_HEADER: self._api_key},
            timeout=self._timeout,
            source=self.name,
        )
        listings: CmcListingsResponse = _validate(CmcListingsResponse, data, self.name)

        tokens = []
        for item in listings.data:
            usd = item.quote.usd
            if usd.price is None or usd.price <= 0:
                continue
            tokens.append(
                TokenQuote(
                    id=item.slug,
                    symbol=item.symbol.lower(),
                    name=item.name,
                    image=CMC_IMAGE_URL.format(cmc_id=item.id),
                    current_price=usd.price,
                    market_cap=usd.market_cap or 0.0,
                    price_change_24h=usd.percent_change_24h or 0.0,
                    market_cap_rank=item.cmc_rank,
                    total_volume=usd.volume_24h or 0.0,
                    source=PriceSource.COINMARKETCAP,
                )
            )
        return tokens[:count]


class CoinPaprikaSource:
    """
    Alternative listing source backed by CoinPaprika tickers.

    Tickers carry no logo, so every item needs a `/coins/{id}` request.
    An item whose metadata request fails is dropped; the rest are kept.
    """

    name = PriceSource.COINPAPRIKA.value

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = LISTING_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout

    async def fetch_top_tokens(self, count: int) -> list[TokenQuote]:
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_PAPRIKA_TICKERS}",
            params={"limit": count},
            timeout=self._timeout,
            source=self.name,
        )
        tickers: list[PaprikaTicker] = _validate(
            _TICKERS, _require_list(data, self.name), self.name
        )[:count]

        results = await asyncio.gather(
            *(self._with_logo(t) for t in tickers),
            return_exceptions=True,
        )

        tokens = []
        for ticker, result in zip(tickers, results):
            if isinstance(result, BaseException):
                logger.warning("%s: dropping %s: %s", self.name, ticker.id, result)
                continue
            if result is not None:
                tokens.append(result)
        return tokens

    async def _with_logo(self, ticker: PaprikaTicker) -> TokenQuote | None:
        usd = ticker.quotes.usd
        if usd.price is None or usd.price <= 0:
            return None

        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_PAPRIKA_COIN.format(coin_id=ticker.id)}",
            timeout=self._timeout,
            source=self.name,
        )
        coin: PaprikaCoin = _validate(PaprikaCoin, data, self.name)

        return TokenQuote(
            id=ticker.id,
            symbol=ticker.symbol.lower(),
            name=ticker.name,
            image=coin.logo,
            current_price=usd.price,
            market_cap=usd.market_cap or 0.0,
            price_change_24h=usd.percent_change_24h or 0.0,
            market_cap_rank=ticker.rank,
            total_volume=usd.volume_24h or 0.0,
            source=PriceSource.COINPAPRIKA,
        )


# =============================================================================
# Single-Token Spot Prices
# =============================================================================


class CoinGeckoSimplePriceSource:
    """CoinGecko `/simple/price`, covers any CoinGecko id."""

    name = PriceSource.COINGECKO.value
    source = PriceSource.COINGECKO

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = PRICE_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout

    def supports(self, token_id: str) -> bool:
        return True

    async def fetch_price(self, token_id: str) -> float:
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_SIMPLE_PRICE}",
            params={"ids": token_id, "vs_currencies": "usd"},
            timeout=self._timeout,
            source=self.name,
        )
        prices: dict[str, SimplePrice] = _validate(_SIMPLE_PRICES, data, self.name)
        entry = prices.get(token_id)
        if entry is None:
            raise PriceSourceError(f"{self.name}: token {token_id} not found", self.name)
        return _positive_price(entry.usd, self.name, token_id)


class BinanceTickerSource:
    """Binance USDT spot ticker for a handful of majors."""

    name = PriceSource.BINANCE.value
    source = PriceSource.BINANCE

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = PRICE_TIMEOUT,
        token_ids: frozenset[str] = BINANCE_TOKEN_IDS,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout
        self._token_ids = token_ids

    def supports(self, token_id: str) -> bool:
        return token_id in self._token_ids

    async def fetch_price(self, token_id: str) -> float:
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_BINANCE_TICKER_PRICE}",
            params={"symbol": f"{token_symbol(token_id)}USDT"},
            timeout=self._timeout,
            source=self.name,
        )
        ticker: BinanceTickerPrice = _validate(BinanceTickerPrice, data, self.name)
        return _positive_price(ticker.price, self.name, token_id)


class CoinbaseSpotSource:
    """Coinbase USD spot price for a handful of majors."""

    name = PriceSource.COINBASE.value
    source = PriceSource.COINBASE

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = PRICE_TIMEOUT,
        token_ids: frozenset[str] = COINBASE_TOKEN_IDS,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout
        self._token_ids = token_ids

    def supports(self, token_id: str) -> bool:
        return token_id in self._token_ids

    async def fetch_price(self, token_id: str) -> float:
        endpoint = ENDPOINT_COINBASE_SPOT.format(symbol=token_symbol(token_id))
        data = await self._client.get_json(
            f"{self._base_url}{endpoint}",
            timeout=self._timeout,
            source=self.name,
        )
        spot: CoinbaseSpot = _validate(CoinbaseSpot, data, self.name)
        return _positive_price(spot.data.amount, self.name, token_id)


class CoinMarketCapQuoteSource:
    """CoinMarketCap latest quote by symbol; only active with an API key."""

    name = PriceSource.COINMARKETCAP.value
    source = PriceSource.COINMARKETCAP

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        api_key: str | None,
        timeout: float = PRICE_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout

    def supports(self, token_id: str) -> bool:
        return bool(self._api_key)

    async def fetch_price(self, token_id: str) -> float:
        if not self._api_key:
            raise SourceUnavailableError(f"{self.name}: no API key configured", self.name)

        symbol = token_symbol(token_id)
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_CMC_QUOTES}",
            params={"symbol": symbol, "convert": "USD"},
            headers={CMC_API_KEY_HEADER: self._api_key},
            timeout=self._timeout,
            source=self.name,
        )
        quotes: CmcQuotesResponse = _validate(CmcQuotesResponse, data, self.name)
        listing = quotes.data.get(symbol)
        if listing is None:
            raise PriceSourceError(f"{self.name}: symbol {symbol} not found", self.name)
        return _positive_price(listing.quote.usd.price, self.name, token_id)


class CoinPaprikaPriceSource:
    """
    CoinPaprika ticker price.

    The coin list is searched for a matching symbol or an id ending in
    `-{token_id}` (CoinPaprika ids look like `btc-bitcoin`), then that
    coin's ticker is fetched.
    """

    name = PriceSource.COINPAPRIKA.value
    source = PriceSource.COINPAPRIKA

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = LISTING_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout

    def supports(self, token_id: str) -> bool:
        return True

    async def fetch_price(self, token_id: str) -> float:
        needle = token_id.lower()
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_PAPRIKA_COINS}",
            timeout=self._timeout,
            source=self.name,
        )
        coins: list[PaprikaCoin] = _validate(
            _COINS, _require_list(data, self.name), self.name
        )
        suffix = f"-{needle}"
        coin_id = next(
            (
                coin.id
                for coin in coins
                if coin.symbol.lower() == needle or coin.id.endswith(suffix)
            ),
            None,
        )
        if coin_id is None:
            raise PriceSourceError(f"{self.name}: token {token_id} not found", self.name)

        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_PAPRIKA_TICKER.format(coin_id=coin_id)}",
            timeout=self._timeout,
            source=self.name,
        )
        ticker: PaprikaTicker = _validate(PaprikaTicker, data, self.name)
        return _positive_price(ticker.quotes.usd.price, self.name, token_id)


# =============================================================================
# Price History
# =============================================================================


class CoinGeckoHistorySource:
    """CoinGecko `/coins/{id}/market_chart` daily USD prices."""

    name = PriceSource.COINGECKO.value

    def __init__(
        self,
        client: PriceApiClient,
        base_url: str,
        timeout: float = LISTING_TIMEOUT,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._timeout = timeout

    async def fetch_history(self, token_id: str, days: int) -> list[PricePoint]:
        data = await self._client.get_json(
            f"{self._base_url}{ENDPOINT_MARKET_CHART.format(coin_id=token_id)}",
            params={"vs_currency": "usd", "days": days},
            timeout=self._timeout,
            source=self.name,
        )
        chart: MarketChart = _validate(MarketChart, data, self.name)
        if not chart.prices:
            raise PriceSourceError(f"{self.name}: empty history for {token_id}", self.name)
        return [PricePoint(timestamp_ms=int(ts), price=price) for ts, price in chart.prices]
