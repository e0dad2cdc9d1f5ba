"""
Pydantic models for upstream price API responses.

Only the fields the monitor consumes are declared; anything else in a
payload is ignored. A payload that fails validation is treated as a
failed source.
"""

from pydantic import BaseModel, Field


class CoinGeckoMarket(BaseModel):
    """Item of CoinGecko `/coins/markets`."""

    id: str
    symbol: str
    name: str
    image: str = ""
    current_price: float | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    price_change_percentage_24h: float | None = None


class SimplePrice(BaseModel):
    """Value of one id in CoinGecko `/simple/price`."""

    usd: float


class MarketChart(BaseModel):
    """CoinGecko `/coins/{id}/market_chart` response."""

    prices: list[tuple[float, float]]


class CmcUsdQuote(BaseModel):
    """USD block of a CoinMarketCap quote."""

    price: float | None = None
    market_cap: float | None = None
    percent_change_24h: float | None = None
    volume_24h: float | None = None


class CmcQuote(BaseModel):
    """Currency-keyed quote map, only USD is requested."""

    usd: CmcUsdQuote = Field(alias="USD")

    model_config = {"populate_by_name": True}


class CmcListing(BaseModel):
    """Item of CoinMarketCap `/cryptocurrency/listings/latest`."""

    id: int
    name: str
    symbol: str
    slug: str
    cmc_rank: int | None = None
    quote: CmcQuote


class CmcListingsResponse(BaseModel):
    """CoinMarketCap listings envelope."""

    data: list[CmcListing]


class CmcQuotesResponse(BaseModel):
    """CoinMarketCap `/cryptocurrency/quotes/latest` envelope keyed by symbol."""

    data: dict[str, CmcListing]


class PaprikaUsdQuote(BaseModel):
    """USD block of a CoinPaprika ticker."""

    price: float | None = None
    market_cap: float | None = None
    percent_change_24h: float | None = None
    volume_24h: float | None = None


class PaprikaQuotes(BaseModel):
    """Currency-keyed ticker quotes."""

    usd: PaprikaUsdQuote = Field(alias="USD")

    model_config = {"populate_by_name": True}


class PaprikaTicker(BaseModel):
    """Item of CoinPaprika `/tickers`."""

    id: str
    name: str
    symbol: str
    rank: int | None = None
    quotes: PaprikaQuotes


class PaprikaCoin(BaseModel):
    """CoinPaprika coin entry from `/coins` or `/coins/{id}`."""

    id: str
    symbol: str = ""
    logo: str = ""


class BinanceTickerPrice(BaseModel):
    """Binance `/ticker/price` response."""

    symbol: str
    price: float


class CoinbaseSpotData(BaseModel):
    """Inner `data` block of a Coinbase spot price."""

    amount: float
    base: str | None = None
    currency: str | None = None


class CoinbaseSpot(BaseModel):
    """Coinbase `/prices/{pair}/spot` response."""

    data: CoinbaseSpotData
