"""
FastAPI server for the price dashboard.

Exposes token prices, simulated venue quotes, price history and ranked
arbitrage opportunities as JSON. A background task keeps the latest
opportunity list fresh.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import orjson
from fastapi import FastAPI, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

from dexarb import __version__
from dexarb.config.constants import DEFAULT_INVESTMENT_AMOUNT
from dexarb.config.settings import get_settings
from dexarb.core.engine import MonitorEngine
from dexarb.core.types import (
    ArbitrageOpportunity,
    BasePrice,
    PricePoint,
    TokenQuote,
    Venue,
    VenueQuote,
)
from dexarb.strategy.calculator import InvalidInvestmentError, detect_opportunity
from dexarb.utils.time import format_timestamp_ms


logger = logging.getLogger(__name__)


# =============================================================================
# Request Models
# =============================================================================


class VenueQuoteIn(BaseModel):
    """Venue quote supplied by the client for a profit calculation."""

    venue: Venue
    price: float
    volume_24h: float = Field(default=0.0, alias="volume24h")
    liquidity: float | None = None

    model_config = {"populate_by_name": True}


class ProfitRequest(BaseModel):
    """Body of `POST /api/profit`."""

    quotes: list[VenueQuoteIn]
    investment_amount: float = Field(default=DEFAULT_INVESTMENT_AMOUNT, alias="investmentAmount")

    model_config = {"populate_by_name": True}


# =============================================================================
# Serialization
# =============================================================================


def _json(data: Any, status_code: int = 200) -> Response:
    return Response(
        content=orjson.dumps(data),
        status_code=status_code,
        media_type="application/json",
    )


def token_to_dict(token: TokenQuote) -> dict[str, Any]:
    return {
        "id": token.id,
        "symbol": token.symbol,
        "name": token.name,
        "image": token.image,
        "current_price": token.current_price,
        "market_cap": token.market_cap,
        "market_cap_rank": token.market_cap_rank,
        "price_change_percentage_24h": token.price_change_24h,
        "total_volume": token.total_volume,
        "source": token.source.value,
        "synthetic": token.is_synthetic,
    }


def quote_to_dict(quote: VenueQuote) -> dict[str, Any]:
    return {
        "dex": quote.venue.value,
        "price": quote.price,
        "volume24h": quote.volume_24h,
        "liquidity": quote.liquidity,
        "synthetic": quote.synthetic,
    }


def base_price_to_dict(base: BasePrice) -> dict[str, Any]:
    return {
        "token_id": base.token_id,
        "price": base.price,
        "source": base.source.value,
        "synthetic": base.is_synthetic,
    }


def point_to_list(point: PricePoint) -> list[float]:
    return [point.timestamp_ms, point.price]


def opportunity_to_dict(opp: ArbitrageOpportunity) -> dict[str, Any]:
    return {
        "token": token_to_dict(opp.token) if opp.token is not None else None,
        "source_dex": opp.source_venue.venue.value,
        "target_dex": opp.target_venue.venue.value,
        "buy_price": opp.source_venue.price,
        "sell_price": opp.target_venue.price,
        "investment_amount": opp.investment_amount,
        "profit_usd": opp.profit_absolute,
        "profit_percentage": opp.profit_percentage,
        "spread_pct": opp.spread_pct,
        "synthetic": opp.synthetic,
    }


# =============================================================================
# Application
# =============================================================================


def create_app(
    engine: MonitorEngine | None = None,
    refresh_loop: bool = True,
) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        engine: Engine to serve; built from settings when omitted.
        refresh_loop: Run the periodic opportunity refresh in the background.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        current = engine or MonitorEngine(get_settings())
        current.setup()
        app.state.engine = current

        task: asyncio.Task[None] | None = None
        if refresh_loop:
            task = asyncio.create_task(current.run())
        try:
            yield
        finally:
            current.stop()
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await current.shutdown()

    app = FastAPI(title="DEX Arbitrage Monitor", version=__version__, lifespan=lifespan)
    app.get("/api/tokens")(get_tokens)
    app.get("/api/tokens/{token_id}/price")(get_token_price)
    app.get("/api/tokens/{token_id}/quotes")(get_token_quotes)
    app.get("/api/tokens/{token_id}/history")(get_token_history)
    app.get("/api/tokens/{token_id}/exchanges")(get_exchange_prices)
    app.get("/api/opportunities")(get_opportunities)
    app.post("/api/profit")(calculate_profit)
    app.get("/api/status")(get_status)
    return app


def _engine(request: Request) -> MonitorEngine:
    return request.app.state.engine  # type: ignore[no-any-return]


# =============================================================================
# Endpoints
# =============================================================================


async def get_tokens(
    request: Request,
    count: int = Query(default=50, ge=1, le=250),
    refresh: bool = False,
) -> Response:
    tokens = await _engine(request).resolver.resolve_top_tokens(count, force_refresh=refresh)
    return _json([token_to_dict(t) for t in tokens])


async def get_token_price(request: Request, token_id: str) -> Response:
    base = await _engine(request).resolver.resolve_base_quote(token_id)
    return _json(base_price_to_dict(base))


async def get_token_quotes(request: Request, token_id: str) -> Response:
    engine = _engine(request)
    base = await engine.resolver.resolve_base_quote(token_id)
    quotes = engine.simulator.simulate(base.price, synthetic=base.is_synthetic)
    return _json(
        {
            "base": base_price_to_dict(base),
            "quotes": [quote_to_dict(q) for q in quotes],
        }
    )


async def get_token_history(
    request: Request,
    token_id: str,
    days: int = Query(default=7, ge=1, le=365),
) -> Response:
    points = await _engine(request).resolver.resolve_history(token_id, days)
    return _json({"token_id": token_id, "prices": [point_to_list(p) for p in points]})


async def get_exchange_prices(request: Request, token_id: str) -> Response:
    engine = _engine(request)
    base = await engine.resolver.resolve_base_quote(token_id)
    prices = engine.simulator.simulate_exchange_prices(base.price)
    return _json({"base": base_price_to_dict(base), "exchanges": prices})


async def get_opportunities(
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
    investment: float = DEFAULT_INVESTMENT_AMOUNT,
) -> Response:
    try:
        opportunities = await _engine(request).aggregator.get_arbitrage_opportunities(
            limit, investment
        )
    except InvalidInvestmentError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _json([opportunity_to_dict(o) for o in opportunities])


async def calculate_profit(body: ProfitRequest) -> Response:
    quotes = [
        VenueQuote(
            venue=q.venue,
            price=q.price,
            volume_24h=q.volume_24h,
            liquidity=q.liquidity,
        )
        for q in body.quotes
    ]
    try:
        opp = detect_opportunity(quotes, body.investment_amount)
    except InvalidInvestmentError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return _json(opportunity_to_dict(opp) if opp is not None else None)


async def get_status(request: Request) -> Response:
    engine = _engine(request)
    cache = engine.resolver.cache
    return _json(
        {
            "running": engine.is_running,
            "cache_fresh": cache.is_fresh,
            "cache_age_seconds": cache.age_seconds(),
            "last_refresh_ms": engine.last_refresh_ms,
            "last_refresh": (
                format_timestamp_ms(engine.last_refresh_ms)
                if engine.last_refresh_ms is not None
                else None
            ),
            "opportunities": len(engine.latest_opportunities),
            "metrics": engine.metrics.to_dict(),
        }
    )


def main() -> None:
    import uvicorn

    from dexarb.telemetry.logger import setup_logging

    settings = get_settings()
    async_logger = setup_logging(settings.log_level, settings.log_file)

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║              DEX ARBITRAGE MONITOR - DASHBOARD API            ║
╚═══════════════════════════════════════════════════════════════╝

API: http://{settings.dashboard_host}:{settings.dashboard_port}/api/status
Press Ctrl+C to stop.
    """
    )
    try:
        uvicorn.run(
            "dexarb.dashboard.server:create_app",
            factory=True,
            host=settings.dashboard_host,
            port=settings.dashboard_port,
            reload=False,
            log_level="warning",
        )
    finally:
        async_logger.stop()


if __name__ == "__main__":
    main()
