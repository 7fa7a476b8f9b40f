"""Market data API routes."""

from typing import Any

import httpx
from fastapi import APIRouter, Depends, Query, Request, Response

from ticker_api.core.clients import get_http_client
from ticker_api.core.config import Settings, get_settings
from ticker_api.core.rate_limit import RATE_LIMITS, limiter
from ticker_api.models.common import ErrorResponse, normalize_ticker
from ticker_api.models.market import StatisticsTable
from ticker_api.services import alpha_vantage, yahoo

router = APIRouter(
    tags=["market-data"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

TICKER_QUERY = Query(None, description="Stock ticker symbol (e.g., AAPL)")


@router.get("/company-overview")
@limiter.limit(RATE_LIMITS["market"])
async def company_overview(
    request: Request,
    ticker: str | None = TICKER_QUERY,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Company profile merged with the latest quote.

    The quote is best-effort: if it cannot be fetched the profile is
    returned alone.
    """
    symbol = normalize_ticker(ticker)
    return await alpha_vantage.get_company_overview(
        client, settings.credential_pool(), symbol, settings.alpha_vantage_url
    )


@router.get("/income-statement")
@limiter.limit(RATE_LIMITS["market"])
async def income_statement(
    request: Request,
    ticker: str | None = TICKER_QUERY,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Income statement with balance sheet, shares outstanding and estimates.

    - **income**: required; its failure fails the request
    - **balance**, **shares**, **estimates**: `null` when unavailable
    """
    symbol = normalize_ticker(ticker)
    return await alpha_vantage.get_income_statement(
        client, settings.credential_pool(), symbol, settings.alpha_vantage_url
    )


@router.get("/stock-chart")
@limiter.limit(RATE_LIMITS["market"])
async def stock_chart(
    request: Request,
    ticker: str | None = TICKER_QUERY,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Intraday (15min), daily, weekly and monthly price series.

    Each granularity is returned under its own key; a failed one holds an
    `{error, details}` object instead of data.
    """
    symbol = normalize_ticker(ticker)
    return await alpha_vantage.get_stock_chart(
        client,
        settings.credential_pool(),
        symbol,
        settings.alpha_vantage_url,
        concurrent=settings.chart_concurrent_fetch,
    )


@router.get("/key-statistics", response_model=list[StatisticsTable])
@limiter.limit(RATE_LIMITS["market"])
async def key_statistics(
    request: Request,
    ticker: str | None = TICKER_QUERY,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """Valuation, financial highlights and trading information tables."""
    symbol = normalize_ticker(ticker)
    return await yahoo.get_key_statistics(client, symbol, settings.yahoo_quote_summary_url)


@router.get("/yahoo")
@limiter.limit(RATE_LIMITS["market"])
async def yahoo_summary(
    request: Request,
    response: Response,
    ticker: str = Query("AAPL", description="Stock ticker symbol"),
) -> dict[str, Any]:
    """Raw Yahoo Finance quote summary with fetch timestamp."""
    symbol = normalize_ticker(ticker)
    summary = await yahoo.get_quote_summary(symbol)
    response.headers["Cache-Control"] = "s-maxage=30, stale-while-revalidate=300"
    return summary
