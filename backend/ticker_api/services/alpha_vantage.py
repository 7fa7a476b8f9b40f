"""Alpha Vantage endpoints built on the rotating fetcher.

Each function needs one required fetch and zero or more supplementary
fetches. A failure of the required fetch is raised; supplementary failures
leave an empty slot.
"""

import asyncio
import logging
from typing import Any

import httpx

from ticker_api.core.credentials import CredentialPool
from ticker_api.core.errors import ConfigurationError, NotFoundError
from ticker_api.services.fetcher import (
    FetchResult,
    RequestDescriptor,
    fetch_with_rotation,
    require_any_field,
)

logger = logging.getLogger(__name__)

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"

# Chart slot name -> (function, extra params)
CHART_SERIES: dict[str, tuple[str, dict[str, str]]] = {
    "intraday": ("TIME_SERIES_INTRADAY", {"interval": "15min"}),
    "daily": ("TIME_SERIES_DAILY", {"outputsize": "full"}),
    "weekly": ("TIME_SERIES_WEEKLY", {}),
    "monthly": ("TIME_SERIES_MONTHLY", {}),
}

INCOME_SUPPLEMENTS: dict[str, str] = {
    "balance": "BALANCE_SHEET",
    "shares": "SHARES_OUTSTANDING",
    "estimates": "EARNINGS_ESTIMATES",
}


def require_pool(pool: CredentialPool) -> CredentialPool:
    """Fail fast, before any network call, when no key is configured."""
    if not pool:
        raise ConfigurationError(
            "The 'ALPHA_KEY' environment variables are not set on the server."
        )
    return pool


def describe(
    function: str,
    ticker: str,
    base_url: str = ALPHA_VANTAGE_URL,
    **params: str,
) -> RequestDescriptor:
    """Build an Alpha Vantage request for `function` and `ticker`."""
    return RequestDescriptor.build(base_url, function=function, symbol=ticker, **params)


def merge_payloads(*payloads: dict[str, Any] | None) -> dict[str, Any]:
    """Shallow key union; later payloads overwrite earlier ones."""
    merged: dict[str, Any] = {}
    for payload in payloads:
        if payload:
            merged.update(payload)
    return merged


async def get_company_overview(
    client: httpx.AsyncClient,
    pool: CredentialPool,
    ticker: str,
    base_url: str = ALPHA_VANTAGE_URL,
) -> dict[str, Any]:
    """Company profile merged with the live quote.

    The profile is required; the quote is best-effort.
    """
    require_pool(pool)

    overview = (await fetch_with_rotation(client, describe("OVERVIEW", ticker, base_url), pool)).unwrap()
    if not isinstance(overview, dict) or not overview.get("Symbol"):
        raise NotFoundError("No overview data found for this ticker.")

    quote = await fetch_with_rotation(client, describe("GLOBAL_QUOTE", ticker, base_url), pool)
    if not quote.is_success:
        logger.warning(f"Quote for {ticker} unavailable: {quote.error}")

    return merge_payloads(overview, quote.data if quote.is_success else None)


async def get_income_statement(
    client: httpx.AsyncClient,
    pool: CredentialPool,
    ticker: str,
    base_url: str = ALPHA_VANTAGE_URL,
) -> dict[str, Any]:
    """Income statement plus best-effort balance sheet, shares and estimates."""
    require_pool(pool)

    income = (
        await fetch_with_rotation(client, describe("INCOME_STATEMENT", ticker, base_url), pool)
    ).unwrap()

    supplements: dict[str, Any] = {}
    for slot, function in INCOME_SUPPLEMENTS.items():
        result = await fetch_with_rotation(client, describe(function, ticker, base_url), pool)
        supplements[slot] = result.data if result.is_success else None

    return {"income": income, **supplements}


async def get_stock_chart(
    client: httpx.AsyncClient,
    pool: CredentialPool,
    ticker: str,
    base_url: str = ALPHA_VANTAGE_URL,
    concurrent: bool = False,
) -> dict[str, Any]:
    """Price series for every granularity, each in its own slot.

    A failed granularity keeps its `{error, details}` body in the slot.
    """
    require_pool(pool)

    descriptors = {
        slot: describe(function, ticker, base_url, **extra)
        for slot, (function, extra) in CHART_SERIES.items()
    }

    results: dict[str, FetchResult[Any]] = {}
    if concurrent:
        gathered = await asyncio.gather(
            *(fetch_with_rotation(client, d, pool) for d in descriptors.values())
        )
        results = dict(zip(descriptors, gathered))
    else:
        for slot, descriptor in descriptors.items():
            results[slot] = await fetch_with_rotation(client, descriptor, pool)

    response: dict[str, Any] = {slot: result.to_dict() for slot, result in results.items()}
    response["_debug"] = {
        "ticker": ticker,
        "urls": {slot: result.url for slot, result in results.items()},
    }
    return response


async def get_earnings_transcript(
    client: httpx.AsyncClient,
    pool: CredentialPool,
    ticker: str,
    quarter: str,
    base_url: str = ALPHA_VANTAGE_URL,
) -> str:
    """Earnings call transcript content for `quarter` (e.g. ``2025Q3``)."""
    require_pool(pool)

    descriptor = describe("EARNINGS_CALL_TRANSCRIPT", ticker, base_url, quarter=quarter)
    result = await fetch_with_rotation(
        client, descriptor, pool, classify=require_any_field("symbol", "content")
    )
    if isinstance(result.error, NotFoundError):
        raise NotFoundError(
            f"No transcript found for {ticker} {quarter}", details=result.error.details
        ) from result.error
    transcript = result.unwrap()

    content = transcript.get("content")
    if not content:
        raise NotFoundError(f"No transcript found for {ticker} {quarter}")
    return content if isinstance(content, str) else _join_transcript(content)


def _join_transcript(content: list[dict[str, Any]]) -> str:
    """Flatten speaker turns into plain text."""
    lines = []
    for turn in content:
        speaker = turn.get("speaker", "")
        title = turn.get("title")
        label = f"{speaker} ({title})" if title else speaker
        lines.append(f"{label}: {turn.get('content', '')}")
    return "\n\n".join(lines)
