"""Yahoo Finance key statistics and quote summary."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx
import yfinance as yf

from ticker_api.core.errors import FetchFailedError, NotFoundError, UpstreamStatusError

logger = logging.getLogger(__name__)

QUOTE_SUMMARY_URL = "https://query1.finance.yahoo.com/v10/finance/quoteSummary"
STATISTICS_MODULES = ("summaryDetail", "defaultKeyStatistics", "financialData")
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

# (title, source module, [(label, key)]). An empty title continues the previous table.
TABLE_DEFINITIONS: list[tuple[str, str, list[tuple[str, str]]]] = [
    (
        "Valuation Measures",
        "summaryDetail",
        [
            ("Market Cap (intraday)", "marketCap"),
            ("Trailing P/E", "trailingPE"),
            ("Forward P/E", "forwardPE"),
            ("Price/Sales (ttm)", "priceToSalesTrailing12Months"),
        ],
    ),
    (
        "",
        "defaultKeyStatistics",
        [
            ("Enterprise Value", "enterpriseValue"),
            ("PEG Ratio (5 yr expected)", "pegRatio"),
            ("Price/Book (mrq)", "priceToBook"),
            ("Enterprise Value/Revenue", "enterpriseToRevenue"),
            ("Enterprise Value/EBITDA", "enterpriseToEbitda"),
        ],
    ),
    (
        "Financial Highlights",
        "defaultKeyStatistics",
        [
            ("Fiscal Year Ends", "lastFiscalYearEnd"),
            ("Most Recent Quarter (mrq)", "mostRecentQuarter"),
            ("Profit Margin", "profitMargins"),
            ("Net Income Avi to Common (ttm)", "netIncomeToCommon"),
            ("Diluted EPS (ttm)", "trailingEps"),
            ("Book Value Per Share (mrq)", "bookValue"),
        ],
    ),
    (
        "",
        "financialData",
        [
            ("Operating Margin (ttm)", "operatingMargins"),
            ("Return on Assets (ttm)", "returnOnAssets"),
            ("Return on Equity (ttm)", "returnOnEquity"),
            ("Revenue (ttm)", "totalRevenue"),
            ("Revenue Per Share (ttm)", "revenuePerShare"),
            ("Gross Profit (ttm)", "grossProfits"),
            ("EBITDA", "ebitda"),
            ("Total Cash (mrq)", "totalCash"),
            ("Total Cash Per Share (mrq)", "totalCashPerShare"),
            ("Total Debt (mrq)", "totalDebt"),
            ("Total Debt/Equity (mrq)", "debtToEquity"),
            ("Current Ratio (mrq)", "currentRatio"),
            ("Operating Cash Flow (ttm)", "operatingCashflow"),
            ("Levered Free Cash Flow (ttm)", "freeCashflow"),
        ],
    ),
    (
        "Trading Information",
        "summaryDetail",
        [
            ("Beta (5Y Monthly)", "beta"),
            ("52 Week High", "fiftyTwoWeekHigh"),
            ("52 Week Low", "fiftyTwoWeekLow"),
            ("50-Day Moving Average", "fiftyDayAverage"),
            ("200-Day Moving Average", "twoHundredDayAverage"),
            ("Avg Vol (3 month)", "averageVolume"),
            ("Avg Vol (10 day)", "averageDailyVolume10Day"),
            ("Forward Annual Dividend Rate", "dividendRate"),
            ("Forward Annual Dividend Yield", "dividendYield"),
            ("Trailing Annual Dividend Rate", "trailingAnnualDividendRate"),
            ("Trailing Annual Dividend Yield", "trailingAnnualDividendYield"),
            ("5 Year Average Dividend Yield", "fiveYearAvgDividendYield"),
            ("Payout Ratio", "payoutRatio"),
            ("Dividend Date", "exDividendDate"),
        ],
    ),
    (
        "",
        "defaultKeyStatistics",
        [
            ("52-Week Change", "52WeekChange"),
            ("S&P500 52-Week Change", "SandP52WeekChange"),
            ("Shares Outstanding", "sharesOutstanding"),
            ("Implied Shares Outstanding", "impliedSharesOutstanding"),
            ("Float", "floatShares"),
            ("% Held by Insiders", "heldPercentInsiders"),
            ("% Held by Institutions", "heldPercentInstitutions"),
            ("Shares Short", "sharesShort"),
            ("Short Ratio", "shortRatio"),
            ("Short % of Float", "shortPercentOfFloat"),
            ("Short % of Shares Outstanding", "sharesPercentSharesOut"),
            ("Last Split Factor", "lastSplitFactor"),
            ("Last Split Date", "lastSplitDate"),
        ],
    ),
]


def _formatted(source: dict[str, Any], key: str) -> str | None:
    """Return the display ('fmt') value of a quoteSummary field."""
    value = source.get(key)
    if isinstance(value, dict):
        return value.get("fmt") or None
    return None


def build_statistics_tables(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Turn a quoteSummary result into titled label/value tables.

    Rows without a formatted value are dropped, as are tables left empty.
    Continuation tables (empty title) are appended to the preceding table.
    """
    tables: list[dict[str, Any]] = []

    for title, module, rows in TABLE_DEFINITIONS:
        source = data.get(module)
        if not isinstance(source, dict):
            continue

        found = [[label, value] for label, key in rows if (value := _formatted(source, key))]
        if not found:
            continue

        if title == "" and tables:
            tables[-1]["rows"].extend(found)
        else:
            tables.append({"title": title, "rows": found})

    return tables


async def get_key_statistics(
    client: httpx.AsyncClient,
    ticker: str,
    base_url: str = QUOTE_SUMMARY_URL,
) -> list[dict[str, Any]]:
    """Fetch and tabulate Yahoo key statistics for `ticker`."""
    url = f"{base_url.rstrip('/')}/{ticker}"

    try:
        response = await client.get(
            url,
            params={"modules": ",".join(STATISTICS_MODULES)},
            headers={"User-Agent": BROWSER_USER_AGENT},
        )
    except httpx.HTTPError as e:
        logger.error(f"Yahoo key statistics request failed for {ticker}: {e!s}")
        raise FetchFailedError(
            "Failed to fetch data from Yahoo Finance API.", details=type(e).__name__, source="yahoo"
        ) from e

    if not response.is_success:
        raise UpstreamStatusError(
            f"Failed to fetch data from Yahoo Finance API. Status: {response.status_code}",
            status_code=response.status_code,
            source="yahoo",
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise FetchFailedError("Yahoo Finance API returned a non-JSON response.", source="yahoo") from e

    results = (payload.get("quoteSummary") or {}).get("result") or []
    if not results:
        raise NotFoundError(
            f'Could not find key statistics for ticker "{ticker}". The ticker may be '
            "invalid, delisted, or not supported by the API."
        )

    statistics = build_statistics_tables(results[0])
    if not statistics:
        raise NotFoundError(
            "Successfully connected to API, but no key statistics were found "
            f'for ticker "{ticker}".'
        )
    return statistics


def _load_info(ticker: str) -> dict[str, Any]:
    return yf.Ticker(ticker).info


async def get_quote_summary(ticker: str, timeout: float = 15.0) -> dict[str, Any]:
    """Quote summary from yfinance, fetched off the event loop."""
    try:
        info = await asyncio.wait_for(
            asyncio.get_event_loop().run_in_executor(None, _load_info, ticker),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise FetchFailedError(
            f"Timed out fetching Yahoo Finance data for {ticker}.", source="yfinance"
        ) from e
    except Exception as e:
        logger.error(f"Error fetching Yahoo Finance data for {ticker}: {e!s}")
        if "Not Found" in str(e) or "404" in str(e):
            raise NotFoundError(
                f"Data not found for ticker: {ticker}. It may be an invalid ticker."
            ) from e
        raise FetchFailedError(str(e), source="yfinance") from e

    if not info or len(info) <= 1:
        raise NotFoundError(f"Data not found for ticker: {ticker}. It may be an invalid ticker.")

    return {
        "ticker": ticker,
        "summary": info,
        "fetchedAt": datetime.now(timezone.utc).isoformat(),
    }
