"""Prompt template API routes."""

import httpx
from fastapi import APIRouter, Depends, Query, Request

from ticker_api.core.clients import get_http_client
from ticker_api.core.config import Settings, get_settings
from ticker_api.core.rate_limit import RATE_LIMITS, limiter
from ticker_api.models.common import normalize_ticker
from ticker_api.models.market import TemplateResponse
from ticker_api.services import templates

router = APIRouter(prefix="/template", tags=["templates"])


@router.get("", response_model=TemplateResponse)
@limiter.limit(RATE_LIMITS["default"])
async def get_template(
    request: Request,
    ticker: str | None = Query(None, description="Stock ticker symbol (e.g., AAPL)"),
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """
    Stock analysis prompt with every `XXX` replaced by the ticker.

    Mirrors are tried in order until one returns a valid template.
    """
    symbol = normalize_ticker(ticker)
    template = await templates.fetch_template(client, settings.template_urls)
    return TemplateResponse(ticker=symbol, content=templates.render_template(template, symbol))
