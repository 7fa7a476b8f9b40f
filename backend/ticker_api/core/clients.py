"""Per-request outbound clients."""

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends

from ticker_api.core.config import Settings, get_settings
from ticker_api.services.llm import Summarizer


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    """Dependency yielding an HTTP client closed at the end of the request.

    The timeout bounds each single attempt, so one hung upstream cannot
    stall the whole key rotation.
    """
    timeout = httpx.Timeout(settings.fetch_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        yield client


def get_summarizer(settings: Settings = Depends(get_settings)) -> Summarizer:
    """Dependency for routes calling the language model."""
    return Summarizer(settings.api_key)
