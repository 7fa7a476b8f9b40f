"""Prompt template download and ticker substitution."""

import logging

import httpx

from ticker_api.core.errors import FetchFailedError

logger = logging.getLogger(__name__)

PLACEHOLDER = "XXX"
MIN_TEMPLATE_LENGTH = 500


def is_valid_template(text: str) -> bool:
    """Reject truncated or unrelated documents (error pages, empty bodies)."""
    return bool(text) and PLACEHOLDER in text and len(text) > MIN_TEMPLATE_LENGTH


async def fetch_template(client: httpx.AsyncClient, urls: list[str]) -> str:
    """Return the first valid template from `urls`, tried in order."""
    for url in urls:
        try:
            response = await client.get(url, headers={"Cache-Control": "no-cache"})
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch template from {url}: {type(e).__name__}")
            continue

        if not response.is_success:
            logger.warning(f"Template mirror {url} returned {response.status_code}")
            continue

        if is_valid_template(response.text):
            return response.text
        logger.warning(f"Template from {url} failed validation")

    raise FetchFailedError("Could not fetch template from any available source.")


def render_template(template: str, ticker: str) -> str:
    """Substitute every placeholder with the upper-cased ticker."""
    return template.replace(PLACEHOLDER, ticker.upper())


async def fetch_prompt(client: httpx.AsyncClient, url: str) -> str:
    """Fetch a single prompt document (no validation, no fallback)."""
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise FetchFailedError(
            "Failed to fetch prompt template.", details=type(e).__name__
        ) from e
    return response.text
