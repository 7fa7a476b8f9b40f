"""Hosted language model calls (Gemini)."""

import logging

from google import genai
from google.genai.types import GenerateContentConfig

from ticker_api.core.errors import ConfigurationError, SummarizerError

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTION = (
    "You are a financial analyst providing a stock analysis. Respond in well-structured "
    "Markdown format. Use headings, bold text, bullet points, and tables to present the "
    "data clearly and professionally, similar to a GitHub README file."
)

EARNINGS_PROMPT = """You are a financial analyst.
Read the following earnings call transcript for {ticker} ({quarter}).

Task: Create a single paragraph executive summary.
Requirements:
- Highlight the most important metrics reported.
- Mention sales/revenue performance.
- Summarize the future outlook provided by management.
- Keep it concise and professional.

Transcript:
{transcript}
"""


class Summarizer:
    """Thin async wrapper around the Gemini client: prompt in, text out."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError("The Gemini 'API_KEY' is not set on the server.")
        self._client = genai.Client(api_key=api_key)

    async def generate(
        self,
        prompt: str,
        model: str,
        system_instruction: str | None = None,
    ) -> str:
        """Generate text for `prompt`."""
        config = (
            GenerateContentConfig(system_instruction=system_instruction)
            if system_instruction
            else None
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini call failed ({model}): {e!s}")
            raise SummarizerError("Failed to generate text from Gemini.", details=str(e)) from e

        if not response.text:
            raise SummarizerError("Gemini API returned no content.")
        return response.text
