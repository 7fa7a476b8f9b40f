"""Language model API routes."""

import httpx
from fastapi import APIRouter, Depends, Request

from ticker_api.core.clients import get_http_client, get_summarizer
from ticker_api.core.config import Settings, get_settings
from ticker_api.core.rate_limit import RATE_LIMITS, limiter
from ticker_api.models.market import (
    AnalysisRequest,
    EarningsSummaryRequest,
    SummaryResponse,
    TextResponse,
    TranscriptSummaryRequest,
)
from ticker_api.services import alpha_vantage, templates
from ticker_api.services.llm import ANALYSIS_INSTRUCTION, EARNINGS_PROMPT, Summarizer

router = APIRouter(tags=["generation"])


@router.post("/summarize-earnings", response_model=SummaryResponse)
@limiter.limit(RATE_LIMITS["llm"])
async def summarize_earnings(
    request: Request,
    body: EarningsSummaryRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
    summarizer: Summarizer = Depends(get_summarizer),
):
    """
    Fetch an earnings call transcript and summarize it in one paragraph.

    Example:
    ```json
    {"ticker": "IBM", "year": 2025, "quarter": 3}
    ```
    """
    transcript = await alpha_vantage.get_earnings_transcript(
        client,
        settings.credential_pool(),
        body.ticker,
        body.quarter_param,
        settings.alpha_vantage_url,
    )
    prompt = EARNINGS_PROMPT.format(
        ticker=body.ticker, quarter=body.quarter_param, transcript=transcript
    )
    summary = await summarizer.generate(prompt, settings.earnings_model)
    return SummaryResponse(summary=summary)


@router.post("/generate-analysis", response_model=TextResponse)
@limiter.limit(RATE_LIMITS["llm"])
async def generate_analysis(
    request: Request,
    body: AnalysisRequest,
    settings: Settings = Depends(get_settings),
    summarizer: Summarizer = Depends(get_summarizer),
):
    """Forward a prompt verbatim and return the Markdown analysis."""
    text = await summarizer.generate(
        body.prompt, settings.analysis_model, system_instruction=ANALYSIS_INSTRUCTION
    )
    return TextResponse(text=text)


@router.post("/generate-transcript-summary", response_model=TextResponse)
@limiter.limit(RATE_LIMITS["llm"])
async def generate_transcript_summary(
    request: Request,
    body: TranscriptSummaryRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
    summarizer: Summarizer = Depends(get_summarizer),
):
    """Investor-style summary of a transcript supplied by the client."""
    instruction = await templates.fetch_prompt(client, settings.transcript_prompt_url)
    heading = "Now produce the investor-style executive summary for the following transcript"
    subject = " ".join(
        part for part in (body.ticker, f"({body.quarter})" if body.quarter else None) if part
    )
    if subject:
        heading += f" for {subject}"
    prompt = f"{heading}:\n\n{body.transcript_text}"
    text = await summarizer.generate(
        prompt, settings.transcript_model, system_instruction=instruction
    )
    return TextResponse(text=text)
