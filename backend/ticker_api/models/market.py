"""Request and response models for market data and generation endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticker_api.models.common import TickerSymbol


class EarningsSummaryRequest(BaseModel):
    """Summarize one quarter's earnings call."""

    ticker: TickerSymbol
    year: int = Field(ge=2000, le=2100, description="Fiscal year, e.g. 2025")
    quarter: int = Field(ge=1, le=4, description="Quarter number 1-4")

    @field_validator("ticker")
    @classmethod
    def upper_ticker(cls, v: str) -> str:
        return v.upper()

    @property
    def quarter_param(self) -> str:
        """Provider quarter string (e.g. ``2025Q3``)."""
        return f"{self.year}Q{self.quarter}"


class AnalysisRequest(BaseModel):
    """Free-text prompt forwarded to the language model."""

    prompt: str = Field(min_length=1, max_length=200_000)


class TranscriptSummaryRequest(BaseModel):
    """Transcript text to summarize with the pinned instruction."""

    model_config = ConfigDict(populate_by_name=True)

    transcript_text: str = Field(alias="transcriptText", min_length=1)
    ticker: str | None = None
    quarter: str | None = None


class TemplateResponse(BaseModel):
    """Prompt template with the ticker substituted."""

    ticker: str
    content: str


class SummaryResponse(BaseModel):
    """Earnings summary."""

    summary: str


class TextResponse(BaseModel):
    """Generated text."""

    text: str


class StatisticsTable(BaseModel):
    """Titled table of label/value rows."""

    title: str
    rows: list[list[str]]
