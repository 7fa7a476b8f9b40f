"""Backend API tests."""

import httpx
import pytest
from fastapi.testclient import TestClient

from ticker_api.core.clients import get_http_client, get_summarizer
from ticker_api.core.config import get_settings
from ticker_api.core.errors import SummarizerError
from ticker_api.core.rate_limit import limiter
from ticker_api.main import app

from .fixtures.alpha_vantage_responses import (
    AV_GLOBAL_QUOTE,
    AV_INCOME_STATEMENT,
    AV_INVALID_CALL,
    AV_OVERVIEW,
    AV_RATE_LIMIT_NOTE,
    AV_TIME_SERIES_DAILY,
    AV_TRANSCRIPT,
    YAHOO_QUOTE_SUMMARY,
)
from .test_templates import VALID_TEMPLATE


class FakeSummarizer:
    """Records prompts and answers with canned text."""

    def __init__(self, text: str = "Generated text", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, prompt, model, system_instruction=None):
        self.calls.append(
            {"prompt": prompt, "model": model, "system_instruction": system_instruction}
        )
        if self.error:
            raise self.error
        return self.text


@pytest.fixture
def summarizer():
    """Fake language model."""
    return FakeSummarizer()


@pytest.fixture
def client(upstream, test_settings, summarizer):
    """Create test client with the fake upstream and settings."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_http_client] = lambda: httpx.AsyncClient(
        transport=httpx.MockTransport(upstream.handler)
    )
    app.dependency_overrides[get_summarizer] = lambda: summarizer
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_endpoint(self, client):
        """Test root endpoint returns app info."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "version" in data
        assert "docs" in data

    def test_health_endpoint(self, client):
        """Test health check endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestCompanyOverviewEndpoint:
    """Test /api/company-overview."""

    def test_merged_response(self, client, upstream):
        upstream.reply(AV_OVERVIEW, function="OVERVIEW")
        upstream.reply(AV_GLOBAL_QUOTE, function="GLOBAL_QUOTE")

        response = client.get("/api/company-overview", params={"ticker": "aapl"})

        assert response.status_code == 200
        data = response.json()
        assert data["Symbol"] == "AAPL"
        assert "Global Quote" in data
        assert upstream.calls[0].url.params["symbol"] == "AAPL"

    def test_missing_ticker(self, client, upstream):
        response = client.get("/api/company-overview")

        assert response.status_code == 400
        assert response.json() == {"error": "Ticker is required and must be a string."}
        assert upstream.calls == []

    def test_blank_ticker(self, client):
        response = client.get("/api/company-overview", params={"ticker": "   "})
        assert response.status_code == 400

    def test_ticker_with_spaces(self, client, upstream):
        response = client.get("/api/company-overview", params={"ticker": "AA PL"})

        assert response.status_code == 400
        assert upstream.calls == []

    def test_no_keys_configured(self, client, upstream, test_settings):
        test_settings.alpha_key = ""
        test_settings.alpha_key_2 = ""

        response = client.get("/api/company-overview", params={"ticker": "AAPL"})

        assert response.status_code == 500
        assert "ALPHA_KEY" in response.json()["error"]
        assert upstream.calls == []

    def test_invalid_symbol(self, client, upstream):
        upstream.reply(AV_INVALID_CALL)

        response = client.get("/api/company-overview", params={"ticker": "NOPE"})

        assert response.status_code == 400
        assert response.json()["error"] == AV_INVALID_CALL["Error Message"]
        assert len(upstream.calls) == 1

    def test_quota_exhausted(self, client, upstream):
        upstream.reply(AV_RATE_LIMIT_NOTE)

        response = client.get("/api/company-overview", params={"ticker": "AAPL"})

        assert response.status_code == 429
        assert response.json() == {
            "error": "API rate limit exceeded on all keys.",
            "details": AV_RATE_LIMIT_NOTE["Note"],
        }

    def test_not_found(self, client, upstream):
        upstream.reply({})

        response = client.get("/api/company-overview", params={"ticker": "ZZZZ"})

        assert response.status_code == 404

    def test_upstream_down(self, client, upstream):
        upstream.reply("timeout")

        response = client.get("/api/company-overview", params={"ticker": "AAPL"})

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to fetch data."
        assert "keyA" not in response.text


class TestIncomeStatementEndpoint:
    """Test /api/income-statement."""

    def test_success_with_missing_supplements(self, client, upstream):
        upstream.reply(AV_INCOME_STATEMENT, function="INCOME_STATEMENT")
        upstream.reply(AV_RATE_LIMIT_NOTE)

        response = client.get("/api/income-statement", params={"ticker": "AAPL"})

        assert response.status_code == 200
        data = response.json()
        assert data["income"] == AV_INCOME_STATEMENT
        assert data["balance"] is None
        assert data["shares"] is None
        assert data["estimates"] is None


class TestStockChartEndpoint:
    """Test /api/stock-chart."""

    def test_slots(self, client, upstream):
        upstream.reply(AV_TIME_SERIES_DAILY)

        response = client.get("/api/stock-chart", params={"ticker": "AAPL"})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"intraday", "daily", "weekly", "monthly", "_debug"}
        assert "keyA" not in response.text


class TestKeyStatisticsEndpoint:
    """Test /api/key-statistics."""

    def test_tables(self, client, upstream):
        upstream.reply(YAHOO_QUOTE_SUMMARY)

        response = client.get("/api/key-statistics", params={"ticker": "aapl"})

        assert response.status_code == 200
        tables = response.json()
        assert tables[0]["title"] == "Valuation Measures"
        assert upstream.calls[0].url.path.endswith("/AAPL")

    @pytest.mark.parametrize("ticker", ["AAPL/../../v7/finance/quote", "A B;<x>/.."])
    def test_path_characters_rejected(self, client, upstream, ticker):
        response = client.get("/api/key-statistics", params={"ticker": ticker})

        assert response.status_code == 400
        assert response.json()["error"] == "Ticker contains invalid characters."
        assert upstream.calls == []

    def test_upstream_status(self, client, upstream):
        upstream.reply(httpx.Response(503))

        response = client.get("/api/key-statistics", params={"ticker": "AAPL"})

        assert response.status_code == 503
        assert "Status: 503" in response.json()["error"]


class TestTemplateEndpoint:
    """Test /api/template."""

    def test_rendered_template(self, client, upstream):
        upstream.reply(httpx.Response(200, text=VALID_TEMPLATE))

        response = client.get("/api/template", params={"ticker": "nvda"})

        assert response.status_code == 200
        data = response.json()
        assert data["ticker"] == "NVDA"
        assert "XXX" not in data["content"]
        assert "NVDA" in data["content"]

    def test_all_mirrors_down(self, client, upstream):
        upstream.reply("connect")

        response = client.get("/api/template", params={"ticker": "NVDA"})

        assert response.status_code == 502
        assert len(upstream.calls) == 2


class TestSummarizeEarningsEndpoint:
    """Test /api/summarize-earnings."""

    def test_summary(self, client, upstream, summarizer):
        upstream.reply(AV_TRANSCRIPT)

        response = client.post(
            "/api/summarize-earnings", json={"ticker": "ibm", "year": 2025, "quarter": 3}
        )

        assert response.status_code == 200
        assert response.json() == {"summary": "Generated text"}
        assert upstream.calls[0].url.params["quarter"] == "2025Q3"
        assert AV_TRANSCRIPT["content"] in summarizer.calls[0]["prompt"]
        assert "IBM (2025Q3)" in summarizer.calls[0]["prompt"]

    def test_string_year_and_quarter(self, client, upstream):
        upstream.reply(AV_TRANSCRIPT)

        response = client.post(
            "/api/summarize-earnings", json={"ticker": "IBM", "year": "2025", "quarter": "1"}
        )

        assert response.status_code == 200
        assert upstream.calls[0].url.params["quarter"] == "2025Q1"

    def test_missing_fields(self, client, upstream):
        response = client.post("/api/summarize-earnings", json={"ticker": "IBM"})

        assert response.status_code == 400
        assert "error" in response.json()
        assert upstream.calls == []

    def test_invalid_quarter(self, client):
        response = client.post(
            "/api/summarize-earnings", json={"ticker": "IBM", "year": 2025, "quarter": 5}
        )
        assert response.status_code == 400

    def test_transcript_missing(self, client, upstream, summarizer):
        upstream.reply({"symbol": "IBM"})

        response = client.post(
            "/api/summarize-earnings", json={"ticker": "IBM", "year": 2025, "quarter": 3}
        )

        assert response.status_code == 404
        assert summarizer.calls == []


class TestGenerateAnalysisEndpoint:
    """Test /api/generate-analysis."""

    def test_text(self, client, summarizer, test_settings):
        response = client.post("/api/generate-analysis", json={"prompt": "Analyze AAPL"})

        assert response.status_code == 200
        assert response.json() == {"text": "Generated text"}
        call = summarizer.calls[0]
        assert call["prompt"] == "Analyze AAPL"
        assert call["model"] == test_settings.analysis_model
        assert "Markdown" in call["system_instruction"]

    def test_missing_prompt(self, client):
        response = client.post("/api/generate-analysis", json={})
        assert response.status_code == 400

    def test_model_failure(self, client, summarizer):
        summarizer.error = SummarizerError("Failed to generate text from Gemini.", details="quota")

        response = client.post("/api/generate-analysis", json={"prompt": "Analyze AAPL"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to generate text from Gemini.",
            "details": "quota",
        }


class TestTranscriptSummaryEndpoint:
    """Test /api/generate-transcript-summary."""

    def test_uses_remote_instruction(self, client, upstream, summarizer):
        upstream.reply(httpx.Response(200, text="Summarize like an investor."))

        response = client.post(
            "/api/generate-transcript-summary",
            json={"transcriptText": "We grew revenue.", "ticker": "IBM", "quarter": "2025Q3"},
        )

        assert response.status_code == 200
        call = summarizer.calls[0]
        assert call["system_instruction"] == "Summarize like an investor."
        assert call["prompt"].endswith("We grew revenue.")
        assert "IBM (2025Q3)" in call["prompt"]

    def test_missing_transcript(self, client):
        response = client.post("/api/generate-transcript-summary", json={"ticker": "IBM"})
        assert response.status_code == 400

    def test_without_ticker_and_quarter(self, client, upstream, summarizer):
        upstream.reply(httpx.Response(200, text="Summarize like an investor."))

        response = client.post(
            "/api/generate-transcript-summary", json={"transcriptText": "We grew revenue."}
        )

        assert response.status_code == 200
        prompt = summarizer.calls[0]["prompt"]
        assert "None" not in prompt
        assert "()" not in prompt
        assert prompt.endswith("following transcript:\n\nWe grew revenue.")
