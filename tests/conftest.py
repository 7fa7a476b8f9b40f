"""Pytest configuration and shared fixtures."""

from typing import Any

import httpx
import pytest

from ticker_api.core.config import Settings
from ticker_api.core.credentials import CredentialPool


class FakeUpstream:
    """Deterministic stand-in for a provider.

    Replies are matched on query parameters (e.g. ``apikey``, ``function``);
    the first matching rule wins. A reply is a JSON payload, an
    ``httpx.Response``, or one of ``"timeout"``, ``"connect"`` and
    ``"invalid_url"`` to raise.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self._rules: list[tuple[dict[str, str], Any]] = []

    def reply(self, reply: Any, **match: str) -> "FakeUpstream":
        self._rules.append((match, reply))
        return self

    def calls_for(self, **match: str) -> list[httpx.Request]:
        return [
            call
            for call in self.calls
            if all(call.url.params.get(k) == v for k, v in match.items())
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        for match, reply in self._rules:
            if all(request.url.params.get(k) == v for k, v in match.items()):
                return self._render(reply, request)
        raise AssertionError(f"No reply configured for {request.url}")

    @staticmethod
    def _render(reply: Any, request: httpx.Request) -> httpx.Response:
        if reply == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if reply == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        if reply == "invalid_url":
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")
        if isinstance(reply, httpx.Response):
            # Fresh copy, so one configured reply can answer many calls
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        return httpx.Response(200, json=reply)


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fake provider with no replies configured."""
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    """HTTP client routed to the fake provider."""
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def pool() -> CredentialPool:
    """Two-key pool."""
    return CredentialPool.from_values(["keyA", "keyB"])


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and .env file."""
    return Settings(
        _env_file=None,
        alpha_key="keyA",
        alpha_key_2="keyB",
        alpha_key_3="",
        alpha_key_4="",
        alpha_key_5="",
        api_key="gemini-test-key",
        alpha_vantage_url="https://av.test/query",
        yahoo_quote_summary_url="https://yahoo.test/v10/finance/quoteSummary",
        template_urls=["https://mirror-1.test/t.md", "https://mirror-2.test/t.md"],
        transcript_prompt_url="https://prompts.test/transcript.md",
    )
