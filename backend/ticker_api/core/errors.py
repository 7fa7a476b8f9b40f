"""Error hierarchy for provider-backed endpoints.

All errors inherit from ProviderError and carry the HTTP status they map to.
`to_dict()` produces the body returned to the browser client.
"""

from __future__ import annotations

from typing import Any


class ProviderError(Exception):
    """Base error for all provider-backed operations.

    Attributes:
        message: Human-readable error shown to the user
        details: Diagnostic detail (provider note, attempted URL)
        source: Data source name (if applicable)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: str | None = None,
        source: str | None = None,
    ) -> None:
        self.message = message
        self.details = details
        self.source = source
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON error response."""
        body: dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(ProviderError):
    """Server is missing required configuration (e.g. no API keys).

    Raised before any network call is attempted.
    """

    status_code = 500


class FetchFailedError(ProviderError):
    """Every credential ended in a transport failure."""

    status_code = 502

    def __init__(self, message: str = "Failed to fetch data.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class QuotaExceededError(ProviderError):
    """Rate limit or quota notes seen and every credential was exhausted."""

    status_code = 429

    def __init__(
        self, message: str = "API rate limit exceeded on all keys.", **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class InvalidRequestError(ProviderError):
    """Provider explicitly rejected the request (bad symbol or parameter).

    Not retried with other credentials.
    """

    status_code = 400


class NotFoundError(ProviderError):
    """Provider answered but returned nothing useful."""

    status_code = 404


class UpstreamStatusError(ProviderError):
    """A single-source upstream answered with a non-2xx status.

    The upstream status is passed through to the client.
    """

    def __init__(self, message: str, *, status_code: int, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class SummarizerError(ProviderError):
    """The hosted language model call failed."""

    status_code = 500


class MissingInputError(ProviderError):
    """Required request input is missing, blank or malformed."""

    status_code = 400
