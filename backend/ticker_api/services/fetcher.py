"""Credential-rotating fetch primitive.

One logical request is tried against each credential of a pool, in order.
Every attempt ends in one of four outcomes:

- TRANSPORT_FAILURE: network error, timeout, non-2xx status or non-JSON body
- SOFT_ERROR: 2xx, but the payload carries a rate-limit / quota note
- HARD_ERROR: 2xx, but the payload carries an explicit provider error
- SUCCESS: 2xx, parseable payload, no markers

Only SUCCESS and HARD_ERROR stop the rotation. A hard error means the request
itself is bad, so no other credential can fix it; a soft error is per-key
quota, so the next key may still work.

An exhausted pool ends as quota exceeded if any soft error was seen, as not
found if every attempt parsed but lacked the data, and as a generic fetch
failure otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from ticker_api.core.credentials import CredentialPool, key_suffix
from ticker_api.core.errors import (
    ConfigurationError,
    FetchFailedError,
    InvalidRequestError,
    NotFoundError,
    ProviderError,
    QuotaExceededError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Classification rules (v1). Phrase matching is case-sensitive substring.
RATE_LIMIT_PHRASES: tuple[str, ...] = (
    "rate limit",
    "call frequency",
    "requests per day",
    "higher API call frequency",
)
NOTE_FIELDS: tuple[str, ...] = ("Note", "Information")
ERROR_FIELDS: tuple[str, ...] = ("Error Message",)

# Non-JSON bodies up to this length are kept as diagnostic detail
MAX_DIAGNOSTIC_TEXT = 200


class Outcome(str, Enum):
    """Classification of a single attempt."""

    TRANSPORT_FAILURE = "transport_failure"
    SOFT_ERROR = "soft_error"
    HARD_ERROR = "hard_error"
    SUCCESS = "success"

    @property
    def is_terminal(self) -> bool:
        """Whether this outcome stops the rotation."""
        return self in (Outcome.SUCCESS, Outcome.HARD_ERROR)


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of classifying one attempt.

    `empty` marks a parsed payload that lacked the expected data; it rotates
    like a transport failure but a pool of only empty answers ends as NotFound.
    """

    kind: Outcome
    payload: Any = None
    message: str | None = None
    empty: bool = False


Classifier = Callable[[Any], AttemptOutcome]


@dataclass(frozen=True)
class RequestDescriptor:
    """A provider request with the credential deliberately left out.

    Attributes:
        base_url: Endpoint URL without query string
        params: Query parameters as (name, value) pairs
        credential_param: Query parameter the credential is sent as
        source: Provider name, for logs and errors
    """

    base_url: str
    params: tuple[tuple[str, str], ...] = ()
    credential_param: str = "apikey"
    source: str = "alphavantage"

    @classmethod
    def build(
        cls,
        base_url: str,
        *,
        credential_param: str = "apikey",
        source: str = "alphavantage",
        **params: str,
    ) -> "RequestDescriptor":
        """Create a descriptor from keyword query parameters."""
        return cls(
            base_url=base_url,
            params=tuple((name, str(value)) for name, value in params.items()),
            credential_param=credential_param,
            source=source,
        )

    def params_with(self, credential: str) -> dict[str, str]:
        """Query parameters for one attempt, credential included."""
        params = dict(self.params)
        params[self.credential_param] = credential
        return params

    @property
    def redacted_url(self) -> str:
        """URL without any credential, safe to log or return."""
        return str(httpx.URL(self.base_url, params=dict(self.params)))


@dataclass
class FetchResult(Generic[T]):
    """Terminal result of a rotation.

    Attributes:
        data: Provider payload (if successful)
        error: Terminal error (if failed)
        attempts: Number of network calls made
        url: Attempted URL, without credential
    """

    data: T | None = None
    error: ProviderError | None = None
    attempts: int = 0
    url: str = ""
    outcomes: list[Outcome] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        """Whether the fetch was successful."""
        return self.error is None

    def unwrap(self) -> T:
        """Return the payload or raise the terminal error."""
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]

    def to_dict(self) -> Any:
        """Payload on success, `{error, details}` otherwise."""
        if self.error is not None:
            return self.error.to_dict()
        return self.data


def _note_text(payload: dict[str, Any]) -> str | None:
    for name in NOTE_FIELDS:
        if payload.get(name):
            return str(payload[name])
    return None


def _error_text(payload: dict[str, Any]) -> str | None:
    for name in ERROR_FIELDS:
        if payload.get(name):
            return str(payload[name])
    return None


def classify_payload(payload: Any) -> AttemptOutcome:
    """Classify a parsed 2xx payload.

    A note only counts as a soft error when it matches a rate-limit phrase;
    any other note falls through to the error and success checks.
    """
    if not isinstance(payload, dict):
        return AttemptOutcome(Outcome.SUCCESS, payload=payload)

    note = _note_text(payload)
    if note and any(phrase in note for phrase in RATE_LIMIT_PHRASES):
        return AttemptOutcome(Outcome.SOFT_ERROR, payload=payload, message=note)

    error = _error_text(payload)
    if error:
        return AttemptOutcome(Outcome.HARD_ERROR, payload=payload, message=error)

    return AttemptOutcome(Outcome.SUCCESS, payload=payload)


def require_any_field(*fields: str) -> Classifier:
    """Classifier that also treats a payload lacking all `fields` as a miss.

    Some endpoints answer `{}` when a key has no access to the data; such a
    payload moves on to the next credential instead of succeeding.
    """

    def classify(payload: Any) -> AttemptOutcome:
        outcome = classify_payload(payload)
        if outcome.kind is Outcome.SUCCESS and not any(
            isinstance(payload, dict) and payload.get(name) for name in fields
        ):
            return AttemptOutcome(
                Outcome.TRANSPORT_FAILURE,
                payload=payload,
                message=f"Response lacks {', '.join(fields)}",
                empty=True,
            )
        return outcome

    return classify


async def _attempt(
    client: httpx.AsyncClient,
    descriptor: RequestDescriptor,
    credential: str,
    classify: Classifier,
) -> AttemptOutcome:
    """Perform and classify one attempt.

    Anything the HTTP client raises, an unusable URL included, becomes a
    transport failure. Other exceptions are programming errors and propagate.
    """
    suffix = key_suffix(credential)

    try:
        response = await client.get(descriptor.base_url, params=descriptor.params_with(credential))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(
            f"{descriptor.source}: request with key ending {suffix} failed: {type(e).__name__}"
        )
        return AttemptOutcome(Outcome.TRANSPORT_FAILURE, message=type(e).__name__)

    if not response.is_success:
        logger.warning(
            f"{descriptor.source}: key ending {suffix} got status {response.status_code}"
        )
        return AttemptOutcome(
            Outcome.TRANSPORT_FAILURE, message=f"HTTP {response.status_code}"
        )

    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        logger.warning(f"{descriptor.source}: key ending {suffix} returned a non-JSON body")
        return AttemptOutcome(
            Outcome.TRANSPORT_FAILURE,
            message=text if len(text) <= MAX_DIAGNOSTIC_TEXT else "Non-JSON response",
        )

    outcome = classify(payload)
    match outcome.kind:
        case Outcome.SOFT_ERROR:
            logger.info(f"{descriptor.source}: rate limit hit for key ending {suffix}, trying next key")
        case Outcome.HARD_ERROR:
            logger.error(f"{descriptor.source}: API error with key ending {suffix}: {outcome.message}")
        case Outcome.TRANSPORT_FAILURE:
            logger.warning(f"{descriptor.source}: key ending {suffix}: {outcome.message}")
    return outcome


async def fetch_with_rotation(
    client: httpx.AsyncClient,
    descriptor: RequestDescriptor,
    pool: CredentialPool,
    classify: Classifier = classify_payload,
) -> FetchResult[Any]:
    """Fetch one logical resource, rotating through `pool` until a terminal outcome.

    Args:
        client: Shared HTTP client (carries the per-attempt timeout)
        descriptor: Request without credential
        pool: Credentials, tried strictly in order
        classify: Payload classifier

    Returns:
        FetchResult with data, or with one of ConfigurationError,
        InvalidRequestError, QuotaExceededError, NotFoundError, FetchFailedError
    """
    url = descriptor.redacted_url

    if not pool:
        return FetchResult(
            error=ConfigurationError(
                "No API keys are configured on the server.", source=descriptor.source
            ),
            url=url,
        )

    outcomes: list[Outcome] = []
    last_note: str | None = None
    last_failure: str | None = None
    empty_answers = 0

    for credential in pool:
        outcome = await _attempt(client, descriptor, credential, classify)
        outcomes.append(outcome.kind)

        match outcome.kind:
            case Outcome.SUCCESS:
                return FetchResult(
                    data=outcome.payload, attempts=len(outcomes), url=url, outcomes=outcomes
                )
            case Outcome.HARD_ERROR:
                return FetchResult(
                    error=InvalidRequestError(
                        outcome.message or "Invalid request.", source=descriptor.source
                    ),
                    attempts=len(outcomes),
                    url=url,
                    outcomes=outcomes,
                )
            case Outcome.SOFT_ERROR:
                last_note = outcome.message
            case Outcome.TRANSPORT_FAILURE:
                last_failure = outcome.message
                if outcome.empty:
                    empty_answers += 1

    if last_note is not None:
        error: ProviderError = QuotaExceededError(details=last_note, source=descriptor.source)
    elif empty_answers == len(outcomes):
        # Every key answered, none had the data
        error = NotFoundError(
            "No data returned by the provider.", details=url, source=descriptor.source
        )
    else:
        details = f"{last_failure} ({url})" if last_failure else url
        error = FetchFailedError(details=details, source=descriptor.source)

    logger.error(f"{descriptor.source}: all {len(pool)} keys exhausted for {url}")
    return FetchResult(error=error, attempts=len(outcomes), url=url, outcomes=outcomes)
