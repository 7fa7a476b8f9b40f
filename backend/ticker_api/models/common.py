"""Common types and helpers for input validation."""

import re
from typing import Annotated

from pydantic import BaseModel, Field

from ticker_api.core.errors import MissingInputError

# Letters, digits, dot and dash (BRK.B, RDS-A, 7203.T)
TICKER_PATTERN = r"^[A-Za-z0-9.\-]{1,15}$"

TickerSymbol = Annotated[
    str,
    Field(
        min_length=1,
        max_length=15,
        pattern=TICKER_PATTERN,
        description="Stock ticker symbol",
        examples=["AAPL"],
    ),
]


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint."""

    error: str
    details: str | None = None


def normalize_ticker(ticker: str | None) -> str:
    """Trim and upper-case a ticker.

    Blank input and characters outside the ticker alphabet are client errors;
    the result is safe to place in a URL path.
    """
    if not ticker or not ticker.strip():
        raise MissingInputError("Ticker is required and must be a string.")

    symbol = ticker.strip().upper()
    if not re.fullmatch(TICKER_PATTERN, symbol):
        raise MissingInputError(
            "Ticker contains invalid characters.",
            details="Use letters, digits, dot or dash (up to 15 characters).",
        )
    return symbol
