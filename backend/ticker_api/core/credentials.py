"""Ordered pool of provider API keys."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


def key_suffix(credential: str, visible_chars: int = 4) -> str:
    """Render a credential for log lines (``...abcd``)."""
    return f"...{credential[-visible_chars:]}"


@dataclass(frozen=True)
class CredentialPool:
    """Immutable, ordered list of usable credentials.

    Earlier entries are tried first. The pool may be empty; callers must
    check for that before attempting any network call.
    """

    credentials: tuple[str, ...] = ()

    @classmethod
    def from_values(cls, values: Iterable[str | None]) -> "CredentialPool":
        """Drop absent or blank values, keeping the original order."""
        return cls(tuple(v.strip() for v in values if v and v.strip()))

    def __iter__(self) -> Iterator[str]:
        return iter(self.credentials)

    def __len__(self) -> int:
        return len(self.credentials)

    def __bool__(self) -> bool:
        return bool(self.credentials)
