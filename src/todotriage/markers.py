from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

DEFAULT_TOKENS: tuple[str, ...] = ("TODO:", "FIXME:")


@dataclass(frozen=True)
class MarkerEntry:
    """A marker line found in the post-change version of a file."""

    file: str
    line: int
    content: str

    def location(self) -> str:
        return f"{self.file}:{self.line}"


def matches_token(text: str, tokens: Iterable[str] = DEFAULT_TOKENS) -> bool:
    return any(token in text for token in tokens)


def token_in(text: str, tokens: Iterable[str] = DEFAULT_TOKENS) -> str | None:
    for token in tokens:
        if token in text:
            return token
    return None
