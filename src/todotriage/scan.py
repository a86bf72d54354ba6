from __future__ import annotations

import enum
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Sequence

from todotriage.markers import DEFAULT_TOKENS, MarkerEntry, matches_token

logger = logging.getLogger(__name__)

FILE_HEADER_RE = re.compile(r"^diff --git a/.+ b/(?P<path>.+)$")
QUOTED_FILE_HEADER_RE = re.compile(r'^diff --git .+ "b/(?P<path>(?:[^"\\]|\\.)*)"$')
HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(?P<start>\d+)(?:,\d+)? @@")

UNTRACKED_MAX_WORKERS = 8


class Rule(enum.Enum):
    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    ADDED = "added"
    REMOVED = "removed"
    IGNORED = "ignored"
    CONTEXT = "context"


def classify(line: str) -> Rule:
    if QUOTED_FILE_HEADER_RE.match(line) or FILE_HEADER_RE.match(line):
        return Rule.FILE_HEADER
    if HUNK_HEADER_RE.match(line):
        return Rule.HUNK_HEADER
    if line.startswith("+") and not line.startswith("+++"):
        return Rule.ADDED
    if line.startswith("-") and not line.startswith("---"):
        return Rule.REMOVED
    if line.startswith("---") or line.startswith("@@"):
        return Rule.IGNORED
    return Rule.CONTEXT


class UnifiedDiffScanner:
    """Single-pass scanner over `git diff -U0` output.

    Only added lines are reported. The scanner tracks the file named by the
    last `diff --git` header and the new-file position seeded by the last hunk
    header; every added or context line advances that position by one.
    Unrecognized lines fall through as context so malformed input never raises.
    """

    def __init__(self, tokens: Sequence[str] = DEFAULT_TOKENS) -> None:
        self.tokens = tuple(tokens)
        self.current_file = ""
        self.current_line = 0

    def feed(self, line: str) -> MarkerEntry | None:
        rule = classify(line)
        if rule is Rule.FILE_HEADER:
            self.current_file = _new_path(line)
            return None
        if rule is Rule.HUNK_HEADER:
            self.current_line = _new_start(line)
            return None
        if rule is Rule.ADDED:
            content = line[1:].strip()
            entry = None
            if matches_token(content, self.tokens):
                entry = MarkerEntry(self.current_file, self.current_line, content)
            self.current_line += 1
            return entry
        if rule is Rule.CONTEXT:
            self.current_line += 1
        return None

    def scan(self, diff_text: str) -> list[MarkerEntry]:
        entries = []
        for line in physical_lines(diff_text):
            entry = self.feed(line)
            if entry is not None:
                entries.append(entry)
        return entries


def scan_diff(diff_text: str, tokens: Sequence[str] = DEFAULT_TOKENS) -> list[MarkerEntry]:
    return UnifiedDiffScanner(tokens).scan(diff_text)


def scan_file_text(
    file: str, text: str, tokens: Sequence[str] = DEFAULT_TOKENS
) -> list[MarkerEntry]:
    entries = []
    for idx, raw in enumerate(physical_lines(text)):
        content = raw.strip()
        if matches_token(content, tokens):
            entries.append(MarkerEntry(file, idx + 1, content))
    return entries


def scan_untracked(
    paths: Sequence[str],
    read_text: Callable[[str], str],
    tokens: Sequence[str] = DEFAULT_TOKENS,
    max_workers: int = UNTRACKED_MAX_WORKERS,
) -> tuple[list[MarkerEntry], list[str]]:
    """Scan whole untracked files.

    Returns (entries, errors). A file that cannot be read is logged, listed in
    errors and contributes no entries; the remaining files are still scanned.
    """

    def scan_one(path: str) -> tuple[list[MarkerEntry], str | None]:
        try:
            text = read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read untracked file %s: %s", path, exc)
            return [], f"Could not read untracked file {path}: {exc}"
        return scan_file_text(path, text, tokens), None

    entries: list[MarkerEntry] = []
    errors: list[str] = []
    if not paths:
        return entries, errors
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(paths)))) as pool:
        for found, err in pool.map(scan_one, paths):
            entries.extend(found)
            if err:
                errors.append(err)
    return entries, errors


def aggregate(
    diff_entries: Iterable[MarkerEntry], untracked_entries: Iterable[MarkerEntry]
) -> list[MarkerEntry]:
    return [*diff_entries, *untracked_entries]


def physical_lines(text: str) -> list[str]:
    return text.split("\n")


def _new_path(line: str) -> str:
    quoted = QUOTED_FILE_HEADER_RE.match(line)
    if quoted:
        return unquote_path(quoted.group("path"))
    m = FILE_HEADER_RE.match(line)
    return m.group("path").rstrip("\r") if m else ""


C_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "v": "\v",
    "f": "\f",
    "r": "\r",
    '"': '"',
    "\\": "\\",
}


def unquote_path(quoted: str) -> str:
    """Undo git's C-style path quoting; octal escapes are UTF-8 bytes."""
    out = bytearray()
    i = 0
    while i < len(quoted):
        ch = quoted[i]
        if ch == "\\" and i + 1 < len(quoted):
            nxt = quoted[i + 1]
            octal = quoted[i + 1 : i + 4]
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                out.append(int(octal, 8) & 0xFF)
                i += 4
                continue
            out += C_ESCAPES.get(nxt, nxt).encode("utf-8")
            i += 2
            continue
        out += ch.encode("utf-8")
        i += 1
    return out.decode("utf-8", errors="replace")


def _new_start(line: str) -> int:
    m = HUNK_HEADER_RE.match(line)
    return int(m.group("start")) if m else 0
