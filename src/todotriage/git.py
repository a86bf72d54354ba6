from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from todotriage.markers import DEFAULT_TOKENS, MarkerEntry
from todotriage.scan import aggregate, scan_diff, scan_untracked

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 30.0

DIFF_ARGS = ["diff", "-U0", "--no-color", "--no-ext-diff", "--src-prefix=a/", "--dst-prefix=b/"]
UNTRACKED_ARGS = ["ls-files", "--others", "--exclude-standard", "-z"]
DIFF_CONFIG = {"core.quotePath": "false"}


class GitError(RuntimeError):
    """Raised when a git command cannot be run or exits non-zero."""


@dataclass(frozen=True)
class ScanReport:
    root: Path
    entries: list[MarkerEntry] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def run_git(args: Sequence[str], cwd: Path, config: dict[str, str] | None = None) -> str:
    overrides = [arg for key, value in (config or {}).items() for arg in ("-c", f"{key}={value}")]
    cmd = ["git", *overrides, *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitError(f"'{' '.join(cmd)}' timed out after {GIT_TIMEOUT_SECONDS:.0f}s") from exc
    if result.returncode != 0:
        detail = result.stderr.strip() or f"exit status {result.returncode}"
        raise GitError(f"'{' '.join(cmd)}' failed: {detail}")
    return result.stdout


def repo_root(cwd: Path) -> Path:
    return Path(run_git(["rev-parse", "--show-toplevel"], cwd).strip())


def working_tree_diff(root: Path) -> str:
    return run_git(DIFF_ARGS, root, config=DIFF_CONFIG)


def untracked_files(root: Path) -> list[str]:
    out = run_git(UNTRACKED_ARGS, root)
    return [p for p in out.split("\0") if p.strip()]


def collect_markers(cwd: Path, tokens: Sequence[str] = DEFAULT_TOKENS) -> ScanReport:
    """Scan uncommitted changes under the repository containing cwd.

    Failures of either producer are logged and reported in ScanReport.errors;
    that producer then contributes no entries.
    """
    try:
        root = repo_root(cwd)
    except GitError as e:
        logger.warning("Not scanning %s: %s", cwd, e)
        return ScanReport(root=cwd, errors=[f"Not a git repository ({e})"])

    with ThreadPoolExecutor(max_workers=2) as pool:
        diff_future = pool.submit(_diff_markers, root, tokens)
        untracked_future = pool.submit(_untracked_markers, root, tokens)
        diff_entries, diff_errors = diff_future.result()
        untracked_entries, untracked_errors = untracked_future.result()

    return ScanReport(
        root=root,
        entries=aggregate(diff_entries, untracked_entries),
        errors=[*diff_errors, *untracked_errors],
    )


def _diff_markers(root: Path, tokens: Sequence[str]) -> tuple[list[MarkerEntry], list[str]]:
    try:
        diff_text = working_tree_diff(root)
    except GitError as e:
        logger.warning("Error running git diff: %s", e)
        return [], [f"Error running git diff: {e}"]
    entries = scan_diff(diff_text, tokens)
    logger.debug("git diff yielded %d marker(s)", len(entries))
    return entries, []


def _untracked_markers(root: Path, tokens: Sequence[str]) -> tuple[list[MarkerEntry], list[str]]:
    try:
        paths = untracked_files(root)
    except GitError as e:
        logger.warning("Error listing untracked files: %s", e)
        return [], [f"Error listing untracked files: {e}"]
    logger.debug("scanning %d untracked file(s)", len(paths))
    return scan_untracked(paths, lambda p: (root / p).read_text(encoding="utf-8"), tokens)
