from __future__ import annotations

from pathlib import Path

from todotriage import config, git, ui

from .common import report_errors, scan_tokens


def run(
    repo: Path | None = None,
    tokens: tuple[str, ...] = (),
    scope: str = "auto",
    plain: bool = False,
) -> None:
    cwd = repo or Path.cwd()
    active_tokens = scan_tokens(tokens, config.load(scope=scope, cwd=cwd))
    report = git.collect_markers(cwd, active_tokens)
    report_errors(report.errors)
    if plain:
        ui.plain_markers(report.entries)
        return
    ui.banner()
    ui.marker_table(report.entries, active_tokens)
