from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.markup import escape

from todotriage import config, git, ui
from todotriage.markers import MarkerEntry

from .common import open_at_line, report_errors, scan_tokens

REFRESH = "↻ refresh"
DONE = "done"


def run(repo: Path | None = None, tokens: tuple[str, ...] = (), scope: str = "auto") -> None:
    ui.banner()
    cwd = repo or Path.cwd()
    cfg = config.load(scope=scope, cwd=cwd)
    active_tokens = scan_tokens(tokens, cfg)

    while True:
        report = scan(cwd, active_tokens)
        if not ui.can_use_interactive_selector() or not _triage_once(report, cfg):
            return


def scan(cwd: Path, tokens: tuple[str, ...]) -> git.ScanReport:
    with ui.spinner("Scanning changes..."):
        report = git.collect_markers(cwd, tokens)
    report_errors(report.errors)
    ui.marker_table(report.entries, tokens)
    return report


def _triage_once(report: git.ScanReport, cfg: dict[str, Any]) -> bool:
    """Prompt for one marker and open it. Returns False when the user is done."""
    by_label = {ui.marker_label(entry): entry for entry in report.entries}
    choices = [*by_label, REFRESH, DONE]
    selected = ui.choose_optional("Open marker", choices, keys={"r": REFRESH})
    if selected in (None, DONE):
        return False
    if selected == REFRESH:
        return True
    _open(report.root, by_label[selected], cfg)
    return True


def _open(root: Path, entry: MarkerEntry, cfg: dict[str, Any]) -> None:
    ui.info(f"Opening [bold]{escape(entry.file)}[/bold] at line {entry.line}")
    try:
        open_at_line(root / entry.file, entry.line, cfg)
    except SystemExit:
        return
