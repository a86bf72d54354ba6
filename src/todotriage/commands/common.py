from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

from rich.markup import escape

from todotriage import config, ui

EDITOR_ALIASES = {
    "vscode": "code",
    "visual-studio-code": "code",
    "visual studio code": "code",
    "neovim": "nvim",
    "sublime": "subl",
    "sublime-text": "subl",
    "sublime text": "subl",
    "helix": "hx",
}

EDITOR_FALLBACKS = {
    "code": ["/Applications/Visual Studio Code.app/Contents/Resources/app/bin/code"],
    "cursor": ["/Applications/Cursor.app/Contents/Resources/app/bin/cursor"],
    "subl": ["/Applications/Sublime Text.app/Contents/SharedSupport/bin/subl"],
}

COMMON_EDITORS = [
    ("Cursor", ["cursor"]),
    ("Visual Studio Code", ["code", "code-insiders"]),
    ("Neovim", ["nvim"]),
    ("Vim", ["vim"]),
    ("Nano", ["nano"]),
    ("Zed", ["zed"]),
    ("Helix", ["hx"]),
    ("Sublime Text", ["subl", "sublime_text"]),
]

# How each editor family is told to jump to a line.
GOTO_FLAG_EDITORS = {"code", "code-insiders", "cursor", "windsurf", "codium"}
GOTO_SUFFIX_EDITORS = {"subl", "sublime_text", "zed", "hx", "atom"}
GOTO_PLUS_EDITORS = {"vi", "vim", "nvim", "nano", "emacs", "emacsclient", "micro", "kak", "gedit"}


def open_at_line(path: Path, line: int, cfg: dict[str, Any] | None = None) -> None:
    ed = resolve_editor_command(config.editor(cfg))
    if not ed:
        ui.error(
            "Editor command not found. Run [bold]todotriage init[/bold] and pick an installed editor."
        )
        raise SystemExit(1)
    try:
        subprocess.call([ed, *goto_args(ed, path, line)])
    except OSError as e:
        ui.error(f"Could not launch editor '{ed}': {e}")
        raise SystemExit(1)


def goto_args(editor: str, path: Path, line: int) -> list[str]:
    name = Path(editor).name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    if name in GOTO_FLAG_EDITORS:
        return ["-g", f"{path}:{line}"]
    if name in GOTO_SUFFIX_EDITORS:
        return [f"{path}:{line}"]
    if name in GOTO_PLUS_EDITORS:
        return [f"+{line}", str(path)]
    return [str(path)]


def resolve_editor_command(editor: str) -> str | None:
    candidate = editor.strip()
    if not candidate:
        return None

    if shutil.which(candidate):
        return candidate

    normalized = candidate.lower()
    alias = EDITOR_ALIASES.get(normalized)
    if alias and shutil.which(alias):
        return alias

    for fallback in EDITOR_FALLBACKS.get(alias or candidate, []):
        if Path(fallback).exists():
            return fallback
    return None


def discover_editor_suggestions() -> list[tuple[str, str]]:
    suggestions: list[tuple[str, str]] = []
    for label, commands in COMMON_EDITORS:
        for cmd in commands:
            resolved = resolve_editor_command(cmd)
            if resolved:
                suggestions.append((label, resolved))
                break
    return suggestions


def scan_tokens(cli_tokens: tuple[str, ...], cfg: dict[str, Any]) -> tuple[str, ...]:
    if cli_tokens:
        return tuple(t for t in cli_tokens if t)
    return config.tokens(cfg)


def report_errors(errors: list[str]) -> None:
    for err in errors:
        ui.warn(escape(err))
