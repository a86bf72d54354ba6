from __future__ import annotations

import os

from todotriage import config, ui

from .common import discover_editor_suggestions

CUSTOM_EDITOR = "Custom value"


def run(scope: str = "auto") -> None:
    ui.banner()
    ui.console.print()

    current = config.load(scope=scope)
    editor = _choose_editor()
    raw_tokens = ui.ask(
        "Marker tokens (comma-separated)", default=", ".join(config.tokens(current))
    )
    tokens = parse_tokens(raw_tokens) or list(config.tokens(current))
    default_scope = ui.choose("Default scope for config", list(config.SCOPES))

    cfg = {
        "editor": editor,
        "tokens": tokens,
        "default_scope": default_scope,
    }
    path = config.save(cfg, scope=scope)

    ui.show_config_summary(cfg)
    ui.console.print()
    ui.success(f"Config saved to [bold]{path}[/bold]")


def parse_tokens(raw: str) -> list[str]:
    seen: list[str] = []
    for part in raw.split(","):
        token = part.strip()
        if token and token not in seen:
            seen.append(token)
    return seen


def _choose_editor() -> str:
    default_editor = os.environ.get("EDITOR", "vim")
    suggestions = discover_editor_suggestions()
    if not suggestions:
        return ui.ask("Preferred editor", default=default_editor)
    display_to_cmd = {f"{label} ({cmd})": cmd for label, cmd in suggestions}
    selected = ui.choose("Preferred editor", [*display_to_cmd, CUSTOM_EDITOR])
    if selected in display_to_cmd:
        return display_to_cmd[selected]
    return ui.ask("Preferred editor", default=default_editor)
