from __future__ import annotations

import sys
from pathlib import PurePosixPath
from typing import Any, Sequence

import questionary
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from todotriage.markers import DEFAULT_TOKENS, MarkerEntry, token_in

console = Console()

TOKEN_STYLES = {
    "TODO:": "bold yellow",
    "FIXME:": "bold red",
}
OTHER_TOKEN_STYLE = "bold magenta"


def banner() -> None:
    console.print(
        Panel.fit("[bold]todotriage[/bold]  ·  markers in your uncommitted changes", border_style="dim")
    )


def success(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def info(msg: str) -> None:
    console.print(f"[dim]→[/dim] {msg}")


def warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {msg}")


def error(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def ask(prompt: str, default: str = "") -> str:
    return Prompt.ask(f"  {prompt}", default=default, console=console)


def choose(prompt: str, choices: list[str]) -> str:
    if _can_use_interactive_selector():
        selected = questionary.select(
            f"  {prompt}",
            choices=choices,
            qmark="",
        ).ask()
        if selected:
            return selected

    for i, c in enumerate(choices, 1):
        console.print(f"  [dim]{i}.[/dim] {c}")
    while True:
        val = ask(prompt)
        picked = _pick(val, choices)
        if picked is not None:
            return picked
        warn("Invalid choice, try again")


def choose_optional(
    prompt: str, choices: list[str], keys: dict[str, str] | None = None
) -> str | None:
    """Select one of choices, or None when the user exits.

    keys maps single keystrokes to a result returned immediately, e.g.
    {"r": "refresh"}.
    """
    keys = keys or {}
    if _can_use_interactive_selector():
        try:
            question = questionary.select(
                f"  {prompt}",
                choices=choices,
                qmark="",
                instruction=_key_instruction(keys),
            )
            _bind_escape_to_cancel(question)
            _bind_result_keys(question, keys)
            return question.ask(kbi_msg="")
        except KeyboardInterrupt:
            return None

    for i, c in enumerate(choices, 1):
        console.print(f"  [dim]{i}.[/dim] {c}", markup=False, highlight=False)
    console.print("  [dim]Press Enter to exit.[/dim]")
    while True:
        val = ask(prompt)
        if not val:
            return None
        if val in keys:
            return keys[val]
        picked = _pick(val, choices)
        if picked is not None:
            return picked
        warn("Invalid choice, try again")


def spinner(msg: str) -> Any:
    return console.status(f"[dim]{msg}[/dim]", spinner="dots")


def marker_text(content: str, tokens: Sequence[str] = DEFAULT_TOKENS) -> Text:
    text = Text(content, style="blue")
    for token in tokens:
        text.highlight_words([token], style=TOKEN_STYLES.get(token, OTHER_TOKEN_STYLE))
    return text


def location_text(entry: MarkerEntry) -> Text:
    path = PurePosixPath(entry.file)
    text = Text()
    if str(path.parent) != ".":
        text.append(f"{path.parent}/", style="dim")
    text.append(path.name, style="green")
    text.append(":")
    text.append(str(entry.line), style="yellow")
    return text


def marker_label(entry: MarkerEntry) -> str:
    return f"{entry.file}:{entry.line} - {entry.content}"


def marker_table(entries: list[MarkerEntry], tokens: Sequence[str] = DEFAULT_TOKENS) -> None:
    if not entries:
        info("No changed markers found.")
        return
    table = Table(show_header=True, header_style="bold", border_style="dim")
    table.add_column("Location", no_wrap=True)
    table.add_column("Marker")
    for entry in entries:
        table.add_row(location_text(entry), marker_text(entry.content, tokens))
    console.print(table)
    counts: dict[str, int] = {}
    for entry in entries:
        token = token_in(entry.content, tokens) or "?"
        counts[token] = counts.get(token, 0) + 1
    summary = ", ".join(f"{n} {t.rstrip(':')}" for t, n in counts.items())
    info(f"{len(entries)} marker(s): {summary}")


def plain_markers(entries: list[MarkerEntry]) -> None:
    for entry in entries:
        console.print(
            f"{entry.location()}: {entry.content}", markup=False, highlight=False, soft_wrap=True
        )


def show_config_summary(cfg: dict[str, Any]) -> None:
    console.print()
    table = Table(show_header=False, border_style="dim", padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Editor", cfg.get("editor", "") or "($EDITOR)")
    table.add_row("Tokens", ", ".join(cfg.get("tokens", [])))
    table.add_row("Default Scope", cfg.get("default_scope", "global"))
    console.print(table)


def _pick(val: str, choices: list[str]) -> str | None:
    if val in choices:
        return val
    try:
        idx = int(val) - 1
    except ValueError:
        return None
    if 0 <= idx < len(choices):
        return choices[idx]
    return None


def _key_instruction(keys: dict[str, str]) -> str:
    hints = [f"{k}: {v}" for k, v in keys.items()]
    return "(" + ", ".join([*hints, "Esc/q to exit"]) + ")"


def _can_use_interactive_selector() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def can_use_interactive_selector() -> bool:
    return _can_use_interactive_selector()


def _bind_escape_to_cancel(question: Any) -> None:
    key_bindings = getattr(getattr(question, "application", None), "key_bindings", None)
    if key_bindings is None:
        return

    @key_bindings.add("escape", eager=True)
    @key_bindings.add("q", eager=True)
    def _cancel(event: Any) -> None:
        event.app.exit(result=None)


def _bind_result_keys(question: Any, keys: dict[str, str]) -> None:
    key_bindings = getattr(getattr(question, "application", None), "key_bindings", None)
    if key_bindings is None:
        return
    for key, result in keys.items():
        key_bindings.add(key, eager=True)(_exit_with(result))


def _exit_with(result: str) -> Any:
    def handler(event: Any) -> None:
        event.app.exit(result=result)

    return handler
