from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.logging import RichHandler

from todotriage import ui
from todotriage.commands import init_cmd, triage_cmd
from todotriage.commands import (
    list_cmd as list_command,
)

SCOPE_CHOICES = ["auto", "global", "project"]


def with_scope_option(help_text: str = "Config scope to use."):
    return click.option(
        "--scope",
        type=click.Choice(SCOPE_CHOICES),
        default="auto",
        show_default=True,
        help=help_text,
    )


def with_scan_options(fn):
    fn = click.option(
        "--token",
        "tokens",
        multiple=True,
        help="Marker token to look for (repeatable). Overrides configured tokens.",
    )(fn)
    fn = click.option(
        "--repo",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Directory inside the git repository to scan. Defaults to the current directory.",
    )(fn)
    return with_scope_option()(fn)


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Log scan details.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Triage TODO/FIXME markers added by uncommitted changes."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return
    triage_cmd.run()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=ui.console, show_path=False)],
        force=True,
    )


@main.command()
@with_scan_options
def triage(repo: Path | None, tokens: tuple[str, ...], scope: str) -> None:
    """Pick a changed marker and open it in your editor."""
    triage_cmd.run(repo, tokens, scope=scope)


@main.command(name="list")
@with_scan_options
@click.option("--plain", is_flag=True, help="Print file:line: content lines without styling.")
def list_cmd(repo: Path | None, tokens: tuple[str, ...], scope: str, plain: bool) -> None:
    """List markers added by uncommitted changes."""
    list_command.run(repo, tokens, scope=scope, plain=plain)


@main.command()
@with_scope_option("Where to save config.")
def init(scope: str) -> None:
    """Set editor, marker tokens and default scope."""
    init_cmd.run(scope=scope)


if __name__ == "__main__":
    main()
