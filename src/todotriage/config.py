from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from todotriage.markers import DEFAULT_TOKENS

TODOTRIAGE_HOME = Path.home() / ".todotriage"
CONFIG_PATH = TODOTRIAGE_HOME / "config.toml"
PROJECT_DIRNAME = ".todotriage"

SCOPES = ("global", "project")

DEFAULT_CONFIG: dict[str, Any] = {
    "editor": "",
    "tokens": list(DEFAULT_TOKENS),
    "default_scope": "global",
}


def _load_from_path(path: Path) -> dict[str, Any]:
    if not path.exists():
        return dict(DEFAULT_CONFIG)
    return {**DEFAULT_CONFIG, **tomllib.loads(path.read_text())}


def load(
    scope: str = "auto", cwd: Path | None = None, cfg: dict[str, Any] | None = None
) -> dict[str, Any]:
    return _load_from_path(config_file_path(scope=scope, cwd=cwd, cfg=cfg))


def save(
    cfg: dict[str, Any],
    scope: str = "global",
    cwd: Path | None = None,
) -> Path:
    path = config_file_path(scope=scope, cwd=cwd)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(cfg).encode())
    return path


def editor(cfg: dict[str, Any] | None = None) -> str:
    cfg = cfg or load()
    return cfg.get("editor") or os.environ.get("EDITOR", "vim")


def tokens(cfg: dict[str, Any] | None = None) -> tuple[str, ...]:
    cfg = cfg or load()
    configured = [str(t) for t in cfg.get("tokens") or [] if str(t)]
    return tuple(configured) or DEFAULT_TOKENS


def resolve_scope(
    scope: str = "auto", cwd: Path | None = None, cfg: dict[str, Any] | None = None
) -> str:
    if scope in SCOPES:
        return scope
    project_home = (cwd or Path.cwd()) / PROJECT_DIRNAME
    if project_home.exists():
        return "project"
    loaded = cfg or _load_from_path(CONFIG_PATH)
    preferred = str(loaded.get("default_scope", "global")).strip().lower()
    if preferred in SCOPES:
        return preferred
    return "global"


def scope_home(
    scope: str = "auto", cwd: Path | None = None, cfg: dict[str, Any] | None = None
) -> Path:
    resolved = resolve_scope(scope=scope, cwd=cwd, cfg=cfg)
    if resolved == "project":
        return (cwd or Path.cwd()) / PROJECT_DIRNAME
    return TODOTRIAGE_HOME


def config_file_path(
    scope: str = "auto", cwd: Path | None = None, cfg: dict[str, Any] | None = None
) -> Path:
    return scope_home(scope=scope, cwd=cwd, cfg=cfg) / "config.toml"
