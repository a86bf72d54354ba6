from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture()
def isolated_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, Path]:
    from todotriage import config

    home = tmp_path / "home"
    home.mkdir()

    monkeypatch.setenv("HOME", str(home))

    todotriage_home = home / ".todotriage"
    config_path = todotriage_home / "config.toml"

    monkeypatch.setattr(config, "TODOTRIAGE_HOME", todotriage_home)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)

    return {
        "home": home,
        "todotriage_home": todotriage_home,
        "config_path": config_path,
    }


@pytest.fixture()
def mixed_diff() -> str:
    return (
        "diff --git a/app/models.py b/app/models.py\n"
        "index 3b18e51..a9c2f10 100644\n"
        "--- a/app/models.py\n"
        "+++ b/app/models.py\n"
        "@@ -5,0 +10,2 @@\n"
        "+    retries = 3  # TODO: make configurable\n"
        "+    timeout = 10  # FIXME: too short on CI\n"
        "@@ -20 +22 @@\n"
        "-    # TODO: drop legacy path\n"
        "+    # legacy path dropped\n"
        "diff --git a/README.md b/README.md\n"
        "index 1111111..2222222 100644\n"
        "--- a/README.md\n"
        "+++ b/README.md\n"
        "@@ -1,0 +1 @@\n"
        "+TODO: write the install section\n"
    )
