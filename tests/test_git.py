from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from todotriage import git
from todotriage.markers import MarkerEntry


def _fake_git(root: Path, outputs: dict[str, object]):
    calls: list[tuple[str, ...]] = []

    def run_git(args, cwd, config=None):
        calls.append(tuple(args))
        out = outputs[args[0]]
        if isinstance(out, Exception):
            raise out
        return out

    return run_git, calls


def test_collect_markers_puts_diff_entries_before_untracked(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "new.txt").write_text("a\n// TODO: untracked\n")
    run_git, calls = _fake_git(
        tmp_path,
        {
            "rev-parse": f"{tmp_path}\n",
            "diff": "diff --git a/x.txt b/x.txt\n@@ -1,0 +2,1 @@\n+// FIXME: tracked\n",
            "ls-files": "new.txt\0",
        },
    )
    monkeypatch.setattr(git, "run_git", run_git)

    report = git.collect_markers(tmp_path)

    assert report.root == tmp_path
    assert report.errors == []
    assert report.entries == [
        MarkerEntry("x.txt", 2, "// FIXME: tracked"),
        MarkerEntry("new.txt", 2, "// TODO: untracked"),
    ]
    assert tuple(git.DIFF_ARGS) in calls
    assert tuple(git.UNTRACKED_ARGS) in calls


def test_collect_markers_reports_failed_diff_and_keeps_untracked(
    tmp_path: Path, monkeypatch
) -> None:
    (tmp_path / "new.txt").write_text("FIXME: still found\n")
    run_git, _ = _fake_git(
        tmp_path,
        {
            "rev-parse": str(tmp_path),
            "diff": git.GitError("'git diff' failed: boom"),
            "ls-files": "new.txt\0",
        },
    )
    monkeypatch.setattr(git, "run_git", run_git)

    report = git.collect_markers(tmp_path, ("FIXME:",))

    assert report.entries == [MarkerEntry("new.txt", 1, "FIXME: still found")]
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Error running git diff")


def test_collect_markers_skips_unreadable_untracked_file(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "ok.txt").write_text("TODO: ok\n")
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00TODO:")
    run_git, _ = _fake_git(
        tmp_path,
        {"rev-parse": str(tmp_path), "diff": "", "ls-files": "blob.bin\0ok.txt\0"},
    )
    monkeypatch.setattr(git, "run_git", run_git)

    report = git.collect_markers(tmp_path)

    assert report.entries == [MarkerEntry("ok.txt", 1, "TODO: ok")]
    assert len(report.errors) == 1
    assert "blob.bin" in report.errors[0]


def test_collect_markers_outside_repository_returns_empty(tmp_path: Path, monkeypatch) -> None:
    run_git, calls = _fake_git(
        tmp_path, {"rev-parse": git.GitError("fatal: not a git repository")}
    )
    monkeypatch.setattr(git, "run_git", run_git)

    report = git.collect_markers(tmp_path)

    assert report.entries == []
    assert report.root == tmp_path
    assert "not a git repository" in report.errors[0]
    assert calls == [("rev-parse", "--show-toplevel")]


def test_run_git_raises_on_missing_binary(tmp_path: Path, monkeypatch) -> None:
    def missing(*_a, **_k):
        raise FileNotFoundError("git")

    monkeypatch.setattr(git.subprocess, "run", missing)

    with pytest.raises(git.GitError, match="not found"):
        git.run_git(["status"], tmp_path)


def test_run_git_raises_on_non_zero_exit(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(
        git.subprocess,
        "run",
        lambda cmd, **_k: subprocess.CompletedProcess(cmd, 128, "", "fatal: not a git repository\n"),
    )

    with pytest.raises(git.GitError, match="not a git repository"):
        git.run_git(["diff"], tmp_path)


def test_run_git_passes_config_overrides_before_command(tmp_path: Path, monkeypatch) -> None:
    seen: list[list[str]] = []

    def fake_run(cmd, **_k):
        seen.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(git.subprocess, "run", fake_run)

    git.working_tree_diff(tmp_path)

    assert seen == [["git", "-c", "core.quotePath=false", *git.DIFF_ARGS]]


def test_untracked_files_splits_nul_separated_output(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(git, "run_git", lambda _args, _cwd: "a b.txt\0dir/c.py\0")

    assert git.untracked_files(tmp_path) == ["a b.txt", "dir/c.py"]


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_collect_markers_against_real_repository(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    (repo / "app.py").write_text("a = 1\nb = 2\n# TODO: old marker\n")
    (repo / ".gitignore").write_text("*.log\n")
    _git(repo, "add", "app.py", ".gitignore")
    _git(repo, "commit", "-q", "-m", "initial")

    (repo / "app.py").write_text("a = 1\n# FIXME: new marker\nb = 2\n# TODO: old marker\n")
    (repo / "notes.txt").write_text("x\n// TODO: untracked\n")
    (repo / "debug.log").write_text("TODO: ignored\n")
    (repo / "pkg").mkdir()

    report = git.collect_markers(repo / "pkg")

    assert report.errors == []
    assert report.root.resolve() == repo.resolve()
    assert report.entries == [
        MarkerEntry("app.py", 2, "# FIXME: new marker"),
        MarkerEntry("notes.txt", 2, "// TODO: untracked"),
    ]


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_collect_markers_keeps_non_ascii_paths(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    (repo / "a.py").write_text("x = 1\n", encoding="utf-8")
    (repo / "ä.py").write_text("y = 1\n", encoding="utf-8")
    _git(repo, "add", "a.py", "ä.py")
    _git(repo, "commit", "-q", "-m", "initial")

    (repo / "a.py").write_text("x = 1\n# TODO: in a\n", encoding="utf-8")
    (repo / "ä.py").write_text("y = 1\n# TODO: in umlaut\n", encoding="utf-8")

    report = git.collect_markers(repo)

    assert report.errors == []
    assert report.entries == [
        MarkerEntry("a.py", 2, "# TODO: in a"),
        MarkerEntry("ä.py", 2, "# TODO: in umlaut"),
    ]
