from __future__ import annotations

import dataclasses
import datetime as dt
import io
import os
import subprocess
from pathlib import Path

import pytest

from git_work_log import cli
from git_work_log.config import build_report_config
from git_work_log.models import Commit, DateRange
from git_work_log.prompts import PromptTemplates
from git_work_log.report_cli import _build_parser
from git_work_log.report_run import format_startup_header, run_report

ENV = {"GEMINI_API_KEY": "secret"}


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _init_repo(repo: Path, *, user: str, commits: list[tuple[str, str]]) -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init", "-b", "main"], cwd=repo)
    _run(["git", "config", "user.name", user], cwd=repo)
    _run(["git", "config", "user.email", "dev@example.com"], cwd=repo)
    for filename, when in commits:
        (repo / filename).write_text(filename + "\n", encoding="utf-8")
        _run(["git", "add", filename], cwd=repo)
        env = os.environ.copy()
        env["GIT_AUTHOR_DATE"] = when
        env["GIT_COMMITTER_DATE"] = when
        _run(["git", "commit", "-m", f"add {filename}"], cwd=repo, env=env)


class RecordingClient:
    model = "fake-model"

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[list[Commit], str, DateRange]] = []

    def summarize(self, commits: list[Commit], template: str, date_range: DateRange) -> str:
        self.calls.append((commits, template, date_range))
        if self.fail:
            raise RuntimeError("summarize failed: HTTP 503: overloaded")
        return f"Summary of {len(commits)} commits."


def _config(*argv: str):
    return build_report_config(_build_parser().parse_args(list(argv)), {}, ENV)


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "code"
    _init_repo(root / "app", user="Ann", commits=[("a1.txt", "2025-01-07T10:00:00+0000"), ("a2.txt", "2025-01-08T10:00:00+0000")])
    _init_repo(root / "lib", user="Ann", commits=[("l1.txt", "2025-01-09T10:00:00+0000")])
    _init_repo(root / "node_modules" / "dep", user="Ann", commits=[("d.txt", "2025-01-09T10:00:00+0000")])
    return root


def test_run_report_across_discovered_repos(workspace: Path, capsys) -> None:
    config = _config("--repos", str(workspace), "--from", "2025-01-06", "--to", "2025-01-12", "--author", "Ann")
    client = RecordingClient()
    out = io.StringIO()

    code = run_report(config, client=client, stdout=out)  # type: ignore[arg-type]

    assert code == 0
    assert len(client.calls) == 1
    commits, template, _ = client.calls[0]
    assert [c.message for c in commits] == ["add a2.txt", "add a1.txt", "add l1.txt"]
    assert {Path(c.repo_path).name for c in commits} == {"app", "lib"}
    assert "{{commits}}" in template
    report = out.getvalue()
    assert report.startswith("Weekly work report (2025-01-06 to 2025-01-12)")
    assert "Summary of 3 commits." in report
    err = capsys.readouterr().err
    assert "Found 2 repos." in err
    assert "app: 2" in err
    assert "Total: 3" in err


def test_run_report_no_commits_is_success(workspace: Path, capsys) -> None:
    config = _config("--repos", str(workspace), "--date", "2020-01-01")
    client = RecordingClient()
    out = io.StringIO()
    assert run_report(config, client=client, stdout=out) == 0  # type: ignore[arg-type]
    assert client.calls == []
    assert out.getvalue() == ""
    assert "No commits found" in capsys.readouterr().err


def test_run_report_no_repos_found_is_success(tmp_path: Path, capsys) -> None:
    config = _config("--repos", str(tmp_path))
    assert run_report(config, client=RecordingClient()) == 0  # type: ignore[arg-type]
    assert "No git repositories found" in capsys.readouterr().err


def test_run_report_missing_repos_root_fails(tmp_path: Path) -> None:
    config = _config("--repos", str(tmp_path / "missing"))
    assert run_report(config, client=RecordingClient()) == 1  # type: ignore[arg-type]


def test_run_report_summarize_failure_exits_nonzero(workspace: Path, capsys) -> None:
    config = _config("--repo", str(workspace / "app"), "--from", "2025-01-01", "--to", "2025-01-31")
    assert run_report(config, client=RecordingClient(fail=True), stdout=io.StringIO()) == 1  # type: ignore[arg-type]
    assert "HTTP 503" in capsys.readouterr().err


def test_run_report_unwritable_output_exits_nonzero(workspace: Path, tmp_path: Path) -> None:
    config = _config("--repo", str(workspace / "app"), "--from", "2025-01-01", "--to", "2025-01-31")
    config = dataclasses.replace(config, output_path=tmp_path / "no-such-dir" / "report.txt")
    assert run_report(config, client=RecordingClient()) == 1  # type: ignore[arg-type]


def test_run_report_writes_markdown_file(workspace: Path, tmp_path: Path) -> None:
    target = tmp_path / "week.md"
    config = _config("--repo", str(workspace / "lib"), "--from", "2025-01-06", "--to", "2025-01-12", "--format", "markdown", "--output", str(target))
    assert run_report(config, client=RecordingClient()) == 0  # type: ignore[arg-type]
    text = target.read_text(encoding="utf-8")
    assert text.startswith("# Weekly work report")
    assert "- **Message**: add l1.txt" in text


def test_run_report_bad_custom_prompt_exits_nonzero(workspace: Path, tmp_path: Path) -> None:
    config = _config("--repo", str(workspace / "app"), "--prompt", str(tmp_path / "missing-prompt.md"))
    client = RecordingClient()
    assert run_report(config, client=client, templates=PromptTemplates()) == 1  # type: ignore[arg-type]
    assert client.calls == []


def test_format_startup_header() -> None:
    config = _config("--repos", "/src", "--range", "month", "--author", "Ann")
    out = format_startup_header(config)
    assert "Monthly work report" in out
    assert "all repos under /src" in out
    assert "Author: Ann" in out
    assert "(month)" in out


def test_cli_missing_api_key_exits_1(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    assert cli.main([]) == 1
    assert "GEMINI_API_KEY" in capsys.readouterr().err


def test_cli_bad_date_exits_1(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.chdir(tmp_path)
    assert cli.main(["--date", "2024/01/01"]) == 1
    assert "YYYY-MM-DD" in capsys.readouterr().err


def test_cli_no_commits_exits_0(monkeypatch: pytest.MonkeyPatch, workspace: Path, tmp_path: Path) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.chdir(tmp_path)
    assert cli.main(["--repo", str(workspace / "app"), "--date", "2019-06-01"]) == 0


def test_cli_version_and_help(capsys) -> None:
    assert cli.main(["version"]) == 0
    assert "git-work-log" in capsys.readouterr().out
    assert cli.main(["--help"]) == 0
    out = capsys.readouterr().out
    assert "version" in out
    assert "show" in out
    assert "--repos" in out


def test_cli_show_commit(workspace: Path, capsys) -> None:
    repo = workspace / "app"
    head = _run(["git", "rev-parse", "HEAD"], cwd=repo).strip()
    assert cli.main(["show", head, "--repo", str(repo)]) == 0
    out = capsys.readouterr().out
    assert f"commit {head}" in out
    assert "Changed files (1):\n  a2.txt" in out
    assert "Branches: main" in out

    assert cli.main(["show", "deadbeef", "--repo", str(repo)]) == 1


def test_start_date_is_calendar_midnight() -> None:
    config = _config("--range", "day")
    assert config.date_range.start.time() == dt.time(0, 0)
