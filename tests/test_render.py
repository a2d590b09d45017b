from __future__ import annotations

import datetime as dt
import io
from pathlib import Path

from git_work_log.models import Commit, DateRange
from git_work_log.report_render import fmt_int, render_markdown_report, render_text_report, write_report

WEEK = DateRange(start=dt.datetime(2025, 1, 6), end=dt.datetime(2025, 1, 13), label="week")
TZ = dt.timezone(dt.timedelta(hours=8))


def _commit(h: str, repo: str = "", **kw: object) -> Commit:
    base = dict(
        hash=h * 40,
        author="Dev",
        date=dt.datetime(2025, 1, 7, 18, 5, 9, tzinfo=TZ),
        message=f"msg {h}",
        repo_path=repo,
    )
    base.update(kw)
    return Commit(**base)  # type: ignore[arg-type]


def test_fmt_int() -> None:
    assert fmt_int(0) == "0"
    assert fmt_int(12345) == "12,345"


def test_text_report_single_repo() -> None:
    out = render_text_report("Did things.\n", [_commit("a", "/w/app", branches=["main"])], WEEK)
    assert out.startswith("Weekly work report (2025-01-06 to 2025-01-12)\n")
    assert "Repositories" not in out
    assert "Summary\n----------------------------------------\nDid things.\n" in out
    assert "1 commits in total" in out
    assert "- Hash: aaaaaaaa\n- Author: Dev\n- Date: 2025-01-07 18:05:09\n- Branches: main\n- Message: msg a\n" in out
    assert "- Repository:" not in out


def test_text_report_multi_repo_shows_repo_stats() -> None:
    commits = [_commit("a", "/w/app"), _commit("b", "/w/app"), _commit("c", "/w/lib")]
    out = render_text_report("S", commits, WEEK)
    assert "- /w/app: 2 commits\n- /w/lib: 1 commits\n" in out
    assert "- Repository: /w/lib\n" in out


def test_markdown_report() -> None:
    commits = [_commit("a", "/w/app"), _commit("b", "/w/lib", changed_files=["src/x.py"])]
    custom = DateRange(start=dt.datetime(2025, 1, 1), end=dt.datetime(2025, 1, 31, 23, 59, 59))
    out = render_markdown_report("## done", commits, custom)
    assert out.startswith("# Monthly work report (2025-01-01 to 2025-01-31)\n")
    assert "- **/w/app**: 1 commits" in out
    assert "### Commit 2\n\n- **Hash**: `bbbbbbbb`" in out
    assert "- **Repository**: `/w/lib`" in out
    assert "- **Changed files**:\n  - `src/x.py`\n" in out


def test_write_report_to_stream_and_file(tmp_path: Path, capsys) -> None:
    buf = io.StringIO()
    write_report(output_format="text", summary="S", commits=[_commit("a")], date_range=WEEK, stdout=buf)
    assert buf.getvalue().startswith("Weekly work report")

    target = tmp_path / "report.md"
    write_report(output_format="markdown", summary="S", commits=[_commit("a")], date_range=WEEK, output_path=target)
    assert target.read_text(encoding="utf-8").startswith("# Weekly work report")
    assert "weekly-2025-01-06-to-2025-01-12.md" in capsys.readouterr().err
