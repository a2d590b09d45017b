from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from .models import Commit, DateRange
from .report_periods import report_file_name, report_title

RULE = "=" * 40


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def repo_counts(commits: list[Commit]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for c in commits:
        if c.repo_path:
            counts[c.repo_path] = counts.get(c.repo_path, 0) + 1
    return counts


def _heading(date_range: DateRange) -> str:
    return f"{report_title(date_range)} ({date_range.start_iso} to {date_range.last_day.isoformat()})"


def render_text_report(summary: str, commits: list[Commit], date_range: DateRange) -> str:
    counts = repo_counts(commits)
    multi_repo = len(counts) > 1

    lines: list[str] = []
    lines.append(_heading(date_range))
    lines.append(RULE)
    lines.append("")
    if multi_repo:
        lines.append("Repositories")
        lines.append("-" * 40)
        for repo, n in counts.items():
            lines.append(f"- {repo}: {fmt_int(n)} commits")
        lines.append("")

    lines.append("Summary")
    lines.append("-" * 40)
    lines.append(summary.strip())
    lines.append("")
    lines.append("Commits")
    lines.append("-" * 40)
    lines.append(f"{fmt_int(len(commits))} commits in total")
    lines.append("")

    for i, c in enumerate(commits, start=1):
        lines.append(f"Commit {i}:")
        lines.append(f"- Hash: {c.short_hash}")
        lines.append(f"- Author: {c.author}")
        lines.append(f"- Date: {c.date.strftime('%Y-%m-%d %H:%M:%S')}")
        if multi_repo and c.repo_path:
            lines.append(f"- Repository: {c.repo_path}")
        if c.branches:
            lines.append(f"- Branches: {', '.join(c.branches)}")
        lines.append(f"- Message: {c.message}")
        for name in c.changed_files:
            lines.append(f"  * {name}")
        lines.append("")

    return "\n".join(lines) + "\n"


def render_markdown_report(summary: str, commits: list[Commit], date_range: DateRange) -> str:
    counts = repo_counts(commits)
    multi_repo = len(counts) > 1

    lines: list[str] = []
    lines.append(f"# {_heading(date_range)}")
    lines.append("")
    if multi_repo:
        lines.append("## Repositories")
        lines.append("")
        for repo, n in counts.items():
            lines.append(f"- **{repo}**: {fmt_int(n)} commits")
        lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append(summary.strip())
    lines.append("")
    lines.append("## Commits")
    lines.append("")
    lines.append(f"{fmt_int(len(commits))} commits in total")
    lines.append("")

    for i, c in enumerate(commits, start=1):
        lines.append(f"### Commit {i}")
        lines.append("")
        lines.append(f"- **Hash**: `{c.short_hash}`")
        lines.append(f"- **Author**: {c.author}")
        lines.append(f"- **Date**: {c.date.strftime('%Y-%m-%d %H:%M:%S')}")
        if multi_repo and c.repo_path:
            lines.append(f"- **Repository**: `{c.repo_path}`")
        if c.branches:
            lines.append(f"- **Branches**: {', '.join(c.branches)}")
        lines.append(f"- **Message**: {c.message}")
        if c.changed_files:
            lines.append("- **Changed files**:")
            for name in c.changed_files:
                lines.append(f"  - `{name}`")
        lines.append("")

    return "\n".join(lines) + "\n"


def render_report(output_format: str, summary: str, commits: list[Commit], date_range: DateRange) -> str:
    if output_format == "markdown":
        return render_markdown_report(summary, commits, date_range)
    return render_text_report(summary, commits, date_range)


def write_report(
    *,
    output_format: str,
    summary: str,
    commits: list[Commit],
    date_range: DateRange,
    output_path: Path | None = None,
    stdout: TextIO | None = None,
) -> None:
    text = render_report(output_format, summary, commits, date_range)
    if output_path is None:
        out = stdout if stdout is not None else sys.stdout
        out.write(text)
        out.flush()
        return
    with output_path.open("w", encoding="utf-8") as f:
        f.write(text)
    if output_format == "markdown":
        print(f"Wrote markdown report to {output_path} (suggested name: {report_file_name(date_range)})", file=sys.stderr)
