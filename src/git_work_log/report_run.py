from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import TextIO

from .config import ConfigError
from .gemini import GeminiClient
from .git import CommitSource, DiscoveryError, GitCommitSource, discover_git_roots
from .models import ReportConfig
from .prompts import PromptTemplates, templates_from_config
from .report_aggregate import collect_commits
from .report_periods import report_title
from .report_render import write_report


def _log(msg: str = "") -> None:
    print(msg, file=sys.stderr)


def format_startup_header(config: ReportConfig) -> str:
    r = config.date_range
    if config.repos_root is not None:
        repos = f"all repos under {config.repos_root}"
    else:
        repos = ", ".join(config.repo_paths)
    lines = [
        f"git-work-log: {report_title(r)}",
        f"- Range: {r.start:%Y-%m-%d %H:%M} -> {r.end:%Y-%m-%d %H:%M} ({r.label})",
        f"- Repos: {repos}",
        f"- Author: {config.author or 'configured git user.name per repo'}",
        f"- Prompt: {config.prompt}  Model: {config.model}  Format: {config.output_format}",
        f"- Output: {config.output_path or 'stdout'}",
    ]
    return "\n".join(lines)


def _display_path(repo_path: str, repos_root: Path | None) -> str:
    if repos_root is None:
        return repo_path
    try:
        return os.path.relpath(repo_path, repos_root.resolve())
    except ValueError:
        return repo_path


def run_report(
    config: ReportConfig,
    *,
    source: CommitSource | None = None,
    client: GeminiClient | None = None,
    templates: PromptTemplates | None = None,
    stdout: TextIO | None = None,
) -> int:
    if source is None:
        source = GitCommitSource()
    if templates is None:
        templates = templates_from_config(config.prompt_templates)
    if client is None:
        client = GeminiClient(
            api_key=config.api_key,
            model=config.model,
            api_url=config.api_url,
            timeout_s=config.timeout_s,
            ca_bundle_path=config.ca_bundle_path,
        )

    _log(format_startup_header(config))
    _log("")

    try:
        template = templates.resolve(config.prompt)
    except ConfigError as e:
        _log(f"Error: {e}")
        return 1
    if templates.is_custom(config.prompt):
        _log(f"Using custom prompt file: {config.prompt}")

    if config.repos_root is not None:
        _log(f"Scanning for git repos under: {config.repos_root.resolve()}...")
        try:
            roots = discover_git_roots(
                config.repos_root,
                exclude_dirnames=config.exclude_dirnames,
                allowed_hidden_dirnames=config.allowed_hidden_dirnames,
            )
        except DiscoveryError as e:
            _log(f"Error: {e}")
            return 1
        if not roots:
            _log(f"No git repositories found under: {config.repos_root}")
            return 0
        repo_paths = [str(p) for p in roots]
        _log(f"Found {len(repo_paths)} repos.")
    else:
        repo_paths = list(config.repo_paths)

    _log(f"Processing {len(repo_paths)} repos:")
    result = collect_commits(source, repo_paths, config.date_range, author_override=config.author)

    _log("")
    _log("Commit counts")
    _log("-" * 40)
    for repo_path, count in result.counts.items():
        _log(f"  {_display_path(repo_path, config.repos_root)}: {count}")
    _log(f"Total: {result.total}")
    if result.warnings:
        _log(f"Skipped {len(result.warnings)} repos with errors.")
    _log("")

    if not result.commits:
        r = config.date_range
        _log(f"No commits found between {r.start_iso} and {r.last_day.isoformat()} in any repo.")
        return 0

    if config.author:
        _log(f"Author filter: {config.author}")
    _log(f"Summarizing {len(result.commits)} commits with {client.model}...")
    try:
        summary = client.summarize(result.commits, template, config.date_range)
    except RuntimeError as e:
        _log(f"Error: {e}")
        return 1

    try:
        write_report(
            output_format=config.output_format,
            summary=summary,
            commits=result.commits,
            date_range=config.date_range,
            output_path=config.output_path,
            stdout=stdout,
        )
    except OSError as e:
        _log(f"Error: cannot write report to {config.output_path}: {e}")
        return 1

    _log(f"{report_title(config.date_range)} done.")
    return 0
