from __future__ import annotations

import sys

from .git import CommitSource, GitCommandError
from .log_parse import CommitParseError
from .models import AggregateResult, DateRange, GitOptions


def options_for_repo(source: CommitSource, repo_path: str, author_override: str = "") -> GitOptions:
    opts = GitOptions(repo_path=repo_path or ".")
    if author_override:
        opts.author = author_override
    else:
        opts.author = source.configured_user_name(opts.repo_path)
    return opts


def collect_commits(
    source: CommitSource,
    repo_paths: list[str],
    date_range: DateRange,
    *,
    author_override: str = "",
    verbose: bool = True,
) -> AggregateResult:
    """
    Fetch commits for each repo in order and concatenate them.

    A repo whose retrieval fails contributes nothing; the failure is kept in
    `warnings` and the remaining repos are still processed.
    """
    result = AggregateResult()
    for repo_path in repo_paths:
        if verbose:
            print(f"Analyzing repo: {repo_path}", file=sys.stderr)
        opts = options_for_repo(source, repo_path, author_override)
        try:
            commits = source.fetch_range(date_range, opts)
        except (GitCommandError, CommitParseError) as e:
            msg = f"Warning: failed to read commits from {repo_path}: {e}"
            result.warnings.append(msg)
            if verbose:
                print(f"  {msg}", file=sys.stderr)
            continue

        for c in commits:
            c.repo_path = repo_path
        result.counts[repo_path] = len(commits)
        result.commits.extend(commits)
        if verbose:
            print(f"  found {len(commits)} commits", file=sys.stderr)
    return result
