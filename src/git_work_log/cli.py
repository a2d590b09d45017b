from __future__ import annotations

import argparse
import sys

from . import __version__, report_cli
from .git import GitCommandError, GitCommitSource
from .log_parse import CommitParseError


def show_commit(*, commit_hash: str, repo: str) -> int:
    try:
        commit = GitCommitSource().fetch_detail(commit_hash, repo)
    except (GitCommandError, CommitParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    lines = [
        f"commit {commit.hash}",
        f"Author:   {commit.author}",
        f"Date:     {commit.date.strftime('%Y-%m-%d %H:%M:%S %z')}",
    ]
    if commit.branches:
        lines.append(f"Branches: {', '.join(commit.branches)}")
    lines.append("")
    lines.append(f"    {commit.message}")
    lines.append("")
    lines.append(f"Changed files ({len(commit.changed_files)}):")
    lines.extend(f"  {name}" for name in commit.changed_files)
    print("\n".join(lines))
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] in ("-h", "--help"):
        p = report_cli._build_parser()
        p.prog = "git-work-log"
        p.print_help()
        print("")
        print("commands:")
        print("  version   Show version information.")
        print("  show      Show one commit with its changed files.")
        print("")
        print("Run `git-work-log <command> --help` for command-specific options.")
        return 0
    if argv and argv[0] == "version":
        print(f"git-work-log {__version__}")
        return 0
    if argv and argv[0] == "show":
        p = argparse.ArgumentParser(prog="git-work-log show", description="Show one commit with its changed files.")
        p.add_argument("hash", type=str, help="Commit hash (full or abbreviated).")
        p.add_argument("--repo", type=str, default=".", help="Git repo path (default: current directory).")
        args = p.parse_args(argv[1:])
        return show_commit(commit_hash=args.hash, repo=args.repo)
    return report_cli.main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
