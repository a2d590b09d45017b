from __future__ import annotations

import fnmatch
import os
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from .log_parse import LOG_FORMAT, parse_commits, parse_name_only
from .models import Commit, DateRange, GitOptions

DEFAULT_EXCLUDE_DIRNAMES = frozenset(
    {
        "node_modules",
        "vendor",
        ".vscode",
        ".idea",
        "target",
        "build",
        "dist",
        "out",
        "bin",
        "obj",
        ".next",
        ".nuxt",
        "coverage",
        ".nyc_output",
        ".pytest_cache",
        "__pycache__",
        ".gradle",
        ".mvn",
        "bower_components",
        "jspm_packages",
        ".tmp",
        "tmp",
        "temp",
        ".cache",
        "logs",
        "*.log",
    }
)
DEFAULT_ALLOWED_HIDDEN_DIRNAMES = frozenset({".github"})


class GitCommandError(RuntimeError):
    def __init__(self, args: list[str], cwd: Path, code: int, stderr: str) -> None:
        self.git_args = list(args)
        self.cwd = cwd
        self.code = code
        self.stderr = (stderr or "").strip()
        msg = f"git {' '.join(args[:2])} failed in {cwd} (exit {code})"
        if self.stderr:
            msg = f"{msg}: {self.stderr}"
        super().__init__(msg)


class DiscoveryError(RuntimeError):
    pass


def run_git(args: list[str], cwd: Path, timeout_s: Optional[int] = None) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def _git_output(args: list[str], cwd: Path) -> str:
    try:
        code, out, err = run_git(args, cwd=cwd)
    except OSError as e:
        # Missing git binary or a repo path that is not a directory.
        raise GitCommandError(args, cwd, -1, str(e)) from e
    if code != 0:
        raise GitCommandError(args, cwd, code, err)
    return out


def _is_excluded(name: str, exclude_dirnames: frozenset[str] | set[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pat) for pat in exclude_dirnames)


def discover_git_roots(
    root: Path,
    exclude_dirnames: frozenset[str] | set[str] = DEFAULT_EXCLUDE_DIRNAMES,
    allowed_hidden_dirnames: frozenset[str] | set[str] = DEFAULT_ALLOWED_HIDDEN_DIRNAMES,
) -> list[Path]:
    """
    Find every working tree under `root` (a directory holding a `.git` entry).

    `.git` itself is never walked into, deny-listed and hidden directories are
    pruned, and unreadable entries below the root are ignored. Raises
    DiscoveryError only when the root itself cannot be resolved or read.
    """
    try:
        start = Path(root).expanduser().resolve()
    except (OSError, RuntimeError) as e:
        raise DiscoveryError(f"cannot resolve scan root {root}: {e}") from e
    if not start.is_dir():
        raise DiscoveryError(f"scan root is not a directory: {start}")
    try:
        with os.scandir(start):
            pass
    except OSError as e:
        raise DiscoveryError(f"cannot read scan root {start}: {e}") from e

    roots: list[Path] = []

    def onerror(err: OSError) -> None:
        _ = err

    for dirpath, dirnames, filenames in os.walk(start, onerror=onerror):
        if ".git" in dirnames or ".git" in filenames:
            roots.append(Path(dirpath))
        kept: list[str] = []
        for d in sorted(dirnames):
            if d == ".git":
                continue
            if _is_excluded(d, exclude_dirnames):
                continue
            if d.startswith(".") and d not in allowed_hidden_dirnames:
                continue
            kept.append(d)
        dirnames[:] = kept
    return roots


def configured_user_name(repo: Path) -> str:
    try:
        code, out, _ = run_git(["config", "user.name"], cwd=repo)
    except OSError:
        code, out = 1, ""
    if code == 0 and out.strip():
        return out.strip()
    code, out, _ = run_git(["config", "--global", "user.name"], cwd=Path.cwd())
    if code == 0:
        return out.strip()
    return ""


def build_log_args(date_range: DateRange, author: str = "") -> list[str]:
    args = [
        "log",
        "--all",
        f"--pretty=format:{LOG_FORMAT}",
        "--date=iso",
        f"--after={date_range.start_iso}",
        f"--before={date_range.end_iso}",
    ]
    if author:
        args.append(f"--author={author}")
    return args


class CommitSource(Protocol):
    def fetch_range(self, date_range: DateRange, options: GitOptions) -> list[Commit]: ...

    def fetch_detail(self, commit_hash: str, repo_path: str) -> Commit: ...

    def configured_user_name(self, repo_path: str) -> str: ...


class GitCommitSource:
    """CommitSource backed by the local `git` executable."""

    def fetch_range(self, date_range: DateRange, options: GitOptions) -> list[Commit]:
        out = _git_output(build_log_args(date_range, options.author), cwd=Path(options.repo_path or "."))
        return parse_commits(out)

    def fetch_detail(self, commit_hash: str, repo_path: str) -> Commit:
        repo = Path(repo_path or ".")
        out = _git_output(["show", "-s", f"--pretty=format:{LOG_FORMAT}", "--date=iso", commit_hash], cwd=repo)
        commits = parse_commits(out)
        if not commits:
            raise GitCommandError(["show", commit_hash], repo, 0, "no commit header in output")
        commit = commits[0]
        files_out = _git_output(["show", "--name-only", "--pretty=format:", commit_hash], cwd=repo)
        commit.changed_files = parse_name_only(files_out)
        return commit

    def configured_user_name(self, repo_path: str) -> str:
        try:
            return configured_user_name(Path(repo_path or "."))
        except OSError:
            return ""
