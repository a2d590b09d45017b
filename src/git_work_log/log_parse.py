from __future__ import annotations

import datetime as dt
import re

from .models import Commit

LOG_FORMAT = "%H|%an|%ad|%s|%D"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"

_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} [+-]\d{4}$")


class CommitParseError(ValueError):
    pass


def parse_timestamp(value: str) -> dt.datetime:
    s = value.strip()
    if not _TIMESTAMP_RE.match(s):
        raise CommitParseError(f"Invalid commit timestamp: {value!r} (expected YYYY-MM-DD HH:MM:SS +HHMM)")
    try:
        return dt.datetime.strptime(s, TIMESTAMP_FORMAT)
    except ValueError as e:
        raise CommitParseError(f"Invalid commit timestamp: {value!r}: {e}") from e


def parse_ref_names(ref_names: str) -> list[str]:
    """
    Decode a `%D` ref list into branch names, e.g.
      "HEAD -> main, origin/main"          -> ["main"]
      "refs/heads/feature, tag: v1.0.0"     -> ["feature"]
    Tags and detached HEAD markers are dropped; remote prefixes are stripped.
    """
    branches: list[str] = []
    for token in (ref_names or "").split(","):
        ref = token.strip()
        if not ref:
            continue
        if "refs/heads/" in ref:
            branch = ref.split("refs/heads/", 1)[1]
        elif "HEAD -> " in ref:
            branch = ref.split("HEAD -> ", 1)[1]
        elif "tag:" not in ref and not ref.startswith("HEAD"):
            branch = ref.split("/", 1)[1] if "/" in ref else ref
        else:
            continue
        if branch and branch not in branches:
            branches.append(branch)
    return branches


def _records(output: str) -> list[str]:
    # Records end with "\n" only; subjects may carry \x0c, U+2028 and other line-like characters.
    return [line.rstrip("\r") for line in (output or "").strip().split("\n")]


def parse_commits(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for line in _records(output):
        if not line.strip():
            continue
        parts = line.split("|", 4)
        if len(parts) < 5:
            continue
        commit_hash, author, date_s, message, ref_names = parts
        if not commit_hash.strip():
            continue
        # A bad timestamp fails the whole parse; a short line above is only skipped.
        date = parse_timestamp(date_s)
        commits.append(
            Commit(
                hash=commit_hash,
                author=author,
                date=date,
                message=message,
                branches=parse_ref_names(ref_names),
            )
        )
    return commits


def parse_name_only(output: str) -> list[str]:
    return [line.strip() for line in _records(output) if line.strip()]
