from __future__ import annotations

import dataclasses
import datetime as dt
from pathlib import Path


@dataclasses.dataclass
class Commit:
    hash: str
    author: str
    date: dt.datetime  # tz-aware, offset as recorded by git
    message: str
    branches: list[str] = dataclasses.field(default_factory=list)
    changed_files: list[str] = dataclasses.field(default_factory=list)
    repo_path: str = ""

    @property
    def short_hash(self) -> str:
        return self.hash[:8]


@dataclasses.dataclass
class GitOptions:
    repo_path: str = "."
    author: str = ""


@dataclasses.dataclass(frozen=True)
class DateRange:
    start: dt.datetime  # inclusive, naive local time
    end: dt.datetime  # exclusive, naive local time
    label: str = "custom"

    @property
    def start_iso(self) -> str:
        return self.start.date().isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.date().isoformat()

    @property
    def last_day(self) -> dt.date:
        return (self.end - dt.timedelta(microseconds=1)).date()

    @property
    def days(self) -> float:
        return (self.end - self.start).total_seconds() / 86400


@dataclasses.dataclass
class AggregateResult:
    commits: list[Commit] = dataclasses.field(default_factory=list)
    counts: dict[str, int] = dataclasses.field(default_factory=dict)  # repo path -> commits
    warnings: list[str] = dataclasses.field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclasses.dataclass(frozen=True)
class ReportConfig:
    date_range: DateRange
    repo_paths: tuple[str, ...]
    repos_root: Path | None
    author: str
    output_format: str
    output_path: Path | None
    prompt: str
    model: str
    api_key: str
    api_url: str
    timeout_s: int
    ca_bundle_path: str
    prompt_templates: tuple[tuple[str, str], ...] = ()
    exclude_dirnames: frozenset[str] = frozenset()
    allowed_hidden_dirnames: frozenset[str] = frozenset()
