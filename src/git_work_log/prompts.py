from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

from .config import ConfigError
from .models import Commit

PLACEHOLDER = "{{commits}}"
MAX_FILES_PER_COMMIT = 10

BASIC_TEMPLATE = """You are an assistant that writes work reports. Based on the git commits below, write a concise summary of the work done.

Commits:
{{commits}}

Provide:
1. A short overall summary (at most 3 sentences)
2. 3-5 key accomplishments or completed tasks
3. Any clear themes or patterns in the work

Keep it brief and focus on what was actually delivered."""

DETAILED_TEMPLATE = """You are an assistant that writes structured engineering work reports. Based on the git commits below, write a detailed report.

Commits:
{{commits}}

Structure the report as:
## Overview
Two or three sentences on the period as a whole.
## Features and improvements
Group related commits into items; name the repository or branch where it helps.
## Fixes
Bugs fixed and their impact.
## Maintenance
Refactoring, dependencies, tooling, documentation.
## Next steps
Open threads suggested by the commits, if any.

Be specific, but do not invent work that the commits do not show."""

TARGETED_TEMPLATE = """You are an assistant that writes work reports for a manager and non-engineering stakeholders. Based on the git commits below, write a report they can act on.

Commits:
{{commits}}

Guidelines:
- Lead with outcomes and user-visible changes, not implementation details.
- Group the work by project or goal, and say why each item matters.
- Call out risks, blockers, or follow-ups implied by the commits.
- Avoid jargon; keep it to one page.

Write in a professional, neutral tone."""

BUILTIN_TEMPLATES = {
    "basic": BASIC_TEMPLATE,
    "detailed": DETAILED_TEMPLATE,
    "targeted": TARGETED_TEMPLATE,
}


def _read_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class PromptTemplates:
    """
    Named prompt templates. A prompt type that is not a registered name is
    treated as a path to a custom template file, loaded with `read_file`.
    """

    def __init__(
        self,
        templates: Mapping[str, str] | None = None,
        *,
        read_file: Callable[[Path], str] = _read_file,
    ) -> None:
        self._templates: dict[str, str] = dict(BUILTIN_TEMPLATES if templates is None else templates)
        self._files: dict[str, Path] = {}
        self._read_file = read_file

    def register(self, name: str, template: str) -> None:
        self._templates[name] = template

    def register_file(self, name: str, path: Path) -> None:
        self._files[name] = path

    def names(self) -> list[str]:
        return sorted(set(self._templates) | set(self._files))

    def is_custom(self, prompt_type: str) -> bool:
        p = (prompt_type or "").strip()
        return bool(p) and p not in self._templates and p not in self._files

    def resolve(self, prompt_type: str) -> str:
        p = (prompt_type or "").strip() or "basic"
        if p in self._templates:
            return self._templates[p]
        path = self._files.get(p, Path(p).expanduser())
        try:
            return self._read_file(path)
        except OSError as e:
            raise ConfigError(f"cannot load prompt template {p!r} from {path}: {e}") from e


def templates_from_config(prompt_templates: tuple[tuple[str, str], ...]) -> PromptTemplates:
    registry = PromptTemplates()
    for name, path in prompt_templates:
        registry.register_file(name, Path(path).expanduser())
    return registry


def format_commit_listing(commits: list[Commit]) -> str:
    lines: list[str] = []
    for i, c in enumerate(commits, start=1):
        lines.append(f"Commit {i}:")
        lines.append(f"- Hash: {c.short_hash}")
        lines.append(f"- Author: {c.author}")
        lines.append(f"- Date: {c.date.strftime('%Y-%m-%d %H:%M:%S')}")
        if c.repo_path:
            lines.append(f"- Repository: {c.repo_path}")
        if c.branches:
            lines.append(f"- Branches: {', '.join(c.branches)}")
        lines.append(f"- Message: {c.message}")
        if c.changed_files:
            lines.append("- Changed files:")
            for name in c.changed_files[:MAX_FILES_PER_COMMIT]:
                lines.append(f"  * {name}")
            if len(c.changed_files) > MAX_FILES_PER_COMMIT:
                lines.append(f"  * ... and {len(c.changed_files) - MAX_FILES_PER_COMMIT} more files")
        lines.append("")
    return "\n".join(lines) + ("\n" if lines else "")


def build_prompt(template: str, commits: list[Commit]) -> str:
    listing = format_commit_listing(commits)
    if PLACEHOLDER not in template:
        return template.rstrip() + "\n\nCommits:\n" + listing
    return template.replace(PLACEHOLDER, listing)
