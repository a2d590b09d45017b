from __future__ import annotations

import argparse
import json
import os
from collections.abc import Mapping
from pathlib import Path

from .git import DEFAULT_ALLOWED_HIDDEN_DIRNAMES, DEFAULT_EXCLUDE_DIRNAMES
from .models import ReportConfig
from .report_periods import resolve_date_range

API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_MODEL = "gemini-2.5-flash-preview-05-20"
DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_S = 120
OUTPUT_FORMATS = ("text", "markdown")


class ConfigError(ValueError):
    pass


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"cannot read config {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config {config_path} must contain a JSON object")
    return data


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def build_report_config(args: argparse.Namespace, config: dict, environ: Mapping[str, str] | None = None) -> ReportConfig:
    """
    Build the immutable run configuration from parsed flags, config.json and
    the environment. Flags win over config.json; nothing downstream reads either.
    """
    if environ is None:
        environ = os.environ

    api_key = str(environ.get(API_KEY_ENV, "") or "").strip()
    if not api_key:
        raise ConfigError(f"{API_KEY_ENV} environment variable is not set")

    try:
        date_range = resolve_date_range(
            range_name=str(getattr(args, "range", "") or "week"),
            from_value=str(getattr(args, "from_date", "") or ""),
            to_value=str(getattr(args, "to_date", "") or ""),
            on_date=str(getattr(args, "date", "") or ""),
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e

    output_format = str(getattr(args, "format", "") or config.get("format") or "text").strip().lower()
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"unknown report format {output_format!r} (expected one of: {', '.join(OUTPUT_FORMATS)})")

    repos_root_arg = str(getattr(args, "repos", "") or "").strip()
    repo_arg = str(getattr(args, "repo", "") or "").strip()
    if repos_root_arg and repo_arg:
        raise ConfigError("--repo and --repos cannot be combined")
    repos_root = Path(repos_root_arg) if repos_root_arg else None
    repo_paths = () if repos_root is not None else (repo_arg or ".",)

    templates_cfg = config.get("prompt_templates") if isinstance(config.get("prompt_templates"), dict) else {}
    prompt_templates = tuple(sorted((str(k), str(v)) for k, v in templates_cfg.items() if str(k).strip()))

    exclude_dirnames = set(DEFAULT_EXCLUDE_DIRNAMES) | set(_str_list(config.get("exclude_dirnames")))
    allowed_hidden = set(DEFAULT_ALLOWED_HIDDEN_DIRNAMES) | set(_str_list(config.get("allowed_hidden_dirnames")))

    output = str(getattr(args, "output", "") or "").strip()

    try:
        timeout_s = int(config.get("timeout_s", DEFAULT_TIMEOUT_S))
    except (TypeError, ValueError):
        raise ConfigError(f"timeout_s must be an integer, got {config.get('timeout_s')!r}") from None

    return ReportConfig(
        date_range=date_range,
        repo_paths=repo_paths,
        repos_root=repos_root,
        author=str(getattr(args, "author", "") or "").strip(),
        output_format=output_format,
        output_path=Path(output) if output else None,
        prompt=str(getattr(args, "prompt", "") or config.get("prompt") or "basic").strip(),
        model=str(getattr(args, "model", "") or config.get("model") or DEFAULT_MODEL).strip(),
        api_key=api_key,
        api_url=str(config.get("api_url") or DEFAULT_API_URL).strip().rstrip("/"),
        timeout_s=timeout_s,
        ca_bundle_path=str(config.get("ca_bundle_path") or "").strip(),
        prompt_templates=prompt_templates,
        exclude_dirnames=frozenset(exclude_dirnames),
        allowed_hidden_dirnames=frozenset(allowed_hidden),
    )
