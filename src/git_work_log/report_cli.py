from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from .config import ConfigError, build_report_config, load_config
from .report_periods import NAMED_RANGES
from .report_run import run_report


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a work report from git commit history, summarized by Gemini.",
        epilog="Defaults to a report for the current week of the repo in the current directory.",
    )
    parser.add_argument("--from", dest="from_date", type=str, default="", help="Start date (YYYY-MM-DD); requires --to.")
    parser.add_argument("--to", dest="to_date", type=str, default="", help="End date, inclusive (YYYY-MM-DD); requires --from.")
    parser.add_argument(
        "--range",
        type=str,
        default="week",
        help=f"Named range: {', '.join(NAMED_RANGES)} (calendar-aligned; default: week).",
    )
    parser.add_argument("--date", type=str, default="", help="A single day (YYYY-MM-DD).")
    parser.add_argument("--format", type=str, choices=["text", "markdown"], default=None, help="Report format (default: text).")
    parser.add_argument("--output", type=str, default="", help="Write the report to this file (default: stdout).")
    g = parser.add_mutually_exclusive_group()
    g.add_argument("--repo", type=str, default="", help="Git repo path (default: current directory).")
    g.add_argument("--repos", type=str, default="", help="Directory to scan; every git repo under it is analyzed.")
    parser.add_argument("--model", type=str, default="", help="Gemini model name.")
    parser.add_argument("--author", type=str, default="", help="Only commits by this author (default: git user.name of each repo).")
    parser.add_argument(
        "--prompt",
        type=str,
        default="",
        help="Prompt type: basic, detailed, targeted, a name from config.json, or a path to a template file.",
    )
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    return parser


def main(argv: list[str], environ: dict[str, str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_report_config(args, load_config(args.config), os.environ if environ is None else environ)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return run_report(config)
