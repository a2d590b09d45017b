from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

import certifi

from .config import DEFAULT_API_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_S, ConfigError
from .models import Commit, DateRange
from .prompts import build_prompt
from .report_periods import report_kind

EMPTY_SUMMARY_BY_KIND = {
    "daily": "No commits today.",
    "weekly": "No commits this week.",
    "monthly": "No commits this month.",
    "yearly": "No commits this year.",
    "report": "No commits in the selected range.",
}


def empty_summary(date_range: DateRange) -> str:
    return EMPTY_SUMMARY_BY_KIND[report_kind(date_range)]


class GeminiClient:
    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_API_URL,
        timeout_s: int = DEFAULT_TIMEOUT_S,
        ca_bundle_path: str = "",
    ) -> None:
        if not (api_key or "").strip():
            raise ConfigError("Gemini API key is required")
        self.api_key = api_key.strip()
        self.model = (model or "").strip() or DEFAULT_MODEL
        self.api_url = (api_url or "").strip().rstrip("/") or DEFAULT_API_URL
        self.timeout_s = timeout_s
        self.ca_bundle_path = ca_bundle_path

    @property
    def endpoint(self) -> str:
        model = urllib.parse.quote(self.model, safe="-._")
        return f"{self.api_url}/models/{model}:generateContent"

    def summarize(self, commits: list[Commit], template: str, date_range: DateRange) -> str:
        if not commits:
            return empty_summary(date_range)
        return self.generate(build_prompt(template, commits))

    def generate(self, prompt: str) -> str:
        body = json.dumps({"contents": [{"role": "user", "parts": [{"text": prompt}]}]}).encode("utf-8")
        req = urllib.request.Request(
            self.endpoint,
            method="POST",
            data=body,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
        )
        ctx = _ssl_context(ca_bundle_path=self.ca_bundle_path)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s, context=ctx) as resp:
                payload = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            detail = ""
            try:
                detail = e.read().decode("utf-8", errors="replace")
            except OSError:
                detail = ""
            raise RuntimeError(f"summarize failed: HTTP {e.code}: {_error_message(detail)[:500]}") from e
        except urllib.error.URLError as e:
            raise RuntimeError(f"summarize failed: {e}") from e
        except TimeoutError as e:
            raise RuntimeError(f"summarize failed: timed out after {self.timeout_s}s") from e

        try:
            obj = json.loads(payload)
        except ValueError as e:
            raise RuntimeError(f"summarize failed: invalid JSON response: {payload[:200]!r}") from e
        return extract_text(obj)


def extract_text(obj: object) -> str:
    if not isinstance(obj, dict):
        raise RuntimeError("summarize failed: unexpected response shape")
    parts_text: list[str] = []
    for cand in obj.get("candidates") or []:
        content = cand.get("content") if isinstance(cand, dict) else None
        if not isinstance(content, dict):
            continue
        for part in content.get("parts") or []:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                parts_text.append(part["text"])
    if not parts_text:
        feedback = obj.get("promptFeedback")
        reason = feedback.get("blockReason") if isinstance(feedback, dict) else ""
        raise RuntimeError("summarize failed: empty response" + (f" (blocked: {reason})" if reason else ""))
    return "".join(parts_text)


def _error_message(payload: str) -> str:
    s = (payload or "").strip()
    try:
        obj = json.loads(s)
    except ValueError:
        return s
    if isinstance(obj, dict) and isinstance(obj.get("error"), dict):
        msg = str(obj["error"].get("message", "") or "").strip()
        if msg:
            return msg
    return s


def _ssl_context(*, ca_bundle_path: str) -> ssl.SSLContext:
    p = (ca_bundle_path or "").strip()
    if p:
        path = Path(p).expanduser()
        if path.is_dir():
            return ssl.create_default_context(capath=str(path))
        return ssl.create_default_context(cafile=str(path))
    return ssl.create_default_context(cafile=certifi.where())
