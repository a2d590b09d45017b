from __future__ import annotations

import datetime as dt

from .models import DateRange

NAMED_RANGES = ("day", "week", "month", "year")

REPORT_TITLES = {
    "daily": "Daily work report",
    "weekly": "Weekly work report",
    "monthly": "Monthly work report",
    "yearly": "Yearly work report",
    "report": "Work report",
}


def parse_day(value: str) -> dt.date:
    s = (value or "").strip()
    try:
        return dt.datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def _midnight(d: dt.date) -> dt.datetime:
    return dt.datetime(d.year, d.month, d.day)


def _next_month(d: dt.date) -> dt.date:
    if d.month == 12:
        return dt.date(d.year + 1, 1, 1)
    return dt.date(d.year, d.month + 1, 1)


def named_range(name: str, *, now: dt.datetime | None = None) -> DateRange:
    """Calendar-aligned period containing `now`. Unknown names mean "week"."""
    if now is None:
        now = dt.datetime.now()
    today = now.date()
    label = (name or "").strip().lower()
    if label not in NAMED_RANGES:
        label = "week"

    if label == "day":
        start = today
        end = today + dt.timedelta(days=1)
    elif label == "month":
        start = dt.date(today.year, today.month, 1)
        end = _next_month(start)
    elif label == "year":
        start = dt.date(today.year, 1, 1)
        end = dt.date(today.year + 1, 1, 1)
    else:
        start = today - dt.timedelta(days=today.weekday())
        end = start + dt.timedelta(days=7)
    return DateRange(start=_midnight(start), end=_midnight(end), label=label)


def explicit_range(from_value: str, to_value: str) -> DateRange:
    start = parse_day(from_value)
    last = parse_day(to_value)
    end = _midnight(last) + dt.timedelta(days=1) - dt.timedelta(seconds=1)
    return DateRange(start=_midnight(start), end=end, label="custom")


def single_day_range(value: str) -> DateRange:
    d = parse_day(value)
    return DateRange(start=_midnight(d), end=_midnight(d + dt.timedelta(days=1)), label="date")


def resolve_date_range(
    *,
    range_name: str = "week",
    from_value: str = "",
    to_value: str = "",
    on_date: str = "",
    now: dt.datetime | None = None,
) -> DateRange:
    from_value = (from_value or "").strip()
    to_value = (to_value or "").strip()
    if from_value and to_value:
        return explicit_range(from_value, to_value)
    if (on_date or "").strip():
        return single_day_range(on_date)
    return named_range(range_name, now=now)


def report_kind(date_range: DateRange) -> str:
    days = date_range.days
    if days <= 1:
        return "daily"
    if days <= 7:
        return "weekly"
    if days <= 31:
        return "monthly"
    if days <= 366:
        return "yearly"
    return "report"


def report_title(date_range: DateRange) -> str:
    return REPORT_TITLES[report_kind(date_range)]


def report_file_name(date_range: DateRange, suffix: str = ".md") -> str:
    return f"{report_kind(date_range)}-{date_range.start_iso}-to-{date_range.last_day.isoformat()}{suffix}"
