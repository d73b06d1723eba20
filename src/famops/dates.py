"""
Famops - Calendar day helpers.

Routine logs and meals are keyed by plain `YYYY-MM-DD` strings computed in
one fixed reference time zone.
"""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_iso(tz: str = "America/New_York") -> str:
    """Today's calendar date in the given zone."""
    return datetime.now(ZoneInfo(tz)).date().isoformat()


def is_iso_date(value: object) -> bool:
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_day(value: str | date | datetime) -> date:
    """Accept a date, a datetime, or an ISO string (date or datetime)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def normalize_week_start(value: str | date | datetime) -> date:
    """Snap any day to the Monday of its week."""
    day = parse_day(value)
    return day - timedelta(days=day.weekday())


def week_dates(week_start: str | date | datetime, days: int = 7) -> list[str]:
    """ISO dates for `days` consecutive days from the week's Monday."""
    monday = normalize_week_start(week_start)
    return [(monday + timedelta(days=i)).isoformat() for i in range(days)]


def short_label(day: str | date) -> str:
    """'Jan 6' style label used in list titles."""
    d = parse_day(day)
    return f"{d.strftime('%b')} {d.day}"
