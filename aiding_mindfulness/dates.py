"""Calendar helpers.

A practice "day" ends at 04:00 local time rather than at midnight, so a late
session at 01:30 still counts toward the evening before. Every streak and
one-entry-per-day computation goes through :func:`effective_date`.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

DAY_BOUNDARY_HOUR = 4

LATE_NIGHT = "late_night"
MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"
NIGHT = "night"

TIME_OF_DAY_BUCKETS = (LATE_NIGHT, MORNING, AFTERNOON, EVENING, NIGHT)

_DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def now_local() -> datetime:
    return datetime.now()


def to_local(value: datetime) -> datetime:
    """Return a naive datetime in local time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return to_local(value)
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return to_local(datetime.fromisoformat(text))
    except ValueError:
        return None


def date_string(value: date) -> str:
    if isinstance(value, datetime):
        value = to_local(value).date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date(value: str) -> date:
    return date.fromisoformat(str(value).strip()[:10])


def effective_date(now: datetime | None = None) -> str:
    moment = to_local(now) if now is not None else now_local()
    if moment.hour < DAY_BOUNDARY_HOUR:
        moment = moment - timedelta(days=1)
    return date_string(moment.date())


def is_effective_today(value: str, now: datetime | None = None) -> bool:
    return value == effective_date(now)


def days_between(start: date | str, end: date | str) -> int:
    if isinstance(start, str):
        start = parse_date(start)
    if isinstance(end, str):
        end = parse_date(end)
    if isinstance(start, datetime):
        start = to_local(start).date()
    if isinstance(end, datetime):
        end = to_local(end).date()
    return (end - start).days


def previous_day(value: str) -> str:
    return date_string(parse_date(value) - timedelta(days=1))


def time_of_day(instant: datetime | None = None) -> str:
    hour = (to_local(instant) if instant is not None else now_local()).hour
    if hour < 6:
        return LATE_NIGHT
    if hour < 12:
        return MORNING
    if hour < 17:
        return AFTERNOON
    if hour < 21:
        return EVENING
    return NIGHT


def day_of_week(instant: datetime | None = None) -> int:
    """Day index with 0 = Sunday."""
    moment = to_local(instant) if instant is not None else now_local()
    return (moment.weekday() + 1) % 7


def day_name(index: int) -> str:
    return _DAY_NAMES[int(index) % 7]


def month_key(value: str) -> str:
    return str(value)[:7]


def dates_in_month(year: int, month: int) -> list[str]:
    _, days = calendar.monthrange(year, month)
    return [date_string(date(year, month, day)) for day in range(1, days + 1)]
