from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence, Union

from .dates import days_between, effective_date, month_key, parse_date, previous_day
from .models import JournalEntry, JournalStats, Session, StreakSummary
from .patterns import most_common

StreakRecord = Union[Session, JournalEntry]


def record_day(record: StreakRecord) -> str | None:
    """Effective date a record counts toward, or None when it has no usable date."""
    if isinstance(record, JournalEntry):
        try:
            return parse_date(record.date).isoformat()
        except ValueError:
            return None
    started = record.started_at
    if started is None:
        return None
    return effective_date(started)


def unique_days(records: Iterable[StreakRecord]) -> set[str]:
    days = (record_day(record) for record in records)
    return {day for day in days if day is not None}


def current_streak(days: set[str], today: str) -> int:
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor = previous_day(cursor)
    return streak


def longest_streak(days: set[str]) -> int:
    if not days:
        return 0
    ordered = sorted(days)
    longest = 1
    running = 1
    for previous, current in zip(ordered, ordered[1:]):
        if days_between(previous, current) == 1:
            running += 1
            longest = max(longest, running)
        else:
            running = 1
    return longest


def summarize(records: Sequence[StreakRecord], now: datetime | None = None) -> StreakSummary:
    if not records:
        return StreakSummary()
    today = effective_date(now)
    days = unique_days(records)
    this_month = month_key(today)
    dated = [record_day(record) for record in records]
    return StreakSummary(
        current_streak=current_streak(days, today),
        longest_streak=longest_streak(days),
        total_count=len(records),
        count_this_period=sum(1 for day in dated if day is not None and month_key(day) == this_month),
    )


def get_stats(records: Sequence[StreakRecord], now: datetime | None = None) -> JournalStats:
    summary = summarize(records, now)
    return JournalStats(
        current_streak=summary.current_streak,
        longest_streak=summary.longest_streak,
        total_entries=summary.total_count,
        entries_this_month=summary.count_this_period,
        most_common_emotion=most_common(_record_emotions(records)),
    )


def _record_emotions(records: Iterable[StreakRecord]):
    for record in records:
        if isinstance(record, JournalEntry):
            if record.emotion is not None:
                yield record.emotion
        else:
            yield record.mood_before.emotion
