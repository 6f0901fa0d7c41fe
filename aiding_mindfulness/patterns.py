from __future__ import annotations

from collections import Counter
from typing import Hashable, Iterable, Sequence, TypeVar

from .dates import day_of_week, time_of_day
from .models import MoodPatterns, Session

MIN_PATTERN_SESSIONS = 3

T = TypeVar("T", bound=Hashable)


def most_common(values: Iterable[T]) -> T | None:
    """Most frequent value; ties go to the value seen first."""
    counts = Counter(values)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def analyze_patterns(sessions: Sequence[Session]) -> MoodPatterns:
    dated = [(session, session.started_at) for session in sessions if session.started_at is not None]
    if len(dated) < MIN_PATTERN_SESSIONS:
        return MoodPatterns()

    emotions_per_day: dict[int, list] = {}
    buckets: list[str] = []
    for session, started in dated:
        emotions_per_day.setdefault(day_of_week(started), []).append(session.mood_before.emotion)
        buckets.append(time_of_day(started))

    return MoodPatterns(
        emotions_by_day={day: most_common(emotions) for day, emotions in emotions_per_day.items()},
        preferred_time_of_day=most_common(buckets),
        most_used_technique=most_common(session.technique for session, _ in dated),
    )
