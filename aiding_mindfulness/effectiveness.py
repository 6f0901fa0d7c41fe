from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Sequence

from .dates import date_string, now_local, to_local
from .models import EffectivenessStats, PeriodStats, RecentSession, Session
from .patterns import most_common
from .techniques import Technique


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _qualifies(session: Session) -> bool:
    return session.completed and session.mood_after is not None


def _improvement(session: Session) -> int:
    return session.mood_before.intensity - session.mood_after.intensity


def calculate_effectiveness(sessions: Sequence[Session]) -> dict[Technique, EffectivenessStats | None]:
    effectiveness: dict[Technique, EffectivenessStats | None] = {}
    for technique in Technique:
        used = [s for s in sessions if s.technique is technique and _qualifies(s)]
        if not used:
            effectiveness[technique] = None
            continue

        improvements = [_improvement(s) for s in used]
        average = sum(improvements) / len(improvements)
        success = sum(1 for value in improvements if value > 0) / len(improvements)
        latest = max(used, key=lambda s: s.started_at or datetime.min)
        effectiveness[technique] = EffectivenessStats(
            times_used=len(used),
            avg_improvement=round_half_up(average, 1),
            success_rate=int(round_half_up(success * 100)),
            last_used=latest.timestamp,
        )
    return effectiveness


def average_mood_improvement(sessions: Sequence[Session]) -> float:
    completed = [s for s in sessions if _qualifies(s)]
    if not completed:
        return 0.0
    return round_half_up(sum(_improvement(s) for s in completed) / len(completed), 1)


def most_effective_technique(sessions: Sequence[Session]) -> Technique | None:
    totals: dict[Technique, list[int]] = {}
    for session in sessions:
        if not _qualifies(session):
            continue
        totals.setdefault(session.technique, []).append(_improvement(session))

    best: Technique | None = None
    best_average = -math.inf
    for technique, improvements in totals.items():
        average = sum(improvements) / len(improvements)
        if average > best_average:
            best, best_average = technique, average
    return best


def _within(sessions: Sequence[Session], days: int, now: datetime | None) -> list[Session]:
    cutoff = (to_local(now) if now is not None else now_local()) - timedelta(days=days)
    return [s for s in sessions if s.started_at is not None and s.started_at >= cutoff]


def recent_sessions(
    sessions: Sequence[Session],
    days: int = 7,
    now: datetime | None = None,
) -> list[RecentSession]:
    return [
        RecentSession(
            date=date_string(s.started_at),
            emotion=s.mood_before.emotion,
            technique=s.technique,
            improvement=_improvement(s) if s.mood_after is not None else 0,
            completed=s.completed,
        )
        for s in _within(sessions, days, now)
    ]


def stats_for_period(
    sessions: Sequence[Session],
    days: int = 7,
    now: datetime | None = None,
) -> PeriodStats:
    window = _within(sessions, days, now)
    return PeriodStats(
        total_sessions=len(window),
        completed_sessions=sum(1 for s in window if s.completed),
        avg_improvement=average_mood_improvement(window),
        most_common_emotion=most_common(s.mood_before.emotion for s in window),
        most_effective_technique=most_effective_technique(window),
    )
