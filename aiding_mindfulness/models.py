from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Mapping

from .dates import now_local, parse_timestamp
from .emotions import Emotion, emotion_profile, to_emotion
from .techniques import Technique, to_technique

MIN_INTENSITY = 1
MAX_INTENSITY = 10

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


def _validate_intensity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Intensity must be a whole number, got {value!r}.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Intensity must be a whole number, got {value!r}.") from None
    if not number.is_integer():
        raise ValueError(f"Intensity must be a whole number, got {value!r}.")
    intensity = int(number)
    if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
        raise ValueError(f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}.")
    return intensity


@dataclass(frozen=True)
class MoodSample:
    emotion: Emotion
    intensity: int
    timestamp: str

    @classmethod
    def create(
        cls,
        emotion: Emotion | str,
        intensity: int | None = None,
        timestamp: datetime | str | None = None,
    ) -> "MoodSample":
        key = to_emotion(emotion)
        if intensity is None:
            intensity = emotion_profile(key).default_intensity
        if timestamp is None:
            timestamp = now_local()
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return cls(emotion=key, intensity=_validate_intensity(intensity), timestamp=str(timestamp))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MoodSample":
        return cls.create(
            emotion=data.get("emotion", ""),
            intensity=data.get("intensity"),
            timestamp=data.get("timestamp") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"emotion": self.emotion.value, "intensity": self.intensity, "timestamp": self.timestamp}


@dataclass(frozen=True)
class Session:
    id: str
    timestamp: str
    mood_before: MoodSample
    technique: Technique
    completed: bool = False
    mood_after: MoodSample | None = None
    improvement: int | None = None
    journal_entry: str | None = None

    @classmethod
    def start(
        cls,
        mood_before: MoodSample,
        technique: Technique | str,
        timestamp: datetime | str | None = None,
    ) -> "Session":
        if timestamp is None:
            timestamp = now_local()
        if isinstance(timestamp, datetime):
            timestamp = timestamp.isoformat()
        return cls(
            id=str(uuid.uuid4()),
            timestamp=str(timestamp),
            mood_before=mood_before,
            technique=to_technique(technique),
        )

    def conclude(self, mood_after: MoodSample, journal_entry: str | None = None) -> "Session":
        return replace(
            self,
            completed=True,
            mood_after=mood_after,
            improvement=self.mood_before.intensity - mood_after.intensity,
            journal_entry=journal_entry if journal_entry is not None else self.journal_entry,
        )

    def abandon(self) -> "Session":
        return replace(self, completed=False, mood_after=None, improvement=None)

    @property
    def started_at(self) -> datetime | None:
        return parse_timestamp(self.timestamp)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Session":
        before = data.get("moodBefore")
        if not isinstance(before, Mapping):
            raise ValueError("Session is missing moodBefore.")
        after_raw = data.get("moodAfter")
        mood_after = MoodSample.from_dict(after_raw) if isinstance(after_raw, Mapping) else None
        mood_before = MoodSample.from_dict(before)
        improvement = (
            mood_before.intensity - mood_after.intensity if mood_after is not None else None
        )
        session_id = str(data.get("id") or "").strip() or str(uuid.uuid4())
        timestamp = str(data.get("timestamp") or "").strip()
        if not timestamp:
            raise ValueError("Session is missing timestamp.")
        return cls(
            id=session_id,
            timestamp=timestamp,
            mood_before=mood_before,
            technique=to_technique(data.get("breathingTechnique", "")),
            completed=bool(data.get("completed", False)),
            mood_after=mood_after,
            improvement=improvement,
            journal_entry=data.get("journalEntry") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "moodBefore": self.mood_before.to_dict(),
            "breathingTechnique": self.technique.value,
            "completed": self.completed,
            "moodAfter": self.mood_after.to_dict() if self.mood_after else None,
            "improvement": self.improvement,
            "journalEntry": self.journal_entry,
        }


@dataclass(frozen=True)
class JournalEntry:
    date: str
    emotion: Emotion | None = None


@dataclass(frozen=True)
class EffectivenessStats:
    times_used: int
    avg_improvement: float
    success_rate: int
    last_used: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timesUsed": self.times_used,
            "avgImprovement": self.avg_improvement,
            "successRate": self.success_rate,
            "lastUsed": self.last_used,
        }


@dataclass(frozen=True)
class MoodPatterns:
    emotions_by_day: Mapping[int, Emotion] = field(default_factory=dict)
    preferred_time_of_day: str | None = None
    most_used_technique: Technique | None = None

    @property
    def is_empty(self) -> bool:
        return (
            not self.emotions_by_day
            and self.preferred_time_of_day is None
            and self.most_used_technique is None
        )

    def to_dict(self) -> dict[str, Any]:
        if self.is_empty:
            return {}
        return {
            "emotionsByDay": {str(day): emotion.value for day, emotion in self.emotions_by_day.items()},
            "preferredTimeOfDay": self.preferred_time_of_day,
            "mostUsedTechnique": self.most_used_technique.value if self.most_used_technique else None,
        }


@dataclass(frozen=True)
class StreakSummary:
    current_streak: int = 0
    longest_streak: int = 0
    total_count: int = 0
    count_this_period: int = 0


@dataclass(frozen=True)
class JournalStats:
    current_streak: int = 0
    longest_streak: int = 0
    total_entries: int = 0
    entries_this_month: int = 0
    most_common_emotion: Emotion | None = None


@dataclass(frozen=True)
class PeriodStats:
    total_sessions: int
    completed_sessions: int
    avg_improvement: float
    most_common_emotion: Emotion | None
    most_effective_technique: Technique | None


@dataclass(frozen=True)
class RecentSession:
    date: str
    emotion: Emotion
    technique: Technique
    improvement: int
    completed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "emotion": self.emotion.value,
            "technique": self.technique.value,
            "improvement": self.improvement,
            "completed": self.completed,
        }


@dataclass(frozen=True)
class RecommendationContext:
    mood: MoodSample
    time_of_day: str
    day_of_week: int
    effective_date: str
    recent_sessions: tuple[RecentSession, ...]
    effectiveness: Mapping[Technique, EffectivenessStats | None]
    patterns: MoodPatterns
    total_sessions: int
    current_streak: int


@dataclass(frozen=True)
class Recommendation:
    technique: Technique
    reasoning: str
    personal_note: str
    confidence: int
    source: str = SOURCE_FALLBACK

    def to_dict(self) -> dict[str, Any]:
        return {
            "technique": self.technique.value,
            "reasoning": self.reasoning,
            "personalNote": self.personal_note,
            "confidence": self.confidence,
        }
