"""Recommendation engine.

Each request runs the same pipeline over a fresh snapshot of the session
history: gather context, try the AI advisor once, and fall back to the
deterministic rule tree when the advisor is missing, fails, or answers with
something that is not a valid recommendation. Only an invalid mood raises.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from enum import Enum
from typing import Callable, Protocol, Sequence

from .ai import (
    AIResult,
    build_journal_prompt,
    build_recommendation_prompt,
    fallback_journal_prompt,
    normalize_journal_prompt,
    normalize_recommendation,
    parse_ai_json,
)
from .dates import day_of_week, effective_date, now_local, time_of_day, to_local
from .effectiveness import calculate_effectiveness, recent_sessions
from .emotions import Emotion
from .fallback import fallback_recommendation
from .models import (
    MAX_INTENSITY,
    MIN_INTENSITY,
    JournalStats,
    MoodSample,
    Recommendation,
    RecommendationContext,
    Session,
)
from .patterns import analyze_patterns
from .streaks import StreakRecord, current_streak, get_stats, unique_days

logger = logging.getLogger(__name__)

RECENT_DAYS = 7


class SessionHistory(Protocol):
    def get_all_sessions(self) -> list[Session]: ...


class RecommendationAdvisor(Protocol):
    def is_configured(self) -> bool: ...

    def complete(self, prompt: str) -> AIResult: ...


class RecommendationOutcome(str, Enum):
    AI_SUCCESS = "ai_success"
    AI_UNAVAILABLE = "ai_unavailable"
    AI_MALFORMED = "ai_malformed"


def _require_mood(mood: object) -> MoodSample:
    if mood is None:
        raise ValueError("A mood is required to recommend a technique.")
    if not isinstance(mood, MoodSample):
        raise ValueError(f"Expected a MoodSample, got {type(mood).__name__}.")
    if not isinstance(mood.emotion, Emotion):
        raise ValueError(f"Unknown emotion: {mood.emotion!r}")
    if isinstance(mood.intensity, bool) or not isinstance(mood.intensity, int):
        raise ValueError(f"Intensity must be a whole number, got {mood.intensity!r}.")
    if not MIN_INTENSITY <= mood.intensity <= MAX_INTENSITY:
        raise ValueError(f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}.")
    return mood


def build_context(mood: MoodSample, sessions: Sequence[Session], now: datetime) -> RecommendationContext:
    today = effective_date(now)
    return RecommendationContext(
        mood=mood,
        time_of_day=time_of_day(now),
        day_of_week=day_of_week(now),
        effective_date=today,
        recent_sessions=tuple(recent_sessions(sessions, RECENT_DAYS, now)),
        effectiveness=calculate_effectiveness(sessions),
        patterns=analyze_patterns(sessions),
        total_sessions=len(sessions),
        current_streak=current_streak(unique_days(sessions), today),
    )


class RecommendationEngine:
    def __init__(
        self,
        history: SessionHistory,
        advisor: RecommendationAdvisor | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self.history = history
        self.advisor = advisor
        self._clock = clock

    def _now(self, now: datetime | None) -> datetime:
        return to_local(now) if now is not None else self._clock()

    def _load_sessions(self) -> list[Session]:
        try:
            return list(self.history.get_all_sessions())
        except (sqlite3.Error, OSError) as exc:
            logger.error("Could not read session history, continuing without it: %s", exc)
            return []

    def _advisor_ready(self) -> bool:
        if self.advisor is None:
            return False
        try:
            return bool(self.advisor.is_configured())
        except Exception as exc:
            logger.warning("AI advisor configuration check failed: %r", exc)
            return False

    def _consult(self, prompt: str) -> AIResult:
        """Ask the advisor once; a raising advisor counts as a failed call."""
        try:
            return self.advisor.complete(prompt)
        except Exception as exc:
            logger.warning("AI advisor raised %s: %s", type(exc).__name__, exc)
            return AIResult.failure(f"{type(exc).__name__}: {exc}")

    def gather_context(self, mood: MoodSample, now: datetime | None = None) -> RecommendationContext:
        mood = _require_mood(mood)
        return build_context(mood, self._load_sessions(), self._now(now))

    def get_recommendation(self, mood: MoodSample, now: datetime | None = None) -> Recommendation:
        mood = _require_mood(mood)
        context = self.gather_context(mood, now)

        recommendation, outcome = self._ai_recommendation(context)
        if recommendation is not None:
            logger.info(
                "AI recommended %s (confidence %d)",
                recommendation.technique.value,
                recommendation.confidence,
            )
            return recommendation

        recommendation = fallback_recommendation(mood.emotion, mood.intensity, context.time_of_day)
        logger.info(
            "Using fallback recommendation %s (confidence %d) after %s",
            recommendation.technique.value,
            recommendation.confidence,
            outcome.value,
        )
        return recommendation

    def _ai_recommendation(
        self,
        context: RecommendationContext,
    ) -> tuple[Recommendation | None, RecommendationOutcome]:
        if not self._advisor_ready():
            return None, RecommendationOutcome.AI_UNAVAILABLE

        result = self._consult(build_recommendation_prompt(context))
        if not result.ok:
            logger.warning("AI recommendation unavailable: %s", result.error)
            return None, RecommendationOutcome.AI_UNAVAILABLE

        try:
            data = parse_ai_json(result.text or "")
        except ValueError as exc:
            logger.warning("AI recommendation malformed: %s", exc)
            return None, RecommendationOutcome.AI_MALFORMED

        recommendation = normalize_recommendation(data)
        if recommendation is None:
            logger.warning("AI recommendation failed validation: %r", data)
            return None, RecommendationOutcome.AI_MALFORMED
        return recommendation, RecommendationOutcome.AI_SUCCESS

    def get_stats(
        self,
        history: Sequence[StreakRecord] | None = None,
        now: datetime | None = None,
    ) -> JournalStats:
        records = list(history) if history is not None else self._load_sessions()
        return get_stats(records, self._now(now))

    def get_journal_prompt(
        self,
        session: Session,
        now: datetime | None = None,
        recent_themes: list[str] | None = None,
    ) -> str:
        if session is None or session.mood_after is None:
            raise ValueError("A concluded session with an after-mood is required.")

        fallback = fallback_journal_prompt(session.mood_before, session.mood_after)
        if not self._advisor_ready():
            return fallback

        prompt = build_journal_prompt(
            session.mood_before,
            session.mood_after,
            session.technique,
            time_of_day(self._now(now)),
            recent_themes,
        )
        result = self._consult(prompt)
        if not result.ok:
            logger.warning("AI journal prompt unavailable: %s", result.error)
            return fallback
        try:
            generated = normalize_journal_prompt(parse_ai_json(result.text or ""))
        except ValueError as exc:
            logger.warning("AI journal prompt malformed: %s", exc)
            return fallback
        return generated or fallback
