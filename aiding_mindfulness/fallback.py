"""Deterministic technique selection used when no AI recommendation is available.

Rules are evaluated top to bottom and the first match wins. The bands overlap,
so the order of ``FALLBACK_RULES`` is part of the behavior: a crisis-level
intensity always resolves through the crisis rules, whatever the time of day.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .dates import MORNING, NIGHT
from .emotions import DEPLETED_EMOTIONS, Emotion, EmotionProfile, Valence, emotion_profile, to_emotion
from .models import SOURCE_FALLBACK, Recommendation
from .techniques import GENTLE_ACTIVATION, MAINTENANCE, RAPID_DOWNREGULATION, STRUCTURE, Technique

CRISIS_INTENSITY = 8


@dataclass(frozen=True)
class MoodFacts:
    emotion: Emotion
    profile: EmotionProfile
    intensity: int
    time_of_day: str

    @property
    def negative(self) -> bool:
        return self.profile.valence is Valence.NEGATIVE


@dataclass(frozen=True)
class FallbackRule:
    name: str
    applies: Callable[[MoodFacts], bool]
    technique: Technique
    reasoning: str
    personal_note: str
    confidence: int

    def recommendation(self) -> Recommendation:
        return Recommendation(
            technique=self.technique,
            reasoning=self.reasoning,
            personal_note=self.personal_note,
            confidence=self.confidence,
            source=SOURCE_FALLBACK,
        )


FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule(
        name="crisis-high-arousal",
        applies=lambda f: f.intensity >= CRISIS_INTENSITY and f.profile.arousal.is_high,
        technique=RAPID_DOWNREGULATION,
        reasoning="Very intense, activated feelings call for the fastest parasympathetic reset",
        personal_note="Stay with the long exhale; your heart rate will follow within a few cycles",
        confidence=90,
    ),
    FallbackRule(
        name="crisis-structure",
        applies=lambda f: f.intensity >= CRISIS_INTENSITY,
        technique=STRUCTURE,
        reasoning="When a heavy feeling is this strong, an even, predictable rhythm gives you structure",
        personal_note="Just follow the four sides of the box, one count at a time",
        confidence=85,
    ),
    FallbackRule(
        name="high-arousal-negative-night",
        applies=lambda f: (
            f.intensity >= 7
            and f.profile.arousal.is_high
            and f.negative
            and f.time_of_day == NIGHT
        ),
        technique=RAPID_DOWNREGULATION,
        reasoning="High activation this late needs quick down-regulation before rest",
        personal_note="This technique works fast and helps you wind down for sleep",
        confidence=85,
    ),
    FallbackRule(
        name="high-arousal-negative",
        applies=lambda f: f.intensity >= 7 and f.profile.arousal.is_high and f.negative,
        technique=RAPID_DOWNREGULATION,
        reasoning="High intensity requires quick parasympathetic activation",
        personal_note="This technique works fast for intense feelings",
        confidence=85,
    ),
    FallbackRule(
        name="moderate-arousal-negative",
        applies=lambda f: 4 <= f.intensity < 7 and f.profile.arousal.is_moderate and f.negative,
        technique=STRUCTURE,
        reasoning="Box breathing brings focus and grounding",
        personal_note="Great for regaining control and clarity",
        confidence=80,
    ),
    FallbackRule(
        name="low-arousal-depleted",
        applies=lambda f: (
            f.profile.arousal.is_low
            and f.negative
            and (f.emotion in DEPLETED_EMOTIONS or f.intensity >= 6)
        ),
        technique=GENTLE_ACTIVATION,
        reasoning="A balanced, gentle rhythm lifts low energy without deepening it",
        personal_note="Even breaths in and out, nothing forced",
        confidence=75,
    ),
    FallbackRule(
        name="low-arousal-negative",
        applies=lambda f: f.profile.arousal.is_low and f.negative,
        technique=STRUCTURE,
        reasoning="A steady structure helps you re-engage when feeling low",
        personal_note="Counting each side gives your mind something kind to hold on to",
        confidence=75,
    ),
    FallbackRule(
        name="positive",
        applies=lambda f: f.profile.valence is Valence.POSITIVE,
        technique=MAINTENANCE,
        reasoning="Daily coherent practice builds long-term resilience",
        personal_note="Excellent for maintaining balance while you feel good",
        confidence=85,
    ),
    FallbackRule(
        name="night-negative",
        applies=lambda f: f.time_of_day == NIGHT and f.negative and f.intensity >= 5,
        technique=RAPID_DOWNREGULATION,
        reasoning="Evening session benefits from sleep-promoting breathing",
        personal_note="Perfect for winding down before rest",
        confidence=80,
    ),
    FallbackRule(
        name="morning",
        applies=lambda f: f.time_of_day == MORNING and f.intensity <= 5,
        technique=MAINTENANCE,
        reasoning="A morning coherent practice sets a steady tone for the day",
        personal_note="Excellent for maintaining balance",
        confidence=75,
    ),
    FallbackRule(
        name="default",
        applies=lambda f: True,
        technique=MAINTENANCE,
        reasoning="Coherent breathing is excellent for overall well-being",
        personal_note="A solid choice for most situations",
        confidence=70,
    ),
)


def match_rule(emotion: Emotion | str, intensity: int, time_of_day: str) -> FallbackRule:
    key = to_emotion(emotion)
    facts = MoodFacts(
        emotion=key,
        profile=emotion_profile(key),
        intensity=int(intensity),
        time_of_day=time_of_day,
    )
    for rule in FALLBACK_RULES:
        if rule.applies(facts):
            return rule
    raise RuntimeError("Fallback rules must end with a catch-all rule.")


def fallback_recommendation(emotion: Emotion | str, intensity: int, time_of_day: str) -> Recommendation:
    return match_rule(emotion, intensity, time_of_day).recommendation()
