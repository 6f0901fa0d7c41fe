"""Emotion catalog organized by arousal level and valence."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Arousal(str, Enum):
    VERY_LOW = "very-low"
    LOW = "low"
    LOW_MODERATE = "low-moderate"
    MODERATE = "moderate"
    MODERATE_HIGH = "moderate-high"
    HIGH = "high"
    VERY_HIGH = "very-high"

    @property
    def level(self) -> int:
        return _AROUSAL_ORDER.index(self)

    @property
    def is_low(self) -> bool:
        return self.level <= Arousal.LOW_MODERATE.level

    @property
    def is_moderate(self) -> bool:
        return Arousal.MODERATE.level <= self.level <= Arousal.MODERATE_HIGH.level

    @property
    def is_high(self) -> bool:
        return self.level >= Arousal.HIGH.level


_AROUSAL_ORDER = tuple(Arousal)


class Valence(str, Enum):
    NEGATIVE = "negative"
    POSITIVE = "positive"


class Emotion(str, Enum):
    ANXIOUS = "anxious"
    ANGRY = "angry"
    FRUSTRATED = "frustrated"
    OVERWHELMED = "overwhelmed"
    RESTLESS = "restless"
    SAD = "sad"
    LONELY = "lonely"
    TIRED = "tired"
    NUMB = "numb"
    STRESSED = "stressed"
    CALM = "calm"
    CONTENT = "content"
    GRATEFUL = "grateful"
    HOPEFUL = "hopeful"


@dataclass(frozen=True)
class EmotionProfile:
    label: str
    arousal: Arousal
    valence: Valence
    default_intensity: int
    context: str


EMOTIONS: Mapping[Emotion, EmotionProfile] = MappingProxyType(
    {
        # High arousal negative
        Emotion.ANXIOUS: EmotionProfile(
            "Anxious", Arousal.HIGH, Valence.NEGATIVE, 7,
            "High arousal fear state - needs parasympathetic activation and grounding",
        ),
        Emotion.ANGRY: EmotionProfile(
            "Angry", Arousal.HIGH, Valence.NEGATIVE, 7,
            "High arousal anger state - needs cooling, regulation, and perspective",
        ),
        Emotion.FRUSTRATED: EmotionProfile(
            "Frustrated", Arousal.MODERATE_HIGH, Valence.NEGATIVE, 6,
            "Moderate anger from blocked goals - needs perspective shift and grounding",
        ),
        Emotion.OVERWHELMED: EmotionProfile(
            "Overwhelmed", Arousal.VERY_HIGH, Valence.NEGATIVE, 8,
            "Cognitive/emotional overload - needs simplification, breaks, and regulation",
        ),
        Emotion.RESTLESS: EmotionProfile(
            "Restless", Arousal.HIGH, Valence.NEGATIVE, 6,
            "Excess unfocused energy - needs channeling and grounding",
        ),
        # Low arousal negative
        Emotion.SAD: EmotionProfile(
            "Sad", Arousal.LOW, Valence.NEGATIVE, 6,
            "Low arousal sadness - needs gentle activation and emotional resilience",
        ),
        Emotion.LONELY: EmotionProfile(
            "Lonely", Arousal.LOW, Valence.NEGATIVE, 6,
            "Social pain and disconnection - needs self-compassion and reconnection",
        ),
        Emotion.TIRED: EmotionProfile(
            "Tired", Arousal.VERY_LOW, Valence.NEGATIVE, 7,
            "Physical/mental fatigue - needs gentle energizing or permission to rest",
        ),
        Emotion.NUMB: EmotionProfile(
            "Numb", Arousal.VERY_LOW, Valence.NEGATIVE, 5,
            "Emotional disconnection/avoidance - needs gentle reconnection and safety",
        ),
        # Moderate arousal negative
        Emotion.STRESSED: EmotionProfile(
            "Stressed", Arousal.MODERATE_HIGH, Valence.NEGATIVE, 7,
            "Pressure and demands exceeding resources - needs mental clarity and grounding",
        ),
        # Low arousal positive
        Emotion.CALM: EmotionProfile(
            "Calm", Arousal.LOW, Valence.POSITIVE, 3,
            "Parasympathetic state - maintenance practice to deepen and build resilience",
        ),
        Emotion.CONTENT: EmotionProfile(
            "Content", Arousal.LOW, Valence.POSITIVE, 3,
            "Mild positive state - opportunity for gratitude practice and deepening",
        ),
        Emotion.GRATEFUL: EmotionProfile(
            "Grateful", Arousal.LOW_MODERATE, Valence.POSITIVE, 2,
            "Positive reflective state - deepen with awareness and savoring practices",
        ),
        # Activated positive
        Emotion.HOPEFUL: EmotionProfile(
            "Hopeful", Arousal.MODERATE, Valence.POSITIVE, 4,
            "Positive anticipation - channel energy constructively and build momentum",
        ),
    }
)

DEPLETED_EMOTIONS = frozenset({Emotion.NUMB, Emotion.TIRED})

_missing = set(Emotion) - set(EMOTIONS)
if _missing:
    raise RuntimeError(f"Emotion profiles missing for: {sorted(e.value for e in _missing)}")


def to_emotion(value: Emotion | str) -> Emotion:
    if isinstance(value, Emotion):
        return value
    key = str(value or "").strip().lower()
    try:
        return Emotion(key)
    except ValueError:
        raise ValueError(f"Unknown emotion: {value!r}") from None


def emotion_profile(emotion: Emotion | str) -> EmotionProfile:
    return EMOTIONS[to_emotion(emotion)]
