from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Technique(str, Enum):
    FOUR_SEVEN_EIGHT = "4-7-8"
    BOX = "box"
    COHERENT = "coherent"


@dataclass(frozen=True)
class BreathingPhase:
    name: str
    duration_seconds: float
    instruction: str


@dataclass(frozen=True)
class TechniqueProfile:
    name: str
    short_name: str
    duration_seconds: int
    cycles: int
    description: str
    best_for: tuple[str, ...]
    phases: tuple[BreathingPhase, ...]
    mechanism: str
    evidence: str
    contraindications: str


TECHNIQUES: Mapping[Technique, TechniqueProfile] = MappingProxyType(
    {
        Technique.FOUR_SEVEN_EIGHT: TechniqueProfile(
            name="4-7-8 Breathing",
            short_name="4-7-8",
            duration_seconds=300,
            cycles=8,
            description="Activates your parasympathetic nervous system",
            best_for=("acute anxiety", "sleep preparation", "panic management"),
            phases=(
                BreathingPhase("inhale", 4, "Inhale through nose"),
                BreathingPhase("hold", 7, "Hold your breath"),
                BreathingPhase("exhale", 8, "Exhale through mouth"),
            ),
            mechanism="Long active exhale activates the parasympathetic nervous system",
            evidence="Reduces heart rate within 4 cycles",
            contraindications=(
                "Avoid for very-low arousal states (numb, tired): the long exhale deepens "
                "low-arousal states instead of relieving them"
            ),
        ),
        Technique.BOX: TechniqueProfile(
            name="Box Breathing",
            short_name="Box",
            duration_seconds=300,
            cycles=12,
            description="Creates balance and mental clarity",
            best_for=("stress management", "focus", "performance situations"),
            phases=(
                BreathingPhase("inhale", 4, "Breathe in"),
                BreathingPhase("hold-full", 4, "Hold"),
                BreathingPhase("exhale", 4, "Breathe out"),
                BreathingPhase("hold-empty", 4, "Hold"),
            ),
            mechanism="Equal counts create autonomic balance and mental clarity",
            evidence="Used by Navy SEALs, improves concentration",
            contraindications="Breath holds can feel effortful during acute panic",
        ),
        Technique.COHERENT: TechniqueProfile(
            name="Coherent Breathing",
            short_name="Coherent",
            duration_seconds=600,
            cycles=55,
            description="Builds HRV and long-term stress resilience",
            best_for=("daily maintenance", "building HRV", "long-term resilience"),
            phases=(
                BreathingPhase("inhale", 5.5, "Breathe in"),
                BreathingPhase("exhale", 5.5, "Breathe out"),
            ),
            mechanism="Optimizes heart rate variability at about 5.5 breaths per minute",
            evidence="Improves cognitive function and stress resilience",
            contraindications="Slow to take effect for acute, high-intensity distress",
        ),
    }
)

_missing = set(Technique) - set(TECHNIQUES)
if _missing:
    raise RuntimeError(f"Technique profiles missing for: {sorted(t.value for t in _missing)}")

RAPID_DOWNREGULATION = Technique.FOUR_SEVEN_EIGHT
STRUCTURE = Technique.BOX
GENTLE_ACTIVATION = Technique.COHERENT
MAINTENANCE = Technique.COHERENT


def to_technique(value: Technique | str) -> Technique:
    if isinstance(value, Technique):
        return value
    key = str(value or "").strip().lower()
    try:
        return Technique(key)
    except ValueError:
        raise ValueError(f"Unknown breathing technique: {value!r}") from None


def cycle_seconds(technique: Technique | str) -> float:
    profile = TECHNIQUES[to_technique(technique)]
    return sum(phase.duration_seconds for phase in profile.phases)
