from __future__ import annotations

import unittest

from aiding_mindfulness.dates import AFTERNOON, EVENING, MORNING, NIGHT, TIME_OF_DAY_BUCKETS
from aiding_mindfulness.emotions import EMOTIONS, Arousal, Emotion
from aiding_mindfulness.fallback import FALLBACK_RULES, fallback_recommendation, match_rule
from aiding_mindfulness.models import SOURCE_FALLBACK
from aiding_mindfulness.techniques import Technique


class CrisisBandTests(unittest.TestCase):
    def test_anxious_at_eight_late_evening(self) -> None:
        rec = fallback_recommendation("anxious", 8, NIGHT)
        self.assertEqual(rec.technique, Technique.FOUR_SEVEN_EIGHT)
        self.assertEqual(rec.confidence, 90)
        self.assertEqual(rec.source, SOURCE_FALLBACK)

    def test_low_arousal_crisis_beats_night_catch(self) -> None:
        rule = match_rule(Emotion.SAD, 9, NIGHT)
        self.assertEqual(rule.name, "crisis-structure")
        rec = rule.recommendation()
        self.assertEqual(rec.technique, Technique.BOX)
        self.assertEqual(rec.confidence, 85)

    def test_depleted_crisis_gets_structure(self) -> None:
        for emotion in (Emotion.NUMB, Emotion.TIRED):
            rec = fallback_recommendation(emotion, 8, AFTERNOON)
            self.assertEqual(rec.technique, Technique.BOX)
            self.assertEqual(rec.confidence, 85)

    def test_moderate_high_arousal_crisis_is_not_high_arousal(self) -> None:
        rec = fallback_recommendation("stressed", 9, AFTERNOON)
        self.assertEqual(rec.technique, Technique.BOX)
        self.assertEqual(rec.confidence, 85)


class BandTests(unittest.TestCase):
    def test_high_arousal_negative_same_choice_day_and_night(self) -> None:
        night = fallback_recommendation("angry", 7, NIGHT)
        day = fallback_recommendation("angry", 7, AFTERNOON)
        self.assertEqual(night.technique, Technique.FOUR_SEVEN_EIGHT)
        self.assertEqual(day.technique, Technique.FOUR_SEVEN_EIGHT)
        self.assertEqual(night.confidence, 85)
        self.assertEqual(day.confidence, 85)
        self.assertNotEqual(night.reasoning, day.reasoning)

    def test_moderate_arousal_negative(self) -> None:
        rec = fallback_recommendation("stressed", 5, AFTERNOON)
        self.assertEqual(rec.technique, Technique.BOX)
        self.assertEqual(rec.confidence, 80)
        self.assertEqual(match_rule("frustrated", 4, NIGHT).name, "moderate-arousal-negative")

    def test_low_arousal_negative(self) -> None:
        self.assertEqual(match_rule("numb", 3, MORNING).name, "low-arousal-depleted")
        self.assertEqual(match_rule("sad", 6, MORNING).name, "low-arousal-depleted")
        self.assertEqual(match_rule("sad", 4, MORNING).name, "low-arousal-negative")
        depleted = fallback_recommendation("tired", 2, EVENING)
        structure = fallback_recommendation("lonely", 5, NIGHT)
        self.assertEqual(depleted.technique, Technique.COHERENT)
        self.assertEqual(depleted.confidence, 75)
        self.assertEqual(structure.technique, Technique.BOX)
        self.assertEqual(structure.confidence, 75)

    def test_positive_valence(self) -> None:
        for emotion in ("calm", "content", "grateful", "hopeful"):
            rec = fallback_recommendation(emotion, 5, NIGHT)
            self.assertEqual(rec.technique, Technique.COHERENT)
            self.assertEqual(rec.confidence, 85)

    def test_night_catch(self) -> None:
        rec = fallback_recommendation("anxious", 5, NIGHT)
        self.assertEqual(rec.technique, Technique.FOUR_SEVEN_EIGHT)
        self.assertEqual(rec.confidence, 80)
        self.assertEqual(match_rule("stressed", 7, NIGHT).name, "night-negative")

    def test_morning_catch(self) -> None:
        rec = fallback_recommendation("stressed", 3, MORNING)
        self.assertEqual(rec.technique, Technique.COHERENT)
        self.assertEqual(rec.confidence, 75)

    def test_default(self) -> None:
        rec = fallback_recommendation("anxious", 6, EVENING)
        self.assertEqual(rec.technique, Technique.COHERENT)
        self.assertEqual(rec.confidence, 70)
        self.assertEqual(match_rule("stressed", 7, AFTERNOON).name, "default")


class RuleTreeProperties(unittest.TestCase):
    def test_deterministic(self) -> None:
        for emotion in Emotion:
            for intensity in range(1, 11):
                for bucket in TIME_OF_DAY_BUCKETS:
                    first = fallback_recommendation(emotion, intensity, bucket)
                    second = fallback_recommendation(emotion, intensity, bucket)
                    self.assertEqual(first, second)
                    self.assertTrue(0 <= first.confidence <= 100)

    def test_very_low_arousal_never_gets_long_exhale(self) -> None:
        depleted = [e for e, profile in EMOTIONS.items() if profile.arousal is Arousal.VERY_LOW]
        self.assertTrue(depleted)
        for emotion in depleted:
            for intensity in range(1, 11):
                for bucket in TIME_OF_DAY_BUCKETS:
                    rec = fallback_recommendation(emotion, intensity, bucket)
                    self.assertNotEqual(rec.technique, Technique.FOUR_SEVEN_EIGHT)

    def test_last_rule_is_catch_all(self) -> None:
        self.assertEqual(FALLBACK_RULES[-1].name, "default")

    def test_unknown_emotion_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            fallback_recommendation("elated", 5, MORNING)


if __name__ == "__main__":
    unittest.main()
