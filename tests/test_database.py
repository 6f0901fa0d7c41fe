from __future__ import annotations

import sqlite3
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from aiding_mindfulness.database import MindfulnessDatabase
from aiding_mindfulness.emotions import Emotion
from aiding_mindfulness.models import MoodSample, Session
from aiding_mindfulness.techniques import Technique


def _session(stamp: str, technique: str = "box", after: int | None = 3) -> Session:
    session = Session.start(MoodSample.create("stressed", 7, stamp), technique, stamp)
    if after is None:
        return session.abandon()
    return session.conclude(MoodSample.create("calm", after, stamp), journal_entry="lighter")


class DatabaseTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "data" / "test.sqlite3"
        self.db = MindfulnessDatabase(self.db_path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_session_round_trip_and_update(self) -> None:
        started = Session.start(MoodSample.create("anxious", 8, "2026-10-18T21:00:00"), "4-7-8", "2026-10-18T21:00:00")
        self.db.save_session(started)

        loaded = self.db.get_session(started.id)
        self.assertIsNotNone(loaded)
        self.assertFalse(loaded.completed)
        self.assertIsNone(loaded.mood_after)
        self.assertEqual(loaded.technique, Technique.FOUR_SEVEN_EIGHT)

        self.db.save_session(started.conclude(MoodSample.create("calm", 3, "2026-10-18T21:05:00"), "better"))
        loaded = self.db.get_session(started.id)
        self.assertTrue(loaded.completed)
        self.assertEqual(loaded.improvement, 5)
        self.assertEqual(loaded.journal_entry, "better")
        self.assertEqual(len(self.db.get_all_sessions()), 1)

    def test_sessions_are_ordered_and_malformed_rows_skipped(self) -> None:
        late = _session("2026-10-18T09:00:00")
        early = _session("2026-10-16T09:00:00", after=None)
        self.db.save_session(late)
        self.db.save_session(early)

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO sessions(id, timestamp, emotion_before, intensity_before, mood_before_at, technique, completed)
                VALUES ('bad', '2026-10-17T09:00:00', 'elated', 5, '2026-10-17T09:00:00', 'box', 0)
                """
            )

        with self.assertLogs("aiding_mindfulness.database", level="WARNING"):
            sessions = self.db.get_all_sessions()
        self.assertEqual([s.id for s in sessions], [early.id, late.id])

    def test_date_range_and_month_queries(self) -> None:
        september = _session("2026-09-30T23:30:00")
        october = _session("2026-10-02T08:00:00")
        for session in (september, october):
            self.db.save_session(session)

        in_range = self.db.get_sessions_by_date_range(datetime(2026, 10, 1), datetime(2026, 10, 31, 23, 59))
        self.assertEqual([s.id for s in in_range], [october.id])
        self.assertEqual([s.id for s in self.db.get_sessions_for_month(2026, 9)], [september.id])

    def test_delete_and_clear(self) -> None:
        first = self.db.save_session(_session("2026-10-17T09:00:00"))
        self.db.save_session(_session("2026-10-18T09:00:00"))
        self.db.delete_session(first.id)
        self.assertIsNone(self.db.get_session(first.id))
        self.assertEqual(len(self.db.get_all_sessions()), 1)
        self.db.clear_all_sessions()
        self.assertEqual(self.db.get_all_sessions(), [])

    def test_journal_entry_is_keyed_by_effective_day(self) -> None:
        self.db.save_journal_entry("sad", now=datetime(2026, 10, 17, 23, 0))
        entry = self.db.save_journal_entry(Emotion.HOPEFUL, now=datetime(2026, 10, 18, 2, 0))

        self.assertEqual(entry.date, "2026-10-17")
        entries = self.db.get_all_entries()
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].emotion, Emotion.HOPEFUL)
        self.assertTrue(self.db.has_entry_for_today(now=datetime(2026, 10, 18, 3, 59)))
        self.assertFalse(self.db.has_entry_for_today(now=datetime(2026, 10, 18, 4, 0)))

    def test_settings(self) -> None:
        self.assertEqual(self.db.get_setting("missing", "fallback"), "fallback")
        self.db.set_setting("ai_timeout_seconds", "12.5")
        self.db.set_setting("ai_provider", "gemini")
        self.db.set_setting("ai_provider", "openai")
        self.assertEqual(self.db.get_setting("ai_provider"), "openai")
        self.assertEqual(self.db.get_setting_float("ai_timeout_seconds", 30.0), 12.5)

        self.db.set_setting("ai_timeout_seconds", "-1")
        self.assertEqual(self.db.get_setting_float("ai_timeout_seconds", 30.0), 30.0)
        self.db.delete_setting("ai_timeout_seconds")
        self.assertEqual(self.db.all_settings(), {"ai_provider": "openai"})

    def test_import_rejects_non_object_payload(self) -> None:
        with self.assertRaises(ValueError):
            self.db.import_data([{"id": "x"}])
        self.assertEqual(self.db.get_all_sessions(), [])

    def test_export_then_import_into_fresh_database(self) -> None:
        session = self.db.save_session(_session("2026-10-18T09:00:00"))
        self.db.save_journal_entry("grateful", now=datetime(2026, 10, 18, 12, 0))
        self.db.set_setting("ai_provider", "local")

        exported = self.db.export_data()
        self.assertEqual(exported["version"], 1)
        self.assertEqual(exported["settings"], [{"id": "ai_provider", "value": "local"}])
        self.assertEqual(exported["sessions"][0]["moodBefore"]["emotion"], "stressed")

        exported["sessions"].append({"id": "broken"})
        other = MindfulnessDatabase(Path(self._tmp.name) / "other.sqlite3")
        with self.assertLogs("aiding_mindfulness.database", level="WARNING"):
            imported = other.import_data(exported)

        self.assertEqual(imported, 1)
        restored = other.get_session(session.id)
        self.assertEqual(restored.improvement, 4)
        self.assertEqual(restored.technique, Technique.BOX)
        self.assertEqual(other.get_journal_entry("2026-10-18").emotion, Emotion.GRATEFUL)
        self.assertEqual(other.get_setting("ai_provider"), "local")


if __name__ == "__main__":
    unittest.main()
