from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from .dates import effective_date, parse_date, to_local
from .emotions import Emotion, to_emotion
from .models import JournalEntry, MoodSample, Session
from .techniques import to_technique

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class MindfulnessDatabase:
    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _transaction(self):
        """Serialize access; commit on success and roll back on error."""
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    yield conn
            finally:
                conn.close()

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    emotion_before TEXT NOT NULL,
                    intensity_before INTEGER NOT NULL,
                    mood_before_at TEXT NOT NULL,
                    technique TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    emotion_after TEXT,
                    intensity_after INTEGER,
                    mood_after_at TEXT,
                    journal_entry TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_sessions_timestamp
                ON sessions(timestamp);

                CREATE TABLE IF NOT EXISTS journal_entries (
                    date TEXT PRIMARY KEY,
                    emotion TEXT,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS app_settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

    def save_session(self, session: Session) -> Session:
        after = session.mood_after
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO sessions(
                    id, timestamp, emotion_before, intensity_before, mood_before_at,
                    technique, completed, emotion_after, intensity_after, mood_after_at,
                    journal_entry
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    timestamp = excluded.timestamp,
                    emotion_before = excluded.emotion_before,
                    intensity_before = excluded.intensity_before,
                    mood_before_at = excluded.mood_before_at,
                    technique = excluded.technique,
                    completed = excluded.completed,
                    emotion_after = excluded.emotion_after,
                    intensity_after = excluded.intensity_after,
                    mood_after_at = excluded.mood_after_at,
                    journal_entry = excluded.journal_entry
                """,
                (
                    session.id,
                    session.timestamp,
                    session.mood_before.emotion.value,
                    session.mood_before.intensity,
                    session.mood_before.timestamp,
                    session.technique.value,
                    1 if session.completed else 0,
                    after.emotion.value if after else None,
                    after.intensity if after else None,
                    after.timestamp if after else None,
                    session.journal_entry,
                ),
            )
        return session

    def get_session(self, session_id: str) -> Session | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_session(row)

    def get_all_sessions(self) -> list[Session]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM sessions ORDER BY timestamp ASC, id ASC").fetchall()
        sessions = (self._row_to_session(row) for row in rows)
        return [session for session in sessions if session is not None]

    def get_sessions_by_date_range(self, start: datetime, end: datetime) -> list[Session]:
        lower = to_local(start)
        upper = to_local(end)
        return [
            session
            for session in self.get_all_sessions()
            if session.started_at is not None and lower <= session.started_at <= upper
        ]

    def get_sessions_for_month(self, year: int, month: int) -> list[Session]:
        prefix = f"{int(year):04d}-{int(month):02d}"
        return [
            session
            for session in self.get_all_sessions()
            if session.started_at is not None and session.started_at.isoformat()[:7] == prefix
        ]

    def delete_session(self, session_id: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    def clear_all_sessions(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM sessions")

    def save_journal_entry(self, emotion: Emotion | str | None, now: datetime | None = None) -> JournalEntry:
        """Write today's entry; a second write on the same effective day replaces it."""
        day = effective_date(now)
        key = to_emotion(emotion) if emotion else None
        self._upsert_journal_entry(day, key)
        return JournalEntry(date=day, emotion=key)

    def _upsert_journal_entry(self, day: str, emotion: Emotion | None) -> None:
        updated_at = datetime.now().astimezone().isoformat()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO journal_entries(date, emotion, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(date) DO UPDATE SET
                    emotion = excluded.emotion,
                    updated_at = excluded.updated_at
                """,
                (day, emotion.value if emotion else None, updated_at),
            )

    def get_journal_entry(self, day: str) -> JournalEntry | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT date, emotion FROM journal_entries WHERE date = ?",
                (day,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    def has_entry_for_today(self, now: datetime | None = None) -> bool:
        return self.get_journal_entry(effective_date(now)) is not None

    def get_all_entries(self) -> list[JournalEntry]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT date, emotion FROM journal_entries ORDER BY date ASC").fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        return str(row["value"])

    def get_setting_float(self, key: str, default: float) -> float:
        try:
            parsed = float(self.get_setting(key) or "")
        except ValueError:
            return default
        return parsed if parsed > 0 else default

    def set_setting(self, key: str, value: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO app_settings(key, value)
                VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def delete_setting(self, key: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM app_settings WHERE key = ?", (key,))

    def all_settings(self) -> dict[str, str]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT key, value FROM app_settings ORDER BY key ASC").fetchall()
        return {str(row["key"]): str(row["value"]) for row in rows}

    def export_data(self) -> dict[str, Any]:
        return {
            "sessions": [session.to_dict() for session in self.get_all_sessions()],
            "entries": [
                {"date": entry.date, "emotion": entry.emotion.value if entry.emotion else None}
                for entry in self.get_all_entries()
            ],
            "settings": [{"id": key, "value": value} for key, value in self.all_settings().items()],
            "exportDate": datetime.now().astimezone().isoformat(),
            "version": SCHEMA_VERSION,
        }

    def import_data(self, data: dict[str, Any]) -> int:
        if not isinstance(data, dict):
            raise ValueError("Import data must be a JSON object.")
        imported = 0
        for raw in data.get("sessions") or []:
            try:
                session = Session.from_dict(raw)
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping session that could not be imported: %s", exc)
                continue
            self.save_session(session)
            imported += 1

        for raw in data.get("entries") or []:
            try:
                day = parse_date(str(raw.get("date", ""))).isoformat()
                emotion = to_emotion(raw["emotion"]) if raw.get("emotion") else None
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping journal entry that could not be imported: %s", exc)
                continue
            self._upsert_journal_entry(day, emotion)

        for setting in data.get("settings") or []:
            if isinstance(setting, dict) and setting.get("id"):
                self.set_setting(str(setting["id"]), str(setting.get("value", "")))
        return imported

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> Session | None:
        try:
            mood_before = MoodSample.create(
                row["emotion_before"],
                row["intensity_before"],
                row["mood_before_at"],
            )
            mood_after = None
            if row["emotion_after"] and row["intensity_after"] is not None:
                mood_after = MoodSample.create(
                    row["emotion_after"],
                    row["intensity_after"],
                    row["mood_after_at"] or row["timestamp"],
                )
            technique = to_technique(row["technique"])
        except ValueError as exc:
            logger.warning("Skipping malformed session %s: %s", row["id"], exc)
            return None

        return Session(
            id=str(row["id"]),
            timestamp=str(row["timestamp"]),
            mood_before=mood_before,
            technique=technique,
            completed=bool(row["completed"]),
            mood_after=mood_after,
            improvement=(
                mood_before.intensity - mood_after.intensity if mood_after is not None else None
            ),
            journal_entry=row["journal_entry"],
        )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
        emotion = None
        if row["emotion"]:
            try:
                emotion = to_emotion(row["emotion"])
            except ValueError as exc:
                logger.warning("Ignoring unknown emotion on journal entry %s: %s", row["date"], exc)
        return JournalEntry(date=str(row["date"]), emotion=emotion)
