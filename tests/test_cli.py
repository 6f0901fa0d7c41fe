from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from aiding_mindfulness.cli import main


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = str(Path(self._tmp.name) / "cli.sqlite3")
        self._env = mock.patch.dict(os.environ, {}, clear=True)
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--db", self.db_path, *argv])
        return code, out.getvalue()

    def test_recommend_json_uses_fallback_offline(self) -> None:
        code, out = self.run_cli("recommend", "--emotion", "overwhelmed", "--intensity", "9", "--json")
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["technique"], "4-7-8")
        self.assertEqual(data["confidence"], 90)
        self.assertEqual(set(data), {"technique", "reasoning", "personalNote", "confidence"})

    def test_log_session_then_stats_and_effectiveness(self) -> None:
        code, out = self.run_cli(
            "log-session", "--emotion", "stressed", "--intensity", "7",
            "--technique", "box", "--after-emotion", "calm", "--after-intensity", "3",
        )
        self.assertEqual(code, 0)
        self.assertIn("completed=1 improvement=4", out)

        _, stats = self.run_cli("stats")
        self.assertIn("current_streak=1", stats)
        self.assertIn("total_entries=1", stats)
        self.assertIn("most_common_emotion=stressed", stats)

        _, effectiveness = self.run_cli("effectiveness")
        self.assertIn("box: used=1 avg_improvement=+4 success_rate=100%", effectiveness)
        self.assertIn("coherent: not used yet", effectiveness)

        _, patterns = self.run_cli("patterns")
        self.assertIn("Not enough sessions", patterns)

    def test_journal_twice_updates_same_day(self) -> None:
        _, first = self.run_cli("journal", "--emotion", "sad")
        _, second = self.run_cli("journal", "--emotion", "hopeful")
        self.assertTrue(first.startswith("saved="))
        self.assertTrue(second.startswith("updated="))

    def test_export_and_import(self) -> None:
        self.run_cli("log-session", "--emotion", "tired", "--technique", "coherent")
        _, exported = self.run_cli("export")
        dump = Path(self._tmp.name) / "dump.json"
        dump.write_text(exported, encoding="utf-8")

        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--db", str(Path(self._tmp.name) / "copy.sqlite3"), "import", str(dump)])
        self.assertEqual(code, 0)
        self.assertIn("imported_sessions=1", out.getvalue())

    def test_import_errors_are_reported(self) -> None:
        listing = Path(self._tmp.name) / "list.json"
        listing.write_text("[1, 2, 3]", encoding="utf-8")
        for path in (listing, Path(self._tmp.name) / "missing.json"):
            err = io.StringIO()
            with redirect_stderr(err), redirect_stdout(io.StringIO()):
                code = main(["--db", self.db_path, "import", str(path)])
            self.assertEqual(code, 2)
            self.assertIn("error:", err.getvalue())

    def test_configure(self) -> None:
        _, out = self.run_cli("configure", "--provider", "local")
        self.assertIn("provider=local model=local-model configured=yes", out)

    def test_invalid_intensity_is_reported(self) -> None:
        err = io.StringIO()
        with redirect_stderr(err), redirect_stdout(io.StringIO()):
            code = main(["--db", self.db_path, "recommend", "--emotion", "sad", "--intensity", "12"])
        self.assertEqual(code, 2)
        self.assertIn("error:", err.getvalue())

    def test_no_command_prints_help(self) -> None:
        code, out = self.run_cli()
        self.assertEqual(code, 1)
        self.assertIn("usage:", out)


if __name__ == "__main__":
    unittest.main()
