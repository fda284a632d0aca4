import io
import json
import unittest
from datetime import date
from unittest.mock import patch

from console.main import execute_with_logging, main
from records.seed import build_seed_store

SEED_DAY = date(2026, 3, 10)


class ConsoleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = build_seed_store(today=SEED_DAY)

    def _run(self, *argv: str):
        stream = io.StringIO()
        with self.assertLogs("console.main", level="INFO"):
            exit_code = main(list(argv), store=self.store, stream=stream)
        self.assertEqual(exit_code, 0)
        return json.loads(stream.getvalue())

    def test_patients_command(self) -> None:
        rows = self._run("patients", "--search", "j", "--sort", "birth_date", "--direction", "desc")
        self.assertEqual([row["id"] for row in rows], ["2", "1", "3"])

    def test_agenda_command(self) -> None:
        rows = self._run("agenda", "--date", SEED_DAY.isoformat())
        self.assertEqual([row["id"] for row in rows], ["1", "2", "3"])

    def test_calendar_command(self) -> None:
        payload = self._run("calendar", "--date", SEED_DAY.isoformat())
        self.assertEqual(payload["month"], "2026-03")
        self.assertTrue(all(len(week) == 7 for week in payload["weeks"]))

    def test_timeline_command(self) -> None:
        entries = self._run("timeline", "1")
        self.assertEqual(len(entries), 5)

    def test_writes_to_stdout_by_default(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            with self.assertLogs("console.main", level="INFO"):
                self.assertEqual(main(["timeline", "2"], store=self.store), 0)

        self.assertEqual(len(json.loads(stdout.getvalue())), 4)

    def test_invalid_date_exits(self) -> None:
        with self.assertRaises(SystemExit):
            main(["agenda", "--date", "10/03/2026"], store=self.store, stream=io.StringIO())

    def test_execute_with_logging_reraises(self) -> None:
        def boom() -> None:
            raise RuntimeError("broken")

        with self.assertLogs("console.main", level="ERROR"):
            with self.assertRaises(RuntimeError):
                execute_with_logging("boom", boom)


if __name__ == "__main__":
    unittest.main()
