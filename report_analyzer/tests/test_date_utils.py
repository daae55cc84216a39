import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from report_analyzer.date_utils import date_key, file_modified_iso, normalize_iso_date


class DateUtilsTests(unittest.TestCase):
    def test_normalize_mixed_inputs(self) -> None:
        self.assertEqual(normalize_iso_date("2024-05-01T09:00:00.123+02:00"), "2024-05-01T07:00:00Z")
        self.assertEqual(normalize_iso_date("2024-05-01"), "2024-05-01")
        self.assertEqual(normalize_iso_date("2024/05/01"), "2024-05-01T00:00:00Z")
        self.assertEqual(normalize_iso_date(datetime(2024, 5, 1, 9, tzinfo=timezone.utc)), "2024-05-01T09:00:00Z")
        self.assertEqual(normalize_iso_date(date(2024, 5, 1)), "2024-05-01")
        self.assertEqual(normalize_iso_date(1714554000000), "2024-05-01T09:00:00Z")
        self.assertEqual(normalize_iso_date("yesterday"), "")
        self.assertEqual(normalize_iso_date(None), "")
        self.assertEqual(normalize_iso_date(True), "")

    def test_date_key(self) -> None:
        self.assertEqual(date_key("2024-05-01T23:59:59Z"), "2024-05-01")
        self.assertEqual(date_key(""), "")

    def test_file_modified_iso(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "a.jsonl"
            path.write_text("", encoding="utf-8")
            self.assertTrue(file_modified_iso(path).endswith("Z"))
            self.assertEqual(file_modified_iso(Path(tmp) / "missing"), "")


if __name__ == "__main__":
    unittest.main()
