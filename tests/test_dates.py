from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone

from aiding_mindfulness.dates import (
    AFTERNOON,
    EVENING,
    LATE_NIGHT,
    MORNING,
    NIGHT,
    date_string,
    dates_in_month,
    day_name,
    day_of_week,
    days_between,
    effective_date,
    is_effective_today,
    parse_timestamp,
    time_of_day,
)


class EffectiveDateTests(unittest.TestCase):
    def test_four_am_boundary_splits_the_night(self) -> None:
        before = datetime(2026, 3, 10, 3, 59)
        after = datetime(2026, 3, 10, 4, 1)
        self.assertEqual(effective_date(before), "2026-03-09")
        self.assertEqual(effective_date(after), "2026-03-10")
        self.assertNotEqual(effective_date(before), effective_date(after))

    def test_midnight_belongs_to_previous_day(self) -> None:
        self.assertEqual(effective_date(datetime(2026, 3, 1, 0, 0)), "2026-02-28")

    def test_exactly_four_am_starts_new_day(self) -> None:
        self.assertEqual(effective_date(datetime(2026, 3, 10, 4, 0)), "2026-03-10")

    def test_is_effective_today(self) -> None:
        now = datetime(2026, 3, 11, 2, 30)
        self.assertTrue(is_effective_today("2026-03-10", now))
        self.assertFalse(is_effective_today("2026-03-11", now))


class CalendarTests(unittest.TestCase):
    def test_days_between_counts_calendar_days(self) -> None:
        self.assertEqual(days_between("2026-02-28", "2026-03-01"), 1)
        self.assertEqual(days_between(date(2026, 3, 1), date(2026, 3, 1)), 0)
        late = datetime(2026, 1, 1, 23, 59)
        early = datetime(2026, 1, 2, 0, 1)
        self.assertEqual(days_between(late, early), 1)
        self.assertEqual(days_between(late, late + timedelta(hours=23)), 1)

    def test_date_string_pads(self) -> None:
        self.assertEqual(date_string(date(2026, 1, 5)), "2026-01-05")

    def test_time_of_day_buckets(self) -> None:
        base = datetime(2026, 3, 10)
        self.assertEqual(time_of_day(base.replace(hour=5, minute=59)), LATE_NIGHT)
        self.assertEqual(time_of_day(base.replace(hour=6)), MORNING)
        self.assertEqual(time_of_day(base.replace(hour=12)), AFTERNOON)
        self.assertEqual(time_of_day(base.replace(hour=17)), EVENING)
        self.assertEqual(time_of_day(base.replace(hour=21)), NIGHT)
        self.assertEqual(time_of_day(base.replace(hour=23, minute=59)), NIGHT)

    def test_day_of_week_starts_on_sunday(self) -> None:
        self.assertEqual(day_of_week(datetime(2026, 10, 18, 12, 0)), 0)
        self.assertEqual(day_of_week(datetime(2026, 3, 9, 12, 0)), 1)
        self.assertEqual(day_name(0), "Sunday")
        self.assertEqual(day_name(6), "Saturday")

    def test_dates_in_month_handles_leap_year(self) -> None:
        days = dates_in_month(2024, 2)
        self.assertEqual(len(days), 29)
        self.assertEqual(days[0], "2024-02-01")
        self.assertEqual(days[-1], "2024-02-29")


class ParseTimestampTests(unittest.TestCase):
    def test_naive_values_are_kept_as_local(self) -> None:
        self.assertEqual(parse_timestamp("2026-03-10T09:15:00"), datetime(2026, 3, 10, 9, 15))

    def test_utc_suffix_becomes_naive_local(self) -> None:
        parsed = parse_timestamp("2026-03-10T09:15:00Z")
        self.assertIsNotNone(parsed)
        self.assertIsNone(parsed.tzinfo)
        expected = datetime(2026, 3, 10, 9, 15, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        self.assertEqual(parsed, expected)

    def test_garbage_returns_none(self) -> None:
        self.assertIsNone(parse_timestamp("yesterday-ish"))
        self.assertIsNone(parse_timestamp(""))
        self.assertIsNone(parse_timestamp(None))


if __name__ == "__main__":
    unittest.main()
