import unittest
from datetime import date, datetime, timezone

from trackboard.activity_records import ActivityRecord
from trackboard.stat_modules.time_frames import (
    TimeFrame,
    describe,
    filter_by_time_frame,
    resolve_interval,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _record(start: datetime, activity_type: str = "Run") -> ActivityRecord:
    return ActivityRecord(
        type=activity_type,
        distance=1000.0,
        moving_time=300.0,
        elapsed_time=300.0,
        total_elevation_gain=0.0,
        start_date=start,
    )


# Sunday 2026-02-15 05:00 UTC
NOW = _utc(2026, 2, 15, 5, 0)


class TestResolveInterval(unittest.TestCase):
    def test_week_starts_monday_by_default(self) -> None:
        self.assertEqual(
            resolve_interval("week", now_utc=NOW),
            (_utc(2026, 2, 9), _utc(2026, 2, 16)),
        )

    def test_week_can_start_sunday(self) -> None:
        self.assertEqual(
            resolve_interval("week", now_utc=NOW, week_start="sunday"),
            (_utc(2026, 2, 15), _utc(2026, 2, 22)),
        )

    def test_day_month_and_year(self) -> None:
        self.assertEqual(resolve_interval("day", now_utc=NOW), (_utc(2026, 2, 15), _utc(2026, 2, 16)))
        self.assertEqual(resolve_interval("month", now_utc=NOW), (_utc(2026, 2, 1), _utc(2026, 3, 1)))
        self.assertEqual(resolve_interval("year", now_utc=NOW), (_utc(2026, 1, 1), _utc(2027, 1, 1)))
        self.assertEqual(resolve_interval("ytd", now_utc=NOW), (_utc(2026, 1, 1), _utc(2027, 1, 1)))

    def test_december_month_rolls_into_next_year(self) -> None:
        self.assertEqual(
            resolve_interval("month", now_utc=_utc(2026, 12, 20)),
            (_utc(2026, 12, 1), _utc(2027, 1, 1)),
        )

    def test_uses_local_calendar_days(self) -> None:
        # 2026-02-15 03:00Z is Saturday 2026-02-14 22:00 in New York (EST, UTC-5).
        start, end = resolve_interval(
            "week",
            now_utc=_utc(2026, 2, 15, 3),
            timezone_name="America/New_York",
        )
        self.assertEqual(start, _utc(2026, 2, 9, 5))
        self.assertEqual(end, _utc(2026, 2, 16, 5))

    def test_unknown_timezone_falls_back_to_utc(self) -> None:
        with self.assertLogs("trackboard.stat_modules.time_frames", level="WARNING"):
            interval = resolve_interval("day", now_utc=NOW, timezone_name="Mars/Olympus")
        self.assertEqual(interval, (_utc(2026, 2, 15), _utc(2026, 2, 16)))

    def test_all_has_no_interval(self) -> None:
        self.assertIsNone(resolve_interval("all", now_utc=NOW))

    def test_custom_date_only_end_covers_the_whole_day(self) -> None:
        frame = TimeFrame.custom("2026-01-01", "2026-01-31")
        self.assertEqual(resolve_interval(frame), (_utc(2026, 1, 1), _utc(2026, 2, 1)))

    def test_custom_date_bounds_follow_local_calendar(self) -> None:
        frame = TimeFrame.custom("2026-01-01", "2026-01-31")
        now = _utc(2026, 1, 20, 12)
        custom = resolve_interval(frame, timezone_name="America/New_York")
        month = resolve_interval("month", now_utc=now, timezone_name="America/New_York")
        self.assertEqual(custom, (_utc(2026, 1, 1, 5), _utc(2026, 2, 1, 5)))
        self.assertEqual(custom, month)

        # 20:00 on Jan 31 in New York
        late_evening = _record(_utc(2026, 2, 1, 1))
        self.assertEqual(
            filter_by_time_frame([late_evening], frame, timezone_name="America/New_York"),
            [late_evening],
        )

    def test_custom_datetime_bounds_are_kept_as_instants(self) -> None:
        frame = TimeFrame.custom("2026-01-01T10:00:00Z", "2026-01-02T10:00:00Z")
        self.assertEqual(
            resolve_interval(frame, timezone_name="America/New_York"),
            (_utc(2026, 1, 1, 10), _utc(2026, 1, 2, 10)),
        )


class TestTimeFrameParse(unittest.TestCase):
    def test_parses_names_and_custom_documents(self) -> None:
        self.assertEqual(TimeFrame.parse("Week"), TimeFrame("week"))
        self.assertEqual(TimeFrame.parse("ytd"), TimeFrame("year"))
        custom = TimeFrame.parse({"kind": "custom", "start": "2026-01-01", "end": "2026-01-07"})
        self.assertEqual(custom.kind, "custom")
        self.assertEqual(custom.end, date(2026, 1, 7))
        self.assertEqual(resolve_interval(custom), (_utc(2026, 1, 1), _utc(2026, 1, 8)))

    def test_rejects_unknown_frames(self) -> None:
        with self.assertRaises(ValueError):
            TimeFrame.parse("fortnight")
        with self.assertRaises(ValueError):
            TimeFrame.parse({"kind": "custom", "start": "2026-01-07", "end": "2026-01-01"})
        with self.assertRaises(ValueError):
            TimeFrame.parse({"kind": "custom", "start": "not a date", "end": "2026-01-01"})

    def test_custom_round_trips_through_json_form(self) -> None:
        frame = TimeFrame.custom("2026-01-01", "2026-01-07")
        self.assertEqual(TimeFrame.parse(frame.to_json()), frame)
        self.assertEqual(TimeFrame("month").to_json(), "month")


class TestFilterByTimeFrame(unittest.TestCase):
    def test_missing_activities_yield_empty_list(self) -> None:
        for frame in ("day", "week", "month", "year", "all", TimeFrame.custom("2026-01-01", "2026-01-02")):
            self.assertEqual(filter_by_time_frame(None, frame, now_utc=NOW), [])

    def test_interval_is_half_open(self) -> None:
        at_start = _record(_utc(2026, 2, 9))
        inside = _record(_utc(2026, 2, 12, 8))
        at_end = _record(_utc(2026, 2, 16))
        before = _record(_utc(2026, 2, 8, 23, 59))

        result = filter_by_time_frame([at_start, inside, at_end, before], "week", now_utc=NOW)

        self.assertEqual(result, [inside, at_start])

    def test_all_returns_every_record_newest_first(self) -> None:
        old = _record(_utc(2001, 5, 1))
        recent = _record(_utc(2026, 2, 14))
        future = _record(_utc(2030, 1, 1))
        self.assertEqual(filter_by_time_frame([old, future, recent], "all", now_utc=NOW), [future, recent, old])

    def test_custom_window(self) -> None:
        frame = TimeFrame.custom("2026-01-01", "2026-01-31")
        last_evening = _record(_utc(2026, 1, 31, 22))
        next_day = _record(_utc(2026, 2, 1))
        self.assertEqual(filter_by_time_frame([last_evening, next_day], frame), [last_evening])

    def test_anchors_to_evaluation_time(self) -> None:
        activity = _record(_utc(2026, 2, 10))
        self.assertEqual(filter_by_time_frame([activity], "week", now_utc=NOW), [activity])
        self.assertEqual(filter_by_time_frame([activity], "week", now_utc=_utc(2026, 2, 20)), [])


class TestDescribe(unittest.TestCase):
    def test_labels(self) -> None:
        self.assertEqual(describe("day"), "Today")
        self.assertEqual(describe("week"), "This Week")
        self.assertEqual(describe("month"), "This Month")
        self.assertEqual(describe("year"), "This Year")
        self.assertEqual(describe("all"), "All Time")
        self.assertEqual(describe(TimeFrame.custom("2026-01-01", "2026-01-31")), "2026-01-01 - 2026-01-31")

    def test_zero_width_custom_window_names_a_single_day(self) -> None:
        instant = _utc(2026, 1, 2)
        self.assertEqual(describe(TimeFrame.custom(instant, instant)), "2026-01-02 - 2026-01-02")


if __name__ == "__main__":
    unittest.main()
