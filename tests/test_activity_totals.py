import unittest
from datetime import datetime, timezone

from trackboard.activity_records import ActivityRecord
from trackboard.stat_modules.activity_totals import (
    ZERO_TOTALS,
    ActivityTotals,
    aggregate,
    aggregate_by_types,
)


def _record(activity_type: str, distance: float = 1000.0, moving: float = 300.0, elapsed: float = 360.0, gain: float = 10.0):
    return ActivityRecord(
        type=activity_type,
        distance=distance,
        moving_time=moving,
        elapsed_time=elapsed,
        total_elevation_gain=gain,
        start_date=datetime(2026, 2, 10, 12, tzinfo=timezone.utc),
    )


class TestAggregate(unittest.TestCase):
    def setUp(self) -> None:
        self.activities = [
            _record("Run", distance=5000, moving=1500, elapsed=1600, gain=42),
            _record("Ride", distance=20000, moving=3600, elapsed=4000, gain=150),
            _record("Run", distance=10000, moving=3200, elapsed=3300, gain=85),
            _record("Swim", distance=1500, moving=1800, elapsed=1900, gain=0),
        ]

    def test_sums_only_matching_types(self) -> None:
        totals = aggregate(self.activities, {"Run"})
        self.assertEqual(totals.count, 2)
        self.assertEqual(totals.distance, 15000)
        self.assertEqual(totals.moving_time, 4700)
        self.assertEqual(totals.elapsed_time, 4900)
        self.assertEqual(totals.elevation_gain, 127)

    def test_multiple_match_types_sum_their_union(self) -> None:
        totals = aggregate(self.activities, {"Run", "Ride"})
        self.assertEqual(totals.count, 3)
        self.assertEqual(totals.distance, 35000)

    def test_count_matches_number_of_matching_records(self) -> None:
        for types in ({"Run"}, {"Swim"}, {"Run", "Swim", "Ride"}, {"Hike"}):
            expected = [a for a in self.activities if a.type in types]
            totals = aggregate(self.activities, types)
            self.assertEqual(totals.count, len(expected))
            self.assertEqual(totals.distance, sum(a.distance for a in expected))

    def test_empty_match_set_yields_zero(self) -> None:
        self.assertEqual(aggregate(self.activities, set()), ZERO_TOTALS)

    def test_empty_or_missing_activities_yield_zero(self) -> None:
        self.assertEqual(aggregate([], {"Run"}), ActivityTotals())
        self.assertEqual(aggregate(None, {"Run"}), ActivityTotals())

    def test_type_match_is_exact(self) -> None:
        self.assertEqual(aggregate(self.activities, {"run"}).count, 0)

    def test_metric_value_maps_card_metrics(self) -> None:
        totals = aggregate(self.activities, {"Run"})
        self.assertEqual(totals.metric_value("distance"), 15000)
        self.assertEqual(totals.metric_value("count"), 2.0)
        self.assertEqual(totals.metric_value("elevation"), 127)
        self.assertEqual(totals.metric_value("time"), 4700)
        with self.assertRaises(ValueError):
            totals.metric_value("calories")


class TestAggregateByTypes(unittest.TestCase):
    def test_one_independent_result_per_label(self) -> None:
        activities = [_record("Run"), _record("Run"), _record("Hike"), _record("Walk")]
        result = aggregate_by_types(activities, ["Run", "Hike", "Kayaking"])
        self.assertEqual(list(result), ["Run", "Hike", "Kayaking"])
        self.assertEqual(result["Run"].count, 2)
        self.assertEqual(result["Hike"].count, 1)
        self.assertEqual(result["Kayaking"], ZERO_TOTALS)
        self.assertEqual(sum(t.count for t in result.values()), 3)

    def test_duplicate_labels_collapse(self) -> None:
        result = aggregate_by_types([_record("Run")], ["Run", "Run"])
        self.assertEqual(result, {"Run": aggregate([_record("Run")], {"Run"})})


if __name__ == "__main__":
    unittest.main()
