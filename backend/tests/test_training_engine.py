from __future__ import annotations

import copy
import unittest
from dataclasses import dataclass, field
from datetime import date, timedelta

from shotlog.services import training


@dataclass
class FakePlanned:
    id: int
    type: str
    planned_time: str
    location: str | None = None
    name: str | None = None


@dataclass
class FakeActual:
    id: int
    type: str
    completed_at: str | None = None
    shooting_makes: int | None = None


@dataclass
class FakeTrainingDay:
    id: int
    date: date
    is_game_day: bool = False
    planned_activities: list = field(default_factory=list)
    actual_activities: list = field(default_factory=list)


class TestBuildDayView(unittest.TestCase):
    def setUp(self):
        self.day = FakeTrainingDay(
            id=7,
            date=date(2024, 1, 15),
            is_game_day=True,
            planned_activities=[
                FakePlanned(id=1, type="pickup", planned_time="18:00", location="YMCA"),
                FakePlanned(id=2, type="shooting", planned_time="17:00"),
                FakePlanned(id=3, type="custom", planned_time="07:30", name="Film study"),
                FakePlanned(id=4, type="pickup", planned_time="20:00", location="Park"),
            ],
            actual_activities=[
                FakeActual(id=10, type="shooting", completed_at="17:20", shooting_makes=210),
                FakeActual(id=11, type="varsity", completed_at="15:00"),
                FakeActual(id=12, type="pickup", completed_at="18:10"),
                FakeActual(id=13, type="custom"),
            ],
        )

    def test_groups_planned_and_actual_by_type(self):
        view = training.build_day_view(self.day)

        self.assertEqual(view.id, 7)
        self.assertEqual(view.date, date(2024, 1, 15))
        self.assertTrue(view.is_game_day)

        self.assertEqual(view.planned.shooting.id, 2)
        self.assertEqual(view.planned.shooting.time, "17:00")
        self.assertEqual([p.id for p in view.planned.pickup_runs], [1, 4])
        self.assertEqual(view.planned.pickup_runs[0].location, "YMCA")
        self.assertEqual(view.planned.custom[0].name, "Film study")

        self.assertEqual(view.actual.shooting_makes, 210)
        self.assertEqual(view.actual.shooting_completed_at, "17:20")
        self.assertTrue(view.actual.varsity)
        self.assertFalse(view.actual.coach_skills)
        self.assertFalse(view.actual.coach_weights)
        self.assertEqual(view.actual.pickup_runs[0].id, 12)
        self.assertEqual(view.actual.pickup_runs[0].completed_at, "18:10")
        self.assertIsNone(view.actual.custom[0].completed_at)

    def test_empty_day_defaults(self):
        view = training.build_day_view(FakeTrainingDay(id=1, date=date(2024, 1, 10)))

        self.assertIsNone(view.planned.shooting)
        self.assertEqual(view.planned.pickup_runs, [])
        self.assertEqual(view.actual.shooting_makes, 0)
        self.assertIsNone(view.actual.shooting_completed_at)
        self.assertFalse(view.actual.varsity)

    def test_same_input_same_output_and_input_untouched(self):
        before = copy.deepcopy(self.day)
        first = training.build_day_view(self.day)
        second = training.build_day_view(self.day)

        self.assertEqual(first, second)
        self.assertEqual(self.day, before)

    def test_duplicate_shooting_rows_do_not_crash(self):
        day = FakeTrainingDay(
            id=2,
            date=date(2024, 1, 15),
            planned_activities=[
                FakePlanned(id=1, type="shooting", planned_time="09:00"),
                FakePlanned(id=2, type="shooting", planned_time="17:00"),
            ],
            actual_activities=[
                FakeActual(id=3, type="shooting", shooting_makes=None),
                FakeActual(id=4, type="mystery"),
            ],
        )
        view = training.build_day_view(day)

        self.assertEqual(view.planned.shooting.time, "17:00")
        self.assertEqual(view.actual.shooting_makes, 0)


class TestCalculateStreak(unittest.TestCase):
    today = date(2024, 1, 15)

    def _days_ago(self, n: int) -> date:
        return self.today - timedelta(days=n)

    def test_no_records_is_zero(self):
        self.assertEqual(training.calculate_streak({}, self.today), 0)

    def test_counts_consecutive_days_including_today(self):
        makes = {self._days_ago(0): 200, self._days_ago(1): 250, self._days_ago(2): 0, self._days_ago(3): 300}
        self.assertEqual(training.calculate_streak(makes, self.today), 2)

    def test_unlogged_today_does_not_break_streak(self):
        makes = {self._days_ago(1): 200, self._days_ago(2): 150}
        self.assertEqual(training.calculate_streak(makes, self.today), 1)

    def test_partial_today_does_not_break_streak(self):
        makes = {self._days_ago(0): 120, self._days_ago(1): 200, self._days_ago(2): 200}
        self.assertEqual(training.calculate_streak(makes, self.today), 2)

    def test_missed_yesterday_is_zero(self):
        makes = {self._days_ago(0): 50, self._days_ago(2): 200}
        self.assertEqual(training.calculate_streak(makes, self.today), 0)

    def test_every_day_complete_gives_at_least_window_length(self):
        for k in (1, 5, 30):
            makes = {self._days_ago(n): 200 for n in range(k + 1)}
            self.assertGreaterEqual(training.calculate_streak(makes, self.today), k)

    def test_lookback_is_bounded(self):
        makes = {self._days_ago(n): 400 for n in range(500)}
        self.assertEqual(
            training.calculate_streak(makes, self.today),
            training.STREAK_LOOKBACK_DAYS + 1,
        )

    def test_future_days_are_ignored(self):
        makes = {self.today + timedelta(days=1): 500}
        self.assertEqual(training.calculate_streak(makes, self.today), 0)


class TestComputeWeeklyStats(unittest.TestCase):
    today = date(2024, 1, 15)

    def test_window_always_has_seven_contiguous_days(self):
        stats = training.compute_weekly_stats([], self.today)

        self.assertEqual(len(stats.daily_stats), 7)
        dates = [s.date for s in stats.daily_stats]
        self.assertEqual(dates[-1], self.today)
        self.assertEqual(dates, [self.today - timedelta(days=6 - i) for i in range(7)])
        self.assertTrue(all(s.makes == 0 and not s.completed for s in stats.daily_stats))
        self.assertEqual(stats.completion_percentage, 0)
        self.assertEqual(stats.total_makes, 0)

    def test_no_planned_activities_gives_zero_consistency(self):
        day = FakeTrainingDay(
            id=1,
            date=self.today,
            actual_activities=[FakeActual(id=1, type="shooting", shooting_makes=300, completed_at="10:00")],
        )
        stats = training.compute_weekly_stats([day], self.today)

        self.assertEqual(stats.consistency_score, 0)
        self.assertEqual(stats.completion_percentage, 14)

    def test_on_time_shooting_counts_and_day_completed(self):
        day = FakeTrainingDay(
            id=1,
            date=date(2024, 1, 15),
            planned_activities=[FakePlanned(id=1, type="shooting", planned_time="17:00")],
            actual_activities=[FakeActual(id=2, type="shooting", completed_at="17:20", shooting_makes=210)],
        )
        stats = training.compute_weekly_stats([day], self.today)

        self.assertEqual(stats.consistency_score, 100)
        last = stats.daily_stats[-1]
        self.assertEqual(last.date, date(2024, 1, 15))
        self.assertEqual(last.makes, 210)
        self.assertTrue(last.completed)
        self.assertEqual(last.day_of_week, 1)  # Monday
        self.assertEqual(stats.total_makes, 210)

    def test_missing_day_is_zero_makes(self):
        day = FakeTrainingDay(
            id=1,
            date=date(2024, 1, 12),
            actual_activities=[FakeActual(id=1, type="shooting", shooting_makes=200)],
        )
        stats = training.compute_weekly_stats([day], self.today)
        by_date = {s.date: s for s in stats.daily_stats}

        self.assertEqual(by_date[date(2024, 1, 10)].makes, 0)
        self.assertFalse(by_date[date(2024, 1, 10)].completed)
        self.assertTrue(by_date[date(2024, 1, 12)].completed)

    def test_tolerance_boundary(self):
        day = FakeTrainingDay(
            id=1,
            date=self.today,
            planned_activities=[
                FakePlanned(id=1, type="shooting", planned_time="17:00"),
                FakePlanned(id=2, type="pickup", planned_time="19:00"),
            ],
            actual_activities=[
                FakeActual(id=3, type="shooting", completed_at="17:30", shooting_makes=10),
                FakeActual(id=4, type="pickup", completed_at="18:29"),
            ],
        )
        stats = training.compute_weekly_stats([day], self.today)

        self.assertEqual(stats.consistency_score, 50)

    def test_unmatched_or_untimed_plans_count_against_score(self):
        day = FakeTrainingDay(
            id=1,
            date=self.today,
            planned_activities=[FakePlanned(id=1, type="shooting", planned_time="17:00")]
            + [FakePlanned(id=10 + i, type="custom", planned_time="08:00") for i in range(7)],
            actual_activities=[
                FakeActual(id=2, type="shooting", completed_at="16:45", shooting_makes=50),
                FakeActual(id=3, type="custom"),
            ],
        )
        stats = training.compute_weekly_stats([day], self.today)

        # 1 of 8 on time -> 12.5 rounds half up
        self.assertEqual(stats.consistency_score, 13)

    def test_days_outside_window_are_ignored(self):
        old = FakeTrainingDay(
            id=1,
            date=self.today - timedelta(days=7),
            planned_activities=[FakePlanned(id=1, type="shooting", planned_time="17:00")],
            actual_activities=[FakeActual(id=2, type="shooting", completed_at="17:00", shooting_makes=500)],
        )
        stats = training.compute_weekly_stats([old], self.today)

        self.assertEqual(stats.total_makes, 0)
        self.assertEqual(stats.consistency_score, 0)


class TestShootingCompletion(unittest.TestCase):
    def test_explicit_time_wins(self):
        self.assertEqual(training.resolve_shooting_completion(50, "09:15", None, "12:00"), "09:15")

    def test_first_time_reaching_goal_is_stamped(self):
        self.assertEqual(training.resolve_shooting_completion(200, None, None, "12:00"), "12:00")

    def test_existing_stamp_is_kept(self):
        self.assertIsNone(training.resolve_shooting_completion(260, None, "11:00", "12:00"))

    def test_below_goal_is_not_stamped(self):
        self.assertIsNone(training.resolve_shooting_completion(199, None, None, "12:00"))

    def test_time_to_minutes(self):
        self.assertEqual(training.time_to_minutes("00:00"), 0)
        self.assertEqual(training.time_to_minutes("17:20"), 1040)


if __name__ == "__main__":
    unittest.main()
