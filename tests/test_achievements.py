"""Tests for streaks, achievement evaluation and levels."""

import unittest
from datetime import datetime, timedelta

from fitness_tracker.achievements import (
    CATALOG,
    activity_days,
    current_streak,
    evaluate,
    format_achievements,
    level_for_points,
)
from fitness_tracker.models import (
    AchievementState,
    ActivitySnapshot,
    CalorieEntry,
    Profile,
    WeightSample,
    WorkoutSession,
)

NOW = datetime(2026, 2, 10, 20, 0)
TODAY = NOW.date()


def _days_ago(n, hour=9):
    return datetime.combine(TODAY - timedelta(days=n), datetime.min.time()).replace(hour=hour)


def _profile(**overrides):
    fields = dict(
        id=1, name="Test", age=30, height=180, weight=80, sex="male",
        unit_system="metric", activity_level="sedentary",
    )
    fields.update(overrides)
    return Profile(**fields)


def _workout(days_ago, workout_type="cardio"):
    return WorkoutSession(_days_ago(days_ago), workout_type, 1800)


class TestStreak(unittest.TestCase):
    def test_empty_history(self):
        self.assertEqual(current_streak(set(), TODAY), 0)

    def test_only_today(self):
        self.assertEqual(current_streak({TODAY}, TODAY), 1)

    def test_gap_caps_streak(self):
        days = {TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=3)}
        self.assertEqual(current_streak(days, TODAY), 2)

    def test_nothing_today_means_no_streak(self):
        self.assertEqual(current_streak({TODAY - timedelta(days=1)}, TODAY), 0)

    def test_weight_today_and_three_days_ago(self):
        snapshot = ActivitySnapshot.of(_profile(), weights=[
            WeightSample(_days_ago(0), 80),
            WeightSample(_days_ago(3), 81),
        ])
        self.assertEqual(evaluate(None, snapshot, NOW).streak, 1)

    def test_any_record_kind_counts(self):
        snapshot = ActivitySnapshot.of(
            _profile(),
            weights=[WeightSample(_days_ago(0), 80)],
            calories=[CalorieEntry(_days_ago(1), "lunch", 600)],
            workouts=[_workout(2)],
        )
        self.assertEqual(len(activity_days(snapshot)), 3)
        self.assertEqual(evaluate(None, snapshot, NOW).streak, 3)


class TestEvaluate(unittest.TestCase):
    def test_empty_histories_unlock_nothing(self):
        result = evaluate(None, ActivitySnapshot.of(_profile()), NOW)
        self.assertEqual(result.streak, 0)
        self.assertEqual(result.total_points, 0)
        self.assertEqual(result.newly_unlocked, ())
        self.assertEqual(result.level.level, 1)
        self.assertEqual(set(result.states), {d.id for d in CATALOG})
        for state in result.states.values():
            self.assertFalse(state.is_unlocked)
            self.assertEqual(state.progress, 0.0)

    def test_first_weight_entry(self):
        snapshot = ActivitySnapshot.of(_profile(), weights=[WeightSample(_days_ago(0), 80)])
        result = evaluate(None, snapshot, NOW)
        self.assertEqual(result.newly_unlocked, ("first_weight_entry",))
        state = result.states["first_weight_entry"]
        self.assertTrue(state.is_unlocked)
        self.assertEqual(state.unlocked_at, NOW)
        self.assertEqual(state.progress, 1.0)
        self.assertEqual(result.total_points, 10)
        self.assertEqual(result.level.points_to_next_level, 40)

    def test_idempotent(self):
        snapshot = ActivitySnapshot.of(_profile(), weights=[WeightSample(_days_ago(0), 80)])
        first = evaluate(None, snapshot, NOW)
        second = evaluate(first.states, snapshot, NOW + timedelta(hours=1))
        self.assertEqual(second.states, first.states)
        self.assertEqual(second.total_points, first.total_points)
        self.assertEqual(second.newly_unlocked, ())

    def test_unlock_is_one_way(self):
        snapshot = ActivitySnapshot.of(_profile(), weights=[WeightSample(_days_ago(0), 80)])
        first = evaluate(None, snapshot, NOW)
        after_delete = evaluate(first.states, ActivitySnapshot.of(_profile()), NOW)
        self.assertTrue(after_delete.states["first_weight_entry"].is_unlocked)
        self.assertEqual(after_delete.total_points, 10)

    def test_input_states_not_mutated(self):
        states = {"first_weight_entry": AchievementState.locked("first_weight_entry")}
        snapshot = ActivitySnapshot.of(_profile(), weights=[WeightSample(_days_ago(0), 80)])
        evaluate(states, snapshot, NOW)
        self.assertFalse(states["first_weight_entry"].is_unlocked)

    def test_one_week_activity_streak(self):
        snapshot = ActivitySnapshot.of(
            _profile(),
            calories=[CalorieEntry(_days_ago(n), "dinner", 500) for n in range(7)],
        )
        result = evaluate(None, snapshot, NOW)
        self.assertEqual(result.streak, 7)
        self.assertTrue(result.states["one_week_streak"].is_unlocked)
        self.assertFalse(result.states["one_month_streak"].is_unlocked)
        self.assertAlmostEqual(result.states["one_month_streak"].progress, 7 / 30)

    def test_workout_streak_and_weekly_goal(self):
        snapshot = ActivitySnapshot.of(_profile(), workouts=[_workout(n) for n in range(3)])
        result = evaluate(None, snapshot, NOW)
        self.assertEqual(
            set(result.newly_unlocked),
            {"first_workout", "workout_streak_3", "weekly_workout_goal"},
        )
        # 15 + 30 + 40 = 85 points: level 2
        self.assertEqual(result.total_points, 85)
        self.assertEqual(result.level.level, 2)
        self.assertEqual(result.level.points_in_level, 35)
        self.assertEqual(result.level.points_to_next_level, 65)

    def test_weekly_window_excludes_older_workouts(self):
        snapshot = ActivitySnapshot.of(
            _profile(), workouts=[_workout(0), _workout(2), _workout(7)],
        )
        state = evaluate(None, snapshot, NOW).states["weekly_workout_goal"]
        self.assertFalse(state.is_unlocked)
        self.assertAlmostEqual(state.progress, 2 / 3)

    def test_weight_goal_reached(self):
        snapshot = ActivitySnapshot.of(_profile(weight=70.3, target_weight=70))
        self.assertTrue(evaluate(None, snapshot, NOW).states["weight_goal_reached"].is_unlocked)

    def test_weight_goal_partial_progress(self):
        snapshot = ActivitySnapshot.of(
            _profile(weight=75, target_weight=70),
            weights=[WeightSample(_days_ago(20), 80), WeightSample(_days_ago(0), 75)],
        )
        state = evaluate(None, snapshot, NOW).states["weight_goal_reached"]
        self.assertFalse(state.is_unlocked)
        self.assertAlmostEqual(state.progress, 0.5)

    def test_weight_consistency(self):
        snapshot = ActivitySnapshot.of(
            _profile(), weights=[WeightSample(_days_ago(n), 80) for n in range(7)],
        )
        self.assertTrue(evaluate(None, snapshot, NOW).states["weight_consistency"].is_unlocked)

    def test_calorie_goal_met(self):
        # Sedentary male 80kg/180cm/30y: daily target is about 2224 kcal
        snapshot = ActivitySnapshot.of(
            _profile(),
            calories=[CalorieEntry(_days_ago(n), "lunch", 2200) for n in range(3)],
        )
        result = evaluate(None, snapshot, NOW)
        self.assertTrue(result.states["calorie_goal_met"].is_unlocked)
        self.assertTrue(result.states["first_meal_logged"].is_unlocked)

    def test_calorie_goal_missed_day_breaks_run(self):
        snapshot = ActivitySnapshot.of(
            _profile(),
            calories=[
                CalorieEntry(_days_ago(0), "lunch", 2200),
                CalorieEntry(_days_ago(1), "lunch", 1500),
                CalorieEntry(_days_ago(2), "lunch", 2200),
            ],
        )
        state = evaluate(None, snapshot, NOW).states["calorie_goal_met"]
        self.assertFalse(state.is_unlocked)
        self.assertAlmostEqual(state.progress, 1 / 3)

    def test_format_achievements(self):
        snapshot = ActivitySnapshot.of(_profile(), weights=[WeightSample(_days_ago(0), 80)])
        text = format_achievements(evaluate(None, snapshot, NOW))
        self.assertIn("Level 1: Beginner", text)
        self.assertIn("[x] 2026-02-10", text)


class TestLevels(unittest.TestCase):
    def test_thresholds(self):
        self.assertEqual(level_for_points(0).level, 1)
        self.assertEqual(level_for_points(49).level, 1)
        self.assertEqual(level_for_points(50).level, 2)
        self.assertEqual(level_for_points(150).title, "Intermediate")
        self.assertEqual(level_for_points(999).level, 6)

    def test_max_level(self):
        info = level_for_points(1000)
        self.assertEqual(info.level, 7)
        self.assertEqual(info.title, "Fitness Pro")
        self.assertEqual(info.points_to_next_level, 0)
        self.assertTrue(level_for_points(5000).is_max_level)
        self.assertEqual(level_for_points(5000).points_in_level, 4000)

    def test_non_decreasing(self):
        previous = level_for_points(0).level
        for points in range(0, 1200, 5):
            info = level_for_points(points)
            self.assertGreaterEqual(info.level, previous)
            self.assertEqual(info.points_to_next_level == 0, points >= 1000)
            previous = info.level


if __name__ == "__main__":
    unittest.main()
