"""Tests for the history store."""

import os
import tempfile
import unittest
from datetime import date, datetime

from fitness_tracker.db import init_db
from fitness_tracker.errors import DomainError, NotFoundError
from fitness_tracker.models import AchievementState, Exercise, Profile, WorkoutSession
from fitness_tracker.profile_store import (
    load_profile,
    save_profile,
    set_weight,
    toggle_profile_units,
    update_profile,
)
from fitness_tracker.tracker import (
    daily_summary,
    delete_calories,
    delete_weight,
    get_workouts,
    is_latest_weight,
    load_achievement_states,
    load_snapshot,
    log_calories,
    log_weight,
    log_workout,
    save_achievement_states,
    sync_workouts,
    weekly_summary,
)


class StoreTestCase(unittest.TestCase):
    def setUp(self):
        self.db_fd, self.db_path = tempfile.mkstemp(suffix=".db")
        init_db(self.db_path)
        self.user_id = save_profile(Profile(
            id=None, name="Test User", age=30, height=180, weight=80, sex="male",
            unit_system="metric", activity_level="moderately_active", target_weight=75,
        ), self.db_path)

    def tearDown(self):
        os.close(self.db_fd)
        os.unlink(self.db_path)


class TestProfileStore(StoreTestCase):
    def test_load_profile(self):
        profile = load_profile(self.user_id, self.db_path)
        self.assertEqual(profile.name, "Test User")
        self.assertEqual(profile.target_weight, 75)

    def test_missing_profile(self):
        self.assertIsNone(load_profile(99, self.db_path))

    def test_invalid_profile_rejected(self):
        with self.assertRaises(DomainError):
            save_profile(Profile(None, "Bad", 30, 0, 80, "male"), self.db_path)
        with self.assertRaises(DomainError):
            save_profile(Profile(None, "Bad", 30, 180, 80, "male",
                                 activity_level="couch"), self.db_path)

    def test_update_missing_profile(self):
        with self.assertRaises(NotFoundError):
            update_profile(Profile(42, "Ghost", 30, 180, 80, "male"), self.db_path)

    def test_toggle_units(self):
        profile = toggle_profile_units(self.user_id, self.db_path)
        self.assertEqual(profile.unit_system, "imperial")
        stored = load_profile(self.user_id, self.db_path)
        self.assertEqual(stored.weight, 176.4)  # 80 * 2.20462 = 176.37
        self.assertEqual(stored.target_weight, 165.3)  # 75 * 2.20462 = 165.35

    def test_timestamps_parsed(self):
        profile = load_profile(self.user_id, self.db_path)
        self.assertIsInstance(profile.created_at, datetime)
        self.assertIsInstance(profile.updated_at, datetime)

        update_profile(profile, self.db_path)
        self.assertIsInstance(load_profile(self.user_id, self.db_path).updated_at, datetime)

    def test_set_weight(self):
        set_weight(self.user_id, 78.5, self.db_path)
        self.assertEqual(load_profile(self.user_id, self.db_path).weight, 78.5)


class TestHistories(StoreTestCase):
    def test_log_weight_returns_id(self):
        entry_id = log_weight(self.user_id, 80, logged_at=datetime(2026, 2, 5, 8), db_path=self.db_path)
        self.assertGreater(entry_id, 0)

    def test_is_latest_weight(self):
        log_weight(self.user_id, 80, logged_at=datetime(2026, 2, 5, 8), db_path=self.db_path)
        self.assertTrue(is_latest_weight(self.user_id, datetime(2026, 2, 5, 8), self.db_path))
        self.assertTrue(is_latest_weight(self.user_id, datetime(2026, 2, 6, 8), self.db_path))
        self.assertFalse(is_latest_weight(self.user_id, datetime(2026, 2, 1), self.db_path))

    def test_invalid_entries_rejected(self):
        with self.assertRaises(DomainError):
            log_weight(self.user_id, float("nan"), db_path=self.db_path)
        with self.assertRaises(DomainError):
            log_calories(self.user_id, 500, "brunch", db_path=self.db_path)
        with self.assertRaises(DomainError):
            log_workout(self.user_id, WorkoutSession(datetime(2026, 2, 5), "cardio", 0), self.db_path)

    def test_snapshot_uses_profile_units(self):
        log_weight(self.user_id, 80, "metric", datetime(2026, 2, 5, 8), self.db_path)
        toggle_profile_units(self.user_id, self.db_path)
        log_weight(self.user_id, 175, "imperial", datetime(2026, 2, 6, 8), self.db_path)

        snapshot = load_snapshot(self.user_id, self.db_path)
        self.assertEqual(snapshot.profile.unit_system, "imperial")
        self.assertAlmostEqual(snapshot.weights[0].weight, 80 / 0.453592, places=6)
        self.assertAlmostEqual(snapshot.weights[1].weight, 175, places=6)

    def test_snapshot_histories(self):
        log_weight(self.user_id, 80, logged_at=datetime(2026, 2, 5, 8), db_path=self.db_path)
        log_calories(self.user_id, 450, "breakfast", "Oats", datetime(2026, 2, 5, 8), self.db_path)
        log_workout(self.user_id, WorkoutSession(datetime(2026, 2, 5, 18), "strength", 3600), self.db_path)

        snapshot = load_snapshot(self.user_id, self.db_path)
        self.assertEqual(len(snapshot.weights), 1)
        self.assertEqual(snapshot.calories[0].description, "Oats")
        self.assertEqual(snapshot.workouts[0].workout_type, "strength")

    def test_snapshot_missing_profile(self):
        with self.assertRaises(NotFoundError):
            load_snapshot(99, self.db_path)

    def test_exercises_round_trip(self):
        workout = WorkoutSession(
            datetime(2026, 2, 5, 18), "strength", 3600, "high",
            exercises=(Exercise("Squat", sets=5, reps=5, weight_kg=100.0),),
            calories_burned=320, notes="Leg day",
        )
        log_workout(self.user_id, workout, self.db_path)
        stored = get_workouts(self.user_id, self.db_path)[0]
        self.assertEqual(stored.exercises, workout.exercises)
        self.assertEqual(stored.calories_burned, 320)
        self.assertEqual(stored.notes, "Leg day")

    def test_delete(self):
        entry_id = log_weight(self.user_id, 80, logged_at=datetime(2026, 2, 5), db_path=self.db_path)
        delete_weight(entry_id, self.db_path)
        self.assertEqual(load_snapshot(self.user_id, self.db_path).weights, ())

    def test_delete_missing(self):
        with self.assertRaises(NotFoundError):
            delete_calories(12345, self.db_path)


class TestSyncWorkouts(StoreTestCase):
    def test_skips_same_day_and_type(self):
        log_workout(self.user_id, WorkoutSession(datetime(2026, 2, 5, 7), "cardio", 1800), self.db_path)
        incoming = [
            WorkoutSession(datetime(2026, 2, 5, 19), "cardio", 2400),
            WorkoutSession(datetime(2026, 2, 5, 19), "strength", 2400),
            WorkoutSession(datetime(2026, 2, 5, 20), "strength", 600),
        ]
        added = sync_workouts(self.user_id, incoming, self.db_path)
        self.assertEqual(added, 1)
        types = sorted(w.workout_type for w in get_workouts(self.user_id, self.db_path))
        self.assertEqual(types, ["cardio", "strength"])


class TestAchievementStates(StoreTestCase):
    def test_round_trip(self):
        at = datetime(2026, 2, 5, 8, 0)
        states = {
            "first_weight_entry": AchievementState.unlocked("first_weight_entry", at),
            "one_week_streak": AchievementState.locked("one_week_streak", 3 / 7),
        }
        save_achievement_states(self.user_id, states, self.db_path)
        self.assertEqual(load_achievement_states(self.user_id, self.db_path), states)

    def test_stored_unlock_never_cleared(self):
        at = datetime(2026, 2, 5, 8, 0)
        save_achievement_states(self.user_id, {
            "first_workout": AchievementState.unlocked("first_workout", at),
        }, self.db_path)
        save_achievement_states(self.user_id, {
            "first_workout": AchievementState.locked("first_workout", 0.0),
        }, self.db_path)
        state = load_achievement_states(self.user_id, self.db_path)["first_workout"]
        self.assertTrue(state.is_unlocked)
        self.assertEqual(state.unlocked_at, at)


class TestSummaries(StoreTestCase):
    def test_daily_summary(self):
        log_calories(self.user_id, 400, "breakfast", logged_at=datetime(2026, 2, 5, 8), db_path=self.db_path)
        log_calories(self.user_id, 700, "lunch", logged_at=datetime(2026, 2, 5, 12), db_path=self.db_path)

        summary = daily_summary(self.user_id, date(2026, 2, 5), target=2200, db_path=self.db_path)
        self.assertEqual(summary.num_entries, 2)
        self.assertEqual(summary.num_days, 1)
        self.assertAlmostEqual(summary.total_calories, 1100)
        self.assertEqual(summary.by_meal, {"breakfast": 400, "lunch": 700})
        self.assertEqual(summary.adherence_pct(), 50.0)

    def test_daily_summary_empty(self):
        summary = daily_summary(self.user_id, date(2026, 2, 10), db_path=self.db_path)
        self.assertEqual(summary.num_entries, 0)

    def test_weekly_summary(self):
        # Log meals on Monday and Wednesday
        log_calories(self.user_id, 500, "dinner", logged_at=datetime(2026, 2, 2, 19), db_path=self.db_path)
        log_calories(self.user_id, 600, "dinner", logged_at=datetime(2026, 2, 4, 19), db_path=self.db_path)

        summary = weekly_summary(self.user_id, date(2026, 2, 4), db_path=self.db_path)
        self.assertEqual(summary.period_label, "Week of 2026-02-02")
        self.assertEqual(summary.num_entries, 2)
        self.assertEqual(summary.num_days, 2)
        self.assertAlmostEqual(summary.daily_average, 550)


if __name__ == "__main__":
    unittest.main()
