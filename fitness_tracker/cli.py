"""Command-line interface for the fitness tracking application."""

import argparse
import dataclasses
import logging
import sys
from datetime import date, datetime, timedelta

from fitness_tracker.achievements import evaluate, format_achievements
from fitness_tracker.analytics import (
    daily_calorie_totals,
    format_insights,
    recent_workouts,
    weight_axis_range,
    weight_trend,
)
from fitness_tracker.body_metrics import bmi_category, describe_category, profile_bmi
from fitness_tracker.config import (
    ACTIVITY_MULTIPLIERS,
    DB_PATH,
    GOAL_POLICIES,
    INTENSITIES,
    LOG_FORMAT,
    LOG_LEVEL,
    MEAL_TYPES,
    SEXES,
    UNIT_SYSTEMS,
    WORKOUT_TYPES,
)
from fitness_tracker.db import init_db
from fitness_tracker.energy import GoalPolicy, calculate_energy_targets, format_targets
from fitness_tracker.errors import FitnessError
from fitness_tracker.models import Profile, WorkoutSession
from fitness_tracker.profile_store import (
    load_profile,
    save_profile,
    set_weight,
    toggle_profile_units,
    update_profile,
)
from fitness_tracker.tracker import (
    daily_summary,
    delete_entry,
    format_summary,
    get_calorie_entries,
    is_latest_weight,
    load_achievement_states,
    load_snapshot,
    log_calories,
    log_weight,
    log_workout,
    save_achievement_states,
    weekly_summary,
)
from fitness_tracker.units import display_height, display_weight

logger = logging.getLogger(__name__)


def _parse_when(value):
    return datetime.fromisoformat(value) if value else datetime.now()


def _get_active_user(args) -> Profile:
    user = load_profile(db_path=args.db)
    if not user:
        print("No user profile found. Create one first:")
        print("  fitness-tracker profile create")
        sys.exit(1)
    return user


def _policy(args) -> GoalPolicy:
    return GoalPolicy(mode=getattr(args, "policy", None) or "fixed_horizon")


# --- Command handlers ---

def cmd_profile_create(args):
    profile = Profile(
        id=None,
        name=args.name,
        age=args.age,
        height=args.height,
        weight=args.weight,
        sex=args.sex,
        unit_system=args.units,
        activity_level=args.activity,
        target_weight=args.target,
    )
    user_id = save_profile(profile, args.db)
    print(f"Profile created (ID: {user_id})")

    print("\nYour daily targets:")
    print(format_targets(calculate_energy_targets(profile, _policy(args))))


def cmd_profile_show(args):
    user = _get_active_user(args)
    print(f"Name:     {user.name}")
    print(f"Age:      {user.age}")
    print(f"Height:   {display_height(user, user.height)}")
    print(f"Weight:   {display_weight(user, user.weight)}")
    if user.target_weight is not None:
        print(f"Target:   {display_weight(user, user.target_weight)}")
    print(f"Sex:      {user.sex}")
    print(f"Activity: {user.activity_level}")
    print(f"Units:    {user.unit_system}")


def cmd_profile_update(args):
    user = _get_active_user(args)
    changes = {}
    if args.age is not None:
        changes["age"] = args.age
    if args.height is not None:
        changes["height"] = args.height
    if args.weight is not None:
        changes["weight"] = args.weight
    if args.activity is not None:
        changes["activity_level"] = args.activity
    if args.target is not None:
        changes["target_weight"] = args.target
    if args.clear_target:
        changes["target_weight"] = None

    user = dataclasses.replace(user, **changes)
    update_profile(user, args.db)
    print("Profile updated.")
    print("\nUpdated daily targets:")
    print(format_targets(calculate_energy_targets(user, _policy(args))))


def cmd_profile_toggle_units(args):
    _get_active_user(args)
    user = toggle_profile_units(db_path=args.db)
    print(f"Switched to {user.unit_system} units.")
    print(f"Height:   {display_height(user, user.height)}")
    print(f"Weight:   {display_weight(user, user.weight)}")


def cmd_log_weight(args):
    user = _get_active_user(args)
    logged_at = _parse_when(args.date)
    entry_id = log_weight(user.id, args.weight, user.unit_system, logged_at, args.db)
    print(f"Logged weight {display_weight(user, args.weight)} [#{entry_id}]")
    if is_latest_weight(user.id, logged_at, args.db):
        set_weight(user.id, args.weight, args.db)
    else:
        print(f"Current weight unchanged ({display_weight(user, user.weight)}), a later entry exists.")


def cmd_log_calories(args):
    user = _get_active_user(args)
    entry_id = log_calories(
        user.id, args.calories, args.meal, args.description, _parse_when(args.date), args.db,
    )
    print(f"Logged {args.calories:.0f} kcal for {args.meal} [#{entry_id}]")


def cmd_log_workout(args):
    user = _get_active_user(args)
    workout = WorkoutSession(
        logged_at=_parse_when(args.date),
        workout_type=args.type,
        duration_seconds=args.minutes * 60,
        intensity=args.intensity,
        calories_burned=args.calories,
        notes=args.notes,
    )
    entry_id = log_workout(user.id, workout, args.db)
    print(f"Logged {args.minutes:g} min {args.type} workout [#{entry_id}]")


def cmd_delete(args):
    delete_entry(args.kind, args.entry_id, args.db)
    print(f"Deleted {args.kind} entry #{args.entry_id}")


def cmd_metrics(args):
    snapshot = load_snapshot(db_path=args.db)
    user = snapshot.profile

    bmi = profile_bmi(user)
    category = bmi_category(bmi)
    print(f"BMI:      {bmi:.1f} ({category})")
    print(f"          {describe_category(category)}")
    print(format_targets(calculate_energy_targets(user, _policy(args))))

    low, high = weight_axis_range(
        [s.weight for s in snapshot.weights], user.target_weight, user.weight,
    )
    print(f"Weight range: {low:.1f} - {high:.1f}")

    trend = weight_trend(snapshot.weights)
    if not trend.empty:
        latest = trend.iloc[-1]
        print(f"Weight trend: {display_weight(user, latest['trend'])} "
              f"(latest {display_weight(user, latest['weight'])})")


def cmd_achievements(args):
    snapshot = load_snapshot(db_path=args.db)
    states = load_achievement_states(snapshot.profile.id, args.db)
    result = evaluate(states, snapshot, policy=_policy(args))
    save_achievement_states(snapshot.profile.id, result.states, args.db)

    for achievement_id in result.newly_unlocked:
        print(f"Unlocked: {achievement_id}")
    print(format_achievements(result))


def cmd_insights(args):
    snapshot = load_snapshot(db_path=args.db)
    workouts = recent_workouts(snapshot.workouts, date.today())
    if not workouts:
        print("No recent workouts recorded.")
        return
    print(format_insights(workouts))


def cmd_track(args):
    user = _get_active_user(args)
    targets = calculate_energy_targets(user, _policy(args))
    target = targets.goal_calories if targets.goal_calories is not None else targets.daily_calories

    target_date = date.fromisoformat(args.date) if args.date else date.today()
    if args.period == "daily":
        summary = daily_summary(user.id, target_date, target, args.db)
        print(format_summary(summary))
        return

    week_start = target_date - timedelta(days=target_date.weekday())
    summary = weekly_summary(user.id, week_start, target, args.db)
    print(format_summary(summary))

    entries = get_calorie_entries(user.id, week_start, week_start + timedelta(days=6), args.db)
    totals = daily_calorie_totals(entries)
    if not totals.empty:
        print("\nPer day:")
        for day, calories in totals.items():
            print(f"  {day.isoformat()} ({day.strftime('%a')})  {calories:.0f} kcal")



# --- Argument parser ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fitness-tracker",
        description="Fitness Tracker - weight, calories, workouts and achievements",
    )
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    parser.add_argument("--policy", choices=list(GOAL_POLICIES),
                        help="Goal calorie policy (default: fixed_horizon)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- profile ---
    profile_parser = subparsers.add_parser("profile", help="Manage user profile")
    profile_sub = profile_parser.add_subparsers(dest="subcommand")

    create_p = profile_sub.add_parser("create", help="Create a new profile")
    create_p.add_argument("--name", required=True)
    create_p.add_argument("--age", type=int, required=True)
    create_p.add_argument("--height", type=float, required=True, help="Height (cm or in)")
    create_p.add_argument("--weight", type=float, required=True, help="Weight (kg or lbs)")
    create_p.add_argument("--sex", choices=list(SEXES), required=True)
    create_p.add_argument("--units", choices=list(UNIT_SYSTEMS), default="metric")
    create_p.add_argument("--activity", required=True,
                          choices=list(ACTIVITY_MULTIPLIERS.keys()),
                          help="Activity level")
    create_p.add_argument("--target", type=float, help="Target weight")
    create_p.set_defaults(func=cmd_profile_create)

    show_p = profile_sub.add_parser("show", help="Show current profile")
    show_p.set_defaults(func=cmd_profile_show)

    update_p = profile_sub.add_parser("update", help="Update profile")
    update_p.add_argument("--age", type=int)
    update_p.add_argument("--height", type=float)
    update_p.add_argument("--weight", type=float)
    update_p.add_argument("--activity", choices=list(ACTIVITY_MULTIPLIERS.keys()))
    update_p.add_argument("--target", type=float, help="Target weight")
    update_p.add_argument("--clear-target", action="store_true", help="Remove the target weight")
    update_p.set_defaults(func=cmd_profile_update)

    toggle_p = profile_sub.add_parser("toggle-units", help="Switch between metric and imperial")
    toggle_p.set_defaults(func=cmd_profile_toggle_units)

    # --- log ---
    log_parser = subparsers.add_parser("log", help="Log weight, meals and workouts")
    log_sub = log_parser.add_subparsers(dest="subcommand")

    weight_p = log_sub.add_parser("weight", help="Log a weight measurement")
    weight_p.add_argument("weight", type=float, help="Weight in profile units")
    weight_p.add_argument("--date", help="Date/time (YYYY-MM-DD or ISO format)")
    weight_p.set_defaults(func=cmd_log_weight)

    cal_p = log_sub.add_parser("calories", help="Log a meal")
    cal_p.add_argument("calories", type=float, help="Calories (kcal)")
    cal_p.add_argument("--meal", required=True, choices=list(MEAL_TYPES))
    cal_p.add_argument("--description")
    cal_p.add_argument("--date", help="Date/time (YYYY-MM-DD or ISO format)")
    cal_p.set_defaults(func=cmd_log_calories)

    workout_p = log_sub.add_parser("workout", help="Log a workout")
    workout_p.add_argument("--type", required=True, choices=list(WORKOUT_TYPES))
    workout_p.add_argument("--minutes", type=float, required=True)
    workout_p.add_argument("--intensity", choices=list(INTENSITIES), default="moderate")
    workout_p.add_argument("--calories", type=int, help="Calories burned")
    workout_p.add_argument("--notes")
    workout_p.add_argument("--date", help="Date/time (YYYY-MM-DD or ISO format)")
    workout_p.set_defaults(func=cmd_log_workout)

    # --- delete ---
    delete_p = subparsers.add_parser("delete", help="Delete a history entry")
    delete_p.add_argument("kind", choices=["weight", "calories", "workout"])
    delete_p.add_argument("entry_id", type=int, help="Entry ID")
    delete_p.set_defaults(func=cmd_delete)

    # --- metrics ---
    metrics_p = subparsers.add_parser("metrics", help="Show BMI and energy targets")
    metrics_p.set_defaults(func=cmd_metrics)

    # --- achievements ---
    ach_p = subparsers.add_parser("achievements", help="Evaluate achievements and level")
    ach_p.set_defaults(func=cmd_achievements)

    # --- insights ---
    insights_p = subparsers.add_parser("insights", help="Analyze recent workouts")
    insights_p.set_defaults(func=cmd_insights)

    # --- track ---
    track_p = subparsers.add_parser("track", help="View calorie intake")
    track_p.add_argument("period", choices=["daily", "weekly"])
    track_p.add_argument("--date", help="Date (YYYY-MM-DD)")
    track_p.set_defaults(func=cmd_track)

    return parser


def main(argv=None):
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db(args.db)

    if not args.command:
        parser.print_help()
        return

    if not hasattr(args, "func"):
        # Subcommand not specified
        sub = parser._subparsers._group_actions[0].choices[args.command]
        sub.print_help()
        return

    try:
        args.func(args)
    except FitnessError as e:
        logger.debug("Command %s failed: %r", args.command, e.details)
        print(f"Error: {e.message}")
        sys.exit(1)
