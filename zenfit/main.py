"""
Main entry point for the workout tracker.

Provides a CLI for logging workouts, browsing history, managing presets
and plans, showing analytics and achievements, and backing up data.
"""

import sys
import logging
import argparse
from datetime import date
from pathlib import Path
from typing import List, Optional

from .config import AppConfig
from .models import (
    Exercise,
    InvalidDataError,
    PlannedDay,
    Preset,
    PRType,
    ScheduledWorkout,
    Settings,
    WeightUnit,
    Workout,
    WorkoutType,
)
from .storage import LocalStorage, WorkoutStore
from .analyzer import (
    calculate_period_stats,
    calculate_streak,
    calculate_total_volume,
    calculate_volume,
    get_recent_prs,
    get_total_sets,
    workouts_this_week,
)
from .achievements import ACHIEVEMENTS, achievement_progress
from .history import format_workout_summary, search_workouts
from .visualizations import (
    plot_exercise_progression,
    plot_weekly_volume,
    plot_workout_distribution,
)


logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def parse_exercises(exercise_strs: List[str]) -> List[Exercise]:
    """
    Group "name,weight,reps" strings into exercises, one set per string.

    Consecutive strings with the same name (ignoring case) become sets of
    one exercise.
    """
    exercises: List[Exercise] = []
    for exercise_str in exercise_strs:
        parsed = Exercise.from_string(exercise_str)
        if parsed is None:
            raise InvalidDataError(f"Cannot parse exercise {exercise_str!r}, expected name,weight,reps")
        if exercises and exercises[-1].name.lower() == parsed.name.lower():
            exercises[-1].sets.extend(parsed.sets)
        else:
            exercises.append(parsed)
    return exercises


def _fmt(value: float) -> str:
    return f"{value:,.0f}" if float(value).is_integer() else f"{value:,.1f}"


def print_summary(store: WorkoutStore) -> None:
    """Print dashboard-style summary of the workout history."""
    workouts = store.list_workouts()
    settings = store.get_settings()
    today = store.today()
    unit = settings.weight_unit.value

    this_week = workouts_this_week(workouts, today, settings.start_of_week)
    streak = calculate_streak(workouts, settings.weekly_goal, today)
    period = calculate_period_stats(workouts, 30, today)

    print("\n" + "=" * 60)
    print("WORKOUT SUMMARY")
    print("=" * 60)

    print(f"\n   Total workouts: {len(workouts)}")
    print(f"   Total volume: {_fmt(calculate_total_volume(workouts))} {unit}")
    print(f"   This week: {len(this_week)} / {settings.weekly_goal}")
    remaining = settings.weekly_goal - len(this_week)
    print(f"   {remaining} more to goal" if remaining > 0 else "   Weekly goal reached")
    print(f"   Week streak: {streak}")

    print("\n   Last 30 days:")
    print(f"     Workouts: {period['total_workouts']} ({period['workouts_change']:+.1f}%)")
    print(f"     Volume: {_fmt(period['total_volume'])} {unit} ({period['volume_change']:+.1f}%)")
    print(f"     Sets: {period['total_sets']}, reps: {period['total_reps']}")

    recent = get_recent_prs(workouts)
    if recent:
        print("\n   Recent PRs:")
        for workout, pr in recent:
            if pr.type == PRType.WEIGHT:
                detail = f"{_fmt(pr.value)} {unit} (was {_fmt(pr.previous)})"
            else:
                detail = f"{pr.value} reps @ {_fmt(pr.weight)} {unit} (was {pr.previous})"
            print(f"     {workout.date}: {pr.exercise} {detail}")

    print("\n" + "=" * 60)


def cmd_log(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Log a workout."""
    workout = Workout(
        title=args.title,
        date=date.fromisoformat(args.date) if args.date else store.today(),
        type=WorkoutType.from_string(args.type),
        duration_seconds=args.minutes * 60,
        notes=args.notes,
        exercises=parse_exercises(args.exercise),
    )
    saved = store.log_workout(workout)
    store.clear_draft()

    print(f"Saved {saved.title} ({saved.id}), volume {_fmt(calculate_volume(saved))}")
    if saved.prs:
        print(f"{len(saved.prs)} new PR{'s' if len(saved.prs) > 1 else ''}!")

    fresh = store.check_achievements()
    for achievement in fresh:
        print(f"Achievement unlocked: {achievement.name}")


def cmd_history(args: argparse.Namespace, store: WorkoutStore) -> None:
    """List workouts matching filters."""
    workouts = search_workouts(
        store.list_workouts(),
        query=args.search,
        workout_type=WorkoutType.from_string(args.type) if args.type else None,
        date_from=date.fromisoformat(args.date_from) if args.date_from else None,
        date_to=date.fromisoformat(args.date_to) if args.date_to else None,
    )
    unit = store.get_settings().weight_unit.value

    for w in workouts:
        star = "*" if w.is_favorite else " "
        prs = f"  {len(w.prs)} PR" if w.prs else ""
        print(
            f"{star} {w.date}  {w.title:<24} {w.type.value:<10} "
            f"{get_total_sets(w):>3} sets  {_fmt(calculate_volume(w))} {unit}{prs}  [{w.id}]"
        )
    print(f"\n{len(workouts)} workouts")


def cmd_show(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Show one workout as a shareable summary."""
    workout = store.get_workout(args.id)
    if workout is None:
        logger.error(f"No workout with id {args.id}")
        sys.exit(1)
    print(format_workout_summary(workout, store.get_settings().weight_unit))


def cmd_workout_action(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Delete, duplicate or favourite a workout."""
    if args.command == "delete":
        found = store.delete_workout(args.id)
    elif args.command == "duplicate":
        found = store.duplicate_workout(args.id) is not None
    else:
        found = store.toggle_favorite(args.id) is not None

    if not found:
        logger.error(f"No workout with id {args.id}")
        sys.exit(1)


def cmd_analyze(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Show summary stats."""
    print_summary(store)


def cmd_achievements(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Evaluate and list achievements."""
    fresh = store.check_achievements()
    state = store.get_achievements_state()
    progress = achievement_progress(state)

    print(f"{progress['unlocked']} of {progress['total']} unlocked ({progress['percent']}%)\n")
    for achievement in ACHIEVEMENTS:
        mark = "x" if state.is_unlocked(achievement.id) else " "
        when = state.unlocked_at.get(achievement.id, "")
        print(f"[{mark}] {achievement.name:<18} {achievement.description:<30} {when}")

    for achievement in fresh:
        print(f"\nNew: {achievement.name}!")


def cmd_settings(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Show or update settings."""
    current = store.get_settings()
    updated = Settings(
        weekly_goal=args.weekly_goal if args.weekly_goal is not None else current.weekly_goal,
        weight_unit=WeightUnit(args.unit) if args.unit else current.weight_unit,
        start_of_week=args.start_of_week if args.start_of_week is not None else current.start_of_week,
        streak_break_on_miss=current.streak_break_on_miss,
        show_achievements=current.show_achievements,
    )
    if updated != current:
        store.save_settings(updated)

    print(f"Weekly goal: {updated.weekly_goal}")
    print(f"Weight unit: {updated.weight_unit.value}")
    print(f"Start of week: {WEEKDAY_NAMES[updated.start_of_week]}")


def cmd_preset(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Manage workout presets."""
    if args.action == "add":
        preset = store.save_preset(
            Preset(
                name=args.name,
                type=WorkoutType.from_string(args.type),
                exercises=parse_exercises(args.exercise),
                tags=args.tag or [],
            )
        )
        print(f"Saved preset {preset.name} ({preset.id})")
        return

    if args.action in ("delete", "favorite", "duplicate"):
        if args.action == "delete":
            found = store.delete_preset(args.id)
        elif args.action == "favorite":
            found = store.toggle_preset_favorite(args.id) is not None
        else:
            found = store.duplicate_preset(args.id) is not None
        if not found:
            logger.error(f"No preset with id {args.id}")
            sys.exit(1)
        return

    for preset in store.presets_sorted():
        star = "*" if preset.is_favorite else " "
        print(f"{star} {preset.name:<24} {preset.type.value:<10} {len(preset.exercises)} exercises  [{preset.id}]")


def cmd_plan(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Show or edit the weekly plan and scheduled workouts."""
    if args.action == "set":
        preset = store.get_preset(args.preset) if args.preset else None
        if args.preset and preset is None:
            raise InvalidDataError(f"No preset with id {args.preset}")
        plan = PlannedDay(
            type=preset.type.value if preset else args.type,
            name=preset.name if preset else (args.name or args.type),
            preset_id=preset.id if preset else None,
        )
        store.set_day_plan(args.weekday, plan)
    elif args.action == "clear":
        store.clear_day_plan(args.weekday)
    elif args.action == "schedule":
        store.schedule_workout(
            ScheduledWorkout(
                date=date.fromisoformat(args.date),
                name=args.name,
                type=args.type,
                preset_id=args.preset,
            )
        )
    elif args.action == "unschedule":
        store.remove_scheduled_workout(args.id)

    planner = store.get_planner()
    print("Weekly plan:")
    for day, plan in sorted(planner.weekly_plan.items()):
        print(f"  {WEEKDAY_NAMES[day]:<10} {plan.name if plan else '-'}")

    today = store.today()
    upcoming = sorted(
        (s for s in planner.scheduled_workouts if s.date >= today), key=lambda s: s.date
    )
    if upcoming:
        print("\nScheduled:")
        for s in upcoming:
            print(f"  {s.date}  {s.name}  [{s.id}]")


def cmd_export(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Export all data to a JSON backup."""
    store.export_to_file(Path(args.output))


def cmd_import(args: argparse.Namespace, store: WorkoutStore) -> None:
    """Replace stored data with a JSON backup."""
    replaced = store.import_from_file(Path(args.input))
    print(f"Imported: {', '.join(replaced) or 'nothing'}")


def cmd_visualize(args: argparse.Namespace, store: WorkoutStore, output_dir: Path) -> None:
    """Generate visualizations."""
    workouts = store.list_workouts()
    unit = store.get_settings().weight_unit
    output_dir.mkdir(parents=True, exist_ok=True)

    show = not args.no_show

    logger.info("Generating visualizations...")
    plot_weekly_volume(workouts, unit, output_dir / "weekly_volume.png", show)
    plot_workout_distribution(workouts, output_dir / "workout_types.png", show)

    if args.exercise:
        filename = args.exercise.lower().replace(" ", "_") + "_progression.png"
        plot_exercise_progression(workouts, args.exercise, unit, output_dir / filename, show)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workout log and analytics")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # log command
    log_parser = subparsers.add_parser("log", help="Log a workout")
    log_parser.add_argument("title", help="Workout title")
    log_parser.add_argument(
        "--exercise", "-e", action="append", required=True,
        help="Set as name,weight,reps (repeat for more sets)",
    )
    log_parser.add_argument("--date", help="Workout date (YYYY-MM-DD, default today)")
    log_parser.add_argument("--type", default="Custom", help="Workout type")
    log_parser.add_argument("--minutes", type=int, default=0, help="Duration in minutes")
    log_parser.add_argument("--notes", help="Free-text notes")

    # history command
    history_parser = subparsers.add_parser("history", help="Browse workout history")
    history_parser.add_argument("--search", "-s", help="Search title, exercises and notes")
    history_parser.add_argument("--type", help="Filter by workout type")
    history_parser.add_argument("--from", dest="date_from", help="Earliest date")
    history_parser.add_argument("--to", dest="date_to", help="Latest date")

    show_parser = subparsers.add_parser("show", help="Show a workout summary")
    show_parser.add_argument("id")

    for name, help_text in (
        ("delete", "Delete a workout"),
        ("duplicate", "Copy a workout to today"),
        ("favorite", "Toggle workout favourite"),
    ):
        action_parser = subparsers.add_parser(name, help=help_text)
        action_parser.add_argument("id")

    subparsers.add_parser("analyze", help="Show workout summary")
    subparsers.add_parser("achievements", help="Check and list achievements")

    # settings command
    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument("--weekly-goal", type=int)
    settings_parser.add_argument("--unit", choices=[u.value for u in WeightUnit])
    settings_parser.add_argument(
        "--start-of-week", type=int, choices=range(7), help="0 = Sunday, 1 = Monday"
    )

    # preset command
    preset_parser = subparsers.add_parser("preset", help="Manage workout presets")
    preset_parser.add_argument(
        "action", choices=["list", "add", "delete", "favorite", "duplicate"], nargs="?", default="list"
    )
    preset_parser.add_argument("--id")
    preset_parser.add_argument("--name")
    preset_parser.add_argument("--type", default="Custom")
    preset_parser.add_argument("--exercise", "-e", action="append", default=[])
    preset_parser.add_argument("--tag", action="append")

    # plan command
    plan_parser = subparsers.add_parser("plan", help="Weekly plan and scheduled workouts")
    plan_parser.add_argument(
        "action", choices=["show", "set", "clear", "schedule", "unschedule"], nargs="?", default="show"
    )
    plan_parser.add_argument("--weekday", type=int, choices=range(7), help="0 = Sunday")
    plan_parser.add_argument("--date")
    plan_parser.add_argument("--name")
    plan_parser.add_argument("--type")
    plan_parser.add_argument("--preset", help="Preset id")
    plan_parser.add_argument("--id")

    export_parser = subparsers.add_parser("export", help="Export all data to JSON")
    export_parser.add_argument("--output", "-o", required=True)

    import_parser = subparsers.add_parser("import", help="Import data from a JSON backup")
    import_parser.add_argument("input")

    # visualize command
    viz_parser = subparsers.add_parser("visualize", help="Generate charts")
    viz_parser.add_argument("--no-show", action="store_true", help="Save plots without displaying")
    viz_parser.add_argument("--exercise", help="Also chart one exercise's progression")

    return parser


def _validate(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    if args.command == "preset" and args.action == "add" and not args.name:
        parser.error("preset add requires --name")
    if args.command == "preset" and args.action in ("delete", "favorite", "duplicate") and not args.id:
        parser.error(f"preset {args.action} requires --id")
    if args.command == "plan":
        if args.action in ("set", "clear") and args.weekday is None:
            parser.error(f"plan {args.action} requires --weekday")
        if args.action == "set" and not (args.type or args.preset):
            parser.error("plan set requires --type or --preset")
        if args.action == "schedule" and not (args.date and args.name):
            parser.error("plan schedule requires --date and --name")
        if args.action == "unschedule" and not args.id:
            parser.error("plan unschedule requires --id")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    _validate(args, parser)

    config = AppConfig.load()
    logging.basicConfig(
        level=config.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    store = WorkoutStore(LocalStorage(config.paths.data_dir))

    commands = {
        "log": cmd_log,
        "history": cmd_history,
        "show": cmd_show,
        "delete": cmd_workout_action,
        "duplicate": cmd_workout_action,
        "favorite": cmd_workout_action,
        "analyze": cmd_analyze,
        "achievements": cmd_achievements,
        "settings": cmd_settings,
        "preset": cmd_preset,
        "plan": cmd_plan,
        "export": cmd_export,
        "import": cmd_import,
    }

    try:
        if args.command == "visualize":
            cmd_visualize(args, store, config.paths.output_dir)
        else:
            commands[args.command](args, store)
    except (InvalidDataError, OSError) as e:
        logger.error(str(e))
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid value: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
