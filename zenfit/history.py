"""Workout history queries and text summaries."""

from datetime import date
from typing import Iterable, List, Optional

from .analyzer import calculate_volume, get_total_reps, get_total_sets
from .models import WeightUnit, Workout, WorkoutType


def search_workouts(
    workouts: Iterable[Workout],
    query: Optional[str] = None,
    workout_type: Optional[WorkoutType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Workout]:
    """
    Filter workout history, newest first.

    Parameters:
        workouts: Workouts to search.
        query: Case-insensitive text matched against title, exercise
               names and notes.
        workout_type: Only keep workouts of this type.
        date_from: Earliest date to keep, inclusive.
        date_to: Latest date to keep, inclusive.

    Returns:
        Matching workouts sorted by date, newest first.
    """
    result = sorted(workouts, key=lambda w: w.date, reverse=True)

    if query:
        needle = query.lower()
        result = [
            w
            for w in result
            if needle in w.title.lower()
            or any(needle in e.name.lower() for e in w.exercises)
            or (w.notes is not None and needle in w.notes.lower())
        ]

    if workout_type is not None:
        result = [w for w in result if w.type == workout_type]

    if date_from is not None:
        result = [w for w in result if w.date >= date_from]
    if date_to is not None:
        result = [w for w in result if w.date <= date_to]

    return result


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_workout_summary(workout: Workout, unit: WeightUnit = WeightUnit.KG) -> str:
    """Plain-text summary of a workout for sharing."""
    lines = [
        workout.title,
        f"{workout.date:%B} {workout.date.day}, {workout.date.year}",
        f"{workout.duration_seconds // 60}min",
        "",
    ]

    for exercise in workout.exercises:
        lines.append(exercise.name)
        for i, s in enumerate(exercise.sets, start=1):
            lines.append(f"  Set {i}: {_format_number(s.weight)}{unit.value} × {s.reps}")

    lines.append("")
    lines.append(
        f"Total: {get_total_sets(workout)} sets, {get_total_reps(workout)} reps, "
        f"{_format_number(calculate_volume(workout))}{unit.value} volume"
    )
    return "\n".join(lines)
