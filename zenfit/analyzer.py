"""
Workout data analyzer.

Pure functions that derive facts from the workout history: volume, set
and rep aggregation, personal-record detection, weekly-goal streaks and
the time series behind the progress charts.

Nothing here reads the clock or touches storage. Callers pass the
current date in and persist whatever they need from the results.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .models import PREvent, PRType, Workout


logger = logging.getLogger(__name__)

# JS-style weekday numbering used by the stored settings: 0 = Sunday
SUNDAY = 0
MONDAY = 1

# upper bound on weeks walked by the streak calculator
MAX_STREAK_WEEKS = 100

# progress charts switch from daily to weekly buckets above this range
DAILY_SERIES_MAX_DAYS = 30


# =============================================================================
# AGGREGATES
# =============================================================================


def calculate_volume(workout: Workout) -> float:
    """Total volume of a workout: sum of reps × weight over every set."""
    return sum(exercise.volume for exercise in workout.exercises or [])


def get_total_sets(workout: Workout) -> int:
    """Count of sets across all exercises."""
    return sum(len(exercise.sets) for exercise in workout.exercises or [])


def get_total_reps(workout: Workout) -> int:
    """Sum of reps across all sets."""
    return sum(s.reps for exercise in workout.exercises or [] for s in exercise.sets)


def calculate_total_volume(workouts: Iterable[Workout]) -> float:
    """Combined volume of many workouts."""
    return sum(calculate_volume(w) for w in workouts)


def count_total_prs(workouts: Iterable[Workout]) -> int:
    """Count PRs frozen on saved workouts."""
    return sum(len(w.prs) for w in workouts)


def get_all_exercises(workouts: Iterable[Workout]) -> List[str]:
    """Get sorted list of all unique exercise names, as logged."""
    names = {exercise.name for w in workouts for exercise in w.exercises}
    return sorted(names)


def count_unique_exercises(workouts: Iterable[Workout]) -> int:
    return len(get_all_exercises(workouts))


def filter_exercise(workout: Workout, exercise_name: str) -> Workout:
    """Copy of a workout restricted to exercises with exactly this name."""
    return replace(
        workout, exercises=[e for e in workout.exercises if e.name == exercise_name]
    )


def calculate_workout_distribution(workouts: Iterable[Workout]) -> Dict[str, int]:
    """Count workouts per workout type, most frequent first."""
    distribution: Dict[str, int] = defaultdict(int)
    for workout in workouts:
        distribution[workout.type.value] += 1

    return dict(sorted(distribution.items(), key=lambda x: x[1], reverse=True))


def calculate_exercise_summary(workouts: Iterable[Workout], exercise_name: str) -> Dict:
    """Max weight, total volume and session count for one exercise."""
    max_weight = 0.0
    total_volume = 0.0
    sessions = 0

    for workout in workouts:
        matching = [e for e in workout.exercises if e.name == exercise_name]
        if not matching:
            continue
        sessions += 1
        for exercise in matching:
            total_volume += exercise.volume
            for s in exercise.sets:
                max_weight = max(max_weight, s.weight)

    return {
        "exercise": exercise_name,
        "max_weight": max_weight,
        "total_volume": total_volume,
        "sessions": sessions,
    }


def calculate_exercise_progression(
    workouts: Iterable[Workout], exercise_name: str
) -> List[Dict]:
    """Track the best set and volume of one exercise per workout over time."""
    name_lower = exercise_name.lower().strip()
    progression = []

    for workout in sorted(workouts, key=lambda w: w.date):
        sets = [
            s
            for exercise in workout.exercises
            if exercise.name.lower().strip() == name_lower
            for s in exercise.sets
        ]
        if not sets:
            continue
        progression.append(
            {
                "date": workout.date.isoformat(),
                "max_weight": max(s.weight for s in sets),
                "reps": sum(s.reps for s in sets),
                "volume": sum(s.volume for s in sets),
            }
        )

    return progression


# =============================================================================
# PERSONAL RECORDS
# =============================================================================


def _previous_sets(exercise_name: str, history: Iterable[Workout]):
    """All historical sets of an exercise, matched case-insensitively."""
    name = exercise_name.lower()
    return [
        s
        for workout in history
        for exercise in workout.exercises
        if exercise.name.lower() == name
        for s in exercise.sets
    ]


def detect_prs(workout: Workout, history: Iterable[Workout]) -> List[PREvent]:
    """
    Detect personal records set by a workout.

    The workout is compared against every other workout in history; it is
    excluded by id, so an edited workout never beats itself. A record
    needs a nonzero baseline to beat: the first ever lift of an exercise,
    or the first set at a new weight, is never a PR.

    Parameters:
        workout: Candidate workout.
        history: Stored workouts, in any order. May include the candidate.

    Returns:
        PR events in the candidate's exercise and set order.
    """
    others = [w for w in history if w.id != workout.id]
    prs: List[PREvent] = []

    for exercise in workout.exercises:
        previous = _previous_sets(exercise.name, others)
        max_prev_weight = max((s.weight for s in previous), default=0)

        for set_index, s in enumerate(exercise.sets):
            if s.weight > max_prev_weight and max_prev_weight > 0:
                prs.append(
                    PREvent(
                        type=PRType.WEIGHT,
                        exercise=exercise.name,
                        value=s.weight,
                        previous=max_prev_weight,
                        set_index=set_index,
                    )
                )

            max_reps_at_weight = max(
                (p.reps for p in previous if p.weight == s.weight), default=0
            )
            if s.reps > max_reps_at_weight and max_reps_at_weight > 0:
                prs.append(
                    PREvent(
                        type=PRType.REPS,
                        exercise=exercise.name,
                        value=s.reps,
                        previous=max_reps_at_weight,
                        weight=s.weight,
                        set_index=set_index,
                    )
                )

    if prs:
        logger.debug(f"Detected {len(prs)} PRs for workout {workout.id}")
    return prs


def get_recent_prs(workouts: Iterable[Workout], limit: int = 5) -> List[Tuple[Workout, PREvent]]:
    """Most recent PRs, newest workout first."""
    with_prs = sorted((w for w in workouts if w.prs), key=lambda w: w.date, reverse=True)
    recent = [(w, pr) for w in with_prs for pr in w.prs]
    return recent[:limit]


# =============================================================================
# WEEKS AND STREAKS
# =============================================================================


def js_weekday(day: date) -> int:
    """Weekday with Sunday as 0, matching the stored settings convention."""
    return (day.weekday() + 1) % 7


def get_week_start(day: date, start_of_week: int = MONDAY) -> date:
    """First day of the week containing ``day``."""
    return day - timedelta(days=(js_weekday(day) - start_of_week) % 7)


def get_week_end(day: date, start_of_week: int = MONDAY) -> date:
    """Last day (inclusive) of the week containing ``day``."""
    return get_week_start(day, start_of_week) + timedelta(days=6)


def workouts_in_range(workouts: Iterable[Workout], start: date, end: date) -> List[Workout]:
    """Workouts dated within ``start`` and ``end``, both inclusive."""
    return [w for w in workouts if start <= w.date <= end]


def workouts_this_week(
    workouts: Iterable[Workout], today: date, start_of_week: int = MONDAY
) -> List[Workout]:
    """
    Workouts in the week containing ``today``.

    Unlike the streak calculator this honours the configured start of week.
    """
    return workouts_in_range(
        workouts,
        get_week_start(today, start_of_week),
        get_week_end(today, start_of_week),
    )


def _count_by_week(workouts: Iterable[Workout]) -> Dict[date, int]:
    """Workout count per Monday-start week."""
    counts: Dict[date, int] = defaultdict(int)
    for workout in workouts:
        counts[get_week_start(workout.date, MONDAY)] += 1
    return counts


def calculate_streak(workouts: List[Workout], weekly_goal: int, today: date) -> int:
    """
    Count consecutive weeks meeting the weekly workout goal.

    Weeks always run Monday through Sunday. The walk starts at the week
    containing ``today`` and moves backward; the current week is still in
    progress, so falling short there does not break the streak. The first
    completed week short of the goal ends the walk.

    Parameters:
        workouts: Full workout history.
        weekly_goal: Workouts needed for a week to count.
        today: Reference date for the current week.

    Returns:
        Streak length in weeks, at most MAX_STREAK_WEEKS.
    """
    if not workouts:
        return 0

    counts = _count_by_week(workouts)
    current_week = get_week_start(today, MONDAY)

    streak = 0
    week = current_week
    for _ in range(MAX_STREAK_WEEKS):
        if counts.get(week, 0) >= weekly_goal:
            streak += 1
        elif week != current_week:
            break
        week -= timedelta(weeks=1)

    return streak


def count_weeks_goal_met(workouts: List[Workout], weekly_goal: int, today: date) -> int:
    """Number of Monday-start weeks, first workout through today, meeting the goal."""
    if not workouts:
        return 0

    counts = _count_by_week(workouts)
    week = get_week_start(min(w.date for w in workouts), MONDAY)
    last_week = get_week_start(today, MONDAY)

    met = 0
    while week <= last_week:
        if counts.get(week, 0) >= weekly_goal:
            met += 1
        week += timedelta(weeks=1)

    return met


# =============================================================================
# PROGRESS SERIES
# =============================================================================


def _short_date(day: date) -> str:
    return f"{day:%b} {day.day}"


def _bucket(label: str, full_label: str, workouts: List[Workout]) -> Dict:
    return {
        "date": label,
        "full_date": full_label,
        "volume": calculate_total_volume(workouts),
        "workouts": len(workouts),
        "sets": sum(get_total_sets(w) for w in workouts),
        "reps": sum(get_total_reps(w) for w in workouts),
    }


def _restrict(workouts: List[Workout], exercise_name: Optional[str]) -> List[Workout]:
    """Limit workouts to one exercise, dropping those without it."""
    if exercise_name is None:
        return workouts
    restricted = [filter_exercise(w, exercise_name) for w in workouts]
    return [w for w in restricted if w.exercises]


def calculate_daily_series(
    workouts: List[Workout],
    days: int,
    today: date,
    exercise_name: Optional[str] = None,
) -> List[Dict]:
    """Per-day volume, workouts, sets and reps for the last ``days`` days."""
    start = today - timedelta(days=days)
    by_day: Dict[date, List[Workout]] = defaultdict(list)
    for workout in workouts_in_range(workouts, start, today):
        by_day[workout.date].append(workout)

    series = []
    day = start
    while day <= today:
        series.append(
            _bucket(
                _short_date(day),
                f"{_short_date(day)}, {day.year}",
                _restrict(by_day.get(day, []), exercise_name),
            )
        )
        day += timedelta(days=1)

    return series


def calculate_weekly_series(
    workouts: List[Workout],
    days: int,
    today: date,
    exercise_name: Optional[str] = None,
    start_of_week: int = SUNDAY,
) -> List[Dict]:
    """Per-week volume, workouts, sets and reps covering the last ``days`` days."""
    start = today - timedelta(days=days)
    in_range = workouts_in_range(workouts, start, today)

    series = []
    week = get_week_start(start, start_of_week)
    while week <= today:
        week_end = week + timedelta(days=6)
        week_workouts = [w for w in in_range if week <= w.date <= week_end]
        series.append(
            _bucket(
                _short_date(week),
                f"Week of {_short_date(week)}",
                _restrict(week_workouts, exercise_name),
            )
        )
        week += timedelta(weeks=1)

    return series


def calculate_progress_series(
    workouts: List[Workout],
    days: int,
    today: date,
    exercise_name: Optional[str] = None,
    start_of_week: int = SUNDAY,
) -> List[Dict]:
    """Daily buckets for short ranges, weekly buckets for longer ones."""
    if days <= DAILY_SERIES_MAX_DAYS:
        return calculate_daily_series(workouts, days, today, exercise_name)
    return calculate_weekly_series(workouts, days, today, exercise_name, start_of_week)


def calculate_last_7_days(workouts: List[Workout], today: date) -> List[Dict]:
    """Volume and workout count for each of the last seven days, oldest first."""
    result = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        day_workouts = [w for w in workouts if w.date == day]
        result.append(
            {
                "day": day.strftime("%a"),
                "date": day.isoformat(),
                "volume": round(calculate_total_volume(day_workouts)),
                "workouts": len(day_workouts),
            }
        )
    return result


def _percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def calculate_period_stats(workouts: List[Workout], days: int, today: date) -> Dict:
    """
    Compare the last ``days`` days against the period before it.

    Changes are percentages and are 0 when the previous period is empty.
    """
    start = today - timedelta(days=days)
    prev_start = start - timedelta(days=days)

    current = [w for w in workouts if w.date >= start]
    previous = [w for w in workouts if prev_start <= w.date < start]

    current_volume = calculate_total_volume(current)
    prev_volume = calculate_total_volume(previous)
    avg_volume = current_volume / len(current) if current else 0
    prev_avg_volume = prev_volume / len(previous) if previous else 0

    return {
        "total_volume": current_volume,
        "volume_change": _percent_change(current_volume, prev_volume),
        "total_workouts": len(current),
        "workouts_change": _percent_change(len(current), len(previous)),
        "avg_volume": avg_volume,
        "avg_change": _percent_change(avg_volume, prev_avg_volume),
        "total_sets": sum(get_total_sets(w) for w in current),
        "total_reps": sum(get_total_reps(w) for w in current),
    }


def calculate_weekly_volume(workouts: List[Workout]) -> List[Dict]:
    """Calculate volume per ISO week, oldest first."""
    if not workouts:
        return []

    weekly: Dict[Tuple[int, int], Dict] = defaultdict(lambda: {"volume": 0.0, "workouts": 0})

    for workout in workouts:
        iso = workout.date.isocalendar()
        key = (iso[0], iso[1])
        weekly[key]["volume"] += calculate_volume(workout)
        weekly[key]["workouts"] += 1
        week_start = get_week_start(workout.date, MONDAY)
        weekly[key]["date"] = week_start

    return [
        {
            "week": f"{year}-W{week:02d}",
            "volume": round(data["volume"], 0),
            "workouts": data["workouts"],
            "date": data["date"].isoformat(),
        }
        for (year, week), data in sorted(weekly.items())
    ]
