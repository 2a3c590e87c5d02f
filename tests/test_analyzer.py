"""
Tests for workout analyzer.

Covers aggregation, PR detection, weekly streaks and progress series.
"""

import pytest
from datetime import date, timedelta

from zenfit.analyzer import (
    MAX_STREAK_WEEKS,
    SUNDAY,
    calculate_daily_series,
    calculate_exercise_progression,
    calculate_exercise_summary,
    calculate_last_7_days,
    calculate_period_stats,
    calculate_progress_series,
    calculate_streak,
    calculate_volume,
    calculate_weekly_series,
    calculate_weekly_volume,
    calculate_workout_distribution,
    count_unique_exercises,
    count_weeks_goal_met,
    detect_prs,
    get_all_exercises,
    get_recent_prs,
    get_total_reps,
    get_total_sets,
    get_week_end,
    get_week_start,
    workouts_this_week,
)
from zenfit.models import Exercise, PRType, Workout, WorkoutSet, WorkoutType


# Wednesday; its Monday-start week begins 2024-06-10
TODAY = date(2024, 6, 12)


def _workout(workout_id, day, exercises=(), workout_type=WorkoutType.CUSTOM):
    """Build a workout from (name, [(weight, reps), ...]) pairs."""
    return Workout(
        id=workout_id,
        title=f"Workout {workout_id}",
        date=day,
        type=workout_type,
        exercises=[
            Exercise(name=name, sets=[WorkoutSet(reps=reps, weight=weight) for weight, reps in sets])
            for name, sets in exercises
        ],
    )


def _week_of_workouts(prefix, monday, count):
    return [_workout(f"{prefix}-{i}", monday + timedelta(days=i)) for i in range(count)]


class TestAggregates:
    """Tests for volume, set and rep totals."""

    def test_empty_workout(self):
        """Test a workout without exercises aggregates to zero."""
        workout = _workout("w", TODAY)

        assert calculate_volume(workout) == 0
        assert get_total_sets(workout) == 0
        assert get_total_reps(workout) == 0

    def test_exercise_without_sets(self):
        """Test an exercise with no sets contributes nothing."""
        workout = _workout("w", TODAY, [("Squat", [])])

        assert calculate_volume(workout) == 0
        assert get_total_sets(workout) == 0

    def test_totals(self):
        """Test totals sum over every set of every exercise."""
        workout = _workout(
            "w",
            TODAY,
            [("Bench Press", [(80, 8), (80, 6)]), ("Row", [(60, 10)])],
        )

        assert calculate_volume(workout) == 80 * 8 + 80 * 6 + 60 * 10
        assert get_total_sets(workout) == 3
        assert get_total_reps(workout) == 24

    def test_unique_exercises_exact_names(self):
        """Test unique exercises are sorted and counted by exact name."""
        workouts = [
            _workout("a", TODAY, [("Squat", [(100, 5)]), ("Bench Press", [(80, 5)])]),
            _workout("b", TODAY, [("Squat", [(100, 5)]), ("squat", [(100, 5)])]),
        ]

        assert get_all_exercises(workouts) == ["Bench Press", "Squat", "squat"]
        assert count_unique_exercises(workouts) == 3

    def test_workout_distribution(self):
        """Test workouts are counted per type, most common first."""
        workouts = [
            _workout("a", TODAY, workout_type=WorkoutType.LEGS),
            _workout("b", TODAY, workout_type=WorkoutType.PUSH),
            _workout("c", TODAY, workout_type=WorkoutType.LEGS),
        ]

        assert calculate_workout_distribution(workouts) == {"Legs": 2, "Push": 1}

    def test_exercise_summary(self):
        """Test max weight and volume for a single exercise."""
        workouts = [
            _workout("a", TODAY, [("Squat", [(100, 5), (110, 3)])]),
            _workout("b", TODAY, [("Squat", [(105, 5)]), ("Row", [(200, 1)])]),
        ]
        summary = calculate_exercise_summary(workouts, "Squat")

        assert summary["max_weight"] == 110
        assert summary["total_volume"] == 500 + 330 + 525
        assert summary["sessions"] == 2

    def test_exercise_progression(self):
        """Test progression lists one point per session, oldest first."""
        workouts = [
            _workout("b", date(2024, 1, 8), [("squat", [(105, 5)])]),
            _workout("a", date(2024, 1, 1), [("Squat", [(100, 5), (100, 5)])]),
        ]
        progression = calculate_exercise_progression(workouts, "Squat")

        assert [p["date"] for p in progression] == ["2024-01-01", "2024-01-08"]
        assert progression[0]["volume"] == 1000
        assert progression[1]["max_weight"] == 105


class TestDetectPRs:
    """Tests for personal record detection."""

    def test_weight_pr(self):
        """Test beating the prior max weight emits one weight PR."""
        history = [_workout("old", date(2024, 6, 1), [("Squat", [(100, 5)])])]
        candidate = _workout("new", TODAY, [("Squat", [(120, 5)])])

        prs = detect_prs(candidate, history)

        assert len(prs) == 1
        assert prs[0].type == PRType.WEIGHT
        assert prs[0].value == 120
        assert prs[0].previous == 100
        assert prs[0].exercise == "Squat"
        assert prs[0].set_index == 0

    def test_no_pr_without_history(self):
        """Test a first-ever lift is never a PR, however heavy."""
        history = [_workout("old", date(2024, 6, 1), [("Squat", [(100, 5)])])]
        candidate = _workout("new", TODAY, [("Deadlift", [(150, 5)])])

        assert detect_prs(candidate, history) == []

    def test_reps_pr_at_same_weight(self):
        """Test more reps at a previously used weight emits a reps PR."""
        history = [
            _workout("a", date(2024, 6, 1), [("Bench Press", [(80, 8)])]),
            _workout("b", date(2024, 6, 3), [("Bench Press", [(80, 10)])]),
        ]
        candidate = _workout("new", TODAY, [("Bench Press", [(80, 11)])])

        prs = detect_prs(candidate, history)

        assert len(prs) == 1
        assert prs[0].type == PRType.REPS
        assert prs[0].value == 11
        assert prs[0].previous == 10
        assert prs[0].weight == 80

    def test_name_match_ignores_case(self):
        """Test history is matched case-insensitively."""
        history = [_workout("old", date(2024, 6, 1), [("bench press", [(80, 5)])])]
        candidate = _workout("new", TODAY, [("BENCH PRESS", [(85, 5)])])

        prs = detect_prs(candidate, history)

        assert [pr.type for pr in prs] == [PRType.WEIGHT]
        assert prs[0].exercise == "BENCH PRESS"

    def test_reps_prs_across_exercises(self):
        """Test each exercise is compared only against its own history."""
        history = [
            _workout("a", date(2024, 6, 1), [("Squat", [(100, 5), (90, 3)])]),
        ]
        history.append(_workout("b", date(2024, 6, 2), [("Row", [(50, 5)])]))
        candidate = _workout("new", TODAY, [("Row", [(50, 8)]), ("Squat", [(100, 6)])])

        prs = detect_prs(candidate, history)

        assert [(pr.exercise, pr.type) for pr in prs] == [
            ("Row", PRType.REPS),
            ("Squat", PRType.REPS),
        ]

    def test_reps_and_weight_prs_by_set(self):
        """Test a reps PR at a known weight and a weight PR above the max."""
        history = [
            _workout("a", date(2024, 6, 1), [("Press", [(40, 5), (50, 3)])]),
        ]
        candidate = _workout("new", TODAY, [("Press", [(50, 4), (55, 1)])])

        prs = detect_prs(candidate, history)

        assert [(pr.type, pr.set_index) for pr in prs] == [
            (PRType.REPS, 0),
            (PRType.WEIGHT, 1),
        ]

    def test_candidate_excluded_by_id(self):
        """Test an edited workout is not compared against its stored copy."""
        stored = _workout("same", date(2024, 6, 1), [("Squat", [(100, 5)])])
        other = _workout("other", date(2024, 5, 1), [("Squat", [(90, 5)])])
        edited = _workout("same", TODAY, [("Squat", [(100, 5)])])

        prs = detect_prs(edited, [stored, other])

        assert [(pr.type, pr.previous) for pr in prs] == [(PRType.WEIGHT, 90)]

    def test_set_order_preserved(self):
        """Test PRs follow the candidate's exercise and set order."""
        history = [_workout("old", date(2024, 6, 1), [("Squat", [(100, 5)])])]
        candidate = _workout("new", TODAY, [("Squat", [(90, 5), (105, 3), (110, 1)])])

        prs = detect_prs(candidate, history)

        assert [(pr.set_index, pr.value) for pr in prs] == [(1, 105), (2, 110)]
        assert all(pr.previous == 100 for pr in prs)

    def test_zero_weight_history_no_pr(self):
        """Test bodyweight history (weight 0) is no baseline for a weight PR."""
        history = [_workout("old", date(2024, 6, 1), [("Pull Up", [(0, 8)])])]
        candidate = _workout("new", TODAY, [("Pull Up", [(10, 5), (0, 9)])])

        prs = detect_prs(candidate, history)

        assert [(pr.type, pr.value, pr.previous) for pr in prs] == [(PRType.REPS, 9, 8)]

    def test_recent_prs(self):
        """Test recent PRs are listed newest workout first."""
        older = _workout("a", date(2024, 6, 1))
        newer = _workout("b", date(2024, 6, 5))
        history = [_workout("h", date(2024, 5, 1), [("Squat", [(100, 5)])])]
        older.prs = detect_prs(_workout("a", older.date, [("Squat", [(105, 5)])]), history)
        newer.prs = detect_prs(_workout("b", newer.date, [("Squat", [(110, 5)])]), history)

        recent = get_recent_prs([older, newer])

        assert [w.id for w, _ in recent] == ["b", "a"]


class TestWeeks:
    """Tests for week boundaries and weekly filters."""

    def test_monday_week(self):
        """Test Monday-start weeks."""
        assert get_week_start(TODAY) == date(2024, 6, 10)
        assert get_week_end(TODAY) == date(2024, 6, 16)
        # Sunday belongs to the week that started the previous Monday
        assert get_week_start(date(2024, 6, 16)) == date(2024, 6, 10)

    def test_sunday_week(self):
        """Test Sunday-start weeks."""
        assert get_week_start(TODAY, SUNDAY) == date(2024, 6, 9)
        assert get_week_start(date(2024, 6, 9), SUNDAY) == date(2024, 6, 9)
        assert get_week_end(TODAY, SUNDAY) == date(2024, 6, 15)

    def test_this_week_honours_start_of_week(self):
        """Test the weekly filter follows the configured start of week."""
        workouts = [_workout("sun", date(2024, 6, 9)), _workout("mon", date(2024, 6, 10))]

        assert [w.id for w in workouts_this_week(workouts, TODAY)] == ["mon"]
        assert [w.id for w in workouts_this_week(workouts, TODAY, SUNDAY)] == ["sun", "mon"]


class TestStreak:
    """Tests for weekly-goal streak calculation."""

    def test_empty_history(self):
        """Test no history gives a zero streak."""
        assert calculate_streak([], 3, TODAY) == 0

    def test_three_complete_weeks(self):
        """Test three goal weeks preceded by a short week."""
        workouts = (
            _week_of_workouts("w1", date(2024, 6, 3), 3)
            + _week_of_workouts("w2", date(2024, 5, 27), 3)
            + _week_of_workouts("w3", date(2024, 5, 20), 4)
            + _week_of_workouts("w4", date(2024, 5, 13), 1)
        )

        assert calculate_streak(workouts, 3, TODAY) == 3

    def test_current_week_counts_when_met(self):
        """Test the in-progress week adds to the streak once it meets the goal."""
        workouts = _week_of_workouts("now", date(2024, 6, 10), 3) + _week_of_workouts(
            "w1", date(2024, 6, 3), 3
        )

        assert calculate_streak(workouts, 3, TODAY) == 2

    def test_short_last_week_breaks_streak(self):
        """Test a completed week below the goal ends the walk immediately."""
        workouts = (
            _week_of_workouts("w1", date(2024, 6, 3), 2)
            + _week_of_workouts("w2", date(2024, 5, 27), 3)
        )

        assert calculate_streak(workouts, 3, TODAY) == 0

    def test_sunday_workout_in_monday_week(self):
        """Test a Sunday workout counts toward the week that began on Monday."""
        workouts = [
            _workout("mon", date(2024, 6, 3)),
            _workout("sun", date(2024, 6, 9)),
        ]

        assert calculate_streak(workouts, 2, TODAY) == 1

    def test_safety_bound(self):
        """Test long streaks stop at the safety bound."""
        workouts = [
            _workout(f"w{i}", date(2024, 6, 3) - timedelta(weeks=i)) for i in range(150)
        ]

        assert calculate_streak(workouts, 1, TODAY) == MAX_STREAK_WEEKS - 1

    def test_weeks_goal_met(self):
        """Test weeks meeting the goal are counted from the first workout."""
        workouts = (
            _week_of_workouts("a", date(2024, 5, 13), 3)
            + _week_of_workouts("b", date(2024, 5, 20), 1)
            + _week_of_workouts("c", date(2024, 6, 10), 3)
        )

        assert count_weeks_goal_met(workouts, 3, TODAY) == 2
        assert count_weeks_goal_met(workouts, 1, TODAY) == 3
        assert count_weeks_goal_met([], 1, TODAY) == 0


class TestProgressSeries:
    """Tests for chart series and period comparisons."""

    def test_daily_series(self):
        """Test one bucket per day including today."""
        workouts = [
            _workout("a", TODAY, [("Squat", [(100, 5)])]),
            _workout("b", TODAY - timedelta(days=2), [("Bench", [(50, 10)])]),
        ]
        series = calculate_daily_series(workouts, 7, TODAY)

        assert len(series) == 8
        assert series[-1]["volume"] == 500
        assert series[-1]["date"] == "Jun 12"
        assert series[-3]["workouts"] == 1

    def test_daily_series_for_one_exercise(self):
        """Test filtering by exercise drops other exercises and workouts."""
        workouts = [
            _workout("a", TODAY, [("Squat", [(100, 5)]), ("Bench", [(50, 10)])]),
            _workout("b", TODAY, [("Bench", [(50, 10)])]),
        ]
        series = calculate_daily_series(workouts, 1, TODAY, exercise_name="Squat")

        assert series[-1]["volume"] == 500
        assert series[-1]["workouts"] == 1
        assert series[-1]["sets"] == 1

    def test_weekly_series(self):
        """Test weekly buckets for longer ranges."""
        workouts = [
            _workout("a", date(2024, 6, 9), [("Squat", [(100, 5)])]),
            _workout("b", date(2024, 6, 11), [("Squat", [(100, 5)])]),
        ]
        series = calculate_weekly_series(workouts, 60, TODAY)

        assert series[-1]["full_date"] == "Week of Jun 9"
        assert series[-1]["workouts"] == 2

    def test_progress_series_switches_granularity(self):
        """Test daily buckets up to 30 days and weekly buckets beyond."""
        assert len(calculate_progress_series([], 30, TODAY)) == 31
        assert len(calculate_progress_series([], 90, TODAY)) < 20

    def test_last_7_days(self):
        """Test the dashboard series covers seven days ending today."""
        workouts = [_workout("a", TODAY, [("Squat", [(100.4, 1)])])]
        days = calculate_last_7_days(workouts, TODAY)

        assert len(days) == 7
        assert days[-1] == {"day": "Wed", "date": "2024-06-12", "volume": 100, "workouts": 1}

    def test_period_stats(self):
        """Test comparison against the previous period."""
        workouts = [
            _workout("a", TODAY, [("Squat", [(100, 10)])]),
            _workout("b", TODAY - timedelta(days=1), [("Squat", [(100, 10)])]),
            _workout("c", TODAY - timedelta(days=10), [("Squat", [(100, 10)])]),
        ]
        stats = calculate_period_stats(workouts, 7, TODAY)

        assert stats["total_workouts"] == 2
        assert stats["total_volume"] == 2000
        assert stats["volume_change"] == pytest.approx(100.0)
        assert stats["workouts_change"] == pytest.approx(100.0)
        assert stats["avg_change"] == pytest.approx(0.0)
        assert stats["total_sets"] == 2
        assert stats["total_reps"] == 20

    def test_period_stats_no_previous(self):
        """Test changes are zero without a previous period."""
        stats = calculate_period_stats([_workout("a", TODAY)], 7, TODAY)

        assert stats["volume_change"] == 0
        assert stats["workouts_change"] == 0

    def test_weekly_volume(self):
        """Test ISO-week volume grouping."""
        workouts = [
            _workout("a", date(2024, 6, 3), [("Squat", [(100, 5)])]),
            _workout("b", date(2024, 6, 9), [("Squat", [(100, 5)])]),
            _workout("c", date(2024, 6, 10), [("Squat", [(100, 1)])]),
        ]
        weekly = calculate_weekly_volume(workouts)

        assert [w["week"] for w in weekly] == ["2024-W23", "2024-W24"]
        assert weekly[0]["volume"] == 1000
        assert weekly[0]["workouts"] == 2
        assert weekly[0]["date"] == "2024-06-03"
