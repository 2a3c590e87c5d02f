"""
Achievement rules and evaluation.

Achievements are one-way badges: each rule is a predicate over an
AchievementStats snapshot, and once unlocked an achievement stays
unlocked with its original timestamp.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List

from .analyzer import (
    calculate_streak,
    calculate_total_volume,
    count_total_prs,
    count_unique_exercises,
    count_weeks_goal_met,
)
from .models import AchievementState, AchievementStats, Settings, Workout


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Achievement:
    """A static achievement rule."""

    id: str
    name: str
    description: str
    category: str
    requirement: Callable[[AchievementStats], bool]


ACHIEVEMENTS: List[Achievement] = [
    # workout milestones
    Achievement("first_workout", "First Step", "Complete your first workout", "workouts",
                lambda s: s.total_workouts >= 1),
    Achievement("workouts_10", "Getting Started", "Complete 10 workouts", "workouts",
                lambda s: s.total_workouts >= 10),
    Achievement("workouts_25", "Committed", "Complete 25 workouts", "workouts",
                lambda s: s.total_workouts >= 25),
    Achievement("workouts_50", "Dedicated", "Complete 50 workouts", "workouts",
                lambda s: s.total_workouts >= 50),
    Achievement("workouts_100", "Century", "Complete 100 workouts", "workouts",
                lambda s: s.total_workouts >= 100),
    # streaks
    Achievement("streak_2", "Consistency", "2 week goal streak", "streak",
                lambda s: s.current_streak >= 2),
    Achievement("streak_4", "On Fire", "4 week goal streak", "streak",
                lambda s: s.current_streak >= 4),
    Achievement("streak_8", "Unstoppable", "8 week goal streak", "streak",
                lambda s: s.current_streak >= 8),
    Achievement("streak_12", "Iron Will", "12 week goal streak", "streak",
                lambda s: s.current_streak >= 12),
    # volume
    Achievement("volume_10k", "Heavy Lifter", "Lift 10,000 total", "volume",
                lambda s: s.total_volume >= 10_000),
    Achievement("volume_50k", "Powerhouse", "Lift 50,000 total", "volume",
                lambda s: s.total_volume >= 50_000),
    Achievement("volume_100k", "Titan", "Lift 100,000 total", "volume",
                lambda s: s.total_volume >= 100_000),
    Achievement("volume_500k", "Legend", "Lift 500,000 total", "volume",
                lambda s: s.total_volume >= 500_000),
    # weekly goal
    Achievement("weekly_goal_1", "Goal Setter", "Hit your weekly goal", "goal",
                lambda s: s.weeks_goal_met >= 1),
    Achievement("weekly_goal_4", "Goal Crusher", "Hit weekly goal 4 times", "goal",
                lambda s: s.weeks_goal_met >= 4),
    Achievement("weekly_goal_12", "Goal Master", "Hit weekly goal 12 times", "goal",
                lambda s: s.weeks_goal_met >= 12),
    # personal records
    Achievement("first_pr", "Personal Best", "Set your first PR", "prs",
                lambda s: s.total_prs >= 1),
    Achievement("prs_10", "Record Breaker", "Set 10 PRs", "prs",
                lambda s: s.total_prs >= 10),
    Achievement("prs_25", "PR Machine", "Set 25 PRs", "prs",
                lambda s: s.total_prs >= 25),
    # variety
    Achievement("variety", "Variety", "Log 5 different exercises", "special",
                lambda s: s.unique_exercises >= 5),
    Achievement("diverse", "Diverse Training", "Log 10 different exercises", "special",
                lambda s: s.unique_exercises >= 10),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def collect_stats(workouts: List[Workout], settings: Settings, today: date) -> AchievementStats:
    """Build the statistics snapshot achievements are judged on."""
    return AchievementStats(
        total_workouts=len(workouts),
        total_volume=calculate_total_volume(workouts),
        current_streak=calculate_streak(workouts, settings.weekly_goal, today),
        total_prs=count_total_prs(workouts),
        unique_exercises=count_unique_exercises(workouts),
        weeks_goal_met=count_weeks_goal_met(workouts, settings.weekly_goal, today),
    )


def evaluate_achievements(
    stats: AchievementStats, state: AchievementState, now: datetime
) -> List[Achievement]:
    """
    Unlock every achievement whose requirement the stats satisfy.

    Already unlocked achievements are left untouched, so running this
    twice with the same stats changes nothing. ``state`` is updated in
    place.

    Returns:
        Newly unlocked achievements, in rule table order.
    """
    fresh = []
    for achievement in ACHIEVEMENTS:
        if state.is_unlocked(achievement.id):
            continue
        if achievement.requirement(stats) and state.unlock(achievement.id, now):
            fresh.append(achievement)

    if fresh:
        logger.info(f"Unlocked {len(fresh)} achievements: {', '.join(a.id for a in fresh)}")
    return fresh


def achievement_progress(state: AchievementState) -> Dict:
    """Unlocked count, total and completion percentage."""
    total = len(ACHIEVEMENTS)
    unlocked = sum(1 for a in ACHIEVEMENTS if state.is_unlocked(a.id))
    return {
        "unlocked": unlocked,
        "total": total,
        "remaining": total - unlocked,
        "percent": round(unlocked / total * 100, 1),
    }
