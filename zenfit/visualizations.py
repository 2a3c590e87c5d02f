"""
Workout data visualization.

Provides functions for creating progress charts from the workout
history using matplotlib.
"""

import logging
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np

from .models import Workout, WeightUnit
from .analyzer import (
    calculate_weekly_volume,
    calculate_exercise_progression,
    calculate_workout_distribution,
)


logger = logging.getLogger(__name__)

# plot styling
plt.style.use("seaborn-v0_8-whitegrid")
COLORS = {
    "primary": "#06b6d4",
    "secondary": "#64748b",
    "accent": "#f59e0b",
    "success": "#10b981",
}


def _finish(output_path: Optional[Path], show: bool) -> None:
    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        logger.info(f"Saved plot to {output_path}")

    if show:
        plt.show()
    else:
        plt.close()


def plot_weekly_volume(
    workouts: List[Workout],
    unit: WeightUnit = WeightUnit.KG,
    output_path: Optional[Path] = None,
    show: bool = True,
) -> bool:
    """
    Plot weekly training volume over time.

    Parameters:
        workouts: Workout history.
        unit: Weight unit for the axis label.
        output_path: Optional path to save the figure.
        show: Whether to display the plot.

    Returns:
        False if there was nothing to plot.
    """
    data = calculate_weekly_volume(workouts)

    if not data:
        logger.warning("No volume data to plot")
        return False

    fig, ax = plt.subplots(figsize=(12, 6))

    x = range(len(data))
    volumes = [d["volume"] for d in data]

    ax.bar(x, volumes, color=COLORS["primary"], alpha=0.8)

    ax.set_xlabel("Week", fontsize=11)
    ax.set_ylabel(f"Volume ({unit.value})", fontsize=11)
    ax.set_title("Weekly Training Volume", fontsize=14, fontweight="bold")

    # show every nth label to avoid crowding
    step = max(1, len(data) // 12)
    labels = [d["date"] for d in data]
    ax.set_xticks(range(0, len(data), step))
    ax.set_xticklabels(labels[::step], rotation=45, ha="right")

    ax.grid(True, alpha=0.3, axis="y")
    _finish(output_path, show)
    return True


def plot_exercise_progression(
    workouts: List[Workout],
    exercise_name: str,
    unit: WeightUnit = WeightUnit.KG,
    output_path: Optional[Path] = None,
    show: bool = True,
) -> bool:
    """
    Plot the heaviest set and volume of one exercise per session.

    Returns:
        False if the exercise was never logged.
    """
    data = calculate_exercise_progression(workouts, exercise_name)

    if not data:
        logger.warning(f"No sessions of {exercise_name} to plot")
        return False

    fig, ax = plt.subplots(figsize=(12, 6))

    x = np.arange(len(data))
    weights = [d["max_weight"] for d in data]
    volumes = [d["volume"] for d in data]

    ax.plot(x, weights, "o-", color=COLORS["primary"], linewidth=2, label="Top weight")
    ax.set_ylabel(f"Weight ({unit.value})", fontsize=11)

    ax2 = ax.twinx()
    ax2.bar(x, volumes, color=COLORS["secondary"], alpha=0.25, label="Volume")
    ax2.set_ylabel(f"Volume ({unit.value})", fontsize=11)

    ax.set_xlabel("Session", fontsize=11)
    ax.set_title(f"{exercise_name} Progression", fontsize=14, fontweight="bold")
    ax.set_xticks(x)
    ax.set_xticklabels([d["date"] for d in data], rotation=45, ha="right")

    _finish(output_path, show)
    return True


def plot_workout_distribution(
    workouts: List[Workout],
    output_path: Optional[Path] = None,
    show: bool = True,
) -> bool:
    """
    Pie chart of workouts by workout type.

    Returns:
        False if there was nothing to plot.
    """
    distribution = calculate_workout_distribution(workouts)

    if not distribution:
        logger.warning("No distribution data to plot")
        return False

    fig, ax = plt.subplots(figsize=(8, 8))

    labels = list(distribution.keys())
    sizes = list(distribution.values())

    colors = plt.cm.Set3(np.linspace(0, 1, len(labels)))

    ax.pie(sizes, labels=labels, autopct="%1.1f%%", colors=colors, startangle=90)
    ax.set_title("Workouts by Type", fontsize=14, fontweight="bold")

    _finish(output_path, show)
    return True
