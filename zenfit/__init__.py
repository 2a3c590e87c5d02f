"""
Workout tracker package.

This package provides a local record store for workouts, presets and
plans, plus the analytics derived from the workout history: volume,
personal records, weekly-goal streaks and achievements.
"""

__version__ = "0.1.0"
