"""Data models for workout logging and analysis."""

import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class InvalidDataError(ValueError):
    """Raised when a persisted or imported document has the wrong shape."""


def generate_id() -> str:
    """Generate an opaque record id: millisecond timestamp plus random suffix."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC timestamp with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    stamp = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


# =============================================================================
# FIELD VALIDATION
# =============================================================================


def _expect_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidDataError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _expect_list(data: Any, what: str) -> List[Any]:
    if not isinstance(data, list):
        raise InvalidDataError(f"{what} must be a list, got {type(data).__name__}")
    return data


def _get_str(data: Dict[str, Any], key: str, what: str, default: Optional[str] = None) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise InvalidDataError(f"{what}.{key} must be a string")
    return value


def _get_optional_str(data: Dict[str, Any], key: str, what: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidDataError(f"{what}.{key} must be a string")
    return value


def _get_number(data: Dict[str, Any], key: str, what: str, default: float = 0) -> float:
    value = data.get(key, default)
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDataError(f"{what}.{key} must be a number")
    if value < 0:
        raise InvalidDataError(f"{what}.{key} must not be negative")
    return value


def _get_int(data: Dict[str, Any], key: str, what: str, default: int = 0) -> int:
    value = _get_number(data, key, what, default)
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidDataError(f"{what}.{key} must be a whole number")
        value = int(value)
    return value


def _get_bool(data: Dict[str, Any], key: str, what: str, default: bool = False) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise InvalidDataError(f"{what}.{key} must be true or false")
    return value


def _get_date(data: Dict[str, Any], key: str, what: str) -> date:
    value = _get_str(data, key, what)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDataError(f"{what}.{key} is not a valid date: {value!r}")


# =============================================================================
# ENUMERATIONS
# =============================================================================


class WorkoutType(Enum):
    """Fixed set of workout categories."""

    PUSH = "Push"
    PULL = "Pull"
    LEGS = "Legs"
    UPPER = "Upper"
    LOWER = "Lower"
    FULL_BODY = "Full Body"
    CARDIO = "Cardio"
    CORE = "Core"
    CUSTOM = "Custom"

    @classmethod
    def from_string(cls, value: str) -> "WorkoutType":
        """Match a workout type by display name, ignoring case."""
        lookup = {t.value.lower(): t for t in cls}
        try:
            return lookup[value.strip().lower()]
        except (KeyError, AttributeError):
            raise InvalidDataError(f"Unknown workout type: {value!r}")


class PRType(Enum):
    """Kind of personal record."""

    WEIGHT = "weight"
    REPS = "reps"


class WeightUnit(Enum):
    """Display unit for weights. Values are never converted."""

    KG = "kg"
    LB = "lb"


# =============================================================================
# WORKOUT RECORDS
# =============================================================================


@dataclass
class WorkoutSet:
    """A single set of an exercise."""

    reps: int
    weight: float
    id: str = field(default_factory=generate_id)
    completed: Optional[bool] = None
    rest: Optional[int] = None

    @property
    def volume(self) -> float:
        """Calculate volume as reps × weight."""
        return self.reps * self.weight

    @classmethod
    def from_dict(cls, data: Any) -> "WorkoutSet":
        data = _expect_dict(data, "set")
        completed = data.get("completed")
        if completed is not None and not isinstance(completed, bool):
            raise InvalidDataError("set.completed must be true or false")
        rest = _get_int(data, "rest", "set") if data.get("rest") is not None else None
        return cls(
            id=_get_str(data, "id", "set"),
            reps=_get_int(data, "reps", "set"),
            weight=_get_number(data, "weight", "set"),
            completed=completed,
            rest=rest,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "reps": self.reps, "weight": self.weight}
        if self.completed is not None:
            data["completed"] = self.completed
        if self.rest is not None:
            data["rest"] = self.rest
        return data


@dataclass
class Exercise:
    """An exercise within a workout or preset."""

    name: str
    sets: List[WorkoutSet] = field(default_factory=list)
    id: str = field(default_factory=generate_id)

    @property
    def volume(self) -> float:
        return sum(s.volume for s in self.sets)

    @classmethod
    def from_dict(cls, data: Any) -> "Exercise":
        data = _expect_dict(data, "exercise")
        sets = _expect_list(data.get("sets") or [], "exercise.sets")
        return cls(
            id=_get_str(data, "id", "exercise"),
            name=_get_str(data, "name", "exercise"),
            sets=[WorkoutSet.from_dict(s) for s in sets],
        )

    @classmethod
    def from_string(cls, exercise_str: str) -> Optional["Exercise"]:
        """
        Parse a single-set exercise from a comma-separated string.

        Expected format: "name,weight,reps".
        """
        if not exercise_str or not exercise_str.strip():
            return None

        parts = exercise_str.split(",")
        if len(parts) < 3:
            return None

        try:
            name = parts[0].strip()
            weight = float(parts[1]) if parts[1].strip() else 0.0
            reps = int(parts[2]) if parts[2].strip() else 0
        except ValueError:
            return None

        if not name or weight < 0 or reps < 0:
            return None
        return cls(name=name, sets=[WorkoutSet(reps=reps, weight=weight, completed=True)])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
        }


@dataclass
class PREvent:
    """A personal record set by one set of a workout."""

    type: PRType
    exercise: str
    value: float
    previous: float
    set_index: int
    weight: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PREvent":
        data = _expect_dict(data, "pr")
        try:
            pr_type = PRType(data.get("type"))
        except ValueError:
            raise InvalidDataError(f"Unknown PR type: {data.get('type')!r}")
        weight = _get_number(data, "weight", "pr") if data.get("weight") is not None else None
        return cls(
            type=pr_type,
            exercise=_get_str(data, "exercise", "pr"),
            value=_get_number(data, "value", "pr"),
            previous=_get_number(data, "previous", "pr"),
            set_index=_get_int(data, "setIndex", "pr"),
            weight=weight,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "exercise": self.exercise,
            "value": self.value,
            "previous": self.previous,
        }
        if self.weight is not None:
            data["weight"] = self.weight
        data["setIndex"] = self.set_index
        return data


@dataclass
class Workout:
    """A completed or in-progress training session."""

    title: str
    date: date
    type: WorkoutType = WorkoutType.CUSTOM
    duration_seconds: int = 0
    exercises: List[Exercise] = field(default_factory=list)
    prs: List[PREvent] = field(default_factory=list)
    notes: Optional[str] = None
    is_favorite: bool = False
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def exercise_count(self) -> int:
        """Count of exercises in this workout."""
        return len(self.exercises)

    @classmethod
    def from_dict(cls, data: Any) -> "Workout":
        data = _expect_dict(data, "workout")
        exercises = _expect_list(data.get("exercises") or [], "workout.exercises")
        prs = _expect_list(data.get("prs") or [], "workout.prs")
        return cls(
            id=_get_optional_str(data, "id", "workout"),
            title=_get_str(data, "title", "workout", default=""),
            date=_get_date(data, "date", "workout"),
            type=WorkoutType.from_string(_get_str(data, "type", "workout", default="Custom")),
            duration_seconds=_get_int(data, "duration", "workout"),
            notes=_get_optional_str(data, "notes", "workout"),
            exercises=[Exercise.from_dict(e) for e in exercises],
            prs=[PREvent.from_dict(p) for p in prs],
            is_favorite=_get_bool(data, "isFavorite", "workout"),
            created_at=_get_optional_str(data, "createdAt", "workout"),
            updated_at=_get_optional_str(data, "updatedAt", "workout"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "duration": self.duration_seconds,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        data["exercises"] = [e.to_dict() for e in self.exercises]
        data["prs"] = [p.to_dict() for p in self.prs]
        data["isFavorite"] = self.is_favorite
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data


@dataclass
class Preset:
    """A reusable workout template. Set weights and reps are targets."""

    name: str
    type: WorkoutType = WorkoutType.CUSTOM
    exercises: List[Exercise] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    is_favorite: bool = False
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Preset":
        data = _expect_dict(data, "preset")
        exercises = _expect_list(data.get("exercises") or [], "preset.exercises")
        tags = _expect_list(data.get("tags") or [], "preset.tags")
        if not all(isinstance(t, str) for t in tags):
            raise InvalidDataError("preset.tags must be strings")
        return cls(
            id=_get_optional_str(data, "id", "preset"),
            name=_get_str(data, "name", "preset"),
            type=WorkoutType.from_string(_get_str(data, "type", "preset", default="Custom")),
            exercises=[Exercise.from_dict(e) for e in exercises],
            tags=list(tags),
            is_favorite=_get_bool(data, "isFavorite", "preset"),
            created_at=_get_optional_str(data, "createdAt", "preset"),
            updated_at=_get_optional_str(data, "updatedAt", "preset"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "exercises": [e.to_dict() for e in self.exercises],
            "isFavorite": self.is_favorite,
            "tags": list(self.tags),
        }
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data


# =============================================================================
# SETTINGS AND ACHIEVEMENTS
# =============================================================================


@dataclass
class Settings:
    """User-facing preferences. Defaults apply when nothing is persisted."""

    weekly_goal: int = 3
    weight_unit: WeightUnit = WeightUnit.KG
    start_of_week: int = 1  # 0 = Sunday, 1 = Monday
    streak_break_on_miss: bool = True
    show_achievements: bool = True

    def __post_init__(self) -> None:
        if self.weekly_goal < 1:
            raise ValueError(f"weekly goal must be at least 1, got {self.weekly_goal}")
        if not 0 <= self.start_of_week <= 6:
            raise ValueError(f"start of week must be 0-6, got {self.start_of_week}")

    @classmethod
    def from_dict(cls, data: Any) -> "Settings":
        data = _expect_dict(data, "settings")
        defaults = cls()
        try:
            unit = WeightUnit(data.get("weightUnit", defaults.weight_unit.value))
        except ValueError:
            raise InvalidDataError(f"Unknown weight unit: {data.get('weightUnit')!r}")
        try:
            return cls(
                weekly_goal=_get_int(data, "weeklyGoal", "settings", defaults.weekly_goal),
                weight_unit=unit,
                start_of_week=_get_int(data, "startOfWeek", "settings", defaults.start_of_week),
                streak_break_on_miss=_get_bool(
                    data, "streakBreakOnMiss", "settings", defaults.streak_break_on_miss
                ),
                show_achievements=_get_bool(
                    data, "showAchievements", "settings", defaults.show_achievements
                ),
            )
        except InvalidDataError:
            raise
        except ValueError as e:
            raise InvalidDataError(str(e))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weeklyGoal": self.weekly_goal,
            "streakBreakOnMiss": self.streak_break_on_miss,
            "showAchievements": self.show_achievements,
            "weightUnit": self.weight_unit.value,
            "startOfWeek": self.start_of_week,
        }


@dataclass
class AchievementStats:
    """Aggregate statistics snapshot the achievement rules are evaluated against."""

    total_workouts: int = 0
    total_volume: float = 0
    current_streak: int = 0
    total_prs: int = 0
    unique_exercises: int = 0
    weeks_goal_met: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "AchievementStats":
        data = _expect_dict(data, "achievements.stats")
        what = "achievements.stats"
        return cls(
            total_workouts=_get_int(data, "totalWorkouts", what),
            total_volume=_get_number(data, "totalVolume", what),
            current_streak=_get_int(data, "currentStreak", what),
            total_prs=_get_int(data, "totalPRs", what),
            unique_exercises=_get_int(data, "uniqueExercises", what),
            weeks_goal_met=_get_int(data, "weeksGoalMet", what),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalWorkouts": self.total_workouts,
            "totalVolume": self.total_volume,
            "currentStreak": self.current_streak,
            "totalPRs": self.total_prs,
            "uniqueExercises": self.unique_exercises,
            "weeksGoalMet": self.weeks_goal_met,
        }


@dataclass
class AchievementState:
    """Unlocked achievement ids and when each was unlocked."""

    unlocked: List[str] = field(default_factory=list)
    unlocked_at: Dict[str, str] = field(default_factory=dict)
    stats: AchievementStats = field(default_factory=AchievementStats)

    def is_unlocked(self, achievement_id: str) -> bool:
        return achievement_id in self.unlocked

    def unlock(self, achievement_id: str, now: datetime) -> bool:
        """
        Unlock an achievement once.

        Returns:
            True if the id was newly unlocked, False if it already was.
        """
        if achievement_id in self.unlocked:
            return False
        self.unlocked.append(achievement_id)
        self.unlocked_at[achievement_id] = format_timestamp(now)
        return True

    @classmethod
    def from_dict(cls, data: Any) -> "AchievementState":
        data = _expect_dict(data, "achievements")
        unlocked = _expect_list(data.get("unlocked", []), "achievements.unlocked")
        unlocked_at = _expect_dict(data.get("unlockedAt") or {}, "achievements.unlockedAt")
        if not all(isinstance(u, str) for u in unlocked):
            raise InvalidDataError("achievements.unlocked must contain ids")
        if not all(isinstance(v, str) for v in unlocked_at.values()):
            raise InvalidDataError("achievements.unlockedAt must map ids to timestamps")
        stats = data.get("stats")
        return cls(
            unlocked=list(dict.fromkeys(unlocked)),
            unlocked_at=dict(unlocked_at),
            stats=AchievementStats.from_dict(stats) if stats is not None else AchievementStats(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unlocked": list(self.unlocked),
            "unlockedAt": dict(self.unlocked_at),
            "stats": self.stats.to_dict(),
        }


# =============================================================================
# PLANNER AND DRAFTS
# =============================================================================


@dataclass
class PlannedDay:
    """Recurring plan for one weekday."""

    type: str
    name: str
    preset_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PlannedDay":
        data = _expect_dict(data, "planner.weeklyPlan entry")
        what = "planner.weeklyPlan entry"
        return cls(
            type=_get_str(data, "type", what, default=""),
            name=_get_str(data, "name", what, default=""),
            preset_id=_get_optional_str(data, "presetId", what),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type, "name": self.name}
        if self.preset_id is not None:
            data["presetId"] = self.preset_id
        return data


@dataclass
class ScheduledWorkout:
    """A one-off workout scheduled for a specific date."""

    date: date
    name: str
    type: Optional[str] = None
    preset_id: Optional[str] = None
    id: str = field(default_factory=generate_id)

    @classmethod
    def from_dict(cls, data: Any) -> "ScheduledWorkout":
        data = _expect_dict(data, "scheduled workout")
        what = "scheduled workout"
        return cls(
            id=_get_str(data, "id", what),
            date=_get_date(data, "date", what),
            name=_get_str(data, "name", what),
            type=_get_optional_str(data, "type", what),
            preset_id=_get_optional_str(data, "presetId", what),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "date": self.date.isoformat(), "name": self.name}
        if self.type is not None:
            data["type"] = self.type
        if self.preset_id is not None:
            data["presetId"] = self.preset_id
        return data


# weekday keys follow the stored convention: 0 = Sunday ... 6 = Saturday
WEEKDAYS = range(7)


@dataclass
class Planner:
    """Recurring weekly plan plus one-off scheduled workouts."""

    weekly_plan: Dict[int, Optional[PlannedDay]] = field(
        default_factory=lambda: {day: None for day in WEEKDAYS}
    )
    scheduled_workouts: List[ScheduledWorkout] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "Planner":
        data = _expect_dict(data, "planner")
        raw_plan = _expect_dict(data.get("weeklyPlan") or {}, "planner.weeklyPlan")
        weekly_plan: Dict[int, Optional[PlannedDay]] = {day: None for day in WEEKDAYS}
        for key, entry in raw_plan.items():
            try:
                day = int(key)
            except ValueError:
                raise InvalidDataError(f"planner.weeklyPlan has invalid weekday {key!r}")
            if day not in WEEKDAYS:
                raise InvalidDataError(f"planner.weeklyPlan has invalid weekday {key!r}")
            weekly_plan[day] = PlannedDay.from_dict(entry) if entry is not None else None
        scheduled = _expect_list(data.get("scheduledWorkouts") or [], "planner.scheduledWorkouts")
        return cls(
            weekly_plan=weekly_plan,
            scheduled_workouts=[ScheduledWorkout.from_dict(s) for s in scheduled],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weeklyPlan": {
                str(day): (plan.to_dict() if plan is not None else None)
                for day, plan in sorted(self.weekly_plan.items())
            },
            "scheduledWorkouts": [s.to_dict() for s in self.scheduled_workouts],
        }


@dataclass
class Draft:
    """An unsaved workout kept so logging can resume later."""

    workout: Workout
    saved_at: str

    @classmethod
    def from_dict(cls, data: Any) -> "Draft":
        data = _expect_dict(data, "draft")
        return cls(
            workout=Workout.from_dict({k: v for k, v in data.items() if k != "savedAt"}),
            saved_at=_get_str(data, "savedAt", "draft"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.workout.to_dict()
        data["savedAt"] = self.saved_at
        return data
