"""
Local record store.

A flat key-value store with one JSON document per key, and the workout
store built on top of it. Every write replaces a whole collection; there
are no transactions and no partial updates.
"""

import copy
import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .achievements import ACHIEVEMENTS_BY_ID, Achievement, collect_stats, evaluate_achievements
from .analyzer import detect_prs
from .models import (
    AchievementState,
    Draft,
    InvalidDataError,
    PlannedDay,
    Planner,
    Preset,
    ScheduledWorkout,
    Settings,
    Workout,
    format_timestamp,
    generate_id,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

STORAGE_KEYS = {
    "workouts": "zenfit_workouts",
    "presets": "zenfit_presets",
    "settings": "zenfit_settings",
    "achievements": "zenfit_achievements",
    "planner": "zenfit_planner",
    "drafts": "zenfit_drafts",
}

# top-level collections carried by export documents, in write order
EXPORT_COLLECTIONS = ("workouts", "presets", "settings", "achievements", "planner")


class StorageError(OSError):
    """Raised when a value cannot be written to storage."""


def _local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


class LocalStorage:
    """Synchronous key-value store backed by JSON files in a directory."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Returns:
            The decoded value, or None if the key is missing.

        Raises:
            StorageError: If the key exists but cannot be read or decoded.
                The stored file is left as it is.
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {key} from {path}: {e}")
            raise StorageError(f"Could not read {key}: {e}") from e

    def set_item(self, key: str, value: Any) -> None:
        """
        Write a value, replacing the previous one atomically.

        Raises:
            StorageError: If the value could not be written. The
                previously stored value is left intact.
        """
        try:
            payload = json.dumps(value, indent=2).encode()
        except (TypeError, ValueError) as e:
            logger.error(f"Error encoding {key}: {e}")
            raise StorageError(f"Could not write {key}: {e}") from e
        self._write(key, payload)

    def _write(self, key: str, payload: bytes) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Error writing {key} to {path}: {e}")
            raise StorageError(f"Could not write {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def snapshot(self, key: str) -> Optional[bytes]:
        """Raw stored bytes of a key, readable or not. None if missing."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Could not read {key}: {e}") from e

    def restore(self, key: str, snapshot: Optional[bytes]) -> None:
        """Put back a key exactly as captured by ``snapshot``."""
        if snapshot is None:
            self.remove_item(key)
        else:
            self._write(key, snapshot)


class WorkoutStore:
    """
    Workouts, presets, settings, achievements, planner and drafts.

    Parameters:
        storage: Underlying key-value store.
        clock: Returns the current time; used for record timestamps and
               for "today" in analytics. Defaults to the local wall clock.
    """

    def __init__(self, storage: LocalStorage, clock: Optional[Callable[[], datetime]] = None):
        self._storage = storage
        self._clock = clock or _local_now

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def _timestamp(self) -> str:
        return format_timestamp(self.now())

    # -------------------------------------------------------------------------
    # collections
    # -------------------------------------------------------------------------

    def _load_list(self, name: str, parser: Callable[[Any], T]) -> List[T]:
        data = self._storage.get_item(STORAGE_KEYS[name])
        if data is None:
            return []
        if not isinstance(data, list):
            raise InvalidDataError(f"Stored {name} is not a list")
        return [parser(item) for item in data]

    def _save_list(self, name: str, records: List[Any]) -> None:
        self._storage.set_item(STORAGE_KEYS[name], [r.to_dict() for r in records])

    # -------------------------------------------------------------------------
    # workouts
    # -------------------------------------------------------------------------

    def list_workouts(self) -> List[Workout]:
        """All stored workouts, in storage order."""
        return self._load_list("workouts", Workout.from_dict)

    def get_workout(self, workout_id: str) -> Optional[Workout]:
        return next((w for w in self.list_workouts() if w.id == workout_id), None)

    def save_workout(self, workout: Workout) -> Workout:
        """
        Insert or update a workout, matched by id.

        New workouts get an id if they lack one, and both timestamps.
        Updates keep the stored creation time and refresh ``updated_at``.

        Returns:
            The workout as stored.
        """
        workouts = self.list_workouts()
        stamp = self._timestamp()
        index = next(
            (i for i, w in enumerate(workouts) if workout.id is not None and w.id == workout.id),
            None,
        )

        if index is not None:
            saved = replace(
                workout,
                created_at=workout.created_at or workouts[index].created_at,
                updated_at=stamp,
            )
            workouts[index] = saved
        else:
            saved = replace(
                workout, id=workout.id or generate_id(), created_at=stamp, updated_at=stamp
            )
            workouts.append(saved)

        self._save_list("workouts", workouts)
        logger.info(f"Saved workout {saved.id} ({saved.title})")
        return saved

    def log_workout(self, workout: Workout) -> Workout:
        """
        Save a workout, freezing its PRs the first time it is saved.

        PRs are detected against the stored history only for new
        workouts; editing a stored workout keeps the PRs it was saved with.
        """
        history = self.list_workouts()
        existing = next(
            (w for w in history if workout.id is not None and w.id == workout.id), None
        )

        if existing is None:
            prs = detect_prs(workout, history)
        else:
            prs = existing.prs

        return self.save_workout(replace(workout, prs=prs))

    def delete_workout(self, workout_id: str) -> bool:
        """Delete a workout. Returns False if no workout had this id."""
        workouts = self.list_workouts()
        remaining = [w for w in workouts if w.id != workout_id]
        if len(remaining) == len(workouts):
            return False
        self._save_list("workouts", remaining)
        logger.info(f"Deleted workout {workout_id}")
        return True

    def duplicate_workout(self, workout_id: str) -> Optional[Workout]:
        """Copy a workout to today with a new id."""
        original = self.get_workout(workout_id)
        if original is None:
            return None

        duplicate = replace(
            copy.deepcopy(original),
            id=generate_id(),
            title=f"{original.title} (Copy)",
            date=self.today(),
            is_favorite=False,
            created_at=None,
            updated_at=None,
        )
        return self.save_workout(duplicate)

    def toggle_favorite(self, workout_id: str) -> Optional[Workout]:
        workout = self.get_workout(workout_id)
        if workout is None:
            return None
        return self.save_workout(replace(workout, is_favorite=not workout.is_favorite))

    # -------------------------------------------------------------------------
    # presets
    # -------------------------------------------------------------------------

    def list_presets(self) -> List[Preset]:
        return self._load_list("presets", Preset.from_dict)

    def get_preset(self, preset_id: str) -> Optional[Preset]:
        return next((p for p in self.list_presets() if p.id == preset_id), None)

    def presets_sorted(self) -> List[Preset]:
        """Favourites first, then alphabetical by name."""
        return sorted(self.list_presets(), key=lambda p: (not p.is_favorite, p.name.lower()))

    def save_preset(self, preset: Preset) -> Preset:
        presets = self.list_presets()
        stamp = self._timestamp()
        index = next(
            (i for i, p in enumerate(presets) if preset.id is not None and p.id == preset.id),
            None,
        )

        if index is not None:
            saved = replace(
                preset,
                created_at=preset.created_at or presets[index].created_at,
                updated_at=stamp,
            )
            presets[index] = saved
        else:
            saved = replace(preset, id=preset.id or generate_id(), created_at=stamp, updated_at=stamp)
            presets.append(saved)

        self._save_list("presets", presets)
        logger.info(f"Saved preset {saved.id} ({saved.name})")
        return saved

    def delete_preset(self, preset_id: str) -> bool:
        presets = self.list_presets()
        remaining = [p for p in presets if p.id != preset_id]
        if len(remaining) == len(presets):
            return False
        self._save_list("presets", remaining)
        return True

    def toggle_preset_favorite(self, preset_id: str) -> Optional[Preset]:
        preset = self.get_preset(preset_id)
        if preset is None:
            return None
        return self.save_preset(replace(preset, is_favorite=not preset.is_favorite))

    def duplicate_preset(self, preset_id: str) -> Optional[Preset]:
        original = self.get_preset(preset_id)
        if original is None:
            return None
        duplicate = replace(
            copy.deepcopy(original),
            id=generate_id(),
            name=f"{original.name} (Copy)",
            is_favorite=False,
            created_at=None,
            updated_at=None,
        )
        return self.save_preset(duplicate)

    # -------------------------------------------------------------------------
    # settings
    # -------------------------------------------------------------------------

    def get_settings(self) -> Settings:
        """Stored settings, or the defaults when none are stored or readable."""
        try:
            data = self._storage.get_item(STORAGE_KEYS["settings"])
            return Settings.from_dict(data) if data is not None else Settings()
        except (InvalidDataError, StorageError) as e:
            logger.warning(f"Ignoring invalid stored settings: {e}")
            return Settings()

    def save_settings(self, settings: Settings) -> Settings:
        self._storage.set_item(STORAGE_KEYS["settings"], settings.to_dict())
        return settings

    # -------------------------------------------------------------------------
    # achievements
    # -------------------------------------------------------------------------

    def get_achievements_state(self) -> AchievementState:
        data = self._storage.get_item(STORAGE_KEYS["achievements"])
        if data is None:
            return AchievementState()
        return AchievementState.from_dict(data)

    def save_achievements_state(self, state: AchievementState) -> AchievementState:
        self._storage.set_item(STORAGE_KEYS["achievements"], state.to_dict())
        return state

    def unlock_achievement(self, achievement_id: str) -> bool:
        """Unlock one achievement. Returns False if it was already unlocked."""
        if achievement_id not in ACHIEVEMENTS_BY_ID:
            raise ValueError(f"Unknown achievement: {achievement_id}")
        state = self.get_achievements_state()
        if not state.unlock(achievement_id, self.now()):
            return False
        self.save_achievements_state(state)
        return True

    def check_achievements(self) -> List[Achievement]:
        """Recompute statistics, unlock what they earn and persist the state."""
        workouts = self.list_workouts()
        stats = collect_stats(workouts, self.get_settings(), self.today())
        state = self.get_achievements_state()
        state.stats = stats
        fresh = evaluate_achievements(stats, state, self.now())
        self.save_achievements_state(state)
        return fresh

    # -------------------------------------------------------------------------
    # planner
    # -------------------------------------------------------------------------

    def get_planner(self) -> Planner:
        data = self._storage.get_item(STORAGE_KEYS["planner"])
        if data is None:
            return Planner()
        return Planner.from_dict(data)

    def save_planner(self, planner: Planner) -> Planner:
        self._storage.set_item(STORAGE_KEYS["planner"], planner.to_dict())
        return planner

    def set_day_plan(self, weekday: int, plan: Optional[PlannedDay]) -> Planner:
        """Set the recurring plan for a weekday (0 = Sunday)."""
        if not 0 <= weekday <= 6:
            raise ValueError(f"weekday must be 0-6, got {weekday}")
        if plan is not None and not (isinstance(plan.type, str) and isinstance(plan.name, str)):
            raise InvalidDataError("planned day needs a type and a name")
        planner = self.get_planner()
        planner.weekly_plan[weekday] = plan
        return self.save_planner(planner)

    def clear_day_plan(self, weekday: int) -> Planner:
        return self.set_day_plan(weekday, None)

    def schedule_workout(self, scheduled: ScheduledWorkout) -> Planner:
        planner = self.get_planner()
        planner.scheduled_workouts.append(scheduled)
        return self.save_planner(planner)

    def remove_scheduled_workout(self, scheduled_id: str) -> Planner:
        planner = self.get_planner()
        planner.scheduled_workouts = [
            s for s in planner.scheduled_workouts if s.id != scheduled_id
        ]
        return self.save_planner(planner)

    def plan_for_date(self, day: date) -> Dict[str, Any]:
        """Recurring plan, scheduled workout and logged workout for one date."""
        planner = self.get_planner()
        weekday = (day.weekday() + 1) % 7
        return {
            "weekly_plan": planner.weekly_plan.get(weekday),
            "scheduled": next((s for s in planner.scheduled_workouts if s.date == day), None),
            "completed": next((w for w in self.list_workouts() if w.date == day), None),
        }

    # -------------------------------------------------------------------------
    # drafts
    # -------------------------------------------------------------------------

    def get_draft(self) -> Optional[Draft]:
        try:
            data = self._storage.get_item(STORAGE_KEYS["drafts"])
            return Draft.from_dict(data) if data is not None else None
        except (InvalidDataError, StorageError) as e:
            logger.warning(f"Discarding unreadable draft: {e}")
            return None

    def save_draft(self, workout: Workout) -> Draft:
        draft = Draft(workout=workout, saved_at=self._timestamp())
        self._storage.set_item(STORAGE_KEYS["drafts"], draft.to_dict())
        return draft

    def clear_draft(self) -> None:
        self._storage.remove_item(STORAGE_KEYS["drafts"])

    # -------------------------------------------------------------------------
    # export / import
    # -------------------------------------------------------------------------

    def export_data(self) -> Dict[str, Any]:
        """Serialize every collection into a single backup document."""
        return {
            "workouts": [w.to_dict() for w in self.list_workouts()],
            "presets": [p.to_dict() for p in self.list_presets()],
            "settings": self.get_settings().to_dict(),
            "achievements": self.get_achievements_state().to_dict(),
            "planner": self.get_planner().to_dict(),
            "exportedAt": self._timestamp(),
        }

    def import_data(self, document: Any) -> List[str]:
        """
        Replace stored collections with those in a backup document.

        Each collection present in the document replaces the stored one;
        absent collections are left alone. The whole document is validated
        before anything is written.

        Raises:
            InvalidDataError: If any part of the document is malformed.
                Nothing is written.
            StorageError: If writing fails. Collections already written
                are restored to their previous values.

        Returns:
            Names of the collections that were replaced.
        """
        if not isinstance(document, dict):
            raise InvalidDataError("Import document must be an object")

        parsers = {
            "workouts": lambda d: [Workout.from_dict(w).to_dict() for w in _as_list(d, "workouts")],
            "presets": lambda d: [Preset.from_dict(p).to_dict() for p in _as_list(d, "presets")],
            "settings": lambda d: Settings.from_dict(d).to_dict(),
            "achievements": lambda d: AchievementState.from_dict(d).to_dict(),
            "planner": lambda d: Planner.from_dict(d).to_dict(),
        }

        parsed: Dict[str, Any] = {}
        try:
            for name in EXPORT_COLLECTIONS:
                if document.get(name) is not None:
                    parsed[name] = parsers[name](document[name])
        except InvalidDataError as e:
            raise InvalidDataError(f"Invalid data in {name}: {e}") from e

        previous = {name: self._storage.snapshot(STORAGE_KEYS[name]) for name in parsed}
        written = []
        try:
            for name, value in parsed.items():
                self._storage.set_item(STORAGE_KEYS[name], value)
                written.append(name)
        except StorageError:
            self._restore(previous, written)
            raise

        logger.info(f"Imported {', '.join(written) or 'nothing'}")
        return written

    def _restore(self, previous: Dict[str, Optional[bytes]], written: List[str]) -> None:
        for name in written:
            self._storage.restore(STORAGE_KEYS[name], previous[name])
        if written:
            logger.warning(f"Rolled back partial import of {', '.join(written)}")

    def export_to_file(self, filepath: Path) -> Dict[str, Any]:
        data = self.export_data()
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Exported {len(data['workouts'])} workouts to {filepath}")
        return data

    def import_from_file(self, filepath: Path) -> List[str]:
        try:
            with open(filepath) as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidDataError(f"{filepath} is not valid JSON: {e}") from e
        return self.import_data(document)


def _as_list(value: Any, name: str) -> List[Any]:
    if not isinstance(value, list):
        raise InvalidDataError(f"{name} must be a list")
    return value
