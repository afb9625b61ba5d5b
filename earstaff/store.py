"""Persistence of game settings and answer statistics.

Both managers keep JSON documents in a KeyValueStore. The documents are
pydantic models; stored data that cannot be decoded or fails validation
is discarded with a warning and defaults are used instead, so a corrupt
store never stops a game.
"""

from __future__ import annotations

import logging
import time
from abc import ABCMeta, abstractmethod
from dataclasses import asdict, dataclass
from typing import Annotated, Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    ValidationError,
    model_validator,
)

from earstaff import constants
from earstaff.config import GameSettings
from earstaff.pitch import Pitch
from earstaff.validator import ValidationResult

M = TypeVar("M", bound=BaseModel)
"""Type variable for stored document models."""


class KeyValueStore(metaclass=ABCMeta):
    """String storage keyed by name."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Stored value, or None if absent."""
        raise NotImplementedError()

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key; absent keys are ignored."""
        raise NotImplementedError()


class MemoryStore(KeyValueStore):
    """A store kept in a dictionary."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial) if initial is not None else {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


def _to_pitch(value: Any) -> Pitch:
    if isinstance(value, Pitch):
        return value
    if not isinstance(value, str):
        raise ValueError("pitch must be a string")
    return Pitch.parse(value)


PitchText = Annotated[Pitch, PlainValidator(_to_pitch), PlainSerializer(str, return_type=str)]
"""A Pitch stored as its display text, e.g. ``C#4``."""


def _load_model(store: KeyValueStore, key: str, model: Type[M]) -> Optional[M]:
    """Decode a stored document, removing it if it is invalid."""
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        logging.warning(
            "Discarding stored %s: %d error(s), first: %s",
            key,
            e.error_count(),
            e.errors()[0]["msg"],
        )
        store.remove(key)
        return None


MIN_MAX_ERROR = "min_notes must be equal to or less than max_notes"

_TYPE_ERRORS = {
    "min_notes": "min_notes must be an integer",
    "max_notes": "max_notes must be an integer",
    "volume": "volume must be a number",
    "auto_replay": "auto_replay must be a boolean",
    "limit_notes": "limit_notes must be a boolean",
}

_RANGE_ERRORS = {
    "min_notes": f"min_notes must be between {constants.MIN_NOTE_COUNT} and {constants.MAX_NOTE_COUNT}",
    "max_notes": f"max_notes must be between {constants.MIN_NOTE_COUNT} and {constants.MAX_NOTE_COUNT}",
    "volume": "volume must be between 0 and 1",
}

_RANGE_ERROR_TYPES = frozenset(["greater_than_equal", "less_than_equal"])

_DEFAULTS = GameSettings()


class StoredSettings(BaseModel):
    """On-disk form of GameSettings. Absent fields take the defaults."""

    model_config = ConfigDict(strict=True, frozen=True)

    min_notes: int = Field(
        _DEFAULTS.min_notes, ge=constants.MIN_NOTE_COUNT, le=constants.MAX_NOTE_COUNT
    )
    max_notes: int = Field(
        _DEFAULTS.max_notes, ge=constants.MIN_NOTE_COUNT, le=constants.MAX_NOTE_COUNT
    )
    volume: float = Field(_DEFAULTS.volume, ge=0.0, le=1.0)
    auto_replay: bool = _DEFAULTS.auto_replay
    limit_notes: bool = _DEFAULTS.limit_notes

    @model_validator(mode="after")
    def min_not_above_max(self) -> StoredSettings:
        if self.min_notes > self.max_notes:
            raise ValueError(MIN_MAX_ERROR)
        return self

    def to_settings(self) -> GameSettings:
        return GameSettings(
            min_notes=self.min_notes,
            max_notes=self.max_notes,
            volume=float(self.volume),
            auto_replay=self.auto_replay,
            limit_notes=self.limit_notes,
        )


def settings_errors(error: ValidationError) -> List[str]:
    """Readable messages for a failed StoredSettings validation."""
    messages: List[str] = []
    for detail in error.errors():
        loc = detail["loc"]
        name = str(loc[0]) if loc else ""
        if detail["type"] == "value_error":
            ctx = detail.get("ctx") or {}
            message = str(ctx.get("error", detail["msg"]))
        elif detail["type"] in _RANGE_ERROR_TYPES and name in _RANGE_ERRORS:
            message = _RANGE_ERRORS[name]
        elif name in _TYPE_ERRORS:
            message = _TYPE_ERRORS[name]
        else:
            message = f"{name}: {detail['msg']}" if name else detail["msg"]
        if message not in messages:
            messages.append(message)
    return messages


@dataclass(frozen=True)
class SettingsValidation:
    """Outcome of validating raw settings data."""

    errors: List[str]
    """Problems found, empty when valid."""
    settings: Optional[GameSettings]
    """The validated settings (missing fields defaulted) when valid."""

    @property
    def is_valid(self) -> bool:
        return not self.errors


class SettingsManager:
    """Loads and saves GameSettings."""

    def __init__(self, store: KeyValueStore, key: str = constants.SETTINGS_KEY) -> None:
        self._store = store
        self._key = key

    @staticmethod
    def defaults() -> GameSettings:
        return GameSettings()

    @staticmethod
    def validate(data: Mapping[str, Any]) -> SettingsValidation:
        """Check raw settings data, filling absent fields with defaults.

        Args:
            data: Mapping with any of the GameSettings field names.

        Returns:
            The errors found and, when there are none, the settings.
        """
        try:
            stored = StoredSettings.model_validate(dict(data))
        except ValidationError as e:
            return SettingsValidation(settings_errors(e), None)
        return SettingsValidation([], stored.to_settings())

    def load(self) -> GameSettings:
        """Stored settings, or defaults if none are stored or they are invalid."""
        stored = _load_model(self._store, self._key, StoredSettings)
        if stored is None:
            return self.defaults()
        return stored.to_settings()

    def save(self, settings: GameSettings) -> bool:
        """Store settings.

        Returns:
            False if the settings are invalid; nothing is stored then.
        """
        try:
            stored = StoredSettings.model_validate(asdict(settings))
        except ValidationError as e:
            logging.error("Refusing to save settings: %s", ", ".join(settings_errors(e)))
            return False
        self._store.set(self._key, stored.model_dump_json())
        return True

    def reset(self) -> GameSettings:
        """Forget stored settings and return the defaults."""
        self._store.remove(self._key)
        return self.defaults()


class SessionRecorder(metaclass=ABCMeta):
    """Anything that records submitted answers."""

    @abstractmethod
    def record(self, result: ValidationResult, difficulty: int) -> None:
        raise NotImplementedError()


class SessionRecord(BaseModel):
    """One submitted answer."""

    model_config = ConfigDict(strict=True, frozen=True)

    timestamp: float
    """Seconds since the epoch."""
    difficulty: int = Field(ge=0)
    """Number of target notes."""
    correct: bool
    """Whether the answer matched the target exactly."""
    target: List[PitchText]
    """The notes played."""
    answer: List[PitchText]
    """The notes selected."""


@dataclass(frozen=True)
class DifficultyStats:
    attempts: int
    correct: int
    accuracy: int


class UserStatistics(BaseModel):
    """Running totals and the (capped) session history."""

    model_config = ConfigDict(strict=True)

    total_attempts: int = Field(0, ge=0)
    correct_answers: int = Field(0, ge=0)
    history: List[SessionRecord] = Field(default_factory=list)


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return (200 * part + whole) // (2 * whole)


class StatisticsTracker(SessionRecorder):
    """Records answers and derives accuracy figures from them."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = constants.STATISTICS_KEY,
        clock: Callable[[], float] = time.time,
        max_history: int = constants.MAX_HISTORY_SIZE,
    ) -> None:
        """Initialize the tracker.

        Args:
            store: Where statistics are kept.
            key: Storage key.
            clock: Source of record timestamps.
            max_history: Number of most recent sessions kept.
        """
        self._store = store
        self._key = key
        self._clock = clock
        self._max_history = max_history

    def load(self) -> UserStatistics:
        """Stored statistics, or empty ones if absent or invalid."""
        stats = _load_model(self._store, self._key, UserStatistics)
        return stats if stats is not None else UserStatistics()

    def _save(self, stats: UserStatistics) -> None:
        kept = stats.model_copy(update={"history": stats.history[-self._max_history:]})
        self._store.set(self._key, kept.model_dump_json())

    def record_session(
        self,
        difficulty: int,
        correct: bool,
        target: List[Pitch],
        answer: List[Pitch],
    ) -> UserStatistics:
        """Append a session and update the totals.

        Returns:
            The updated statistics.
        """
        stats = self.load()
        record = SessionRecord(
            timestamp=float(self._clock()),
            difficulty=difficulty,
            correct=correct,
            target=list(target),
            answer=list(answer),
        )
        stats.total_attempts += 1
        if correct:
            stats.correct_answers += 1
        stats.history = (stats.history + [record])[-self._max_history:]
        self._save(stats)
        logging.debug("Recorded session: difficulty %d, correct %s", difficulty, correct)
        return stats

    def record(self, result: ValidationResult, difficulty: int) -> None:
        self.record_session(difficulty, result.is_correct, list(result.target), list(result.selected))

    def overall_accuracy(self) -> int:
        stats = self.load()
        return _percent(stats.correct_answers, stats.total_attempts)

    def accuracy_by_difficulty(self) -> Dict[int, int]:
        """Percentage of correct answers per difficulty in the kept history."""
        totals: Dict[int, List[int]] = {}
        for record in self.load().history:
            counts = totals.setdefault(record.difficulty, [0, 0])
            counts[1] += 1
            if record.correct:
                counts[0] += 1
        return {d: _percent(c, t) for d, (c, t) in sorted(totals.items())}

    def recent_sessions(self, count: int = 10) -> List[SessionRecord]:
        """The last ``count`` sessions, newest first."""
        if count <= 0:
            return []
        history = self.load().history[-count:]
        return sorted(history, key=lambda r: r.timestamp, reverse=True)

    def difficulty_stats(self, difficulty: int) -> DifficultyStats:
        sessions = [r for r in self.load().history if r.difficulty == difficulty]
        correct = sum(1 for r in sessions if r.correct)
        return DifficultyStats(len(sessions), correct, _percent(correct, len(sessions)))

    def reset(self) -> UserStatistics:
        self._store.remove(self._key)
        return UserStatistics()
