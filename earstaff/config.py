"""Configuration for the staff interaction engine.

This module defines the root engine configuration, the enums that select
staff layout and note-matching behavior, and the user-facing game
settings that the persistence layer stores.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto, unique
from typing import Tuple

from earstaff import constants
from earstaff.pos import Clef


@unique
class StaffMode(Enum):
    """Which staves the engine maps input onto."""

    Single = auto()  # One staff with the configured clef
    Grand = auto()  # Treble and bass staves sharing a vertical reference


@unique
class PositionMatch(Enum):
    """What "a note at this position" means when placing a note.

    Exact compares whole pitches, so C4 and C#4 can both be selected on
    the same line. Diatonic treats any selected pitch with the same letter
    and octave as occupying the position.
    """

    Exact = auto()
    Diatonic = auto()


@dataclass(frozen=True)
class GameSettings:
    """Persisted user preferences for a quiz."""

    min_notes: int = 3
    """Smallest number of target notes per round."""
    max_notes: int = constants.DEFAULT_MAX_NOTES
    """Largest number of target notes per round."""
    volume: float = constants.DEFAULT_VOLUME
    """Playback volume (0-1)."""
    auto_replay: bool = False
    """Replay the target automatically at round start."""
    limit_notes: bool = False
    """Cap the selection at the round's target size."""


@dataclass(frozen=True)
class Config:
    """Root configuration for the engine.

    Line ranges are inclusive clamp bounds in line positions relative to
    each clef's bottom line.
    """

    staff_mode: StaffMode  # Single staff or grand staff
    clef: Clef  # Clef of the single staff (ignored for the grand staff)
    treble_range: Tuple[int, int]  # Clamp range on the treble staff
    bass_range: Tuple[int, int]  # Clamp range on the bass staff
    margin_spaces: float  # Interactive margin in line spacings
    max_notes: int  # Selection capacity
    limit_enabled: bool  # Whether the capacity is enforced
    position_match: PositionMatch  # Placement matching rule

    def line_range(self, clef: Clef) -> Tuple[int, int]:
        """Clamp range for a clef."""
        return self.treble_range if clef == Clef.Treble else self.bass_range

    def with_settings(self, settings: GameSettings) -> Config:
        """Apply capacity settings from persisted game settings."""
        return replace(
            self, max_notes=settings.max_notes, limit_enabled=settings.limit_notes
        )

    @classmethod
    def from_settings(cls, settings: GameSettings) -> Config:
        """Default configuration with capacity taken from game settings."""
        return init_config().with_settings(settings)


def init_config(
    staff_mode: StaffMode = StaffMode.Single,
    clef: Clef = Clef.Treble,
    max_notes: int = constants.DEFAULT_MAX_NOTES,
    limit_enabled: bool = False,
    position_match: PositionMatch = PositionMatch.Exact,
) -> Config:
    """Initialize a configuration with default ranges and margins.

    Args:
        staff_mode: Single staff or grand staff.
        clef: Clef used for a single staff.
        max_notes: Selection capacity.
        limit_enabled: Whether the capacity is enforced.
        position_match: Placement matching rule.

    Returns:
        A Config with the default -6..14 range on both clefs.
    """
    return Config(
        staff_mode=staff_mode,
        clef=clef,
        treble_range=constants.DEFAULT_LINE_RANGE,
        bass_range=constants.DEFAULT_LINE_RANGE,
        margin_spaces=constants.DEFAULT_MARGIN_SPACES,
        max_notes=max_notes,
        limit_enabled=limit_enabled,
        position_match=position_match,
    )
