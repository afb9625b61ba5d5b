"""Generation of quiz rounds: a random target and an empty answer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from random import Random
from typing import List, Tuple

from earstaff import constants
from earstaff.config import Config, GameSettings
from earstaff.pitch import Accidental, Pitch, sort_pitches
from earstaff.selection import SelectionSet


def random_target(
    rng: Random,
    count: int,
    low: int = constants.DEFAULT_LOW_MIDI,
    high: int = constants.DEFAULT_HIGH_MIDI,
    accidentals: bool = False,
    prefer_flats: bool = False,
) -> List[Pitch]:
    """Draw distinct pitches from a MIDI note range.

    Args:
        rng: Random source.
        count: Number of pitches.
        low: Lowest MIDI note, inclusive.
        high: Highest MIDI note, inclusive.
        accidentals: Whether black keys may be drawn.
        prefer_flats: Spell black keys with flats.

    Returns:
        The pitches from lowest to highest.

    Raises:
        ValueError: If count is not positive or exceeds the candidates.
    """
    if count < 1:
        raise ValueError(f"count must be positive, got {count}")
    candidates = [Pitch.from_midi(n, prefer_flats) for n in range(low, high + 1)]
    if not accidentals:
        candidates = [p for p in candidates if p.accidental == Accidental.Natural]
    if count > len(candidates):
        raise ValueError(f"cannot draw {count} notes from {len(candidates)} candidates")
    return sort_pitches(rng.sample(candidates, count))


@dataclass(frozen=True)
class QuizRound:
    """One question: the notes played and the answer being built."""

    target: Tuple[Pitch, ...]
    """Notes the player must identify."""
    selection: SelectionSet
    """The player's answer."""

    @property
    def difficulty(self) -> int:
        return len(self.target)

    @classmethod
    def new_round(cls, settings: GameSettings, rng: Random) -> QuizRound:
        """Start a round sized between the settings' minimum and maximum.

        With ``limit_notes`` the selection is capped at the target size.
        """
        count = rng.randint(settings.min_notes, settings.max_notes)
        target = tuple(random_target(rng, count))
        selection = SelectionSet(count, limit_enabled=settings.limit_notes)
        logging.info("new round with %d notes", count)
        return cls(target, selection)

    def apply(self, config: Config) -> Config:
        """Configuration whose capacity matches this round's selection."""
        return replace(
            config,
            max_notes=self.selection.max_notes,
            limit_enabled=self.selection.limit_enabled,
        )
