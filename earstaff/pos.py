"""Staff positions and the diatonic arithmetic behind them.

A line position counts diatonic steps up from the bottom line of a staff.
Each clef fixes which pitch sits on that bottom line (its anchor), from
which every other position follows by letter stepping.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Generator

from earstaff import constants
from earstaff.base import MatchException
from earstaff.pitch import NOTE_CLASS_LOOKUP, NoteClass, Pitch


@unique
class Clef(Enum):
    """Staff clefs supported by the engine."""

    Treble = "treble"
    Bass = "bass"

    @property
    def anchor(self) -> Pitch:
        """Pitch of the bottom staff line (line position 0)."""
        if self == Clef.Treble:
            return Pitch.natural(NoteClass.E, 4)
        elif self == Clef.Bass:
            return Pitch.natural(NoteClass.G, 2)
        else:
            raise MatchException(self)


def pitch_at(clef: Clef, line_position: int) -> Pitch:
    """Natural pitch sounding at a line position of a clef.

    Args:
        clef: The staff's clef.
        line_position: Diatonic steps above the bottom line.

    Returns:
        The natural pitch at that position.
    """
    anchor = clef.anchor
    steps = anchor.note_class.value + line_position
    octave = anchor.octave + steps // constants.NUM_LETTERS
    letter = NOTE_CLASS_LOOKUP[steps % constants.NUM_LETTERS]
    return Pitch.natural(letter, octave)


def line_position_of(clef: Clef, pitch: Pitch) -> int:
    """Line position where a pitch is written on a clef, ignoring accidentals."""
    return pitch.diatonic - clef.anchor.diatonic


def is_line(line_position: int) -> bool:
    """Check whether a line position is a line rather than a space."""
    return line_position % 2 == 0


def requires_ledger_line(line_position: int) -> bool:
    """Check whether a line position lies outside the five-line staff."""
    return (
        line_position < constants.STAFF_LOW_LINE
        or line_position > constants.STAFF_HIGH_LINE
    )


def ledger_line_count(line_position: int) -> int:
    """Number of ledger lines drawn to reach a line position."""
    if line_position < constants.STAFF_LOW_LINE:
        return (constants.STAFF_LOW_LINE - line_position) // 2
    elif line_position > constants.STAFF_HIGH_LINE:
        return (line_position - constants.STAFF_HIGH_LINE) // 2
    else:
        return 0


@dataclass(frozen=True)
class StaffPosition:
    """A discrete vertical slot on a staff together with its pitch.

    The pitch is always natural when produced from geometry; positions
    built from an existing pitch keep that pitch's accidental.
    """

    line_position: int
    """Diatonic steps above the bottom line (even: line, odd: space)."""
    is_line: bool
    """Whether the position is a line rather than a space."""
    requires_ledger_line: bool
    """Whether the position is outside the native five-line span."""
    clef: Clef
    """The staff this position belongs to."""
    pitch: Pitch
    """The pitch written at this position."""

    @classmethod
    def at(cls, clef: Clef, line_position: int) -> StaffPosition:
        """Build the natural position at a line position of a clef."""
        return cls(
            line_position=line_position,
            is_line=is_line(line_position),
            requires_ledger_line=requires_ledger_line(line_position),
            clef=clef,
            pitch=pitch_at(clef, line_position),
        )

    @classmethod
    def for_pitch(cls, clef: Clef, pitch: Pitch) -> StaffPosition:
        """Build the position where a pitch is written, keeping its accidental."""
        line_position = line_position_of(clef, pitch)
        return cls(
            line_position=line_position,
            is_line=is_line(line_position),
            requires_ledger_line=requires_ledger_line(line_position),
            clef=clef,
            pitch=pitch,
        )

    @staticmethod
    def iter_range(
        clef: Clef, low: int, high: int
    ) -> Generator[StaffPosition, None, None]:
        """Iterate over positions from low to high, inclusive.

        Yields:
            StaffPosition instances in ascending pitch order.
        """
        for line_position in range(low, high + 1):
            yield StaffPosition.at(clef, line_position)
