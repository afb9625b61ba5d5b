"""Pitch values and their textual encodings.

A Pitch is the one canonical note value used throughout the engine: a
letter, an accidental and an octave. String forms exist only at the
boundaries (display text, renderer keys, stored JSON) and are converted
here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Dict, Iterable, List, Tuple

from earstaff import constants
from earstaff.base import MatchException


@unique
class NoteClass(Enum):
    """The seven diatonic letter names.

    Values are the diatonic index within an octave, starting from C.
    """

    C = 0
    D = 1
    E = 2
    F = 3
    G = 4
    A = 5
    B = 6

    @property
    def semitone(self) -> int:
        """Semitone offset of the natural letter above C."""
        return _LETTER_SEMITONES[self]

    def add_steps(self, steps: int) -> NoteClass:
        """Move by diatonic steps, wrapping around the octave.

        Args:
            steps: Number of letter steps to move (can be negative).

        Returns:
            The resulting letter.
        """
        return NOTE_CLASS_LOOKUP[(self.value + steps) % constants.NUM_LETTERS]

    @staticmethod
    def from_letter(letter: str) -> NoteClass:
        """Look up a letter case-insensitively.

        Raises:
            ValueError: If the text is not one of A-G.
        """
        try:
            return NoteClass[letter.upper()]
        except KeyError:
            raise ValueError(f"Invalid note letter: {letter!r}") from None


_LETTER_SEMITONES: Dict[NoteClass, int] = {
    NoteClass.C: 0,
    NoteClass.D: 2,
    NoteClass.E: 4,
    NoteClass.F: 5,
    NoteClass.G: 7,
    NoteClass.A: 9,
    NoteClass.B: 11,
}

NOTE_CLASS_LOOKUP: Dict[int, NoteClass] = {n.value: n for n in NoteClass}
"""Lookup from diatonic index (0-6) to letter."""


@unique
class Accidental(Enum):
    """Chromatic alteration of a letter."""

    Natural = "natural"
    Sharp = "sharp"
    Flat = "flat"

    @property
    def delta(self) -> int:
        """Semitone alteration applied to the natural letter."""
        if self == Accidental.Natural:
            return 0
        elif self == Accidental.Sharp:
            return 1
        elif self == Accidental.Flat:
            return -1
        else:
            raise MatchException(self)

    @property
    def symbol(self) -> str:
        """Symbol used in display and renderer text."""
        if self == Accidental.Natural:
            return ""
        elif self == Accidental.Sharp:
            return "#"
        elif self == Accidental.Flat:
            return "b"
        else:
            raise MatchException(self)

    def cycle(self) -> Accidental:
        """Next accidental in the order natural, sharp, flat."""
        index = ACCIDENTAL_CYCLE.index(self)
        return ACCIDENTAL_CYCLE[(index + 1) % len(ACCIDENTAL_CYCLE)]

    @staticmethod
    def from_symbol(symbol: str) -> Accidental:
        """Parse a display symbol ("", "#" or "b").

        Raises:
            ValueError: If the symbol is not recognized.
        """
        for acc in Accidental:
            if acc.symbol == symbol:
                return acc
        raise ValueError(f"Invalid accidental symbol: {symbol!r}")


ACCIDENTAL_CYCLE: List[Accidental] = [
    Accidental.Natural,
    Accidental.Sharp,
    Accidental.Flat,
]
"""Order in which accidentals are cycled on a placed note."""

# Spelling of each chromatic semitone as (letter, accidental)
_SHARP_SPELLINGS: List[Tuple[NoteClass, Accidental]] = [
    (NoteClass.C, Accidental.Natural),
    (NoteClass.C, Accidental.Sharp),
    (NoteClass.D, Accidental.Natural),
    (NoteClass.D, Accidental.Sharp),
    (NoteClass.E, Accidental.Natural),
    (NoteClass.F, Accidental.Natural),
    (NoteClass.F, Accidental.Sharp),
    (NoteClass.G, Accidental.Natural),
    (NoteClass.G, Accidental.Sharp),
    (NoteClass.A, Accidental.Natural),
    (NoteClass.A, Accidental.Sharp),
    (NoteClass.B, Accidental.Natural),
]
_FLAT_SPELLINGS: List[Tuple[NoteClass, Accidental]] = [
    (NoteClass.C, Accidental.Natural),
    (NoteClass.D, Accidental.Flat),
    (NoteClass.D, Accidental.Natural),
    (NoteClass.E, Accidental.Flat),
    (NoteClass.E, Accidental.Natural),
    (NoteClass.F, Accidental.Natural),
    (NoteClass.G, Accidental.Flat),
    (NoteClass.G, Accidental.Natural),
    (NoteClass.A, Accidental.Flat),
    (NoteClass.A, Accidental.Natural),
    (NoteClass.B, Accidental.Flat),
    (NoteClass.B, Accidental.Natural),
]


@dataclass(frozen=True)
class Pitch:
    """An immutable musical pitch.

    Equality and hashing are structural, so C#4 and Db4 are different
    pitches even though they sound the same.
    """

    note_class: NoteClass
    """The letter name."""
    accidental: Accidental
    """The alteration of the letter."""
    octave: int
    """Scientific pitch octave (middle C is C4)."""

    @classmethod
    def natural(cls, note_class: NoteClass, octave: int) -> Pitch:
        """Create an unaltered pitch."""
        return cls(note_class, Accidental.Natural, octave)

    @property
    def midi(self) -> int:
        """MIDI note number, the monotonic pitch index (C4 is 60)."""
        return (
            (self.octave + 1) * constants.SEMITONES_PER_OCTAVE
            + self.note_class.semitone
            + self.accidental.delta
        )

    @property
    def diatonic(self) -> int:
        """Absolute diatonic step count (C0 is 0), ignoring the accidental."""
        return self.octave * constants.NUM_LETTERS + self.note_class.value

    def sort_key(self) -> Tuple[int, int]:
        """Ordering key: sounding pitch first, then spelling."""
        return (self.midi, self.diatonic)

    def same_position(self, other: Pitch) -> bool:
        """Check whether two pitches sit on the same staff line or space."""
        return self.diatonic == other.diatonic

    def with_accidental(self, accidental: Accidental) -> Pitch:
        """Copy with a different accidental."""
        return Pitch(self.note_class, accidental, self.octave)

    def cycle_accidental(self) -> Pitch:
        """Copy with the next accidental in the cycle."""
        return self.with_accidental(self.accidental.cycle())

    def to_vexflow(self) -> str:
        """Encode as a renderer key such as ``c#/4``."""
        return f"{self.note_class.name.lower()}{self.accidental.symbol}/{self.octave}"

    def __str__(self) -> str:
        return f"{self.note_class.name}{self.accidental.symbol}{self.octave}"

    @staticmethod
    def from_diatonic(index: int) -> Pitch:
        """Natural pitch at an absolute diatonic step count.

        Args:
            index: Diatonic steps above C0 (may be negative).
        """
        octave, letter = divmod(index, constants.NUM_LETTERS)
        return Pitch.natural(NOTE_CLASS_LOOKUP[letter], octave)

    @staticmethod
    def from_midi(note: int, prefer_flats: bool = False) -> Pitch:
        """Spell a MIDI note number.

        Args:
            note: MIDI note number.
            prefer_flats: Spell black keys with flats instead of sharps.
        """
        octave, offset = divmod(note, constants.SEMITONES_PER_OCTAVE)
        spellings = _FLAT_SPELLINGS if prefer_flats else _SHARP_SPELLINGS
        note_class, accidental = spellings[offset]
        return Pitch(note_class, accidental, octave - 1)

    @staticmethod
    def parse(text: str) -> Pitch:
        """Parse display text such as ``C4``, ``f#5`` or ``Bb3``.

        Parsing is case-insensitive for the letter; the flat sign is a
        lowercase ``b`` following the letter.

        Raises:
            ValueError: If the text is not a letter, optional accidental
                and integer octave.
        """
        s = text.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid pitch: {text!r}")
        note_class = NoteClass.from_letter(s[0])
        pos = 1
        accidental = Accidental.Natural
        if s[pos] in ("#", "b"):
            accidental = Accidental.from_symbol(s[pos])
            pos += 1
        octave_str = s[pos:]
        if not octave_str.lstrip("-").isdigit():
            raise ValueError(f"Invalid octave in pitch: {text!r}")
        return Pitch(note_class, accidental, int(octave_str))

    @staticmethod
    def from_vexflow(key: str) -> Pitch:
        """Parse a renderer key such as ``c#/4``.

        Raises:
            ValueError: If the key has no ``/`` separator or is malformed.
        """
        name, sep, octave = key.partition("/")
        if not sep:
            raise ValueError(f"Invalid renderer key: {key!r}")
        return Pitch.parse(name + octave)


def sort_pitches(pitches: Iterable[Pitch]) -> List[Pitch]:
    """Sort pitches from lowest to highest."""
    return sorted(pitches, key=Pitch.sort_key)
