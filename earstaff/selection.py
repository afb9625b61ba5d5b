"""The set of pitches the user has placed on the staff.

Every routine failure (duplicate, absent pitch, capacity reached) is
reported as a False return so input handlers never need exception
handling for expected outcomes.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from earstaff.pitch import Pitch


class SelectionSet:
    """An ordered collection of unique pitches with an optional capacity.

    Uniqueness is by pitch value, so C4 and C#4 may both be present even
    though they share a staff position. While ``limit_enabled`` is set the
    size never exceeds ``max_notes``.
    """

    def __init__(
        self,
        max_notes: int,
        limit_enabled: bool = True,
        pitches: Optional[Iterable[Pitch]] = None,
    ) -> None:
        """Initialize the selection.

        Args:
            max_notes: Capacity enforced while ``limit_enabled`` is set.
            limit_enabled: Whether the capacity is enforced.
            pitches: Initial pitches, added in order through ``add``.

        Raises:
            ValueError: If ``max_notes`` is less than 1.
        """
        if max_notes < 1:
            raise ValueError(f"max_notes must be at least 1, got {max_notes}")
        self._max_notes = max_notes
        self._limit_enabled = limit_enabled
        self._pitches: List[Pitch] = []
        if pitches is not None:
            for pitch in pitches:
                self.add(pitch)

    @property
    def max_notes(self) -> int:
        return self._max_notes

    @property
    def limit_enabled(self) -> bool:
        return self._limit_enabled

    def __len__(self) -> int:
        return len(self._pitches)

    def __iter__(self) -> Iterator[Pitch]:
        return iter(list(self._pitches))

    def __contains__(self, pitch: object) -> bool:
        return pitch in self._pitches

    def __repr__(self) -> str:
        notes = ", ".join(str(p) for p in self._pitches)
        return f"SelectionSet([{notes}], max_notes={self._max_notes}, limit_enabled={self._limit_enabled})"

    def snapshot(self) -> Tuple[Pitch, ...]:
        """Immutable copy of the current pitches in insertion order."""
        return tuple(self._pitches)

    @property
    def remaining(self) -> Optional[int]:
        """Free slots, or None when the capacity is not enforced."""
        if not self._limit_enabled:
            return None
        return self._max_notes - len(self._pitches)

    def is_full(self) -> bool:
        """Whether an enforced capacity has been reached."""
        return self._limit_enabled and len(self._pitches) >= self._max_notes

    def can_add(self, pitch: Optional[Pitch] = None) -> bool:
        """Check whether ``add`` would succeed, without mutating.

        Args:
            pitch: The pitch to test. When omitted, only capacity is checked.
        """
        if pitch is not None and pitch in self._pitches:
            return False
        return not self.is_full()

    def add(self, pitch: Pitch) -> bool:
        """Append a pitch.

        Returns:
            False with no change if the pitch is present or the set is full.
        """
        if not self.can_add(pitch):
            return False
        self._pitches.append(pitch)
        return True

    def remove(self, pitch: Pitch) -> bool:
        """Remove a pitch.

        Returns:
            False with no change if the pitch is not present.
        """
        if pitch not in self._pitches:
            return False
        self._pitches.remove(pitch)
        return True

    def toggle(self, pitch: Pitch) -> bool:
        """Remove the pitch if present, otherwise add it.

        Returns:
            The success of the underlying ``remove`` or ``add``.
        """
        if pitch in self._pitches:
            return self.remove(pitch)
        else:
            return self.add(pitch)

    def remove_many(self, pitches: Iterable[Pitch]) -> None:
        """Remove each pitch that is present; absent pitches are skipped."""
        for pitch in list(pitches):
            self.remove(pitch)

    def replace(self, old: Pitch, new: Pitch) -> bool:
        """Swap one pitch for another in a single step, keeping its slot.

        The size does not change, so the capacity can never be exceeded.

        Returns:
            False with no change if ``old`` is absent or ``new`` is already
            present as a different entry.
        """
        if old not in self._pitches:
            return False
        if new == old:
            return True
        if new in self._pitches:
            return False
        self._pitches[self._pitches.index(old)] = new
        return True

    def at_position(self, pitch: Pitch) -> List[Pitch]:
        """Selected pitches written on the same line or space as ``pitch``."""
        return [p for p in self._pitches if p.same_position(pitch)]

    def clear(self) -> None:
        """Remove every pitch."""
        self._pitches.clear()

    def set_limit(self, max_notes: int, limit_enabled: bool) -> bool:
        """Change the capacity.

        Returns:
            False with no change if the new capacity is invalid or would
            already be exceeded by the current selection.
        """
        if max_notes < 1:
            return False
        if limit_enabled and len(self._pitches) > max_notes:
            logging.debug(
                "refusing capacity %d with %d notes selected",
                max_notes,
                len(self._pitches),
            )
            return False
        self._max_notes = max_notes
        self._limit_enabled = limit_enabled
        return True
