"""Comparison of a selected answer against the target notes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Iterable, Tuple

from earstaff.layout import round_half_up
from earstaff.pitch import Pitch, sort_pitches


@unique
class NoteStatus(Enum):
    """How a pitch fared in a validated answer."""

    Correct = "Correct"
    Incorrect = "Incorrect"
    Missed = "Missed"
    Unselected = "Unselected"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of comparing a selection with a target.

    Every collection is deduplicated and sorted from lowest to highest
    pitch, so equal inputs in any order give equal results.
    """

    target: Tuple[Pitch, ...]
    """The notes that should have been selected."""
    selected: Tuple[Pitch, ...]
    """The notes that were selected."""
    correctly_identified: Tuple[Pitch, ...]
    """Selected notes that are in the target."""
    missed: Tuple[Pitch, ...]
    """Target notes that were not selected."""
    incorrect: Tuple[Pitch, ...]
    """Selected notes that are not in the target."""
    accuracy: int
    """Percentage of target notes identified, 0 for an empty target."""
    is_correct: bool
    """Whether the selection equals the target as a set."""


def _normalize(pitches: Iterable[Pitch]) -> Tuple[Pitch, ...]:
    return tuple(sort_pitches(set(pitches)))


def validate(target: Iterable[Pitch], selected: Iterable[Pitch]) -> ValidationResult:
    """Compare a selection with a target.

    Neither input is mutated and duplicates are ignored.

    Args:
        target: The correct notes.
        selected: The notes the user chose.

    Returns:
        The validation result.
    """
    target_notes = _normalize(target)
    selected_notes = _normalize(selected)
    target_set = frozenset(target_notes)
    selected_set = frozenset(selected_notes)
    correct = tuple(p for p in selected_notes if p in target_set)
    missed = tuple(p for p in target_notes if p not in selected_set)
    incorrect = tuple(p for p in selected_notes if p not in target_set)
    if target_notes:
        accuracy = round_half_up(100 * len(correct) / len(target_notes))
    else:
        accuracy = 0
    return ValidationResult(
        target=target_notes,
        selected=selected_notes,
        correctly_identified=correct,
        missed=missed,
        incorrect=incorrect,
        accuracy=accuracy,
        is_correct=not missed and not incorrect,
    )


def feedback_message(result: ValidationResult) -> str:
    """Human-readable summary of a validation result."""
    if result.is_correct:
        return "Perfect! You identified all notes correctly."
    messages = []
    if result.correctly_identified:
        messages.append(
            f"You correctly identified {len(result.correctly_identified)} out of {len(result.target)} notes."
        )
    if result.missed:
        messages.append(f"You missed: {', '.join(str(p) for p in result.missed)}.")
    if result.incorrect:
        messages.append(
            f"Incorrect selections: {', '.join(str(p) for p in result.incorrect)}."
        )
    return " ".join(messages)


def note_status(pitch: Pitch, result: ValidationResult) -> NoteStatus:
    """Classify one pitch for feedback display."""
    if pitch in result.correctly_identified:
        return NoteStatus.Correct
    elif pitch in result.incorrect:
        return NoteStatus.Incorrect
    elif pitch in result.missed:
        return NoteStatus.Missed
    else:
        return NoteStatus.Unselected
