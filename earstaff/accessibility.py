"""Screen-reader text describing the staff and its state."""

from __future__ import annotations

from typing import Optional, Sequence

from earstaff.pitch import Pitch
from earstaff.pos import StaffPosition
from earstaff.validator import ValidationResult


def staff_label(selection: Sequence[Pitch], max_notes: int, keyboard_mode: bool) -> str:
    """Main label of the staff: purpose, note count and instructions."""
    count = f"{len(selection)} of {max_notes} notes selected"
    if keyboard_mode:
        instructions = (
            "Use arrow keys to navigate, Enter or Space to place notes, "
            "Delete to remove selected notes, Escape to exit keyboard mode"
        )
    else:
        instructions = "Click to place notes, Tab to enter keyboard mode"
    return f"Interactive music staff for note input. {count}. {instructions}"


def describe_position(position: StaffPosition) -> str:
    """Describe a position, e.g. ``C4 space`` or ``A5 line with ledger line``."""
    kind = "line" if position.is_line else "space"
    ledger = " with ledger line" if position.requires_ledger_line else ""
    return f"{position.pitch} {kind}{ledger}"


def staff_description(
    selection: Sequence[Pitch],
    focus: Optional[StaffPosition],
    hover: Optional[StaffPosition],
    keyboard_mode: bool,
    result: Optional[ValidationResult] = None,
) -> str:
    """Detailed description of the focus, hover, selection and any result."""
    parts = []
    if focus is not None and keyboard_mode:
        parts.append(f"Focused on {describe_position(focus)}.")
    if hover is not None and not keyboard_mode:
        parts.append(f"Hovering over {hover.pitch}.")
    if selection:
        parts.append(f"Selected notes: {', '.join(str(p) for p in selection)}.")
    if result is not None:
        parts.append("Answer is correct." if result.is_correct else "Answer is incorrect.")
    return " ".join(parts)
