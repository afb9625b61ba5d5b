"""Keyboard navigation over the valid staff positions.

The navigator is a two-state machine. In Idle the pointer drives the
interaction and nothing has keyboard focus; in Navigating a focused
position moves through a precomputed list of valid positions. Key presses
never act directly: each returns a NavEffects record describing what the
controller should do (place a note, delete notes, blur the surface).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import List, Optional, Sequence

from earstaff import constants
from earstaff.base import MatchException, Resettable
from earstaff.event import KeyEvent
from earstaff.pitch import NoteClass
from earstaff.pos import StaffPosition


@unique
class NavMode(Enum):
    Idle = auto()
    Navigating = auto()


@dataclass(frozen=True)
class KeyboardFocusState:
    """Observable keyboard state. Idle always has no focus."""

    mode: NavMode
    """Current navigation mode."""
    focused: Optional[StaffPosition]
    """Focused position while Navigating."""

    @classmethod
    def idle(cls) -> KeyboardFocusState:
        return cls(NavMode.Idle, None)

    @property
    def navigating(self) -> bool:
        return self.mode == NavMode.Navigating


@dataclass(frozen=True)
class NavEffects:
    """Actions a single key press asks the controller to perform."""

    handled: bool
    """Whether the key was recognized (hosts suppress default handling)."""
    focus_changed: bool = False
    """Whether the mode or focused position changed."""
    place: Optional[StaffPosition] = None
    """Position at which to place or toggle a note."""
    delete: bool = False
    """Whether the deletion handler should run."""
    blur: bool = False
    """Whether the host should blur the input surface."""

    @classmethod
    def ignored(cls) -> NavEffects:
        return cls(handled=False)


def letter_for_key(key: str) -> Optional[NoteClass]:
    """Pitch-class letter named by a single-character key, if any."""
    if len(key) == 1 and key.upper() in "ABCDEFG":
        return NoteClass.from_letter(key)
    return None


def is_recognized_key(key: str) -> bool:
    return key in constants.NAVIGATION_KEYS or letter_for_key(key) is not None


class KeyboardNavigator(Resettable):
    """Moves a keyboard focus through an ordered list of staff positions.

    The navigator is pure and synchronous: it invokes no callbacks and
    only the navigator itself mutates its focus state.
    """

    def __init__(self, positions: Optional[Sequence[StaffPosition]] = None, center_index: Optional[int] = None) -> None:
        self._positions: List[StaffPosition] = []
        self._center_index = 0
        self._mode = NavMode.Idle
        self._focus_index: Optional[int] = None
        if positions is not None:
            self.set_positions(positions, center_index)

    @property
    def positions(self) -> List[StaffPosition]:
        return list(self._positions)

    @property
    def mode(self) -> NavMode:
        return self._mode

    @property
    def focus_index(self) -> Optional[int]:
        return self._focus_index

    @property
    def state(self) -> KeyboardFocusState:
        if self._mode == NavMode.Idle or self._focus_index is None:
            return KeyboardFocusState.idle()
        else:
            return KeyboardFocusState(self._mode, self._positions[self._focus_index])

    def set_positions(self, positions: Sequence[StaffPosition], center_index: Optional[int] = None) -> None:
        """Install a new ordered list of valid positions.

        Always returns the navigator to Idle, since a previous focus may not
        exist in the new list.

        Args:
            positions: Valid positions, lowest pitch first.
            center_index: Index focused on activation; defaults to the middle.
        """
        self._positions = list(positions)
        if center_index is None:
            center_index = len(self._positions) // 2
        self._center_index = max(0, min(center_index, len(self._positions) - 1))
        self.reset()

    def reset(self) -> None:
        self._mode = NavMode.Idle
        self._focus_index = None

    def disable(self) -> bool:
        """Leave keyboard mode if active.

        Returns:
            Whether the state changed.
        """
        if self._mode == NavMode.Idle:
            return False
        logging.debug("keyboard navigation disabled")
        self.reset()
        return True

    def set_focus(self, position: StaffPosition) -> bool:
        """Focus a specific position, entering keyboard mode.

        Returns:
            False if the position is not in the valid list.
        """
        try:
            index = self._positions.index(position)
        except ValueError:
            return False
        self._activate(index)
        return True

    def set_focus_index(self, index: int) -> None:
        """Focus a position by index (clamped), entering keyboard mode."""
        if self._positions:
            self._activate(self._clamp(index))

    def move_focus(self, steps: int) -> bool:
        """Move the focus by a number of positions, clamping at both ends.

        Returns:
            Whether the focused position changed.
        """
        if self._focus_index is None:
            return False
        return self._set_index(self._clamp(self._focus_index + steps))

    def _clamp(self, index: int) -> int:
        return max(0, min(len(self._positions) - 1, index))

    def _activate(self, index: int) -> None:
        if self._mode == NavMode.Idle:
            logging.debug("keyboard navigation enabled")
        self._mode = NavMode.Navigating
        self._focus_index = index

    def _set_index(self, index: int) -> bool:
        changed = index != self._focus_index
        self._focus_index = index
        return changed

    def _nearest_letter(self, letter: NoteClass) -> Optional[int]:
        assert self._focus_index is not None
        best: Optional[int] = None
        best_distance = 0
        for index, position in enumerate(self._positions):
            if position.pitch.note_class != letter:
                continue
            distance = abs(index - self._focus_index)
            # Ascending scan keeps the lower index on ties
            if best is None or distance < best_distance:
                best = index
                best_distance = distance
        return best

    def handle_key(self, event: KeyEvent) -> NavEffects:
        """Apply a key press.

        Args:
            event: The key press.

        Returns:
            The effects the controller should apply. Unrecognized keys (and
            any key when there are no positions) are ignored.
        """
        if not is_recognized_key(event.key) or not self._positions:
            return NavEffects.ignored()
        if self._mode == NavMode.Idle:
            if event.key == constants.KEY_ESCAPE:
                # Nothing to leave; only the blur request remains
                return NavEffects(handled=True, blur=True)
            self._activate(self._center_index)
            if event.key in constants.MOVEMENT_KEYS:
                # The activating movement press only reveals the focus
                return NavEffects(handled=True, focus_changed=True)
            effects = self._apply_key(event)
            return NavEffects(
                handled=True,
                focus_changed=True,
                place=effects.place,
                delete=effects.delete,
                blur=effects.blur,
            )
        elif self._mode == NavMode.Navigating:
            return self._apply_key(event)
        else:
            raise MatchException(self._mode)

    def _apply_key(self, event: KeyEvent) -> NavEffects:
        assert self._focus_index is not None
        key = event.key
        last = len(self._positions) - 1
        if key == constants.KEY_TAB:
            step = -1 if event.shift else 1
            index = (self._focus_index + step) % len(self._positions)
            return NavEffects(handled=True, focus_changed=self._set_index(index))
        elif key == constants.KEY_UP:
            return NavEffects(handled=True, focus_changed=self.move_focus(1))
        elif key == constants.KEY_DOWN:
            return NavEffects(handled=True, focus_changed=self.move_focus(-1))
        elif key in (constants.KEY_LEFT, constants.KEY_RIGHT):
            return NavEffects(handled=True)
        elif key == constants.KEY_HOME:
            return NavEffects(handled=True, focus_changed=self._set_index(0))
        elif key == constants.KEY_END:
            return NavEffects(handled=True, focus_changed=self._set_index(last))
        elif key in (constants.KEY_ENTER, constants.KEY_SPACE):
            return NavEffects(handled=True, place=self._positions[self._focus_index])
        elif key in (constants.KEY_DELETE, constants.KEY_BACKSPACE):
            return NavEffects(handled=True, delete=True)
        elif key == constants.KEY_ESCAPE:
            self.disable()
            return NavEffects(handled=True, focus_changed=True, blur=True)
        else:
            letter = letter_for_key(key)
            if letter is None:
                raise MatchException(key)
            index = self._nearest_letter(letter)
            if index is None:
                return NavEffects(handled=True)
            changed = self._set_index(index)
            place = self._positions[index] if (event.ctrl or event.meta) else None
            return NavEffects(handled=True, focus_changed=changed, place=place)
