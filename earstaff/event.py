"""Input events delivered to the interaction controller by the host."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto, unique


class StaffEvent:
    """Base class for host input events."""


@unique
class PointerButton(Enum):
    Primary = auto()
    Secondary = auto()


@dataclass(frozen=True)
class PointerMoveEvent(StaffEvent):
    """The pointer moved over the staff surface."""

    x: float
    y: float


@dataclass(frozen=True)
class PointerClickEvent(StaffEvent):
    """A pointer button was clicked on the staff surface."""

    x: float
    y: float
    button: PointerButton = PointerButton.Primary
    """Secondary clicks cycle the accidental of an existing note."""


@dataclass(frozen=True)
class PointerLeaveEvent(StaffEvent):
    """The pointer left the staff surface."""


@dataclass(frozen=True)
class KeyEvent(StaffEvent):
    """A key press while the staff has input focus."""

    key: str
    """Key name, e.g. ``ArrowUp``, ``Tab``, ``" "`` or a single letter."""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
