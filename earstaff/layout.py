"""Staff layout snapshots taken from the rendering surface.

The engine never draws. It asks the rendering surface four questions per
staff (where a line is, how far apart lines are, and the staff's
horizontal extent) and freezes the answers into a StaffLayout that stays
valid until the host changes the layout.
"""

from __future__ import annotations

import logging
import math
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from earstaff import constants
from earstaff.base import EngineNotInitializedError
from earstaff.pos import Clef


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


class StaffSurface(metaclass=ABCMeta):
    """Interface of the external notation-rendering surface.

    Line indices follow the renderer convention: 0 is the top line and 4
    the bottom line of a staff.
    """

    @abstractmethod
    def clefs(self) -> List[Clef]:
        """Staves currently laid out on the surface (empty before first draw)."""
        raise NotImplementedError()

    @abstractmethod
    def line_y(self, clef: Clef, index: int) -> float:
        """Y coordinate of a staff line."""
        raise NotImplementedError()

    @abstractmethod
    def line_spacing(self, clef: Clef) -> float:
        """Distance between adjacent staff lines."""
        raise NotImplementedError()

    @abstractmethod
    def staff_x(self, clef: Clef) -> float:
        """Left edge of the staff."""
        raise NotImplementedError()

    @abstractmethod
    def staff_width(self, clef: Clef) -> float:
        """Width of the staff."""
        raise NotImplementedError()


class StaticSurface(StaffSurface):
    """A surface with fixed geometry, for hosts that lay staves out themselves.

    Staves are stacked top to bottom in the order given, separated by
    ``gap`` pixels between the bottom line of one and the top line of the
    next. The default gap of two line spacings puts middle C at the same
    height on a treble staff and the bass staff below it.
    """

    def __init__(
        self,
        clefs: List[Clef],
        top: float = 40.0,
        spacing: float = 10.0,
        gap: Optional[float] = None,
        x: float = 10.0,
        width: float = 400.0,
    ) -> None:
        self._clefs = list(clefs)
        self._spacing = spacing
        self._x = x
        self._width = width
        self._tops: Dict[Clef, float] = {}
        if gap is None:
            gap = spacing * constants.GRAND_STAFF_GAP_SPACES
        staff_height = spacing * (constants.NUM_STAFF_LINES - 1)
        y = top
        for clef in self._clefs:
            self._tops[clef] = y
            y += staff_height + gap

    def clefs(self) -> List[Clef]:
        return list(self._clefs)

    def line_y(self, clef: Clef, index: int) -> float:
        return self._tops[clef] + index * self._spacing

    def line_spacing(self, clef: Clef) -> float:
        return self._spacing

    def staff_x(self, clef: Clef) -> float:
        return self._x

    def staff_width(self, clef: Clef) -> float:
        return self._width


@dataclass(frozen=True)
class StaffGeometry:
    """Frozen geometry of one staff."""

    clef: Clef
    """The staff's clef."""
    top_y: float
    """Y of the top line."""
    bottom_y: float
    """Y of the bottom line (line position 0)."""
    spacing: float
    """Distance between adjacent lines."""
    x: float
    """Left edge."""
    width: float
    """Horizontal extent."""

    @classmethod
    def capture(cls, surface: StaffSurface, clef: Clef) -> StaffGeometry:
        """Query the surface for one staff.

        Raises:
            EngineNotInitializedError: If the surface reports unusable geometry.
        """
        spacing = surface.line_spacing(clef)
        if not math.isfinite(spacing) or spacing <= 0:
            raise EngineNotInitializedError(
                f"{clef.value} staff has invalid line spacing {spacing}"
            )
        top_y = surface.line_y(clef, constants.TOP_LINE_INDEX)
        bottom_y = surface.line_y(clef, constants.BOTTOM_LINE_INDEX)
        if not (math.isfinite(top_y) and math.isfinite(bottom_y)) or top_y >= bottom_y:
            raise EngineNotInitializedError(
                f"{clef.value} staff has invalid line coordinates {top_y}, {bottom_y}"
            )
        return cls(
            clef=clef,
            top_y=top_y,
            bottom_y=bottom_y,
            spacing=spacing,
            x=surface.staff_x(clef),
            width=surface.staff_width(clef),
        )

    @property
    def half_spacing(self) -> float:
        """Vertical distance of one line position."""
        return self.spacing / 2

    def continuous_position(self, y: float) -> float:
        """Unrounded line position for a Y coordinate."""
        return (self.bottom_y - y) / self.half_spacing

    def y_for(self, line_position: int) -> float:
        """Y coordinate of a line position."""
        return self.bottom_y - line_position * self.half_spacing

    def contains_y(self, y: float) -> bool:
        """Whether Y falls within the five-line span."""
        return self.top_y <= y <= self.bottom_y


@dataclass(frozen=True)
class StaffLayout:
    """A snapshot of every staff the engine maps onto."""

    staves: Dict[Clef, StaffGeometry]
    """Geometry per clef."""

    @classmethod
    def capture(cls, surface: Optional[StaffSurface], clefs: List[Clef]) -> StaffLayout:
        """Take a snapshot of the requested staves.

        Args:
            surface: The rendering surface, or None if none exists yet.
            clefs: Staves the engine needs.

        Raises:
            EngineNotInitializedError: If the surface is missing or lacks a
                required staff.
        """
        if surface is None:
            raise EngineNotInitializedError("no rendering surface")
        available = surface.clefs()
        staves: Dict[Clef, StaffGeometry] = {}
        for clef in clefs:
            if clef not in available:
                raise EngineNotInitializedError(f"{clef.value} staff is not laid out")
            staves[clef] = StaffGeometry.capture(surface, clef)
        logging.debug("captured staff layout for %s", [c.value for c in clefs])
        return cls(staves)

    def geometry(self, clef: Clef) -> StaffGeometry:
        """Geometry of one staff."""
        return self.staves[clef]

    @property
    def left(self) -> float:
        return min(g.x for g in self.staves.values())

    @property
    def right(self) -> float:
        return max(g.x + g.width for g in self.staves.values())

    @property
    def top(self) -> float:
        return min(g.top_y for g in self.staves.values())

    @property
    def bottom(self) -> float:
        return max(g.bottom_y for g in self.staves.values())

    @property
    def spacing(self) -> float:
        """Largest line spacing among the staves."""
        return max(g.spacing for g in self.staves.values())
