"""Mapping between screen coordinates, staff positions and pitches.

This module converts pointer coordinates into staff positions (and back)
for a single staff or a treble-over-bass grand staff, using a frozen
layout snapshot taken from the rendering surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from earstaff import constants
from earstaff.base import MatchException, Unit
from earstaff.component import MappedComponent, MappedComponentConfig
from earstaff.config import Config, StaffMode
from earstaff.layout import StaffGeometry, StaffLayout, round_half_up
from earstaff.pitch import NoteClass, Pitch
from earstaff.pos import Clef, StaffPosition, line_position_of, pitch_at

MIDDLE_C = Pitch.natural(NoteClass.C, 4)


@dataclass(frozen=True)
class MapperConfig(MappedComponentConfig[Config]):
    """The slice of configuration that affects coordinate mapping."""

    staff_mode: StaffMode
    """Single staff or grand staff."""
    clef: Clef
    """Clef of the single staff."""
    treble_range: Tuple[int, int]
    """Inclusive line-position clamp range on the treble staff."""
    bass_range: Tuple[int, int]
    """Inclusive line-position clamp range on the bass staff."""
    margin_spaces: float
    """Interactive margin above and below the staves, in line spacings."""

    @classmethod
    def extract(cls, root_config: Config) -> MapperConfig:
        return cls(
            staff_mode=root_config.staff_mode,
            clef=root_config.clef,
            treble_range=root_config.treble_range,
            bass_range=root_config.bass_range,
            margin_spaces=root_config.margin_spaces,
        )

    @property
    def clefs(self) -> List[Clef]:
        """Staves this configuration maps onto, top to bottom."""
        if self.staff_mode == StaffMode.Single:
            return [self.clef]
        elif self.staff_mode == StaffMode.Grand:
            return [Clef.Treble, Clef.Bass]
        else:
            raise MatchException(self.staff_mode)

    def line_range(self, clef: Clef) -> Tuple[int, int]:
        return self.treble_range if clef == Clef.Treble else self.bass_range


def grand_staff_clef(pitch: Pitch) -> Clef:
    """Staff of a grand staff that a pitch is written on."""
    return Clef.Treble if pitch.octave >= constants.GRAND_SPLIT_OCTAVE else Clef.Bass


class PitchPositionMapper(MappedComponent[Config, MapperConfig, Unit]):
    """Converts between geometry and staff positions for one layout snapshot.

    The mapper never fails on geometry: coordinates outside the supported
    range clamp to the nearest valid line position. A new mapper is built
    whenever the host's staff layout changes; configuration changes that
    keep the same staves are applied in place through ``handle_config``.
    """

    @classmethod
    def construct(cls, root_config: Config, layout: StaffLayout) -> PitchPositionMapper:
        """Construct a mapper from the root configuration and a layout snapshot."""
        return cls(cls.extract_config(root_config), layout)

    @classmethod
    def extract_config(cls, root_config: Config) -> MapperConfig:
        return MapperConfig.extract(root_config)

    def __init__(self, config: MapperConfig, layout: StaffLayout) -> None:
        """Initialize the mapper.

        Args:
            config: Mapping configuration.
            layout: Snapshot containing every staff the config needs.
        """
        super().__init__(config)
        self._layout = layout
        self._positions = self._make_valid_positions()

    @property
    def layout(self) -> StaffLayout:
        return self._layout

    def handle_mapped_config(self, config: MapperConfig) -> Unit:
        """Apply a mapping configuration change and recompute valid positions."""
        self._config = config
        self._positions = self._make_valid_positions()
        return Unit.instance()

    def _clamp(self, clef: Clef, line_position: int) -> int:
        low, high = self._config.line_range(clef)
        return max(low, min(high, line_position))

    def _rounded_position(self, geom: StaffGeometry, y: float) -> int:
        return self._clamp(geom.clef, round_half_up(geom.continuous_position(y)))

    def _resolve_clef(self, y: float) -> Clef:
        if self._config.staff_mode == StaffMode.Single:
            return self._config.clef
        treble = self._layout.geometry(Clef.Treble)
        bass = self._layout.geometry(Clef.Bass)
        if treble.contains_y(y) or y < treble.top_y:
            return Clef.Treble
        elif bass.contains_y(y) or y > bass.bottom_y:
            return Clef.Bass
        below_treble = y - treble.bottom_y
        above_bass = bass.top_y - y
        if below_treble < above_bass:
            return Clef.Treble
        elif above_bass < below_treble:
            return Clef.Bass
        else:
            # Midway between the staves: route by the pitch the treble staff would read
            pitch = pitch_at(Clef.Treble, self._rounded_position(treble, y))
            return grand_staff_clef(pitch)

    def screen_to_position(self, x: float, y: float) -> StaffPosition:
        """Convert a screen coordinate to a staff position.

        Args:
            x: Horizontal coordinate (not quantized by the engine).
            y: Vertical coordinate.

        Returns:
            The clamped staff position; its pitch is always natural.
        """
        clef = self._resolve_clef(y)
        geom = self._layout.geometry(clef)
        return StaffPosition.at(clef, self._rounded_position(geom, y))

    def nearest_position(self, x: float, y: float) -> StaffPosition:
        """Snap a coordinate to the nearest line or space for hover preview.

        This is the same mapping as ``screen_to_position``; the separate name
        marks calls that only preview and never commit a note.
        """
        return self.screen_to_position(x, y)

    def position_to_screen(self, position: StaffPosition, x: float) -> Tuple[float, float]:
        """Convert a staff position back to a screen coordinate.

        Args:
            position: The position to convert.
            x: Caller-supplied horizontal coordinate, returned unchanged.

        Returns:
            The (x, y) coordinate of the position's line or space.
        """
        geom = self._layout.geometry(position.clef)
        return (x, geom.y_for(position.line_position))

    def clef_for_pitch(self, pitch: Pitch) -> Clef:
        """Staff a pitch is written on under the current configuration."""
        if self._config.staff_mode == StaffMode.Single:
            return self._config.clef
        else:
            return grand_staff_clef(pitch)

    def position_for_pitch(self, pitch: Pitch) -> StaffPosition:
        """Staff position where a pitch is written.

        Pitches beyond the clamp range map to the nearest valid position,
        which then carries that position's natural pitch.
        """
        clef = self.clef_for_pitch(pitch)
        line_position = line_position_of(clef, pitch)
        clamped = self._clamp(clef, line_position)
        if clamped == line_position:
            return StaffPosition.for_pitch(clef, pitch)
        else:
            return StaffPosition.at(clef, clamped)

    def is_within_interactive_area(self, x: float, y: float) -> bool:
        """Check whether a coordinate is close enough to the staves to interact.

        The area spans the staves horizontally and extends a few line
        spacings above the top staff and below the bottom staff.
        """
        margin = self._layout.spacing * self._config.margin_spaces
        return (
            self._layout.left <= x <= self._layout.right
            and self._layout.top - margin <= y <= self._layout.bottom + margin
        )

    def _make_valid_positions(self) -> List[StaffPosition]:
        if self._config.staff_mode == StaffMode.Single:
            low, high = self._config.line_range(self._config.clef)
            return list(StaffPosition.iter_range(self._config.clef, low, high))
        positions: List[StaffPosition] = []
        for clef in (Clef.Bass, Clef.Treble):
            low, high = self._config.line_range(clef)
            for position in StaffPosition.iter_range(clef, low, high):
                if grand_staff_clef(position.pitch) == clef:
                    positions.append(position)
        return positions

    def valid_positions(self) -> List[StaffPosition]:
        """Every selectable position, ordered from lowest to highest pitch."""
        return list(self._positions)

    def center_position(self) -> StaffPosition:
        """Starting point for keyboard focus.

        The middle line of a single staff, or middle C on a grand staff.
        """
        if self._config.staff_mode == StaffMode.Single:
            return StaffPosition.at(self._config.clef, constants.STAFF_MIDDLE_LINE)
        else:
            return self.position_for_pitch(MIDDLE_C)

    def center_index(self) -> int:
        """Index of the center position in ``valid_positions``."""
        center = self.center_position()
        for index, position in enumerate(self._positions):
            if position == center:
                return index
        return len(self._positions) // 2
