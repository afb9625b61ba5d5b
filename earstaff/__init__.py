from earstaff.base import EngineNotInitializedError
from earstaff.config import Config, GameSettings, PositionMatch, StaffMode, init_config
from earstaff.controller import InteractionController, InteractionListener
from earstaff.event import (
    KeyEvent,
    PointerButton,
    PointerClickEvent,
    PointerLeaveEvent,
    PointerMoveEvent,
)
from earstaff.layout import StaffLayout, StaffSurface, StaticSurface
from earstaff.mapper import PitchPositionMapper
from earstaff.navigator import KeyboardFocusState, KeyboardNavigator, NavMode
from earstaff.pitch import Accidental, NoteClass, Pitch
from earstaff.pos import Clef, StaffPosition
from earstaff.selection import SelectionSet
from earstaff.validator import ValidationResult, validate

__all__ = [
    "Accidental",
    "Clef",
    "Config",
    "EngineNotInitializedError",
    "GameSettings",
    "InteractionController",
    "InteractionListener",
    "KeyEvent",
    "KeyboardFocusState",
    "KeyboardNavigator",
    "NavMode",
    "NoteClass",
    "Pitch",
    "PitchPositionMapper",
    "PointerButton",
    "PointerClickEvent",
    "PointerLeaveEvent",
    "PointerMoveEvent",
    "PositionMatch",
    "SelectionSet",
    "StaffLayout",
    "StaffMode",
    "StaffPosition",
    "StaffSurface",
    "StaticSurface",
    "ValidationResult",
    "init_config",
    "validate",
]
