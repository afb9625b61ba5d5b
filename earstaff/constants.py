"""Constants for staff geometry, keyboard input, MIDI output and storage.

Line positions count diatonic steps upward from the bottom line of a
five-line staff: even values are lines, odd values are spaces.
"""

from typing import FrozenSet, Tuple

NUM_LETTERS = 7
"""Number of diatonic letter names in an octave."""

SEMITONES_PER_OCTAVE = 12
"""Number of semitones in an octave."""

STAFF_LOW_LINE = 0
"""Line position of the bottom staff line."""
STAFF_HIGH_LINE = 8
"""Line position of the top staff line."""
STAFF_MIDDLE_LINE = 4
"""Line position of the middle staff line."""

NUM_STAFF_LINES = 5
"""Number of lines in a staff."""
TOP_LINE_INDEX = 0
"""Renderer line index of the top staff line."""
BOTTOM_LINE_INDEX = 4
"""Renderer line index of the bottom staff line."""

DEFAULT_LINE_RANGE: Tuple[int, int] = (-6, 14)
"""Default inclusive clamp range of line positions for a staff."""

DEFAULT_MARGIN_SPACES = 3.0
"""Interactive margin above and below the staff, in line spacings."""

GRAND_SPLIT_OCTAVE = 4
"""Pitches at or above this octave belong to the treble staff of a grand staff."""
GRAND_STAFF_GAP_SPACES = 2
"""Gap between grand staff staves, in line spacings, that aligns middle C."""

DEFAULT_MAX_NOTES = 5
"""Default selection capacity."""
MIN_NOTE_COUNT = 1
"""Smallest allowed note count setting."""
MAX_NOTE_COUNT = 8
"""Largest allowed note count setting."""

# Keyboard key names, following DOM KeyboardEvent.key values
KEY_TAB = "Tab"
KEY_UP = "ArrowUp"
KEY_DOWN = "ArrowDown"
KEY_LEFT = "ArrowLeft"
KEY_RIGHT = "ArrowRight"
KEY_ENTER = "Enter"
KEY_SPACE = " "
KEY_DELETE = "Delete"
KEY_BACKSPACE = "Backspace"
KEY_ESCAPE = "Escape"
KEY_HOME = "Home"
KEY_END = "End"

NAVIGATION_KEYS: FrozenSet[str] = frozenset(
    [
        KEY_TAB,
        KEY_UP,
        KEY_DOWN,
        KEY_LEFT,
        KEY_RIGHT,
        KEY_ENTER,
        KEY_SPACE,
        KEY_DELETE,
        KEY_BACKSPACE,
        KEY_ESCAPE,
        KEY_HOME,
        KEY_END,
    ]
)
"""Non-letter keys that the keyboard navigator recognizes."""

MOVEMENT_KEYS: FrozenSet[str] = frozenset([KEY_TAB, KEY_UP, KEY_DOWN, KEY_LEFT, KEY_RIGHT])
"""Keys whose activating press only reveals focus."""

DEFAULT_MIDI_CHANNEL = 0
"""MIDI channel (0-15, as mido counts) used for playback."""
MIN_VELOCITY = 20
"""Velocity used at zero volume."""
MAX_VELOCITY = 127
"""Velocity used at full volume."""
DEFAULT_VOLUME = 0.7
"""Default playback volume (0-1)."""
DEFAULT_PORT_NAME = "earstaff"
"""Default name for a virtual MIDI output port."""

DEFAULT_LOW_MIDI = 48
"""Lowest MIDI note drawn for quiz targets (C3)."""
DEFAULT_HIGH_MIDI = 84
"""Highest MIDI note drawn for quiz targets (C6)."""

SETTINGS_KEY = "earstaff-settings"
"""Store key for persisted game settings."""
STATISTICS_KEY = "earstaff-statistics"
"""Store key for persisted statistics."""
MAX_HISTORY_SIZE = 1000
"""Maximum number of session records retained."""
