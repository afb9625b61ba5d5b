"""Terminal entry point for the earstaff engine.

Runs an ear-training quiz against a fixed staff layout. Each line read
from standard input is one command: a key name (``tab``, ``shift+tab``,
``up``, ``enter``, ``c``, ``ctrl+g`` ...), a pointer command (``move Y``,
``click Y``, ``rclick Y``, ``leave``) or a game command (``play``,
``submit``, ``new``, ``status``, ``quit``).
"""

import logging
import sys
from argparse import ArgumentParser, Namespace
from contextlib import contextmanager
from random import Random
from typing import Generator, Iterable, Optional, TextIO, Tuple

from earstaff import constants
from earstaff.accessibility import describe_position, staff_description, staff_label
from earstaff.config import Config, GameSettings, StaffMode, init_config
from earstaff.controller import InteractionController, InteractionListener
from earstaff.event import (
    KeyEvent,
    PointerButton,
    PointerClickEvent,
    PointerLeaveEvent,
    PointerMoveEvent,
    StaffEvent,
)
from earstaff.layout import StaticSurface
from earstaff.mapper import MapperConfig
from earstaff.midi import MidiOutput, MidiPlayback, Playback
from earstaff.navigator import KeyboardFocusState
from earstaff.pitch import Pitch
from earstaff.pos import Clef, StaffPosition
from earstaff.quiz import QuizRound
from earstaff.store import MemoryStore, SettingsManager, StatisticsTracker
from earstaff.validator import ValidationResult, feedback_message

KEY_NAMES = {
    "tab": constants.KEY_TAB,
    "up": constants.KEY_UP,
    "down": constants.KEY_DOWN,
    "left": constants.KEY_LEFT,
    "right": constants.KEY_RIGHT,
    "enter": constants.KEY_ENTER,
    "space": constants.KEY_SPACE,
    "delete": constants.KEY_DELETE,
    "backspace": constants.KEY_BACKSPACE,
    "escape": constants.KEY_ESCAPE,
    "esc": constants.KEY_ESCAPE,
    "home": constants.KEY_HOME,
    "end": constants.KEY_END,
}


def parse_key(text: str) -> KeyEvent:
    """Parse a key name with optional ``shift+``, ``ctrl+`` or ``meta+`` prefixes.

    Unknown names are passed through unchanged so the navigator can ignore them.
    """
    *mods, name = text.split("+")
    modifiers = {m.lower() for m in mods}
    key = KEY_NAMES.get(name.lower(), name)
    return KeyEvent(
        key=key,
        shift="shift" in modifiers,
        ctrl="ctrl" in modifiers,
        meta="meta" in modifiers,
    )


def parse_event(line: str, x: float) -> Optional[StaffEvent]:
    """Parse an input command into an event.

    Args:
        line: A stripped, non-empty input line.
        x: Horizontal coordinate used for pointer commands.

    Returns:
        The event, or None for a malformed pointer command.
    """
    parts = line.split()
    command = parts[0].lower()
    if command in ("move", "click", "rclick"):
        if len(parts) != 2:
            return None
        try:
            y = float(parts[1])
        except ValueError:
            return None
        if command == "move":
            return PointerMoveEvent(x, y)
        elif command == "click":
            return PointerClickEvent(x, y, PointerButton.Primary)
        else:
            return PointerClickEvent(x, y, PointerButton.Secondary)
    elif command == "leave":
        return PointerLeaveEvent()
    else:
        return parse_key(parts[0])


class TextListener(InteractionListener):
    """Writes engine notifications as lines of text."""

    def __init__(self, out: TextIO) -> None:
        self._out = out

    def _write(self, text: str) -> None:
        print(text, file=self._out)

    def on_position_resolved(self, position: StaffPosition) -> None:
        self._write(f"at {describe_position(position)}")

    def on_hover_cleared(self) -> None:
        self._write("hover cleared")

    def on_selection_changed(self, selection: Tuple[Pitch, ...]) -> None:
        self._write("selected: " + (" ".join(str(p) for p in selection) or "(none)"))

    def on_focus_changed(self, state: KeyboardFocusState) -> None:
        if state.focused is None:
            self._write("keyboard off")
        else:
            self._write(f"focus {describe_position(state.focused)}")

    def on_validation_computed(self, result: ValidationResult) -> None:
        self._write(f"{feedback_message(result)} ({result.accuracy}%)")

    def on_blur_requested(self) -> None:
        self._write("blur")


class TerminalSession:
    """A quiz played through text commands."""

    def __init__(
        self,
        base_config: Config,
        settings: GameSettings,
        rng: Random,
        playback: Optional[Playback],
        out: TextIO,
    ) -> None:
        self._base_config = base_config
        self._settings = settings
        self._rng = rng
        self._playback = playback
        self._out = out
        self._tracker = StatisticsTracker(MemoryStore())
        self._surface = StaticSurface(MapperConfig.extract(base_config).clefs)
        first = self._surface.clefs()[0]
        self._x = self._surface.staff_x(first) + self._surface.staff_width(first) / 2
        self._round = QuizRound.new_round(settings, rng)
        self._controller = self._make_controller()

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def round(self) -> QuizRound:
        return self._round

    @property
    def tracker(self) -> StatisticsTracker:
        return self._tracker

    def _make_controller(self) -> InteractionController:
        controller = InteractionController(
            self._round.apply(self._base_config),
            self._round.selection,
            playback=self._playback,
            listener=TextListener(self._out),
            recorder=self._tracker,
        )
        controller.attach(self._surface)
        return controller

    def new_round(self) -> None:
        self._controller.detach()
        self._round = QuizRound.new_round(self._settings, self._rng)
        self._controller = self._make_controller()
        print(f"new round: {self._round.difficulty} notes", file=self._out)
        if self._settings.auto_replay:
            self.play()

    def play(self) -> None:
        if self._playback is not None:
            self._playback.play(self._round.target)
        else:
            print("target: " + " ".join(str(p) for p in self._round.target), file=self._out)

    def status(self) -> None:
        state = self._controller.focus_state
        selection = self._controller.selection.snapshot()
        print(staff_label(selection, self._controller.config.max_notes, state.navigating), file=self._out)
        description = staff_description(selection, state.focused, self._controller.hover, state.navigating)
        if description:
            print(description, file=self._out)

    def handle_line(self, line: str) -> bool:
        """Run one command.

        Returns:
            False when the session should end.
        """
        line = line.strip()
        if not line:
            return True
        command = line.lower()
        if command == "quit":
            return False
        elif command == "play":
            self.play()
        elif command == "submit":
            self._controller.submit(self._round.target)
        elif command == "new":
            self.new_round()
        elif command == "status":
            self.status()
        else:
            event = parse_event(line, self._x)
            if event is None or not self._controller.handle_event(event):
                print(f"ignored: {line}", file=self._out)
        return True

    def run(self, lines: Iterable[str]) -> None:
        for line in lines:
            if not self.handle_line(line):
                break
        self._controller.detach()
        print(f"overall accuracy: {self._tracker.overall_accuracy()}%", file=self._out)


@contextmanager
def playback_context(
    port_name: Optional[str], virtual: bool, volume: float
) -> Generator[Optional[Playback], None, None]:
    """Open MIDI playback for the session, or none without a port name."""
    if port_name is None:
        yield None
        return
    output = MidiOutput.open(port_name, virtual=virtual)
    playback = MidiPlayback(output, volume=volume)
    try:
        yield playback
    finally:
        logging.info("final all notes off")
        playback.stop()
        output.close()


def make_parser() -> ArgumentParser:
    """Create the command-line argument parser.

    Returns:
        An ArgumentParser configured with all the command-line options.
    """
    parser = ArgumentParser(prog="earstaff")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--grand", action="store_true", help="use a grand staff")
    parser.add_argument("--clef", choices=[c.value for c in Clef], default=Clef.Treble.value)
    parser.add_argument("--min-notes", type=int)
    parser.add_argument("--max-notes", type=int)
    parser.add_argument("--limit", action="store_true", help="cap the selection at the target size")
    parser.add_argument("--volume", type=float)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--port", help="MIDI output port for playback")
    parser.add_argument("--virtual", action="store_true", help="create the MIDI port")
    return parser


def configure_logging(log_level: str) -> None:
    """Configure the logging system with the specified log level.

    Args:
        log_level: The logging level (e.g., 'DEBUG', 'INFO', 'WARNING').
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(filename)s:%(lineno)d -- %(message)s",
        level=log_level,
    )


def settings_from_args(args: Namespace) -> Optional[GameSettings]:
    """Merge command-line overrides into default settings.

    Returns:
        None if the result is invalid; the errors are logged.
    """
    overrides = {
        "min_notes": args.min_notes,
        "max_notes": args.max_notes,
        "volume": args.volume,
        "limit_notes": True if args.limit else None,
    }
    validation = SettingsManager.validate({k: v for k, v in overrides.items() if v is not None})
    if validation.settings is None:
        for error in validation.errors:
            logging.error("invalid setting: %s", error)
    return validation.settings


def main() -> None:
    """Main entry point.

    Parses command-line arguments, configures logging, opens playback and
    runs a session over standard input.
    """
    parser = make_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)
    settings = settings_from_args(args)
    if settings is None:
        sys.exit(2)
    config = init_config(
        staff_mode=StaffMode.Grand if args.grand else StaffMode.Single,
        clef=Clef(args.clef),
    )
    with playback_context(args.port, args.virtual, settings.volume) as playback:
        session = TerminalSession(config, settings, Random(args.seed), playback, sys.stdout)
        try:
            session.run(sys.stdin)
        except KeyboardInterrupt:
            pass
    logging.info("done")


if __name__ == "__main__":
    main()
