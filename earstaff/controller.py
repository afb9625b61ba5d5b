"""The interaction controller that ties the engine together.

The controller owns the mapper and the keyboard navigator, routes host
input events to them, applies their results to the shared selection and
reports every observable change to an InteractionListener.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Iterable, Optional, Tuple

from earstaff.base import Closeable, EngineNotInitializedError
from earstaff.config import Config, PositionMatch
from earstaff.event import (
    KeyEvent,
    PointerButton,
    PointerClickEvent,
    PointerLeaveEvent,
    PointerMoveEvent,
    StaffEvent,
)
from earstaff.layout import StaffLayout, StaffSurface
from earstaff.mapper import MapperConfig, PitchPositionMapper
from earstaff.midi import Playback
from earstaff.navigator import KeyboardFocusState, KeyboardNavigator, NavEffects
from earstaff.pitch import Pitch
from earstaff.pos import StaffPosition
from earstaff.selection import SelectionSet
from earstaff.store import SessionRecorder
from earstaff.validator import ValidationResult, validate


class InteractionListener:
    """Receives the engine's notifications. Every method is a no-op by default."""

    def on_position_resolved(self, position: StaffPosition) -> None:
        """A pointer event resolved to a staff position."""
        pass

    def on_hover_cleared(self) -> None:
        """The pointer left the interactive area."""
        pass

    def on_selection_changed(self, selection: Tuple[Pitch, ...]) -> None:
        """The selection changed; receives a snapshot."""
        pass

    def on_focus_changed(self, state: KeyboardFocusState) -> None:
        """Keyboard mode or the focused position changed."""
        pass

    def on_validation_computed(self, result: ValidationResult) -> None:
        """An answer was submitted and validated."""
        pass

    def on_blur_requested(self) -> None:
        """The host should blur the input surface."""
        pass


DeletionHandler = Callable[[SelectionSet], None]


def delete_all(selection: SelectionSet) -> None:
    """Default deletion handler: removes every selected note."""
    selection.remove_many(selection.snapshot())


class InteractionController(Closeable):
    """Routes pointer and keyboard input to the selection.

    Pointer and keyboard modes are mutually exclusive: any pointer move or
    click forces keyboard navigation back to Idle before it is handled.
    """

    def __init__(
        self,
        config: Config,
        selection: SelectionSet,
        playback: Optional[Playback] = None,
        listener: Optional[InteractionListener] = None,
        recorder: Optional[SessionRecorder] = None,
        deletion_handler: Optional[DeletionHandler] = None,
    ) -> None:
        """Initialize the controller. Call ``attach`` before sending events.

        Args:
            config: Engine configuration.
            selection: The shared selection, mutated only through its methods.
            playback: Where newly placed notes are sounded.
            listener: Receives notifications.
            recorder: Records submitted answers.
            deletion_handler: Runs on Delete/Backspace; removes all notes by default.
        """
        self._config = config
        self._selection = selection
        self._playback = playback
        self._listener = listener if listener is not None else InteractionListener()
        self._recorder = recorder
        self._deletion_handler = deletion_handler if deletion_handler is not None else delete_all
        self._navigator = KeyboardNavigator()
        self._surface: Optional[StaffSurface] = None
        self._mapper: Optional[PitchPositionMapper] = None
        self._hover: Optional[StaffPosition] = None
        self._selection.set_limit(config.max_notes, config.limit_enabled)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def selection(self) -> SelectionSet:
        return self._selection

    @property
    def navigator(self) -> KeyboardNavigator:
        return self._navigator

    @property
    def focus_state(self) -> KeyboardFocusState:
        return self._navigator.state

    @property
    def hover(self) -> Optional[StaffPosition]:
        """Position under the pointer, if inside the interactive area."""
        return self._hover

    @property
    def attached(self) -> bool:
        return self._mapper is not None

    @property
    def mapper(self) -> PitchPositionMapper:
        """The current mapper.

        Raises:
            EngineNotInitializedError: If no layout is attached.
        """
        if self._mapper is None:
            raise EngineNotInitializedError("no staff layout attached")
        return self._mapper

    def attach(self, surface: Optional[StaffSurface]) -> None:
        """Take a layout snapshot from the surface and start accepting events.

        Call again whenever the host's staff layout changes.

        Raises:
            EngineNotInitializedError: If the surface has no usable geometry.
        """
        mapper_config = MapperConfig.extract(self._config)
        layout = StaffLayout.capture(surface, mapper_config.clefs)
        self._install(surface, mapper_config, layout)

    def _install(self, surface: Optional[StaffSurface], mapper_config: MapperConfig, layout: StaffLayout) -> None:
        self._surface = surface
        self._mapper = PitchPositionMapper(mapper_config, layout)
        self._hover = None
        self._reset_positions()
        logging.info("attached staff layout for %s", [c.value for c in mapper_config.clefs])

    def detach(self) -> None:
        """Release the layout snapshot. Later events are dropped."""
        if self._mapper is not None:
            logging.info("detached staff layout")
        self._surface = None
        self._mapper = None
        self._hover = None
        self._navigator.set_positions([])

    @contextmanager
    def layout(self, surface: Optional[StaffSurface]) -> Generator[InteractionController, None, None]:
        """Scope a layout snapshot: attach on entry, detach on exit."""
        self.attach(surface)
        try:
            yield self
        finally:
            self.detach()

    def close(self) -> None:
        self.detach()
        if self._playback is not None:
            self._playback.stop()
        self._playback = None
        self._recorder = None
        self._listener = InteractionListener()

    def _reset_positions(self) -> None:
        mapper = self.mapper
        was_navigating = self._navigator.state.navigating
        self._navigator.set_positions(mapper.valid_positions(), mapper.center_index())
        if was_navigating:
            self._listener.on_focus_changed(self._navigator.state)

    def handle_config(self, config: Config) -> None:
        """Apply a new configuration.

        A change of staves re-captures the layout from the attached surface;
        any mapping change resets keyboard navigation. Capacity changes that
        the current selection would violate are refused and logged.

        Raises:
            EngineNotInitializedError: If the surface cannot lay out the new
                staves. The previous configuration then stays in effect.
        """
        mapper_config = MapperConfig.extract(config)
        layout: Optional[StaffLayout] = None
        if self._mapper is not None and mapper_config.clefs != MapperConfig.extract(self._config).clefs:
            # Capture first so a failure leaves every piece of state untouched
            layout = StaffLayout.capture(self._surface, mapper_config.clefs)
        self._config = config
        if not self._selection.set_limit(config.max_notes, config.limit_enabled):
            logging.warning(
                "keeping capacity %d: %d notes already selected",
                self._selection.max_notes,
                len(self._selection),
            )
        if self._mapper is None:
            return
        if layout is not None:
            logging.info("staff mode changed, re-captured layout")
            self._install(self._surface, mapper_config, layout)
        elif self._mapper.handle_config(config, reset=False) is not None:
            logging.debug("mapping changed, resetting keyboard navigation")
            self._reset_positions()

    def handle_event(self, event: StaffEvent) -> bool:
        """Handle one host input event.

        Returns:
            Whether the event was consumed. Unrecognized keys and events
            arriving without an attached layout are not.
        """
        if self._mapper is None:
            logging.warning("dropping %s: no staff layout attached", type(event).__name__)
            return False
        if isinstance(event, (PointerMoveEvent, PointerClickEvent)):
            self.disable_keyboard()
        if isinstance(event, PointerMoveEvent):
            self._handle_move(event)
            return True
        elif isinstance(event, PointerClickEvent):
            return self._handle_click(event)
        elif isinstance(event, PointerLeaveEvent):
            self._clear_hover()
            return True
        elif isinstance(event, KeyEvent):
            effects = self._navigator.handle_key(event)
            self._apply_effects(effects)
            return effects.handled
        else:
            logging.warning("dropping unknown event %s", event)
            return False

    def disable_keyboard(self) -> None:
        """Force keyboard navigation to Idle, notifying if it was active."""
        if self._navigator.disable():
            self._listener.on_focus_changed(self._navigator.state)

    def _clear_hover(self) -> None:
        if self._hover is not None:
            self._hover = None
            self._listener.on_hover_cleared()

    def _handle_move(self, event: PointerMoveEvent) -> None:
        mapper = self.mapper
        if mapper.is_within_interactive_area(event.x, event.y):
            self._hover = mapper.nearest_position(event.x, event.y)
            self._listener.on_position_resolved(self._hover)
        else:
            self._clear_hover()

    def _handle_click(self, event: PointerClickEvent) -> bool:
        mapper = self.mapper
        if not mapper.is_within_interactive_area(event.x, event.y):
            return False
        position = mapper.screen_to_position(event.x, event.y)
        self._listener.on_position_resolved(position)
        if event.button == PointerButton.Primary:
            self.place(position)
        elif event.button == PointerButton.Secondary:
            self.cycle_accidental(position)
        return True

    def _apply_effects(self, effects: NavEffects) -> None:
        if effects.focus_changed:
            self._listener.on_focus_changed(self._navigator.state)
        if effects.place is not None:
            self.place(effects.place)
        if effects.delete:
            self._delete()
        if effects.blur:
            self._listener.on_blur_requested()

    def _delete(self) -> None:
        before = self._selection.snapshot()
        self._deletion_handler(self._selection)
        self._notify_if_changed(before)

    def _notify_if_changed(self, before: Tuple[Pitch, ...]) -> bool:
        after = self._selection.snapshot()
        if after != before:
            self._listener.on_selection_changed(after)
            return True
        return False

    def place(self, position: StaffPosition) -> bool:
        """Place or remove a note at a position.

        With exact matching the position's pitch is toggled. With diatonic
        matching any selected notes on the same line or space are removed,
        otherwise the natural pitch is added. Added notes are sounded.

        Returns:
            Whether the selection changed.
        """
        before = self._selection.snapshot()
        pitch = position.pitch
        added = False
        if self._config.position_match == PositionMatch.Exact:
            if pitch in self._selection:
                self._selection.remove(pitch)
            else:
                added = self._selection.add(pitch)
        else:
            existing = self._selection.at_position(pitch)
            if existing:
                self._selection.remove_many(existing)
            else:
                added = self._selection.add(pitch)
        if added and self._playback is not None:
            self._playback.play([pitch])
        changed = self._notify_if_changed(before)
        if not changed:
            logging.debug("selection unchanged placing %s", pitch)
        return changed

    def cycle_accidental(self, position: StaffPosition) -> bool:
        """Cycle the accidental of the most recent note placed at a position.

        The old note is swapped for the new one in a single step, so the
        selection never exceeds its capacity. Spellings already selected
        are skipped.

        Returns:
            Whether a note was changed.
        """
        existing = self._selection.at_position(position.pitch)
        if not existing:
            return False
        old = existing[-1]
        new = old.cycle_accidental()
        while new != old:
            if self._selection.replace(old, new):
                self._listener.on_selection_changed(self._selection.snapshot())
                return True
            new = new.cycle_accidental()
        return False

    def submit(self, target: Iterable[Pitch], difficulty: Optional[int] = None) -> ValidationResult:
        """Validate the current selection against a target.

        Args:
            target: The correct notes.
            difficulty: Recorded with the session; defaults to the target size.

        Returns:
            The validation result, also sent to the listener.
        """
        result = validate(target, self._selection.snapshot())
        logging.info("answer validated: %d%% correct", result.accuracy)
        self._listener.on_validation_computed(result)
        if self._recorder is not None:
            self._recorder.record(result, difficulty if difficulty is not None else len(result.target))
        return result
