from dataclasses import replace
from typing import Any, List, Optional, Sequence, Tuple

import pytest

from earstaff import constants
from earstaff.base import EngineNotInitializedError
from earstaff.config import Config, PositionMatch, StaffMode, init_config
from earstaff.controller import InteractionController, InteractionListener
from earstaff.event import (
    KeyEvent,
    PointerButton,
    PointerClickEvent,
    PointerLeaveEvent,
    PointerMoveEvent,
)
from earstaff.layout import StaticSurface
from earstaff.midi import Playback
from earstaff.navigator import KeyboardFocusState, NavMode
from earstaff.pitch import Pitch
from earstaff.pos import Clef, StaffPosition
from earstaff.selection import SelectionSet
from earstaff.store import MemoryStore, StatisticsTracker
from earstaff.validator import ValidationResult

# Treble lines at y 40..80: y 80 is E4, y 60 is B4, y 90 is C4
X = 200.0
Y_E4 = 80.0
Y_B4 = 60.0
Y_C4 = 90.0
Y_OUTSIDE = 300.0


def p(text: str) -> Pitch:
    return Pitch.parse(text)


class RecordingListener(InteractionListener):
    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    def named(self, name: str) -> List[Any]:
        return [value for event, value in self.events if event == name]

    def on_position_resolved(self, position: StaffPosition) -> None:
        self.events.append(("position", position))

    def on_hover_cleared(self) -> None:
        self.events.append(("hover_cleared", None))

    def on_selection_changed(self, selection: Tuple[Pitch, ...]) -> None:
        self.events.append(("selection", selection))

    def on_focus_changed(self, state: KeyboardFocusState) -> None:
        self.events.append(("focus", state))

    def on_validation_computed(self, result: ValidationResult) -> None:
        self.events.append(("validation", result))

    def on_blur_requested(self) -> None:
        self.events.append(("blur", None))


class RecordingPlayback(Playback):
    def __init__(self) -> None:
        self.played: List[List[Pitch]] = []
        self.stops = 0

    def play(self, pitches: Sequence[Pitch]) -> None:
        self.played.append(list(pitches))

    def stop(self) -> None:
        self.stops += 1


class Fixture:
    def __init__(
        self,
        config: Optional[Config] = None,
        selection: Optional[SelectionSet] = None,
        surface: Optional[StaticSurface] = None,
    ) -> None:
        self.config = config if config is not None else init_config()
        self.selection = selection if selection is not None else SelectionSet(5, limit_enabled=False)
        self.listener = RecordingListener()
        self.playback = RecordingPlayback()
        self.tracker = StatisticsTracker(MemoryStore(), clock=lambda: 1000.0)
        self.controller = InteractionController(
            self.config,
            self.selection,
            playback=self.playback,
            listener=self.listener,
            recorder=self.tracker,
        )
        self.surface = surface if surface is not None else StaticSurface([Clef.Treble])
        self.controller.attach(self.surface)

    def click(self, y: float, button: PointerButton = PointerButton.Primary) -> bool:
        return self.controller.handle_event(PointerClickEvent(X, y, button))

    def key(self, name: str, **mods: bool) -> bool:
        return self.controller.handle_event(KeyEvent(name, **mods))


def test_attach_requires_surface() -> None:
    controller = InteractionController(init_config(), SelectionSet(5))
    with pytest.raises(EngineNotInitializedError):
        controller.attach(None)
    with pytest.raises(EngineNotInitializedError):
        controller.attach(StaticSurface([Clef.Bass]))
    assert not controller.attached
    with pytest.raises(EngineNotInitializedError):
        controller.mapper


def test_events_dropped_when_detached() -> None:
    selection = SelectionSet(5)
    controller = InteractionController(init_config(), selection)
    assert not controller.handle_event(PointerClickEvent(X, Y_E4))
    assert not controller.handle_event(KeyEvent(constants.KEY_ENTER))
    assert len(selection) == 0


def test_layout_context() -> None:
    controller = InteractionController(init_config(), SelectionSet(5))
    with controller.layout(StaticSurface([Clef.Treble])) as attached:
        assert attached.attached
        assert attached.handle_event(PointerMoveEvent(X, Y_E4))
    assert not controller.attached


def test_hover_never_touches_selection() -> None:
    f = Fixture()
    f.controller.handle_event(PointerMoveEvent(X, Y_E4))
    assert f.listener.named("position") == [StaffPosition.at(Clef.Treble, 0)]
    assert f.controller.hover == StaffPosition.at(Clef.Treble, 0)
    f.controller.handle_event(PointerMoveEvent(X, Y_OUTSIDE))
    f.controller.handle_event(PointerMoveEvent(X, Y_OUTSIDE))
    assert len(f.listener.named("hover_cleared")) == 1
    assert f.controller.hover is None
    f.controller.handle_event(PointerMoveEvent(X, Y_B4))
    f.controller.handle_event(PointerLeaveEvent())
    assert f.controller.hover is None
    assert len(f.selection) == 0
    assert f.listener.named("selection") == []


def test_click_toggles_and_plays() -> None:
    f = Fixture()
    assert f.click(Y_E4)
    assert f.selection.snapshot() == (p("E4"),)
    assert f.playback.played == [[p("E4")]]
    assert f.click(Y_E4)
    assert f.selection.snapshot() == ()
    assert f.playback.played == [[p("E4")]]
    assert f.listener.named("selection") == [(p("E4"),), ()]


def test_click_outside_ignored() -> None:
    f = Fixture()
    assert not f.click(Y_OUTSIDE)
    assert len(f.selection) == 0


def test_click_at_capacity() -> None:
    f = Fixture(config=init_config(max_notes=1, limit_enabled=True), selection=SelectionSet(1))
    f.click(Y_E4)
    f.click(Y_B4)
    assert f.selection.snapshot() == (p("E4"),)
    assert f.listener.named("selection") == [(p("E4"),)]
    assert f.playback.played == [[p("E4")]]


def test_pointer_disables_keyboard() -> None:
    f = Fixture()
    assert f.key(constants.KEY_TAB)
    assert f.controller.focus_state.mode == NavMode.Navigating
    f.controller.handle_event(PointerMoveEvent(X, Y_E4))
    assert f.controller.focus_state == KeyboardFocusState.idle()
    assert f.listener.named("focus")[-1] == KeyboardFocusState.idle()
    focus_events = len(f.listener.named("focus"))
    # Already idle: no further notification
    f.controller.handle_event(PointerMoveEvent(X, Y_B4))
    assert len(f.listener.named("focus")) == focus_events


def test_click_disables_keyboard() -> None:
    f = Fixture()
    f.key(constants.KEY_TAB)
    f.click(Y_OUTSIDE)
    assert f.controller.focus_state.mode == NavMode.Idle


def test_keyboard_place_and_delete() -> None:
    f = Fixture()
    f.key(constants.KEY_TAB)
    assert f.controller.focus_state.focused == StaffPosition.at(Clef.Treble, 4)
    f.key(constants.KEY_ENTER)
    f.key(constants.KEY_UP)
    f.key(constants.KEY_SPACE)
    assert f.selection.snapshot() == (p("B4"), p("C5"))
    f.key(constants.KEY_DELETE)
    assert f.selection.snapshot() == ()
    assert f.listener.named("selection")[-1] == ()


def test_keyboard_letter_with_modifier_places() -> None:
    f = Fixture()
    f.key(constants.KEY_TAB)
    f.key("g", ctrl=True)
    assert f.selection.snapshot() == (p("G4"),)


def test_escape_requests_blur() -> None:
    f = Fixture()
    f.key(constants.KEY_TAB)
    f.key(constants.KEY_ESCAPE)
    assert f.listener.named("blur") == [None]
    assert f.controller.focus_state == KeyboardFocusState.idle()


def test_escape_while_idle_only_blurs() -> None:
    f = Fixture()
    assert f.key(constants.KEY_ESCAPE)
    assert f.listener.events == [("blur", None)]


def test_unrecognized_key_not_consumed() -> None:
    f = Fixture()
    assert not f.key("q")
    assert f.listener.events == []


def test_custom_deletion_handler() -> None:
    def delete_last(selection: SelectionSet) -> None:
        snapshot = selection.snapshot()
        if snapshot:
            selection.remove(snapshot[-1])

    selection = SelectionSet(5, pitches=[p("C4"), p("E4")])
    controller = InteractionController(init_config(), selection, deletion_handler=delete_last)
    controller.attach(StaticSurface([Clef.Treble]))
    controller.handle_event(KeyEvent(constants.KEY_TAB))
    controller.handle_event(KeyEvent(constants.KEY_BACKSPACE))
    assert selection.snapshot() == (p("C4"),)


def test_secondary_click_cycles_accidental() -> None:
    f = Fixture(config=init_config(max_notes=1, limit_enabled=True), selection=SelectionSet(1))
    f.click(Y_C4)
    assert f.click(Y_C4, PointerButton.Secondary)
    assert f.selection.snapshot() == (p("C#4"),)
    f.click(Y_C4, PointerButton.Secondary)
    assert f.selection.snapshot() == (p("Cb4"),)
    f.click(Y_C4, PointerButton.Secondary)
    assert f.selection.snapshot() == (p("C4"),)


def test_secondary_click_skips_selected_spelling() -> None:
    f = Fixture(selection=SelectionSet(5, pitches=[p("C4"), p("Cb4")]))
    f.click(Y_C4, PointerButton.Secondary)
    assert f.selection.snapshot() == (p("C4"), p("C#4"))


def test_secondary_click_on_empty_position() -> None:
    f = Fixture()
    assert f.click(Y_C4, PointerButton.Secondary)
    assert len(f.selection) == 0
    assert f.listener.named("selection") == []


def test_diatonic_placement() -> None:
    f = Fixture(
        config=init_config(position_match=PositionMatch.Diatonic),
        selection=SelectionSet(5, pitches=[p("C#4")]),
    )
    f.click(Y_C4)
    assert f.selection.snapshot() == ()
    f.click(Y_C4)
    assert f.selection.snapshot() == (p("C4"),)
    assert f.playback.played == [[p("C4")]]


def test_exact_placement_keeps_other_spellings() -> None:
    f = Fixture(selection=SelectionSet(5, pitches=[p("C#4")]))
    f.click(Y_C4)
    assert f.selection.snapshot() == (p("C#4"), p("C4"))


def test_submit_records() -> None:
    f = Fixture()
    f.click(Y_C4)
    f.click(Y_E4)
    result = f.controller.submit([p("C4"), p("E4"), p("G4")])
    assert result.accuracy == 67
    assert f.listener.named("validation") == [result]
    stats = f.tracker.load()
    assert stats.total_attempts == 1
    assert stats.history[0].difficulty == 3
    assert stats.history[0].answer == [p("C4"), p("E4")]


def test_handle_config_changes_capacity() -> None:
    f = Fixture()
    f.click(Y_C4)
    f.click(Y_E4)
    f.controller.handle_config(replace(f.config, max_notes=1, limit_enabled=True))
    assert not f.selection.limit_enabled
    f.controller.handle_config(replace(f.config, max_notes=2, limit_enabled=True))
    assert f.selection.is_full()


def test_handle_config_switches_to_grand_staff() -> None:
    f = Fixture(surface=StaticSurface([Clef.Treble, Clef.Bass]))
    f.key(constants.KEY_TAB)
    f.controller.handle_config(replace(f.config, staff_mode=StaffMode.Grand))
    assert len(f.controller.navigator.positions) == 33
    assert f.controller.focus_state == KeyboardFocusState.idle()
    f.click(140.0)
    assert f.selection.snapshot() == (p("G2"),)


def test_failed_staff_change_keeps_previous_config() -> None:
    # The default surface lays out only a treble staff
    f = Fixture()
    bass = replace(f.config, clef=Clef.Bass, max_notes=1, limit_enabled=True)
    for _ in range(2):
        with pytest.raises(EngineNotInitializedError):
            f.controller.handle_config(bass)
        assert f.controller.config == f.config
        assert not f.selection.limit_enabled
    assert f.click(Y_E4)
    assert f.selection.snapshot() == (p("E4"),)
    assert f.controller.mapper.valid_positions()[0].clef == Clef.Treble


def test_handle_config_range_resets_navigation() -> None:
    f = Fixture()
    f.key(constants.KEY_TAB)
    f.controller.handle_config(replace(f.config, treble_range=(0, 8)))
    assert len(f.controller.navigator.positions) == 9
    assert f.listener.named("focus")[-1] == KeyboardFocusState.idle()


def test_close() -> None:
    f = Fixture()
    f.controller.close()
    assert not f.controller.attached
    assert f.playback.stops == 1
    assert not f.click(Y_E4)
