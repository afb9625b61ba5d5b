import pytest
from hypothesis import given
from hypothesis import strategies as st

from earstaff.pitch import Accidental, NoteClass, Pitch
from earstaff.pos import (
    Clef,
    StaffPosition,
    is_line,
    ledger_line_count,
    line_position_of,
    pitch_at,
    requires_ledger_line,
)
from tests.earstaff.hypo import configure_hypo

configure_hypo()


@pytest.mark.parametrize(
    "clef, line_position, pitch",
    [
        (Clef.Treble, 0, Pitch.natural(NoteClass.E, 4)),
        (Clef.Treble, 1, Pitch.natural(NoteClass.F, 4)),
        (Clef.Treble, 4, Pitch.natural(NoteClass.B, 4)),
        (Clef.Treble, 8, Pitch.natural(NoteClass.F, 5)),
        (Clef.Treble, -2, Pitch.natural(NoteClass.C, 4)),
        (Clef.Treble, -6, Pitch.natural(NoteClass.F, 3)),
        (Clef.Treble, 14, Pitch.natural(NoteClass.E, 6)),
        (Clef.Bass, 0, Pitch.natural(NoteClass.G, 2)),
        (Clef.Bass, 4, Pitch.natural(NoteClass.D, 3)),
        (Clef.Bass, 8, Pitch.natural(NoteClass.A, 3)),
        (Clef.Bass, 10, Pitch.natural(NoteClass.C, 4)),
        (Clef.Bass, -1, Pitch.natural(NoteClass.F, 2)),
    ],
)
def test_pitch_at(clef: Clef, line_position: int, pitch: Pitch) -> None:
    assert pitch_at(clef, line_position) == pitch
    assert line_position_of(clef, pitch) == line_position


@given(st.sampled_from(list(Clef)), st.integers(min_value=-6, max_value=14))
def test_line_position_round_trip(clef: Clef, line_position: int) -> None:
    assert line_position_of(clef, pitch_at(clef, line_position)) == line_position


def test_accidental_does_not_move_position() -> None:
    sharp = Pitch(NoteClass.F, Accidental.Sharp, 5)
    assert line_position_of(Clef.Treble, sharp) == 8


@pytest.mark.parametrize(
    "line_position, line, ledger, count",
    [
        (-6, True, True, 3),
        (-2, True, True, 1),
        (-1, False, True, 0),
        (0, True, False, 0),
        (3, False, False, 0),
        (8, True, False, 0),
        (9, False, True, 0),
        (10, True, True, 1),
        (14, True, True, 3),
    ],
)
def test_line_classification(line_position: int, line: bool, ledger: bool, count: int) -> None:
    assert is_line(line_position) == line
    assert requires_ledger_line(line_position) == ledger
    assert ledger_line_count(line_position) == count


def test_staff_position() -> None:
    position = StaffPosition.at(Clef.Treble, -2)
    assert position.pitch == Pitch.natural(NoteClass.C, 4)
    assert position.is_line
    assert position.requires_ledger_line
    sharp = Pitch(NoteClass.C, Accidental.Sharp, 4)
    assert StaffPosition.for_pitch(Clef.Treble, sharp).line_position == -2
    assert StaffPosition.for_pitch(Clef.Treble, sharp).pitch == sharp


def test_iter_range() -> None:
    positions = list(StaffPosition.iter_range(Clef.Treble, -6, 14))
    assert len(positions) == 21
    midis = [p.pitch.midi for p in positions]
    assert midis == sorted(midis)
