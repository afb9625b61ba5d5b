from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from earstaff.pitch import Accidental, NoteClass, Pitch, sort_pitches
from tests.earstaff.hypo import configure_hypo, pitch_strategy

configure_hypo()

C4 = Pitch.natural(NoteClass.C, 4)
C_SHARP_4 = Pitch(NoteClass.C, Accidental.Sharp, 4)
D_FLAT_4 = Pitch(NoteClass.D, Accidental.Flat, 4)


@pytest.mark.parametrize(
    "text, pitch",
    [
        ("C4", C4),
        ("c4", C4),
        ("f#5", Pitch(NoteClass.F, Accidental.Sharp, 5)),
        ("Bb3", Pitch(NoteClass.B, Accidental.Flat, 3)),
        ("bb3", Pitch(NoteClass.B, Accidental.Flat, 3)),
        ("A0", Pitch.natural(NoteClass.A, 0)),
        ("C-1", Pitch.natural(NoteClass.C, -1)),
        (" E4 ", Pitch.natural(NoteClass.E, 4)),
    ],
)
def test_parse(text: str, pitch: Pitch) -> None:
    assert Pitch.parse(text) == pitch


@pytest.mark.parametrize("text", ["", "C", "H4", "C#", "C#x", "4C", "Cx4"])
def test_parse_invalid(text: str) -> None:
    with pytest.raises(ValueError):
        Pitch.parse(text)


@pytest.mark.parametrize(
    "pitch, midi",
    [
        (C4, 60),
        (Pitch.natural(NoteClass.A, 4), 69),
        (C_SHARP_4, 61),
        (D_FLAT_4, 61),
        (Pitch(NoteClass.B, Accidental.Sharp, 3), 60),
        (Pitch(NoteClass.C, Accidental.Flat, 4), 59),
        (Pitch.natural(NoteClass.C, -1), 0),
    ],
)
def test_midi(pitch: Pitch, midi: int) -> None:
    assert pitch.midi == midi


def test_from_midi_spelling() -> None:
    assert Pitch.from_midi(60) == C4
    assert Pitch.from_midi(61) == C_SHARP_4
    assert Pitch.from_midi(61, prefer_flats=True) == D_FLAT_4
    assert Pitch.from_midi(0) == Pitch.natural(NoteClass.C, -1)


@given(st.integers(min_value=0, max_value=127), st.booleans())
def test_from_midi_round_trip(note: int, prefer_flats: bool) -> None:
    assert Pitch.from_midi(note, prefer_flats).midi == note


def test_enharmonics_are_distinct() -> None:
    assert C_SHARP_4 != D_FLAT_4
    assert C_SHARP_4.midi == D_FLAT_4.midi
    assert len({C_SHARP_4, D_FLAT_4}) == 2


def test_text_forms() -> None:
    assert str(C_SHARP_4) == "C#4"
    assert str(D_FLAT_4) == "Db4"
    assert C_SHARP_4.to_vexflow() == "c#/4"
    assert Pitch.from_vexflow("bb/3") == Pitch(NoteClass.B, Accidental.Flat, 3)
    with pytest.raises(ValueError):
        Pitch.from_vexflow("c4")


@given(pitch_strategy())
def test_text_round_trip(pitch: Pitch) -> None:
    assert Pitch.parse(str(pitch)) == pitch
    assert Pitch.from_vexflow(pitch.to_vexflow()) == pitch


def test_accidental_cycle() -> None:
    assert Accidental.Natural.cycle() == Accidental.Sharp
    assert Accidental.Sharp.cycle() == Accidental.Flat
    assert Accidental.Flat.cycle() == Accidental.Natural
    assert C4.cycle_accidental() == C_SHARP_4


@given(pitch_strategy())
def test_cycle_keeps_position(pitch: Pitch) -> None:
    cycled = pitch.cycle_accidental()
    assert cycled.same_position(pitch)
    assert cycled.cycle_accidental().cycle_accidental() == pitch


def test_diatonic() -> None:
    assert C4.diatonic == 28
    assert Pitch.from_diatonic(28) == C4
    assert Pitch.from_diatonic(-1) == Pitch.natural(NoteClass.B, -1)
    assert C_SHARP_4.same_position(C4)
    assert not D_FLAT_4.same_position(C4)


def test_note_class() -> None:
    assert NoteClass.from_letter("g") == NoteClass.G
    assert NoteClass.B.add_steps(1) == NoteClass.C
    assert NoteClass.C.add_steps(-1) == NoteClass.B
    with pytest.raises(ValueError):
        NoteClass.from_letter("h")


def test_sort_pitches() -> None:
    pitches = [D_FLAT_4, Pitch.natural(NoteClass.E, 4), C_SHARP_4, C4]
    assert sort_pitches(pitches) == [C4, C_SHARP_4, D_FLAT_4, Pitch.natural(NoteClass.E, 4)]


@given(st.lists(pitch_strategy(), max_size=10))
def test_sort_pitches_is_ordered(pitches: List[Pitch]) -> None:
    result = sort_pitches(pitches)
    keys = [p.sort_key() for p in result]
    assert keys == sorted(keys)
    assert sorted(result, key=str) == sorted(pitches, key=str)
