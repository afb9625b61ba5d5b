from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from earstaff.pitch import Pitch
from earstaff.validator import NoteStatus, feedback_message, note_status, validate
from tests.earstaff.hypo import configure_hypo, pitch_strategy

configure_hypo()


def pitches(*texts: str) -> List[Pitch]:
    return [Pitch.parse(t) for t in texts]


def test_exact_match() -> None:
    result = validate(pitches("C4", "E4", "G4"), pitches("G4", "C4", "E4"))
    assert result.is_correct
    assert result.accuracy == 100
    assert result.correctly_identified == tuple(pitches("C4", "E4", "G4"))
    assert result.missed == ()
    assert result.incorrect == ()


def test_partial_match() -> None:
    result = validate(pitches("C4", "E4", "G4"), pitches("C4", "E4", "A4"))
    assert not result.is_correct
    assert result.accuracy == 67
    assert result.correctly_identified == tuple(pitches("C4", "E4"))
    assert result.missed == tuple(pitches("G4"))
    assert result.incorrect == tuple(pitches("A4"))


def test_enharmonic_is_wrong() -> None:
    result = validate(pitches("C#4"), pitches("Db4"))
    assert not result.is_correct
    assert result.accuracy == 0
    assert result.missed == tuple(pitches("C#4"))
    assert result.incorrect == tuple(pitches("Db4"))


def test_extra_selection_is_not_correct() -> None:
    result = validate(pitches("C4"), pitches("C4", "D4"))
    assert result.accuracy == 100
    assert not result.is_correct


@pytest.mark.parametrize(
    "selected, is_correct",
    [([], True), (["C4"], False)],
)
def test_empty_target(selected: List[str], is_correct: bool) -> None:
    result = validate([], pitches(*selected))
    assert result.accuracy == 0
    assert result.is_correct == is_correct


def test_duplicates_ignored() -> None:
    result = validate(pitches("C4", "C4", "E4"), pitches("E4", "E4", "C4"))
    assert result.is_correct
    assert result.target == tuple(pitches("C4", "E4"))


def test_inputs_not_mutated() -> None:
    target = pitches("G4", "C4")
    selected = pitches("E4", "C4")
    validate(target, selected)
    assert target == pitches("G4", "C4")
    assert selected == pitches("E4", "C4")


@given(st.lists(pitch_strategy(), max_size=6), st.lists(pitch_strategy(), max_size=6), st.randoms())
def test_order_independent(target: List[Pitch], selected: List[Pitch], rng) -> None:
    shuffled_target = list(target)
    shuffled_selected = list(selected)
    rng.shuffle(shuffled_target)
    rng.shuffle(shuffled_selected)
    assert validate(target, selected) == validate(shuffled_target, shuffled_selected)


@given(st.lists(pitch_strategy(), max_size=6), st.lists(pitch_strategy(), max_size=6))
def test_partition(target: List[Pitch], selected: List[Pitch]) -> None:
    result = validate(target, selected)
    assert set(result.correctly_identified) | set(result.missed) == set(target)
    assert set(result.correctly_identified) | set(result.incorrect) == set(selected)
    assert result.is_correct == (set(target) == set(selected))
    assert 0 <= result.accuracy <= 100


def test_feedback_message() -> None:
    assert feedback_message(validate(pitches("C4"), pitches("C4"))) == (
        "Perfect! You identified all notes correctly."
    )
    result = validate(pitches("C4", "E4", "G4"), pitches("C4", "E4", "A4"))
    assert feedback_message(result) == (
        "You correctly identified 2 out of 3 notes. You missed: G4. Incorrect selections: A4."
    )
    assert feedback_message(validate(pitches("C4"), [])) == "You missed: C4."


def test_note_status() -> None:
    result = validate(pitches("C4", "E4", "G4"), pitches("C4", "E4", "A4"))
    assert note_status(Pitch.parse("C4"), result) == NoteStatus.Correct
    assert note_status(Pitch.parse("A4"), result) == NoteStatus.Incorrect
    assert note_status(Pitch.parse("G4"), result) == NoteStatus.Missed
    assert note_status(Pitch.parse("B4"), result) == NoteStatus.Unselected
