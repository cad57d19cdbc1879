"""Unit tests for Chord and Line."""

import sys

import pytest

from chordwave.errors import InvalidTokenError
from chordwave.line_models import Chord, Line, parse_duration


def test_parse_length_strips_staccato() -> None:
    assert Chord.parse_length("4*") == ("4", True)
    assert Chord.parse_length("8.") == ("8.", False)


def test_staccato_halves_audible_size() -> None:
    chord = Chord()
    chord.set_length(1000, staccato=True)
    assert chord.length == 1000
    assert chord.size == 500


def test_legato_size_equals_length() -> None:
    chord = Chord()
    chord.set_length(1001)
    assert chord.size == 1001


def test_extend_keeps_duplicates() -> None:
    chord = Chord(frequencies=[440.0])
    chord.extend(Chord(frequencies=[440.0, 660.0]))
    assert chord.frequencies == [440.0, 440.0, 660.0]


def test_chords_compare_by_identity() -> None:
    assert Chord() != Chord()


def test_line_offset_sums_lengths() -> None:
    line = Line()
    for length in (100, 250, 50):
        chord = Chord()
        chord.set_length(length)
        line.push(chord)
    assert line.offset == 400
    assert len(line) == 3


def test_line_push_ignores_repeated_last_chord() -> None:
    chord = Chord(length=10, size=10)
    line = Line()
    line.push(chord)
    line.push(chord)
    assert line.chords == [chord]
    assert line.offset == 10


def test_empty_line_offset_is_zero() -> None:
    assert Line().offset == 0


@pytest.mark.parametrize(
    ("text", "expected"),
    [("4", (4, 0)), ("8.", (8, 1)), ("2..", (2, 2)), ("16", (16, 0))],
)
def test_parse_duration(text: str, expected: tuple[int, int]) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["0", "4x", ".4", "", "4*", "4/3"])
def test_parse_duration_rejects_malformed(text: str) -> None:
    with pytest.raises(InvalidTokenError):
        parse_duration(text)


@pytest.mark.skipif(
    getattr(sys, "get_int_max_str_digits", lambda: 0)() == 0,
    reason="interpreter has no int string conversion limit",
)
def test_parse_duration_rejects_oversized_value() -> None:
    with pytest.raises(InvalidTokenError):
        parse_duration("9" * 5000)
