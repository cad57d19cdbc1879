"""Unit tests for CaptureMap."""

import pytest

from chordwave.capture_map import CaptureMap
from chordwave.errors import InvalidTokenError, UnknownCaptureError
from chordwave.line_models import Chord


@pytest.mark.parametrize(
    ("token", "key"),
    [("(a)", "a"), ("[melody]", "melody"), ("{x1}", "x1"), ("(a", "a"), ("()", ""), ("[a)", "a)")],
)
def test_parse_key(token: str, key: str) -> None:
    assert CaptureMap.parse_key(token) == key


def test_parse_key_rejects_other_tokens() -> None:
    with pytest.raises(InvalidTokenError):
        CaptureMap.parse_key("<a>")


def test_push_then_current() -> None:
    capture = CaptureMap()
    chord = Chord(frequencies=[440.0])
    capture.push("a", chord)
    assert capture.current("a") is chord


def test_push_replaces_previous_capture() -> None:
    capture = CaptureMap()
    first, second = Chord(), Chord()
    capture.push("a", first)
    capture.push("a", second)
    assert capture.current("a") is second
    assert len(capture) == 1


def test_unknown_key_raises() -> None:
    with pytest.raises(UnknownCaptureError) as exc_info:
        CaptureMap().current("missing")
    assert exc_info.value.key == "missing"


def test_shift_is_deferred_until_update() -> None:
    capture = CaptureMap()
    old, new = Chord(), Chord()
    capture.push("a", old)
    capture.shift("a", new)
    assert capture.current("a") is old
    capture.update()
    assert capture.current("a") is new


def test_clear_is_deferred_until_update() -> None:
    capture = CaptureMap()
    capture.push("a", Chord())
    capture.clear("a")
    assert "a" in capture
    capture.update()
    assert "a" not in capture
    with pytest.raises(UnknownCaptureError):
        capture.current("a")


def test_last_scheduled_action_wins() -> None:
    capture = CaptureMap()
    chord = Chord()
    capture.push("a", Chord())
    capture.clear("a")
    capture.shift("a", chord)
    capture.update()
    assert capture.current("a") is chord


def test_update_resets_schedule() -> None:
    capture = CaptureMap()
    capture.push("a", Chord())
    capture.clear("a")
    capture.update()
    replacement = Chord()
    capture.push("a", replacement)
    capture.update()
    assert capture.current("a") is replacement
