"""Unit tests for RepeatEngine volta handling."""

import pytest

from chordwave.errors import InvalidRepeatTokenError
from chordwave.line_models import Chord, Line
from chordwave.repeat_engine import RepeatEngine
from chordwave.waveform import Waveform


class RecordingWriter:
    """Collects written PCM chunks instead of encoding a container."""

    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.chunks.append(data)

    @property
    def frames(self) -> int:
        return sum(len(chunk) for chunk in self.chunks) // 2


def _line(length: int) -> Line:
    chord = Chord(frequencies=[440.0])
    chord.set_length(length)
    return Line([chord])


def test_push_without_region_is_ignored() -> None:
    engine = RepeatEngine()
    engine.push(_line(10))
    assert engine.buffered_lines == []
    assert not engine.is_open


def test_unconditional_region_replays_all_lines() -> None:
    engine = RepeatEngine()
    wave, writer = Waveform(frame_rate=1000), RecordingWriter()
    engine.start([0])
    first, second = _line(100), _line(300)
    engine.push(first)
    engine.push(second)

    assert engine.repeat(wave, writer) == 400
    assert writer.frames == 400
    assert wave.buffered == 0


def test_replay_follows_buffer_order() -> None:
    engine = RepeatEngine()
    wave, writer = Waveform(frame_rate=1000), RecordingWriter()
    engine.start([0])
    engine.push(_line(100))
    engine.push(_line(300))
    engine.repeat(wave, writer)
    assert [len(chunk) // 2 for chunk in writer.chunks] == [100, 300]


def test_volta_lines_only_play_on_their_pass() -> None:
    engine = RepeatEngine()
    wave, writer = Waveform(frame_rate=1000), RecordingWriter()
    engine.start([0])
    engine.push(_line(100))
    engine.start([1])
    engine.push(_line(200))

    # pass 2: ending 1 is skipped
    assert engine.repeat(wave, writer) == 100
    engine.start([2])
    engine.push(_line(400))

    # pass 3: neither ending 1 nor 2 plays
    assert engine.repeat(wave, writer) == 100
    assert engine.passes == 3


def test_multi_volta_ending_plays_on_each_listed_pass() -> None:
    engine = RepeatEngine()
    wave, writer = Waveform(frame_rate=1000), RecordingWriter()
    engine.start([0])
    engine.push(_line(100))
    engine.start([1, 2])
    engine.push(_line(200))
    assert engine.repeat(wave, writer) == 300


def test_clear_resets_state() -> None:
    engine = RepeatEngine()
    engine.start([0])
    engine.start([1])
    engine.push(_line(10))
    engine.clear()
    assert not engine.is_open
    assert engine.buffered_lines == []
    assert engine.passes == 1


def test_nested_region_rejected() -> None:
    engine = RepeatEngine()
    engine.start([0])
    with pytest.raises(InvalidRepeatTokenError, match="Nested"):
        engine.start([0])


def test_ending_without_region_opens_one() -> None:
    engine = RepeatEngine()
    wave, writer = Waveform(frame_rate=1000), RecordingWriter()
    engine.start([1])
    assert engine.is_open
    engine.push(_line(100))

    # pass 2 skips the first ending
    assert engine.repeat(wave, writer) == 0
    engine.start([2])
    assert engine.voltas == {1, 2}


def test_reused_ending_rejected() -> None:
    engine = RepeatEngine()
    engine.start([0])
    engine.start([1])
    with pytest.raises(InvalidRepeatTokenError, match="already used"):
        engine.start([1, 2])


def test_repeat_without_region_rejected() -> None:
    with pytest.raises(InvalidRepeatTokenError):
        RepeatEngine().repeat(Waveform(), RecordingWriter())
