"""Waveform: Additive sine synthesis into a rolling buffer of PCM samples."""

import logging
import math
from collections.abc import Iterable

import numpy as np

from chordwave.line_models import Chord, parse_duration

logger = logging.getLogger(__name__)

BEATS_PER_WHOLE_NOTE = 4  # a quarter note is one beat
SECONDS_PER_MINUTE = 60
INT16_MAX = 32767


class Waveform:
    """
    Synthesizes chords into a float sample buffer and drains it as 16-bit PCM.

    Frames are produced line by line by ``fold_with_line`` and released by
    ``drain_until`` / ``drain_all``. Samples stay in [-1.0, 1.0] floats while
    buffered and are only quantized when drained.

    Timing
    ------
    A duration token names a note value (1 whole, 2 half, 4 quarter, ...)
    with optional dots. Its length in frames is

        beats  = 4 / denominator * (2 - 2 ** -dots)
        frames = round_half_up(beats * 60 / bpm * frame_rate)

    Rounding happens per chord, so each chord may drift by at most half a
    frame from its exact position.
    """

    DEFAULT_FRAME_RATE = 44100
    DEFAULT_AMPLITUDE = 0.5
    DEFAULT_BPM = 120

    def __init__(
        self,
        amplitude: float = DEFAULT_AMPLITUDE,
        frame_rate: int = DEFAULT_FRAME_RATE,
        bpm: int = DEFAULT_BPM,
    ) -> None:
        """
        Args:
            amplitude:  Peak level of a chord in [0, 1]; scales samples linearly.
            frame_rate: Frames (samples) per second.
            bpm:        Initial tempo in quarter-note beats per minute.
        """
        if not 0.0 <= amplitude <= 1.0:
            raise ValueError(f"Amplitude must be within [0, 1], got {amplitude}.")
        if frame_rate <= 0:
            raise ValueError(f"Frame rate must be positive, got {frame_rate}.")
        self.amplitude = amplitude
        self.frame_rate = frame_rate
        self.bpm = bpm
        self._buffer = np.zeros(0, dtype=np.float64)
        self._synthesized = 0
        self._drained = 0

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    @property
    def synthesized(self) -> int:
        """Frames produced by ``fold_with_line`` so far."""
        return self._synthesized

    @property
    def drained(self) -> int:
        """Frames released by ``drain_until`` / ``drain_all`` so far."""
        return self._drained

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _synthesize(self, chord: Chord, start: int) -> np.ndarray:
        """
        Render one chord starting at absolute frame ``start``.

        Time is measured from the start of the stream rather than the start
        of the chord, so a frequency carried over by a tie continues with the
        same phase instead of restarting with a click.
        """
        samples = np.zeros(chord.length, dtype=np.float64)
        voices = [f for f in chord.frequencies if f > 0.0]
        if not voices or chord.size == 0:
            return samples

        t = (start + np.arange(chord.size)) / self.frame_rate
        mix = np.zeros(chord.size, dtype=np.float64)
        for frequency in voices:
            mix += np.sin(2 * np.pi * frequency * t)

        # Divide by voice count so the sum never exceeds the amplitude
        samples[: chord.size] = mix * (self.amplitude / len(voices))
        return samples

    def _quantize(self, samples: np.ndarray) -> bytes:
        return (np.clip(samples, -1.0, 1.0) * INT16_MAX).astype("<i2").tobytes()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def frame_count(self, duration: str) -> int:
        """
        Convert a duration token to a frame count at the current tempo.

        Args:
            duration: Note value with optional dots, e.g. ``"4"`` or ``"8."``.

        Returns:
            Number of frames, rounded half up.

        Raises:
            InvalidTokenError: If the duration text is malformed.
        """
        denominator, dots = parse_duration(duration)
        beats = BEATS_PER_WHOLE_NOTE / denominator * (2 - 2.0**-dots)
        frames = beats * SECONDS_PER_MINUTE / self.bpm * self.frame_rate
        return math.floor(frames + 0.5)

    def fold_with_line(self, chords: Iterable[Chord]) -> int:
        """
        Synthesize every chord of a line and append it to the buffer.

        Args:
            chords: A Line (or any iterable of chords) in playing order.

        Returns:
            Number of frames appended.
        """
        segments = []
        start = self._synthesized
        for chord in chords:
            segments.append(self._synthesize(chord, start))
            start += chord.length

        appended = start - self._synthesized
        if segments:
            self._buffer = np.concatenate([self._buffer, *segments])
        self._synthesized = start
        return appended

    def drain_until(self, offset: int) -> bytes:
        """
        Remove the first ``offset`` buffered frames and return them as PCM.

        Args:
            offset: Number of frames to release from the start of the buffer.

        Returns:
            Little-endian signed 16-bit samples.

        Raises:
            ValueError: If fewer than ``offset`` frames are buffered.
        """
        if offset < 0 or offset > len(self._buffer):
            raise ValueError(
                f"Cannot drain {offset} frames; only {len(self._buffer)} are buffered."
            )
        drained, self._buffer = self._buffer[:offset], self._buffer[offset:]
        self._drained += offset
        return self._quantize(drained)

    def drain_all(self) -> bytes:
        """Release everything still buffered."""
        return self.drain_until(len(self._buffer))
