"""RepeatEngine: Buffers repeated sections and replays them per volta pass."""

import logging
from dataclasses import dataclass

from chordwave.errors import InvalidRepeatTokenError
from chordwave.line_models import Line
from chordwave.waveform import Waveform
from chordwave.wav_writer import WavWriter

logger = logging.getLogger(__name__)

ALL_PASSES = 0  # volta tag of lines that belong to every pass


@dataclass
class BufferedLine:
    """A line recorded inside a repeat region, tagged with its voltas."""

    voltas: frozenset[int]
    line: Line

    def plays_on(self, pass_number: int) -> bool:
        return ALL_PASSES in self.voltas or pass_number in self.voltas


class RepeatEngine:
    """
    State machine for ``|: ... :|`` repeats with numbered endings.

    Lines parsed while a region is open are buffered together with the volta
    numbers of the ending they were written in. Each ``repeat`` call is one
    more pass through the region (the first replay is pass 2) and replays the
    lines that belong to every pass or to that pass's ending:

        |:            A       tagged {0}
        |1.           B       tagged {1}
        :| |2.                replay pass 2 -> A
                      C       tagged {2}
        ||                    clear

    Regions do not nest, and a volta number can be used once per region.
    """

    def __init__(self) -> None:
        self.voltas: set[int] = set()
        self.passes = 1
        self._tag: frozenset[int] = frozenset()
        self._buffer: list[BufferedLine] = []

    @property
    def is_open(self) -> bool:
        return bool(self.voltas)

    @property
    def buffered_lines(self) -> list[Line]:
        return [entry.line for entry in self._buffer]

    def start(self, voltas: list[int]) -> None:
        """
        Open a region (``[0]``) or begin a numbered ending.

        A numbered ending with no region open opens one tagged with those
        voltas; lines before it are not buffered.

        Raises:
            InvalidRepeatTokenError: On a nested region or a volta number used twice.
        """
        numbers = set(voltas)
        if numbers == {ALL_PASSES}:
            if self.is_open:
                raise InvalidRepeatTokenError("Nested repeat regions are not supported")
            logger.debug("Repeat region opened")
        else:
            if not self.is_open:
                logger.debug("Repeat region opened")
            reused = numbers & self.voltas
            if reused:
                raise InvalidRepeatTokenError(
                    f"Ending {_format_voltas(reused)} already used in this repeat region"
                )
            logger.debug(f"Ending {_format_voltas(numbers)} started")
        self.voltas |= numbers
        self._tag = frozenset(numbers)

    def push(self, line: Line) -> None:
        """Record a parsed line if a region is open."""
        if self.is_open:
            self._buffer.append(BufferedLine(voltas=self._tag, line=line))

    def repeat(self, waveform: Waveform, writer: WavWriter) -> int:
        """
        Replay the buffered lines eligible for the next pass.

        Each line goes through the same fold, drain and write steps as a
        freshly parsed line.

        Returns:
            Number of frames replayed.

        Raises:
            InvalidRepeatTokenError: If no region is open.
        """
        if not self.is_open:
            raise InvalidRepeatTokenError("Repeat end without a matching start")

        self.passes += 1
        frames = 0
        for entry in self._buffer:
            if not entry.plays_on(self.passes):
                continue
            waveform.fold_with_line(entry.line)
            writer.write(waveform.drain_until(entry.line.offset))
            frames += entry.line.offset

        logger.debug(f"Replayed pass {self.passes}: {frames} frames")
        return frames

    def clear(self) -> None:
        """Discard the buffered region and its volta state."""
        if self.is_open:
            logger.debug("Repeat region closed")
        self.voltas.clear()
        self.passes = 1
        self._tag = frozenset()
        self._buffer.clear()


def _format_voltas(voltas: set[int] | frozenset[int]) -> str:
    return ".".join(str(v) for v in sorted(voltas)) + "."
