"""NotationParser: Compiles lines of chord notation into a streamed WAV file."""

import logging
from collections.abc import Callable, Iterable
from enum import Enum

from chordwave.capture_map import BRACKETS, CAPTURE_OPEN, REBIND_OPEN, CaptureMap
from chordwave.errors import ChordwaveError, InvalidRepeatTokenError, InvalidTokenError
from chordwave.line_models import Chord, Line
from chordwave.note_resolver import NoteResolver
from chordwave.repeat_engine import ALL_PASSES, RepeatEngine
from chordwave.waveform import Waveform
from chordwave.wav_writer import WavWriter

logger = logging.getLogger(__name__)

REPEAT = "|"
REPEAT_COLON = ":"
VOLTA_SEPARATOR = "."


class LineKind(Enum):
    BLANK = "blank"
    REPEAT = "repeat"
    TEMPO = "tempo"
    CHORDS = "chords"


def _is_blank(line: str) -> bool:
    return not line


def _is_repeat(line: str) -> bool:
    return REPEAT in line


def _is_tempo(line: str) -> bool:
    return (line[0].isdigit() or line[0] in BRACKETS) and line.isascii() and line.isdigit()


def _is_chords(line: str) -> bool:
    return True


# Tried in order; the first match decides how a stripped line is parsed.
CLASSIFIERS: tuple[tuple[LineKind, Callable[[str], bool]], ...] = (
    (LineKind.BLANK, _is_blank),
    (LineKind.REPEAT, _is_repeat),
    (LineKind.TEMPO, _is_tempo),
    (LineKind.CHORDS, _is_chords),
)


def classify(line: str) -> LineKind:
    """Decide which kind of directive a stripped input line holds."""
    for kind, matches in CLASSIFIERS:
        if matches(line):
            return kind
    raise AssertionError("CLASSIFIERS must end with a catch-all")


class NotationParser:
    """
    Parses notation line by line and writes the resulting audio.

    The parser owns all interpretation state of one run: the waveform
    (tempo and sample buffer), the tie capture map and the repeat engine.

    Notation overview
    -----------------
    ``120``
        Tempo line: quarter-note beats per minute.
    ``4 c4 e4 g4 8* a4``
        Chord line: a length token (note value, optional dots, ``*`` for
        staccato) starts a chord; pitch tokens add notes to it.
    ``2 c4 (x)`` / ``2 [x] e4`` / ``2 {x}``
        Ties: capture the chord under key ``x``, continue it (keeping the
        tie open) or continue and release it.
    ``|:`` ``|1.`` ``:|`` ``|2.`` ``||``
        Repeat line: open a region, start an ending, replay, close.
    """

    def __init__(
        self,
        writer: WavWriter,
        amplitude: float = Waveform.DEFAULT_AMPLITUDE,
        frame_rate: int = Waveform.DEFAULT_FRAME_RATE,
        bpm: int = Waveform.DEFAULT_BPM,
        reference: float = NoteResolver.REFERENCE_FREQUENCY,
    ) -> None:
        """
        Args:
            writer:     Container writer receiving the PCM stream.
            amplitude:  Peak chord level in [0, 1].
            frame_rate: Output sample rate in Hz.
            bpm:        Tempo until the first tempo line.
            reference:  Frequency of A4 in Hz.
        """
        self.writer = writer
        self.wave = Waveform(amplitude=amplitude, frame_rate=frame_rate, bpm=bpm)
        self.note = NoteResolver(reference)
        self.capture = CaptureMap()
        self.repeat = RepeatEngine()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def write(self, lines: Iterable[str]) -> int:
        """
        Parse every line and write the complete WAV stream.

        Args:
            lines: Input lines, with or without trailing newlines.

        Returns:
            Total number of frames written.

        Raises:
            ChordwaveError: On the first malformed line; the error's
                            ``line_number`` points at it.
            OSError:        If the container cannot be written.

        On any error the writer is aborted, so no partial file is left behind.
        """
        self.writer.start(self.wave.frame_rate)
        try:
            for line_number, line in enumerate(lines, start=1):
                try:
                    self.parse(line)
                except ChordwaveError as exc:
                    if exc.line_number is None:
                        exc.line_number = line_number
                    raise

            if self.repeat.is_open:
                logger.warning("Input ended inside a repeat region")
            self.writer.write(self.wave.drain_all())
            self.writer.finish()
        except Exception:
            self.writer.abort()
            raise

        return self.writer.frames_written

    def parse(self, line: str) -> None:
        """Parse a single input line."""
        line = line.strip()
        kind = classify(line)
        if kind is LineKind.BLANK:
            return
        if kind is LineKind.REPEAT:
            self.parse_repeat(line.split())
        elif kind is LineKind.TEMPO:
            try:
                bpm = int(line)
            except ValueError:
                raise InvalidTokenError(f"Invalid tempo: {line}") from None
            self.set_tempo(bpm)
        else:
            self.parse_line(line.split())

    def set_tempo(self, bpm: int) -> None:
        if bpm <= 0:
            raise InvalidTokenError(f"Tempo must be positive, got {bpm}")
        self.wave.bpm = bpm
        logger.debug(f"Tempo set to {bpm} BPM")

    # ------------------------------------------------------------------
    # Repeats
    # ------------------------------------------------------------------

    def parse_repeat(self, tokens: list[str]) -> None:
        for token in tokens:
            if token.endswith(REPEAT):
                self._parse_end(token)
            elif token.startswith(REPEAT):
                self._parse_start(token)
            else:
                raise InvalidRepeatTokenError(f"Invalid repeat token: {token}")

    def _parse_end(self, token: str) -> None:
        prefix = token[: -len(REPEAT)]
        if prefix in ("", REPEAT):
            # final bar: close every ending without replaying
            self.repeat.clear()
        elif prefix == REPEAT_COLON:
            self.repeat.repeat(self.wave, self.writer)
            if self.repeat.voltas == {ALL_PASSES}:
                self.repeat.clear()
        else:
            raise InvalidRepeatTokenError(f"Invalid repeat end token: {token}")

    def _parse_start(self, token: str) -> None:
        suffix = token[len(REPEAT) :]
        if suffix in ("", REPEAT_COLON):
            self.repeat.start([ALL_PASSES])
            return

        voltas = []
        for piece in suffix.split(VOLTA_SEPARATOR):
            if not piece:
                continue
            try:
                volta = int(piece) if piece.isascii() and piece.isdigit() else ALL_PASSES
            except ValueError:
                volta = ALL_PASSES
            if volta == ALL_PASSES:
                raise InvalidRepeatTokenError(f"Invalid repeat start token: {token}")
            voltas.append(volta)
        self.repeat.start(voltas or [ALL_PASSES])

    # ------------------------------------------------------------------
    # Chords
    # ------------------------------------------------------------------

    def parse_line(self, tokens: list[str]) -> Line:
        """
        Build a line of chords, synthesize it and write its frames.

        Returns:
            The parsed Line.
        """
        line = Line()
        chord: Chord | None = None

        for token in tokens:
            lead = token[0]
            if lead.isdigit():
                duration, staccato = Chord.parse_length(token)
                chord = Chord()
                chord.set_length(self.wave.frame_count(duration), staccato)
                line.push(chord)
                continue

            if chord is None:
                raise InvalidTokenError(f"Token before any length token: {token}")

            if lead.isalpha():
                chord.push(self.note.frequency(token))
            elif lead in BRACKETS:
                self._parse_tie(token, chord, line)
            else:
                raise InvalidTokenError(f"Invalid token as line of chords: {token}")

        self.wave.fold_with_line(line)
        self.writer.write(self.wave.drain_until(line.offset))
        self.repeat.push(line)
        self.capture.update()
        return line

    def _parse_tie(self, token: str, chord: Chord, line: Line) -> None:
        key = CaptureMap.parse_key(token)
        if token[0] == CAPTURE_OPEN:
            self.capture.push(key, chord)
            return

        chord.extend(self.capture.current(key))
        line.push(chord)
        if token[0] == REBIND_OPEN:
            self.capture.shift(key, chord)
        else:
            self.capture.clear(key)
