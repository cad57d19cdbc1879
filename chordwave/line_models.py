"""Data models for chords and lines of notation."""

import re
from dataclasses import dataclass, field

from chordwave.errors import InvalidTokenError

STACCATO = "*"

# <denominator><dots>, e.g. "4" (quarter), "8." (dotted eighth), "2.." (double-dotted half)
_DURATION_RE = re.compile(r"^(\d+)(\.*)$")


def parse_duration(duration: str) -> tuple[int, int]:
    """
    Split a duration text into its note value and number of dots.

    Args:
        duration: Length token without the staccato marker, e.g. ``"8."``.

    Returns:
        (denominator, dots) where denominator 4 is a quarter note.

    Raises:
        InvalidTokenError: If the text is not a positive note value with optional dots.
    """
    match = _DURATION_RE.match(duration)
    if not match:
        raise InvalidTokenError(f"Invalid length token: {duration}")
    try:
        denominator = int(match.group(1))
    except ValueError:
        # digit run beyond the interpreter's int conversion limit
        raise InvalidTokenError(f"Invalid length token: {duration}") from None
    if denominator == 0:
        raise InvalidTokenError(f"Invalid length token: {duration}")
    return denominator, len(match.group(2))


@dataclass(eq=False)
class Chord:
    """
    A set of simultaneously sounding frequencies.

    Chords compare by identity: the same instance can be held by a Line and
    by the CaptureMap at once, and tie handling relies on that sharing.

    Attributes:
        frequencies: Frequencies in Hz, duplicates allowed (each is mixed as its own voice).
        length:      Total frames the chord occupies.
        size:        Audible frames (<= length); the remainder is silence.
    """

    frequencies: list[float] = field(default_factory=list)
    length: int = 0
    size: int = 0

    @staticmethod
    def parse_length(token: str) -> tuple[str, bool]:
        """Strip the staccato marker from a length token: ``"4*"`` -> ``("4", True)``."""
        if token.endswith(STACCATO):
            return token[: -len(STACCATO)], True
        return token, False

    def set_length(self, length: int, staccato: bool = False) -> None:
        self.length = length
        self.size = length // 2 if staccato else length

    def push(self, frequency: float) -> None:
        self.frequencies.append(frequency)

    def extend(self, other: "Chord") -> None:
        """Merge another chord's frequencies into this one (a tie)."""
        self.frequencies.extend(other.frequencies)


@dataclass
class Line:
    """An ordered sequence of chords parsed from one line of input."""

    chords: list[Chord] = field(default_factory=list)

    def push(self, chord: Chord) -> None:
        """
        Append a chord unless it is already the most recent one.

        A tie continue re-appends the chord being built, which is always the
        last entry, so that re-append leaves the line unchanged.
        """
        if self.chords and self.chords[-1] is chord:
            return
        self.chords.append(chord)

    @property
    def offset(self) -> int:
        """Total frames covered by the line."""
        return sum(chord.length for chord in self.chords)

    def __iter__(self):
        return iter(self.chords)

    def __len__(self) -> int:
        return len(self.chords)
