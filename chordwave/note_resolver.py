"""NoteResolver: Maps note tokens such as 'a4', 'db3' or 'f#5' to frequencies."""

from chordwave.errors import InvalidNoteError

# ── Key number constants ──────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
REFERENCE_KEY = 49  # A4 on an 88-key piano (1-indexed)

# Semitone slots of the natural letters within an octave starting at C.
# Black keys have no letter of their own and are reached via accidentals.
TONES: list[str | None] = ["c", None, "d", None, "e", "f", None, "g", None, "a", None, "b"]

FLAT = "b"
SHARP = "#"


def is_valid(token: str) -> bool:
    """
    Check a token against the note grammar.

    - rest:       exactly one non-alphanumeric character, e.g. ``.``
    - natural:    letter a-g followed by an octave digit, e.g. ``a4``
    - accidental: letter a-g, ``b`` or ``#``, then an octave digit, e.g. ``db3``
    """
    if len(token) == 1:
        return not token.isalnum()
    if len(token) not in (2, 3) or not token.isascii() or not "a" <= token[0] <= "g" or not token[-1].isdigit():
        return False
    if len(token) == 2:
        return True
    return len(token) == 3 and token[1] in (FLAT, SHARP)


def is_rest(token: str) -> bool:
    return len(token) == 1 and not token.isalnum()


def key_number(token: str) -> int:
    """
    Convert a validated pitch token to its piano key number.

    The index follows https://en.wikipedia.org/wiki/Piano_key_frequencies:
    a3 -> 37, db3 -> 29, f4 -> 45, a4 -> 49.

    Args:
        token: A natural or accidental note token (not a rest).

    Returns:
        Key number, 49 being the A440 reference key.
    """
    index = TONES.index(token[0])
    if len(token) == 3:
        index += -1 if token[1] == FLAT else 1
    octave = int(token[-1])
    return index + 4 + SEMITONES_PER_OCTAVE * (octave - 1)


class NoteResolver:
    """
    Resolves note tokens to frequencies in equal temperament.

    The reference frequency of key 49 (A4) defaults to 440 Hz and can be
    changed for alternative concert pitches (e.g. 415.0 for baroque tuning).
    """

    REFERENCE_FREQUENCY = 440.0

    def __init__(self, reference: float = REFERENCE_FREQUENCY) -> None:
        """
        Args:
            reference: Frequency in Hz assigned to A4.
        """
        if reference <= 0:
            raise ValueError(f"Reference frequency must be positive, got {reference}.")
        self.reference = reference

    def frequency(self, token: str) -> float:
        """
        Resolve a note token to its frequency.

        Args:
            token: Note text, e.g. ``"a4"``, ``"c#5"``, ``"bb2"`` or a rest.

        Returns:
            Frequency in Hz, or 0.0 for a rest.

        Raises:
            InvalidNoteError: If the token does not match the note grammar.
        """
        if not is_valid(token):
            raise InvalidNoteError(token)
        if is_rest(token):
            return 0.0
        exponent = (key_number(token) - REFERENCE_KEY) / SEMITONES_PER_OCTAVE
        return self.reference * 2.0**exponent


_default_resolver = NoteResolver()


def resolve(token: str) -> float:
    """Resolve a note token at the standard A440 reference."""
    return _default_resolver.frequency(token)
