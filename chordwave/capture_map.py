"""CaptureMap: Tracks tied chords across lines by a user-chosen key."""

import logging

from chordwave.errors import InvalidTokenError, UnknownCaptureError
from chordwave.line_models import Chord

logger = logging.getLogger(__name__)

CAPTURE_OPEN = "("   # capture the current chord
REBIND_OPEN = "["    # continue the tie and keep it going
RELEASE_OPEN = "{"   # continue the tie and end it

BRACKETS: dict[str, str] = {
    CAPTURE_OPEN: ")",
    REBIND_OPEN: "]",
    RELEASE_OPEN: "}",
}


class CaptureMap:
    """
    Associates tie keys with the chord most recently captured under them.

    A ``(key)`` token captures the current chord immediately. A ``[key]`` or
    ``{key}`` token reads the captured chord, and schedules the key to be
    re-pointed at the continuing chord or released once the whole line has
    been parsed (see ``update``). Deferring the change lets several tokens on
    the same line read the chord the previous line left behind.
    """

    def __init__(self) -> None:
        self._captured: dict[str, Chord] = {}
        self._to_shift: dict[str, Chord] = {}
        self._to_clear: set[str] = set()

    @staticmethod
    def parse_key(token: str) -> str:
        """
        Extract the key from a bracket token.

        ``"(melody)"`` -> ``"melody"``; the closing bracket is optional and
        ``"()"`` yields the empty key.

        Raises:
            InvalidTokenError: If the token does not start with a tie bracket.
        """
        closing = BRACKETS.get(token[:1])
        if closing is None:
            raise InvalidTokenError(f"Invalid tie token: {token}")
        key = token[1:]
        if key.endswith(closing):
            key = key[: -len(closing)]
        return key

    def push(self, key: str, chord: Chord) -> None:
        """Capture ``chord`` under ``key``, replacing any previous capture."""
        self._captured[key] = chord

    def current(self, key: str) -> Chord:
        """
        Return the chord captured under ``key``.

        Raises:
            UnknownCaptureError: If nothing is captured under the key.
        """
        try:
            return self._captured[key]
        except KeyError:
            raise UnknownCaptureError(key) from None

    def shift(self, key: str, chord: Chord) -> None:
        """Schedule ``key`` to point at ``chord`` after the current line."""
        self._to_clear.discard(key)
        self._to_shift[key] = chord

    def clear(self, key: str) -> None:
        """Schedule ``key`` for removal after the current line."""
        self._to_shift.pop(key, None)
        self._to_clear.add(key)

    def update(self) -> None:
        """Apply the re-points and removals scheduled while parsing a line."""
        for key, chord in self._to_shift.items():
            logger.debug(f"Tie '{key}' continues")
            self._captured[key] = chord
        for key in self._to_clear:
            logger.debug(f"Tie '{key}' released")
            self._captured.pop(key, None)
        self._to_shift.clear()
        self._to_clear.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._captured

    def __len__(self) -> int:
        return len(self._captured)
