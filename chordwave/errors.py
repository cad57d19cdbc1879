"""Exceptions raised while compiling notation into audio."""


class ChordwaveError(Exception):
    """
    Base class for every fatal parse or validation error.

    Attributes:
        line_number: 1-based input line on which the error occurred, or None
                     when raised outside of line-by-line parsing.
    """

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}"


class InvalidNoteError(ChordwaveError):
    """A pitch token does not match the note grammar."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Invalid note: {token}")
        self.token = token


class InvalidTokenError(ChordwaveError):
    """A chord-line token is malformed or out of place."""


class UnknownCaptureError(InvalidTokenError):
    """A tie continues a key that holds no captured chord."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No chord captured under key '{key}'")
        self.key = key


class InvalidRepeatTokenError(ChordwaveError):
    """A repeat or volta marker is malformed, nested, or unmatched."""
