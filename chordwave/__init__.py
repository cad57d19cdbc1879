"""chordwave: compile line-oriented chord notation into streamed WAV audio."""

__version__ = "0.1.0"
