"""WavWriter: Streams mono 16-bit PCM into a WAV container."""

import logging
import os
import wave
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes per sample (16 bit)


class WavWriter:
    """
    Incremental WAV writer built on the standard library ``wave`` module.

    The header is written by ``start`` with zero-sized placeholders, PCM bytes
    are appended by ``write`` as they are drained, and ``finish`` patches the
    RIFF and data sizes. ``abort`` discards a partially written file.

    Usage:

        writer = WavWriter("song.wav")
        writer.start(44100)
        writer.write(pcm_bytes)
        writer.finish()
    """

    def __init__(self, target: str | os.PathLike[str] | BinaryIO) -> None:
        """
        Args:
            target: Output path, or a seekable binary file object (e.g. BytesIO).
        """
        self.target = target
        self.frames_written = 0
        self._wav: wave.Wave_write | None = None

    @property
    def _path(self) -> Path | None:
        if isinstance(self.target, (str, os.PathLike)):
            return Path(self.target)
        return None

    def start(self, frame_rate: int) -> None:
        """
        Open the container and emit its header.

        Raises:
            OSError: If the output cannot be opened or written.
        """
        target = str(self._path) if self._path is not None else self.target
        self._wav = wave.open(target, "wb")
        self._wav.setnchannels(CHANNELS)
        self._wav.setsampwidth(SAMPLE_WIDTH)
        self._wav.setframerate(frame_rate)
        # An empty write forces the header out before any samples
        self._wav.writeframesraw(b"")
        self.frames_written = 0
        logger.debug(f"Started WAV stream at {frame_rate} Hz")

    def write(self, data: bytes) -> None:
        """Append raw PCM bytes (little-endian int16, mono)."""
        if self._wav is None:
            raise RuntimeError("WavWriter.start() must be called before write().")
        if not data:
            return
        self._wav.writeframesraw(data)
        self.frames_written += len(data) // SAMPLE_WIDTH

    def finish(self) -> None:
        """Patch the header sizes and close the container."""
        if self._wav is None:
            raise RuntimeError("WavWriter.start() must be called before finish().")
        self._wav.close()
        self._wav = None
        logger.debug(f"Finished WAV stream with {self.frames_written} frames")

    def abort(self) -> None:
        """Close without committing; a file written to a path is deleted."""
        if self._wav is not None:
            try:
                self._wav.close()
            finally:
                self._wav = None
        if self._path is not None:
            self._path.unlink(missing_ok=True)
            logger.debug(f"Removed incomplete output '{self._path}'")
