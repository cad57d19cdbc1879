"""chordwave CLI entry point."""

import logging
import sys
from pathlib import Path
from typing import NoReturn, TextIO

import click

from chordwave import __version__
from chordwave.errors import ChordwaveError
from chordwave.line_models import Chord, Line
from chordwave.note_resolver import NoteResolver
from chordwave.parser import NotationParser
from chordwave.waveform import Waveform
from chordwave.wav_writer import WavWriter

MIN_FRAME_RATE = 1000
MAX_FRAME_RATE = 192000


def _default_output(source: TextIO) -> str:
    """Derive the WAV path from the input file name, or ``output.wav`` for stdin."""
    name = getattr(source, "name", "")
    if not name or name == "<stdin>":
        return "output.wav"
    return str(Path(name).with_suffix(".wav"))


def _fail(message: str) -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="chordwave")
@click.option("--verbose", "-v", is_flag=True, help="Log parser and writer activity.")
def main(verbose: bool) -> None:
    """chordwave — render chord notation to WAV audio."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


# ── shared options ─────────────────────────────────────────────────────────────

_frame_rate_option = click.option(
    "--frame-rate",
    type=click.IntRange(MIN_FRAME_RATE, MAX_FRAME_RATE),
    default=Waveform.DEFAULT_FRAME_RATE,
    show_default=True,
    help="Output sample rate in Hz.",
)
_amplitude_option = click.option(
    "--amplitude",
    type=click.FloatRange(0.0, 1.0),
    default=Waveform.DEFAULT_AMPLITUDE,
    show_default=True,
    help="Peak level of each chord (0–1).",
)
_reference_option = click.option(
    "--reference",
    type=click.FloatRange(min=1.0),
    default=NoteResolver.REFERENCE_FREQUENCY,
    show_default=True,
    metavar="HZ",
    help="Tuning reference: frequency of a4.",
)


# ── render subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination WAV file. Defaults to the input name with .wav (output.wav for stdin).",
)
@click.option(
    "--tempo",
    type=click.IntRange(1, 1000),
    default=Waveform.DEFAULT_BPM,
    show_default=True,
    help="Tempo in BPM until the first tempo line.",
)
@_frame_rate_option
@_amplitude_option
@_reference_option
def render(
    source: TextIO,
    output: str | None,
    tempo: int,
    frame_rate: int,
    amplitude: float,
    reference: float,
) -> None:
    """
    Render a notation file to a WAV file.

    SOURCE is the notation file to read ("-" or omitted for stdin).

    \b
    Examples:
      chordwave render song.txt
      chordwave render song.txt -o song.wav --frame-rate 22050
      cat song.txt | chordwave render -o song.wav --tempo 90
    """
    resolved_output = output if output is not None else _default_output(source)
    source_name = getattr(source, "name", "")
    if source_name and source_name != "<stdin>":
        if Path(resolved_output).resolve() == Path(source_name).resolve():
            _fail(f"Output '{resolved_output}' would overwrite the input file; pass a different -o.")

    click.echo(f"chordwave v{__version__}")
    click.echo(f"  Input  : {getattr(source, 'name', '<stdin>')}")
    click.echo(f"  Output : {resolved_output}")
    click.echo(f"  Rate   : {frame_rate} Hz  |  Tempo: {tempo} BPM")
    click.echo()

    click.echo("[1/1] Compiling notation...")
    parser = NotationParser(
        WavWriter(resolved_output),
        amplitude=amplitude,
        frame_rate=frame_rate,
        bpm=tempo,
        reference=reference,
    )
    try:
        frames = parser.write(source)
    except ChordwaveError as exc:
        _fail(str(exc))
    except OSError as exc:
        _fail(f"Could not write WAV file — {exc}")

    click.echo(f"      Wrote {frames} frames ({frames / frame_rate:.2f} s)")
    click.echo()
    click.echo(f"Done!  Play '{resolved_output}' in any audio player.")


# ── tone subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("note")
@click.option(
    "--duration",
    type=click.FloatRange(min=0.0, min_open=True),
    default=1.0,
    show_default=True,
    metavar="SECS",
    help="Length of the tone in seconds.",
)
@click.option(
    "--output",
    "-o",
    default="tone.wav",
    show_default=True,
    metavar="PATH",
    help="Destination WAV file.",
)
@_frame_rate_option
@_amplitude_option
@_reference_option
def tone(
    note: str,
    duration: float,
    output: str,
    frame_rate: int,
    amplitude: float,
    reference: float,
) -> None:
    """
    Write a single sustained note to a WAV file.

    NOTE is a note token such as a4, c#5 or bb2.

    \b
    Examples:
      chordwave tone a4
      chordwave tone c#5 --duration 2.5 --amplitude 0.8 -o cs5.wav
    """
    try:
        frequency = NoteResolver(reference).frequency(note)
    except ChordwaveError as exc:
        _fail(str(exc))

    chord = Chord(frequencies=[frequency])
    chord.set_length(round(duration * frame_rate))
    wave = Waveform(amplitude=amplitude, frame_rate=frame_rate)
    writer = WavWriter(output)

    click.echo(f"Writing {note} ({frequency:.2f} Hz, {duration:g} s) → '{output}'...")
    try:
        writer.start(frame_rate)
        wave.fold_with_line(Line([chord]))
        writer.write(wave.drain_all())
        writer.finish()
    except OSError as exc:
        writer.abort()
        _fail(f"Could not write WAV file — {exc}")

    click.echo("Done!")
