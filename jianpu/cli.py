"""jianpu CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from jianpu import __version__
from jianpu.digitizer import Digitizer
from jianpu.midi_exporter import MidiExporter
from jianpu.notation_models import BreakNode, DigitizedNotation, ParsedNotation
from jianpu.parser import parse
from jianpu.serializer import serialize

MAX_PASSES = 8


def _read_source(source_file: str) -> str:
    """Read notation text from a path, or from stdin when the path is ``-``."""
    if source_file == "-":
        return sys.stdin.read()
    return Path(source_file).read_text(encoding="utf-8")


def _load(source_file: str) -> ParsedNotation:
    try:
        return parse(_read_source(source_file))
    except OSError as exc:
        click.echo(f"  ERROR: Could not read '{source_file}' — {exc}", err=True)
        sys.exit(1)


def _digitize(notation: ParsedNotation, max_passes: int) -> DigitizedNotation:
    try:
        return Digitizer(max_passes=max_passes).digitize(notation)
    # InvalidNotationError is a ValueError
    except ValueError as exc:
        click.echo(f"  ERROR: Invalid notation — {exc}", err=True)
        sys.exit(1)


def _kind_name(node: object) -> str:
    return type(node).__name__.removesuffix("Node")


max_passes_option = click.option(
    "--max-passes",
    type=click.IntRange(1, MAX_PASSES),
    default=Digitizer.DEFAULT_MAX_PASSES,
    show_default=True,
    help="Total number of times a repeated section is played.",
)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="jianpu")
@click.option("--verbose", "-v", is_flag=True, help="Log digitizer decisions to stderr.")
def main(verbose: bool) -> None:
    """jianpu — numbered musical notation parser and timeline digitizer."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ── parse subcommand ───────────────────────────────────────────────────────────

@main.command("parse")
@click.argument("source_file", metavar="FILE")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any token is unrecognised.")
def parse_command(source_file: str, strict: bool) -> None:
    """
    List the typed nodes of a jianpu source file.

    FILE is a text file of whitespace-separated tokens, or - for stdin.

    \b
    Examples:
      jianpu parse song.txt
      echo "1=D 4/4 1 2 3 -" | jianpu parse -
    """
    notation = _load(source_file)
    for node in notation:
        line, column = (node.position.line, node.position.column) if node.position else (0, 0)
        click.echo(f"{line:4d}:{column:<4d} {_kind_name(node):<14} {node.raw}")

    unknown = notation.unknown_nodes
    if unknown:
        click.echo(f"  WARNING: {len(unknown)} unrecognised token(s).", err=True)
        if strict:
            sys.exit(1)


# ── digitize subcommand ────────────────────────────────────────────────────────

@main.command("digitize")
@click.argument("source_file", metavar="FILE")
@max_passes_option
def digitize_command(source_file: str, max_passes: int) -> None:
    """
    Print the frequency/break timeline of a jianpu source file.

    \b
    Examples:
      jianpu digitize song.txt
      jianpu digitize song.txt --max-passes 3
    """
    digitized = _digitize(_load(source_file), max_passes)
    for node in digitized.nodes:
        if isinstance(node, BreakNode):
            click.echo(f"{node.time:9.3f}s  Break      before={node.before:.3f}s  base={node.base:.3f}s")
        else:
            click.echo(f"{node.time:9.3f}s  Frequency  {node.value:8.2f} Hz")
    click.echo(f"Duration: {digitized.duration:.3f}s")


# ── format subcommand ──────────────────────────────────────────────────────────

@main.command("format")
@click.argument("source_file", metavar="FILE")
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Write the formatted notation here instead of stdout.",
)
@click.option("--canonical", is_flag=True, help="Spell every note with digits.")
def format_command(source_file: str, output: str | None, canonical: bool) -> None:
    """
    Rewrite a jianpu source file with one space between tokens.

    Line breaks between tokens are kept; runs of whitespace collapse.
    """
    text = serialize(_load(source_file), canonical=canonical)

    if output is None:
        click.echo(text)
        return
    try:
        Path(output).write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        click.echo(f"  ERROR: Could not write '{output}' — {exc}", err=True)
        sys.exit(1)


# ── export subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("source_file", metavar="FILE")
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to FILE with a .mid extension.",
)
@click.option(
    "--velocity",
    type=click.IntRange(0, 127),
    default=MidiExporter.DEFAULT_VELOCITY,
    show_default=True,
    help="MIDI note-on velocity.",
)
@click.option(
    "--program",
    type=click.IntRange(0, 127),
    default=MidiExporter.DEFAULT_PROGRAM,
    show_default=True,
    help="General MIDI program (instrument) number.",
)
@max_passes_option
def export(
    source_file: str,
    output: str | None,
    velocity: int,
    program: int,
    max_passes: int,
) -> None:
    """
    Digitize a jianpu source file and save the melody as MIDI.

    \b
    Examples:
      jianpu export song.txt
      jianpu export song.txt -o song.mid --program 73
    """
    if output is None:
        output = "output.mid" if source_file == "-" else str(Path(source_file).with_suffix(".mid"))

    click.echo(f"jianpu v{__version__}")
    click.echo(f"  Source : {source_file}")
    click.echo(f"  Output : {output}")
    click.echo()

    click.echo("[1/3] Parsing notation...")
    notation = _load(source_file)
    if notation.unknown_nodes:
        click.echo(f"      Ignoring {len(notation.unknown_nodes)} unrecognised token(s).")

    click.echo("[2/3] Digitizing timeline...")
    digitized = _digitize(notation, max_passes)
    click.echo(f"      {len(digitized.frequencies)} pitch event(s), {digitized.duration:.2f} s")

    click.echo(f"[3/3] Writing MIDI file → '{output}'...")
    try:
        MidiExporter(velocity=velocity, program=program).export(digitized, output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Open '{output}' in MuseScore or any MIDI player.")
