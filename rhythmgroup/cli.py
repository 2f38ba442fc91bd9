"""rhythmgroup CLI entry point."""

import logging
import sys

import click

from rhythmgroup import __version__
from rhythmgroup.notation import parse_rhythm, parse_time_signature
from rhythmgroup.rhythm_models import RhythmicInterval, StemDirection
from rhythmgroup.voice import Voice


def _describe_interval(interval: RhythmicInterval) -> str:
    """Short label such as ``8@3`` (eighth starting at unit 3) or ``qdr@1``."""
    length = interval.length
    name = {16: "w", 8: "h", 4: "q", 2: "8", 1: "16"}[length.basic_length.value]
    dot = "d" if length.dotted else ""
    rest = "r" if interval.is_rest else ""
    return f"{name}{dot}{rest}@{interval.start_unit}"


def _echo_voice(voice: Voice) -> None:
    """Print one line per sub group followed by its beamed runs."""
    for idx, sub_group in enumerate(voice.sub_groups):
        members = " ".join(_describe_interval(i) for i in sub_group) or "-"
        stem = voice.stem_direction_for(idx).value
        click.echo(
            f"  [{idx}] units {sub_group.start_unit:>2}-{sub_group.end_unit:<2}  "
            f"padding {sub_group.padding_factor}  stem {stem:<4}  {members}"
        )
        for run in sub_group.connected_intervals:
            click.echo(f"        beam: {' '.join(_describe_interval(i) for i in run)}")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="rhythmgroup")
@click.option("--verbose", "-v", is_flag=True, help="Log sub group recalculation details.")
def main(verbose: bool) -> None:
    """rhythmgroup: beat grouping, stem direction and beaming for measures."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── group subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("rhythm")
@click.option(
    "--time-signature",
    "-t",
    default="4/4",
    show_default=True,
    metavar="N/D",
    help="Time signature of the measure.",
)
@click.option(
    "--stem",
    type=click.Choice(["up", "down"], case_sensitive=False),
    default=None,
    help="Force one stem direction for the whole voice.",
)
def group(rhythm: str, time_signature: str, stem: str | None) -> None:
    """
    Group a single measure given in rhythm shorthand.

    RHYTHM is a quoted list of tokens DURATION[r][:KEY[+KEY...]] with
    durations w, hd, h, qd, q, 8d, 8, 16.

    \b
    Examples:
      rhythmgroup group "8:c/5 8:d/5 8:e/5 8:f/5 q:g/4 q:a/4"
      rhythmgroup group "16 16 16r 16 8d 16 h" -t 4/4
      rhythmgroup group "8 8 8 8 8 8" -t 6/8 --stem down
    """
    try:
        signature = parse_time_signature(time_signature)
        voice = Voice(parse_rhythm(rhythm), signature)
    except ValueError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    if stem is not None:
        voice.stem_direction = StemDirection(stem.lower())

    click.echo(f"Measure in {signature} ({signature.units} units)")
    _echo_voice(voice)


# ── inspect subcommand ─────────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
def inspect(score_file: str) -> None:
    """
    Group every measure of the first part of a MIDI or MusicXML file.

    SCORE_FILE is the path to an existing .mid or .musicxml file.
    """
    from rhythmgroup.score_importer import voices_from_file

    click.echo(f"rhythmgroup v{__version__}")
    click.echo(f"  Score  : {score_file}")
    click.echo()

    try:
        voices = voices_from_file(score_file)
    except (OSError, ValueError) as exc:
        click.echo(f"  ERROR: Could not read score: {exc}", err=True)
        sys.exit(1)

    if not voices:
        click.echo("  WARNING: No measure could be grouped.", err=True)
        sys.exit(1)

    for number, voice in enumerate(voices, start=1):
        click.echo(f"Measure {number} in {voice.time_signature}")
        _echo_voice(voice)
