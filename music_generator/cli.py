"""Command line helpers for the Random Music Generator.

This module implements the console entry point.  :func:`run_cli` parses the
command line, clamps raw values to the ranges the generator expects and then
calls into the library: generate a piece and export it, write the fixed
demonstration melody, print scale and instrument information or render the
per-scale demo batch.  Settings stored in the JSON settings file act as
defaults for every option that is not given explicitly.

Example
-------
Running ``python -m music_generator --measures 8 --time-signature 4 \
    --scale major --root C4 --melody 0.3 --output song.mid`` writes an eight
measure piece in C major to ``song.mid`` and prints its statistics.  Without
``--output`` the file is named ``generated_music_<milliseconds>.mid``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import DEFAULT_SETTINGS_FILE, load_settings, save_settings
from .generator import GeneratorConfig, MusicGenerator
from .instruments import INSTRUMENTS
from .midi_io import MidiEncodingError, create_simple_midi, export_piece
from .note_utils import note_name, note_to_midi
from .theory import ScaleType, seed as seed_rng

__all__ = ["run_cli", "main", "build_parser"]

MIN_MEASURES, MAX_MEASURES = 4, 16
MIN_TIME_SIGNATURE, MAX_TIME_SIGNATURE = 3, 6
MIN_ROOT, MAX_ROOT = 60, 84
DEFAULT_ROOT = 60
DEFAULT_MEASURES = 8
DEFAULT_TIME_SIGNATURE = 4

# C major up and back down; durations in quarter-note units.
SIMPLE_MELODY_PITCHES = [60, 62, 64, 65, 67, 69, 71, 72, 71, 69, 67, 65, 64, 62, 60]
SIMPLE_MELODY_DURATIONS = [1, 1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 2]

# Number of instruments shown alongside ``--scale-info``.
INSTRUMENT_PREVIEW = 20


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _root_argument(text: str) -> int:
    """Parse ``--root`` given either as a MIDI number or a note name."""

    try:
        return int(text)
    except ValueError:
        pass
    try:
        return note_to_midi(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _timestamped_filename(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}.mid"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a random piece of music and save it as a MIDI file."
    )
    parser.add_argument("--measures", type=int, help=f"Number of measures ({MIN_MEASURES}-{MAX_MEASURES}, default: {DEFAULT_MEASURES}, or 4 with --demo).")
    parser.add_argument("--time-signature", type=int, help=f"Beats per measure ({MIN_TIME_SIGNATURE}-{MAX_TIME_SIGNATURE}, default: {DEFAULT_TIME_SIGNATURE}).")
    parser.add_argument(
        "--scale",
        type=str.lower,
        choices=["random"] + [s.value.lower() for s in ScaleType],
        help="Scale type, or 'random' to pick a new scale and root.",
    )
    parser.add_argument("--root", type=_root_argument, help=f"Root note as MIDI number or name ({MIN_ROOT}-{MAX_ROOT}, e.g. 60 or C4).")
    parser.add_argument("--tempo", type=int, help="Tempo in beats per minute.")
    parser.add_argument("--melody", type=float, help="Melody complexity (0.0-1.0).")
    parser.add_argument("--harmony", type=float, help="Harmony complexity (0.0-1.0).")
    parser.add_argument("--rhythm", type=float, help="Rhythm variation (0.0-1.0).")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--output", "-o", type=str, help="Output MIDI file path.")
    parser.add_argument("--title", type=str, help="Title stored with the generated piece.")
    parser.add_argument("--composer", type=str, help="Composer stored with the generated piece.")
    parser.add_argument("--simple-melody", action="store_true", help="Write the fixed C major demonstration melody and exit")
    parser.add_argument("--scale-info", action="store_true", help="Show the current scale and the first instruments and exit")
    parser.add_argument("--list-instruments", action="store_true", help="List all General MIDI instruments and exit")
    parser.add_argument("--demo", type=str, metavar="DIR", help="Write one demo piece per scale type into DIR and exit")
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file")
    parser.add_argument("--save-settings", action="store_true", help="Persist the effective scale, tempo and complexity settings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def _configure_generator(args: argparse.Namespace, settings: dict) -> MusicGenerator:
    """Create a generator from stored ``settings`` overridden by ``args``."""

    try:
        config = GeneratorConfig.from_settings(settings)
    except (TypeError, ValueError) as exc:
        logging.error("Ignoring invalid settings: %s", exc)
        config = GeneratorConfig.random()
    generator = MusicGenerator(config)

    if args.scale == "random":
        generator.change_scale()
    elif args.scale is not None or args.root is not None:
        scale_type = ScaleType.from_name(args.scale) if args.scale else generator.scale_type
        if args.root is not None:
            root = args.root
        elif args.scale is not None:
            root = DEFAULT_ROOT
        else:
            root = generator.root_note
        generator.set_scale(scale_type, _clamp(root, MIN_ROOT, MAX_ROOT))

    if args.melody is not None or args.harmony is not None or args.rhythm is not None:
        generator.set_parameters(
            args.melody if args.melody is not None else generator.melody_complexity,
            args.harmony if args.harmony is not None else generator.harmony_complexity,
            args.rhythm if args.rhythm is not None else generator.rhythm_variety,
        )
    if args.tempo is not None:
        generator.set_tempo(args.tempo, generator.ticks_per_beat)
    return generator


def _show_scale_info(generator: MusicGenerator) -> None:
    print(generator.scale_info())
    print()
    print(f"Available MIDI instruments (first {INSTRUMENT_PREVIEW}):")
    for number, name in enumerate(INSTRUMENTS[:INSTRUMENT_PREVIEW], start=1):
        print(f"{number}. {name}")
    print("... More instruments available")


def _write_simple_melody(output: Optional[str]) -> None:
    path = output or _timestamped_filename("simple_melody")
    try:
        create_simple_midi(path, SIMPLE_MELODY_PITCHES, SIMPLE_MELODY_DURATIONS)
    except (MidiEncodingError, OSError) as exc:
        logging.error("Could not create simple melody: %s", exc)
        sys.exit(1)
    names = " ".join(note_name(p) for p in SIMPLE_MELODY_PITCHES)
    print(f"Simple melody created: {path}")
    print(f"Notes: {names}")


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` (defaults to ``sys.argv``) and perform the requested action.

    Measures, time signature and root note are clamped to the supported
    ranges before the generator is called.  Encoding and filesystem failures
    are logged and terminate the process with exit status ``1``.
    """

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_instruments:
        for number, name in enumerate(INSTRUMENTS):
            print(f"{number:3d}  {name}")
        return

    if args.tempo is not None and args.tempo <= 0:
        logging.error("Tempo must be a positive integer.")
        sys.exit(1)

    if args.seed is not None:
        seed_rng(args.seed)

    settings_path = (
        Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    )
    generator = _configure_generator(args, load_settings(settings_path))

    if args.save_settings:
        save_settings(generator.config.to_settings(), settings_path)
        logging.info("Settings saved to %s", settings_path)

    if args.scale_info:
        _show_scale_info(generator)
        return

    if args.simple_melody:
        _write_simple_melody(args.output)
        return

    # Only explicit sizes are forwarded so the demo keeps its own defaults.
    size = {}
    if args.measures is not None:
        size["measures"] = _clamp(args.measures, MIN_MEASURES, MAX_MEASURES)
    if args.time_signature is not None:
        size["time_signature"] = _clamp(
            args.time_signature, MIN_TIME_SIGNATURE, MAX_TIME_SIGNATURE
        )

    if args.demo:
        from .batch_generation import export_demo

        written = export_demo(
            args.demo,
            seed=args.seed,
            config=generator.config,
            **size,
        )
        if len(written) != len(ScaleType):
            logging.error("Demo incomplete: %d of %d files written.", len(written), len(ScaleType))
            sys.exit(1)
        logging.info("Demo completed! All MIDI files have been generated.")
        return

    logging.info("Generating music...")
    logging.info("Current settings: %s", generator.scale_info())
    piece = generator.generate_piece(
        size.get("measures", DEFAULT_MEASURES),
        size.get("time_signature", DEFAULT_TIME_SIGNATURE),
    )
    if args.title:
        piece.title = args.title
    if args.composer:
        piece.composer = args.composer
    print(piece.statistics())

    output = args.output or _timestamped_filename("generated_music")
    try:
        export_piece(piece, output)
    except MidiEncodingError as exc:
        logging.error("Could not encode MIDI data: %s", exc)
        sys.exit(1)
    except OSError as exc:
        # Permission problems or a full disk surface here; exit non-zero so
        # calling scripts notice the failure.
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)
    print(f"MIDI file saved as: {output}")


def main(argv: Optional[List[str]] = None) -> None:
    """Configure logging and run the command line interface."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)
