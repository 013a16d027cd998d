"""Random Music Generator library.

This package builds short pieces of music (a melody, a chord on every beat
and a bass line) from a handful of probabilistic rules and writes them as
Standard MIDI Files.  A typical workflow creates a :class:`MusicGenerator`,
adjusts its scale and complexity settings, calls
:meth:`MusicGenerator.generate_piece` and hands the result to
:func:`export_piece`.

Underlying Algorithm
--------------------
Chords follow one of eight common progression templates, cycling through it
one chord per beat.  The harmony complexity knob decides how often a chord
may turn minor.  The melody is built measure by measure: a rhythm pattern is
drawn first (the rhythm knob controls how often a beat is shortened), then a
random scale pitch is placed on each beat and, depending on the melody knob,
shifted by an octave.  Finally every chord receives a bass note one or two
octaves below its root.

Example
-------
>>> import random
>>> from music_generator import MusicGenerator, ScaleType, export_piece
>>> gen = MusicGenerator(rng=random.Random(1))
>>> gen.set_scale(ScaleType.BLUES, 62)
>>> gen.set_parameters(0.8, 0.5, 0.3)
>>> export_piece(gen.generate_piece(8, 4), "blues.mid")  # doctest: +SKIP

Settings
--------
User preferences are kept in a JSON file, by default
``~/.music_generator_settings.json``.  Set ``MUSIC_GENERATOR_SETTINGS_FILE``
to use another location.  :func:`load_settings` and :func:`save_settings`
never raise; failures are logged and defaults are used instead.
"""

__version__ = "0.1.0"

import json
import logging
import os
from pathlib import Path

env_path = os.environ.get("MUSIC_GENERATOR_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".music_generator_settings.json"


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    path = Path(path)
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Could not load settings: %s does not contain an object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences must never prevent music generation, so
    # errors are logged rather than raised.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except (OSError, TypeError) as exc:
        logging.error(f"Could not save settings: {exc}")


from .theory import (  # noqa: E402
    ScaleType,
    is_consonant,
    random_chord_progression,
    random_root_note,
    random_scale_type,
    scale_for,
)
from .models import Chord, ChordQuality, MusicalPiece, Note  # noqa: E402
from .generator import GeneratorConfig, MusicGenerator  # noqa: E402
from .instruments import INSTRUMENTS, instrument_name  # noqa: E402
from .midi_io import (  # noqa: E402
    MidiEncodingError,
    build_midi_file,
    create_simple_midi,
    encode_piece,
    export_piece,
)


def main() -> None:
    """Console entry point; see :func:`music_generator.cli.main`."""

    from .cli import main as _main

    _main()


__all__ = [
    "__version__",
    "DEFAULT_SETTINGS_FILE",
    "load_settings",
    "save_settings",
    "ScaleType",
    "scale_for",
    "random_chord_progression",
    "random_root_note",
    "random_scale_type",
    "is_consonant",
    "Note",
    "Chord",
    "ChordQuality",
    "MusicalPiece",
    "GeneratorConfig",
    "MusicGenerator",
    "INSTRUMENTS",
    "instrument_name",
    "MidiEncodingError",
    "build_midi_file",
    "encode_piece",
    "export_piece",
    "create_simple_midi",
    "main",
]
