"""Helpers for translating between MIDI pitches and note names.

The generator works with integer MIDI pitches throughout; names are only
needed for display (scale info, piece statistics) and for parsing a root note
typed on the command line.

Example
-------
>>> from music_generator.note_utils import midi_to_note, note_to_midi
>>> midi_to_note(60)
'C4'
>>> note_to_midi("Db4")
61
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Dict, List

__all__ = [
    "NOTES",
    "note_name",
    "octave",
    "midi_to_note",
    "note_to_midi",
]

# Pitch-class names indexed by ``pitch % 12``; sharps only.
NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Offsets from C of the same octave number.  ``Cb`` and ``B#`` cross the
# octave boundary, so they sit outside ``0-11``.
_NAME_TO_OFFSET: Dict[str, int] = {
    "Cb": -1,
    "C": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "Fb": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "B#": 12,
}


def note_name(pitch: int) -> str:
    """Return the pitch-class name of ``pitch`` (``"C"`` .. ``"B"``)."""

    return NOTES[pitch % 12]


def octave(pitch: int) -> int:
    """Return the scientific octave number of ``pitch`` (middle C is 4)."""

    return pitch // 12 - 1


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name such as ``C#4``.

    Raises
    ------
    ValueError
        If ``midi_note`` is outside the inclusive ``0-127`` range.
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")
    return f"{note_name(midi_note)}{octave(midi_note)}"


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` or ``Bb3`` into a MIDI number.

    Parameters
    ----------
    note:
        Letter ``A``-``G``, optional ``#`` or ``b`` and a signed octave.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is malformed or the resulting value is outside ``0-127``.
    """

    match = re.fullmatch(r"([A-Ga-g][#b]?)(-?\d+)", note.strip())
    if not match:
        logging.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")

    name, octave_str = match.groups()
    offset = _NAME_TO_OFFSET[name.capitalize()]
    # MIDI octave numbers are offset by one from scientific pitch notation.
    midi_val = offset + (int(octave_str) + 1) * 12
    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )
    return midi_val
