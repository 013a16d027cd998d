"""Chord progression and bass line generation.

Harmony changes on every beat.  A progression template from
:data:`music_generator.theory.PROGRESSIONS` is cycled across all beats of the
piece, each entry selecting a root from the active scale list.  The chord
quality is major unless the harmony complexity roll asks for variety, in
which case major and minor are equally likely.

The bass line follows the chords: one note per chord, an octave (sometimes
two) below the chord root, sustained for the length of the chord.

Example
-------
>>> import random
>>> chords = generate_chords((0, 4, 5, 3), [60, 62, 64, 65, 67, 69, 71, 72],
...                          measures=1, time_signature=4, ticks_per_beat=480,
...                          complexity=0.0, rng=random.Random(1))
>>> [c.root for c in chords]
[60, 67, 69, 65]
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from .models import Chord, ChordQuality, Note
from .theory import get_rng

__all__ = [
    "BASS_VELOCITY",
    "BASS_MIN_PITCH",
    "BASS_MAX_PITCH",
    "LOW_OCTAVE_PROBABILITY",
    "generate_chords",
    "generate_bass_line",
]

BASS_VELOCITY = 90
BASS_MIN_PITCH = 21
BASS_MAX_PITCH = 60
# Chance that a bass note drops a second octave.
LOW_OCTAVE_PROBABILITY = 0.3


def _chord_quality(complexity: float, rng: random.Random) -> ChordQuality:
    if rng.random() < complexity:
        return rng.choice((ChordQuality.MAJOR, ChordQuality.MINOR))
    return ChordQuality.MAJOR


def generate_chords(
    progression: Sequence[int],
    scale: Sequence[int],
    *,
    measures: int,
    time_signature: int,
    ticks_per_beat: int,
    complexity: float,
    rng: Optional[random.Random] = None,
) -> List[Chord]:
    """Return one chord per beat for ``measures`` measures.

    Parameters
    ----------
    progression:
        Scale-list indices cycled over the beats of the piece.
    scale:
        Absolute pitches of the active scale.  Indices beyond its length
        wrap around, which only happens for short scales such as the
        pentatonic table.
    measures, time_signature, ticks_per_beat:
        Size and resolution of the piece; ``time_signature`` is the number
        of beats per measure.
    complexity:
        Probability that a chord's quality is drawn between major and minor
        instead of defaulting to major.
    rng:
        Random source; defaults to the shared generator.

    Returns
    -------
    list[Chord]
        Chords in time order, each lasting one beat.
    """

    rng = rng if rng is not None else get_rng()
    chords: List[Chord] = []
    ticks_per_measure = time_signature * ticks_per_beat

    for measure in range(measures):
        for beat in range(time_signature):
            index = (measure * time_signature + beat) % len(progression)
            root = scale[progression[index] % len(scale)]
            start = measure * ticks_per_measure + beat * ticks_per_beat
            quality = _chord_quality(complexity, rng)
            chords.append(Chord.from_quality(quality, root, ticks_per_beat, start))

    return chords


def generate_bass_line(
    chords: Sequence[Chord],
    rng: Optional[random.Random] = None,
    *,
    drop_probability: float = LOW_OCTAVE_PROBABILITY,
) -> List[Note]:
    """Return a bass note under every chord in ``chords``.

    Each note sits one octave below the chord root, or two octaves with
    probability ``drop_probability``, and is clamped to the
    ``BASS_MIN_PITCH``-``BASS_MAX_PITCH`` range.  A ``drop_probability`` of
    zero keeps every note in the upper octave without consuming random
    draws.  Chords without notes are skipped.
    """

    rng = rng if rng is not None else get_rng()
    bass: List[Note] = []
    for chord in chords:
        root = chord.root
        if root is None:
            continue
        pitch = root - 12
        if drop_probability > 0 and rng.random() < drop_probability:
            pitch -= 12
        pitch = max(BASS_MIN_PITCH, min(BASS_MAX_PITCH, pitch))
        bass.append(Note(pitch, chord.duration, BASS_VELOCITY, chord.start_time))
    return bass
