"""Static music theory tables and the shared randomness source.

The tables here are deliberately small: four scale shapes, eight popular
chord progressions and a consonance rule.  Everything else in the package
derives its pitches from these values, so the functions are pure apart from
the random choices, which always go through a :class:`random.Random`
instance.  Callers may pass their own ``rng`` for reproducible output; when
omitted the process-wide generator returned by :func:`get_rng` is used.

Example
-------
>>> from music_generator.theory import ScaleType, scale_for
>>> scale_for(ScaleType.MAJOR, 60)
[60, 62, 64, 65, 67, 69, 71, 72]

Design Notes
------------
The major, minor and blues tables include the octave as their final entry.
Chord progressions index these lists directly, so the number of reachable
chord roots depends on the active scale type.  The tables must not be
normalised to seven-note scales or generated output would change.
"""

from __future__ import annotations

import enum
import random
from typing import Dict, List, Optional, Sequence, Tuple

__all__ = [
    "ScaleType",
    "SCALE_INTERVALS",
    "PROGRESSIONS",
    "CONSONANT_INTERVALS",
    "get_rng",
    "seed",
    "scale_for",
    "random_chord_progression",
    "is_consonant",
    "harmonic_note",
    "random_root_note",
    "random_scale_type",
]


class ScaleType(enum.Enum):
    """Scale shapes supported by the generator."""

    MAJOR = "Major"
    MINOR = "Minor"
    PENTATONIC = "Pentatonic"
    BLUES = "Blues"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "ScaleType":
        """Return the member matching ``name`` case-insensitively.

        Raises
        ------
        ValueError
            If ``name`` does not correspond to a known scale type.
        """

        normalised = name.strip().lower()
        for member in cls:
            if member.value.lower() == normalised:
                return member
        raise ValueError(f"Unknown scale type: {name}")


# Semitone offsets from the root.  The trailing ``12`` on the major, minor and
# blues shapes is part of the table and is indexed by chord progressions.
SCALE_INTERVALS: Dict[ScaleType, Tuple[int, ...]] = {
    ScaleType.MAJOR: (0, 2, 4, 5, 7, 9, 11, 12),
    ScaleType.MINOR: (0, 2, 3, 5, 7, 8, 10, 12),
    ScaleType.PENTATONIC: (0, 2, 4, 7, 9, 12),
    ScaleType.BLUES: (0, 3, 5, 6, 7, 10, 12),
}

# Common progressions in popular music, written as indices into the active
# scale list rather than Roman numeral degrees.
PROGRESSIONS: Tuple[Tuple[int, ...], ...] = (
    (0, 4, 5, 3),  # I-IV-V-vi
    (0, 5, 3, 4),  # I-V-vi-IV
    (0, 3, 4, 0),  # I-vi-IV-I
    (0, 4, 0, 5),  # I-IV-I-V
    (0, 5, 0, 3),  # I-V-I-vi
    (0, 6, 4, 5),  # I-vi-IV-V
    (0, 4, 5, 0),  # I-IV-V-I
    (0, 3, 6, 4),  # I-vi-ii-IV
)

# Unison, thirds, perfect fourth and fifth, sixths.
CONSONANT_INTERVALS = frozenset({0, 3, 4, 5, 7, 8, 9})

_RNG = random.Random()


def get_rng() -> random.Random:
    """Return the process-wide random generator used by default."""

    return _RNG


def seed(value: Optional[int]) -> None:
    """Re-seed the shared generator so later calls become reproducible."""

    _RNG.seed(value)


def _resolve(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else _RNG


def scale_for(scale_type: ScaleType, root: int) -> List[int]:
    """Return the absolute pitches of ``scale_type`` starting at ``root``.

    Parameters
    ----------
    scale_type:
        One of the :class:`ScaleType` members.
    root:
        MIDI pitch of the first scale degree.

    Returns
    -------
    list[int]
        ``root`` plus every interval of the table, in table order.  The
        length equals the table length (8, 8, 6 or 7).
    """

    return [root + interval for interval in SCALE_INTERVALS[scale_type]]


def random_chord_progression(rng: Optional[random.Random] = None) -> Tuple[int, ...]:
    """Return one of :data:`PROGRESSIONS` chosen uniformly at random."""

    return _resolve(rng).choice(PROGRESSIONS)


def is_consonant(pitch1: int, pitch2: int) -> bool:
    """Return ``True`` when the interval between the pitches is consonant.

    The interval is reduced to a single octave, so compound intervals are
    judged like their simple counterparts.
    """

    return abs(pitch1 - pitch2) % 12 in CONSONANT_INTERVALS


def harmonic_note(
    current: int,
    scale: Sequence[int],
    direction: int,
    rng: Optional[random.Random] = None,
) -> int:
    """Step ``direction`` scale degrees away from ``current``.

    The first scale entry sharing ``current``'s pitch class is used as the
    starting degree and the step wraps around the scale in either direction.
    When ``current`` does not belong to the scale a random scale pitch is
    returned instead.
    """

    if not scale:
        raise ValueError("scale must not be empty")
    for index, pitch in enumerate(scale):
        if pitch % 12 == current % 12:
            return scale[(index + direction) % len(scale)]
    return _resolve(rng).choice(list(scale))


def random_root_note(rng: Optional[random.Random] = None) -> int:
    """Return a random root: one of three octaves from C4 plus a semitone offset.

    The result lies between C4 (60) and B6 (95).
    """

    rng = _resolve(rng)
    return 60 + rng.randrange(3) * 12 + rng.randrange(12)


def random_scale_type(rng: Optional[random.Random] = None) -> ScaleType:
    """Return a uniformly chosen :class:`ScaleType`."""

    return _resolve(rng).choice(list(ScaleType))
