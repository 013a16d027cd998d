"""Per-measure rhythm generation.

The melody is built one measure at a time.  Before any pitch is chosen a
rhythm pattern is drawn for the measure: one duration per beat, in ticks.
``RhythmGenerator`` decides for each beat whether to keep a plain full-beat
note or, with probability ``variety``, to pick a shorter value.  Keeping the
rhythm separate from pitch selection mirrors the usual composing workflow of
laying down the groove first and adding notes afterwards.

Every beat keeps its own onset, so a shortened beat leaves a gap after the
note rather than pulling the following notes earlier.
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence, Tuple

from .theory import get_rng

__all__ = ["RhythmGenerator", "generate_rhythm"]

# Cumulative thresholds for the subdivision draw: 30% half beat, 30% quarter
# beat and the remaining 40% a full beat.
_SUBDIVISIONS: Sequence[Tuple[float, int]] = (
    (0.3, 2),
    (0.6, 4),
)


class RhythmGenerator:
    """Draw beat durations for a measure."""

    def __init__(
        self,
        ticks_per_beat: int,
        variety: float,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a generator.

        Parameters
        ----------
        ticks_per_beat:
            Resolution of one beat in ticks.
        variety:
            Probability in ``[0, 1]`` that a beat departs from a full-beat
            duration.
        rng:
            Random source; defaults to the shared generator.
        """

        self.ticks_per_beat = ticks_per_beat
        self.variety = variety
        self.rng = rng if rng is not None else get_rng()

    def beat_duration(self) -> int:
        """Return the duration in ticks for a single beat."""

        if self.rng.random() < self.variety:
            roll = self.rng.random()
            for threshold, divisor in _SUBDIVISIONS:
                if roll < threshold:
                    return self.ticks_per_beat // divisor
        return self.ticks_per_beat

    def generate(self, beats: int) -> List[int]:
        """Return a pattern of ``beats`` durations in ticks."""

        return [self.beat_duration() for _ in range(beats)]


def generate_rhythm(
    beats: int,
    ticks_per_beat: int,
    variety: float,
    rng: Optional[random.Random] = None,
) -> List[int]:
    """Return a rhythm pattern for one measure of ``beats`` beats."""

    return RhythmGenerator(ticks_per_beat, variety, rng=rng).generate(beats)
