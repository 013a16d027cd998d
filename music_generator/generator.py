"""Generation sessions that turn complexity settings into a musical piece.

A :class:`MusicGenerator` owns a :class:`GeneratorConfig` (scale, root,
tempo, resolution and the three complexity knobs), the scale derived from it
and a random source.  :meth:`MusicGenerator.generate_piece` runs the three
algorithms in a fixed order:

1. pick a progression template and lay out one chord per beat;
2. build the melody measure by measure from a rhythm pattern and random
   scale pitches with occasional octave shifts;
3. put a bass note under every chord.

Because the random draws always happen in that order, two sessions with equal
configuration and equally seeded generators produce identical pieces.
Sessions share no state with each other; concurrent callers should create one
generator each.

Example
-------
>>> import random
>>> from music_generator.generator import MusicGenerator
>>> from music_generator.theory import ScaleType
>>> gen = MusicGenerator(rng=random.Random(7))
>>> gen.set_scale(ScaleType.MAJOR, 60)
>>> piece = gen.generate_piece(4, 4)
>>> len(piece.chords)
16
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional

from .harmony_generator import LOW_OCTAVE_PROBABILITY, generate_bass_line, generate_chords
from .models import MusicalPiece, Note
from .note_utils import note_name, octave
from .rhythm_engine import RhythmGenerator
from .theory import (
    ScaleType,
    get_rng,
    random_chord_progression,
    random_root_note,
    random_scale_type,
    scale_for,
)

__all__ = [
    "GeneratorConfig",
    "MusicGenerator",
    "MELODY_MIN_PITCH",
    "MELODY_MAX_PITCH",
    "clamp_unit",
]

MELODY_MIN_PITCH = 21
MELODY_MAX_PITCH = 108
# Melody velocity is ``MELODY_BASE_VELOCITY + complexity * MELODY_VELOCITY_RANGE``
# rounded half up.
MELODY_BASE_VELOCITY = 80
MELODY_VELOCITY_RANGE = 40


def clamp_unit(value: float) -> float:
    """Clamp ``value`` into ``[0.0, 1.0]``."""

    return max(0.0, min(1.0, float(value)))


@dataclass
class GeneratorConfig:
    """Settings that drive a generation session."""

    scale_type: ScaleType
    root_note: int
    tempo: int = 120
    ticks_per_beat: int = 480
    melody_complexity: float = 0.7
    harmony_complexity: float = 0.6
    rhythm_variety: float = 0.5

    @classmethod
    def random(cls, rng: Optional[random.Random] = None) -> "GeneratorConfig":
        """Return a default configuration with a random scale and root."""

        return cls(scale_type=random_scale_type(rng), root_note=random_root_note(rng))

    @classmethod
    def from_settings(
        cls, settings: Mapping[str, Any], rng: Optional[random.Random] = None
    ) -> "GeneratorConfig":
        """Build a configuration from a settings dictionary.

        Missing keys fall back to the dataclass defaults; a missing scale or
        root is chosen at random.  Complexity values are clamped.

        Raises
        ------
        ValueError
            If the stored scale name is unknown.
        """

        base = cls.random(rng)
        if "scale" in settings:
            base.scale_type = ScaleType.from_name(str(settings["scale"]))
        if "root" in settings:
            base.root_note = int(settings["root"])
        if "tempo" in settings:
            base.tempo = int(settings["tempo"])
        if "ticks_per_beat" in settings:
            base.ticks_per_beat = int(settings["ticks_per_beat"])
        base.melody_complexity = clamp_unit(settings.get("melody", base.melody_complexity))
        base.harmony_complexity = clamp_unit(settings.get("harmony", base.harmony_complexity))
        base.rhythm_variety = clamp_unit(settings.get("rhythm", base.rhythm_variety))
        return base

    def to_settings(self) -> Dict[str, Any]:
        """Return a JSON-serialisable dictionary understood by :meth:`from_settings`."""

        return {
            "scale": self.scale_type.value,
            "root": self.root_note,
            "tempo": self.tempo,
            "ticks_per_beat": self.ticks_per_beat,
            "melody": self.melody_complexity,
            "harmony": self.harmony_complexity,
            "rhythm": self.rhythm_variety,
        }


class MusicGenerator:
    """A generation session holding configuration and a random source."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a session.

        Parameters
        ----------
        config:
            Initial configuration.  When ``None`` a random scale and root are
            drawn from ``rng`` and the remaining settings use their defaults.
        rng:
            Random source for every choice this session makes.  Defaults to
            the process-wide generator from :func:`music_generator.theory.get_rng`.
        """

        self._rng = rng if rng is not None else get_rng()
        self._config = replace(config) if config is not None else GeneratorConfig.random(self._rng)
        self._config.melody_complexity = clamp_unit(self._config.melody_complexity)
        self._config.harmony_complexity = clamp_unit(self._config.harmony_complexity)
        self._config.rhythm_variety = clamp_unit(self._config.rhythm_variety)
        self._scale = scale_for(self._config.scale_type, self._config.root_note)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> GeneratorConfig:
        return replace(self._config)

    @property
    def rng(self) -> random.Random:
        return self._rng

    @property
    def scale_type(self) -> ScaleType:
        return self._config.scale_type

    @property
    def root_note(self) -> int:
        return self._config.root_note

    @property
    def scale(self) -> List[int]:
        return list(self._scale)

    @property
    def tempo(self) -> int:
        return self._config.tempo

    @property
    def ticks_per_beat(self) -> int:
        return self._config.ticks_per_beat

    @property
    def melody_complexity(self) -> float:
        return self._config.melody_complexity

    @property
    def harmony_complexity(self) -> float:
        return self._config.harmony_complexity

    @property
    def rhythm_variety(self) -> float:
        return self._config.rhythm_variety

    def set_parameters(self, melody: float, harmony: float, rhythm: float) -> None:
        """Set the three complexity knobs, clamping each into ``[0, 1]``."""

        self._config.melody_complexity = clamp_unit(melody)
        self._config.harmony_complexity = clamp_unit(harmony)
        self._config.rhythm_variety = clamp_unit(rhythm)

    def set_tempo(self, tempo: int, ticks_per_beat: int) -> None:
        self._config.tempo = tempo
        self._config.ticks_per_beat = ticks_per_beat

    def set_scale(self, scale_type: ScaleType, root: int) -> None:
        """Switch to ``scale_type`` rooted at ``root`` for later pieces."""

        self._config.scale_type = scale_type
        self._config.root_note = root
        self._scale = scale_for(scale_type, root)

    def change_scale(self) -> None:
        """Switch to a random scale type and root."""

        self.set_scale(random_scale_type(self._rng), random_root_note(self._rng))

    def scale_info(self) -> str:
        """Return a description such as ``"Scale: Major, Root: C4"``."""

        root = self._config.root_note
        return f"Scale: {self._config.scale_type}, Root: {note_name(root)}{octave(root)}"

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_piece(self, measures: int, time_signature: int) -> MusicalPiece:
        """Generate a piece of ``measures`` measures with ``time_signature`` beats each.

        The arguments are expected to be validated by the caller; no range
        checks are performed here.
        """

        cfg = self._config
        piece = MusicalPiece(
            tempo=cfg.tempo,
            time_signature=time_signature,
            ticks_per_beat=cfg.ticks_per_beat,
        )

        progression = random_chord_progression(self._rng)
        chords = generate_chords(
            progression,
            self._scale,
            measures=measures,
            time_signature=time_signature,
            ticks_per_beat=cfg.ticks_per_beat,
            complexity=cfg.harmony_complexity,
            rng=self._rng,
        )
        piece.chords = chords
        piece.melody = self._generate_melody(measures, time_signature)
        # With every knob at zero the bass stays exactly one octave down.
        plain = not (cfg.melody_complexity or cfg.harmony_complexity or cfg.rhythm_variety)
        drop = 0.0 if plain else LOW_OCTAVE_PROBABILITY
        piece.bass_line = generate_bass_line(chords, self._rng, drop_probability=drop)

        logging.debug(
            "Generated %d measures in %s/4 (%s, progression %s): %d melody notes",
            measures,
            time_signature,
            self.scale_info(),
            progression,
            len(piece.melody),
        )
        return piece

    def _generate_melody(self, measures: int, time_signature: int) -> List[Note]:
        tpb = self._config.ticks_per_beat
        rhythm = RhythmGenerator(tpb, self._config.rhythm_variety, rng=self._rng)
        velocity = MELODY_BASE_VELOCITY + math.floor(
            self._config.melody_complexity * MELODY_VELOCITY_RANGE + 0.5
        )

        melody: List[Note] = []
        for measure in range(measures):
            measure_start = measure * time_signature * tpb
            pattern = rhythm.generate(time_signature)
            for beat, duration in enumerate(pattern):
                if duration <= 0:
                    continue
                pitch = self._melody_pitch()
                melody.append(Note(pitch, duration, velocity, measure_start + beat * tpb))
        return melody

    def _melody_pitch(self) -> int:
        pitch = self._rng.choice(self._scale)
        if self._rng.random() < self._config.melody_complexity:
            pitch += self._rng.randint(-1, 1) * 12
        return max(MELODY_MIN_PITCH, min(MELODY_MAX_PITCH, pitch))
