"""Tests for the per-measure rhythm generator."""

import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from music_generator.rhythm_engine import RhythmGenerator, generate_rhythm  # noqa: E402  # isort:skip


class _ScriptedRandom(random.Random):
    """Random source returning a fixed sequence from ``random()``."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def test_zero_variety_gives_full_beats():
    pattern = generate_rhythm(6, 480, 0.0, rng=random.Random(1))
    assert pattern == [480] * 6


def test_full_variety_only_uses_known_values():
    pattern = generate_rhythm(200, 480, 1.0, rng=random.Random(2))
    assert len(pattern) == 200
    assert set(pattern) <= {480, 240, 120}
    # With every beat varied all three outcomes appear over many draws.
    assert set(pattern) == {480, 240, 120}


def test_subdivision_thresholds():
    # Each beat consumes a variety roll and then a subdivision roll.
    rng = _ScriptedRandom([0.0, 0.1, 0.0, 0.45, 0.0, 0.9, 0.99])
    gen = RhythmGenerator(480, 0.5, rng=rng)
    assert gen.beat_duration() == 240
    assert gen.beat_duration() == 120
    assert gen.beat_duration() == 480
    # A failed variety roll keeps the full beat without a second draw.
    assert gen.beat_duration() == 480


def test_pattern_length_matches_beats():
    gen = RhythmGenerator(96, 0.7, rng=random.Random(3))
    for beats in (3, 4, 5, 6):
        assert len(gen.generate(beats)) == beats


def test_same_seed_same_pattern():
    first = generate_rhythm(16, 480, 0.5, rng=random.Random(9))
    second = generate_rhythm(16, 480, 0.5, rng=random.Random(9))
    assert first == second
