"""Tests for generation sessions and their configuration."""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from music_generator.generator import (  # noqa: E402  # isort:skip
    MELODY_MAX_PITCH,
    MELODY_MIN_PITCH,
    GeneratorConfig,
    MusicGenerator,
    clamp_unit,
)
from music_generator.midi_io import encode_piece  # noqa: E402  # isort:skip
from music_generator.theory import PROGRESSIONS, ScaleType, scale_for  # noqa: E402  # isort:skip


def _generator(scale=ScaleType.MAJOR, root=60, seed=42, **params):
    config = GeneratorConfig(scale_type=scale, root_note=root, **params)
    return MusicGenerator(config, rng=random.Random(seed))


def test_clamp_unit():
    assert clamp_unit(-1) == 0.0
    assert clamp_unit(2) == 1.0
    assert clamp_unit(0.5) == 0.5


def test_set_parameters_clamps():
    gen = _generator()
    gen.set_parameters(-1.0, 2.0, 0.5)
    assert (gen.melody_complexity, gen.harmony_complexity, gen.rhythm_variety) == (
        0.0,
        1.0,
        0.5,
    )


def test_constructor_clamps_config_without_mutating_it():
    config = GeneratorConfig(ScaleType.MINOR, 62, melody_complexity=3.0)
    gen = MusicGenerator(config, rng=random.Random(0))
    assert gen.melody_complexity == 1.0
    assert config.melody_complexity == 3.0


def test_defaults_without_config():
    gen = MusicGenerator(rng=random.Random(0))
    assert gen.tempo == 120
    assert gen.ticks_per_beat == 480
    assert (gen.melody_complexity, gen.harmony_complexity, gen.rhythm_variety) == (
        0.7,
        0.6,
        0.5,
    )
    assert gen.scale_type in ScaleType
    assert 60 <= gen.root_note <= 95
    assert gen.scale == scale_for(gen.scale_type, gen.root_note)


def test_set_scale_and_info():
    gen = _generator()
    gen.set_scale(ScaleType.BLUES, 62)
    assert gen.scale == [62, 65, 67, 68, 69, 72, 74]
    assert gen.scale_info() == "Scale: Blues, Root: D4"


def test_scale_info_for_c4_major():
    assert _generator().scale_info() == "Scale: Major, Root: C4"


def test_change_scale_picks_valid_scale():
    gen = _generator(seed=3)
    gen.change_scale()
    assert gen.scale == scale_for(gen.scale_type, gen.root_note)
    assert 60 <= gen.root_note <= 95


def test_set_tempo_applies_to_pieces():
    gen = _generator()
    gen.set_tempo(90, 96)
    piece = gen.generate_piece(4, 4)
    assert piece.tempo == 90
    assert piece.ticks_per_beat == 96
    assert piece.total_duration() == 4 * 4 * 96


def test_all_zero_complexity_is_plain():
    gen = _generator(melody_complexity=0.0, harmony_complexity=0.0, rhythm_variety=0.0)
    piece = gen.generate_piece(4, 4)

    melody = piece.melody
    assert len(melody) == 16
    assert [n.start_time for n in melody] == [k * 480 for k in range(16)]
    assert all(n.duration == 480 for n in melody)
    assert all(n.velocity == 80 for n in melody)
    assert all(n.pitch in gen.scale for n in melody)

    chords = piece.chords
    assert len(chords) == 16
    for chord in chords:
        root = chord.root
        assert [n.pitch for n in chord.notes] == [root, root + 4, root + 7]

    bass = piece.bass_line
    assert [n.pitch for n in bass] == [c.root - 12 for c in chords]
    assert piece.total_duration() == 16 * 480


def test_chord_roots_follow_a_progression_template():
    gen = _generator(seed=8)
    piece = gen.generate_piece(2, 4)
    roots = [c.root for c in piece.chords]
    scale = gen.scale
    candidates = [
        [scale[p[i % 4] % len(scale)] for i in range(8)] for p in PROGRESSIONS
    ]
    assert roots in candidates


@pytest.mark.parametrize(
    "complexity, velocity",
    [(0.0, 80), (0.5, 100), (1.0, 120), (0.3, 92), (0.0625, 83), (0.3125, 93)],
)
def test_melody_velocity_formula(complexity, velocity):
    gen = _generator(melody_complexity=complexity)
    piece = gen.generate_piece(4, 3)
    assert {n.velocity for n in piece.melody} == {velocity}


def test_melody_notes_stay_on_their_beats():
    gen = _generator(rhythm_variety=1.0, seed=5)
    piece = gen.generate_piece(8, 5)
    assert len(piece.melody) == 8 * 5
    for index, note in enumerate(piece.melody):
        assert note.start_time == index * 480
        assert note.duration in (480, 240, 120)


def test_melody_octave_shifts_stay_in_range():
    gen = _generator(scale=ScaleType.MAJOR, root=60, melody_complexity=1.0, seed=6)
    piece = gen.generate_piece(16, 6)
    scale = gen.scale
    for note in piece.melody:
        assert MELODY_MIN_PITCH <= note.pitch <= MELODY_MAX_PITCH
        assert any(note.pitch - p in (-12, 0, 12) for p in scale)


def test_same_seed_same_bytes():
    first = _generator(seed=42).generate_piece(8, 4)
    second = _generator(seed=42).generate_piece(8, 4)
    assert encode_piece(first) == encode_piece(second)


def test_config_settings_round_trip():
    config = GeneratorConfig(ScaleType.PENTATONIC, 65, tempo=100, melody_complexity=0.25)
    restored = GeneratorConfig.from_settings(config.to_settings(), random.Random(0))
    assert restored == config


def test_config_from_settings_clamps_and_rejects_unknown_scale():
    config = GeneratorConfig.from_settings({"scale": "minor", "melody": 4}, random.Random(0))
    assert config.scale_type is ScaleType.MINOR
    assert config.melody_complexity == 1.0
    with pytest.raises(ValueError):
        GeneratorConfig.from_settings({"scale": "dorian"}, random.Random(0))


def test_bass_still_drops_octaves_with_zero_harmony():
    """Only an all-zero setting pins the bass to one octave below the root."""

    gen = _generator(melody_complexity=1.0, harmony_complexity=0.0, rhythm_variety=1.0, seed=3)
    piece = gen.generate_piece(16, 6)
    offsets = [c.root - n.pitch for n, c in zip(piece.bass_line, piece.chords)]
    assert set(offsets) == {12, 24}
    assert 10 < offsets.count(24) < 50
