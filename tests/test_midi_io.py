"""Tests for Standard MIDI File encoding.

Encoded output is parsed back with ``mido`` so the assertions work on the
events actually stored in the file rather than on intermediate objects.
"""

import io
import random
import sys
from pathlib import Path

import mido
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from music_generator.generator import GeneratorConfig, MusicGenerator  # noqa: E402  # isort:skip
from music_generator.midi_io import (  # noqa: E402  # isort:skip
    MidiEncodingError,
    _to_track,
    build_simple_midi,
    create_simple_midi,
    encode_piece,
    encode_simple_midi,
    export_piece,
    tempo_to_mpq,
)
from music_generator.models import Chord, MusicalPiece, Note  # noqa: E402  # isort:skip
from music_generator.theory import ScaleType  # noqa: E402  # isort:skip


def _parse(data):
    return mido.MidiFile(file=io.BytesIO(data))


def _absolute(track):
    """Return ``(tick, message)`` pairs with absolute tick times."""

    tick = 0
    result = []
    for msg in track:
        tick += msg.time
        result.append((tick, msg))
    return result


def _small_piece():
    piece = MusicalPiece()
    piece.add_melody_note(Note(60, 480, 100, 0))
    piece.add_melody_note(Note(62, 480, 100, 480))
    piece.add_chord(Chord.major(48, 960, 0))
    piece.add_bass_note(Note(36, 960, 90, 0))
    return piece


def _generated_piece(seed=1, measures=8, time_signature=4):
    config = GeneratorConfig(ScaleType.MINOR, 64)
    gen = MusicGenerator(config, rng=random.Random(seed))
    return gen.generate_piece(measures, time_signature)


def test_header_chunk():
    data = encode_piece(_small_piece())
    assert data[:4] == b"MThd"
    assert int.from_bytes(data[4:8], "big") == 6
    assert int.from_bytes(data[8:10], "big") == 1
    assert int.from_bytes(data[10:12], "big") == 4
    assert int.from_bytes(data[12:14], "big") == 480


def test_meta_track_bytes():
    data = encode_piece(_small_piece())
    body = bytes(
        [
            0x00, 0xFF, 0x51, 0x03, 0x07, 0xA1, 0x20,
            0x00, 0xFF, 0x58, 0x04, 0x04, 0x02, 0x18, 0x08,
            0x87, 0x40, 0xFF, 0x2F, 0x00,
        ]
    )
    expected = b"MTrk" + len(body).to_bytes(4, "big") + body
    assert data[14 : 14 + len(expected)] == expected


def test_meta_track_events():
    piece = _generated_piece(time_signature=3)
    mid = _parse(encode_piece(piece))
    meta = _absolute(mid.tracks[0])
    assert [m.type for _, m in meta] == ["set_tempo", "time_signature", "end_of_track"]
    assert meta[0][1].tempo == 500000
    ts = meta[1][1]
    assert (ts.numerator, ts.denominator) == (3, 4)
    assert (ts.clocks_per_click, ts.notated_32nd_notes_per_beat) == (24, 8)
    assert meta[2][0] == piece.total_duration()


@pytest.mark.parametrize(
    "index, channel, program",
    [(1, 0, 0), (2, 1, 48), (3, 2, 32)],
)
def test_instrument_tracks_start_with_program_change(index, channel, program):
    mid = _parse(encode_piece(_generated_piece()))
    first = mid.tracks[index][0]
    assert first.type == "program_change"
    assert first.time == 0
    assert (first.channel, first.program) == (channel, program)
    notes = [m for m in mid.tracks[index] if m.type in ("note_on", "note_off")]
    assert notes
    assert all(m.channel == channel for m in notes)
    assert mid.tracks[index][-1].type == "end_of_track"


def test_small_piece_melody_events():
    mid = _parse(encode_piece(_small_piece()))
    events = [
        (tick, m.type, m.note, m.velocity)
        for tick, m in _absolute(mid.tracks[1])
        if m.type in ("note_on", "note_off")
    ]
    assert events == [
        (0, "note_on", 60, 100),
        (480, "note_off", 60, 0),
        (480, "note_on", 62, 100),
        (960, "note_off", 62, 0),
    ]


def test_note_on_off_pairs_are_balanced():
    piece = _generated_piece(seed=7, measures=16, time_signature=5)
    mid = _parse(encode_piece(piece))
    expected_counts = [len(piece.melody), 3 * len(piece.chords), len(piece.bass_line)]
    for track, expected in zip(mid.tracks[1:], expected_counts):
        sounding = {}
        ons = 0
        last_tick = 0
        for tick, msg in _absolute(track):
            assert tick >= last_tick
            last_tick = tick
            if msg.type == "note_on":
                ons += 1
                sounding[msg.note] = sounding.get(msg.note, 0) + 1
            elif msg.type == "note_off":
                assert sounding.get(msg.note, 0) > 0
                sounding[msg.note] -= 1
        assert ons == expected
        assert not any(sounding.values())


def test_note_off_precedes_note_on_at_shared_tick():
    piece = MusicalPiece()
    piece.add_chord(Chord.major(60, 480, 0))
    piece.add_chord(Chord.major(60, 480, 480))
    mid = _parse(encode_piece(piece))
    at_480 = [m.type for tick, m in _absolute(mid.tracks[2]) if tick == 480]
    assert at_480 == ["note_off"] * 3 + ["note_on"] * 3


def test_empty_piece_still_has_four_tracks():
    mid = _parse(encode_piece(MusicalPiece()))
    assert len(mid.tracks) == 4
    assert mid.tracks[0][-1].type == "end_of_track"
    assert mid.tracks[0][-1].time == 0


def test_export_writes_file(tmp_path):
    target = tmp_path / "nested" / "song.mid"
    piece = _small_piece()
    export_piece(piece, target)
    assert target.read_bytes() == encode_piece(piece)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda p: p.add_melody_note(Note(128, 480, 100, 0)),
        lambda p: p.add_bass_note(Note(36, 480, 128, 0)),
        lambda p: p.add_melody_note(Note(60, 480, 100, -1)),
        lambda p: setattr(p, "tempo", 0),
        lambda p: setattr(p, "ticks_per_beat", 0),
        lambda p: setattr(p, "time_signature", 0),
    ],
)
def test_invalid_data_raises_and_writes_nothing(tmp_path, mutate):
    piece = _small_piece()
    mutate(piece)
    target = tmp_path / "bad.mid"
    with pytest.raises(MidiEncodingError):
        export_piece(piece, target)
    assert not target.exists()


def test_write_errors_propagate(tmp_path):
    blocker = tmp_path / "file.txt"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        export_piece(_small_piece(), blocker / "song.mid")


def test_tempo_to_mpq():
    assert tempo_to_mpq(120) == 500000
    assert tempo_to_mpq(90) == 666666
    with pytest.raises(MidiEncodingError):
        tempo_to_mpq(0)
    with pytest.raises(MidiEncodingError):
        tempo_to_mpq(-5)


def test_simple_midi_rests_and_durations():
    mid = _parse(encode_simple_midi([60, 0, 62], [4, 2, 1]))
    assert mid.type == 1
    assert mid.ticks_per_beat == 480
    assert len(mid.tracks) == 1
    events = [(tick, m.type) for tick, m in _absolute(mid.tracks[0])]
    assert events == [
        (0, "set_tempo"),
        (0, "note_on"),
        (480, "note_off"),
        (720, "note_on"),
        (840, "note_off"),
        (840, "end_of_track"),
    ]


def test_simple_midi_velocity_and_tempo():
    mid = build_simple_midi([67], [1])
    msgs = list(mid.tracks[0])
    assert msgs[0].tempo == 500000
    assert msgs[1].velocity == 100
    assert msgs[2].time == 120


def test_simple_midi_validation():
    with pytest.raises(MidiEncodingError):
        build_simple_midi([60, 62], [1])
    with pytest.raises(MidiEncodingError):
        build_simple_midi([200], [1])
    with pytest.raises(MidiEncodingError):
        build_simple_midi([-3], [1])
    with pytest.raises(MidiEncodingError):
        build_simple_midi([60], [-1])


def test_create_simple_midi(tmp_path):
    target = tmp_path / "scale.mid"
    create_simple_midi(target, [60, 62, 64], [1, 1, 2])
    assert target.read_bytes() == encode_simple_midi([60, 62, 64], [1, 1, 2])


def test_negative_event_tick_is_rejected():
    events = [
        (0, mido.Message("note_on", note=60, velocity=100)),
        (-10, mido.Message("note_off", note=60, velocity=0)),
    ]
    with pytest.raises(MidiEncodingError, match="negative tick"):
        _to_track(events)


def test_delta_times_follow_sorted_ticks():
    events = [
        (960, mido.Message("note_off", note=62, velocity=0)),
        (0, mido.Message("note_on", note=60, velocity=100)),
        (480, mido.Message("note_on", note=62, velocity=100)),
    ]
    track = _to_track(events)
    assert [(m.type, m.time) for m in track] == [
        ("note_on", 0),
        ("note_on", 480),
        ("note_off", 480),
    ]
