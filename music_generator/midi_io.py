"""Standard MIDI File encoding for generated pieces.

A :class:`~music_generator.models.MusicalPiece` is written as a format 1 file
with four tracks:

========  =========================================================
Track 0   tempo, time signature and end-of-track meta events
Track 1   melody, channel 0, Acoustic Grand Piano (program 0)
Track 2   chords, channel 1, String Ensemble 1 (program 48)
Track 3   bass, channel 2, Acoustic Bass (program 32)
========  =========================================================

Every note becomes a NOTE_ON at its start tick followed by a NOTE_OFF
(velocity 0) at its end tick.  Events are first collected with absolute tick
times, stably sorted and only then converted into the delta times stored in
the file.  ``mido`` handles chunk framing and variable-length quantities.

Event data is validated before anything is serialized.  Out-of-range
channels, programs, pitches or velocities, negative times and unusable tempo
or resolution values raise :class:`MidiEncodingError`; these indicate a bug in
the caller rather than bad user input, so nothing is clamped.  The complete
byte stream is built in memory and written with a single call, so a failed
export never leaves a partial file behind.

Example
-------
>>> from music_generator.midi_io import create_simple_midi
>>> create_simple_midi("scale.mid", [60, 62, 0, 64], [1, 1, 1, 2])
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from mido import Message, MetaMessage, MidiFile, MidiTrack

from .models import Chord, MusicalPiece, Note

__all__ = [
    "MidiEncodingError",
    "MELODY_CHANNEL",
    "CHORD_CHANNEL",
    "BASS_CHANNEL",
    "MELODY_PROGRAM",
    "CHORD_PROGRAM",
    "BASS_PROGRAM",
    "DEFAULT_RESOLUTION",
    "DEFAULT_TEMPO",
    "SIMPLE_VELOCITY",
    "tempo_to_mpq",
    "build_midi_file",
    "encode_piece",
    "export_piece",
    "build_simple_midi",
    "encode_simple_midi",
    "create_simple_midi",
]

MELODY_CHANNEL = 0
CHORD_CHANNEL = 1
BASS_CHANNEL = 2

MELODY_PROGRAM = 0  # Acoustic Grand Piano
CHORD_PROGRAM = 48  # String Ensemble 1
BASS_PROGRAM = 32  # Acoustic Bass

# Fixed settings of the single-track simple melody path.
DEFAULT_RESOLUTION = 480
DEFAULT_TEMPO = 120
SIMPLE_VELOCITY = 100

MICROSECONDS_PER_MINUTE = 60_000_000
# Time signature fields after the numerator: denominator as a plain value
# (mido stores it as a power of two), MIDI clocks per metronome click and
# notated 32nd notes per quarter note.
TIME_SIGNATURE_DENOMINATOR = 4
CLOCKS_PER_CLICK = 24
THIRTY_SECONDS_PER_QUARTER = 8

_MAX_TEMPO_FIELD = 0xFFFFFF  # tempo meta events carry 3 bytes
_MAX_TICKS_PER_BEAT = 0x7FFF

PathLike = Union[str, Path]
TimedMessage = Tuple[int, Union[Message, MetaMessage]]


class MidiEncodingError(ValueError):
    """Raised when event data cannot be represented in a MIDI file."""


# ----------------------------------------------------------------------
# Validation helpers
# ----------------------------------------------------------------------


def _check_range(label: str, value: int, low: int, high: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MidiEncodingError(f"{label} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise MidiEncodingError(f"{label} {value} out of range {low}-{high}")


def _check_note(note: Note, channel: int, track_name: str) -> None:
    where = f"{track_name} note at tick {note.start_time}"
    _check_range(f"{where}: channel", channel, 0, 15)
    _check_range(f"{where}: pitch", note.pitch, 0, 127)
    _check_range(f"{where}: velocity", note.velocity, 0, 127)
    if not isinstance(note.start_time, int) or note.start_time < 0:
        raise MidiEncodingError(f"{track_name} note has invalid start time {note.start_time!r}")
    if not isinstance(note.duration, int) or note.duration < 0:
        raise MidiEncodingError(f"{where}: invalid duration {note.duration!r}")


def tempo_to_mpq(tempo: int) -> int:
    """Return microseconds per quarter note for ``tempo`` beats per minute.

    Raises
    ------
    MidiEncodingError
        If ``tempo`` is not positive or the result does not fit the 3-byte
        tempo field.
    """

    if not isinstance(tempo, int) or tempo <= 0:
        raise MidiEncodingError(f"tempo must be a positive integer, got {tempo!r}")
    mpq = MICROSECONDS_PER_MINUTE // tempo
    if not 0 < mpq <= _MAX_TEMPO_FIELD:
        raise MidiEncodingError(f"tempo {tempo} BPM cannot be stored in a MIDI tempo event")
    return mpq


# ----------------------------------------------------------------------
# Track assembly
# ----------------------------------------------------------------------


def _note_events(note: Note, channel: int) -> List[TimedMessage]:
    """Return the NOTE_ON/NOTE_OFF pair for ``note`` with absolute ticks."""

    return [
        (
            note.start_time,
            Message("note_on", channel=channel, note=note.pitch, velocity=note.velocity),
        ),
        (
            note.end_time,
            Message("note_off", channel=channel, note=note.pitch, velocity=0),
        ),
    ]


def _to_track(events: Iterable[TimedMessage]) -> MidiTrack:
    """Convert absolute-time events into a track of delta-timed messages.

    The sort is stable, so events sharing a tick keep their emission order.
    That keeps every NOTE_ON ahead of its own NOTE_OFF and lets a note ending
    on a tick release before the next note starting on the same tick.

    Raises
    ------
    MidiEncodingError
        If an event has a negative absolute tick.
    """

    timed = list(events)
    for tick, msg in timed:
        if tick < 0:
            raise MidiEncodingError(f"{msg.type} event at negative tick {tick}")
    track = MidiTrack()
    last = 0
    for tick, msg in sorted(timed, key=lambda pair: pair[0]):
        track.append(msg.copy(time=tick - last))
        last = tick
    return track


def _instrument_track(
    notes: Sequence[Note], channel: int, program: int, track_name: str
) -> MidiTrack:
    _check_range(f"{track_name} channel", channel, 0, 15)
    _check_range(f"{track_name} program", program, 0, 127)
    events: List[TimedMessage] = [
        (0, Message("program_change", channel=channel, program=program))
    ]
    for note in notes:
        _check_note(note, channel, track_name)
        events.extend(_note_events(note, channel))
    return _to_track(events)


def _chord_notes(chords: Sequence[Chord]) -> List[Note]:
    notes: List[Note] = []
    for chord in chords:
        notes.extend(chord.notes)
    return notes


def _meta_track(piece: MusicalPiece) -> MidiTrack:
    _check_range("time signature numerator", piece.time_signature, 1, 255)
    events: List[TimedMessage] = [
        (0, MetaMessage("set_tempo", tempo=tempo_to_mpq(piece.tempo))),
        (
            0,
            MetaMessage(
                "time_signature",
                numerator=piece.time_signature,
                denominator=TIME_SIGNATURE_DENOMINATOR,
                clocks_per_click=CLOCKS_PER_CLICK,
                notated_32nd_notes_per_beat=THIRTY_SECONDS_PER_QUARTER,
            ),
        ),
        (piece.total_duration(), MetaMessage("end_of_track")),
    ]
    return _to_track(events)


def build_midi_file(piece: MusicalPiece) -> MidiFile:
    """Return the in-memory format 1 ``MidiFile`` for ``piece``.

    Raises
    ------
    MidiEncodingError
        If any event of the piece cannot be encoded.
    """

    _check_range("ticks per beat", piece.ticks_per_beat, 1, _MAX_TICKS_PER_BEAT)
    mid = MidiFile(type=1, ticks_per_beat=piece.ticks_per_beat)
    mid.tracks.append(_meta_track(piece))
    mid.tracks.append(
        _instrument_track(piece.melody, MELODY_CHANNEL, MELODY_PROGRAM, "melody")
    )
    mid.tracks.append(
        _instrument_track(_chord_notes(piece.chords), CHORD_CHANNEL, CHORD_PROGRAM, "chord")
    )
    mid.tracks.append(
        _instrument_track(piece.bass_line, BASS_CHANNEL, BASS_PROGRAM, "bass")
    )
    return mid


def _serialize(mid: MidiFile) -> bytes:
    buffer = io.BytesIO()
    mid.save(file=buffer)
    return buffer.getvalue()


def _write(data: bytes, output_file: PathLike) -> Path:
    path = Path(output_file).expanduser()
    # Create the destination directory so callers may point at a new folder.
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(data)
    return path


def encode_piece(piece: MusicalPiece) -> bytes:
    """Return the Standard MIDI File bytes for ``piece``."""

    return _serialize(build_midi_file(piece))


def export_piece(piece: MusicalPiece, output_file: PathLike) -> MidiFile:
    """Write ``piece`` to ``output_file`` and return the encoded ``MidiFile``.

    Encoding finishes before the file is opened, so a
    :class:`MidiEncodingError` leaves the filesystem untouched.  ``OSError``
    from creating the directory or writing the file propagates unchanged.
    """

    mid = build_midi_file(piece)
    path = _write(_serialize(mid), output_file)
    logging.info("MIDI file saved to %s", path)
    return mid


# ----------------------------------------------------------------------
# Simple single-track melodies
# ----------------------------------------------------------------------


def build_simple_midi(pitches: Sequence[int], durations: Sequence[int]) -> MidiFile:
    """Return a single-track ``MidiFile`` for a flat pitch/duration list.

    Parameters
    ----------
    pitches:
        MIDI pitches; ``0`` marks a rest that only advances time.
    durations:
        Lengths in quarter-note units, converted with
        ``duration * DEFAULT_RESOLUTION // 4`` ticks each.

    Raises
    ------
    MidiEncodingError
        If the lists differ in length or contain unencodable values.
    """

    if len(pitches) != len(durations):
        raise MidiEncodingError(
            f"got {len(pitches)} pitches but {len(durations)} durations"
        )

    events: List[TimedMessage] = [
        (0, MetaMessage("set_tempo", tempo=tempo_to_mpq(DEFAULT_TEMPO)))
    ]
    cursor = 0
    for pitch, duration in zip(pitches, durations):
        ticks = duration * DEFAULT_RESOLUTION // 4
        if ticks < 0:
            raise MidiEncodingError(f"entry at tick {cursor} has negative duration {duration}")
        if pitch != 0:
            note = Note(pitch, ticks, SIMPLE_VELOCITY, cursor)
            _check_note(note, MELODY_CHANNEL, "simple melody")
            events.extend(_note_events(note, MELODY_CHANNEL))
        cursor += ticks
    events.append((cursor, MetaMessage("end_of_track")))

    mid = MidiFile(type=1, ticks_per_beat=DEFAULT_RESOLUTION)
    mid.tracks.append(_to_track(events))
    return mid


def encode_simple_midi(pitches: Sequence[int], durations: Sequence[int]) -> bytes:
    """Return the file bytes produced by :func:`build_simple_midi`."""

    return _serialize(build_simple_midi(pitches, durations))


def create_simple_midi(
    output_file: PathLike, pitches: Sequence[int], durations: Sequence[int]
) -> MidiFile:
    """Write a simple single-track melody to ``output_file``."""

    mid = build_simple_midi(pitches, durations)
    path = _write(_serialize(mid), output_file)
    logging.info("Simple MIDI file saved to %s", path)
    return mid
