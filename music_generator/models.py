"""Value objects describing generated music.

``Note`` is an immutable record of a single sounding pitch.  ``Chord`` groups
notes that start together and tracks the longest of them as its duration.
``MusicalPiece`` owns three independent tracks (melody, chords, bass) along
with the tempo, meter and resolution used when the piece is written to MIDI.

All times are expressed in ticks.  A piece's length is not stored; it is the
latest end time of any note or chord and is recomputed on demand by
:meth:`MusicalPiece.total_duration`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .note_utils import note_name as _note_name
from .note_utils import octave as _octave

__all__ = ["Note", "ChordQuality", "Chord", "MusicalPiece", "CHORD_VELOCITY"]

# Velocity given to every note created by the chord constructors.
CHORD_VELOCITY = 100


@dataclass(frozen=True)
class Note:
    """A single note with MIDI pitch, length, loudness and onset."""

    pitch: int
    duration: int
    velocity: int
    start_time: int

    @property
    def note_name(self) -> str:
        return _note_name(self.pitch)

    @property
    def octave(self) -> int:
        return _octave(self.pitch)

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    def __str__(self) -> str:
        return (
            f"Note(pitch={self.pitch}, note={self.note_name}{self.octave}, "
            f"duration={self.duration}, velocity={self.velocity}, "
            f"start_time={self.start_time})"
        )


class ChordQuality(enum.Enum):
    """Triad shapes expressed as semitone offsets from the root."""

    MAJOR = (0, 4, 7)
    MINOR = (0, 3, 7)
    DIMINISHED = (0, 3, 6)

    @property
    def intervals(self) -> Tuple[int, ...]:
        return self.value


class Chord:
    """Notes sharing a start time.

    ``duration`` is the longest duration of any note added so far.  It only
    ever grows: adding a shorter note leaves it untouched.
    """

    def __init__(
        self,
        notes: Optional[Iterable[Note]] = None,
        duration: int = 0,
        start_time: int = 0,
    ) -> None:
        self._notes: List[Note] = list(notes or [])
        self._duration = duration
        self._start_time = start_time

    @classmethod
    def from_quality(
        cls, quality: ChordQuality, root: int, duration: int, start_time: int
    ) -> "Chord":
        """Build a root-position triad of ``quality`` on ``root``."""

        chord = cls(duration=duration, start_time=start_time)
        for interval in quality.intervals:
            chord.add_note(Note(root + interval, duration, CHORD_VELOCITY, start_time))
        return chord

    @classmethod
    def major(cls, root: int, duration: int, start_time: int) -> "Chord":
        return cls.from_quality(ChordQuality.MAJOR, root, duration, start_time)

    @classmethod
    def minor(cls, root: int, duration: int, start_time: int) -> "Chord":
        return cls.from_quality(ChordQuality.MINOR, root, duration, start_time)

    @classmethod
    def diminished(cls, root: int, duration: int, start_time: int) -> "Chord":
        return cls.from_quality(ChordQuality.DIMINISHED, root, duration, start_time)

    def add_note(self, note: Note) -> None:
        """Append ``note`` and widen the chord duration if it is longer."""

        self._notes.append(note)
        if note.duration > self._duration:
            self._duration = note.duration

    @property
    def notes(self) -> List[Note]:
        return list(self._notes)

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def start_time(self) -> int:
        return self._start_time

    @property
    def end_time(self) -> int:
        return self._start_time + self._duration

    @property
    def note_count(self) -> int:
        return len(self._notes)

    @property
    def root(self) -> Optional[int]:
        """Pitch of the first note, or ``None`` for an empty chord."""

        return self._notes[0].pitch if self._notes else None

    def __str__(self) -> str:
        names = ", ".join(n.note_name for n in self._notes)
        return f"Chord(notes=[{names}], duration={self._duration}, start_time={self._start_time})"


class MusicalPiece:
    """A generated piece made of melody, chord and bass tracks.

    The piece is the sole owner of its track lists.  Every accessor returns a
    copy and every setter stores a copy, so callers cannot mutate the tracks
    behind the piece's back.
    """

    DEFAULT_TEMPO = 120
    DEFAULT_TIME_SIGNATURE = 4
    DEFAULT_TICKS_PER_BEAT = 480
    DEFAULT_TITLE = "AI Generated Music"
    DEFAULT_COMPOSER = "Random Music Generator"

    def __init__(
        self,
        *,
        tempo: int = DEFAULT_TEMPO,
        time_signature: int = DEFAULT_TIME_SIGNATURE,
        ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
        title: str = DEFAULT_TITLE,
        composer: str = DEFAULT_COMPOSER,
    ) -> None:
        self._melody: List[Note] = []
        self._chords: List[Chord] = []
        self._bass_line: List[Note] = []
        self.tempo = tempo
        # Numerator only; the beat unit is always a quarter note.
        self.time_signature = time_signature
        self.ticks_per_beat = ticks_per_beat
        self.title = title
        self.composer = composer

    @property
    def melody(self) -> List[Note]:
        return list(self._melody)

    @melody.setter
    def melody(self, notes: Iterable[Note]) -> None:
        self._melody = list(notes)

    @property
    def chords(self) -> List[Chord]:
        return list(self._chords)

    @chords.setter
    def chords(self, chords: Iterable[Chord]) -> None:
        self._chords = list(chords)

    @property
    def bass_line(self) -> List[Note]:
        return list(self._bass_line)

    @bass_line.setter
    def bass_line(self, notes: Iterable[Note]) -> None:
        self._bass_line = list(notes)

    def add_melody_note(self, note: Note) -> None:
        self._melody.append(note)

    def add_chord(self, chord: Chord) -> None:
        self._chords.append(chord)

    def add_bass_note(self, note: Note) -> None:
        self._bass_line.append(note)

    def clear(self) -> None:
        """Remove all musical content while keeping the metadata."""

        self._melody.clear()
        self._chords.clear()
        self._bass_line.clear()

    def is_empty(self) -> bool:
        return not (self._melody or self._chords or self._bass_line)

    def all_notes(self) -> List[Note]:
        """Return melody, bass and chord notes in that order."""

        notes = list(self._melody) + list(self._bass_line)
        for chord in self._chords:
            notes.extend(chord.notes)
        return notes

    def total_duration(self) -> int:
        """Return the latest end time in ticks across all three tracks."""

        ends = [n.end_time for n in self._melody]
        ends.extend(c.end_time for c in self._chords)
        ends.extend(n.end_time for n in self._bass_line)
        return max(ends, default=0)

    def duration_in_seconds(self) -> float:
        ticks_per_second = (self.tempo * self.ticks_per_beat) / 60.0
        return self.total_duration() / ticks_per_second

    def statistics(self) -> str:
        """Return a human readable multi-line summary of the piece."""

        lines = [
            "=== Music Piece Statistics ===",
            f"Title: {self.title}",
            f"Composer: {self.composer}",
            f"Tempo: {self.tempo} BPM",
            f"Time Signature: {self.time_signature}/4",
            f"Duration: {self.duration_in_seconds():.2f} seconds",
            f"Melody Notes: {len(self._melody)}",
            f"Chords: {len(self._chords)}",
            f"Bass Notes: {len(self._bass_line)}",
            f"Total Ticks: {self.total_duration()}",
        ]
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return (
            f"MusicalPiece(title='{self.title}', "
            f"duration={self.duration_in_seconds():.2f}s, "
            f"melody={len(self._melody)} notes, chords={len(self._chords)}, "
            f"bass={len(self._bass_line)} notes)"
        )
