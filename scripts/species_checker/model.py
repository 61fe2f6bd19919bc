"""Data model for species counterpoint exercises.

Time is measured in integer ticks (480 per quarter-note beat), the same grid
the MIDI loader and the JSON request loader quantize onto. Notes, voices and
exercises are frozen; everything else the engine works with is derived from
them per validation call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Tuple

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------

TICKS_PER_BEAT = 480
BEATS_PER_BAR = 4
TICKS_PER_BAR = TICKS_PER_BEAT * BEATS_PER_BAR

# ---------------------------------------------------------------------------
# Interval constants (semitones)
# ---------------------------------------------------------------------------

UNISON = 0
MINOR_2ND = 1
MAJOR_2ND = 2
MINOR_3RD = 3
MAJOR_3RD = 4
PERFECT_4TH = 5
TRITONE = 6
PERFECT_5TH = 7
MINOR_6TH = 8
MAJOR_6TH = 9
MINOR_7TH = 10
MAJOR_7TH = 11
OCTAVE = 12

PERFECT_CONSONANCES = frozenset({UNISON, PERFECT_5TH})
IMPERFECT_CONSONANCES = frozenset({MINOR_3RD, MAJOR_3RD, MINOR_6TH, MAJOR_6TH})
CONSONANCES = PERFECT_CONSONANCES | IMPERFECT_CONSONANCES
DISSONANCES = frozenset({MINOR_2ND, MAJOR_2ND, PERFECT_4TH, TRITONE, MINOR_7TH, MAJOR_7TH})

NOTE_NAMES = ["C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]


# ---------------------------------------------------------------------------
# Species
# ---------------------------------------------------------------------------


class Species(IntEnum):
    """The five species of Fux's two-voice counterpoint."""
    FIRST = 1   # note against note
    SECOND = 2  # two against one
    THIRD = 3   # three or four against one
    FOURTH = 4  # syncopation / suspensions
    FIFTH = 5   # florid

    @property
    def label(self) -> str:
        return {
            Species.FIRST: "note against note",
            Species.SECOND: "two against one",
            Species.THIRD: "four against one",
            Species.FOURTH: "syncopation",
            Species.FIFTH: "florid",
        }[self]


# ---------------------------------------------------------------------------
# NoteEvent / Voice / Exercise
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoteEvent:
    """A single sounding note."""
    pitch: int
    start_tick: int
    duration: int

    @property
    def end_tick(self) -> int:
        return self.start_tick + self.duration

    @property
    def beat(self) -> float:
        return tick_to_beat(self.start_tick)

    @property
    def measure(self) -> int:
        """1-based measure number."""
        return self.start_tick // TICKS_PER_BAR + 1

    @property
    def note_name(self) -> str:
        return pitch_to_name(self.pitch)


@dataclass(frozen=True)
class Voice:
    """A monophonic line: notes ordered by onset, never overlapping."""
    name: str
    notes: Tuple[NoteEvent, ...] = ()

    @classmethod
    def from_notes(cls, name: str, notes: List[NoteEvent]) -> Voice:
        return cls(name=name, notes=tuple(sorted(notes, key=lambda n: n.start_tick)))

    @property
    def total_duration(self) -> int:
        """End tick of the last note (0 for an empty voice)."""
        if not self.notes:
            return 0
        return max(n.end_tick for n in self.notes)

    @property
    def pitches(self) -> List[int]:
        return [n.pitch for n in self.notes]

    @property
    def onsets(self) -> List[int]:
        return [n.start_tick for n in self.notes]

    def __len__(self) -> int:
        return len(self.notes)


@dataclass(frozen=True)
class Key:
    """Tonic pitch class plus mode name (church mode or major/minor)."""
    tonic: int
    mode: str = "major"

    @property
    def name(self) -> str:
        return f"{NOTE_NAMES[self.tonic % 12]} {self.mode}"


@dataclass(frozen=True)
class Exercise:
    """A reference voice (never judged) and the subject voice to validate.

    ``subject_above`` fixes which voice is expected on top; None lets the
    engine infer it from the average pitch of each voice.
    """
    reference: Voice
    subject: Voice
    species: Species
    key: Optional[Key] = None
    subject_above: Optional[bool] = None
    title: str = ""

    @property
    def total_duration(self) -> int:
        return max(self.reference.total_duration, self.subject.total_duration)

    @property
    def total_measures(self) -> int:
        return (self.total_duration + TICKS_PER_BAR - 1) // TICKS_PER_BAR

    @property
    def subject_is_upper(self) -> bool:
        if self.subject_above is not None:
            return self.subject_above
        ref = self.reference.pitches
        subj = self.subject.pitches
        if not ref or not subj:
            return True
        return sum(subj) / len(subj) >= sum(ref) / len(ref)


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------


def tick_to_beat(tick: int) -> float:
    """Convert ticks to quarter-note beats; whole beats come back as ints."""
    if tick % TICKS_PER_BEAT == 0:
        return tick // TICKS_PER_BEAT
    return tick / TICKS_PER_BEAT


def beat_to_tick(beat: float) -> int:
    """Quantize a beat position onto the tick grid."""
    return int(round(beat * TICKS_PER_BEAT))


def tick_to_measure(tick: int) -> int:
    return tick // TICKS_PER_BAR + 1


def pitch_to_name(pitch: int) -> str:
    """Convert MIDI pitch to note name with octave (e.g., 'D4')."""
    return f"{NOTE_NAMES[pitch % 12]}{pitch // 12 - 1}"


def make_voice(name: str, pitches: List[int], duration: int = TICKS_PER_BAR,
               start_tick: int = 0) -> Voice:
    """Build an evenly spaced voice, e.g. a cantus firmus in whole notes."""
    notes = [
        NoteEvent(pitch=p, start_tick=start_tick + i * duration, duration=duration)
        for i, p in enumerate(pitches)
    ]
    return Voice(name=name, notes=tuple(notes))


@dataclass
class ExerciseSummary:
    """Lightweight description used by formatters."""
    species: int
    reference_notes: int
    subject_notes: int
    measures: int
    key: Optional[str] = None


def summarize(exercise: Exercise) -> ExerciseSummary:
    return ExerciseSummary(
        species=int(exercise.species),
        reference_notes=len(exercise.reference),
        subject_notes=len(exercise.subject),
        measures=exercise.total_measures,
        key=exercise.key.name if exercise.key else None,
    )
