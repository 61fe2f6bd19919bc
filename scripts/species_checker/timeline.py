"""Timeline construction: simultaneities, motions and the bounded rule window.

The timeline is built once per validation call from an Exercise and never
mutated. Rules only ever see it through a Window, which limits how far back
they can look; asking for more is a programming error.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .model import Exercise, Key, NoteEvent, tick_to_beat, tick_to_measure
from .motion import MotionEvent, classify_motion
from .music_theory import Interval, classify_interval

MAX_LOOKBACK = 2
MAX_NOTE_LOOKBACK = 5


@dataclass(frozen=True)
class Simultaneity:
    """One reference note and one subject note sounding together.

    A simultaneity exists at every tick where either voice attacks while
    both voices sound.
    """
    index: int
    tick: int
    reference: NoteEvent
    subject: NoteEvent
    reference_attack: bool
    subject_attack: bool
    interval: Interval
    reference_index: int
    subject_index: int
    local_ratio: int   # subject attacks under this reference note
    suspended: bool    # subject note tied over this reference note's onset

    @property
    def strong(self) -> bool:
        """True on the reference onset (the 'downbeat' of the species)."""
        return self.reference_attack

    @property
    def beat(self) -> float:
        return tick_to_beat(self.tick)

    @property
    def measure(self) -> int:
        return tick_to_measure(self.tick)


@dataclass(frozen=True)
class SubjectNote:
    """A subject note together with its harmonic context at its onset."""
    index: int
    note: NoteEvent
    interval: Interval
    strong: bool
    reference_index: int
    local_ratio: int
    reference_suspended: bool
    tied_over: bool    # sustains across a later reference onset
    simultaneity: int  # index of the simultaneity at its onset
    suspension_interval: Optional[Interval] = None  # at the reference onset it is tied over

    @property
    def pitch(self) -> int:
        return self.note.pitch

    @property
    def tick(self) -> int:
        return self.note.start_tick


@dataclass(frozen=True)
class SubjectSummary:
    """Whole-line facts about the subject voice, computed once."""
    highest: int
    highest_count: int
    highest_tick: int
    lowest: int
    lowest_tick: int


def sounding_note_at(notes: Sequence[NoteEvent], tick: int) -> Optional[NoteEvent]:
    """Return the note sounding at the given tick, or None.

    Notes must be sorted by start_tick and non-overlapping.
    """
    if not notes:
        return None
    hi = bisect_right(notes, tick, key=lambda n: n.start_tick)
    if hi == 0:
        return None
    n = notes[hi - 1]
    if n.start_tick <= tick < n.end_tick:
        return n
    return None


def _reference_context(exercise: Exercise) -> Tuple[List[int], List[bool]]:
    """Per reference note: number of subject attacks and whether it is suspended."""
    ratios: List[int] = []
    suspended: List[bool] = []
    subject = exercise.subject.notes
    for ref in exercise.reference.notes:
        ratios.append(sum(1 for s in subject if ref.start_tick <= s.start_tick < ref.end_tick))
        suspended.append(any(s.start_tick < ref.start_tick < s.end_tick for s in subject))
    return ratios, suspended


class Timeline:
    """Aligned view of both voices of one exercise."""

    def __init__(self, exercise: Exercise):
        self.exercise = exercise
        ref_notes = exercise.reference.notes
        subj_notes = exercise.subject.notes
        ratios, suspended = _reference_context(exercise)
        ref_index: Dict[NoteEvent, int] = {n: i for i, n in enumerate(ref_notes)}
        subj_index: Dict[NoteEvent, int] = {n: i for i, n in enumerate(subj_notes)}

        ticks = sorted({n.start_tick for n in ref_notes} | {n.start_tick for n in subj_notes})
        sims: List[Simultaneity] = []
        for tick in ticks:
            ref = sounding_note_at(ref_notes, tick)
            subj = sounding_note_at(subj_notes, tick)
            if ref is None or subj is None:
                continue
            ri = ref_index[ref]
            sims.append(Simultaneity(
                index=len(sims),
                tick=tick,
                reference=ref,
                subject=subj,
                reference_attack=ref.start_tick == tick,
                subject_attack=subj.start_tick == tick,
                interval=classify_interval(ref.pitch, subj.pitch),
                reference_index=ri,
                subject_index=subj_index[subj],
                local_ratio=ratios[ri],
                suspended=suspended[ri],
            ))
        self.simultaneities: Tuple[Simultaneity, ...] = tuple(sims)

        motions: List[Optional[MotionEvent]] = [None]
        for prev, cur in zip(sims, sims[1:]):
            motions.append(classify_motion(
                prev.reference.pitch, cur.reference.pitch,
                prev.subject.pitch, cur.subject.pitch,
            ))
        self.motions: Tuple[Optional[MotionEvent], ...] = tuple(motions[:len(sims)])

        notes: List[SubjectNote] = []
        for sim in sims:
            if not sim.subject_attack:
                continue
            subj = sim.subject
            held_over = next(
                (r for r in ref_notes if subj.start_tick < r.start_tick < subj.end_tick), None)
            notes.append(SubjectNote(
                index=len(notes),
                note=subj,
                interval=sim.interval,
                strong=sim.reference_attack,
                reference_index=sim.reference_index,
                local_ratio=sim.local_ratio,
                reference_suspended=sim.suspended,
                tied_over=held_over is not None,
                simultaneity=sim.index,
                suspension_interval=(classify_interval(held_over.pitch, subj.pitch)
                                     if held_over is not None else None),
            ))
        self.subject_notes: Tuple[SubjectNote, ...] = tuple(notes)

        # For every simultaneity, the index of the latest subject note attacked
        # at or before it.
        latest: List[int] = []
        cursor = -1
        for sim in sims:
            if sim.subject_attack:
                cursor += 1
            latest.append(cursor)
        self._latest_note = latest

        pitches = [n.pitch for n in subj_notes]
        if pitches:
            hi = max(pitches)
            lo = min(pitches)
            self.summary: Optional[SubjectSummary] = SubjectSummary(
                highest=hi,
                highest_count=pitches.count(hi),
                highest_tick=next(n.start_tick for n in subj_notes if n.pitch == hi),
                lowest=lo,
                lowest_tick=next(n.start_tick for n in subj_notes if n.pitch == lo),
            )
        else:
            self.summary = None

    def __len__(self) -> int:
        return len(self.simultaneities)

    def windows(self):
        """Yield a Window for every simultaneity in time order."""
        for i in range(len(self.simultaneities)):
            yield Window(self, i)

    def latest_note_index(self, position: int) -> int:
        return self._latest_note[position]


class Window:
    """Bounded view of the timeline at one position."""

    __slots__ = ("_timeline", "position")

    def __init__(self, timeline: Timeline, position: int):
        assert 0 <= position < len(timeline), f"window position {position} out of range"
        self._timeline = timeline
        self.position = position

    # -- exercise facts --------------------------------------------------

    @property
    def key(self) -> Optional[Key]:
        return self._timeline.exercise.key

    @property
    def subject_is_upper(self) -> bool:
        return self._timeline.exercise.subject_is_upper

    @property
    def summary(self) -> Optional[SubjectSummary]:
        return self._timeline.summary

    # -- harmonic lookback -----------------------------------------------

    @property
    def current(self) -> Simultaneity:
        return self._timeline.simultaneities[self.position]

    def previous(self, k: int = 1) -> Optional[Simultaneity]:
        """The simultaneity k positions back (None before the start)."""
        assert 1 <= k <= MAX_LOOKBACK, f"lookback {k} exceeds window"
        i = self.position - k
        return self._timeline.simultaneities[i] if i >= 0 else None

    def motion(self, k: int = 0) -> Optional[MotionEvent]:
        """Motion into the simultaneity k positions back (0 = into current)."""
        assert 0 <= k < MAX_LOOKBACK, f"motion lookback {k} exceeds window"
        i = self.position - k
        return self._timeline.motions[i] if i >= 1 else None

    @property
    def is_first(self) -> bool:
        return self.position == 0

    @property
    def is_last(self) -> bool:
        return self.position == len(self._timeline) - 1

    @property
    def subject_attack(self) -> bool:
        return self.current.subject_attack

    # -- melodic lookback ------------------------------------------------

    def notes(self, count: int) -> Tuple[SubjectNote, ...]:
        """Up to ``count`` most recent subject notes, ending with the one sounding now."""
        assert 1 <= count <= MAX_NOTE_LOOKBACK, f"note lookback {count} exceeds window"
        end = self._timeline.latest_note_index(self.position) + 1
        start = max(0, end - count)
        return self._timeline.subject_notes[start:end]
