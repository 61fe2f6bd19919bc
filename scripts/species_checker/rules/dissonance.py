"""Species-specific dissonance treatment.

One strategy class per species. Every subject note is judged exactly once,
two attacks after it sounds (or at the end of the exercise), so the figure
around it (approach, departure and the note after that) is known. Held
simultaneities, where the reference moves under a sustained subject note,
are judged as they occur.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from ..model import Species, pitch_to_name
from ..music_theory import is_step
from ..timeline import MAX_NOTE_LOOKBACK, SubjectNote
from .base import Category, Severity, Violation

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..timeline import Simultaneity, Window


def _at(notes: Sequence[SubjectNote], i: int) -> Optional[SubjectNote]:
    return notes[i] if 0 <= i < len(notes) else None


def is_passing_tone(prev: SubjectNote, note: SubjectNote, nxt: SubjectNote,
                    step_max: int = 2) -> bool:
    """Approached and left by step in the same direction."""
    if not (is_step(prev.pitch, note.pitch, step_max) and is_step(note.pitch, nxt.pitch, step_max)):
        return False
    return (note.pitch - prev.pitch > 0) == (nxt.pitch - note.pitch > 0)


def is_neighbor_tone(prev: SubjectNote, note: SubjectNote, nxt: SubjectNote,
                     step_max: int = 2) -> bool:
    """Step away and back to the same pitch."""
    return (is_step(prev.pitch, note.pitch, step_max)
            and is_step(note.pitch, nxt.pitch, step_max)
            and prev.pitch == nxt.pitch)


def starts_cambiata(prev: Optional[SubjectNote], note: SubjectNote,
                    nxt: Optional[SubjectNote], step_max: int = 2) -> bool:
    """Approached by step and left by a third down."""
    if prev is None or nxt is None:
        return False
    return is_step(prev.pitch, note.pitch, step_max) and note.pitch - nxt.pitch in (3, 4)


def is_dissonant_suspension(note: Optional[SubjectNote]) -> bool:
    return (note is not None and note.tied_over
            and note.suspension_interval is not None
            and note.suspension_interval.is_dissonant)


class DissonanceTreatment:
    """Base strategy: strong notes consonant, weak dissonances are errors.

    Subclasses refine ``judge_weak`` (and for suspensions ``judge_note``).
    """

    species: Optional[Species] = None

    @property
    def rule_id(self) -> str:
        return "dissonance_treatment"

    @property
    def category(self) -> Category:
        return Category.DISSONANCE

    @property
    def description(self) -> str:
        label = self.species.label if self.species is not None else "any"
        return f"dissonance treatment for {label}"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        violations: List[Violation] = []
        cur = window.current
        if not cur.subject_attack:
            violations.extend(self.judge_held(cur, config))
        notes = window.notes(MAX_NOTE_LOOKBACK)
        if cur.subject_attack and len(notes) >= 3:
            violations.extend(self.judge_note(notes, len(notes) - 3, config))
        if window.is_last:
            for i in range(max(0, len(notes) - 2), len(notes)):
                violations.extend(self.judge_note(notes, i, config))
        return violations

    # -- hooks -----------------------------------------------------------

    def judge_held(self, cur: Simultaneity, config: EngineConfig) -> List[Violation]:
        """The reference attacks under a sustained subject note."""
        if cur.interval.is_consonant:
            return []
        return [self.error(
            cur.tick,
            f"Dissonant {cur.interval.name} against the reference "
            f"while {pitch_to_name(cur.subject.pitch)} is held",
        )]

    def judge_note(self, notes: Sequence[SubjectNote], i: int,
                   config: EngineConfig) -> List[Violation]:
        note = notes[i]
        if note.interval.is_consonant:
            return []
        if note.strong:
            return [self.error(
                note.tick,
                f"Dissonant {note.interval.name} ({pitch_to_name(note.pitch)}) "
                f"on the reference onset; it must be consonant",
            )]
        return self.judge_weak(notes, i, config)

    def judge_weak(self, notes: Sequence[SubjectNote], i: int,
                   config: EngineConfig) -> List[Violation]:
        note = notes[i]
        return [self.error(note.tick, f"Dissonant {note.interval.name} ({pitch_to_name(note.pitch)})")]

    def error(self, tick: int, message: str) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.ERROR,
            tick=tick,
            message=message,
        )


# ---------------------------------------------------------------------------
# Species 1
# ---------------------------------------------------------------------------


class FirstSpecies(DissonanceTreatment):
    species = Species.FIRST

    def judge_note(self, notes, i, config):
        note = notes[i]
        if note.interval.is_consonant:
            return []
        return [self.error(
            note.tick,
            f"Dissonant {note.interval.name} ({pitch_to_name(note.pitch)}): "
            f"note against note allows consonances only",
        )]


# ---------------------------------------------------------------------------
# Species 2
# ---------------------------------------------------------------------------


class SecondSpecies(DissonanceTreatment):
    """Weak dissonances only as passing or neighbor tones."""

    species = Species.SECOND

    def figure_ok(self, notes: Sequence[SubjectNote], i: int, config: EngineConfig) -> bool:
        prev, note, nxt = _at(notes, i - 1), notes[i], _at(notes, i + 1)
        if prev is None or nxt is None:
            return False
        return (is_passing_tone(prev, note, nxt, config.step_max)
                or is_neighbor_tone(prev, note, nxt, config.step_max))

    def judge_weak(self, notes, i, config):
        if self.figure_ok(notes, i, config):
            return []
        note = notes[i]
        return [self.error(
            note.tick,
            f"Dissonant {note.interval.name} ({pitch_to_name(note.pitch)}) "
            f"is neither a passing nor a neighbor tone",
        )]


# ---------------------------------------------------------------------------
# Species 3
# ---------------------------------------------------------------------------


class ThirdSpecies(SecondSpecies):
    """Passing and neighbor tones plus one nota cambiata per reference note."""

    species = Species.THIRD

    def judge_weak(self, notes, i, config):
        if self.figure_ok(notes, i, config):
            return []
        prev, note, nxt, after = _at(notes, i - 1), notes[i], _at(notes, i + 1), _at(notes, i + 2)
        name = f"{note.interval.name} ({pitch_to_name(note.pitch)})"
        if starts_cambiata(prev, note, nxt, config.step_max):
            if after is None:
                return [self.error(note.tick, f"Incomplete nota cambiata on dissonant {name}")]
            if not is_step(nxt.pitch, after.pitch, config.step_max):
                return [self.error(
                    note.tick,
                    f"Nota cambiata on dissonant {name} must continue by step after the third",
                )]
            if self._earlier_cambiata(notes, i):
                return [self.error(
                    note.tick,
                    f"Second nota cambiata on dissonant {name}: only one is allowed per reference note",
                )]
            return []
        return [self.error(
            note.tick,
            f"Dissonant {name} is not a passing tone, neighbor tone or nota cambiata",
        )]

    def _earlier_cambiata(self, notes: Sequence[SubjectNote], i: int) -> bool:
        note = notes[i]
        for j in range(max(0, i - 2), i):
            earlier = notes[j]
            landing = notes[j + 1]
            if (earlier.reference_index == note.reference_index
                    and not earlier.strong
                    and earlier.interval.is_dissonant
                    and earlier.pitch - landing.pitch in (3, 4)):
                return True
        return False


# ---------------------------------------------------------------------------
# Species 4
# ---------------------------------------------------------------------------


class FourthSpecies(SecondSpecies):
    """Prepared suspensions resolving down by step."""

    species = Species.FOURTH

    def judge_held(self, cur, config):
        # Judged with the sustained note itself, once its resolution is known.
        return []

    def judge_note(self, notes, i, config):
        note = notes[i]
        resolving = is_dissonant_suspension(_at(notes, i - 1))
        if note.tied_over:
            violations: List[Violation] = []
            if note.interval.is_dissonant and not resolving:
                violations.append(self.error(
                    note.tick,
                    f"Syncopated {pitch_to_name(note.pitch)} must begin on a consonance, "
                    f"not a {note.interval.name}",
                ))
            if is_dissonant_suspension(note):
                violations.extend(self._judge_resolution(notes, i, config))
            return violations
        if resolving:
            return []
        return super().judge_note(notes, i, config)

    def _judge_resolution(self, notes, i, config) -> List[Violation]:
        note = notes[i]
        nxt = _at(notes, i + 1)
        held = f"suspended {note.suspension_interval.name} ({pitch_to_name(note.pitch)})"
        if nxt is None:
            return [self.error(note.tick, f"The {held} is never resolved")]
        if nxt.strong:
            return [self.error(nxt.tick, f"The {held} is not resolved before the next reference note")]
        step = nxt.pitch - note.pitch
        if step == 0:
            message = f"The {held} must resolve down by step, not repeat"
        elif step > 0:
            message = f"The {held} resolves upward to {pitch_to_name(nxt.pitch)}"
        elif not is_step(note.pitch, nxt.pitch, config.step_max):
            message = f"The {held} must resolve down by step, not leap to {pitch_to_name(nxt.pitch)}"
        elif nxt.interval.is_dissonant:
            message = f"The {held} resolves to a dissonant {nxt.interval.name}"
        else:
            return []
        return [self.error(nxt.tick, message)]


# ---------------------------------------------------------------------------
# Species 5
# ---------------------------------------------------------------------------


class FloridTreatment(DissonanceTreatment):
    """Pick the species check that matches each note's rhythmic context."""

    species = Species.FIFTH

    def __init__(self):
        self._first = FirstSpecies()
        self._second = SecondSpecies()
        self._third = ThirdSpecies()
        self._fourth = FourthSpecies()

    def strategy_for(self, notes: Sequence[SubjectNote], i: int) -> DissonanceTreatment:
        note = notes[i]
        if note.tied_over or note.reference_suspended or is_dissonant_suspension(_at(notes, i - 1)):
            return self._fourth
        if note.local_ratio <= 1:
            return self._first
        if note.local_ratio == 2:
            return self._second
        return self._third

    def judge_held(self, cur, config):
        return self._fourth.judge_held(cur, config)

    def judge_note(self, notes, i, config):
        return self.strategy_for(notes, i).judge_note(notes, i, config)


_TREATMENTS = {
    Species.FIRST: FirstSpecies,
    Species.SECOND: SecondSpecies,
    Species.THIRD: ThirdSpecies,
    Species.FOURTH: FourthSpecies,
    Species.FIFTH: FloridTreatment,
}


def get_treatment(species: Species) -> DissonanceTreatment:
    """Return a fresh dissonance strategy for the species."""
    return _TREATMENTS[Species(species)]()
