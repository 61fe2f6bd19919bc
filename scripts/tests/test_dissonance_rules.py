"""Tests for the per-species dissonance treatment strategies."""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.species_checker.config import DEFAULT_CONFIG
from scripts.species_checker.model import TICKS_PER_BEAT, Exercise, NoteEvent, Species, Voice
from scripts.species_checker.rules.base import Category
from scripts.species_checker.rules.dissonance import (
    FirstSpecies,
    FloridTreatment,
    FourthSpecies,
    SecondSpecies,
    ThirdSpecies,
    get_treatment,
)
from scripts.species_checker.timeline import Timeline


def _voice(name, notes):
    """notes: list of (pitch, onset beat, duration beats)."""
    return Voice.from_notes(name, [
        NoteEvent(pitch=p, start_tick=int(b * TICKS_PER_BEAT), duration=int(d * TICKS_PER_BEAT))
        for p, b, d in notes
    ])


def _exercise(ref, subj, species=Species.FIRST):
    return Exercise(_voice("cf", ref), _voice("s", subj), species, subject_above=True)


def _run(treatment, exercise, config=DEFAULT_CONFIG):
    out = []
    for window in Timeline(exercise).windows():
        out.extend(treatment.check(window, config))
    return out


def _beat(b):
    return int(b * TICKS_PER_BEAT)


class TestFirstSpecies(unittest.TestCase):
    def test_dissonance_rejected(self):
        ex = _exercise([(60, 0, 4), (62, 4, 4)], [(67, 0, 4), (64, 4, 4)])
        vs = _run(FirstSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertEqual(vs[0].tick, _beat(4))
        self.assertEqual(vs[0].category, Category.DISSONANCE)
        self.assertIn("consonances only", vs[0].message)

    def test_weak_passing_tone_still_rejected(self):
        ex = _exercise([(60, 0, 4), (62, 4, 4)], [(72, 0, 2), (71, 2, 2), (69, 4, 4)])
        vs = _run(FirstSpecies(), ex)
        self.assertEqual([v.tick for v in vs], [_beat(2)])

    def test_held_note_against_moving_reference(self):
        ex = _exercise([(60, 0, 4), (62, 4, 4)], [(72, 0, 8)])
        vs = _run(FirstSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("is held", vs[0].message)
        self.assertEqual(vs[0].tick, _beat(4))


class TestSecondSpecies(unittest.TestCase):
    def test_passing_tone(self):
        ex = _exercise([(60, 0, 4), (62, 4, 4)], [(72, 0, 2), (71, 2, 2), (69, 4, 4)])
        self.assertEqual(_run(SecondSpecies(), ex), [])

    def test_neighbor_tone(self):
        ex = _exercise([(60, 0, 4), (60, 4, 4)], [(72, 0, 2), (74, 2, 2), (72, 4, 4)])
        self.assertEqual(_run(SecondSpecies(), ex), [])

    def test_leap_into_dissonance(self):
        ex = _exercise([(60, 0, 4), (60, 4, 4)], [(72, 0, 2), (65, 2, 2), (64, 4, 4)])
        vs = _run(SecondSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertEqual(vs[0].tick, _beat(2))
        self.assertIn("neither a passing nor a neighbor", vs[0].message)

    def test_downbeat_dissonance(self):
        ex = _exercise([(60, 0, 4), (62, 4, 4)], [(72, 0, 2), (71, 2, 2), (64, 4, 4)])
        vs = _run(SecondSpecies(), ex)
        self.assertTrue(any(v.tick == _beat(4) and "reference onset" in v.message for v in vs))

    def test_unresolved_final_weak_dissonance(self):
        ex = _exercise([(60, 0, 4)], [(72, 0, 2), (71, 2, 2)])
        vs = _run(SecondSpecies(), ex)
        self.assertEqual([v.tick for v in vs], [_beat(2)])


class TestThirdSpecies(unittest.TestCase):
    CAMBIATA = _exercise(
        [(60, 0, 4), (65, 4, 4)],
        [(72, 0, 1), (71, 1, 1), (67, 2, 1), (69, 3, 1), (69, 4, 4)],
    )

    def test_cambiata_accepted(self):
        self.assertEqual(_run(ThirdSpecies(), self.CAMBIATA), [])

    def test_cambiata_rejected_in_second_species(self):
        vs = _run(SecondSpecies(), self.CAMBIATA)
        self.assertEqual([v.tick for v in vs], [_beat(1)])

    def test_incomplete_cambiata(self):
        ex = _exercise([(60, 0, 4)], [(72, 0, 1), (71, 1, 1), (67, 2, 2)])
        vs = _run(ThirdSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("Incomplete nota cambiata", vs[0].message)

    def test_cambiata_must_continue_by_step(self):
        ex = _exercise([(60, 0, 4)], [(72, 0, 1), (71, 1, 1), (67, 2, 1), (64, 3, 1)])
        vs = _run(ThirdSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("continue by step", vs[0].message)

    def test_unfigured_dissonance(self):
        ex = _exercise([(60, 0, 4)], [(72, 0, 1), (65, 1, 1), (64, 2, 1), (67, 3, 1)])
        vs = _run(ThirdSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("nota cambiata", vs[0].message)
        self.assertEqual(vs[0].tick, _beat(1))


class TestFourthSpecies(unittest.TestCase):
    REF = [(65, 0, 4), (64, 4, 4)]

    def test_prepared_suspension_resolving_down(self):
        ex = _exercise(self.REF, [(69, 0, 2), (74, 2, 4), (72, 6, 2)])
        self.assertEqual(_run(FourthSpecies(), ex), [])

    def test_upward_resolution(self):
        ex = _exercise(self.REF, [(69, 0, 2), (74, 2, 4), (76, 6, 2)])
        vs = _run(FourthSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertEqual(vs[0].tick, _beat(6))
        self.assertIn("resolves upward", vs[0].message)

    def test_unprepared_syncopation(self):
        ex = _exercise(self.REF, [(69, 0, 2), (76, 2, 4), (72, 6, 2)])
        vs = _run(FourthSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("must begin on a consonance", vs[0].message)
        self.assertEqual(vs[0].tick, _beat(2))

    def test_never_resolved(self):
        ex = _exercise(self.REF, [(69, 0, 2), (74, 2, 6)])
        vs = _run(FourthSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertIn("never resolved", vs[0].message)

    def test_resolution_on_next_reference_note(self):
        ex = _exercise(
            [(65, 0, 4), (64, 4, 4), (62, 8, 4)],
            [(69, 0, 2), (74, 2, 6), (72, 8, 4)],
        )
        vs = _run(FourthSpecies(), ex)
        self.assertEqual(len(vs), 1)
        self.assertEqual(vs[0].tick, _beat(8))
        self.assertIn("before the next reference note", vs[0].message)


class TestFloridTreatment(unittest.TestCase):
    def test_strategy_follows_local_rhythm(self):
        ex = _exercise(
            [(60, 0, 4), (62, 4, 4), (64, 8, 4)],
            [(72, 0, 4), (69, 4, 2), (71, 6, 2),
             (72, 8, 1), (74, 9, 1), (72, 10, 1), (71, 11, 1)],
            Species.FIFTH,
        )
        notes = Timeline(ex).subject_notes
        florid = FloridTreatment()
        kinds = [type(florid.strategy_for(notes, i)) for i in range(len(notes))]
        self.assertEqual(kinds, [FirstSpecies, SecondSpecies, SecondSpecies,
                                 ThirdSpecies, ThirdSpecies, ThirdSpecies, ThirdSpecies])

    def test_suspension_context_uses_fourth_species(self):
        ex = _exercise([(65, 0, 4), (64, 4, 4)], [(69, 0, 2), (74, 2, 4), (72, 6, 2)], Species.FIFTH)
        notes = Timeline(ex).subject_notes
        florid = FloridTreatment()
        self.assertIs(type(florid.strategy_for(notes, 1)), FourthSpecies)
        self.assertIs(type(florid.strategy_for(notes, 2)), FourthSpecies)
        self.assertEqual(_run(florid, ex), [])


class TestGetTreatment(unittest.TestCase):
    def test_one_strategy_per_species(self):
        self.assertIs(type(get_treatment(Species.FIRST)), FirstSpecies)
        self.assertIs(type(get_treatment(Species.THIRD)), ThirdSpecies)
        self.assertIs(type(get_treatment(5)), FloridTreatment)

    def test_fresh_instances(self):
        self.assertIsNot(get_treatment(Species.SECOND), get_treatment(Species.SECOND))

    def test_rule_identity(self):
        t = get_treatment(Species.FOURTH)
        self.assertEqual(t.rule_id, "dissonance_treatment")
        self.assertEqual(t.category, Category.DISSONANCE)


if __name__ == "__main__":
    unittest.main()
