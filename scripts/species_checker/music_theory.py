"""Pure music theory functions: interval classification, naming, diatonic spelling.

No I/O. Used by the timeline, every rule module and the analysis pass.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from .model import (
    IMPERFECT_CONSONANCES,
    OCTAVE,
    PERFECT_CONSONANCES,
    Key,
)

# ---------------------------------------------------------------------------
# Interval name constants
# ---------------------------------------------------------------------------

INTERVAL_LONG_NAMES: dict[int, str] = {
    0: "unison",
    1: "minor 2nd",
    2: "major 2nd",
    3: "minor 3rd",
    4: "major 3rd",
    5: "perfect 4th",
    6: "tritone",
    7: "perfect 5th",
    8: "minor 6th",
    9: "major 6th",
    10: "minor 7th",
    11: "major 7th",
}

# ---------------------------------------------------------------------------
# Interval classification
# ---------------------------------------------------------------------------


class IntervalQuality(Enum):
    """Harmonic quality of an interval class."""
    PERFECT = "perfect-consonant"
    IMPERFECT = "imperfect-consonant"
    DISSONANT = "dissonant"


class Interval(NamedTuple):
    """Harmonic interval between two simultaneous pitches."""
    semitones: int
    interval_class: int
    quality: IntervalQuality

    @property
    def is_consonant(self) -> bool:
        return self.quality is not IntervalQuality.DISSONANT

    @property
    def is_perfect(self) -> bool:
        return self.quality is IntervalQuality.PERFECT

    @property
    def is_imperfect(self) -> bool:
        return self.quality is IntervalQuality.IMPERFECT

    @property
    def is_dissonant(self) -> bool:
        return self.quality is IntervalQuality.DISSONANT

    @property
    def name(self) -> str:
        return interval_name(self.semitones)


def interval_class(semitones: int) -> int:
    """Reduce an interval to 0-11 range (mod 12)."""
    return abs(semitones) % 12


def quality_of(ic: int) -> IntervalQuality:
    if ic in PERFECT_CONSONANCES:
        return IntervalQuality.PERFECT
    if ic in IMPERFECT_CONSONANCES:
        return IntervalQuality.IMPERFECT
    return IntervalQuality.DISSONANT


def classify_interval(pitch_a: int, pitch_b: int) -> Interval:
    """Classify the harmonic interval between two pitches. Total over all ints."""
    semitones = abs(pitch_a - pitch_b)
    ic = semitones % 12
    return Interval(semitones=semitones, interval_class=ic, quality=quality_of(ic))


def is_step(pitch_a: int, pitch_b: int, step_max: int = 2) -> bool:
    """True for a melodic second (1..step_max semitones, repeats excluded)."""
    return 0 < abs(pitch_b - pitch_a) <= step_max


def is_leap(pitch_a: int, pitch_b: int, step_max: int = 2) -> bool:
    return abs(pitch_b - pitch_a) > step_max


def interval_name(semitones: int) -> str:
    """Human-readable name, e.g. 'perfect 5th', 'octave', 'major 3rd + octave'."""
    semitones = abs(semitones)
    if semitones == 0:
        return "unison"
    if semitones % OCTAVE == 0:
        octaves = semitones // OCTAVE
        return "octave" if octaves == 1 else f"{octaves} octaves"
    simple = INTERVAL_LONG_NAMES[semitones % 12]
    octaves = semitones // OCTAVE
    if octaves == 0:
        return simple
    return f"{simple} + {'octave' if octaves == 1 else f'{octaves} octaves'}"


def perfect_label(ic: int) -> str:
    """Plural label used in parallel/direct perfect messages."""
    return "fifths" if ic == 7 else "octaves"


# ---------------------------------------------------------------------------
# Scales and modes
# ---------------------------------------------------------------------------

MODE_SCALES: dict[str, list[int]] = {
    "major": [0, 2, 4, 5, 7, 9, 11],
    "ionian": [0, 2, 4, 5, 7, 9, 11],
    "dorian": [0, 2, 3, 5, 7, 9, 10],
    "phrygian": [0, 1, 3, 5, 7, 8, 10],
    "lydian": [0, 2, 4, 6, 7, 9, 11],
    "mixolydian": [0, 2, 4, 5, 7, 9, 10],
    "aeolian": [0, 2, 3, 5, 7, 8, 10],
    "minor": [0, 2, 3, 5, 7, 8, 10],
}

TONIC_TO_PC: dict[str, int] = {
    "C": 0, "C#": 1, "Db": 1, "D": 2, "D#": 3, "Eb": 3,
    "E": 4, "F": 5, "F#": 6, "Gb": 6, "G": 7, "G#": 8,
    "Ab": 8, "A": 9, "A#": 10, "Bb": 10, "B": 11,
}

# Degrees whose lowered form is the usual spelling of an in-between pitch
# (flat 2nd, flat 6th, flat 7th); everything else is spelled as a raised note.
_FLAT_PREFERRED_DEGREES = frozenset({1, 5, 6})


def build_pc_to_degree_map(scale: list[int]) -> list[tuple[int, int]]:
    """For pitch classes 0-11 (relative to tonic), return (degree, accidental).

    Non-scale tones sit between two degrees; they are spelled as a lowered
    2nd, 6th or 7th when that is one of the candidates, otherwise as a
    raised lower degree (leading tones, raised 3rds and 4ths).
    """
    result: list[tuple[int, int]] = []
    for pc in range(12):
        if pc in scale:
            result.append((scale.index(pc), 0))
            continue
        lower = max((d for d, s in enumerate(scale) if s < pc), key=lambda d: scale[d], default=None)
        upper = min((d for d, s in enumerate(scale) if s > pc), key=lambda d: scale[d], default=None)
        if upper is None:
            # Above the 7th degree: a semitone under the next tonic.
            result.append((lower, pc - scale[lower]))
        elif lower is None:
            result.append((upper, pc - scale[upper]))
        elif upper in _FLAT_PREFERRED_DEGREES:
            result.append((upper, pc - scale[upper]))
        else:
            result.append((lower, pc - scale[lower]))
    return result


class ScaleDegree(NamedTuple):
    """Diatonic scale degree with chromatic accidental.

    octave is scale-relative (pitch-tonic divided by 12).
    """
    degree: int       # 0-6 within one octave of the scale
    accidental: int   # -1=flat, 0=natural, +1=sharp (vs diatonic scale)
    octave: int


def parse_key(tonic: str, mode: str = "major") -> Key:
    """Build a Key from a tonic name ('D', 'Bb') and a mode name."""
    if tonic not in TONIC_TO_PC:
        raise ValueError(f"unknown tonic '{tonic}'")
    mode = mode.lower()
    if mode not in MODE_SCALES:
        raise ValueError(f"unknown mode '{mode}'")
    return Key(tonic=TONIC_TO_PC[tonic], mode=mode)


def pitch_to_scale_degree(pitch: int, key: Key) -> ScaleDegree:
    """Convert MIDI pitch to ScaleDegree within the key's mode."""
    pc_map = build_pc_to_degree_map(MODE_SCALES[key.mode])
    rel = pitch - key.tonic
    octave = rel // 12
    degree, accidental = pc_map[rel % 12]
    return ScaleDegree(degree=degree, accidental=accidental, octave=octave)


def degree_interval(a: ScaleDegree, b: ScaleDegree) -> int:
    """Signed diatonic distance in steps (C4->D5 = +8)."""
    return (b.octave * 7 + b.degree) - (a.octave * 7 + a.degree)


# (generic simple interval number, semitones) -> quality letter.
_QUALITY_TABLE: dict[tuple[int, int], str] = {
    (1, 0): "P", (1, 1): "A",
    (2, 0): "d", (2, 1): "m", (2, 2): "M", (2, 3): "A",
    (3, 2): "d", (3, 3): "m", (3, 4): "M", (3, 5): "A",
    (4, 4): "d", (4, 5): "P", (4, 6): "A",
    (5, 6): "d", (5, 7): "P", (5, 8): "A",
    (6, 7): "d", (6, 8): "m", (6, 9): "M", (6, 10): "A",
    (7, 9): "d", (7, 10): "m", (7, 11): "M", (7, 12): "A",
    (8, 11): "d", (8, 12): "P", (8, 13): "A",
}


class MelodicSpelling(NamedTuple):
    """Diatonic spelling of a melodic interval."""
    generic: int      # 1 = unison, 2 = second ... 8 = octave (simple)
    quality: str      # P, M, m, A or d
    semitones: int

    @property
    def label(self) -> str:
        names = {"P": "perfect", "M": "major", "m": "minor",
                 "A": "augmented", "d": "diminished"}
        ordinal = {1: "unison", 2: "2nd", 3: "3rd", 4: "4th",
                   5: "5th", 6: "6th", 7: "7th", 8: "octave"}
        return f"{names.get(self.quality, self.quality)} {ordinal[self.generic]}"

    @property
    def is_augmented(self) -> bool:
        return self.quality == "A"

    @property
    def is_diminished(self) -> bool:
        return self.quality == "d"


def spell_melodic_interval(pitch_a: int, pitch_b: int, key: Key) -> MelodicSpelling:
    """Spell the melodic interval a->b diatonically within the key."""
    da = pitch_to_scale_degree(pitch_a, key)
    db = pitch_to_scale_degree(pitch_b, key)
    steps = abs(degree_interval(da, db))
    semitones = abs(pitch_b - pitch_a)
    # Reduce compound intervals to their simple form.
    while steps > 7:
        steps -= 7
        semitones -= 12
    generic = steps + 1
    quality = _QUALITY_TABLE.get((generic, semitones))
    if quality is None:
        # Doubly altered; only the direction of the alteration matters here.
        natural = [s for (g, s), q in _QUALITY_TABLE.items() if g == generic and q in "PMm"]
        quality = "A" if natural and semitones > max(natural) else "d"
    return MelodicSpelling(generic=generic, quality=quality, semitones=abs(pitch_b - pitch_a))
