"""Non-scoring analysis of an exercise and the pedagogical feedback built on it.

Nothing here affects the score or the verdict; it only describes the line
and suggests improvements an instructor would point out.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import DEFAULT_CONFIG, EngineConfig
from .model import TICKS_PER_BEAT, Species, tick_to_beat
from .motion import MotionType
from .music_theory import is_step
from .timeline import Timeline


class FeedbackKind(Enum):
    SUGGESTION = "suggestion"
    ANALYSIS = "analysis"


@dataclass(frozen=True)
class Feedback:
    kind: FeedbackKind
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


@dataclass
class Analysis:
    """Statistics over one exercise."""
    total_notes: int = 0
    motion_counts: Dict[str, int] = field(default_factory=dict)
    contrary_ratio: float = 0.0
    stepwise_ratio: float = 0.0
    interval_mix: Dict[str, int] = field(default_factory=dict)
    longest_imperfect_run: int = 0
    climax_at_edge: bool = False
    syncopation_ratio: float = 0.0
    first_onset_beat: Optional[float] = None
    rhythm_mix: Dict[str, int] = field(default_factory=dict)

    @property
    def total_motions(self) -> int:
        return sum(self.motion_counts.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalNotes": self.total_notes,
            "motionCounts": dict(self.motion_counts),
            "contraryMotionPercentage": round(self.contrary_ratio * 100),
            "stepwisePercentage": round(self.stepwise_ratio * 100),
            "intervalMix": dict(self.interval_mix),
            "longestImperfectRun": self.longest_imperfect_run,
            "syncopationPercentage": round(self.syncopation_ratio * 100),
            "rhythmMix": dict(self.rhythm_mix),
        }


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def _imperfect_kind(ic: int) -> Optional[str]:
    if ic in (3, 4):
        return "third"
    if ic in (8, 9):
        return "sixth"
    return None


def _longest_imperfect_run(timeline: Timeline) -> int:
    """Longest run of consecutive thirds (or of consecutive sixths)."""
    best = run = 0
    last_kind = None
    for sim in timeline.simultaneities:
        kind = _imperfect_kind(sim.interval.interval_class)
        if kind is not None and kind == last_kind:
            run += 1
        elif kind is not None:
            run = 1
        else:
            run = 0
        last_kind = kind
        best = max(best, run)
    return best


def _rhythm_label(duration: int) -> str:
    beats = duration / TICKS_PER_BEAT
    if beats >= 4:
        return "whole"
    if beats >= 2:
        return "half"
    if beats >= 1:
        return "quarter"
    return "shorter"


def analyze(timeline: Timeline, config: EngineConfig = DEFAULT_CONFIG) -> Analysis:
    """Compute motion, melodic and rhythmic statistics for a built timeline."""
    subject = timeline.exercise.subject.notes
    result = Analysis(total_notes=len(subject))

    motions = Counter(m.type.value for m in timeline.motions if m is not None)
    result.motion_counts = {t.value: motions.get(t.value, 0) for t in MotionType}
    moving = sum(motions.values())
    if moving:
        result.contrary_ratio = motions.get(MotionType.CONTRARY.value, 0) / moving

    if len(subject) > 1:
        steps = sum(1 for a, b in zip(subject, subject[1:]) if is_step(a.pitch, b.pitch, config.step_max))
        result.stepwise_ratio = steps / (len(subject) - 1)

    mix = Counter(sim.interval.quality.value for sim in timeline.simultaneities)
    result.interval_mix = dict(mix)
    result.longest_imperfect_run = _longest_imperfect_run(timeline)

    summary = timeline.summary
    if summary is not None and summary.highest_count == 1 and len(subject) > 2:
        result.climax_at_edge = summary.highest in (subject[0].pitch, subject[-1].pitch)

    if timeline.subject_notes:
        tied = sum(1 for n in timeline.subject_notes if n.tied_over)
        result.syncopation_ratio = tied / len(timeline.subject_notes)
    if subject:
        result.first_onset_beat = tick_to_beat(subject[0].start_tick)
    result.rhythm_mix = dict(Counter(_rhythm_label(n.duration) for n in subject))
    return result


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


def build_feedback(analysis: Analysis, species: Species,
                   config: EngineConfig = DEFAULT_CONFIG) -> List[Feedback]:
    """Turn analysis numbers into teaching suggestions."""
    out: List[Feedback] = []
    if analysis.total_motions and analysis.contrary_ratio < config.min_contrary_ratio:
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            f"Use more contrary motion for voice independence "
            f"(currently {round(analysis.contrary_ratio * 100)}%)",
        ))
    if analysis.longest_imperfect_run > config.max_imperfect_run:
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            f"Too many consecutive thirds or sixths ({analysis.longest_imperfect_run}); "
            f"vary the intervals",
        ))
    if analysis.climax_at_edge:
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            "Consider placing the melodic climax in the middle of the phrase "
            "rather than at the beginning or end",
        ))

    species = Species(species)
    if species is Species.SECOND and analysis.first_onset_beat not in (None, 0, 2):
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            "Second species typically begins with a half rest or on the downbeat",
        ))
    if species is Species.THIRD and analysis.stepwise_ratio < config.min_stepwise_ratio:
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            f"Use more stepwise motion in third species "
            f"(currently {round(analysis.stepwise_ratio * 100)}%)",
        ))
    if species is Species.FOURTH and analysis.syncopation_ratio < 0.5:
        out.append(Feedback(
            FeedbackKind.SUGGESTION,
            "Fourth species should emphasize syncopation; tie more notes across the bar line",
        ))
    if species is Species.FIFTH:
        mix = analysis.rhythm_mix
        out.append(Feedback(
            FeedbackKind.ANALYSIS,
            f"Florid mixture: {mix.get('whole', 0)} whole, {mix.get('half', 0)} half, "
            f"{mix.get('quarter', 0)} quarter and {mix.get('shorter', 0)} shorter notes",
        ))
    return out
