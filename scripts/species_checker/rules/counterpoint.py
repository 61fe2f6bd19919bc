"""Two-voice rules: parallel perfects, direct perfects, range and crossing."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..model import pitch_to_name
from ..motion import MotionType
from ..music_theory import interval_name, perfect_label
from .base import Category, Severity, Violation

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..timeline import Simultaneity, Window


# ---------------------------------------------------------------------------
# ParallelPerfects
# ---------------------------------------------------------------------------


class ParallelPerfects:
    """Detect consecutive perfect consonances reached in parallel motion."""

    @property
    def rule_id(self) -> str:
        return "parallel_perfects"

    @property
    def category(self) -> Category:
        return Category.MOTION

    @property
    def description(self) -> str:
        return "no parallel fifths or octaves"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        prev = window.previous(1)
        motion = window.motion(0)
        cur = window.current
        if prev is None or motion is None:
            return []
        if not (prev.interval.is_perfect and cur.interval.is_perfect):
            return []
        if motion.type is not MotionType.PARALLEL:
            return []
        label = perfect_label(cur.interval.interval_class)
        return [Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.ERROR,
            tick=cur.tick,
            message=(
                f"Parallel {label}: {_pair(prev)} -> {_pair(cur)}"
            ),
        )]


# ---------------------------------------------------------------------------
# DirectPerfects
# ---------------------------------------------------------------------------


class DirectPerfects:
    """Detect direct (hidden) perfects: similar motion into a perfect
    consonance while the subject leaps."""

    @property
    def rule_id(self) -> str:
        return "direct_perfects"

    @property
    def category(self) -> Category:
        return Category.MOTION

    @property
    def description(self) -> str:
        return "no leap into a fifth or octave by similar motion"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        motion = window.motion(0)
        cur = window.current
        if motion is None or motion.type is not MotionType.SIMILAR:
            return []
        if not cur.interval.is_perfect or abs(motion.subject_step) <= config.step_max:
            return []
        label = perfect_label(cur.interval.interval_class)
        return [Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=config.direct_perfect_severity,
            tick=cur.tick,
            message=(
                f"Direct {label}: similar motion into {_pair(cur)} "
                f"with a subject leap of a {interval_name(motion.subject_step)}"
            ),
        )]


# ---------------------------------------------------------------------------
# RangeRule
# ---------------------------------------------------------------------------


def _crossing(sim: Optional[Simultaneity], subject_is_upper: bool) -> int:
    """Semitones by which the subject sits on the wrong side of the reference."""
    if sim is None:
        return 0
    gap = sim.reference.pitch - sim.subject.pitch
    return gap if subject_is_upper else -gap


class RangeRule:
    """Subject span limit and voice crossing."""

    @property
    def rule_id(self) -> str:
        return "range"

    @property
    def category(self) -> Category:
        return Category.RANGE

    @property
    def description(self) -> str:
        return "keep the subject within a tenth and on its own side of the reference"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        violations: List[Violation] = []
        cur = window.current
        upper = window.subject_is_upper
        amount = _crossing(cur, upper)
        if amount > config.crossing_tolerance and _crossing(window.previous(1), upper) <= config.crossing_tolerance:
            side = "below" if upper else "above"
            violations.append(Violation(
                rule_id=self.rule_id,
                category=self.category,
                severity=Severity.WARNING,
                tick=cur.tick,
                message=(
                    f"Voice crossing: subject {pitch_to_name(cur.subject.pitch)} is "
                    f"{amount} semitones {side} the reference {pitch_to_name(cur.reference.pitch)}"
                ),
            ))

        summary = window.summary
        if window.is_last and summary is not None:
            span = summary.highest - summary.lowest
            if span > config.max_range:
                violations.append(Violation(
                    rule_id=self.rule_id,
                    category=self.category,
                    severity=Severity.WARNING,
                    tick=max(summary.highest_tick, summary.lowest_tick),
                    message=(
                        f"Subject range {pitch_to_name(summary.lowest)}-{pitch_to_name(summary.highest)} "
                        f"spans {span} semitones (limit {config.max_range})"
                    ),
                ))
        return violations


def _pair(sim: Simultaneity) -> str:
    return f"{pitch_to_name(sim.reference.pitch)}/{pitch_to_name(sim.subject.pitch)}"
