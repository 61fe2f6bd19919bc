"""Melodic rules over the subject voice: leap recovery, forbidden melodic
intervals, single climax."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..model import OCTAVE, TRITONE, pitch_to_name
from ..music_theory import interval_name, is_leap, spell_melodic_interval
from .base import Category, Severity, Violation

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..timeline import Window


def _sign(x: int) -> int:
    return (x > 0) - (x < 0)


# ---------------------------------------------------------------------------
# LeapRecovery
# ---------------------------------------------------------------------------


class LeapRecovery:
    """A leap must be followed by motion in the opposite direction that is
    no larger than the leap.

    Judged on the note after the leap, so a leap into the last note written
    so far is never reported.
    """

    @property
    def rule_id(self) -> str:
        return "leap_recovery"

    @property
    def category(self) -> Category:
        return Category.MELODIC

    @property
    def description(self) -> str:
        return "recover every leap by contrary motion"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        if not window.subject_attack:
            return []
        notes = window.notes(3)
        if len(notes) < 3:
            return []
        a, b, c = notes
        leap = b.pitch - a.pitch
        if not is_leap(a.pitch, b.pitch, config.step_max):
            return []
        follow = c.pitch - b.pitch
        if follow != 0 and _sign(follow) != _sign(leap) and abs(follow) <= abs(leap):
            return []
        direction = "up" if leap > 0 else "down"
        return [Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.WARNING,
            tick=c.tick,
            message=(
                f"Leap {direction} of a {interval_name(leap)} "
                f"({pitch_to_name(a.pitch)} -> {pitch_to_name(b.pitch)}) "
                f"is not recovered by contrary motion"
            ),
        )]


# ---------------------------------------------------------------------------
# MelodicInterval
# ---------------------------------------------------------------------------


class MelodicInterval:
    """Forbidden melodic intervals in the subject voice."""

    @property
    def rule_id(self) -> str:
        return "melodic_interval"

    @property
    def category(self) -> Category:
        return Category.MELODIC

    @property
    def description(self) -> str:
        return "no augmented/diminished intervals, tritones, or leaps beyond a minor sixth"

    def _forbidden(self, prev_pitch: int, pitch: int, window: Window,
                   config: EngineConfig) -> Optional[str]:
        size = abs(pitch - prev_pitch)
        if size == 0:
            return None
        move = f"{pitch_to_name(prev_pitch)} -> {pitch_to_name(pitch)}"
        if window.key is not None:
            spelled = spell_melodic_interval(prev_pitch, pitch, window.key)
            if spelled.is_augmented or spelled.is_diminished:
                return f"Melodic {spelled.label} ({move}) is not allowed"
        if size % OCTAVE == TRITONE:
            return f"Melodic tritone ({move}) is not allowed"
        if size > config.max_melodic_leap and not (config.allow_octave_leap and size == OCTAVE):
            return f"Leap of a {interval_name(size)} ({move}) is larger than allowed"
        return None

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        if not window.subject_attack:
            return []
        notes = window.notes(3)
        if len(notes) < 2:
            return []
        violations: List[Violation] = []
        cur = notes[-1]
        message = self._forbidden(notes[-2].pitch, cur.pitch, window, config)
        if message:
            violations.append(self._error(cur.tick, message))

        if len(notes) == 3:
            a, b, c = notes
            first = b.pitch - a.pitch
            second = c.pitch - b.pitch
            if (is_leap(a.pitch, b.pitch, config.step_max)
                    and is_leap(b.pitch, c.pitch, config.step_max)
                    and _sign(first) == _sign(second)
                    and abs(c.pitch - a.pitch) > config.max_combined_leap):
                violations.append(self._error(
                    cur.tick,
                    f"Consecutive leaps {pitch_to_name(a.pitch)} -> {pitch_to_name(b.pitch)} -> "
                    f"{pitch_to_name(c.pitch)} outline a {interval_name(c.pitch - a.pitch)}",
                ))
        return violations

    def _error(self, tick: int, message: str) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.ERROR,
            tick=tick,
            message=message,
        )


# ---------------------------------------------------------------------------
# Climax
# ---------------------------------------------------------------------------


class Climax:
    """The highest subject pitch should occur exactly once."""

    @property
    def rule_id(self) -> str:
        return "climax"

    @property
    def category(self) -> Category:
        return Category.MELODIC

    @property
    def description(self) -> str:
        return "a single melodic high point"

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        summary = window.summary
        if not window.is_last or summary is None or summary.highest_count < 2:
            return []
        return [Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.WARNING,
            tick=summary.highest_tick,
            message=(
                f"Highest note {pitch_to_name(summary.highest)} occurs "
                f"{summary.highest_count} times; the climax should be unique"
            ),
        )]
