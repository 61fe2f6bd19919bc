"""Boundary rule: how the exercise opens and how it cadences."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..music_theory import is_step
from .base import Category, Severity, Violation

if TYPE_CHECKING:
    from ..config import EngineConfig
    from ..timeline import Window


class BoundaryRule:
    """First and last simultaneity perfect; penultimate imperfect, approached
    by contrary motion with a step in at least one voice."""

    @property
    def rule_id(self) -> str:
        return "boundary"

    @property
    def category(self) -> Category:
        return Category.BOUNDARY

    @property
    def description(self) -> str:
        return "open and close on a perfect consonance, cadence from an imperfect one by contrary step"

    def _error(self, tick: int, message: str) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            category=self.category,
            severity=Severity.ERROR,
            tick=tick,
            message=message,
        )

    def check(self, window: Window, config: EngineConfig) -> List[Violation]:
        violations: List[Violation] = []
        cur = window.current
        if window.is_first and not cur.interval.is_perfect:
            violations.append(self._error(
                cur.tick,
                f"Exercise must begin on a perfect consonance (unison, fifth or octave), "
                f"not a {cur.interval.name}",
            ))
        if not window.is_last:
            return violations

        if not cur.interval.is_perfect:
            violations.append(self._error(
                cur.tick,
                f"Exercise must end on a perfect consonance (unison, fifth or octave), "
                f"not a {cur.interval.name}",
            ))
        prev = window.previous(1)
        if prev is None:
            return violations
        if not prev.interval.is_imperfect:
            violations.append(self._error(
                prev.tick,
                f"Penultimate interval must be an imperfect consonance, not a {prev.interval.name}",
            ))
        motion = window.motion(0)
        stepwise = (
            is_step(prev.reference.pitch, cur.reference.pitch, config.step_max)
            or is_step(prev.subject.pitch, cur.subject.pitch, config.step_max)
        )
        if motion is None or not motion.is_contrary or not stepwise:
            violations.append(self._error(
                cur.tick,
                "Final interval must be approached by contrary motion with a step in at least one voice",
            ))
        return violations
