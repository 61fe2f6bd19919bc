"""Relative motion between the reference and subject voices."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from .music_theory import interval_class


class MotionType(Enum):
    PARALLEL = "parallel"
    SIMILAR = "similar"
    CONTRARY = "contrary"
    OBLIQUE = "oblique"
    STATIC = "static"


class MotionEvent(NamedTuple):
    """Transition between two adjacent simultaneities."""
    type: MotionType
    reference_step: int
    subject_step: int

    @property
    def is_similar(self) -> bool:
        """True for similar motion, parallel included."""
        return self.type in (MotionType.SIMILAR, MotionType.PARALLEL)

    @property
    def is_contrary(self) -> bool:
        return self.type is MotionType.CONTRARY


def classify_motion(prev_ref: int, cur_ref: int, prev_subj: int, cur_subj: int) -> MotionEvent:
    """Classify the motion of two voices from one simultaneity to the next.

    Similar motion is refined to parallel when the interval class is the same
    before and after (fifth->fifth, third->third).
    """
    ref_step = cur_ref - prev_ref
    subj_step = cur_subj - prev_subj
    if ref_step == 0 and subj_step == 0:
        kind = MotionType.STATIC
    elif ref_step == 0 or subj_step == 0:
        kind = MotionType.OBLIQUE
    elif (ref_step > 0) == (subj_step > 0):
        before = interval_class(prev_ref - prev_subj)
        after = interval_class(cur_ref - cur_subj)
        kind = MotionType.PARALLEL if before == after else MotionType.SIMILAR
    else:
        kind = MotionType.CONTRARY
    return MotionEvent(type=kind, reference_step=ref_step, subject_step=subj_step)
