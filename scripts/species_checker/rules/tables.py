"""Rule tables: the shared rules plus one dissonance strategy per species."""

from __future__ import annotations

from typing import List

from ..model import Species
from .base import Rule
from .boundary import BoundaryRule
from .counterpoint import DirectPerfects, ParallelPerfects, RangeRule
from .dissonance import get_treatment
from .melodic import Climax, LeapRecovery, MelodicInterval


def get_rule_table(species: Species) -> List[Rule]:
    """Return the ordered rule list for one species.

    Raises ValueError for a species outside 1-5.
    """
    species = Species(species)
    return [
        BoundaryRule(),
        ParallelPerfects(),
        DirectPerfects(),
        get_treatment(species),
        LeapRecovery(),
        MelodicInterval(),
        Climax(),
        RangeRule(),
    ]
