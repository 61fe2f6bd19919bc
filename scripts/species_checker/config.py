"""Engine configuration and named presets.

All tunable thresholds live in one immutable EngineConfig that callers pass
into ``validate``. Presets cover the common teaching settings; anything else
is derived with ``config.replace(...)``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Tuple

from .rules.base import Severity


@dataclass(frozen=True)
class EngineConfig:
    """Thresholds and weights for one validation call."""

    name: str = "default"

    # Melodic thresholds (semitones)
    step_max: int = 2               # anything larger is a leap
    max_melodic_leap: int = 8       # minor sixth
    allow_octave_leap: bool = True
    max_combined_leap: int = 12     # two same-direction leaps may not exceed an octave

    # Range and placement
    max_range: int = 16             # major tenth
    crossing_tolerance: int = 0
    pitch_range: Tuple[int, int] = (24, 108)  # sane instrument range (MIDI)
    enforce_onset_ratio: bool = True  # reject rhythms that do not fit the species

    # Severity overrides
    direct_perfect_severity: Severity = Severity.WARNING

    # Scoring
    error_deduction: int = 10
    warning_deduction: int = 3
    pass_score: int = 100

    # Feedback thresholds (never scored)
    min_contrary_ratio: float = 0.4
    min_stepwise_ratio: float = 0.7
    max_imperfect_run: int = 3

    def replace(self, **changes) -> EngineConfig:
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    def deduction(self, severity: Severity) -> int:
        if severity is Severity.ERROR:
            return self.error_deduction
        return self.warning_deduction


DEFAULT_CONFIG = EngineConfig()

# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

_PRESETS: Dict[str, EngineConfig] = {
    "default": DEFAULT_CONFIG,
    "strict": EngineConfig(
        name="strict",
        max_range=15,
        direct_perfect_severity=Severity.ERROR,
    ),
    "lenient": EngineConfig(
        name="lenient",
        max_range=19,
        crossing_tolerance=2,
        warning_deduction=2,
        max_imperfect_run=4,
    ),
}


def get_config(name: str = "default") -> EngineConfig:
    """Look up a preset by name. Raises KeyError for unknown presets."""
    try:
        return _PRESETS[name]
    except KeyError:
        raise KeyError(
            f"unknown preset '{name}' (choose from {', '.join(sorted(_PRESETS))})"
        ) from None


def all_preset_names() -> list[str]:
    return list(_PRESETS.keys())
