"""Species Counterpoint Checker - validation engine for Fux-style exercises.

Usage:
    python -m species_checker validate exercise.json
    python -m species_checker validate exercise.mid --species 2
    python -m species_checker rules --species 4
    python -m species_checker analyze exercise.json
"""

from .config import DEFAULT_CONFIG, EngineConfig, get_config
from .model import Exercise, Key, NoteEvent, Species, Voice
from .report import ReportStatus, ValidationReport, build_report
from .runner import ExerciseStructureError, validate, validate_request

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "Exercise",
    "ExerciseStructureError",
    "Key",
    "NoteEvent",
    "ReportStatus",
    "Species",
    "ValidationReport",
    "Voice",
    "build_report",
    "get_config",
    "validate",
    "validate_request",
]
