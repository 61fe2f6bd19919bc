"""Exercise loaders for JSON requests and MIDI files."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from ..model import Exercise, Species
from .json_loader import RequestParseError, exercise_from_request, load_request
from .midi_loader import load_midi

__all__ = ["RequestParseError", "exercise_from_request", "load_exercise", "load_midi", "load_request"]


def load_exercise(path: Union[str, Path], species: Optional[Union[Species, int]] = None) -> Exercise:
    """Auto-detect format and load an Exercise.

    MIDI files carry no species, so one must be given; for JSON requests a
    given species overrides the one in the file.
    """
    p = Path(path)
    if p.suffix.lower() in (".mid", ".midi"):
        if species is None:
            raise RequestParseError("a species is required when loading MIDI")
        return load_midi(p, species)
    exercise = load_request(p)
    if species is not None:
        exercise = replace(exercise, species=Species(species))
    return exercise
