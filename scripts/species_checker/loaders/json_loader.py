"""Load an Exercise from a validation request (JSON file or pre-parsed dict).

Two shapes are accepted:

* the request shape: ``referenceVoice`` / ``subjectVoice`` lists of
  ``{pitch, onsetBeat, durationBeats}``, ``species``, optional ``key``
  (``{tonic, mode}``) and ``subjectAbove``;
* the exercise-app shape: ``cantusFirmus`` / ``userNotes`` lists of
  ``{note, beat, duration}``, ``speciesType``, optional ``modalFinal`` and
  ``cantusFirmusPosition`` (``"upper"`` or ``"lower"``).

Beats are quarter-note beats from 0 and are quantized onto the tick grid.
"""

from __future__ import annotations

import json
import math
from numbers import Real
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..model import Exercise, Key, NoteEvent, Species, Voice, beat_to_tick
from ..music_theory import parse_key


class RequestParseError(ValueError):
    """The request does not have the expected shape."""


# Church mode named by its final, as Fux's exercises are catalogued.
_FINAL_TO_MODE: Dict[str, str] = {
    "c": "ionian",
    "d": "dorian",
    "e": "phrygian",
    "f": "lydian",
    "g": "mixolydian",
    "a": "aeolian",
}

# (reference list, subject list, species, pitch, onset, duration) keys per shape
_REQUEST_FIELDS = ("referenceVoice", "subjectVoice", "species", "pitch", "onsetBeat", "durationBeats")
_APP_FIELDS = ("cantusFirmus", "userNotes", "speciesType", "note", "beat", "duration")


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise RequestParseError(f"{what} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise RequestParseError(f"{what} must be finite, got {value!r}")
    return value


def _parse_note(note_data: Any, fields: Tuple[str, ...], voice: str, index: int) -> NoteEvent:
    """Parse a single note dict."""
    _, _, _, pitch_key, onset_key, duration_key = fields
    where = f"{voice}[{index}]"
    if not isinstance(note_data, dict):
        raise RequestParseError(f"{where} must be an object")
    for k in (pitch_key, onset_key, duration_key):
        if k not in note_data:
            raise RequestParseError(f"{where} is missing '{k}'")
    pitch = _number(note_data[pitch_key], f"{where}.{pitch_key}")
    if pitch != int(pitch):
        raise RequestParseError(f"{where}.{pitch_key} must be an integer")
    return NoteEvent(
        pitch=int(pitch),
        start_tick=beat_to_tick(_number(note_data[onset_key], f"{where}.{onset_key}")),
        duration=beat_to_tick(_number(note_data[duration_key], f"{where}.{duration_key}")),
    )


def _parse_voice(data: Dict[str, Any], key: str, fields: Tuple[str, ...], name: str) -> Voice:
    raw = data.get(key)
    if not isinstance(raw, list):
        raise RequestParseError(f"'{key}' must be a list of notes")
    notes: List[NoteEvent] = [_parse_note(n, fields, key, i) for i, n in enumerate(raw)]
    return Voice.from_notes(name, notes)


def _parse_species(value: Any) -> Species:
    number = _number(value, "species")
    if number != int(number):
        raise RequestParseError(f"species must be an integer, got {value!r}")
    try:
        return Species(int(number))
    except ValueError:
        raise RequestParseError(f"unknown species {value!r} (expected 1-5)") from None


def _parse_key(data: Dict[str, Any]) -> Optional[Key]:
    try:
        if isinstance(data.get("key"), dict):
            key_data = data["key"]
            return parse_key(str(key_data.get("tonic", "")), str(key_data.get("mode", "major")))
        final = data.get("modalFinal")
        if final:
            final = str(final)
            mode = data.get("mode") or _FINAL_TO_MODE.get(final.lower(), "major")
            return parse_key(final[:1].upper() + final[1:], str(mode))
    except ValueError as exc:
        raise RequestParseError(f"invalid key: {exc}") from None
    return None


def _parse_placement(data: Dict[str, Any]) -> Optional[bool]:
    if "subjectAbove" in data:
        return bool(data["subjectAbove"])
    position = data.get("cantusFirmusPosition")
    if position == "lower":
        return True
    if position == "upper":
        return False
    return None


def exercise_from_request(data: Dict[str, Any]) -> Exercise:
    """Build an Exercise from a parsed request dict.

    Raises:
        RequestParseError: if the dict matches neither request shape.
    """
    if not isinstance(data, dict):
        raise RequestParseError("request must be a JSON object")
    if "referenceVoice" in data or "subjectVoice" in data:
        fields = _REQUEST_FIELDS
    elif "cantusFirmus" in data or "userNotes" in data:
        fields = _APP_FIELDS
    else:
        raise RequestParseError("request has neither 'referenceVoice' nor 'cantusFirmus'")
    ref_key, subj_key, species_key = fields[:3]
    if species_key not in data:
        if species_key == "speciesType":
            species = Species.FIRST
        else:
            raise RequestParseError(f"request is missing '{species_key}'")
    else:
        species = _parse_species(data[species_key])
    return Exercise(
        reference=_parse_voice(data, ref_key, fields, "reference"),
        subject=_parse_voice(data, subj_key, fields, "subject"),
        species=species,
        key=_parse_key(data),
        subject_above=_parse_placement(data),
        title=str(data.get("title", "")),
    )


def load_request(source: Union[str, Path, dict]) -> Exercise:
    """Load an Exercise from a request file or pre-parsed dict.

    Args:
        source: File path (str or Path) or already-parsed dict.

    Returns:
        The Exercise described by the request.
    """
    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        with open(path) as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                raise RequestParseError(f"{path}: not valid JSON ({exc})") from None
        if isinstance(data, dict):
            data.setdefault("title", path.stem)
    return exercise_from_request(data)
