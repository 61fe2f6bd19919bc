# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "mcp[cli]>=1.0.0",
# ]
# ///
"""Counterpoint MCP Server: validate species counterpoint exercises.

Exposes the species_checker engine to assistant clients: full validation of
a two-voice exercise, the rule table of each species, and harmonic interval
classification. Reuses scripts/species_checker for everything.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

# Add project root to sys.path for species_checker imports.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

from mcp.server.fastmcp import FastMCP

from scripts.species_checker.config import all_preset_names, get_config
from scripts.species_checker.model import Species, pitch_to_name
from scripts.species_checker.music_theory import classify_interval as _classify
from scripts.species_checker.report import report_to_dict
from scripts.species_checker.runner import get_rules, validate_request

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------

server = FastMCP(
    "species-counterpoint",
    instructions=(
        "Check two-voice species counterpoint exercises. "
        "Use list_rules to see what a species enforces, then validate_counterpoint "
        "with the reference (cantus firmus) and subject voices."
    ),
)


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"error": message, **extra})


@server.tool()
def validate_counterpoint(
    reference_voice: list[dict],
    subject_voice: list[dict],
    species: int = 1,
    preset: str = "default",
    key_tonic: Optional[str] = None,
    key_mode: str = "major",
    subject_above: Optional[bool] = None,
) -> str:
    """Validate a subject voice against a reference voice.

    Notes are objects {pitch, onsetBeat, durationBeats} in quarter-note
    beats from 0 (a 4/4 measure is 4 beats).

    Args:
        reference_voice: The fixed melody (cantus firmus)
        subject_voice: The voice to check
        species: Species 1-5
        preset: Configuration preset (default, strict, lenient)
        key_tonic: Optional tonic name (e.g. D) for diatonic interval spelling
        key_mode: Mode of the key (major, minor, dorian, phrygian, ...)
        subject_above: Whether the subject is the upper voice (inferred if omitted)
    """
    try:
        config = get_config(preset)
    except KeyError:
        return _error(f"Unknown preset '{preset}'.", available_presets=all_preset_names())
    request: dict[str, Any] = {
        "referenceVoice": reference_voice,
        "subjectVoice": subject_voice,
        "species": species,
    }
    if key_tonic:
        request["key"] = {"tonic": key_tonic, "mode": key_mode}
    if subject_above is not None:
        request["subjectAbove"] = subject_above
    logger.debug("validate_counterpoint: species=%s preset=%s notes=%d/%d",
                 species, preset, len(reference_voice), len(subject_voice))
    return json.dumps(report_to_dict(validate_request(request, config)), indent=2)


@server.tool()
def list_rules(species: int = 1) -> str:
    """List the rules checked for one species, in evaluation order.

    Args:
        species: Species 1-5
    """
    try:
        sp = Species(species)
    except ValueError:
        return _error(f"Unknown species {species}.", hint="Species are numbered 1-5.")
    logger.debug("list_rules: species=%d", sp)
    rules = [
        {"rule": r.rule_id, "category": r.category.value, "description": r.description}
        for r in get_rules(sp)
    ]
    return json.dumps({"species": int(sp), "label": sp.label, "rules": rules}, indent=2)


@server.tool()
def classify_interval(pitch_a: int, pitch_b: int) -> str:
    """Classify the harmonic interval between two MIDI pitches.

    Args:
        pitch_a: First MIDI pitch (e.g. 62 = D4)
        pitch_b: Second MIDI pitch
    """
    iv = _classify(pitch_a, pitch_b)
    return json.dumps({
        "pitches": [pitch_to_name(pitch_a), pitch_to_name(pitch_b)],
        "semitones": iv.semitones,
        "interval_class": iv.interval_class,
        "name": iv.name,
        "quality": iv.quality.value,
    })


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    server.run()
