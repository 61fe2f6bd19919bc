"""Validation orchestrator: structural checks, one timeline pass, report."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .analysis import analyze, build_feedback
from .config import DEFAULT_CONFIG, EngineConfig
from .loaders.json_loader import RequestParseError, exercise_from_request
from .model import TICKS_PER_BEAT, Exercise, Species, Voice, summarize
from .report import ValidationReport, build_report, invalid_report
from .rules.base import Rule, Violation
from .rules.tables import get_rule_table
from .timeline import Timeline

logger = logging.getLogger(__name__)

# Shortest note florid counterpoint uses (an eighth).
_MIN_FLORID_DURATION = TICKS_PER_BEAT // 2


class ExerciseStructureError(ValueError):
    """The exercise cannot be judged musically (malformed request)."""


def get_rules(species: Species) -> List[Rule]:
    """Instantiate the rule table for a species."""
    return get_rule_table(species)


def species_or_none(value: Any) -> Optional[Species]:
    try:
        return Species(int(value))
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Structural precondition
# ---------------------------------------------------------------------------


def _check_voice(voice: Voice, config: EngineConfig, allow_leading_rest: bool) -> None:
    if not voice.notes:
        raise ExerciseStructureError(f"{voice.name} voice is empty")
    lo, hi = config.pitch_range
    for i, n in enumerate(voice.notes):
        if n.duration <= 0:
            raise ExerciseStructureError(
                f"{voice.name} note {i + 1} has non-positive duration")
        if not lo <= n.pitch <= hi:
            raise ExerciseStructureError(
                f"{voice.name} note {i + 1} pitch {n.pitch} is outside {lo}..{hi}")
    if voice.notes[0].start_tick < 0:
        raise ExerciseStructureError(f"{voice.name} voice starts before beat 0")
    if not allow_leading_rest and voice.notes[0].start_tick != 0:
        raise ExerciseStructureError(f"{voice.name} voice must start at beat 0")
    for i, (a, b) in enumerate(zip(voice.notes, voice.notes[1:]), start=1):
        if b.start_tick < a.end_tick:
            raise ExerciseStructureError(
                f"{voice.name} notes {i} and {i + 1} overlap at beat {b.beat}")
        if b.start_tick > a.end_tick:
            raise ExerciseStructureError(
                f"{voice.name} has a gap between notes {i} and {i + 1}")


def _attack_counts(exercise: Exercise) -> List[int]:
    onsets = exercise.subject.onsets
    return [
        sum(1 for t in onsets if ref.start_tick <= t < ref.end_tick)
        for ref in exercise.reference.notes
    ]


def _check_onset_ratio(exercise: Exercise) -> None:
    species = Species(exercise.species)
    counts = _attack_counts(exercise)
    inner = counts[1:-1]
    name = f"species {int(species)} ({species.label})"

    def reject(detail: str) -> None:
        raise ExerciseStructureError(f"onset ratio does not fit {name}: {detail}")

    if species is Species.FIRST:
        if set(exercise.subject.onsets) != set(exercise.reference.onsets):
            reject("every subject note must start with a reference note")
    elif species is Species.SECOND:
        if any(c != 2 for c in inner) or not all(1 <= c <= 2 for c in (counts[0], counts[-1])):
            reject("expected two subject notes per reference note")
    elif species is Species.THIRD:
        if any(c not in (3, 4) for c in inner) or not all(1 <= c <= 4 for c in (counts[0], counts[-1])):
            reject("expected three or four subject notes per reference note")
    elif species is Species.FOURTH:
        if any(c > 2 for c in counts):
            reject("expected at most two subject notes per reference note")
        if len(counts) > 2 and not any(
                a.start_tick < r.start_tick < a.end_tick
                for r in exercise.reference.notes for a in exercise.subject.notes):
            reject("no subject note is tied over a reference note")
    elif species is Species.FIFTH:
        if any(n.duration < _MIN_FLORID_DURATION for n in exercise.subject.notes):
            reject("notes shorter than an eighth")


def check_structure(exercise: Exercise, config: EngineConfig = DEFAULT_CONFIG) -> None:
    """Reject exercises the rules cannot judge.

    Raises:
        ExerciseStructureError: with a human-readable reason.
    """
    try:
        Species(exercise.species)
    except ValueError:
        raise ExerciseStructureError(f"unknown species {exercise.species!r}") from None
    _check_voice(exercise.reference, config, allow_leading_rest=False)
    _check_voice(exercise.subject, config, allow_leading_rest=True)
    ref_total = exercise.reference.total_duration
    subj_total = exercise.subject.total_duration
    if ref_total != subj_total:
        raise ExerciseStructureError(
            f"voices end at different times (reference {ref_total / TICKS_PER_BEAT:g} beats, "
            f"subject {subj_total / TICKS_PER_BEAT:g} beats)")
    if config.enforce_onset_ratio:
        _check_onset_ratio(exercise)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def collect_violations(timeline: Timeline, rules: List[Rule], config: EngineConfig) -> List[Violation]:
    """Run every rule over every window; violations come back in timeline order."""
    violations: List[Violation] = []
    for window in timeline.windows():
        for rule in rules:
            violations.extend(rule.check(window, config))
    violations.sort(key=lambda v: v.tick)
    return violations


def validate(exercise: Exercise, config: EngineConfig = DEFAULT_CONFIG) -> ValidationReport:
    """Validate one exercise.

    Args:
        exercise: The Exercise to validate.
        config: Thresholds and weights (see ``config.get_config``).

    Returns:
        A ValidationReport; structurally broken exercises come back with
        status REQUEST_INVALID and no violations.
    """
    try:
        check_structure(exercise, config)
    except ExerciseStructureError as exc:
        logger.info("Rejected exercise %r: %s", exercise.title, exc)
        known = species_or_none(exercise.species)
        return invalid_report(str(exc), species=int(known) if known else None)

    species = Species(exercise.species)
    timeline = Timeline(exercise)
    violations = collect_violations(timeline, get_rules(species), config)
    report = build_report(violations, config)
    report.species = int(species)
    report.summary = summarize(exercise)
    report.analysis = analyze(timeline, config)
    report.feedback = build_feedback(report.analysis, species, config)
    logger.debug(
        "Validated %r (species %d, preset %s): %d positions, %d errors, %d warnings, score %d",
        exercise.title, species, config.name, len(timeline),
        report.error_count, report.warning_count, report.score,
    )
    return report


def validate_request(data: Dict[str, Any], config: EngineConfig = DEFAULT_CONFIG) -> ValidationReport:
    """Parse a request dict and validate it; parse failures are REQUEST_INVALID."""
    try:
        exercise = exercise_from_request(data)
    except RequestParseError as exc:
        logger.info("Rejected request: %s", exc)
        return invalid_report(str(exc))
    return validate(exercise, config)
