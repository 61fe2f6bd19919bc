"""Report building (score, verdict, deduplication) and text/JSON output."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from .analysis import Analysis, Feedback
from .config import DEFAULT_CONFIG, EngineConfig
from .model import ExerciseSummary
from .rules.base import Category, RuleResult, Severity, Violation


class ReportStatus(Enum):
    OK = "OK"
    REQUEST_INVALID = "REQUEST_INVALID"


@dataclass
class ValidationReport:
    """Outcome of one validation call."""
    is_valid: bool
    score: int
    violations: List[Violation] = field(default_factory=list)
    status: ReportStatus = ReportStatus.OK
    reason: Optional[str] = None
    species: Optional[int] = None
    summary: Optional[ExerciseSummary] = None
    analysis: Optional[Analysis] = None
    feedback: List[Feedback] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)

    def rule_results(self, rule_ids: Optional[List[Tuple[str, Category]]] = None) -> List[RuleResult]:
        """Group violations per rule, in first-seen order (or the order given)."""
        results: Dict[str, RuleResult] = {}
        for rule_id, category in rule_ids or []:
            results[rule_id] = RuleResult(rule_id=rule_id, category=category)
        for v in self.violations:
            if v.rule_id not in results:
                results[v.rule_id] = RuleResult(rule_id=v.rule_id, category=v.category)
            results[v.rule_id].violations.append(v)
        return list(results.values())


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


# Warnings that restate an error of another rule at the same tick.
_SHADOWED_WARNINGS: Dict[str, Set[str]] = {
    "parallel_perfects": {"direct_perfects"},
}


def deduplicate(violations: List[Violation]) -> List[Violation]:
    """Collapse repeated findings and let errors hide overlapping warnings.

    Identical (rule, tick, message) findings are kept once. At one tick, an
    error hides the warnings of the same rule and of the rules listed for it
    in ``_SHADOWED_WARNINGS``; unrelated warnings are kept.
    """
    seen: Set[Tuple[str, int, str]] = set()
    unique: List[Violation] = []
    for v in violations:
        key = (v.rule_id, v.tick, v.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(v)
    hidden: Set[Tuple[int, str]] = set()
    for v in unique:
        if v.severity is Severity.ERROR:
            hidden.add((v.tick, v.rule_id))
            hidden.update((v.tick, r) for r in _SHADOWED_WARNINGS.get(v.rule_id, ()))
    return [
        v for v in unique
        if not (v.severity is Severity.WARNING and (v.tick, v.rule_id) in hidden)
    ]


def build_report(violations: List[Violation], config: EngineConfig = DEFAULT_CONFIG) -> ValidationReport:
    """Fold violations into a score and verdict. Pure."""
    kept = deduplicate(violations)
    score = max(0, 100 - sum(config.deduction(v.severity) for v in kept))
    has_error = any(v.is_error for v in kept)
    return ValidationReport(
        is_valid=score >= config.pass_score and not has_error,
        score=score,
        violations=kept,
    )


def invalid_report(reason: str, species: Optional[int] = None) -> ValidationReport:
    """Report for a request that was rejected before any rule ran."""
    return ValidationReport(
        is_valid=False,
        score=0,
        status=ReportStatus.REQUEST_INVALID,
        reason=reason,
        species=species,
    )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def violation_to_dict(v: Violation) -> Dict[str, Any]:
    return {
        "rule": v.rule_id,
        "message": v.message,
        "beat": v.beat,
        "measure": v.measure,
        "severity": v.severity.value,
    }


def report_to_dict(report: ValidationReport) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "isValid": report.is_valid,
        "score": report.score,
        "violations": [violation_to_dict(v) for v in report.violations],
        "status": report.status.value,
    }
    if report.reason is not None:
        data["reason"] = report.reason
    if report.species is not None:
        data["species"] = report.species
    if report.analysis is not None:
        analysis = report.analysis.to_dict()
        analysis["errorCount"] = report.error_count
        analysis["warningCount"] = report.warning_count
        data["analysis"] = analysis
    data["feedback"] = [f.to_dict() for f in report.feedback]
    return data


def _severity_prefix(severity: Severity) -> str:
    return {
        Severity.ERROR: "[ERROR]   ",
        Severity.WARNING: "[WARNING] ",
    }[severity]


def format_text(report: ValidationReport, rule_ids: Optional[List[Tuple[str, Category]]] = None) -> str:
    """Format a report as human-readable text."""
    lines = []

    meta_parts = []
    if report.species is not None:
        meta_parts.append(f"species={report.species}")
    summary = report.summary
    if summary is not None:
        if summary.key:
            meta_parts.append(f"key={summary.key}")
        meta_parts.append(f"{summary.measures} measures")
        meta_parts.append(f"{summary.subject_notes} subject notes")
    lines.append(f"=== Validation: {', '.join(meta_parts) or 'exercise'} ===")
    lines.append("")

    if report.status is ReportStatus.REQUEST_INVALID:
        lines.append(f"REQUEST_INVALID: {report.reason}")
        lines.append("")
        return "\n".join(lines)

    for v in report.violations:
        lines.append(f"{_severity_prefix(v.severity)} {v.category.value}/{v.rule_id}: {v.location} {v.message}")
    if report.feedback:
        lines.append("")
        for f in report.feedback:
            lines.append(f"[{f.kind.value.upper()}] {f.message}")

    lines.append("")
    lines.append("Rule Summary:")
    for result in report.rule_results(rule_ids):
        parts = []
        if result.error_count:
            parts.append(f"{result.error_count} error")
        if result.warning_count:
            parts.append(f"{result.warning_count} warning")
        status = "PASS" if result.passed else "FAIL"
        detail = f" ({', '.join(parts)})" if parts else ""
        lines.append(f"  {result.rule_id:<22} {status}{detail}")

    lines.append(f"  SCORE: {report.score}")
    lines.append(f"  OVERALL: {'VALID' if report.is_valid else 'INVALID'}")
    lines.append("")
    return "\n".join(lines)


def format_json(report: ValidationReport) -> str:
    """Format a report as JSON in the external report shape."""
    return json.dumps(report_to_dict(report), indent=2)
