"""CLI entry point: python -m species_checker validate/rules/analyze."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .analysis import analyze, build_feedback
from .config import all_preset_names, get_config
from .loaders import RequestParseError, load_exercise
from .model import Species
from .report import ReportStatus, format_json, format_text, invalid_report
from .runner import ExerciseStructureError, check_structure, get_rules, validate
from .timeline import Timeline

logger = logging.getLogger(__name__)


def _write(output: str, path: Optional[str]) -> None:
    if path:
        Path(path).write_text(output)
    else:
        print(output)


def _species_arg(value: str) -> Species:
    try:
        return Species(int(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"species must be 1-5, got {value!r}") from None


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate one exercise file. Exit 0 valid, 1 invalid, 2 bad request."""
    config = get_config(args.preset)
    try:
        exercise = load_exercise(args.input, args.species)
    except RequestParseError as exc:
        report = invalid_report(str(exc))
    else:
        logger.debug("Loaded %s: %d reference, %d subject notes",
                     args.input, len(exercise.reference), len(exercise.subject))
        report = validate(exercise, config)
        rule_ids = [(r.rule_id, r.category) for r in get_rules(exercise.species)]

    if args.json:
        output = format_json(report)
    elif report.status is ReportStatus.REQUEST_INVALID:
        output = format_text(report)
    else:
        output = format_text(report, rule_ids)
    _write(output, args.output)

    if report.status is ReportStatus.REQUEST_INVALID:
        return 2
    return 0 if report.is_valid else 1


def cmd_rules(args: argparse.Namespace) -> int:
    """List the rule table of a species."""
    rules = get_rules(args.species)
    if args.json:
        data = [
            {"rule": r.rule_id, "category": r.category.value, "description": r.description}
            for r in rules
        ]
        print(json.dumps(data, indent=2))
        return 0
    print(f"=== Rules: species {int(args.species)} ({args.species.label}) ===")
    for r in rules:
        print(f"  {r.category.value:<11} {r.rule_id:<22} {r.description}")
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Print motion/melodic statistics and feedback without scoring."""
    config = get_config(args.preset)
    try:
        exercise = load_exercise(args.input, args.species)
        check_structure(exercise, config)
    except (RequestParseError, ExerciseStructureError) as exc:
        print(f"REQUEST_INVALID: {exc}", file=sys.stderr)
        return 2
    result = analyze(Timeline(exercise), config)
    feedback = build_feedback(result, exercise.species, config)

    if args.json:
        data = result.to_dict()
        data["feedback"] = [f.to_dict() for f in feedback]
        _write(json.dumps(data, indent=2), args.output)
        return 0

    lines = [f"=== Analysis: species {int(exercise.species)}, {result.total_notes} subject notes ==="]
    lines.append("")
    lines.append(f"  contrary motion   {result.contrary_ratio:.0%}")
    lines.append(f"  stepwise motion   {result.stepwise_ratio:.0%}")
    lines.append(f"  thirds/sixths run {result.longest_imperfect_run}")
    lines.append("  motions           " + ", ".join(
        f"{k}={v}" for k, v in result.motion_counts.items() if v))
    lines.append("  intervals         " + ", ".join(
        f"{k}={v}" for k, v in sorted(result.interval_mix.items())))
    if feedback:
        lines.append("")
        for f in feedback:
            lines.append(f"[{f.kind.value.upper()}] {f.message}")
    lines.append("")
    _write("\n".join(lines), args.output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="species_checker",
        description="Species counterpoint validation tool",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # validate
    p_val = subparsers.add_parser("validate", help="Validate an exercise file")
    p_val.add_argument("input", help="Path to a request .json or a two-voice .mid file")
    p_val.add_argument("--species", type=_species_arg, help="Species 1-5 (required for MIDI)")
    p_val.add_argument("--preset", default="default", choices=all_preset_names(),
                       help="Configuration preset")
    p_val.add_argument("--json", action="store_true", help="JSON output")
    p_val.add_argument("-o", "--output", help="Output file path")

    # rules
    p_rules = subparsers.add_parser("rules", help="List the rules of a species")
    p_rules.add_argument("--species", type=_species_arg, default=Species.FIRST, help="Species 1-5")
    p_rules.add_argument("--json", action="store_true", help="JSON output")

    # analyze
    p_ana = subparsers.add_parser("analyze", help="Motion and melodic statistics only")
    p_ana.add_argument("input", help="Path to a request .json or a two-voice .mid file")
    p_ana.add_argument("--species", type=_species_arg, help="Species 1-5 (required for MIDI)")
    p_ana.add_argument("--preset", default="default", choices=all_preset_names(),
                       help="Configuration preset")
    p_ana.add_argument("--json", action="store_true", help="JSON output")
    p_ana.add_argument("-o", "--output", help="Output file path")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "rules":
        return cmd_rules(args)
    elif args.command == "analyze":
        return cmd_analyze(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
