"""Tests for report building and text/JSON output."""

import json
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.species_checker.analysis import Feedback, FeedbackKind
from scripts.species_checker.config import DEFAULT_CONFIG, get_config
from scripts.species_checker.model import TICKS_PER_BAR, TICKS_PER_BEAT
from scripts.species_checker.report import (
    ReportStatus,
    build_report,
    deduplicate,
    format_json,
    format_text,
    invalid_report,
    report_to_dict,
    violation_to_dict,
)
from scripts.species_checker.rules.base import Category, Severity, Violation


def _v(rule="parallel_perfects", category=Category.MOTION, severity=Severity.ERROR,
       tick=0, message="Parallel fifths: C4/G4 -> D4/A4"):
    return Violation(rule_id=rule, category=category, severity=severity, tick=tick, message=message)


class TestDeduplicate(unittest.TestCase):
    def test_identical_collapse(self):
        self.assertEqual(len(deduplicate([_v(), _v()])), 1)

    def test_different_ticks_kept(self):
        self.assertEqual(len(deduplicate([_v(), _v(tick=TICKS_PER_BAR)])), 2)

    def test_error_hides_same_spot_warning(self):
        warning = _v(rule="direct_perfects", severity=Severity.WARNING, message="Direct fifths")
        kept = deduplicate([_v(), warning])
        self.assertEqual([v.rule_id for v in kept], ["parallel_perfects"])

    def test_other_category_warning_survives(self):
        warning = _v(rule="leap_recovery", category=Category.MELODIC,
                     severity=Severity.WARNING, message="Leap")
        self.assertEqual(len(deduplicate([_v(), warning])), 2)

    def test_unrelated_same_category_warning_survives(self):
        leap = _v(rule="melodic_interval", category=Category.MELODIC,
                  message="Leap of a major sixth (C4 -> A4) is larger than allowed")
        climax = _v(rule="climax", category=Category.MELODIC, severity=Severity.WARNING,
                    message="High point A4 is reached 2 times")
        kept = deduplicate([leap, climax])
        self.assertEqual([v.rule_id for v in kept], ["melodic_interval", "climax"])
        self.assertEqual(build_report([leap, climax]).score, 87)


class TestBuildReport(unittest.TestCase):
    def test_clean(self):
        report = build_report([])
        self.assertTrue(report.is_valid)
        self.assertEqual(report.score, 100)
        self.assertEqual(report.status, ReportStatus.OK)

    def test_deductions(self):
        warning = _v(rule="climax", category=Category.MELODIC,
                     severity=Severity.WARNING, tick=TICKS_PER_BAR, message="climax")
        report = build_report([_v(), warning])
        self.assertEqual(report.score, 87)
        self.assertFalse(report.is_valid)
        self.assertEqual(report.error_count, 1)
        self.assertEqual(report.warning_count, 1)

    def test_warning_only_below_pass_score(self):
        warning = _v(rule="climax", category=Category.MELODIC, severity=Severity.WARNING)
        self.assertFalse(build_report([warning]).is_valid)
        lowered = DEFAULT_CONFIG.replace(pass_score=90)
        self.assertTrue(build_report([warning], lowered).is_valid)

    def test_error_invalid_regardless_of_score(self):
        lowered = DEFAULT_CONFIG.replace(pass_score=0)
        self.assertFalse(build_report([_v()], lowered).is_valid)

    def test_score_floor(self):
        many = [_v(tick=i * TICKS_PER_BAR) for i in range(15)]
        self.assertEqual(build_report(many).score, 0)

    def test_lenient_warning_weight(self):
        warning = _v(rule="climax", category=Category.MELODIC, severity=Severity.WARNING)
        self.assertEqual(build_report([warning], get_config("lenient")).score, 98)

    def test_invalid_report(self):
        report = invalid_report("subject voice is empty", species=2)
        self.assertFalse(report.is_valid)
        self.assertEqual(report.score, 0)
        self.assertEqual(report.status, ReportStatus.REQUEST_INVALID)
        self.assertEqual(report.violations, [])

    def test_rule_results_order(self):
        report = build_report([_v()])
        results = report.rule_results([("boundary", Category.BOUNDARY),
                                       ("parallel_perfects", Category.MOTION)])
        self.assertEqual([r.rule_id for r in results], ["boundary", "parallel_perfects"])
        self.assertTrue(results[0].passed)
        self.assertFalse(results[1].passed)


class TestReportDict(unittest.TestCase):
    def test_violation_shape(self):
        d = violation_to_dict(_v(tick=TICKS_PER_BAR + 2 * TICKS_PER_BEAT))
        self.assertEqual(d, {
            "rule": "parallel_perfects",
            "message": "Parallel fifths: C4/G4 -> D4/A4",
            "beat": 6,
            "measure": 2,
            "severity": "error",
        })

    def test_report_shape(self):
        report = build_report([_v()])
        report.species = 1
        report.feedback = [Feedback(FeedbackKind.SUGGESTION, "Use more contrary motion")]
        d = report_to_dict(report)
        self.assertFalse(d["isValid"])
        self.assertEqual(d["score"], 90)
        self.assertEqual(d["status"], "OK")
        self.assertEqual(d["species"], 1)
        self.assertNotIn("reason", d)
        self.assertEqual(d["feedback"], [{"kind": "suggestion", "message": "Use more contrary motion"}])

    def test_invalid_shape(self):
        d = report_to_dict(invalid_report("reference voice is empty"))
        self.assertEqual(d["status"], "REQUEST_INVALID")
        self.assertEqual(d["reason"], "reference voice is empty")
        self.assertEqual(d["violations"], [])
        self.assertNotIn("analysis", d)


class TestFormatting(unittest.TestCase):
    def test_text(self):
        report = build_report([_v()])
        report.species = 1
        text = format_text(report, [("parallel_perfects", Category.MOTION)])
        self.assertIn("=== Validation: species=1 ===", text)
        self.assertIn("[ERROR]", text)
        self.assertIn("motion/parallel_perfects", text)
        self.assertIn("Rule Summary:", text)
        self.assertIn("FAIL (1 error)", text)
        self.assertIn("SCORE: 90", text)
        self.assertIn("OVERALL: INVALID", text)

    def test_text_valid(self):
        text = format_text(build_report([]), [("boundary", Category.BOUNDARY)])
        self.assertIn("boundary", text)
        self.assertIn("PASS", text)
        self.assertIn("OVERALL: VALID", text)

    def test_text_request_invalid(self):
        text = format_text(invalid_report("voices end at different times"))
        self.assertIn("REQUEST_INVALID: voices end at different times", text)
        self.assertNotIn("OVERALL", text)

    def test_json(self):
        data = json.loads(format_json(build_report([_v()])))
        self.assertEqual(data["score"], 90)
        self.assertEqual(data["violations"][0]["rule"], "parallel_perfects")


if __name__ == "__main__":
    unittest.main()
