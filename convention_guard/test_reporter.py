#!/usr/bin/env python3
"""
Tests for reporter.py - ordering, de-duplication, verdict and formatting.

Test coverage:
- Violations sorted by (file, line, rule id) regardless of input order
- Duplicate violations collapse
- Fail threshold: warnings alone pass with failSeverity=error, one error fails
- Text and JSON rendering
"""

import json
import unittest

from convention_guard.reporter import build_report, format_json, format_text
from convention_guard.violations import Severity, Violation


def _violation(path, line, rule_id, severity=Severity.ERROR, message="message"):
    return Violation(rule_id=rule_id, file_path=path, line=line, message=message, severity=severity)


class TestBuildReport(unittest.TestCase):
    """Test report construction from an unordered buffer."""

    def test_sorted_by_file_line_rule(self):
        violations = [
            _violation("b.swift", 1, "file-length"),
            _violation("a.swift", 12, "boolean-naming"),
            _violation("a.swift", 3, "declaration-ordering"),
            _violation("a.swift", 3, "boolean-naming"),
        ]

        report = build_report(violations)

        self.assertEqual(
            [(v.file_path, v.line, v.rule_id) for v in report.violations],
            [
                ("a.swift", 3, "boolean-naming"),
                ("a.swift", 3, "declaration-ordering"),
                ("a.swift", 12, "boolean-naming"),
                ("b.swift", 1, "file-length"),
            ],
        )

    def test_input_order_does_not_matter(self):
        violations = [
            _violation("a.swift", 2, "x", message="second"),
            _violation("a.swift", 2, "x", message="first"),
            _violation("a.swift", 1, "y"),
        ]
        self.assertEqual(
            build_report(violations).violations,
            build_report(reversed(violations)).violations,
        )

    def test_duplicates_collapse(self):
        duplicate = _violation("a.swift", 3, "boolean-naming")
        report = build_report([duplicate, duplicate, _violation("a.swift", 3, "boolean-naming")])
        self.assertEqual(len(report.violations), 1)
        self.assertEqual(report.counts[Severity.ERROR], 1)

    def test_counts_include_every_severity(self):
        report = build_report([])
        self.assertEqual(dict(report.counts), {Severity.WARNING: 0, Severity.ERROR: 0})
        self.assertEqual(report.summary(), {"warning": 0, "error": 0})
        self.assertTrue(report.passed)

    def test_counts_are_read_only(self):
        """Test the report's severity counts cannot be changed after building."""
        report = build_report([_violation("a.swift", 1, "file-length")])
        with self.assertRaises(TypeError):
            report.counts[Severity.ERROR] = 0
        self.assertEqual(report.counts[Severity.ERROR], 1)
        self.assertFalse(report.passed)


class TestFailThreshold(unittest.TestCase):
    """Test the passed verdict against failSeverity."""

    def test_warnings_only_pass_at_error_threshold(self):
        warnings = [
            _violation("a.swift", 1, "content-model-naming", Severity.WARNING),
            _violation("a.swift", 4, "grouping-responsibility", Severity.WARNING),
        ]
        self.assertTrue(build_report(warnings, Severity.ERROR).passed)

    def test_one_error_fails(self):
        violations = [
            _violation("a.swift", 1, "content-model-naming", Severity.WARNING),
            _violation("a.swift", 2, "boolean-naming", Severity.ERROR),
        ]
        self.assertFalse(build_report(violations, Severity.ERROR).passed)

    def test_warning_threshold(self):
        warnings = [_violation("a.swift", 1, "content-model-naming", Severity.WARNING)]
        report = build_report(warnings, Severity.WARNING)
        self.assertFalse(report.passed)
        self.assertEqual(report.fail_severity, Severity.WARNING)


class TestFormatting(unittest.TestCase):
    """Test text and JSON output."""

    def setUp(self):
        self.report = build_report(
            [
                _violation("Sources/A.swift", 2, "boolean-naming", message="Boolean 'isLoading' ..."),
                _violation("Sources/A.swift", 5, "content-model-naming", Severity.WARNING,
                           message="property 'model' ..."),
            ],
            files_analyzed=4,
        )

    def test_format_text(self):
        self.assertEqual(
            format_text(self.report).splitlines(),
            [
                "Sources/A.swift:2: [boolean-naming] Boolean 'isLoading' ...",
                "Sources/A.swift:5: [content-model-naming] property 'model' ...",
                "2 violations in 4 files (1 error, 1 warning): FAILED",
            ],
        )

    def test_format_text_clean(self):
        report = build_report([], files_analyzed=1)
        self.assertEqual(format_text(report), "0 violations in 1 files (0 errors, 0 warnings): PASSED")

    def test_format_json(self):
        data = json.loads(format_json(self.report))

        self.assertFalse(data["passed"])
        self.assertEqual(data["failSeverity"], "error")
        self.assertEqual(data["filesAnalyzed"], 4)
        self.assertEqual(data["summary"], {"warning": 1, "error": 1})
        self.assertEqual(data["violations"][0], {
            "file": "Sources/A.swift",
            "line": 2,
            "ruleId": "boolean-naming",
            "severity": "error",
            "message": "Boolean 'isLoading' ...",
        })


if __name__ == '__main__':
    unittest.main()
