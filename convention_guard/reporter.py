"""
Violation Reporter - deterministic report from an unordered violation buffer.

The report is the single ordering point of a run: violations are
de-duplicated and sorted by (file path, line, rule id), with the message as a
final tie-break, so output never depends on worker completion order or on the
order rules were registered.
"""

import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from convention_guard.violations import Severity, Violation


@dataclass(frozen=True)
class ViolationReport:
    """
    Result of one analysis run.

    Attributes:
        violations: Sorted, de-duplicated violations
        counts: Read-only number of violations per severity (every severity present, possibly 0)
        passed: True iff no violation is at or above the fail severity
        fail_severity: Severity threshold used for `passed`
        files_analyzed: Number of files handed to the engine
    """
    violations: Tuple[Violation, ...]
    counts: Mapping[Severity, int]
    passed: bool
    fail_severity: Severity
    files_analyzed: int = 0

    def records(self) -> List[Dict[str, Any]]:
        """Return violations as {file, line, ruleId, severity, message} records."""
        return [violation.to_record() for violation in self.violations]

    def summary(self) -> Dict[str, int]:
        return {severity.value: self.counts.get(severity, 0) for severity in Severity}


def build_report(
    violations: Iterable[Violation],
    fail_severity: Severity = Severity.ERROR,
    files_analyzed: int = 0,
) -> ViolationReport:
    """
    Build a ViolationReport from an unordered collection of violations.

    Args:
        violations: Violations in any order, possibly with duplicates
        fail_severity: Lowest severity that fails the run
        files_analyzed: Number of files analyzed

    Returns:
        ViolationReport with sorted violations, counts and verdict
    """
    unique = sorted(set(violations), key=Violation.sort_key)
    counts = {severity: 0 for severity in Severity}
    for violation in unique:
        counts[violation.severity] += 1
    passed = not any(v.severity.rank >= fail_severity.rank for v in unique)
    return ViolationReport(
        violations=tuple(unique),
        counts=MappingProxyType(counts),
        passed=passed,
        fail_severity=fail_severity,
        files_analyzed=files_analyzed,
    )


def format_text(report: ViolationReport) -> str:
    """
    Render a report as `path:line: [ruleId] message` lines followed by a summary.

    Example:
        Sources/ProfileView.swift:1: [file-length] file has 240 lines, exceeding ...
        2 violations in 14 files (1 error, 1 warning): FAILED
    """
    lines = [violation.format() for violation in report.violations]
    errors = report.counts.get(Severity.ERROR, 0)
    warnings = report.counts.get(Severity.WARNING, 0)
    status = "PASSED" if report.passed else "FAILED"
    lines.append(
        f"{len(report.violations)} violations in {report.files_analyzed} files "
        f"({errors} error{'s' if errors != 1 else ''}, "
        f"{warnings} warning{'s' if warnings != 1 else ''}): {status}"
    )
    return "\n".join(lines)


def format_json(report: ViolationReport) -> str:
    """Render a report as a JSON document with records, summary and verdict."""
    return json.dumps(
        {
            "passed": report.passed,
            "failSeverity": report.fail_severity.value,
            "filesAnalyzed": report.files_analyzed,
            "summary": report.summary(),
            "violations": report.records(),
        },
        indent=2,
    )
