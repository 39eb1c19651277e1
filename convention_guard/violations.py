"""Severity levels and the immutable violation record shared by rules and reports."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Severity(Enum):
    """Violation severity; the numeric rank orders severities for fail thresholds."""

    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """
        Parse a severity from its configuration spelling.

        Accepts "warn" as an alias of "warning", matching the spelling used in
        hand-written rule files.

        Raises:
            ValueError: If the value names no known severity
        """
        if isinstance(value, Severity):
            return value
        text = str(value).strip().lower()
        if text == "warn":
            text = "warning"
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown severity: {value!r}. Expected one of: warning, error")


_SEVERITY_RANK = {
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


UNPARSEABLE_FILE = "unparseable-file"
RULE_INTERNAL_ERROR = "rule-internal-error"


@dataclass(frozen=True)
class Violation:
    """
    A single convention violation.

    Attributes:
        rule_id: Id of the rule that produced the violation
        file_path: Path of the offending file, as given to the engine
        line: First line of the offending declaration (1-based)
        message: Human-readable description naming the offending identifier
        severity: Severity of the violation
        end_line: Last line of the offending range, when it spans several lines
    """
    rule_id: str
    file_path: str
    line: int
    message: str
    severity: Severity = Severity.ERROR
    end_line: Optional[int] = None

    def sort_key(self) -> tuple:
        return (self.file_path, self.line, self.rule_id, self.message, self.severity.rank)

    def to_record(self) -> Dict[str, Any]:
        """Return the public record shape consumed by formatters."""
        return {
            "file": self.file_path,
            "line": self.line,
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
        }

    def format(self) -> str:
        """
        Format the violation as a single text line.

        Example:
            Sources/ProfileView.swift:12: [boolean-naming] 'isLoading' ...
        """
        return f"{self.file_path}:{self.line}: [{self.rule_id}] {self.message}"
