"""
Exception taxonomy for convention checks.

Recovery is decided by the engine, not by the component raising:
- ModelError: one file cannot be normalized; becomes an unparseable-file violation
- ConfigError: the configuration or rule set is unusable; fatal before analysis
- RuleEvaluationError: one rule failed on one file; becomes a rule-internal-error violation
- AnalysisAborted: the run was cancelled; no report is produced
"""

from typing import Optional


class ConventionGuardError(Exception):
    """Base exception for all convention-guard errors."""
    pass


class ModelError(ConventionGuardError):
    """Exception raised when a syntax tree cannot be normalized into declarations."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class ConfigError(ConventionGuardError):
    """
    Exception raised for unknown rule ids, contradictory options or malformed rules.

    Attributes:
        field: Name of the offending configuration field or rule id
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field


class RuleEvaluationError(ConventionGuardError):
    """Exception raised when a rule's check function fails on a parseable file."""

    def __init__(self, rule_id: str, file_path: str, cause: BaseException):
        super().__init__(f"rule {rule_id} failed on {file_path}: {cause}")
        self.rule_id = rule_id
        self.file_path = file_path
        self.cause = cause


class AnalysisAborted(ConventionGuardError):
    """Exception raised when a run is cancelled before every file completed."""
    pass
