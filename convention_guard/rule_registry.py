"""
Rule Registry - declarative convention rules.

A rule is a value, not a subclass: a ConventionRule pairs an applicability
predicate with a check function. Rules are registered in a RuleRegistry keyed
by id; the engine only ever sees the ConventionRule interface, so new rules
are added by registering another value.

Example:
    >>> registry = RuleRegistry()
    >>> registry.register(ConventionRule(
    ...     id="no-todo-types",
    ...     category=Category.NAMING_PATTERN,
    ...     description="Type names must not contain Todo",
    ...     applies=always,
    ...     check=check_no_todo_types,
    ... ))
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from convention_guard.declaration_model import Declaration, DeclarationKind, SourceFile
from convention_guard.errors import ConfigError
from convention_guard.lint_config import LintConfig
from convention_guard.violations import Severity, Violation


class Category(Enum):
    FILE_LENGTH = "file-length"
    DECLARATION_ORDERING = "declaration-ordering"
    NAMING_PATTERN = "naming-pattern"
    GROUPING_RESPONSIBILITY = "grouping-responsibility"


class Scope(Enum):
    """How often a rule's check function is called per file."""

    FILE = "file"  # once, with the file's top-level members
    MEMBERS = "members"  # once per member sequence: top level, then every container


@dataclass(frozen=True)
class RuleContext:
    """
    Input handed to a check function.

    Attributes:
        source: The file being analyzed
        config: Effective configuration
        container: Type-block or extension-block owning `members`, or None for the file's top level
        members: Declaration sequence under inspection
        rule_id: Id of the rule being evaluated
        severity: Effective severity of the rule
    """
    source: SourceFile
    config: LintConfig
    container: Optional[Declaration]
    members: Tuple[Declaration, ...]
    rule_id: str
    severity: Severity

    def violation(self, line: int, message: str, end_line: Optional[int] = None) -> Violation:
        """Build a Violation for the rule under evaluation."""
        return Violation(
            rule_id=self.rule_id,
            file_path=self.source.path,
            line=line,
            message=message,
            severity=self.severity,
            end_line=end_line,
        )


Predicate = Callable[[SourceFile], bool]
CheckFunction = Callable[[RuleContext], Iterable[Violation]]


@dataclass(frozen=True)
class ConventionRule:
    """
    A convention rule expressed as data.

    Attributes:
        id: Stable rule id, used in reports and configuration
        category: Rule family
        description: One-line summary shown by list-rules
        applies: Predicate over the file deciding whether the rule runs at all
        check: Function returning zero or more violations for one RuleContext
        severity: Default severity
        scope: FILE or MEMBERS
    """
    id: str
    category: Category
    description: str
    applies: Predicate
    check: CheckFunction
    severity: Severity = Severity.ERROR
    scope: Scope = Scope.MEMBERS

    def with_severity(self, severity: Severity) -> "ConventionRule":
        return dataclasses.replace(self, severity=severity)


def always(source: SourceFile) -> bool:
    """Applicability predicate matching every file."""
    return True


def kinds_present(*kinds: DeclarationKind) -> Predicate:
    """
    Build a predicate matching files that contain any of the given kinds.

    Example:
        >>> applies = kinds_present(DeclarationKind.EXTENSION_BLOCK)
    """
    wanted = frozenset(kinds)

    def predicate(source: SourceFile) -> bool:
        return bool(wanted & source.kinds_present())

    predicate.__name__ = "kinds_present(" + ", ".join(sorted(k.value for k in wanted)) + ")"
    return predicate


def validate_rule(rule: ConventionRule) -> None:
    """
    Check that a rule definition is well formed.

    Raises:
        ConfigError: If the id is empty, or category, severity, scope,
            predicate or check function is of the wrong kind
    """
    if not isinstance(rule, ConventionRule):
        raise ConfigError(f"expected a ConventionRule, got {type(rule).__name__}", field="rules")
    if not isinstance(rule.id, str) or not rule.id.strip():
        raise ConfigError("rule id must be a non-empty string", field="rules")
    if not isinstance(rule.category, Category):
        raise ConfigError(f"unknown category: {rule.category!r}", field=rule.id)
    if not isinstance(rule.severity, Severity):
        raise ConfigError(f"unknown severity: {rule.severity!r}", field=rule.id)
    if not isinstance(rule.scope, Scope):
        raise ConfigError(f"unknown scope: {rule.scope!r}", field=rule.id)
    if not callable(rule.applies):
        raise ConfigError("applicability predicate is not callable", field=rule.id)
    if not callable(rule.check):
        raise ConfigError("check function is not callable", field=rule.id)


class RuleSet:
    """
    Ordered, read-only collection of rules selected for one run.

    Iteration order follows registration order; it never affects which
    violations are produced.
    """

    def __init__(self, rules: Iterable[ConventionRule]):
        self._rules: Tuple[ConventionRule, ...] = tuple(rules)

    def __iter__(self) -> Iterator[ConventionRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(rule.id == rule_id for rule in self._rules)

    def ids(self) -> List[str]:
        return [rule.id for rule in self._rules]


class RuleRegistry:
    """
    Mapping of rule id to ConventionRule.

    Registration validates each rule and fails fast with ConfigError, so a
    malformed rule set is rejected before any file is analyzed.
    """

    def __init__(self, rules: Optional[Iterable[ConventionRule]] = None):
        self._rules: Dict[str, ConventionRule] = {}
        for rule in rules or ():
            self.register(rule)

    def register(self, rule: ConventionRule) -> ConventionRule:
        """
        Register a rule.

        Args:
            rule: Rule to add

        Returns:
            The registered rule

        Raises:
            ConfigError: If the rule is malformed or its id is already registered
        """
        validate_rule(rule)
        if rule.id in self._rules:
            raise ConfigError(f"duplicate rule id: {rule.id}", field=rule.id)
        self._rules[rule.id] = rule
        return rule

    def get(self, rule_id: str) -> ConventionRule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise ConfigError(
                f"unknown rule id: {rule_id}. Available rules: {', '.join(self._rules)}",
                field="enabledRules",
            )

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[ConventionRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def ids(self) -> List[str]:
        return list(self._rules)

    def select(self, config: LintConfig) -> RuleSet:
        """
        Resolve the active RuleSet for a configuration.

        Applies `enabledRules` (None means every registered rule) and
        `severityOverrides`.

        Raises:
            ConfigError: If enabledRules or severityOverrides name an unknown rule
        """
        for rule_id in sorted(config.severity_overrides):
            if rule_id not in self._rules:
                raise ConfigError(f"unknown rule id: {rule_id}", field="severityOverrides")

        if config.enabled_rules is None:
            chosen = list(self._rules.values())
        else:
            unknown = sorted(r for r in config.enabled_rules if r not in self._rules)
            if unknown:
                raise ConfigError(
                    f"unknown rule id(s): {', '.join(unknown)}. "
                    f"Available rules: {', '.join(self._rules)}",
                    field="enabledRules",
                )
            chosen = [rule for rule in self._rules.values() if rule.id in config.enabled_rules]

        return RuleSet(
            rule.with_severity(config.severity_overrides[rule.id])
            if rule.id in config.severity_overrides else rule
            for rule in chosen
        )
