"""Rule-based checks for SwiftUI structural and naming conventions."""

from convention_guard.builtin_rules import BUILTIN_RULES, default_registry
from convention_guard.declaration_model import (
    Declaration,
    DeclarationKind,
    SourceFile,
    SyntaxNode,
    TypeTag,
    Visibility,
    build_source_file,
)
from convention_guard.errors import (
    AnalysisAborted,
    ConfigError,
    ConventionGuardError,
    ModelError,
    RuleEvaluationError,
)
from convention_guard.lint_config import LintConfig, config_from_mapping, load_config
from convention_guard.reporter import ViolationReport, build_report, format_json, format_text
from convention_guard.rule_engine import RuleEngine, check_source, discover_sources
from convention_guard.rule_registry import (
    Category,
    ConventionRule,
    RuleContext,
    RuleRegistry,
    RuleSet,
    Scope,
    always,
    kinds_present,
)
from convention_guard.swift_scanner import scan_swift
from convention_guard.violations import Severity, Violation

__all__ = [
    "AnalysisAborted",
    "BUILTIN_RULES",
    "Category",
    "ConfigError",
    "ConventionGuardError",
    "ConventionRule",
    "Declaration",
    "DeclarationKind",
    "LintConfig",
    "ModelError",
    "RuleContext",
    "RuleEngine",
    "RuleEvaluationError",
    "RuleRegistry",
    "RuleSet",
    "Scope",
    "Severity",
    "SourceFile",
    "SyntaxNode",
    "TypeTag",
    "Violation",
    "ViolationReport",
    "Visibility",
    "always",
    "build_report",
    "build_source_file",
    "check_source",
    "config_from_mapping",
    "default_registry",
    "discover_sources",
    "format_json",
    "format_text",
    "kinds_present",
    "load_config",
    "scan_swift",
]
