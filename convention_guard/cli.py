#!/usr/bin/env python3
"""Command-line front end for convention-guard."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from convention_guard.builtin_rules import default_registry
from convention_guard.errors import AnalysisAborted, ConfigError
from convention_guard.lint_config import LintConfig, load_config
from convention_guard.reporter import format_json, format_text
from convention_guard.rule_engine import RuleEngine
from convention_guard.violations import Severity


EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_ABORTED = 130


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _effective_config(args) -> LintConfig:
    """Load the configuration file and apply command-line overrides.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Validated LintConfig

    Raises:
        ConfigError: If the file or an override is invalid
    """
    config = load_config(args.config)
    changes = {}
    if getattr(args, 'max_file_lines', None) is not None:
        changes['max_file_lines'] = args.max_file_lines
    if getattr(args, 'fail_severity', None) is not None:
        try:
            changes['fail_severity'] = Severity.parse(args.fail_severity)
        except ValueError as e:
            raise ConfigError(str(e), field="failSeverity")
    if getattr(args, 'workers', None) is not None:
        changes['workers'] = args.workers
    if getattr(args, 'rules', None):
        changes['enabled_rules'] = frozenset(args.rules)
    return config.replace(**changes) if changes else config


def check(args) -> int:
    """Check source files against the enabled convention rules.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: 0 when the report passed, 1 when it failed, 2 on
        configuration errors, 130 when interrupted
    """
    try:
        config = _effective_config(args)
        engine = RuleEngine(config, default_registry())
        report = engine.run(args.paths)
    except ConfigError as e:
        print(f"[ERROR] Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except AnalysisAborted as e:
        print(f"[ERROR] Aborted: {e}", file=sys.stderr)
        return EXIT_ABORTED

    if args.format == 'json':
        print(format_json(report))
    else:
        print(format_text(report))

    return EXIT_PASSED if report.passed else EXIT_FAILED


def list_rules(args) -> int:
    """Print the registered rules with category, default severity and description.

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: always 0
    """
    registry = default_registry()
    width = max(len(rule_id) for rule_id in registry.ids())
    for rule in registry:
        print(f"{rule.id:<{width}}  {rule.severity.value:<7}  [{rule.category.value}] {rule.description}")
    return EXIT_PASSED


def show_config(args) -> int:
    """Print the effective configuration as YAML (debug mode).

    Args:
        args: Command-line arguments from argparse

    Returns:
        Exit code: 0 on success, 2 on configuration errors
    """
    try:
        config = _effective_config(args)
        default_registry().select(config)
    except ConfigError as e:
        print(f"[ERROR] Invalid configuration: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print("=== Effective convention-guard configuration ===")
    if args.config:
        print(f"Config file: {args.config}")
    print(yaml.dump(config.to_mapping(), default_flow_style=False, sort_keys=False))
    return EXIT_PASSED


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML configuration file'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='convention-guard',
        description="Check SwiftUI source files against structural and naming conventions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check Sources/
  %(prog)s check --format json --config conventions.yml Sources/ Tests/
  %(prog)s list-rules
        """
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log per-file progress'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        required=True,
        help='Command to run'
    )

    # check subcommand
    parser_check = subparsers.add_parser(
        'check',
        help='Check files and directories'
    )
    parser_check.add_argument(
        'paths',
        nargs='+',
        type=Path,
        help='Files or directories to check'
    )
    _add_config_argument(parser_check)
    parser_check.add_argument(
        '--format',
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text)'
    )
    parser_check.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Number of files analyzed in parallel'
    )
    parser_check.add_argument(
        '--max-file-lines',
        type=int,
        default=None,
        help='Override maxFileLines'
    )
    parser_check.add_argument(
        '--fail-severity',
        choices=['warning', 'error'],
        default=None,
        help='Lowest severity that fails the run'
    )
    parser_check.add_argument(
        '--rule',
        dest='rules',
        action='append',
        default=None,
        help='Run only this rule id (repeatable)'
    )

    # list-rules subcommand
    subparsers.add_parser(
        'list-rules',
        help='List registered rules'
    )

    # show-config subcommand
    parser_show = subparsers.add_parser(
        'show-config',
        help='Show the effective configuration and exit'
    )
    _add_config_argument(parser_show)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the convention-guard tool."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {
        'check': check,
        'list-rules': list_rules,
        'show-config': show_config,
    }

    handler = handlers.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
