"""
Rule Engine - applies the active RuleSet to every source file.

Per-file analysis (read -> parse -> Declaration Model -> rules) shares nothing
mutable across files, so files are analyzed on a bounded thread pool and
their violations collected into an unordered buffer. The reporter's sort is
the only ordering point, which keeps reports identical for any worker count.

Failure isolation:
- ModelError, a failing parser or an unreadable file becomes one unparseable-file violation
- A rule raising becomes one rule-internal-error violation for that rule and file
- ConfigError is raised from the constructor, before any file is analyzed
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from convention_guard.builtin_rules import default_registry
from convention_guard.declaration_model import SourceFile, SyntaxNode, build_source_file
from convention_guard.errors import AnalysisAborted, ConfigError, ModelError, RuleEvaluationError
from convention_guard.lint_config import LintConfig
from convention_guard.reporter import ViolationReport, build_report
from convention_guard.rule_registry import ConventionRule, RuleContext, RuleRegistry, Scope
from convention_guard.swift_scanner import count_lines, scan_swift
from convention_guard.violations import (
    RULE_INTERNAL_ERROR,
    UNPARSEABLE_FILE,
    Severity,
    Violation,
)


logger = logging.getLogger(__name__)

Parser = Callable[[str], SyntaxNode]


def unparseable_violation(path: str, detail: str, line: Optional[int] = None) -> Violation:
    return Violation(
        rule_id=UNPARSEABLE_FILE,
        file_path=path,
        line=line if isinstance(line, int) and line > 0 else 1,
        message=f"file could not be analyzed: {detail}",
        severity=Severity.ERROR,
    )


def discover_sources(paths: Iterable[Path], config: LintConfig) -> List[Path]:
    """
    Expand files and directories into the list of source files to analyze.

    Directories are walked recursively for files matching `include`; any path
    with a part listed in `exclude` is skipped. Files named explicitly are
    always analyzed.

    Args:
        paths: Files and/or directories
        config: Configuration holding include globs and excluded path parts

    Returns:
        Sorted, de-duplicated list of files

    Raises:
        ConfigError: If a path does not exist
    """
    found = {}
    excluded = set(config.exclude)
    for path in paths:
        path = Path(path)
        if path.is_file():
            found.setdefault(path.resolve(), path)
            continue
        if not path.is_dir():
            raise ConfigError(f"path does not exist: {path}", field="paths")
        for pattern in config.include:
            for candidate in path.rglob(pattern):
                rel_path = candidate.relative_to(path)
                if excluded & set(rel_path.parts[:-1]) or not candidate.is_file():
                    continue
                found.setdefault(candidate.resolve(), candidate)
    return sorted(found.values(), key=lambda p: str(p))


class RuleEngine:
    """
    Evaluates every enabled rule against every file.

    The active RuleSet is resolved in the constructor, so unknown rule ids
    or a malformed registry fail the run before any file is read.
    """

    def __init__(
        self,
        config: Optional[LintConfig] = None,
        registry: Optional[RuleRegistry] = None,
        parser: Parser = scan_swift,
    ):
        """
        Initialize the engine.

        Args:
            config: Effective configuration (defaults when None)
            registry: Rule registry (built-in rules when None)
            parser: Callable turning source text into a SyntaxNode tree

        Raises:
            ConfigError: If the configuration references unknown rules
        """
        self.config = config if config is not None else LintConfig()
        self.registry = registry if registry is not None else default_registry()
        self.rule_set = self.registry.select(self.config)
        self.parser = parser

    def analyze_source(self, path: str, text: str) -> List[Violation]:
        """
        Analyze one file's text.

        Args:
            path: File identifier used in violations
            text: Source text

        Returns:
            Unordered list of violations for this file
        """
        try:
            root = self.parser(text)
            source = build_source_file(path, count_lines(text), root, self.config)
        except ModelError as e:
            logger.warning("cannot analyze %s: %s", path, e)
            return [unparseable_violation(path, str(e), e.line)]
        except Exception as e:
            logger.warning("parser failed on %s: %s: %s", path, type(e).__name__, e)
            return [unparseable_violation(path, f"parser failed: {type(e).__name__}: {e}")]
        return self.evaluate(source)

    def analyze_file(self, path: Path) -> List[Violation]:
        """Read and analyze one file; read failures become unparseable-file violations."""
        logger.debug("analyzing %s", path)
        try:
            text = Path(path).read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("cannot read %s: %s", path, e)
            return [unparseable_violation(str(path), f"cannot read file: {e}")]
        return self.analyze_source(str(path), text)

    def evaluate(self, source: SourceFile) -> List[Violation]:
        """
        Run every rule of the active RuleSet against a normalized file.

        A failing rule is skipped for this file only and reported as a
        rule-internal-error violation.
        """
        violations: List[Violation] = []
        for rule in self.rule_set:
            try:
                violations.extend(self._run_rule(rule, source))
            except RuleEvaluationError as e:
                logger.warning("%s", e)
                violations.append(Violation(
                    rule_id=RULE_INTERNAL_ERROR,
                    file_path=source.path,
                    line=1,
                    message=f"rule '{rule.id}' failed and was skipped for this file: "
                            f"{type(e.cause).__name__}: {e.cause}",
                    severity=Severity.ERROR,
                ))
        return violations

    def _run_rule(self, rule: ConventionRule, source: SourceFile) -> List[Violation]:
        """Evaluate one rule; any failure is raised as RuleEvaluationError."""
        try:
            if not rule.applies(source):
                return []
            if rule.scope is Scope.FILE:
                sequences = [(None, source.declarations)]
            else:
                sequences = source.iter_member_sequences()

            found: List[Violation] = []
            for container, members in sequences:
                ctx = RuleContext(
                    source=source,
                    config=self.config,
                    container=container,
                    members=members,
                    rule_id=rule.id,
                    severity=rule.severity,
                )
                for violation in rule.check(ctx):
                    if not isinstance(violation, Violation):
                        raise TypeError(
                            f"check function returned {type(violation).__name__}, expected Violation"
                        )
                    found.append(violation)
            return found
        except Exception as e:
            raise RuleEvaluationError(rule.id, source.path, e) from e

    def worker_count(self, file_count: int) -> int:
        if self.config.workers is not None:
            workers = self.config.workers
        else:
            workers = min(32, (os.cpu_count() or 1) + 4)
        return max(1, min(workers, file_count))

    def analyze_paths(self, files: Sequence[Path]) -> List[Violation]:
        """
        Analyze files independently, in parallel when more than one worker is allowed.

        Args:
            files: Files to analyze

        Returns:
            Unordered violations from every file

        Raises:
            AnalysisAborted: If the run is interrupted; outstanding files are abandoned
        """
        files = list(files)
        workers = self.worker_count(len(files))
        results: List[Violation] = []

        if workers == 1:
            done = 0
            try:
                for path in files:
                    results.extend(self.analyze_file(path))
                    done += 1
            except KeyboardInterrupt:
                raise AnalysisAborted(
                    f"analysis interrupted after {done} of {len(files)} files"
                )
            return results

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="convention-guard")
        futures = [executor.submit(self.analyze_file, path) for path in files]
        done = 0
        try:
            for future in as_completed(futures):
                results.extend(future.result())
                done += 1
        except KeyboardInterrupt:
            executor.shutdown(wait=False, cancel_futures=True)
            raise AnalysisAborted(
                f"analysis interrupted after {done} of {len(files)} files"
            )
        finally:
            executor.shutdown(wait=True)
        return results

    def run(self, paths: Iterable[Path]) -> ViolationReport:
        """
        Analyze files and directories and build the report.

        Args:
            paths: Files and/or directories

        Returns:
            ViolationReport for the whole run

        Raises:
            ConfigError: If a path does not exist
            AnalysisAborted: If the run is interrupted
        """
        files = discover_sources(paths, self.config)
        logger.debug("analyzing %d files with %d rules", len(files), len(self.rule_set))
        violations = self.analyze_paths(files)
        return build_report(violations, self.config.fail_severity, files_analyzed=len(files))


def check_source(path: str, text: str, config: Optional[LintConfig] = None) -> ViolationReport:
    """
    Convenience function to check one in-memory source against the built-in rules.

    Args:
        path: File identifier used in violations
        text: Source text
        config: Optional configuration

    Returns:
        ViolationReport for the single file
    """
    engine = RuleEngine(config)
    violations = engine.analyze_source(path, text)
    return build_report(violations, engine.config.fail_severity, files_analyzed=1)
