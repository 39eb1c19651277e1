#!/usr/bin/env python3
"""
Tests for lint_config.py - configuration schema, option checks and YAML loading.

Test coverage:
- CONFIG_SCHEMA is itself a valid Draft 7 schema
- Schema violations surface as ConfigError naming the field
- Contradictory options (overlapping Boolean names, overrides of disabled rules)
- Non-positive maxFileLines and workers
- camelCase mapping round-trip
- YAML loading: empty file, non-mapping, invalid YAML, missing file
"""

import unittest

import pytest
from jsonschema import Draft7Validator

from convention_guard.errors import ConfigError
from convention_guard.lint_config import (
    CONFIG_SCHEMA,
    DEFAULT_MAX_FILE_LINES,
    LintConfig,
    config_from_mapping,
    load_config,
    validate_config_mapping,
)
from convention_guard.violations import Severity


class TestConfigSchema(unittest.TestCase):
    """Test the JSON Schema used to validate configuration files."""

    def test_schema_is_valid_draft7(self):
        """Test the schema itself passes Draft 7 meta-validation."""
        Draft7Validator.check_schema(CONFIG_SCHEMA)

    def test_valid_mapping_passes(self):
        """Test a complete, well-formed mapping validates."""
        validate_config_mapping({
            "maxFileLines": 300,
            "failSeverity": "warn",
            "booleanUiStateNames": ["loading"],
            "booleanVisibilityNames": ["banner"],
            "responsibilityPrefixMap": {"fetch": "data-loading"},
            "enabledRules": ["file-length"],
            "severityOverrides": {"file-length": "warning"},
            "workers": 2,
        })

    def test_wrong_type_names_field(self):
        """Test a type error names the offending key."""
        with self.assertRaises(ConfigError) as ctx:
            validate_config_mapping({"maxFileLines": "two hundred"})
        self.assertEqual(ctx.exception.field, "maxFileLines")

    def test_unknown_key_rejected(self):
        """Test keys outside the schema are rejected."""
        with self.assertRaises(ConfigError) as ctx:
            validate_config_mapping({"maxLines": 10})
        self.assertEqual(ctx.exception.field, "config")
        self.assertIn("maxLines", str(ctx.exception))

    def test_unknown_severity_names_nested_field(self):
        """Test a bad override severity names the rule inside severityOverrides."""
        with self.assertRaises(ConfigError) as ctx:
            validate_config_mapping({"severityOverrides": {"boolean-naming": "fatal"}})
        self.assertEqual(ctx.exception.field, "severityOverrides.boolean-naming")

    def test_duplicate_list_entries_rejected(self):
        """Test list options must not repeat entries."""
        with self.assertRaises(ConfigError) as ctx:
            validate_config_mapping({"booleanVisibilityNames": ["sheet", "sheet"]})
        self.assertEqual(ctx.exception.field, "booleanVisibilityNames")


class TestLintConfigOptions(unittest.TestCase):
    """Test option checks run whenever a LintConfig is built."""

    def test_defaults(self):
        """Test the default configuration."""
        config = LintConfig()
        self.assertEqual(config.max_file_lines, DEFAULT_MAX_FILE_LINES)
        self.assertEqual(config.fail_severity, Severity.ERROR)
        self.assertIsNone(config.enabled_rules)
        self.assertTrue(config.is_enabled("anything"))

    def test_non_positive_max_file_lines(self):
        """Test maxFileLines must be positive."""
        for value in (0, -5):
            with self.subTest(value=value):
                with self.assertRaises(ConfigError) as ctx:
                    LintConfig(max_file_lines=value)
                self.assertEqual(ctx.exception.field, "maxFileLines")

    def test_bool_is_not_an_integer(self):
        """Test `True` is not accepted as a line limit."""
        with self.assertRaises(ConfigError):
            LintConfig(max_file_lines=True)

    def test_workers_must_be_positive(self):
        """Test a worker count below 1 is rejected."""
        with self.assertRaises(ConfigError) as ctx:
            LintConfig(workers=0)
        self.assertEqual(ctx.exception.field, "workers")

    def test_overlapping_boolean_names(self):
        """Test a name cannot be both a loading state and a visibility control."""
        with self.assertRaises(ConfigError) as ctx:
            LintConfig(
                boolean_ui_state_names=("loading", "Sheet"),
                boolean_visibility_names=("sheet", "banner"),
            )
        self.assertEqual(ctx.exception.field, "booleanVisibilityNames")
        self.assertIn("sheet", str(ctx.exception))

    def test_override_for_disabled_rule(self):
        """Test a severity override for a rule that is not enabled is contradictory."""
        with self.assertRaises(ConfigError) as ctx:
            LintConfig(
                enabled_rules=frozenset({"file-length"}),
                severity_overrides={"boolean-naming": Severity.WARNING},
            )
        self.assertEqual(ctx.exception.field, "severityOverrides")

    def test_replace_rechecks_options(self):
        """Test replace() runs the same checks as construction."""
        config = LintConfig()
        self.assertEqual(config.replace(max_file_lines=50).max_file_lines, 50)
        with self.assertRaises(ConfigError):
            config.replace(max_file_lines=-1)

    def test_is_enabled_with_selection(self):
        config = LintConfig(enabled_rules=frozenset({"file-length"}))
        self.assertTrue(config.is_enabled("file-length"))
        self.assertFalse(config.is_enabled("boolean-naming"))


class TestConfigMapping(unittest.TestCase):
    """Test conversion between camelCase mappings and LintConfig."""

    def test_mapping_to_config(self):
        """Test camelCase keys are mapped and values converted."""
        config = config_from_mapping({
            "maxFileLines": 150,
            "failSeverity": "warn",
            "enabledRules": ["file-length", "boolean-naming"],
            "severityOverrides": {"boolean-naming": "warning"},
            "booleanUiStateNames": ["loading", "syncing"],
        })
        self.assertEqual(config.max_file_lines, 150)
        self.assertEqual(config.fail_severity, Severity.WARNING)
        self.assertEqual(config.enabled_rules, frozenset({"file-length", "boolean-naming"}))
        self.assertEqual(config.severity_overrides, {"boolean-naming": Severity.WARNING})
        self.assertEqual(config.boolean_ui_state_names, ("loading", "syncing"))

    def test_none_gives_defaults(self):
        self.assertEqual(config_from_mapping(None), LintConfig())

    def test_round_trip(self):
        """Test to_mapping output rebuilds an equal configuration."""
        config = LintConfig(
            max_file_lines=99,
            enabled_rules=frozenset({"file-length", "declaration-ordering"}),
            severity_overrides={"file-length": Severity.WARNING},
            workers=3,
        )
        mapping = config.to_mapping()
        self.assertEqual(mapping["enabledRules"], ["declaration-ordering", "file-length"])
        self.assertEqual(mapping["severityOverrides"], {"file-length": "warning"})
        self.assertEqual(config_from_mapping(mapping), config)

    def test_unset_options_omitted(self):
        """Test None-valued options do not appear in the mapping."""
        mapping = LintConfig().to_mapping()
        self.assertNotIn("enabledRules", mapping)
        self.assertNotIn("workers", mapping)
        validate_config_mapping(mapping)


# ============================================================================
# YAML loading
# ============================================================================

def test_load_config_none_gives_defaults():
    assert load_config(None) == LintConfig()


def test_load_config_from_yaml(tmp_path):
    """Test a YAML file is parsed and validated."""
    path = tmp_path / "conventions.yml"
    path.write_text(
        "maxFileLines: 180\n"
        "booleanVisibilityNames: [banner, sheet]\n"
        "responsibilityPrefixMap:\n"
        "  sync: data-loading\n"
    )

    config = load_config(path)

    assert config.max_file_lines == 180
    assert config.boolean_visibility_names == ("banner", "sheet")
    assert config.responsibility_prefix_map == {"sync": "data-loading"}


def test_load_config_empty_file(tmp_path):
    """Test an empty file yields the defaults."""
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_config(path) == LintConfig()


def test_load_config_not_a_mapping(tmp_path):
    """Test a top-level list is rejected."""
    path = tmp_path / "list.yml"
    path.write_text("- maxFileLines\n- 10\n")

    with pytest.raises(ConfigError) as exc_info:
        load_config(path)
    assert exc_info.value.field == "config"
    assert "mapping" in str(exc_info.value)


def test_load_config_invalid_yaml(tmp_path):
    """Test a YAML syntax error is reported as ConfigError."""
    path = tmp_path / "broken.yml"
    path.write_text("enabledRules: [file-length\n")

    with pytest.raises(ConfigError) as exc_info:
        load_config(path)
    assert "Failed to parse YAML" in str(exc_info.value)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        load_config(tmp_path / "absent.yml")
    assert "Failed to read" in str(exc_info.value)


def test_load_config_contradiction(tmp_path):
    """Test contradictory options in a file are reported before analysis."""
    path = tmp_path / "contradiction.yml"
    path.write_text(
        "booleanUiStateNames: [loading]\n"
        "booleanVisibilityNames: [loading]\n"
    )

    with pytest.raises(ConfigError) as exc_info:
        load_config(path)
    assert exc_info.value.field == "booleanVisibilityNames"


if __name__ == '__main__':
    unittest.main()
