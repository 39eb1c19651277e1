#!/usr/bin/env python3
"""
Tests for the convention-guard command line.

Test coverage:
- check: exit codes 0 (passed), 1 (failed), 2 (configuration error)
- check: text and JSON output, command-line overrides
- list-rules and show-config
"""

import json
import textwrap

import pytest
import yaml

from convention_guard.cli import EXIT_CONFIG_ERROR, EXIT_FAILED, EXIT_PASSED, main


CLEAN_VIEW = textwrap.dedent("""\
    struct AddressView: View {
        @State private var loading = false
        let content: AddressUIModel

        var body: some View {
            Text("Address")
        }
    }
""")

WARNING_VIEW = textwrap.dedent("""\
    struct AddressView: View {
        let model: AddressUIModel

        var body: some View {
            Text("Address")
        }
    }
""")

ERROR_VIEW = textwrap.dedent("""\
    struct AddressView: View {
        @State private var isLoading = false

        var body: some View {
            Text("Address")
        }
    }
""")


@pytest.fixture
def swift_file(tmp_path):
    def write(text, name="AddressView.swift"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return write


# ============================================================================
# check
# ============================================================================

def test_check_clean_file_passes(swift_file, capsys):
    path = swift_file(CLEAN_VIEW)

    assert main(["check", str(path)]) == EXIT_PASSED

    out = capsys.readouterr().out
    assert out.strip() == "0 violations in 1 files (0 errors, 0 warnings): PASSED"


def test_check_warnings_pass_by_default(swift_file, capsys):
    """Test warnings alone do not fail the run with the default threshold."""
    path = swift_file(WARNING_VIEW)

    assert main(["check", str(path)]) == EXIT_PASSED
    assert "[content-model-naming]" in capsys.readouterr().out


def test_check_fail_severity_warning(swift_file):
    path = swift_file(WARNING_VIEW)
    assert main(["check", "--fail-severity", "warning", str(path)]) == EXIT_FAILED


def test_check_error_fails(swift_file, capsys):
    path = swift_file(ERROR_VIEW)

    assert main(["check", str(path)]) == EXIT_FAILED

    out = capsys.readouterr().out
    assert f"{path}:2: [boolean-naming] Boolean 'isLoading'" in out
    assert out.rstrip().endswith("FAILED")


def test_check_json_output(swift_file, capsys):
    path = swift_file(ERROR_VIEW)

    main(["check", "--format", "json", str(path)])

    data = json.loads(capsys.readouterr().out)
    assert data["passed"] is False
    assert [v["ruleId"] for v in data["violations"]] == ["boolean-naming"]


def test_check_rule_selection(swift_file):
    """Test --rule restricts the run to the named rules."""
    path = swift_file(ERROR_VIEW)
    assert main(["check", "--rule", "file-length", str(path)]) == EXIT_PASSED


def test_check_max_file_lines_override(swift_file, capsys):
    path = swift_file(CLEAN_VIEW)

    assert main(["check", "--max-file-lines", "3", str(path)]) == EXIT_FAILED
    assert "[file-length] file has 8 lines" in capsys.readouterr().out


def test_check_unknown_rule_is_config_error(swift_file, capsys):
    path = swift_file(CLEAN_VIEW)

    assert main(["check", "--rule", "no-such-rule", str(path)]) == EXIT_CONFIG_ERROR

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[ERROR] Invalid configuration: enabledRules" in captured.err


def test_check_missing_path(tmp_path, capsys):
    assert main(["check", str(tmp_path / "Missing.swift")]) == EXIT_CONFIG_ERROR
    assert "paths:" in capsys.readouterr().err


def test_check_invalid_config_file(swift_file, tmp_path, capsys):
    path = swift_file(CLEAN_VIEW)
    config = tmp_path / "conventions.yml"
    config.write_text("maxFileLines: -3\n")

    assert main(["check", "--config", str(config), str(path)]) == EXIT_CONFIG_ERROR
    assert "maxFileLines" in capsys.readouterr().err


def test_check_config_file(swift_file, tmp_path):
    """Test a config file disabling the failing rule lets the run pass."""
    path = swift_file(ERROR_VIEW)
    config = tmp_path / "conventions.yml"
    config.write_text("enabledRules: [file-length, declaration-ordering]\n")

    assert main(["check", "--config", str(config), str(path)]) == EXIT_PASSED


def test_check_directory(swift_file, capsys):
    swift_file(CLEAN_VIEW, "A.swift")
    path = swift_file(ERROR_VIEW, "B.swift")

    assert main(["check", str(path.parent)]) == EXIT_FAILED
    assert "in 2 files" in capsys.readouterr().out


# ============================================================================
# list-rules / show-config
# ============================================================================

def test_list_rules(capsys):
    assert main(["list-rules"]) == EXIT_PASSED

    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[0] for line in lines] == [
        "file-length",
        "declaration-ordering",
        "boolean-naming",
        "content-model-naming",
        "action-case-naming",
        "grouping-responsibility",
    ]
    assert "[naming-pattern]" in lines[2]


def test_show_config_defaults(capsys):
    assert main(["show-config"]) == EXIT_PASSED

    out = capsys.readouterr().out
    header, _, body = out.partition("\n")
    assert header == "=== Effective convention-guard configuration ==="
    data = yaml.safe_load(body)
    assert data["maxFileLines"] == 210
    assert data["failSeverity"] == "error"
    assert "loading" in data["booleanUiStateNames"]


def test_show_config_from_file(tmp_path, capsys):
    config = tmp_path / "conventions.yml"
    config.write_text("maxFileLines: 120\nseverityOverrides:\n  file-length: warn\n")

    assert main(["show-config", "--config", str(config)]) == EXIT_PASSED

    out = capsys.readouterr().out
    assert f"Config file: {config}" in out
    assert "maxFileLines: 120" in out
    assert "file-length: warning" in out


def test_show_config_unknown_override(tmp_path, capsys):
    config = tmp_path / "conventions.yml"
    config.write_text("severityOverrides:\n  no-such-rule: error\n")

    assert main(["show-config", "--config", str(config)]) == EXIT_CONFIG_ERROR
    assert "severityOverrides" in capsys.readouterr().err
