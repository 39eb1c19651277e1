"""
Configuration for convention checks.

Configuration is read from a YAML file with camelCase keys, validated against
CONFIG_SCHEMA (JSON Schema Draft 7) and then checked for contradictory options.
Every failure surfaces as ConfigError naming the offending field, before any
file is analyzed.

Example configuration:
    maxFileLines: 210
    failSeverity: error
    booleanUiStateNames: [loading, refreshing, paginating]
    booleanVisibilityNames: [banner, sheet, alert]
    responsibilityPrefixMap:
      fetch: data-loading
      track: analytics
    enabledRules: [file-length, declaration-ordering]
    severityOverrides:
      content-model-naming: error
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

import yaml
from jsonschema import Draft7Validator

from convention_guard.errors import ConfigError
from convention_guard.violations import Severity


DEFAULT_MAX_FILE_LINES = 210

DEFAULT_UI_STATE_NAMES = (
    "loading",
    "refreshing",
    "paginating",
    "loadingMore",
    "loadingNextPage",
    "fetching",
)

DEFAULT_VISIBILITY_NAMES = (
    "banner",
    "alert",
    "sheet",
    "toast",
    "popup",
    "popover",
    "dialog",
    "overlay",
    "modal",
    "tooltip",
    "emptyState",
)

DEFAULT_RESPONSIBILITY_PREFIX_MAP = {
    "fetch": "data-loading",
    "load": "data-loading",
    "reload": "data-loading",
    "refresh": "data-loading",
    "track": "analytics",
    "log": "analytics",
    "navigate": "navigation",
    "route": "navigation",
    "present": "navigation",
    "dismiss": "navigation",
    "validate": "validation",
    "format": "formatting",
    "make": "view-building",
    "build": "view-building",
}


_STRING_LIST = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
    "uniqueItems": True,
}

_SEVERITY = {"type": "string", "enum": ["warning", "warn", "error"]}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "convention-guard configuration",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "maxFileLines": {"type": "integer"},
        "failSeverity": _SEVERITY,
        "booleanUiStateNames": _STRING_LIST,
        "booleanVisibilityNames": _STRING_LIST,
        "responsibilityPrefixMap": {
            "type": "object",
            "additionalProperties": {"type": "string", "minLength": 1},
        },
        "enabledRules": _STRING_LIST,
        "severityOverrides": {
            "type": "object",
            "additionalProperties": _SEVERITY,
        },
        "workers": {"type": "integer", "minimum": 1},
        "include": _STRING_LIST,
        "exclude": _STRING_LIST,
        "environmentAttributes": _STRING_LIST,
        "booleanTypeNames": _STRING_LIST,
        "sequenceTypeNames": _STRING_LIST,
        "contentModelTypeSuffixes": _STRING_LIST,
        "contentNameSuffix": {"type": "string", "minLength": 1},
        "actionEnumSuffixes": _STRING_LIST,
        "viewModelSuffixes": _STRING_LIST,
    },
}

# camelCase configuration key -> LintConfig attribute
_FIELD_NAMES = {
    "maxFileLines": "max_file_lines",
    "failSeverity": "fail_severity",
    "booleanUiStateNames": "boolean_ui_state_names",
    "booleanVisibilityNames": "boolean_visibility_names",
    "responsibilityPrefixMap": "responsibility_prefix_map",
    "enabledRules": "enabled_rules",
    "severityOverrides": "severity_overrides",
    "workers": "workers",
    "include": "include",
    "exclude": "exclude",
    "environmentAttributes": "environment_attributes",
    "booleanTypeNames": "boolean_type_names",
    "sequenceTypeNames": "sequence_type_names",
    "contentModelTypeSuffixes": "content_model_type_suffixes",
    "contentNameSuffix": "content_name_suffix",
    "actionEnumSuffixes": "action_enum_suffixes",
    "viewModelSuffixes": "view_model_suffixes",
}


@dataclass(frozen=True)
class LintConfig:
    """
    Effective configuration for one analysis run.

    Read-only once built; workers share a single instance.

    Attributes:
        max_file_lines: Maximum number of lines a source file may have
        fail_severity: Lowest severity that makes the run fail
        boolean_ui_state_names: Name suffixes marking loading-class Booleans
        boolean_visibility_names: Name suffixes marking visibility-class Booleans
        responsibility_prefix_map: Method-name prefix -> responsibility label
        enabled_rules: Rule ids to run, or None for every registered rule
        severity_overrides: Rule id -> severity replacing the rule's default
        workers: Worker count for per-file analysis, or None for a CPU-based default
        include: File-name globs selected when walking directories
        exclude: Path parts skipped when walking directories
        environment_attributes: Attributes marking environment bindings
        boolean_type_names: Type spellings tagged as Bool
        sequence_type_names: Generic collection spellings tagged as Sequence
        content_model_type_suffixes: Type-name suffixes tagged as Content-model
        content_name_suffix: Required name suffix for Content-model properties
        action_enum_suffixes: Enum-name suffixes marking an Action contract
        view_model_suffixes: Type-name suffixes marking a view-model container
    """
    max_file_lines: int = DEFAULT_MAX_FILE_LINES
    fail_severity: Severity = Severity.ERROR
    boolean_ui_state_names: Tuple[str, ...] = DEFAULT_UI_STATE_NAMES
    boolean_visibility_names: Tuple[str, ...] = DEFAULT_VISIBILITY_NAMES
    responsibility_prefix_map: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_RESPONSIBILITY_PREFIX_MAP)
    )
    enabled_rules: Optional[FrozenSet[str]] = None
    severity_overrides: Dict[str, Severity] = field(default_factory=dict)
    workers: Optional[int] = None
    include: Tuple[str, ...] = ("*.swift",)
    exclude: Tuple[str, ...] = (".build", ".git", "Pods", "DerivedData")
    environment_attributes: Tuple[str, ...] = ("@Environment", "@EnvironmentObject")
    boolean_type_names: Tuple[str, ...] = ("Bool",)
    sequence_type_names: Tuple[str, ...] = (
        "Array",
        "Set",
        "ContiguousArray",
        "ArraySlice",
        "OrderedSet",
        "IdentifiedArray",
    )
    content_model_type_suffixes: Tuple[str, ...] = ("UIModel",)
    content_name_suffix: str = "Content"
    action_enum_suffixes: Tuple[str, ...] = ("Action",)
    view_model_suffixes: Tuple[str, ...] = ("ViewModel",)

    def __post_init__(self):
        self._check_options()

    def _check_options(self) -> None:
        """Reject option combinations that cannot be evaluated consistently."""
        if isinstance(self.max_file_lines, bool) or not isinstance(self.max_file_lines, int):
            raise ConfigError("must be an integer", field="maxFileLines")
        if self.max_file_lines <= 0:
            raise ConfigError(
                f"must be positive (got {self.max_file_lines})", field="maxFileLines"
            )
        if self.workers is not None and self.workers < 1:
            raise ConfigError(f"must be at least 1 (got {self.workers})", field="workers")

        ui_state = {name.lower() for name in self.boolean_ui_state_names}
        visibility = {name.lower() for name in self.boolean_visibility_names}
        overlap = sorted(ui_state & visibility)
        if overlap:
            raise ConfigError(
                f"names listed as both UI-state and visibility Booleans: {', '.join(overlap)}",
                field="booleanVisibilityNames",
            )

        if self.enabled_rules is not None:
            for rule_id in self.severity_overrides:
                if rule_id not in self.enabled_rules:
                    raise ConfigError(
                        f"severity override for disabled rule: {rule_id}",
                        field="severityOverrides",
                    )

    def is_enabled(self, rule_id: str) -> bool:
        return self.enabled_rules is None or rule_id in self.enabled_rules

    def replace(self, **changes: Any) -> "LintConfig":
        """Return a copy with the given attributes replaced; options are re-checked."""
        return dataclasses.replace(self, **changes)

    def to_mapping(self) -> Dict[str, Any]:
        """
        Return the configuration as a camelCase mapping.

        The mapping round-trips through config_from_mapping and is what the
        show-config command dumps. Unset options (None) are omitted.
        """
        data: Dict[str, Any] = {}
        for key, attr in _FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, Severity):
                value = value.value
            elif isinstance(value, frozenset):
                value = sorted(value)
            elif isinstance(value, tuple):
                value = list(value)
            elif attr == "severity_overrides":
                value = {rule_id: sev.value for rule_id, sev in sorted(value.items())}
            elif isinstance(value, dict):
                value = dict(value)
            data[key] = value
        return data


def _schema_error_field(error) -> str:
    """Name the configuration field a jsonschema error points at."""
    if error.absolute_path:
        return ".".join(str(part) for part in error.absolute_path)
    return "config"


def validate_config_mapping(data: Any) -> None:
    """
    Validate a raw configuration mapping against CONFIG_SCHEMA.

    Args:
        data: Parsed configuration (usually from YAML)

    Raises:
        ConfigError: For the first schema error, ordered by field path
    """
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        first = errors[0]
        raise ConfigError(first.message, field=_schema_error_field(first))


def config_from_mapping(data: Optional[Dict[str, Any]]) -> LintConfig:
    """
    Build a LintConfig from a camelCase mapping.

    Missing keys keep their defaults. An empty or None mapping yields the
    default configuration.

    Raises:
        ConfigError: If the mapping violates the schema or holds contradictory options
    """
    if data is None:
        return LintConfig()
    validate_config_mapping(data)

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        attr = _FIELD_NAMES[key]
        if attr == "fail_severity":
            value = Severity.parse(value)
        elif attr == "severity_overrides":
            value = {rule_id: Severity.parse(sev) for rule_id, sev in value.items()}
        elif attr == "enabled_rules":
            value = frozenset(value)
        elif attr == "responsibility_prefix_map":
            value = dict(value)
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[attr] = value
    return LintConfig(**kwargs)


def load_config(config_path: Optional[Path] = None) -> LintConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file, or None for the defaults

    Returns:
        Validated LintConfig

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, is not a
            mapping, or fails validation
    """
    if config_path is None:
        return LintConfig()

    try:
        content = Path(config_path).read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}", field="config")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {config_path}: {e}", field="config")

    if data is None:
        return LintConfig()
    if not isinstance(data, dict):
        raise ConfigError(
            f"{config_path} must contain a mapping, got {type(data).__name__}", field="config"
        )
    return config_from_mapping(data)
