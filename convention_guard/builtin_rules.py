"""
Built-in convention rules.

Rules:
- file-length: a source file may not exceed maxFileLines lines
- declaration-ordering: members follow the canonical kind order of their container
- boolean-naming: loading-class Booleans drop the `is` prefix, visibility-class Booleans use `show`
- content-model-naming: properties holding a content model are named `content` / `...Content`
- action-case-naming: Action enum cases carry no redundant role suffix and no noisy labels
- grouping-responsibility: an extension without a conformance groups a single responsibility
"""

import re
from typing import Dict, Iterator, List, Optional, Sequence

from convention_guard.declaration_model import (
    PROPERTY_KINDS,
    Declaration,
    DeclarationKind,
    TypeTag,
)
from convention_guard.lint_config import LintConfig
from convention_guard.rule_registry import (
    Category,
    ConventionRule,
    RuleContext,
    RuleRegistry,
    Scope,
    always,
    kinds_present,
)
from convention_guard.violations import Severity, Violation


K = DeclarationKind

VIEW_ORDER = (
    K.ENVIRONMENT_BINDING,
    K.STORED_PROPERTY,
    K.COMPUTED_PROPERTY,
    K.INITIALIZER,
    K.BODY_ENTRY,
    K.VIEW_BUILDER,
)

VIEW_MODEL_ORDER = (
    K.ENVIRONMENT_BINDING,
    K.STORED_PROPERTY,
    K.INITIALIZER,
    K.COMPUTED_PROPERTY,
)

LOADING = "loading"
VISIBILITY = "visibility"

_CAMEL_WORD_RE = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])")


# ============================================================================
# Naming helpers
# ============================================================================

def split_camel_case(name: str) -> List[str]:
    """
    Split an identifier into camel-case words.

    Example:
        >>> split_camel_case("showAddressBanner")
        ['show', 'Address', 'Banner']
        >>> split_camel_case("loadURLSession")
        ['load', 'URL', 'Session']
    """
    return _CAMEL_WORD_RE.findall(name)


def has_word_prefix(name: str, prefix: str) -> bool:
    """True if `name` starts with `prefix` followed by an upper-case letter (`isLoading`, not `issue`)."""
    return (
        len(name) > len(prefix)
        and name.startswith(prefix)
        and name[len(prefix)].isupper()
    )


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def _upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def _strip_word_prefix(name: str, prefixes: Sequence[str]) -> str:
    for prefix in prefixes:
        if has_word_prefix(name, prefix):
            return name[len(prefix):]
    return name


def boolean_context(decl: Declaration, config: LintConfig) -> Optional[str]:
    """
    Classify a Boolean property as loading-class or visibility-class.

    An explicit context tag wins. Otherwise the name, without an `is` or
    `show` prefix, is matched case-insensitively against the configured
    name suffixes, UI-state names first.

    Returns:
        "loading", "visibility", or None when the property is neither
    """
    if decl.context_tag:
        return decl.context_tag
    core = _strip_word_prefix(decl.name, ("is", "show")).lower()
    if any(core.endswith(name.lower()) for name in config.boolean_ui_state_names):
        return LOADING
    if any(core.endswith(name.lower()) for name in config.boolean_visibility_names):
        return VISIBILITY
    return None


def responsibility_of(name: str, prefix_map: Dict[str, str]) -> Optional[str]:
    """Map a member name to a responsibility label by its longest matching prefix word."""
    for prefix in sorted(prefix_map, key=len, reverse=True):
        if name == prefix or has_word_prefix(name, prefix):
            return prefix_map[prefix]
    return None


def is_view_model(container: Optional[Declaration], config: LintConfig) -> bool:
    if container is None:
        return False
    if any(container.name.endswith(suffix) for suffix in config.view_model_suffixes):
        return True
    if "ObservableObject" in container.inherits:
        return True
    return "@Observable" in container.attributes


def _action_role(container: Optional[Declaration], config: LintConfig) -> Optional[str]:
    if container is None or container.kind is not K.TYPE_BLOCK:
        return None
    for suffix in config.action_enum_suffixes:
        if container.name.endswith(suffix) and container.name != suffix:
            return suffix
    return None


# ============================================================================
# Check functions
# ============================================================================

def check_file_length(ctx: RuleContext) -> Iterator[Violation]:
    limit = ctx.config.max_file_lines
    actual = ctx.source.line_count
    if actual > limit:
        yield ctx.violation(
            1,
            f"file has {actual} lines, exceeding the limit of {limit} by {actual - limit}",
        )


def check_declaration_ordering(ctx: RuleContext) -> Iterator[Violation]:
    """
    Report members declared after a member of a later category.

    Each misplaced member yields one violation at its own line, naming the
    earliest preceding member of a later category. Kinds outside the
    container's order (methods, nested types, enum cases) are ignored.
    """
    order = VIEW_MODEL_ORDER if is_view_model(ctx.container, ctx.config) else VIEW_ORDER
    rank = {kind: index for index, kind in enumerate(order)}

    seen: List[Declaration] = []
    for decl in sorted(ctx.members, key=lambda d: d.order_index):
        position = rank.get(decl.kind)
        if position is None:
            continue
        leader = next((prior for prior in seen if rank[prior.kind] > position), None)
        if leader is not None:
            yield ctx.violation(
                decl.start_line,
                f"{decl.describe()} is declared after {leader.describe()}; "
                f"expected {decl.kind.value} before {leader.kind.value}",
                end_line=decl.end_line,
            )
        seen.append(decl)


def check_boolean_naming(ctx: RuleContext) -> Iterator[Violation]:
    for decl in ctx.members:
        if decl.kind not in PROPERTY_KINDS or decl.type_tag is not TypeTag.BOOL:
            continue
        context = boolean_context(decl, ctx.config)
        if context == LOADING and has_word_prefix(decl.name, "is"):
            suggestion = _lower_first(decl.name[2:])
            yield ctx.violation(
                decl.start_line,
                f"Boolean '{decl.name}' tracks a loading state and must not use an 'is' prefix "
                f"(rename to '{suggestion}')",
            )
        elif context == VISIBILITY and not has_word_prefix(decl.name, "show"):
            suggestion = "show" + _upper_first(_strip_word_prefix(decl.name, ("is",)))
            yield ctx.violation(
                decl.start_line,
                f"Boolean '{decl.name}' controls visibility and must use a 'show' prefix "
                f"(rename to '{suggestion}')",
            )


def check_content_model_naming(ctx: RuleContext) -> Iterator[Violation]:
    suffix = ctx.config.content_name_suffix
    bare = _lower_first(suffix)
    for decl in ctx.members:
        if decl.kind not in PROPERTY_KINDS or decl.type_tag is not TypeTag.CONTENT_MODEL:
            continue
        if decl.name == bare or decl.name.endswith(suffix):
            continue
        yield ctx.violation(
            decl.start_line,
            f"property '{decl.name}' holds a content model ({decl.type_text}) "
            f"and must be named '{bare}' or end with '{suffix}'",
        )


def check_action_case_naming(ctx: RuleContext) -> Iterator[Violation]:
    role = _action_role(ctx.container, ctx.config)
    if role is None:
        return
    role_words = split_camel_case(role)
    for decl in ctx.members:
        if decl.kind is not K.ENUM_CASE:
            continue
        case_words = split_camel_case(decl.name)
        if len(case_words) > len(role_words) and case_words[-len(role_words):] == role_words:
            yield ctx.violation(
                decl.start_line,
                f"case '{decl.name}' of '{ctx.container.name}' repeats the enum's role "
                f"suffix '{role}'",
            )
        if decl.type_tag is not TypeTag.ACTION_PAYLOAD or not case_words:
            continue
        noun = case_words[-1].lower()
        for label in decl.labels:
            label_words = split_camel_case(label)
            if label == "_" or not label_words:
                continue
            if label_words[-1].lower() == noun:
                yield ctx.violation(
                    decl.start_line,
                    f"case '{decl.name}' has a noisy label '{label}' repeating "
                    f"'{case_words[-1]}' from the case name",
                )


def check_grouping_responsibility(ctx: RuleContext) -> Iterator[Violation]:
    container = ctx.container
    if container is None or container.kind is not K.EXTENSION_BLOCK:
        return
    if container.inherits:
        # a conformance ties the members together
        return

    groups: Dict[str, List[str]] = {}
    for decl in ctx.members:
        if decl.kind not in (K.METHOD, K.VIEW_BUILDER, K.COMPUTED_PROPERTY):
            continue
        label = responsibility_of(decl.name, ctx.config.responsibility_prefix_map)
        if label is not None:
            groups.setdefault(label, []).append(decl.name)

    if len(groups) >= 2:
        detail = "; ".join(f"{label}: {', '.join(names)}" for label, names in sorted(groups.items()))
        yield ctx.violation(
            container.start_line,
            f"extension '{container.name}' mixes {len(groups)} responsibilities ({detail}); "
            f"split it into one extension per responsibility",
            end_line=container.end_line,
        )


# ============================================================================
# Rule definitions
# ============================================================================

BUILTIN_RULES = (
    ConventionRule(
        id="file-length",
        category=Category.FILE_LENGTH,
        description="Source files may not exceed maxFileLines lines",
        applies=always,
        check=check_file_length,
        severity=Severity.ERROR,
        scope=Scope.FILE,
    ),
    ConventionRule(
        id="declaration-ordering",
        category=Category.DECLARATION_ORDERING,
        description="Members follow environment, stored, computed, init, body, view-builder order "
                    "(view-models: environment, stored, init, computed)",
        applies=kinds_present(*VIEW_ORDER),
        check=check_declaration_ordering,
        severity=Severity.ERROR,
    ),
    ConventionRule(
        id="boolean-naming",
        category=Category.NAMING_PATTERN,
        description="Loading Booleans have no 'is' prefix; visibility Booleans start with 'show'",
        applies=kinds_present(K.STORED_PROPERTY, K.COMPUTED_PROPERTY),
        check=check_boolean_naming,
        severity=Severity.ERROR,
    ),
    ConventionRule(
        id="content-model-naming",
        category=Category.NAMING_PATTERN,
        description="Properties holding a content model are named 'content' or end with 'Content'",
        applies=kinds_present(K.STORED_PROPERTY, K.COMPUTED_PROPERTY),
        check=check_content_model_naming,
        severity=Severity.WARNING,
    ),
    ConventionRule(
        id="action-case-naming",
        category=Category.NAMING_PATTERN,
        description="Action cases repeat neither the enum's role suffix nor their own noun in labels",
        applies=kinds_present(K.ENUM_CASE),
        check=check_action_case_naming,
        severity=Severity.WARNING,
    ),
    ConventionRule(
        id="grouping-responsibility",
        category=Category.GROUPING_RESPONSIBILITY,
        description="Extensions without a conformance group members of a single responsibility",
        applies=kinds_present(K.EXTENSION_BLOCK),
        check=check_grouping_responsibility,
        severity=Severity.WARNING,
    ),
)


def default_registry() -> RuleRegistry:
    """Return a new registry holding every built-in rule."""
    return RuleRegistry(BUILTIN_RULES)
