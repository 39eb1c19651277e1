"""
Declaration Model - normalized, typed view of one source file.

This module converts a raw syntax tree (SyntaxNode, supplied by any parser that
honours the contract below) into a SourceFile: an ordered tuple of Declaration
records with order indices, shallow type tags and visibility.

Parser contract:
- Every node carries a kind keyword, an identifier, optional type-annotation
  text and a 1-based source line span
- Nested members are listed in the parent's children, in any order

Type tags are a syntactic heuristic, not type resolution: annotations are
matched textually against configured spellings, so types reached through a
typealias (e.g. `typealias Flag = Bool`) are under-tagged as Other.
"""

import itertools
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from convention_guard.errors import ModelError
from convention_guard.lint_config import LintConfig


logger = logging.getLogger(__name__)


class DeclarationKind(Enum):
    ENVIRONMENT_BINDING = "environment-binding"
    STORED_PROPERTY = "stored-property"
    COMPUTED_PROPERTY = "computed-property"
    INITIALIZER = "initializer"
    BODY_ENTRY = "body-entry"
    VIEW_BUILDER = "view-builder"
    EXTENSION_BLOCK = "extension-block"
    TYPE_BLOCK = "type-block"
    METHOD = "method"
    ENUM_CASE = "enum-case"


class TypeTag(Enum):
    BOOL = "Bool"
    SEQUENCE = "Sequence"
    CONTENT_MODEL = "Content-model"
    ACTION_PAYLOAD = "Action-payload"
    OTHER = "Other"


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


CONTAINER_KINDS = frozenset({DeclarationKind.TYPE_BLOCK, DeclarationKind.EXTENSION_BLOCK})
PROPERTY_KINDS = frozenset({DeclarationKind.STORED_PROPERTY, DeclarationKind.COMPUTED_PROPERTY})

TYPE_KEYWORDS = frozenset({"struct", "class", "enum", "actor", "protocol"})
PRIVATE_MODIFIERS = frozenset({"private", "fileprivate"})
# Raw kinds without a counterpart in the model; skipped during normalization.
IGNORED_KEYWORDS = frozenset({"typealias", "subscript", "associatedtype", "import", "macro"})


@dataclass
class SyntaxNode:
    """
    One member of the raw syntax tree handed over by a parser.

    Attributes:
        kind: Raw declaration keyword ("struct", "var", "func", "case", ...) or "file" for the root
        name: Identifier text
        start_line: First line of the declaration (1-based)
        end_line: Last line of the declaration (1-based)
        type_text: Type annotation text, if any
        initializer_text: Text after "=" on a property, if any
        attributes: Attributes such as "@State" or "@Environment(\\.dismiss)"
        modifiers: Modifiers such as "private" or "static"
        inherits: Inherited types / protocol conformances
        labels: Associated-value labels of an enum case ("_" for unlabeled values)
        has_accessor_body: True if a property has a getter body (computed)
        context_tag: Explicit UI-state context ("loading" or "visibility")
        children: Nested members
    """
    kind: str
    name: str
    start_line: Optional[int]
    end_line: Optional[int]
    type_text: Optional[str] = None
    initializer_text: Optional[str] = None
    attributes: List[str] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    inherits: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    has_accessor_body: bool = False
    context_tag: Optional[str] = None
    children: List["SyntaxNode"] = field(default_factory=list)


@dataclass(frozen=True)
class Declaration:
    """
    A normalized declaration.

    Attributes:
        kind: Normalized declaration kind
        name: Identifier text
        type_tag: Shallow type tag (see module docstring for the heuristic)
        visibility: Public or private
        start_line: First line (1-based)
        end_line: Last line (1-based)
        order_index: Pre-order position in the file, increasing with source position
        type_text: Original type annotation text
        attributes: Attribute names without arguments, e.g. "@State"
        inherits: Inherited types of a type-block or extension-block
        labels: Associated-value labels of an enum case
        context_tag: Explicit UI-state context tag, if annotated
        children: Members of a type-block or extension-block
    """
    kind: DeclarationKind
    name: str
    type_tag: TypeTag
    visibility: Visibility
    start_line: int
    end_line: int
    order_index: int
    type_text: Optional[str] = None
    attributes: Tuple[str, ...] = ()
    inherits: Tuple[str, ...] = ()
    labels: Tuple[str, ...] = ()
    context_tag: Optional[str] = None
    children: Tuple["Declaration", ...] = ()

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    def describe(self) -> str:
        """Short human-readable description, e.g. "computed-property 'title' (line 5)"."""
        return f"{self.kind.value} '{self.name}' (line {self.start_line})"


@dataclass(frozen=True)
class SourceFile:
    """
    A normalized source file.

    Attributes:
        path: File identifier as given to the engine
        line_count: Total number of lines
        declarations: Top-level declarations in source order
    """
    path: str
    line_count: int
    declarations: Tuple[Declaration, ...]

    def walk(self) -> Iterator[Declaration]:
        """Yield every declaration, parents before their members."""
        stack = list(reversed(self.declarations))
        while stack:
            decl = stack.pop()
            yield decl
            stack.extend(reversed(decl.children))

    def iter_member_sequences(self) -> Iterator[Tuple[Optional[Declaration], Tuple[Declaration, ...]]]:
        """
        Yield (container, members) pairs.

        The file's own top-level sequence comes first with container None,
        followed by every type-block and extension-block in source order.
        """
        yield None, self.declarations
        for decl in self.walk():
            if decl.is_container:
                yield decl, decl.children

    def kinds_present(self) -> frozenset:
        return frozenset(decl.kind for decl in self.walk())


# ============================================================================
# Type tagging
# ============================================================================

_WRAPPER_RE = re.compile(r'^(?:Binding|Published|State|Optional)<(.+)>$')
_ARRAY_SUGAR_RE = re.compile(r'^\[[^:\]]+\]$')
_BOOL_LITERAL_RE = re.compile(r'^(?:true|false)\b')


def _unwrap_type(type_text: str) -> str:
    """Strip optional markers and single-argument property-wrapper generics."""
    text = type_text.strip()
    while True:
        stripped = text.rstrip("?!").strip()
        match = _WRAPPER_RE.match(stripped)
        if match:
            text = match.group(1).strip()
            continue
        return stripped


def infer_type_tag(node: SyntaxNode, config: LintConfig, in_action_enum: bool = False) -> TypeTag:
    """
    Infer a shallow type tag from annotation text.

    Args:
        node: Raw syntax node
        config: Configuration holding the recognized type spellings
        in_action_enum: True if the node is a case of an Action enum

    Returns:
        TypeTag for the node; TypeTag.OTHER when nothing matches
    """
    if node.kind == "case":
        return TypeTag.ACTION_PAYLOAD if node.labels and in_action_enum else TypeTag.OTHER

    if not node.type_text:
        if node.initializer_text and _BOOL_LITERAL_RE.match(node.initializer_text.strip()):
            return TypeTag.BOOL
        return TypeTag.OTHER

    base = _unwrap_type(node.type_text)
    if base in config.boolean_type_names:
        return TypeTag.BOOL
    if _ARRAY_SUGAR_RE.match(base):
        return TypeTag.SEQUENCE
    generic_head = base.split("<", 1)[0].strip()
    if "<" in base and generic_head in config.sequence_type_names:
        return TypeTag.SEQUENCE
    if any(base.endswith(suffix) for suffix in config.content_model_type_suffixes):
        return TypeTag.CONTENT_MODEL
    if any(base.endswith(suffix) for suffix in config.action_enum_suffixes):
        return TypeTag.ACTION_PAYLOAD
    return TypeTag.OTHER


def attribute_name(attribute: str) -> str:
    """Return an attribute without its argument list: "@Environment(\\.dismiss)" -> "@Environment"."""
    return attribute.split("(", 1)[0].strip()


def is_action_enum(name: str, config: LintConfig) -> bool:
    return any(name.endswith(suffix) and name != suffix for suffix in config.action_enum_suffixes)


# ============================================================================
# Normalization
# ============================================================================

def _classify(node: SyntaxNode, attributes: Tuple[str, ...], config: LintConfig) -> Optional[DeclarationKind]:
    """Map a raw node to a DeclarationKind, or None if the model has no counterpart."""
    kind = node.kind
    if kind in TYPE_KEYWORDS:
        return DeclarationKind.TYPE_BLOCK
    if kind == "extension":
        return DeclarationKind.EXTENSION_BLOCK
    if kind == "init":
        return DeclarationKind.INITIALIZER
    if kind == "case":
        return DeclarationKind.ENUM_CASE
    if kind in ("func", "deinit"):
        if "@ViewBuilder" in attributes:
            return DeclarationKind.VIEW_BUILDER
        return DeclarationKind.METHOD
    if kind in ("var", "let"):
        if any(attr in config.environment_attributes for attr in attributes):
            return DeclarationKind.ENVIRONMENT_BINDING
        if "@ViewBuilder" in attributes:
            return DeclarationKind.VIEW_BUILDER
        if node.has_accessor_body:
            if node.name == "body":
                return DeclarationKind.BODY_ENTRY
            return DeclarationKind.COMPUTED_PROPERTY
        return DeclarationKind.STORED_PROPERTY
    return None


def _is_line(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_span(node: SyntaxNode, line_count: int) -> Tuple[int, int]:
    """Validate a node's source span and return it as (start, end)."""
    label = f"{node.kind} '{node.name}'" if node.name else f"{node.kind} declaration"
    start = node.start_line
    if not _is_line(start) or start < 1:
        raise ModelError(f"{label} has no resolvable source span (start line {start!r})")
    end = node.end_line if node.end_line is not None else start
    if not _is_line(end):
        raise ModelError(f"{label} has no resolvable source span (end line {end!r})", line=start)
    if end < start:
        raise ModelError(f"{label} ends (line {end}) before it starts (line {start})", line=start)
    if end > line_count:
        raise ModelError(
            f"{label} ends at line {end} but the file has {line_count} lines", line=start
        )
    return start, end


def _normalize(
    node: SyntaxNode,
    line_count: int,
    config: LintConfig,
    counter: Iterator[int],
    in_action_enum: bool,
) -> Optional[Declaration]:
    if node.kind in IGNORED_KEYWORDS:
        logger.debug("skipping %s '%s' at line %s", node.kind, node.name, node.start_line)
        return None
    attributes = tuple(attribute_name(attr) for attr in node.attributes)
    kind = _classify(node, attributes, config)
    if kind is None:
        logger.debug("skipping unknown kind %s '%s'", node.kind, node.name)
        return None
    if not node.name:
        raise ModelError(f"{node.kind} declaration at line {node.start_line} has no name",
                         line=node.start_line if _is_line(node.start_line) else None)

    start, end = _check_span(node, line_count)
    order_index = next(counter)

    children: Tuple[Declaration, ...] = ()
    if kind in CONTAINER_KINDS:
        child_in_action = node.kind == "enum" and is_action_enum(node.name, config)
        members = []
        for child in sorted(node.children, key=_start_key):
            decl = _normalize(child, line_count, config, counter, child_in_action)
            if decl is not None:
                members.append(decl)
        children = tuple(members)

    visibility = Visibility.PRIVATE if PRIVATE_MODIFIERS & set(node.modifiers) else Visibility.PUBLIC
    return Declaration(
        kind=kind,
        name=node.name,
        type_tag=infer_type_tag(node, config, in_action_enum),
        visibility=visibility,
        start_line=start,
        end_line=end,
        order_index=order_index,
        type_text=node.type_text,
        attributes=attributes,
        inherits=tuple(node.inherits),
        labels=tuple(node.labels),
        context_tag=node.context_tag,
        children=children,
    )


def _start_key(node: SyntaxNode) -> int:
    # Nodes without a usable span sort first so the span check reports them.
    return node.start_line if _is_line(node.start_line) else 0


def build_source_file(path: str, line_count: int, root: SyntaxNode, config: LintConfig) -> SourceFile:
    """
    Normalize a syntax tree into a SourceFile.

    Args:
        path: File identifier
        line_count: Total number of lines in the file
        root: Root syntax node; its children are the file's top-level members
        config: Configuration holding type spellings and environment attributes

    Returns:
        SourceFile with order indices assigned in source order

    Raises:
        ModelError: If a member lacks a usable span or name, or a span
            exceeds the file's line count
    """
    if line_count < 0:
        raise ModelError(f"negative line count for {path}: {line_count}")

    counter = itertools.count()
    declarations = []
    for child in sorted(root.children, key=_start_key):
        decl = _normalize(child, line_count, config, counter, in_action_enum=False)
        if decl is not None:
            declarations.append(decl)

    return SourceFile(path=path, line_count=line_count, declarations=tuple(declarations))
