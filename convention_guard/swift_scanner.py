#!/usr/bin/env python3
"""
Swift Declaration Scanner

This module turns Swift source text into the SyntaxNode tree consumed by the
Declaration Model. It is a line- and brace-based heuristic, not a grammar:
string literals and comments are blanked out, brace depth is tracked, and
declarations are recognized only at the member depth of the innermost
struct/class/enum/actor/protocol/extension body.

Key Features:
- Attribute-only lines (e.g. `@ViewBuilder`) apply to the next declaration
- Multi-line signatures: a `{` before the parameter list closes opens the body
- `// convention: ui-state=loading` (or `=visibility`) on a declaration line,
  or on the line above it, sets an explicit context tag
- Enum cases declared together (`case a, b(label: T)`) become separate nodes

Known limits: bodies whose `{` starts on a later line than the signature
are not tracked, and raw strings (`#"..."#`) are treated as plain strings.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from convention_guard.declaration_model import SyntaxNode, TYPE_KEYWORDS
from convention_guard.errors import ModelError


_MODIFIER = (
    r"(?:(?:public|private|fileprivate|internal|open|package)(?:\(set\))?"
    r"|static|class(?=\s+(?:var|let|func|subscript)\b)|final|override|lazy|weak"
    r"|unowned(?:\((?:safe|unsafe)\))?|mutating|nonmutating|nonisolated"
    r"|convenience|required|dynamic|indirect|optional)"
)

_DECL_RE = re.compile(
    rf"^(?P<mods>(?:{_MODIFIER}\s+)*)"
    r"(?P<kw>struct|class|enum|actor|protocol|extension|func|init|deinit|var|let|case|typealias|subscript)"
    r"(?![\w])(?P<rest>.*)$"
)

_ATTRIBUTE_RE = re.compile(r"^@\w+(?:\.\w+)*(?:\((?:[^()]|\([^()]*\))*\))?\s*")
_DIRECTIVE_RE = re.compile(r"//\s*convention:\s*ui-state\s*=\s*(loading|visibility)\b")

_TYPE_NAME_RE = re.compile(r"^\s+(?P<name>[A-Za-z_][\w.]*)")
_FUNC_NAME_RE = re.compile(r"^\s+(?P<name>`[^`]+`|[^\s(<]+)")
_PROPERTY_RE = re.compile(
    r"^\s+(?P<name>`[^`]+`|[A-Za-z_]\w*)\s*"
    r"(?::\s*(?P<type>[^={]+?))?\s*"
    r"(?:=\s*(?P<value>[^{]*?))?\s*"
    r"(?P<brace>\{.*)?$"
)
_CASE_ITEM_RE = re.compile(r"^\s*(?P<name>`[^`]+`|[A-Za-z_]\w*)\s*(?:\((?P<assoc>.*)\))?\s*(?:=.*)?$")
_LABEL_RE = re.compile(r"^\s*(?P<label>[A-Za-z_]\w*)(?:\s+[A-Za-z_]\w*)?\s*:")
_OBSERVER_RE = re.compile(r"^\{\s*(?:willSet|didSet)\b")

_OPENERS = {"(": ")", "[": "]", "<": ">"}
_CLOSERS = {")", "]", ">"}


@dataclass
class _LexState:
    block_depth: int = 0
    in_multiline_string: bool = False


@dataclass
class _Container:
    node: SyntaxNode
    member_depth: int


@dataclass
class _OpenNode:
    node: SyntaxNode
    depth: int
    is_container: bool


@dataclass
class _Signature:
    node: SyntaxNode
    depth: int
    balance: int


def strip_code(line: str, state: _LexState) -> str:
    """
    Remove comments and string contents from one line.

    String literals are kept as empty `""` so that initializer text still
    shows a value was assigned. Block comments and multi-line strings carry
    over to the next line through `state`.
    """
    out: List[str] = []
    in_str = False
    escape = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < n else ""

        if state.in_multiline_string:
            if line.startswith('"""', i):
                state.in_multiline_string = False
                out.append('"')
                i += 3
            else:
                i += 1
            continue

        if state.block_depth:
            if ch == "*" and nxt == "/":
                state.block_depth -= 1
                i += 2
            elif ch == "/" and nxt == "*":
                state.block_depth += 1
                i += 2
            else:
                i += 1
            continue

        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
                out.append('"')
            i += 1
            continue

        if line.startswith('"""', i):
            state.in_multiline_string = True
            out.append('"')
            i += 3
            continue
        if ch == '"':
            in_str = True
            out.append('"')
            i += 1
            continue
        if ch == "/" and nxt == "/":
            break
        if ch == "/" and nxt == "*":
            state.block_depth += 1
            i += 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on `sep` outside of (), [] and <> nesting."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            # "->" is an arrow, not a closing angle bracket
            if not (ch == ">" and i > 0 and text[i - 1] == "-"):
                depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def _split_attributes(code: str) -> Tuple[List[str], str]:
    """Peel leading attributes off a line, returning (attributes, remainder)."""
    attributes = []
    rest = code
    while True:
        match = _ATTRIBUTE_RE.match(rest)
        if not match:
            return attributes, rest.strip()
        attributes.append(match.group(0).strip())
        rest = rest[match.end():]


def _paren_delta(code: str) -> int:
    return code.count("(") - code.count(")")


def _parse_inherits(rest: str) -> List[str]:
    """Parse `: A, B where ... {` following a type name (generic parameters already removed)."""
    head = rest.split("{", 1)[0]
    head = re.split(r"\bwhere\b", head, maxsplit=1)[0].strip()
    if not head.startswith(":"):
        return []
    return split_top_level(head[1:])


def _skip_generics(rest: str) -> str:
    """Drop a leading `<...>` generic parameter clause."""
    text = rest.lstrip()
    if not text.startswith("<"):
        return rest
    depth = 0
    for i, ch in enumerate(text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                return text[i + 1:]
    return ""


def _case_labels(assoc: Optional[str]) -> List[str]:
    if not assoc:
        return []
    labels = []
    for part in split_top_level(assoc):
        match = _LABEL_RE.match(part)
        labels.append(match.group("label") if match else "_")
    return labels


class SwiftScanner:
    """
    Heuristic Swift declaration scanner.

    Produces a root SyntaxNode of kind "file" whose children are the file's
    top-level declarations; type and extension bodies nest their members.
    """

    def scan(self, text: str) -> SyntaxNode:
        """
        Scan Swift source text.

        Args:
            text: Source text of one file

        Returns:
            Root SyntaxNode

        Raises:
            ModelError: On unbalanced braces, unterminated bodies, or an
                unterminated block comment or multi-line string

        Example:
            >>> root = SwiftScanner().scan("struct A {\\n    var x = 1\\n}\\n")
            >>> [child.name for child in root.children[0].children]
            ['x']
        """
        lines = text.splitlines()
        root = SyntaxNode(kind="file", name="", start_line=1, end_line=len(lines))

        state = _LexState()
        depth = 0
        containers = [_Container(root, member_depth=0)]
        open_nodes: List[_OpenNode] = []
        signature: Optional[_Signature] = None
        pending_attrs: List[str] = []
        pending_tag: Optional[str] = None

        for lineno, raw in enumerate(lines, start=1):
            in_comment = state.block_depth > 0 or state.in_multiline_string
            directive = None if in_comment else _DIRECTIVE_RE.search(raw)
            code = strip_code(raw, state)
            stripped = code.strip()

            if signature is not None:
                signature.balance += _paren_delta(code)
                if "{" in code:
                    self._open(signature.node, signature.depth, containers, open_nodes)
                    signature = None
                elif signature.balance <= 0:
                    signature.node.end_line = lineno
                    signature = None
            elif depth == containers[-1].member_depth:
                if not stripped:
                    if directive:
                        pending_tag = directive.group(1)
                    continue

                attrs, body = _split_attributes(stripped)
                pending_attrs.extend(attrs)
                if directive:
                    pending_tag = directive.group(1)

                if body:
                    nodes = self._match(body, lineno, containers[-1].node)
                    if not nodes:
                        pending_attrs, pending_tag = [], None
                    else:
                        for node in nodes:
                            node.attributes = list(pending_attrs)
                            node.context_tag = pending_tag
                        containers[-1].node.children.extend(nodes)
                        pending_attrs, pending_tag = [], None

                        primary = nodes[-1]
                        if "{" in body:
                            self._open(primary, depth, containers, open_nodes)
                        elif _paren_delta(body) > 0:
                            signature = _Signature(primary, depth, _paren_delta(body))

            for ch in code:
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth < 0:
                        raise ModelError(f"unbalanced closing brace at line {lineno}", line=lineno)
                    if open_nodes and open_nodes[-1].depth == depth:
                        closed = open_nodes.pop()
                        closed.node.end_line = lineno
                        if closed.is_container:
                            containers.pop()

        if state.block_depth:
            raise ModelError("unterminated block comment")
        if state.in_multiline_string:
            raise ModelError("unterminated multi-line string literal")
        if open_nodes:
            node = open_nodes[-1].node
            raise ModelError(
                f"unterminated {node.kind} '{node.name}' starting at line {node.start_line}",
                line=node.start_line,
            )
        if depth != 0:
            raise ModelError(f"unbalanced braces: {depth} left open at end of file")
        return root

    @staticmethod
    def _open(node: SyntaxNode, depth: int, containers: List[_Container], open_nodes: List[_OpenNode]) -> None:
        is_container = node.kind in TYPE_KEYWORDS or node.kind == "extension"
        open_nodes.append(_OpenNode(node, depth, is_container))
        if is_container:
            containers.append(_Container(node, member_depth=depth + 1))

    def _match(self, code: str, lineno: int, parent: SyntaxNode) -> List[SyntaxNode]:
        """Recognize a declaration at the start of `code`; returns [] when there is none."""
        match = _DECL_RE.match(code)
        if not match:
            return []
        modifiers = match.group("mods").split()
        keyword = match.group("kw")
        rest = match.group("rest")

        if keyword in TYPE_KEYWORDS or keyword == "extension":
            name_match = _TYPE_NAME_RE.match(rest)
            if not name_match:
                return []
            after_name = _skip_generics(rest[name_match.end():])
            return [SyntaxNode(
                kind=keyword,
                name=name_match.group("name"),
                start_line=lineno,
                end_line=lineno,
                modifiers=modifiers,
                inherits=_parse_inherits(after_name),
            )]

        if keyword in ("init", "deinit"):
            return [SyntaxNode(kind=keyword, name=keyword, start_line=lineno, end_line=lineno,
                               modifiers=modifiers)]

        if keyword == "func":
            name_match = _FUNC_NAME_RE.match(rest)
            if not name_match:
                return []
            return [SyntaxNode(kind="func", name=name_match.group("name").strip("`"),
                               start_line=lineno, end_line=lineno, modifiers=modifiers)]

        if keyword in ("var", "let"):
            prop = _PROPERTY_RE.match(rest)
            if not prop:
                return []
            brace = prop.group("brace")
            value = prop.group("value")
            has_accessor = bool(brace) and value is None and not _OBSERVER_RE.match(brace)
            type_text = prop.group("type")
            return [SyntaxNode(
                kind=keyword,
                name=prop.group("name").strip("`"),
                start_line=lineno,
                end_line=lineno,
                type_text=type_text.strip() if type_text else None,
                initializer_text=value.strip() if value is not None else None,
                modifiers=modifiers,
                has_accessor_body=has_accessor,
            )]

        if keyword == "case":
            if parent.kind != "enum":
                return []
            nodes = []
            for item in split_top_level(rest):
                item_match = _CASE_ITEM_RE.match(item)
                if not item_match:
                    continue
                nodes.append(SyntaxNode(
                    kind="case",
                    name=item_match.group("name").strip("`"),
                    start_line=lineno,
                    end_line=lineno,
                    modifiers=modifiers,
                    labels=_case_labels(item_match.group("assoc")),
                ))
            return nodes

        # typealias / subscript: recorded so the model can skip them explicitly
        name_match = _FUNC_NAME_RE.match(rest)
        name = name_match.group("name") if name_match else keyword
        return [SyntaxNode(kind=keyword, name=name, start_line=lineno, end_line=lineno,
                           modifiers=modifiers)]


# Global scanner instance for module-level functions
_scanner = SwiftScanner()


def scan_swift(text: str) -> SyntaxNode:
    """
    Scan Swift source text into a SyntaxNode tree (module-level function).

    Args:
        text: Source text of one file

    Returns:
        Root SyntaxNode of kind "file"
    """
    return _scanner.scan(text)


def count_lines(text: str) -> int:
    """Count source lines; a trailing newline does not start a new line."""
    return len(text.splitlines())


if __name__ == '__main__':
    # Example usage
    import sys
    from pathlib import Path

    if len(sys.argv) < 2:
        print("Usage: swift_scanner.py <file.swift>")
        sys.exit(1)

    def _dump(node: SyntaxNode, indent: int = 0) -> None:
        print(f"{'  ' * indent}{node.kind} {node.name} [{node.start_line}-{node.end_line}]")
        for child in node.children:
            _dump(child, indent + 1)

    try:
        _dump(scan_swift(Path(sys.argv[1]).read_text(encoding='utf-8')))
    except ModelError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
