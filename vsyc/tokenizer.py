"""Tokenizer for the vsyc scripting language.

The tokenizer is a single pass, character level state machine. It does
not build a tree: it emits a flat list of `Node` objects in source order
and records nesting through each node's `parent` index.

Rules:

* `@` starts a keyword node. The keyword ends at the next space, at a
  line break, or at the next structural character.
* `"` toggles string mode. Inside a string every character is literal
  text except the closing quote.
* `{` and `(` open a block or paren node; `}` and `)` close the nearest
  open bracket of the same kind.
* Newlines, tabs, carriage returns and vertical tabs never become part
  of a node value.
* Any other character is appended to the open string, else the open
  keyword, else the innermost open bracket. Outside all of those,
  non-space characters collect into a top-level `other` node.
"""

from __future__ import annotations

from typing import List, Optional

from .nodes import (
    Node, KEYWORD, STRING, BLOCK, PAREN, OTHER, TOP_LEVEL, children,
)

IGNORED = '\n\t\r\v'
OPENERS = {'{': BLOCK, '(': PAREN}
CLOSERS = {'}': BLOCK, ')': PAREN}


def tokenize(source: str) -> List[Node]:
    """Convert source text into a flat node sequence."""
    nodes: List[Node] = []
    open_brackets: List[int] = []
    in_string = False
    in_keyword = False
    string_node: Optional[Node] = None
    keyword_node: Optional[Node] = None
    other_node: Optional[Node] = None

    def create(kind: str) -> Node:
        parent = open_brackets[-1] if open_brackets else TOP_LEVEL
        node = Node(kind, parent=parent)
        nodes.append(node)
        return node

    for c in source:
        if c in IGNORED:
            if not in_string:
                in_keyword = False
                other_node = None
            continue

        if c == '"':
            in_string = not in_string
            if in_string:
                in_keyword = False
                other_node = None
                string_node = create(STRING)
            continue

        if in_string:
            string_node.value += c
            continue

        if c == '@':
            in_keyword = True
            other_node = None
            keyword_node = create(KEYWORD)
            continue

        if c in OPENERS:
            in_keyword = False
            other_node = None
            create(OPENERS[c])
            open_brackets.append(len(nodes) - 1)
            continue

        if c in CLOSERS:
            in_keyword = False
            other_node = None
            kind = CLOSERS[c]
            # unmatched closers are dropped
            for depth in range(len(open_brackets) - 1, -1, -1):
                if nodes[open_brackets[depth]].kind == kind:
                    del open_brackets[depth:]
                    break
            continue

        if in_keyword:
            if c == ' ':
                in_keyword = False
            else:
                keyword_node.value += c
            continue

        if open_brackets:
            nodes[open_brackets[-1]].value += c
            continue

        if c == ' ':
            other_node = None
            continue
        if other_node is None:
            other_node = create(OTHER)
        other_node.value += c

    for node in nodes:
        node.source = node.value
    return nodes


def render_nodes(nodes: List[Node], scope: int = TOP_LEVEL) -> str:
    """Render a node sequence back to source text.

    The output re-tokenizes to the same node kinds and parent indices.
    Text a bracket holds directly is emitted before its nested nodes.
    """
    parts: List[str] = []
    for i, node in children(nodes, scope):
        if node.kind == KEYWORD:
            parts.append('@' + node.value)
        elif node.kind == STRING:
            parts.append('"' + node.value + '"')
        elif node.kind in (BLOCK, PAREN):
            opener, closer = ('{', '}') if node.kind == BLOCK else ('(', ')')
            inner = [p for p in (node.value.strip(), render_nodes(nodes, i)) if p]
            parts.append(opener + ' '.join(inner) + closer)
        else:
            parts.append(node.value)
    return ' '.join(parts)
