"""Node definitions for tokenized vsyc source.

A tokenized module is a flat list of `Node` objects. There is no nested
tree: every node carries `parent`, the index of the block or paren node
that encloses it, or `TOP_LEVEL` when it is not nested. The query helpers
at the bottom of this module are the only way the interpreter navigates
a node sequence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

KEYWORD = 'keyword'
STRING = 'string'
BLOCK = 'block'
PAREN = 'paren'
NUMBER = 'number'
ARRAY = 'array'
OTHER = 'other'

NODE_KINDS = (KEYWORD, STRING, BLOCK, PAREN, NUMBER, ARRAY, OTHER)

# Parent index of nodes that are not inside any block or paren.
TOP_LEVEL = -1

Address = Union[int, str]


@dataclass
class Node:
    kind: str
    value: str = ''
    parent: int = TOP_LEVEL
    address: Optional[Address] = None
    # text as tokenized; `value` drifts from it as substitutions happen
    source: str = field(default='', compare=False)

    def reset(self) -> None:
        self.value = self.source
        self.address = None


def operands(nodes: List[Node], index: int) -> Iterator[Tuple[int, Node]]:
    """Yield the operand nodes of the statement whose keyword is at `index`.

    Operands are the following siblings (same parent) up to the next
    sibling keyword. Nodes nested inside an operand block are skipped.
    """
    scope = nodes[index].parent
    for i in range(index + 1, len(nodes)):
        node = nodes[i]
        if node.parent != scope:
            continue
        if node.kind == KEYWORD:
            return
        yield i, node


def operand_of_kind(nodes: List[Node], index: int, kind: str, after: Optional[int] = None) -> Optional[Tuple[int, Node]]:
    """Return the first operand of `kind`, optionally only past index `after`."""
    for i, node in operands(nodes, index):
        if after is not None and i <= after:
            continue
        if node.kind == kind:
            return i, node
    return None


def children(nodes: List[Node], scope: int) -> Iterator[Tuple[int, Node]]:
    """Yield every node whose parent index is `scope`, in source order."""
    for i, node in enumerate(nodes):
        if node.parent == scope:
            yield i, node


def statements(nodes: List[Node], scope: int) -> Iterator[Tuple[int, Node]]:
    for i, node in children(nodes, scope):
        if node.kind == KEYWORD:
            yield i, node


def subtree(nodes: List[Node], root: int) -> List[int]:
    """Indices of every node nested, at any depth, under node `root`."""
    inside = {root}
    found: List[int] = []
    for i in range(root + 1, len(nodes)):
        if nodes[i].parent in inside:
            inside.add(i)
            found.append(i)
    return found
