"""JSON serialization/deserialization for vsyc node sequences.

This module converts between tokenized `Node` lists and plain Python
dict/list structures suitable for JSON encoding. Only the tokenized text
is written: substitution state (`value` drift, bound addresses) is not.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .nodes import Node, NODE_KINDS, TOP_LEVEL


def node_to_obj(node: Node) -> Dict[str, Any]:
    return {"kind": node.kind, "value": node.source, "parent": node.parent}


def node_from_obj(o: Dict[str, Any]) -> Node:
    kind = o["kind"]
    if kind not in NODE_KINDS:
        raise ValueError(f"unknown node kind {kind!r}")
    value = o.get("value", "")
    return Node(kind, value, o.get("parent", TOP_LEVEL), source=value)


def nodes_to_obj(nodes: List[Node]) -> Dict[str, Any]:
    return {"type": "Module", "nodes": [node_to_obj(n) for n in nodes]}


def nodes_from_obj(o: Dict[str, Any]) -> List[Node]:
    if o.get("type") != "Module":
        raise ValueError("not a vsyc token dump")
    nodes = [node_from_obj(n) for n in o["nodes"]]
    for i, node in enumerate(nodes):
        if node.parent != TOP_LEVEL and not 0 <= node.parent < i:
            raise ValueError(f"node {i} has invalid parent index {node.parent}")
    return nodes
