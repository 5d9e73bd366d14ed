"""The tree store: every loaded module's node sequence, by module name."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .nodes import Address, Node


@dataclass
class ModuleTree:
    name: str
    nodes: List[Node]
    # set by @exportall
    exports: Optional[Tuple[Address, ...]] = None


class TreeStore:
    """Modules by name plus the `current` selector used during evaluation.

    `current` is a single shared cursor. Code that evaluates another
    module's nodes must go through `switch()`, which restores it on exit.
    """
    def __init__(self):
        self.modules: Dict[str, ModuleTree] = {}
        self.current: Optional[str] = None

    def __contains__(self, name: str) -> bool:
        return name in self.modules

    def add(self, name: str, nodes: List[Node]) -> ModuleTree:
        tree = ModuleTree(name, nodes)
        self.modules[name] = tree
        return tree

    def get(self, name: str) -> ModuleTree:
        return self.modules[name]

    @property
    def tree(self) -> ModuleTree:
        if self.current is None:
            raise LookupError('no module is being evaluated')
        return self.modules[self.current]

    @contextmanager
    def switch(self, name: str) -> Iterator[ModuleTree]:
        saved = self.current
        self.current = name
        try:
            yield self.modules[name]
        finally:
            self.current = saved
