"""The symbol table: an append-only registry of variables and functions.

Every declared variable and function gets a `Symbol` record. Records are
never removed, so an address stays valid for the life of the interpreter.
Variables get numeric addresses (`count * ADDRESS_STRIDE`); functions are
registered with their name as the address so calls can find them by name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from .nodes import Address, TOP_LEVEL

ADDRESS_STRIDE = 812

VARIABLE = 'variable'
FUNCTION = 'function'


@dataclass
class VariableInfo:
    name: str
    text: str
    scope: int
    module: str

    @property
    def is_global(self) -> bool:
        return self.scope == TOP_LEVEL

    def visible_from(self, module: str, scope: int) -> bool:
        return self.is_global or (self.module == module and self.scope == scope)


@dataclass
class FunctionInfo:
    name: str
    raw_params: str
    body: int
    module: str
    params: List[str] = field(default_factory=list)


@dataclass
class Symbol:
    address: Address
    kind: str
    payload: Union[VariableInfo, FunctionInfo]


class SymbolTable:
    """Process-lifetime registry of symbols, owned by one interpreter."""
    def __init__(self):
        self.records: List[Symbol] = []

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.records)

    def register(self, kind: str, payload: Union[VariableInfo, FunctionInfo],
                 override_key: Optional[Address] = None) -> Address:
        address = override_key if override_key is not None else len(self.records) * ADDRESS_STRIDE
        self.records.append(Symbol(address, kind, payload))
        return address

    def lookup(self, address: Address) -> Optional[Symbol]:
        # newest first: a function declared again under the same name shadows the old one
        for symbol in reversed(self.records):
            if symbol.address == address:
                return symbol
        return None

    def function(self, name: str) -> Optional[Symbol]:
        symbol = self.lookup(name)
        if symbol is None or symbol.kind != FUNCTION:
            return None
        return symbol

    def find_variable(self, name: str, module: str, scope: int) -> Optional[Symbol]:
        """Return the variable `name` as seen from `scope` in `module`.

        A variable declared in that exact scope shadows a global one; among
        equals the newest declaration wins.
        """
        found: Optional[Symbol] = None
        for symbol in reversed(self.records):
            if symbol.kind != VARIABLE:
                continue
            var = symbol.payload
            if var.name != name or not var.visible_from(module, scope):
                continue
            if var.module == module and var.scope == scope:
                return symbol
            if found is None:
                found = symbol
        return found

    def snapshot(self) -> Tuple[Address, ...]:
        return tuple(symbol.address for symbol in self.records)
