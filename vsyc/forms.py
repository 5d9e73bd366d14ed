"""Parsers for the small text forms carried inside vsyc nodes.

The tokenizer leaves statement operands as raw text: a declaration string
holds `name = value`, a function's paren holds its parameter names, and a
call's paren holds its arguments. Those forms are parsed here with a
single Lark grammar that has one start rule per form.

Argument items are raw text: they may contain spaces but not commas, and
surrounding whitespace is not part of the item.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from lark import Lark, Transformer
from lark.exceptions import LarkError

from .errors import Diagnostic, VsycError


FORMS_GRAMMAR = r"""
    declaration: VAR_NAME "=" [VALUE]
    params: [NAME ("," NAME)*]
    args: [ITEM ("," ITEM)*]

    // anything a [#name] placeholder can spell
    VAR_NAME: /[^=\[\]\s]+/
    NAME: /[A-Za-z_][A-Za-z0-9_.]*/
    VALUE: /\S(.*\S)?/s
    ITEM: /[^,\s]([^,]*[^,\s])?/

    %import common.WS
    %ignore WS
"""


FORMS_PARSER = Lark(
    FORMS_GRAMMAR,
    parser='lalr',
    lexer='contextual',
    start=['declaration', 'params', 'args'],
    maybe_placeholders=False,
)


@dataclass
class Declaration:
    name: str
    value: str = ''


class FormsTransformer(Transformer):
    """Turns form parse trees into plain Python values."""

    def declaration(self, items):
        name = str(items[0])
        value = str(items[1]) if len(items) > 1 else ''
        return Declaration(name, value)

    def params(self, items):
        return [str(item) for item in items]

    def args(self, items):
        return [str(item) for item in items]


def _parse(text: str, start: str, what: str):
    try:
        tree = FORMS_PARSER.parse(text, start=start)
    except LarkError as e:
        raise VsycError(Diagnostic('SyntaxError', f'"{text.strip()}" is not a valid {what}')) from e
    return FormsTransformer().transform(tree)


def parse_declaration(text: str) -> Declaration:
    """Parse `name = value`. The value may be empty but `=` is required."""
    return _parse(text, 'declaration', 'variable declaration')


def parse_params(text: str) -> List[str]:
    """Parse a comma-separated list of parameter names (possibly empty)."""
    return _parse(text, 'params', 'parameter list')


def parse_args(text: str) -> List[str]:
    """Parse a comma-separated list of raw argument texts (possibly empty)."""
    return _parse(text, 'args', 'argument list')


def parse_target(text: str) -> Tuple[Optional[str], str]:
    """Parse an output marker: `outVar` or `index,outVar`."""
    items = parse_args(text)
    if len(items) == 1:
        return None, items[0]
    if len(items) == 2:
        return items[0], items[1]
    raise VsycError(Diagnostic('SyntaxError', f'"{text.strip()}" is not a valid output marker'))
