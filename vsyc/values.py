"""Value helpers for vsyc.

Variables and nodes only ever hold text. When a statement needs a typed
view of that text it goes through this module: a value is a `str`,
`float`, `bool`, or a `list` of values. Arrays are stored as JSON array
text and converted on demand.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, List, Optional

from .errors import Diagnostic, VsycError

NUMBER_RE = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')

COMPARISONS = ('eq', 'lt', 'gt', 'op')


def parse_number(text: str) -> Optional[float]:
    """Return the number `text` spells, or None if it is not numeric."""
    text = text.strip()
    if not NUMBER_RE.fullmatch(text):
        return None
    value = float(text)
    if math.isinf(value):
        return None
    return value


def format_number(value: float) -> str:
    """Format a number the way scripts write it: integral values lose `.0`."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def to_text(value: Any) -> str:
    """Convert a value to the text stored in variables and nodes."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return format_number(float(value))
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return dump_array(value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False)
    return str(value)


def load_array(text: str) -> List[Any]:
    """Deserialize array text. Raises VsycError if it is not a JSON array."""
    try:
        items = json.loads(text)
    except ValueError:
        raise VsycError(Diagnostic('ArrayError', f'"{text}" is not a valid array'))
    if not isinstance(items, list):
        raise VsycError(Diagnostic('ArrayError', f'"{text}" is not a valid array'))
    return items


def dump_array(items: List[Any]) -> str:
    return json.dumps(items, separators=(',', ':'), ensure_ascii=False)


def compare(op: str, left: str, right: str) -> bool:
    """Evaluate a comparison keyword over two operand texts.

    Both operands are compared as numbers when both parse as numbers,
    otherwise as strings. `op` is the negation of `eq`.
    """
    a = parse_number(left)
    b = parse_number(right)
    if a is None or b is None:
        a, b = left.strip(), right.strip()
    if op == 'eq':
        return a == b
    if op == 'op':
        return a != b
    if op == 'lt':
        return a < b
    if op == 'gt':
        return a > b
    raise VsycError(Diagnostic('KeywordError', f'unknown comparison {op}'))
