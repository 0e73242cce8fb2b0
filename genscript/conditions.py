# genscript/conditions.py
# IF / ELSEIF condition grammar:
#   exists <path>
#   not_exists <path>
#   <operand> is "<literal>"
#   <operand> isnot "<literal>"
# Both sides of is/isnot are interpolated and compared as strings. A left
# operand that names a defined variable (quoted or bare) resolves to its value.

from __future__ import annotations

import os
import re
from typing import Callable, Optional, Tuple

from .context import UNDEFINED, Context, render_value
from .errors import ConditionError

_PATH_TEST_RE = re.compile(r"^(?P<op>exists|not_exists)\s+(?P<path>.+)$", re.IGNORECASE)
_COMPARE_RE = re.compile(
    r'^(?P<left>"[^"]*"|\'[^\']*\'|\S+)\s+(?P<op>isnot|is)\s+(?P<right>.+)$',
    re.IGNORECASE,
)
_NAME_RE = re.compile(r"^\w+(?:\.\w+)*$")


def _unquote(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]
    return s


def parse_condition(condition: str) -> Tuple[str, str, Optional[str]]:
    """Split a condition into (op, first, second). Raises ConditionError if outside the grammar."""
    text = (condition or "").strip()
    m = _PATH_TEST_RE.match(text)
    if m:
        return m.group("op").lower(), _unquote(m.group("path")), None
    m = _COMPARE_RE.match(text)
    if m:
        return m.group("op").lower(), m.group("left"), _unquote(m.group("right"))
    raise ConditionError(
        f"unsupported condition {text!r} "
        '(use: exists <path> | not_exists <path> | <var> is "<value>" | <var> isnot "<value>")'
    )


def _left_value(raw: str, context: Context) -> str:
    name = _unquote(raw)
    if _NAME_RE.match(name):
        value = context.get(name)
        if value is not UNDEFINED:
            return render_value(value)
    return context.interpolate(name)


def evaluate_condition(condition: str, context: Context, resolve_path: Callable[[str], str]) -> bool:
    op, first, second = parse_condition(condition)
    if op in ("exists", "not_exists"):
        found = os.path.exists(resolve_path(context.interpolate(first)))
        return found if op == "exists" else not found

    left = _left_value(first, context)
    right = context.interpolate(second or "")
    if op == "is":
        return left == right
    return left != right
