# genscript/context.py
# Run-scoped variable environment: dotted-path lookup and {name} interpolation.

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional


class _Undefined:
    """Sentinel for a failed lookup. Distinct from None, which is a legal value."""

    _instance: Optional["_Undefined"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "undefined"


UNDEFINED = _Undefined()

# {name} or {name.path.to.value}
PLACEHOLDER_RE = re.compile(r"\{(\w+(?:\.\w+)*)\}")


def render_value(value: Any) -> str:
    """String form used by interpolation and file writes (JSON for containers)."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def lookup_path(root: Mapping[str, Any], path: str) -> Any:
    """Walk a dotted path through nested mappings and sequences (by index);
    UNDEFINED on any miss."""
    parts = path.split(".")
    if parts[0] not in root:
        return UNDEFINED
    value = root[parts[0]]
    for part in parts[1:]:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        elif isinstance(value, (list, tuple)) and part.isdecimal() and int(part) < len(value):
            value = value[int(part)]
        else:
            return UNDEFINED
    return value


class Context:
    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._vars: Dict[str, Any] = {}
        if initial:
            self.update(initial)

    def set(self, key: str, value: Any) -> None:
        self._vars[key] = value

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def get(self, key: str) -> Any:
        return lookup_path(self._vars, key)

    def has(self, key: str) -> bool:
        return self.get(key) is not UNDEFINED

    def interpolate(self, text: str) -> str:
        # unresolved placeholders stay verbatim so later stages can spot them
        def repl(m: "re.Match[str]") -> str:
            value = self.get(m.group(1))
            if value is UNDEFINED:
                return m.group(0)
            return render_value(value)

        return PLACEHOLDER_RE.sub(repl, text or "")

    def get_all(self) -> Dict[str, Any]:
        return dict(self._vars)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._vars))

    def __len__(self) -> int:
        return len(self._vars)


def placeholders(text: str) -> List[str]:
    """Names referenced as {name} in text, in order of appearance."""
    return PLACEHOLDER_RE.findall(text or "")
