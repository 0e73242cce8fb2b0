# genscript/verifier.py
# Static verifier for parsed scripts.
# Goals:
# - Catch payloads that are certain to fail at run time (bad LOOP / WRITE /
#   SET syntax, conditions outside the grammar) before any side effect.
# - Never block on ambiguous cases: possibly-undefined placeholders are
#   warnings, not errors.

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from .conditions import parse_condition
from .context import placeholders
from .errors import ConditionError, HandlerError, ParseError
from .handlers.assign import split_assignment
from .handlers.control import LOOP_RE
from .handlers.files import WRITE_RE
from .nodes import CommandKind, CommandNode, ParseResult

_ASSIGN_KINDS = (CommandKind.SET, CommandKind.GLOBAL)
_WRITE_KINDS = (CommandKind.WRITE, CommandKind.SAVE)


class _Walker:
    def __init__(self, known: Set[str]):
        self.declared: Set[str] = set(known)
        self.errors: List[str] = []
        self.warnings: List[str] = []
        # after an IMPORT any name may have been defined
        self.opaque = False

    def check_refs(self, where: str, text: str) -> None:
        if self.opaque:
            return
        for ref in placeholders(text):
            if ref.split(".")[0] not in self.declared:
                self.warnings.append(f"{where}: placeholder '{{{ref}}}' may be undefined")

    def check_condition(self, where: str, condition: str) -> None:
        try:
            parse_condition(condition)
        except ConditionError as e:
            self.errors.append(f"{where}: {e}")
            return
        self.check_refs(where, condition)

    def walk(self, nodes: Iterable[CommandNode]) -> None:
        for node in nodes:
            self.visit(node)

    def visit(self, node: CommandNode) -> None:
        where = f"line {node.line} ({node.kind})"
        kind = node.kind

        if kind in _ASSIGN_KINDS:
            try:
                name, expr = split_assignment(node.payload)
            except HandlerError as e:
                self.errors.append(f"{where}: {e}")
                return
            self.check_refs(where, expr)
            self.declared.add(name)

        elif kind is CommandKind.LOOP:
            m = LOOP_RE.match(node.payload.strip())
            if not m:
                self.errors.append(f"{where}: expected '<item> in <collection>', got {node.payload!r}")
                return
            collection = m.group("collection").strip().strip("{}")
            if not self.opaque and collection.split(".")[0] not in self.declared:
                self.warnings.append(f"{where}: collection '{collection}' may be undefined")
            self.declared.add(m.group("item"))
            self.walk(node.children)

        elif kind is CommandKind.IF:
            self.check_condition(where, node.payload)
            self.walk(node.children)
            for branch in node.elseif_branches:
                self.check_condition(f"line {branch.line} (ELSEIF)", branch.condition)
                self.walk(branch.children)
            self.walk(node.else_children or [])

        elif kind in _WRITE_KINDS:
            m = WRITE_RE.match(node.payload.strip())
            if not m:
                self.errors.append(f'{where}: expected \'"<text>" to <path>\' or \'<variable> to <path>\'')
                return
            var = m.group("var")
            if var is not None and not self.opaque and var not in self.declared:
                self.warnings.append(f"{where}: variable '{var}' may be undefined")
            self.check_refs(where, m.group("literal") or "")
            self.check_refs(where, m.group("path"))

        elif kind is CommandKind.FILL:
            self.check_refs(where, node.payload)
            self.check_refs(where, "\n".join(node.content_lines or []))

        elif kind is CommandKind.TASK:
            self.walk(node.children)

        else:
            self.check_refs(where, node.payload)
            if kind is CommandKind.IMPORT:
                self.opaque = True


def verify_parse_result(result: ParseResult, known: Optional[Iterable[str]] = None) -> Dict[str, List[str]]:
    """
    Returns {'errors': [...], 'warnings': [...]} without raising.
    `known` names variables that exist before the first node runs
    (config keys, stored globals).
    When root-level TASKs exist only one of them runs, so each task body is
    checked on its own and the root siblings are ignored for name tracking.
    """
    seed = set(known or ())
    errors: List[str] = []
    warnings: List[str] = list(result.warnings)

    tasks = result.task_nodes()
    groups = [[t] for t in tasks] if tasks else [result.nodes]
    for group in groups:
        walker = _Walker(seed)
        walker.walk(group)
        errors.extend(walker.errors)
        warnings.extend(w for w in walker.warnings if w not in warnings)

    return {"errors": errors, "warnings": warnings}


def verify_or_raise(result: ParseResult, known: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    report = verify_parse_result(result, known)
    if report["errors"]:
        raise ParseError("static verification failed:\n- " + "\n- ".join(report["errors"]))
    return report
