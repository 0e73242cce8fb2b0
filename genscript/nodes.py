# genscript/nodes.py
# Parsed command tree. One tagged record type; `kind` is a closed enumeration.
#
# Serialised shape (see schemas/parse-result.schema.json):
#   {"kind": "IF", "payload": str, "line": int,
#    "children": [...], "elseIf": [{"condition", "line", "children"}], "else": [...]}
#   {"kind": "FILL", "payload": str, "line": int, "content": [str, ...]}

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class CommandKind(str, Enum):
    LOG = "LOG"
    SET = "SET"
    GLOBAL = "GLOBAL"
    AI = "AI"
    SHELL = "SHELL"
    WRITE = "WRITE"
    SAVE = "SAVE"
    FILL = "FILL"
    IMPORT = "IMPORT"
    COMPILE = "COMPILE"
    IF = "IF"
    LOOP = "LOOP"
    TASK = "TASK"

    def __str__(self) -> str:
        return self.value


BLOCK_KINDS = frozenset({CommandKind.IF, CommandKind.LOOP, CommandKind.TASK})

# Kinds that never print per-node progress chatter.
QUIET_KINDS = frozenset({
    CommandKind.SET, CommandKind.LOG, CommandKind.GLOBAL,
    CommandKind.IF, CommandKind.LOOP, CommandKind.TASK,
})


@dataclass
class ElseIfBranch:
    condition: str
    line: int
    children: List["CommandNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition,
            "line": self.line,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class CommandNode:
    kind: CommandKind
    payload: str
    line: int
    children: List["CommandNode"] = field(default_factory=list)
    elseif_branches: List[ElseIfBranch] = field(default_factory=list)
    else_children: Optional[List["CommandNode"]] = None
    content_lines: Optional[List[str]] = None

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    def walk(self) -> Iterator["CommandNode"]:
        """Depth-first, document order: self, children, elseif branches, else."""
        yield self
        for child in self.children:
            yield from child.walk()
        for branch in self.elseif_branches:
            for child in branch.children:
                yield from child.walk()
        for child in self.else_children or []:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value, "payload": self.payload, "line": self.line}
        if self.is_block:
            out["children"] = [c.to_dict() for c in self.children]
        if self.kind is CommandKind.IF:
            out["elseIf"] = [b.to_dict() for b in self.elseif_branches]
            if self.else_children is not None:
                out["else"] = [c.to_dict() for c in self.else_children]
        if self.content_lines is not None:
            out["content"] = list(self.content_lines)
        return out


@dataclass
class ParseResult:
    metadata: Dict[str, Any] = field(default_factory=dict)
    nodes: List[CommandNode] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def walk(self) -> Iterator[CommandNode]:
        for node in self.nodes:
            yield from node.walk()

    def task_nodes(self) -> List[CommandNode]:
        return [n for n in self.nodes if n.kind is CommandKind.TASK]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": dict(self.metadata),
            "nodes": [n.to_dict() for n in self.nodes],
            "warnings": list(self.warnings),
        }
