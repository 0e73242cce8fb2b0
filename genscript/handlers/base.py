# genscript/handlers/base.py
# Handler calling convention: handler(node, ctx) -> CommandResult.
# Handlers may also raise; the executor normalises both paths.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..context import Context
from ..global_store import GlobalStore
from ..nodes import CommandNode
from ..prompts import Prompter
from ..shell import ShellSession


@dataclass
class CommandResult:
    ok: bool = True
    message: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    silent: bool = False

    @classmethod
    def success(cls, message: Optional[str] = None, data: Any = None) -> "CommandResult":
        return cls(ok=True, message=message, data=data)

    @classmethod
    def quiet(cls, data: Any = None) -> "CommandResult":
        return cls(ok=True, data=data, silent=True)

    @classmethod
    def failure(cls, error: str) -> "CommandResult":
        return cls(ok=False, error=error)


@dataclass
class ExecutionContext:
    """What a handler sees: variables, paths, recursion, and the run's collaborators."""

    context: Context
    output_dir: str
    global_store: GlobalStore
    shell: ShellSession
    prompter: Prompter
    resolve_path: Callable[[str], str]
    execute: Callable[[List[CommandNode]], None]
    emit: Callable[[str], None]
    log: Callable[[str], None]
    options: Any = None
    import_stack: List[str] = field(default_factory=list)

    @property
    def cwd(self) -> str:
        return self.shell.pwd


Handler = Callable[[CommandNode, ExecutionContext], Optional[CommandResult]]
