# genscript/handlers/registry.py
# Fixed kind -> handler table, built once per Executor.

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional

from ..nodes import CommandKind
from .ai import handle_ai
from .assign import handle_global, handle_set
from .base import Handler
from .control import handle_if, handle_loop, handle_task
from .files import handle_compile, handle_fill, handle_write
from .imports import handle_import
from .log import handle_log
from .shell import handle_shell


class UnknownCommandError(LookupError):
    pass


class HandlerRegistry(Mapping[CommandKind, Handler]):
    """Read-only mapping; there is no registration after construction."""

    def __init__(self, handlers: Mapping[CommandKind, Handler]):
        self._handlers: Dict[CommandKind, Handler] = dict(handlers)

    def __getitem__(self, kind: CommandKind) -> Handler:
        return self._handlers[kind]

    def __iter__(self) -> Iterator[CommandKind]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def lookup(self, kind: CommandKind) -> Handler:
        handler = self._handlers.get(kind)
        if handler is None:
            raise UnknownCommandError(f"no handler registered for {kind}")
        return handler

    def with_overrides(self, overrides: Optional[Mapping[CommandKind, Handler]] = None) -> "HandlerRegistry":
        """New registry with some kinds replaced (used by tests and embedders)."""
        merged = dict(self._handlers)
        merged.update(overrides or {})
        return HandlerRegistry(merged)


DEFAULT_HANDLERS: Dict[CommandKind, Handler] = {
    CommandKind.LOG: handle_log,
    CommandKind.SET: handle_set,
    CommandKind.GLOBAL: handle_global,
    CommandKind.AI: handle_ai,
    CommandKind.SHELL: handle_shell,
    CommandKind.WRITE: handle_write,
    CommandKind.SAVE: handle_write,
    CommandKind.FILL: handle_fill,
    CommandKind.IMPORT: handle_import,
    CommandKind.COMPILE: handle_compile,
    CommandKind.IF: handle_if,
    CommandKind.LOOP: handle_loop,
    CommandKind.TASK: handle_task,
}


def build_default_registry() -> HandlerRegistry:
    return HandlerRegistry(DEFAULT_HANDLERS)
