# genscript/errors.py
# Exception types shared by the parser, executor and handlers.

from __future__ import annotations

from typing import Optional


class GenScriptError(Exception):
    pass


class ParseError(GenScriptError):
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message if line is None else f"line {line}: {message}")
        self.line = line
        self.reason = message


class HandlerError(GenScriptError):
    """Expected failure reported by a command handler (bad payload, missing variable...)."""


class ConditionError(HandlerError):
    pass


class GlobalStoreError(GenScriptError):
    pass


class ExecutionError(GenScriptError):
    """A node failed; carries the kind and source line for the diagnostic."""

    def __init__(self, kind: str, line: int, message: str):
        super().__init__(f"Error executing {kind} at line {line}: {message}")
        self.kind = kind
        self.line = line
        self.reason = message


class TaskSelectionError(GenScriptError):
    pass
