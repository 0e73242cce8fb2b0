# genscript/__init__.py
# Interpreter for .gen generation scripts: parse, verify, execute.

from .context import Context, UNDEFINED
from .errors import ExecutionError, GenScriptError, HandlerError, ParseError
from .executor import Executor
from .nodes import CommandKind, CommandNode, ElseIfBranch, ParseResult
from .parser import parse, parse_file

__version__ = "0.3.0"

__all__ = [
    "CommandKind",
    "CommandNode",
    "Context",
    "ElseIfBranch",
    "ExecutionError",
    "Executor",
    "GenScriptError",
    "HandlerError",
    "ParseError",
    "ParseResult",
    "UNDEFINED",
    "parse",
    "parse_file",
]
