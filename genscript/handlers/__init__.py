# genscript/handlers/__init__.py

from .base import CommandResult, ExecutionContext, Handler
from .registry import HandlerRegistry, UnknownCommandError, build_default_registry

__all__ = [
    "CommandResult",
    "ExecutionContext",
    "Handler",
    "HandlerRegistry",
    "UnknownCommandError",
    "build_default_registry",
]
