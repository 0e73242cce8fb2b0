# genscript/handlers/shell.py

from __future__ import annotations

from ..errors import HandlerError
from ..nodes import CommandNode
from .base import CommandResult, ExecutionContext


def handle_shell(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    command = ctx.context.interpolate(node.payload).strip()
    if not command:
        raise HandlerError("empty shell command")
    ctx.emit(f"[CMD] > {command}")
    result = ctx.shell.run(command)
    if result.stdout:
        ctx.emit(result.stdout)
    if not result.ok:
        detail = result.stderr or result.stdout or "no output"
        raise HandlerError(f"command exited with status {result.code}: {detail}")
    return CommandResult.success(data=result.stdout)
