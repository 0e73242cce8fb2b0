# genscript/handlers/log.py

from __future__ import annotations

from ..nodes import CommandNode
from .base import CommandResult, ExecutionContext


def handle_log(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    message = ctx.context.interpolate(node.payload)
    ctx.log(message)
    return CommandResult.quiet(data=message)
