# genscript/handlers/control.py
# Block commands. None of these walk the tree themselves: the chosen body
# is handed back to the executor through ctx.execute.

from __future__ import annotations

import re
from typing import List

from ..conditions import evaluate_condition
from ..context import UNDEFINED
from ..errors import HandlerError
from ..nodes import CommandNode
from .base import CommandResult, ExecutionContext

# <itemVar> in <collectionVar>
LOOP_RE = re.compile(r"^(?P<item>\w+)\s+in\s+(?P<collection>.+)$")


def handle_if(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    def holds(condition: str) -> bool:
        return evaluate_condition(condition, ctx.context, ctx.resolve_path)

    if holds(node.payload):
        ctx.execute(node.children)
        return CommandResult.quiet(data="if")
    for branch in node.elseif_branches:
        if holds(branch.condition):
            ctx.execute(branch.children)
            return CommandResult.quiet(data=f"elseif@{branch.line}")
    if node.else_children is not None:
        ctx.execute(node.else_children)
        return CommandResult.quiet(data="else")
    return CommandResult.quiet(data=None)


def _as_items(name: str, value) -> List:
    if value is UNDEFINED:
        raise HandlerError(f'collection "{name}" is not defined')
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",")]
    raise HandlerError(f'"{name}" must be an array or a comma-separated string, not {type(value).__name__}')


def handle_loop(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    m = LOOP_RE.match(node.payload.strip())
    if not m:
        raise HandlerError("invalid syntax. Use: LOOP <item> in <collection>")
    item, collection = m.group("item"), m.group("collection").strip().strip("{}")
    items = _as_items(collection, ctx.context.get(collection))
    # bindings are not restored after the loop
    for value in items:
        ctx.context.set(item, value)
        ctx.execute(node.children)
    return CommandResult.quiet(data=len(items))


def handle_task(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    if not node.children:
        return CommandResult.failure(f"TASK '{node.payload}' has no commands to execute")
    ctx.execute(node.children)
    return CommandResult.quiet(data=node.payload)
