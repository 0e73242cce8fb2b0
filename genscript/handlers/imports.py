# genscript/handlers/imports.py
# IMPORT <path>: parse another script and run it in the current context.

from __future__ import annotations

import os

from ..config import DEFAULT_MAX_IMPORT_DEPTH
from ..errors import HandlerError, ParseError
from ..nodes import CommandNode
from ..parser import parse
from .base import CommandResult, ExecutionContext


def handle_import(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    target = ctx.resolve_path(ctx.context.interpolate(node.payload.strip()))
    limit = getattr(ctx.options, "max_import_depth", None) or DEFAULT_MAX_IMPORT_DEPTH
    if len(ctx.import_stack) >= limit:
        chain = " -> ".join(os.path.basename(p) for p in ctx.import_stack + [target])
        raise HandlerError(f"import depth limit ({limit}) exceeded: {chain}")

    ctx.emit(f"[IMPORT] Loading script from {target}")
    try:
        with open(target, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise HandlerError(f"failed to import script: {e.strerror or e}") from e
    try:
        result = parse(text)
    except ParseError as e:
        raise HandlerError(f"failed to import script {target}: {e}") from e

    if result.metadata:
        ctx.emit(f"[IMPORT] Script metadata: {result.metadata.get('description') or 'No description'}")

    ctx.import_stack.append(target)
    try:
        ctx.execute(result.nodes)
    finally:
        ctx.import_stack.pop()
    return CommandResult.success(f"imported {target}", data=target)
