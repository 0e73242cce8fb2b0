# genscript/handlers/files.py
# File-producing commands: WRITE / SAVE, FILL, COMPILE.
# Every target path is interpolated, then resolved against the shell's
# current directory; parent directories are created on demand.

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, Mapping

from ..context import UNDEFINED, PLACEHOLDER_RE, lookup_path, render_value
from ..errors import HandlerError
from ..nodes import CommandNode
from .base import CommandResult, ExecutionContext

logger = logging.getLogger(__name__)

# "<literal>" to <path>   |   <variable> to <path>
WRITE_RE = re.compile(r'^(?:"(?P<literal>.+?)"|(?P<var>\w+))\s+to\s+(?P<path>.+)$')


def _write_text(path: str, content: str) -> None:
    if os.path.isdir(path):
        raise HandlerError(f"{path} is a directory")
    parent = os.path.dirname(path)
    try:
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise HandlerError(f"cannot write {path}: {e.strerror or e}") from e


def handle_write(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    m = WRITE_RE.match(node.payload.strip())
    if not m:
        raise HandlerError(f'invalid syntax. Use: {node.kind} "<content>" to <path> OR {node.kind} <variable> to <path>')

    if m.group("literal") is not None:
        content = ctx.context.interpolate(m.group("literal"))
    else:
        value = ctx.context.get(m.group("var"))
        if value is UNDEFINED:
            raise HandlerError(f'variable "{m.group("var")}" is not defined')
        content = render_value(value)

    target = ctx.resolve_path(ctx.context.interpolate(m.group("path").strip()))
    _write_text(target, content)
    return CommandResult.success(f"content written to {target}", data=target)


def handle_fill(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    raw_path = ctx.context.interpolate(node.payload.strip())
    if not raw_path:
        raise HandlerError("FILL requires a file path")
    if not node.content_lines:
        raise HandlerError("FILL requires content between quote delimiters")

    content = ctx.context.interpolate("\n".join(node.content_lines))
    target = ctx.resolve_path(raw_path)
    _write_text(target, content)
    return CommandResult.success(f"filled {target}", data=target)


def render_template(template: str, scope: Mapping[str, Any]) -> str:
    """Like Context.interpolate but over an arbitrary mapping."""
    def repl(m: "re.Match[str]") -> str:
        value = lookup_path(scope, m.group(1))
        return m.group(0) if value is UNDEFINED else render_value(value)

    return PLACEHOLDER_RE.sub(repl, template)


def handle_compile(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    source = ctx.resolve_path(ctx.context.interpolate(node.payload.strip()))
    try:
        with open(source, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise HandlerError(f'failed to load template file "{source}": {e}') from e

    templates = document.get("templates") if isinstance(document, dict) else None
    if not isinstance(templates, dict):
        raise HandlerError(f'template file "{source}" must contain a "templates" object')

    scope: Dict[str, Any] = {**ctx.context.get_all(), **document}
    ctx.emit(f"[COMPILE] Processing template file: {source}")
    written = []
    for rel_path, body in templates.items():
        if not isinstance(body, str):
            logger.warning("skipping non-string template %r in %s", rel_path, source)
            continue
        target = ctx.resolve_path(render_template(rel_path, scope))
        _write_text(target, render_template(body, scope))
        ctx.emit(f"[COMPILE] Created: {target}")
        written.append(target)
    return CommandResult.success(f"{len(written)} file(s) compiled from {source}", data=written)
