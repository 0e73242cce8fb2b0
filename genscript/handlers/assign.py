# genscript/handlers/assign.py
# SET and GLOBAL: `name = <value-expression>`.
#
# Value expressions, checked in this order:
#   input: <prompt>
#   select:<prompt>:[a, b]
#   multiselect:<prompt>:[a, b]
#   load <path> | @load <path>        file text
#   http <url>  | @http <url>         response body
#   ai <prompt> | @ai <prompt>        model completion
#   files in <dir> | folders in <dir> sorted entry names
#   anything else                     interpolated string

from __future__ import annotations

import os
import re
from typing import Any, Callable, List, Optional, Tuple

from ..errors import HandlerError
from ..http_client import FetchError, fetch_text
from ..nodes import CommandNode
from .ai import complete
from .base import CommandResult, ExecutionContext

_SELECT_RE = re.compile(r"^(?P<mode>select|multiselect):(?P<prompt>.*?):\[(?P<options>.*?)\]$", re.DOTALL)
_NAME_RE = re.compile(r"^\w+$")
_LOG_PREVIEW = 100


def split_assignment(payload: str) -> Tuple[str, str]:
    name, sep, expr = payload.partition("=")
    name = name.strip()
    if not sep:
        raise HandlerError(f"missing '=' in assignment {payload!r} (use: name = value)")
    if not name:
        raise HandlerError(f"missing variable name in assignment {payload!r}")
    if not _NAME_RE.match(name):
        raise HandlerError(f"invalid variable name {name!r}")
    return name, expr.strip()


def _strip_prefix(expr: str, *prefixes: str) -> Optional[str]:
    for prefix in prefixes:
        if expr.startswith(prefix):
            return expr[len(prefix):].strip()
    return None


def _options(raw: str) -> List[str]:
    return [opt.strip() for opt in raw.split(",") if opt.strip()]


def _list_dir(ctx: ExecutionContext, raw: str, want: Callable[[str], bool]) -> List[str]:
    path = ctx.resolve_path(ctx.context.interpolate(raw))
    try:
        names = os.listdir(path)
    except OSError as e:
        raise HandlerError(f"cannot list {path}: {e.strerror or e}") from e
    return sorted(n for n in names if want(os.path.join(path, n)))


def evaluate_value(expr: str, ctx: ExecutionContext) -> Any:
    interpolate = ctx.context.interpolate

    if expr.startswith("input:"):
        return ctx.prompter.ask(interpolate(expr[len("input:"):].strip()))

    if expr.startswith(("select:", "multiselect:")):
        m = _SELECT_RE.match(expr)
        if not m:
            mode = expr.split(":", 1)[0]
            raise HandlerError(f"invalid {mode} syntax (use: {mode}:<prompt>:[v1,v2])")
        prompt = interpolate(m.group("prompt").strip())
        options = _options(interpolate(m.group("options")))
        if m.group("mode") == "select":
            return ctx.prompter.select(prompt, options)
        return ctx.prompter.multiselect(prompt, options)

    rest = _strip_prefix(expr, "@load ", "load ")
    if rest is not None:
        path = ctx.resolve_path(interpolate(rest))
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise HandlerError(f"cannot load {path}: {e.strerror or e}") from e

    rest = _strip_prefix(expr, "@http ", "http ")
    if rest is not None:
        try:
            return fetch_text(interpolate(rest))
        except FetchError as e:
            raise HandlerError(str(e)) from e

    rest = _strip_prefix(expr, "@ai ", "ai ")
    if rest is not None:
        return complete(rest, ctx)

    rest = _strip_prefix(expr, "files in ")
    if rest is not None:
        return _list_dir(ctx, rest, os.path.isfile)

    rest = _strip_prefix(expr, "folders in ")
    if rest is not None:
        return _list_dir(ctx, rest, os.path.isdir)

    return interpolate(expr)


def preview(value: Any) -> str:
    if isinstance(value, str) and len(value) > _LOG_PREVIEW:
        return value[:_LOG_PREVIEW] + "..."
    if isinstance(value, list):
        return "[" + ", ".join(str(v) for v in value) + "]"
    return str(value)


def handle_set(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    name, expr = split_assignment(node.payload)
    value = evaluate_value(expr, ctx)
    ctx.context.set(name, value)
    ctx.emit(f"[SET] {name} = {preview(value)}")
    return CommandResult.quiet(data=value)


def handle_global(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    name, expr = split_assignment(node.payload)
    value = evaluate_value(expr, ctx)
    ctx.global_store.set(name, value)
    ctx.global_store.sync_into(ctx.context)
    ctx.emit(f"[GLOBAL] {name} = {preview(value)} (saved to {ctx.global_store.describe()})")
    return CommandResult.quiet(data=value)
