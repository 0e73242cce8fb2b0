# genscript/handlers/ai.py
# AI <prompt>: one non-streaming completion from an Ollama server.
# Model settings live in the global store so they carry across runs.

from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import HandlerError
from ..http_client import FetchError, post_json
from ..nodes import CommandNode
from .base import CommandResult, ExecutionContext

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.2:latest"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_HOST = "http://127.0.0.1:11434"
AI_TIMEOUT = 300.0


def _setting(ctx: ExecutionContext, key: str, default: Any) -> Any:
    value = ctx.global_store.get(key)
    return default if value in (None, "") else value


def complete(prompt: str, ctx: ExecutionContext) -> str:
    """Interpolate `prompt` and return the model's reply text."""
    text = ctx.context.interpolate(prompt.strip())
    if not text:
        raise HandlerError("AI prompt cannot be empty")

    model = _setting(ctx, "AI_MODEL", DEFAULT_MODEL)
    system = _setting(ctx, "AI_SYSTEM_PROMPT", None)
    host = str(_setting(ctx, "AI_OLLAMA_HOST", DEFAULT_HOST)).rstrip("/")
    try:
        temperature = float(_setting(ctx, "AI_TEMPERATURE", DEFAULT_TEMPERATURE))
    except (TypeError, ValueError) as e:
        raise HandlerError(f"AI_TEMPERATURE must be a number: {e}") from e

    request: Dict[str, Any] = {
        "model": model,
        "prompt": text,
        "stream": False,
        "options": {"temperature": temperature},
    }
    if system:
        request["system"] = ctx.context.interpolate(str(system))

    ctx.emit(f"[AI] Using model: {model} on {host}")
    try:
        reply = post_json(f"{host}/api/generate", request, timeout=AI_TIMEOUT)
    except FetchError as e:
        if e.status == 404:
            raise HandlerError(f'Model "{model}" not found. Pull it first with: ollama pull {model}') from e
        if e.status is None:
            raise HandlerError(f"Cannot connect to Ollama server at {host}. Please ensure Ollama is running.") from e
        raise HandlerError(f"AI request failed: {e}") from e

    if not isinstance(reply, dict) or not isinstance(reply.get("response"), str):
        raise HandlerError("AI request failed: reply has no 'response' text")
    logger.debug("AI reply from %s: %d chars", model, len(reply["response"]))
    return reply["response"]


def handle_ai(node: CommandNode, ctx: ExecutionContext) -> CommandResult:
    reply = complete(node.payload, ctx)
    ctx.emit(f"[AI]: {reply}")
    return CommandResult.success(reply, data=reply)
