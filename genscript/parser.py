# genscript/parser.py
# Turns .gen script text into a ParseResult (metadata + command tree).
#
# Single pass over physical lines. Block nesting is tracked with an explicit
# stack of insertion targets; FILL and TASK consume their own body lines.
# Line numbers in nodes and errors always refer to the full input text,
# including any metadata header.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .errors import ParseError
from .nodes import CommandKind, CommandNode, ElseIfBranch, ParseResult

logger = logging.getLogger(__name__)

SIGIL = "@"
SHELL_SIGIL = ">"
FILL_DELIMITER = '"'
METADATA_FENCE = "---"

# command word (sigil stripped, upper-cased) -> node kind
COMMAND_WORDS: Dict[str, CommandKind] = {
    "LOG": CommandKind.LOG,
    "SET": CommandKind.SET,
    "GLOBAL": CommandKind.GLOBAL,
    "AI": CommandKind.AI,
    "WRITE": CommandKind.WRITE,
    "SAVE": CommandKind.SAVE,
    "FILL": CommandKind.FILL,
    "IMPORT": CommandKind.IMPORT,
    "COMPILE": CommandKind.COMPILE,
    "IF": CommandKind.IF,
    "LOOP": CommandKind.LOOP,
    "FOREACH": CommandKind.LOOP,
    "TASK": CommandKind.TASK,
}

# Any closer pops exactly one level, whatever opened it.
BLOCK_CLOSERS = frozenset({"END", "ENDIF", "ENDLOOP", "ENDFOREACH", "ENDTASK"})
ELSEIF_WORD = "ELSEIF"
ELSE_WORD = "ELSE"

_STACKED_KINDS = (CommandKind.IF, CommandKind.LOOP)


# --- Metadata header ---------------------------------------------------------

def split_lines(text: str) -> List[str]:
    """Split on newlines only; a trailing CR is dropped from each line."""
    lines = (text or "").split("\n")
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _metadata_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _metadata_value(value: Any) -> Union[str, List[str]]:
    if isinstance(value, list):
        return [_metadata_scalar(item) for item in value if item is not None]
    return _metadata_scalar(value)


def extract_metadata(text: str) -> Tuple[Dict[str, Any], str, int]:
    """
    Split a leading '---' delimited YAML header off the script.

    Returns (metadata, body_text, line_offset) where line_offset is the number
    of physical lines consumed by the header. No header -> ({}, text, 0).
    Values are kept as strings or lists of strings.
    """
    lines = split_lines(text)
    if not lines or lines[0].strip() != METADATA_FENCE:
        return {}, text or "", 0

    end_idx: Optional[int] = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == METADATA_FENCE:
            end_idx = idx
            break
    if end_idx is None:
        raise ParseError("metadata header opened here is never closed with '---'", 1)

    header = "\n".join(lines[1:end_idx]).strip()
    try:
        raw = yaml.safe_load(header) if header else {}
    except yaml.YAMLError as e:
        raise ParseError(f"malformed metadata header: {e}", 1) from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ParseError("metadata header must be a mapping of 'key: value' lines", 1)

    metadata = {str(k): _metadata_value(v) for k, v in raw.items()}
    return metadata, "\n".join(lines[end_idx + 1:]), end_idx + 1


# --- Line parser -------------------------------------------------------------

@dataclass
class _Frame:
    target: List[CommandNode]
    owner: Optional[CommandNode] = None
    role: str = "body"  # body | elseif | else


def _split_command(line: str) -> Tuple[str, str]:
    parts = line.split(None, 1)
    word = parts[0].upper()
    if word.startswith(SIGIL):
        word = word[len(SIGIL):]
    payload = parts[1].strip() if len(parts) > 1 else ""
    return word, payload


class _ScriptParser:
    def __init__(self, lines: List[str], offset: int = 0):
        self.lines = lines
        self.offset = offset
        self.root: List[CommandNode] = []
        self.stack: List[_Frame] = [_Frame(self.root)]
        self.warnings: List[str] = []

    @property
    def current(self) -> List[CommandNode]:
        return self.stack[-1].target

    def lineno(self, idx: int) -> int:
        return self.offset + idx + 1

    def warn(self, message: str, lineno: int) -> None:
        text = f"line {lineno}: {message}"
        logger.warning(text)
        self.warnings.append(text)

    def run(self) -> List[CommandNode]:
        i, n = 0, len(self.lines)
        while i < n:
            line = self.lines[i].strip()
            lineno = self.lineno(i)
            if not line or line.startswith("#"):
                i += 1
                continue

            if line.startswith(SHELL_SIGIL):
                self.current.append(CommandNode(CommandKind.SHELL, line[1:].strip(), lineno))
                i += 1
                continue

            word, payload = _split_command(line)
            kind = COMMAND_WORDS.get(word)

            if kind in _STACKED_KINDS:
                node = CommandNode(kind, payload, lineno)
                self.current.append(node)
                self.stack.append(_Frame(node.children, node))
            elif word == ELSEIF_WORD:
                self._open_elseif(payload, lineno)
            elif word == ELSE_WORD:
                self._open_else(lineno)
            elif word in BLOCK_CLOSERS:
                if len(self.stack) <= 1:
                    raise ParseError(f"{word} without corresponding opening block", lineno)
                self.stack.pop()
            elif kind is CommandKind.FILL:
                node, i = self._read_fill(i, payload)
                self.current.append(node)
            elif kind is CommandKind.TASK:
                node, i = self._read_task(i, payload)
                self.current.append(node)
            elif kind is not None:
                self.current.append(CommandNode(kind, payload, lineno))
            else:
                self.warn(f'unknown command "{word}" ignored', lineno)
            i += 1

        if len(self.stack) > 1:
            owner = self.stack[-1].owner
            assert owner is not None
            raise ParseError(f"{owner.kind} block opened at line {owner.line} is never closed", owner.line)
        return self.root

    # ---- IF chains

    def _enclosing_if(self, word: str, lineno: int) -> _Frame:
        frame = self.stack[-1]
        if frame.owner is None:
            raise ParseError(f"{word} without corresponding IF", lineno)
        if frame.owner.kind is not CommandKind.IF:
            raise ParseError(f"{word} not inside IF block (innermost block is {frame.owner.kind})", lineno)
        if frame.role == "else":
            raise ParseError(f"{word} after ELSE", lineno)
        return frame

    def _open_elseif(self, condition: str, lineno: int) -> None:
        frame = self._enclosing_if(ELSEIF_WORD, lineno)
        self.stack.pop()
        branch = ElseIfBranch(condition=condition, line=lineno)
        frame.owner.elseif_branches.append(branch)
        self.stack.append(_Frame(branch.children, frame.owner, "elseif"))

    def _open_else(self, lineno: int) -> None:
        frame = self._enclosing_if(ELSE_WORD, lineno)
        self.stack.pop()
        frame.owner.else_children = []
        self.stack.append(_Frame(frame.owner.else_children, frame.owner, "else"))

    # ---- self-consuming bodies

    def _read_fill(self, i: int, path: str) -> Tuple[CommandNode, int]:
        """Capture raw lines between two solitary '"' lines. Returns (node, index of closing line)."""
        lineno = self.lineno(i)
        n = len(self.lines)
        j = i + 1
        while j < n and self.lines[j].strip() != FILL_DELIMITER:
            j += 1
        if j >= n:
            raise ParseError("FILL command missing opening quote delimiter", lineno)
        j += 1
        content: List[str] = []
        while j < n and self.lines[j].strip() != FILL_DELIMITER:
            content.append(self.lines[j])
            j += 1
        if j >= n:
            raise ParseError("FILL command missing closing quote delimiter", lineno)
        return CommandNode(CommandKind.FILL, path, lineno, content_lines=content), j

    def _read_task(self, i: int, name: str) -> Tuple[CommandNode, int]:
        """TASK bodies end at the first blank line (or EOF) and hold no nested blocks."""
        lineno = self.lineno(i)
        if not name:
            raise ParseError("TASK requires a name", lineno)
        task = CommandNode(CommandKind.TASK, name, lineno)
        n = len(self.lines)
        j = i + 1
        while j < n and self.lines[j].strip():
            line = self.lines[j].strip()
            body_lineno = self.lineno(j)
            if line.startswith("#"):
                j += 1
                continue
            if line.startswith(SHELL_SIGIL):
                task.children.append(CommandNode(CommandKind.SHELL, line[1:].strip(), body_lineno))
                j += 1
                continue
            word, payload = _split_command(line)
            kind = COMMAND_WORDS.get(word)
            if kind in _STACKED_KINDS or kind is CommandKind.TASK or word in BLOCK_CLOSERS \
                    or word in (ELSEIF_WORD, ELSE_WORD):
                raise ParseError(f"{word} is not allowed inside TASK '{name}' (no nested blocks)", body_lineno)
            if kind is CommandKind.FILL:
                node, j = self._read_fill(j, payload)
                task.children.append(node)
            elif kind is not None:
                task.children.append(CommandNode(kind, payload, body_lineno))
            else:
                self.warn(f'unknown command "{word}" ignored', body_lineno)
            j += 1
        return task, j - 1


def parse(text: str) -> ParseResult:
    metadata, body, offset = extract_metadata(text)
    parser = _ScriptParser(split_lines(body), offset)
    nodes = parser.run()
    return ParseResult(metadata=metadata, nodes=nodes, warnings=parser.warnings)


def parse_file(path: Union[str, Path]) -> ParseResult:
    return parse(Path(path).read_text(encoding="utf-8"))
