# genscript/executor.py
# Executor / dispatcher for parsed generation scripts.
#
# - Nodes run strictly in document order; block handlers recurse through
#   execute() with their own children.
# - Every handler outcome (returned failure or raised exception) becomes one
#   ExecutionError carrying kind + source line. The first one stops the run.
# - A run that has root-level TASK nodes executes exactly one of them, chosen
#   before anything else runs.
# - Receipt: engine, steps (kind, line, status, message), logs, env.

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict, List, Optional, TextIO

from .config import RunOptions
from .context import Context
from .errors import ExecutionError, TaskSelectionError
from .global_store import GlobalStore
from .handlers.base import CommandResult, ExecutionContext
from .handlers.registry import HandlerRegistry, UnknownCommandError, build_default_registry
from .nodes import QUIET_KINDS, CommandNode, ParseResult
from .prompts import Prompter
from .shell import ShellSession

logger = logging.getLogger(__name__)

ENGINE = "genscript"


class Console:
    """Operator-facing output. `quiet` silences progress and handler chatter, never errors."""

    def __init__(self, quiet: bool = False, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.quiet = quiet
        self._out = out
        self._err = err

    def emit(self, text: str) -> None:
        if not self.quiet:
            print(text, file=self._out or sys.stdout)

    def error(self, text: str) -> None:
        print(text, file=self._err or sys.stderr)


class Executor:
    def __init__(
        self,
        context: Optional[Context] = None,
        output_dir: Optional[str] = None,
        *,
        global_store: Optional[GlobalStore] = None,
        registry: Optional[HandlerRegistry] = None,
        prompter: Optional[Prompter] = None,
        options: Optional[RunOptions] = None,
        console: Optional[Console] = None,
    ):
        self.options = options or RunOptions()
        self.context = context if context is not None else Context()
        self.output_dir = os.path.abspath(output_dir or self.options.output_dir or os.getcwd())
        os.makedirs(self.output_dir, exist_ok=True)

        self.global_store = global_store if global_store is not None else GlobalStore(self.options.globals_file)
        self.registry = registry if registry is not None else build_default_registry()
        self.prompter = prompter or Prompter()
        self.console = console or Console(quiet=self.options.quiet)
        self.shell = ShellSession(self.output_dir, timeout=self.options.shell_timeout)
        self._import_stack: List[str] = []

        self.receipt: Dict[str, Any] = {"engine": ENGINE, "steps": [], "logs": [], "env": {}}

        if self.options.load_globals:
            count = self.global_store.sync_into(self.context)
            logger.debug("loaded %d global(s) from %s", count, self.global_store.describe())

    # --- collaborators handed to handlers ------------------------------------

    @property
    def cwd(self) -> str:
        return self.shell.pwd

    def resolve_path(self, path: str) -> str:
        path = os.path.expanduser(path)
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(self.shell.pwd, path))

    def _log(self, message: str) -> None:
        self.receipt["logs"].append(message)
        self.console.emit(f"[LOG] {message}")

    def _execution_context(self) -> ExecutionContext:
        return ExecutionContext(
            context=self.context,
            output_dir=self.output_dir,
            global_store=self.global_store,
            shell=self.shell,
            prompter=self.prompter,
            resolve_path=self.resolve_path,
            execute=self.execute,
            emit=self.console.emit,
            log=self._log,
            options=self.options,
            import_stack=self._import_stack,
        )

    # --- running ---------------------------------------------------------------

    def select_task(self, tasks: List[CommandNode], preselected: Optional[str] = None) -> CommandNode:
        by_name: Dict[str, CommandNode] = {}
        for task in tasks:
            by_name.setdefault(task.payload, task)
        names = list(by_name)
        name = preselected if preselected is not None else self.prompter.choose_task(names)
        if name not in by_name:
            raise TaskSelectionError(f"unknown task {name!r} (available: {', '.join(names)})")
        logger.debug("task %r selected", name)
        return by_name[name]

    def run(self, parse_result: ParseResult, task: Optional[str] = None) -> Dict[str, Any]:
        """Execute a parsed script; returns the receipt. Raises on the first failure."""
        nodes = parse_result.nodes
        tasks = parse_result.task_nodes()
        if tasks:
            nodes = [self.select_task(tasks, task if task is not None else self.options.task)]
        try:
            self.execute(nodes)
        finally:
            self.receipt["env"] = self.context.get_all()
        return self.receipt

    def execute(self, nodes: List[CommandNode]) -> None:
        for node in nodes:
            self._dispatch(node)

    def _fail(self, node: CommandNode, step: Dict[str, Any], message: str) -> ExecutionError:
        err = ExecutionError(str(node.kind), node.line, message)
        step["status"] = "error"
        step["message"] = message
        self.console.error(str(err))
        return err

    def _dispatch(self, node: CommandNode) -> None:
        step: Dict[str, Any] = {"kind": str(node.kind), "line": node.line, "status": "running", "message": None}
        self.receipt["steps"].append(step)
        logger.debug("dispatch %s at line %d", node.kind, node.line)

        try:
            handler = self.registry.lookup(node.kind)
        except UnknownCommandError as e:
            raise self._fail(node, step, str(e)) from e

        try:
            result = handler(node, self._execution_context())
        except ExecutionError:
            # already reported by the nested dispatch
            step["status"] = "error"
            raise
        except Exception as e:
            raise self._fail(node, step, str(e) or type(e).__name__) from e

        if result is None:
            result = CommandResult.success()
        if not result.ok:
            raise self._fail(node, step, result.error or "command failed")

        step["status"] = "ok"
        step["message"] = result.message
        if not result.silent and node.kind not in QUIET_KINDS:
            suffix = f": {result.message}" if result.message else ""
            self.console.emit(f"✓ {node.kind} completed{suffix}")
