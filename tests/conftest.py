# tests/conftest.py
# Put the project root (the folder that contains 'genscript' and 'tests') on
# sys.path so `import genscript` works without an install, and provide the
# shared fixtures: in-memory global store, scripted prompter, executor factory.

import io
import sys
import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from genscript.config import RunOptions  # noqa: E402
from genscript.context import Context  # noqa: E402
from genscript.executor import Console, Executor  # noqa: E402
from genscript.global_store import MemoryGlobalStore  # noqa: E402
from genscript.parser import parse  # noqa: E402
from genscript.prompts import Prompter  # noqa: E402


class ScriptedPrompter(Prompter):
    """Answers prompts from a fixed list; records everything shown."""

    def __init__(self, answers=None):
        self.answers = list(answers or [])
        self.asked = []
        self.shown = []
        super().__init__(input_fn=self._next, output_fn=self.shown.append)

    def _next(self, message):
        self.asked.append(message)
        if not self.answers:
            raise EOFError("no scripted answer left")
        return self.answers.pop(0)


class Run:
    def __init__(self, executor, out, err):
        self.executor = executor
        self._out = out
        self._err = err

    @property
    def out(self):
        return self._out.getvalue()

    @property
    def err(self):
        return self._err.getvalue()

    @property
    def context(self):
        return self.executor.context


@pytest.fixture
def store():
    return MemoryGlobalStore()


@pytest.fixture
def prompter():
    return ScriptedPrompter()


@pytest.fixture
def make_executor(tmp_path, store, prompter):
    def _make(initial=None, registry=None, **option_overrides):
        out, err = io.StringIO(), io.StringIO()
        options = RunOptions(output_dir=str(tmp_path), **option_overrides)
        executor = Executor(
            Context(initial or {}),
            global_store=store,
            registry=registry,
            prompter=prompter,
            options=options,
            console=Console(out=out, err=err),
        )
        return Run(executor, out, err)

    return _make


@pytest.fixture
def run_script(make_executor):
    """Parse and run a script in tmp_path; returns the Run (raises on failure)."""
    def _run(text, initial=None, task=None, **option_overrides):
        run = make_executor(initial=initial, **option_overrides)
        run.executor.run(parse(text), task=task)
        return run

    return _run
