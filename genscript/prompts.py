# genscript/prompts.py
# Operator interaction used by SET/GLOBAL (input:, select:, multiselect:) and
# by the top-level TASK gate. Console I/O is injectable for tests.

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .errors import HandlerError


class Prompter:
    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self._input = input_fn
        self._output = output_fn

    def ask(self, message: str, default: Optional[str] = None) -> str:
        suffix = f" [{default}]" if default else ""
        answer = self._input(f"? {message}{suffix} ").strip()
        return answer or (default or "")

    def _show_choices(self, message: str, choices: Sequence[str]) -> None:
        self._output(f"? {message}")
        for idx, choice in enumerate(choices, start=1):
            self._output(f"  {idx}) {choice}")

    def _pick_index(self, raw: str, choices: Sequence[str]) -> Optional[int]:
        raw = raw.strip()
        if raw.isdigit() and 1 <= int(raw) <= len(choices):
            return int(raw) - 1
        if raw in choices:
            return list(choices).index(raw)
        return None

    def select(self, message: str, choices: Sequence[str]) -> str:
        if not choices:
            raise HandlerError(f"select '{message}' has no options")
        self._show_choices(message, choices)
        while True:
            idx = self._pick_index(self._input("> "), choices)
            if idx is not None:
                return choices[idx]
            self._output(f"  please answer 1-{len(choices)}")

    def multiselect(self, message: str, choices: Sequence[str]) -> List[str]:
        if not choices:
            raise HandlerError(f"multiselect '{message}' has no options")
        self._show_choices(message, choices)
        while True:
            raw = self._input("> (comma separated, empty for none) ").strip()
            if not raw:
                return []
            picks = [self._pick_index(part, choices) for part in raw.split(",")]
            if all(p is not None for p in picks):
                seen: List[str] = []
                for p in picks:
                    if choices[p] not in seen:
                        seen.append(choices[p])
                return seen
            self._output(f"  please answer with numbers 1-{len(choices)} or option names")

    def choose_task(self, names: Sequence[str]) -> str:
        return self.select("Which task do you want to run?", names)
