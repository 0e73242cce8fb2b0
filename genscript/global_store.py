# genscript/global_store.py
# Cross-run variable store. The file format is a flat JSON object.

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import GlobalStoreError

logger = logging.getLogger(__name__)

DEFAULT_GLOBALS_PATH = Path.home() / ".genscript" / "global.json"


class GlobalStore:
    """JSON-file backed store. Every call re-reads the file so concurrent runs see each other's writes."""

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else DEFAULT_GLOBALS_PATH

    def load(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise GlobalStoreError(f"cannot read global store {self.path}: {e}") from e
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise GlobalStoreError(f"global store {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise GlobalStoreError(f"global store {self.path} must hold a JSON object")
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def has(self, key: str) -> bool:
        return key in self.load()

    def set(self, key: str, value: Any) -> None:
        data = self.load()
        data[key] = value
        self._save(data)
        logger.debug("global %s saved to %s", key, self.path)

    def erase(self, key: str) -> bool:
        data = self.load()
        if key not in data:
            return False
        del data[key]
        self._save(data)
        return True

    def clear(self) -> None:
        self._save({})

    def sync_into(self, context) -> int:
        """Copy every stored global into a Context; returns how many were set."""
        data = self.load()
        context.update(data)
        return len(data)

    def describe(self) -> str:
        return str(self.path)


class MemoryGlobalStore(GlobalStore):
    """In-process stand-in with the same contract; nothing touches disk."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        super().__init__(path=Path("<memory>"))
        self._data: Dict[str, Any] = dict(initial or {})

    def load(self) -> Dict[str, Any]:
        return dict(self._data)

    def _save(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)

    def describe(self) -> str:
        return "<memory>"
