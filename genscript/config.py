# genscript/config.py
# Run options, JSON config files and environment overrides.

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .errors import GenScriptError

ENV_GLOBALS = "GENSCRIPT_GLOBALS"
ENV_SHELL_TIMEOUT = "GENSCRIPT_SHELL_TIMEOUT"
DEFAULT_MAX_IMPORT_DEPTH = 16


class ConfigError(GenScriptError):
    pass


@dataclass
class RunOptions:
    output_dir: str = "."
    config_file: Optional[str] = None
    globals_file: Optional[str] = None     # None -> $GENSCRIPT_GLOBALS or ~/.genscript/global.json
    task: Optional[str] = None             # preselected TASK name, skips the prompt
    quiet: bool = False
    shell_timeout: Optional[float] = None  # seconds per SHELL command; None waits forever
    max_import_depth: int = DEFAULT_MAX_IMPORT_DEPTH
    load_globals: bool = True

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "RunOptions":
        """Fill unset fields from the environment."""
        env = os.environ if environ is None else environ
        globals_file = self.globals_file or env.get(ENV_GLOBALS) or None
        shell_timeout = self.shell_timeout
        raw = env.get(ENV_SHELL_TIMEOUT)
        if shell_timeout is None and raw:
            try:
                shell_timeout = float(raw)
            except ValueError as e:
                raise ConfigError(f"{ENV_SHELL_TIMEOUT} must be a number of seconds, got {raw!r}") from e
            if shell_timeout <= 0:
                shell_timeout = None
        return RunOptions(
            output_dir=self.output_dir,
            config_file=self.config_file,
            globals_file=globals_file,
            task=self.task,
            quiet=self.quiet,
            shell_timeout=shell_timeout,
            max_import_depth=self.max_import_depth,
            load_globals=self.load_globals,
        )


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON object used to pre-populate the variable context."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config file {p}: {e.strerror or e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"config file {p} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {p} must contain a JSON object")
    return data
