# genscript/shell.py
# Non-interactive shell session. Each command runs in a fresh platform shell
# started in `pwd`; a leading `cd <dir>` moves `pwd` for later commands.

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_CD_RE = re.compile(r"^\s*cd\s+(?P<target>[^&;|]+?)\s*(?:$|&&|;)", re.IGNORECASE)


@dataclass
class ShellResult:
    command: str
    stdout: str
    stderr: str
    code: int

    @property
    def ok(self) -> bool:
        return self.code == 0


class ShellSession:
    def __init__(self, pwd: str, *, timeout: Optional[float] = None):
        self.pwd = os.path.abspath(pwd)
        self.timeout = timeout

    def _cd_target(self, command: str) -> Optional[str]:
        m = _CD_RE.match(command)
        if not m:
            return None
        target = m.group("target").strip().strip("'\"")
        target = os.path.expanduser(target)
        return os.path.normpath(os.path.join(self.pwd, target))

    def run(self, command: str) -> ShellResult:
        if not os.path.isdir(self.pwd):
            return ShellResult(command, "", f"working directory does not exist: {self.pwd}", 1)
        logger.debug("shell [%s] $ %s", self.pwd, command)
        try:
            proc = subprocess.run(
                command,
                shell=True,
                cwd=self.pwd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            return ShellResult(command, _text(e.stdout), f"timed out after {self.timeout}s", 124)

        result = ShellResult(command, proc.stdout.strip(), proc.stderr.strip(), proc.returncode)
        if result.ok:
            target = self._cd_target(command)
            if target is not None and os.path.isdir(target):
                self.pwd = target
        return result


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(sys.getdefaultencoding(), errors="replace").strip()
    return str(value).strip()
