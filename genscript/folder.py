# genscript/folder.py
# Filesystem helpers behind `--parse-folder` and `--init`.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Union

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = ("node_modules", "dist", ".git")
STARTER_NAME = "template.gen"

STARTER_SCRIPT = """\
---
author: you
version: 0.1.0
description: Starter generation script
tags: [starter]
---
# Run with: genscript template.gen --output ./my-project

SET project = input: Project name?
SET kind = select:Project kind:[library, cli]
LOG Scaffolding {project} ({kind})

> mkdir -p {project}

FILL {project}/README.md
"
# {project}

Generated by genscript.
"

IF kind is "cli"
  WRITE "print('hello from {project}')" to {project}/main.py
END
"""


def _excluded(rel_path: str, name: str, excludes: Iterable[str]) -> bool:
    parts = rel_path.replace(os.sep, "/").split("/")
    ext = os.path.splitext(name)[1]
    for pattern in excludes:
        if pattern in parts or (pattern.startswith(".") and pattern == ext):
            return True
    return False


def snapshot_folder(root: Union[str, Path], excludes: Iterable[str] = DEFAULT_EXCLUDES) -> Dict[str, Dict[str, str]]:
    """Read every text file under root into {"templates": {relpath: content}} (COMPILE format)."""
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")
    excludes = tuple(excludes)
    templates: Dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excludes)
        for name in sorted(filenames):
            full = Path(dirpath) / name
            rel = full.relative_to(root).as_posix()
            if _excluded(rel, name, excludes):
                continue
            try:
                templates[rel] = full.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                logger.warning("skipping non-UTF-8 file %s", full)
            except OSError as e:
                logger.warning("skipping unreadable file %s: %s", full, e)
    return {"templates": templates}


def write_starter_script(directory: Union[str, Path]) -> Path:
    """Create template.gen in directory. Raises FileExistsError if one is already there."""
    target = Path(directory) / STARTER_NAME
    if target.exists():
        raise FileExistsError(f"{target} already exists")
    target.write_text(STARTER_SCRIPT, encoding="utf-8")
    return target
