"""Decide which files on disk can be converted."""

from __future__ import annotations

import os
import stat
from pathlib import Path

CONVERTIBLE_SUFFIXES = (".md", ".ts", ".js", ".tsx", ".jsx")


def can_convert(path: str | Path) -> bool:
    """Return True if *path* is a visible, regular file with a usable suffix.

    The suffix and dot-file checks run first so rejected paths are never
    touched on disk. Otherwise the path is stat'ed and a missing file raises
    :class:`FileNotFoundError`.
    """
    path = Path(path)
    if path.suffix not in CONVERTIBLE_SUFFIXES:
        return False
    if path.name.startswith("."):
        return False
    if stat.S_ISDIR(os.stat(path).st_mode):
        return False
    return True
