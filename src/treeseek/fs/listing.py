"""Directory-listing primitive used by the walk engine."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from treeseek.errors import EnvironmentPreconditionError

DirEntry = tuple[str, bool]
Lister = Callable[[Path], list[DirEntry]]


def list_entries(path: Path) -> list[DirEntry]:
    """Return ``(name, is_dir)`` pairs for ``path`` in enumeration order.

    Symlinks are reported as non-directories so the walk never follows them.
    Raises ``OSError`` when the directory cannot be read.
    """
    with os.scandir(path) as it:
        return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in it]


def ensure_root(root: Path) -> Path:
    """Check that ``root`` exists and is a directory before a walk starts."""
    if not root.exists():
        raise EnvironmentPreconditionError(f"Specified root directory '{root}' does not exist.")
    if not root.is_dir():
        raise EnvironmentPreconditionError(f"Specified root '{root}' is not a directory.")
    return root
