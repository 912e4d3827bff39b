"""Exclusion filtering using gitwildmatch patterns."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable

import pathspec


class ExcludeFilter:
    def __init__(self, root: Path, patterns: Iterable[str] = ()) -> None:
        self.root = root
        self.patterns = [line.strip() for line in patterns if line.strip()]
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def excluded(self, path: Path, is_dir: bool) -> bool:
        try:
            rel = PurePosixPath(path.relative_to(self.root).as_posix())
        except ValueError:
            return False

        rel_text = str(rel)
        # Directory-only patterns ("build/") need the trailing slash to match.
        if is_dir:
            rel_text += "/"
        return self._spec.match_file(rel_text)
