"""Value types exchanged between the walk engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

MatchKind = Literal["file", "dir", "regex"]


@dataclass(frozen=True, slots=True)
class SearchRequest:
    root: Path
    file_name: str = ""
    dir_name: str = ""
    regex_pattern: str = ""
    return_early: bool = False
    max_workers: int = 10
    suppress_errors: bool = False
    exclude: tuple[str, ...] = ()

    @property
    def has_target(self) -> bool:
        return bool(self.file_name or self.dir_name or self.regex_pattern)

    def describe(self) -> dict[str, str]:
        """Requested targets keyed by kind, for logs and reports."""
        targets: dict[str, str] = {}
        if self.file_name:
            targets["file"] = self.file_name
        if self.dir_name:
            targets["dir"] = self.dir_name
        if self.regex_pattern:
            targets["regex"] = self.regex_pattern
        return targets


@dataclass(frozen=True, slots=True)
class MatchEvent:
    path: Path
    is_dir: bool
    kind: MatchKind
    depth: int = 0


@dataclass(slots=True)
class SearchStats:
    regex_matches: int = 0
    files_found: int = 0
    dirs_found: int = 0

    def snapshot(self) -> "SearchStats":
        return replace(self)


@dataclass(slots=True)
class SearchOutcome:
    file_found: bool
    dir_found: bool
    stats: SearchStats
    matches: list[MatchEvent] = field(default_factory=list)
    errors: int = 0
    cancelled: bool = False
    elapsed_s: float = 0.0
    peak_workers: int = 0
