"""Concurrent tree-walk engine."""

from __future__ import annotations

from treeseek.engine.models import (
    MatchEvent,
    MatchKind,
    SearchOutcome,
    SearchRequest,
    SearchStats,
)
from treeseek.engine.search import compile_pattern, search

__all__ = [
    "MatchEvent",
    "MatchKind",
    "SearchOutcome",
    "SearchRequest",
    "SearchStats",
    "compile_pattern",
    "search",
]
