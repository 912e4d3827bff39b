"""Concurrent directory-tree search."""

from __future__ import annotations

from treeseek.engine import (
    MatchEvent,
    SearchOutcome,
    SearchRequest,
    SearchStats,
    compile_pattern,
    search,
)
from treeseek.errors import (
    ConfigurationError,
    EnvironmentPreconditionError,
    TraversalError,
    TreeseekError,
)
from treeseek.version import __version__

__all__ = [
    "ConfigurationError",
    "EnvironmentPreconditionError",
    "MatchEvent",
    "SearchOutcome",
    "SearchRequest",
    "SearchStats",
    "TraversalError",
    "TreeseekError",
    "__version__",
    "compile_pattern",
    "search",
]
