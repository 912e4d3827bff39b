"""Exception hierarchy for treeseek."""

from __future__ import annotations

from pathlib import Path


class TreeseekError(Exception):
    """Base class for all treeseek errors."""


class ConfigurationError(TreeseekError, ValueError):
    """A search request is malformed and was rejected before traversal."""


class EnvironmentPreconditionError(TreeseekError):
    """The environment cannot support a search (e.g. missing root)."""


class TraversalError(TreeseekError):
    """A directory could not be listed.

    Raised only into the error handler; the walk continues with the
    remaining subtrees.
    """

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Error reading directory {path}: {cause}")
        self.path = path
        self.cause = cause
