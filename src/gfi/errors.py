"""Error taxonomy.

Filesystem-access errors are recoverable under the skip policy; everything
else aborts the run before any output is written. "No result" is not an
error and has no exception here.
"""
from __future__ import annotations


class GfiError(Exception):
    """Base class for errors reported to the user."""


class WalkError(GfiError):
    """A directory could not be listed or an entry could not be resolved."""

    def __init__(self, path: str, cause: BaseException | None = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot read [{path}]{detail}")


class InputShapeError(GfiError):
    """Malformed snapshot or table, missing column, or bad column index."""


class InsufficientInputError(InputShapeError):
    def __init__(self, given: int):
        self.given = given
        super().__init__(f"At least 2 sources are required, got {given}")


class OutputError(GfiError):
    """Output could not be created or written."""
