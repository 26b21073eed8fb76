"""Error taxonomy.

- ConfigError: bad configuration, raised before any container read.
- CollaboratorError: the container does not hold what a row asked for, or its
  names collide in the output tree.
- ExtractionError: a CollaboratorError located on a worklist row; aborts the pass.

Region-merge misses and unknown child kinds are not errors (see analysis.merge
and ingest.extractor).
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class ConfigError(ValueError):
    """Unrecognized flag value, unresolvable placeholder or malformed level name."""

    def __init__(self, message: str, *, row_index: Optional[int] = None, level_name: Optional[str] = None):
        self.row_index = row_index
        self.level_name = level_name
        if row_index is not None:
            message = f"config row {row_index} ({level_name!r}): {message}"
        super().__init__(message)


class CollaboratorError(LookupError):
    """The container access layer could not satisfy a request."""

    def __init__(self, message: str, *, path: str):
        self.path = path
        super().__init__(message)


class NodeNotFoundError(CollaboratorError):
    pass


class NodeKindError(CollaboratorError):
    """Node exists but has the wrong kind for the operation (e.g. dataset read on a group)."""


class AddressCollisionError(CollaboratorError):
    """An output address runs through a value already written (path is the address)."""


class ExtractionError(RuntimeError):
    """Fatal extraction failure on one worklist row.

    Attributes
    ----------
    row_index:
        0-based index of the offending row in the worklist.
    real_path:
        Container path of the row.
    cause:
        The underlying CollaboratorError.
    warnings:
        Diagnostics collected before the abort (the partial tree is discarded).
    """

    def __init__(
        self,
        row_index: int,
        real_path: str,
        cause: CollaboratorError,
        warnings: Sequence[str] = (),
    ):
        self.row_index = int(row_index)
        self.real_path = real_path
        self.cause = cause
        self.warnings: Tuple[str, ...] = tuple(warnings)
        super().__init__(f"Error on worklist row {self.row_index}: {real_path} ({cause})")
