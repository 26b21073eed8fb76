from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from rcmdx_loader.errors import CollaboratorError
from rcmdx_loader.models.container_info import ContainerInfo
from rcmdx_loader.models.directives import ResolvedEntry
from rcmdx_loader.models.tree import Group


@dataclass(frozen=True)
class EntryOutcome:
    """Result of processing one worklist row.

    Attributes
    ----------
    row_index:
        0-based position in the worklist.
    entry:
        The row itself.
    error:
        None on success, else the collaborator failure that stopped the row.
    """

    row_index: int
    entry: ResolvedEntry
    error: Optional[CollaboratorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExtractionResult:
    tree: Group
    outcomes: Tuple[EntryOutcome, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def failures(self) -> Tuple[EntryOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)


@dataclass(frozen=True)
class LoadResult:
    """
    Output of :func:`rcmdx_loader.load_rcmdx`.

    tree:
        Output tree (empty when content extraction is disabled).
    config:
        Expanded configuration echo: Data, Attributes, ObjectInfo, LevelName and the
        four derived spellings, one row per worklist entry.
    info:
        Discovered identifiers and file info.
    warnings:
        Diagnostics from every phase, in order.
    failures:
        Failed rows (only non-empty under FailurePolicy.CONTINUE).
    """
    tree: Group
    config: pd.DataFrame
    info: ContainerInfo
    warnings: Tuple[str, ...] = ()
    failures: Tuple[EntryOutcome, ...] = ()
