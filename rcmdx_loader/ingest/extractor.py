from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence, Tuple

import numpy as np
import pandas as pd

from rcmdx_loader.errors import CollaboratorError, ExtractionError, NodeNotFoundError
from rcmdx_loader.ingest.access import ContainerAccess, H5ContainerAccess, NodeKind, ObjectType, opened
from rcmdx_loader.models.directives import ResolvedEntry
from rcmdx_loader.models.options import FailurePolicy, LoaderOptions
from rcmdx_loader.models.results import EntryOutcome, ExtractionResult
from rcmdx_loader.models.tree import Group

METADATA_ROOT = "metadata"
ATTRIBUTES_KEY = "attributes"
OBJECT_INFO_KEY = "objectInfo"

ATTRIBUTE_COLUMNS: Tuple[str, str] = ("Name", "Value")
OBJECT_INFO_COLUMNS: Tuple[str, str] = ("Name", "Type")

Write = Tuple[List[str], Any]


def _object_column(values: Sequence[Any]) -> np.ndarray:
    # element-wise so that equal-length array values stay one cell each
    col = np.empty(len(values), dtype=object)
    for k, v in enumerate(values):
        col[k] = v
    return col


def attribute_table(pairs: Sequence[Tuple[str, Any]]) -> pd.DataFrame:
    name_col, value_col = ATTRIBUTE_COLUMNS
    return pd.DataFrame({
        name_col: _object_column([n for n, _ in pairs]),
        value_col: _object_column([v for _, v in pairs]),
    })


def object_info_table(children: Sequence[Tuple[str, ObjectType]]) -> pd.DataFrame:
    name_col, type_col = OBJECT_INFO_COLUMNS
    return pd.DataFrame({
        name_col: _object_column([n for n, _ in children]),
        type_col: _object_column([t.value for _, t in children]),
    })


@dataclass
class SelectiveExtractor:
    """
    Executes a resolved worklist against one container file.

    Per row, strictly in worklist order: attributes, object info, data.
    A row's writes are applied to the tree only once the whole row succeeded.
    A data read on a group fails the row, unless the data flag came from a
    subtree ('a') row, in which case the group simply contributes no data.

    Failure handling (LoaderOptions.failure_policy):
      - ABORT: the first failing row raises ExtractionError; no tree is returned.
      - CONTINUE: the failure is recorded in the result and the next row runs.
    The ``warn`` option only adds the diagnostic; it never changes the outcome.
    """
    access: ContainerAccess = field(default_factory=H5ContainerAccess)
    options: LoaderOptions = field(default_factory=LoaderOptions)

    def extract(self, file_path: str | Path, worklist: Sequence[ResolvedEntry]) -> ExtractionResult:
        tree = Group()
        outcomes: List[EntryOutcome] = []
        warnings: List[str] = []

        with opened(self.access, file_path) as handle:
            for i, entry in enumerate(worklist):
                try:
                    writes = self._extract_entry(handle, entry, warnings)
                    for segments, _ in writes:
                        tree.check_insert(segments)
                except CollaboratorError as e:
                    if self.options.warn:
                        warnings.append(f"Error on worklist row {i}: {entry.real_path} ({e})")
                    if self.options.failure_policy is FailurePolicy.ABORT:
                        raise ExtractionError(i, entry.real_path, e, warnings) from e
                    outcomes.append(EntryOutcome(row_index=i, entry=entry, error=e))
                    continue
                for segments, value in writes:
                    tree.insert(segments, value)
                outcomes.append(EntryOutcome(row_index=i, entry=entry))

        return ExtractionResult(tree=tree, outcomes=tuple(outcomes), warnings=tuple(warnings))

    def _extract_entry(self, handle: Any, entry: ResolvedEntry, warnings: List[str]) -> List[Write]:
        writes: List[Write] = []
        segments = entry.used_segments
        meta = [METADATA_ROOT, *segments]

        if entry.read_attrs:
            pairs = self.access.read_attributes(handle, entry.real_path)
            writes.append((meta + [ATTRIBUTES_KEY], attribute_table(pairs)))

        if entry.read_object_info:
            kind = self.access.classify(handle, entry.real_path)
            if kind is NodeKind.NOT_FOUND:
                raise NodeNotFoundError(f"path not found in container: {entry.real_path}", path=entry.real_path)
            children: List[Tuple[str, ObjectType]] = []
            if kind is NodeKind.GROUP:
                children = self.access.list_children(handle, entry.real_path)
                if self.options.warn:
                    for name, t in children:
                        if t is ObjectType.UNKNOWN:
                            warnings.append(f"Type unknown: {entry.real_path.rstrip('/')}/{name}")
            writes.append((meta + [OBJECT_INFO_KEY], object_info_table(children)))

        if entry.read_data:
            if not entry.data_required and self.access.classify(handle, entry.real_path) is NodeKind.GROUP:
                return writes
            value = self.access.read_dataset(handle, entry.real_path)
            writes.append((segments, value))

        return writes
