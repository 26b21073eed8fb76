"""Configuration expansion: inclusion directives -> flat, de-duplicated worklist.

Steps
-----
1. Normalize: parse flags (case-insensitive), drop rows with no flag set.
2. Substitute [PLATFORM] / [SESSION_NAME] with the discovered identifiers.
3. Subtree expansion: a row with an 'a' flag is demoted to 'x' and a depth-first
   walk from its path emits one row per descendant with the same (demoted) flags.
   Child order is the container's; datasets are leaves.
4. Derive the four write spellings of every row.
5. De-duplicate on (flags, real path), first occurrence wins.

ConfigError is raised before any container read.
"""

from __future__ import annotations

import re
from contextlib import nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from rcmdx_loader.analysis.naming import PathNamer
from rcmdx_loader.errors import ConfigError
from rcmdx_loader.ingest.access import ContainerAccess, H5ContainerAccess, NodeKind, join_path, opened
from rcmdx_loader.models.container_info import ContainerInfo
from rcmdx_loader.models.directives import (
    Flag,
    InclusionDirective,
    ResolvedEntry,
    dedupe_entries,
)
from rcmdx_loader.models.options import LoaderOptions

PLACEHOLDER_PLATFORM = "[PLATFORM]"
PLACEHOLDER_SESSION = "[SESSION_NAME]"

_ANY_PLACEHOLDER = re.compile(r"\[[^\]/]*\]")

# HDF5 hard links can form cycles; no RCM-DX file is anywhere near this deep.
MAX_WALK_DEPTH = 64

DirectiveLike = Union[InclusionDirective, Sequence[Optional[str]]]


def normalize_path(path: str) -> str:
    """Collapse repeated '/' and drop a trailing '/' ('/' stays '/')."""
    return "/" + "/".join(s for s in path.split("/") if s)


def resolve_placeholders(level_name: str, info: ContainerInfo, *, row_index: Optional[int] = None) -> str:
    """Replace [PLATFORM] / [SESSION_NAME]; reject anything still unresolved."""
    if not level_name.startswith("/"):
        raise ConfigError("LevelName must be an absolute path starting with '/'", row_index=row_index, level_name=level_name)

    out = level_name
    for token, value in ((PLACEHOLDER_PLATFORM, info.platform), (PLACEHOLDER_SESSION, info.session_name)):
        if token not in out:
            continue
        if not value:
            raise ConfigError(
                f"placeholder {token} cannot be resolved: identifier not discovered in file",
                row_index=row_index,
                level_name=level_name,
            )
        out = out.replace(token, value)

    m = _ANY_PLACEHOLDER.search(out)
    if m:
        raise ConfigError(f"unknown placeholder {m.group(0)}", row_index=row_index, level_name=level_name)
    if "*" in out:
        raise ConfigError("wildcards are not supported in LevelName", row_index=row_index, level_name=level_name)
    return normalize_path(out)


def coerce_directives(directives: Iterable[DirectiveLike]) -> List[InclusionDirective]:
    """Accept InclusionDirective objects or raw (Data, Attributes, ObjectInfo, LevelName) rows."""
    out: List[InclusionDirective] = []
    for i, d in enumerate(directives):
        if isinstance(d, InclusionDirective):
            out.append(d)
            continue
        row = list(d)
        if len(row) != 4:
            raise ConfigError(f"expected 4 columns (Data, Attributes, ObjectInfo, LevelName), got {len(row)}", row_index=i)
        out.append(InclusionDirective.from_row(*row, row_index=i))
    return out


@dataclass
class ConfigExpander:
    """Turns inclusion directives into the resolved worklist for one file."""
    access: ContainerAccess = field(default_factory=H5ContainerAccess)
    options: LoaderOptions = field(default_factory=LoaderOptions)

    def expand(
        self,
        file_path: str | Path,
        directives: Iterable[DirectiveLike],
        info: ContainerInfo,
    ) -> Tuple[List[ResolvedEntry], Tuple[str, ...]]:
        """Return (worklist, warnings)."""
        namer = PathNamer.from_info(info)
        warnings: List[str] = []

        # 1-2: normalize and substitute; fails fast, nothing read yet
        rows: List[Tuple[InclusionDirective, str]] = []
        for i, d in enumerate(coerce_directives(directives)):
            if d.is_empty:
                continue
            rows.append((d, resolve_placeholders(d.level_name, info, row_index=i)))

        needs_walk = any(d.has_subtree for d, _ in rows)
        scope = opened(self.access, file_path) if needs_walk else nullcontext(None)
        entries: List[ResolvedEntry] = []
        with scope as handle:
            pending = [(d, real_path, True, False) for d, real_path in rows]
            while pending:
                emitted: List[Tuple[InclusionDirective, str, bool, bool]] = []
                for d, real_path, data_required, is_group in pending:
                    if d.has_subtree:
                        data_required = data_required and d.data is not Flag.SUBTREE
                        d = d.demoted()
                        kind = self.access.classify(handle, real_path)
                        is_group = kind is NodeKind.GROUP
                        if kind is NodeKind.NOT_FOUND:
                            warnings.append(f"subtree root not found, nothing expanded: {real_path}")
                        elif is_group:
                            for child, child_is_group in self._walk(handle, real_path, 0, warnings):
                                child_row = InclusionDirective(d.data, d.attributes, d.object_info, child)
                                emitted.append((child_row, child, data_required, child_is_group))
                    entries.append(self._resolve(d, real_path, namer, data_required, is_group))
                pending = emitted

        return dedupe_entries(entries), tuple(warnings)

    def _resolve(
        self,
        d: InclusionDirective,
        real_path: str,
        namer: PathNamer,
        data_required: bool = True,
        is_group: bool = False,
    ) -> ResolvedEntry:
        paths = namer.derive(real_path)
        return ResolvedEntry(
            read_data=d.data is not Flag.NONE,
            read_attrs=d.attributes is not Flag.NONE,
            read_object_info=d.object_info is not Flag.NONE,
            real_path=real_path,
            level_name=d.level_name,
            paths=paths,
            used_path=PathNamer.select(paths, self.options.naming_scheme),
            data_required=data_required,
            is_group=is_group,
        )

    def _walk(self, handle: Any, path: str, depth: int, warnings: List[str]) -> List[Tuple[str, bool]]:
        """Pre-order (path, is_group) of every descendant of the group at path."""
        if depth >= MAX_WALK_DEPTH:
            warnings.append(f"subtree walk stopped at depth {depth}: {path}")
            return []

        out: List[Tuple[str, bool]] = []
        for name, _ in self.access.list_children(handle, path):
            child = join_path(path, name)
            is_group = self.access.classify(handle, child) is NodeKind.GROUP
            out.append((child, is_group))
            if is_group:
                out.extend(self._walk(handle, child, depth + 1, warnings))
        return out
