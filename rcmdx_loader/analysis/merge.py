"""Region merge: known repeated-sibling regions of the output tree -> tables.

Best effort by design of the format: not every file populates every region, so
a template that does not resolve (absent node, wrong shape) is skipped without
error. Each concrete address is handled independently.

Table conversion (:func:`mapping_to_table`)
-------------------------------------------
- Records: every child is a group of leaves with the same field names
  -> one row per child, leading ``key`` column, one column per field.
- Columns: every child is a leaf (0-d, or n-d with a shared first axis)
  -> one column per child (0-d values are broadcast, n-d rows are object cells).

Merge levels
------------
1. The addressed node is replaced by its table.
2. As 1, plus the leaf siblings of the addressed node (its parent's other
   children) are appended as columns; the parent is replaced by the table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple

import numpy as np
import pandas as pd

from rcmdx_loader.analysis.naming import PathNamer
from rcmdx_loader.models.container_info import ContainerInfo
from rcmdx_loader.models.options import LoaderOptions
from rcmdx_loader.models.tree import Group, Leaf

KEY_COLUMN = "key"

MS_PLACEHOLDER = "[MEASURINGSYSTEM]"
DS_PLACEHOLDER = "[DATASOURCE]"
CH_PLACEHOLDER = "[CHANNEL]"

RESERVED_DATASOURCES: FrozenSet[str] = frozenset({"CONFIGURATION", "LOGGING", "MEASUREMENTMODE"})
SKIPPED_CHANNELS: FrozenSet[str] = frozenset({"timestamp", "duration"})
CHANNEL_WRAPPER = "data"


class RegionMiss(Exception):
    """A region template did not resolve to a mergeable node."""


@dataclass(frozen=True)
class RegionTemplate:
    pattern: str
    merge_level: int = 1

    @property
    def fans_out(self) -> bool:
        return MS_PLACEHOLDER in self.pattern

    @property
    def is_channel_table(self) -> bool:
        return DS_PLACEHOLDER in self.pattern and CH_PLACEHOLDER in self.pattern


_SESSION = "/RCMDX/[PLATFORM]/[SESSION_NAME]"
_SYSTEM = f"{_SESSION}/{MS_PLACEHOLDER}"

REGION_TEMPLATES: Tuple[RegionTemplate, ...] = (
    # CONFIGURATION TOPOLOGY
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/LINE", 1),
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/PROPERTY", 1),
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/SWITCHTRACK", 1),
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/TRACK", 1),
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/TRACKOBJECT", 1),
    RegionTemplate(f"{_SESSION}/CONFIGURATION/TOPOLOGY/TRACKPOINT", 1),
    # MEASURINGSYSTEM
    RegionTemplate(f"{_SYSTEM}/{DS_PLACEHOLDER}/{CH_PLACEHOLDER}", 2),
    RegionTemplate(f"{_SYSTEM}/LOGGING/AVAILABILITY", 1),
    RegionTemplate(f"{_SYSTEM}/LOGGING/CONSISTENCY", 1),
    RegionTemplate(f"{_SYSTEM}/MEASUREMENTMODE", 1),
    # EVENTS
    RegionTemplate(f"{_SESSION}/EVENTS", 1),
    # POSITION
    RegionTemplate(f"{_SESSION}/POSITION/LOGGING/AVAILABILITY", 1),
    RegionTemplate(f"{_SESSION}/POSITION/LOGGING/CONSISTENCY", 1),
    RegionTemplate(f"{_SESSION}/POSITION/MEASUREMENTMODE", 1),
    RegionTemplate(f"{_SESSION}/POSITION/POSITION.SOURCE/POSITION.SOURCE.DATA", 2),
    # SECTIONS
    RegionTemplate(f"{_SESSION}/SECTIONS", 1),
    # FILE
    RegionTemplate("/RCMDX/FILE/DATAPROCESSING/CLEARANCE", 1),
    RegionTemplate("/RCMDX/FILE/DATAPROCESSING/CONVERTERSOURCE", 1),
    RegionTemplate("/RCMDX/FILE/DATAPROCESSING/PROCESSINGLOG", 1),
)


def _column(value: Any) -> np.ndarray:
    """0-d or 1-d array view of a leaf value.

    n-d values (profiles, n x k) become an object column with one cell per row
    of their first axis.
    """
    if isinstance(value, (pd.DataFrame, pd.Series)):
        raise RegionMiss("already a table")
    a = np.asarray(value)
    if a.ndim == 2 and 1 in a.shape:
        a = a.ravel()
    if a.ndim > 1:
        rows = np.empty(a.shape[0], dtype=object)
        for k in range(a.shape[0]):
            rows[k] = a[k]
        return rows
    if a.dtype.names is not None or a.dtype.kind == "O":
        col = np.empty(a.shape, dtype=object)
        for idx in np.ndindex(a.shape):
            col[idx] = a[idx]
        a = col
    return a


def _records_table(group: Group) -> pd.DataFrame:
    children = list(group.children.items())
    fields = list(children[0][1].children.keys())
    if KEY_COLUMN in fields:
        raise RegionMiss(f"record field collides with the '{KEY_COLUMN}' column")
    cols: Dict[str, List[Any]] = {KEY_COLUMN: [], **{f: [] for f in fields}}
    for key, rec in children:
        if list(rec.children.keys()) != fields or not all(isinstance(n, Leaf) for n in rec.children.values()):
            raise RegionMiss(f"record '{key}' is not homogeneous")
        cols[KEY_COLUMN].append(key)
        for f in fields:
            cols[f].append(rec.children[f].value)

    data: Dict[str, Any] = {}
    for name, values in cols.items():
        if all(np.ndim(v) == 0 for v in values):
            data[name] = values
        else:
            col = np.empty(len(values), dtype=object)
            for k, v in enumerate(values):
                col[k] = v
            data[name] = col
    return pd.DataFrame(data)


def _columns_table(group: Group) -> pd.DataFrame:
    cols = {name: _column(node.value) for name, node in group.children.items()}
    lengths = {len(c) for c in cols.values() if c.ndim == 1}
    if len(lengths) > 1:
        raise RegionMiss(f"columns of unequal length: {sorted(lengths)}")
    n = lengths.pop() if lengths else 1
    data = {name: (np.repeat(c.reshape(1), n) if c.ndim == 0 else c) for name, c in cols.items()}
    return pd.DataFrame(data)


def mapping_to_table(group: Group) -> pd.DataFrame:
    """Convert a group of records or a group of columns into a DataFrame."""
    if not isinstance(group, Group) or not group.children:
        raise RegionMiss("not a non-empty group")
    nodes = list(group.children.values())
    if all(isinstance(n, Group) for n in nodes):
        return _records_table(group)
    if all(isinstance(n, Leaf) for n in nodes):
        return _columns_table(group)
    raise RegionMiss("mixed groups and leaves")


def lift_parent_fields(table: pd.DataFrame, parent: Group, exclude: str) -> pd.DataFrame:
    """Append the parent's leaf children (except exclude) as columns of table."""
    out = table.copy()
    for name, node in parent.children.items():
        if name == exclude:
            continue
        if not isinstance(node, Leaf):
            raise RegionMiss(f"sibling '{name}' is not a leaf")
        if name in out.columns:
            raise RegionMiss(f"sibling '{name}' collides with an existing column")
        c = _column(node.value)
        if c.ndim == 0:
            out[name] = np.repeat(c.reshape(1), len(out))
        elif len(c) == len(out):
            out[name] = c
        else:
            raise RegionMiss(f"sibling '{name}' has {len(c)} rows, table has {len(out)}")
    return out


@dataclass
class StructuralNormalizer:
    """Applies the region templates to an output tree (in place)."""
    options: LoaderOptions = field(default_factory=LoaderOptions)
    templates: Sequence[RegionTemplate] = REGION_TEMPLATES

    def normalize(self, tree: Group, info: ContainerInfo) -> List[str]:
        """Merge every resolvable region; return the addresses that became tables."""
        namer = PathNamer.from_info(info)
        merged: List[str] = []
        for template in self.templates:
            if template.is_channel_table:
                merged.extend(self._merge_channels(tree, info, namer))
                continue
            for real_path in self._real_paths(template, info):
                addr = namer.used_segments(real_path, self.options.naming_scheme)
                try:
                    merged.append(self._merge(tree, addr, template.merge_level))
                except RegionMiss:
                    continue
        return merged

    def _real_paths(self, template: RegionTemplate, info: ContainerInfo) -> List[str]:
        p = template.pattern
        for token, value in (("[PLATFORM]", info.platform), ("[SESSION_NAME]", info.session_name)):
            if token in p:
                if not value:
                    return []
                p = p.replace(token, value)
        if template.fans_out:
            return [p.replace(MS_PLACEHOLDER, ms.name) for ms in info.measuring_systems]
        return [p]

    def _merge(self, tree: Group, addr: List[str], merge_level: int) -> str:
        if len(addr) < 2:
            raise RegionMiss("region address too short")
        node = tree.find(addr)
        if not isinstance(node, Group):
            raise RegionMiss("region absent")
        table = mapping_to_table(node)
        if merge_level == 2:
            parent = tree.get(addr[:-1])
            table = lift_parent_fields(table, parent, exclude=addr[-1])
            addr = addr[:-1]
        tree.set_node(addr, Leaf(table))
        return "/".join(addr)

    def _merge_channels(self, tree: Group, info: ContainerInfo, namer: PathNamer) -> List[str]:
        scheme = self.options.naming_scheme
        merged: List[str] = []
        for ms in info.measuring_systems:
            for ds in ms.datasources:
                ds_addr = namer.used_segments(ds.path, scheme)
                if not ds_addr or ds_addr[-1] in RESERVED_DATASOURCES:
                    continue
                if not isinstance(tree.find(ds_addr), Group):
                    continue
                for ch in ds.channels:
                    ch_addr = namer.used_segments(ch.path, scheme)
                    if ch_addr[-1] in SKIPPED_CHANNELS:
                        continue
                    ch_node = tree.find(ch_addr)
                    if isinstance(ch_node, Group) and ch_node.keys() == [CHANNEL_WRAPPER]:
                        tree.set_node(ch_addr, ch_node.children[CHANNEL_WRAPPER])
                try:
                    table = mapping_to_table(tree.get(ds_addr))
                except RegionMiss:
                    continue
                tree.set_node(ds_addr, Leaf(table))
                merged.append("/".join(ds_addr))
        return merged
