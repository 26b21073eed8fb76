"""In-memory container for synthetic files (tests, dry runs).

Build from nested dicts: a dict is a group, a :class:`MemoryDataset` (or any
other value) is a dataset. Insertion order is the container-native child order.

>>> from rcmdx_loader.ingest.access import opened
>>> acc = MemoryContainerAccess.from_dict({"ROOT": {"A": 1.0, "B": {"C": [1, 2]}}})
>>> with opened(acc, "mem.rcmdx") as h:
...     [name for name, _ in acc.list_children(h, "/ROOT")]
['A', 'B']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from rcmdx_loader.errors import NodeKindError, NodeNotFoundError
from rcmdx_loader.ingest.access import ContainerAccess, NodeKind, ObjectType


@dataclass
class MemoryDataset:
    value: Any
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MemoryGroup:
    children: Dict[str, "MemoryNode"] = field(default_factory=dict)
    attrs: Dict[str, Any] = field(default_factory=dict)
    # object-info type override, for exercising unusual child kinds
    object_type: Optional[ObjectType] = None


MemoryNode = Union[MemoryGroup, MemoryDataset]


def _build(value: Any) -> MemoryNode:
    if isinstance(value, MemoryGroup):
        return MemoryGroup(
            children={str(k): _build(v) for k, v in value.children.items()},
            attrs=dict(value.attrs),
            object_type=value.object_type,
        )
    if isinstance(value, MemoryDataset):
        return value
    if isinstance(value, dict):
        return MemoryGroup(children={str(k): _build(v) for k, v in value.items()})
    return MemoryDataset(value)


class MemoryContainerAccess(ContainerAccess):
    """ContainerAccess over an in-memory tree. Tracks open handles."""

    def __init__(self, root: MemoryGroup):
        self.root = root
        self.open_handles = 0
        self.open_calls = 0

    @classmethod
    def from_dict(cls, tree: Dict[str, Any]) -> "MemoryContainerAccess":
        return cls(MemoryGroup(children={str(k): _build(v) for k, v in tree.items()}))

    def open(self, path: str | Path) -> "MemoryContainerAccess":
        self.open_handles += 1
        self.open_calls += 1
        return self

    def close(self, handle: Any) -> None:
        self.open_handles -= 1

    def _lookup(self, path: str) -> Optional[MemoryNode]:
        node: MemoryNode = self.root
        for seg in [s for s in path.split("/") if s]:
            if not isinstance(node, MemoryGroup) or seg not in node.children:
                return None
            node = node.children[seg]
        return node

    def _get(self, path: str) -> MemoryNode:
        node = self._lookup(path)
        if node is None:
            raise NodeNotFoundError(f"path not found in container: {path}", path=path)
        return node

    def classify(self, handle: Any, path: str) -> NodeKind:
        node = self._lookup(path)
        if isinstance(node, MemoryGroup):
            return NodeKind.GROUP
        if isinstance(node, MemoryDataset):
            return NodeKind.DATASET
        return NodeKind.NOT_FOUND

    def list_children(self, handle: Any, path: str) -> List[Tuple[str, ObjectType]]:
        node = self._get(path)
        if not isinstance(node, MemoryGroup):
            raise NodeKindError(f"not a group: {path}", path=path)
        out: List[Tuple[str, ObjectType]] = []
        for name, child in node.children.items():
            if isinstance(child, MemoryGroup):
                out.append((name, child.object_type or ObjectType.GROUP))
            else:
                out.append((name, ObjectType.DATASET))
        return out

    def read_attributes(self, handle: Any, path: str) -> List[Tuple[str, Any]]:
        return list(self._get(path).attrs.items())

    def read_dataset(self, handle: Any, path: str) -> Any:
        node = self._get(path)
        if not isinstance(node, MemoryDataset):
            raise NodeKindError(f"LevelName is not a dataset: {path}", path=path)
        return node.value
