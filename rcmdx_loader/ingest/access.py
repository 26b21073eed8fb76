"""Container access -- the primitive read service below discovery, expansion and extraction.

Contract (all paths absolute, '/'-separated, case-sensitive):

- ``open(path) -> handle`` / ``close(handle)``
- ``classify(handle, path) -> NodeKind`` (GROUP, DATASET or NOT_FOUND)
- ``list_children(handle, path) -> [(name, ObjectType), ...]`` in container-native order
- ``read_attributes(handle, path) -> [(name, value), ...]``
- ``read_dataset(handle, path) -> value``

Callers acquire handles with :func:`opened`, which guarantees release on every
exit path. NodeKind drives control flow; ObjectType is informational only
(object-info tables).
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Tuple

import h5py
import numpy as np

from rcmdx_loader.errors import NodeKindError, NodeNotFoundError


class NodeKind(Enum):
    GROUP = "group"
    DATASET = "dataset"
    NOT_FOUND = "not_found"


class ObjectType(Enum):
    """Classification of a group child as listed in object-info tables."""

    GROUP = "GROUP"
    DATASET = "DATASET"
    DATATYPE = "DATATYPE"
    DATASPACE = "DATASPACE"
    ATTRIBUTE = "ATTRIBUTE"
    INVALID = "INVALID"
    UNKNOWN = "UNKNOWN"


def join_path(parent: str, name: str) -> str:
    return parent.rstrip("/") + "/" + name


def leaf_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


class ContainerAccess:
    """Abstract container access service."""

    def open(self, path: str | Path) -> Any:
        raise NotImplementedError

    def close(self, handle: Any) -> None:
        raise NotImplementedError

    def classify(self, handle: Any, path: str) -> NodeKind:
        raise NotImplementedError

    def list_children(self, handle: Any, path: str) -> List[Tuple[str, ObjectType]]:
        raise NotImplementedError

    def read_attributes(self, handle: Any, path: str) -> List[Tuple[str, Any]]:
        raise NotImplementedError

    def read_dataset(self, handle: Any, path: str) -> Any:
        raise NotImplementedError


@contextmanager
def opened(access: ContainerAccess, path: str | Path) -> Iterator[Any]:
    """Scoped handle acquisition: the handle is closed even if the body raises."""
    handle = access.open(path)
    try:
        yield handle
    finally:
        access.close(handle)


def _decode(value: Any) -> Any:
    """Byte strings from fixed-length HDF5 strings -> str (scalars and arrays)."""
    if isinstance(value, (bytes, np.bytes_)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, np.ndarray):
        if value.dtype.kind == "S":
            return np.char.decode(value, "utf-8", errors="replace")
        if value.dtype.kind == "O":
            return np.array(
                [v.decode("utf-8", errors="replace") if isinstance(v, bytes) else v for v in value.ravel()],
                dtype=object,
            ).reshape(value.shape)
    return value


class H5ContainerAccess(ContainerAccess):
    """Read-only access to RCM-DX (HDF5) files through h5py.

    Child order is h5py's link iteration order (name order, or creation order for
    groups created with track_order).
    """

    def open(self, path: str | Path) -> h5py.File:
        fp = Path(path).expanduser()
        if not fp.exists():
            raise FileNotFoundError(str(fp))
        return h5py.File(fp, "r")

    def close(self, handle: h5py.File) -> None:
        handle.close()

    def classify(self, handle: h5py.File, path: str) -> NodeKind:
        obj = handle.get(path)
        if isinstance(obj, h5py.Group):
            return NodeKind.GROUP
        if isinstance(obj, h5py.Dataset):
            return NodeKind.DATASET
        return NodeKind.NOT_FOUND

    def _get(self, handle: h5py.File, path: str) -> Any:
        obj = handle.get(path)
        if obj is None:
            raise NodeNotFoundError(f"path not found in container: {path}", path=path)
        return obj

    def list_children(self, handle: h5py.File, path: str) -> List[Tuple[str, ObjectType]]:
        group = self._get(handle, path)
        if not isinstance(group, h5py.Group):
            raise NodeKindError(f"not a group: {path}", path=path)
        out: List[Tuple[str, ObjectType]] = []
        for name in group:
            child = group.get(name)
            if child is None:
                # dangling soft/external link
                kind = ObjectType.INVALID
            elif isinstance(child, h5py.Group):
                kind = ObjectType.GROUP
            elif isinstance(child, h5py.Dataset):
                kind = ObjectType.DATASET
            elif isinstance(child, h5py.Datatype):
                kind = ObjectType.DATATYPE
            else:
                kind = ObjectType.UNKNOWN
            out.append((name, kind))
        return out

    def read_attributes(self, handle: h5py.File, path: str) -> List[Tuple[str, Any]]:
        obj = self._get(handle, path)
        return [(name, _decode(value)) for name, value in obj.attrs.items()]

    def read_dataset(self, handle: h5py.File, path: str) -> Any:
        obj = self._get(handle, path)
        if not isinstance(obj, h5py.Dataset):
            raise NodeKindError(f"LevelName is not a dataset: {path}", path=path)
        if h5py.check_string_dtype(obj.dtype) is not None:
            return obj.asstr()[()]
        return obj[()]
