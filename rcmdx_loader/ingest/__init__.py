"""Ingest package - container access, discovery, config tables and extraction.

This package handles:
- Reading RCM-DX (HDF5) files through h5py behind a small access contract
- Discovering Platform/Session/MeasuringSystem/Datasource/Channel identifiers
- Reading and writing the inclusion configuration as CSV
- Executing a resolved worklist into an output tree

Key classes:
- H5ContainerAccess: h5py implementation of the access contract
- ContainerDiscovery: walks the fixed top levels into a ContainerInfo
- SelectiveExtractor: reads attributes, object info and data per worklist row

Design principle:
- Every phase acquires the file handle through ``opened()`` and releases it on exit
"""
from .access import ContainerAccess, H5ContainerAccess, NodeKind, ObjectType, opened
from .discovery import ContainerDiscovery
from .extractor import SelectiveExtractor
from .memory import MemoryContainerAccess, MemoryDataset, MemoryGroup

__all__ = [
    "ContainerAccess",
    "H5ContainerAccess",
    "NodeKind",
    "ObjectType",
    "opened",
    "ContainerDiscovery",
    "SelectiveExtractor",
    "MemoryContainerAccess",
    "MemoryDataset",
    "MemoryGroup",
]
