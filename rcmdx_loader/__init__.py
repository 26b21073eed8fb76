"""RCM-DX Loader -- selective extraction from RCM-DX rail-measurement files.

RCM-DX files are HDF5 containers with a fixed region taxonomy
(Platform -> Session -> MeasuringSystem -> Datasource -> Channel, plus the
CONFIGURATION, POSITION, SECTIONS, EVENTS and FILE regions).

This package provides tools for:
- Discovering the Platform/Session/MeasuringSystem/Datasource/Channel identifiers of a file
- Expanding a declarative inclusion configuration into an explicit worklist
- Deriving the four write spellings of a container path (long/short, real/abstracted)
- Extracting data, attributes and object info into an addressable output tree
- Merging known repeated-sibling regions into tables

Key principles:
- The configuration is the contract: nothing is read unless a row asks for it
- Deterministic naming: spellings depend only on the path and discovered identifiers
- Fail loudly on extraction errors, skip silently on absent optional regions

Main subpackages:
- analysis: Naming, config expansion, region merging, pipeline
- ingest: Container access (h5py), discovery, config tables, extraction
- models: Data models (directives, container info, output tree, options, results)
"""

from .analysis.pipeline import load_rcmdx
from .models.options import FailurePolicy, LoaderOptions, NamingScheme

__all__ = [
    "load_rcmdx",
    "FailurePolicy",
    "LoaderOptions",
    "NamingScheme",
]
