from .container_info import ChannelInfo, ContainerInfo, DatasourceInfo, FileInfo, MeasuringSystemInfo
from .directives import DerivedPaths, Flag, InclusionDirective, ResolvedEntry
from .options import FailurePolicy, LoaderOptions, NamingScheme
from .results import EntryOutcome, ExtractionResult, LoadResult
from .tree import Group, Leaf

__all__ = [
    "ChannelInfo",
    "ContainerInfo",
    "DatasourceInfo",
    "FileInfo",
    "MeasuringSystemInfo",
    "DerivedPaths",
    "Flag",
    "InclusionDirective",
    "ResolvedEntry",
    "FailurePolicy",
    "LoaderOptions",
    "NamingScheme",
    "EntryOutcome",
    "ExtractionResult",
    "LoadResult",
    "Group",
    "Leaf",
]
