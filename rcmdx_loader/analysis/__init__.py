"""Analysis package: naming, configuration expansion, region merge, load pipeline.

Design principle:
  - Ingest produces raw values and tables addressed by container path.
  - Analysis decides *which* paths are read and *how* they are addressed and shaped.
"""

from .expand import ConfigExpander
from .merge import REGION_TEMPLATES, RegionTemplate, StructuralNormalizer, mapping_to_table
from .naming import PathNamer
from .pipeline import load_rcmdx

__all__ = [
    "ConfigExpander",
    "REGION_TEMPLATES",
    "RegionTemplate",
    "StructuralNormalizer",
    "mapping_to_table",
    "PathNamer",
    "load_rcmdx",
]
