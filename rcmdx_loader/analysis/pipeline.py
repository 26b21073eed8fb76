"""Load pipeline: discovery -> config expansion -> extraction -> region merge.

Example::

    from rcmdx_loader import LoaderOptions, NamingScheme, load_rcmdx

    res = load_rcmdx("DFZ01_20240911.rcmdx")                       # whole file
    res = load_rcmdx(path, directives=[("x", "", "", "/RCMDX/[PLATFORM]/[SESSION_NAME]/EVENTS/timestamp")])
    res = load_rcmdx(path, options=LoaderOptions(extract_content=False))  # structure + config only

Each phase opens the file itself and closes it before returning, error or not.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from rcmdx_loader.analysis.expand import ConfigExpander, DirectiveLike
from rcmdx_loader.analysis.merge import StructuralNormalizer
from rcmdx_loader.ingest.access import ContainerAccess, H5ContainerAccess
from rcmdx_loader.ingest.config_table import directives_from_table, expanded_config_table
from rcmdx_loader.ingest.discovery import ContainerDiscovery
from rcmdx_loader.ingest.extractor import SelectiveExtractor
from rcmdx_loader.models.directives import DEFAULT_DIRECTIVES
from rcmdx_loader.models.options import LoaderOptions
from rcmdx_loader.models.results import LoadResult
from rcmdx_loader.models.tree import Group


def load_rcmdx(
    file_path: str | Path,
    directives: Optional[Iterable[DirectiveLike] | pd.DataFrame] = None,
    options: Optional[LoaderOptions] = None,
    access: Optional[ContainerAccess] = None,
) -> LoadResult:
    """Load the parts of an RCM-DX file selected by directives.

    Parameters
    ----------
    file_path:
        The .rcmdx file.
    directives:
        InclusionDirective objects, raw (Data, Attributes, ObjectInfo, LevelName) rows
        or a config DataFrame. Default: everything (``a, a, a, /RCMDX``).
    options:
        LoaderOptions; defaults apply if omitted.
    access:
        Container access service; h5py-backed by default.

    Raises
    ------
    ConfigError
        Bad configuration (before any data read).
    ExtractionError
        A row failed under FailurePolicy.ABORT; no partial tree is returned.
    """
    opts = options or LoaderOptions()
    acc = access or H5ContainerAccess()
    if directives is None:
        rows: Iterable[DirectiveLike] = DEFAULT_DIRECTIVES
    elif isinstance(directives, pd.DataFrame):
        rows = directives_from_table(directives)
    else:
        rows = directives

    warnings: List[str] = []

    info = ContainerDiscovery(access=acc).discover(file_path)
    warnings.extend(info.warnings)

    worklist, expand_warnings = ConfigExpander(access=acc, options=opts).expand(file_path, rows, info)
    warnings.extend(expand_warnings)
    config = expanded_config_table(worklist)

    if not opts.extract_content:
        return LoadResult(tree=Group(), config=config, info=info, warnings=tuple(warnings))

    extraction = SelectiveExtractor(access=acc, options=opts).extract(file_path, worklist)
    warnings.extend(extraction.warnings)
    tree = extraction.tree

    if opts.merge_regions:
        StructuralNormalizer(options=opts).normalize(tree, info)

    return LoadResult(
        tree=tree,
        config=config,
        info=info,
        warnings=tuple(warnings),
        failures=extraction.failures,
    )
