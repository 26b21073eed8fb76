"""Command-line loader for RCM-DX files.

Examples
--------
Whole file, short abstracted names::

    python -m rcmdx_loader.scripts.load_rcmdx DFZ01_20240911.rcmdx

Structure only, dump the expanded configuration for editing::

    python -m rcmdx_loader.scripts.load_rcmdx DFZ01_20240911.rcmdx --config-only --write-config cfg.csv

Then load just what the edited configuration asks for::

    python -m rcmdx_loader.scripts.load_rcmdx DFZ01_20240911.rcmdx --config cfg.csv
"""

from __future__ import annotations

import sys
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from rcmdx_loader.analysis.pipeline import load_rcmdx
from rcmdx_loader.errors import ConfigError, ExtractionError
from rcmdx_loader.ingest.config_table import read_config_csv, write_config_csv
from rcmdx_loader.models.options import FailurePolicy, LoaderOptions, NamingScheme


def _describe(value: Any) -> str:
    if isinstance(value, pd.DataFrame):
        return f"table {value.shape[0]}x{value.shape[1]}"
    a = np.asarray(value)
    if a.ndim == 0:
        return f"{a.dtype} scalar"
    return f"{a.dtype} {'x'.join(str(s) for s in a.shape)}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m rcmdx_loader.scripts.load_rcmdx",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Load data, attributes and object info from an RCM-DX file.

            Without --config the whole file is read (a, a, a, /RCMDX).
            The config CSV has the header Data,Attributes,ObjectInfo,LevelName;
            'x' reads the node, 'a' the node and all its descendants.
            """
        ),
    )
    p.add_argument("file", help="RCM-DX file (.rcmdx)")
    p.add_argument("--config", default=None, help="Configuration CSV (',' or ';' separated)")
    p.add_argument(
        "--naming",
        default=NamingScheme.SHORT_ABST.value,
        choices=[s.value for s in NamingScheme],
        help="Output naming scheme (default: shortabst)",
    )
    p.add_argument("--no-merge", action="store_true", help="Keep the container structure, do not merge regions into tables")
    p.add_argument("--no-warnings", action="store_true", help="Do not emit advisory diagnostics")
    p.add_argument("--config-only", action="store_true", help="Only discover and expand the configuration; read no data")
    p.add_argument("--continue-on-error", action="store_true", help="Record failing rows and keep going instead of aborting")
    p.add_argument("--write-config", default=None, help="Write the expanded configuration to this CSV path")

    ns = p.parse_args(list(argv) if argv is not None else None)

    opts = LoaderOptions(
        naming_scheme=NamingScheme.parse(ns.naming),
        merge_regions=not ns.no_merge,
        warn=not ns.no_warnings,
        extract_content=not ns.config_only,
        failure_policy=FailurePolicy.CONTINUE if ns.continue_on_error else FailurePolicy.ABORT,
    )

    try:
        directives = read_config_csv(ns.config) if ns.config else None
        res = load_rcmdx(ns.file, directives=directives, options=opts)
    except (ConfigError, ExtractionError) as e:
        if isinstance(e, ExtractionError):
            for msg in e.warnings:
                print(f"[warn] {msg}", file=sys.stderr)
        print(f"[error] {e}", file=sys.stderr)
        return 1

    for msg in res.warnings:
        print(f"[warn] {msg}")

    info = res.info
    print(f"[info] platform={info.platform} session={info.session_name} structure_version={info.structure_version}")
    for ms in info.measuring_systems:
        print(f"[info]   system {ms.deduped}: {len(ms.datasources)} datasource(s)")
    print(f"[info] worklist rows: {len(res.config)}")

    for addr, value in res.tree.leaves():
        print(f"  {'.'.join(addr)}: {_describe(value)}")
    for f in res.failures:
        print(f"[warn] failed row {f.row_index}: {f.entry.real_path} ({f.error})")

    if ns.write_config:
        out = write_config_csv(res.config, ns.write_config)
        print(f"[info] config written in {out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
