"""Configuration tables: directive rows <-> DataFrame <-> CSV.

CSV layout (first line is a header, ',' or ';' separated)::

    Data,Attributes,ObjectInfo,LevelName
     ,x, ,/RCMDX/[PLATFORM]/[SESSION_NAME]
    x, , ,/RCMDX/[PLATFORM]/[SESSION_NAME]/POSITION/POSITION.SOURCE/timestamp

'x' reads the node itself, 'a' the node and every descendant, blank skips.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from rcmdx_loader.errors import ConfigError
from rcmdx_loader.models.directives import Flag, InclusionDirective, ResolvedEntry

CONFIG_COLUMNS: Tuple[str, str, str, str] = ("Data", "Attributes", "ObjectInfo", "LevelName")
DERIVED_COLUMNS: Tuple[str, str, str, str] = (
    "LevelNameLongReal",
    "LevelNameShortReal",
    "LevelNameLongAbst",
    "LevelNameShortAbst",
)


def read_config_csv(path: str | Path) -> pd.DataFrame:
    """Read a configuration CSV into a 4-column string DataFrame."""
    fp = Path(path).expanduser()
    if not fp.exists():
        raise FileNotFoundError(str(fp))
    try:
        df = pd.read_csv(
            fp,
            sep=r"[;,]",
            engine="python",
            header=None,
            skiprows=1,
            usecols=list(range(len(CONFIG_COLUMNS))),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=list(CONFIG_COLUMNS), dtype=str)
    df.columns = list(CONFIG_COLUMNS)
    # short rows come back as NaN even with keep_default_na=False
    return df.fillna("")


def write_config_csv(table: pd.DataFrame, path: str | Path) -> Path:
    """Write the four canonical columns of a configuration table (comma separated)."""
    fp = Path(path).expanduser()
    missing = [c for c in CONFIG_COLUMNS if c not in table.columns]
    if missing:
        raise ValueError(f"config table is missing columns: {missing}")
    table.loc[:, list(CONFIG_COLUMNS)].to_csv(fp, sep=",", index=False)
    return fp


def directives_from_table(table: pd.DataFrame) -> List[InclusionDirective]:
    missing = [c for c in CONFIG_COLUMNS if c not in table.columns]
    if missing:
        raise ConfigError(f"config table is missing columns: {missing}")
    out: List[InclusionDirective] = []
    for i, row in enumerate(table.loc[:, list(CONFIG_COLUMNS)].itertuples(index=False)):
        out.append(InclusionDirective.from_row(*row, row_index=i))
    return out


def directives_to_table(directives: Iterable[InclusionDirective]) -> pd.DataFrame:
    rows = [(d.data.value, d.attributes.value, d.object_info.value, d.level_name) for d in directives]
    return pd.DataFrame(rows, columns=list(CONFIG_COLUMNS))


def _flag(on: bool) -> str:
    return Flag.SELF.value if on else Flag.NONE.value


def expanded_config_table(worklist: Sequence[ResolvedEntry]) -> pd.DataFrame:
    """Echo of the resolved worklist: canonical columns plus the four derived spellings.

    Data is blank on group rows whose data flag came from a subtree row (nothing
    is read there), so the echo can be fed back as a configuration unchanged.
    """
    rows = [
        (
            _flag(e.reads_data),
            _flag(e.read_attrs),
            _flag(e.read_object_info),
            e.level_name,
            e.paths.long_real,
            e.paths.short_real,
            e.paths.long_abst,
            e.paths.short_abst,
        )
        for e in worklist
    ]
    return pd.DataFrame(rows, columns=list(CONFIG_COLUMNS + DERIVED_COLUMNS))
