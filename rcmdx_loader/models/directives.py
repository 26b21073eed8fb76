from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from rcmdx_loader.errors import ConfigError


class Flag(Enum):
    """Per-column inclusion flag of a configuration row."""

    NONE = ""
    SELF = "x"
    SUBTREE = "a"

    @classmethod
    def parse(cls, value: Optional[str], *, row_index: Optional[int] = None, level_name: Optional[str] = None) -> "Flag":
        if value is None:
            return cls.NONE
        if isinstance(value, Flag):
            return value
        if isinstance(value, float) and value != value:
            # empty CSV cell read by pandas as NaN
            return cls.NONE
        vv = str(value).strip().lower()
        for flag in cls:
            if flag.value == vv:
                return flag
        raise ConfigError(
            f"unrecognized flag value {value!r} (expected '', 'x' or 'a')",
            row_index=row_index,
            level_name=level_name,
        )

    def demoted(self) -> "Flag":
        return Flag.SELF if self is Flag.SUBTREE else self


@dataclass(frozen=True)
class InclusionDirective:
    """
    One row of the inclusion configuration.

    data / attributes / object_info:
        NONE (skip), SELF (this node only) or SUBTREE (this node and every descendant).
    level_name:
        Absolute container path, optionally with [PLATFORM] / [SESSION_NAME] placeholders.
    """
    data: Flag
    attributes: Flag
    object_info: Flag
    level_name: str

    @classmethod
    def from_row(
        cls,
        data: Optional[str],
        attributes: Optional[str],
        object_info: Optional[str],
        level_name: str,
        *,
        row_index: Optional[int] = None,
    ) -> "InclusionDirective":
        name = "" if level_name is None else str(level_name).strip()
        return cls(
            data=Flag.parse(data, row_index=row_index, level_name=name),
            attributes=Flag.parse(attributes, row_index=row_index, level_name=name),
            object_info=Flag.parse(object_info, row_index=row_index, level_name=name),
            level_name=name,
        )

    @property
    def flags(self) -> Tuple[Flag, Flag, Flag]:
        return (self.data, self.attributes, self.object_info)

    @property
    def is_empty(self) -> bool:
        return all(f is Flag.NONE for f in self.flags)

    @property
    def has_subtree(self) -> bool:
        return any(f is Flag.SUBTREE for f in self.flags)

    def demoted(self) -> "InclusionDirective":
        return InclusionDirective(
            data=self.data.demoted(),
            attributes=self.attributes.demoted(),
            object_info=self.object_info.demoted(),
            level_name=self.level_name,
        )


DEFAULT_DIRECTIVES: Tuple[InclusionDirective, ...] = (
    InclusionDirective(Flag.SUBTREE, Flag.SUBTREE, Flag.SUBTREE, "/RCMDX"),
)


@dataclass(frozen=True)
class DerivedPaths:
    """The four write spellings of one container path ('/'-separated, no leading '/')."""
    long_real: str
    short_real: str
    long_abst: str
    short_abst: str


@dataclass(frozen=True)
class ResolvedEntry:
    """
    One concrete worklist row.

    real_path is the read spelling (absolute, placeholder-free); used_path is the
    write spelling selected by the naming scheme. level_name keeps the pattern the
    row came from (the real path itself for rows emitted by subtree expansion).

    data_required is False when read_data comes from an 'a' (subtree) flag: groups
    inside a subtree have no data of their own, so a data read that hits a group
    is skipped instead of failing the row. is_group records what the subtree walk
    saw at real_path (False when the row was not walked). Neither is part of the
    de-duplication key.
    """
    read_data: bool
    read_attrs: bool
    read_object_info: bool
    real_path: str
    level_name: str
    paths: DerivedPaths
    used_path: str
    data_required: bool = True
    is_group: bool = False

    @property
    def reads_data(self) -> bool:
        """True if extraction will actually read a dataset for this row."""
        return self.read_data and (self.data_required or not self.is_group)

    @property
    def flags(self) -> Tuple[bool, bool, bool]:
        return (self.read_data, self.read_attrs, self.read_object_info)

    @property
    def key(self) -> Tuple[Tuple[bool, bool, bool], str]:
        return (self.flags, self.real_path)

    @property
    def used_segments(self) -> List[str]:
        return [s for s in self.used_path.split("/") if s]


def dedupe_entries(entries: Iterable[ResolvedEntry]) -> List[ResolvedEntry]:
    """Stable de-duplication on (flags, real_path); first occurrence wins."""
    seen = set()
    out: List[ResolvedEntry] = []
    for e in entries:
        if e.key in seen:
            continue
        seen.add(e.key)
        out.append(e)
    return out
