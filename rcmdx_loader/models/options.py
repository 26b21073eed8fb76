"""Loader options -- the one immutable configuration value passed to every component.

A LoaderOptions instance can be:

- Constructed with defaults (short abstracted names, merge on, warnings on)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for provenance (``"on"``/``"off"`` accepted)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

_BOOL_TRUE = {"true", "1", "yes", "on"}
_BOOL_FALSE = {"false", "0", "no", "off"}


class NamingScheme(Enum):
    SHORT_ABST = "shortabst"
    LONG_ABST = "longabst"
    SHORT_REAL = "shortreal"
    LONG_REAL = "longreal"

    @classmethod
    def parse(cls, value: "str | NamingScheme") -> "NamingScheme":
        if isinstance(value, NamingScheme):
            return value
        vv = str(value).strip().lower()
        for s in cls:
            if s.value == vv:
                return s
        raise ValueError(f"Invalid naming scheme {value!r}. Must be one of: {', '.join(s.value for s in cls)}")

    @property
    def is_real(self) -> bool:
        return self in (NamingScheme.SHORT_REAL, NamingScheme.LONG_REAL)


class FailurePolicy(Enum):
    """What the extractor does when a worklist row cannot be satisfied."""

    ABORT = "abort"        # raise on the first failing row, no tree returned
    CONTINUE = "continue"  # record the failure, keep going, return what succeeded

    @classmethod
    def parse(cls, value: "str | FailurePolicy") -> "FailurePolicy":
        if isinstance(value, FailurePolicy):
            return value
        vv = str(value).strip().lower()
        for p in cls:
            if p.value == vv:
                return p
        raise ValueError(f"Invalid failure policy {value!r}. Must be 'abort' or 'continue'.")


def _parse_bool(v: Any, name: str) -> bool:
    if isinstance(v, bool):
        return v
    vv = str(v).strip().lower()
    if vv in _BOOL_TRUE:
        return True
    if vv in _BOOL_FALSE:
        return False
    raise ValueError(f"Option {name}: invalid argument {v!r}. Argument must be 'on' or 'off'.")


@dataclass(frozen=True)
class LoaderOptions:
    """Frozen option set for discovery, expansion, extraction and merging.

    Fields
    ------
    naming_scheme : NamingScheme
        Which of the four write spellings addresses the output tree.
    merge_regions : bool
        Convert the known repeated-sibling regions into tables after extraction.
    warn : bool
        Emit advisory diagnostics (unknown child kinds, failing row). Never changes
        whether a failure aborts; that is ``failure_policy``.
    extract_content : bool
        If False, only discovery and config expansion run (no data reads).
    failure_policy : FailurePolicy
        ABORT on the first failing row, or CONTINUE and report failures at the end.
    """

    naming_scheme: NamingScheme = NamingScheme.SHORT_ABST
    merge_regions: bool = True
    warn: bool = True
    extract_content: bool = True
    failure_policy: FailurePolicy = FailurePolicy.ABORT

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict (enums become their string values)."""
        d = asdict(self)
        d["naming_scheme"] = self.naming_scheme.value
        d["failure_policy"] = self.failure_policy.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoaderOptions":
        d = dict(d)
        if "naming_scheme" in d:
            d["naming_scheme"] = NamingScheme.parse(d["naming_scheme"])
        if "failure_policy" in d:
            d["failure_policy"] = FailurePolicy.parse(d["failure_policy"])
        for name in ("merge_regions", "warn", "extract_content"):
            if name in d:
                d[name] = _parse_bool(d[name], name)
        return cls(**d)
