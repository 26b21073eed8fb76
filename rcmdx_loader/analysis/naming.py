"""Path naming -- the four write spellings of a container path.

The read spelling is the absolute container path, e.g.::

    /RCMDX/DFZ01/20240911_102800.000/DFZ01.OLWMS/DFZ01.OLWMS.OLPAR_103/DFZ01.OLWMS.OLPAR_103.WIRE01_HEIGHT

Write spellings (separator '/', no leading '/'):

- long_real  : RCMDX/DFZ01/SESSION_20240911_102800_000/DFZ01_OLWMS/DFZ01_OLWMS_OLPAR_103/DFZ01_OLWMS_OLPAR_103_WIRE01_HEIGHT
- short_real : RCMDX/DFZ01/SESSION_20240911_102800_000/OLWMS/OLPAR_103/WIRE01_HEIGHT
- long_abst  : RCMDX/PLATFORM/SESSION_NAME/PLATFORM_OLWMS/PLATFORM_OLWMS_OLPAR_103/PLATFORM_OLWMS_OLPAR_103_WIRE01_HEIGHT
- short_abst : RCMDX/PLATFORM/SESSION_NAME/OLWMS/OLPAR_103/WIRE01_HEIGHT

Every spelling is a pure function of the path and the discovered identifiers.
Segments starting with a digit get a 'PAR_' prefix; '.', '@' and '-' become '_'.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

from rcmdx_loader.models.container_info import ContainerInfo
from rcmdx_loader.models.directives import DerivedPaths
from rcmdx_loader.models.options import NamingScheme

PLATFORM_TOKEN = "PLATFORM"
SESSION_TOKEN = "SESSION_NAME"
SESSION_PREFIX = "SESSION_"

_DIGIT_SEGMENT = re.compile(r"/(?=\d)")


def _escape(path: str) -> str:
    """'.'/'@' -> '_', digit-leading segments -> 'PAR_<digit>...', drop the leading '/'."""
    path = path.replace(".", "_").replace("@", "_")
    path = _DIGIT_SEGMENT.sub("/PAR_", path)
    return path[1:] if path.startswith("/") else path


def _remove_all(text: str, tokens: Tuple[str, ...]) -> str:
    for tok in tokens:
        if tok:
            text = text.replace(tok, "")
    return text


def _identifier_safe(path: str) -> str:
    return path.replace("-", "_")


@dataclass(frozen=True)
class PathNamer:
    """
    Derives write spellings from real container paths for one file.

    platform / session_name:
        Discovered identifiers (None if the file has none).
    system_tokens / datasource_tokens:
        De-duplicated measuring-system / datasource names, removed as '<token>_'
        from the short spellings.
    """
    platform: str | None
    session_name: str | None
    system_tokens: Tuple[str, ...] = ()
    datasource_tokens: Tuple[str, ...] = ()

    @classmethod
    def from_info(cls, info: ContainerInfo) -> "PathNamer":
        return cls(
            platform=info.platform,
            session_name=info.session_name,
            system_tokens=tuple(ms.deduped for ms in info.measuring_systems),
            datasource_tokens=tuple(ds.deduped for ds in info.datasources),
        )

    def _short_tokens(self, platform_token: str | None) -> Tuple[str, ...]:
        toks = []
        if platform_token:
            toks.append(f"{platform_token}_")
        toks.extend(f"{t}_" for t in self.system_tokens)
        toks.extend(f"{t}_" for t in self.datasource_tokens)
        return tuple(toks)

    def long_real(self, real_path: str) -> str:
        p = real_path
        if self.session_name:
            p = p.replace(self.session_name, SESSION_PREFIX + self.session_name)
        return _escape(p)

    def long_abst(self, real_path: str) -> str:
        p = real_path
        # session first: session names may embed the platform name
        if self.session_name:
            p = p.replace(self.session_name, SESSION_TOKEN)
        if self.platform:
            p = p.replace(self.platform, PLATFORM_TOKEN)
        return _escape(p)

    def derive(self, real_path: str) -> DerivedPaths:
        long_real = self.long_real(real_path)
        long_abst = self.long_abst(real_path)
        short_real = _remove_all(long_real, self._short_tokens(self.platform))
        short_abst = _remove_all(long_abst, self._short_tokens(PLATFORM_TOKEN))
        return DerivedPaths(
            long_real=_identifier_safe(long_real),
            short_real=_identifier_safe(short_real),
            long_abst=_identifier_safe(long_abst),
            short_abst=_identifier_safe(short_abst),
        )

    @staticmethod
    def select(paths: DerivedPaths, scheme: NamingScheme) -> str:
        if scheme is NamingScheme.LONG_REAL:
            return paths.long_real
        if scheme is NamingScheme.SHORT_REAL:
            return paths.short_real
        if scheme is NamingScheme.LONG_ABST:
            return paths.long_abst
        return paths.short_abst

    def used_segments(self, real_path: str, scheme: NamingScheme) -> list[str]:
        """Output-tree address of a real path under the given scheme."""
        used = self.select(self.derive(real_path), scheme)
        return [s for s in used.split("/") if s]
