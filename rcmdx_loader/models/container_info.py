from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class FileInfo:
    fullpath: Path
    directory: Path
    filename: str
    stem: str
    suffix: str

    @classmethod
    def from_path(cls, file_path: str | Path) -> "FileInfo":
        p = Path(file_path).expanduser()
        return cls(fullpath=p, directory=p.parent, filename=p.name, stem=p.stem, suffix=p.suffix)


@dataclass(frozen=True)
class ChannelInfo:
    name: str
    deduped: str
    path: str


@dataclass(frozen=True)
class DatasourceInfo:
    name: str
    deduped: str
    path: str
    channels: Tuple[ChannelInfo, ...] = ()


@dataclass(frozen=True)
class MeasuringSystemInfo:
    name: str
    deduped: str
    path: str
    datasources: Tuple[DatasourceInfo, ...] = ()


@dataclass(frozen=True)
class ContainerInfo:
    """
    Identifiers discovered from the fixed top levels of an RCM-DX file.

    Notes
    - 'deduped' names strip the parent's name prefix ("<parent>.") that the format
      repeats verbatim inside descendant identifiers.
    - platform/session_name are None when the file has no /RCMDX/<platform>/<session>
      structure; extraction still works, but placeholders cannot be resolved.
    """
    file: FileInfo
    platform: Optional[str] = None
    session_name: Optional[str] = None
    session_path: Optional[str] = None
    measuring_systems: Tuple[MeasuringSystemInfo, ...] = ()
    structure_version: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @property
    def datasources(self) -> List[DatasourceInfo]:
        return [ds for ms in self.measuring_systems for ds in ms.datasources]

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain-dict view (file info, identifiers, structure version)."""
        return {
            "file": {
                "fullpath": str(self.file.fullpath),
                "directory": str(self.file.directory),
                "filename": self.file.filename,
                "stem": self.file.stem,
                "suffix": self.file.suffix,
            },
            "PLATFORM": self.platform,
            "SESSION": {"SESSION_NAME": self.session_name, "level_name": self.session_path},
            "MEASURINGSYSTEM": [
                {
                    "MEASURINGSYSTEM_NAME": ms.name,
                    "MEASURINGSYSTEM_NAME_woREP": ms.deduped,
                    "level_name": ms.path,
                    "DATASOURCE": [
                        {
                            "DATASOURCE_NAME": ds.name,
                            "DATASOURCE_NAME_woREP": ds.deduped,
                            "level_name": ds.path,
                            "CHANNEL": [
                                {"CHANNEL_NAME": ch.name, "CHANNEL_NAME_woREP": ch.deduped, "level_name": ch.path}
                                for ch in ds.channels
                            ],
                        }
                        for ds in ms.datasources
                    ],
                }
                for ms in self.measuring_systems
            ],
            "StructureVersion": self.structure_version,
        }
