from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

from rcmdx_loader.ingest.access import ContainerAccess, H5ContainerAccess, NodeKind, join_path, opened
from rcmdx_loader.models.container_info import (
    ChannelInfo,
    ContainerInfo,
    DatasourceInfo,
    FileInfo,
    MeasuringSystemInfo,
)

ROOT_PATH = "/RCMDX"
FILE_REGION = "FILE"

# Session children that are regions, not measuring systems (substring match).
SESSION_REGIONS: Tuple[str, ...] = ("CONFIGURATION", "POSITION", "SECTIONS", "EVENTS")
# Measuring-system children that are not datasources (substring match).
SYSTEM_REGIONS: Tuple[str, ...] = ("CONFIGURATION", "LOGGING", "MEASUREMENTMODE")


def dedupe_name(name: str, parent_name: Optional[str]) -> str:
    """Strip the '<parent>.' prefix the format repeats inside descendant names."""
    if not parent_name:
        return name
    return name.replace(f"{parent_name}.", "")


@dataclass
class ContainerDiscovery:
    """
    Walk the fixed top levels of an RCM-DX file and collect its identifiers.

    Layout:
      /RCMDX/<PLATFORM>/<SESSION>/<MEASURINGSYSTEM>/<DATASOURCE>/<CHANNEL>
      /RCMDX/FILE                       (StructureVersion attribute)

    Lenient by construction: a file without /RCMDX yields an empty ContainerInfo,
    because extraction itself does not depend on the taxonomy.
    """
    access: ContainerAccess = field(default_factory=H5ContainerAccess)

    def discover(self, file_path: str | Path) -> ContainerInfo:
        file_info = FileInfo.from_path(file_path)
        with opened(self.access, file_path) as handle:
            return self._discover(handle, file_info)

    def _group_children(self, handle: Any, path: str) -> List[str]:
        return [
            name
            for name, _ in self.access.list_children(handle, path)
            if self.access.classify(handle, join_path(path, name)) is NodeKind.GROUP
        ]

    def _discover(self, handle: Any, file_info: FileInfo) -> ContainerInfo:
        acc = self.access
        warnings: List[str] = []

        if acc.classify(handle, ROOT_PATH) is not NodeKind.GROUP:
            warnings.append(f"{ROOT_PATH} not found: no platform/session identifiers discovered")
            return ContainerInfo(file=file_info, warnings=tuple(warnings))

        # PLATFORM: every child of /RCMDX except FILE
        platforms = [n for n in self._group_children(handle, ROOT_PATH) if FILE_REGION not in n]
        if not platforms:
            warnings.append(f"no platform group under {ROOT_PATH}")
            return ContainerInfo(file=file_info, warnings=tuple(warnings),
                                 structure_version=self._structure_version(handle))
        if len(platforms) > 1:
            warnings.append(f"several platforms under {ROOT_PATH} ({', '.join(platforms)}); using '{platforms[-1]}'")
        platform = platforms[-1]
        platform_path = join_path(ROOT_PATH, platform)

        # SESSION
        sessions = self._group_children(handle, platform_path)
        if not sessions:
            warnings.append(f"no session under {platform_path}")
            return ContainerInfo(file=file_info, platform=platform, warnings=tuple(warnings),
                                 structure_version=self._structure_version(handle))
        if len(sessions) > 1:
            warnings.append(f"several sessions under {platform_path}; using '{sessions[-1]}'")
        session_name = sessions[-1]
        session_path = join_path(platform_path, session_name)

        systems: List[MeasuringSystemInfo] = []
        for ms_name in self._group_children(handle, session_path):
            if any(r in ms_name for r in SESSION_REGIONS):
                continue
            ms_path = join_path(session_path, ms_name)
            datasources: List[DatasourceInfo] = []
            for ds_name in self._group_children(handle, ms_path):
                if any(r in ds_name for r in SYSTEM_REGIONS):
                    continue
                ds_path = join_path(ms_path, ds_name)
                channels = tuple(
                    ChannelInfo(
                        name=ch_name,
                        deduped=dedupe_name(ch_name, ds_name),
                        path=join_path(ds_path, ch_name),
                    )
                    for ch_name, _ in acc.list_children(handle, ds_path)
                )
                datasources.append(
                    DatasourceInfo(
                        name=ds_name,
                        deduped=dedupe_name(ds_name, ms_name),
                        path=ds_path,
                        channels=channels,
                    )
                )
            systems.append(
                MeasuringSystemInfo(
                    name=ms_name,
                    deduped=dedupe_name(ms_name, platform),
                    path=ms_path,
                    datasources=tuple(datasources),
                )
            )

        return ContainerInfo(
            file=file_info,
            platform=platform,
            session_name=session_name,
            session_path=session_path,
            measuring_systems=tuple(systems),
            structure_version=self._structure_version(handle),
            warnings=tuple(warnings),
        )

    def _structure_version(self, handle: Any) -> Optional[str]:
        file_path = join_path(ROOT_PATH, FILE_REGION)
        if self.access.classify(handle, file_path) is NodeKind.NOT_FOUND:
            return None
        for name, value in self.access.read_attributes(handle, file_path):
            if name == "StructureVersion":
                return str(value)
        return None
