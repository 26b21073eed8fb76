"""Shared fixtures: small but structurally complete RCM-DX files written with h5py."""

from __future__ import annotations

from pathlib import Path

import h5py
import numpy as np
import pytest

PLATFORM = "DFZ01"
SESSION = "20240911_102800.000"


def write_rcmdx(path: Path, platform: str = PLATFORM, session: str = SESSION) -> Path:
    """
    Layout::

        /RCMDX/FILE                               StructureVersion
        /RCMDX/FILE/DATAPROCESSING/PROCESSINGLOG  timestamp, message
        /RCMDX/<P>/<S>                            Operator
        /RCMDX/<P>/<S>/CONFIGURATION/TOPOLOGY/LINE  id, name
        /RCMDX/<P>/<S>/EVENTS                     timestamp, duration
        /RCMDX/<P>/<S>/POSITION/POSITION.SOURCE   timestamp, POSITION.SOURCE.DATA/{data.track_id, data.trackoffset}
        /RCMDX/<P>/<S>/SECTIONS                   S1, S2 records (start, end)
        /RCMDX/<P>/<S>/<P>.OLWMS/LOGGING/AVAILABILITY  timestamp, available
        /RCMDX/<P>/<S>/<P>.OLWMS/<P>.OLWMS.OLPAR_103   timestamp + two channels
    """
    with h5py.File(path, "w") as f:
        root = f.create_group("RCMDX")

        file_grp = root.create_group("FILE")
        file_grp.attrs["StructureVersion"] = "2.1"
        log = file_grp.create_group("DATAPROCESSING/PROCESSINGLOG")
        log.create_dataset("timestamp", data=np.array([1.0, 2.0]))
        log.create_dataset("message", data=np.array([b"created", b"converted"]))

        sess = root.create_group(f"{platform}/{session}")
        sess.attrs["Operator"] = "track team"

        line = sess.create_group("CONFIGURATION/TOPOLOGY/LINE")
        line.create_dataset("id", data=np.array([1, 2, 3]))
        line.create_dataset("name", data=np.array([b"L1", b"L2", b"L3"]))

        events = sess.create_group("EVENTS")
        events.create_dataset("timestamp", data=np.array([10.0, 20.0]))
        events.create_dataset("duration", data=np.array([0.5, 1.5]))

        src = sess.create_group("POSITION/POSITION.SOURCE")
        src.create_dataset("timestamp", data=np.array([100.0, 200.0, 300.0]))
        src_data = src.create_group("POSITION.SOURCE.DATA")
        src_data.create_dataset("data.track_id", data=np.array([7, 7, 8]))
        src_data.create_dataset("data.trackoffset", data=np.array([0.1, 0.2, 0.3]))

        sections = sess.create_group("SECTIONS")
        for name, (start, end) in (("S1", (1.0, 2.0)), ("S2", (2.0, 3.0))):
            s = sections.create_group(name)
            s.create_dataset("start", data=start)
            s.create_dataset("end", data=end)

        ms = sess.create_group(f"{platform}.OLWMS")
        avail = ms.create_group("LOGGING/AVAILABILITY")
        avail.create_dataset("timestamp", data=np.array([1.0, 2.0]))
        avail.create_dataset("available", data=np.array([1, 0]))

        ds = ms.create_group(f"{platform}.OLWMS.OLPAR_103")
        ds.attrs["SamplingRate"] = 1000.0
        ds.create_dataset("timestamp", data=np.array([1.0, 2.0, 3.0]))
        ds.create_group(f"{platform}.OLWMS.OLPAR_103.WIRE01_HEIGHT").create_dataset(
            "data", data=np.array([5.0, 5.1, 5.2])
        )
        ds.create_group(f"{platform}.OLWMS.OLPAR_103.WIRE01-STAGGER").create_dataset(
            "data", data=np.array([-0.2, 0.0, 0.2])
        )
    return path


@pytest.fixture
def rcmdx_file(tmp_path: Path) -> Path:
    return write_rcmdx(tmp_path / f"{PLATFORM}_20240911.rcmdx")


@pytest.fixture
def rcmdx_factory(tmp_path: Path):
    """Write an RCM-DX file with a chosen platform/session under tmp_path."""
    def _make(name: str, platform: str = PLATFORM, session: str = SESSION) -> Path:
        return write_rcmdx(tmp_path / name, platform=platform, session=session)
    return _make
