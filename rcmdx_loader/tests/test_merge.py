"""Tests for region merging.

Covers:
- Record mappings -> row-per-key tables (leading key column)
- Column mappings -> column-per-key tables (0-d broadcast)
- Level-2 lifting of parent fields
- Datasource/channel tables with single-'data' wrappers
- Silent misses (absent region, heterogeneous records, length mismatch)
- Template addresses following the naming scheme
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from rcmdx_loader.analysis.merge import (
    REGION_TEMPLATES,
    RegionMiss,
    StructuralNormalizer,
    lift_parent_fields,
    mapping_to_table,
)
from rcmdx_loader.models.container_info import (
    ChannelInfo,
    ContainerInfo,
    DatasourceInfo,
    FileInfo,
    MeasuringSystemInfo,
)
from rcmdx_loader.models.options import LoaderOptions, NamingScheme
from rcmdx_loader.models.tree import Group, Leaf

PLATFORM = "DFZ01"
SESSION = "20240911_102800.000"
SESSION_PATH = f"/RCMDX/{PLATFORM}/{SESSION}"
ABST = ["RCMDX", "PLATFORM", "SESSION_NAME"]


def _info(datasources=()) -> ContainerInfo:
    ms_name = f"{PLATFORM}.OLWMS"
    ms = MeasuringSystemInfo(
        name=ms_name,
        deduped="OLWMS",
        path=f"{SESSION_PATH}/{ms_name}",
        datasources=tuple(datasources),
    )
    return ContainerInfo(
        file=FileInfo.from_path(Path("x.rcmdx")),
        platform=PLATFORM,
        session_name=SESSION,
        session_path=SESSION_PATH,
        measuring_systems=(ms,),
    )


def _datasource(channels) -> DatasourceInfo:
    ds_name = f"{PLATFORM}.OLWMS.OLPAR_103"
    ds_path = f"{SESSION_PATH}/{PLATFORM}.OLWMS/{ds_name}"
    chans = []
    for c in channels:
        # timestamp/duration are stored without the datasource prefix
        name = c if c in ("timestamp", "duration") else f"{ds_name}.{c}"
        chans.append(ChannelInfo(name=name, deduped=c, path=f"{ds_path}/{name}"))
    return DatasourceInfo(name=ds_name, deduped="OLPAR_103", path=ds_path, channels=tuple(chans))


def _records(mapping) -> Group:
    g = Group()
    for key, fields in mapping.items():
        for name, value in fields.items():
            g.insert([key, name], value)
    return g


# -----------------------------------------------------------------------
# mapping_to_table
# -----------------------------------------------------------------------


def test_records_become_rows_with_leading_key() -> None:
    table = mapping_to_table(_records({"S1": {"x": 1, "y": 2}, "S2": {"x": 3, "y": 4}}))
    assert list(table.columns) == ["key", "x", "y"]
    assert table.values.tolist() == [["S1", 1, 2], ["S2", 3, 4]]


def test_leaves_become_columns_and_scalars_broadcast() -> None:
    g = Group()
    g.insert(["timestamp"], np.array([1.0, 2.0, 3.0]))
    g.insert(["height"], np.array([5.0, 5.1, 5.2]))
    g.insert(["track"], 7)
    table = mapping_to_table(g)
    assert list(table.columns) == ["timestamp", "height", "track"]
    assert table["track"].tolist() == [7, 7, 7]


def test_array_valued_record_fields_stay_one_cell_each() -> None:
    table = mapping_to_table(_records({"S1": {"v": np.array([1, 2])}, "S2": {"v": np.array([3, 4])}}))
    assert len(table) == 2
    np.testing.assert_array_equal(table.loc[1, "v"], [3, 4])


def test_two_dimensional_leaf_becomes_one_cell_per_row() -> None:
    g = Group()
    g.insert(["timestamp"], np.array([1.0, 2.0, 3.0]))
    g.insert(["profile"], np.arange(12.0).reshape(3, 4))
    table = mapping_to_table(g)
    assert len(table) == 3
    assert table["profile"].dtype == object
    assert all(cell.shape == (4,) for cell in table["profile"])
    np.testing.assert_array_equal(table.loc[2, "profile"], [8.0, 9.0, 10.0, 11.0])


def test_single_row_matrix_is_a_plain_column() -> None:
    g = Group()
    g.insert(["v"], np.array([[1, 2, 3]]))
    assert mapping_to_table(g)["v"].tolist() == [1, 2, 3]


@pytest.mark.parametrize(
    "build",
    [
        lambda: Group(),
        lambda: _records({"S1": {"x": 1}, "S2": {"y": 2}}),
        lambda: _records({"S1": {"x": 1}, "S2": {"x": 2, "y": 3}}),
    ],
)
def test_non_tabular_mappings_miss(build) -> None:
    with pytest.raises(RegionMiss):
        mapping_to_table(build())


def test_mixed_leaves_and_groups_miss() -> None:
    g = _records({"S1": {"x": 1}})
    g.insert(["flat"], 2)
    with pytest.raises(RegionMiss):
        mapping_to_table(g)


def test_unequal_columns_miss() -> None:
    g = Group()
    g.insert(["a"], np.arange(3))
    g.insert(["b"], np.arange(4))
    with pytest.raises(RegionMiss):
        mapping_to_table(g)


def test_lift_parent_fields() -> None:
    table = pd.DataFrame({"x": [1, 2, 3]})
    parent = Group()
    parent.insert(["timestamp"], np.array([10.0, 20.0, 30.0]))
    parent.insert(["source"], "gnss")
    parent.insert(["DATA", "x"], np.array([1, 2, 3]))
    out = lift_parent_fields(table, parent, exclude="DATA")
    assert list(out.columns) == ["x", "timestamp", "source"]
    assert out["source"].tolist() == ["gnss"] * 3
    assert list(table.columns) == ["x"]


# -----------------------------------------------------------------------
# StructuralNormalizer
# -----------------------------------------------------------------------


def test_sections_merged_at_abstract_address() -> None:
    tree = Group()
    for key, (start, end) in (("S1", (1.0, 2.0)), ("S2", (2.0, 3.0))):
        tree.insert(ABST + ["SECTIONS", key, "start"], start)
        tree.insert(ABST + ["SECTIONS", key, "end"], end)

    merged = StructuralNormalizer().normalize(tree, _info())

    assert merged == ["RCMDX/PLATFORM/SESSION_NAME/SECTIONS"]
    node = tree.get(ABST + ["SECTIONS"])
    assert isinstance(node, Leaf)
    assert node.value["key"].tolist() == ["S1", "S2"]
    assert node.value["end"].tolist() == [2.0, 3.0]


def test_template_address_follows_naming_scheme() -> None:
    real = ["RCMDX", PLATFORM, "SESSION_20240911_102800_000"]
    tree = Group()
    tree.insert(real + ["EVENTS", "timestamp"], np.array([1.0, 2.0]))
    tree.insert(real + ["EVENTS", "duration"], np.array([0.1, 0.2]))

    StructuralNormalizer(options=LoaderOptions(naming_scheme=NamingScheme.LONG_REAL)).normalize(tree, _info())

    events = tree.get(real + ["EVENTS"])
    assert isinstance(events, Leaf)
    assert sorted(events.value.columns) == ["duration", "timestamp"]


def test_level_two_lifts_parent_and_replaces_it() -> None:
    base = ABST + ["POSITION", "POSITION_SOURCE"]
    tree = Group()
    tree.insert(base + ["timestamp"], np.array([100.0, 200.0, 300.0]))
    tree.insert(base + ["POSITION_SOURCE_DATA", "data_track_id"], np.array([7, 7, 8]))
    tree.insert(base + ["POSITION_SOURCE_DATA", "data_trackoffset"], np.array([0.1, 0.2, 0.3]))

    merged = StructuralNormalizer().normalize(tree, _info())

    assert "/".join(base) in merged
    node = tree.get(base)
    assert isinstance(node, Leaf)
    assert list(node.value.columns) == ["data_track_id", "data_trackoffset", "timestamp"]
    assert node.value["timestamp"].tolist() == [100.0, 200.0, 300.0]


def test_level_two_length_mismatch_is_a_silent_miss() -> None:
    base = ABST + ["POSITION", "POSITION_SOURCE"]
    tree = Group()
    tree.insert(base + ["timestamp"], np.array([1.0, 2.0]))
    tree.insert(base + ["POSITION_SOURCE_DATA", "data_track_id"], np.array([7, 7, 8]))

    assert StructuralNormalizer().normalize(tree, _info()) == []
    assert isinstance(tree.get(base), Group)


def test_datasource_channels_flattened_into_one_table() -> None:
    ds = _datasource(["timestamp", "WIRE01_HEIGHT", "WIRE01-STAGGER"])
    base = ABST + ["OLWMS", "OLPAR_103"]
    tree = Group()
    tree.insert(base + ["timestamp"], np.array([1.0, 2.0, 3.0]))
    tree.insert(base + ["WIRE01_HEIGHT", "data"], np.array([5.0, 5.1, 5.2]))
    tree.insert(base + ["WIRE01_STAGGER", "data"], np.array([-0.2, 0.0, 0.2]))

    merged = StructuralNormalizer().normalize(tree, _info([ds]))

    assert merged == ["/".join(base)]
    table = tree.get(base).value
    assert sorted(table.columns) == ["WIRE01_HEIGHT", "WIRE01_STAGGER", "timestamp"]
    assert table["WIRE01_STAGGER"].tolist() == [-0.2, 0.0, 0.2]


def test_profile_channel_merged_with_scalar_channels() -> None:
    ds = _datasource(["timestamp", "PROFILE"])
    base = ABST + ["OLWMS", "OLPAR_103"]
    tree = Group()
    tree.insert(base + ["timestamp"], np.array([1.0, 2.0, 3.0]))
    tree.insert(base + ["PROFILE", "data"], np.ones((3, 4)))

    assert StructuralNormalizer().normalize(tree, _info([ds])) == ["/".join(base)]
    table = tree.get(base).value
    assert isinstance(table, pd.DataFrame)
    assert len(table) == 3
    assert [cell.shape for cell in table["PROFILE"]] == [(4,)] * 3


def test_reserved_datasource_names_are_not_merged() -> None:
    ds = DatasourceInfo(
        name="LOGGING",
        deduped="LOGGING",
        path=f"{SESSION_PATH}/{PLATFORM}.OLWMS/LOGGING",
        channels=(ChannelInfo(name="x", deduped="x", path=f"{SESSION_PATH}/{PLATFORM}.OLWMS/LOGGING/x"),),
    )
    tree = Group()
    tree.insert(ABST + ["OLWMS", "LOGGING", "x"], np.arange(3))
    StructuralNormalizer().normalize(tree, _info([ds]))
    assert isinstance(tree.get(ABST + ["OLWMS", "LOGGING"]), Group)


def test_absent_regions_leave_tree_untouched() -> None:
    tree = Group()
    tree.insert(["metadata", "RCMDX", "attributes"], pd.DataFrame({"Name": [], "Value": []}))
    assert StructuralNormalizer().normalize(tree, _info()) == []
    assert tree.keys() == ["metadata"]


def test_templates_without_identifiers_are_skipped() -> None:
    tree = Group()
    tree.insert(["RCMDX", "FILE", "DATAPROCESSING", "PROCESSINGLOG", "timestamp"], np.array([1.0, 2.0]))
    info = ContainerInfo(file=FileInfo.from_path(Path("x.rcmdx")))
    merged = StructuralNormalizer().normalize(tree, info)
    assert merged == ["RCMDX/FILE/DATAPROCESSING/PROCESSINGLOG"]


def test_catalogue_levels() -> None:
    levels = {t.pattern.rsplit("/", 1)[-1]: t.merge_level for t in REGION_TEMPLATES}
    assert levels["POSITION.SOURCE.DATA"] == 2
    assert levels["[CHANNEL]"] == 2
    assert levels["SECTIONS"] == 1
    assert sum(t.fans_out for t in REGION_TEMPLATES) == 4
