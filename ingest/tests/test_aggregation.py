"""Tests for services/aggregation.py: grouped relation reconstruction."""

from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytest


def _line(coords):
    return {"type": "LineString", "coordinates": [list(c) for c in coords]}


def _member_rows(relation_count=10):
    """Each relation version is a square offset by its id, split into two ways."""
    rows = []
    for rel_id in range(1, relation_count + 1):
        x = float(rel_id * 10)
        key = {"changeset": 1000 + rel_id, "id": rel_id, "version": 1, "timestamp": datetime(2021, 1, rel_id)}
        rows.append({**key, "type": "way", "ref": rel_id * 2, "member_version": 1, "role": "outer",
                     "geom": _line([(x, 0), (x + 1, 0), (x + 1, 1)])})
        rows.append({**key, "type": "way", "ref": rel_id * 2 + 1, "member_version": 1, "role": "",
                     "geom": _line([(x + 1, 1), (x, 1), (x, 0)])})
    return pd.DataFrame(rows)


class TestGroupMemberRows:
    """Test group_member_rows()."""

    def test_empty(self):
        from services.aggregation import KEY_COLUMNS, group_member_rows
        assert group_member_rows(pd.DataFrame(columns=KEY_COLUMNS)) == []

    def test_groups_by_key(self):
        from services.aggregation import group_member_rows
        groups = group_member_rows(_member_rows(3))
        assert [g.relation_id for g in groups] == [1, 2, 3]
        assert all(len(g.members) == 2 for g in groups)
        assert groups[0].members[1].role == ""

    def test_missing_role_and_geometry(self):
        from services.aggregation import group_member_rows
        rows = _member_rows(1)
        rows.loc[0, "role"] = None
        rows["geom"] = rows["geom"].astype(object)
        rows.at[1, "geom"] = float("nan")
        group = group_member_rows(rows)[0]
        assert group.members[0].role == ""
        assert group.members[1].geometry is None


class TestAggregateRelationGeometries:
    """Test aggregate_relation_geometries()."""

    def test_empty(self):
        from services.aggregation import KEY_COLUMNS, aggregate_relation_geometries
        result = aggregate_relation_geometries(pd.DataFrame(columns=KEY_COLUMNS))
        assert result.empty
        assert list(result.columns) == KEY_COLUMNS + ["geom"]

    def test_one_row_per_group(self):
        from services.aggregation import aggregate_relation_geometries
        result = aggregate_relation_geometries(_member_rows(3))
        assert list(result["id"]) == [1, 2, 3]
        assert all(g["type"] == "Polygon" for g in result["geom"])
        assert result.iloc[1]["geom"]["coordinates"][0][0] == [20.0, 0.0]

    def test_row_order_does_not_matter(self):
        from services.aggregation import aggregate_relation_geometries
        rows = _member_rows(5)
        shuffled = rows.sample(frac=1.0, random_state=7).reset_index(drop=True)
        assert list(aggregate_relation_geometries(rows)["geom"]) == \
            list(aggregate_relation_geometries(shuffled)["geom"])

    def test_worker_count_does_not_matter(self):
        from services.aggregation import aggregate_relation_geometries
        rows = _member_rows(10)
        single = aggregate_relation_geometries(rows, workers=1)
        multi = aggregate_relation_geometries(rows, workers=2)
        pd.testing.assert_frame_equal(single, multi)

    def test_lossy_groups_logged(self, caplog):
        import logging
        from services.aggregation import aggregate_relation_geometries
        rows = _member_rows(2).iloc[:3]
        with caplog.at_level(logging.INFO, logger="services.aggregation"):
            result = aggregate_relation_geometries(rows)
        assert result.iloc[1]["geom"] == {"type": "GeometryCollection", "geometries": []}
        assert "1 empty, 1 with dropped data" in caplog.text
        assert "dangling_chains=1" in caplog.text

    def test_each_lossy_group_logged_at_debug(self, caplog):
        import logging
        from services.aggregation import aggregate_relation_geometries
        rows = _member_rows(2).iloc[:3]
        with caplog.at_level(logging.DEBUG, logger="services.multipolygon.reconstructor"):
            aggregate_relation_geometries(rows)
        assert "Relation 2 v1 (changeset 1002): dangling_chains=1" in caplog.text
        assert "Relation 1 " not in caplog.text
