"""
Shared test fixtures for the geometry ingest test suite.

Provides synthetic relation members and OSM history rows so that unit
tests run without any extract files on disk.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

# Ensure the ingest directory is on sys.path so service imports work
INGEST_DIR = Path(__file__).parent.parent
if str(INGEST_DIR) not in sys.path:
    sys.path.insert(0, str(INGEST_DIR))


# ---------------------------------------------------------------------------
# Member factories
# ---------------------------------------------------------------------------

@pytest.fixture
def way_member():
    """Factory building a way Member from a list of (x, y) coordinates."""
    from services.multipolygon import Member

    def _make(member_id, coords, role="outer", version=1):
        return Member(
            id=member_id,
            version=version,
            type="way",
            role=role,
            geometry={"type": "LineString", "coordinates": [list(c) for c in coords]},
        )

    return _make


@pytest.fixture
def node_member():
    """Factory building a node Member (admin_centre, label, ...)."""
    from services.multipolygon import Member

    def _make(member_id, lon, lat, role="admin_centre", version=1):
        return Member(
            id=member_id,
            version=version,
            type="node",
            role=role,
            geometry={"type": "Point", "coordinates": [lon, lat]},
        )

    return _make


# ---------------------------------------------------------------------------
# Ring coordinate fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def unit_square_halves():
    """Unit square split into two open ways sharing (0, 0) and (1, 1)."""
    return (
        [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)],
        [(1.0, 1.0), (0.0, 1.0), (0.0, 0.0)],
    )


@pytest.fixture
def inner_square():
    """Closed square fully inside the unit square (counter-clockwise)."""
    return [(0.25, 0.25), (0.75, 0.25), (0.75, 0.75), (0.25, 0.75), (0.25, 0.25)]


@pytest.fixture
def unit_square_ccw():
    """Unit square exterior in canonical form: CCW, starting at the minimal vertex."""
    return [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.0, 0.0]]


@pytest.fixture
def inner_square_cw():
    """Inner square in canonical hole form: CW, starting at the minimal vertex."""
    return [[0.25, 0.25], [0.25, 0.75], [0.75, 0.75], [0.75, 0.25], [0.25, 0.25]]


@pytest.fixture
def square_relation_members(way_member, unit_square_halves, inner_square):
    """Unit square outer (two ways) plus one inner square way."""
    first, second = unit_square_halves
    return [
        way_member(1, first, "outer"),
        way_member(2, second, "outer"),
        way_member(3, inner_square, "inner"),
    ]


# ---------------------------------------------------------------------------
# OSM history fixtures
# ---------------------------------------------------------------------------

def _node(node_id, version, lon, lat, ts, tags=None, visible=True, changeset=100):
    return {
        "id": node_id, "type": "node", "tags": tags or {}, "lat": lat, "lon": lon,
        "nds": [], "members": [], "changeset": changeset, "timestamp": ts,
        "uid": 1, "user": "mapper", "version": version, "visible": visible,
    }


def _way(way_id, version, nds, ts, tags=None, visible=True, changeset=200):
    return {
        "id": way_id, "type": "way", "tags": tags or {}, "lat": None, "lon": None,
        "nds": nds, "members": [], "changeset": changeset, "timestamp": ts,
        "uid": 1, "user": "mapper", "version": version, "visible": visible,
    }


def _relation(rel_id, version, members, ts, tags, visible=True, changeset=300):
    return {
        "id": rel_id, "type": "relation", "tags": tags, "lat": None, "lon": None,
        "nds": [], "members": members, "changeset": changeset, "timestamp": ts,
        "uid": 1, "user": "mapper", "version": version, "visible": visible,
    }


@pytest.fixture
def history_frame():
    """
    Small OSM history: a square park relation with a pond hole.

    - Nodes 1-4 form the unit square; node 2 moves from (1, 0) to (2, 0)
      in version 2, after way 10 v1 but before relation 100 v2.
    - Nodes 5-8 form an inner square.
    - Way 10 (1-2-3) and way 11 (3-4-1) form the outer; way 12 is the pond.
    - Node 9 is a tagged admin_centre style label node.
    - Relation 100 v1 uses both outer ways and the pond, v2 adds node 9
      as a label and way 99 that is missing from the extract.
    - Relation 101 is a route relation and must be ignored.
    - Relation 102 has no members.
    """
    t = datetime
    rows = [
        _node(1, 1, 0.0, 0.0, t(2020, 1, 1)),
        _node(2, 1, 1.0, 0.0, t(2020, 1, 1)),
        _node(3, 1, 1.0, 1.0, t(2020, 1, 1)),
        _node(4, 1, 0.0, 1.0, t(2020, 1, 1)),
        _node(5, 1, 0.25, 0.25, t(2020, 1, 1)),
        _node(6, 1, 0.75, 0.25, t(2020, 1, 1)),
        _node(7, 1, 0.75, 0.75, t(2020, 1, 1)),
        _node(8, 1, 0.25, 0.75, t(2020, 1, 1)),
        _node(9, 1, 0.5, 0.1, t(2020, 1, 1), tags={"place": "village", "name": "Middle"}),
        _node(2, 2, 2.0, 0.0, t(2020, 6, 1)),
        _way(10, 1, [1, 2, 3], t(2020, 2, 1)),
        _way(11, 1, [3, 4, 1], t(2020, 2, 1)),
        _way(12, 1, [5, 6, 7, 8, 5], t(2020, 2, 1)),
        _way(13, 1, [1, 2, 3, 4, 1], t(2020, 2, 1), tags={"building": "yes"}),
        _relation(100, 1, [
            {"type": "way", "ref": 10, "role": "outer"},
            {"type": "way", "ref": 11, "role": "outer"},
            {"type": "way", "ref": 12, "role": "inner"},
        ], t(2020, 3, 1), tags={"type": "multipolygon", "leisure": "park"}),
        _relation(100, 2, [
            {"type": "way", "ref": 10, "role": "outer"},
            {"type": "way", "ref": 11, "role": ""},
            {"type": "way", "ref": 12, "role": "inner"},
            {"type": "way", "ref": 99, "role": "outer"},
            {"type": "node", "ref": 9, "role": "label"},
        ], t(2020, 7, 1), tags={"type": "multipolygon", "leisure": "park"}),
        _relation(101, 1, [
            {"type": "way", "ref": 10, "role": ""},
        ], t(2020, 3, 1), tags={"type": "route", "route": "hiking"}),
        _relation(102, 1, [], t(2020, 3, 1), tags={"type": "boundary", "boundary": "administrative"}),
    ]
    return pd.DataFrame(rows)
