"""Tests for services/multipolygon/member_filter.py: member selection."""

from __future__ import annotations

import pytest


class TestNormalizeRole:
    """Test role normalization."""

    def test_empty_role_is_outer(self):
        from services.multipolygon.member_filter import normalize_role
        assert normalize_role("") == "outer"
        assert normalize_role(None) == "outer"

    def test_whitespace_stripped(self):
        from services.multipolygon.member_filter import normalize_role
        assert normalize_role(" inner ") == "inner"


class TestFilterMembers:
    """Test filter_members()."""

    def test_empty_input(self):
        from services.multipolygon.member_filter import filter_members
        assert filter_members([]) == []

    def test_node_members_dropped(self, way_member, node_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import ReconstructionReport
        report = ReconstructionReport()
        members = [way_member(1, unit_square_halves[0]), node_member(50, 0.5, 0.5)]
        segments = filter_members(members, report)
        assert [s.member_id for s in segments] == [1]
        assert report.node_members == 1

    def test_informational_roles_dropped(self, way_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import ReconstructionReport
        report = ReconstructionReport()
        members = [
            way_member(1, unit_square_halves[0], "outer"),
            way_member(2, unit_square_halves[1], "subarea"),
            way_member(3, unit_square_halves[1], "label"),
            way_member(4, unit_square_halves[1], "forward"),
        ]
        segments = filter_members(members, report)
        assert [s.member_id for s in segments] == [1]
        assert report.informational_members == 3

    def test_empty_role_becomes_outer(self, way_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        segments = filter_members([way_member(1, unit_square_halves[0], "")])
        assert segments[0].role == "outer"

    def test_duplicates_collapse(self, way_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import ReconstructionReport
        report = ReconstructionReport()
        member = way_member(1, unit_square_halves[0])
        segments = filter_members([member, member, member], report)
        assert len(segments) == 1
        assert report.duplicate_members == 2

    def test_different_versions_are_not_duplicates(self, way_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        members = [
            way_member(1, unit_square_halves[0], version=1),
            way_member(1, unit_square_halves[0], version=2),
        ]
        assert len(filter_members(members)) == 2

    def test_nested_relation_dropped(self, way_member, unit_square_halves):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member, ReconstructionReport
        report = ReconstructionReport()
        members = [
            way_member(1, unit_square_halves[0]),
            Member(id=77, version=3, type="relation", role="outer", geometry=None),
        ]
        segments = filter_members(members, report)
        assert len(segments) == 1
        assert report.relation_members == 1

    def test_single_point_segment_is_malformed(self, way_member):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import ReconstructionReport
        report = ReconstructionReport()
        segments = filter_members([way_member(1, [(0.0, 0.0), (0.0, 0.0)])], report)
        assert segments == []
        assert report.malformed_segments == 1

    def test_repeated_vertices_removed(self, way_member):
        from services.multipolygon.member_filter import filter_members
        segments = filter_members([way_member(1, [(0, 0), (1, 0), (1, 0), (1, 1)])])
        assert segments[0].coords == ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0))

    def test_polygon_geometry_uses_exterior(self):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member
        ring = [[0, 0], [1, 0], [1, 1], [0, 0]]
        member = Member(id=5, version=1, type="way", role="outer",
                        geometry={"type": "Polygon", "coordinates": [ring]})
        segments = filter_members([member])
        assert len(segments[0].coords) == 4

    def test_missing_geometry_raises(self):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member, MissingGeometryError
        member = Member(id=5, version=1, type="way", role="outer", geometry=None)
        with pytest.raises(MissingGeometryError):
            filter_members([member])

    def test_missing_geometry_on_label_way_is_ignored(self):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member
        member = Member(id=5, version=1, type="way", role="label", geometry=None)
        assert filter_members([member]) == []

    def test_unsupported_geometry_raises(self):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member, ReconstructionError
        member = Member(id=5, version=1, type="way", role="outer",
                        geometry={"type": "Point", "coordinates": [0, 0]})
        with pytest.raises(ReconstructionError):
            filter_members([member])

    def test_unknown_member_type_raises(self):
        from services.multipolygon.member_filter import filter_members
        from services.multipolygon.types import Member, ReconstructionError
        with pytest.raises(ReconstructionError):
            filter_members([Member(id=1, version=1, type="area", role="outer")])

    def test_output_independent_of_order(self, square_relation_members):
        from services.multipolygon.member_filter import filter_members
        forward = filter_members(square_relation_members)
        backward = filter_members(list(reversed(square_relation_members)))
        assert forward == backward
