"""
Multipolygon relation reconstruction.

Turns a relation version's member list into a Polygon or MultiPolygon:
- member_filter: role filtering and (id, version) deduplication
- ring_assembler: joins way segments into closed rings
- ring_classifier: role voting, canonical winding and duplicate removal
- hole_resolver: assigns inner rings to their smallest enclosing outer ring
- polygon_assembler: builds the Polygon / MultiPolygon output
- reconstructor: the per-relation-version entry point
"""

from services.multipolygon.reconstructor import (
    reconstruct,
    reconstruct_group,
    reconstruct_with_report,
)
from services.multipolygon.types import (
    Member,
    MissingGeometryError,
    ReconstructionError,
    ReconstructionReport,
    RelationVersionGroup,
)

__all__ = [
    "reconstruct",
    "reconstruct_group",
    "reconstruct_with_report",
    "Member",
    "MissingGeometryError",
    "ReconstructionError",
    "ReconstructionReport",
    "RelationVersionGroup",
]
