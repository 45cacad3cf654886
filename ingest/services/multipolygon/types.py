"""
Value types for multipolygon relation reconstruction.

Everything here is created and consumed while processing a single
relation version; nothing is shared between groups.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Optional

Coord = tuple[float, float]

NODE = "node"
WAY = "way"
RELATION = "relation"
MEMBER_TYPES = frozenset({NODE, WAY, RELATION})


class ReconstructionError(Exception):
    """Raised when reconstruction input breaks its contract (a defect, not bad data)."""
    pass


class MissingGeometryError(ReconstructionError):
    """Raised when an area way member arrives without a geometry."""
    pass


@dataclass(frozen=True)
class Member:
    """
    One relation member as seen at a given relation version.

    Attributes:
        id: OSM id of the member element
        version: Version of the member element in effect for this relation version
        type: "node", "way" or "relation"
        role: Member role ("outer", "inner", "admin_centre", ...)
        geometry: GeoJSON geometry of the member (Point, LineString, Polygon, ...)
    """
    id: int
    version: int
    type: str
    role: str = ""
    geometry: Optional[dict] = field(default=None, compare=False)


@dataclass
class RelationVersionGroup:
    """One historical snapshot of a relation's member list."""

    relation_id: int
    changeset: int
    version: int
    timestamp: datetime
    members: list[Member] = field(default_factory=list)

    @property
    def key(self) -> tuple:
        return (self.changeset, self.relation_id, self.version, self.timestamp)


@dataclass(frozen=True)
class Segment:
    """A way member's coordinates plus the role it was tagged with."""

    member_id: int
    member_version: int
    role: str
    coords: tuple[Coord, ...]

    @property
    def start(self) -> Coord:
        return self.coords[0]

    @property
    def end(self) -> Coord:
        return self.coords[-1]

    def sort_key(self) -> tuple:
        """Canonical ordering: endpoint pair, then full geometry, then role."""
        first, last = sorted((self.start, self.end))
        return (first, last, self.coords, self.role, self.member_id, self.member_version)


@dataclass
class AssembledRing:
    """A closed ring joined from one or more segments."""

    coords: list[Coord]
    roles: list[str]


@dataclass
class ClassifiedRing:
    """A ring with its voted role, canonical winding and signed area."""

    coords: list[Coord]
    role: str
    area: float

    @property
    def min_vertex(self) -> Coord:
        return min(self.coords)


@dataclass
class ReconstructionReport:
    """
    Diagnostic notice for one relation version.

    Counts what was dropped along the way. Never raised; callers may log
    it or aggregate it across groups.
    """

    node_members: int = 0
    relation_members: int = 0
    informational_members: int = 0
    duplicate_members: int = 0
    malformed_segments: int = 0
    dangling_chains: int = 0
    degenerate_rings: int = 0
    duplicate_rings: int = 0
    unassigned_holes: int = 0

    @property
    def dropped_anything(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def summary(self) -> str:
        parts = [f"{name}={count}" for name, count in self.to_dict().items() if count]
        return ", ".join(parts) if parts else "nothing dropped"
