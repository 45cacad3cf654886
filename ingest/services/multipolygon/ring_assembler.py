"""
Ring assembly for multipolygon relations.

Relation members come unordered and with inconsistent direction. This
module joins way segments at shared endpoints into closed rings.

Algorithm:
1. Sort segments canonically so the result never depends on input order
2. Keep an arena of open chains plus an index from endpoint key to chain ids
3. For each segment, absorb every open chain touching one of its free ends,
   reversing as needed, until nothing touches or the chain closes
4. Whenever a chain revisits a vertex, cut the loop between the two visits
   out as its own ring, so rings touching at a single vertex stay separate
5. Closed chains become rings; chains still open at the end are dropped
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from config import COORDINATE_PRECISION
from services.multipolygon.types import AssembledRing, Coord, ReconstructionReport, Segment
from services.utils.geo import coord_key

logger = logging.getLogger(__name__)

# (segment ordinal, role) for one edge of a chain
Edge = tuple[int, str]


@dataclass
class _Chain:
    coords: list[Coord]
    edges: list[Edge]

    def reversed(self) -> _Chain:
        return _Chain(coords=self.coords[::-1], edges=self.edges[::-1])


def _edge_roles(edges: list[Edge]) -> list[str]:
    """One role per contributing segment, in order of first appearance."""
    return list({ordinal: role for ordinal, role in edges}.values())


class RingAssembler:
    """
    Joins segments into rings.

    Chains live in an arena keyed by integer id; the endpoint index maps a
    rounded coordinate to the ids of open chains ending there. Lookups and
    merges are dict operations, and chains never reference each other.

    Every edge remembers the segment it came from, so a ring cut out of
    a longer chain still votes with the roles of its own segments.
    """

    def __init__(self, precision: int = COORDINATE_PRECISION):
        self.precision = precision
        self.rings: list[AssembledRing] = []
        self._chains: dict[int, _Chain] = {}
        self._endpoints: dict[Coord, list[int]] = defaultdict(list)
        self._next_id = 0
        self._next_segment = 0

    def _key(self, coord: Coord) -> Coord:
        return coord_key(coord, self.precision)

    def _register(self, chain: _Chain) -> None:
        chain_id = self._next_id
        self._next_id += 1
        self._chains[chain_id] = chain
        self._endpoints[self._key(chain.coords[0])].append(chain_id)
        self._endpoints[self._key(chain.coords[-1])].append(chain_id)

    def _unregister(self, chain_id: int) -> _Chain:
        chain = self._chains.pop(chain_id)
        for end in (chain.coords[0], chain.coords[-1]):
            key = self._key(end)
            ids = self._endpoints[key]
            ids.remove(chain_id)
            if not ids:
                del self._endpoints[key]
        return chain

    def _find_touching(self, coords: list[Coord]) -> Optional[int]:
        candidates = self._endpoints.get(self._key(coords[0]), []) + \
            self._endpoints.get(self._key(coords[-1]), [])
        return min(candidates) if candidates else None

    def _join(self, chain: _Chain, other: _Chain) -> _Chain:
        """Join two open chains sharing an endpoint, keeping the shared vertex once."""
        key = self._key
        if key(chain.coords[-1]) == key(other.coords[-1]):
            other = other.reversed()
        elif key(chain.coords[0]) == key(other.coords[0]):
            chain = chain.reversed()
        elif key(chain.coords[0]) == key(other.coords[-1]):
            chain, other = other, chain
        elif key(chain.coords[-1]) != key(other.coords[0]):
            raise ValueError("Chains do not share an endpoint")
        return _Chain(coords=chain.coords + other.coords[1:], edges=chain.edges + other.edges)

    def _emit(self, coords: list[Coord], edges: list[Edge]) -> None:
        # Snap the closing vertex so the ring is exactly closed
        coords = list(coords)
        coords[-1] = coords[0]
        self.rings.append(AssembledRing(coords=coords, roles=_edge_roles(edges)))

    def _split_loops(self, chain: _Chain) -> Optional[_Chain]:
        """
        Emit every closed loop contained in a chain.

        Returns what is left as an open chain, or None when the whole
        chain closed. Zero-length edges (vertices equal after rounding)
        are collapsed rather than emitted.
        """
        while True:
            seen: dict[Coord, int] = {}
            for j, coord in enumerate(chain.coords):
                key = self._key(coord)
                if key in seen:
                    break
                seen[key] = j
            else:
                return chain

            i = seen[key]
            if j - i > 1:
                self._emit(chain.coords[i:j + 1], chain.edges[i:j])
            if i == 0 and j == len(chain.coords) - 1:
                return None
            chain = _Chain(
                coords=chain.coords[:i + 1] + chain.coords[j + 1:],
                edges=chain.edges[:i] + chain.edges[j:],
            )

    def add(self, segment: Segment) -> None:
        """Add one segment, merging with open chains and emitting any ring it closes."""
        ordinal = self._next_segment
        self._next_segment += 1
        coords = list(segment.coords)
        chain: Optional[_Chain] = _Chain(
            coords=coords,
            edges=[(ordinal, segment.role)] * (len(coords) - 1),
        )

        while True:
            chain = self._split_loops(chain)
            if chain is None:
                return
            chain_id = self._find_touching(chain.coords)
            if chain_id is None:
                break
            chain = self._join(self._unregister(chain_id), chain)

        self._register(chain)

    @property
    def open_chains(self) -> list[list[Coord]]:
        """Coordinates of chains that never closed, in creation order."""
        return [self._chains[i].coords for i in sorted(self._chains)]


def assemble_rings(
    segments: Iterable[Segment],
    report: Optional[ReconstructionReport] = None,
) -> list[AssembledRing]:
    """
    Assemble the maximal set of closed rings from segments.

    No edge is used in more than one ring, and no ring passes through
    the same vertex twice. Segments that cannot be closed (incomplete
    member lists, extract boundaries) are dropped.

    Args:
        segments: Segments in any order
        report: Optional report receiving the dangling chain count

    Returns:
        List of closed rings in a deterministic order
    """
    assembler = RingAssembler()
    for segment in sorted(segments, key=Segment.sort_key):
        assembler.add(segment)

    dangling = assembler.open_chains
    if dangling:
        logger.debug(f"Dropping {len(dangling)} chain(s) that never closed")
        if report is not None:
            report.dangling_chains += len(dangling)

    return assembler.rings
