"""
Intersection & Grid Builder

Finds where horizontal and vertical edges cross, groups crossing edges into
disjoint table regions and turns each region into an ordered lattice of row
and column boundaries.

Algorithm:
1. Every horizontal/vertical pair is tested for a crossing within the
   intersection tolerance
2. Edges joined by crossings are merged with union-find; edges that cross
   nothing are orphans and never contribute boundaries
3. Each connected group of edges is a candidate region; its row and column
   boundaries are the clustered edge positions
4. A region needs at least two boundaries on each axis to form a grid
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..layout.geometry import Orientation, cluster
from .models import Edge, Grid, Intersection
from .settings import TableSettings


@dataclass
class Region:
    """A connected group of crossing edges: one table candidate."""
    edges: List[Edge] = field(default_factory=list)
    intersections: List[Intersection] = field(default_factory=list)

    @property
    def horizontal(self) -> List[Edge]:
        return [e for e in self.edges if e.orientation is Orientation.HORIZONTAL]

    @property
    def vertical(self) -> List[Edge]:
        return [e for e in self.edges if e.orientation is Orientation.VERTICAL]


def edges_cross(h: Edge, v: Edge, tolerance_x: float, tolerance_y: float) -> bool:
    """Whether a horizontal and a vertical edge cross within tolerance."""
    return (
        h.start - tolerance_x <= v.position <= h.end + tolerance_x
        and v.start - tolerance_y <= h.position <= v.end + tolerance_y
    )


def find_intersections(edges: Sequence[Edge], settings: TableSettings) -> List[Intersection]:
    """
    Find all crossings between horizontal and vertical edges.

    Returns:
        Intersections ordered top-to-bottom, then left-to-right
    """
    tol_x = settings.intersection_x
    tol_y = settings.intersection_y

    horizontals = [(i, e) for i, e in enumerate(edges) if e.orientation is Orientation.HORIZONTAL]
    verticals = [(i, e) for i, e in enumerate(edges) if e.orientation is Orientation.VERTICAL]

    intersections = [
        Intersection(x=v.position, y=h.position, horizontal=hi, vertical=vi)
        for hi, h in horizontals
        for vi, v in verticals
        if edges_cross(h, v, tol_x, tol_y)
    ]
    intersections.sort(key=lambda p: (p.y, p.x, p.horizontal, p.vertical))
    return intersections


class _DisjointSet:
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int):
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Lower index wins so group roots are deterministic
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra


def group_regions(edges: Sequence[Edge], intersections: Sequence[Intersection]) -> List[Region]:
    """
    Split edges into disjoint regions connected by intersections.

    Orphan edges (part of no intersection) are left out entirely.
    """
    if not intersections:
        return []

    sets = _DisjointSet(len(edges))
    for point in intersections:
        sets.union(point.horizontal, point.vertical)

    connected = sorted({p.horizontal for p in intersections} | {p.vertical for p in intersections})
    regions: Dict[int, Region] = {}
    for index in connected:
        regions.setdefault(sets.find(index), Region()).edges.append(edges[index])
    for point in intersections:
        regions[sets.find(point.horizontal)].intersections.append(point)

    return [regions[root] for root in sorted(regions)]


def build_grid(region: Region, settings: TableSettings) -> Optional[Grid]:
    """
    Build the boundary lattice of a region.

    Returns:
        Grid, or None when the region has fewer than two distinct row or
        column boundaries
    """
    rows = cluster((e.position for e in region.horizontal), settings.snap_y)
    cols = cluster((e.position for e in region.vertical), settings.snap_x)

    grid = Grid(row_boundaries=tuple(rows), col_boundaries=tuple(cols))
    if not grid.is_valid:
        logger.debug(
            f"Rejecting region with {len(rows)} row and {len(cols)} column boundaries"
        )
        return None
    return grid


def segment_coverage(
    edges: Sequence[Edge],
    orientation: Orientation,
    position: float,
    start: float,
    end: float,
    tolerance: float,
) -> float:
    """
    Fraction of the segment [start, end] at ``position`` covered by edges.

    Only edges of the given orientation lying within tolerance of the
    position count. Overlapping edges are not double counted.
    """
    length = end - start
    if length <= 0:
        return 0.0

    spans = sorted(
        (max(e.start, start), min(e.end, end))
        for e in edges
        if e.orientation is orientation and abs(e.position - position) <= tolerance
    )

    covered = 0.0
    cursor = start
    for lo, hi in spans:
        lo = max(lo, cursor)
        if hi > lo:
            covered += hi - lo
            cursor = hi
    return min(1.0, covered / length)
