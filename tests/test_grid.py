"""
Tests for intersections, regions and grid building.
"""

from table_finder.layout.geometry import Orientation
from table_finder.tables.edges import EdgeContext, collect_edges
from table_finder.tables.grid import (
    Region,
    build_grid,
    edges_cross,
    find_intersections,
    group_regions,
    segment_coverage,
)
from table_finder.tables.models import Edge
from table_finder.tables.settings import TableSettings

from builders import ruling

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL


def edges_for(lines, settings=None):
    settings = settings or TableSettings()
    return collect_edges(EdgeContext(chars=[], lines=lines, rects=[], settings=settings))


class TestIntersections:
    """Tests for edge crossings."""

    def setup_method(self):
        self.settings = TableSettings()

    def test_full_grid(self):
        edges = edges_for(ruling([50, 150, 250], [100, 150]))
        points = find_intersections(edges, self.settings)
        assert len(points) == 6
        assert [(p.x, p.y) for p in points[:3]] == [(50, 100), (150, 100), (250, 100)]

    def test_intersection_tolerance(self):
        h = Edge(H, 100, 0, 200)
        assert edges_cross(h, Edge(V, 50, 102, 200), 3, 3)
        assert not edges_cross(h, Edge(V, 50, 105, 200), 3, 3)
        assert edges_cross(h, Edge(V, 202, 0, 200), 3, 3)

    def test_intersection_indices(self):
        edges = edges_for(ruling([0, 100], [0, 100]))
        for point in find_intersections(edges, self.settings):
            assert edges[point.horizontal].orientation is H
            assert edges[point.vertical].orientation is V
            assert edges[point.horizontal].position == point.y
            assert edges[point.vertical].position == point.x


class TestRegions:
    """Tests for grouping crossing edges."""

    def setup_method(self):
        self.settings = TableSettings()

    def test_disjoint_grids(self):
        lines = ruling([0, 100, 200], [0, 50]) + ruling([0, 100], [300, 350, 400])
        edges = edges_for(lines)
        regions = group_regions(edges, find_intersections(edges, self.settings))
        assert len(regions) == 2

    def test_orphan_edges_excluded(self):
        edges = edges_for(ruling([0, 100], [0, 50]) + ruling([500], [500]))
        edges += [Edge(H, 400, 300, 400)]
        regions = group_regions(edges, find_intersections(edges, self.settings))
        assert len(regions) == 1
        assert Edge(H, 400, 300, 400) not in regions[0].edges

    def test_no_intersections(self):
        assert group_regions([Edge(H, 0, 0, 100)], []) == []


class TestBuildGrid:
    """Tests for boundary lattices."""

    def setup_method(self):
        self.settings = TableSettings()

    def test_boundaries(self):
        edges = edges_for(ruling([50, 150, 250], [100, 150]))
        grid = build_grid(Region(edges=edges), self.settings)
        assert grid.row_boundaries == (100, 150)
        assert grid.col_boundaries == (50, 150, 250)
        assert (grid.row_count, grid.col_count) == (1, 2)
        assert grid.bbox.to_tuple() == (50, 100, 250, 150)

    def test_parallel_lines_rejected(self):
        region = Region(edges=[Edge(H, 0, 0, 100), Edge(H, 50, 0, 100), Edge(V, 50, 0, 50)])
        assert build_grid(region, self.settings) is None

    def test_cell_bbox(self):
        edges = edges_for(ruling([0, 10, 30], [0, 20, 50]))
        grid = build_grid(Region(edges=edges), self.settings)
        assert grid.cell_bbox(1, 0, col_span=2).to_tuple() == (0, 20, 30, 50)
        assert grid.row_heights == [20, 30]
        assert grid.col_widths == [10, 20]


class TestSegmentCoverage:

    def test_partial(self):
        edges = [Edge(V, 100, 20, 40)]
        assert segment_coverage(edges, V, 100, 0, 40, 3) == 0.5

    def test_overlaps_not_double_counted(self):
        edges = [Edge(H, 0, 0, 60), Edge(H, 1, 40, 100)]
        assert segment_coverage(edges, H, 0, 0, 100, 3) == 1.0

    def test_other_orientation_ignored(self):
        assert segment_coverage([Edge(H, 100, 0, 40)], V, 100, 0, 40, 3) == 0.0
