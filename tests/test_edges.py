"""
Tests for edge strategies and canonicalisation.
"""

import math

from table_finder.layout.box import FilledRect, LineSegment, Word
from table_finder.layout.geometry import Orientation
from table_finder.tables.edges import (
    EDGE_STRATEGIES,
    EdgeContext,
    LinesStrategy,
    TextStrategy,
    canonicalize_edges,
    collect_edges,
)
from table_finder.tables.models import Edge, EdgeStyle
from table_finder.tables.settings import Strategy, TableSettings

from builders import aligned_text_page, ruling

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL


def positions(edges, orientation):
    return [e.position for e in edges if e.orientation is orientation]


def context(chars=(), lines=(), rects=(), words=None, **options):
    return EdgeContext(
        chars=list(chars),
        lines=list(lines),
        rects=list(rects),
        settings=TableSettings.resolve(options),
        given_words=words,
    )


class TestLinesStrategy:
    """Tests for edges from page graphics."""

    def test_ruled_grid(self):
        edges = collect_edges(context(lines=ruling([50, 150, 250], [100, 150])))
        assert positions(edges, H) == [100, 150]
        assert positions(edges, V) == [50, 150, 250]
        assert all(e.style is EdgeStyle.LINE for e in edges)
        assert all(e.is_explicit for e in edges)

    def test_diagonal_segments_ignored(self):
        edges = collect_edges(context(lines=[LineSegment(0, 0, 100, 100)]))
        assert edges == []

    def test_stroked_rect_outline(self):
        rect = FilledRect.at(0, 0, 100, 50, stroked=True)
        edges = collect_edges(context(rects=[rect]))
        assert positions(edges, H) == [0, 50]
        assert positions(edges, V) == [0, 100]
        assert all(e.style is EdgeStyle.RECT for e in edges)

    def test_fill_only_rect(self):
        rect = FilledRect.at(0, 0, 100, 50, filled=True, stroked=False)
        lines_edges = LinesStrategy(strict=False).edges(context(rects=[rect]), H)
        strict_edges = LinesStrategy(strict=True).edges(context(rects=[rect]), H)
        assert len(lines_edges) == 2
        assert strict_edges == []

    def test_registry(self):
        assert EDGE_STRATEGIES[Strategy.LINES_STRICT] == LinesStrategy(strict=True)
        assert isinstance(EDGE_STRATEGIES[Strategy.TEXT], TextStrategy)


class TestCanonicalize:
    """Tests for snapping, joining and filtering."""

    def setup_method(self):
        self.settings = TableSettings()

    def test_join_collinear(self):
        edges = canonicalize_edges([Edge(H, 10, 0, 50), Edge(H, 10, 52, 100)], self.settings)
        assert edges == [Edge(H, 10, 0, 100)]

    def test_gap_beyond_join_tolerance(self):
        edges = canonicalize_edges([Edge(H, 10, 0, 50), Edge(H, 10, 60, 100)], self.settings)
        assert len(edges) == 2

    def test_snap_then_join(self):
        edges = canonicalize_edges([Edge(V, 20, 0, 40), Edge(V, 21.5, 30, 80)], self.settings)
        assert edges == [Edge(V, 20, 0, 80)]

    def test_short_edges_dropped(self):
        edges = canonicalize_edges([Edge(H, 10, 0, 5)], self.settings)
        assert edges == []

    def test_explicit_edges_exempt_from_min_length(self):
        short = Edge(H, 10, 0, 5, EdgeStyle.EXPLICIT)
        assert canonicalize_edges([short], self.settings) == [short]

    def test_degenerate_edges_dropped(self):
        edges = canonicalize_edges([
            Edge(H, 10, 20, 20, EdgeStyle.EXPLICIT),
            Edge(H, math.nan, 0, 100),
            Edge(V, 5, 0, math.inf),
        ], self.settings)
        assert edges == []

    def test_join_keeps_strongest_style(self):
        edges = canonicalize_edges([
            Edge(H, 10, 0, 50, EdgeStyle.TEXT),
            Edge(H, 10, 40, 100, EdgeStyle.RECT),
        ], self.settings)
        assert edges == [Edge(H, 10, 0, 100, EdgeStyle.RECT)]

    def test_horizontals_first(self):
        edges = canonicalize_edges([Edge(V, 0, 0, 100), Edge(H, 0, 0, 100)], self.settings)
        assert [e.orientation for e in edges] == [H, V]


class TestTextStrategy:
    """Tests for edges inferred from word alignment."""

    def setup_method(self):
        self.chars = aligned_text_page()

    def test_vertical_edges_from_aligned_columns(self):
        edges = collect_edges(context(self.chars, vertical_strategy='text', horizontal_strategy='text'))
        # Left side of each column plus the right side of the widest
        assert positions(edges, V) == [50, 200, 218]

    def test_horizontal_edges_from_rows(self):
        edges = collect_edges(context(self.chars, vertical_strategy='text', horizontal_strategy='text'))
        assert positions(edges, H) == [100, 120, 140, 150]
        assert all(not e.is_explicit for e in edges)

    def test_min_words_vertical(self):
        edges = collect_edges(context(
            self.chars, vertical_strategy='text', horizontal_strategy='text', min_words_vertical=4,
        ))
        assert positions(edges, V) == []

    def test_given_words_used(self):
        words = [Word.at('x', 10, y, 20, y + 10) for y in (0, 20, 40)]
        edges = TextStrategy().edges(context(words=words), V)
        assert [e.position for e in edges] == [10, 20]

    def test_no_words(self):
        assert TextStrategy().edges(context(), V) == []


class TestExplicitStrategy:

    def test_both_axes_explicit(self):
        edges = collect_edges(context(
            vertical_strategy='explicit', horizontal_strategy='explicit',
            explicit_vertical_lines=[0, 100, 200], explicit_horizontal_lines=[0, 50],
        ))
        assert positions(edges, V) == [0, 100, 200]
        assert positions(edges, H) == [0, 50]
        assert all(e.style is EdgeStyle.EXPLICIT for e in edges)
        assert {(e.start, e.end) for e in edges if e.orientation is V} == {(0, 50)}
        assert {(e.start, e.end) for e in edges if e.orientation is H} == {(0, 200)}

    def test_span_from_page_extent(self):
        edges = collect_edges(context(
            lines=[LineSegment(0, 10, 300, 10), LineSegment(0, 90, 300, 90)],
            vertical_strategy='explicit', explicit_vertical_lines=[0, 150, 300],
        ))
        vertical = [e for e in edges if e.orientation is V]
        assert [e.position for e in vertical] == [0, 150, 300]
        assert all((e.start, e.end) == (10, 90) for e in vertical)

    def test_appended_to_lines_strategy(self):
        edges = collect_edges(context(
            rects=[FilledRect.at(0, 0, 100, 50)],
            explicit_vertical_lines=[0, 50, 100],
        ))
        assert positions(edges, V) == [0, 50, 100]

    def test_malformed_list_degrades(self, warnings_logged):
        plain = collect_edges(context(rects=[FilledRect.at(0, 0, 100, 50)]))
        edges = collect_edges(context(
            rects=[FilledRect.at(0, 0, 100, 50)],
            explicit_vertical_lines=['left', 50],
        ))
        assert edges == plain
        assert warnings_logged
