"""
Edge Extraction

Turns page graphics and, for the text strategies, word alignment into a
canonical set of horizontal and vertical edges.

Each strategy is a small object implementing the same contract::

    strategy.edges(context, orientation) -> List[Edge]

and is picked from ``EDGE_STRATEGIES`` by the configured strategy name. The
grid builder only ever sees the canonical edges, never the strategy.

Canonicalisation:
1. Drop non-finite and zero-length edges
2. Snap parallel edges within snap tolerance onto one position
3. Merge collinear edges whose gap is within join tolerance
4. Drop edges shorter than the minimum length (explicit edges are exempt)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from ..layout.box import BoundingBox, Char, FilledRect, LineSegment, Word, content_extent, merge_boxes
from ..layout.geometry import Orientation, classify, cluster_groups, cluster_objects, snap_map
from ..layout.words import words_from_chars
from .models import Edge, EdgeStyle
from .settings import Strategy, TableSettings, explicit_values


@dataclass
class EdgeContext:
    """Inputs of one table-finding call, shared by the edge strategies."""
    chars: Sequence[Char]
    lines: Sequence[LineSegment]
    rects: Sequence[FilledRect]
    settings: TableSettings
    given_words: Optional[Sequence[Word]] = None

    @cached_property
    def words(self) -> List[Word]:
        """Caller words when supplied, otherwise words grouped from characters."""
        if self.given_words is not None:
            return [w for w in self.given_words if w.bbox.is_finite and w.text.strip()]
        return words_from_chars(
            (c for c in self.chars if not c.is_blank),
            x_tolerance=self.settings.text_x_tolerance,
            y_tolerance=self.settings.text_y_tolerance,
        )

    @cached_property
    def extent(self) -> Optional[BoundingBox]:
        return content_extent(self.chars, self.lines, self.rects)

    @cached_property
    def explicit_x(self) -> Optional[List[float]]:
        return explicit_values(self.settings.explicit_vertical_lines, 'x')

    @cached_property
    def explicit_y(self) -> Optional[List[float]]:
        return explicit_values(self.settings.explicit_horizontal_lines, 'y')


class EdgeStrategy(Protocol):
    def edges(self, context: EdgeContext, orientation: Orientation) -> List[Edge]:
        ...


@dataclass(frozen=True)
class LinesStrategy:
    """
    Edges from stroked segments and rectangle outlines.

    The strict variant ignores rectangles that are only filled (background
    shading) and keeps just stroked geometry.
    """
    strict: bool = False

    def edges(self, context: EdgeContext, orientation: Orientation) -> List[Edge]:
        tolerance = context.settings.angle_tolerance
        edges: List[Edge] = []

        for seg in context.lines:
            if classify(seg, tolerance) is not orientation:
                continue
            if orientation is Orientation.HORIZONTAL:
                edges.append(Edge(
                    orientation, (seg.y0 + seg.y1) / 2,
                    min(seg.x0, seg.x1), max(seg.x0, seg.x1), EdgeStyle.LINE,
                ))
            else:
                edges.append(Edge(
                    orientation, (seg.x0 + seg.x1) / 2,
                    min(seg.y0, seg.y1), max(seg.y0, seg.y1), EdgeStyle.LINE,
                ))

        for rect in context.rects:
            if not rect.bbox.is_finite:
                continue
            if not (rect.stroked or (rect.filled and not self.strict)):
                continue
            b = rect.bbox
            if orientation is Orientation.HORIZONTAL:
                edges.append(Edge(orientation, b.y0, b.x0, b.x1, EdgeStyle.RECT))
                edges.append(Edge(orientation, b.y1, b.x0, b.x1, EdgeStyle.RECT))
            else:
                edges.append(Edge(orientation, b.x0, b.y0, b.y1, EdgeStyle.RECT))
                edges.append(Edge(orientation, b.x1, b.y0, b.y1, EdgeStyle.RECT))

        return edges


def _overlaps(a: BoundingBox, b: BoundingBox) -> bool:
    """Boxes share interior area (touching does not count)."""
    return a.x0 < b.x1 and a.x1 > b.x0 and a.y0 < b.y1 and a.y1 > b.y0


@dataclass(frozen=True)
class TextStrategy:
    """
    Edges hypothesised from word alignment.

    Vertical edges come from words whose left, right or centre coordinates
    line up; horizontal edges from words sharing a top coordinate.
    """

    def edges(self, context: EdgeContext, orientation: Orientation) -> List[Edge]:
        words = context.words
        if not words:
            return []
        if orientation is Orientation.VERTICAL:
            return self._vertical(words, context.settings)
        return self._horizontal(words, context.settings)

    def _vertical(self, words: List[Word], settings: TableSettings) -> List[Edge]:
        tolerance = settings.text_x_tolerance
        clusters: List[List[Word]] = []
        for key in (lambda w: w.bbox.x0, lambda w: w.bbox.x1, lambda w: w.bbox.center_x):
            clusters.extend(cluster_objects(words, key=key, tolerance=tolerance))

        qualifying = [
            group for group in clusters
            if len(group) >= settings.min_words_vertical
            and self._distinct_rows(group, settings.text_y_tolerance) >= settings.min_text_rows
        ]
        if not qualifying:
            return []

        boxes = [merge_boxes(w.bbox for w in group) for group in qualifying]
        order = sorted(
            range(len(boxes)),
            key=lambda i: (-len(qualifying[i]), boxes[i].x0, boxes[i].y0),
        )

        condensed: List[BoundingBox] = []
        for i in order:
            if not any(_overlaps(boxes[i], kept) for kept in condensed):
                condensed.append(boxes[i])

        condensed.sort(key=lambda b: b.x0)
        top = min(b.y0 for b in condensed)
        bottom = max(b.y1 for b in condensed)

        edges = [Edge(Orientation.VERTICAL, b.x0, top, bottom, EdgeStyle.TEXT) for b in condensed]
        edges.append(Edge(
            Orientation.VERTICAL, max(b.x1 for b in condensed), top, bottom, EdgeStyle.TEXT,
        ))
        return edges

    def _horizontal(self, words: List[Word], settings: TableSettings) -> List[Edge]:
        groups = cluster_objects(words, key=lambda w: w.bbox.y0, tolerance=settings.text_y_tolerance)
        qualifying = [g for g in groups if len(g) >= settings.min_words_horizontal]
        if not qualifying:
            return []

        left = min(w.bbox.x0 for g in qualifying for w in g)
        right = max(w.bbox.x1 for g in qualifying for w in g)
        bottom = max(w.bbox.y1 for g in qualifying for w in g)

        edges = [
            Edge(Orientation.HORIZONTAL, min(w.bbox.y0 for w in g), left, right, EdgeStyle.TEXT)
            for g in qualifying
        ]
        edges.append(Edge(Orientation.HORIZONTAL, bottom, left, right, EdgeStyle.TEXT))
        return edges

    @staticmethod
    def _distinct_rows(words: Iterable[Word], tolerance: float) -> int:
        return len(cluster_groups((w.bbox.center_y for w in words), tolerance))


@dataclass(frozen=True)
class ExplicitStrategy:
    """
    Edges at caller-supplied coordinates.

    Each edge spans the other axis' explicit range when that axis is also
    explicit, otherwise the extent of everything on the page.
    """

    def edges(self, context: EdgeContext, orientation: Orientation) -> List[Edge]:
        if orientation is Orientation.VERTICAL:
            positions, across = context.explicit_x, context.explicit_y
        else:
            positions, across = context.explicit_y, context.explicit_x
        if not positions:
            return []

        span = self._span(context, orientation, across)
        if span is None:
            logger.debug(f"No span available for explicit {orientation.value} edges")
            return []

        start, end = span
        return [Edge(orientation, p, start, end, EdgeStyle.EXPLICIT) for p in positions]

    @staticmethod
    def _span(
        context: EdgeContext,
        orientation: Orientation,
        across: Optional[List[float]],
    ) -> Optional[Tuple[float, float]]:
        if across:
            return (across[0], across[-1])
        extent = context.extent
        if extent is None:
            return None
        if orientation is Orientation.VERTICAL:
            return (extent.y0, extent.y1)
        return (extent.x0, extent.x1)


EDGE_STRATEGIES: Dict[Strategy, EdgeStrategy] = {
    Strategy.LINES: LinesStrategy(strict=False),
    Strategy.LINES_STRICT: LinesStrategy(strict=True),
    Strategy.TEXT: TextStrategy(),
    Strategy.EXPLICIT: ExplicitStrategy(),
}


def collect_edges(context: EdgeContext) -> List[Edge]:
    """
    Run the configured strategy for each axis and canonicalise the result.

    Explicit coordinates supplied for an axis are added to that axis even
    when another strategy is selected for it.
    """
    settings = context.settings
    raw: List[Edge] = []

    for orientation, strategy, has_explicit in (
        (Orientation.VERTICAL, settings.vertical_strategy, bool(settings.explicit_vertical_lines)),
        (Orientation.HORIZONTAL, settings.horizontal_strategy, bool(settings.explicit_horizontal_lines)),
    ):
        raw.extend(EDGE_STRATEGIES[strategy].edges(context, orientation))
        if has_explicit and strategy is not Strategy.EXPLICIT:
            raw.extend(EDGE_STRATEGIES[Strategy.EXPLICIT].edges(context, orientation))

    edges = canonicalize_edges(raw, settings)
    logger.debug(f"Collected {len(raw)} raw edges, {len(edges)} after canonicalisation")
    return edges


def canonicalize_edges(edges: Iterable[Edge], settings: TableSettings) -> List[Edge]:
    """Snap, join and length-filter edges; horizontals first, then verticals."""
    valid = [
        e for e in edges
        if e.orientation is not Orientation.DIAGONAL
        and all(math.isfinite(v) for v in (e.position, e.start, e.end))
        and e.end > e.start
    ]

    result: List[Edge] = []
    for orientation, snap_tol, join_tol in (
        (Orientation.HORIZONTAL, settings.snap_y, settings.join_x),
        (Orientation.VERTICAL, settings.snap_x, settings.join_y),
    ):
        same = [e for e in valid if e.orientation is orientation]
        snapped = snap_edges(same, snap_tol)
        joined = join_edges(snapped, join_tol)
        result.extend(
            e for e in joined
            if e.length >= settings.min_edge_length or e.style is EdgeStyle.EXPLICIT
        )
    return result


def snap_edges(edges: List[Edge], tolerance: float) -> List[Edge]:
    """Move parallel edges within tolerance onto their cluster's position."""
    mapping = snap_map((e.position for e in edges), tolerance)
    return [
        Edge(e.orientation, mapping.get(e.position, e.position), e.start, e.end, e.style)
        for e in edges
    ]


_STYLE_RANK = {EdgeStyle.EXPLICIT: 0, EdgeStyle.LINE: 1, EdgeStyle.RECT: 2, EdgeStyle.TEXT: 3}


def join_edges(edges: List[Edge], tolerance: float) -> List[Edge]:
    """
    Merge collinear edges that overlap or are separated by at most tolerance.

    The merged edge keeps the strongest style of its parts (explicit, then
    drawn, then inferred).
    """
    by_position: Dict[float, List[Edge]] = {}
    for edge in edges:
        by_position.setdefault(edge.position, []).append(edge)

    merged: List[Edge] = []
    for position in sorted(by_position):
        group = sorted(by_position[position], key=lambda e: (e.start, e.end))
        current = group[0]
        for edge in group[1:]:
            if edge.start <= current.end + tolerance:
                style = min(current.style, edge.style, key=_STYLE_RANK.__getitem__)
                current = Edge(
                    current.orientation, position, current.start,
                    max(current.end, edge.end), style,
                )
            else:
                merged.append(current)
                current = edge
        merged.append(current)
    return merged
