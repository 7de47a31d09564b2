"""
Table Data Model

Intermediate geometry (edges, intersections, grids) and the tables handed
back to callers. Everything here is created fresh for one call; tables are
only mutated afterwards to attach nested tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from ..layout.box import BoundingBox
from ..layout.geometry import Orientation


class DetectionMethod(Enum):
    """How the grid of a table was produced."""
    LINES = 'lines'
    TEXT = 'text'
    EXPLICIT = 'explicit'
    HYBRID = 'hybrid'


class EdgeStyle(Enum):
    """Source of an edge."""
    LINE = 'line'           # Stroked segment
    RECT = 'rect'           # Rectangle outline
    TEXT = 'text'           # Inferred from word alignment
    EXPLICIT = 'explicit'   # Caller-supplied coordinate


@dataclass(frozen=True)
class Edge:
    """
    A canonical horizontal or vertical boundary segment.

    ``position`` is the coordinate on the perpendicular axis (y for a
    horizontal edge, x for a vertical one); ``start``/``end`` is its span
    along its own axis.
    """
    orientation: Orientation
    position: float
    start: float
    end: float
    style: EdgeStyle = EdgeStyle.LINE

    @property
    def is_explicit(self) -> bool:
        """Backed by drawn geometry or caller coordinates rather than text."""
        return self.style is not EdgeStyle.TEXT

    @property
    def is_horizontal(self) -> bool:
        return self.orientation is Orientation.HORIZONTAL

    @property
    def length(self) -> float:
        return self.end - self.start

    @property
    def bbox(self) -> BoundingBox:
        if self.is_horizontal:
            return BoundingBox(self.start, self.position, self.end, self.position)
        return BoundingBox(self.position, self.start, self.position, self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'orientation': self.orientation.value,
            'position': round(self.position, 2),
            'start': round(self.start, 2),
            'end': round(self.end, 2),
            'style': self.style.value,
            'is_explicit': self.is_explicit,
        }


@dataclass(frozen=True)
class Intersection:
    """Crossing point of one horizontal and one vertical edge."""
    x: float
    y: float
    horizontal: int     # index into the edge list
    vertical: int       # index into the edge list

    def to_dict(self) -> Dict[str, float]:
        return {'x': round(self.x, 2), 'y': round(self.y, 2)}


@dataclass(frozen=True)
class Grid:
    """Ordered row and column boundaries of one table region."""
    row_boundaries: Tuple[float, ...]
    col_boundaries: Tuple[float, ...]

    @property
    def row_count(self) -> int:
        return max(0, len(self.row_boundaries) - 1)

    @property
    def col_count(self) -> int:
        return max(0, len(self.col_boundaries) - 1)

    @property
    def is_valid(self) -> bool:
        """At least two boundaries on each axis, i.e. one row and one column."""
        return self.row_count >= 1 and self.col_count >= 1

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(
            self.col_boundaries[0],
            self.row_boundaries[0],
            self.col_boundaries[-1],
            self.row_boundaries[-1],
        )

    def cell_bbox(self, row: int, col: int, row_span: int = 1, col_span: int = 1) -> BoundingBox:
        return BoundingBox(
            self.col_boundaries[col],
            self.row_boundaries[row],
            self.col_boundaries[col + col_span],
            self.row_boundaries[row + row_span],
        )

    @property
    def row_heights(self) -> List[float]:
        b = self.row_boundaries
        return [b[i + 1] - b[i] for i in range(len(b) - 1)]

    @property
    def col_widths(self) -> List[float]:
        b = self.col_boundaries
        return [b[i + 1] - b[i] for i in range(len(b) - 1)]


@dataclass
class Cell:
    """A table cell; spanning cells cover more than one grid position."""
    row_index: int
    col_index: int
    bbox: BoundingBox
    text: str = ''
    row_span: int = 1
    col_span: int = 1

    @property
    def is_empty(self) -> bool:
        return not self.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            'row': self.row_index,
            'col': self.col_index,
            'bbox': self.bbox.to_dict(),
            'text': self.text,
            'row_span': self.row_span,
            'col_span': self.col_span,
        }


@dataclass
class ConfidenceScores:
    """Breakdown of a table's confidence score."""
    edge_completeness: float = 0.0
    content_coverage: float = 0.0
    grid_regularity: float = 0.0
    total: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'edge_completeness': round(self.edge_completeness, 3),
            'content_coverage': round(self.content_coverage, 3),
            'grid_regularity': round(self.grid_regularity, 3),
            'total': round(self.total, 3),
        }


@dataclass
class Table:
    """
    A reconstructed table.

    Attributes:
        bbox: Outer bounds of the grid
        rows: Text matrix; every row has the same number of columns and
            empty cells hold ``""``
        cells: Cell matrix of the same shape; a spanning cell appears at
            every position it covers
        confidence: Heuristic score in [0, 1]
        detection_method: Strategy that produced the grid
        page_number: Page the table was found on
        nested_tables: Tables found inside cells of this table
        parent_cell_ref: (row, col) of the parent cell for nested tables
        scores: Confidence breakdown
    """
    bbox: BoundingBox
    rows: List[List[str]]
    cells: List[List[Cell]]
    confidence: float
    detection_method: DetectionMethod
    page_number: int = 0
    nested_tables: List['Table'] = field(default_factory=list)
    parent_cell_ref: Optional[Tuple[int, int]] = None
    scores: ConfidenceScores = field(default_factory=ConfidenceScores)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def col_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def primary_cells(self) -> Iterator[Cell]:
        """Each distinct cell once, in row-major order of its primary position."""
        for r, row in enumerate(self.cells):
            for c, cell in enumerate(row):
                if cell.row_index == r and cell.col_index == c:
                    yield cell

    def iter_tables(self) -> Iterator['Table']:
        """This table followed by all nested tables, depth first."""
        yield self
        for child in self.nested_tables:
            yield from child.iter_tables()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'page_number': self.page_number,
            'bbox': self.bbox.to_dict(),
            'rows': [list(row) for row in self.rows],
            'cells': [cell.to_dict() for cell in self.primary_cells()],
            'row_count': self.row_count,
            'col_count': self.col_count,
            'confidence': round(self.confidence, 3),
            'scores': self.scores.to_dict(),
            'detection_method': self.detection_method.value,
            'parent_cell': list(self.parent_cell_ref) if self.parent_cell_ref else None,
            'nested_tables': [t.to_dict() for t in self.nested_tables],
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Text matrix as a DataFrame (no header row is assumed)."""
        return pd.DataFrame(self.rows)

    def to_csv(self, path: Optional[str] = None) -> Optional[str]:
        """Write the text matrix as CSV, or return it when no path is given."""
        return self.to_dataframe().to_csv(path, index=False, header=False)

    def to_markdown(self) -> str:
        """Render the text matrix as a GitHub-style pipe table."""
        if not self.rows:
            return ''

        def fmt(row: List[str]) -> str:
            cells = [text.replace('|', '\\|').replace('\n', ' ') for text in row]
            return '| ' + ' | '.join(cells) + ' |'

        lines = [fmt(self.rows[0]), '|' + '---|' * self.col_count]
        lines.extend(fmt(row) for row in self.rows[1:])
        return '\n'.join(lines)


@dataclass
class TableFinderResult:
    """Tables plus the intermediate geometry used to find them."""
    tables: List[Table]
    edges: List[Edge]
    intersections: List[Intersection]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tables': [t.to_dict() for t in self.tables],
            'edges': [e.to_dict() for e in self.edges],
            'intersections': [i.to_dict() for i in self.intersections],
        }
