"""
Confidence Scorer

Scores how likely a reconstructed grid is a genuine table.

Components (each in [0, 1]):
- edge_completeness: how much of every expected grid line is backed by a
  found edge
- content_coverage: share of cells holding text
- grid_regularity: 1 minus the mean coefficient of variation of row heights
  and column widths

The total is their weighted sum using the normalised ``score_weights``.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..layout.geometry import Orientation, coefficient_of_variation
from .grid import segment_coverage
from .models import Cell, ConfidenceScores, DetectionMethod, Edge, Grid
from .settings import Strategy, TableSettings

# Borderless grids are inferred from text density alone
BORDERLESS_CONFIDENCE_CAP = 0.6


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def edge_completeness(grid: Grid, edges: Optional[Sequence[Edge]], settings: TableSettings) -> float:
    """Mean coverage of each expected row and column line by found edges."""
    if not edges:
        return 0.0

    left, right = grid.col_boundaries[0], grid.col_boundaries[-1]
    top, bottom = grid.row_boundaries[0], grid.row_boundaries[-1]

    coverages = [
        segment_coverage(edges, Orientation.HORIZONTAL, y, left, right, settings.snap_y)
        for y in grid.row_boundaries
    ]
    coverages.extend(
        segment_coverage(edges, Orientation.VERTICAL, x, top, bottom, settings.snap_x)
        for x in grid.col_boundaries
    )
    return _clamp(sum(coverages) / len(coverages))


def content_coverage(cells: Iterable[Cell]) -> float:
    """Non-empty cells divided by all cells (spanning cells counted once)."""
    cells = list(cells)
    if not cells:
        return 0.0
    return sum(1 for cell in cells if not cell.is_empty) / len(cells)


def grid_regularity(grid: Grid) -> float:
    row_cv = coefficient_of_variation(grid.row_heights)
    col_cv = coefficient_of_variation(grid.col_widths)
    return _clamp(1.0 - (row_cv + col_cv) / 2)


def score_table(
    grid: Grid,
    cells: Iterable[Cell],
    edges: Optional[Sequence[Edge]],
    settings: TableSettings,
    cap: float = 1.0,
) -> ConfidenceScores:
    """
    Combine the three components into a confidence score.

    Args:
        grid: Table grid
        cells: Primary cells of the table
        edges: Edges of the table's region (None for borderless tables)
        settings: Supplies the score weights and snap tolerances
        cap: Upper bound applied to the total
    """
    completeness = edge_completeness(grid, edges, settings)
    coverage = content_coverage(cells)
    regularity = grid_regularity(grid)

    w_edges, w_content, w_grid = settings.score_weights
    total = w_edges * completeness + w_content * coverage + w_grid * regularity

    return ConfidenceScores(
        edge_completeness=completeness,
        content_coverage=coverage,
        grid_regularity=regularity,
        total=min(cap, _clamp(total)),
    )


def detection_method_for(settings: TableSettings) -> DetectionMethod:
    """Method tag implied by the per-axis strategies."""
    vertical, horizontal = settings.vertical_strategy, settings.horizontal_strategy
    if vertical.uses_lines and horizontal.uses_lines:
        return DetectionMethod.LINES
    if vertical is horizontal is Strategy.TEXT:
        return DetectionMethod.TEXT
    if vertical is horizontal is Strategy.EXPLICIT:
        return DetectionMethod.EXPLICIT
    return DetectionMethod.HYBRID
