"""
Cell Content Assigner

Places characters into the cells of a grid and infers spanning cells from
missing internal ruling.

Assignment uses each character's centre point against half-open cells
(``[x0, x1) x [y0, y1)``, the last row and column closed on the far side),
so a character on a shared boundary lands in exactly one cell.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Dict, List, Optional, Sequence, Tuple

from ..layout.box import Char
from ..layout.geometry import Orientation
from ..layout.words import chars_to_text
from .grid import segment_coverage
from .models import Cell, Edge, Grid
from .settings import TableSettings

# A boundary segment covered less than this is treated as absent
MISSING_EDGE_COVERAGE = 0.5

Position = Tuple[int, int]


def locate(boundaries: Sequence[float], value: float) -> Optional[int]:
    """Index of the half-open band holding value, or None when outside."""
    if not boundaries or value < boundaries[0] or value > boundaries[-1]:
        return None
    if value == boundaries[-1]:
        return len(boundaries) - 2
    return bisect_right(boundaries, value) - 1


def _vertical_missing(grid: Grid, edges: Sequence[Edge], col: int, row: int, tolerance: float) -> bool:
    coverage = segment_coverage(
        edges, Orientation.VERTICAL, grid.col_boundaries[col],
        grid.row_boundaries[row], grid.row_boundaries[row + 1], tolerance,
    )
    return coverage < MISSING_EDGE_COVERAGE


def _horizontal_missing(grid: Grid, edges: Sequence[Edge], row: int, col: int, tolerance: float) -> bool:
    coverage = segment_coverage(
        edges, Orientation.HORIZONTAL, grid.row_boundaries[row],
        grid.col_boundaries[col], grid.col_boundaries[col + 1], tolerance,
    )
    return coverage < MISSING_EDGE_COVERAGE


def infer_spans(grid: Grid, edges: Sequence[Edge], settings: TableSettings) -> List[List[Position]]:
    """
    Work out which primary cell owns every grid position.

    Positions are visited in row-major order. An unclaimed position becomes
    a primary cell and grows right across internal vertical boundaries whose
    segment is missing, then down across missing horizontal boundaries while
    the whole block stays free of ruling. A block only ever claims positions
    nobody owns yet, so a span never covers another cell's primary position.

    Returns:
        Owner matrix: ``owners[r][c]`` is the primary (row, col) covering
        that position
    """
    n_rows, n_cols = grid.row_count, grid.col_count
    tol_x, tol_y = settings.snap_x, settings.snap_y
    owners: List[List[Optional[Position]]] = [[None] * n_cols for _ in range(n_rows)]

    for r in range(n_rows):
        for c in range(n_cols):
            if owners[r][c] is not None:
                continue

            col_span = 1
            while (
                c + col_span < n_cols
                and owners[r][c + col_span] is None
                and _vertical_missing(grid, edges, c + col_span, r, tol_x)
            ):
                col_span += 1

            row_span = 1
            while r + row_span < n_rows:
                below = r + row_span
                free = all(owners[below][c + k] is None for k in range(col_span))
                open_above = all(
                    _horizontal_missing(grid, edges, below, c + k, tol_y)
                    for k in range(col_span)
                )
                open_inside = all(
                    _vertical_missing(grid, edges, c + k, below, tol_x)
                    for k in range(1, col_span)
                )
                if not (free and open_above and open_inside):
                    break
                row_span += 1

            for dr in range(row_span):
                for dc in range(col_span):
                    owners[r + dr][c + dc] = (r, c)

    return owners  # type: ignore[return-value]


def build_cells(
    grid: Grid,
    chars: Sequence[Char],
    settings: TableSettings,
    edges: Optional[Sequence[Edge]] = None,
) -> Tuple[List[List[str]], List[List[Cell]]]:
    """
    Assign characters to the cells of a grid.

    Args:
        grid: Row and column boundaries
        chars: Page characters (characters outside the grid are ignored)
        settings: Text tolerances and blank-character handling
        edges: Region edges; when given, spanning cells are inferred from
            missing boundary segments

    Returns:
        (rows, cells): the text matrix, with ``""`` for empty and covered
        positions, and the cell matrix, where a spanning cell appears at
        every position it covers
    """
    n_rows, n_cols = grid.row_count, grid.col_count
    if edges is not None:
        owners = infer_spans(grid, edges, settings)
    else:
        owners = [[(r, c) for c in range(n_cols)] for r in range(n_rows)]

    extents: Dict[Position, Tuple[int, int]] = {}
    for r in range(n_rows):
        for c in range(n_cols):
            pr, pc = owners[r][c]
            rs, cs = extents.get((pr, pc), (1, 1))
            extents[(pr, pc)] = (max(rs, r - pr + 1), max(cs, c - pc + 1))

    buckets: Dict[Position, List[Char]] = {key: [] for key in extents}
    for char in chars:
        if not char.bbox.is_finite:
            continue
        if char.is_blank and not settings.keep_blank_chars:
            continue
        cx, cy = char.bbox.center
        r = locate(grid.row_boundaries, cy)
        c = locate(grid.col_boundaries, cx)
        if r is None or c is None:
            continue
        buckets[owners[r][c]].append(char)

    primaries: Dict[Position, Cell] = {}
    for (r, c), (row_span, col_span) in extents.items():
        primaries[(r, c)] = Cell(
            row_index=r,
            col_index=c,
            bbox=grid.cell_bbox(r, c, row_span, col_span),
            text=chars_to_text(
                buckets[(r, c)],
                x_tolerance=settings.text_x_tolerance,
                y_tolerance=settings.text_y_tolerance,
                keep_blank_chars=settings.keep_blank_chars,
            ),
            row_span=row_span,
            col_span=col_span,
        )

    cells = [[primaries[owners[r][c]] for c in range(n_cols)] for r in range(n_rows)]
    rows = [
        [cell.text if (cell.row_index, cell.col_index) == (r, c) else '' for c, cell in enumerate(row)]
        for r, row in enumerate(cells)
    ]
    return rows, cells
