"""
Borderless Table Detection

Infers a grid from character density when a page has no ruling at all.

Character centres are binned into 1-D projection profiles along x and y,
with buckets about one average glyph wide (or tall). A bucket is
low-density when its count is at most ``borderless_density_ratio`` of the
profile maximum; a run of low-density buckets longer than the gap threshold
is a gap, and gap midpoints split the axis into bands.

The resulting table is a heuristic, not structure: its confidence is capped
and it is always tagged as text-detected.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from ..layout.box import BoundingBox, Char, merge_boxes
from .cells import build_cells
from .confidence import BORDERLESS_CONFIDENCE_CAP, score_table
from .models import DetectionMethod, Grid, Table
from .settings import TableSettings

# Share of grid cells that must hold text
MIN_POPULATED_CELLS = 0.3

# Default gap thresholds in average glyph widths / heights
DEFAULT_GAP_X_FACTOR = 1.5
DEFAULT_GAP_Y_FACTOR = 0.5


def projection_profile(starts: np.ndarray, origin: float, bucket: float, n_buckets: int) -> np.ndarray:
    """Count positions per bucket."""
    index = np.floor((starts - origin) / bucket).astype(int)
    index = np.clip(index, 0, n_buckets - 1)
    return np.bincount(index, minlength=n_buckets)


def find_gaps(profile: np.ndarray, density_ratio: float, min_run: int) -> List[Tuple[int, int]]:
    """
    Find interior runs of low-density buckets.

    Returns:
        (start, end) bucket ranges, end exclusive; runs touching either end
        of the profile are not gaps
    """
    if profile.size == 0 or profile.max() <= 0:
        return []

    low = profile <= density_ratio * profile.max()
    padded = np.concatenate(([False], low, [False])).astype(int)
    changes = np.diff(padded)
    starts = np.flatnonzero(changes == 1)
    ends = np.flatnonzero(changes == -1)

    return [
        (int(s), int(e)) for s, e in zip(starts, ends)
        if s > 0 and e < profile.size and e - s >= min_run
    ]


def axis_boundaries(
    centers: np.ndarray,
    low: float,
    high: float,
    bucket: float,
    gap: float,
    density_ratio: float,
) -> List[float]:
    """Band boundaries along one axis: the extent ends plus every gap midpoint."""
    n_buckets = max(1, int(np.ceil((high - low) / bucket)))
    profile = projection_profile(centers, low, bucket, n_buckets)

    # A run must be strictly longer than the gap threshold
    min_run = int(np.floor(gap / bucket)) + 1
    gaps = find_gaps(profile, density_ratio, min_run)

    midpoints = [low + (s + e) / 2 * bucket for s, e in gaps]
    return [low] + midpoints + [high]


def _average_sizes(chars: Sequence[Char]) -> Tuple[float, float]:
    widths = np.array([
        c.glyph_width if c.glyph_width and c.glyph_width > 0 else c.bbox.width
        for c in chars
    ], dtype=float)
    heights = np.array([c.bbox.height for c in chars], dtype=float)
    avg_w = float(widths.mean()) if widths.size else 0.0
    avg_h = float(heights.mean()) if heights.size else 0.0
    return (avg_w if avg_w > 0 else 1.0, avg_h if avg_h > 0 else 1.0)


def detect_borderless(
    chars: Sequence[Char],
    settings: TableSettings,
    page_number: int = 0,
) -> List[Table]:
    """
    Detect a single borderless table spanning the page's characters.

    Returns:
        A list with one table, or an empty list when the profiles do not
        show enough rows, columns or populated cells
    """
    chars = [c for c in chars if c.bbox.is_finite and not c.is_blank]
    if len(chars) < settings.borderless_min_chars:
        logger.debug(f"Borderless: only {len(chars)} characters, skipping")
        return []

    extent: BoundingBox = merge_boxes(c.bbox for c in chars)
    avg_w, avg_h = _average_sizes(chars)
    gap_x = settings.borderless_gap_x if settings.borderless_gap_x is not None else DEFAULT_GAP_X_FACTOR * avg_w
    gap_y = settings.borderless_gap_y if settings.borderless_gap_y is not None else DEFAULT_GAP_Y_FACTOR * avg_h

    centers_x = np.array([c.bbox.center_x for c in chars], dtype=float)
    centers_y = np.array([c.bbox.center_y for c in chars], dtype=float)

    cols = axis_boundaries(centers_x, extent.x0, extent.x1, avg_w, gap_x, settings.borderless_density_ratio)
    rows = axis_boundaries(centers_y, extent.y0, extent.y1, avg_h, gap_y, settings.borderless_density_ratio)

    grid = _valid_grid(rows, cols)
    if grid is None or grid.row_count < settings.borderless_min_rows or grid.col_count < settings.borderless_min_cols:
        logger.debug(f"Borderless: profile gives {len(rows) - 1} rows x {len(cols) - 1} columns, rejected")
        return []

    table_rows, cells = build_cells(grid, chars, settings)
    primary = [cell for row in cells for cell in row]
    populated = sum(1 for cell in primary if not cell.is_empty) / len(primary)
    if populated < MIN_POPULATED_CELLS:
        logger.debug(f"Borderless: only {populated:.0%} of cells populated, rejected")
        return []

    scores = score_table(grid, primary, None, settings, cap=BORDERLESS_CONFIDENCE_CAP)
    logger.debug(
        f"Borderless: {grid.row_count}x{grid.col_count} table, confidence {scores.total:.2f}"
    )
    return [Table(
        bbox=grid.bbox,
        rows=table_rows,
        cells=cells,
        confidence=scores.total,
        detection_method=DetectionMethod.TEXT,
        page_number=page_number,
        scores=scores,
    )]


def _valid_grid(rows: List[float], cols: List[float]) -> Optional[Grid]:
    rows = sorted(set(rows))
    cols = sorted(set(cols))
    if len(rows) < 2 or len(cols) < 2:
        return None
    return Grid(row_boundaries=tuple(rows), col_boundaries=tuple(cols))
