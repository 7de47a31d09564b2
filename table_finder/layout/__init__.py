"""
Page Geometry Package

Geometric primitives and tolerance helpers shared by the table engine.

Key Components:
- BoundingBox: Immutable top-left origin box
- Char, Word, LineSegment, FilledRect: Page primitives decoded upstream
- classify: Horizontal / vertical / diagonal segment orientation
- cluster, snap: Tolerance-based coordinate grouping
- words_from_chars, chars_to_text: Character grouping fallback

Usage:
    from table_finder.layout import BoundingBox, cluster

    box = BoundingBox(50, 100, 150, 150)
    rows = cluster([100, 101.5, 150, 152], tolerance=3)  # [100, 150]
"""

from .box import (
    BoundingBox,
    Char,
    Word,
    LineSegment,
    FilledRect,
    merge_boxes,
    calculate_iou,
    reading_order_key,
    content_extent,
)
from .geometry import (
    Orientation,
    approx_equal,
    classify,
    cluster,
    cluster_groups,
    cluster_objects,
    snap,
    snap_map,
    coefficient_of_variation,
)
from .words import (
    group_chars_by_line,
    split_line,
    chars_to_text,
    words_from_chars,
)

__all__ = [
    # Geometric primitives
    'BoundingBox',
    'Char',
    'Word',
    'LineSegment',
    'FilledRect',
    'merge_boxes',
    'calculate_iou',
    'reading_order_key',
    'content_extent',

    # Orientation and clustering
    'Orientation',
    'approx_equal',
    'classify',
    'cluster',
    'cluster_groups',
    'cluster_objects',
    'snap',
    'snap_map',
    'coefficient_of_variation',

    # Character grouping
    'group_chars_by_line',
    'split_line',
    'chars_to_text',
    'words_from_chars',
]
