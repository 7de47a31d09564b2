"""
Nested Table Detection

Searches the non-empty cells of a found table for tables drawn inside them.

Traversal is an explicit worklist of (table, depth) pairs rather than
recursion, bounded by ``max_depth``. A candidate is only attached when its
bbox lies strictly inside the parent cell: the outer table's own ruling is
visible from inside a cell and would otherwise come back as its own child.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, List, Sequence, Tuple

from loguru import logger

from ..layout.box import Char, FilledRect, LineSegment
from .models import Cell, Table
from .settings import Strategy, TableSettings

# Runs the table pipeline on a sub-region: (chars, lines, rects, settings)
Pipeline = Callable[
    [Sequence[Char], Sequence[LineSegment], Sequence[FilledRect], TableSettings],
    List[Table],
]


def cell_settings(settings: TableSettings) -> TableSettings:
    """
    Settings for the search inside a cell.

    Caller coordinates describe the outer page, so explicit axes fall back
    to the lines strategy, and the search itself never recurses or falls
    back to borderless detection.
    """
    def inner(strategy: Strategy) -> Strategy:
        return Strategy.LINES if strategy is Strategy.EXPLICIT else strategy

    return settings.evolve(
        vertical_strategy=inner(settings.vertical_strategy),
        horizontal_strategy=inner(settings.horizontal_strategy),
        explicit_vertical_lines=None,
        explicit_horizontal_lines=None,
        detect_borderless=False,
        detect_nested=False,
        text_cross_check=False,
    )


def primitives_in_cell(
    cell: Cell,
    chars: Sequence[Char],
    lines: Sequence[LineSegment],
    rects: Sequence[FilledRect],
) -> Tuple[List[Char], List[LineSegment], List[FilledRect]]:
    """Characters centred in the cell, and segments/rects fully inside it."""
    box = cell.bbox
    return (
        [c for c in chars if c.bbox.is_finite and box.contains_point(*c.bbox.center)],
        [l for l in lines if l.is_finite and box.contains_box(l.bbox)],
        [r for r in rects if r.bbox.is_finite and box.contains_box(r.bbox)],
    )


def find_nested(
    table: Table,
    chars: Sequence[Char],
    lines: Sequence[LineSegment],
    rects: Sequence[FilledRect],
    settings: TableSettings,
    pipeline: Pipeline,
    max_depth: int = 2,
) -> Table:
    """
    Attach tables found inside the cells of ``table`` (and of its children).

    Args:
        table: Table whose cells are searched; mutated in place
        chars, lines, rects: Page primitives
        settings: Settings of the outer search
        pipeline: Table pipeline run on each cell's primitives
        max_depth: Levels of nesting below ``table`` to search

    Returns:
        The same table, with ``nested_tables`` populated
    """
    inner_settings = cell_settings(settings)
    worklist: Deque[Tuple[Table, int]] = deque([(table, 0)])

    while worklist:
        parent, depth = worklist.popleft()
        if depth >= max_depth:
            continue

        # Children from an earlier search are kept and searched again, not duplicated
        attached = {(t.parent_cell_ref, t.bbox.to_tuple()): t for t in parent.nested_tables}

        for cell in parent.primary_cells():
            if cell.is_empty:
                continue

            sub_chars, sub_lines, sub_rects = primitives_in_cell(cell, chars, lines, rects)
            if inner_settings.uses_lines and not (sub_lines or sub_rects):
                continue

            for child in pipeline(sub_chars, sub_lines, sub_rects, inner_settings):
                if child.confidence < settings.min_nested_confidence:
                    continue
                if not cell.bbox.strictly_contains(child.bbox):
                    continue
                ref = (cell.row_index, cell.col_index)
                existing = attached.get((ref, child.bbox.to_tuple()))
                if existing is not None:
                    worklist.append((existing, depth + 1))
                    continue

                child.parent_cell_ref = ref
                parent.nested_tables.append(child)
                attached[(ref, child.bbox.to_tuple())] = child
                worklist.append((child, depth + 1))
                logger.debug(
                    f"Nested {child.row_count}x{child.col_count} table in cell "
                    f"({cell.row_index}, {cell.col_index}) at depth {depth + 1}"
                )

    return table
