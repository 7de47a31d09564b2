"""
Table Finder

Drives the table pipeline for one page:

1. Collect and canonicalise edges with the configured per-axis strategies
2. Find intersections and group edges into disjoint regions
3. Build a grid per region, assign text to cells and score it
4. Optionally fall back to borderless detection, cross-check line tables
   against text alignment and search cells for nested tables

Every call is a pure function of its inputs: nothing is cached between
calls and the caller's primitives are never modified.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from loguru import logger

from ..layout.box import Char, FilledRect, LineSegment, Word, calculate_iou, reading_order_key
from .borderless import detect_borderless
from .cells import build_cells
from .confidence import detection_method_for, score_table
from .edges import EdgeContext, collect_edges
from .grid import Region, build_grid, find_intersections, group_regions
from .models import DetectionMethod, Table, TableFinderResult
from .nested import find_nested
from .settings import Strategy, TableSettings

Options = Union[None, TableSettings, Mapping[str, Any]]


class TableFinder:
    """
    Finds tables among the primitives of one page.

    Usage:
        finder = TableFinder(chars, lines, rects, page_number=1)

        # Tables only
        tables = finder.extract_tables()

        # Tables plus the edges and intersections behind them
        result = finder.find_tables()
        print(len(result.edges), len(result.intersections))
    """

    def __init__(
        self,
        chars: Sequence[Char],
        lines: Sequence[LineSegment] = (),
        rects: Sequence[FilledRect] = (),
        page_number: int = 0,
        options: Options = None,
        words: Optional[Sequence[Word]] = None,
    ):
        """
        Initialize the finder.

        Args:
            chars: Positioned characters
            lines: Stroked line segments
            rects: Filled and/or stroked rectangles
            page_number: Page number stamped on every table
            options: Settings as a mapping or TableSettings
            words: Optional layout-grouped words for the text strategies

        Raises:
            ConfigurationError: If the options cannot be resolved
        """
        self.settings = TableSettings.resolve(options)
        self.chars = list(chars)
        self.lines = list(lines)
        self.rects = list(rects)
        self.words = list(words) if words is not None else None
        self.page_number = page_number

    def find_tables(self) -> TableFinderResult:
        """Run the full pipeline and keep the intermediate geometry."""
        settings = self.settings
        context = EdgeContext(
            chars=self.chars,
            lines=self.lines,
            rects=self.rects,
            settings=settings,
            given_words=self.words,
        )

        edges = collect_edges(context)
        if not edges:
            logger.debug(f"Page {self.page_number}: no structural edges")
            tables = self.detect_borderless() if settings.detect_borderless else []
            return TableFinderResult(tables=tables, edges=[], intersections=[])

        intersections = find_intersections(edges, settings)
        regions = group_regions(edges, intersections)
        logger.debug(
            f"Page {self.page_number}: {len(edges)} edges, "
            f"{len(intersections)} intersections, {len(regions)} regions"
        )

        method = detection_method_for(settings)
        tables: List[Table] = []
        for region in regions:
            table = self._build_table(region, method)
            if table is not None:
                tables.append(table)

        if settings.text_cross_check and method is DetectionMethod.LINES and tables:
            self._cross_check(tables)

        if settings.detect_nested:
            for table in tables:
                self.find_nested(table, settings.max_depth)
            # A table drawn inside a cell is reported under its parent only
            nested_boxes = {
                child.bbox.to_tuple()
                for table in tables
                for child in list(table.iter_tables())[1:]
            }
            tables = [t for t in tables if t.bbox.to_tuple() not in nested_boxes]

        tables.sort(key=lambda t: reading_order_key(t.bbox))
        logger.debug(f"Page {self.page_number}: {len(tables)} tables")
        return TableFinderResult(tables=tables, edges=edges, intersections=intersections)

    def extract_tables(self) -> List[Table]:
        return self.find_tables().tables

    def detect_borderless(self) -> List[Table]:
        """Projection-profile detection over all characters of the page."""
        return detect_borderless(self.chars, self.settings, self.page_number)

    def find_nested(self, table: Table, max_depth: Optional[int] = None) -> Table:
        """Attach tables found inside the cells of ``table``."""
        depth = self.settings.max_depth if max_depth is None else max_depth
        return find_nested(
            table, self.chars, self.lines, self.rects,
            self.settings, self._run_in_cell, max_depth=depth,
        )

    def _run_in_cell(
        self,
        chars: Sequence[Char],
        lines: Sequence[LineSegment],
        rects: Sequence[FilledRect],
        settings: TableSettings,
    ) -> List[Table]:
        return TableFinder(chars, lines, rects, self.page_number, settings).extract_tables()

    def _build_table(self, region: Region, method: DetectionMethod) -> Optional[Table]:
        grid = build_grid(region, self.settings)
        if grid is None:
            return None

        span_edges = region.edges if self.settings.uses_lines else None
        rows, cells = build_cells(grid, self.chars, self.settings, span_edges)
        primary = [
            cell for r, row in enumerate(cells) for c, cell in enumerate(row)
            if (cell.row_index, cell.col_index) == (r, c)
        ]
        scores = score_table(grid, primary, region.edges, self.settings)

        return Table(
            bbox=grid.bbox,
            rows=rows,
            cells=cells,
            confidence=scores.total,
            detection_method=method,
            page_number=self.page_number,
            scores=scores,
        )

    def _cross_check(self, tables: List[Table]):
        """Re-tag line tables that text alignment independently confirms."""
        text_settings = self.settings.evolve(
            vertical_strategy=Strategy.TEXT,
            horizontal_strategy=Strategy.TEXT,
            explicit_vertical_lines=None,
            explicit_horizontal_lines=None,
            text_cross_check=False,
            detect_borderless=False,
            detect_nested=False,
        )
        text_tables = TableFinder(
            self.chars, (), (), self.page_number, text_settings, self.words,
        ).extract_tables()

        for table in tables:
            if any(calculate_iou(table.bbox, t.bbox) >= self.settings.hybrid_overlap for t in text_tables):
                table.detection_method = DetectionMethod.HYBRID


def find_tables(
    chars: Sequence[Char],
    lines: Sequence[LineSegment] = (),
    rects: Sequence[FilledRect] = (),
    page_number: int = 0,
    options: Options = None,
    words: Optional[Sequence[Word]] = None,
) -> TableFinderResult:
    """Find tables and return them with the edges and intersections used."""
    return TableFinder(chars, lines, rects, page_number, options, words).find_tables()


def extract_tables(
    chars: Sequence[Char],
    lines: Sequence[LineSegment] = (),
    rects: Sequence[FilledRect] = (),
    page_number: int = 0,
    options: Options = None,
    words: Optional[Sequence[Word]] = None,
) -> List[Table]:
    """
    Extract all tables from one page's primitives.

    Returns:
        Tables in reading order (top-to-bottom, then left-to-right); an
        empty list when the page has none

    Raises:
        ConfigurationError: If the options cannot be resolved
    """
    return TableFinder(chars, lines, rects, page_number, options, words).extract_tables()


def extract_table(
    chars: Sequence[Char],
    lines: Sequence[LineSegment] = (),
    rects: Sequence[FilledRect] = (),
    page_number: int = 0,
    options: Options = None,
    words: Optional[Sequence[Word]] = None,
) -> Optional[Table]:
    """First table in reading order, or None."""
    tables = extract_tables(chars, lines, rects, page_number, options, words)
    return tables[0] if tables else None


def detect_borderless_tables(
    chars: Sequence[Char],
    page_number: int = 0,
    options: Options = None,
) -> List[Table]:
    """Run projection-profile detection directly, ignoring any ruling."""
    return TableFinder(chars, (), (), page_number, options).detect_borderless()


def find_nested_tables(
    table: Table,
    chars: Sequence[Char],
    lines: Sequence[LineSegment] = (),
    rects: Sequence[FilledRect] = (),
    max_depth: int = 2,
    options: Options = None,
) -> Table:
    """Search the cells of an already found table for nested tables."""
    finder = TableFinder(chars, lines, rects, table.page_number, options)
    return finder.find_nested(table, max_depth)


def extract_tables_enhanced(
    chars: Sequence[Char],
    lines: Sequence[LineSegment] = (),
    rects: Sequence[FilledRect] = (),
    page_number: int = 0,
    options: Options = None,
    detect_nested: bool = False,
    words: Optional[Sequence[Word]] = None,
) -> List[Table]:
    """
    Extract tables with every detection method enabled.

    Borderless detection takes over when the page has no structural edges,
    and nested tables are searched when ``detect_nested`` is set.
    """
    settings = TableSettings.resolve(options).evolve(
        detect_borderless=True,
        detect_nested=detect_nested,
    )
    return TableFinder(chars, lines, rects, page_number, settings, words).extract_tables()
