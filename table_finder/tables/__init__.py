"""
Table Reconstruction

This package rebuilds table structure from the primitives of one page.

Key Components:
- TableSettings: Per-call configuration and strategy selection
- Edge strategies: lines, lines_strict, text and explicit edge sources
- Grid builder: intersections, connected regions and boundary lattices
- Cell assigner: text placement and spanning cells
- Confidence scorer: edge completeness, content coverage, grid regularity
- Borderless and nested detection
- TableFinder: Orchestrates the pipeline

Usage:
    from table_finder.tables import extract_tables

    tables = extract_tables(chars, lines, rects, page_number=1)
    for table in tables:
        print(table.detection_method.value, table.confidence)
        print(table.to_markdown())
"""

from .settings import (
    Strategy,
    TableSettings,
    load_settings,
)
from .models import (
    Cell,
    ConfidenceScores,
    DetectionMethod,
    Edge,
    EdgeStyle,
    Grid,
    Intersection,
    Table,
    TableFinderResult,
)
from .edges import (
    EDGE_STRATEGIES,
    EdgeContext,
    ExplicitStrategy,
    LinesStrategy,
    TextStrategy,
    canonicalize_edges,
    collect_edges,
)
from .grid import (
    Region,
    build_grid,
    find_intersections,
    group_regions,
)
from .cells import build_cells
from .confidence import detection_method_for, score_table
from .borderless import detect_borderless
from .nested import find_nested
from .finder import (
    TableFinder,
    detect_borderless_tables,
    extract_table,
    extract_tables,
    extract_tables_enhanced,
    find_nested_tables,
    find_tables,
)

__all__ = [
    # Configuration
    'Strategy',
    'TableSettings',
    'load_settings',

    # Data model
    'Cell',
    'ConfidenceScores',
    'DetectionMethod',
    'Edge',
    'EdgeStyle',
    'Grid',
    'Intersection',
    'Table',
    'TableFinderResult',

    # Pipeline stages
    'EDGE_STRATEGIES',
    'EdgeContext',
    'ExplicitStrategy',
    'LinesStrategy',
    'TextStrategy',
    'canonicalize_edges',
    'collect_edges',
    'Region',
    'build_grid',
    'find_intersections',
    'group_regions',
    'build_cells',
    'detection_method_for',
    'score_table',
    'detect_borderless',
    'find_nested',

    # Public API
    'TableFinder',
    'detect_borderless_tables',
    'extract_table',
    'extract_tables',
    'extract_tables_enhanced',
    'find_nested_tables',
    'find_tables',
]
