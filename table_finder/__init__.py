"""
Table Finder

Reconstructs tables from the primitives of a decoded page: positioned
characters, stroked line segments and filled/stroked rectangles.

Features:
- Per-axis edge strategies (lines, lines_strict, text, explicit)
- Tolerance-based snapping, joining and intersection finding
- Spanning cells inferred from missing ruling
- Confidence scoring with a detection-method tag
- Borderless detection from projection profiles
- Nested tables inside cells, bounded by depth

Quick Start:
    from table_finder import Char, LineSegment, extract_tables

    lines = [
        LineSegment(50, 100, 250, 100), LineSegment(50, 150, 250, 150),
        LineSegment(50, 100, 50, 150), LineSegment(150, 100, 150, 150),
        LineSegment(250, 100, 250, 150),
    ]
    chars = [Char.at('A', 95, 120, 105, 130), Char.at('B', 195, 120, 205, 130)]

    tables = extract_tables(chars, lines, [])
    print(tables[0].rows)   # [['A', 'B']]

CLI Usage:
    table-finder extract report.pdf --format csv -o tables.csv
    table-finder from-json page.json --format json
"""

__version__ = '1.0.0'

from .exceptions import ConfigurationError, InputError, TableFinderError
from .layout import BoundingBox, Char, FilledRect, LineSegment, Word, cluster, snap
from .tables import (
    Cell,
    DetectionMethod,
    Edge,
    Intersection,
    Strategy,
    Table,
    TableFinder,
    TableFinderResult,
    TableSettings,
    detect_borderless_tables,
    extract_table,
    extract_tables,
    extract_tables_enhanced,
    find_nested_tables,
    find_tables,
    load_settings,
)
from .adapters import (
    PagePrimitives,
    load_page_primitives,
    page_primitives_from_dict,
    primitives_from_pdfplumber,
)

__all__ = [
    '__version__',

    # Errors
    'TableFinderError',
    'ConfigurationError',
    'InputError',

    # Page primitives
    'BoundingBox',
    'Char',
    'Word',
    'LineSegment',
    'FilledRect',
    'cluster',
    'snap',

    # Tables
    'Cell',
    'DetectionMethod',
    'Edge',
    'Intersection',
    'Strategy',
    'Table',
    'TableFinder',
    'TableFinderResult',
    'TableSettings',
    'load_settings',

    # Public API
    'extract_tables',
    'find_tables',
    'extract_table',
    'detect_borderless_tables',
    'find_nested_tables',
    'extract_tables_enhanced',

    # Adapters
    'PagePrimitives',
    'load_page_primitives',
    'page_primitives_from_dict',
    'primitives_from_pdfplumber',
]
