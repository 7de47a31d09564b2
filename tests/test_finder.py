"""
End-to-end tests for the table finder.

Run with: pytest tests/test_finder.py -v
"""

import copy

import numpy as np
import pytest

from table_finder import ConfigurationError
from table_finder.layout.box import Char, LineSegment
from table_finder.tables import (
    DetectionMethod,
    TableFinder,
    extract_table,
    extract_tables,
    find_tables,
)

from builders import FRUIT_ROWS, aligned_text_page, ruled_table, ruling


class TestRuledTables:
    """Tests for tables drawn with stroked lines."""

    def test_two_cells(self, two_cell_page):
        chars, lines = two_cell_page
        tables = extract_tables(chars, lines, [])

        assert len(tables) == 1
        table = tables[0]
        assert table.rows == [['A', 'B']]
        assert table.detection_method is DetectionMethod.LINES
        assert 0.5 <= table.confidence <= 1.0
        assert table.bbox.to_tuple() == (50, 100, 250, 150)

    @pytest.mark.parametrize('n_rows,n_cols', [(1, 1), (2, 3), (4, 2)])
    def test_grid_shape(self, n_rows, n_cols):
        xs = [80 * c for c in range(n_cols + 1)]
        ys = [30 * r for r in range(n_rows + 1)]
        texts = [[f'r{r}c{c}' for c in range(n_cols)] for r in range(n_rows)]
        chars, lines = ruled_table(xs, ys, texts)

        table = extract_table(chars, lines, [])
        assert table.rows == texts
        assert (table.row_count, table.col_count) == (n_rows, n_cols)
        assert table.detection_method is DetectionMethod.LINES
        assert table.confidence >= 0.8

    def test_rows_are_rectangular(self):
        chars, lines = ruled_table([0, 50, 100, 150], [0, 20, 40], [['a', '', 'c'], ['', 'e', '']])
        table = extract_table(chars, lines, [])
        assert table.rows == [['a', '', 'c'], ['', 'e', '']]
        assert all(len(row) == table.col_count for row in table.rows)
        assert all(len(row) == table.col_count for row in table.cells)

    def test_page_number(self, two_cell_page):
        chars, lines = two_cell_page
        table = extract_table(chars, lines, [], page_number=7)
        assert table.page_number == 7
        assert table.to_dict()['page_number'] == 7


class TestPipelineProperties:
    """Determinism, purity and ordering."""

    def test_idempotent(self, two_cell_page):
        chars, lines = two_cell_page
        first = [t.to_dict() for t in extract_tables(chars, lines, [])]
        second = [t.to_dict() for t in extract_tables(chars, lines, [])]
        assert first == second

    def test_inputs_not_mutated(self, two_cell_page):
        chars, lines = two_cell_page
        options = {'snap_tolerance': 2}
        before = (copy.deepcopy(chars), copy.deepcopy(lines), dict(options))

        extract_tables(chars, lines, [], options=options)
        assert (chars, lines, options) == before

    def test_empty_page(self):
        assert extract_tables([], [], []) == []
        assert extract_table([], [], []) is None

    def test_text_without_ruling(self):
        assert extract_tables(aligned_text_page(), [], []) == []

    def test_reading_order(self):
        lower_chars, lower_lines = ruled_table([0, 100, 200], [300, 350], [['lower', 'x']])
        left_chars, left_lines = ruled_table([0, 100], [0, 50], [['left']])
        right_chars, right_lines = ruled_table([300, 400], [0, 50], [['right']])

        tables = extract_tables(
            lower_chars + right_chars + left_chars,
            lower_lines + right_lines + left_lines,
            [],
        )
        assert [t.rows[0][0] for t in tables] == ['left', 'right', 'lower']

    def test_non_finite_primitives_ignored(self, two_cell_page):
        chars, lines = two_cell_page
        noisy_chars = chars + [Char.at('z', float('nan'), 0, 5, 10)]
        noisy_lines = lines + [LineSegment(0, float('inf'), 100, float('inf'))]

        clean = [t.to_dict() for t in extract_tables(chars, lines, [])]
        noisy = [t.to_dict() for t in extract_tables(noisy_chars, noisy_lines, [])]
        assert noisy == clean

    def test_separate_grids_are_separate_tables(self):
        lines = ruling([0, 100, 200], [0, 50]) + ruling([0, 100], [300, 350, 400])
        assert len(extract_tables([], lines, [])) == 2


class TestFindTables:

    def test_intermediate_geometry(self, two_cell_page):
        chars, lines = two_cell_page
        result = find_tables(chars, lines, [])

        assert len(result.tables) == 1
        assert len(result.edges) == 5
        assert len(result.intersections) == 6
        assert set(result.to_dict()) == {'tables', 'edges', 'intersections'}

    def test_finder_class(self, two_cell_page):
        chars, lines = two_cell_page
        finder = TableFinder(chars, lines, page_number=2)
        assert finder.extract_tables()[0].page_number == 2


class TestExplicitStrategy:
    """Tests for caller-supplied grid coordinates."""

    def test_empty_grid(self):
        options = {
            'vertical_strategy': 'explicit',
            'horizontal_strategy': 'explicit',
            'explicit_vertical_lines': [0, 100, 200],
            'explicit_horizontal_lines': [0, 50],
        }
        tables = extract_tables([], [], [], options=options)

        assert len(tables) == 1
        table = tables[0]
        assert table.rows == [['', '']]
        assert table.detection_method is DetectionMethod.EXPLICIT
        assert table.scores.content_coverage == 0.0
        assert table.confidence == pytest.approx(2 / 3)

    def test_array_coordinates(self):
        options = {
            'vertical_strategy': 'explicit',
            'horizontal_strategy': 'explicit',
            'explicit_vertical_lines': np.array([0, 100, 200]),
            'explicit_horizontal_lines': np.array([0.0, 50.0]),
        }
        tables = extract_tables([], [], [], options=options)
        assert [t.rows for t in tables] == [[['', '']]]

    def test_unsorted_array(self):
        options = {
            'vertical_strategy': 'explicit',
            'horizontal_strategy': 'explicit',
            'explicit_vertical_lines': np.array([150, 50, 250]),
            'explicit_horizontal_lines': np.array([0, 50]),
        }
        assert extract_tables([], [], [], options=options) == []

    def test_unsorted_coordinates(self, warnings_logged):
        options = {
            'vertical_strategy': 'explicit',
            'horizontal_strategy': 'explicit',
            'explicit_vertical_lines': [150, 50, 250],
            'explicit_horizontal_lines': [0, 50],
        }
        assert extract_tables([], [], [], options=options) == []
        assert any('not strictly increasing' in m for m in warnings_logged)

    def test_hybrid_axes(self, two_cell_page):
        chars, lines = two_cell_page
        horizontal_only = [l for l in lines if l.y0 == l.y1]
        options = {
            'vertical_strategy': 'explicit',
            'explicit_vertical_lines': [50, 150, 250],
        }
        table = extract_table(chars, horizontal_only, [], options=options)

        assert table.rows == [['A', 'B']]
        assert table.detection_method is DetectionMethod.HYBRID

    def test_explicit_added_to_lines(self):
        chars, lines = ruled_table([0, 200], [0, 40], [['left right']])
        options = {'explicit_vertical_lines': [0, 100, 200]}
        table = extract_table(chars, lines, [], options=options)
        assert table.col_count == 2


class TestTextCrossCheck:
    """Line tables confirmed by text alignment are tagged hybrid."""

    def setup_method(self):
        # Text columns span (50, 100, 218, 150); the ruling hugs them
        self.chars = aligned_text_page()
        self.lines = ruling([45, 190, 222], [98, 118, 138, 152])

    def test_without_cross_check(self):
        table = extract_table(self.chars, self.lines, [])
        assert table.rows == [list(row) for row in FRUIT_ROWS]
        assert table.detection_method is DetectionMethod.LINES

    def test_with_cross_check(self):
        table = extract_table(self.chars, self.lines, [], options={'text_cross_check': True})
        assert table.rows == [list(row) for row in FRUIT_ROWS]
        assert table.detection_method is DetectionMethod.HYBRID

    def test_small_text_region_in_large_table(self):
        lines = ruling([0, 190, 400], [0, 115, 135, 400])
        table = extract_table(self.chars, lines, [], options={'text_cross_check': True})
        assert table.rows == [list(row) for row in FRUIT_ROWS]
        assert table.detection_method is DetectionMethod.LINES


class TestConfiguration:

    @pytest.mark.parametrize('options', [
        {'vertical_strategy': 'bogus'},
        {'vertical_strategy': 'explicit'},
        {'horizontal_strategy': 'explicit', 'explicit_horizontal_lines': []},
        {'snap_tolerance': -1},
        {'no_such_setting': True},
    ])
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError):
            extract_tables([], [], [], options=options)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            TableFinder([], options={'vertical_strategy': 'bogus'})
