"""
Tests for nested table detection.
"""

from table_finder.layout.box import FilledRect
from table_finder.tables import extract_tables, find_nested_tables

from builders import centred_text, ruled_table, ruling


def nested_page():
    """Outer 1x2 table whose left cell holds a ruled 2x2 table."""
    outer_lines = ruling([0, 200, 400], [0, 200])
    inner_chars, inner_lines = ruled_table([20, 100, 180], [20, 60, 100], [['a', 'b'], ['c', 'd']])
    chars = inner_chars + centred_text('Right', (200, 0, 400, 200))
    return chars, outer_lines + inner_lines


class TestNestedTables:
    """Tests for tables inside cells."""

    def setup_method(self):
        self.chars, self.lines = nested_page()

    def test_without_nesting(self):
        tables = extract_tables(self.chars, self.lines, [])
        assert len(tables) == 2
        assert all(t.nested_tables == [] for t in tables)

    def test_child_attached_to_cell(self):
        tables = extract_tables(self.chars, self.lines, [], options={'detect_nested': True})
        assert len(tables) == 1

        outer = tables[0]
        assert outer.rows == [['a b c d', 'Right']]
        assert len(outer.nested_tables) == 1

        child = outer.nested_tables[0]
        assert child.parent_cell_ref == (0, 0)
        assert child.rows == [['a', 'b'], ['c', 'd']]
        assert child.bbox.to_tuple() == (20, 20, 180, 100)

    def test_containment(self):
        outer = extract_tables(self.chars, self.lines, [], options={'detect_nested': True})[0]
        for table in outer.iter_tables():
            for child in table.nested_tables:
                r, c = child.parent_cell_ref
                assert table.cells[r][c].bbox.strictly_contains(child.bbox)

    def test_depth_limit(self):
        outer = extract_tables(self.chars, self.lines, [])[0]
        result = find_nested_tables(outer, self.chars, self.lines, [], max_depth=0)
        assert result is outer
        assert outer.nested_tables == []

    def test_find_nested_tables(self):
        outer = extract_tables(self.chars, self.lines, [])[0]
        find_nested_tables(outer, self.chars, self.lines, [])
        assert [t.parent_cell_ref for t in outer.nested_tables] == [(0, 0)]

    def test_repeated_search(self):
        outer = extract_tables(self.chars, self.lines, [])[0]
        find_nested_tables(outer, self.chars, self.lines, [])
        find_nested_tables(outer, self.chars, self.lines, [])
        assert len(outer.nested_tables) == 1
        assert len(list(outer.iter_tables())) == 2

    def test_search_after_nested_detection(self):
        outer = extract_tables(self.chars, self.lines, [], options={'detect_nested': True})[0]
        before = outer.to_dict()
        find_nested_tables(outer, self.chars, self.lines, [])
        assert outer.to_dict() == before

    def test_min_confidence(self):
        outer = extract_tables(self.chars, self.lines, [])[0]
        find_nested_tables(outer, self.chars, self.lines, [], options={'min_nested_confidence': 1.01})
        assert outer.nested_tables == []


class TestSelfRegeneration:
    """The outer table's own ruling must not come back as its child."""

    def test_cell_rectangles(self):
        rects = [FilledRect.at(0, 0, 200, 100), FilledRect.at(200, 0, 400, 100)]
        chars = centred_text('Left', (0, 0, 200, 100)) + centred_text('Right', (200, 0, 400, 100))

        tables = extract_tables(chars, [], rects, options={'detect_nested': True})
        assert len(tables) == 1
        assert tables[0].rows == [['Left', 'Right']]
        assert tables[0].nested_tables == []

    def test_empty_cells_not_searched(self):
        chars, lines = nested_page()
        inner_chars, _ = ruled_table([20, 100, 180], [20, 60, 100], [['a', 'b'], ['c', 'd']])
        outer_only = [c for c in chars if c not in inner_chars]

        tables = extract_tables(outer_only, lines, [], options={'detect_nested': True})
        outer = max(tables, key=lambda t: t.bbox.area)
        assert outer.nested_tables == []
