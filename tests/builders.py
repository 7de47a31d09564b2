"""
Page builders shared by the tests.

Coordinates follow the engine: top-left origin, y grows downward. Every
character is CHAR_W wide and CHAR_H tall.
"""

from typing import List, Sequence, Tuple

from table_finder.layout.box import Char, LineSegment

CHAR_W = 6.0
CHAR_H = 10.0


def chars_for(text: str, x0: float, y0: float) -> List[Char]:
    """One Char per character, laid out left to right from (x0, y0)."""
    return [
        Char.at(ch, x0 + i * CHAR_W, y0, x0 + (i + 1) * CHAR_W, y0 + CHAR_H)
        for i, ch in enumerate(text)
    ]


def centred_text(text: str, box: Tuple[float, float, float, float]) -> List[Char]:
    """Characters of text centred in box (x0, y0, x1, y1)."""
    x0, y0, x1, y1 = box
    width = len(text) * CHAR_W
    return chars_for(text, (x0 + x1) / 2 - width / 2, (y0 + y1) / 2 - CHAR_H / 2)


def ruling(xs: Sequence[float], ys: Sequence[float]) -> List[LineSegment]:
    """A fully ruled grid: one horizontal per y and one vertical per x."""
    lines = [LineSegment(xs[0], y, xs[-1], y) for y in ys]
    lines.extend(LineSegment(x, ys[0], x, ys[-1]) for x in xs)
    return lines


def ruled_table(
    xs: Sequence[float],
    ys: Sequence[float],
    texts: Sequence[Sequence[str]],
) -> Tuple[List[Char], List[LineSegment]]:
    """Ruling plus text centred in each cell."""
    chars: List[Char] = []
    for r, row in enumerate(texts):
        for c, text in enumerate(row):
            chars.extend(centred_text(text, (xs[c], ys[r], xs[c + 1], ys[r + 1])))
    return chars, ruling(xs, ys)


# Three rows of two left-aligned columns, without any ruling
FRUIT_ROWS = [('Apple', '10'), ('Kiwi', '200'), ('Banana', '3')]


def aligned_text_page(left: float = 50, right: float = 200, top: float = 100, pitch: float = 20) -> List[Char]:
    chars: List[Char] = []
    for i, (name, qty) in enumerate(FRUIT_ROWS):
        y = top + i * pitch
        chars.extend(chars_for(name, left, y))
        chars.extend(chars_for(qty, right, y))
    return chars
