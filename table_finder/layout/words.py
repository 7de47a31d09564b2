"""
Word Grouping

Fallback grouping of characters into words and text lines, used when the
caller does not supply layout-grouped words for the text strategies and by
the cell assigner to order cell contents.
"""

from __future__ import annotations

from typing import Iterable, List

from .box import Char, Word, merge_boxes
from .geometry import cluster_objects


def group_chars_by_line(chars: Iterable[Char], y_tolerance: float = 3.0) -> List[List[Char]]:
    """
    Group characters into text lines by vertical center.

    Returns:
        Lines ordered top-to-bottom, each sorted left-to-right
    """
    lines = cluster_objects(chars, key=lambda c: c.bbox.center_y, tolerance=y_tolerance)
    return [sorted(line, key=lambda c: (c.bbox.x0, c.bbox.x1)) for line in lines]


def split_line(
    line: List[Char],
    x_tolerance: float = 3.0,
    keep_blank_chars: bool = False,
) -> List[List[Char]]:
    """
    Split a left-to-right sorted line into fragments at gaps and blanks.

    Blank characters act as separators and are not kept in any fragment,
    unless ``keep_blank_chars`` is set, in which case they stay inside the
    fragment and only positional gaps split it.
    """
    fragments: List[List[Char]] = []
    current: List[Char] = []

    for char in line:
        if char.is_blank and not keep_blank_chars:
            if current:
                fragments.append(current)
                current = []
            continue
        if current and char.bbox.x0 - current[-1].bbox.x1 > x_tolerance:
            fragments.append(current)
            current = []
        current.append(char)

    if current:
        fragments.append(current)
    return fragments


def chars_to_text(
    chars: Iterable[Char],
    x_tolerance: float = 3.0,
    y_tolerance: float = 3.0,
    keep_blank_chars: bool = False,
) -> str:
    """
    Render characters as text: lines top-to-bottom, fragments left-to-right,
    everything joined by single spaces and trimmed.

    With ``keep_blank_chars`` the blank characters inside a fragment are
    kept verbatim; otherwise runs of whitespace collapse to one space.
    """
    chars = list(chars)
    if not keep_blank_chars:
        chars = [c for c in chars if not c.is_blank]
    if not chars:
        return ''

    pieces: List[str] = []
    for line in group_chars_by_line(chars, y_tolerance):
        for fragment in split_line(line, x_tolerance, keep_blank_chars):
            piece = ''.join(c.text for c in fragment).strip()
            if piece:
                pieces.append(piece)

    text = ' '.join(pieces)
    if keep_blank_chars:
        return text.strip()
    return ' '.join(text.split())


def words_from_chars(
    chars: Iterable[Char],
    x_tolerance: float = 3.0,
    y_tolerance: float = 3.0,
) -> List[Word]:
    """
    Build words from characters, in reading order.

    Example:
        words = words_from_chars(page_chars)
        print([w.text for w in words])
    """
    words: List[Word] = []
    for line in group_chars_by_line(chars, y_tolerance):
        for fragment in split_line(line, x_tolerance):
            words.append(Word(
                text=''.join(c.text for c in fragment),
                bbox=merge_boxes(c.bbox for c in fragment),
            ))
    return words
