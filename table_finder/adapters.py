"""
Page Adapters

Converts decoded pages into the primitives the table finder consumes.

Sources:
1. pdfplumber pages (already top-left origin: ``top``/``bottom``)
2. JSON page documents, one page per file::

    {
      "page_number": 1,
      "chars": [{"text": "A", "x0": 50, "y0": 100, "x1": 56, "y1": 110}],
      "lines": [{"x0": 50, "y0": 100, "x1": 250, "y1": 100, "stroke_width": 1}],
      "rects": [{"x0": 50, "y0": 100, "x1": 250, "y1": 150, "filled": false, "stroked": true}],
      "words": [{"text": "Total", "x0": 50, "y0": 100, "x1": 80, "y1": 110}]
    }

Malformed entries are skipped with a warning; a document that is not a JSON
object raises InputError.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, List, Mapping, Optional, TypeVar, Union

import pdfplumber
from loguru import logger

from .exceptions import InputError
from .layout.box import BoundingBox, Char, FilledRect, LineSegment, Word

T = TypeVar('T')


@dataclass
class PagePrimitives:
    """Everything the table finder needs from one page."""
    chars: List[Char] = field(default_factory=list)
    lines: List[LineSegment] = field(default_factory=list)
    rects: List[FilledRect] = field(default_factory=list)
    words: Optional[List[Word]] = None
    page_number: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.chars or self.lines or self.rects)


def _number(entry: Mapping[str, Any], *keys: str) -> float:
    """First present key as a finite float."""
    for key in keys:
        if key in entry and entry[key] is not None:
            value = entry[key]
            if isinstance(value, bool):
                raise ValueError(f"{key} must be a number")
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"{key} is not finite")
            return value
    raise KeyError(keys[0])


def _box(entry: Mapping[str, Any]) -> BoundingBox:
    return BoundingBox(
        _number(entry, 'x0'),
        _number(entry, 'y0', 'top'),
        _number(entry, 'x1'),
        _number(entry, 'y1', 'bottom'),
    )


def _parse_char(entry: Mapping[str, Any]) -> Char:
    glyph_width = entry.get('glyph_width')
    return Char(
        text=str(entry['text']),
        bbox=_box(entry),
        glyph_width=float(glyph_width) if glyph_width is not None else None,
    )


def _parse_word(entry: Mapping[str, Any]) -> Word:
    return Word(text=str(entry['text']), bbox=_box(entry))


def _parse_line(entry: Mapping[str, Any]) -> LineSegment:
    return LineSegment(
        _number(entry, 'x0'),
        _number(entry, 'y0', 'top'),
        _number(entry, 'x1'),
        _number(entry, 'y1', 'bottom'),
        stroke_width=float(entry.get('stroke_width', 1.0)),
    )


def _parse_rect(entry: Mapping[str, Any]) -> FilledRect:
    return FilledRect(
        bbox=_box(entry),
        filled=bool(entry.get('filled', False)),
        stroked=bool(entry.get('stroked', True)),
    )


def _parse_all(kind: str, entries: Any, parse: Callable[[Mapping[str, Any]], T]) -> List[T]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        logger.warning(f"Ignoring '{kind}': expected a list, got {type(entries).__name__}")
        return []

    parsed: List[T] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            logger.warning(f"Skipping {kind}[{i}]: not an object")
            continue
        try:
            parsed.append(parse(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {kind}[{i}]: {e!r}")
    return parsed


def page_primitives_from_dict(data: Any) -> PagePrimitives:
    """
    Build page primitives from a decoded JSON page document.

    Raises:
        InputError: If the document is not a JSON object
    """
    if not isinstance(data, Mapping):
        raise InputError(f"Page document must be a JSON object, got {type(data).__name__}")

    words = data.get('words')
    try:
        page_number = int(data.get('page_number', 0) or 0)
    except (TypeError, ValueError):
        raise InputError(f"Invalid page_number: {data.get('page_number')!r}") from None

    return PagePrimitives(
        chars=_parse_all('chars', data.get('chars'), _parse_char),
        lines=_parse_all('lines', data.get('lines'), _parse_line),
        rects=_parse_all('rects', data.get('rects'), _parse_rect),
        words=_parse_all('words', words, _parse_word) if words is not None else None,
        page_number=page_number,
    )


def load_page_primitives(path: Union[str, Path]) -> PagePrimitives:
    """
    Load a JSON page document from disk.

    Raises:
        InputError: If the file cannot be read or is not valid JSON
    """
    path = Path(path)
    logger.info(f"Loading page primitives from: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InputError(f"Cannot read page document {path}: {e}") from e

    page = page_primitives_from_dict(data)
    logger.debug(
        f"Loaded {len(page.chars)} chars, {len(page.lines)} lines, {len(page.rects)} rects"
    )
    return page


def primitives_from_pdfplumber(page: Any, page_number: Optional[int] = None) -> PagePrimitives:
    """
    Convert a pdfplumber page into table finder primitives.

    Curves are ignored. Line endpoints come from ``pts`` when available so a
    segment's direction survives; otherwise the object bbox is used.

    Args:
        page: pdfplumber page object
        page_number: Defaults to the page's own 1-based number
    """
    chars: List[Char] = []
    for obj in page.chars:
        try:
            chars.append(Char(
                text=obj.get('text', ''),
                bbox=BoundingBox(obj['x0'], obj['top'], obj['x1'], obj['bottom']),
                glyph_width=obj.get('width'),
            ))
        except KeyError as e:
            logger.warning(f"Skipping pdfplumber char without {e}")

    lines: List[LineSegment] = []
    for obj in page.lines:
        pts = obj.get('pts') or []
        if len(pts) >= 2:
            (x0, y0), (x1, y1) = pts[0], pts[-1]
        else:
            x0, y0, x1, y1 = obj['x0'], obj['top'], obj['x1'], obj['bottom']
        lines.append(LineSegment(
            float(x0), float(y0), float(x1), float(y1),
            stroke_width=float(obj.get('linewidth') or 1.0),
        ))

    rects = [
        FilledRect(
            bbox=BoundingBox(obj['x0'], obj['top'], obj['x1'], obj['bottom']),
            filled=bool(obj.get('fill', False)),
            stroked=bool(obj.get('stroke', True)),
        )
        for obj in page.rects
    ]

    number = page_number if page_number is not None else getattr(page, 'page_number', 0)
    return PagePrimitives(chars=chars, lines=lines, rects=rects, page_number=number)


def parse_page_range(spec: Optional[str], page_count: int) -> List[int]:
    """
    Parse a page selection like ``"1,3-5"`` into 1-based page numbers.

    Pages outside the document are dropped. None selects every page.

    Raises:
        InputError: On a malformed selection
    """
    if not spec:
        return list(range(1, page_count + 1))

    selected: List[int] = []
    for part in spec.split(','):
        part = part.strip()
        if not part:
            continue
        try:
            if '-' in part:
                start, end = (int(p) for p in part.split('-', 1))
                selected.extend(range(start, end + 1))
            else:
                selected.append(int(part))
        except ValueError:
            raise InputError(f"Invalid page selection: {part!r}") from None

    return [p for p in dict.fromkeys(selected) if 1 <= p <= page_count]


def iter_pdf_pages(pdf_path: Union[str, Path], pages: Optional[str] = None) -> Iterator[PagePrimitives]:
    """
    Decode the selected pages of a PDF with pdfplumber.

    Raises:
        InputError: If the file cannot be opened as a PDF
    """
    pdf_path = Path(pdf_path)
    logger.info(f"Opening PDF: {pdf_path}")
    try:
        pdf = pdfplumber.open(pdf_path)
    except Exception as e:
        raise InputError(f"Cannot open PDF {pdf_path}: {e}") from e

    with pdf:
        for number in parse_page_range(pages, len(pdf.pages)):
            logger.debug(f"Decoding page {number}")
            yield primitives_from_pdfplumber(pdf.pages[number - 1], page_number=number)
