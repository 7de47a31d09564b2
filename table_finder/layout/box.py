"""
Bounding Box and Page Primitives

Geometric primitives the table finder works on: bounding boxes and the
per-page inputs decoded upstream (characters, words, stroked line segments
and rectangles).

Design Decisions:
- Coordinates are in page units with the origin at the top-left corner and
  y growing downward, so ``y0`` is the top edge and ``y1`` the bottom edge
- Boxes are immutable and normalised on creation (inverted corners swapped)
- Inputs are owned by the caller and never mutated by the engine
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    Immutable bounding box in top-left origin page coordinates.

    Coordinates:
    - x0, y0: Top-left corner
    - x1, y1: Bottom-right corner

    Example:
        box = BoundingBox(x0=50, y0=100, x1=150, y1=150)
        print(f"Width: {box.width}, Height: {box.height}")

        if box.contains_point(*char.bbox.center):
            ...
    """
    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self):
        """Normalize coordinates if inverted."""
        if self.x0 > self.x1:
            x0, x1 = self.x1, self.x0
            object.__setattr__(self, 'x0', x0)
            object.__setattr__(self, 'x1', x1)
        if self.y0 > self.y1:
            y0, y1 = self.y1, self.y0
            object.__setattr__(self, 'y0', y0)
            object.__setattr__(self, 'y1', y1)

    @cached_property
    def width(self) -> float:
        """Width of the bounding box."""
        return self.x1 - self.x0

    @cached_property
    def height(self) -> float:
        """Height of the bounding box."""
        return self.y1 - self.y0

    @cached_property
    def area(self) -> float:
        """Area of the bounding box."""
        return self.width * self.height

    @cached_property
    def center(self) -> Tuple[float, float]:
        """Center point (cx, cy)."""
        return ((self.x0 + self.x1) / 2, (self.y0 + self.y1) / 2)

    @property
    def center_x(self) -> float:
        return (self.x0 + self.x1) / 2

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2

    @property
    def is_finite(self) -> bool:
        """Whether all four coordinates are finite numbers."""
        return all(math.isfinite(v) for v in (self.x0, self.y0, self.x1, self.y1))

    def to_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x0, y0, x1, y1) tuple."""
        return (self.x0, self.y0, self.x1, self.y1)

    def to_dict(self) -> Dict[str, float]:
        """Return as dictionary for JSON serialization."""
        return {
            'x0': round(self.x0, 2),
            'y0': round(self.y0, 2),
            'x1': round(self.x1, 2),
            'y1': round(self.y1, 2),
        }

    def intersects(self, other: 'BoundingBox') -> bool:
        """Check if this box intersects with another (touching counts)."""
        return not (
            self.x1 < other.x0 or
            self.x0 > other.x1 or
            self.y1 < other.y0 or
            self.y0 > other.y1
        )

    def contains_point(self, x: float, y: float) -> bool:
        """Check if a point is inside this box (edges inclusive)."""
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def contains_box(self, other: 'BoundingBox') -> bool:
        """Check if this box fully contains another box."""
        return (
            self.x0 <= other.x0 and
            self.y0 <= other.y0 and
            self.x1 >= other.x1 and
            self.y1 >= other.y1
        )

    def strictly_contains(self, other: 'BoundingBox') -> bool:
        """Check if another box lies strictly inside this one on all four sides."""
        return (
            self.x0 < other.x0 and
            self.y0 < other.y0 and
            self.x1 > other.x1 and
            self.y1 > other.y1
        )

    def intersection(self, other: 'BoundingBox') -> Optional['BoundingBox']:
        """
        Get the intersection of two boxes.

        Returns:
            Intersection BoundingBox or None if no intersection
        """
        if not self.intersects(other):
            return None

        return BoundingBox(
            x0=max(self.x0, other.x0),
            y0=max(self.y0, other.y0),
            x1=min(self.x1, other.x1),
            y1=min(self.y1, other.y1),
        )

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        """Get the smallest box containing both boxes."""
        return BoundingBox(
            x0=min(self.x0, other.x0),
            y0=min(self.y0, other.y0),
            x1=max(self.x1, other.x1),
            y1=max(self.y1, other.y1),
        )


@dataclass(frozen=True)
class Char:
    """
    A single positioned character.

    Attributes:
        text: The character (or ligature) text
        bbox: Glyph bounding box
        glyph_width: Optional average glyph width reported by the font
            layer; used to size projection-profile buckets
    """
    text: str
    bbox: BoundingBox
    glyph_width: Optional[float] = None

    @classmethod
    def at(
        cls,
        text: str,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        glyph_width: Optional[float] = None,
    ) -> 'Char':
        """Build a character from raw corner coordinates."""
        return cls(text=text, bbox=BoundingBox(x0, y0, x1, y1), glyph_width=glyph_width)

    @property
    def is_blank(self) -> bool:
        return not self.text or not self.text.strip()


@dataclass(frozen=True)
class Word:
    """A layout-grouped word, consumed as an alignment hint."""
    text: str
    bbox: BoundingBox

    @classmethod
    def at(cls, text: str, x0: float, y0: float, x1: float, y1: float) -> 'Word':
        return cls(text=text, bbox=BoundingBox(x0, y0, x1, y1))


@dataclass(frozen=True)
class LineSegment:
    """A stroked straight segment between two endpoints."""
    x0: float
    y0: float
    x1: float
    y1: float
    stroke_width: float = 1.0

    @property
    def length(self) -> float:
        return math.hypot(self.x1 - self.x0, self.y1 - self.y0)

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x0, self.y0, self.x1, self.y1))

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(self.x0, self.y0, self.x1, self.y1)


@dataclass(frozen=True)
class FilledRect:
    """
    A rectangle painted on the page.

    Attributes:
        bbox: Rectangle bounds
        filled: Whether the interior is painted
        stroked: Whether the outline is stroked
    """
    bbox: BoundingBox
    filled: bool = False
    stroked: bool = True

    @classmethod
    def at(
        cls,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        filled: bool = False,
        stroked: bool = True,
    ) -> 'FilledRect':
        return cls(bbox=BoundingBox(x0, y0, x1, y1), filled=filled, stroked=stroked)


def merge_boxes(boxes: Iterable[BoundingBox]) -> BoundingBox:
    """
    Merge multiple bounding boxes into their union.

    Raises:
        ValueError: If boxes is empty
    """
    boxes = list(boxes)
    if not boxes:
        raise ValueError("Cannot merge empty list of boxes")

    result = boxes[0]
    for box in boxes[1:]:
        result = result.union(box)
    return result


def calculate_iou(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Calculate Intersection over Union (IoU) of two boxes.

    Returns 0 if no intersection, 1 if identical.
    """
    intersection = box1.intersection(box2)
    if intersection is None:
        return 0.0

    union_area = box1.area + box2.area - intersection.area
    if union_area <= 0:
        return 0.0

    return intersection.area / union_area


def reading_order_key(box: BoundingBox) -> Tuple[float, float, float, float]:
    """Sort key for top-to-bottom, then left-to-right reading order."""
    return (box.y0, box.x0, box.y1, box.x1)


def content_extent(
    chars: Iterable[Char] = (),
    lines: Iterable[LineSegment] = (),
    rects: Iterable[FilledRect] = (),
) -> Optional[BoundingBox]:
    """Union of every finite primitive box on the page, or None when empty."""
    boxes: List[BoundingBox] = []
    boxes.extend(c.bbox for c in chars if c.bbox.is_finite)
    boxes.extend(l.bbox for l in lines if l.is_finite)
    boxes.extend(r.bbox for r in rects if r.bbox.is_finite)
    if not boxes:
        return None
    return merge_boxes(boxes)
