"""
Orientation, Snapping and Clustering

Tolerance-based helpers shared by every stage of the table finder.

Clustering is single-linkage over sorted values: a value joins the current
group when its gap to the previous value is within tolerance. The group is
represented by its lowest member, so a value sitting exactly between two
groups always falls to the lower one.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence, TypeVar

from .box import LineSegment

T = TypeVar('T')

DEFAULT_ANGLE_TOLERANCE = 3.0


class Orientation(Enum):
    """Orientation of a line segment or edge."""
    HORIZONTAL = 'horizontal'
    VERTICAL = 'vertical'
    DIAGONAL = 'diagonal'


def approx_equal(a: float, b: float, tolerance: float = 3.0) -> bool:
    """Check if two numbers are within tolerance of each other."""
    return abs(a - b) <= tolerance


def classify(line: LineSegment, tolerance: float = DEFAULT_ANGLE_TOLERANCE) -> Orientation:
    """
    Classify a segment by comparing its start/end coordinate deltas.

    A segment is horizontal when its vertical drift is within tolerance and
    not larger than its horizontal extent; vertical symmetrically. Anything
    else, including non-finite segments, is diagonal and never forms an edge.
    """
    if not line.is_finite:
        return Orientation.DIAGONAL

    dx = abs(line.x1 - line.x0)
    dy = abs(line.y1 - line.y0)

    if dy <= tolerance and dx >= dy:
        return Orientation.HORIZONTAL
    if dx <= tolerance and dy > dx:
        return Orientation.VERTICAL
    return Orientation.DIAGONAL


def cluster_groups(values: Iterable[float], tolerance: float) -> List[List[float]]:
    """
    Group sorted values, chaining neighbours whose gap is within tolerance.

    Non-finite values are dropped. Negative tolerance behaves as zero.
    """
    tolerance = max(0.0, tolerance)
    ordered = sorted(v for v in values if math.isfinite(v))
    if not ordered:
        return []

    groups: List[List[float]] = [[ordered[0]]]
    for value in ordered[1:]:
        if value - groups[-1][-1] <= tolerance:
            groups[-1].append(value)
        else:
            groups.append([value])
    return groups


def cluster(values: Iterable[float], tolerance: float) -> List[float]:
    """
    Cluster coordinates and return one representative per group.

    The representative is the lowest value of its group, so every
    representative is an input value and distinct representatives are always
    more than ``tolerance`` apart.

    Example:
        >>> cluster([100, 101.5, 150, 152], 3)
        [100, 150]
    """
    return [group[0] for group in cluster_groups(values, tolerance)]


def cluster_objects(
    items: Iterable[T],
    key: Callable[[T], float],
    tolerance: float,
) -> List[List[T]]:
    """
    Group arbitrary objects by a numeric key using the same chaining rule.

    Ties on the key keep the input order, so the grouping is deterministic.
    """
    tolerance = max(0.0, tolerance)
    keyed = [(key(item), idx, item) for idx, item in enumerate(items)]
    keyed = [entry for entry in keyed if math.isfinite(entry[0])]
    keyed.sort(key=lambda entry: (entry[0], entry[1]))
    if not keyed:
        return []

    groups: List[List[T]] = [[keyed[0][2]]]
    last = keyed[0][0]
    for value, _, item in keyed[1:]:
        if value - last <= tolerance:
            groups[-1].append(item)
        else:
            groups.append([item])
        last = value
    return groups


def snap(value: float, representatives: Sequence[float], tolerance: float) -> float:
    """
    Move a value onto the nearest representative within tolerance.

    Exact ties go to the lower representative. Values with no representative
    in range are returned unchanged.
    """
    best = None
    best_distance = math.inf
    for rep in sorted(representatives):
        distance = abs(value - rep)
        if distance <= tolerance and distance < best_distance:
            best, best_distance = rep, distance
    return value if best is None else best


def snap_map(values: Iterable[float], tolerance: float) -> Dict[float, float]:
    """Map every finite input value to its cluster representative."""
    mapping: Dict[float, float] = {}
    for group in cluster_groups(values, tolerance):
        for value in group:
            mapping[value] = group[0]
    return mapping


def coefficient_of_variation(values: Sequence[float]) -> float:
    """
    Standard deviation over mean of a sequence of sizes.

    A single value has no variation (0.0). An empty sequence or a
    non-positive mean is maximally irregular (1.0).
    """
    if not values:
        return 1.0
    if len(values) == 1:
        return 0.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 1.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / mean
