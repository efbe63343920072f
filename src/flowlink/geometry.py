"""
Geometry helpers for connection routing.

Pure functions over points and bounding boxes. Nothing here keeps state.
"""

import math
from typing import List, Sequence, Tuple

from .models import BoundingBox, Edge, Point

# Unit vector pointing away from an object through each edge
OUTWARD = {
    Edge.TOP: (0.0, -1.0),
    Edge.BOTTOM: (0.0, 1.0),
    Edge.LEFT: (-1.0, 0.0),
    Edge.RIGHT: (1.0, 0.0),
}


def midpoint(a: Point, b: Point) -> Point:
    """Point halfway between a and b."""
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def outward_direction(edge: Edge) -> Tuple[float, float]:
    """Unit vector leaving an object through ``edge``."""
    if edge not in OUTWARD:
        raise ValueError(f"Edge {edge} has no direction")
    return OUTWARD[edge]


def offset_point(point: Point, edge: Edge, amount: float) -> Point:
    """Move ``point`` by ``amount`` in the outward direction of ``edge``."""
    dx, dy = outward_direction(edge)
    return (point[0] + dx * amount, point[1] + dy * amount)


def edge_midpoint(box: BoundingBox, edge: Edge) -> Point:
    """Center of one side of a box."""
    if edge == Edge.TOP:
        return (box.center_x, box.y)
    if edge == Edge.BOTTOM:
        return (box.center_x, box.y2)
    if edge == Edge.LEFT:
        return (box.x, box.center_y)
    if edge == Edge.RIGHT:
        return (box.x2, box.center_y)
    raise ValueError(f"Edge {edge} has no midpoint")


def bounding_rect(a: Point, b: Point) -> BoundingBox:
    """Smallest box containing both points (the obstacle corridor)."""
    x, y = min(a[0], b[0]), min(a[1], b[1])
    return BoundingBox(x, y, abs(b[0] - a[0]), abs(b[1] - a[1]))


def rects_intersect(a: BoundingBox, b: BoundingBox) -> bool:
    return a.intersects(b)


def contains_point(box: BoundingBox, point: Point) -> bool:
    """True when the point lies strictly inside the box."""
    return box.x < point[0] < box.x2 and box.y < point[1] < box.y2


def segment_lengths(points: Sequence[Point]) -> List[float]:
    """Length of each segment of a polyline."""
    return [distance(points[i], points[i + 1]) for i in range(len(points) - 1)]


def corner_radii(points: Sequence[Point], radius: float) -> List[float]:
    """
    Per-vertex rounding for a polyline.

    The two end vertices are never rounded. An interior vertex gets
    ``radius`` clipped to half of each adjoining segment, so neighbouring
    corners can never overlap on a short segment.
    """
    radii = [0.0] * len(points)
    if radius <= 0 or len(points) < 3:
        return radii

    lengths = segment_lengths(points)
    for i in range(1, len(points) - 1):
        radii[i] = min(radius, lengths[i - 1] / 2, lengths[i] / 2)
    return radii
