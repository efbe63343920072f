"""
Anchor selection for connections.

Decides which edge of each object a connector attaches to and where on that
edge the anchor sits. Selection depends only on the two boxes and the
configured offsets; obstacles are handled later by the path planner.
"""

from dataclasses import dataclass
from typing import Tuple

from .geometry import edge_midpoint, offset_point
from .models import BoundingBox, Edge, Point


@dataclass(frozen=True)
class AnchorSelection:
    """Resolved anchor points and facing edges for a pair of boxes."""

    start: Point
    end: Point
    start_edge: Edge
    end_edge: Edge


def facing_edges(a: BoundingBox, b: BoundingBox) -> Tuple[Edge, Edge]:
    """
    Pick the edges of ``a`` and ``b`` that face each other.

    The dominant axis of the center-to-center delta wins. Ties go to the
    horizontal axis so that diagonal neighbours do not flip between edge
    pairs as they are nudged.
    """
    dx = b.center_x - a.center_x
    dy = b.center_y - a.center_y

    if abs(dx) >= abs(dy):
        if dx >= 0:
            return Edge.RIGHT, Edge.LEFT
        return Edge.LEFT, Edge.RIGHT

    if dy >= 0:
        return Edge.BOTTOM, Edge.TOP
    return Edge.TOP, Edge.BOTTOM


def anchor_point(box: BoundingBox, edge: Edge, offset: float = 0) -> Point:
    """Middle of ``edge`` pushed outward by ``offset``."""
    return offset_point(edge_midpoint(box, edge), edge, offset)


def select_anchors(
    a: BoundingBox,
    b: BoundingBox,
    source_offset: float = 0,
    target_offset: float = 0,
    source_edge: Edge = Edge.AUTO,
    target_edge: Edge = Edge.AUTO,
) -> AnchorSelection:
    """
    Resolve anchors for a connector from ``a`` to ``b``.

    Args:
        a: Source object's bounding box.
        b: Target object's bounding box.
        source_offset: Gap between ``a`` and the start anchor.
        target_offset: Gap between ``b`` and the end anchor.
        source_edge: Forced source edge, or AUTO.
        target_edge: Forced target edge, or AUTO.

    Returns:
        AnchorSelection with both points and edges.
    """
    auto_start, auto_end = facing_edges(a, b)
    start_edge = auto_start if source_edge == Edge.AUTO else source_edge
    end_edge = auto_end if target_edge == Edge.AUTO else target_edge

    return AnchorSelection(
        start=anchor_point(a, start_edge, source_offset),
        end=anchor_point(b, end_edge, target_offset),
        start_edge=start_edge,
        end_edge=end_edge,
    )
