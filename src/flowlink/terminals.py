"""
Terminal decorations for connector ends.

Computes the geometry of the arrow, circle, diamond or square drawn at a
connector anchor. Orientation comes from the anchor's facing edge, not from
the path tangent, so a decoration keeps its direction even when the last
segment of the path runs along the edge.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .geometry import outward_direction
from .models import BoundingBox, Edge, Point, RGB, Style, TerminalKind
from .planner import bakes_arrow
from .scene import bounds_of

# Size factors relative to the stroke width
MARKER_SIZE_FACTOR = 2.5
DIAMOND_HALF_FACTOR = 1.25
ARROW_LENGTH_FACTOR = 2
ARROW_HALF_WIDTH_FACTOR = 1.6


class DecorationShape(Enum):
    """Primitive used to draw a decoration."""

    ELLIPSE = "ellipse"
    RECTANGLE = "rectangle"
    POLYGON = "polygon"


@dataclass(frozen=True)
class DecorationSpec:
    """
    Geometry of one terminal decoration.

    Attributes:
        name: Display name for the scene object.
        kind: Terminal kind this decoration draws.
        shape: Primitive to create.
        center: Anchor the decoration is placed on.
        size: Width/height for ellipses and rectangles.
        points: Outline for polygons.
        fill: Fill color (the connection's stroke color).
        edge: Facing edge that oriented the decoration.
    """

    name: str
    kind: TerminalKind
    shape: DecorationShape
    center: Point
    fill: RGB
    edge: Edge
    size: float = 0
    points: Tuple[Point, ...] = ()

    def bounds(self) -> BoundingBox:
        if self.points:
            return bounds_of(self.points)
        half = self.size / 2
        return BoundingBox(self.center[0] - half, self.center[1] - half, self.size, self.size)


class TerminalDecorator:
    """Builds decoration specs for connector terminals."""

    def decorate(
        self,
        point: Point,
        kind: TerminalKind,
        style: Style,
        edge: Edge,
        name: str = "Terminal",
    ) -> Optional[DecorationSpec]:
        """
        Decoration for one end of a connector.

        Args:
            point: Anchor point the decoration sits on.
            kind: Terminal kind.
            style: Supplies stroke width and color.
            edge: Facing edge of the anchor, used for orientation.
            name: Name for the created scene object.

        Returns:
            DecorationSpec, or None when nothing separate must be drawn.
        """
        if kind == TerminalKind.NONE or bakes_arrow(kind, style):
            return None

        width = style.stroke_width
        if kind in (TerminalKind.CIRCLE, TerminalKind.SQUARE):
            shape = (
                DecorationShape.ELLIPSE
                if kind == TerminalKind.CIRCLE
                else DecorationShape.RECTANGLE
            )
            return DecorationSpec(
                name=name,
                kind=kind,
                shape=shape,
                center=point,
                fill=style.stroke_color,
                edge=edge,
                size=width * MARKER_SIZE_FACTOR,
            )

        if kind == TerminalKind.DIAMOND:
            return DecorationSpec(
                name=name,
                kind=kind,
                shape=DecorationShape.POLYGON,
                center=point,
                fill=style.stroke_color,
                edge=edge,
                points=diamond_points(point, width * DIAMOND_HALF_FACTOR),
            )

        if kind == TerminalKind.ARROW:
            return DecorationSpec(
                name=name,
                kind=kind,
                shape=DecorationShape.POLYGON,
                center=point,
                fill=style.stroke_color,
                edge=edge,
                points=arrow_points(
                    point,
                    edge,
                    width * ARROW_LENGTH_FACTOR,
                    width * ARROW_HALF_WIDTH_FACTOR,
                ),
            )

        raise ValueError(f"Unknown terminal kind: {kind}")


def diamond_points(center: Point, half: float) -> Tuple[Point, ...]:
    """Top, right, bottom, left corners of a diamond."""
    cx, cy = center
    return ((cx, cy - half), (cx + half, cy), (cx, cy + half), (cx - half, cy))


def arrow_points(
    base: Point, edge: Edge, length: float, half_width: float
) -> Tuple[Point, ...]:
    """
    Triangle with its base centered on ``base`` and its apex ``length`` away
    in the outward direction of ``edge``.
    """
    dx, dy = outward_direction(edge)
    # Perpendicular to the outward direction
    px, py = -dy, dx
    apex = (base[0] + dx * length, base[1] + dy * length)
    left = (base[0] + px * half_width, base[1] + py * half_width)
    right = (base[0] - px * half_width, base[1] - py * half_width)
    return (apex, left, right)
