"""
Path planning for connections.

Turns a pair of anchors into an ordered polyline:
- Straight paths (anchor to anchor)
- Orthogonal paths with one or two bends through the shared midline
- A single clearance detour when an obstacle sits in the corridor
- Vector network output with per-vertex rounding and line caps
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .geometry import bounding_rect, corner_radii
from .models import BoundingBox, Edge, Point, RGB, Style, TerminalKind
from .obstacles import ObstacleDetector
from .scene import bounds_of

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTING CONFIGURATION
# =============================================================================

# Distance the midline is pushed when an obstacle sits in the corridor
OBSTACLE_CLEARANCE = 50

# =============================================================================


class StrokeCap(Enum):
    """Cap drawn at a vertex of the line itself."""

    NONE = "NONE"
    ARROW_LINES = "ARROW_LINES"


@dataclass(frozen=True)
class Vertex:
    """A vertex of a vector network."""

    x: float
    y: float
    stroke_cap: StrokeCap = StrokeCap.NONE
    corner_radius: float = 0


@dataclass(frozen=True)
class Segment:
    """A straight segment between two vertex indices."""

    start: int
    end: int
    tangent_start: Tuple[float, float] = (0.0, 0.0)
    tangent_end: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True)
class VectorNetwork:
    """Vertices and segments describing a connector line."""

    vertices: Tuple[Vertex, ...] = ()
    segments: Tuple[Segment, ...] = ()

    @property
    def points(self) -> List[Point]:
        return [(v.x, v.y) for v in self.vertices]

    def to_path_data(self) -> str:
        """SVG-style path string, e.g. ``M 0 0 L 10 0``."""
        if not self.vertices:
            return ""
        parts = [f"M {_fmt(self.vertices[0].x)} {_fmt(self.vertices[0].y)}"]
        parts.extend(f"L {_fmt(v.x)} {_fmt(v.y)}" for v in self.vertices[1:])
        return " ".join(parts)


@dataclass(frozen=True)
class LineSpec:
    """Everything the scene needs to create a connector line."""

    name: str
    network: VectorNetwork
    stroke_color: RGB
    stroke_width: float
    dash_pattern: Tuple[float, ...] = ()

    @property
    def points(self) -> List[Point]:
        return self.network.points

    def bounds(self) -> BoundingBox:
        return bounds_of(self.points)


def _fmt(value: float) -> str:
    return f"{value:g}"


def bakes_arrow(kind: TerminalKind, style: Style) -> bool:
    """True when an arrow terminal is drawn as a line cap."""
    return kind == TerminalKind.ARROW and style.arrow_caps_in_line


def orthogonal_path(
    start: Point,
    end: Point,
    start_edge: Edge,
    end_edge: Edge,
    midline: Optional[float] = None,
) -> List[Point]:
    """
    Build an orthogonal polyline between two anchors.

    Same-axis edges get two bends through the midline (``midline`` overrides
    the halfway coordinate). Mixed-axis edges get one bend at the
    perpendicular combination of the anchors.
    """
    if start_edge.is_horizontal and end_edge.is_horizontal:
        mid_x = (start[0] + end[0]) / 2 if midline is None else midline
        return [start, (mid_x, start[1]), (mid_x, end[1]), end]

    if start_edge.is_vertical and end_edge.is_vertical:
        mid_y = (start[1] + end[1]) / 2 if midline is None else midline
        return [start, (start[0], mid_y), (end[0], mid_y), end]

    if start_edge.is_horizontal:
        return [start, (end[0], start[1]), end]
    return [start, (start[0], end[1]), end]


class PathPlanner:
    """
    Plans connector paths between anchors.

    Args:
        detector: Obstacle detector used when a style enables avoidance.
        clearance: Midline shift applied when an obstacle is found.
    """

    def __init__(
        self,
        detector: Optional[ObstacleDetector] = None,
        clearance: float = OBSTACLE_CLEARANCE,
    ):
        self.detector = detector
        self.clearance = clearance

    def plan_path(
        self,
        start: Point,
        end: Point,
        start_edge: Edge,
        end_edge: Edge,
        style: Style,
        exclude_ids: Iterable[str] = (),
    ) -> List[Point]:
        """
        Plan the polyline for one connection.

        The first and last points are always exactly ``start`` and ``end``.

        Args:
            start: Start anchor.
            end: End anchor.
            start_edge: Facing edge at the start anchor.
            end_edge: Facing edge at the end anchor.
            style: Routing flags and corner radius.
            exclude_ids: Object ids the obstacle query must ignore.

        Returns:
            Ordered list of points.
        """
        if start == end:
            return [start, end]

        if style.avoid_obstacles and self.detector is not None:
            obstacles = self.detector.find_obstacles(start, end, exclude_ids)
            if obstacles:
                midline = self._detour_midline(start, end, start_edge, end_edge, obstacles[0].box)
                if midline is not None:
                    return orthogonal_path(start, end, start_edge, end_edge, midline)

        if not style.orthogonal:
            return [start, end]
        return orthogonal_path(start, end, start_edge, end_edge)

    def _detour_midline(
        self,
        start: Point,
        end: Point,
        start_edge: Edge,
        end_edge: Edge,
        obstacle: BoundingBox,
    ) -> Optional[float]:
        """Midline pushed away from the obstacle, or None for mixed axes."""
        if start_edge.is_horizontal and end_edge.is_horizontal:
            mid = (start[0] + end[0]) / 2
            obstacle_center = obstacle.center_x
        elif start_edge.is_vertical and end_edge.is_vertical:
            mid = (start[1] + end[1]) / 2
            obstacle_center = obstacle.center_y
        else:
            return None

        # The shift is fixed, so gaps narrower than twice the clearance put the
        # bend beyond the far anchor and the last leg doubles back
        shifted = mid + self.clearance if obstacle_center <= mid else mid - self.clearance
        logger.debug(
            "Detour around %s in corridor %s: midline %s -> %s",
            obstacle,
            bounding_rect(start, end),
            mid,
            shifted,
        )
        return shifted


def build_vector_network(points: List[Point], style: Style) -> VectorNetwork:
    """
    Convert a polyline into a vector network.

    Segments are straight (zero tangents). Interior vertices carry the
    clipped corner radius. When arrows are baked into the line, the first
    and last vertices carry an arrow cap.
    """
    if len(points) < 2:
        raise ValueError(f"A connector needs at least 2 points, got {len(points)}")

    radii = corner_radii(points, style.corner_radius)
    last = len(points) - 1
    vertices = []
    for i, (x, y) in enumerate(points):
        cap = StrokeCap.NONE
        if i == 0 and bakes_arrow(style.start_terminal, style):
            cap = StrokeCap.ARROW_LINES
        elif i == last and bakes_arrow(style.end_terminal, style):
            cap = StrokeCap.ARROW_LINES
        vertices.append(Vertex(x=x, y=y, stroke_cap=cap, corner_radius=radii[i]))

    segments = tuple(Segment(start=i, end=i + 1) for i in range(last))
    return VectorNetwork(vertices=tuple(vertices), segments=segments)


def build_line_spec(name: str, points: List[Point], style: Style) -> LineSpec:
    """Line spec for the scene, carrying the style's stroke settings."""
    return LineSpec(
        name=name,
        network=build_vector_network(points, style),
        stroke_color=style.stroke_color,
        stroke_width=style.stroke_width,
        dash_pattern=tuple(style.dash_pattern),
    )
