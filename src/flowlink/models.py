"""
Data models for connection routing.

This module contains the value types shared by every stage of the routing
pipeline: bounding boxes read from the scene, endpoint references, the style
snapshot carried by each connection, and the connection record itself.

Classes:
    BoundingBox: Axis-aligned box read from the scene graph.
    Edge: Facing edge of an object (or AUTO to let routing decide).
    LineKind: Solid, dashed or dotted stroke.
    TerminalKind: Decoration drawn at a connector end.
    RGB: Stroke/fill color with channels in 0..1.
    Endpoint: One end of a connection.
    Style: Per-connection style snapshot.
    ConnectionState: Lifecycle state of a connection.
    Connection: A live connector owned by the registry.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Point = Tuple[float, float]


class FlowlinkError(Exception):
    """Base class for errors raised by flowlink."""


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box of a scene object."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return (self.center_x, self.center_y)

    @property
    def is_degenerate(self) -> bool:
        """True when the box has no area."""
        return self.width <= 0 or self.height <= 0

    def intersects(self, other: "BoundingBox") -> bool:
        """Rectangle overlap test; touching edges count as overlap."""
        return not (
            other.x > self.x2
            or other.x2 < self.x
            or other.y > self.y2
            or other.y2 < self.y
        )


class Edge(Enum):
    """Which side of an object a connector attaches to."""

    AUTO = "auto"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @property
    def is_horizontal(self) -> bool:
        """Left/right edges face along the x axis."""
        return self in (Edge.LEFT, Edge.RIGHT)

    @property
    def is_vertical(self) -> bool:
        return self in (Edge.TOP, Edge.BOTTOM)


class LineKind(Enum):
    """Stroke pattern of a connector line."""

    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class TerminalKind(Enum):
    """Decoration drawn at the start or end of a connector."""

    NONE = "none"
    ARROW = "arrow"
    CIRCLE = "circle"
    DIAMOND = "diamond"
    SQUARE = "square"


@dataclass(frozen=True)
class RGB:
    """Color with channels in the 0..1 range."""

    r: float
    g: float
    b: float

    @classmethod
    def from_hex(cls, value: str) -> "RGB":
        """Parse a ``#RRGGBB`` string."""
        text = value.lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Invalid hex color: {value!r}")
        channels = [int(text[i : i + 2], 16) / 255 for i in (0, 2, 4)]
        return cls(*channels)

    def to_hex(self) -> str:
        return "#" + "".join(
            f"{round(channel * 255):02X}" for channel in (self.r, self.g, self.b)
        )

    def to_rgb255(self) -> Tuple[int, int, int]:
        return (round(self.r * 255), round(self.g * 255), round(self.b * 255))


# #5E5CE6
DEFAULT_COLOR = RGB(0.369, 0.361, 0.902)


@dataclass(frozen=True)
class Endpoint:
    """
    One end of a connection.

    Attributes:
        node_id: Identity of the scene object this end is attached to.
        edge: Requested facing edge; AUTO lets routing choose.
        offset: Gap between the object boundary and the anchor point.
        resolved_edge: Edge chosen by the last routing pass.
    """

    node_id: str
    edge: Edge = Edge.AUTO
    offset: float = 0
    resolved_edge: Optional[Edge] = None

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError(f"Endpoint offset must be >= 0, got {self.offset}")

    def resolved(self, edge: Edge) -> "Endpoint":
        """Return a copy of this endpoint with the resolved edge."""
        return replace(self, resolved_edge=edge)


@dataclass(frozen=True)
class Style:
    """
    Style snapshot applied to a connection at creation time.

    Attributes:
        line_kind: Solid, dashed or dotted stroke.
        stroke_width: Line thickness, must be positive.
        stroke_color: Line and decoration color.
        start_terminal: Decoration at the source end.
        end_terminal: Decoration at the target end.
        corner_radius: Rounding applied at interior bends.
        orthogonal: Route with horizontal/vertical segments only.
        avoid_obstacles: Push the route's midline away from obstacles.
        arrow_caps_in_line: Draw arrow terminals as line caps instead of
            separate decoration objects.
    """

    line_kind: LineKind = LineKind.SOLID
    stroke_width: float = 2
    stroke_color: RGB = DEFAULT_COLOR
    start_terminal: TerminalKind = TerminalKind.NONE
    end_terminal: TerminalKind = TerminalKind.ARROW
    corner_radius: float = 8
    orthogonal: bool = True
    avoid_obstacles: bool = True
    arrow_caps_in_line: bool = False

    def __post_init__(self):
        if self.stroke_width <= 0:
            raise ValueError(
                f"stroke_width must be positive, got {self.stroke_width}"
            )
        if self.corner_radius < 0:
            raise ValueError(
                f"corner_radius must be >= 0, got {self.corner_radius}"
            )

    @property
    def dash_pattern(self) -> List[float]:
        """Dash lengths for the line kind, scaled by stroke width."""
        if self.line_kind == LineKind.DASHED:
            return [self.stroke_width * 4, self.stroke_width * 2]
        if self.line_kind == LineKind.DOTTED:
            return [self.stroke_width, self.stroke_width]
        return []

    def with_updates(self, **changes: Any) -> "Style":
        """Build a new style; fields passed as None are left unchanged."""
        return replace(
            self, **{key: value for key, value in changes.items() if value is not None}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_kind": self.line_kind.value,
            "stroke_width": self.stroke_width,
            "stroke_color": self.stroke_color.to_hex(),
            "start_terminal": self.start_terminal.value,
            "end_terminal": self.end_terminal.value,
            "corner_radius": self.corner_radius,
            "orthogonal": self.orthogonal,
            "avoid_obstacles": self.avoid_obstacles,
            "arrow_caps_in_line": self.arrow_caps_in_line,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Style":
        return cls(
            line_kind=LineKind(data["line_kind"]),
            stroke_width=data["stroke_width"],
            stroke_color=RGB.from_hex(data["stroke_color"]),
            start_terminal=TerminalKind(data["start_terminal"]),
            end_terminal=TerminalKind(data["end_terminal"]),
            corner_radius=data["corner_radius"],
            orthogonal=data["orthogonal"],
            avoid_obstacles=data["avoid_obstacles"],
            arrow_caps_in_line=data.get("arrow_caps_in_line", False),
        )


class ConnectionState(Enum):
    """Lifecycle state of a connection."""

    CREATED = "created"
    LIVE = "live"
    RECOMPUTING = "recomputing"
    REMOVED = "removed"


@dataclass
class Connection:
    """
    A connector between two scene objects.

    The connection exclusively owns its line and decoration handles; only the
    registry mutates them.

    Attributes:
        id: Registry-generated identity.
        source: Start endpoint.
        target: End endpoint.
        style: Style snapshot taken at creation time.
        line: Handle of the line object in the scene.
        decorations: Decoration handles keyed by "start"/"end".
        path: Last planned polyline.
        state: Lifecycle state.
    """

    id: str
    source: Endpoint
    target: Endpoint
    style: Style
    line: Optional[Any] = None
    decorations: Dict[str, Any] = field(default_factory=dict)
    path: List[Point] = field(default_factory=list)
    state: ConnectionState = ConnectionState.CREATED

    def __post_init__(self):
        if self.source.node_id == self.target.node_id:
            raise ValueError(
                f"Connection endpoints must differ, got {self.source.node_id!r} twice"
            )

    @property
    def node_ids(self) -> Tuple[str, str]:
        return (self.source.node_id, self.target.node_id)

    def owned_handles(self) -> List[Any]:
        """Line plus every decoration handle, in removal order."""
        handles = [] if self.line is None else [self.line]
        handles.extend(self.decorations.values())
        return handles

    def to_record(self) -> Dict[str, Any]:
        """Serializable form used for persistence."""
        return {
            "id": self.id,
            "line_id": getattr(self.line, "id", None),
            "decoration_ids": {
                position: handle.id for position, handle in self.decorations.items()
            },
            "source": _endpoint_record(self.source),
            "target": _endpoint_record(self.target),
            "style": self.style.to_dict(),
        }


def _endpoint_record(endpoint: Endpoint) -> Dict[str, Any]:
    return {
        "node_id": endpoint.node_id,
        "edge": endpoint.edge.value,
        "offset": endpoint.offset,
        "resolved_edge": (
            endpoint.resolved_edge.value if endpoint.resolved_edge else None
        ),
    }


def endpoint_from_record(data: Dict[str, Any]) -> Endpoint:
    resolved = data.get("resolved_edge")
    return Endpoint(
        node_id=data["node_id"],
        edge=Edge(data.get("edge", "auto")),
        offset=data.get("offset", 0),
        resolved_edge=Edge(resolved) if resolved else None,
    )
