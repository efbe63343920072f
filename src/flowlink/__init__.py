"""
flowlink - Self-routing connectors for 2D design canvases

Keeps connector lines attached to the edges of the objects they join,
routes them orthogonally around obstacles and recomputes them whenever an
endpoint moves, resizes or is deleted.

Example:
    >>> from flowlink import ConnectionRegistry, InMemoryScene, Style
    >>> scene = InMemoryScene()
    >>> scene.add_object("a", 0, 0, 50, 50)
    >>> scene.add_object("b", 200, 0, 50, 50)
    >>> registry = ConnectionRegistry(scene)
    >>> conn = registry.create("a", "b", Style())
    >>> scene.move("b", 200, 120)  # the connector follows

Debug Mode Example:
    >>> trace = RecomputeTrace()
    >>> registry = ConnectionRegistry(scene, trace=trace)
    >>> print(trace.summary())
"""

from .anchors import AnchorSelection, facing_edges, select_anchors
from .controller import FlowController, RecordingChannel, StyleDefaults
from .messages import (
    ClearAll,
    FlowCreated,
    GetStats,
    MessageError,
    StatsUpdate,
    ToggleActive,
    UpdateRouting,
    UpdateStyle,
    parse_command,
)
from .models import (
    RGB,
    BoundingBox,
    Connection,
    ConnectionState,
    Edge,
    Endpoint,
    FlowlinkError,
    LineKind,
    Style,
    TerminalKind,
)
from .obstacles import MAX_OBSTACLES, ObstacleDetector
from .planner import (
    OBSTACLE_CLEARANCE,
    LineSpec,
    PathPlanner,
    StrokeCap,
    VectorNetwork,
    build_vector_network,
)
from .png_renderer import PNGRenderer, render_scene_to_png
from .registry import ConnectionRegistry, ProcessingState, RecomputeOutcome
from .scene import (
    ChangeKind,
    InMemoryScene,
    SceneChange,
    SceneError,
    SceneGraph,
    SceneObject,
    SelectionChange,
)
from .storage import MAX_RECORD_BYTES, MemoryStorage, StorageError
from .terminals import DecorationShape, DecorationSpec, TerminalDecorator
from .tracer import PassRecord, RecomputeTrace

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ConnectionRegistry",
    "FlowController",
    "StyleDefaults",
    "ProcessingState",
    "RecomputeOutcome",
    # Models
    "BoundingBox",
    "Connection",
    "ConnectionState",
    "Edge",
    "Endpoint",
    "LineKind",
    "RGB",
    "Style",
    "TerminalKind",
    "FlowlinkError",
    # Routing
    "AnchorSelection",
    "facing_edges",
    "select_anchors",
    "ObstacleDetector",
    "MAX_OBSTACLES",
    "PathPlanner",
    "OBSTACLE_CLEARANCE",
    "LineSpec",
    "StrokeCap",
    "VectorNetwork",
    "build_vector_network",
    "TerminalDecorator",
    "DecorationShape",
    "DecorationSpec",
    # Scene
    "SceneGraph",
    "InMemoryScene",
    "SceneObject",
    "SceneChange",
    "SelectionChange",
    "ChangeKind",
    "SceneError",
    # Storage
    "MemoryStorage",
    "StorageError",
    "MAX_RECORD_BYTES",
    # Messages
    "parse_command",
    "ToggleActive",
    "ClearAll",
    "GetStats",
    "UpdateStyle",
    "UpdateRouting",
    "StatsUpdate",
    "FlowCreated",
    "MessageError",
    "RecordingChannel",
    # Export
    "PNGRenderer",
    "render_scene_to_png",
    # Debug/Tracing
    "RecomputeTrace",
    "PassRecord",
]
