"""
Scene graph collaborator.

The routing engine never owns scene objects. It talks to the host canvas
through the ``SceneGraph`` protocol defined here: bounding-box queries,
lookups by id, creation and removal of line/decoration objects and a feed of
change events.

``InMemoryScene`` is a complete implementation of the protocol backed by
plain dictionaries. It is used by the tests, the demo script and the PNG
renderer, and is enough to drive the engine without a real canvas.
"""

import itertools
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from .models import BoundingBox, FlowlinkError

# Properties whose change can move an anchor
GEOMETRY_PROPERTIES = frozenset({"x", "y", "width", "height"})

PAGE = "page"


class SceneError(FlowlinkError):
    """Raised by the scene when an object cannot be found or changed."""


class ChangeKind(Enum):
    """Kind of document change reported by the scene."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    PROPERTY_CHANGE = "PROPERTY_CHANGE"


@dataclass(frozen=True)
class SceneChange:
    """A single document change notification."""

    kind: ChangeKind
    id: str
    properties: FrozenSet[str] = frozenset()

    @property
    def touches_geometry(self) -> bool:
        """True for property changes that can move or resize the object."""
        return self.kind == ChangeKind.PROPERTY_CHANGE and bool(
            self.properties & GEOMETRY_PROPERTIES
        )


@dataclass(frozen=True)
class SelectionChange:
    """The current selection, in selection order."""

    selected_ids: Tuple[str, ...] = ()


@dataclass
class SceneObject:
    """
    Handle to an object living in a scene.

    Attributes:
        id: Scene-wide identity.
        name: Display name.
        box: Current bounding box.
        kind: "shape", "line" or "decoration".
        visible: Hidden objects are never obstacles.
        parent: Parent id, None until appended.
        spec: Line or decoration spec the object was created from.
    """

    id: str
    name: str
    box: BoundingBox
    kind: str = "shape"
    visible: bool = True
    parent: Optional[str] = None
    spec: Any = None


ChangeListener = Callable[[List[SceneChange]], None]
SelectionListener = Callable[[SelectionChange], None]


class SceneGraph(Protocol):
    """Operations the routing engine needs from the host canvas."""

    def get_bounding_box(self, node_id: str) -> Optional[BoundingBox]:
        ...

    def lookup(self, node_id: str) -> Optional[SceneObject]:
        ...

    def create_line(self, spec: Any) -> SceneObject:
        ...

    def create_decoration(self, spec: Any) -> SceneObject:
        ...

    def append_to_parent(self, handle: SceneObject, parent: Optional[str] = None) -> None:
        ...

    def remove(self, handle: SceneObject) -> None:
        ...

    def visible_objects(self) -> Iterable[SceneObject]:
        ...

    def subscribe(self, listener: ChangeListener) -> None:
        ...

    def on_selection(self, listener: SelectionListener) -> None:
        ...


class InMemoryScene:
    """
    Dictionary-backed scene graph.

    Every mutation is reported to subscribers as a list of ``SceneChange``.
    Inside ``batch()`` the changes are collected and delivered together on
    exit, the way a host delivers one document-change batch per tick.

    Example:
        >>> scene = InMemoryScene()
        >>> scene.add_object("a", 0, 0, 50, 50)
        >>> scene.move("a", 10, 0)
        >>> scene.get_bounding_box("a")
        BoundingBox(x=10, y=0, width=50, height=50)
    """

    def __init__(self):
        self.objects: Dict[str, SceneObject] = {}
        self.selection: Tuple[str, ...] = ()
        self._listeners: List[ChangeListener] = []
        self._selection_listeners: List[SelectionListener] = []
        self._pending: Optional[List[SceneChange]] = None
        self._ids = itertools.count(1)

    # --- subscriptions -----------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def on_selection(self, listener: SelectionListener) -> None:
        self._selection_listeners.append(listener)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Collect changes made inside the block into one notification."""
        if self._pending is not None:
            yield
            return
        self._pending = []
        try:
            yield
        finally:
            changes, self._pending = self._pending, None
            if changes:
                self._deliver(changes)

    def _emit(self, change: SceneChange) -> None:
        if self._pending is not None:
            self._pending.append(change)
        else:
            self._deliver([change])

    def _deliver(self, changes: List[SceneChange]) -> None:
        for listener in list(self._listeners):
            listener(changes)

    # --- user-side mutations -----------------------------------------------

    def add_object(
        self,
        node_id: str,
        x: float,
        y: float,
        width: float,
        height: float,
        name: Optional[str] = None,
        visible: bool = True,
    ) -> SceneObject:
        """Add a shape to the page."""
        if node_id in self.objects:
            raise SceneError(f"Object {node_id!r} already exists")
        obj = SceneObject(
            id=node_id,
            name=name or node_id,
            box=BoundingBox(x, y, width, height),
            visible=visible,
            parent=PAGE,
        )
        self.objects[node_id] = obj
        self._emit(SceneChange(ChangeKind.CREATE, node_id))
        return obj

    def move(self, node_id: str, x: float, y: float) -> None:
        obj = self._require(node_id)
        box = obj.box
        obj.box = BoundingBox(x, y, box.width, box.height)
        changed = {name for name, old, new in (("x", box.x, x), ("y", box.y, y)) if old != new}
        if changed:
            self._emit(SceneChange(ChangeKind.PROPERTY_CHANGE, node_id, frozenset(changed)))

    def resize(self, node_id: str, width: float, height: float) -> None:
        obj = self._require(node_id)
        box = obj.box
        obj.box = BoundingBox(box.x, box.y, width, height)
        changed = {
            name
            for name, old, new in (("width", box.width, width), ("height", box.height, height))
            if old != new
        }
        if changed:
            self._emit(SceneChange(ChangeKind.PROPERTY_CHANGE, node_id, frozenset(changed)))

    def rename(self, node_id: str, name: str) -> None:
        obj = self._require(node_id)
        obj.name = name
        self._emit(SceneChange(ChangeKind.PROPERTY_CHANGE, node_id, frozenset({"name"})))

    def set_visible(self, node_id: str, visible: bool) -> None:
        obj = self._require(node_id)
        obj.visible = visible
        self._emit(SceneChange(ChangeKind.PROPERTY_CHANGE, node_id, frozenset({"visible"})))

    def delete(self, node_id: str) -> None:
        """Delete an object by id, as a user would."""
        self.remove(self._require(node_id))

    def select(self, *node_ids: str) -> None:
        """Replace the selection and notify selection listeners."""
        self.selection = tuple(node_ids)
        event = SelectionChange(self.selection)
        for listener in list(self._selection_listeners):
            listener(event)

    # --- SceneGraph protocol -----------------------------------------------

    def get_bounding_box(self, node_id: str) -> Optional[BoundingBox]:
        obj = self.objects.get(node_id)
        return obj.box if obj is not None else None

    def lookup(self, node_id: str) -> Optional[SceneObject]:
        return self.objects.get(node_id)

    def create_line(self, spec: Any) -> SceneObject:
        return self._create("line", spec)

    def create_decoration(self, spec: Any) -> SceneObject:
        return self._create("decoration", spec)

    def append_to_parent(self, handle: SceneObject, parent: Optional[str] = None) -> None:
        if handle.id not in self.objects:
            raise SceneError(f"Object {handle.id!r} is not in the scene")
        handle.parent = parent or PAGE

    def remove(self, handle: SceneObject) -> None:
        if self.objects.pop(handle.id, None) is None:
            raise SceneError(f"Object {handle.id!r} was already removed")
        handle.parent = None
        self.selection = tuple(i for i in self.selection if i != handle.id)
        self._emit(SceneChange(ChangeKind.DELETE, handle.id))

    def visible_objects(self) -> List[SceneObject]:
        return [
            obj
            for obj in self.objects.values()
            if obj.visible and obj.parent is not None
        ]

    # --- helpers -----------------------------------------------------------

    def objects_of_kind(self, kind: str) -> List[SceneObject]:
        return [obj for obj in self.objects.values() if obj.kind == kind]

    def _create(self, kind: str, spec: Any) -> SceneObject:
        node_id = f"{kind}-{next(self._ids)}"
        obj = SceneObject(
            id=node_id,
            name=getattr(spec, "name", node_id),
            box=spec.bounds(),
            kind=kind,
            spec=spec,
        )
        self.objects[node_id] = obj
        self._emit(SceneChange(ChangeKind.CREATE, node_id))
        return obj

    def _require(self, node_id: str) -> SceneObject:
        obj = self.objects.get(node_id)
        if obj is None:
            raise SceneError(f"No object with id {node_id!r}")
        return obj


def bounds_of(points: Sequence[Tuple[float, float]]) -> BoundingBox:
    """Bounding box of a point cloud."""
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return BoundingBox(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
