"""
Connection registry and change tracker.

The registry owns every live connection and the visuals that belong to it.
It listens to scene change batches and keeps connectors attached to their
endpoint objects:

- Deleting an endpoint (or the connector line itself) removes the connection
- Deleting one of its decorations redraws the connection
- Moving or resizing an endpoint recomputes the affected connections
- Every other property change is ignored

A tracked-identity index (a networkx multigraph whose nodes are endpoint ids
and whose keyed edges are connections) filters each batch down to the
connections it can affect. The index is rebuilt from scratch after every
registry mutation.

Only one recomputation pass runs at a time. Batches that arrive while a pass
is running (including the ones the pass itself causes by creating and
removing visuals) are queued and processed right after it.
"""

import itertools
import logging
from collections import deque
from enum import Enum
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
)

import networkx as nx

from .anchors import AnchorSelection, select_anchors
from .models import (
    BoundingBox,
    Connection,
    ConnectionState,
    Edge,
    Endpoint,
    Point,
    Style,
    endpoint_from_record,
)
from .obstacles import ObstacleDetector
from .planner import PathPlanner, build_line_spec
from .scene import ChangeKind, SceneChange, SceneError, SceneGraph
from .storage import (
    Storage,
    StorageError,
    delete_record,
    load_index,
    load_record,
    save_index,
    save_record,
)
from .terminals import TerminalDecorator
from .tracer import PassRecord, RecomputeTrace

logger = logging.getLogger(__name__)

ID_PREFIX = "flow-"


class ProcessingState(Enum):
    """Whether a recomputation pass is running."""

    IDLE = "idle"
    RECOMPUTING = "recomputing"


class RecomputeOutcome(Enum):
    """Result of recomputing one connection."""

    REPLACED = "replaced"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


class ConnectionRegistry:
    """
    Owns live connections and keeps them routed.

    Example:
        >>> scene = InMemoryScene()
        >>> scene.add_object("a", 0, 0, 50, 50)
        >>> scene.add_object("b", 200, 0, 50, 50)
        >>> registry = ConnectionRegistry(scene)
        >>> conn = registry.create("a", "b", Style(orthogonal=False))
        >>> conn.path
        [(50.0, 25.0), (200.0, 25.0)]

    Args:
        scene: Scene graph collaborator.
        storage: Optional key/value store for connection records.
        planner: Path planner; defaults to one with an obstacle detector on
            ``scene``.
        decorator: Terminal decorator.
        trace: Optional trace that records every pass.
        subscribe: Subscribe ``handle_changes`` to the scene's change feed.
    """

    def __init__(
        self,
        scene: SceneGraph,
        storage: Optional[Storage] = None,
        planner: Optional[PathPlanner] = None,
        decorator: Optional[TerminalDecorator] = None,
        trace: Optional[RecomputeTrace] = None,
        subscribe: bool = True,
    ):
        self.scene = scene
        self.storage = storage
        self.planner = planner or PathPlanner(ObstacleDetector(scene))
        self.decorator = decorator or TerminalDecorator()
        self.trace = trace
        self.state = ProcessingState.IDLE

        self._connections: Dict[str, Connection] = {}
        self._index: nx.MultiGraph = nx.MultiGraph()
        # Line and decoration id -> owning connection id
        self._owners: Dict[str, str] = {}
        self._pending: Deque[List[SceneChange]] = deque()
        # Connections skipped because an endpoint could not be found
        self._missing: Set[str] = set()
        self._ids = itertools.count(1)

        if subscribe:
            scene.subscribe(self.handle_changes)

    # --- queries -----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def connections(self) -> List[Connection]:
        """Live connections in creation order."""
        return list(self._connections.values())

    @property
    def tracked_ids(self) -> FrozenSet[str]:
        """Every endpoint id referenced by a live connection."""
        return frozenset(self._index.nodes)

    def affected_by(self, node_ids: Iterable[str]) -> List[str]:
        """Ids of connections with an endpoint in ``node_ids``, in creation order."""
        ranks: Dict[str, int] = {}
        for node_id in node_ids:
            if node_id in self._index:
                for _, _, key, rank in self._index.edges(node_id, keys=True, data="rank"):
                    ranks[key] = rank
        return sorted(ranks, key=ranks.__getitem__)

    def owner_of(self, handle_id: str) -> Optional[Connection]:
        """Connection owning the line or decoration ``handle_id``."""
        conn_id = self._owners.get(handle_id)
        return self._connections.get(conn_id) if conn_id is not None else None

    def connection_for_line(self, line_id: str) -> Optional[Connection]:
        conn = self.owner_of(line_id)
        if conn is not None and conn.line is not None and conn.line.id == line_id:
            return conn
        return None

    # --- create / remove ---------------------------------------------------

    def create(
        self,
        source_id: str,
        target_id: str,
        style: Style,
        source_offset: float = 0,
        target_offset: float = 0,
        source_edge: Edge = Edge.AUTO,
        target_edge: Edge = Edge.AUTO,
    ) -> Connection:
        """
        Create and materialize a connection between two scene objects.

        Raises:
            ValueError: If both ids are the same.
            SceneError: If either object has no bounding box.
        """
        conn = Connection(
            id=f"{ID_PREFIX}{next(self._ids)}",
            source=Endpoint(source_id, source_edge, source_offset),
            target=Endpoint(target_id, target_edge, target_offset),
            style=style,
        )
        a_box, b_box = self._endpoint_boxes(conn)
        if a_box is None or b_box is None:
            missing = source_id if a_box is None else target_id
            raise SceneError(f"Cannot connect: no object with id {missing!r}")

        selection, path = self._route(conn, a_box, b_box)
        line, decorations = self._materialize(conn, selection, path)

        conn.line = line
        conn.decorations = decorations
        conn.path = path
        conn.source = conn.source.resolved(selection.start_edge)
        conn.target = conn.target.resolved(selection.end_edge)
        self._connections[conn.id] = conn
        self._rebuild_index()
        self._track(conn)
        conn.state = ConnectionState.LIVE
        self._persist(conn)

        logger.debug(
            "Created %s: %s(%s) -> %s(%s)",
            conn.id,
            source_id,
            selection.start_edge.value,
            target_id,
            selection.end_edge.value,
        )
        return conn

    def remove(self, connection_id: str) -> bool:
        """
        Remove a connection and release its line and decorations.

        Returns:
            False if the connection was not registered (already removed).
        """
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return False

        self._missing.discard(connection_id)
        self._rebuild_index()
        conn.state = ConnectionState.REMOVED
        handles = conn.owned_handles()
        conn.line = None
        conn.decorations = {}
        self._untrack(handles)
        for handle in handles:
            self._release(handle)

        if self.storage is not None:
            try:
                delete_record(self.storage, connection_id)
                save_index(self.storage, list(self._connections))
            except StorageError:
                logger.warning("Could not update storage for %s", connection_id, exc_info=True)

        logger.debug("Removed %s", connection_id)
        return True

    def clear(self) -> int:
        """Remove every connection. Returns how many were removed."""
        return sum(1 for conn_id in list(self._connections) if self.remove(conn_id))

    # --- change tracking ---------------------------------------------------

    def handle_changes(self, changes: Iterable[SceneChange]) -> None:
        """
        React to one batch of scene changes.

        If a pass is already running the batch is queued and handled as soon
        as the running pass finishes.
        """
        batch = list(changes)
        if self.state == ProcessingState.RECOMPUTING:
            self._pending.append(batch)
            return
        self._exclusive(self._run_pass, batch)

    def recompute(self, connection_id: str) -> RecomputeOutcome:
        """Recompute one connection outside of a change batch."""
        if self.state == ProcessingState.RECOMPUTING:
            raise RuntimeError("A recomputation pass is already running")
        return self._exclusive(self._recompute, connection_id)

    def _exclusive(self, func: Callable[[Any], Any], arg: Any) -> Any:
        """Run ``func`` as the only pass, then drain batches queued meanwhile."""
        self.state = ProcessingState.RECOMPUTING
        try:
            result = func(arg)
            while self._pending:
                self._run_pass(self._pending.popleft())
            return result
        finally:
            self._pending.clear()
            self.state = ProcessingState.IDLE

    def _run_pass(self, batch: List[SceneChange]) -> None:
        deleted = {c.id for c in batch if c.kind == ChangeKind.DELETE}
        moved = {c.id for c in batch if c.touches_geometry} - deleted

        doomed = set(self.affected_by(deleted))
        # Deleting a line removes its connection, deleting a decoration regenerates it
        regenerate: Set[str] = set()
        for handle_id in deleted:
            owner = self.owner_of(handle_id)
            if owner is None:
                continue
            if owner.line is not None and owner.line.id == handle_id:
                doomed.add(owner.id)
            else:
                regenerate.add(owner.id)
        # Endpoints that vanished without a delete notification
        for conn_id in list(self._missing):
            conn = self._connections.get(conn_id)
            if conn is None or any(self.scene.lookup(n) is None for n in conn.node_ids):
                doomed.add(conn_id)
        self._missing.clear()

        affected = sorted((set(self.affected_by(moved)) | regenerate) - doomed, key=self._rank)
        if not doomed and not affected:
            return

        record = self._start_record(sorted(deleted | moved))
        for conn_id in sorted(doomed):
            try:
                removed = self.remove(conn_id)
            except Exception as e:
                logger.warning("Removing %s failed", conn_id, exc_info=True)
                if record is not None:
                    record.errors[conn_id] = str(e)
                continue
            if removed and record is not None:
                record.removed.append(conn_id)

        for conn_id in affected:
            try:
                outcome = self._recompute(conn_id)
            except Exception as e:
                logger.warning("Recomputing %s failed", conn_id, exc_info=True)
                if record is not None:
                    record.errors[conn_id] = str(e)
                continue
            if record is None:
                continue
            if outcome == RecomputeOutcome.REPLACED:
                record.recomputed.append(conn_id)
            elif outcome == RecomputeOutcome.UNCHANGED:
                record.unchanged.append(conn_id)
            else:
                record.skipped.append(conn_id)

    def _start_record(self, trigger_ids: List[str]) -> Optional[PassRecord]:
        if self.trace is None:
            return None
        return self.trace.start_pass(trigger_ids)

    def _recompute(self, connection_id: str) -> RecomputeOutcome:
        conn = self._connections.get(connection_id)
        if conn is None:
            return RecomputeOutcome.SKIPPED

        a_box, b_box = self._endpoint_boxes(conn)
        if a_box is None or b_box is None:
            logger.warning("Skipping %s: endpoint not found", connection_id)
            self._missing.add(connection_id)
            return RecomputeOutcome.SKIPPED

        selection, path = self._route(conn, a_box, b_box)
        visuals_present = conn.line is not None and all(
            self.scene.lookup(handle.id) is not None for handle in conn.owned_handles()
        )
        if (
            visuals_present
            and path == conn.path
            and conn.source.resolved_edge == selection.start_edge
            and conn.target.resolved_edge == selection.end_edge
        ):
            return RecomputeOutcome.UNCHANGED

        conn.state = ConnectionState.RECOMPUTING
        try:
            line, decorations = self._materialize(conn, selection, path)
            old_handles = conn.owned_handles()
            conn.line = line
            conn.decorations = decorations
            conn.path = path
            conn.source = conn.source.resolved(selection.start_edge)
            conn.target = conn.target.resolved(selection.end_edge)
            self._untrack(old_handles)
            self._track(conn)
            for handle in old_handles:
                self._release(handle)
        finally:
            conn.state = ConnectionState.LIVE

        self._persist(conn)
        return RecomputeOutcome.REPLACED

    # --- persistence -------------------------------------------------------

    def restore(self) -> int:
        """
        Re-associate stored records with lines still present in the scene.

        Records whose line or endpoints are gone are dropped. Restored
        connections are recomputed against current positions.

        Returns:
            Number of connections restored.
        """
        if self.storage is None:
            return 0

        restored = []
        for conn_id in load_index(self.storage):
            if conn_id in self._connections:
                continue
            try:
                record = load_record(self.storage, conn_id)
            except StorageError:
                logger.warning("Dropping unreadable record %s", conn_id, exc_info=True)
                continue
            try:
                conn = self._connection_from_record(record) if record else None
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed record %s", conn_id, exc_info=True)
                conn = None
            if conn is None:
                delete_record(self.storage, conn_id)
                continue
            self._connections[conn.id] = conn
            self._track(conn)
            restored.append(conn.id)

        if not restored:
            return 0

        self._bump_ids()
        self._rebuild_index()
        save_index(self.storage, list(self._connections))
        for conn_id in restored:
            try:
                self.recompute(conn_id)
            except Exception:
                logger.warning("Recomputing restored %s failed", conn_id, exc_info=True)
        return len(restored)

    def _connection_from_record(self, record: Dict[str, Any]) -> Optional[Connection]:
        line = self.scene.lookup(record.get("line_id") or "")
        if line is None:
            return None
        source = endpoint_from_record(record["source"])
        target = endpoint_from_record(record["target"])
        if self.scene.lookup(source.node_id) is None or self.scene.lookup(target.node_id) is None:
            return None

        decorations = {}
        lost_decoration = False
        for position, handle_id in record.get("decoration_ids", {}).items():
            handle = self.scene.lookup(handle_id)
            if handle is None:
                lost_decoration = True
            else:
                decorations[position] = handle
        # An empty path never matches a routed one, so the restore pass redraws
        path = list(line.spec.points) if getattr(line, "spec", None) and not lost_decoration else []

        return Connection(
            id=record["id"],
            source=source,
            target=target,
            style=Style.from_dict(record["style"]),
            line=line,
            decorations=decorations,
            path=path,
            state=ConnectionState.LIVE,
        )

    def _persist(self, conn: Connection) -> None:
        if self.storage is None:
            return
        try:
            save_record(self.storage, conn.id, conn.to_record())
            save_index(self.storage, list(self._connections))
        except StorageError:
            logger.warning("Could not persist %s", conn.id, exc_info=True)

    def _bump_ids(self) -> None:
        numbers = [
            int(conn_id[len(ID_PREFIX):])
            for conn_id in self._connections
            if conn_id.startswith(ID_PREFIX) and conn_id[len(ID_PREFIX):].isdigit()
        ]
        self._ids = itertools.count(max(numbers, default=0) + 1)

    # --- helpers -----------------------------------------------------------

    def _rebuild_index(self) -> None:
        index = nx.MultiGraph()
        for rank, conn in enumerate(self._connections.values()):
            index.add_edge(conn.source.node_id, conn.target.node_id, key=conn.id, rank=rank)
        self._index = index

    def _rank(self, connection_id: str) -> int:
        conn = self._connections[connection_id]
        return self._index.edges[conn.source.node_id, conn.target.node_id, connection_id]["rank"]

    def _track(self, conn: Connection) -> None:
        for handle in conn.owned_handles():
            self._owners[handle.id] = conn.id

    def _untrack(self, handles: Iterable[Any]) -> None:
        for handle in handles:
            self._owners.pop(handle.id, None)

    def _endpoint_boxes(
        self, conn: Connection
    ) -> Tuple[Optional[BoundingBox], Optional[BoundingBox]]:
        return (
            self.scene.get_bounding_box(conn.source.node_id),
            self.scene.get_bounding_box(conn.target.node_id),
        )

    def _route(
        self, conn: Connection, a_box: BoundingBox, b_box: BoundingBox
    ) -> Tuple[AnchorSelection, List[Point]]:
        selection = select_anchors(
            a_box,
            b_box,
            source_offset=conn.source.offset,
            target_offset=conn.target.offset,
            source_edge=conn.source.edge,
            target_edge=conn.target.edge,
        )
        exclude = set(conn.node_ids)
        exclude.update(handle.id for handle in conn.owned_handles())
        path = self.planner.plan_path(
            selection.start,
            selection.end,
            selection.start_edge,
            selection.end_edge,
            conn.style,
            exclude_ids=exclude,
        )
        return selection, path

    def _materialize(
        self, conn: Connection, selection: AnchorSelection, path: List[Point]
    ) -> Tuple[Any, Dict[str, Any]]:
        """Create line and decorations; everything is released on failure."""
        created: List[Any] = []
        try:
            line = self.scene.create_line(build_line_spec(self._line_name(conn), path, conn.style))
            created.append(line)
            self.scene.append_to_parent(line)

            decorations = {}
            ends = (
                ("start", selection.start, conn.style.start_terminal, selection.start_edge),
                ("end", selection.end, conn.style.end_terminal, selection.end_edge),
            )
            for position, point, kind, edge in ends:
                spec = self.decorator.decorate(
                    point, kind, conn.style, edge, name=f"{conn.id} {position}"
                )
                if spec is None:
                    continue
                handle = self.scene.create_decoration(spec)
                created.append(handle)
                self.scene.append_to_parent(handle)
                decorations[position] = handle
        except Exception:
            for handle in created:
                self._release(handle)
            raise
        return line, decorations

    def _line_name(self, conn: Connection) -> str:
        source = self.scene.lookup(conn.source.node_id)
        target = self.scene.lookup(conn.target.node_id)
        source_name = getattr(source, "name", conn.source.node_id)
        target_name = getattr(target, "name", conn.target.node_id)
        return f"Flow: {source_name} → {target_name}"

    def _release(self, handle: Any) -> None:
        """Remove a visual; one that is already gone is not an error."""
        if self.scene.lookup(handle.id) is None:
            logger.debug("Visual %s already removed", handle.id)
            return
        try:
            self.scene.remove(handle)
        except SceneError:
            logger.debug("Visual %s already removed", handle.id)
