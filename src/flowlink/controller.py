"""
Controller wiring the routing engine to the host.

``FlowController`` turns selection changes into new connections and executes
commands sent by the settings UI. The style used for new connections lives
in a ``StyleDefaults`` holder; each connection takes a snapshot of it when it
is created, so later style changes never touch existing connectors.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from .messages import (
    ClearAll,
    Command,
    FlowCreated,
    GetStats,
    MessageError,
    StatsUpdate,
    ToggleActive,
    UpdateRouting,
    UpdateStyle,
    parse_command,
)
from .models import Connection, Style
from .registry import ConnectionRegistry
from .scene import SceneError, SceneGraph, SelectionChange
from .storage import Storage

logger = logging.getLogger(__name__)


class MessageChannel(Protocol):
    """Outbound half of the UI message channel."""

    def post(self, message: Dict[str, Any]) -> None:
        ...


class RecordingChannel:
    """Channel that keeps every posted message."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def post(self, message: Dict[str, Any]) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if m.get("type") == message_type]

    @property
    def last(self) -> Optional[Dict[str, Any]]:
        return self.messages[-1] if self.messages else None


class StyleDefaults:
    """Current style for connections created from now on."""

    def __init__(self, style: Optional[Style] = None):
        self._style = style or Style()

    @property
    def current(self) -> Style:
        return self._style

    def update(self, **changes: Any) -> Style:
        """
        Replace the current style with one carrying ``changes``.

        None values leave the field unchanged. Invalid values raise
        ValueError and keep the previous style.
        """
        self._style = self._style.with_updates(**changes)
        return self._style


class FlowController:
    """
    Host-facing entry point.

    Args:
        scene: Scene graph collaborator.
        channel: Outbound UI channel.
        registry: Connection registry; created on ``scene`` if omitted.
        defaults: Holder of the style for new connections.
        storage: Storage for the default registry.
        notify: Callback for short user-facing notices (toasts).
    """

    def __init__(
        self,
        scene: SceneGraph,
        channel: MessageChannel,
        registry: Optional[ConnectionRegistry] = None,
        defaults: Optional[StyleDefaults] = None,
        storage: Optional[Storage] = None,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.scene = scene
        self.channel = channel
        if registry is None:
            registry = ConnectionRegistry(scene, storage=storage)
        self.registry = registry
        self.defaults = defaults or StyleDefaults()
        self.notify = notify or logger.info
        self.is_active = True
        self._previous_selection: Tuple[str, ...] = ()

        scene.on_selection(self.handle_selection)
        self.post_stats()

    # --- selection ---------------------------------------------------------

    def handle_selection(self, event: SelectionChange) -> None:
        """
        Create a connection when the selection grows from one object to two.

        The previously selected object becomes the source and the newly
        added one the target.
        """
        selected = tuple(event.selected_ids)
        previous = self._previous_selection
        self._previous_selection = selected

        if not self.is_active or len(selected) != 2 or len(previous) != 1:
            return

        source = previous[0]
        added = [node_id for node_id in selected if node_id != source]
        if len(added) != 1:
            return
        self.create_flow(source, added[0])

    def create_flow(self, source_id: str, target_id: str) -> Optional[Connection]:
        """Create a connection with the current default style."""
        try:
            conn = self.registry.create(source_id, target_id, self.defaults.current)
        except (SceneError, ValueError) as e:
            logger.warning("Could not create flow %s -> %s: %s", source_id, target_id, e)
            self.channel.post(FlowCreated(flow_id=None, success=False).to_message())
            return None

        self.channel.post(FlowCreated(flow_id=conn.id, success=True).to_message())
        self.notify(f"Flow created: {self._name(source_id)} → {self._name(target_id)}")
        self.post_stats()
        return conn

    # --- UI commands -------------------------------------------------------

    def handle_message(self, msg: Any) -> None:
        """Parse and execute one inbound UI message; bad messages are dropped."""
        try:
            command = parse_command(msg)
        except MessageError as e:
            logger.warning("Ignoring UI message: %s", e)
            return
        self.execute(command)

    def execute(self, command: Command) -> None:
        if isinstance(command, ToggleActive):
            self.is_active = command.active
            self.notify("Flows activated" if self.is_active else "Flows paused")
            self.post_stats()
        elif isinstance(command, ClearAll):
            self.registry.clear()
            self.notify("All flows cleared")
            self.post_stats()
        elif isinstance(command, GetStats):
            self.post_stats()
        elif isinstance(command, UpdateStyle):
            self._update_defaults(
                line_kind=command.line_kind,
                stroke_width=command.stroke_width,
                stroke_color=command.stroke_color,
                start_terminal=command.start_terminal,
                end_terminal=command.end_terminal,
                corner_radius=command.corner_radius,
            )
        elif isinstance(command, UpdateRouting):
            self._update_defaults(
                orthogonal=command.orthogonal,
                avoid_obstacles=command.avoid_obstacles,
                corner_radius=command.corner_radius,
            )
        else:
            raise TypeError(f"Unhandled command: {command!r}")

    def stats(self) -> StatsUpdate:
        return StatsUpdate(count=len(self.registry), is_active=self.is_active)

    def post_stats(self) -> None:
        self.channel.post(self.stats().to_message())

    def _update_defaults(self, **changes: Any) -> None:
        try:
            self.defaults.update(**changes)
        except ValueError as e:
            logger.warning("Rejected style update: %s", e)

    def _name(self, node_id: str) -> str:
        obj = self.scene.lookup(node_id)
        return getattr(obj, "name", node_id)
