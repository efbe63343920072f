"""
Messages exchanged with the settings UI.

Inbound messages are plain dicts with a ``type`` field. ``parse_command``
turns them into one of a closed set of frozen command classes; fields that a
message leaves out stay ``None`` and mean "no change". Outbound
notifications serialize back to dicts with ``to_message()``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .models import RGB, FlowlinkError, LineKind, TerminalKind


class MessageError(FlowlinkError):
    """Raised for unknown or malformed UI messages."""


@dataclass(frozen=True)
class ToggleActive:
    active: bool


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class GetStats:
    pass


@dataclass(frozen=True)
class UpdateStyle:
    """Partial style update; None fields are left unchanged."""

    line_kind: Optional[LineKind] = None
    stroke_width: Optional[float] = None
    stroke_color: Optional[RGB] = None
    start_terminal: Optional[TerminalKind] = None
    end_terminal: Optional[TerminalKind] = None
    corner_radius: Optional[float] = None


@dataclass(frozen=True)
class UpdateRouting:
    """Partial routing update; None fields are left unchanged."""

    orthogonal: Optional[bool] = None
    avoid_obstacles: Optional[bool] = None
    corner_radius: Optional[float] = None


Command = Union[ToggleActive, ClearAll, GetStats, UpdateStyle, UpdateRouting]


@dataclass(frozen=True)
class StatsUpdate:
    count: int
    is_active: bool

    def to_message(self) -> Dict[str, Any]:
        return {"type": "stats-update", "count": self.count, "isActive": self.is_active}


@dataclass(frozen=True)
class FlowCreated:
    flow_id: Optional[str]
    success: bool

    def to_message(self) -> Dict[str, Any]:
        return {"type": "flow-created", "flowId": self.flow_id, "success": self.success}


def _enum(enum_cls, value: Any, field_name: str):
    if value is None:
        return None
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise MessageError(f"Invalid {field_name}: {value!r}") from None


def _number(value: Any, field_name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MessageError(f"Invalid {field_name}: {value!r}")
    return value


def _flag(value: Any, field_name: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise MessageError(f"Invalid {field_name}: {value!r}")
    return value


def _color(value: Any) -> Optional[RGB]:
    if value is None:
        return None
    try:
        if isinstance(value, str):
            return RGB.from_hex(value)
        return RGB(float(value["r"]), float(value["g"]), float(value["b"]))
    except (ValueError, KeyError, TypeError):
        raise MessageError(f"Invalid strokeColor: {value!r}") from None


def _parse_toggle(msg: Dict[str, Any]) -> ToggleActive:
    active = _flag(msg.get("active"), "active")
    if active is None:
        raise MessageError("toggle-active requires 'active'")
    return ToggleActive(active=active)


def _parse_style(msg: Dict[str, Any]) -> UpdateStyle:
    return UpdateStyle(
        line_kind=_enum(LineKind, msg.get("lineKind", msg.get("lineStyle")), "lineKind"),
        stroke_width=_number(msg.get("strokeWidth"), "strokeWidth"),
        stroke_color=_color(msg.get("strokeColor")),
        start_terminal=_enum(TerminalKind, msg.get("startTerminal"), "startTerminal"),
        end_terminal=_enum(TerminalKind, msg.get("endTerminal"), "endTerminal"),
        corner_radius=_number(msg.get("cornerRadius"), "cornerRadius"),
    )


def _parse_routing(msg: Dict[str, Any]) -> UpdateRouting:
    return UpdateRouting(
        orthogonal=_flag(msg.get("orthogonalOnly"), "orthogonalOnly"),
        avoid_obstacles=_flag(msg.get("autoAvoidObstacles"), "autoAvoidObstacles"),
        corner_radius=_number(msg.get("cornerRadius"), "cornerRadius"),
    )


PARSERS: Dict[str, Callable[[Dict[str, Any]], Command]] = {
    "toggle-active": _parse_toggle,
    "clear-all": lambda msg: ClearAll(),
    "get-stats": lambda msg: GetStats(),
    "update-style": _parse_style,
    "update-routing": _parse_routing,
}


def parse_command(msg: Any) -> Command:
    """
    Parse an inbound UI message.

    Raises:
        MessageError: If the message is not a dict, has an unknown type, or
            carries an invalid field value.
    """
    if not isinstance(msg, dict):
        raise MessageError(f"Message must be an object, got {type(msg).__name__}")
    parser = PARSERS.get(msg.get("type"))
    if parser is None:
        raise MessageError(f"Unknown message type: {msg.get('type')!r}")
    return parser(msg)
