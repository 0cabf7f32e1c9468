"""
Entity classes for flowchart scenes.

Nodes, connections and areas carry their own data plus the geometry queries
the interaction layer needs (containment, ports, resize handles). Settings
updates go through typed partial structs whose fields default to ``UNSET``,
so "field not supplied" is never confused with ``None`` or ``""``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional, Union

from flowcanvas.geometry import (
    HANDLE_RADIUS,
    LINE_PROXIMITY,
    PORT_RADIUS,
    Point,
    Rect,
    distance,
    near_polyline,
    scaled_threshold,
    within,
)
from flowcanvas.routing import Port, route_orthogonal


# ---------------------------------------------------------------------------
# Enums / constants
# ---------------------------------------------------------------------------

class NodeType(Enum):
    START = "start"
    PROCESS = "process"
    DECISION = "decision"
    END = "end"


class Handle(Enum):
    """Resize handle positions. Nodes use the corners, areas all eight."""
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


class ConnectionEnd(Enum):
    FROM = "from"
    TO = "to"


CORNER_HANDLES = (
    Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.BOTTOM_RIGHT, Handle.BOTTOM_LEFT,
)

NODE_DEFAULT_WIDTH = 120.0
NODE_DEFAULT_HEIGHT = 60.0
NODE_MIN_WIDTH = 60.0
NODE_MIN_HEIGHT = 40.0
AREA_MIN_SIZE = 50.0
AREA_TITLE_HEIGHT = 30.0

NODE_DEFAULTS: dict[str, Any] = {
    "link": "",
    "fill_color": "#FFFFFF",
    "font_color": "#000000",
    "font_size": 14,
    "outline_color": "#000000",
    "outline_width": 2,
}

AREA_DEFAULTS: dict[str, Any] = {
    "title": "Section",
    "fill_color": "rgba(33, 150, 243, 0.1)",
    "outline_color": "#000",
    "title_bg_color": "#000",
}


# ---------------------------------------------------------------------------
# Partial settings
# ---------------------------------------------------------------------------

class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset.UNSET


class _Settings:
    """Shared behaviour for the partial-update structs below."""

    # dataclass field name -> serialized (camelCase) key
    _keys: dict[str, str] = {}

    def provided(self) -> dict[str, Any]:
        """Return only the fields that were explicitly supplied."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not UNSET
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialized (camelCase) form of the supplied fields."""
        return {self._keys[name]: value for name, value in self.provided().items()}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]):
        """Build a partial from a camelCase (or snake_case) mapping.

        Keys absent from *payload* stay ``UNSET``; keys that are present keep
        their value even when it is ``None`` or empty.
        """
        kwargs: dict[str, Any] = {}
        for name, key in cls._keys.items():
            if key in payload:
                kwargs[name] = payload[key]
            elif name in payload:
                kwargs[name] = payload[name]
        return cls(**kwargs)


@dataclass
class NodeSettings(_Settings):
    text: Union[str, _Unset] = UNSET
    link: Union[str, _Unset] = UNSET
    fill_color: Union[str, _Unset] = UNSET
    font_color: Union[str, _Unset] = UNSET
    font_size: Union[int, _Unset] = UNSET
    outline_color: Union[str, _Unset] = UNSET
    outline_width: Union[float, _Unset] = UNSET

    _keys = {
        "text": "text",
        "link": "link",
        "fill_color": "fillColor",
        "font_color": "fontColor",
        "font_size": "fontSize",
        "outline_color": "outlineColor",
        "outline_width": "outlineWidth",
    }


@dataclass
class AreaSettings(_Settings):
    title: Union[str, _Unset] = UNSET
    fill_color: Union[str, _Unset] = UNSET
    outline_color: Union[str, _Unset] = UNSET
    title_bg_color: Union[str, _Unset] = UNSET

    _keys = {
        "title": "title",
        "fill_color": "fillColor",
        "outline_color": "outlineColor",
        "title_bg_color": "titleBgColor",
    }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Node:
    """A flowchart shape, positioned by its center."""
    id: str
    type: NodeType
    x: float
    y: float
    text: str = ""
    width: float = NODE_DEFAULT_WIDTH
    height: float = NODE_DEFAULT_HEIGHT
    link: str = NODE_DEFAULTS["link"]
    fill_color: str = NODE_DEFAULTS["fill_color"]
    font_color: str = NODE_DEFAULTS["font_color"]
    font_size: int = NODE_DEFAULTS["font_size"]
    outline_color: str = NODE_DEFAULTS["outline_color"]
    outline_width: float = NODE_DEFAULTS["outline_width"]
    # Draw order; higher is drawn later and hit-tested first
    z: int = field(default=0, repr=False)

    @property
    def bounds(self) -> Rect:
        return Rect(
            self.x - self.width / 2,
            self.y - self.height / 2,
            self.width,
            self.height,
        )

    @property
    def center(self) -> Point:
        return Point(self.x, self.y)

    def contains_point(self, px: float, py: float) -> bool:
        return self.bounds.contains_point(px, py)

    # ----- ports -----

    def port_position(self, port: Port) -> Point:
        if port == Port.TOP:
            return Point(self.x, self.y - self.height / 2)
        if port == Port.RIGHT:
            return Point(self.x + self.width / 2, self.y)
        if port == Port.BOTTOM:
            return Point(self.x, self.y + self.height / 2)
        return Point(self.x - self.width / 2, self.y)

    def ports(self) -> list[tuple[Port, Point]]:
        return [(p, self.port_position(p)) for p in Port]

    def port_at(self, px: float, py: float, zoom: float = 1.0) -> Optional[Port]:
        """Return the port whose hit radius contains the point, if any."""
        for port, pos in self.ports():
            if within(px, py, pos, PORT_RADIUS, zoom):
                return port
        return None

    def closest_port(self, px: float, py: float) -> Port:
        return min(
            Port,
            key=lambda p: distance(px, py, *_xy(self.port_position(p))),
        )

    # ----- resize handles -----

    def handles(self) -> list[tuple[Handle, Point]]:
        b = self.bounds
        return [
            (Handle.TOP_LEFT, Point(b.x, b.y)),
            (Handle.TOP_RIGHT, Point(b.right, b.y)),
            (Handle.BOTTOM_RIGHT, Point(b.right, b.bottom)),
            (Handle.BOTTOM_LEFT, Point(b.x, b.bottom)),
        ]

    def handle_at(self, px: float, py: float, zoom: float = 1.0) -> Optional[Handle]:
        return _handle_at(self.handles(), px, py, zoom)

    def resize_from(
        self,
        handle: Handle,
        start_width: float,
        start_height: float,
        dx: float,
        dy: float,
    ) -> None:
        """Resize around the fixed center.

        The pointer moved (dx, dy) since the drag began; because the center
        stays put, each side moves by the full delta, so the dimension
        changes by twice the delta. Sizes are clamped to the minimum.
        """
        sx = 1 if handle in (Handle.TOP_RIGHT, Handle.BOTTOM_RIGHT) else -1
        sy = 1 if handle in (Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT) else -1
        self.width = max(NODE_MIN_WIDTH, start_width + sx * dx * 2)
        self.height = max(NODE_MIN_HEIGHT, start_height + sy * dy * 2)

    # ----- settings -----

    def update_settings(self, settings: NodeSettings) -> None:
        for name, value in settings.provided().items():
            setattr(self, name, value)

    def get_settings(self) -> NodeSettings:
        return NodeSettings(
            text=self.text,
            link=self.link,
            fill_color=self.fill_color,
            font_color=self.font_color,
            font_size=self.font_size,
            outline_color=self.outline_color,
            outline_width=self.outline_width,
        )

    # ----- serialization -----

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "text": self.text,
            "width": self.width,
            "height": self.height,
            "link": self.link,
            "fillColor": self.fill_color,
            "fontColor": self.font_color,
            "fontSize": self.font_size,
            "outlineColor": self.outline_color,
            "outlineWidth": self.outline_width,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        return cls(
            id=data["id"],
            type=NodeType(data["type"]),
            x=data["x"],
            y=data["y"],
            text=data.get("text", ""),
            width=data.get("width", NODE_DEFAULT_WIDTH),
            height=data.get("height", NODE_DEFAULT_HEIGHT),
            link=data.get("link", NODE_DEFAULTS["link"]),
            fill_color=data.get("fillColor", NODE_DEFAULTS["fill_color"]),
            font_color=data.get("fontColor", NODE_DEFAULTS["font_color"]),
            font_size=data.get("fontSize", NODE_DEFAULTS["font_size"]),
            outline_color=data.get("outlineColor", NODE_DEFAULTS["outline_color"]),
            outline_width=data.get("outlineWidth", NODE_DEFAULTS["outline_width"]),
        )


@dataclass(eq=False)
class Connection:
    """A directed link between two node ports."""
    id: str
    from_node: Node
    from_port: Port
    to_node: Node
    to_port: Port
    waypoints: list[Point] = field(default_factory=list)
    z: int = field(default=0, repr=False)

    @property
    def start(self) -> Point:
        return self.from_node.port_position(self.from_port)

    @property
    def end(self) -> Point:
        return self.to_node.port_position(self.to_port)

    def path(self) -> list[Point]:
        """The routed polyline, shared by rendering and hit-testing."""
        return route_orthogonal(
            self.start, self.from_port, self.end, self.to_port, self.waypoints,
        )

    def key(self) -> tuple[str, str, str, str]:
        """Identity tuple used for duplicate detection."""
        return (
            self.from_node.id, self.from_port.value,
            self.to_node.id, self.to_port.value,
        )

    def references(self, node: Node) -> bool:
        return self.from_node is node or self.to_node is node

    def is_near(self, px: float, py: float, zoom: float = 1.0) -> bool:
        return near_polyline(px, py, self.path(), LINE_PROXIMITY, zoom)

    def end_near(self, px: float, py: float, zoom: float = 1.0) -> Optional[ConnectionEnd]:
        """Which endpoint, if any, lies within the line-proximity radius."""
        threshold = scaled_threshold(LINE_PROXIMITY, zoom)
        d_from = distance(px, py, *_xy(self.start))
        d_to = distance(px, py, *_xy(self.end))
        if d_from < threshold and d_from <= d_to:
            return ConnectionEnd.FROM
        if d_to < threshold:
            return ConnectionEnd.TO
        return None

    def node_at(self, end: ConnectionEnd) -> Node:
        return self.from_node if end == ConnectionEnd.FROM else self.to_node

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "fromNodeId": self.from_node.id,
            "fromPort": self.from_port.value,
            "toNodeId": self.to_node.id,
            "toPort": self.to_port.value,
        }
        if self.waypoints:
            data["waypoints"] = [p.to_dict() for p in self.waypoints]
        return data


@dataclass(eq=False)
class Area:
    """A titled rectangular region; (x1, y1) is always the top-left corner."""
    id: str
    x1: float
    y1: float
    x2: float
    y2: float
    title: str = AREA_DEFAULTS["title"]
    fill_color: str = AREA_DEFAULTS["fill_color"]
    outline_color: str = AREA_DEFAULTS["outline_color"]
    title_bg_color: str = AREA_DEFAULTS["title_bg_color"]
    z: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self.x1, self.x2 = min(self.x1, self.x2), max(self.x1, self.x2)
        self.y1, self.y2 = min(self.y1, self.y2), max(self.y1, self.y2)

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def bounds(self) -> Rect:
        return Rect(self.x1, self.y1, self.width, self.height)

    @property
    def title_bar(self) -> Rect:
        return Rect(self.x1, self.y1 - AREA_TITLE_HEIGHT, self.width, AREA_TITLE_HEIGHT)

    def contains_point(self, px: float, py: float) -> bool:
        return self.bounds.contains_point(px, py)

    def is_on_title_bar(self, px: float, py: float) -> bool:
        return self.title_bar.contains_point(px, py)

    def enforce_min_size(self) -> None:
        """Grow the bottom-right corner until the area is at least 50x50."""
        self.x2 = max(self.x2, self.x1 + AREA_MIN_SIZE)
        self.y2 = max(self.y2, self.y1 + AREA_MIN_SIZE)

    def move_to(self, x1: float, y1: float) -> None:
        w, h = self.width, self.height
        self.x1, self.y1 = x1, y1
        self.x2, self.y2 = x1 + w, y1 + h

    # ----- resize handles -----

    def handles(self) -> list[tuple[Handle, Point]]:
        mx = (self.x1 + self.x2) / 2
        my = (self.y1 + self.y2) / 2
        return [
            (Handle.TOP_LEFT, Point(self.x1, self.y1)),
            (Handle.TOP_RIGHT, Point(self.x2, self.y1)),
            (Handle.BOTTOM_RIGHT, Point(self.x2, self.y2)),
            (Handle.BOTTOM_LEFT, Point(self.x1, self.y2)),
            (Handle.TOP, Point(mx, self.y1)),
            (Handle.RIGHT, Point(self.x2, my)),
            (Handle.BOTTOM, Point(mx, self.y2)),
            (Handle.LEFT, Point(self.x1, my)),
        ]

    def handle_at(self, px: float, py: float, zoom: float = 1.0) -> Optional[Handle]:
        return _handle_at(self.handles(), px, py, zoom)

    def resize_from(self, handle: Handle, start: Rect, dx: float, dy: float) -> None:
        """Anchor-corner resize: the side(s) opposite *handle* stay fixed.

        The moving edge is clamped so the area never gets smaller than the
        minimum size.
        """
        x1, y1, x2, y2 = start.x, start.y, start.right, start.bottom
        if handle in (Handle.TOP_LEFT, Handle.BOTTOM_LEFT, Handle.LEFT):
            self.x1 = min(x1 + dx, x2 - AREA_MIN_SIZE)
        if handle in (Handle.TOP_RIGHT, Handle.BOTTOM_RIGHT, Handle.RIGHT):
            self.x2 = max(x2 + dx, x1 + AREA_MIN_SIZE)
        if handle in (Handle.TOP_LEFT, Handle.TOP_RIGHT, Handle.TOP):
            self.y1 = min(y1 + dy, y2 - AREA_MIN_SIZE)
        if handle in (Handle.BOTTOM_LEFT, Handle.BOTTOM_RIGHT, Handle.BOTTOM):
            self.y2 = max(y2 + dy, y1 + AREA_MIN_SIZE)

    # ----- settings -----

    def update_settings(self, settings: AreaSettings) -> None:
        for name, value in settings.provided().items():
            setattr(self, name, value)

    def get_settings(self) -> AreaSettings:
        return AreaSettings(
            title=self.title,
            fill_color=self.fill_color,
            outline_color=self.outline_color,
            title_bg_color=self.title_bg_color,
        )

    # ----- serialization -----

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "x1": self.x1,
            "y1": self.y1,
            "x2": self.x2,
            "y2": self.y2,
            "title": self.title,
            "fillColor": self.fill_color,
            "outlineColor": self.outline_color,
            "titleBgColor": self.title_bg_color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Area:
        return cls(
            id=data["id"],
            x1=data["x1"],
            y1=data["y1"],
            x2=data["x2"],
            y2=data["y2"],
            title=data.get("title", AREA_DEFAULTS["title"]),
            fill_color=data.get("fillColor", AREA_DEFAULTS["fill_color"]),
            outline_color=data.get("outlineColor", AREA_DEFAULTS["outline_color"]),
            title_bg_color=data.get("titleBgColor", AREA_DEFAULTS["title_bg_color"]),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _xy(p: Point) -> tuple[float, float]:
    return p.x, p.y


def _handle_at(
    handles: list[tuple[Handle, Point]],
    px: float,
    py: float,
    zoom: float,
) -> Optional[Handle]:
    for handle, pos in handles:
        if within(px, py, pos, HANDLE_RADIUS, zoom):
            return handle
    return None
