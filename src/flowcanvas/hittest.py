"""
Prioritized hit-testing over a scene.

``hit_test`` answers "what is under this world point?" using the same
priority the pointer-down handler acts on. Entities of one kind are scanned
topmost first, so the most recently drawn one wins an overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from flowcanvas.models import Area, Connection, ConnectionEnd, Handle, Node
from flowcanvas.routing import Port
from flowcanvas.scene import Scene


class HitKind(Enum):
    AREA_HANDLE = "area_handle"
    AREA_TITLE = "area_title"
    CONNECTION_END = "connection_end"
    NODE_PORT = "node_port"
    NODE_HANDLE = "node_handle"
    NODE_BODY = "node_body"
    CONNECTION = "connection"
    AREA_BODY = "area_body"
    NONE = "none"


@dataclass(frozen=True)
class Hit:
    """Result of a hit test: what was hit and which part of it."""
    kind: HitKind
    entity: Union[Node, Connection, Area, None] = None
    handle: Optional[Handle] = None
    port: Optional[Port] = None
    end: Optional[ConnectionEnd] = None

    def __bool__(self) -> bool:
        return self.kind != HitKind.NONE

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "kind": self.kind.value,
            "id": self.entity.id if self.entity is not None else None,
            "handle": self.handle.value if self.handle else None,
            "port": self.port.value if self.port else None,
            "end": self.end.value if self.end else None,
        }


NO_HIT = Hit(HitKind.NONE)

_RESIZE_CURSORS = {
    Handle.TOP_LEFT: "nwse-resize",
    Handle.BOTTOM_RIGHT: "nwse-resize",
    Handle.TOP_RIGHT: "nesw-resize",
    Handle.BOTTOM_LEFT: "nesw-resize",
    Handle.TOP: "ns-resize",
    Handle.BOTTOM: "ns-resize",
    Handle.LEFT: "ew-resize",
    Handle.RIGHT: "ew-resize",
}


def hit_test(
    scene: Scene,
    x: float,
    y: float,
    zoom: float = 1.0,
    selected_node: Optional[Node] = None,
    selected_area: Optional[Area] = None,
) -> Hit:
    """Run the hit-test battery at world point (x, y).

    Priority, first match wins:
      1. resize handle of the selected area
      2. any area's title bar
      3. an existing connection's endpoint
      4. any node's connection port
      5. resize handle of the selected node
      6. any node's body
      7. any connection's path
      8. any area's interior
    """
    areas = scene.areas[::-1]
    nodes = scene.nodes[::-1]
    connections = scene.connections[::-1]

    if selected_area is not None and selected_area in areas:
        handle = selected_area.handle_at(x, y, zoom)
        if handle is not None:
            return Hit(HitKind.AREA_HANDLE, selected_area, handle=handle)

    for area in areas:
        if area.is_on_title_bar(x, y):
            return Hit(HitKind.AREA_TITLE, area)

    for conn in connections:
        end = conn.end_near(x, y, zoom)
        if end is not None:
            port = conn.from_port if end == ConnectionEnd.FROM else conn.to_port
            return Hit(HitKind.CONNECTION_END, conn, port=port, end=end)

    for node in nodes:
        port = node.port_at(x, y, zoom)
        if port is not None:
            return Hit(HitKind.NODE_PORT, node, port=port)

    if selected_node is not None and selected_node in nodes:
        handle = selected_node.handle_at(x, y, zoom)
        if handle is not None:
            return Hit(HitKind.NODE_HANDLE, selected_node, handle=handle)

    for node in nodes:
        if node.contains_point(x, y):
            return Hit(HitKind.NODE_BODY, node)

    for conn in connections:
        if conn.is_near(x, y, zoom):
            return Hit(HitKind.CONNECTION, conn)

    for area in areas:
        if area.contains_point(x, y):
            return Hit(HitKind.AREA_BODY, area)

    return NO_HIT


def port_under(
    scene: Scene,
    x: float,
    y: float,
    zoom: float = 1.0,
    exclude: Optional[Node] = None,
) -> Optional[tuple[Node, Port]]:
    """Topmost node port at (x, y), skipping *exclude*."""
    for node in scene.nodes[::-1]:
        if node is exclude:
            continue
        port = node.port_at(x, y, zoom)
        if port is not None:
            return node, port
    return None


def cursor_for(hit: Hit) -> str:
    """CSS-style cursor name suggested for hovering over *hit*."""
    if hit.kind in (HitKind.AREA_HANDLE, HitKind.NODE_HANDLE):
        return _RESIZE_CURSORS[hit.handle]
    if hit.kind in (HitKind.AREA_TITLE, HitKind.NODE_BODY):
        return "move"
    if hit.kind in (HitKind.NODE_PORT, HitKind.CONNECTION_END):
        return "crosshair"
    if hit.kind == HitKind.CONNECTION:
        return "pointer"
    if hit.kind == HitKind.AREA_BODY:
        return "default"
    return "grab"
