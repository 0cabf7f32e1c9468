"""
Scene: the owner of every node, connection and area.

Handles id allocation, explicit z-ordering, cascading deletes and the JSON
document format used both for persistence and for history snapshots.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, Optional, Sequence, Union

from flowcanvas.geometry import Point, Rect, bounding_rect
from flowcanvas.models import (
    AREA_TITLE_HEIGHT,
    NODE_DEFAULT_HEIGHT,
    NODE_DEFAULT_WIDTH,
    NODE_MIN_HEIGHT,
    NODE_MIN_WIDTH,
    Area,
    Connection,
    Node,
    NodeType,
)
from flowcanvas.routing import Port

logger = logging.getLogger(__name__)

Entity = Union[Node, Connection, Area]

_ID_PREFIX = {"node": "node", "connection": "conn", "area": "area"}
_ID_SUFFIX = re.compile(r"_(\d+)$")


class Scene:
    """Ordered collections of nodes, connections and areas.

    Each collection is kept sorted by the entities' ``z`` attribute, so the
    list order is the draw order and the reverse of the hit-test order.
    """

    def __init__(self) -> None:
        self._nodes: list[Node] = []
        self._connections: list[Connection] = []
        self._areas: list[Area] = []
        self._counters: dict[str, int] = {kind: 1 for kind in _ID_PREFIX}
        self._next_z = 1

    # ----- read access -----

    @property
    def nodes(self) -> Sequence[Node]:
        return tuple(self._nodes)

    @property
    def connections(self) -> Sequence[Connection]:
        return tuple(self._connections)

    @property
    def areas(self) -> Sequence[Area]:
        return tuple(self._areas)

    def __len__(self) -> int:
        return len(self._nodes) + len(self._connections) + len(self._areas)

    def get_node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self._nodes if n.id == node_id), None)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return next((c for c in self._connections if c.id == connection_id), None)

    def get_area(self, area_id: str) -> Optional[Area]:
        return next((a for a in self._areas if a.id == area_id), None)

    def get(self, entity_id: str) -> Optional[Entity]:
        return (
            self.get_node(entity_id)
            or self.get_connection(entity_id)
            or self.get_area(entity_id)
        )

    def draw_order(self) -> Iterator[Entity]:
        """Areas, then connections, then nodes, each in ascending z."""
        yield from self._areas
        yield from self._connections
        yield from self._nodes

    def find_connection(
        self,
        from_node: Node,
        from_port: Port,
        to_node: Node,
        to_port: Port,
    ) -> Optional[Connection]:
        for conn in self._connections:
            if (
                conn.from_node is from_node
                and conn.to_node is to_node
                and conn.from_port == from_port
                and conn.to_port == to_port
            ):
                return conn
        return None

    # ----- id / z allocation -----

    def next_id(self, kind: str) -> str:
        """Allocate the next sequential id for *kind* (node/connection/area)."""
        n = self._counters[kind]
        self._counters[kind] = n + 1
        return f"{_ID_PREFIX[kind]}_{n}"

    def _stamp(self, entity: Entity) -> None:
        entity.z = self._next_z
        self._next_z += 1

    def bring_to_front(self, entity: Entity) -> None:
        """Move *entity* to the top of its own collection."""
        self._stamp(entity)
        self._sort()

    def _sort(self) -> None:
        self._nodes.sort(key=lambda e: e.z)
        self._connections.sort(key=lambda e: e.z)
        self._areas.sort(key=lambda e: e.z)

    # ----- factories -----

    def add_node(
        self,
        node_type: NodeType,
        text: str,
        x: float,
        y: float,
        width: float = NODE_DEFAULT_WIDTH,
        height: float = NODE_DEFAULT_HEIGHT,
    ) -> Node:
        node = Node(
            id=self.next_id("node"),
            type=node_type,
            x=x,
            y=y,
            text=text,
            width=max(NODE_MIN_WIDTH, width),
            height=max(NODE_MIN_HEIGHT, height),
        )
        self._stamp(node)
        self._nodes.append(node)
        return node

    def add_connection(
        self,
        from_node: Node,
        from_port: Port,
        to_node: Node,
        to_port: Port,
        waypoints: Optional[list[Point]] = None,
    ) -> Optional[Connection]:
        """Connect two node ports.

        Returns None for a self-connection. An exact duplicate of an existing
        (from, fromPort, to, toPort) tuple is not added; the existing
        connection is returned instead.
        """
        if from_node is to_node:
            return None
        existing = self.find_connection(from_node, from_port, to_node, to_port)
        if existing is not None:
            return existing
        conn = Connection(
            id=self.next_id("connection"),
            from_node=from_node,
            from_port=from_port,
            to_node=to_node,
            to_port=to_port,
            waypoints=list(waypoints or []),
        )
        self._stamp(conn)
        self._connections.append(conn)
        return conn

    def add_area(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        title: str = "Section",
    ) -> Area:
        area = Area(id=self.next_id("area"), x1=x1, y1=y1, x2=x2, y2=y2, title=title)
        area.enforce_min_size()
        self._stamp(area)
        self._areas.append(area)
        return area

    # ----- mutation -----

    def reconnect(self, conn: Connection, from_end: bool, node: Node, port: Port) -> bool:
        """Rewire one end of *conn*.

        Refused (returns False) when the result would be a self-connection or
        duplicate another connection.
        """
        new_from = node if from_end else conn.from_node
        new_to = conn.to_node if from_end else node
        new_from_port = port if from_end else conn.from_port
        new_to_port = conn.to_port if from_end else port
        if new_from is new_to:
            return False
        other = self.find_connection(new_from, new_from_port, new_to, new_to_port)
        if other is not None and other is not conn:
            return False
        conn.from_node, conn.from_port = new_from, new_from_port
        conn.to_node, conn.to_port = new_to, new_to_port
        return True

    def delete_node(self, node: Node) -> int:
        """Remove *node* and every connection touching it.

        Returns the number of connections removed with it.
        """
        if node not in self._nodes:
            return 0
        before = len(self._connections)
        self._connections = [c for c in self._connections if not c.references(node)]
        self._nodes = [n for n in self._nodes if n is not node]
        return before - len(self._connections)

    def delete_connection(self, conn: Connection) -> bool:
        if conn not in self._connections:
            return False
        self._connections = [c for c in self._connections if c is not conn]
        return True

    def delete_area(self, area: Area) -> bool:
        if area not in self._areas:
            return False
        self._areas = [a for a in self._areas if a is not area]
        return True

    def delete(self, entity: Entity) -> bool:
        if isinstance(entity, Node):
            present = entity in self._nodes
            self.delete_node(entity)
            return present
        if isinstance(entity, Connection):
            return self.delete_connection(entity)
        return self.delete_area(entity)

    def clear(self) -> None:
        self._nodes = []
        self._connections = []
        self._areas = []
        self._counters = {kind: 1 for kind in _ID_PREFIX}
        self._next_z = 1

    # ----- bounds -----

    def bounding_box(self, include_areas: bool = True) -> Optional[Rect]:
        """Bounding box of the scene content, or None when it is empty.

        Areas contribute their title bar as well as their body.
        """
        rects = [n.bounds for n in self._nodes]
        if include_areas:
            rects.extend(
                Rect(a.x1, a.y1 - AREA_TITLE_HEIGHT, a.width, a.height + AREA_TITLE_HEIGHT)
                for a in self._areas
            )
        return bounding_rect(rects)

    # ----- serialization -----

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self._nodes],
            "connections": [c.to_dict() for c in self._connections],
            "areas": [a.to_dict() for a in self._areas],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def load_dict(self, data: dict[str, Any], reset_counters: bool = True) -> None:
        """Replace the whole scene with the content of *data*.

        Nodes are rebuilt first; connections are then relinked by node id.
        A connection whose endpoint id cannot be resolved is dropped, as is
        a self-connection or an exact duplicate of an earlier one. When
        *reset_counters* is set, each id counter restarts after the highest
        numeric suffix present; otherwise counters only ever move forward.
        """
        nodes = [Node.from_dict(d) for d in data.get("nodes") or []]
        by_id = {n.id: n for n in nodes}

        connections: list[Connection] = []
        seen: set[tuple[str, Port, str, Port]] = set()
        for d in data.get("connections") or []:
            src = by_id.get(d.get("fromNodeId"))
            dst = by_id.get(d.get("toNodeId"))
            if src is None or dst is None:
                logger.debug("Dropping connection %s: unresolved endpoint", d.get("id"))
                continue
            if src is dst:
                logger.debug("Dropping connection %s: self-connection", d.get("id"))
                continue
            key = (src.id, Port(d["fromPort"]), dst.id, Port(d["toPort"]))
            if key in seen:
                logger.debug("Dropping connection %s: duplicate of an earlier one", d.get("id"))
                continue
            seen.add(key)
            connections.append(Connection(
                id=d["id"],
                from_node=src,
                from_port=key[1],
                to_node=dst,
                to_port=key[3],
                waypoints=[Point(p["x"], p["y"]) for p in d.get("waypoints") or []],
            ))

        areas = [Area.from_dict(d) for d in data.get("areas") or []]

        self._nodes, self._connections, self._areas = nodes, connections, areas
        self._next_z = 1
        for entity in self.draw_order():
            self._stamp(entity)

        loaded = {
            "node": _next_counter(n.id for n in nodes),
            "connection": _next_counter(c.id for c in connections),
            "area": _next_counter(a.id for a in areas),
        }
        if reset_counters:
            self._counters = loaded
        else:
            # Never move a counter backwards past an id that is in use
            for kind, value in loaded.items():
                self._counters[kind] = max(self._counters[kind], value)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scene:
        scene = cls()
        scene.load_dict(data)
        return scene


def _next_counter(ids: Iterator[str]) -> int:
    highest = 0
    for entity_id in ids:
        m = _ID_SUFFIX.search(entity_id)
        if m:
            highest = max(highest, int(m.group(1)))
    return highest + 1
