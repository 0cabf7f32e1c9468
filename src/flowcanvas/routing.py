"""
Orthogonal connection routing.

Computes the Manhattan-style polyline drawn between two node ports. The same
path feeds rendering and connection hit-testing, so the decision table below
is the single source of truth for connection shape:

1. explicit waypoints        -> [start, *waypoints, end]
2. aligned, same-axis ports  -> [start, end]
3. perpendicular ports       -> [start, corner, end]
4. parallel, non-aligned     -> [start, offset1, jogA, jogB, offset2, end]
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from flowcanvas.geometry import Point


# Tolerance for treating two ports as lying on one straight line
ALIGN_TOLERANCE = 10.0
# Distance a parallel route travels out of each port before jogging
PORT_OFFSET = 30.0


class Port(Enum):
    """Cardinal attachment points on a node."""
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"

    @property
    def direction(self) -> tuple[int, int]:
        """Unit vector the port faces (y grows downwards)."""
        return _DIRECTIONS[self]

    @property
    def horizontal(self) -> bool:
        return self in (Port.LEFT, Port.RIGHT)

    @property
    def vertical(self) -> bool:
        return self in (Port.TOP, Port.BOTTOM)


_DIRECTIONS: dict[Port, tuple[int, int]] = {
    Port.TOP: (0, -1),
    Port.RIGHT: (1, 0),
    Port.BOTTOM: (0, 1),
    Port.LEFT: (-1, 0),
}


def offset_from_port(point: Point, port: Port, distance: float = PORT_OFFSET) -> Point:
    """Move *point* by *distance* in the direction *port* faces."""
    dx, dy = port.direction
    return Point(point.x + dx * distance, point.y + dy * distance)


def route_orthogonal(
    start: Point,
    start_port: Port,
    end: Point,
    end_port: Port,
    waypoints: Optional[Sequence[Point]] = None,
) -> list[Point]:
    """Compute the orthogonal path between two ports.

    Args:
        start: Position of the source port.
        start_port: Facing of the source port.
        end: Position of the target port.
        end_port: Facing of the target port.
        waypoints: Optional explicit intermediate points. When given they
            replace every automatic rule.

    Returns:
        Ordered list of at least two points.
    """
    if waypoints:
        return [start, *waypoints, end]

    if start_port.horizontal and end_port.horizontal:
        if abs(start.y - end.y) < ALIGN_TOLERANCE:
            return [start, end]
    elif start_port.vertical and end_port.vertical:
        if abs(start.x - end.x) < ALIGN_TOLERANCE:
            return [start, end]
    else:
        # Perpendicular: one corner is enough
        if start_port.horizontal:
            corner = Point(end.x, start.y)
        else:
            corner = Point(start.x, end.y)
        return [start, corner, end]

    p1 = offset_from_port(start, start_port)
    p2 = offset_from_port(end, end_port)
    if start_port.horizontal:
        mid_x = (p1.x + p2.x) / 2
        jog = [Point(mid_x, p1.y), Point(mid_x, p2.y)]
    else:
        mid_y = (p1.y + p2.y) / 2
        jog = [Point(p1.x, mid_y), Point(p2.x, mid_y)]
    return [start, p1, *jog, p2, end]


def is_orthogonal(points: Sequence[Point], eps: float = 1e-9) -> bool:
    """True when every segment of *points* is horizontal or vertical."""
    for a, b in zip(points, points[1:]):
        if abs(a.x - b.x) > eps and abs(a.y - b.y) > eps:
            return False
    return True
