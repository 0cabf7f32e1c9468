"""
Plane geometry primitives shared by the editor core.

Everything here works in world units. Interactive thresholds are expressed
as on-screen radii and divided by the current zoom, so the apparent hit
radius stays the same at every zoom level.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence


# ---------------------------------------------------------------------------
# Hit radii (screen units at zoom 1)
# ---------------------------------------------------------------------------

PORT_RADIUS = 10.0
HANDLE_RADIUS = 8.0
LINE_PROXIMITY = 15.0


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    """A 2-D coordinate."""
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> Rect:
        left, right = min(x1, x2), max(x1, x2)
        top, bottom = min(y1, y2), max(y1, y2)
        return cls(left, top, right - left, bottom - top)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.cx, self.cy)

    def contains_point(self, px: float, py: float, margin: float = 0) -> bool:
        """Check if a point is inside this rectangle (edges inclusive)."""
        return (
            self.x - margin <= px <= self.right + margin
            and self.y - margin <= py <= self.bottom + margin
        )

    def intersects(self, other: Rect, margin: float = 0) -> bool:
        """Check if two rectangles overlap (with optional margin)."""
        return not (
            self.right + margin <= other.x
            or other.right + margin <= self.x
            or self.bottom + margin <= other.y
            or other.bottom + margin <= self.y
        )

    def union(self, other: Rect) -> Rect:
        return Rect.from_corners(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.right, other.right),
            max(self.bottom, other.bottom),
        )

    def expanded(self, padding: float) -> Rect:
        return Rect(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


# ---------------------------------------------------------------------------
# Distance helpers
# ---------------------------------------------------------------------------

def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def point_to_segment_distance(
    px: float, py: float,
    x1: float, y1: float,
    x2: float, y2: float,
) -> float:
    """Distance from a point to the closest point of a line segment.

    Projects the point onto the segment's supporting line and clamps the
    projection parameter to [0, 1]. A zero-length segment degrades to a
    plain point distance.
    """
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return distance(px, py, x1, y1)
    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(px, py, x1 + t * dx, y1 + t * dy)


def scaled_threshold(radius: float, zoom: float) -> float:
    """Convert an on-screen radius into world units for *zoom*."""
    return radius / zoom


def within(px: float, py: float, target: Point, radius: float, zoom: float = 1.0) -> bool:
    """True when (px, py) lies strictly inside the zoom-scaled radius of *target*."""
    return distance(px, py, target.x, target.y) < scaled_threshold(radius, zoom)


def near_polyline(
    px: float, py: float,
    points: Sequence[Point],
    radius: float = LINE_PROXIMITY,
    zoom: float = 1.0,
) -> bool:
    """True when the point is within the threshold of any segment of *points*."""
    threshold = scaled_threshold(radius, zoom)
    for a, b in zip(points, points[1:]):
        if point_to_segment_distance(px, py, a.x, a.y, b.x, b.y) < threshold:
            return True
    return False


def bounding_rect(rects: Iterable[Rect]) -> Rect | None:
    """Smallest rectangle enclosing every rect, or None for an empty input."""
    result: Rect | None = None
    for r in rects:
        result = r if result is None else result.union(r)
    return result


def snap_to_grid(value: float, grid_size: int = 20) -> float:
    """Snap a coordinate to the nearest grid point."""
    return round(value / grid_size) * grid_size
