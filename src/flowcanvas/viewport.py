"""
Pan/zoom state and the screen <-> world coordinate mapping.

    screen = world * zoom + pan
    world  = (screen - pan) / zoom
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from flowcanvas.geometry import Point, Rect, bounding_rect
from flowcanvas.models import Node

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
ZOOM_IN_STEP = 1.1
ZOOM_OUT_STEP = 0.9
FIT_PADDING = 50.0


@dataclass
class Viewport:
    """Pan offset and zoom factor for a drawing surface of a given size."""
    width: float = 800
    height: float = 600
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM

    def __post_init__(self) -> None:
        if self.min_zoom <= 0 or self.min_zoom > self.max_zoom:
            raise ValueError(
                f"invalid zoom range [{self.min_zoom}, {self.max_zoom}]"
            )
        self.zoom = self.clamp_zoom(self.zoom)

    def clamp_zoom(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, zoom))

    # ----- transforms -----

    def world_to_screen(self, p: Point) -> Point:
        return Point(p.x * self.zoom + self.pan_x, p.y * self.zoom + self.pan_y)

    def screen_to_world(self, p: Point) -> Point:
        return Point((p.x - self.pan_x) / self.zoom, (p.y - self.pan_y) / self.zoom)

    def visible_world_rect(self) -> Rect:
        top_left = self.screen_to_world(Point(0, 0))
        return Rect(top_left.x, top_left.y, self.width / self.zoom, self.height / self.zoom)

    # ----- pan / zoom -----

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def pan_to(self, pan_x: float, pan_y: float) -> None:
        self.pan_x = pan_x
        self.pan_y = pan_y

    def zoom_at(
        self,
        screen_point: Point,
        delta: float,
        zoom_in: float = ZOOM_IN_STEP,
        zoom_out: float = ZOOM_OUT_STEP,
    ) -> None:
        """Zoom by one step while keeping the world point under the cursor.

        A negative *delta* (wheel up) zooms in, anything else zooms out.
        """
        anchor = self.screen_to_world(screen_point)
        factor = zoom_in if delta < 0 else zoom_out
        self.zoom = self.clamp_zoom(self.zoom * factor)
        self.pan_x = screen_point.x - anchor.x * self.zoom
        self.pan_y = screen_point.y - anchor.y * self.zoom

    def reset(self) -> None:
        self.pan_x = 0.0
        self.pan_y = 0.0
        self.zoom = self.clamp_zoom(1.0)

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def fit_to_content(self, nodes: Iterable[Node], padding: float = FIT_PADDING) -> bool:
        """Frame every node in the surface.

        Never zooms past 100% just to fit. Returns False (and leaves the
        view untouched) when there is nothing to frame.
        """
        box = bounding_rect(n.bounds for n in nodes)
        if box is None:
            return False
        box = box.expanded(padding)
        fit_x = self.width / box.width
        fit_y = self.height / box.height
        self.zoom = self.clamp_zoom(min(fit_x, fit_y, 1.0))
        self.pan_x = self.width / 2 - box.cx * self.zoom
        self.pan_y = self.height / 2 - box.cy * self.zoom
        return True
