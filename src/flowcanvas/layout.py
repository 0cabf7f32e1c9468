"""
Placement helpers for building scenes programmatically.

Used by the tool server when callers add nodes without coordinates or add
connections without naming ports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flowcanvas.geometry import Point, Rect, snap_to_grid
from flowcanvas.models import NODE_DEFAULT_HEIGHT, NODE_DEFAULT_WIDTH, Node
from flowcanvas.routing import Port
from flowcanvas.scene import Scene


# ---------------------------------------------------------------------------
# Grid placement
# ---------------------------------------------------------------------------

@dataclass
class LayoutConfig:
    """Configuration for automatic placement."""
    start_x: float = 100
    start_y: float = 100
    h_spacing: float = 60
    v_spacing: float = 60
    default_width: float = NODE_DEFAULT_WIDTH
    default_height: float = NODE_DEFAULT_HEIGHT
    columns: int = 4
    grid_size: int = 20  # Snap to grid


def grid_position(index: int, config: Optional[LayoutConfig] = None) -> Point:
    """Center of the *index*-th cell of a row-major placement grid."""
    cfg = config or LayoutConfig()
    col = index % cfg.columns
    row = index // cfg.columns
    x = cfg.start_x + col * (cfg.default_width + cfg.h_spacing)
    y = cfg.start_y + row * (cfg.default_height + cfg.v_spacing)
    return Point(snap_to_grid(x, cfg.grid_size), snap_to_grid(y, cfg.grid_size))


def next_free_position(scene: Scene, config: Optional[LayoutConfig] = None) -> Point:
    """First grid cell whose node-sized footprint overlaps no existing node."""
    cfg = config or LayoutConfig()
    index = 0
    while True:
        p = grid_position(index, cfg)
        footprint = Rect(
            p.x - cfg.default_width / 2, p.y - cfg.default_height / 2,
            cfg.default_width, cfg.default_height,
        )
        if not any(
            footprint.intersects(n.bounds, margin=cfg.h_spacing / 2)
            for n in scene.nodes
        ):
            return p
        index += 1


# ---------------------------------------------------------------------------
# Port selection
# ---------------------------------------------------------------------------

def choose_ports(
    src: Node,
    tgt: Node,
    direction: str = "auto",
) -> tuple[Port, Port]:
    """Choose exit/entry ports for a connection from *src* to *tgt*.

    Looks at where the target sits relative to the source and picks the
    facing sides, which gives the router a straight line or a single jog.
    """
    dx = tgt.x - src.x
    dy = tgt.y - src.y

    if direction == "auto":
        if abs(dx) > abs(dy) * 1.5:
            direction = "horizontal"
        elif abs(dy) > abs(dx) * 1.5:
            direction = "vertical"
        else:
            # Diagonal: pick based on relative position
            direction = "vertical" if abs(dy) >= abs(dx) else "horizontal"

    if direction == "horizontal":
        if dx >= 0:
            return Port.RIGHT, Port.LEFT
        return Port.LEFT, Port.RIGHT
    if dy >= 0:
        return Port.BOTTOM, Port.TOP
    return Port.TOP, Port.BOTTOM
