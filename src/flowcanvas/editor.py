"""
Editor facade: one owned editor per drawing surface.

``create_editor`` wires a Scene, Viewport, History and InteractionController
together and connects them to the host's renderer and settings dialogs. All
programmatic edits go through the editor so every change lands in history
exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Union

from flowcanvas.controller import (
    EditorConfig,
    IDLE,
    Effect,
    Event,
    InteractionController,
    OpenAreaSettings,
    OpenNodeSettings,
    Preview,
    Redraw,
)
from flowcanvas.geometry import Point, Rect
from flowcanvas.history import History
from flowcanvas.hittest import Hit, hit_test
from flowcanvas.models import (
    NODE_DEFAULT_HEIGHT,
    NODE_DEFAULT_WIDTH,
    NODE_MIN_HEIGHT,
    NODE_MIN_WIDTH,
    Area,
    AreaSettings,
    Connection,
    Node,
    NodeSettings,
    NodeType,
)
from flowcanvas.routing import Port
from flowcanvas.scene import Entity, Scene
from flowcanvas.styles import ColorTheme
from flowcanvas.validation import ValidationError, parse_scene_json, validate_enum
from flowcanvas.viewport import Viewport

logger = logging.getLogger(__name__)

MODES = {"edit", "view"}


class EditorSetupError(Exception):
    """Raised when an editor cannot be constructed."""


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class Renderer(Protocol):
    def draw(self, entity: Entity, is_selected: bool) -> None: ...


class SettingsDialogs(Protocol):
    def open_node_settings(self, node: Node, x: float, y: float) -> None: ...

    def open_area_settings(self, area: Area, x: float, y: float) -> None: ...


@dataclass
class Surface:
    """A mount target: anything that reports a drawable width and height."""
    width: float = 800
    height: float = 600


# ---------------------------------------------------------------------------
# Editor
# ---------------------------------------------------------------------------

class Editor:
    def __init__(
        self,
        surface: Surface,
        renderer: Optional[Renderer] = None,
        dialogs: Optional[SettingsDialogs] = None,
        config: Optional[EditorConfig] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.surface = surface
        self.renderer = renderer
        self.dialogs = dialogs
        self.scene = Scene()
        self.viewport = Viewport(
            width=surface.width,
            height=surface.height,
            min_zoom=self.config.min_zoom,
            max_zoom=self.config.max_zoom,
        )
        self.history = History(self.config.history_capacity)
        self.controller = InteractionController(
            self.scene, self.viewport, self.history, self.config,
        )
        self.history.commit(self.scene)

    # ----- mode / selection -----

    @property
    def mode(self) -> str:
        return self.config.mode

    @mode.setter
    def mode(self, value: str) -> None:
        self.config.mode = validate_enum(value, "mode", MODES)
        if not self.config.editable:
            self.controller.state = IDLE

    @property
    def selection(self):
        return self.controller.selection

    @property
    def selected(self) -> Optional[Entity]:
        return self.controller.selection.entity

    def select(self, entity: Optional[Entity]) -> None:
        self.controller.selection.set(entity)

    # ----- input -----

    def handle(self, event: Event) -> list[Effect]:
        """Feed one input event through the controller and act on its effects."""
        effects = self.controller.dispatch(event)
        self._route(effects)
        return effects

    def _route(self, effects: list[Effect]) -> None:
        redraw = False
        for effect in effects:
            if isinstance(effect, OpenNodeSettings) and self.dialogs is not None:
                self.dialogs.open_node_settings(effect.node, effect.x, effect.y)
            elif isinstance(effect, OpenAreaSettings) and self.dialogs is not None:
                self.dialogs.open_area_settings(effect.area, effect.x, effect.y)
            elif isinstance(effect, Redraw):
                redraw = True
        if redraw and self.renderer is not None:
            self.render()

    # ----- factories -----

    def add_node(
        self,
        node_type: Union[NodeType, str],
        text: str,
        x: float,
        y: float,
        width: float = NODE_DEFAULT_WIDTH,
        height: float = NODE_DEFAULT_HEIGHT,
        settings: Optional[NodeSettings] = None,
    ) -> Node:
        node = self.scene.add_node(NodeType(node_type), text, x, y, width, height)
        if settings is not None:
            node.update_settings(settings)
        self._commit()
        return node

    def add_connection(
        self,
        from_node: Node,
        from_port: Union[Port, str],
        to_node: Node,
        to_port: Union[Port, str],
        waypoints: Optional[list[Point]] = None,
    ) -> Optional[Connection]:
        """Connect two ports. Returns None for a self-connection.

        A duplicate returns the existing connection and records nothing.
        """
        before = len(self.scene.connections)
        conn = self.scene.add_connection(
            from_node, Port(from_port), to_node, Port(to_port), waypoints,
        )
        if len(self.scene.connections) > before:
            self._commit()
        return conn

    def add_area(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        title: str = "Section",
        settings: Optional[AreaSettings] = None,
    ) -> Area:
        area = self.scene.add_area(x1, y1, x2, y2, title)
        if settings is not None:
            area.update_settings(settings)
        self._commit()
        return area

    # ----- mutation -----

    def delete(self, entity: Entity) -> bool:
        if not self.scene.delete(entity):
            return False
        current = self.selected
        if current is not None and self.scene.get(current.id) is not current:
            self.selection.clear()
        self._commit()
        return True

    def delete_selected(self) -> bool:
        entity = self.selected
        return entity is not None and self.delete(entity)

    def place_node(
        self,
        node: Node,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        settings: Optional[NodeSettings] = None,
    ) -> bool:
        """Move and/or resize a node; sizes are clamped to the minimum.

        *settings*, when given, is applied in the same history entry. Returns
        False, recording nothing, when the node ends up unchanged.
        """
        before = node.to_dict()
        if x is not None:
            node.x = x
        if y is not None:
            node.y = y
        if width is not None:
            node.width = max(NODE_MIN_WIDTH, width)
        if height is not None:
            node.height = max(NODE_MIN_HEIGHT, height)
        if settings is not None:
            node.update_settings(settings)
        return self._commit_if_changed(node, before)

    def place_area(
        self,
        area: Area,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        settings: Optional[AreaSettings] = None,
    ) -> bool:
        before = area.to_dict()
        area.x1, area.x2 = min(x1, x2), max(x1, x2)
        area.y1, area.y2 = min(y1, y2), max(y1, y2)
        area.enforce_min_size()
        if settings is not None:
            area.update_settings(settings)
        return self._commit_if_changed(area, before)

    def apply_node_settings(self, node: Union[Node, str], settings: NodeSettings) -> bool:
        target = self.scene.get_node(node) if isinstance(node, str) else node
        if target is None:
            return False
        target.update_settings(settings)
        self._commit()
        return True

    def apply_area_settings(self, area: Union[Area, str], settings: AreaSettings) -> bool:
        target = self.scene.get_area(area) if isinstance(area, str) else area
        if target is None:
            return False
        target.update_settings(settings)
        self._commit()
        return True

    def apply_theme(self, theme: ColorTheme, entities: Iterable[Union[Node, Area]]) -> int:
        """Restyle several entities as a single history entry."""
        count = 0
        for entity in entities:
            theme.apply(entity)
            count += 1
        if count:
            self._commit()
        return count

    def bring_to_front(self, entity: Entity) -> None:
        self.scene.bring_to_front(entity)
        self._commit()

    def start_area_marking(self) -> list[Effect]:
        effects = self.controller.start_area_marking()
        self._route(effects)
        return effects

    # ----- history -----

    def undo(self) -> bool:
        effects = self.controller.undo()
        self._route(effects)
        return bool(effects)

    def redo(self) -> bool:
        effects = self.controller.redo()
        self._route(effects)
        return bool(effects)

    def _commit(self) -> None:
        self.history.commit(self.scene)
        if self.renderer is not None:
            self.render()

    def _commit_if_changed(self, entity: Union[Node, Area], before: dict[str, Any]) -> bool:
        if entity.to_dict() == before:
            return False
        self._commit()
        return True

    # ----- persistence -----

    def export_json(self, indent: Optional[int] = 2) -> str:
        return self.scene.to_json(indent)

    def import_json(self, text: str) -> dict[str, int]:
        """Replace the scene with a serialized document and record it.

        Raises ValidationError if *text* is not a well-formed scene document.
        """
        data = parse_scene_json(text)
        self.scene.load_dict(data)
        dropped = len(data.get("connections") or []) - len(self.scene.connections)
        if dropped:
            logger.warning(
                "Import dropped %d connection(s): unresolved endpoint, self-connection or duplicate",
                dropped,
            )
        self.controller.state = IDLE
        self.selection.clear()
        self._commit()
        return {
            "nodes": len(self.scene.nodes),
            "connections": len(self.scene.connections),
            "areas": len(self.scene.areas),
            "dropped": dropped,
        }

    def clear(self) -> None:
        """Empty the scene, forget history and reset the view."""
        self.scene.clear()
        self.history.clear()
        self.history.commit(self.scene)
        self.viewport.reset()
        self.controller.state = IDLE
        self.selection.clear()
        if self.renderer is not None:
            self.render()

    # ----- view -----

    def zoom_at(self, x: float, y: float, delta: float) -> None:
        self.viewport.zoom_at(
            Point(x, y), delta,
            zoom_in=self.config.zoom_in_step,
            zoom_out=self.config.zoom_out_step,
        )

    def fit_to_content(self) -> bool:
        return self.viewport.fit_to_content(self.scene.nodes, self.config.fit_padding)

    def resize(self, width: float, height: float) -> None:
        self.surface.width, self.surface.height = width, height
        self.viewport.resize(width, height)

    # ----- queries -----

    def hit_at(self, x: float, y: float) -> Hit:
        """Hit-test at a *screen* point."""
        world = self.viewport.screen_to_world(Point(x, y))
        return hit_test(
            self.scene, world.x, world.y, self.viewport.zoom,
            selected_node=self.selection.node,
            selected_area=self.selection.area,
        )

    def bounding_box(self, include_areas: bool = True) -> Optional[Rect]:
        return self.scene.bounding_box(include_areas)

    def preview(self) -> Preview:
        return self.controller.preview()

    def render(self, renderer: Optional[Renderer] = None) -> None:
        """Draw areas, then connections, then nodes, each in z order."""
        target = renderer or self.renderer
        if target is None:
            return
        for entity in self.scene.draw_order():
            target.draw(entity, entity in self.selection)

    def status(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "state": type(self.controller.state).__name__,
            "selected": self.selected.id if self.selected is not None else None,
            "history": {
                "index": self.history.index,
                "size": len(self.history),
                "can_undo": self.history.can_undo,
                "can_redo": self.history.can_redo,
            },
        }


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_editor(
    mount: Any,
    renderer: Optional[Renderer] = None,
    dialogs: Optional[SettingsDialogs] = None,
    config: Optional[EditorConfig] = None,
) -> Editor:
    """Build an editor bound to *mount*.

    *mount* must expose numeric ``width`` and ``height``; anything else is a
    setup error.
    """
    if mount is None:
        raise EditorSetupError("A mount target is required.")
    try:
        width = float(mount.width)
        height = float(mount.height)
    except (AttributeError, TypeError, ValueError) as exc:
        raise EditorSetupError(
            f"Mount target {mount!r} must expose numeric width and height."
        ) from exc
    if width <= 0 or height <= 0:
        raise EditorSetupError(f"Mount target has an empty size ({width}x{height}).")
    cfg = config or EditorConfig()
    try:
        cfg.mode = validate_enum(cfg.mode, "mode", MODES)
    except ValidationError as exc:
        raise EditorSetupError(exc.message) from exc
    surface = mount if isinstance(mount, Surface) else Surface(width, height)
    try:
        return Editor(surface, renderer, dialogs, cfg)
    except ValueError as exc:
        raise EditorSetupError(str(exc)) from exc
