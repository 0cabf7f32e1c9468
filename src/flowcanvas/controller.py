"""
Interaction state machine.

The controller turns pointer/key events into scene, viewport and history
changes. States are immutable records; ``transition(state, event)`` returns
the next state plus a list of effects (cursor hints, dialog requests, redraw
notifications) that the host carries out. The controller is the only writer
of the scene, viewport and history it is given.

Event coordinates are screen coordinates; they are mapped to world
coordinates through the viewport before any hit-testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from flowcanvas.geometry import Point, Rect
from flowcanvas.history import DEFAULT_CAPACITY, History
from flowcanvas.hittest import HitKind, cursor_for, hit_test, port_under
from flowcanvas.models import Area, Connection, ConnectionEnd, Handle, Node
from flowcanvas.routing import Port
from flowcanvas.scene import Scene
from flowcanvas.viewport import (
    FIT_PADDING,
    MAX_ZOOM,
    MIN_ZOOM,
    ZOOM_IN_STEP,
    ZOOM_OUT_STEP,
    Viewport,
)

logger = logging.getLogger(__name__)

BUTTON_PRIMARY = 0
BUTTON_MIDDLE = 1
BUTTON_SECONDARY = 2


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class EditorConfig:
    """Tunable behaviour of an editor instance."""
    mode: str = "edit"  # "edit" or "view"
    double_click_ms: float = 300
    min_zoom: float = MIN_ZOOM
    max_zoom: float = MAX_ZOOM
    zoom_in_step: float = ZOOM_IN_STEP
    zoom_out_step: float = ZOOM_OUT_STEP
    history_capacity: int = DEFAULT_CAPACITY
    fit_padding: float = FIT_PADDING
    pan_buttons: tuple[int, ...] = (BUTTON_MIDDLE, BUTTON_SECONDARY)

    @property
    def editable(self) -> bool:
        return self.mode == "edit"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float
    button: int = BUTTON_PRIMARY
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    time_ms: float = 0.0


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    x: float
    y: float


@dataclass(frozen=True)
class Wheel:
    x: float
    y: float
    delta_y: float


@dataclass(frozen=True)
class KeyDown:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False


@dataclass(frozen=True)
class KeyUp:
    key: str


@dataclass(frozen=True)
class TextInput:
    text: str


Event = Union[PointerDown, PointerMove, PointerUp, Wheel, KeyDown, KeyUp, TextInput]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CursorHint:
    cursor: str


@dataclass(frozen=True)
class OpenNodeSettings:
    node: Node
    x: float
    y: float


@dataclass(frozen=True)
class OpenAreaSettings:
    area: Area
    x: float
    y: float


@dataclass(frozen=True)
class AreaMarkingFinished:
    area: Optional[Area]


@dataclass(frozen=True)
class SelectionChanged:
    pass


@dataclass(frozen=True)
class Redraw:
    pass


Effect = Union[
    CursorHint, OpenNodeSettings, OpenAreaSettings,
    AreaMarkingFinished, SelectionChanged, Redraw,
]


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    node: Node
    offset: Point
    start: Point


@dataclass(frozen=True)
class ResizingNode:
    node: Node
    handle: Handle
    pointer: Point
    start_width: float
    start_height: float


@dataclass(frozen=True)
class DraggingArea:
    area: Area
    offset: Point
    start: Rect


@dataclass(frozen=True)
class ResizingArea:
    area: Area
    handle: Handle
    pointer: Point
    start: Rect


@dataclass(frozen=True)
class ConnectingNew:
    from_node: Node
    from_port: Port
    pointer: Point
    target: Optional[tuple[Node, Port]] = None


@dataclass(frozen=True)
class Reconnecting:
    connection: Connection
    end: ConnectionEnd
    pointer: Point
    target: Optional[tuple[Node, Port]] = None


@dataclass(frozen=True)
class Panning:
    screen_start: Point
    pan_start: Point
    resume_marking: bool = False


@dataclass(frozen=True)
class MarkingArea:
    start: Optional[Point] = None
    end: Optional[Point] = None


@dataclass(frozen=True)
class EditingText:
    node: Node
    original: str
    buffer: str


State = Union[
    Idle, Dragging, ResizingNode, DraggingArea, ResizingArea,
    ConnectingNew, Reconnecting, Panning, MarkingArea, EditingText,
]

IDLE = Idle()


@dataclass
class Selection:
    """At most one of the three is set at any time."""
    node: Optional[Node] = None
    connection: Optional[Connection] = None
    area: Optional[Area] = None

    def clear(self) -> None:
        self.node = None
        self.connection = None
        self.area = None

    def set(self, entity: Union[Node, Connection, Area, None]) -> None:
        self.clear()
        if isinstance(entity, Node):
            self.node = entity
        elif isinstance(entity, Connection):
            self.connection = entity
        elif isinstance(entity, Area):
            self.area = entity

    @property
    def entity(self) -> Union[Node, Connection, Area, None]:
        return self.node or self.connection or self.area

    def __contains__(self, entity: object) -> bool:
        return entity is not None and entity is self.entity


@dataclass
class Preview:
    """Transient geometry a renderer may draw on top of the scene."""
    rubber_band: Optional[Rect] = None
    link: list[Point] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class InteractionController:
    """Consumes input events and applies them to a scene."""

    def __init__(
        self,
        scene: Scene,
        viewport: Viewport,
        history: History,
        config: Optional[EditorConfig] = None,
    ) -> None:
        self.scene = scene
        self.viewport = viewport
        self.history = history
        self.config = config or EditorConfig()
        self.state: State = IDLE
        self.selection = Selection()
        self.pan_mode = False
        self._last_click: Optional[object] = None
        self._last_click_ms = float("-inf")

    # ----- public entry points -----

    def dispatch(self, event: Event) -> list[Effect]:
        """Handle one event to completion and return its effects."""
        self.state, effects = self.transition(self.state, event)
        return effects

    def transition(self, state: State, event: Event) -> tuple[State, list[Effect]]:
        if isinstance(event, Wheel):
            return self._on_wheel(state, event)
        if not self.config.editable:
            return state, []
        if isinstance(event, PointerDown):
            return self._on_pointer_down(state, event)
        if isinstance(event, PointerMove):
            return self._on_pointer_move(state, event)
        if isinstance(event, PointerUp):
            return self._on_pointer_up(state, event)
        if isinstance(event, KeyDown):
            return self._on_key_down(state, event)
        if isinstance(event, KeyUp):
            return self._on_key_up(state, event)
        if isinstance(event, TextInput):
            return self._on_text_input(state, event)
        raise TypeError(f"unsupported event {event!r}")

    def start_area_marking(self) -> list[Effect]:
        self.state = MarkingArea()
        self.selection.clear()
        return [SelectionChanged(), CursorHint("crosshair"), Redraw()]

    def begin_text_edit(self, node: Node) -> list[Effect]:
        self.state = EditingText(node, node.text, node.text)
        self.selection.set(node)
        return [SelectionChanged(), Redraw()]

    def undo(self) -> list[Effect]:
        if not self.history.undo(self.scene):
            return []
        return self._after_restore()

    def redo(self) -> list[Effect]:
        if not self.history.redo(self.scene):
            return []
        return self._after_restore()

    def commit(self) -> None:
        self.history.commit(self.scene)

    def preview(self) -> Preview:
        state = self.state
        if isinstance(state, MarkingArea) and state.start and state.end:
            return Preview(rubber_band=Rect.from_corners(
                state.start.x, state.start.y, state.end.x, state.end.y,
            ))
        if isinstance(state, ConnectingNew):
            origin = state.from_node.port_position(state.from_port)
            return Preview(link=[origin, _target_point(state.target, state.pointer)])
        if isinstance(state, Reconnecting):
            conn = state.connection
            fixed = conn.end if state.end == ConnectionEnd.FROM else conn.start
            return Preview(link=[fixed, _target_point(state.target, state.pointer)])
        return Preview()

    # ----- pointer down -----

    def _on_pointer_down(self, state: State, ev: PointerDown) -> tuple[State, list[Effect]]:
        effects: list[Effect] = []
        if isinstance(state, EditingText):
            effects += self._finish_text_edit(state)
            state = IDLE
        elif not isinstance(state, (Idle, MarkingArea)):
            # A second button went down mid-gesture; the gesture owns the pointer
            return state, []

        screen = Point(ev.x, ev.y)
        world = self.viewport.screen_to_world(screen)
        marking = isinstance(state, MarkingArea)

        if self._is_pan_trigger(ev):
            pan = Point(self.viewport.pan_x, self.viewport.pan_y)
            return Panning(screen, pan, resume_marking=marking), effects + [CursorHint("grabbing")]

        if marking:
            return MarkingArea(start=world), effects + [Redraw()]

        hit = hit_test(
            self.scene, world.x, world.y, self.viewport.zoom,
            selected_node=self.selection.node,
            selected_area=self.selection.area,
        )
        if hit.kind not in (HitKind.AREA_TITLE, HitKind.NODE_BODY):
            self._last_click = None

        if hit.kind == HitKind.AREA_HANDLE:
            area = hit.entity
            return ResizingArea(area, hit.handle, world, area.bounds), effects

        if hit.kind == HitKind.AREA_TITLE:
            area = hit.entity
            if self._is_double_click(area, ev.time_ms):
                return IDLE, effects + [OpenAreaSettings(area, ev.x, ev.y)]
            self._select(area, effects)
            offset = Point(world.x - area.x1, world.y - area.y1)
            return DraggingArea(area, offset, area.bounds), effects

        if hit.kind == HitKind.CONNECTION_END:
            self._select(None, effects)
            return Reconnecting(hit.entity, hit.end, world), effects

        if hit.kind == HitKind.NODE_PORT:
            self._select(None, effects)
            return ConnectingNew(hit.entity, hit.port, world), effects

        if hit.kind == HitKind.NODE_HANDLE:
            node = hit.entity
            return ResizingNode(node, hit.handle, world, node.width, node.height), effects

        if hit.kind == HitKind.NODE_BODY:
            node = hit.entity
            if self._is_double_click(node, ev.time_ms):
                return IDLE, effects + [OpenNodeSettings(node, ev.x, ev.y)]
            self._select(node, effects)
            offset = Point(world.x - node.x, world.y - node.y)
            return Dragging(node, offset, node.center), effects

        if hit.kind in (HitKind.CONNECTION, HitKind.AREA_BODY):
            self._select(hit.entity, effects)
            return IDLE, effects

        self._select(None, effects)
        pan = Point(self.viewport.pan_x, self.viewport.pan_y)
        return Panning(screen, pan), effects + [CursorHint("grabbing")]

    # ----- pointer move -----

    def _on_pointer_move(self, state: State, ev: PointerMove) -> tuple[State, list[Effect]]:
        screen = Point(ev.x, ev.y)
        world = self.viewport.screen_to_world(screen)

        if isinstance(state, Idle):
            return state, [CursorHint(self._idle_cursor(world))]

        if isinstance(state, MarkingArea):
            if state.start is None:
                return state, [CursorHint("crosshair")]
            return MarkingArea(state.start, world), [Redraw()]

        if isinstance(state, Panning):
            delta = screen - state.screen_start
            self.viewport.pan_to(state.pan_start.x + delta.x, state.pan_start.y + delta.y)
            return state, [Redraw()]

        if isinstance(state, ConnectingNew):
            target = port_under(
                self.scene, world.x, world.y, self.viewport.zoom, exclude=state.from_node,
            )
            return ConnectingNew(state.from_node, state.from_port, world, target), [Redraw()]

        if isinstance(state, Reconnecting):
            fixed = state.connection.node_at(_other_end(state.end))
            target = port_under(
                self.scene, world.x, world.y, self.viewport.zoom, exclude=fixed,
            )
            return Reconnecting(state.connection, state.end, world, target), [Redraw()]

        if isinstance(state, ResizingArea):
            delta = world - state.pointer
            state.area.resize_from(state.handle, state.start, delta.x, delta.y)
            return state, [Redraw()]

        if isinstance(state, DraggingArea):
            state.area.move_to(world.x - state.offset.x, world.y - state.offset.y)
            return state, [Redraw()]

        if isinstance(state, ResizingNode):
            delta = world - state.pointer
            state.node.resize_from(
                state.handle, state.start_width, state.start_height, delta.x, delta.y,
            )
            return state, [Redraw()]

        if isinstance(state, Dragging):
            state.node.x = world.x - state.offset.x
            state.node.y = world.y - state.offset.y
            return state, [Redraw()]

        return state, []

    def _idle_cursor(self, world: Point) -> str:
        if self.pan_mode:
            return "grab"
        hit = hit_test(
            self.scene, world.x, world.y, self.viewport.zoom,
            selected_node=self.selection.node,
            selected_area=self.selection.area,
        )
        return cursor_for(hit)

    # ----- pointer up -----

    def _on_pointer_up(self, state: State, ev: PointerUp) -> tuple[State, list[Effect]]:
        world = self.viewport.screen_to_world(Point(ev.x, ev.y))

        if isinstance(state, MarkingArea):
            if state.start is None:
                return state, []
            return IDLE, self._finish_marking(state, ev)

        if isinstance(state, Panning):
            if state.resume_marking:
                return MarkingArea(), [CursorHint("crosshair")]
            return IDLE, [CursorHint("default")]

        if isinstance(state, ConnectingNew):
            target = port_under(
                self.scene, world.x, world.y, self.viewport.zoom, exclude=state.from_node,
            )
            if target is not None:
                before = len(self.scene.connections)
                node, port = target
                self.scene.add_connection(state.from_node, state.from_port, node, port)
                if len(self.scene.connections) > before:
                    self.commit()
            return IDLE, [Redraw()]

        if isinstance(state, Reconnecting):
            return IDLE, self._finish_reconnect(state, world)

        if isinstance(state, (Dragging, DraggingArea, ResizingNode, ResizingArea)):
            if self._geometry_changed(state):
                self.commit()
            return IDLE, [Redraw()]

        if isinstance(state, EditingText):
            return IDLE, self._finish_text_edit(state)

        return state, []

    def _finish_marking(self, state: MarkingArea, ev: PointerUp) -> list[Effect]:
        start, end = state.start, state.end
        if end is None or start.x == end.x or start.y == end.y:
            return [AreaMarkingFinished(None), Redraw()]
        area = self.scene.add_area(start.x, start.y, end.x, end.y)
        self.selection.set(area)
        self.commit()
        logger.debug("Marked %s", area.id)
        return [
            AreaMarkingFinished(area),
            SelectionChanged(),
            OpenAreaSettings(area, ev.x, ev.y),
            Redraw(),
        ]

    def _finish_reconnect(self, state: Reconnecting, world: Point) -> list[Effect]:
        conn = state.connection
        fixed = conn.node_at(_other_end(state.end))
        target = port_under(self.scene, world.x, world.y, self.viewport.zoom, exclude=fixed)
        if target is None:
            return [Redraw()]
        node, port = target
        before = conn.key()
        from_end = state.end == ConnectionEnd.FROM
        if self.scene.reconnect(conn, from_end, node, port) and conn.key() != before:
            self.commit()
        return [Redraw()]

    @staticmethod
    def _geometry_changed(state: State) -> bool:
        if isinstance(state, Dragging):
            return state.node.center != state.start
        if isinstance(state, ResizingNode):
            return (state.node.width, state.node.height) != (
                state.start_width, state.start_height,
            )
        if isinstance(state, (DraggingArea, ResizingArea)):
            return state.area.bounds != state.start
        return False

    # ----- keyboard -----

    def _on_key_down(self, state: State, ev: KeyDown) -> tuple[State, list[Effect]]:
        if isinstance(state, EditingText):
            return self._on_text_key(state, ev)

        if ev.key == "Escape":
            return IDLE, self._cancel(state)

        if ev.key == " " or ev.key == "Space":
            self.pan_mode = True
            if isinstance(state, Idle):
                return state, [CursorHint("grab")]
            return state, []

        if not isinstance(state, Idle):
            return state, []

        command = ev.ctrl or ev.meta
        key = ev.key.lower()
        if command and key == "z":
            return state, self.redo() if ev.shift else self.undo()
        if command and key == "y":
            return state, self.redo()
        if ev.key in ("Delete", "Backspace"):
            return state, self._delete_selection()
        if ev.key in ("Enter", "F2") and self.selection.node is not None:
            node = self.selection.node
            return EditingText(node, node.text, node.text), [Redraw()]
        return state, []

    def _on_key_up(self, state: State, ev: KeyUp) -> tuple[State, list[Effect]]:
        if ev.key == " " or ev.key == "Space":
            self.pan_mode = False
            if isinstance(state, Idle):
                return state, [CursorHint("default")]
        return state, []

    def _on_text_key(self, state: EditingText, ev: KeyDown) -> tuple[State, list[Effect]]:
        if ev.key == "Escape":
            state.node.text = state.original
            return IDLE, [Redraw()]
        if ev.key == "Enter" and not ev.shift:
            return IDLE, self._finish_text_edit(state)
        if ev.key == "Enter":
            return self._edit_text(state, state.buffer + "\n")
        if ev.key == "Backspace":
            return self._edit_text(state, state.buffer[:-1])
        return state, []

    def _on_text_input(self, state: State, ev: TextInput) -> tuple[State, list[Effect]]:
        if not isinstance(state, EditingText):
            return state, []
        return self._edit_text(state, state.buffer + ev.text)

    @staticmethod
    def _edit_text(state: EditingText, buffer: str) -> tuple[State, list[Effect]]:
        state.node.text = buffer
        return EditingText(state.node, state.original, buffer), [Redraw()]

    def _finish_text_edit(self, state: EditingText) -> list[Effect]:
        if not state.buffer.strip():
            # Empty labels are refused; keep what was there
            state.node.text = state.original
            return [Redraw()]
        state.node.text = state.buffer
        if state.buffer != state.original:
            self.commit()
        return [Redraw()]

    # ----- wheel -----

    def _on_wheel(self, state: State, ev: Wheel) -> tuple[State, list[Effect]]:
        self.viewport.zoom_at(
            Point(ev.x, ev.y), ev.delta_y,
            zoom_in=self.config.zoom_in_step,
            zoom_out=self.config.zoom_out_step,
        )
        return state, [Redraw()]

    # ----- helpers -----

    def _is_pan_trigger(self, ev: PointerDown) -> bool:
        if ev.button in self.config.pan_buttons:
            return True
        return ev.button == BUTTON_PRIMARY and (ev.ctrl or self.pan_mode)

    def _is_double_click(self, entity: object, time_ms: float) -> bool:
        if (
            self._last_click is entity
            and time_ms - self._last_click_ms < self.config.double_click_ms
        ):
            self._last_click = None
            self._last_click_ms = float("-inf")
            return True
        self._last_click = entity
        self._last_click_ms = time_ms
        return False

    def _select(self, entity, effects: list[Effect]) -> None:
        if entity is self.selection.entity:
            return
        self.selection.set(entity)
        effects.append(SelectionChanged())
        effects.append(Redraw())

    def _cancel(self, state: State) -> list[Effect]:
        """Drop a transient state without touching history."""
        if isinstance(state, Idle):
            if self.selection.entity is None:
                return []
            self.selection.clear()
            return [SelectionChanged(), Redraw()]
        if isinstance(state, MarkingArea):
            return [AreaMarkingFinished(None), CursorHint("default"), Redraw()]
        if isinstance(state, Dragging):
            state.node.x, state.node.y = state.start.x, state.start.y
        elif isinstance(state, ResizingNode):
            state.node.width, state.node.height = state.start_width, state.start_height
        elif isinstance(state, (DraggingArea, ResizingArea)):
            r = state.start
            state.area.x1, state.area.y1 = r.x, r.y
            state.area.x2, state.area.y2 = r.right, r.bottom
        elif isinstance(state, Panning):
            self.viewport.pan_to(state.pan_start.x, state.pan_start.y)
        return [CursorHint("default"), Redraw()]

    def _delete_selection(self) -> list[Effect]:
        entity = self.selection.entity
        if entity is None:
            return []
        self.scene.delete(entity)
        self.selection.clear()
        self.commit()
        return [SelectionChanged(), Redraw()]

    def _after_restore(self) -> list[Effect]:
        self.selection.clear()
        self.state = IDLE
        return [SelectionChanged(), Redraw()]


def _other_end(end: ConnectionEnd) -> ConnectionEnd:
    return ConnectionEnd.TO if end == ConnectionEnd.FROM else ConnectionEnd.FROM


def _target_point(target: Optional[tuple[Node, Port]], pointer: Point) -> Point:
    if target is None:
        return pointer
    node, port = target
    return node.port_position(port)
