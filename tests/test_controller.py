"""Tests for the interaction state machine."""

from flowcanvas.controller import (
    BUTTON_MIDDLE,
    BUTTON_SECONDARY,
    AreaMarkingFinished,
    ConnectingNew,
    CursorHint,
    Dragging,
    EditingText,
    EditorConfig,
    Idle,
    InteractionController,
    KeyDown,
    KeyUp,
    MarkingArea,
    OpenAreaSettings,
    OpenNodeSettings,
    Panning,
    PointerDown,
    PointerMove,
    PointerUp,
    Reconnecting,
    Redraw,
    ResizingArea,
    ResizingNode,
    SelectionChanged,
    TextInput,
    Wheel,
)
from flowcanvas.geometry import Point, Rect
from flowcanvas.history import History
from flowcanvas.models import ConnectionEnd, NodeType
from flowcanvas.routing import Port
from flowcanvas.scene import Scene
from flowcanvas.viewport import Viewport


def _controller(mode: str = "edit") -> InteractionController:
    scene = Scene()
    history = History()
    history.commit(scene)
    return InteractionController(scene, Viewport(), history, EditorConfig(mode=mode))


def _with_nodes() -> InteractionController:
    ctl = _controller()
    ctl.scene.add_node(NodeType.START, "A", 100, 100)
    ctl.scene.add_node(NodeType.PROCESS, "B", 300, 100)
    ctl.commit()
    return ctl


def _kinds(effects: list) -> list[type]:
    return [type(e) for e in effects]


# ---------------------------------------------------------------------------
# Node drag / resize
# ---------------------------------------------------------------------------

class TestDragNode:
    def test_drag_moves_node_and_commits_once(self) -> None:
        ctl = _with_nodes()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)

        effects = ctl.dispatch(PointerDown(110, 100))
        assert isinstance(ctl.state, Dragging)
        assert SelectionChanged in _kinds(effects)
        assert ctl.selection.node is node

        ctl.dispatch(PointerMove(160, 140))
        assert node.center == Point(150, 140)
        assert len(ctl.history) == size

        ctl.dispatch(PointerUp(160, 140))
        assert isinstance(ctl.state, Idle)
        assert len(ctl.history) == size + 1

    def test_click_without_move_records_nothing(self) -> None:
        ctl = _with_nodes()
        size = len(ctl.history)
        ctl.dispatch(PointerDown(100, 100))
        ctl.dispatch(PointerUp(100, 100))
        assert len(ctl.history) == size

    def test_escape_rolls_back(self) -> None:
        ctl = _with_nodes()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)
        ctl.dispatch(PointerDown(100, 100))
        ctl.dispatch(PointerMove(400, 400))
        ctl.dispatch(KeyDown("Escape"))
        assert isinstance(ctl.state, Idle)
        assert node.center == Point(100, 100)
        ctl.dispatch(PointerUp(400, 400))
        assert len(ctl.history) == size

    def test_second_button_mid_gesture_is_ignored(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100))
        state = ctl.state
        assert ctl.dispatch(PointerDown(100, 100, button=BUTTON_SECONDARY)) == []
        assert ctl.state is state


def test_resize_selected_node_from_corner() -> None:
    ctl = _with_nodes()
    node = ctl.scene.get_node("node_1")
    ctl.selection.set(node)
    size = len(ctl.history)

    ctl.dispatch(PointerDown(160, 130))
    assert isinstance(ctl.state, ResizingNode)
    ctl.dispatch(PointerMove(170, 140))
    assert (node.width, node.height) == (140, 80)
    assert node.center == Point(100, 100)
    ctl.dispatch(PointerUp(170, 140))
    assert len(ctl.history) == size + 1


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class TestConnecting:
    def test_drag_port_to_port_creates_connection(self) -> None:
        ctl = _with_nodes()
        size = len(ctl.history)
        ctl.dispatch(PointerDown(160, 100))
        assert isinstance(ctl.state, ConnectingNew)

        ctl.dispatch(PointerMove(238, 101))
        assert ctl.state.target == (ctl.scene.get_node("node_2"), Port.LEFT)
        assert ctl.preview().link == [Point(160, 100), Point(240, 100)]

        ctl.dispatch(PointerUp(238, 101))
        assert isinstance(ctl.state, Idle)
        conn = ctl.scene.connections[0]
        assert (conn.from_port, conn.to_port) == (Port.RIGHT, Port.LEFT)
        assert len(ctl.history) == size + 1

    def test_release_over_nothing_creates_nothing(self) -> None:
        ctl = _with_nodes()
        size = len(ctl.history)
        ctl.dispatch(PointerDown(160, 100))
        ctl.dispatch(PointerMove(500, 500))
        assert ctl.preview().link[-1] == Point(500, 500)
        ctl.dispatch(PointerUp(500, 500))
        assert ctl.scene.connections == ()
        assert len(ctl.history) == size

    def test_release_on_own_port_creates_nothing(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(160, 100))
        ctl.dispatch(PointerUp(100, 70))
        assert ctl.scene.connections == ()


class TestReconnecting:
    def _setup(self) -> InteractionController:
        ctl = _with_nodes()
        a, b = ctl.scene.nodes
        ctl.scene.add_node(NodeType.END, "C", 300, 300)
        ctl.scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
        ctl.commit()
        return ctl

    def test_drag_endpoint_to_new_port(self) -> None:
        ctl = self._setup()
        conn = ctl.scene.connections[0]
        size = len(ctl.history)

        ctl.dispatch(PointerDown(240, 100))
        assert isinstance(ctl.state, Reconnecting)
        assert ctl.state.end == ConnectionEnd.TO

        ctl.dispatch(PointerMove(300, 272))
        ctl.dispatch(PointerUp(300, 272))
        assert conn.to_node is ctl.scene.get_node("node_3")
        assert conn.to_port == Port.TOP
        assert len(ctl.history) == size + 1

    def test_release_over_nothing_keeps_connection(self) -> None:
        ctl = self._setup()
        conn = ctl.scene.connections[0]
        size = len(ctl.history)
        ctl.dispatch(PointerDown(240, 100))
        ctl.dispatch(PointerUp(600, 600))
        assert conn.to_node is ctl.scene.get_node("node_2")
        assert len(ctl.history) == size

    def test_drop_on_fixed_node_is_refused(self) -> None:
        ctl = self._setup()
        conn = ctl.scene.connections[0]
        ctl.dispatch(PointerDown(240, 100))
        ctl.dispatch(PointerUp(100, 70))
        assert conn.to_node is ctl.scene.get_node("node_2")


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------

class TestAreaMarking:
    def test_mark_rectangle(self) -> None:
        ctl = _controller()
        ctl.start_area_marking()
        assert isinstance(ctl.state, MarkingArea)

        ctl.dispatch(PointerDown(10, 20))
        ctl.dispatch(PointerMove(210, 170))
        assert ctl.preview().rubber_band == Rect(10, 20, 200, 150)

        effects = ctl.dispatch(PointerUp(210, 170))
        area = ctl.scene.areas[0]
        assert (area.x1, area.y1, area.x2, area.y2) == (10, 20, 210, 170)
        assert AreaMarkingFinished(area) in effects
        assert OpenAreaSettings in _kinds(effects)
        assert ctl.selection.area is area
        assert len(ctl.history) == 2
        assert isinstance(ctl.state, Idle)

    def test_escape_cancels_without_area(self) -> None:
        ctl = _controller()
        ctl.start_area_marking()
        ctl.dispatch(PointerDown(10, 20))
        ctl.dispatch(PointerMove(210, 170))
        effects = ctl.dispatch(KeyDown("Escape"))
        assert AreaMarkingFinished(None) in effects
        assert ctl.scene.areas == ()
        assert len(ctl.history) == 1

    def test_click_without_drag_creates_nothing(self) -> None:
        ctl = _controller()
        ctl.start_area_marking()
        ctl.dispatch(PointerDown(10, 20))
        effects = ctl.dispatch(PointerUp(10, 20))
        assert AreaMarkingFinished(None) in effects
        assert ctl.scene.areas == ()

    def test_pan_resumes_marking(self) -> None:
        ctl = _controller()
        ctl.start_area_marking()
        ctl.dispatch(PointerDown(10, 20, button=BUTTON_MIDDLE))
        assert isinstance(ctl.state, Panning)
        ctl.dispatch(PointerMove(40, 20))
        ctl.dispatch(PointerUp(40, 20))
        assert isinstance(ctl.state, MarkingArea)
        assert ctl.viewport.pan_x == 30


class TestAreaGestures:
    def _setup(self) -> InteractionController:
        ctl = _controller()
        ctl.scene.add_area(0, 100, 200, 200)
        ctl.commit()
        return ctl

    def test_drag_by_title_bar(self) -> None:
        ctl = self._setup()
        area = ctl.scene.areas[0]
        size = len(ctl.history)
        ctl.dispatch(PointerDown(100, 85))
        ctl.dispatch(PointerMove(150, 85))
        ctl.dispatch(PointerUp(150, 85))
        assert (area.x1, area.y1, area.x2, area.y2) == (50, 100, 250, 200)
        assert len(ctl.history) == size + 1

    def test_resize_selected_area(self) -> None:
        ctl = self._setup()
        area = ctl.scene.areas[0]
        ctl.selection.set(area)
        ctl.dispatch(PointerDown(200, 150))
        assert isinstance(ctl.state, ResizingArea)
        ctl.dispatch(PointerMove(250, 150))
        ctl.dispatch(PointerUp(250, 150))
        assert (area.x1, area.x2) == (0, 250)

    def test_click_on_body_selects_without_gesture(self) -> None:
        ctl = self._setup()
        ctl.dispatch(PointerDown(100, 150))
        assert isinstance(ctl.state, Idle)
        assert ctl.selection.area is ctl.scene.areas[0]

    def test_double_click_title_opens_settings(self) -> None:
        ctl = self._setup()
        size = len(ctl.history)
        ctl.dispatch(PointerDown(100, 85, time_ms=0))
        ctl.dispatch(PointerUp(100, 85))
        effects = ctl.dispatch(PointerDown(100, 85, time_ms=120))
        assert OpenAreaSettings(ctl.scene.areas[0], 100, 85) in effects
        assert len(ctl.history) == size


# ---------------------------------------------------------------------------
# Double-click on nodes
# ---------------------------------------------------------------------------

class TestDoubleClick:
    def test_opens_node_settings_without_history(self) -> None:
        ctl = _with_nodes()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)
        ctl.dispatch(PointerDown(100, 100, time_ms=1000))
        ctl.dispatch(PointerUp(100, 100))
        effects = ctl.dispatch(PointerDown(100, 100, time_ms=1200))
        assert OpenNodeSettings(node, 100, 100) in effects
        assert isinstance(ctl.state, Idle)
        assert len(ctl.history) == size

    def test_slow_second_click_is_a_new_click(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100, time_ms=0))
        ctl.dispatch(PointerUp(100, 100))
        effects = ctl.dispatch(PointerDown(100, 100, time_ms=300))
        assert OpenNodeSettings not in _kinds(effects)
        assert isinstance(ctl.state, Dragging)

    def test_clicks_on_different_nodes(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100, time_ms=0))
        ctl.dispatch(PointerUp(100, 100))
        effects = ctl.dispatch(PointerDown(300, 100, time_ms=50))
        assert OpenNodeSettings not in _kinds(effects)


# ---------------------------------------------------------------------------
# Panning / selection / cursor
# ---------------------------------------------------------------------------

class TestPanning:
    def test_drag_on_empty_space_pans(self) -> None:
        ctl = _with_nodes()
        size = len(ctl.history)
        ctl.dispatch(PointerDown(500, 500))
        assert isinstance(ctl.state, Panning)
        ctl.dispatch(PointerMove(520, 490))
        assert (ctl.viewport.pan_x, ctl.viewport.pan_y) == (20, -10)
        ctl.dispatch(PointerUp(520, 490))
        assert isinstance(ctl.state, Idle)
        assert len(ctl.history) == size

    def test_escape_restores_pan(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(500, 500))
        ctl.dispatch(PointerMove(600, 600))
        ctl.dispatch(KeyDown("Escape"))
        assert (ctl.viewport.pan_x, ctl.viewport.pan_y) == (0, 0)

    def test_secondary_button_pans_over_a_node(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100, button=BUTTON_SECONDARY))
        assert isinstance(ctl.state, Panning)

    def test_ctrl_click_pans(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100, ctrl=True))
        assert isinstance(ctl.state, Panning)

    def test_space_held_pans(self) -> None:
        ctl = _with_nodes()
        assert ctl.dispatch(KeyDown(" ")) == [CursorHint("grab")]
        ctl.dispatch(PointerDown(100, 100))
        assert isinstance(ctl.state, Panning)
        ctl.dispatch(PointerUp(100, 100))
        ctl.dispatch(KeyUp(" "))
        assert not ctl.pan_mode

    def test_pan_moves_hit_targets(self) -> None:
        ctl = _with_nodes()
        ctl.viewport.pan_to(50, 0)
        ctl.dispatch(PointerDown(150, 100))
        assert ctl.selection.node is ctl.scene.get_node("node_1")


def test_clicking_empty_space_deselects() -> None:
    ctl = _with_nodes()
    ctl.selection.set(ctl.scene.get_node("node_1"))
    effects = ctl.dispatch(PointerDown(600, 600))
    assert ctl.selection.entity is None
    assert SelectionChanged in _kinds(effects)


def test_clicking_connection_selects_it() -> None:
    ctl = _with_nodes()
    a, b = ctl.scene.nodes
    conn = ctl.scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
    ctl.dispatch(PointerDown(200, 105))
    assert isinstance(ctl.state, Idle)
    assert ctl.selection.connection is conn


def test_idle_cursor_hints() -> None:
    ctl = _with_nodes()
    assert ctl.dispatch(PointerMove(100, 100)) == [CursorHint("move")]
    assert ctl.dispatch(PointerMove(160, 100)) == [CursorHint("crosshair")]
    assert ctl.dispatch(PointerMove(700, 700)) == [CursorHint("grab")]
    ctl.dispatch(KeyDown("Space"))
    assert ctl.dispatch(PointerMove(100, 100)) == [CursorHint("grab")]


# ---------------------------------------------------------------------------
# Keyboard commands
# ---------------------------------------------------------------------------

class TestKeyboard:
    def test_escape_in_idle_clears_selection(self) -> None:
        ctl = _with_nodes()
        ctl.selection.set(ctl.scene.get_node("node_1"))
        assert SelectionChanged in _kinds(ctl.dispatch(KeyDown("Escape")))
        assert ctl.selection.entity is None

    def test_delete_undo_redo(self) -> None:
        ctl = _with_nodes()
        a, b = ctl.scene.nodes
        ctl.scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
        ctl.commit()
        ctl.selection.set(a)

        ctl.dispatch(KeyDown("Delete"))
        assert ctl.scene.get_node("node_1") is None
        assert ctl.scene.connections == ()

        ctl.dispatch(KeyDown("z", ctrl=True))
        assert ctl.scene.get_node("node_1") is not None
        assert len(ctl.scene.connections) == 1
        assert ctl.selection.entity is None

        ctl.dispatch(KeyDown("Z", meta=True, shift=True))
        assert ctl.scene.get_node("node_1") is None
        ctl.dispatch(KeyDown("z", meta=True))
        ctl.dispatch(KeyDown("y", ctrl=True))
        assert ctl.scene.get_node("node_1") is None

    def test_backspace_deletes_selection(self) -> None:
        ctl = _with_nodes()
        ctl.selection.set(ctl.scene.get_node("node_2"))
        ctl.dispatch(KeyDown("Backspace"))
        assert len(ctl.scene.nodes) == 1

    def test_delete_with_nothing_selected(self) -> None:
        ctl = _with_nodes()
        size = len(ctl.history)
        assert ctl.dispatch(KeyDown("Delete")) == []
        assert len(ctl.history) == size

    def test_undo_at_start_does_nothing(self) -> None:
        ctl = _controller()
        assert ctl.dispatch(KeyDown("z", ctrl=True)) == []

    def test_shortcuts_ignored_mid_gesture(self) -> None:
        ctl = _with_nodes()
        ctl.dispatch(PointerDown(100, 100))
        ctl.dispatch(KeyDown("Delete"))
        assert len(ctl.scene.nodes) == 2


class TestTextEditing:
    def _editing(self) -> InteractionController:
        ctl = _with_nodes()
        ctl.selection.set(ctl.scene.get_node("node_1"))
        ctl.dispatch(KeyDown("Enter"))
        assert isinstance(ctl.state, EditingText)
        return ctl

    def test_type_and_commit(self) -> None:
        ctl = self._editing()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)
        ctl.dispatch(TextInput("BC"))
        assert node.text == "ABC"
        ctl.dispatch(KeyDown("Enter", shift=True))
        ctl.dispatch(TextInput("D"))
        assert node.text == "ABC\nD"
        ctl.dispatch(KeyDown("Enter"))
        assert isinstance(ctl.state, Idle)
        assert node.text == "ABC\nD"
        assert len(ctl.history) == size + 1

    def test_escape_reverts(self) -> None:
        ctl = self._editing()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)
        ctl.dispatch(TextInput("xyz"))
        ctl.dispatch(KeyDown("Escape"))
        assert node.text == "A"
        assert len(ctl.history) == size

    def test_empty_text_is_refused(self) -> None:
        ctl = self._editing()
        node = ctl.scene.get_node("node_1")
        size = len(ctl.history)
        ctl.dispatch(KeyDown("Backspace"))
        assert node.text == ""
        ctl.dispatch(KeyDown("Enter"))
        assert node.text == "A"
        assert len(ctl.history) == size

    def test_unchanged_text_records_nothing(self) -> None:
        ctl = self._editing()
        size = len(ctl.history)
        ctl.dispatch(KeyDown("Enter"))
        assert len(ctl.history) == size

    def test_pointer_down_finishes_edit(self) -> None:
        ctl = self._editing()
        node = ctl.scene.get_node("node_1")
        ctl.dispatch(TextInput("!"))
        ctl.dispatch(PointerDown(600, 600))
        assert node.text == "A!"
        assert isinstance(ctl.state, Panning)

    def test_begin_text_edit(self) -> None:
        ctl = _with_nodes()
        node = ctl.scene.get_node("node_2")
        ctl.begin_text_edit(node)
        assert ctl.state == EditingText(node, "B", "B")
        assert ctl.selection.node is node


# ---------------------------------------------------------------------------
# Wheel / view mode
# ---------------------------------------------------------------------------

def test_wheel_zooms_around_cursor() -> None:
    ctl = _with_nodes()
    effects = ctl.dispatch(Wheel(100, 100, -120))
    assert effects == [Redraw()]
    assert ctl.viewport.zoom > 1
    anchor = ctl.viewport.screen_to_world(Point(100, 100))
    assert round(anchor.x, 9) == 100 and round(anchor.y, 9) == 100


def test_view_mode_ignores_edits_but_zooms() -> None:
    ctl = _controller(mode="view")
    ctl.scene.add_node(NodeType.PROCESS, "A", 100, 100)
    assert ctl.dispatch(PointerDown(100, 100)) == []
    assert isinstance(ctl.state, Idle)
    assert ctl.dispatch(KeyDown("Delete")) == []
    ctl.dispatch(Wheel(0, 0, 1))
    assert ctl.viewport.zoom < 1
