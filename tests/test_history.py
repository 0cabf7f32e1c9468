"""Tests for snapshot-based undo/redo."""

import pytest

from flowcanvas.history import History, Snapshot
from flowcanvas.models import AreaSettings, NodeSettings, NodeType
from flowcanvas.routing import Port
from flowcanvas.scene import Scene


def _started() -> tuple[Scene, History]:
    scene = Scene()
    history = History()
    history.commit(scene)
    return scene, history


def test_initial_state() -> None:
    scene, history = _started()
    assert len(history) == 1
    assert history.index == 0
    assert not history.can_undo
    assert not history.can_redo


def test_undo_at_start_is_noop() -> None:
    scene, history = _started()
    assert history.undo(scene) is False
    assert history.index == 0


def test_redo_at_tail_is_noop() -> None:
    scene, history = _started()
    scene.add_node(NodeType.START, "A", 0, 0)
    history.commit(scene)
    assert history.redo(scene) is False
    assert len(scene.nodes) == 1


def test_undo_then_redo_restores_scene() -> None:
    scene, history = _started()
    a = scene.add_node(NodeType.START, "A", 0, 0)
    b = scene.add_node(NodeType.END, "B", 200, 0)
    history.commit(scene)
    scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
    b.fill_color = "#00ff00"
    history.commit(scene)
    before = scene.to_dict()

    assert history.undo(scene)
    assert len(scene.connections) == 0
    assert history.redo(scene)
    assert scene.to_dict() == before


def test_falsy_styles_survive_undo() -> None:
    scene, history = _started()
    node = scene.add_node(NodeType.PROCESS, "A", 0, 0)
    node.update_settings(NodeSettings(fill_color="", outline_width=0, link=None))
    area = scene.add_area(0, 0, 100, 100)
    area.update_settings(AreaSettings(title="", fill_color=""))
    history.commit(scene)
    scene.add_node(NodeType.END, "B", 200, 0)
    history.commit(scene)

    assert history.undo(scene)
    restored = scene.nodes[0]
    assert (restored.fill_color, restored.outline_width, restored.link) == ("", 0, None)
    assert (scene.areas[0].title, scene.areas[0].fill_color) == ("", "")

def test_restore_relinks_connections_to_new_nodes() -> None:
    scene, history = _started()
    a = scene.add_node(NodeType.START, "A", 0, 0)
    b = scene.add_node(NodeType.END, "B", 200, 0)
    scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
    history.commit(scene)
    scene.delete_node(b)
    history.commit(scene)
    history.undo(scene)
    conn = scene.connections[0]
    assert conn.from_node is scene.get_node("node_1")
    assert conn.to_node is scene.get_node("node_2")


def test_commit_after_undo_truncates_redo() -> None:
    scene, history = _started()
    scene.add_node(NodeType.START, "A", 0, 0)
    history.commit(scene)
    scene.add_node(NodeType.START, "B", 0, 0)
    history.commit(scene)
    history.undo(scene)
    scene.add_node(NodeType.END, "C", 0, 0)
    history.commit(scene)
    assert not history.can_redo
    assert len(history) == 3


def test_capacity_evicts_oldest() -> None:
    scene = Scene()
    history = History()
    for i in range(51):
        scene.add_node(NodeType.PROCESS, str(i), i * 10, 0)
        history.commit(scene)
    assert len(history) == 50
    while history.undo(scene):
        pass
    # The very first commit (one node) is gone; the oldest reachable has two
    assert len(scene.nodes) == 2


def test_ids_not_reused_after_undo() -> None:
    scene, history = _started()
    scene.add_node(NodeType.START, "A", 0, 0)
    scene.add_node(NodeType.START, "B", 0, 0)
    history.commit(scene)
    history.undo(scene)
    assert scene.add_node(NodeType.END, "C", 0, 0).id == "node_3"


def test_z_order_survives_undo_redo() -> None:
    scene, history = _started()
    a = scene.add_node(NodeType.START, "A", 0, 0)
    scene.add_node(NodeType.END, "B", 0, 0)
    history.commit(scene)
    scene.bring_to_front(a)
    history.commit(scene)
    history.undo(scene)
    history.redo(scene)
    assert [n.id for n in scene.nodes] == ["node_2", "node_1"]


def test_snapshot_is_immutable_text() -> None:
    scene = Scene()
    scene.add_node(NodeType.START, "A", 0, 0)
    snap = Snapshot.of(scene)
    assert snap.data() == scene.to_dict()
    with pytest.raises(AttributeError):
        snap.payload = "{}"  # type: ignore[misc]


def test_clear() -> None:
    scene, history = _started()
    history.clear()
    assert len(history) == 0
    assert history.current is None


def test_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        History(0)
