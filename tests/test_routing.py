"""Tests for the orthogonal router."""

import itertools

import pytest

from flowcanvas.geometry import Point
from flowcanvas.routing import (
    ALIGN_TOLERANCE,
    PORT_OFFSET,
    Port,
    is_orthogonal,
    offset_from_port,
    route_orthogonal,
)
from flowcanvas.scene import Scene
from flowcanvas.models import NodeType


def test_port_facing() -> None:
    assert Port.RIGHT.horizontal and not Port.RIGHT.vertical
    assert Port.TOP.vertical and not Port.TOP.horizontal
    assert Port.TOP.direction == (0, -1)
    assert Port.LEFT.direction == (-1, 0)


def test_offset_from_port() -> None:
    assert offset_from_port(Point(0, 0), Port.BOTTOM) == Point(0, PORT_OFFSET)
    assert offset_from_port(Point(0, 0), Port.LEFT, 5) == Point(-5, 0)


class TestDecisionTable:
    def test_waypoints_win(self) -> None:
        wps = [Point(50, 0), Point(50, 80)]
        path = route_orthogonal(Point(0, 0), Port.RIGHT, Point(100, 0), Port.LEFT, wps)
        assert path == [Point(0, 0), *wps, Point(100, 0)]

    def test_aligned_horizontal(self) -> None:
        path = route_orthogonal(Point(0, 100), Port.RIGHT, Point(200, 105), Port.LEFT)
        assert path == [Point(0, 100), Point(200, 105)]

    def test_aligned_vertical(self) -> None:
        path = route_orthogonal(Point(50, 0), Port.BOTTOM, Point(52, 200), Port.TOP)
        assert path == [Point(50, 0), Point(52, 200)]

    def test_alignment_tolerance_is_strict(self) -> None:
        path = route_orthogonal(
            Point(0, 0), Port.RIGHT, Point(200, ALIGN_TOLERANCE), Port.LEFT,
        )
        assert len(path) == 6

    def test_perpendicular_from_horizontal(self) -> None:
        path = route_orthogonal(Point(0, 0), Port.RIGHT, Point(100, 80), Port.TOP)
        assert path == [Point(0, 0), Point(100, 0), Point(100, 80)]

    def test_perpendicular_from_vertical(self) -> None:
        path = route_orthogonal(Point(0, 0), Port.BOTTOM, Point(100, 80), Port.LEFT)
        assert path == [Point(0, 0), Point(0, 80), Point(100, 80)]

    def test_parallel_horizontal_jog(self) -> None:
        path = route_orthogonal(Point(0, 0), Port.RIGHT, Point(200, 100), Port.LEFT)
        assert path == [
            Point(0, 0),
            Point(30, 0),
            Point(100, 0),
            Point(100, 100),
            Point(170, 100),
            Point(200, 100),
        ]

    def test_parallel_vertical_jog(self) -> None:
        path = route_orthogonal(Point(0, 0), Port.BOTTOM, Point(100, 200), Port.TOP)
        assert path == [
            Point(0, 0),
            Point(0, 30),
            Point(0, 100),
            Point(100, 100),
            Point(100, 170),
            Point(100, 200),
        ]

    def test_same_facing_ports_offset_outwards(self) -> None:
        path = route_orthogonal(Point(0, 0), Port.RIGHT, Point(100, 50), Port.RIGHT)
        assert path[1] == Point(30, 0)
        assert path[-2] == Point(130, 50)


def test_every_automatic_route_is_orthogonal() -> None:
    start, end = Point(10, 20), Point(240, 170)
    for a, b in itertools.product(Port, repeat=2):
        path = route_orthogonal(start, a, end, b)
        assert len(path) >= 2
        assert path[0] == start and path[-1] == end
        assert is_orthogonal(path), (a, b, path)


def test_is_orthogonal_rejects_diagonals() -> None:
    assert not is_orthogonal([Point(0, 0), Point(10, 10)])
    assert is_orthogonal([Point(0, 0), Point(10, 0), Point(10, 10)])


def test_scene_scenario_right_to_left() -> None:
    scene = Scene()
    a = scene.add_node(NodeType.PROCESS, "A", 100, 100)
    b = scene.add_node(NodeType.PROCESS, "B", 300, 100)
    conn = scene.add_connection(a, Port.RIGHT, b, Port.LEFT)
    assert conn.path() == [Point(160, 100), Point(240, 100)]


def test_scene_right_to_top_has_one_corner() -> None:
    scene = Scene()
    a = scene.add_node(NodeType.PROCESS, "A", 100, 100)
    b = scene.add_node(NodeType.PROCESS, "B", 300, 300)
    conn = scene.add_connection(a, Port.RIGHT, b, Port.TOP)
    path = conn.path()
    assert len(path) == 3
    assert path[1] == Point(300, 100)


@pytest.mark.parametrize("port", list(Port))
def test_waypoints_are_used_verbatim_for_any_port(port: Port) -> None:
    wps = [Point(5, 5)]
    assert route_orthogonal(Point(0, 0), port, Point(9, 9), port, wps)[1] == Point(5, 5)
