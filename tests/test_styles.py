"""Tests for colour themes."""

from flowcanvas.models import Area, Node, NodeType
from flowcanvas.styles import (
    ColorTheme,
    Themes,
    get_theme,
    hex_to_rgba,
    theme_names,
)


def test_hex_to_rgba() -> None:
    assert hex_to_rgba("#2196f3", 0.1) == "rgba(33, 150, 243, 0.1)"
    assert hex_to_rgba("#fff", 1) == "rgba(255, 255, 255, 1)"


def test_theme_applies_to_node() -> None:
    node = Node("node_1", NodeType.PROCESS, 0, 0, text="keep")
    Themes.BLUE.apply(node)
    assert node.fill_color == "#dae8fc"
    assert node.outline_color == "#6c8ebf"
    assert node.font_color == "#000000"
    assert node.text == "keep"


def test_theme_applies_to_area_with_translucent_fill() -> None:
    area = Area("area_1", 0, 0, 100, 100, title="keep")
    Themes.RED.apply(area)
    assert area.fill_color == "rgba(248, 206, 204, 0.1)"
    assert area.outline_color == "#b85450"
    assert area.title_bg_color == "#b85450"
    assert area.title == "keep"


def test_area_settings_opacity() -> None:
    settings = Themes.DARK.area_settings(opacity=0.5)
    assert settings.fill_color == "rgba(51, 51, 51, 0.5)"


def test_theme_lookup() -> None:
    assert get_theme("Blue") is Themes.BLUE
    assert get_theme(" green ") is Themes.GREEN
    assert get_theme("chartreuse") is None
    names = theme_names()
    assert names == sorted(names)
    assert "purple" in names and "white" in names


def test_all_themes_have_required_fields() -> None:
    for name in dir(Themes):
        if name.startswith("_"):
            continue
        val = getattr(Themes, name)
        if isinstance(val, ColorTheme):
            assert val.fill
            assert val.stroke
            assert val.font
