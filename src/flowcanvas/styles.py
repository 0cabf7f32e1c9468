"""
Colour themes and the colour conversion they need.

Themes are small named palettes that can be applied to nodes and areas
through the regular settings path, so applying one is an ordinary settings
update (and an ordinary history entry when done through an editor).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from flowcanvas.models import Area, AreaSettings, Node, NodeSettings

logger = logging.getLogger(__name__)

DEFAULT_AREA_OPACITY = 0.1


# ---------------------------------------------------------------------------
# Colour helper
# ---------------------------------------------------------------------------

def hex_to_rgba(hex_color: str, alpha: float) -> str:
    """``#rrggbb`` (or ``#rgb``) plus an alpha -> ``rgba(r, g, b, a)``."""
    digits = hex_color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({r}, {g}, {b}, {alpha:g})"


# ---------------------------------------------------------------------------
# Color themes
# ---------------------------------------------------------------------------

@dataclass
class ColorTheme:
    """A named color palette for consistent diagram styling."""
    fill: str
    stroke: str
    font: str

    def node_settings(self) -> NodeSettings:
        return NodeSettings(
            fill_color=self.fill,
            outline_color=self.stroke,
            font_color=self.font,
        )

    def area_settings(self, opacity: float = DEFAULT_AREA_OPACITY) -> AreaSettings:
        return AreaSettings(
            fill_color=hex_to_rgba(self.fill, opacity),
            outline_color=self.stroke,
            title_bg_color=self.stroke,
        )

    def apply(self, entity: Union[Node, Area]) -> None:
        if isinstance(entity, Node):
            entity.update_settings(self.node_settings())
        else:
            entity.update_settings(self.area_settings())


class Themes:
    """Pre-built color themes."""
    BLUE = ColorTheme(fill="#dae8fc", stroke="#6c8ebf", font="#000000")
    GREEN = ColorTheme(fill="#d5e8d4", stroke="#82b366", font="#000000")
    YELLOW = ColorTheme(fill="#fff2cc", stroke="#d6b656", font="#000000")
    ORANGE = ColorTheme(fill="#ffe6cc", stroke="#d79b00", font="#000000")
    RED = ColorTheme(fill="#f8cecc", stroke="#b85450", font="#000000")
    PURPLE = ColorTheme(fill="#e1d5e7", stroke="#9673a6", font="#000000")
    GRAY = ColorTheme(fill="#f5f5f5", stroke="#666666", font="#333333")
    DARK = ColorTheme(fill="#333333", stroke="#000000", font="#ffffff")
    WHITE = ColorTheme(fill="#ffffff", stroke="#000000", font="#000000")


def theme_names() -> list[str]:
    return sorted(
        name.lower() for name, value in vars(Themes).items()
        if isinstance(value, ColorTheme)
    )


def get_theme(name: str) -> Optional[ColorTheme]:
    """Look up a theme by case-insensitive name; None (and a warning) if unknown."""
    theme = getattr(Themes, name.strip().upper(), None)
    if not isinstance(theme, ColorTheme):
        logger.warning("Unknown theme '%s'", name)
        return None
    return theme
