"""
Input validation for flowcanvas editors and tool parameters.

Every piece of external input (tool parameters, settings payloads, imported
documents, replayed events) passes through these validators, which raise
``ValidationError`` with a message naming the offending field.
"""

from __future__ import annotations

import json
import re
from typing import Any


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_COLOR = re.compile(
    r"^rgba?\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*(?:,\s*(?:\d+(?:\.\d*)?|\.\d+)\s*)?\)$"
)


def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_string(value: Any, field_name: str, *, allow_empty: bool = True) -> str:
    """Ensure *value* is a string (optionally non-empty)."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    if not allow_empty and not value.strip():
        raise ValidationError(f"'{field_name}' must not be empty.")
    return value


def validate_color(value: Any, field_name: str) -> str:
    """Validate a hex color (#RGB, #RRGGBB, #RRGGBBAA) or an rgb()/rgba() string."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a color string, got {type(value).__name__}.")
    value = value.strip()
    if not (_HEX_COLOR.match(value) or _RGB_COLOR.match(value)):
        raise ValidationError(
            f"'{field_name}' must be a hex color (#RGB, #RRGGBB, #RRGGBBAA) "
            f"or rgb()/rgba(), got '{value}'."
        )
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a numeric value and optional range."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}."
        )
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}."
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}."
        )
    return value


def validate_bool(value: Any, field_name: str) -> bool:
    """Ensure *value* is a boolean."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a boolean, got {type(value).__name__}."
        )
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Validate that a string value is one of the allowed choices (case-insensitive).

    Returns the lower-case form, which is how every flowcanvas enum is spelled.
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}."
        )
    normalized = value.strip().lower()
    if normalized not in {a.lower() for a in allowed}:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{field_name}' must be one of [{choices}], got '{value}'."
        )
    return normalized


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    """Ensure *value* is a dict."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"'{field_name}' must be a dict/object, got {type(value).__name__}."
        )
    return value


def validate_file_path(value: Any, field_name: str) -> str:
    """Validate that a file path is a non-empty string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty file path string.")
    return value.strip()


# ---------------------------------------------------------------------------
# Domain enums / actions
# ---------------------------------------------------------------------------

NODE_TYPES = {"start", "process", "decision", "end"}
PORTS = {"top", "right", "bottom", "left"}

FONT_SIZE_RANGE = (8, 48)
OUTLINE_WIDTH_RANGE = (1, 10)

_CANVAS_ACTIONS = {"CREATE", "LIST", "CLEAR", "IMPORT_JSON", "EXPORT_JSON", "SAVE", "LOAD"}
_DRAW_ACTIONS = {
    "ADD_NODES", "ADD_CONNECTIONS", "ADD_AREA", "UPDATE_NODES",
    "UPDATE_AREAS", "DELETE", "APPLY_THEME",
}
_HISTORY_ACTIONS = {"UNDO", "REDO", "STATUS"}
_VIEW_ACTIONS = {"ZOOM_AT", "PAN", "FIT", "RESET", "INFO"}
_INTERACT_ACTIONS = {"EVENTS"}
_INSPECT_ACTIONS = {"ENTITIES", "PATH", "HIT", "BOUNDS"}

_EVENT_TYPES = {
    "pointer_down", "pointer_move", "pointer_up",
    "wheel", "key_down", "key_up", "text_input",
}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Validate the action parameter for a tool."""
    if not isinstance(value, str) or not value.strip():
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    normalized = value.strip().upper()
    if normalized not in allowed:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"Unknown {tool_name} action '{value}'. Valid actions: {choices}."
        )
    return value.strip().lower()


def validate_node_type(value: Any, field_name: str = "type") -> str:
    """Validate a node type (start, process, decision, end)."""
    return validate_enum(value, field_name, NODE_TYPES)


def validate_port(value: Any, field_name: str = "port") -> str:
    """Validate a port name (top, right, bottom, left)."""
    return validate_enum(value, field_name, PORTS)


def validate_font_size(value: Any, field_name: str = "fontSize") -> int:
    """Validate font size (8..48)."""
    lo, hi = FONT_SIZE_RANGE
    return validate_int(value, field_name, min_val=lo, max_val=hi)


def validate_outline_width(value: Any, field_name: str = "outlineWidth") -> float:
    """Validate outline width (1..10)."""
    lo, hi = OUTLINE_WIDTH_RANGE
    return validate_number(value, field_name, min_val=lo, max_val=hi)


def validate_point(value: Any, field_name: str) -> tuple[float, float]:
    """Validate an ``{"x": .., "y": ..}`` mapping."""
    validate_dict(value, field_name)
    for key in ("x", "y"):
        if key not in value:
            raise ValidationError(f"'{field_name}' missing required key '{key}'.")
    return (
        validate_number(value["x"], f"{field_name}.x"),
        validate_number(value["y"], f"{field_name}.y"),
    )


# ---------------------------------------------------------------------------
# Settings payloads
# ---------------------------------------------------------------------------

def validate_node_settings(payload: Any, where: str = "settings") -> dict[str, Any]:
    """Check a camelCase node settings mapping; only supplied keys are checked."""
    validate_dict(payload, where)
    if "text" in payload:
        validate_non_empty_string(payload["text"], f"{where}.text")
    if "link" in payload:
        validate_string(payload["link"], f"{where}.link")
    for key in ("fillColor", "fontColor", "outlineColor"):
        if key in payload:
            validate_color(payload[key], f"{where}.{key}")
    if "fontSize" in payload:
        validate_font_size(payload["fontSize"], f"{where}.fontSize")
    if "outlineWidth" in payload:
        validate_outline_width(payload["outlineWidth"], f"{where}.outlineWidth")
    return payload


def validate_area_settings(payload: Any, where: str = "settings") -> dict[str, Any]:
    """Check a camelCase area settings mapping; only supplied keys are checked."""
    validate_dict(payload, where)
    if "title" in payload:
        validate_string(payload["title"], f"{where}.title")
    for key in ("fillColor", "outlineColor", "titleBgColor"):
        if key in payload:
            validate_color(payload[key], f"{where}.{key}")
    return payload


# ---------------------------------------------------------------------------
# Node / connection / area dict validators
# ---------------------------------------------------------------------------

def validate_node_dict(n: dict, index: int) -> None:
    """Validate a single node dict from the nodes list."""
    if not isinstance(n, dict):
        raise ValidationError(f"Node at index {index} must be a dict/object.")
    if ("x" in n) != ("y" in n):
        raise ValidationError(f"Node at index {index}: give both 'x' and 'y' or neither.")
    for key in ("x", "y"):
        if key in n and (not isinstance(n[key], (int, float)) or isinstance(n[key], bool)):
            raise ValidationError(f"Node at index {index}: '{key}' must be a number.")
    if "type" in n and (not isinstance(n["type"], str) or n["type"].lower() not in NODE_TYPES):
        choices = ", ".join(sorted(NODE_TYPES))
        raise ValidationError(
            f"Node at index {index}: unknown type '{n['type']}'. Valid types: {choices}."
        )
    if "text" in n and not isinstance(n["text"], str):
        raise ValidationError(f"Node at index {index}: 'text' must be a string.")
    for key in ("width", "height"):
        if key in n:
            if not isinstance(n[key], (int, float)) or isinstance(n[key], bool):
                raise ValidationError(f"Node at index {index}: '{key}' must be a number.")
            if n[key] <= 0:
                raise ValidationError(f"Node at index {index}: '{key}' must be > 0.")
    style = {k: v for k, v in n.items() if k in _NODE_STYLE_KEYS}
    validate_node_settings(style, f"nodes[{index}]")


_NODE_STYLE_KEYS = {"link", "fillColor", "fontColor", "fontSize", "outlineColor", "outlineWidth"}


def validate_connection_dict(c: dict, index: int) -> None:
    """Validate a single connection dict (add_connections)."""
    if not isinstance(c, dict):
        raise ValidationError(f"Connection at index {index} must be a dict/object.")
    for key in ("from_id", "to_id"):
        if key not in c:
            raise ValidationError(f"Connection at index {index} missing required key '{key}'.")
        if not isinstance(c[key], str) or not c[key].strip():
            raise ValidationError(
                f"Connection at index {index}: '{key}' must be a non-empty string."
            )
    if c["from_id"] == c["to_id"]:
        raise ValidationError(
            f"Connection at index {index}: 'from_id' and 'to_id' must be different "
            "(self-connections not supported)."
        )
    for key in ("from_port", "to_port"):
        if key in c and (not isinstance(c[key], str) or c[key].lower() not in PORTS):
            raise ValidationError(
                f"Connection at index {index}: '{key}' must be one of "
                f"[{', '.join(sorted(PORTS))}]."
            )
    if "waypoints" in c:
        validate_list(c["waypoints"], f"connections[{index}].waypoints")
        for i, wp in enumerate(c["waypoints"]):
            validate_point(wp, f"connections[{index}].waypoints[{i}]")


def validate_area_dict(a: Any) -> None:
    """Validate an area dict (add_area)."""
    validate_dict(a, "area")
    for key in ("x1", "y1", "x2", "y2"):
        if key not in a:
            raise ValidationError(f"Area missing required key '{key}'.")
        validate_number(a[key], f"area.{key}")
    validate_area_settings(
        {k: v for k, v in a.items() if k in ("title", "fillColor", "outlineColor", "titleBgColor")},
        "area",
    )


def validate_update_dict(u: dict, index: int) -> None:
    """Validate a single update dict from the updates list."""
    if not isinstance(u, dict):
        raise ValidationError(f"Update at index {index} must be a dict/object.")
    if "id" not in u:
        raise ValidationError(f"Update at index {index} missing required key 'id'.")
    if not isinstance(u["id"], str) or not u["id"].strip():
        raise ValidationError(f"Update at index {index}: 'id' must be a non-empty string.")
    for key in ("x", "y", "width", "height"):
        if key in u and (not isinstance(u[key], (int, float)) or isinstance(u[key], bool)):
            raise ValidationError(f"Update at index {index}: '{key}' must be a number.")
    for key in ("width", "height"):
        if key in u and u[key] <= 0:
            raise ValidationError(f"Update at index {index}: '{key}' must be > 0.")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def validate_event_dict(e: Any, index: int) -> str:
    """Validate one replayed input event; returns its normalized type."""
    if not isinstance(e, dict):
        raise ValidationError(f"Event at index {index} must be a dict/object.")
    if "type" not in e:
        raise ValidationError(f"Event at index {index} missing required key 'type'.")
    kind = validate_enum(e["type"], f"events[{index}].type", _EVENT_TYPES)
    if kind in ("pointer_down", "pointer_move", "pointer_up", "wheel"):
        for key in ("x", "y"):
            if key not in e:
                raise ValidationError(f"Event at index {index} missing required key '{key}'.")
            validate_number(e[key], f"events[{index}].{key}")
    if kind == "wheel":
        validate_number(e.get("delta_y", 0), f"events[{index}].delta_y")
    if kind == "pointer_down":
        if "button" in e:
            validate_int(e["button"], f"events[{index}].button", min_val=0, max_val=4)
        if "time_ms" in e:
            validate_number(e["time_ms"], f"events[{index}].time_ms")
    if kind in ("key_down", "key_up"):
        validate_non_empty_string(e.get("key"), f"events[{index}].key")
    if kind == "text_input":
        validate_string(e.get("text"), f"events[{index}].text")
    for flag in ("ctrl", "meta", "shift"):
        if flag in e:
            validate_bool(e[flag], f"events[{index}].{flag}")
    return kind


# ---------------------------------------------------------------------------
# Scene documents
# ---------------------------------------------------------------------------

def parse_scene_json(text: Any) -> dict[str, Any]:
    """Parse and structurally validate a serialized scene document."""
    validate_string(text, "json")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"'json' is not valid JSON: {exc.msg} (line {exc.lineno}).") from exc
    return validate_scene_dict(data)


def validate_scene_dict(data: Any) -> dict[str, Any]:
    """Check the shape of a scene document before it is loaded.

    Dangling connection endpoints are *not* an error here: the scene drops
    them while rebuilding. Node types and port names are written back in
    their normalized lower-case form.
    """
    validate_dict(data, "scene")
    for section in ("nodes", "connections", "areas"):
        if data.get(section) is not None:
            validate_list(data[section], section)

    node_ids: set[str] = set()
    for i, n in enumerate(data.get("nodes") or []):
        validate_dict(n, f"nodes[{i}]")
        for key in ("id", "type", "x", "y"):
            if key not in n:
                raise ValidationError(f"'nodes[{i}]' missing required key '{key}'.")
        node_id = validate_non_empty_string(n["id"], f"nodes[{i}].id")
        if node_id in node_ids:
            raise ValidationError(f"'nodes[{i}].id' duplicates node id '{node_id}'.")
        node_ids.add(node_id)
        n["type"] = validate_node_type(n["type"], f"nodes[{i}].type")
        validate_number(n["x"], f"nodes[{i}].x")
        validate_number(n["y"], f"nodes[{i}].y")
        for key in ("width", "height"):
            if key in n:
                validate_number(n[key], f"nodes[{i}].{key}", min_val=0)

    for i, c in enumerate(data.get("connections") or []):
        validate_dict(c, f"connections[{i}]")
        for key in ("id", "fromNodeId", "fromPort", "toNodeId", "toPort"):
            if key not in c:
                raise ValidationError(f"'connections[{i}]' missing required key '{key}'.")
        for key in ("id", "fromNodeId", "toNodeId"):
            validate_non_empty_string(c[key], f"connections[{i}].{key}")
        c["fromPort"] = validate_port(c["fromPort"], f"connections[{i}].fromPort")
        c["toPort"] = validate_port(c["toPort"], f"connections[{i}].toPort")
        for j, wp in enumerate(c.get("waypoints") or []):
            validate_point(wp, f"connections[{i}].waypoints[{j}]")

    for i, a in enumerate(data.get("areas") or []):
        validate_dict(a, f"areas[{i}]")
        for key in ("id", "x1", "y1", "x2", "y2"):
            if key not in a:
                raise ValidationError(f"'areas[{i}]' missing required key '{key}'.")
        validate_non_empty_string(a["id"], f"areas[{i}].id")
        for key in ("x1", "y1", "x2", "y2"):
            validate_number(a[key], f"areas[{i}].{key}")
    return data
