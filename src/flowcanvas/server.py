"""
flowcanvas MCP Server — drive flowchart editors via Model Context Protocol.

Exposes 6 tools that let an agent build, edit and inspect flowchart scenes
through the same editor operations a GUI would use.

Tools:
  1. canvas   — lifecycle: create, list, clear, import/export JSON, save, load
  2. draw     — content:  add/update/delete nodes, connections, areas; themes
  3. history  — undo, redo, status
  4. view     — pan/zoom: zoom_at, pan, fit, reset, info
  5. interact — replay pointer/key events through the interaction controller
  6. inspect  — read-only: entities, routed paths, hit tests, bounds
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from flowcanvas.controller import (
    AreaMarkingFinished,
    CursorHint,
    EditorConfig,
    Effect,
    Event,
    KeyDown,
    KeyUp,
    OpenAreaSettings,
    OpenNodeSettings,
    PointerDown,
    PointerMove,
    PointerUp,
    Redraw,
    SelectionChanged,
    TextInput,
    Wheel,
)
from flowcanvas.editor import Editor, EditorSetupError, Surface, create_editor
from flowcanvas.geometry import Point
from flowcanvas.layout import choose_ports, next_free_position
from flowcanvas.models import Area, AreaSettings, Connection, Node, NodeSettings
from flowcanvas.routing import Port, is_orthogonal
from flowcanvas.styles import ColorTheme, Themes, get_theme, theme_names
from flowcanvas.validation import (
    ValidationError,
    validate_action,
    validate_area_dict,
    validate_area_settings,
    validate_bool,
    validate_connection_dict,
    validate_enum,
    validate_event_dict,
    validate_file_path,
    validate_list,
    validate_node_dict,
    validate_node_settings,
    validate_non_empty_string,
    validate_number,
    validate_update_dict,
    _CANVAS_ACTIONS,
    _DRAW_ACTIONS,
    _HISTORY_ACTIONS,
    _INSPECT_ACTIONS,
    _INTERACT_ACTIONS,
    _NODE_STYLE_KEYS,
    _VIEW_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging: keep routine FastMCP INFO chatter off stderr
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("flowcanvas")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "flowcanvas",
    instructions=(
        "MCP server for building and editing flowchart scenes.\n\n"
        "=== 6 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. canvas(action, ...) — lifecycle: create, list, clear, import_json,\n"
        "   export_json, save, load.\n"
        "2. draw(action, ...) — content: add_nodes, add_connections, add_area,\n"
        "   update_nodes, update_areas, delete, apply_theme.\n"
        "3. history(action, ...) — undo, redo, status.\n"
        "4. view(action, ...) — zoom_at, pan, fit, reset, info.\n"
        "5. interact(action='events', ...) — replay pointer/key events.\n"
        "6. inspect(action, ...) — entities, path, hit, bounds.\n\n"
        "=== RULES ===\n"
        "- Node x, y are the node CENTER in world coordinates.\n"
        "- Node types: start, process, decision, end.\n"
        "- Ports: top, right, bottom, left. Omit them and they are chosen for you.\n"
        "- Event coordinates (interact, inspect hit) are SCREEN coordinates.\n"
        "- Every edit is one undo step.\n"
    ),
)

# In-memory editor registry: name -> Editor
# Guarded by _editors_lock for thread-safety.
_editors: dict[str, Editor] = {}
_editors_lock = threading.Lock()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("flowcanvas://themes")
def theme_catalog() -> str:
    """Return all available color themes."""
    entries: list[str] = []
    for name in theme_names():
        theme: ColorTheme = getattr(Themes, name.upper())
        entries.append(f"  {name}: fill={theme.fill} stroke={theme.stroke} font={theme.font}")
    return "Available color themes:\n" + "\n".join(entries)


# ===================================================================
# TOOL 1: canvas (lifecycle)
# ===================================================================

@mcp.tool()
def canvas(
    action: str,
    name: str = "",
    file_path: str = "",
    json_content: str = "",
    width: float = 800,
    height: float = 600,
    mode: str = "edit",
) -> str:
    """Canvas (editor) lifecycle management.

    Actions:
      create      — Create a new empty canvas. Params: name, width, height, mode.
      list        — List all in-memory canvases. No params needed.
      clear       — Remove all content and history. Params: name.
      import_json — Replace content with a serialized scene. Params: name, json_content.
                    Creates the canvas if it does not exist.
      export_json — Return the serialized scene. Params: name.
      save        — Write the serialized scene to disk. Params: name, file_path.
      load        — Read a serialized scene from disk. Params: name, file_path.

    Args:
        action: One of: create, list, clear, import_json, export_json, save, load.
        name: Canvas name (registry key).
        file_path: Path for save/load.
        json_content: Scene JSON for import_json.
        width: Surface width in pixels (create only).
        height: Surface height in pixels (create only).
        mode: "edit" or "view" (create only).

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "canvas", _CANVAS_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        with _editors_lock:
            items = list(_editors.items())
        result = [
            {
                "name": n,
                "mode": ed.mode,
                "nodes": len(ed.scene.nodes),
                "connections": len(ed.scene.connections),
                "areas": len(ed.scene.areas),
            }
            for n, ed in items
        ]
        return json.dumps(result, indent=2)

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "create":
        try:
            width = validate_number(width, "width", min_val=1)
            height = validate_number(height, "height", min_val=1)
            mode = validate_enum(mode, "mode", {"edit", "view"})
        except ValidationError as exc:
            return f"Error: {exc.message}"
        try:
            ed = create_editor(Surface(width, height), config=EditorConfig(mode=mode))
        except EditorSetupError as exc:
            return f"Error: {exc}"
        with _editors_lock:
            _editors[name] = ed
        return f"Canvas '{name}' created ({width:g}x{height:g}, {mode} mode)."

    if action == "import_json":
        try:
            validate_non_empty_string(json_content, "json_content")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        return _import_json_impl(name, json_content)

    if action == "load":
        try:
            validate_file_path(file_path, "file_path")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        path = Path(file_path)
        if not path.exists():
            return f"Error: file '{file_path}' not found."
        return _import_json_impl(name, path.read_text(encoding="utf-8"))

    ed = _editors.get(name)
    if ed is None:
        return f"Error: canvas '{name}' not found."

    if action == "clear":
        ed.clear()
        return f"Canvas '{name}' cleared."

    elif action == "export_json":
        return ed.export_json()

    elif action == "save":
        try:
            validate_file_path(file_path, "file_path")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(ed.export_json(), encoding="utf-8")
        return f"Canvas saved to {path.resolve()}"

    else:
        return f"Error: unknown canvas action '{action}'."


# ===================================================================
# TOOL 2: draw (content)
# ===================================================================

@mcp.tool()
def draw(
    action: str,
    canvas_name: str = "",
    nodes: list[dict[str, Any]] | None = None,
    connections: list[dict[str, Any]] | None = None,
    area: dict[str, Any] | None = None,
    updates: list[dict[str, Any]] | None = None,
    ids: list[str] | None = None,
    theme: str = "",
) -> str:
    """Add, update, or delete scene content.

    Actions:
      add_nodes       — Add nodes. Params: nodes (list of {type?, text?, x?, y?,
                        width?, height?, link?, fillColor?, fontColor?, fontSize?,
                        outlineColor?, outlineWidth?}). Nodes without x/y are placed
                        on a free grid cell.
      add_connections — Connect nodes. Params: connections (list of {from_id,
                        to_id, from_port?, to_port?, waypoints?}).
      add_area        — Add an area. Params: area ({x1, y1, x2, y2, title?,
                        fillColor?, outlineColor?, titleBgColor?}).
      update_nodes    — Params: updates (list of {id, x?, y?, width?, height?,
                        plus any node style key}).
      update_areas    — Params: updates (list of {id, x1?, y1?, x2?, y2?,
                        plus any area style key}).
      delete          — Delete entities by id (nodes cascade). Params: ids.
      apply_theme     — Restyle entities. Params: theme, ids? (default: everything).

    Args:
        action: One of the actions listed above.
        canvas_name: Target canvas name.
        nodes: Node dicts for add_nodes.
        connections: Connection dicts for add_connections.
        area: Area dict for add_area.
        updates: Update dicts for update_nodes / update_areas.
        ids: Entity ids for delete / apply_theme.
        theme: Theme name for apply_theme (see flowcanvas://themes).

    Returns:
        JSON describing what changed, or an error string.
    """
    try:
        action = validate_action(action, "draw", _DRAW_ACTIONS)
        validate_non_empty_string(canvas_name, "canvas_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    ed = _editors.get(canvas_name)
    if ed is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "add_nodes":
        try:
            validate_list(nodes, "nodes", min_length=1)
            for i, n in enumerate(nodes):
                validate_node_dict(n, i)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        created: list[dict[str, Any]] = []
        for n in nodes:
            if "x" in n:
                center = Point(n["x"], n["y"])
            else:
                center = next_free_position(ed.scene)
            node = ed.add_node(
                n.get("type", "process").lower(),
                n.get("text", ""),
                center.x,
                center.y,
                n.get("width", 120),
                n.get("height", 60),
                settings=NodeSettings.from_dict(_style_keys(n, _NODE_STYLE_KEYS)),
            )
            created.append({"id": node.id, "text": node.text, "x": node.x, "y": node.y})
        return json.dumps(created, indent=2)

    elif action == "add_connections":
        try:
            validate_list(connections, "connections", min_length=1)
            for i, c in enumerate(connections):
                validate_connection_dict(c, i)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        results: list[dict[str, Any]] = []
        for i, c in enumerate(connections):
            src = ed.scene.get_node(c["from_id"])
            dst = ed.scene.get_node(c["to_id"])
            if src is None or dst is None:
                missing = c["from_id"] if src is None else c["to_id"]
                return f"Error: Connection at index {i}: node '{missing}' not found."
            auto_from, auto_to = choose_ports(src, dst)
            from_port = Port(c["from_port"].lower()) if "from_port" in c else auto_from
            to_port = Port(c["to_port"].lower()) if "to_port" in c else auto_to
            waypoints = [Point(p["x"], p["y"]) for p in c.get("waypoints", [])]
            before = len(ed.scene.connections)
            conn = ed.add_connection(src, from_port, dst, to_port, waypoints)
            results.append({
                "id": conn.id,
                "from": f"{src.id}:{from_port.value}",
                "to": f"{dst.id}:{to_port.value}",
                "duplicate": len(ed.scene.connections) == before,
            })
        return json.dumps(results, indent=2)

    elif action == "add_area":
        try:
            validate_area_dict(area)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        new_area = ed.add_area(
            area["x1"], area["y1"], area["x2"], area["y2"],
            area.get("title", "Section"),
            settings=AreaSettings.from_dict(_style_keys(area, _AREA_STYLE_KEYS)),
        )
        return json.dumps(new_area.to_dict(), indent=2)

    elif action == "update_nodes":
        try:
            validate_list(updates, "updates", min_length=1)
            for i, u in enumerate(updates):
                validate_update_dict(u, i)
                validate_node_settings(
                    _style_keys(u, _NODE_STYLE_KEYS | {"text"}), f"updates[{i}]",
                )
        except ValidationError as exc:
            return f"Error: {exc.message}"
        updated: list[str] = []
        missing: list[str] = []
        for u in updates:
            node = ed.scene.get_node(u["id"])
            if node is None:
                missing.append(u["id"])
                continue
            geometry = {k: u[k] for k in ("x", "y", "width", "height") if k in u}
            style = _style_keys(u, _NODE_STYLE_KEYS | {"text"})
            ed.place_node(node, **geometry, settings=NodeSettings.from_dict(style))
            updated.append(node.id)
        return json.dumps({"updated": updated, "not_found": missing}, indent=2)

    elif action == "update_areas":
        try:
            validate_list(updates, "updates", min_length=1)
            for i, u in enumerate(updates):
                validate_update_dict(u, i)
                for key in ("x1", "y1", "x2", "y2"):
                    if key in u:
                        validate_number(u[key], f"updates[{i}].{key}")
                validate_area_settings(_style_keys(u, _AREA_STYLE_KEYS), f"updates[{i}]")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        updated = []
        missing = []
        for u in updates:
            target = ed.scene.get_area(u["id"])
            if target is None:
                missing.append(u["id"])
                continue
            ed.place_area(
                target,
                u.get("x1", target.x1), u.get("y1", target.y1),
                u.get("x2", target.x2), u.get("y2", target.y2),
                settings=AreaSettings.from_dict(_style_keys(u, _AREA_STYLE_KEYS)),
            )
            updated.append(target.id)
        return json.dumps({"updated": updated, "not_found": missing}, indent=2)

    elif action == "delete":
        try:
            validate_list(ids, "ids", min_length=1)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        deleted: list[str] = []
        for entity_id in ids:
            entity = ed.scene.get(entity_id)
            if entity is None:
                continue
            cascaded = [
                c.id for c in ed.scene.connections
                if isinstance(entity, Node) and c.references(entity)
            ]
            if ed.delete(entity):
                deleted.append(entity_id)
                deleted.extend(cascaded)
        return json.dumps({"deleted": deleted}, indent=2)

    elif action == "apply_theme":
        try:
            validate_non_empty_string(theme, "theme")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        palette = get_theme(theme)
        if palette is None:
            return f"Error: unknown theme '{theme}'. Available: {', '.join(theme_names())}."
        if ids:
            targets = [ed.scene.get(i) for i in ids]
            targets = [t for t in targets if isinstance(t, (Node, Area))]
        else:
            targets = [*ed.scene.nodes, *ed.scene.areas]
        count = ed.apply_theme(palette, targets)
        return f"Theme '{theme.lower()}' applied to {count} entit{'y' if count == 1 else 'ies'}."

    else:
        return f"Error: unknown draw action '{action}'."


# ===================================================================
# TOOL 3: history (undo / redo)
# ===================================================================

@mcp.tool()
def history(action: str, canvas_name: str = "") -> str:
    """Undo/redo for a canvas.

    Actions:
      undo   — Step back one edit.
      redo   — Step forward one edit.
      status — Report the history position and editor state.

    Args:
        action: One of: undo, redo, status.
        canvas_name: Target canvas name.
    """
    try:
        action = validate_action(action, "history", _HISTORY_ACTIONS)
        validate_non_empty_string(canvas_name, "canvas_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    ed = _editors.get(canvas_name)
    if ed is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "undo":
        if not ed.undo():
            return "Nothing to undo."
        return json.dumps(ed.status(), indent=2)
    elif action == "redo":
        if not ed.redo():
            return "Nothing to redo."
        return json.dumps(ed.status(), indent=2)
    return json.dumps(ed.status(), indent=2)


# ===================================================================
# TOOL 4: view (pan / zoom)
# ===================================================================

@mcp.tool()
def view(
    action: str,
    canvas_name: str = "",
    x: float = 0,
    y: float = 0,
    delta: float = -1,
    dx: float = 0,
    dy: float = 0,
) -> str:
    """Pan and zoom a canvas.

    Actions:
      zoom_at — One zoom step anchored at screen point (x, y). delta < 0 zooms in.
      pan     — Shift the view by (dx, dy) screen pixels.
      fit     — Frame all nodes (never zooms past 100%).
      reset   — Zoom 1, pan 0.
      info    — Report the current viewport.

    Args:
        action: One of: zoom_at, pan, fit, reset, info.
        canvas_name: Target canvas name.
        x: Screen x for zoom_at.
        y: Screen y for zoom_at.
        delta: Wheel delta for zoom_at.
        dx: Horizontal pan for pan.
        dy: Vertical pan for pan.
    """
    try:
        action = validate_action(action, "view", _VIEW_ACTIONS)
        validate_non_empty_string(canvas_name, "canvas_name")
        for value, field in ((x, "x"), (y, "y"), (delta, "delta"), (dx, "dx"), (dy, "dy")):
            validate_number(value, field)
    except ValidationError as exc:
        return f"Error: {exc.message}"
    ed = _editors.get(canvas_name)
    if ed is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "zoom_at":
        ed.zoom_at(x, y, delta)
    elif action == "pan":
        ed.viewport.pan_by(dx, dy)
    elif action == "fit":
        if not ed.fit_to_content():
            return "Nothing to fit: canvas has no nodes."
    elif action == "reset":
        ed.viewport.reset()
    return json.dumps(_viewport_info(ed), indent=2)


# ===================================================================
# TOOL 5: interact (replay input events)
# ===================================================================

@mcp.tool()
def interact(
    action: str,
    canvas_name: str = "",
    events: list[dict[str, Any]] | None = None,
) -> str:
    """Replay pointer/keyboard input through the interaction controller.

    Actions:
      events — Dispatch each event in order. Event dicts:
               {type: pointer_down, x, y, button?, ctrl?, meta?, shift?, time_ms?}
               {type: pointer_move, x, y}
               {type: pointer_up, x, y}
               {type: wheel, x, y, delta_y}
               {type: key_down, key, ctrl?, meta?, shift?}
               {type: key_up, key}
               {type: text_input, text}
               Coordinates are screen pixels.

    Args:
        action: events.
        canvas_name: Target canvas name.
        events: The events to replay.

    Returns:
        JSON with the effects of each event and the final editor status.
    """
    try:
        validate_action(action, "interact", _INTERACT_ACTIONS)
        validate_non_empty_string(canvas_name, "canvas_name")
        validate_list(events, "events", min_length=1)
        parsed = [_build_event(e, i) for i, e in enumerate(events)]
    except ValidationError as exc:
        return f"Error: {exc.message}"
    ed = _editors.get(canvas_name)
    if ed is None:
        return f"Error: canvas '{canvas_name}' not found."

    log: list[list[dict[str, Any]]] = []
    for event in parsed:
        log.append([_effect_to_dict(e) for e in ed.handle(event)])
    return json.dumps({"effects": log, "status": ed.status()}, indent=2)


# ===================================================================
# TOOL 6: inspect (read-only)
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    canvas_name: str = "",
    entity_id: str = "",
    x: float = 0,
    y: float = 0,
    include_areas: bool = True,
) -> str:
    """Read-only inspection of canvases.

    Actions:
      entities — List all entities with z-order. Params: canvas_name.
      path     — Routed polyline of a connection. Params: entity_id.
      hit      — What is under screen point (x, y). Params: x, y.
      bounds   — Bounding box of the content. Params: include_areas.

    Args:
        action: One of: entities, path, hit, bounds.
        canvas_name: Target canvas name.
        entity_id: Connection id for path.
        x: Screen x for hit.
        y: Screen y for hit.
        include_areas: Whether areas (and their title bars) count for bounds.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
        validate_non_empty_string(canvas_name, "canvas_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    ed = _editors.get(canvas_name)
    if ed is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "entities":
        info: dict[str, list[dict[str, Any]]] = {"nodes": [], "connections": [], "areas": []}
        for entity in ed.scene.draw_order():
            data = entity.to_dict()
            data["z"] = entity.z
            if isinstance(entity, Node):
                info["nodes"].append(data)
            elif isinstance(entity, Connection):
                info["connections"].append(data)
            else:
                info["areas"].append(data)
        return json.dumps(info, indent=2)

    elif action == "path":
        try:
            validate_non_empty_string(entity_id, "entity_id")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        conn = ed.scene.get_connection(entity_id)
        if conn is None:
            return f"Error: connection '{entity_id}' not found."
        points = conn.path()
        return json.dumps({
            "id": conn.id,
            "points": [p.to_dict() for p in points],
            "orthogonal": is_orthogonal(points),
        }, indent=2)

    elif action == "hit":
        try:
            validate_number(x, "x")
            validate_number(y, "y")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        return json.dumps(ed.hit_at(x, y).to_dict(), indent=2)

    elif action == "bounds":
        try:
            validate_bool(include_areas, "include_areas")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        box = ed.bounding_box(include_areas)
        return json.dumps(box.to_dict() if box else None, indent=2)

    else:
        return f"Error: unknown inspect action '{action}'."


# ===================================================================
# Internal helpers
# ===================================================================

_AREA_STYLE_KEYS = {"title", "fillColor", "outlineColor", "titleBgColor"}

_EFFECT_NAMES = {
    CursorHint: "cursor",
    OpenNodeSettings: "open_node_settings",
    OpenAreaSettings: "open_area_settings",
    AreaMarkingFinished: "area_marking_finished",
    SelectionChanged: "selection_changed",
    Redraw: "redraw",
}


def _style_keys(payload: dict[str, Any], keys: set[str]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k in keys}


def _build_event(e: Any, index: int) -> Event:
    kind = validate_event_dict(e, index)
    if kind == "pointer_down":
        return PointerDown(
            e["x"], e["y"],
            button=e.get("button", 0),
            ctrl=e.get("ctrl", False),
            meta=e.get("meta", False),
            shift=e.get("shift", False),
            time_ms=e.get("time_ms", 0.0),
        )
    if kind == "pointer_move":
        return PointerMove(e["x"], e["y"])
    if kind == "pointer_up":
        return PointerUp(e["x"], e["y"])
    if kind == "wheel":
        return Wheel(e["x"], e["y"], e.get("delta_y", 0))
    if kind == "key_down":
        return KeyDown(
            e["key"],
            ctrl=e.get("ctrl", False),
            meta=e.get("meta", False),
            shift=e.get("shift", False),
        )
    if kind == "key_up":
        return KeyUp(e["key"])
    return TextInput(e["text"])


def _effect_to_dict(effect: Effect) -> dict[str, Any]:
    data: dict[str, Any] = {"effect": _EFFECT_NAMES[type(effect)]}
    if isinstance(effect, CursorHint):
        data["cursor"] = effect.cursor
    elif isinstance(effect, OpenNodeSettings):
        data.update(id=effect.node.id, x=effect.x, y=effect.y)
    elif isinstance(effect, OpenAreaSettings):
        data.update(id=effect.area.id, x=effect.x, y=effect.y)
    elif isinstance(effect, AreaMarkingFinished):
        data["id"] = effect.area.id if effect.area is not None else None
    return data


def _viewport_info(ed: Editor) -> dict[str, Any]:
    vp = ed.viewport
    return {
        "zoom": vp.zoom,
        "pan_x": vp.pan_x,
        "pan_y": vp.pan_y,
        "width": vp.width,
        "height": vp.height,
        "visible": vp.visible_world_rect().to_dict(),
    }


def _import_json_impl(name: str, content: str) -> str:
    """Import serialized scene JSON into canvas *name*, creating it if needed."""
    with _editors_lock:
        ed = _editors.get(name)
        created = ed is None
        if created:
            ed = create_editor(Surface())
            _editors[name] = ed
    try:
        counts = ed.import_json(content)
    except ValidationError as exc:
        if created:
            with _editors_lock:
                _editors.pop(name, None)
        return f"Error: {exc.message}"
    logger.info("Imported canvas '%s': %s", name, counts)
    return (
        f"Imported '{name}' with {counts['nodes']} node(s), "
        f"{counts['connections']} connection(s) and {counts['areas']} area(s)."
    )


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
