"""Clipboard operations mixin for PlayModel.

This module copies a player's route to the system clipboard as a JSON
route template and pastes such templates back onto the field.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from PySide6.QtCore import QByteArray, QMimeData, Slot
from PySide6.QtGui import QGuiApplication

from .constants import CLIPBOARD_MIME_TYPE
from .types import EndpointType, LineBreakType, Player, Route, RoutePoint, RouteStyle

if TYPE_CHECKING:
    from .model import PlayModel

CLIPBOARD_FORMAT = "playdraw-route"


def _parse_template(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Validate a route template read from the clipboard."""
    route_data = payload.get("route", payload)
    if not isinstance(route_data, dict):
        return None
    raw_points = route_data.get("points")
    if not isinstance(raw_points, list):
        return None
    points: List[Tuple[float, float]] = []
    for pt in raw_points:
        try:
            points.append((float(pt["x"]), float(pt["y"])))
        except (KeyError, TypeError, ValueError):
            return None
    if len(points) < 2:
        return None
    try:
        style = RouteStyle(route_data.get("style", "solid"))
        line_break_type = LineBreakType(route_data.get("lineBreakType", "rigid"))
    except ValueError:
        return None
    endpoint_type = None
    if route_data.get("endpointType"):
        try:
            endpoint_type = EndpointType(route_data["endpointType"])
        except ValueError:
            endpoint_type = None
    return {
        "name": "clipboard",
        "standard": False,
        "points": points,
        "style": style,
        "line_break_type": line_break_type,
        "endpoint_type": endpoint_type,
        "color": str(route_data.get("color") or "black"),
        "player_color": str(payload.get("playerColor") or route_data.get("playerColor") or "red"),
    }


class ClipboardMixin:
    """Mixin providing route clipboard operations."""

    # Attributes expected from PlayModel
    _associations: Dict[str, List[str]]
    _next_id: Callable[[str], str]
    _place_template: Callable[[Dict[str, Any], Sequence[Tuple[float, float]]], str]
    add_route: Callable[[Route, Optional[str]], str]
    getPlayer: Callable[[str], Optional[Player]]
    getRoute: Callable[[str], Optional[Route]]

    def _write_clipboard_payload(self, payload: Dict[str, Any]) -> bool:
        clipboard = QGuiApplication.clipboard()
        if clipboard is None:
            return False
        payload_text = json.dumps(payload, indent=2)
        mime_data = QMimeData()
        mime_data.setData(CLIPBOARD_MIME_TYPE, QByteArray(payload_text.encode("utf-8")))
        mime_data.setText(payload_text)
        clipboard.setMimeData(mime_data)
        return True

    def _read_clipboard_payload(self) -> Optional[Dict[str, Any]]:
        clipboard = QGuiApplication.clipboard()
        if clipboard is None:
            return None
        mime_data = clipboard.mimeData()
        if mime_data is None:
            return None
        payload_text: Optional[str] = None
        if mime_data.hasFormat(CLIPBOARD_MIME_TYPE):
            raw = mime_data.data(CLIPBOARD_MIME_TYPE)
            payload_text = bytes(raw).decode("utf-8")
        elif mime_data.hasText():
            payload_text = mime_data.text()
        if not payload_text:
            return None
        try:
            payload = json.loads(payload_text)
        except json.JSONDecodeError:
            return None
        if not isinstance(payload, dict):
            return None
        # Bare templates (no format marker) are accepted as long as they parse.
        if "format" in payload and payload.get("format") != CLIPBOARD_FORMAT:
            return None
        return _parse_template(payload)

    @Slot(str, result=bool)
    def copyRouteToClipboard(self, player_id: str) -> bool:
        """Copy a player's first route as a JSON route template.

        Points keep their field coordinates; pasting re-anchors them on the
        target player through the first point.
        """
        player = self.getPlayer(player_id)
        if player is None:
            return False
        route_ids = self._associations.get(player_id, [])
        route = self.getRoute(route_ids[0]) if route_ids else None
        if route is None:
            return False
        payload = {
            "format": CLIPBOARD_FORMAT,
            "version": 1,
            "route": {
                "points": [{"x": pt.x, "y": pt.y} for pt in route.points],
                "style": route.style.value,
                "lineBreakType": route.line_break_type.value,
                "color": route.display_color,
                "endpointType": route.endpoint_type.value,
            },
            "playerColor": player.color,
        }
        return self._write_clipboard_payload(payload)

    @Slot(result=bool)
    def hasClipboardRoute(self) -> bool:
        return self._read_clipboard_payload() is not None

    @Slot(str, result=str)
    def pasteRouteOntoPlayer(self, player_id: str) -> str:
        """Give ``player_id`` a copy of the clipboard route starting at the player."""
        player = self.getPlayer(player_id)
        if player is None:
            return ""
        template = self._read_clipboard_payload()
        if template is None:
            return ""
        first_x, first_y = template["points"][0]
        route = Route(
            id=self._next_id("route"),
            points=[RoutePoint(player.x + x - first_x, player.y + y - first_y) for x, y in template["points"]],
            style=template["style"],
            line_break_type=template["line_break_type"],
            color=template["color"],
            endpoint_type=template["endpoint_type"],
        )
        return self.add_route(route, player.id)

    @Slot(result=str)
    def pasteRouteFromClipboard(self) -> str:
        """Add a new player at its default spot running the clipboard route."""
        template = self._read_clipboard_payload()
        if template is None:
            return ""
        first_x, first_y = template["points"][0]
        return self._place_template(template, [(x - first_x, y - first_y) for x, y in template["points"]])
