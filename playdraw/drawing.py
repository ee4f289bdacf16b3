"""Route drawing mixin for PlayModel.

This module turns a pointer gesture into a committed route. How raw
pointer moves become route points depends on the line break type and the
route style selected before the gesture starts.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .constants import DASHED_SAMPLE_DISTANCE, PAUSE_THRESHOLD_MS, SMOOTH_SAMPLE_DISTANCE
from .geometry import distance, nearest_player, smooth_points, snap_segment_to_clock_angle, snap_to_anchor_side
from .types import (
    SMOOTHED_BREAK_TYPES,
    Drawing,
    Idle,
    InteractionState,
    LineBreakType,
    Player,
    PlayerType,
    Route,
    RoutePoint,
    RouteStyle,
)

if TYPE_CHECKING:
    from .model import PlayModel


class DrawingMixin:
    """Mixin providing the route drawing state machine.

    Note: Properties (activeRouteStyle, lineBreakType, routeColor,
    isDrawingRoute, currentRoutePoints) are defined in PlayModel since they
    need access to signals defined there.
    """

    # Signals (will be defined in PlayModel)
    drawingChanged: Signal
    routeStyleChanged: Signal
    lineBreakTypeChanged: Signal
    routeColorChanged: Signal

    # Attributes expected from PlayModel
    _players: List[Player]
    _interaction: InteractionState
    _route_style: Optional[RouteStyle]
    _line_break_type: LineBreakType
    _route_color: str
    _pause_threshold_ms: float
    _next_id: Callable[[str], str]
    add_route: Callable[[Route, Optional[str]], str]

    def _init_drawing(self) -> None:
        """Initialize drawing state. Call from PlayModel.__init__."""
        self._route_style = None
        self._line_break_type = LineBreakType.RIGID
        self._route_color = "black"
        self._pause_threshold_ms = PAUSE_THRESHOLD_MS

    def _now_ms(self) -> float:
        return time.time() * 1000.0

    def _get_route_style(self) -> str:
        return self._route_style.value if self._route_style else ""

    @Slot(str)
    def setRouteStyle(self, style: str) -> None:
        """Pick the style for the next route; an empty string clears the pick."""
        if not style:
            new_style = None
        else:
            try:
                new_style = RouteStyle(style)
            except ValueError:
                return
        if self._route_style != new_style:
            self._route_style = new_style
            self.routeStyleChanged.emit()

    @Slot(str)
    def setLineBreakType(self, line_break_type: str) -> None:
        try:
            new_type = LineBreakType(line_break_type)
        except ValueError:
            return
        if self._line_break_type != new_type:
            self._line_break_type = new_type
            self.lineBreakTypeChanged.emit()

    @Slot(str)
    def setRouteColor(self, color: str) -> None:
        if color and self._route_color != color:
            self._route_color = color
            self.routeColorChanged.emit()

    @Slot(float, float, result=bool)
    def startRoute(self, x: float, y: float) -> bool:
        """Begin recording a route at (x, y).

        Solid routes snap their first point onto the side of a nearby player.
        Returns False when no route style is picked or another gesture is
        already in progress.
        """
        if self._route_style is None or not isinstance(self._interaction, Idle):
            return False

        if self._route_style == RouteStyle.SOLID:
            snapped = snap_to_anchor_side(x, y, self._players)
            if snapped is not None:
                x, y = snapped

        start = RoutePoint(x, y)
        self._interaction = Drawing(points=[start], last_sample=start, last_move_ms=self._now_ms())
        self.drawingChanged.emit()
        return True

    @Slot(float, float)
    def continueRoute(self, x: float, y: float) -> None:
        """Feed a pointer move into the route being recorded."""
        state = self._interaction
        if not isinstance(state, Drawing):
            return

        now = self._now_ms()
        point = RoutePoint(x, y)
        points = state.points
        if self._line_break_type in SMOOTHED_BREAK_TYPES:
            self._sample_point(state, point, SMOOTH_SAMPLE_DISTANCE)
        elif self._line_break_type == LineBreakType.NONE:
            # Straight segment: only the latest pointer position matters.
            if len(points) == 1:
                points.append(point)
            else:
                points[1] = point
        elif self._route_style == RouteStyle.DASHED:
            self._sample_point(state, point, DASHED_SAMPLE_DISTANCE)
        elif len(points) == 1:
            points.append(point)
        elif now - state.last_move_ms > self._pause_threshold_ms:
            # A pause pins the current corner and opens a new moving point.
            points.append(point)
            points.append(RoutePoint(x, y))
        else:
            points[-1] = point
        state.last_move_ms = now
        self.drawingChanged.emit()

    def _sample_point(self, state: Drawing, point: RoutePoint, min_distance: float) -> None:
        last = state.last_sample
        if len(state.points) == 1 or distance(last.x, last.y, point.x, point.y) >= min_distance:
            state.points.append(point)
            state.last_sample = point

    @Slot(result=str)
    def finishRoute(self) -> str:
        """Commit the route being recorded and return its id.

        Traces with fewer than two points are discarded and an empty string
        is returned. The new route is attached to the offensive player
        closest to its first point.
        """
        state = self._interaction
        if not isinstance(state, Drawing):
            return ""
        self._interaction = Idle()

        style = self._route_style or RouteStyle.SOLID
        points = state.points
        if len(points) < 2:
            self.drawingChanged.emit()
            return ""

        if style != RouteStyle.DASHED:
            if self._line_break_type == LineBreakType.NONE:
                points = [points[0], snap_segment_to_clock_angle(points[0], points[-1])]
            elif self._line_break_type in SMOOTHED_BREAK_TYPES:
                points = smooth_points(points)

        start = points[0]
        owner = nearest_player(start.x, start.y, self._players, PlayerType.OFFENSE)
        route = Route(
            id=self._next_id("route"),
            points=list(points),
            style=style,
            line_break_type=self._line_break_type,
            color=self._route_color,
        )
        route_id = self.add_route(route, owner.id if owner else None)

        # One route per style pick.
        self._route_style = None
        self.routeStyleChanged.emit()
        self.drawingChanged.emit()
        return route_id

    @Slot()
    def cancelRoute(self) -> None:
        """Abandon the route being recorded without touching history."""
        if isinstance(self._interaction, Drawing):
            self._interaction = Idle()
            self.drawingChanged.emit()

    @Slot(result="QVariant")
    def getCurrentRoute(self) -> Dict[str, Any]:
        """Return the route being drawn, or an empty dict."""
        state = self._interaction
        if not isinstance(state, Drawing):
            return {}
        return {
            "points": [{"x": pt.x, "y": pt.y} for pt in state.points],
            "style": self._get_route_style(),
            "lineBreakType": self._line_break_type.value,
            "color": "black" if self._route_style == RouteStyle.DASHED else self._route_color,
        }
