"""Selection and drag mixin for PlayModel.

This module provides rubber-band selection, point hit-testing and moving
single entities or the whole selection with the pointer.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .constants import MIN_SELECTION_SIZE, PLAYER_RADIUS, ROUTE_HIT_TOLERANCE
from .geometry import Rect, distance, distance_to_segment, normalize_rect, point_in_rect, rects_overlap
from .types import (
    BoxSelecting,
    Circle,
    Dragging,
    Drawing,
    EntityKind,
    Football,
    Idle,
    InteractionState,
    Player,
    Route,
    RouteStyle,
    SelectionSet,
    TextBox,
)

if TYPE_CHECKING:
    from .model import PlayModel


def entities_in_rect(
    rect: Rect,
    players: Sequence[Player],
    routes: Sequence[Route],
    text_boxes: Sequence[TextBox],
    circles: Sequence[Circle],
    footballs: Sequence[Football],
) -> SelectionSet:
    """Return the entities a selection rectangle picks up.

    Players, text boxes and footballs are picked by their anchor point, routes
    when any of their points is inside, circles when their bounding box
    overlaps the rectangle.
    """
    found = SelectionSet()
    found.players = [p.id for p in players if point_in_rect(p.x, p.y, rect)]
    found.routes = [r.id for r in routes if any(point_in_rect(pt.x, pt.y, rect) for pt in r.points)]
    found.text_boxes = [t.id for t in text_boxes if point_in_rect(t.x, t.y, rect)]
    found.circles = [
        c.id for c in circles
        if rects_overlap((c.x - c.radius, c.y - c.radius, c.x + c.radius, c.y + c.radius), rect)
    ]
    found.footballs = [f.id for f in footballs if point_in_rect(f.x, f.y, rect)]
    return found


def _text_box_rect(text_box: TextBox) -> Rect:
    width = max(40.0, len(text_box.text) * text_box.font_size * 0.6)
    height = text_box.font_size * 1.5
    return (text_box.x, text_box.y, text_box.x + width, text_box.y + height)


class SelectionMixin:
    """Mixin providing selection, hit-testing and drag operations.

    Note: Properties (selectedItems, selectionCount, selectionBox) are
    defined in PlayModel since they need access to signals defined there.
    """

    # Signals (will be defined in PlayModel)
    selectionChanged: Signal
    selectionBoxChanged: Signal
    drawingChanged: Signal

    # Attributes expected from PlayModel
    _players: List[Player]
    _routes: List[Route]
    _text_boxes: List[TextBox]
    _circles: List[Circle]
    _footballs: List[Football]
    _associations: Dict[str, List[str]]
    _selection: SelectionSet
    _interaction: InteractionState
    _route_style: Optional[RouteStyle]
    _collection: Callable[[EntityKind], List[Any]]
    _remove: Callable[[EntityKind, str], bool]
    _set_anchor: Callable[[EntityKind, str, float, float], bool]
    _set_route_points: Callable[[str, List[Tuple[float, float]]], bool]
    getEntity: Callable[[EntityKind, str], Any]
    requestSnapshot: Callable[[], None]
    startRoute: Callable[[float, float], bool]
    continueRoute: Callable[[float, float], None]
    finishRoute: Callable[[], str]

    def _get_selection_box(self) -> Dict[str, float]:
        state = self._interaction
        if not isinstance(state, BoxSelecting):
            return {}
        min_x, min_y, max_x, max_y = normalize_rect(state.start_x, state.start_y, state.end_x, state.end_y)
        return {"x": min_x, "y": min_y, "width": max_x - min_x, "height": max_y - min_y}

    # --- Pointer dispatch -----------------------------------------------------
    @Slot(float, float, bool)
    def pointerPressed(self, x: float, y: float, additive: bool = False) -> None:
        """Route a pointer-down to drawing, dragging or box selection."""
        if self._route_style is not None:
            self.startRoute(x, y)
            return
        hit = self.hitTest(x, y)
        if hit is not None:
            kind, entity_id = hit
            if additive:
                self.selectEntity(kind.value, entity_id, True)
            self.beginDrag(kind.value, entity_id, x, y)
            return
        self.beginBoxSelection(x, y, additive)

    @Slot(float, float)
    def pointerMoved(self, x: float, y: float) -> None:
        state = self._interaction
        if isinstance(state, Drawing):
            self.continueRoute(x, y)
        elif isinstance(state, BoxSelecting):
            self.updateBoxSelection(x, y)
        elif isinstance(state, Dragging):
            self.dragTo(x, y)

    @Slot()
    def pointerReleased(self) -> None:
        state = self._interaction
        if isinstance(state, Drawing):
            self.finishRoute()
        elif isinstance(state, BoxSelecting):
            self.finishBoxSelection()
        elif isinstance(state, Dragging):
            self.endDrag()

    # --- Hit testing ------------------------------------------------------------
    def hitTest(self, x: float, y: float) -> Optional[Tuple[EntityKind, str]]:
        """Return the topmost entity under (x, y)."""
        for football in reversed(self._footballs):
            if distance(x, y, football.x, football.y) <= football.size / 2.0:
                return EntityKind.FOOTBALL, football.id
        for player in reversed(self._players):
            if distance(x, y, player.x, player.y) <= PLAYER_RADIUS:
                return EntityKind.PLAYER, player.id
        for text_box in reversed(self._text_boxes):
            if point_in_rect(x, y, _text_box_rect(text_box)):
                return EntityKind.TEXTBOX, text_box.id
        for circle in reversed(self._circles):
            if distance(x, y, circle.x, circle.y) <= max(circle.radius, ROUTE_HIT_TOLERANCE):
                return EntityKind.CIRCLE, circle.id
        for route in reversed(self._routes):
            for a, b in zip(route.points, route.points[1:]):
                if distance_to_segment(x, y, a, b) <= ROUTE_HIT_TOLERANCE:
                    return EntityKind.ROUTE, route.id
        return None

    @Slot(float, float, result="QVariant")
    def entityAt(self, x: float, y: float) -> Dict[str, str]:
        hit = self.hitTest(x, y)
        if hit is None:
            return {}
        return {"kind": hit[0].value, "id": hit[1]}

    # --- Selection set ------------------------------------------------------------
    @Slot(str, str, bool)
    def selectEntity(self, kind: str, entity_id: str, additive: bool = False) -> None:
        try:
            entity_kind = EntityKind(kind)
        except ValueError:
            return
        if self.getEntity(entity_kind, entity_id) is None:
            return
        if not additive:
            self._selection.clear()
        self._selection.add(entity_kind, entity_id)
        self.selectionChanged.emit()

    @Slot()
    def selectAll(self) -> None:
        for kind in EntityKind:
            self._selection.ids_for(kind)[:] = [entity.id for entity in self._collection(kind)]
        self.selectionChanged.emit()

    @Slot()
    def clearSelection(self) -> None:
        if self._selection.is_empty():
            return
        self._selection.clear()
        self.selectionChanged.emit()

    @Slot(result=int)
    def deleteSelectedItems(self) -> int:
        """Delete every selected entity and return how many were removed."""
        removed = 0
        for kind in EntityKind:
            for entity_id in list(self._selection.ids_for(kind)):
                if self._remove(kind, entity_id):
                    removed += 1
        if self._selection.count():
            self._selection.clear()
        self.selectionChanged.emit()
        if removed:
            self.requestSnapshot()
        return removed

    # --- Box selection ------------------------------------------------------------
    @Slot(float, float, bool, result=bool)
    def beginBoxSelection(self, x: float, y: float, additive: bool = False) -> bool:
        if not isinstance(self._interaction, Idle):
            return False
        if not additive:
            self.clearSelection()
        self._interaction = BoxSelecting(start_x=x, start_y=y, end_x=x, end_y=y)
        self.selectionBoxChanged.emit()
        return True

    @Slot(float, float)
    def updateBoxSelection(self, x: float, y: float) -> None:
        state = self._interaction
        if not isinstance(state, BoxSelecting):
            return
        state.end_x = x
        state.end_y = y
        self.selectionBoxChanged.emit()

    @Slot(result=int)
    def finishBoxSelection(self) -> int:
        """Close the rubber band and add what it covers to the selection.

        Boxes no bigger than the minimum size in both directions count as a
        click and select nothing. Returns the number of newly picked entities.
        """
        state = self._interaction
        if not isinstance(state, BoxSelecting):
            return 0
        self._interaction = Idle()
        self.selectionBoxChanged.emit()

        rect = normalize_rect(state.start_x, state.start_y, state.end_x, state.end_y)
        width = rect[2] - rect[0]
        height = rect[3] - rect[1]
        if width <= MIN_SELECTION_SIZE and height <= MIN_SELECTION_SIZE:
            return 0

        found = entities_in_rect(rect, self._players, self._routes, self._text_boxes, self._circles, self._footballs)
        for kind in EntityKind:
            for entity_id in found.ids_for(kind):
                self._selection.add(kind, entity_id)
        self.selectionChanged.emit()
        return found.count()

    # --- Dragging -----------------------------------------------------------------
    def _entity_anchor(self, kind: EntityKind, entity_id: str) -> Optional[Tuple[float, float]]:
        entity = self.getEntity(kind, entity_id)
        if entity is None:
            return None
        if kind == EntityKind.ROUTE:
            first = entity.points[0]
            return (first.x, first.y)
        return (entity.x, entity.y)

    def _record_original(self, originals: Dict[Tuple[EntityKind, str], object], kind: EntityKind, entity_id: str) -> None:
        entity = self.getEntity(kind, entity_id)
        if entity is None or (kind, entity_id) in originals:
            return
        if kind == EntityKind.ROUTE:
            originals[(kind, entity_id)] = [(pt.x, pt.y) for pt in entity.points]
        else:
            originals[(kind, entity_id)] = (entity.x, entity.y)

    @Slot(str, str, float, float, result=bool)
    def beginDrag(self, kind: str, entity_id: str, pointer_x: float, pointer_y: float) -> bool:
        """Start moving an entity, or the whole selection if it is part of one.

        Pre-drag positions are recorded once here; every later move is
        applied to these originals so repeated moves never accumulate.
        """
        try:
            entity_kind = EntityKind(kind)
        except ValueError:
            return False
        if not isinstance(self._interaction, Idle):
            return False
        anchor = self._entity_anchor(entity_kind, entity_id)
        if anchor is None:
            return False

        group = self._selection.contains(entity_kind, entity_id) and self._selection.count() > 1
        originals: Dict[Tuple[EntityKind, str], object] = {}
        if group:
            for selected_kind in EntityKind:
                for selected_id in self._selection.ids_for(selected_kind):
                    self._record_original(originals, selected_kind, selected_id)
            moving_players = list(self._selection.players)
        else:
            self._record_original(originals, entity_kind, entity_id)
            moving_players = [entity_id] if entity_kind == EntityKind.PLAYER else []

        # Routes follow the players that own them.
        for player_id in moving_players:
            for route_id in self._associations.get(player_id, []):
                self._record_original(originals, EntityKind.ROUTE, route_id)

        self._interaction = Dragging(
            kind=entity_kind,
            entity_id=entity_id,
            offset_x=pointer_x - anchor[0],
            offset_y=pointer_y - anchor[1],
            origin_x=anchor[0],
            origin_y=anchor[1],
            group=group,
            originals=originals,
        )
        self.drawingChanged.emit()
        return True

    @Slot(float, float)
    def dragTo(self, pointer_x: float, pointer_y: float) -> None:
        state = self._interaction
        if not isinstance(state, Dragging):
            return
        new_x = pointer_x - state.offset_x
        new_y = pointer_y - state.offset_y
        dx = new_x - state.origin_x
        dy = new_y - state.origin_y

        for (kind, entity_id), original in state.originals.items():
            is_dragged = kind == state.kind and entity_id == state.entity_id
            if is_dragged and not state.group and kind != EntityKind.ROUTE:
                self._set_anchor(kind, entity_id, new_x, new_y)
            elif kind == EntityKind.ROUTE:
                self._set_route_points(entity_id, [(x + dx, y + dy) for x, y in original])
            else:
                x, y = original
                self._set_anchor(kind, entity_id, x + dx, y + dy)
        state.moved = True

    @Slot()
    def endDrag(self) -> None:
        state = self._interaction
        if not isinstance(state, Dragging):
            return
        self._interaction = Idle()
        self.drawingChanged.emit()
        if state.moved:
            self.requestSnapshot()
