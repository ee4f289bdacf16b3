"""Core PlayModel class for PlayDraw.

This module provides the Qt model holding every entity of a play: the
players (exposed as list rows), their routes, and the text, circle and
football annotations, together with the player-to-route association table.
"""

from __future__ import annotations

from itertools import count
from typing import Any, Dict, List, Optional, Tuple

from PySide6.QtCore import (
    QAbstractListModel,
    QModelIndex,
    Property,
    Qt,
    Signal,
    Slot,
)
from PySide6.QtQml import QJSValue

from .animation import AnimationMixin
from .clipboard import ClipboardMixin
from .constants import DEFAULT_FIELD_HEIGHT, DEFAULT_FIELD_WIDTH, player_display_color, player_label
from .drawing import DrawingMixin
from .formation import FormationMixin
from .geometry import generate_smooth_path, path_to_svg, rebuild_associations
from .history import HistoryMixin
from .quickadd import QuickAddMixin
from .selection import SelectionMixin
from .types import (
    SMOOTHED_BREAK_TYPES,
    Circle,
    Dragging,
    Drawing,
    EndpointType,
    Entity,
    EntityKind,
    Football,
    Idle,
    InteractionState,
    LineBreakType,
    Player,
    PlayerType,
    Route,
    RoutePoint,
    RouteStyle,
    SelectionSet,
    Snapshot,
    TextBox,
    default_endpoint_for,
)

_ID_PREFIXES = {
    EntityKind.PLAYER: "player",
    EntityKind.ROUTE: "route",
    EntityKind.TEXTBOX: "text",
    EntityKind.CIRCLE: "circle",
    EntityKind.FOOTBALL: "football",
}


def _parse_kind(kind: Any) -> Optional[EntityKind]:
    if isinstance(kind, EntityKind):
        return kind
    try:
        return EntityKind(str(kind).lower())
    except ValueError:
        return None


def _parse_enum(enum_type, value: Any, default):
    try:
        return enum_type(value)
    except ValueError:
        return default


def _parse_points(raw_points: Any) -> List[RoutePoint]:
    points: List[RoutePoint] = []
    if not isinstance(raw_points, list):
        return points
    for pt_data in raw_points:
        if isinstance(pt_data, dict):
            x, y = pt_data.get("x"), pt_data.get("y")
        elif isinstance(pt_data, (list, tuple)) and len(pt_data) == 2:
            x, y = pt_data
        else:
            continue
        try:
            points.append(RoutePoint(float(x), float(y)))
        except (TypeError, ValueError):
            continue
    return points


def _route_endpoint(route_data: Dict[str, Any], line_break_type: LineBreakType) -> EndpointType:
    """Read ``endpointType``, falling back to the legacy ``showArrow`` flag."""
    raw = route_data.get("endpointType")
    if raw is not None:
        return _parse_enum(EndpointType, raw, default_endpoint_for(line_break_type))
    show_arrow = route_data.get("showArrow")
    if isinstance(show_arrow, bool):
        return EndpointType.ARROW if show_arrow else EndpointType.NONE
    return default_endpoint_for(line_break_type)


def entity_from_dict(kind: EntityKind, data: Dict[str, Any], entity_id: str) -> Optional[Entity]:
    """Build an entity from its serialized form.

    Unknown enum values fall back to their defaults. Returns ``None`` when the
    record cannot be read or, for routes, has fewer than two points.
    """
    try:
        if kind == EntityKind.ROUTE:
            points = _parse_points(data.get("points"))
            if len(points) < 2:
                return None
            line_break_type = _parse_enum(LineBreakType, data.get("lineBreakType", "rigid"), LineBreakType.RIGID)
            return Route(
                id=entity_id,
                points=points,
                style=_parse_enum(RouteStyle, data.get("style", "solid"), RouteStyle.SOLID),
                line_break_type=line_break_type,
                color=str(data.get("color") or "black"),
                endpoint_type=_route_endpoint(data, line_break_type),
            )

        x = float(data.get("x", 0.0))
        y = float(data.get("y", 0.0))
        if kind == EntityKind.PLAYER:
            return Player(
                id=entity_id,
                x=x,
                y=y,
                color=str(data.get("color") or "blue"),
                player_type=_parse_enum(PlayerType, data.get("type", "offense"), PlayerType.OFFENSE),
            )
        if kind == EntityKind.TEXTBOX:
            return TextBox(
                id=entity_id,
                x=x,
                y=y,
                text=str(data.get("text", "Click to edit")),
                font_size=float(data.get("fontSize", 16.0)),
                color=str(data.get("color") or "black"),
            )
        if kind == EntityKind.CIRCLE:
            return Circle(
                id=entity_id,
                x=x,
                y=y,
                radius=float(data.get("radius", 8.0)),
                color=str(data.get("color") or "black"),
            )
        if kind == EntityKind.FOOTBALL:
            return Football(id=entity_id, x=x, y=y, size=float(data.get("size", 32.0)))
    except (TypeError, ValueError):
        return None
    return None


def entity_to_dict(entity: Entity) -> Dict[str, Any]:
    """Serialize an entity using the play file field names."""
    if isinstance(entity, Player):
        return {
            "id": entity.id,
            "x": entity.x,
            "y": entity.y,
            "color": entity.color,
            "type": entity.player_type.value,
        }
    if isinstance(entity, Route):
        return {
            "id": entity.id,
            "points": [{"x": pt.x, "y": pt.y} for pt in entity.points],
            "style": entity.style.value,
            "lineBreakType": entity.line_break_type.value,
            "color": entity.display_color,
            "endpointType": entity.endpoint_type.value,
        }
    if isinstance(entity, TextBox):
        return {
            "id": entity.id,
            "x": entity.x,
            "y": entity.y,
            "text": entity.text,
            "fontSize": entity.font_size,
            "color": entity.color,
        }
    if isinstance(entity, Circle):
        return {"id": entity.id, "x": entity.x, "y": entity.y, "radius": entity.radius, "color": entity.color}
    return {"id": entity.id, "x": entity.x, "y": entity.y, "size": entity.size}


def parse_associations(raw: Any) -> Optional[Dict[str, List[str]]]:
    """Read the association table from its pair-array or object encoding.

    Returns ``None`` when neither encoding is present.
    """
    if isinstance(raw, dict):
        pairs = list(raw.items())
    elif isinstance(raw, list):
        pairs = []
        for entry in raw:
            if isinstance(entry, (list, tuple)) and len(entry) == 2:
                pairs.append((entry[0], entry[1]))
    else:
        return None

    associations: Dict[str, List[str]] = {}
    for player_id, route_ids in pairs:
        if not isinstance(route_ids, list):
            continue
        ids = associations.setdefault(str(player_id), [])
        for route_id in route_ids:
            if str(route_id) not in ids:
                ids.append(str(route_id))
    return associations


class PlayModel(
    ClipboardMixin,
    DrawingMixin,
    SelectionMixin,
    HistoryMixin,
    AnimationMixin,
    FormationMixin,
    QuickAddMixin,
    QAbstractListModel,
):
    """Qt model exposing the players of a play to QML.

    Routes and annotations are not rows of the model; they are published as
    list properties and refreshed through their own change signals.
    """

    IdRole = Qt.UserRole + 1
    XRole = Qt.UserRole + 2
    YRole = Qt.UserRole + 3
    ColorRole = Qt.UserRole + 4
    DisplayColorRole = Qt.UserRole + 5
    PlayerTypeRole = Qt.UserRole + 6
    LabelRole = Qt.UserRole + 7
    SelectedRole = Qt.UserRole + 8

    playersChanged = Signal()
    routesChanged = Signal()
    annotationsChanged = Signal()
    associationsChanged = Signal()
    selectionChanged = Signal()
    selectionBoxChanged = Signal()
    drawingChanged = Signal()
    routeStyleChanged = Signal()
    lineBreakTypeChanged = Signal()
    routeColorChanged = Signal()
    historyChanged = Signal()
    animationChanged = Signal()
    animationFrame = Signal(float)
    animationSpeedChanged = Signal()
    coverageChanged = Signal()
    quickAddsChanged = Signal()
    playInfoChanged = Signal()
    fieldSizeChanged = Signal()
    errorOccurred = Signal(str)

    def __init__(self):
        super().__init__()
        self._players: List[Player] = []
        self._routes: List[Route] = []
        self._text_boxes: List[TextBox] = []
        self._circles: List[Circle] = []
        self._footballs: List[Football] = []
        self._associations: Dict[str, List[str]] = {}
        self._id_source = count()
        self._selection = SelectionSet()
        self._interaction: InteractionState = Idle()
        self._play_id = ""
        self._play_name = ""
        self._play_notes = ""
        self._background = ""
        self._field_width = DEFAULT_FIELD_WIDTH
        self._field_height = DEFAULT_FIELD_HEIGHT

        # Initialize mixins
        self._init_drawing()
        self._init_animation()
        self._init_quick_add()
        self._init_history()

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._id_source)}"

    # --- Qt model overrides -------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = QModelIndex()) -> int:  # type: ignore[override]
        return len(self._players)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._players)):
            return None

        player = self._players[index.row()]
        if role == self.IdRole:
            return player.id
        if role == self.XRole:
            return player.x
        if role == self.YRole:
            return player.y
        if role == self.ColorRole:
            return player.color
        if role == self.DisplayColorRole:
            return player_display_color(player.color)
        if role == self.PlayerTypeRole:
            return player.player_type.value
        if role == self.LabelRole:
            return player_label(player.color, player.player_type)
        if role == self.SelectedRole:
            return self._selection.contains(EntityKind.PLAYER, player.id)
        return None

    def roleNames(self) -> Dict[int, bytes]:  # type: ignore[override]
        return {
            self.IdRole: b"playerId",
            self.XRole: b"x",
            self.YRole: b"y",
            self.ColorRole: b"color",
            self.DisplayColorRole: b"displayColor",
            self.PlayerTypeRole: b"playerType",
            self.LabelRole: b"label",
            self.SelectedRole: b"selected",
        }

    # --- Properties exposed to QML -----------------------------------------
    @Property(list, notify=playersChanged)
    def players(self) -> List[Dict[str, Any]]:
        return [entity_to_dict(player) for player in self._players]

    @Property(list, notify=routesChanged)
    def routes(self) -> List[Dict[str, Any]]:
        routes = []
        for route in self._routes:
            route_dict = entity_to_dict(route)
            if route.line_break_type in SMOOTHED_BREAK_TYPES:
                route_dict["path"] = path_to_svg(generate_smooth_path(route.points))
            routes.append(route_dict)
        return routes

    @Property(list, notify=annotationsChanged)
    def textBoxes(self) -> List[Dict[str, Any]]:
        return [entity_to_dict(text_box) for text_box in self._text_boxes]

    @Property(list, notify=annotationsChanged)
    def circles(self) -> List[Dict[str, Any]]:
        return [entity_to_dict(circle) for circle in self._circles]

    @Property(list, notify=annotationsChanged)
    def footballs(self) -> List[Dict[str, Any]]:
        return [entity_to_dict(football) for football in self._footballs]

    @Property("QVariant", notify=associationsChanged)
    def associations(self) -> Dict[str, List[str]]:
        return {player_id: list(route_ids) for player_id, route_ids in self._associations.items()}

    @Property(int, notify=playersChanged)
    def count(self) -> int:
        return len(self._players)

    @Property(int, notify=playersChanged)
    def entityCount(self) -> int:
        return (
            len(self._players)
            + len(self._routes)
            + len(self._text_boxes)
            + len(self._circles)
            + len(self._footballs)
        )

    @Property(str, notify=playInfoChanged)
    def playId(self) -> str:
        return self._play_id

    @Property(str, notify=playInfoChanged)
    def playName(self) -> str:
        return self._play_name

    @playName.setter  # type: ignore[no-redef]
    def playName(self, value: str) -> None:
        self.setPlayName(value)

    @Property(str, notify=playInfoChanged)
    def playNotes(self) -> str:
        return self._play_notes

    @playNotes.setter  # type: ignore[no-redef]
    def playNotes(self, value: str) -> None:
        self.setPlayNotes(value)

    @Property(float, notify=fieldSizeChanged)
    def fieldWidth(self) -> float:
        return self._field_width

    @Property(float, notify=fieldSizeChanged)
    def fieldHeight(self) -> float:
        return self._field_height

    # --- Selection properties (from SelectionMixin) -------------------------
    @Property("QVariant", notify=selectionChanged)
    def selectedItems(self) -> Dict[str, List[str]]:
        return self._selection.to_dict()

    @Property(int, notify=selectionChanged)
    def selectionCount(self) -> int:
        return self._selection.count()

    @Property("QVariant", notify=selectionBoxChanged)
    def selectionBox(self) -> Dict[str, float]:
        return self._get_selection_box()

    @Property(bool, notify=drawingChanged)
    def isDraggingEntity(self) -> bool:
        return isinstance(self._interaction, Dragging)

    # --- Drawing properties (from DrawingMixin) ----------------------------
    @Property(str, notify=routeStyleChanged)
    def activeRouteStyle(self) -> str:
        return self._get_route_style()

    @Property(str, notify=lineBreakTypeChanged)
    def lineBreakType(self) -> str:
        return self._line_break_type.value

    @Property(str, notify=routeColorChanged)
    def routeColor(self) -> str:
        return self._route_color

    @Property(bool, notify=drawingChanged)
    def isDrawingRoute(self) -> bool:
        return isinstance(self._interaction, Drawing)

    @Property(list, notify=drawingChanged)
    def currentRoutePoints(self) -> List[Dict[str, float]]:
        if not isinstance(self._interaction, Drawing):
            return []
        return [{"x": pt.x, "y": pt.y} for pt in self._interaction.points]

    # --- History properties (from HistoryMixin) -----------------------------
    @Property(bool, notify=historyChanged)
    def canUndo(self) -> bool:
        return self._can_undo()

    @Property(bool, notify=historyChanged)
    def canRedo(self) -> bool:
        return self._can_redo()

    @Property(int, notify=historyChanged)
    def historyLength(self) -> int:
        return len(self._history)

    # --- Animation properties (from AnimationMixin) -------------------------
    @Property(bool, notify=animationChanged)
    def isAnimating(self) -> bool:
        return self._is_animating

    @Property(float, notify=animationFrame)
    def animationProgress(self) -> float:
        return self._animation_progress

    @Property(float, notify=animationChanged)
    def animationDuration(self) -> float:
        return self._animation_duration

    @Property(float, notify=animationSpeedChanged)
    def animationSpeed(self) -> float:
        return self._animation_speed

    @animationSpeed.setter  # type: ignore[no-redef]
    def animationSpeed(self, value: float) -> None:
        self.setAnimationSpeed(value)

    @Property(str, notify=coverageChanged)
    def coverage(self) -> str:
        return self._coverage.id if self._coverage else ""

    @Property(list, constant=True)
    def coverages(self) -> List[Dict[str, Any]]:
        return self._get_coverages()

    # --- Quick-add properties (from QuickAddMixin) --------------------------
    @Property(list, notify=quickAddsChanged)
    def quickAddSlots(self) -> List[Optional[Dict[str, Any]]]:
        return self._get_quick_add_slots()

    # --- Collections ----------------------------------------------------------
    def _collection(self, kind: EntityKind) -> List[Any]:
        return {
            EntityKind.PLAYER: self._players,
            EntityKind.ROUTE: self._routes,
            EntityKind.TEXTBOX: self._text_boxes,
            EntityKind.CIRCLE: self._circles,
            EntityKind.FOOTBALL: self._footballs,
        }[kind]

    def _find(self, kind: EntityKind, entity_id: str) -> Tuple[int, Optional[Any]]:
        for row, entity in enumerate(self._collection(kind)):
            if entity.id == entity_id:
                return row, entity
        return -1, None

    def _emit_kind_changed(self, kind: EntityKind) -> None:
        if kind == EntityKind.PLAYER:
            self.playersChanged.emit()
        elif kind == EntityKind.ROUTE:
            self.routesChanged.emit()
        else:
            self.annotationsChanged.emit()

    def _notify_player_row(self, row: int, roles: Optional[List[int]] = None) -> None:
        index = self.index(row, 0)
        self.dataChanged.emit(index, index, roles or [])

    def getPlayer(self, player_id: str) -> Optional[Player]:
        return self._find(EntityKind.PLAYER, player_id)[1]

    def getRoute(self, route_id: str) -> Optional[Route]:
        return self._find(EntityKind.ROUTE, route_id)[1]

    def getEntity(self, kind: EntityKind, entity_id: str) -> Optional[Entity]:
        return self._find(kind, entity_id)[1]

    @Slot(str, str, result="QVariant")
    def getEntitySnapshot(self, kind: str, entity_id: str) -> Dict[str, Any]:
        entity_kind = _parse_kind(kind)
        if entity_kind is None:
            return {}
        entity = self.getEntity(entity_kind, entity_id)
        if entity is None:
            return {}
        return entity_to_dict(entity)

    # --- Entity store ---------------------------------------------------------
    def insert_entity(self, kind: EntityKind, entity: Entity) -> str:
        """Append a built entity to its collection and notify views."""
        if kind == EntityKind.PLAYER:
            self.beginInsertRows(QModelIndex(), len(self._players), len(self._players))
            self._players.append(entity)  # type: ignore[arg-type]
            self.endInsertRows()
        else:
            self._collection(kind).append(entity)
        self._emit_kind_changed(kind)
        self.requestSnapshot()
        return entity.id

    @Slot(str, "QVariant", result=str)
    def addEntity(self, kind: str, fields: Any) -> str:
        """Create an entity of ``kind`` from a field map and return its id."""
        entity_kind = _parse_kind(kind)
        if entity_kind is None:
            return ""
        if isinstance(fields, QJSValue):
            fields = fields.toVariant()
        if not isinstance(fields, dict):
            fields = {}
        entity = entity_from_dict(entity_kind, fields, self._next_id(_ID_PREFIXES[entity_kind]))
        if entity is None:
            return ""
        return self.insert_entity(entity_kind, entity)

    @Slot(str, float, float, result=str)
    def addPlayer(self, color: str, x: float, y: float) -> str:
        player_type = self._player_type_for_color(color)
        player = Player(id=self._next_id("player"), x=x, y=y, color=color, player_type=player_type)
        return self.insert_entity(EntityKind.PLAYER, player)

    @Slot(float, float, result=str)
    def addTextBox(self, x: float, y: float) -> str:
        return self.insert_entity(EntityKind.TEXTBOX, TextBox(id=self._next_id("text"), x=x, y=y))

    @Slot(float, float, result=str)
    def addCircle(self, x: float, y: float) -> str:
        return self.insert_entity(EntityKind.CIRCLE, Circle(id=self._next_id("circle"), x=x, y=y))

    @Slot(float, float, result=str)
    def addFootball(self, x: float, y: float) -> str:
        return self.insert_entity(EntityKind.FOOTBALL, Football(id=self._next_id("football"), x=x, y=y))

    def add_route(self, route: Route, owner_id: Optional[str] = None) -> str:
        """Insert a built route and attach it to ``owner_id`` when given."""
        self._routes.append(route)
        if owner_id and self.getPlayer(owner_id) is not None:
            self._associations.setdefault(owner_id, []).append(route.id)
            self.associationsChanged.emit()
        self.routesChanged.emit()
        self.requestSnapshot()
        return route.id

    @Slot("QVariant", str, str, str, result=str)
    def addRoute(self, points: Any, style: str, line_break_type: str, owner_id: str = "") -> str:
        if isinstance(points, QJSValue):
            points = points.toVariant()
        route = entity_from_dict(
            EntityKind.ROUTE,
            {"points": points, "style": style, "lineBreakType": line_break_type},
            self._next_id("route"),
        )
        if route is None:
            return ""
        return self.add_route(route, owner_id or None)

    @Slot(str, str, "QVariant", result=bool)
    def updateEntity(self, kind: str, entity_id: str, patch: Any) -> bool:
        """Merge ``patch`` into an entity. Unknown ids are ignored."""
        entity_kind = _parse_kind(kind)
        if entity_kind is None:
            return False
        if isinstance(patch, QJSValue):
            patch = patch.toVariant()
        if not isinstance(patch, dict) or not patch:
            return False
        row, entity = self._find(entity_kind, entity_id)
        if entity is None:
            return False
        if not self._apply_patch(entity_kind, entity, patch):
            return False
        if entity_kind == EntityKind.PLAYER:
            self._notify_player_row(row)
        self._emit_kind_changed(entity_kind)
        self.requestSnapshot()
        return True

    def _apply_patch(self, kind: EntityKind, entity: Entity, patch: Dict[str, Any]) -> bool:
        """Convert every patched field first; assign only if all of them parse."""
        updates: Dict[str, Any] = {}
        try:
            if kind == EntityKind.ROUTE:
                route: Route = entity  # type: ignore[assignment]
                if "points" in patch:
                    points = _parse_points(patch["points"])
                    if len(points) >= 2:
                        updates["points"] = points
                if "style" in patch:
                    updates["style"] = _parse_enum(RouteStyle, patch["style"], route.style)
                if "lineBreakType" in patch:
                    updates["line_break_type"] = _parse_enum(LineBreakType, patch["lineBreakType"], route.line_break_type)
                if "color" in patch and patch["color"]:
                    updates["color"] = str(patch["color"])
                if "endpointType" in patch:
                    updates["endpoint_type"] = _parse_enum(EndpointType, patch["endpointType"], route.endpoint_type)
            else:
                if "x" in patch:
                    updates["x"] = float(patch["x"])
                if "y" in patch:
                    updates["y"] = float(patch["y"])
                if kind == EntityKind.PLAYER:
                    if "color" in patch and patch["color"]:
                        updates["color"] = str(patch["color"])
                    if "type" in patch:
                        updates["player_type"] = _parse_enum(PlayerType, patch["type"], entity.player_type)
                elif kind == EntityKind.TEXTBOX:
                    if "text" in patch:
                        updates["text"] = str(patch["text"])
                    if "fontSize" in patch:
                        updates["font_size"] = float(patch["fontSize"])
                    if "color" in patch and patch["color"]:
                        updates["color"] = str(patch["color"])
                elif kind == EntityKind.CIRCLE:
                    if "radius" in patch:
                        updates["radius"] = float(patch["radius"])
                    if "color" in patch and patch["color"]:
                        updates["color"] = str(patch["color"])
                elif kind == EntityKind.FOOTBALL:
                    if "size" in patch:
                        updates["size"] = float(patch["size"])
        except (TypeError, ValueError):
            return False

        changed = False
        for attr, value in updates.items():
            if getattr(entity, attr) != value:
                setattr(entity, attr, value)
                changed = True
        return changed

    @Slot(str, float, float)
    def movePlayer(self, player_id: str, x: float, y: float) -> None:
        self.moveEntity(EntityKind.PLAYER.value, player_id, x, y)

    @Slot(str, str, float, float)
    def moveEntity(self, kind: str, entity_id: str, x: float, y: float) -> None:
        """Move an entity's anchor to (x, y); routes move by their first point."""
        entity_kind = _parse_kind(kind)
        if entity_kind is None:
            return
        if self._set_anchor(entity_kind, entity_id, x, y):
            self.requestSnapshot()

    def _set_anchor(self, kind: EntityKind, entity_id: str, x: float, y: float) -> bool:
        row, entity = self._find(kind, entity_id)
        if entity is None:
            return False
        if kind == EntityKind.ROUTE:
            first = entity.points[0]
            return self._set_route_points(entity_id, [(pt.x + x - first.x, pt.y + y - first.y) for pt in entity.points])
        if entity.x == x and entity.y == y:
            return False
        entity.x = x
        entity.y = y
        if kind == EntityKind.PLAYER:
            self._notify_player_row(row, [self.XRole, self.YRole])
        self._emit_kind_changed(kind)
        return True

    def _set_route_points(self, route_id: str, points: List[Tuple[float, float]]) -> bool:
        route = self.getRoute(route_id)
        if route is None or len(points) < 2:
            return False
        route.points = [RoutePoint(x, y) for x, y in points]
        self.routesChanged.emit()
        return True

    @Slot(str, str)
    def setPlayerColor(self, player_id: str, color: str) -> None:
        self.updateEntity(EntityKind.PLAYER.value, player_id, {"color": color})

    @Slot(str, str)
    def setTextBoxText(self, text_id: str, text: str) -> None:
        self.updateEntity(EntityKind.TEXTBOX.value, text_id, {"text": text})

    @Slot(str, str)
    def updateRouteStyle(self, route_id: str, style: str) -> None:
        self.updateEntity(EntityKind.ROUTE.value, route_id, {"style": style})

    @Slot(str, str)
    def setRouteEndpoint(self, route_id: str, endpoint_type: str) -> None:
        self.updateEntity(EntityKind.ROUTE.value, route_id, {"endpointType": endpoint_type})

    @Slot(str)
    def toggleRouteArrow(self, route_id: str) -> None:
        route = self.getRoute(route_id)
        if route is None:
            return
        endpoint = EndpointType.NONE if route.endpoint_type == EndpointType.ARROW else EndpointType.ARROW
        self.setRouteEndpoint(route_id, endpoint.value)

    @Slot(str, str, result=bool)
    def removeEntity(self, kind: str, entity_id: str) -> bool:
        """Delete an entity, cascading player deletes to the routes they own."""
        entity_kind = _parse_kind(kind)
        if entity_kind is None:
            return False
        if not self._remove(entity_kind, entity_id):
            return False
        self.requestSnapshot()
        return True

    def _remove(self, kind: EntityKind, entity_id: str) -> bool:
        row, entity = self._find(kind, entity_id)
        if entity is None:
            return False

        if kind == EntityKind.PLAYER:
            for route_id in list(self._associations.get(entity_id, [])):
                self._remove(EntityKind.ROUTE, route_id)
            if self._associations.pop(entity_id, None) is not None:
                self.associationsChanged.emit()
            self.beginRemoveRows(QModelIndex(), row, row)
            self._players.pop(row)
            self.endRemoveRows()
        else:
            self._collection(kind).pop(row)

        if kind == EntityKind.ROUTE:
            self._prune_route_from_associations(entity_id)

        if self._selection.contains(kind, entity_id):
            self._selection.discard(kind, entity_id)
            self.selectionChanged.emit()
        self._emit_kind_changed(kind)
        return True

    def _prune_route_from_associations(self, route_id: str) -> None:
        changed = False
        for player_id in list(self._associations):
            route_ids = self._associations[player_id]
            if route_id in route_ids:
                route_ids.remove(route_id)
                changed = True
            if not route_ids:
                del self._associations[player_id]
                changed = True
        if changed:
            self.associationsChanged.emit()

    @Slot()
    def rebuildAssociations(self) -> None:
        """Reassign every route to the offensive player nearest its start."""
        self._associations = rebuild_associations(self._players, self._routes)
        self.associationsChanged.emit()
        self.requestSnapshot()

    @Slot(str, result=list)
    def associatedRoutes(self, player_id: str) -> List[str]:
        return list(self._associations.get(player_id, []))

    @Slot(str, result=str)
    def routeOwner(self, route_id: str) -> str:
        for player_id, route_ids in self._associations.items():
            if route_id in route_ids:
                return player_id
        return ""

    @Slot()
    def clearPlayboard(self) -> None:
        """Remove every entity and association."""
        self._interaction = Idle()
        self.stopAnimation()
        self._clear_collections()
        self._emit_all_changed()
        self.requestSnapshot()

    def _clear_collections(self) -> None:
        self.beginResetModel()
        self._players = []
        self.endResetModel()
        self._routes = []
        self._text_boxes = []
        self._circles = []
        self._footballs = []
        self._associations = {}
        self._selection.clear()

    def _emit_all_changed(self) -> None:
        self.playersChanged.emit()
        self.routesChanged.emit()
        self.annotationsChanged.emit()
        self.associationsChanged.emit()
        self.selectionChanged.emit()
        self.drawingChanged.emit()

    @Slot(str)
    def setPlayId(self, play_id: str) -> None:
        if self._play_id != play_id:
            self._play_id = play_id
            self.playInfoChanged.emit()

    @Slot(str)
    def setPlayName(self, name: str) -> None:
        if self._play_name != name:
            self._play_name = name
            self.playInfoChanged.emit()

    @Slot(str)
    def setPlayNotes(self, notes: str) -> None:
        if self._play_notes != notes:
            self._play_notes = notes
            self.playInfoChanged.emit()

    @Slot(float, float)
    def setFieldSize(self, width: float, height: float) -> None:
        """Record the canvas size used for formations and zone coverage."""
        if width <= 0 or height <= 0:
            return
        if (self._field_width, self._field_height) == (width, height):
            return
        self._field_width = width
        self._field_height = height
        self.fieldSizeChanged.emit()

    # --- Snapshots ------------------------------------------------------------
    def snapshot(self) -> Snapshot:
        return Snapshot.capture(
            self._players,
            self._routes,
            self._text_boxes,
            self._circles,
            self._footballs,
            self._associations,
        )

    def restore_snapshot(self, snapshot: Snapshot) -> None:
        """Replace every collection with copies of ``snapshot``."""
        restored = Snapshot.capture(
            list(snapshot.players),
            list(snapshot.routes),
            list(snapshot.text_boxes),
            list(snapshot.circles),
            list(snapshot.footballs),
            snapshot.association_map(),
        )
        self._interaction = Idle()
        self.beginResetModel()
        self._players = list(restored.players)
        self.endResetModel()
        self._routes = list(restored.routes)
        self._text_boxes = list(restored.text_boxes)
        self._circles = list(restored.circles)
        self._footballs = list(restored.footballs)
        self._associations = restored.association_map()
        self._prune_selection()
        self._emit_all_changed()

    def _prune_selection(self) -> None:
        for kind in EntityKind:
            existing = {entity.id for entity in self._collection(kind)}
            ids = self._selection.ids_for(kind)
            ids[:] = [entity_id for entity_id in ids if entity_id in existing]

    # --- Serialization ------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Serialize the play to a dictionary for saving.

        Returns:
            Dictionary using the play file field names.
        """
        data: Dict[str, Any] = {
            "id": self._play_id,
            "name": self._play_name,
            "players": [entity_to_dict(player) for player in self._players],
            "routes": [entity_to_dict(route) for route in self._routes],
            "playerRouteAssociations": {
                player_id: list(route_ids) for player_id, route_ids in self._associations.items()
            },
            "textBoxes": [entity_to_dict(text_box) for text_box in self._text_boxes],
            "circles": [entity_to_dict(circle) for circle in self._circles],
            "footballs": [entity_to_dict(football) for football in self._footballs],
            "playNotes": self._play_notes,
        }
        if self._background:
            data["background"] = self._background
        return data

    def from_dict(self, data: Dict[str, Any]) -> None:
        """Load a play from a dictionary, normalizing legacy and partial records.

        Args:
            data: Dictionary containing play data (from to_dict or an older file).
        """
        self._interaction = Idle()
        self.stopAnimation()

        loaded: Dict[EntityKind, List[Any]] = {kind: [] for kind in EntityKind}
        sources = {
            EntityKind.PLAYER: "players",
            EntityKind.ROUTE: "routes",
            EntityKind.TEXTBOX: "textBoxes",
            EntityKind.CIRCLE: "circles",
            EntityKind.FOOTBALL: "footballs",
        }
        records_by_kind: Dict[EntityKind, List[Dict[str, Any]]] = {}
        for kind, key in sources.items():
            records = data.get(key) or []
            if not isinstance(records, list):
                records = []
            records_by_kind[kind] = [record for record in records if isinstance(record, dict)]

        # Resume ID generation past every stored id before minting new ones
        max_id = 0
        for records in records_by_kind.values():
            for record in records:
                id_parts = str(record.get("id") or "").rsplit("_", 1)
                if len(id_parts) == 2:
                    try:
                        max_id = max(max_id, int(id_parts[1]) + 1)
                    except ValueError:
                        pass
        self._id_source = count(max(max_id, next(self._id_source)))

        for kind, records in records_by_kind.items():
            seen = set()
            for record in records:
                entity_id = str(record.get("id") or self._next_id(_ID_PREFIXES[kind]))
                if entity_id in seen:
                    continue
                entity = entity_from_dict(kind, record, entity_id)
                if entity is None:
                    continue
                seen.add(entity_id)
                loaded[kind].append(entity)

        self.beginResetModel()
        self._players = loaded[EntityKind.PLAYER]
        self.endResetModel()
        self._routes = loaded[EntityKind.ROUTE]
        self._text_boxes = loaded[EntityKind.TEXTBOX]
        self._circles = loaded[EntityKind.CIRCLE]
        self._footballs = loaded[EntityKind.FOOTBALL]
        self._selection.clear()

        associations = parse_associations(data.get("playerRouteAssociations"))
        if associations is None:
            associations = rebuild_associations(self._players, self._routes)
        player_ids = {player.id for player in self._players}
        route_ids = {route.id for route in self._routes}
        self._associations = {}
        for player_id, owned in associations.items():
            owned = [route_id for route_id in owned if route_id in route_ids]
            if player_id in player_ids and owned:
                self._associations[player_id] = owned

        self._play_id = str(data.get("id") or "")
        self._play_name = str(data.get("name") or "")
        self._play_notes = str(data.get("playNotes") or "")
        self._background = str(data.get("background") or "")

        self._emit_all_changed()
        self.playInfoChanged.emit()
        self.resetHistory()
