"""Data types for PlayDraw diagrams.

This module contains the core data structures used throughout the
PlayDraw play editor: the spatial entities, the undo snapshot, the
selection set and the interaction states of the editing canvas.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class PlayerType(Enum):
    """Side of the ball a player belongs to."""

    OFFENSE = "offense"
    DEFENSE = "defense"


class RouteStyle(Enum):
    """Stroke style of a route."""

    SOLID = "solid"
    DASHED = "dashed"


class LineBreakType(Enum):
    """Corner treatment of a route."""

    RIGID = "rigid"
    SMOOTH = "smooth"
    NONE = "none"
    SMOOTH_NONE = "smooth-none"


class EndpointType(Enum):
    """Decoration drawn at the end of a route."""

    ARROW = "arrow"
    DOT = "dot"
    NONE = "none"


class EntityKind(Enum):
    """Kinds of entity held by the play model."""

    PLAYER = "player"
    ROUTE = "route"
    TEXTBOX = "textbox"
    CIRCLE = "circle"
    FOOTBALL = "football"


# Break types whose routes mark movement that is not run during playback.
NON_TRAVELED_BREAK_TYPES = (LineBreakType.NONE, LineBreakType.SMOOTH_NONE)
SMOOTHED_BREAK_TYPES = (LineBreakType.SMOOTH, LineBreakType.SMOOTH_NONE)


def default_endpoint_for(line_break_type: LineBreakType) -> EndpointType:
    """Return the endpoint decoration a new route of this type starts with."""
    if line_break_type in NON_TRAVELED_BREAK_TYPES:
        return EndpointType.NONE
    return EndpointType.ARROW


@dataclass
class Player:
    """A positioned, role-tagged player icon."""

    id: str
    x: float
    y: float
    color: str = "blue"
    player_type: PlayerType = PlayerType.OFFENSE


@dataclass
class RoutePoint:
    """A single point of a route."""

    x: float
    y: float


@dataclass
class Route:
    """A drawn route: an ordered point trace with style information."""

    id: str
    points: List[RoutePoint]
    style: RouteStyle = RouteStyle.SOLID
    line_break_type: LineBreakType = LineBreakType.RIGID
    color: str = "black"
    endpoint_type: Optional[EndpointType] = None

    def __post_init__(self) -> None:
        if self.endpoint_type is None:
            self.endpoint_type = default_endpoint_for(self.line_break_type)

    @property
    def display_color(self) -> str:
        """Color used for rendering and export; dashed routes are always black."""
        if self.style == RouteStyle.DASHED:
            return "black"
        return self.color


@dataclass
class TextBox:
    """A free text annotation."""

    id: str
    x: float
    y: float
    text: str = "Click to edit"
    font_size: float = 16.0
    color: str = "black"


@dataclass
class Circle:
    """A circle marker annotation."""

    id: str
    x: float
    y: float
    radius: float = 8.0
    color: str = "black"


@dataclass
class Football:
    """The ball marker."""

    id: str
    x: float
    y: float
    size: float = 32.0


Entity = Union[Player, Route, TextBox, Circle, Football]
AssociationPairs = Tuple[Tuple[str, Tuple[str, ...]], ...]


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of every entity collection, the unit of undo/redo."""

    players: Tuple[Player, ...] = ()
    routes: Tuple[Route, ...] = ()
    text_boxes: Tuple[TextBox, ...] = ()
    circles: Tuple[Circle, ...] = ()
    footballs: Tuple[Football, ...] = ()
    associations: AssociationPairs = ()

    @classmethod
    def capture(
        cls,
        players: List[Player],
        routes: List[Route],
        text_boxes: List[TextBox],
        circles: List[Circle],
        footballs: List[Football],
        associations: Dict[str, List[str]],
    ) -> "Snapshot":
        return cls(
            players=tuple(copy.deepcopy(players)),
            routes=tuple(copy.deepcopy(routes)),
            text_boxes=tuple(copy.deepcopy(text_boxes)),
            circles=tuple(copy.deepcopy(circles)),
            footballs=tuple(copy.deepcopy(footballs)),
            associations=tuple(
                (player_id, tuple(route_ids)) for player_id, route_ids in associations.items()
            ),
        )

    def association_map(self) -> Dict[str, List[str]]:
        return {player_id: list(route_ids) for player_id, route_ids in self.associations}


@dataclass
class SelectionSet:
    """Ids of the currently selected entities, one list per kind."""

    players: List[str] = field(default_factory=list)
    routes: List[str] = field(default_factory=list)
    text_boxes: List[str] = field(default_factory=list)
    circles: List[str] = field(default_factory=list)
    footballs: List[str] = field(default_factory=list)

    def ids_for(self, kind: EntityKind) -> List[str]:
        return {
            EntityKind.PLAYER: self.players,
            EntityKind.ROUTE: self.routes,
            EntityKind.TEXTBOX: self.text_boxes,
            EntityKind.CIRCLE: self.circles,
            EntityKind.FOOTBALL: self.footballs,
        }[kind]

    def contains(self, kind: EntityKind, entity_id: str) -> bool:
        return entity_id in self.ids_for(kind)

    def add(self, kind: EntityKind, entity_id: str) -> None:
        ids = self.ids_for(kind)
        if entity_id not in ids:
            ids.append(entity_id)

    def discard(self, kind: EntityKind, entity_id: str) -> None:
        ids = self.ids_for(kind)
        if entity_id in ids:
            ids.remove(entity_id)

    def clear(self) -> None:
        for kind in EntityKind:
            self.ids_for(kind).clear()

    def is_empty(self) -> bool:
        return self.count() == 0

    def count(self) -> int:
        return sum(len(self.ids_for(kind)) for kind in EntityKind)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "players": list(self.players),
            "routes": list(self.routes),
            "textBoxes": list(self.text_boxes),
            "circles": list(self.circles),
            "footballs": list(self.footballs),
        }


@dataclass(frozen=True)
class CoveragePattern:
    """Named set of defensive target spots in fractional field coordinates."""

    id: str
    name: str
    description: str
    positions: Tuple[Tuple[float, float], ...] = ()


@dataclass(frozen=True)
class BezierSegment:
    """One cubic Bézier piece of a smoothed route."""

    start: Tuple[float, float]
    control1: Tuple[float, float]
    control2: Tuple[float, float]
    end: Tuple[float, float]


# --- Interaction states ------------------------------------------------------
@dataclass
class Idle:
    """No pointer gesture in progress."""


@dataclass
class Drawing:
    """A route gesture is being recorded."""

    points: List[RoutePoint]
    last_sample: RoutePoint
    last_move_ms: float


@dataclass
class BoxSelecting:
    """A rubber-band selection rectangle is being dragged."""

    start_x: float
    start_y: float
    end_x: float
    end_y: float


@dataclass
class Dragging:
    """One entity (or the selection it belongs to) is being dragged.

    ``originals`` maps ``(kind, id)`` to the pre-drag position: an ``(x, y)``
    tuple for positioned entities, a list of ``(x, y)`` tuples for routes.
    """

    kind: EntityKind
    entity_id: str
    offset_x: float
    offset_y: float
    origin_x: float
    origin_y: float
    group: bool = False
    originals: Dict[Tuple[EntityKind, str], object] = field(default_factory=dict)
    moved: bool = False


InteractionState = Union[Idle, Drawing, BoxSelecting, Dragging]
