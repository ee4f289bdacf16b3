"""PlayDraw play diagram engine built with PySide6.

The package models a play as players, routes and annotations on a field,
records routes from pointer gestures, keeps a debounced undo history and
animates the play as a pure function of elapsed time.
"""

from .animation import animated_positions, animation_duration, frame_times
from .constants import CLIPBOARD_MIME_TYPE, DEFAULT_COVERAGES, PLAYER_PRESETS, STANDARD_ROUTES
from .model import PlayModel
from .selection import entities_in_rect
from .types import (
    Circle,
    EndpointType,
    EntityKind,
    Football,
    LineBreakType,
    Player,
    PlayerType,
    Route,
    RoutePoint,
    RouteStyle,
    SelectionSet,
    Snapshot,
    TextBox,
)

__all__ = [
    "CLIPBOARD_MIME_TYPE",
    "Circle",
    "DEFAULT_COVERAGES",
    "EndpointType",
    "EntityKind",
    "Football",
    "LineBreakType",
    "PLAYER_PRESETS",
    "Player",
    "PlayModel",
    "PlayerType",
    "Route",
    "RoutePoint",
    "RouteStyle",
    "STANDARD_ROUTES",
    "SelectionSet",
    "Snapshot",
    "TextBox",
    "animated_positions",
    "animation_duration",
    "entities_in_rect",
    "frame_times",
]
