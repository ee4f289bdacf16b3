"""Constants and presets for PlayDraw diagrams."""

from typing import Any, Dict, List, Tuple

from .types import CoveragePattern, LineBreakType, PlayerType, RouteStyle


CLIPBOARD_MIME_TYPE = "application/x-playdraw-route"

# Player icons are 48px wide; paths snap to the side of an icon they start near.
PLAYER_RADIUS = 24.0
SNAP_DISTANCE = 40.0
ANCHOR_INSET = 6.0
FIELD_PADDING = 24.0

DEFAULT_FIELD_WIDTH = 800.0
DEFAULT_FIELD_HEIGHT = 800.0

PAUSE_THRESHOLD_MS = 500.0
SMOOTH_SAMPLE_DISTANCE = 5.0
DASHED_SAMPLE_DISTANCE = 3.0
CLOCK_STEP_DEGREES = 30.0

MIN_SELECTION_SIZE = 10.0
ROUTE_HIT_TOLERANCE = 8.0

HISTORY_LIMIT = 50
HISTORY_DEBOUNCE_MS = 50

ANIMATION_SPEED = 150.0  # pixels per second
ANIMATION_FRAME_MS = 16
EXPORT_FPS = 15
MAN_COVERAGE_STEP_FRACTION = 0.1
MAN_COVERAGE_MAX_STEP = 20.0

QUICK_ADD_SLOTS = 8
STANDARD_QUICK_ADD_SLOTS = 4

DEFAULT_PLAYER_COLOR = "#6b7280"


PLAYER_PRESETS: Dict[str, Dict[str, Any]] = {
    "blue": {"type": PlayerType.OFFENSE, "display": "#3b82f6", "label": "X", "slot": (0.15, 0.8)},
    "red": {"type": PlayerType.OFFENSE, "display": "#ef4444", "label": "Z", "slot": (0.85, 0.8)},
    "green": {"type": PlayerType.OFFENSE, "display": "#22c55e", "label": "Y", "slot": (0.65, 0.8)},
    "yellow": {"type": PlayerType.OFFENSE, "display": "#eab308", "label": "C", "slot": (0.35, 0.8)},
    "qb": {"type": PlayerType.OFFENSE, "display": "#000000", "label": "QB", "slot": (0.5, 0.85)},
    "grey": {"type": PlayerType.DEFENSE, "display": "#6b7280", "label": "D", "slot": (0.5, 0.3)},
    "purple": {"type": PlayerType.DEFENSE, "display": "#a855f7", "label": "D", "slot": (0.5, 0.3)},
}

# Order used when the whole offensive set is placed at once.
OFFENSE_COLORS: List[str] = ["blue", "red", "green", "yellow", "qb"]

# Spots (as field fractions) for a generated five-man defense.
ZONE_DEFENSE_SPOTS: List[Tuple[float, float]] = [
    (0.2, 0.3),
    (0.4, 0.2),
    (0.6, 0.2),
    (0.8, 0.3),
    (0.5, 0.4),
]
PURPLE_DEFENSE_SPOTS: List[Tuple[float, float]] = [
    (0.2, 0.3),
    (0.4, 0.2),
    (0.5, 0.4),
    (0.6, 0.2),
    (0.8, 0.3),
]


DEFAULT_COVERAGES: List[CoveragePattern] = [
    CoveragePattern(
        id="cover-2",
        name="Cover 2",
        description="Two deep safeties, three underneath",
        positions=((0.2, 0.15), (0.8, 0.15), (0.3, 0.35), (0.5, 0.35), (0.7, 0.35)),
    ),
    CoveragePattern(
        id="cover-3",
        name="Cover 3",
        description="Three deep zones, two underneath",
        positions=((0.2, 0.15), (0.5, 0.15), (0.8, 0.15), (0.35, 0.35), (0.65, 0.35)),
    ),
    CoveragePattern(
        id="man-coverage",
        name="Man Coverage",
        description="Man-to-man, follow nearest receiver",
        positions=(),
    ),
    CoveragePattern(
        id="cover-4",
        name="Cover 4",
        description="Four deep zones, one underneath",
        positions=((0.2, 0.15), (0.4, 0.15), (0.6, 0.15), (0.8, 0.15), (0.5, 0.4)),
    ),
]


# Route templates are stored in the coordinates they were drawn in; they are
# re-anchored on the player's spot by translating relative to the first point.
STANDARD_ROUTES: Dict[str, Dict[str, Any]] = {
    "slant": {
        "points": [(1.0, 214.0), (0.0, 93.0), (1.0, 92.0), (135.0, 0.0)],
        "style": RouteStyle.SOLID,
        "line_break_type": LineBreakType.RIGID,
        "color": "black",
        "player_color": "red",
    },
    "post": {
        "points": [(1.0, 56.0), (0.0, 2.0), (0.0, 1.0), (129.0, 0.0)],
        "style": RouteStyle.SOLID,
        "line_break_type": LineBreakType.RIGID,
        "color": "black",
        "player_color": "red",
    },
    "hitch": {
        "points": [(330.5, 332.0), (329.5, 256.0), (329.5, 256.0), (305.5, 285.0)],
        "style": RouteStyle.SOLID,
        "line_break_type": LineBreakType.RIGID,
        "color": "black",
        "player_color": "yellow",
    },
    "corner": {
        "points": [(427.09, 328.6), (427.09, 298.6), (427.09, 298.6), (286.09, 267.6)],
        "style": RouteStyle.SOLID,
        "line_break_type": LineBreakType.RIGID,
        "color": "black",
        "player_color": "green",
    },
}


def player_display_color(color: str) -> str:
    """Return the hex color used to paint a player tagged ``color``."""
    preset = PLAYER_PRESETS.get(color)
    if not preset:
        return DEFAULT_PLAYER_COLOR
    return str(preset["display"])


def player_label(color: str, player_type: PlayerType = PlayerType.OFFENSE) -> str:
    """Return the short label printed on a player icon."""
    if player_type == PlayerType.DEFENSE:
        return "D"
    preset = PLAYER_PRESETS.get(color)
    if not preset:
        return ""
    return str(preset["label"])
