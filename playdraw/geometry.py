"""Geometry helpers for route drawing and playback.

Everything here is a pure function over plain coordinates or the point-like
dataclasses from :mod:`playdraw.types`; nothing touches Qt, so export
encoders can use these without a model instance.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .constants import ANCHOR_INSET, CLOCK_STEP_DEGREES, PLAYER_RADIUS, SNAP_DISTANCE
from .types import BezierSegment, Player, PlayerType, Route, RoutePoint

Rect = Tuple[float, float, float, float]

# Four low-pass passes; endpoints never move.
SMOOTHING_PASSES: Tuple[Tuple[float, float, float], ...] = (
    (0.25, 0.5, 0.25),
    (0.25, 0.5, 0.25),
    (0.25, 0.5, 0.25),
    (0.25, 0.5, 0.25),
)

# (dx, dy) of the top, right, bottom and left side midpoints of a player icon.
_ANCHOR_SIDES: Tuple[Tuple[float, float], ...] = ((0.0, -1.0), (1.0, 0.0), (0.0, 1.0), (-1.0, 0.0))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def polyline_length(points: Sequence[RoutePoint]) -> float:
    """Return the summed length of consecutive point-to-point segments."""
    total = 0.0
    for prev, nxt in zip(points, points[1:]):
        total += distance(prev.x, prev.y, nxt.x, nxt.y)
    return total


def point_at_distance(points: Sequence[RoutePoint], travelled: float) -> Tuple[float, float]:
    """Return the point ``travelled`` pixels along a polyline.

    Zero-length segments are skipped. Distances past the end hold at the
    final point.
    """
    if not points:
        return (0.0, 0.0)
    travelled = max(0.0, travelled)
    accumulated = 0.0
    for prev, nxt in zip(points, points[1:]):
        segment = distance(prev.x, prev.y, nxt.x, nxt.y)
        if segment == 0.0:
            continue
        if travelled <= accumulated + segment:
            t = (travelled - accumulated) / segment
            return (prev.x + (nxt.x - prev.x) * t, prev.y + (nxt.y - prev.y) * t)
        accumulated += segment
    last = points[-1]
    return (last.x, last.y)


def generate_smooth_path(points: Sequence[RoutePoint]) -> List[BezierSegment]:
    """Convert a point trace into cubic Bézier segments.

    Each segment is the Catmull-Rom span between ``points[i]`` and
    ``points[i + 1]`` expressed as Bézier control points with the 1/6
    tangent rule. The first span uses ``points[0]`` as its virtual
    predecessor and the last uses the final point as its virtual successor,
    so the curve starts and ends exactly on the drawn trace.
    """
    count = len(points)
    if count < 2:
        return []
    if count == 2:
        a, b = points
        return [BezierSegment((a.x, a.y), (a.x, a.y), (b.x, b.y), (b.x, b.y))]

    segments = []
    for i in range(count - 1):
        p0 = points[i - 1] if i > 0 else points[0]
        p1 = points[i]
        p2 = points[i + 1]
        p3 = points[i + 2] if i + 2 < count else points[count - 1]
        control1 = (p1.x + (p2.x - p0.x) / 6.0, p1.y + (p2.y - p0.y) / 6.0)
        control2 = (p2.x - (p3.x - p1.x) / 6.0, p2.y - (p3.y - p1.y) / 6.0)
        segments.append(BezierSegment((p1.x, p1.y), control1, control2, (p2.x, p2.y)))
    return segments


def path_to_svg(segments: Sequence[BezierSegment]) -> str:
    """Serialize Bézier segments as SVG path data."""
    if not segments:
        return ""
    first = segments[0].start
    parts = [f"M {first[0]:g} {first[1]:g}"]
    for segment in segments:
        c1, c2, end = segment.control1, segment.control2, segment.end
        parts.append(f"C {c1[0]:g} {c1[1]:g} {c2[0]:g} {c2[1]:g} {end[0]:g} {end[1]:g}")
    return " ".join(parts)


def smooth_pass(points: Sequence[RoutePoint], weights: Tuple[float, float, float]) -> List[RoutePoint]:
    """Run one neighbor-weighted averaging pass; the endpoints stay fixed."""
    if len(points) < 3:
        return [RoutePoint(pt.x, pt.y) for pt in points]
    w_prev, w_curr, w_next = weights
    smoothed = [RoutePoint(points[0].x, points[0].y)]
    for i in range(1, len(points) - 1):
        prev, curr, nxt = points[i - 1], points[i], points[i + 1]
        smoothed.append(RoutePoint(
            w_prev * prev.x + w_curr * curr.x + w_next * nxt.x,
            w_prev * prev.y + w_curr * curr.y + w_next * nxt.y,
        ))
    smoothed.append(RoutePoint(points[-1].x, points[-1].y))
    return smoothed


def smooth_points(points: Sequence[RoutePoint]) -> List[RoutePoint]:
    """Low-pass filter a point trace with neighbor-weighted averaging."""
    current = [RoutePoint(pt.x, pt.y) for pt in points]
    for weights in SMOOTHING_PASSES:
        current = smooth_pass(current, weights)
    return current


def nearest_player(
    x: float,
    y: float,
    players: Iterable[Player],
    player_type: Optional[PlayerType] = None,
    max_distance: float = math.inf,
) -> Optional[Player]:
    """Return the closest player to (x, y), optionally limited by role and range."""
    best: Optional[Player] = None
    best_distance = max_distance
    for player in players:
        if player_type is not None and player.player_type != player_type:
            continue
        d = distance(x, y, player.x, player.y)
        if d <= best_distance and (best is None or d < best_distance):
            best = player
            best_distance = d
    return best


def snap_to_anchor_side(
    x: float,
    y: float,
    players: Iterable[Player],
    radius: float = PLAYER_RADIUS,
    max_distance: float = SNAP_DISTANCE,
    inset: float = ANCHOR_INSET,
) -> Optional[Tuple[float, float]]:
    """Snap a route start onto the closest side of a nearby player icon.

    Returns ``None`` when no player lies within ``max_distance``.
    """
    player = nearest_player(x, y, players, max_distance=max_distance)
    if player is None:
        return None

    dx, dy = min(
        _ANCHOR_SIDES,
        key=lambda side: distance(x, y, player.x + side[0] * radius, player.y + side[1] * radius),
    )
    reach = radius - inset
    return (player.x + dx * reach, player.y + dy * reach)


def snap_to_clock_angle(angle: float) -> float:
    """Quantize an angle in degrees to the nearest of twelve 30° headings."""
    normalized = angle % 360.0
    steps = int(round(360.0 / CLOCK_STEP_DEGREES))
    headings = [step * CLOCK_STEP_DEGREES for step in range(steps)]

    def wrapped_gap(heading: float) -> float:
        gap = abs(normalized - heading)
        return min(gap, 360.0 - gap)

    return min(headings, key=wrapped_gap)


def snap_segment_to_clock_angle(start: RoutePoint, end: RoutePoint) -> RoutePoint:
    """Re-aim ``end`` around ``start`` on a clock heading, keeping the length."""
    length = distance(start.x, start.y, end.x, end.y)
    if length == 0.0:
        return RoutePoint(end.x, end.y)
    angle = math.degrees(math.atan2(end.y - start.y, end.x - start.x))
    snapped = math.radians(snap_to_clock_angle(angle))
    return RoutePoint(start.x + math.cos(snapped) * length, start.y + math.sin(snapped) * length)


def rebuild_associations(players: Sequence[Player], routes: Sequence[Route]) -> Dict[str, List[str]]:
    """Assign every route to the offensive player nearest its first point."""
    associations: Dict[str, List[str]] = {}
    for route in routes:
        if not route.points:
            continue
        start = route.points[0]
        owner = nearest_player(start.x, start.y, players, PlayerType.OFFENSE)
        if owner is None:
            continue
        associations.setdefault(owner.id, []).append(route.id)
    return associations


def normalize_rect(x1: float, y1: float, x2: float, y2: float) -> Rect:
    """Return (min_x, min_y, max_x, max_y) for two corners in any order."""
    return (min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))


def point_in_rect(x: float, y: float, rect: Rect) -> bool:
    min_x, min_y, max_x, max_y = rect
    return min_x <= x <= max_x and min_y <= y <= max_y


def rects_overlap(a: Rect, b: Rect) -> bool:
    return not (a[2] < b[0] or a[0] > b[2] or a[3] < b[1] or a[1] > b[3])


def clamp_to_field(value: float, size: float, padding: float) -> float:
    """Clamp a coordinate so an icon stays inside a field of ``size`` pixels."""
    return max(padding, min(size - padding, value))


def distance_to_segment(x: float, y: float, a: RoutePoint, b: RoutePoint) -> float:
    """Return the distance from (x, y) to the segment a-b."""
    dx, dy = b.x - a.x, b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return distance(x, y, a.x, a.y)
    t = max(0.0, min(1.0, ((x - a.x) * dx + (y - a.y) * dy) / length_sq))
    return distance(x, y, a.x + t * dx, a.y + t * dy)
