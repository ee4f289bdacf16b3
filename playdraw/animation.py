"""Play animation for PlayDraw.

Positions during playback are a pure function of elapsed time: offensive
players run their first traveled route at a constant speed, defenders
either drop to a coverage spot or chase the nearest receiver. The module
level functions carry no Qt dependency so export encoders can sample any
moment of the play; ``AnimationMixin`` only drives the clock.
"""

from __future__ import annotations

import math
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from PySide6.QtCore import QTimer, Signal, Slot

from .constants import (
    ANIMATION_FRAME_MS,
    ANIMATION_SPEED,
    DEFAULT_COVERAGES,
    DEFAULT_FIELD_HEIGHT,
    DEFAULT_FIELD_WIDTH,
    EXPORT_FPS,
    MAN_COVERAGE_MAX_STEP,
    MAN_COVERAGE_STEP_FRACTION,
)
from .geometry import point_at_distance, polyline_length
from .types import NON_TRAVELED_BREAK_TYPES, CoveragePattern, Player, PlayerType, Route

if TYPE_CHECKING:
    from .model import PlayModel

Position = Tuple[float, float]


def animation_duration(routes: Sequence[Route], speed: float = ANIMATION_SPEED) -> float:
    """Seconds until the longest route has been run to its end."""
    if speed <= 0:
        return 0.0
    longest = max((polyline_length(route.points) for route in routes if len(route.points) >= 2), default=0.0)
    return longest / speed


def traveled_route(player_id: str, routes: Sequence[Route], associations: Mapping[str, Sequence[str]]) -> Optional[Route]:
    """Return the first route of a player that is run during playback."""
    by_id = {route.id: route for route in routes}
    for route_id in associations.get(player_id, ()):
        route = by_id.get(route_id)
        if route is None or len(route.points) < 2:
            continue
        if route.line_break_type in NON_TRAVELED_BREAK_TYPES:
            continue
        return route
    return None


def offensive_position(
    player: Player,
    routes: Sequence[Route],
    associations: Mapping[str, Sequence[str]],
    elapsed: float,
    speed: float = ANIMATION_SPEED,
) -> Position:
    route = traveled_route(player.id, routes, associations)
    if route is None:
        return (player.x, player.y)
    total = polyline_length(route.points)
    traveled = min(max(elapsed, 0.0) * speed, total)
    return point_at_distance(route.points, traveled)


def defensive_position(
    player: Player,
    defender_index: int,
    offense_positions: Sequence[Position],
    elapsed: float,
    speed: float = ANIMATION_SPEED,
    coverage: Optional[CoveragePattern] = None,
    field_width: float = DEFAULT_FIELD_WIDTH,
    field_height: float = DEFAULT_FIELD_HEIGHT,
) -> Position:
    """Position of a defender at ``elapsed`` seconds.

    With a zone coverage the defender walks from its start toward its
    assigned spot at the animation speed. Without one, or when the pattern
    has no spot for this defender, it steps from its start toward the
    nearest receiver's current position.
    """
    start_x, start_y = player.x, player.y
    if coverage is not None and 0 <= defender_index < len(coverage.positions):
        fx, fy = coverage.positions[defender_index]
        target_x, target_y = fx * field_width, fy * field_height
        total = math.hypot(target_x - start_x, target_y - start_y)
        if total == 0.0:
            return (start_x, start_y)
        t = min(max(elapsed, 0.0) * speed, total) / total
        return (start_x + (target_x - start_x) * t, start_y + (target_y - start_y) * t)

    if not offense_positions:
        return (start_x, start_y)
    target_x, target_y = min(
        offense_positions,
        key=lambda pos: math.hypot(pos[0] - start_x, pos[1] - start_y),
    )
    dx, dy = target_x - start_x, target_y - start_y
    gap = math.hypot(dx, dy)
    if gap == 0.0:
        return (start_x, start_y)
    step = min(gap * MAN_COVERAGE_STEP_FRACTION, MAN_COVERAGE_MAX_STEP)
    return (start_x + dx / gap * step, start_y + dy / gap * step)


def animated_positions(
    players: Sequence[Player],
    routes: Sequence[Route],
    associations: Mapping[str, Sequence[str]],
    elapsed: float,
    speed: float = ANIMATION_SPEED,
    coverage: Optional[CoveragePattern] = None,
    field_width: float = DEFAULT_FIELD_WIDTH,
    field_height: float = DEFAULT_FIELD_HEIGHT,
) -> Dict[str, Position]:
    """Return every player's position at ``elapsed`` seconds, keyed by id."""
    positions: Dict[str, Position] = {}
    for player in players:
        if player.player_type == PlayerType.OFFENSE:
            positions[player.id] = offensive_position(player, routes, associations, elapsed, speed)
    offense = list(positions.values())

    defender_index = 0
    for player in players:
        if player.player_type != PlayerType.DEFENSE:
            continue
        positions[player.id] = defensive_position(
            player, defender_index, offense, elapsed, speed, coverage, field_width, field_height
        )
        defender_index += 1
    return positions


def frame_times(duration: float, fps: int = EXPORT_FPS) -> List[float]:
    """Sample times for rendering the play as an animated sequence.

    The first frame is the formation at rest and the last lands on
    ``duration`` exactly.
    """
    frame_count = int(math.ceil(duration * fps)) if duration > 0 else 0
    if frame_count <= 0:
        return [0.0]
    return [duration * i / frame_count for i in range(frame_count + 1)]


def find_coverage(coverage_id: str) -> Optional[CoveragePattern]:
    for pattern in DEFAULT_COVERAGES:
        if pattern.id == coverage_id:
            return pattern
    return None


class AnimationMixin:
    """Mixin driving playback of a play.

    Note: Properties (isAnimating, animationProgress, animationSpeed,
    coverage, coverages) are defined in PlayModel since they need access to
    signals defined there.
    """

    # Signals (will be defined in PlayModel)
    animationChanged: Signal
    animationFrame: Signal
    animationSpeedChanged: Signal
    coverageChanged: Signal
    errorOccurred: Signal

    # Attributes expected from PlayModel
    _players: List[Player]
    _routes: List[Route]
    _associations: Dict[str, List[str]]
    _field_width: float
    _field_height: float
    _animation_speed: float
    _animation_start: Optional[float]
    _animation_duration: float
    _animation_progress: float
    _is_animating: bool
    _coverage: Optional[CoveragePattern]
    _frame_timer: QTimer

    def _init_animation(self) -> None:
        """Initialize playback state. Call from PlayModel.__init__."""
        self._animation_speed = ANIMATION_SPEED
        self._animation_start = None
        self._animation_duration = 0.0
        self._animation_progress = 0.0
        self._is_animating = False
        self._coverage = None
        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(ANIMATION_FRAME_MS)
        self._frame_timer.timeout.connect(self._on_animation_frame)

    def _get_coverages(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": pattern.id,
                "name": pattern.name,
                "description": pattern.description,
                "positions": [{"x": x, "y": y} for x, y in pattern.positions],
            }
            for pattern in DEFAULT_COVERAGES
        ]

    @Slot(float)
    def setAnimationSpeed(self, speed: float) -> None:
        if speed <= 0 or speed == self._animation_speed:
            return
        self._animation_speed = speed
        self.animationSpeedChanged.emit()

    @Slot(str)
    def setCoverage(self, coverage_id: str) -> None:
        """Select the defensive coverage; unknown or empty ids mean man coverage."""
        pattern = find_coverage(coverage_id) if coverage_id else None
        if pattern is not self._coverage:
            self._coverage = pattern
            self.coverageChanged.emit()

    @Slot(result=bool)
    def startAnimation(self) -> bool:
        """Start playback from the beginning.

        Rejected with an error message when the play has no routes.
        """
        if not self._routes:
            self.errorOccurred.emit("Draw some routes before playing the animation.")
            return False
        self._animation_duration = animation_duration(self._routes, self._animation_speed)
        self._animation_start = time.time()
        self._animation_progress = 0.0
        self._is_animating = True
        self.animationChanged.emit()
        if self._animation_duration <= 0:
            self.stopAnimation()
            return True
        self._frame_timer.start()
        return True

    @Slot()
    def stopAnimation(self) -> None:
        """Stop playback and rewind. Safe to call at any time."""
        self._frame_timer.stop()
        changed = self._is_animating or self._animation_progress != 0.0 or self._animation_start is not None
        self._is_animating = False
        self._animation_progress = 0.0
        self._animation_start = None
        if changed:
            self.animationChanged.emit()

    def _elapsed_seconds(self) -> float:
        if self._animation_start is None:
            return 0.0
        return max(0.0, time.time() - self._animation_start)

    def _on_animation_frame(self) -> None:
        if not self._is_animating:
            self._frame_timer.stop()
            return
        if self._animation_duration <= 0:
            progress = 1.0
        else:
            progress = min(self._elapsed_seconds() / self._animation_duration, 1.0)
        self._animation_progress = progress
        self.animationFrame.emit(progress)
        if progress >= 1.0:
            self.stopAnimation()

    def positions_at(self, elapsed: float) -> Dict[str, Position]:
        return animated_positions(
            self._players,
            self._routes,
            self._associations,
            elapsed,
            self._animation_speed,
            self._coverage,
            self._field_width,
            self._field_height,
        )

    @Slot(float, result="QVariant")
    def positionsAt(self, elapsed: float) -> Dict[str, Dict[str, float]]:
        """Return every player's position ``elapsed`` seconds into the play."""
        return {player_id: {"x": x, "y": y} for player_id, (x, y) in self.positions_at(elapsed).items()}

    @Slot(str, result="QVariant")
    def animatedPlayerPosition(self, player_id: str) -> Dict[str, float]:
        """Return where a player is drawn right now; at rest when not animating."""
        for player in self._players:
            if player.id == player_id:
                break
        else:
            return {}
        if not self._is_animating:
            return {"x": player.x, "y": player.y}
        x, y = self.positions_at(self._elapsed_seconds()).get(player_id, (player.x, player.y))
        return {"x": x, "y": y}

    @Slot(result=list)
    def exportFrameTimes(self) -> List[float]:
        """Sample times an animated export should render."""
        return frame_times(animation_duration(self._routes, self._animation_speed))
