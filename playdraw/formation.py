"""Formation mixin for PlayModel.

This module places players on their default spots: single players by
color, the whole offensive set, and generated five-man defenses.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Tuple, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .constants import (
    FIELD_PADDING,
    OFFENSE_COLORS,
    PLAYER_PRESETS,
    PURPLE_DEFENSE_SPOTS,
    ZONE_DEFENSE_SPOTS,
)
from .geometry import clamp_to_field
from .types import Entity, EntityKind, Player, PlayerType

if TYPE_CHECKING:
    from .model import PlayModel

LINE_SPACING = 80.0


class FormationMixin:
    """Mixin providing player placement operations."""

    # Signals (will be defined in PlayModel)
    errorOccurred: Signal

    # Attributes expected from PlayModel
    _players: List[Player]
    _field_width: float
    _field_height: float
    _next_id: Callable[[str], str]
    _remove: Callable[[EntityKind, str], bool]
    insert_entity: Callable[[EntityKind, Entity], str]
    requestSnapshot: Callable[[], None]

    def _player_type_for_color(self, color: str) -> PlayerType:
        preset = PLAYER_PRESETS.get(color)
        if not preset:
            return PlayerType.OFFENSE
        return preset["type"]

    def _field_spot(self, fx: float, fy: float) -> Tuple[float, float]:
        """Convert field fractions to pixels, keeping the icon on the field."""
        return (
            clamp_to_field(self._field_width * fx, self._field_width, FIELD_PADDING),
            clamp_to_field(self._field_height * fy, self._field_height, FIELD_PADDING),
        )

    def default_spot(self, color: str) -> Tuple[float, float]:
        """Return where a new player of ``color`` is placed.

        Known offensive colors have a fixed spot on the line of scrimmage.
        Other colors are lined up next to the players already on that line.
        """
        preset = PLAYER_PRESETS.get(color)
        if preset and preset["type"] == PlayerType.OFFENSE:
            return self._field_spot(*preset["slot"])

        line_y = self._field_height * 0.8
        on_line = [p for p in self._players if abs(p.y - line_y) < self._field_height * 0.05]
        start_x = self._field_width / 2 - len(on_line) * LINE_SPACING / 2
        return (start_x + len(on_line) * LINE_SPACING, line_y)

    @Slot(str, result=str)
    def addPlayerToField(self, color: str) -> str:
        """Add a player of ``color`` at its default spot and return its id."""
        x, y = self.default_spot(color)
        player = Player(
            id=self._next_id("player"),
            x=x,
            y=y,
            color=color,
            player_type=self._player_type_for_color(color),
        )
        return self.insert_entity(EntityKind.PLAYER, player)

    @Slot(result=list)
    def addAllPlayers(self) -> List[str]:
        """Add the full offensive set, one player per offensive color."""
        return [self.addPlayerToField(color) for color in OFFENSE_COLORS]

    def _add_defenders(self, color: str, spots: Sequence[Tuple[float, float]]) -> List[str]:
        added = []
        for fx, fy in spots:
            x, y = self._field_spot(fx, fy)
            player = Player(id=self._next_id("defense"), x=x, y=y, color=color, player_type=PlayerType.DEFENSE)
            added.append(self.insert_entity(EntityKind.PLAYER, player))
        return added

    @Slot(result=list)
    def createZoneDefense(self) -> List[str]:
        """Replace the defense with five grey zone defenders.

        The offense has to be on the field first; otherwise an error is
        reported and nothing changes.
        """
        if not any(p.player_type == PlayerType.OFFENSE for p in self._players):
            self.errorOccurred.emit("Please add offensive players before creating defense!")
            return []
        for player in [p for p in self._players if p.player_type == PlayerType.DEFENSE]:
            self._remove(EntityKind.PLAYER, player.id)
        return self._add_defenders("grey", ZONE_DEFENSE_SPOTS)

    @Slot(result=list)
    def addPurpleDefense(self) -> List[str]:
        """Add five purple defenders next to any existing defense."""
        return self._add_defenders("purple", PURPLE_DEFENSE_SPOTS)

    @Slot(result="QVariant")
    def defaultSpots(self) -> Dict[str, Dict[str, float]]:
        spots = {}
        for color in OFFENSE_COLORS:
            x, y = self.default_spot(color)
            spots[color] = {"x": x, "y": y}
        return spots
