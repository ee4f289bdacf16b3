"""Quick-add route mixin for PlayModel.

Quick-add slots hold route templates that can be dropped onto the field
together with a new player. The first four slots are the built-in standard
routes; the remaining ones are filled from routes drawn in the editor.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from PySide6.QtCore import Signal, Slot

from .constants import PLAYER_PRESETS, QUICK_ADD_SLOTS, STANDARD_QUICK_ADD_SLOTS, STANDARD_ROUTES
from .types import Entity, EntityKind, LineBreakType, Player, PlayerType, Route, RoutePoint, RouteStyle

if TYPE_CHECKING:
    from .model import PlayModel


class QuickAddMixin:
    """Mixin providing standard and custom quick-add routes.

    Note: The quickAddSlots property is defined in PlayModel since it needs
    access to signals defined there.
    """

    # Signals (will be defined in PlayModel)
    quickAddsChanged: Signal

    # Attributes expected from PlayModel
    _associations: Dict[str, List[str]]
    _quick_add_slots: List[Optional[Dict[str, Any]]]
    _next_id: Callable[[str], str]
    default_spot: Callable[[str], Tuple[float, float]]
    insert_entity: Callable[[EntityKind, Entity], str]
    add_route: Callable[[Route, Optional[str]], str]
    getPlayer: Callable[[str], Optional[Player]]
    getRoute: Callable[[str], Optional[Route]]

    def _init_quick_add(self) -> None:
        """Initialize quick-add slots. Call from PlayModel.__init__."""
        self._quick_add_slots = [None] * QUICK_ADD_SLOTS
        for index, name in enumerate(list(STANDARD_ROUTES)[:STANDARD_QUICK_ADD_SLOTS]):
            template = STANDARD_ROUTES[name]
            self._quick_add_slots[index] = {
                "name": name,
                "standard": True,
                "points": list(template["points"]),
                "style": template["style"],
                "line_break_type": template["line_break_type"],
                "color": template["color"],
                "player_color": template["player_color"],
            }

    def _get_quick_add_slots(self) -> List[Optional[Dict[str, Any]]]:
        slots: List[Optional[Dict[str, Any]]] = []
        for template in self._quick_add_slots:
            if template is None:
                slots.append(None)
                continue
            slots.append({
                "name": template["name"],
                "standard": template["standard"],
                "playerColor": template["player_color"],
                "color": template["color"],
                "style": template["style"].value,
                "lineBreakType": template["line_break_type"].value,
                "points": [{"x": x, "y": y} for x, y in template["points"]],
            })
        return slots

    def _place_template(self, template: Dict[str, Any], points: Sequence[Tuple[float, float]]) -> str:
        """Create a player at its default spot plus a route through ``points``."""
        color = template["player_color"] or "red"
        preset = PLAYER_PRESETS.get(color)
        player_type = preset["type"] if preset else PlayerType.OFFENSE
        x, y = self.default_spot(color)
        player = Player(id=self._next_id("player"), x=x, y=y, color=color, player_type=player_type)
        self.insert_entity(EntityKind.PLAYER, player)

        route = Route(
            id=self._next_id("route"),
            points=[RoutePoint(x + dx, y + dy) for dx, dy in points],
            style=template["style"],
            line_break_type=template["line_break_type"],
            color=template["color"] or "black",
            endpoint_type=template.get("endpoint_type"),
        )
        self.add_route(route, player.id)
        return player.id

    @Slot(str, result=str)
    def addStandardRoute(self, name: str) -> str:
        """Add a player running the named standard route; returns the player id."""
        for template in self._quick_add_slots[:STANDARD_QUICK_ADD_SLOTS]:
            if template is not None and template["name"] == name:
                first_x, first_y = template["points"][0]
                relative = [(x - first_x, y - first_y) for x, y in template["points"]]
                return self._place_template(template, relative)
        return ""

    @Slot(str, result=int)
    def copyRouteToQuickAdds(self, player_id: str) -> int:
        """Store a player's first route as a custom quick-add.

        The route is kept relative to the player. It goes into the first
        empty custom slot, or replaces the last slot when all are taken.
        Returns the slot index, or -1 when the player has no route.
        """
        player = self.getPlayer(player_id)
        if player is None:
            return -1
        route_ids = self._associations.get(player_id, [])
        route = self.getRoute(route_ids[0]) if route_ids else None
        if route is None:
            return -1

        slot = QUICK_ADD_SLOTS - 1
        for index in range(STANDARD_QUICK_ADD_SLOTS, QUICK_ADD_SLOTS):
            if self._quick_add_slots[index] is None:
                slot = index
                break
        self._quick_add_slots[slot] = {
            "name": f"custom-{slot - STANDARD_QUICK_ADD_SLOTS + 1}",
            "standard": False,
            "points": [(pt.x - player.x, pt.y - player.y) for pt in route.points],
            "style": route.style,
            "line_break_type": route.line_break_type,
            "color": route.display_color,
            "player_color": player.color,
        }
        self.quickAddsChanged.emit()
        return slot

    @Slot(int, result=str)
    def addCustomRouteFromQuickAdds(self, index: int) -> str:
        """Add a player running the custom route in slot ``index``."""
        if not STANDARD_QUICK_ADD_SLOTS <= index < QUICK_ADD_SLOTS:
            return ""
        template = self._quick_add_slots[index]
        if template is None:
            return ""
        return self._place_template(template, template["points"])

    @Slot(int)
    def clearQuickAddSlot(self, index: int) -> None:
        if not STANDARD_QUICK_ADD_SLOTS <= index < QUICK_ADD_SLOTS:
            return
        if self._quick_add_slots[index] is not None:
            self._quick_add_slots[index] = None
            self.quickAddsChanged.emit()

    def set_quick_add_template(
        self,
        index: int,
        points: Sequence[Tuple[float, float]],
        style: RouteStyle = RouteStyle.SOLID,
        line_break_type: LineBreakType = LineBreakType.RIGID,
        color: str = "black",
        player_color: str = "red",
    ) -> bool:
        """Fill a custom slot with a template whose points are relative to the player."""
        if not STANDARD_QUICK_ADD_SLOTS <= index < QUICK_ADD_SLOTS or len(points) < 2:
            return False
        self._quick_add_slots[index] = {
            "name": f"custom-{index - STANDARD_QUICK_ADD_SLOTS + 1}",
            "standard": False,
            "points": [(float(x), float(y)) for x, y in points],
            "style": style,
            "line_break_type": line_break_type,
            "color": color,
            "player_color": player_color,
        }
        self.quickAddsChanged.emit()
        return True
