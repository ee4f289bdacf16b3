"""Tests for the PlayModel entity store and play serialization."""

import pytest

from playdraw import EntityKind, PlayModel, RouteStyle
from playdraw.model import entity_from_dict, parse_associations


def _route_points(*coords):
    return [{"x": x, "y": y} for x, y in coords]


@pytest.fixture
def model_with_routes(app):
    """Two offensive players, one defender, and routes owned by the first player."""
    model = PlayModel()
    a = model.addPlayer("blue", 100.0, 100.0)
    b = model.addPlayer("red", 300.0, 100.0)
    d = model.addPlayer("grey", 200.0, 50.0)
    r1 = model.addRoute(_route_points((100, 100), (100, 20)), "solid", "rigid", a)
    r2 = model.addRoute(_route_points((100, 100), (150, 50)), "dashed", "rigid", a)
    r3 = model.addRoute(_route_points((300, 100), (300, 20)), "solid", "smooth", b)
    model.flushHistory()
    return model, {"a": a, "b": b, "d": d, "r1": r1, "r2": r2, "r3": r3}


class TestPlayers:
    def test_empty_model(self, play_model):
        assert play_model.rowCount() == 0
        assert play_model.count == 0
        assert play_model.entityCount == 0
        assert play_model.routes == []

    def test_add_player_roles(self, play_model):
        player_id = play_model.addPlayer("blue", 100.0, 120.0)
        assert player_id.startswith("player_")
        index = play_model.index(0, 0)
        assert play_model.data(index, play_model.IdRole) == player_id
        assert play_model.data(index, play_model.XRole) == 100.0
        assert play_model.data(index, play_model.YRole) == 120.0
        assert play_model.data(index, play_model.LabelRole) == "X"
        assert play_model.data(index, play_model.DisplayColorRole) == "#3b82f6"
        assert play_model.data(index, play_model.PlayerTypeRole) == "offense"
        assert play_model.data(index, play_model.SelectedRole) is False

    def test_defensive_color_makes_defender(self, play_model):
        play_model.addPlayer("grey", 10.0, 10.0)
        index = play_model.index(0, 0)
        assert play_model.data(index, play_model.PlayerTypeRole) == "defense"
        assert play_model.data(index, play_model.LabelRole) == "D"

    def test_role_names(self, play_model):
        names = play_model.roleNames()
        assert names[play_model.IdRole] == b"playerId"
        assert names[play_model.LabelRole] == b"label"

    def test_move_player(self, play_model):
        player_id = play_model.addPlayer("red", 0.0, 0.0)
        play_model.movePlayer(player_id, 50.0, 60.0)
        player = play_model.getPlayer(player_id)
        assert (player.x, player.y) == (50.0, 60.0)

    def test_move_unknown_player_is_noop(self, play_model):
        play_model.movePlayer("missing", 1.0, 1.0)
        assert play_model.count == 0

    def test_set_player_color(self, play_model):
        player_id = play_model.addPlayer("red", 0.0, 0.0)
        play_model.setPlayerColor(player_id, "green")
        assert play_model.getPlayer(player_id).color == "green"


class TestEntityStore:
    def test_add_entity_from_fields(self, play_model):
        text_id = play_model.addEntity("textbox", {"x": 1, "y": 2, "text": "Hi", "fontSize": 20})
        assert text_id.startswith("text_")
        assert play_model.textBoxes == [
            {"id": text_id, "x": 1.0, "y": 2.0, "text": "Hi", "fontSize": 20.0, "color": "black"}
        ]

    def test_add_entity_unknown_kind(self, play_model):
        assert play_model.addEntity("spaceship", {"x": 1}) == ""
        assert play_model.entityCount == 0

    def test_add_route_needs_two_points(self, play_model):
        assert play_model.addRoute(_route_points((0, 0)), "solid", "rigid", "") == ""
        assert play_model.routes == []

    def test_annotations(self, play_model):
        play_model.addTextBox(10.0, 10.0)
        play_model.addCircle(20.0, 20.0)
        play_model.addFootball(30.0, 30.0)
        assert play_model.textBoxes[0]["text"] == "Click to edit"
        assert play_model.circles[0]["radius"] == 8.0
        assert play_model.footballs[0]["size"] == 32.0
        assert play_model.entityCount == 3

    def test_update_entity(self, play_model):
        circle_id = play_model.addCircle(0.0, 0.0)
        assert play_model.updateEntity("circle", circle_id, {"radius": 12, "color": "red"})
        assert play_model.circles[0]["radius"] == 12.0
        assert play_model.circles[0]["color"] == "red"

    def test_update_unknown_entity_is_noop(self, play_model):
        assert play_model.updateEntity("player", "missing", {"x": 5}) is False

    def test_update_with_bad_values_keeps_entity(self, play_model):
        player_id = play_model.addPlayer("blue", 5.0, 5.0)
        assert play_model.updateEntity("player", player_id, {"x": "not a number"}) is False
        assert play_model.getPlayer(player_id).x == 5.0

        play_model.flushHistory()
        history_length = play_model.historyLength
        assert play_model.updateEntity("player", player_id, {"x": 7.0, "y": "bad"}) is False
        player = play_model.getPlayer(player_id)
        assert (player.x, player.y) == (5.0, 5.0)
        play_model.flushHistory()
        assert play_model.historyLength == history_length

    def test_restyling_route_to_dashed_renders_black(self, model_with_routes):
        model, ids = model_with_routes
        model.updateEntity("route", ids["r1"], {"color": "red"})
        assert model.getRoute(ids["r1"]).color == "red"
        model.updateRouteStyle(ids["r1"], "dashed")
        route = model.getRoute(ids["r1"])
        assert route.style == RouteStyle.DASHED
        assert route.display_color == "black"
        assert model.getEntitySnapshot("route", ids["r1"])["color"] == "black"

        model.updateRouteStyle(ids["r1"], "solid")
        assert model.getRoute(ids["r1"]).display_color == "red"
        assert model.getEntitySnapshot("route", ids["r1"])["color"] == "red"

    def test_dashed_route_added_with_color_is_black(self, play_model):
        route_id = play_model.addRoute(_route_points((0, 0), (10, 10)), "dashed", "rigid", "")
        assert play_model.getRoute(route_id).display_color == "black"
        assert play_model.routes[0]["color"] == "black"

    def test_toggle_route_arrow(self, model_with_routes):
        model, ids = model_with_routes
        assert model.getEntitySnapshot("route", ids["r1"])["endpointType"] == "arrow"
        model.toggleRouteArrow(ids["r1"])
        assert model.getEntitySnapshot("route", ids["r1"])["endpointType"] == "none"
        model.toggleRouteArrow(ids["r1"])
        assert model.getEntitySnapshot("route", ids["r1"])["endpointType"] == "arrow"

    def test_set_route_endpoint(self, model_with_routes):
        model, ids = model_with_routes
        model.setRouteEndpoint(ids["r3"], "dot")
        assert model.getEntitySnapshot("route", ids["r3"])["endpointType"] == "dot"

    def test_smooth_routes_publish_curve(self, model_with_routes):
        model, ids = model_with_routes
        routes = {route["id"]: route for route in model.routes}
        assert routes[ids["r3"]]["path"].startswith("M 300 100")
        assert "path" not in routes[ids["r1"]]

    def test_move_route_by_first_point(self, model_with_routes):
        model, ids = model_with_routes
        model.moveEntity("route", ids["r1"], 110.0, 90.0)
        points = model.getEntitySnapshot("route", ids["r1"])["points"]
        assert points == [{"x": 110.0, "y": 90.0}, {"x": 110.0, "y": 10.0}]


class TestDeletion:
    def test_deleting_player_cascades_to_routes(self, model_with_routes):
        model, ids = model_with_routes
        assert model.removeEntity("player", ids["a"])
        route_ids = [route["id"] for route in model.routes]
        assert route_ids == [ids["r3"]]
        assert ids["a"] not in model.associations
        assert model.count == 2

    def test_deleting_route_prunes_associations(self, model_with_routes):
        model, ids = model_with_routes
        model.removeEntity("route", ids["r1"])
        assert model.associatedRoutes(ids["a"]) == [ids["r2"]]
        model.removeEntity("route", ids["r2"])
        assert ids["a"] not in model.associations

    def test_deleting_unknown_entity_is_noop(self, model_with_routes):
        model, _ids = model_with_routes
        assert model.removeEntity("route", "missing") is False
        assert len(model.routes) == 3

    def test_deleting_prunes_selection(self, model_with_routes):
        model, ids = model_with_routes
        model.selectEntity("route", ids["r1"], False)
        model.selectEntity("player", ids["a"], True)
        model.removeEntity("player", ids["a"])
        assert model.selectedItems["players"] == []
        assert model.selectedItems["routes"] == []

    def test_clear_playboard(self, model_with_routes):
        model, _ids = model_with_routes
        model.addTextBox(0.0, 0.0)
        model.clearPlayboard()
        assert model.entityCount == 0
        assert model.associations == {}


class TestAssociations:
    def test_route_owner(self, model_with_routes):
        model, ids = model_with_routes
        assert model.routeOwner(ids["r3"]) == ids["b"]
        assert model.routeOwner("missing") == ""

    def test_rebuild_associations(self, model_with_routes):
        model, ids = model_with_routes
        model.movePlayer(ids["b"], 110.0, 100.0)
        model.rebuildAssociations()
        assert model.associatedRoutes(ids["a"]) == [ids["r1"], ids["r2"]]
        assert model.associatedRoutes(ids["b"]) == [ids["r3"]]
        model.movePlayer(ids["b"], 101.0, 100.0)
        model.movePlayer(ids["a"], 0.0, 0.0)
        model.rebuildAssociations()
        assert model.associatedRoutes(ids["b"]) == [ids["r1"], ids["r2"], ids["r3"]]

    def test_parse_pair_encoding(self):
        assert parse_associations([["p1", ["r1", "r2"]], ["p2", ["r3"]]]) == {"p1": ["r1", "r2"], "p2": ["r3"]}

    def test_parse_object_encoding(self):
        assert parse_associations({"p1": ["r1"]}) == {"p1": ["r1"]}

    def test_parse_missing_encoding(self):
        assert parse_associations(None) is None


class TestSerialization:
    def test_round_trip(self, model_with_routes):
        model, ids = model_with_routes
        model.addTextBox(5.0, 6.0)
        model.setPlayName("Trips Right")
        model.setPlayNotes("Read the flat defender")
        data = model.to_dict()

        loaded = PlayModel()
        loaded.from_dict(data)
        assert loaded.to_dict() == data
        assert loaded.playName == "Trips Right"
        assert loaded.associatedRoutes(ids["a"]) == [ids["r1"], ids["r2"]]

    def test_ids_resume_after_load(self, play_model):
        play_model.from_dict({"players": [{"id": "player_7", "x": 1, "y": 2, "color": "blue", "type": "offense"}]})
        assert play_model.addPlayer("red", 0.0, 0.0) == "player_8"

    def test_generated_ids_skip_stored_ids(self, play_model):
        play_model.from_dict({
            "players": [{"x": 1, "y": 1}, {"id": "player_0", "x": 2, "y": 2}],
            "routes": [{"id": "route_4", "points": _route_points((2, 2), (2, -10))}],
        })
        ids = [player["id"] for player in play_model.players]
        assert play_model.count == 2
        assert "player_0" in ids
        assert len(set(ids)) == 2
        assert play_model.getPlayer("player_0").x == 2.0
        assert play_model.associatedRoutes("player_0") == ["route_4"]

    def test_missing_arrays_default_to_empty(self, play_model):
        play_model.from_dict({"name": "Empty"})
        assert play_model.entityCount == 0
        assert play_model.associations == {}
        assert play_model.playName == "Empty"

    def test_degenerate_routes_are_dropped(self, play_model):
        play_model.from_dict({
            "routes": [
                {"id": "route_1", "points": [{"x": 0, "y": 0}]},
                {"id": "route_2", "points": [{"x": 0, "y": 0}, {"x": 1, "y": 1}]},
            ]
        })
        assert [route["id"] for route in play_model.routes] == ["route_2"]

    def test_legacy_dashed_color_is_black(self, play_model):
        play_model.from_dict({
            "routes": [{"id": "r", "points": _route_points((0, 0), (1, 1)), "style": "dashed", "color": "red"}]
        })
        assert play_model.routes[0]["color"] == "black"

    def test_legacy_show_arrow(self, play_model):
        play_model.from_dict({
            "routes": [
                {"id": "r1", "points": _route_points((0, 0), (1, 1)), "showArrow": False},
                {"id": "r2", "points": _route_points((0, 0), (1, 1)), "lineBreakType": "none", "showArrow": True},
                {"id": "r3", "points": _route_points((0, 0), (1, 1)), "lineBreakType": "smooth-none"},
            ]
        })
        endpoints = [route["endpointType"] for route in play_model.routes]
        assert endpoints == ["none", "arrow", "none"]

    def test_unknown_enum_values_fall_back(self):
        route = entity_from_dict(
            EntityKind.ROUTE,
            {"points": _route_points((0, 0), (1, 1)), "style": "wavy", "lineBreakType": "zigzag"},
            "r",
        )
        assert route.style.value == "solid"
        assert route.line_break_type.value == "rigid"

    def test_pair_encoded_associations_load(self, play_model):
        play_model.from_dict({
            "players": [{"id": "p1", "x": 0, "y": 0}],
            "routes": [{"id": "r1", "points": _route_points((0, 0), (0, -10))}],
            "playerRouteAssociations": [["p1", ["r1", "ghost"]], ["ghost_player", ["r1"]]],
        })
        assert play_model.associations == {"p1": ["r1"]}

    def test_missing_associations_are_derived(self, play_model):
        play_model.from_dict({
            "players": [{"id": "p1", "x": 0, "y": 0}, {"id": "p2", "x": 200, "y": 0}],
            "routes": [{"id": "r1", "points": _route_points((190, 0), (190, -10))}],
        })
        assert play_model.associations == {"p2": ["r1"]}

    def test_load_resets_history(self, model_with_routes):
        model, _ids = model_with_routes
        assert model.canUndo
        model.from_dict(model.to_dict())
        assert model.historyLength == 1
        assert not model.canUndo


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
