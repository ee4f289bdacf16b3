"""Tests for time-based play animation."""

import pytest

from playdraw.animation import (
    animated_positions,
    animation_duration,
    defensive_position,
    find_coverage,
    frame_times,
    offensive_position,
)
from playdraw.types import LineBreakType, Player, PlayerType, Route, RoutePoint


def _route(route_id, *coords, line_break_type=LineBreakType.RIGID):
    return Route(id=route_id, points=[RoutePoint(x, y) for x, y in coords], line_break_type=line_break_type)


def _defender(player_id, x, y):
    return Player(id=player_id, x=x, y=y, color="grey", player_type=PlayerType.DEFENSE)


@pytest.fixture
def clock(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr("playdraw.animation.time.time", lambda: now[0])
    return now


class TestDuration:
    def test_longest_route_sets_duration(self):
        routes = [_route("r1", (0, 0), (0, 100)), _route("r2", (0, 0), (0, 300))]
        assert animation_duration(routes, 150.0) == pytest.approx(2.0)

    def test_no_routes(self):
        assert animation_duration([], 150.0) == 0.0

    def test_non_positive_speed(self):
        assert animation_duration([_route("r", (0, 0), (0, 100))], 0.0) == 0.0


class TestOffense:
    def test_runs_route_at_constant_speed(self):
        player = Player(id="a", x=0, y=0)
        routes = [_route("r", (0, 0), (0, -300))]
        associations = {"a": ["r"]}
        assert offensive_position(player, routes, associations, 0.0) == (0, 0)
        assert offensive_position(player, routes, associations, 1.0) == pytest.approx((0, -150))
        assert offensive_position(player, routes, associations, 5.0) == (0, -300)

    def test_short_route_holds_at_end(self):
        player = Player(id="a", x=0, y=0)
        routes = [_route("r", (0, 0), (100, 0))]
        assert offensive_position(player, routes, {"a": ["r"]}, 2.0) == (100, 0)

    def test_non_traveled_routes_are_skipped(self):
        player = Player(id="a", x=0, y=0)
        routes = [
            _route("motion", (0, 0), (50, 0), line_break_type=LineBreakType.NONE),
            _route("run", (0, 0), (0, -300)),
        ]
        assert offensive_position(player, routes, {"a": ["motion", "run"]}, 1.0) == pytest.approx((0, -150))

    def test_player_without_traveled_route_stays(self):
        player = Player(id="a", x=7, y=8)
        routes = [_route("motion", (7, 8), (50, 8), line_break_type=LineBreakType.SMOOTH_NONE)]
        assert offensive_position(player, routes, {"a": ["motion"]}, 1.0) == (7, 8)


class TestDefense:
    def test_zone_drop(self):
        cover_2 = find_coverage("cover-2")
        defender = _defender("d", 160, 420)
        assert defensive_position(defender, 0, [], 1.0, 150.0, cover_2) == pytest.approx((160, 270))
        assert defensive_position(defender, 0, [], 3.0, 150.0, cover_2) == pytest.approx((160, 120))

    def test_man_coverage_step(self):
        defender = _defender("d", 0, 0)
        assert defensive_position(defender, 0, [(0, 100)], 1.0) == pytest.approx((0, 10))
        assert defensive_position(defender, 0, [(0, 300)], 1.0) == pytest.approx((0, 20))

    def test_man_coverage_follows_nearest(self):
        defender = _defender("d", 0, 0)
        assert defensive_position(defender, 0, [(0, 300), (100, 0)], 1.0) == pytest.approx((10, 0))

    def test_no_receivers_holds_position(self):
        assert defensive_position(_defender("d", 5, 5), 0, [], 1.0) == (5, 5)

    def test_defenders_beyond_pattern_play_man(self):
        cover_2 = find_coverage("cover-2")
        offense = Player(id="a", x=400, y=600)
        defenders = [_defender(f"d{i}", 400, 500) for i in range(6)]
        positions = animated_positions([offense] + defenders, [], {}, 0.0, 150.0, cover_2)
        assert positions["d5"] == pytest.approx((400, 510))
        assert positions["d0"] == pytest.approx((400, 500))

    def test_unknown_coverage(self):
        assert find_coverage("cover-9") is None


class TestFrameTimes:
    def test_frames_cover_duration(self):
        times = frame_times(2.0, 15)
        assert len(times) == 31
        assert times[0] == 0.0
        assert times[-1] == pytest.approx(2.0)

    def test_zero_duration(self):
        assert frame_times(0.0) == [0.0]


class TestPlayback:
    @pytest.fixture
    def runner(self, play_model):
        player_id = play_model.addPlayer("blue", 0.0, 0.0)
        play_model.addRoute([{"x": 0, "y": 0}, {"x": 0, "y": -300}], "solid", "rigid", player_id)
        yield play_model, player_id
        play_model.stopAnimation()

    def test_start_requires_routes(self, play_model):
        messages = []
        play_model.errorOccurred.connect(messages.append)
        assert play_model.startAnimation() is False
        assert messages == ["Draw some routes before playing the animation."]
        assert not play_model.isAnimating

    def test_frames_follow_elapsed_time(self, runner, clock):
        model, player_id = runner
        progress = []
        model.animationFrame.connect(progress.append)

        assert model.startAnimation()
        assert model.isAnimating
        assert model.animationDuration == pytest.approx(2.0)

        clock[0] = 1001.0
        model._on_animation_frame()
        assert progress == [pytest.approx(0.5)]
        assert model.animatedPlayerPosition(player_id) == pytest.approx({"x": 0.0, "y": -150.0})

        clock[0] = 1003.0
        model._on_animation_frame()
        assert progress[-1] == 1.0
        assert not model.isAnimating
        assert model.animationProgress == 0.0
        assert model.animatedPlayerPosition(player_id) == {"x": 0.0, "y": 0.0}

    def test_stop_is_idempotent(self, runner, clock):
        model, _player_id = runner
        changes = []
        model.animationChanged.connect(lambda: changes.append(True))
        model.stopAnimation()
        assert changes == []
        model.startAnimation()
        model.stopAnimation()
        model.stopAnimation()
        assert len(changes) == 2

    def test_speed_changes_duration(self, runner, clock):
        model, _player_id = runner
        model.setAnimationSpeed(0.0)
        assert model.animationSpeed == 150.0
        model.setAnimationSpeed(300.0)
        model.startAnimation()
        assert model.animationDuration == pytest.approx(1.0)

    def test_zero_length_routes_finish_at_once(self, play_model, clock):
        player_id = play_model.addPlayer("blue", 0.0, 0.0)
        play_model.addRoute([{"x": 0, "y": 0}, {"x": 0, "y": 0}], "solid", "rigid", player_id)
        assert play_model.startAnimation()
        assert not play_model.isAnimating

    def test_coverage_selection(self, play_model):
        assert play_model.coverage == ""
        play_model.setCoverage("cover-2")
        assert play_model.coverage == "cover-2"
        play_model.setCoverage("bogus")
        assert play_model.coverage == ""
        assert [c["id"] for c in play_model.coverages] == ["cover-2", "cover-3", "man-coverage", "cover-4"]

    def test_positions_at(self, runner):
        model, player_id = runner
        assert model.positionsAt(1.0)[player_id] == pytest.approx({"x": 0.0, "y": -150.0})

    def test_export_frame_times(self, runner):
        model, _player_id = runner
        assert len(model.exportFrameTimes()) == 31


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
