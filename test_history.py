"""Tests for the debounced undo/redo history."""

import time

import pytest
from PySide6.QtCore import QCoreApplication


def _wait_for(predicate, timeout=1.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        QCoreApplication.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestHistoryBasics:
    def test_initial_state(self, play_model):
        assert play_model.historyLength == 1
        assert not play_model.canUndo
        assert not play_model.canRedo

    def test_undo_and_redo(self, play_model):
        play_model.addPlayer("blue", 10.0, 10.0)
        play_model.flushHistory()
        assert play_model.historyLength == 2

        assert play_model.undo()
        assert play_model.count == 0
        assert play_model.canRedo

        assert play_model.redo()
        assert play_model.count == 1
        assert not play_model.canRedo

    def test_undo_at_start_is_noop(self, play_model):
        assert play_model.undo() is False
        assert play_model.redo() is False

    def test_debounce_timer_commits(self, play_model):
        play_model.addPlayer("blue", 10.0, 10.0)
        assert play_model.historyLength == 1
        assert _wait_for(lambda: play_model.historyLength == 2)


class TestCoalescing:
    def test_burst_of_moves_is_one_entry(self, play_model):
        player_id = play_model.addPlayer("blue", 0.0, 0.0)
        play_model.flushHistory()
        for step in range(1, 6):
            play_model.movePlayer(player_id, step * 10.0, 0.0)
        play_model.flushHistory()
        assert play_model.historyLength == 3

        play_model.undo()
        assert play_model.getPlayer(player_id).x == 0.0

    def test_undo_commits_pending_change_first(self, play_model):
        player_id = play_model.addPlayer("blue", 0.0, 0.0)
        play_model.flushHistory()
        play_model.movePlayer(player_id, 50.0, 50.0)

        assert play_model.undo()
        assert play_model.getPlayer(player_id).x == 0.0
        assert play_model.redo()
        assert play_model.getPlayer(player_id).x == 50.0


class TestHistoryBounds:
    def test_history_is_capped(self, play_model):
        for i in range(60):
            play_model.addPlayer("blue", float(i), 0.0)
            play_model.flushHistory()
        assert play_model.historyLength == 50

        undone = 0
        while play_model.undo():
            undone += 1
        assert undone == 49
        assert play_model.count == 11

    def test_new_change_drops_redo_tail(self, play_model):
        play_model.addPlayer("blue", 0.0, 0.0)
        play_model.flushHistory()
        play_model.addPlayer("red", 10.0, 0.0)
        play_model.flushHistory()
        play_model.undo()
        play_model.addPlayer("green", 20.0, 0.0)
        play_model.flushHistory()
        assert not play_model.canRedo
        assert play_model.historyLength == 3
        assert [p["color"] for p in play_model.players] == ["blue", "green"]

    def test_reset_history(self, play_model):
        play_model.addPlayer("blue", 0.0, 0.0)
        play_model.flushHistory()
        play_model.resetHistory()
        assert play_model.historyLength == 1
        assert not play_model.canUndo


class TestSnapshots:
    def test_snapshot_round_trip(self, play_model):
        a = play_model.addPlayer("blue", 100.0, 100.0)
        play_model.addRoute([{"x": 100, "y": 100}, {"x": 100, "y": 40}], "solid", "smooth", a)
        play_model.addTextBox(5.0, 5.0)
        snap = play_model.snapshot()

        play_model.movePlayer(a, 300.0, 300.0)
        play_model.clearPlayboard()
        play_model.restore_snapshot(snap)
        assert play_model.snapshot() == snap
        assert play_model.getPlayer(a).x == 100.0

    def test_snapshot_is_isolated_from_later_edits(self, play_model):
        a = play_model.addPlayer("blue", 100.0, 100.0)
        snap = play_model.snapshot()
        play_model.movePlayer(a, 1.0, 1.0)
        assert snap.players[0].x == 100.0

    def test_restoring_does_not_schedule_snapshot(self, play_model):
        play_model.addPlayer("blue", 0.0, 0.0)
        play_model.flushHistory()
        play_model.undo()
        assert not play_model._history_timer.isActive()

    def test_undo_restores_associations_and_annotations(self, play_model):
        a = play_model.addPlayer("blue", 100.0, 100.0)
        route_id = play_model.addRoute([{"x": 100, "y": 100}, {"x": 100, "y": 40}], "solid", "rigid", a)
        play_model.addCircle(10.0, 10.0)
        play_model.flushHistory()
        play_model.removeEntity("player", a)
        play_model.flushHistory()
        assert play_model.associations == {}

        play_model.undo()
        assert play_model.associations == {a: [route_id]}
        assert len(play_model.circles) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
