"""Tests for the bounded undo/redo history."""

import pytest

from quadrille.choreography import Command, History


def _command(log, name):
    return Command(
        description=name,
        undo=lambda: log.append(f"undo {name}"),
        redo=lambda: log.append(f"redo {name}"),
    )


class TestUndoRedo:
    """Test cursor movement."""

    def test_empty(self):
        history = History()
        assert not history.can_undo()
        assert not history.can_redo()
        assert history.undo() is None
        assert history.redo() is None
        assert history.cursor == -1

    def test_undo_then_redo(self):
        log = []
        history = History()
        history.push(_command(log, "a"))
        history.push(_command(log, "b"))

        assert history.undo().description == "b"
        assert history.undo().description == "a"
        assert history.undo() is None
        assert history.redo().description == "a"
        assert log == ["undo b", "undo a", "redo a"]
        assert history.cursor == 0

    def test_push_does_not_invoke(self):
        """Commands are recorded after they have already been applied."""
        log = []
        History().push(_command(log, "a"))
        assert log == []

    def test_push_after_undo_drops_redo_branch(self):
        log = []
        history = History()
        for name in "abc":
            history.push(_command(log, name))
        history.undo()
        history.undo()
        history.push(_command(log, "d"))

        assert len(history) == 2
        assert not history.can_redo()
        assert history.undo_description == "d"
        history.undo()
        assert history.undo_description == "a"
        assert history.redo_description == "d"

    def test_descriptions_none_at_ends(self):
        history = History()
        history.push(_command([], "a"))
        assert history.redo_description is None
        history.undo()
        assert history.undo_description is None

    def test_clear(self):
        history = History()
        history.push(_command([], "a"))
        history.clear()
        assert len(history) == 0
        assert not history.can_undo()


class TestCapacity:
    """Test eviction of the oldest commands."""

    def test_evicts_oldest(self):
        log = []
        history = History(max_size=3)
        for name in "abcde":
            history.push(_command(log, name))

        assert len(history) == 3
        assert history.cursor == 2
        assert [history.undo().description for _ in range(3)] == ["e", "d", "c"]
        assert history.undo() is None

    def test_eviction_after_undo_keeps_cursor_on_same_command(self):
        history = History(max_size=2)
        history.push(_command([], "a"))
        history.push(_command([], "b"))
        history.undo()
        history.push(_command([], "c"))
        history.push(_command([], "d"))
        assert history.undo_description == "d"
        assert history.cursor == 1

    def test_default_size(self):
        history = History()
        for i in range(150):
            history.push(_command([], str(i)))
        assert len(history) == 100
        assert history.undo_description == "149"

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError, match="max_size"):
            History(max_size=0)
