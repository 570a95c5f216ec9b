import pytest

from page_composer.history import DEFAULT_HISTORY_LIMIT, HistoryManager


def test_undo_redo_are_symmetric():
    history: HistoryManager[str] = HistoryManager()
    for snapshot in ("a", "b", "c"):
        history.record(snapshot)

    assert history.undo() == "b"
    assert history.undo() == "a"
    assert history.undo() is None
    assert history.redo() == "b"
    assert history.redo() == "c"
    assert history.redo() is None


def test_recording_after_undo_discards_redo_branch():
    history: HistoryManager[str] = HistoryManager()
    for snapshot in ("a", "b", "c"):
        history.record(snapshot)
    history.undo()
    history.undo()

    history.record("x")

    assert history.snapshots() == ("a", "x")
    assert not history.can_redo
    assert history.current == "x"


def test_stack_is_capped_at_limit():
    history: HistoryManager[int] = HistoryManager()
    for value in range(60):
        history.record(value)

    assert len(history) == DEFAULT_HISTORY_LIMIT == 50
    assert history.snapshots()[0] == 10
    assert history.current == 59
    assert history.index == 49


def test_undo_walks_back_to_oldest_kept_snapshot():
    history: HistoryManager[int] = HistoryManager(limit=3)
    for value in range(5):
        history.record(value)

    assert [history.undo(), history.undo(), history.undo()] == [3, 2, None]


def test_empty_history_cannot_move():
    history: HistoryManager[str] = HistoryManager()

    assert history.current is None
    assert not history.can_undo
    assert not history.can_redo
    assert history.undo() is None


def test_reset_replaces_stack():
    history: HistoryManager[str] = HistoryManager()
    history.record("a")
    history.record("b")

    history.reset("z")

    assert history.snapshots() == ("z",)
    assert history.index == 0


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        HistoryManager(limit=0)
