import gc

import pytest
from sqlitelink import HandleGuard, DatabaseClosed, StatementClosed


def test_get_returns_handle():
    guard = HandleGuard(0x1234, lambda h: 0, StatementClosed)
    assert guard.get() == 0x1234
    assert not guard.closed


def test_release_runs_once():
    released = []
    guard = HandleGuard(0x1234, released.append, StatementClosed)
    guard.release()
    guard.release()
    assert released == [0x1234]
    assert guard.closed


def test_get_after_release_raises_configured_error():
    guard = HandleGuard(1, lambda h: 0, DatabaseClosed)
    guard.release()
    with pytest.raises(DatabaseClosed):
        guard.get()

    guard = HandleGuard(2, lambda h: 0, StatementClosed)
    guard.release()
    with pytest.raises(StatementClosed):
        guard.get()


def test_release_when_last_owner_drops():
    released = []
    guard = HandleGuard(7, released.append, StatementClosed)
    alias = guard

    del guard
    gc.collect()
    assert released == []

    del alias
    gc.collect()
    assert released == [7]


def test_explicit_release_then_drop_does_not_release_twice():
    released = []
    guard = HandleGuard(9, released.append, StatementClosed)
    guard.release()
    del guard
    gc.collect()
    assert released == [9]


def test_repr():
    guard = HandleGuard(0xff, lambda h: 0, StatementClosed)
    assert "0xff" in repr(guard)
    guard.release()
    assert "released" in repr(guard)
