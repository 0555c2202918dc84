from __future__ import annotations

from datetime import UTC, datetime

import pytest

from aurafi.vault.positions import PositionStore

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _store() -> PositionStore:
    s = PositionStore()
    s.open(owner="alice", qty=10, collateral=15, stage=1, created_at=T0)
    s.open(owner="bob", qty=5, collateral=8, stage=1, created_at=T0)
    s.open(owner="alice", qty=7, collateral=11, stage=2, created_at=T0)
    return s


def test_every_mint_is_its_own_position() -> None:
    s = _store()
    assert [p.id for p in s.positions_of("alice")] == [0, 2]
    assert [p.qty for p in s.positions_of("alice")] == [10, 7]
    assert s.positions_of("alice")[1].stage_at_mint == 2


def test_owner_registry_is_first_seen_order() -> None:
    s = _store()
    s.open(owner="carol", qty=1, collateral=1, stage=1, created_at=T0)
    s.open(owner="bob", qty=1, collateral=1, stage=1, created_at=T0)
    assert s.owners() == ["alice", "bob", "carol"]
    assert s.owners(1, 1) == ["bob"]
    assert s.owner_count == 3


def test_iteration_walks_owners_then_fifo() -> None:
    s = _store()
    assert [p.id for p in s] == [0, 2, 1]


def test_zeroed_positions_are_kept() -> None:
    s = _store()
    first = s.get(0)
    s.reduce(first, qty=10, collateral=15)
    assert first.is_empty
    assert len(s) == 3
    assert [p.id for p in s.live_positions_of("alice")] == [2]
    assert s.total_qty() == 12
    assert s.total_collateral() == 19
    assert (s.tracked_qty, s.tracked_collateral) == (12, 19)


def test_reduce_cannot_go_negative() -> None:
    s = _store()
    with pytest.raises(ValueError):
        s.get(1).reduce(qty=6, collateral=0)
    with pytest.raises(ValueError):
        s.get(1).reduce(qty=0, collateral=9)


def test_unknown_owner_has_no_positions() -> None:
    assert PositionStore().positions_of("nobody") == []
    assert PositionStore().qty_of("nobody") == 0


def test_running_totals_follow_every_write() -> None:
    s = _store()
    assert (s.tracked_qty, s.tracked_collateral) == (22, 34)
    s.credit(s.get(1), 4)
    s.reduce(s.get(2), qty=3, collateral=5)
    assert (s.tracked_qty, s.tracked_collateral) == (19, 33)
    assert (s.total_qty(), s.total_collateral()) == (19, 33)
    with pytest.raises(ValueError):
        s.credit(s.get(0), -1)


def test_rollback_restores_touched_positions_and_drops_new_ones() -> None:
    s = _store()
    s.begin()
    s.reduce(s.get(0), qty=4, collateral=6)
    s.reduce(s.get(0), qty=1, collateral=1)
    s.credit(s.get(1), 2)
    s.open(owner="alice", qty=3, collateral=3, stage=1, created_at=T0)
    s.open(owner="carol", qty=2, collateral=2, stage=1, created_at=T0)
    s.rollback()

    assert len(s) == 3
    assert s.owners() == ["alice", "bob"]
    assert [p.id for p in s.positions_of("alice")] == [0, 2]
    assert s.positions_of("carol") == []
    assert (s.get(0).qty, s.get(0).collateral) == (10, 15)
    assert s.get(1).collateral == 8
    assert (s.tracked_qty, s.tracked_collateral) == (22, 34)

    # Ids handed out after a rollback continue from the surviving arena.
    assert s.open(owner="carol", qty=1, collateral=1, stage=1, created_at=T0).id == 3


def test_commit_keeps_writes() -> None:
    s = _store()
    s.begin()
    s.reduce(s.get(1), qty=5, collateral=8)
    s.commit()
    s.rollback()
    assert s.get(1).is_empty
    assert s.tracked_qty == 17


def test_nested_begin_is_refused() -> None:
    s = _store()
    s.begin()
    with pytest.raises(RuntimeError):
        s.begin()
