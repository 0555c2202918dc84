"""aurafi.vault.positions

Position arena + FIFO index.

Positions are never deleted and never merged. A fully consumed position stays
behind at qty=0, collateral=0 so every id ever handed out stays valid and the
per-owner order never shifts.

Two indexes:
- owner -> position ids in creation order (redemption priority)
- owners in first-seen order (batch iteration for forced contraction)

Running qty/collateral totals are kept on every write. Between ``begin`` and
``commit`` the store remembers the original values of the positions it
touched, so ``rollback`` costs what the call touched and not the arena size.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Position:
    id: int
    owner: str
    qty: int
    collateral: int
    stage_at_mint: int
    created_at: datetime

    @property
    def is_empty(self) -> bool:
        return self.qty == 0

    def reduce(self, *, qty: int, collateral: int) -> None:
        if qty < 0 or collateral < 0:
            raise ValueError("position reductions must be >= 0")
        if qty > self.qty or collateral > self.collateral:
            raise ValueError(f"position {self.id} cannot go negative")
        self.qty -= qty
        self.collateral -= collateral


@dataclass(slots=True)
class _Mark:
    arena_len: int
    owners_len: int
    qty: int
    collateral: int
    touched: dict[int, tuple[int, int]] = field(default_factory=dict)


class PositionStore:
    def __init__(self) -> None:
        self._arena: list[Position] = []
        self._by_owner: dict[str, list[int]] = {}
        self._owners: list[str] = []
        self._qty = 0
        self._collateral = 0
        self._mark: _Mark | None = None

    def __len__(self) -> int:
        return len(self._arena)

    def __iter__(self) -> Iterator[Position]:
        """Every position in owner first-seen order, FIFO within each owner."""

        for owner in self._owners:
            yield from self.positions_of(owner)

    # -----------------
    # Undo log
    # -----------------

    def begin(self) -> None:
        if self._mark is not None:
            raise RuntimeError("position store already inside a transaction")
        self._mark = _Mark(len(self._arena), len(self._owners), self._qty, self._collateral)

    def commit(self) -> None:
        self._mark = None

    def rollback(self) -> None:
        m = self._mark
        if m is None:
            return
        for pos_id, (qty, collateral) in m.touched.items():
            pos = self._arena[pos_id]
            pos.qty, pos.collateral = qty, collateral
        for pos in reversed(self._arena[m.arena_len :]):
            self._by_owner[pos.owner].pop()
        del self._arena[m.arena_len :]
        for owner in self._owners[m.owners_len :]:
            del self._by_owner[owner]
        del self._owners[m.owners_len :]
        self._qty, self._collateral = m.qty, m.collateral
        self._mark = None

    def _touch(self, pos: Position) -> None:
        m = self._mark
        if m is not None and pos.id < m.arena_len and pos.id not in m.touched:
            m.touched[pos.id] = (pos.qty, pos.collateral)

    # -----------------
    # Writes
    # -----------------

    def open(self, *, owner: str, qty: int, collateral: int, stage: int, created_at: datetime) -> Position:
        pos = Position(
            id=len(self._arena),
            owner=owner,
            qty=qty,
            collateral=collateral,
            stage_at_mint=stage,
            created_at=created_at,
        )
        self._arena.append(pos)
        ids = self._by_owner.get(owner)
        if ids is None:
            ids = self._by_owner[owner] = []
            self._owners.append(owner)
        ids.append(pos.id)
        self._qty += qty
        self._collateral += collateral
        return pos

    def reduce(self, pos: Position, *, qty: int, collateral: int) -> None:
        self._touch(pos)
        pos.reduce(qty=qty, collateral=collateral)
        self._qty -= qty
        self._collateral -= collateral

    def credit(self, pos: Position, amount: int) -> None:
        if amount < 0:
            raise ValueError("credit must be >= 0")
        self._touch(pos)
        pos.collateral += amount
        self._collateral += amount

    # -----------------
    # Reads
    # -----------------

    def get(self, position_id: int) -> Position:
        return self._arena[position_id]

    def positions_of(self, owner: str) -> list[Position]:
        return [self._arena[i] for i in self._by_owner.get(owner, ())]

    def live_positions_of(self, owner: str) -> list[Position]:
        return [p for p in self.positions_of(owner) if p.qty > 0]

    @property
    def owner_count(self) -> int:
        return len(self._owners)

    def owners(self, start: int = 0, limit: int | None = None) -> list[str]:
        end = None if limit is None else start + limit
        return self._owners[start:end]

    @property
    def tracked_qty(self) -> int:
        return self._qty

    @property
    def tracked_collateral(self) -> int:
        return self._collateral

    def total_qty(self) -> int:
        """Full scan. Compare with ``tracked_qty``."""

        return sum(p.qty for p in self._arena)

    def total_collateral(self) -> int:
        return sum(p.collateral for p in self._arena)

    def qty_of(self, owner: str) -> int:
        return sum(p.qty for p in self.positions_of(owner))
