"""aurafi.vault.stages

Creator stake and stage progression.

One step per unlock call. Always. If the stake would satisfy three stages the
creator calls three times; each step leaves its own event.

Stage terms are snapshotted into the ledger when a stage is reached. The admin
can rewrite the table whenever it likes; stages this ledger already holds keep
the terms they were unlocked under.
"""

from __future__ import annotations

from aurafi.core.exceptions import (
    InsufficientCollateralError,
    InsufficientPaymentError,
    InvalidStageError,
    StageNotUnlockedError,
    UnauthorizedError,
)
from aurafi.vault.types import LedgerState, StageConfig, StakeReceipt, VaultContext


class StageTable:
    """Admin-owned lookup: stage -> StageConfig. Stage 0 is implicit and mints nothing."""

    def __init__(self, stages: dict[int, StageConfig] | None = None) -> None:
        self._stages: dict[int, StageConfig] = {}
        for n, cfg in (stages or {}).items():
            self.set_stage(n, stake_required=cfg.stake_required, mint_cap=cfg.mint_cap)

    @classmethod
    def from_rows(cls, rows: list[tuple[int, int]]) -> StageTable:
        """rows[i] = (stake_required, mint_cap) for stage i+1."""

        return cls({i + 1: StageConfig(stake_required=s, mint_cap=c) for i, (s, c) in enumerate(rows)})

    def set_stage(self, stage: int, *, stake_required: int, mint_cap: int) -> StageConfig:
        if stage < 1:
            raise InvalidStageError("stage 0 is implicit and cannot be configured")
        cfg = StageConfig(stake_required=stake_required, mint_cap=mint_cap)
        self._stages[stage] = cfg
        return cfg

    def get(self, stage: int) -> StageConfig:
        cfg = self._stages.get(stage)
        if cfg is None:
            raise InvalidStageError(f"stage {stage} is not configured")
        return cfg

    def has(self, stage: int) -> bool:
        return stage in self._stages

    @property
    def max_stage(self) -> int:
        return max(self._stages, default=0)


class StageController:
    def __init__(self, ctx: VaultContext, table: StageTable) -> None:
        self.ctx = ctx
        self.table = table

    def _require_creator(self, state: LedgerState, caller: str) -> None:
        if caller != state.creator:
            raise UnauthorizedError(f"{caller} is not the creator of {state.ledger_id}")

    def bootstrap(self, state: LedgerState, *, caller: str, amount: int) -> StakeReceipt:
        self._require_creator(state, caller)
        if amount <= 0:
            raise InsufficientPaymentError("bootstrap amount must be > 0")

        before = state.stage
        state.creator_collateral += amount
        state.total_collateral += amount

        if state.stage == 0:
            first = self.table.get(1)
            if state.creator_collateral >= first.stake_required:
                state.stage = 1
                state.unlocked_stages[1] = first

        return StakeReceipt(
            stage_before=before,
            stage_after=state.stage,
            amount=amount,
            creator_collateral=state.creator_collateral,
        )

    def unlock(self, state: LedgerState, *, caller: str, amount: int) -> StakeReceipt:
        self._require_creator(state, caller)
        if state.stage < 1:
            raise StageNotUnlockedError("bootstrap stage 1 before unlocking further stages")
        if amount < 0:
            raise InsufficientPaymentError("unlock amount must be >= 0")

        target = state.stage + 1
        nxt = self.table.get(target)
        if state.creator_collateral + amount < nxt.stake_required:
            raise InsufficientCollateralError(
                f"stage {target} needs {nxt.stake_required}, have {state.creator_collateral + amount}"
            )

        before = state.stage
        state.creator_collateral += amount
        state.total_collateral += amount
        state.stage = target
        state.unlocked_stages[target] = nxt

        return StakeReceipt(
            stage_before=before,
            stage_after=state.stage,
            amount=amount,
            creator_collateral=state.creator_collateral,
        )

    def mint_cap(self, state: LedgerState) -> int:
        """Mint cap of the current stage, under the terms it was unlocked with."""

        if state.stage == 0:
            return 0
        return state.unlocked_stages[state.stage].mint_cap
