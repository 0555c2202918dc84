"""aurafi.vault.types

Ledger state, engine context, receipts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from aurafi.core.time import Clock
from aurafi.integrations.oracle import OracleFeed
from aurafi.integrations.settlement import FeeSink, PayoutRail
from aurafi.integrations.token import TokenLedger
from aurafi.vault.params import VaultParams


class StageConfig(BaseModel):
    """Cumulative creator stake required to reach a stage, and the supply it allows."""

    stake_required: int = Field(ge=0)
    mint_cap: int = Field(ge=0)

    model_config = {"frozen": True}


class ContractionState(StrEnum):
    IDLE = "idle"
    GRACE_PERIOD = "grace_period"
    EXECUTABLE = "executable"


@dataclass(slots=True)
class LedgerState:
    """One per creator. Created once, never destroyed."""

    ledger_id: str
    creator: str
    token_symbol: str
    base_cap: int
    creator_collateral: int = 0
    fan_collateral: int = 0
    total_collateral: int = 0
    total_supply: int = 0
    stage: int = 0
    pending_forced_burn: int = 0
    forced_burn_deadline: datetime | None = None
    # Forced-burn round: fixed at the first batch, cleared when the round ends.
    burn_cursor: int = 0
    burn_round_supply: int = 0
    burn_round_amount: int = 0
    # Collateral written off by forced contraction. Held, owed to nobody.
    written_down_collateral: int = 0
    # Stage terms as they were when each stage was reached.
    unlocked_stages: dict[int, StageConfig] = field(default_factory=dict)

    def contraction_state(self, now: datetime) -> ContractionState:
        if self.pending_forced_burn == 0:
            return ContractionState.IDLE
        assert self.forced_burn_deadline is not None
        if now < self.forced_burn_deadline:
            return ContractionState.GRACE_PERIOD
        return ContractionState.EXECUTABLE

    def clear_forced_burn(self) -> None:
        self.pending_forced_burn = 0
        self.forced_burn_deadline = None
        self.burn_cursor = 0
        self.burn_round_supply = 0
        self.burn_round_amount = 0


@dataclass(frozen=True, slots=True)
class VaultContext:
    """Everything an engine needs besides state. Shared, never mutated."""

    address: str
    params: VaultParams
    oracle: OracleFeed
    token: TokenLedger
    fee_sink: FeeSink
    payouts: PayoutRail
    clock: Clock
    logger: logging.Logger


# -----------------
# Receipts
# -----------------


@dataclass(frozen=True, slots=True)
class StakeReceipt:
    stage_before: int
    stage_after: int
    amount: int
    creator_collateral: int

    @property
    def unlocked(self) -> bool:
        return self.stage_after > self.stage_before


@dataclass(frozen=True, slots=True)
class MintReceipt:
    position_id: int
    owner: str
    qty: int
    collateral: int
    fee: int
    peg: int
    stage: int


@dataclass(frozen=True, slots=True)
class RedeemReceipt:
    owner: str
    qty: int
    collateral_returned: int
    position_ids: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class TriggerReceipt:
    triggered: bool
    supply: int
    cap: int
    pending_burn: int
    deadline: datetime | None


@dataclass(frozen=True, slots=True)
class ForcedBurnReceipt:
    total_burned: int
    total_write_down: int
    owners_processed: int
    pending_after: int
    round_complete: bool
    burned_by_owner: dict[str, int]


@dataclass(frozen=True, slots=True)
class LiquidationReceipt:
    caller: str
    payment: int
    tokens_removed: int
    bounty: int
    creator_penalty: int
    burned_by_owner: dict[str, int]
