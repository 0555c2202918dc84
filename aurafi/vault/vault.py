"""aurafi.vault.vault

CreatorVault: one ledger, one creator, one token.

Every mutating entry point:
1) takes the reentrancy guard
2) copies ledger state and opens the position undo log
3) runs one engine (oracle read, checks, effects, token moves)
4) reconciles the books against running totals
5) sends the queued fees and payouts
6) on any failure, restores state, positions and token balances

Events and logs are written after the call succeeded. The journal is
observational: a journal failure is logged, never allowed to undo a committed
call.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from pydantic import BaseModel

from aurafi.core.database import Database
from aurafi.core.events import (
    ForcedBurnExecutedPayload,
    LiquidationExecutedPayload,
    MintedPayload,
    RedeemedPayload,
    StageUnlockedPayload,
    SupplyCapShrinkPayload,
    event_type_for,
)
from aurafi.core.exceptions import EventStoreError, InvariantViolation
from aurafi.core.time import Clock, utc_now
from aurafi.integrations.oracle import OracleFeed
from aurafi.integrations.settlement import FeeAccumulator, FeeSink, PayoutLedger, PayoutRail
from aurafi.integrations.token import RestrictedToken, TokenLedger
from aurafi.vault.contraction import ContractionController
from aurafi.vault.guard import ReentrancyGuard
from aurafi.vault.interactions import Interactions
from aurafi.vault.liquidation import LiquidationEngine
from aurafi.vault.mint import MintEngine
from aurafi.vault.params import VaultParams
from aurafi.vault.positions import Position, PositionStore
from aurafi.vault.quote import Quote, read_quote
from aurafi.vault.redemption import RedemptionEngine
from aurafi.vault.stages import StageController, StageTable
from aurafi.vault.types import (
    ContractionState,
    ForcedBurnReceipt,
    LedgerState,
    LiquidationReceipt,
    MintReceipt,
    RedeemReceipt,
    StakeReceipt,
    TriggerReceipt,
    VaultContext,
)


class VaultSnapshot(BaseModel):
    """Read-only export of ledger state. Amounts in WAD / token wei."""

    ledger_id: str
    creator: str
    token_symbol: str
    stage: int
    base_cap: int
    creator_collateral: int
    fan_collateral: int
    total_collateral: int
    total_supply: int
    pending_forced_burn: int
    forced_burn_deadline: datetime | None
    written_down_collateral: int
    contraction_state: ContractionState
    positions: int
    owners: int

    model_config = {"frozen": True}


class CreatorVault:
    def __init__(
        self,
        *,
        ledger_id: str,
        creator: str,
        token: TokenLedger,
        oracle: OracleFeed,
        stage_table: StageTable,
        base_cap: int,
        params: VaultParams | None = None,
        fee_sink: FeeSink | None = None,
        payouts: PayoutRail | None = None,
        journal: Database | None = None,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
        address: str | None = None,
        token_symbol: str = "",
    ) -> None:
        if base_cap <= 0:
            raise ValueError("base_cap must be > 0")

        self.ctx = VaultContext(
            address=address or f"vault:{ledger_id}",
            params=params or VaultParams.defaults(),
            oracle=oracle,
            token=token,
            fee_sink=fee_sink if fee_sink is not None else FeeAccumulator(),
            payouts=payouts if payouts is not None else PayoutLedger(),
            clock=clock or utc_now,
            logger=logger or logging.getLogger("aurafi.vault"),
        )
        self.journal = journal
        self.stage_table = stage_table

        self._state = LedgerState(
            ledger_id=ledger_id,
            creator=creator,
            token_symbol=token_symbol,
            base_cap=base_cap,
        )
        self._store = PositionStore()
        self._guard = ReentrancyGuard(ledger_id)
        self._halted = False

        self._stages = StageController(self.ctx, stage_table)
        self._mint = MintEngine(self.ctx, self._stages)
        self._redemption = RedemptionEngine(self.ctx)
        self._contraction = ContractionController(self.ctx)
        self._liquidation = LiquidationEngine(self.ctx)

    @classmethod
    def open(
        cls,
        *,
        ledger_id: str,
        creator: str,
        symbol: str,
        oracle: OracleFeed,
        stage_table: StageTable,
        base_cap: int,
        **kwargs: object,
    ) -> CreatorVault:
        """Create a vault together with its restricted token."""

        address = f"vault:{ledger_id}"
        token = RestrictedToken(symbol, minter=address)
        return cls(
            ledger_id=ledger_id,
            creator=creator,
            token=token,
            oracle=oracle,
            stage_table=stage_table,
            base_cap=base_cap,
            address=address,
            token_symbol=symbol,
            **kwargs,  # type: ignore[arg-type]
        )

    # -----------------
    # Plumbing
    # -----------------

    @property
    def ledger_id(self) -> str:
        return self._state.ledger_id

    @property
    def token(self) -> TokenLedger:
        return self.ctx.token

    @property
    def halted(self) -> bool:
        return self._halted

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Interactions]:
        if self._halted:
            raise InvariantViolation(f"{self.ledger_id} is halted after an invariant violation")
        with self._guard.enter(operation):
            saved = copy.deepcopy(self._state)
            fx = Interactions(self.ctx)
            self._store.begin()
            try:
                yield fx
                self._reconcile()
                fx.settle()
            except InvariantViolation:
                self._abort(operation, saved, fx)
                self._halt(operation)
                raise
            except Exception:
                self._abort(operation, saved, fx)
                raise
            self._store.commit()

    def _abort(self, operation: str, saved: LedgerState, fx: Interactions) -> None:
        self._state = saved
        self._store.rollback()
        try:
            fx.rollback()
        except InvariantViolation:
            self._halt(operation)
            raise

    def _halt(self, operation: str) -> None:
        self._halted = True
        self.ctx.logger.critical("vault_halted", extra={"ledger_id": self.ledger_id, "operation": operation})

    def _emit(self, payload: BaseModel) -> None:
        event_type = event_type_for(payload)
        body = payload.model_dump(mode="json")
        self.ctx.logger.info(str(event_type), extra=body)
        if self.journal is None:
            return
        try:
            self.journal.append(payload, source=self.ctx.address, ts=self.ctx.clock())
        except EventStoreError:
            self.ctx.logger.exception("journal_append_failed", extra={"ledger_id": self.ledger_id})

    # -----------------
    # Stages
    # -----------------

    def bootstrap(self, caller: str, amount: int) -> StakeReceipt:
        with self._transaction("bootstrap"):
            r = self._stages.bootstrap(self._state, caller=caller, amount=amount)
        if r.unlocked:
            self._emit(StageUnlockedPayload(ledger_id=self.ledger_id, stage=r.stage_after, amount=amount))
        return r

    def unlock(self, caller: str, amount: int = 0) -> StakeReceipt:
        with self._transaction("unlock"):
            r = self._stages.unlock(self._state, caller=caller, amount=amount)
        self._emit(StageUnlockedPayload(ledger_id=self.ledger_id, stage=r.stage_after, amount=amount))
        return r

    # -----------------
    # Mint / redeem
    # -----------------

    def mint(self, caller: str, qty: int, payment: int) -> MintReceipt:
        with self._transaction("mint") as fx:
            r = self._mint.mint(self._state, self._store, fx, caller=caller, qty=qty, payment=payment)
        self._emit(
            MintedPayload(
                ledger_id=self.ledger_id,
                owner=r.owner,
                qty=r.qty,
                collateral=r.collateral,
                stage=r.stage,
                peg=r.peg,
                fee=r.fee,
                position_id=r.position_id,
            )
        )
        return r

    def quote_mint(self, qty: int) -> tuple[int, int]:
        """(required collateral, fee) for minting ``qty`` at the current aura."""

        return self._mint.required_payment(qty, self.quote().peg)

    def redeem(self, caller: str, qty: int) -> RedeemReceipt:
        with self._transaction("redeem") as fx:
            r = self._redemption.redeem(self._state, self._store, fx, caller=caller, qty=qty)
        self._emit(
            RedeemedPayload(
                ledger_id=self.ledger_id,
                owner=r.owner,
                qty=r.qty,
                collateral_returned=r.collateral_returned,
                positions_touched=list(r.position_ids),
            )
        )
        return r

    # -----------------
    # Contraction
    # -----------------

    def check_and_trigger(self) -> TriggerReceipt:
        with self._transaction("check_and_trigger"):
            r = self._contraction.check_and_trigger(self._state)
        if r.triggered:
            assert r.deadline is not None
            self._emit(
                SupplyCapShrinkPayload(
                    ledger_id=self.ledger_id,
                    old_supply=r.supply,
                    new_cap=r.cap,
                    pending_burn=r.pending_burn,
                    deadline=r.deadline,
                )
            )
        return r

    def execute_forced_burn(self, max_owners: int | None = None) -> ForcedBurnReceipt:
        batch = self.ctx.params.default_batch_owners if max_owners is None else max_owners
        with self._transaction("execute_forced_burn") as fx:
            r = self._contraction.execute_forced_burn(self._state, self._store, fx, max_owners=batch)
        self._emit(
            ForcedBurnExecutedPayload(
                ledger_id=self.ledger_id,
                total_burned=r.total_burned,
                total_write_down=r.total_write_down,
                owners_processed=r.owners_processed,
                pending_after=r.pending_after,
                round_complete=r.round_complete,
            )
        )
        return r

    # -----------------
    # Liquidation
    # -----------------

    def liquidate(self, caller: str, payment: int) -> LiquidationReceipt:
        with self._transaction("liquidate") as fx:
            r = self._liquidation.liquidate(self._state, self._store, fx, caller=caller, payment=payment)
        self._emit(
            LiquidationExecutedPayload(
                ledger_id=self.ledger_id,
                caller=r.caller,
                payment=r.payment,
                tokens_removed=r.tokens_removed,
                bounty=r.bounty,
                creator_penalty=r.creator_penalty,
            )
        )
        return r

    # -----------------
    # Views
    # -----------------

    def quote(self) -> Quote:
        """Fresh oracle read: aura, peg, cap."""

        return read_quote(self.ctx, self._state)

    def peg(self) -> int:
        return self.quote().peg

    def supply_cap(self) -> int:
        return self.quote().cap

    def health(self) -> int:
        return self.quote().health(self._state.total_collateral, self._state.total_supply)

    def contraction_state(self) -> ContractionState:
        return self._state.contraction_state(self.ctx.clock())

    def positions_of(self, owner: str) -> list[Position]:
        """Copies. Mutating them does not touch the ledger."""

        return [copy.copy(p) for p in self._store.positions_of(owner)]

    def owners(self) -> list[str]:
        return self._store.owners()

    @property
    def state(self) -> LedgerState:
        """A copy of the current ledger state."""

        return copy.deepcopy(self._state)

    def snapshot(self) -> VaultSnapshot:
        s = self._state
        return VaultSnapshot(
            ledger_id=s.ledger_id,
            creator=s.creator,
            token_symbol=s.token_symbol,
            stage=s.stage,
            base_cap=s.base_cap,
            creator_collateral=s.creator_collateral,
            fan_collateral=s.fan_collateral,
            total_collateral=s.total_collateral,
            total_supply=s.total_supply,
            pending_forced_burn=s.pending_forced_burn,
            forced_burn_deadline=s.forced_burn_deadline,
            written_down_collateral=s.written_down_collateral,
            contraction_state=s.contraction_state(self.ctx.clock()),
            positions=len(self._store),
            owners=self._store.owner_count,
        )

    def _reconcile(self) -> None:
        """Per-call check against the store's running totals. Constant cost."""

        s = self._state
        if s.total_supply != self._store.tracked_qty:
            raise InvariantViolation(f"total_supply {s.total_supply} != position qty {self._store.tracked_qty}")
        if s.fan_collateral != self._store.tracked_collateral:
            raise InvariantViolation(
                f"fan_collateral {s.fan_collateral} != position collateral {self._store.tracked_collateral}"
            )
        if s.total_collateral != s.creator_collateral + s.fan_collateral:
            raise InvariantViolation("total_collateral != creator_collateral + fan_collateral")
        if min(s.creator_collateral, s.fan_collateral, s.total_supply, s.pending_forced_burn) < 0:
            raise InvariantViolation("negative ledger counter")
        if (s.pending_forced_burn > 0) != (s.forced_burn_deadline is not None):
            raise InvariantViolation("pending_forced_burn and forced_burn_deadline disagree")
        if self.ctx.token.total_supply != s.total_supply:
            raise InvariantViolation(
                f"token supply {self.ctx.token.total_supply} != ledger supply {s.total_supply}"
            )

    def check_invariants(self) -> None:
        """Reconcile the books, scanning every position. Raises InvariantViolation on any mismatch."""

        qty = self._store.total_qty()
        if qty != self._store.tracked_qty:
            raise InvariantViolation(f"sum of position qty {qty} != running total {self._store.tracked_qty}")
        col = self._store.total_collateral()
        if col != self._store.tracked_collateral:
            raise InvariantViolation(
                f"sum of position collateral {col} != running total {self._store.tracked_collateral}"
            )
        self._reconcile()
