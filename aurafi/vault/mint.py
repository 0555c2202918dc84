"""aurafi.vault.mint

Mint = new position + new supply.

Preconditions run in a fixed order; the first failure is the one reported:
stage, stage cap, supply cap, collateral. Health is checked against the state
the mint would produce before anything is written.

Overpayment is not refunded. It stays on the position as extra backing.
"""

from __future__ import annotations

from aurafi.core.exceptions import (
    ExceedsStageCapError,
    ExceedsSupplyCapError,
    HealthTooLowError,
    InsufficientCollateralError,
    InsufficientPaymentError,
    StageNotUnlockedError,
)
from aurafi.core.fixed_point import mul_wad
from aurafi.vault.interactions import Interactions
from aurafi.vault.positions import PositionStore
from aurafi.vault.quote import read_quote
from aurafi.vault.stages import StageController
from aurafi.vault.types import LedgerState, MintReceipt, VaultContext


class MintEngine:
    def __init__(self, ctx: VaultContext, stages: StageController) -> None:
        self.ctx = ctx
        self.stages = stages

    def required_payment(self, qty: int, peg_wad: int) -> tuple[int, int]:
        """(required collateral, fee) for ``qty`` tokens at ``peg_wad``."""

        required = mul_wad(mul_wad(qty, peg_wad), self.ctx.params.min_cr)
        fee = mul_wad(required, self.ctx.params.mint_fee)
        return required, fee

    def mint(
        self,
        state: LedgerState,
        store: PositionStore,
        fx: Interactions,
        *,
        caller: str,
        qty: int,
        payment: int,
    ) -> MintReceipt:
        if qty <= 0:
            raise InsufficientPaymentError("mint qty must be > 0")
        if state.stage == 0:
            raise StageNotUnlockedError(f"{state.ledger_id} has not reached stage 1")

        new_supply = state.total_supply + qty
        stage_cap = self.stages.mint_cap(state)
        if new_supply > stage_cap:
            raise ExceedsStageCapError(f"supply {new_supply} > stage {state.stage} cap {stage_cap}")

        q = read_quote(self.ctx, state)
        if new_supply > q.cap:
            raise ExceedsSupplyCapError(f"supply {new_supply} > cap {q.cap} at aura {q.aura}")

        required, fee = self.required_payment(qty, q.peg)
        if payment < required + fee:
            raise InsufficientCollateralError(f"payment {payment} < required {required} + fee {fee}")

        collateral = payment - fee
        health_after = q.health(state.total_collateral + collateral, new_supply)
        if health_after < self.ctx.params.min_cr:
            raise HealthTooLowError(f"health after mint {health_after} < {self.ctx.params.min_cr}")

        # Effects.
        pos = store.open(
            owner=caller,
            qty=qty,
            collateral=collateral,
            stage=state.stage,
            created_at=self.ctx.clock(),
        )
        state.fan_collateral += collateral
        state.total_collateral += collateral
        state.total_supply = new_supply

        # Interactions.
        fx.mint(caller, qty)
        fx.deposit_fee(fee)

        return MintReceipt(
            position_id=pos.id,
            owner=caller,
            qty=qty,
            collateral=collateral,
            fee=fee,
            peg=q.peg,
            stage=state.stage,
        )
