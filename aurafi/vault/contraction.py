"""aurafi.vault.contraction

Forced supply contraction.

IDLE -> GRACE_PERIOD -> EXECUTABLE -> IDLE

When aura falls, the cap falls. If supply ends up above the cap anyone may
arm a forced burn of the excess. Holders get a grace period to redeem on their
own terms; after it, anyone may execute the burn in bounded batches of owners.

A round fixes its supply and burn amount at the first batch, so an owner's
share does not depend on which batch they land in. Floor rounding leaves a
few units of dust per position; when the cursor passes the last owner the
round is complete and the dust is forgiven. Aura recovering does not cancel
an armed burn.
"""

from __future__ import annotations

from aurafi.core.exceptions import GracePeriodActiveError, LedgerValidationError
from aurafi.core.fixed_point import mul_div
from aurafi.vault.interactions import Interactions
from aurafi.vault.positions import PositionStore
from aurafi.vault.quote import read_quote
from aurafi.vault.types import ContractionState, ForcedBurnReceipt, LedgerState, TriggerReceipt, VaultContext


class ContractionController:
    def __init__(self, ctx: VaultContext) -> None:
        self.ctx = ctx

    def check_and_trigger(self, state: LedgerState) -> TriggerReceipt:
        """Arm a forced burn if supply exceeds the current cap. Otherwise a no-op."""

        q = read_quote(self.ctx, state)
        if state.pending_forced_burn > 0 or state.total_supply <= q.cap:
            return TriggerReceipt(
                triggered=False,
                supply=state.total_supply,
                cap=q.cap,
                pending_burn=state.pending_forced_burn,
                deadline=state.forced_burn_deadline,
            )

        state.pending_forced_burn = state.total_supply - q.cap
        state.forced_burn_deadline = self.ctx.clock() + self.ctx.params.grace_period
        return TriggerReceipt(
            triggered=True,
            supply=state.total_supply,
            cap=q.cap,
            pending_burn=state.pending_forced_burn,
            deadline=state.forced_burn_deadline,
        )

    def execute_forced_burn(
        self, state: LedgerState, store: PositionStore, fx: Interactions, *, max_owners: int
    ) -> ForcedBurnReceipt:
        if max_owners < 1:
            raise LedgerValidationError("max_owners must be >= 1")
        status = state.contraction_state(self.ctx.clock())
        if status is ContractionState.IDLE:
            raise GracePeriodActiveError("no forced burn pending")
        if status is ContractionState.GRACE_PERIOD:
            raise GracePeriodActiveError(f"grace period ends at {state.forced_burn_deadline}")

        # Supply at call start. Only the first batch of a round captures it.
        if state.burn_cursor == 0:
            state.burn_round_supply = state.total_supply
            state.burn_round_amount = min(state.pending_forced_burn, state.total_supply)

        round_supply = state.burn_round_supply
        round_amount = state.burn_round_amount

        owners = store.owners(state.burn_cursor, max_owners)
        burned_by_owner: dict[str, int] = {}
        total_burned = 0
        total_write_down = 0

        for owner in owners:
            owner_burn = 0
            for pos in store.positions_of(owner):
                if pos.qty == 0 or round_supply == 0:
                    continue
                burn = min(pos.qty, mul_div(pos.qty, round_amount, round_supply))
                if burn == 0:
                    continue
                write_down = mul_div(pos.collateral, burn, pos.qty)
                store.reduce(pos, qty=burn, collateral=write_down)
                owner_burn += burn
                total_write_down += write_down
            if owner_burn:
                burned_by_owner[owner] = owner_burn
                total_burned += owner_burn

        state.burn_cursor += len(owners)
        state.total_supply -= total_burned
        state.fan_collateral -= total_write_down
        state.total_collateral -= total_write_down
        state.written_down_collateral += total_write_down
        state.pending_forced_burn = max(0, state.pending_forced_burn - total_burned)

        round_complete = state.burn_cursor >= store.owner_count
        if state.pending_forced_burn == 0 or round_complete:
            state.clear_forced_burn()

        self.ctx.logger.info(
            "forced_burn_batch",
            extra={
                "ledger_id": state.ledger_id,
                "owners": len(owners),
                "burned": total_burned,
                "write_down": total_write_down,
                "pending_after": state.pending_forced_burn,
            },
        )

        for owner, qty in burned_by_owner.items():
            fx.burn(owner, qty)

        return ForcedBurnReceipt(
            total_burned=total_burned,
            total_write_down=total_write_down,
            owners_processed=len(owners),
            pending_after=state.pending_forced_burn,
            round_complete=round_complete,
            burned_by_owner=burned_by_owner,
        )
