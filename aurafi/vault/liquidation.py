"""aurafi.vault.liquidation

Third-party recapitalization of an unhealthy ledger.

Below LIQ_CR anyone may pay collateral in and burn the supply that collateral
cannot carry at MIN_CR:

    to_remove = supply - floor((collateral + payment) / (peg * MIN_CR))

The burn touches every position in a single pass. Floor shares first, then
the floor remainder taken in registry order, so exactly ``to_remove`` tokens
disappear. Burned positions keep their collateral: holders who lose tokens
keep the backing, so the survivors end up better collateralized.

Value flow:
- bounty (a slice of the payment) -> liquidator
- payment - bounty -> fan collateral, spread over surviving qty
- creator penalty (capped by the payment) -> fee sink
"""

from __future__ import annotations

from aurafi.core.exceptions import (
    InsufficientLiquidationError,
    InsufficientPaymentError,
    InvariantViolation,
    NotLiquidatableError,
)
from aurafi.core.fixed_point import WAD, mul_div, mul_wad
from aurafi.vault.interactions import Interactions
from aurafi.vault.positions import Position, PositionStore
from aurafi.vault.quote import read_quote
from aurafi.vault.types import LedgerState, LiquidationReceipt, VaultContext


def pro_rata_burn(positions: list[Position], amount: int, supply: int) -> dict[int, int]:
    """Split ``amount`` over ``positions`` by qty. Returns position id -> burn.

    Exact: the shares always sum to ``amount``.
    """

    if amount > supply:
        raise InvariantViolation(f"cannot burn {amount} from supply {supply}")

    burns: dict[int, int] = {}
    assigned = 0
    for pos in positions:
        if pos.qty == 0:
            continue
        share = mul_div(pos.qty, amount, supply)
        if share:
            burns[pos.id] = share
            assigned += share

    remainder = amount - assigned
    for pos in positions:
        if remainder == 0:
            break
        room = pos.qty - burns.get(pos.id, 0)
        if room <= 0:
            continue
        extra = min(room, remainder)
        burns[pos.id] = burns.get(pos.id, 0) + extra
        remainder -= extra

    if remainder:
        raise InvariantViolation(f"positions short by {remainder} tokens for pro-rata burn")
    return burns


def spread_credit(positions: list[Position], amount: int) -> dict[int, int]:
    """Split ``amount`` of collateral over positions by remaining qty.

    Floor remainder goes to the first position that still holds tokens (or the
    first position at all if none does).
    """

    if amount == 0 or not positions:
        return {}
    weight = sum(p.qty for p in positions)
    credits: dict[int, int] = {}
    if weight > 0:
        for pos in positions:
            if pos.qty:
                share = mul_div(amount, pos.qty, weight)
                if share:
                    credits[pos.id] = share
    dust = amount - sum(credits.values())
    if dust:
        anchor = next((p for p in positions if p.qty > 0), positions[0])
        credits[anchor.id] = credits.get(anchor.id, 0) + dust
    return credits


class LiquidationEngine:
    def __init__(self, ctx: VaultContext) -> None:
        self.ctx = ctx

    def tokens_to_remove(self, state: LedgerState, *, peg_wad: int, payment: int) -> int:
        """supply - floor((collateral + payment) / (peg * MIN_CR)). May be <= 0."""

        supportable = mul_div(state.total_collateral + payment, WAD * WAD, peg_wad * self.ctx.params.min_cr)
        return state.total_supply - supportable

    def liquidate(
        self, state: LedgerState, store: PositionStore, fx: Interactions, *, caller: str, payment: int
    ) -> LiquidationReceipt:
        p = self.ctx.params
        q = read_quote(self.ctx, state)

        h = q.health(state.total_collateral, state.total_supply)
        if h >= p.liq_cr:
            raise NotLiquidatableError(f"health {h} >= liquidation threshold {p.liq_cr}")
        if payment < p.min_liq_payment:
            raise InsufficientPaymentError(f"payment {payment} < minimum {p.min_liq_payment}")

        to_remove = self.tokens_to_remove(state, peg_wad=q.peg, payment=payment)
        if to_remove <= 0:
            raise InsufficientLiquidationError(f"payment {payment} leaves nothing to remove")

        positions = list(store)
        burns = pro_rata_burn(positions, to_remove, state.total_supply)

        bounty = mul_wad(payment, p.liquidation_bounty)
        net = payment - bounty
        creator_penalty = min(
            mul_wad(state.creator_collateral, p.penalty_pct),
            mul_wad(payment, p.penalty_cap_pct),
        )

        # Effects.
        burned_by_owner: dict[str, int] = {}
        for pos in positions:
            burn = burns.get(pos.id, 0)
            if burn:
                store.reduce(pos, qty=burn, collateral=0)
                burned_by_owner[pos.owner] = burned_by_owner.get(pos.owner, 0) + burn

        for pos_id, credit in spread_credit(positions, net).items():
            store.credit(store.get(pos_id), credit)

        state.total_supply -= to_remove
        state.fan_collateral += net
        state.creator_collateral -= creator_penalty
        state.total_collateral += net - creator_penalty

        # Interactions.
        for owner, qty in burned_by_owner.items():
            fx.burn(owner, qty)
        fx.pay(caller, bounty)
        fx.deposit_fee(creator_penalty)

        return LiquidationReceipt(
            caller=caller,
            payment=payment,
            tokens_removed=to_remove,
            bounty=bounty,
            creator_penalty=creator_penalty,
            burned_by_owner=burned_by_owner,
        )
