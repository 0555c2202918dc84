"""aurafi.vault.redemption

FIFO redemption.

The caller's oldest live position pays first. Each position returns the share
of its own collateral that matches the share of its qty being burned, floored.
"""

from __future__ import annotations

from aurafi.core.exceptions import (
    HealthTooLowError,
    InsufficientBalanceError,
    InsufficientPaymentError,
    InvariantViolation,
)
from aurafi.core.fixed_point import mul_div
from aurafi.vault.interactions import Interactions
from aurafi.vault.positions import Position, PositionStore
from aurafi.vault.quote import read_quote
from aurafi.vault.types import LedgerState, RedeemReceipt, VaultContext


def plan_fifo(positions: list[Position], qty: int) -> list[tuple[Position, int, int]]:
    """Return (position, burn, collateral_out) steps consuming ``qty`` oldest first.

    Raises InvariantViolation if the positions cannot cover ``qty``.
    """

    steps: list[tuple[Position, int, int]] = []
    remaining = qty
    for pos in positions:
        if remaining == 0:
            break
        if pos.qty == 0:
            continue
        burn = min(pos.qty, remaining)
        out = mul_div(pos.collateral, burn, pos.qty)
        steps.append((pos, burn, out))
        remaining -= burn

    if remaining > 0:
        raise InvariantViolation(f"positions short by {remaining} tokens while redeeming {qty}")
    return steps


class RedemptionEngine:
    def __init__(self, ctx: VaultContext) -> None:
        self.ctx = ctx

    def redeem(
        self, state: LedgerState, store: PositionStore, fx: Interactions, *, caller: str, qty: int
    ) -> RedeemReceipt:
        if qty <= 0:
            raise InsufficientPaymentError("redeem qty must be > 0")
        balance = self.ctx.token.balance_of(caller)
        if balance < qty:
            raise InsufficientBalanceError(f"{caller} holds {balance}, cannot redeem {qty}")

        steps = plan_fifo(store.positions_of(caller), qty)
        collateral_out = sum(out for _, _, out in steps)

        q = read_quote(self.ctx, state)
        health_after = q.health(state.total_collateral - collateral_out, state.total_supply - qty)
        if health_after < self.ctx.params.min_cr:
            raise HealthTooLowError(f"health after redeem {health_after} < {self.ctx.params.min_cr}")

        # Effects.
        for pos, burn, out in steps:
            store.reduce(pos, qty=burn, collateral=out)
        state.fan_collateral -= collateral_out
        state.total_collateral -= collateral_out
        state.total_supply -= qty

        # Interactions.
        fx.burn(caller, qty)
        fx.pay(caller, collateral_out)

        return RedeemReceipt(
            owner=caller,
            qty=qty,
            collateral_returned=collateral_out,
            position_ids=tuple(pos.id for pos, _, _ in steps),
        )
