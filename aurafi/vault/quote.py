"""aurafi.vault.quote

One oracle read, everything derived from it.

A quote lives for exactly one entry-point call. Nothing is cached across calls.
"""

from __future__ import annotations

from dataclasses import dataclass

from aurafi.vault import peg as pricing
from aurafi.vault.types import LedgerState, VaultContext


@dataclass(frozen=True, slots=True)
class Quote:
    aura: int
    peg: int
    cap: int

    def health(self, collateral: int, supply: int) -> int:
        return pricing.health(collateral, supply, self.peg)


def read_quote(ctx: VaultContext, state: LedgerState) -> Quote:
    aura = ctx.oracle.get_aura(state.ledger_id)
    return Quote(
        aura=aura,
        peg=pricing.peg(aura, ctx.params),
        cap=pricing.supply_cap(aura, state.base_cap, ctx.params),
    )
