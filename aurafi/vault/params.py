"""aurafi.vault.params

Config decimals, converted to WAD integers once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from aurafi.core.config import Config
from aurafi.core.fixed_point import to_wad


@dataclass(frozen=True, slots=True)
class VaultParams:
    # Peg
    base_price: int
    peg_sensitivity: int
    p_min: int
    p_max: int
    a_ref: int
    aura_max: int
    # Supply cap
    supply_sensitivity: int
    cap_floor_multiple: int
    cap_ceiling_multiple: int
    # Collateral
    min_cr: int
    liq_cr: int
    mint_fee: int
    # Contraction
    grace_period: timedelta
    default_batch_owners: int
    # Liquidation
    min_liq_payment: int
    liquidation_bounty: int
    penalty_pct: int
    penalty_cap_pct: int

    @classmethod
    def from_config(cls, config: Config) -> VaultParams:
        peg, sup, col = config.peg, config.supply, config.collateral
        con, liq = config.contraction, config.liquidation
        return cls(
            base_price=to_wad(peg.base_price),
            peg_sensitivity=to_wad(peg.peg_sensitivity),
            p_min=to_wad(peg.p_min),
            p_max=to_wad(peg.p_max),
            a_ref=int(peg.a_ref),
            aura_max=int(peg.aura_max),
            supply_sensitivity=to_wad(sup.supply_sensitivity),
            cap_floor_multiple=to_wad(sup.floor_multiple),
            cap_ceiling_multiple=to_wad(sup.ceiling_multiple),
            min_cr=to_wad(col.min_cr),
            liq_cr=to_wad(col.liq_cr),
            mint_fee=to_wad(col.mint_fee),
            grace_period=timedelta(seconds=con.grace_period_seconds),
            default_batch_owners=int(con.default_batch_owners),
            min_liq_payment=to_wad(liq.min_payment),
            liquidation_bounty=to_wad(liq.bounty_pct),
            penalty_pct=to_wad(liq.penalty_pct),
            penalty_cap_pct=to_wad(liq.penalty_cap_pct),
        )

    @classmethod
    def defaults(cls) -> VaultParams:
        return cls.from_config(Config())
