"""aurafi.vault.peg

Pure pricing functions. No state, no I/O.

    peg(aura)        = clamp(BASE * (1 + K*(aura/A_REF - 1)), P_MIN, P_MAX)
    supply_cap(aura) = clamp(base_cap * (1 + s*(aura - A_REF)/A_REF), 0.25x, 4x)
    health(c, s, p)  = c / (s * p)

All values are WAD integers except aura (plain int) and quantities (token wei).
Upward adjustments are floored. Below A_REF the peg adjustment is floored and
the cap adjustment is rounded up, so a falling aura never leaves the cap a
unit higher than the exact value.
"""

from __future__ import annotations

from aurafi.core.exceptions import OracleError
from aurafi.core.fixed_point import INFINITE_HEALTH, WAD, clamp, mul_div, mul_div_up, mul_wad
from aurafi.vault.params import VaultParams


def _check(aura: int, params: VaultParams) -> int:
    if isinstance(aura, bool) or not isinstance(aura, int) or aura < 0 or aura > params.aura_max:
        raise OracleError(f"aura {aura!r} outside [0, {params.aura_max}]")
    return aura


def _scaled(base: int, sensitivity: int, aura: int, a_ref: int, *, ceil_below_ref: bool = False) -> int:
    """base * (1 + sensitivity * (aura - a_ref) / a_ref), sensitivity in WAD."""

    distance = abs(aura - a_ref)
    if aura >= a_ref:
        return base + mul_div(base, sensitivity * distance, a_ref * WAD)
    round_adj = mul_div_up if ceil_below_ref else mul_div
    return base - round_adj(base, sensitivity * distance, a_ref * WAD)


def peg(aura: int, params: VaultParams) -> int:
    """Native value of one token, WAD."""

    a = _check(aura, params)
    return clamp(_scaled(params.base_price, params.peg_sensitivity, a, params.a_ref), params.p_min, params.p_max)


def supply_cap(aura: int, base_cap: int, params: VaultParams) -> int:
    """Maximum total supply the current aura supports, token wei."""

    a = _check(aura, params)
    lo = mul_wad(base_cap, params.cap_floor_multiple)
    hi = mul_wad(base_cap, params.cap_ceiling_multiple)
    return clamp(_scaled(base_cap, params.supply_sensitivity, a, params.a_ref, ceil_below_ref=True), lo, hi)


def health(collateral: int, supply: int, peg_wad: int) -> int:
    """collateral / (supply * peg), WAD. Zero supply is never unhealthy."""

    if supply == 0:
        return INFINITE_HEALTH
    if peg_wad <= 0:
        raise ValueError("peg must be > 0")
    return mul_div(collateral, WAD * WAD, supply * peg_wad)


def token_value(qty: int, peg_wad: int) -> int:
    """Native value of ``qty`` tokens at ``peg_wad``."""

    return mul_wad(qty, peg_wad)
