"""aurafi.core.fixed_point

WAD arithmetic. 1.0 == 10**18.

Every division floors, except ``mul_div_up`` for amounts that shrink what a
caller may do. Nothing here ever rounds in the caller's favor; the cost is
dust, and dust stays in the vault.
"""

from __future__ import annotations

from decimal import Decimal

WAD = 10**18

# Health with zero supply. Nothing to liquidate, nothing to protect.
INFINITE_HEALTH = 2**256 - 1


def to_wad(value: Decimal | str | int | float) -> int:
    """Convert a human decimal to a WAD integer, truncating below 1e-18.

    Floats go through ``str`` first so ``0.1`` means 0.1, not its binary neighbour.
    """

    d = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    return int(d * WAD)


def from_wad(value: int) -> Decimal:
    return Decimal(value) / Decimal(WAD)


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) on non-negative integers."""

    if denominator <= 0:
        raise ZeroDivisionError("mul_div denominator must be > 0")
    if a < 0 or b < 0:
        raise ValueError(f"mul_div operands must be non-negative, got {a}, {b}")
    return (a * b) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator). Only for amounts that shrink a caller's allowance."""

    floor = mul_div(a, b, denominator)
    return floor + 1 if floor * denominator != a * b else floor


def mul_wad(a: int, b: int) -> int:
    return mul_div(a, b, WAD)


def div_wad(a: int, b: int) -> int:
    return mul_div(a, WAD, b)


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
