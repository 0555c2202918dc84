from __future__ import annotations

from dataclasses import replace

import pytest

from aurafi.core.exceptions import OracleError
from aurafi.core.fixed_point import INFINITE_HEALTH, WAD
from aurafi.vault.params import VaultParams
from aurafi.vault.peg import health, peg, supply_cap, token_value


def test_reference_aura_pegs_at_one(params: VaultParams) -> None:
    assert peg(100, params) == WAD


def test_aura_150_pegs_at_one_and_a_quarter(params: VaultParams) -> None:
    assert peg(150, params) == 1_250_000_000_000_000_000


def test_peg_extremes(params: VaultParams) -> None:
    assert peg(200, params) == 3 * WAD // 2
    assert peg(50, params) == 3 * WAD // 4
    assert peg(0, params) == WAD // 2


def test_peg_is_clamped(params: VaultParams) -> None:
    narrow = replace(params, p_min=9 * WAD // 10, p_max=11 * WAD // 10)
    assert peg(0, narrow) == 9 * WAD // 10
    assert peg(200, narrow) == 11 * WAD // 10


def test_supply_cap_floor_at_zero_aura(params: VaultParams) -> None:
    assert supply_cap(0, 100 * WAD, params) == 25 * WAD


def test_supply_cap_tracks_aura(params: VaultParams) -> None:
    assert supply_cap(100, 100 * WAD, params) == 100 * WAD
    assert supply_cap(200, 100 * WAD, params) == 175 * WAD
    assert supply_cap(50, 100 * WAD, params) == 62_500_000_000_000_000_000


def test_supply_cap_ceiling(params: VaultParams) -> None:
    steep = replace(params, supply_sensitivity=10 * WAD)
    assert supply_cap(200, 100 * WAD, steep) == 400 * WAD
    assert supply_cap(0, 100 * WAD, steep) == 25 * WAD


def test_out_of_range_aura_is_rejected(params: VaultParams) -> None:
    with pytest.raises(OracleError):
        peg(201, params)
    with pytest.raises(OracleError):
        supply_cap(-1, WAD, params)


def test_health_with_zero_supply_is_infinite() -> None:
    assert health(0, 0, WAD) == INFINITE_HEALTH
    assert health(100 * WAD, 0, WAD // 2) == INFINITE_HEALTH


def test_health_ratio() -> None:
    # 150 collateral / (100 tokens * 1.0) = 1.5
    assert health(150 * WAD, 100 * WAD, WAD) == 3 * WAD // 2
    # 160 / (100 * 1.5) = 1.0666... floored
    assert health(160 * WAD, 100 * WAD, 3 * WAD // 2) == 1_066_666_666_666_666_666


def test_token_value() -> None:
    assert token_value(10 * WAD, 1_250_000_000_000_000_000) == 12_500_000_000_000_000_000


def test_cap_below_reference_rounds_down(params: VaultParams) -> None:
    # 3 * 0.75 * 1/100 = 0.0225 wei of adjustment; the cap loses a whole unit.
    assert supply_cap(99, 3, params) == 2
    assert supply_cap(101, 3, params) == 3
    # Exact adjustments are unaffected.
    assert supply_cap(50, 100 * WAD, params) == 62_500 * 10**15
