from __future__ import annotations

from collections.abc import Callable

import pytest

from aurafi.core.config import Config
from aurafi.core.database import Database
from aurafi.core.events import EventType, MintedPayload, validate_payload
from aurafi.core.exceptions import InsufficientCollateralError
from aurafi.core.fixed_point import WAD
from aurafi.integrations.oracle import StaticOracle
from aurafi.integrations.settlement import FeeAccumulator, PayoutLedger
from aurafi.vault.types import ContractionState
from aurafi.vault.vault import CreatorVault
from tests.unit._vault_helpers import CREATOR, LEDGER, FakeClock


def test_full_lifecycle_is_journaled(
    make_vault: Callable[..., CreatorVault],
    test_config: Config,
    oracle: StaticOracle,
    clock: FakeClock,
    fees: FeeAccumulator,
    payouts: PayoutLedger,
) -> None:
    db = Database(test_config.journal_path)
    try:
        v = make_vault(base_cap=100 * WAD, journal=db)

        v.bootstrap(CREATOR, 10 * WAD)
        v.unlock(CREATOR, 40 * WAD)

        oracle.set_aura(LEDGER, 200)
        v.mint("alice", 60 * WAD, 135_675 * 10**15)
        v.mint("bob", 30 * WAD, 67_837_500 * 10**12)
        v.redeem("bob", 10 * WAD)

        oracle.set_aura(LEDGER, 0)
        trig = v.check_and_trigger()
        assert trig.triggered
        assert trig.pending_burn == 55 * WAD

        clock.advance(days=1)
        burn = v.execute_forced_burn()
        assert burn.round_complete
        assert v.state.total_supply == 25 * WAD
        assert v.contraction_state() is ContractionState.IDLE

        v.check_invariants()
        assert fees.total > 0
        assert payouts.paid_to("bob") > 0

        types = [e.type for e in reversed(db.get_events(limit=50))]
        assert types == [
            EventType.STAGE_UNLOCKED_V1,
            EventType.STAGE_UNLOCKED_V1,
            EventType.MINTED_V1,
            EventType.MINTED_V1,
            EventType.REDEEMED_V1,
            EventType.SUPPLY_CAP_SHRINK_V1,
            EventType.FORCED_BURN_EXECUTED_V1,
        ]
        assert all(e.source == f"vault:{LEDGER}" for e in db.get_events(limit=50))
        assert [e.seq for e in reversed(db.get_events(ledger_id=LEDGER, limit=50))] == list(range(1, 8))
        assert db.verify_hash_chain() is True

        replayed = db.replay(LEDGER)
        assert sum(p.qty for p in replayed if isinstance(p, MintedPayload)) == 90 * WAD

        (burned,) = db.get_events(event_type=EventType.FORCED_BURN_EXECUTED_V1)
        payload = validate_payload(burned.type, burned.payload)
        assert payload.total_burned == burn.total_burned
        assert burned.ts == clock.now
    finally:
        db.close()


def test_liquidation_after_aura_spike_is_journaled(
    make_vault: Callable[..., CreatorVault],
    test_config: Config,
    oracle: StaticOracle,
    payouts: PayoutLedger,
) -> None:
    db = Database(test_config.journal_path)
    try:
        v = make_vault(journal=db)
        v.bootstrap(CREATOR, 10 * WAD)
        v.mint("alice", 100 * WAD, 150_750 * 10**15)

        oracle.set_aura(LEDGER, 200)
        assert v.health() < 6 * WAD // 5

        r = v.liquidate("keeper", 20 * WAD)
        assert payouts.paid_to("keeper") == r.bounty
        assert v.health() >= 6 * WAD // 5

        (event,) = db.get_events(event_type=EventType.LIQUIDATION_EXECUTED_V1)
        assert event.payload["tokens_removed"] == 20 * WAD
        assert event.payload["caller"] == "keeper"
        assert db.count_events() == 3
        assert db.verify_hash_chain() is True
    finally:
        db.close()


def test_rejected_calls_leave_no_trace(
    make_vault: Callable[..., CreatorVault], test_config: Config
) -> None:
    db = Database(test_config.journal_path)
    try:
        v = make_vault(journal=db)
        v.bootstrap(CREATOR, 5 * WAD)
        assert db.count_events() == 0

        v.bootstrap(CREATOR, 5 * WAD)
        with pytest.raises(InsufficientCollateralError):
            v.mint("alice", 10 * WAD, 1)
        assert db.count_events() == 1
    finally:
        db.close()


def test_journal_failure_does_not_undo_a_committed_call(
    make_vault: Callable[..., CreatorVault], test_config: Config, caplog: pytest.LogCaptureFixture
) -> None:
    db = Database(test_config.journal_path)
    v = make_vault(journal=db)
    db.close()

    v.bootstrap(CREATOR, 10 * WAD)

    assert v.state.stage == 1
    assert "journal_append_failed" in caplog.text
