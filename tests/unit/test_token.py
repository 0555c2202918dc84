from __future__ import annotations

import pytest

from aurafi.core.exceptions import TokenLedgerError
from aurafi.integrations.settlement import FeeAccumulator, FeeSink, PayoutLedger, PayoutRail
from aurafi.integrations.token import RestrictedToken, TokenLedger


def test_only_the_minter_moves_supply() -> None:
    t = RestrictedToken("AURA", minter="vault")
    assert isinstance(t, TokenLedger)

    t.mint("alice", 10, caller="vault")
    assert t.balance_of("alice") == 10
    assert t.total_supply == 10

    with pytest.raises(TokenLedgerError):
        t.mint("alice", 10, caller="alice")
    with pytest.raises(TokenLedgerError):
        t.burn("alice", 1, caller="alice")

    t.burn("alice", 4, caller="vault")
    assert t.balance_of("alice") == 6
    assert t.total_supply == 6


def test_burn_cannot_exceed_balance() -> None:
    t = RestrictedToken("AURA", minter="vault")
    t.mint("alice", 1, caller="vault")
    with pytest.raises(TokenLedgerError):
        t.burn("alice", 2, caller="vault")
    with pytest.raises(TokenLedgerError):
        t.mint("alice", 0, caller="vault")


def test_minter_binds_once() -> None:
    t = RestrictedToken("AURA")
    with pytest.raises(TokenLedgerError):
        t.mint("alice", 1, caller="vault")
    t.bind_minter("vault")
    t.bind_minter("vault")
    with pytest.raises(TokenLedgerError):
        t.bind_minter("other")
    assert t.minter == "vault"


def test_settlement_sinks_record_value() -> None:
    fees = FeeAccumulator()
    payouts = PayoutLedger()
    assert isinstance(fees, FeeSink)
    assert isinstance(payouts, PayoutRail)

    fees.deposit(5)
    fees.deposit(0)
    payouts.send("alice", 3)
    payouts.send("alice", 2)
    payouts.send("bob", 1)

    assert (fees.total, fees.deposits) == (5, 2)
    assert payouts.paid_to("alice") == 5
    assert payouts.paid_to("carol") == 0
    assert payouts.total == 6
    with pytest.raises(ValueError):
        payouts.send("bob", -1)
