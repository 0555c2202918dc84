from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from pydantic import BaseModel, ValidationError

from aurafi.core.events import (
    EventType,
    MintedPayload,
    SupplyCapShrinkPayload,
    canonical_json,
    event_type_for,
    payload_model_for,
    validate_payload,
)


def test_event_type_enum_contains_expected_members() -> None:
    # Contract: no scattered strings.
    assert EventType.MINTED_V1.value == "vault.minted.v1"
    assert all(et.value.startswith("vault.") for et in EventType)
    assert all(payload_model_for(et) is not None for et in EventType)


def test_payload_models_validate() -> None:
    p = MintedPayload(ledger_id="c1", owner="alice", qty=1, collateral=2, stage=1, peg=3, position_id=0)
    assert p.fee == 0
    assert event_type_for(p) is EventType.MINTED_V1

    with pytest.raises(ValidationError):
        MintedPayload(ledger_id="c1", owner="alice", qty="many", collateral=2, stage=1, peg=3, position_id=0)


def test_stored_payload_parses_back() -> None:
    original = SupplyCapShrinkPayload(
        ledger_id="c1",
        old_supply=150 * 10**18,
        new_cap=62 * 10**18,
        pending_burn=88 * 10**18,
        deadline=datetime(2026, 1, 2, tzinfo=UTC),
    )
    stored = json.loads(canonical_json(original.model_dump(mode="json")))
    parsed = validate_payload(EventType.SUPPLY_CAP_SHRINK_V1, stored)
    assert parsed == original


def test_canonical_json_is_stable() -> None:
    a = {"b": 2, "a": 1}
    b = {"a": 1, "b": 2}
    assert canonical_json(a) == canonical_json(b)


def test_unregistered_payload_has_no_event_type() -> None:
    class Stray(BaseModel):
        ledger_id: str

    with pytest.raises(KeyError):
        event_type_for(Stray(ledger_id="c1"))
