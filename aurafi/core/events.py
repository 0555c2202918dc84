"""aurafi.core.events

The event contract is the primitive.

Everything a vault does that someone outside might care about becomes one of
these. Amounts are WAD integers; JSON keeps them exact.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class EventType(StrEnum):
    """Canonical event type registry.

    Naming: ``{category}.{domain}.{version}``.
    """

    STAGE_UNLOCKED_V1 = "vault.stage_unlocked.v1"
    MINTED_V1 = "vault.minted.v1"
    REDEEMED_V1 = "vault.redeemed.v1"
    SUPPLY_CAP_SHRINK_V1 = "vault.supply_cap_shrink.v1"
    FORCED_BURN_EXECUTED_V1 = "vault.forced_burn_executed.v1"
    LIQUIDATION_EXECUTED_V1 = "vault.liquidation_executed.v1"


# -----------------
# Typed payloads
# -----------------


class StageUnlockedPayload(BaseModel):
    """Payload for :pydata:`~aurafi.core.events.EventType.STAGE_UNLOCKED_V1`."""

    ledger_id: str
    stage: int
    amount: int


class MintedPayload(BaseModel):
    ledger_id: str
    owner: str
    qty: int
    collateral: int
    stage: int
    peg: int
    fee: int = 0
    position_id: int


class RedeemedPayload(BaseModel):
    ledger_id: str
    owner: str
    qty: int
    collateral_returned: int
    positions_touched: list[int] = Field(default_factory=list)


class SupplyCapShrinkPayload(BaseModel):
    ledger_id: str
    old_supply: int
    new_cap: int
    pending_burn: int
    deadline: datetime


class ForcedBurnExecutedPayload(BaseModel):
    ledger_id: str
    total_burned: int
    total_write_down: int
    owners_processed: int
    pending_after: int
    round_complete: bool


class LiquidationExecutedPayload(BaseModel):
    ledger_id: str
    caller: str
    payment: int
    tokens_removed: int
    bounty: int
    creator_penalty: int


_EVENT_PAYLOAD_MODELS: dict[EventType, type[BaseModel]] = {
    EventType.STAGE_UNLOCKED_V1: StageUnlockedPayload,
    EventType.MINTED_V1: MintedPayload,
    EventType.REDEEMED_V1: RedeemedPayload,
    EventType.SUPPLY_CAP_SHRINK_V1: SupplyCapShrinkPayload,
    EventType.FORCED_BURN_EXECUTED_V1: ForcedBurnExecutedPayload,
    EventType.LIQUIDATION_EXECUTED_V1: LiquidationExecutedPayload,
}


def payload_model_for(event_type: EventType) -> type[BaseModel] | None:
    return _EVENT_PAYLOAD_MODELS.get(event_type)


def event_type_for(payload: BaseModel) -> EventType:
    for et, model in _EVENT_PAYLOAD_MODELS.items():
        if type(payload) is model:
            return et
    raise KeyError(f"no event type registered for {type(payload).__name__}")


def canonical_json(data: Any) -> str:
    """Sorted keys, no whitespace. What the journal stores and hashes."""

    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def validate_payload(event_type: EventType, payload: dict[str, Any]) -> BaseModel:
    """Parse a stored payload back into its typed model."""

    model = payload_model_for(event_type)
    if model is None:
        raise KeyError(f"no payload model for {event_type}")
    return model.model_validate(payload)
